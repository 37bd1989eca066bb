from __future__ import annotations

import bisect
import random
from collections.abc import Sequence
from itertools import accumulate
from typing import TypeVar

from lifecourse.content.events import CopingMechanism, GenericEvent, LifeEvent, PersonalEvent
from lifecourse.sim.coping import CopingTriggerChecker
from lifecourse.sim.eligibility import is_eligible
from lifecourse.sim.state import SimulationState
from lifecourse.sim.weights import EventWeightCalculator, WeightedEvent

EventT = TypeVar("EventT", bound=LifeEvent)


def _locate(cumulative: Sequence[float], pointer: float) -> int:
    """Index of the first cumulative bucket whose upper edge lies above ``pointer``."""
    index = bisect.bisect_right(cumulative, pointer)
    return min(index, len(cumulative) - 1)


class StochasticSampler:
    """Stochastic universal sampling over eligible, state-weighted event pools.

    Single selection is a plain roulette draw. Multi-selection places ``k``
    evenly spaced pointers behind one random offset, which keeps the spread of
    outcomes close to the expected proportions, and tops up with weighted draws
    over the unselected remainder whenever pointers collide on a heavy event.
    """

    def __init__(
        self,
        weight_calculator: EventWeightCalculator,
        trigger_checker: CopingTriggerChecker,
        rng: random.Random,
    ) -> None:
        if not isinstance(weight_calculator, EventWeightCalculator):
            raise TypeError("weight_calculator must be an EventWeightCalculator")
        if not isinstance(trigger_checker, CopingTriggerChecker):
            raise TypeError("trigger_checker must be a CopingTriggerChecker")
        self._weights = weight_calculator
        self._trigger_checker = trigger_checker
        self._rng = rng

    def select_single(self, events: Sequence[EventT], state: SimulationState) -> EventT | None:
        if events is None:
            raise ValueError("events is required")
        eligible = [event for event in events if is_eligible(event, state)]
        if not eligible:
            return None

        weights = [self._weights.calculate_weight(event, state) for event in eligible]
        total = sum(weights)
        if total <= 0:
            return self._rng.choice(eligible)

        cumulative = list(accumulate(weights))
        pointer = self._rng.random() * total
        return eligible[_locate(cumulative, pointer)]

    def select_multiple(self, events: Sequence[EventT], state: SimulationState, count: int) -> list[EventT]:
        if events is None:
            raise ValueError("events is required")
        if not isinstance(count, int) or count < 1:
            raise ValueError("count must be an integer >= 1")

        eligible = [event for event in events if is_eligible(event, state)]
        if not eligible:
            return []
        target = min(count, len(eligible))

        weights = [self._weights.calculate_weight(event, state) for event in eligible]
        total = sum(weights)
        if total <= 0:
            return self._rng.sample(eligible, target)

        cumulative = list(accumulate(weights))
        spacing = total / target
        offset = self._rng.random() * spacing

        chosen: list[int] = []
        seen: set[int] = set()
        for step in range(target):
            pointer = offset + step * spacing
            if pointer >= total:
                pointer -= total
            index = _locate(cumulative, pointer)
            if index in seen:
                continue
            seen.add(index)
            chosen.append(index)

        while len(chosen) < target:
            remaining = [index for index in range(len(eligible)) if index not in seen]
            if not remaining:
                break
            remaining_cumulative = list(accumulate(weights[index] for index in remaining))
            remaining_total = remaining_cumulative[-1]
            if remaining_total <= 0:
                index = self._rng.choice(remaining)
            else:
                index = remaining[_locate(remaining_cumulative, self._rng.random() * remaining_total)]
            seen.add(index)
            chosen.append(index)

        return [eligible[index] for index in chosen]

    def select_generic_event(self, events: Sequence[GenericEvent], state: SimulationState) -> GenericEvent | None:
        return self.select_single(events, state)

    def select_personal_event(self, events: Sequence[PersonalEvent], state: SimulationState) -> PersonalEvent | None:
        return self.select_single(events, state)

    def select_coping_mechanism(
        self, mechanisms: Sequence[CopingMechanism], state: SimulationState
    ) -> CopingMechanism | None:
        return self.select_single(self._trigger_checker.filter_triggered(mechanisms, state), state)

    def weighted_events(self, events: Sequence[LifeEvent], state: SimulationState) -> list[WeightedEvent]:
        eligible = [event for event in events if is_eligible(event, state)]
        return self._weights.calculate_all_weights(eligible, state)

    def select_from_weighted(self, weighted: Sequence[WeightedEvent]) -> LifeEvent | None:
        if not weighted:
            return None
        total = sum(entry.normalized_probability for entry in weighted)
        if total <= 0:
            return None
        cumulative = list(accumulate(entry.normalized_probability for entry in weighted))
        return weighted[_locate(cumulative, self._rng.random() * total)].event
