from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from lifecourse.content.events import CopingMechanism, LifeEvent
from lifecourse.sim.influence import calculate_influence
from lifecourse.sim.normalizer import normalize_factor
from lifecourse.sim.state import SimulationState

WEIGHT_MIN = 0.001
WEIGHT_MAX = 0.99
HABIT_BOOST_SCALE = 0.5

Normalizer = Callable[[SimulationState, str], float]
InfluenceFunction = Callable[[float, float], float]


@dataclass(frozen=True)
class WeightedEvent:
    event: LifeEvent
    weight: float
    normalized_probability: float = 0.0


class EventWeightCalculator:
    """Combines an event's base probability with its state-dependent influences."""

    def __init__(
        self,
        normalize: Normalizer = normalize_factor,
        influence: InfluenceFunction = calculate_influence,
    ) -> None:
        self._normalize = normalize
        self._influence = influence

    def calculate_weight(self, event: LifeEvent, state: SimulationState) -> float:
        if event is None:
            raise ValueError("event is required")
        if state is None:
            raise ValueError("state is required")

        weight = event.base_probability
        for factor in event.influences:
            normalized = self._normalize(state, factor.factor_name)
            weight *= self._influence(normalized, factor.exponent)

        if isinstance(event, CopingMechanism) and event.is_habit_forming:
            preference = max(0.0, min(1.0, state.coping_preference(event.event_id)))
            weight *= 1.0 + preference * HABIT_BOOST_SCALE

        return max(WEIGHT_MIN, min(WEIGHT_MAX, weight))

    def calculate_all_weights(self, events: Sequence[LifeEvent], state: SimulationState) -> list[WeightedEvent]:
        if events is None:
            raise ValueError("events is required")
        weights = [self.calculate_weight(event, state) for event in events]
        total = sum(weights)
        return [
            WeightedEvent(
                event=event,
                weight=weight,
                normalized_probability=weight / total if total > 0 else 0.0,
            )
            for event, weight in zip(events, weights)
        ]
