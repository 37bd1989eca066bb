from __future__ import annotations

from collections.abc import Sequence

from lifecourse.content.events import CopingMechanism
from lifecourse.sim.eligibility import is_eligible
from lifecourse.sim.state import SimulationState

MIN_COPING_AGE = 14


class CopingTriggerChecker:
    """Decides which coping mechanisms the current emotional state activates."""

    def is_triggered(self, coping: CopingMechanism, state: SimulationState) -> bool:
        trigger = coping.trigger
        if not trigger.has_thresholds():
            return True
        if trigger.stress_threshold is not None and state.current_stress >= trigger.stress_threshold:
            return True
        if trigger.mood_threshold is not None and state.current_mood <= trigger.mood_threshold:
            return True
        return trigger.belonging_threshold is not None and state.social_belonging <= trigger.belonging_threshold

    def filter_triggered(
        self, mechanisms: Sequence[CopingMechanism], state: SimulationState
    ) -> list[CopingMechanism]:
        if state.current_age < MIN_COPING_AGE:
            return []
        return [
            mechanism
            for mechanism in mechanisms
            if is_eligible(mechanism, state) and self.is_triggered(mechanism, state)
        ]
