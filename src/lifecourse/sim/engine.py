from __future__ import annotations

from lifecourse.content.events import CopingMechanism, EventEffects, LifeEvent, PersonalEvent
from lifecourse.sim.state import (
    ANXIETY_RANGE,
    MOOD_RANGE,
    PHYSICAL_HEALTH_RANGE,
    RESILIENCE_RANGE,
    SOCIAL_BELONGING_RANGE,
    SOCIAL_ENERGY_TIER_RANGE,
    STRESS_RANGE,
    SimulationState,
    clamp,
)

COPING_PREFERENCE_STEP = 0.1
COPING_PREFERENCE_MAX = 1.0
SOCIAL_ENERGY_POINTS_PER_TIER = 10


class EventEngine:
    """Applies already-debuffed event impacts to a state with domain clamping."""

    def apply_effects(self, state: SimulationState, effects: EventEffects) -> None:
        if state is None:
            raise ValueError("state is required")
        if effects is None:
            raise ValueError("effects is required")
        state.current_stress = clamp(state.current_stress + effects.stress, STRESS_RANGE)
        state.current_mood = clamp(state.current_mood + effects.mood, MOOD_RANGE)
        state.social_belonging = clamp(state.social_belonging + effects.social_belonging, SOCIAL_BELONGING_RANGE)
        state.resilience_score = clamp(state.resilience_score + effects.resilience, RESILIENCE_RANGE)
        state.physical_health = clamp(state.physical_health + effects.physical_health, PHYSICAL_HEALTH_RANGE)

    def apply_personal_effects(self, state: SimulationState, event: PersonalEvent) -> None:
        if event.anxiety_change:
            state.anxiety_level = int(clamp(state.anxiety_level + event.anxiety_change, ANXIETY_RANGE))
        tier_shift = int(event.social_energy_change / SOCIAL_ENERGY_POINTS_PER_TIER)
        if tier_shift:
            state.social_energy_level = int(clamp(state.social_energy_level + tier_shift, SOCIAL_ENERGY_TIER_RANGE))

    def update_coping_preference(self, state: SimulationState, mechanism: CopingMechanism) -> None:
        if not mechanism.is_habit_forming:
            return
        current = state.coping_preference(mechanism.event_id)
        state.coping_preferences[mechanism.event_id] = min(current + COPING_PREFERENCE_STEP, COPING_PREFERENCE_MAX)

    def record_occurrence(self, state: SimulationState, event: LifeEvent) -> None:
        state.event_history.append(event.event_id)
        if event.is_traumatic:
            state.traumatic_event_ages.append(state.current_age)

    def apply_event(self, state: SimulationState, event: LifeEvent, effects: EventEffects) -> None:
        """Apply ``effects`` (already debuffed) plus every variant-specific consequence of ``event``."""
        self.apply_effects(state, effects)
        if isinstance(event, PersonalEvent):
            self.apply_personal_effects(state, event)
        elif isinstance(event, CopingMechanism):
            self.update_coping_preference(state, event)
        self.record_occurrence(state, event)
