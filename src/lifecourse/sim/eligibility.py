from __future__ import annotations

from lifecourse.content.events import LifeEvent
from lifecourse.sim.state import SimulationState


def is_eligible(event: LifeEvent, state: SimulationState) -> bool:
    if not event.min_age <= state.current_age <= event.max_age:
        return False
    history = state.event_history
    if event.is_unique and event.event_id in history:
        return False
    if any(prerequisite not in history for prerequisite in event.prerequisites):
        return False
    return not any(exclusion in history for exclusion in event.exclusions)
