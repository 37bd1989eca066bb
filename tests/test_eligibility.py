from lifecourse.content.events import GenericEvent
from lifecourse.sim.eligibility import is_eligible
from lifecourse.sim.state import SimulationState


def _state(age: int = 15, history: list[str] | None = None) -> SimulationState:
    return SimulationState(current_age=age, event_history=list(history or []))


def test_plain_event_inside_age_window_is_eligible() -> None:
    event = GenericEvent(event_id="party", name="Party", min_age=12, max_age=20)

    assert is_eligible(event, _state(age=12))
    assert is_eligible(event, _state(age=20))


def test_event_outside_age_window_is_not_eligible() -> None:
    event = GenericEvent(event_id="party", name="Party", min_age=12, max_age=20)

    assert not is_eligible(event, _state(age=11))
    assert not is_eligible(event, _state(age=21))


def test_unique_event_already_in_history_is_not_eligible() -> None:
    unique = GenericEvent(event_id="graduation", name="Graduation", is_unique=True)
    repeatable = GenericEvent(event_id="holiday", name="Holiday")

    assert not is_eligible(unique, _state(history=["graduation"]))
    assert is_eligible(unique, _state(history=["holiday"]))
    assert is_eligible(repeatable, _state(history=["holiday", "holiday"]))


def test_missing_prerequisite_blocks_event() -> None:
    event = GenericEvent(event_id="promotion", name="Promotion", prerequisites=("first_job", "degree"))

    assert not is_eligible(event, _state(history=["first_job"]))
    assert is_eligible(event, _state(history=["degree", "first_job"]))


def test_present_exclusion_blocks_event() -> None:
    event = GenericEvent(event_id="university", name="University", exclusions=("apprenticeship",))

    assert not is_eligible(event, _state(history=["apprenticeship"]))
    assert is_eligible(event, _state(history=["holiday"]))
