import pytest

from lifecourse.content.events import CopingMechanism, EventEffects, GenericEvent, PersonalEvent
from lifecourse.sim.engine import EventEngine
from lifecourse.sim.state import SimulationState


def test_apply_effects_clamps_each_metric_to_its_domain() -> None:
    state = SimulationState(
        current_stress=95.0,
        current_mood=-95.0,
        social_belonging=98.0,
        resilience_score=95.0,
        physical_health=5.0,
    )

    EventEngine().apply_effects(
        state,
        EventEffects(stress=10.0, mood=-10.0, social_belonging=5.0, resilience=10.0, physical_health=-10.0),
    )

    assert state.current_stress == 100.0
    assert state.current_mood == -100.0
    assert state.social_belonging == 100.0
    assert state.resilience_score == 100.0
    assert state.physical_health == 0.0


def test_apply_effects_adds_impacts_inside_bounds() -> None:
    state = SimulationState(current_stress=20.0, current_mood=10.0)

    EventEngine().apply_effects(state, EventEffects(stress=5.5, mood=-30.0))

    assert state.current_stress == pytest.approx(25.5)
    assert state.current_mood == pytest.approx(-20.0)


def test_personal_effects_shift_anxiety_and_social_energy_tier() -> None:
    engine = EventEngine()
    state = SimulationState(anxiety_level=95, social_energy_level=2)

    engine.apply_personal_effects(state, PersonalEvent(event_id="p", name="P", anxiety_change=10, social_energy_change=20))
    assert state.anxiety_level == 100
    assert state.social_energy_level == 4

    engine.apply_personal_effects(state, PersonalEvent(event_id="p", name="P", social_energy_change=5))
    assert state.social_energy_level == 4

    engine.apply_personal_effects(
        state, PersonalEvent(event_id="p", name="P", anxiety_change=-120, social_energy_change=-25)
    )
    assert state.anxiety_level == 0
    assert state.social_energy_level == 2


def test_habit_forming_coping_preference_grows_and_caps() -> None:
    engine = EventEngine()
    state = SimulationState()
    habit = CopingMechanism(event_id="coping_substance_use", name="Substance use", is_habit_forming=True)
    plain = CopingMechanism(event_id="coping_walk", name="Walk")

    engine.update_coping_preference(state, habit)
    assert state.coping_preferences["coping_substance_use"] == pytest.approx(0.1)

    for _ in range(15):
        engine.update_coping_preference(state, habit)
    engine.update_coping_preference(state, plain)

    assert state.coping_preferences["coping_substance_use"] == 1.0
    assert "coping_walk" not in state.coping_preferences


def test_apply_event_records_history_and_trauma_age() -> None:
    engine = EventEngine()
    state = SimulationState(current_age=9)
    event = GenericEvent(event_id="bullied", name="Bullied", is_traumatic=True, effects=EventEffects(stress=10.0))

    engine.apply_event(state, event, event.effects)

    assert state.event_history == ["bullied"]
    assert state.traumatic_event_ages == [9]
    assert state.current_stress == pytest.approx(30.0)


def test_apply_event_dispatches_variant_consequences() -> None:
    engine = EventEngine()
    state = SimulationState(current_age=20, anxiety_level=30)
    personal = PersonalEvent(event_id="p", name="P", anxiety_change=5)
    coping = CopingMechanism(event_id="coping_sports", name="Sports", is_habit_forming=True)

    engine.apply_event(state, personal, personal.effects)
    engine.apply_event(state, coping, coping.effects)

    assert state.anxiety_level == 35
    assert state.coping_preferences == {"coping_sports": pytest.approx(0.1)}
    assert state.event_history == ["p", "coping_sports"]
    assert state.traumatic_event_ages == []


def test_missing_effects_are_rejected() -> None:
    with pytest.raises(ValueError, match="effects is required"):
        EventEngine().apply_effects(SimulationState(), None)
