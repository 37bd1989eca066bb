from lifecourse.content.events import (
    COPING_TYPE_DYSFUNCTIONAL,
    COPING_TYPE_FUNCTIONAL,
    DEFAULT_EVENT_CATALOG_PATH,
    EventEffects,
    load_event_catalog_json,
)
from lifecourse.content.illnesses import DEFAULT_ILLNESS_CATALOG_PATH, load_illness_catalog_json
from lifecourse.content.io import DEFAULT_PERSONA_PATH, load_persona_json
from lifecourse.sim.core import Simulation
from lifecourse.sim.history import (
    CopingUsageRecord,
    EventRecord,
    HistoryRecorder,
    IllnessRecord,
    SimulationHistory,
    TurnSnapshot,
)
from lifecourse.sim.illness import CHANGE_TYPE_HEALED, CHANGE_TYPE_ONSET, IllnessNotification
from lifecourse.sim.state import SimulationState


def _build_sim(seed: int) -> Simulation:
    return Simulation(
        state=load_persona_json(DEFAULT_PERSONA_PATH),
        event_catalog=load_event_catalog_json(DEFAULT_EVENT_CATALOG_PATH),
        illness_catalog=load_illness_catalog_json(DEFAULT_ILLNESS_CATALOG_PATH),
        seed=seed,
    )


def _event_record(event_id: str, age: int, stress: float, *, traumatic: bool = False) -> EventRecord:
    return EventRecord(
        event_id=event_id,
        name=event_id,
        description="",
        age=age,
        is_traumatic=traumatic,
        category="generic",
        effects=EventEffects(stress=stress),
    )


def _history(
    events: tuple[EventRecord, ...] = (),
    illnesses: tuple[IllnessRecord, ...] = (),
    coping_usages: tuple[CopingUsageRecord, ...] = (),
    final_age: int = 30,
) -> SimulationHistory:
    final = TurnSnapshot.from_state(SimulationState(current_age=final_age))
    return SimulationHistory(
        master_seed=1,
        snapshots=(final,),
        events=events,
        illnesses=illnesses,
        coping_usages=coping_usages,
        final_state=final,
    )


def test_recorder_snapshots_every_turn_and_every_event() -> None:
    sim = _build_sim(seed=12)
    recorder = HistoryRecorder()
    sim.register_rule_module(recorder)

    results = sim.run(15)
    history = recorder.compile(sim)

    assert len(history.snapshots) == 16
    assert [snapshot.age for snapshot in history.snapshots] == list(range(16))
    assert len(history.events) == sum(len(applied) for applied, _ in results)
    assert history.final_state.age == 15
    assert history.master_seed == 12


def test_top_impactful_events_excludes_traumatic_and_sorts_by_impact() -> None:
    history = _history(
        events=(
            _event_record("small", 3, 2.0),
            _event_record("large", 4, 30.0),
            _event_record("trauma", 5, 90.0, traumatic=True),
            _event_record("medium", 6, 10.0),
        )
    )

    assert [record.event_id for record in history.top_impactful_events()] == ["large", "medium", "small"]
    assert [record.event_id for record in history.top_impactful_events(limit=1)] == ["large"]
    assert [record.event_id for record in history.traumatic_events()] == ["trauma"]


def test_illness_timeline_tracks_onset_and_healing_ages() -> None:
    sim = _build_sim(seed=13)
    recorder = HistoryRecorder()
    sim.register_rule_module(recorder)

    sim.state.current_age = 16
    recorder.on_illness_changed(
        sim, IllnessNotification("SocialPhobia", "Social Phobia", CHANGE_TYPE_ONSET, "develops Social Phobia")
    )
    sim.state.current_age = 18
    recorder.on_illness_changed(
        sim, IllnessNotification("MildDepression", "Mild Depression", CHANGE_TYPE_ONSET, "")
    )
    sim.state.current_age = 22
    recorder.on_illness_changed(
        sim, IllnessNotification("SocialPhobia", "Social Phobia", CHANGE_TYPE_HEALED, "")
    )
    sim.state.current_age = 25
    history = recorder.compile(sim)

    timeline = history.illness_timeline()
    assert [(record.illness_key, record.onset_age, record.healed_age) for record in timeline] == [
        ("SocialPhobia", 16, 22),
        ("MildDepression", 18, None),
    ]
    assert timeline[0].duration(25) == 6
    assert timeline[1].is_ongoing
    assert timeline[1].duration(25) == 7

    summary_timeline = history.summary()["illness_timeline"]
    assert [entry["duration"] for entry in summary_timeline] == [6, 7]


def test_coping_usage_counts_by_type_and_name() -> None:
    usages = (
        CopingUsageRecord("coping_sports", "Sports", COPING_TYPE_FUNCTIONAL, 15),
        CopingUsageRecord("coping_sports", "Sports", COPING_TYPE_FUNCTIONAL, 16),
        CopingUsageRecord("coping_substance_use", "Substance use", COPING_TYPE_DYSFUNCTIONAL, 17),
        CopingUsageRecord("coping_social_media", "Endless scrolling", "neutral", 18),
    )
    history = _history(coping_usages=usages)

    assert history.functional_coping_count() == 2
    assert history.dysfunctional_coping_count() == 1
    assert history.coping_usage_by_name() == [
        ("Sports", 2),
        ("Endless scrolling", 1),
        ("Substance use", 1),
    ]


def test_history_to_dict_carries_summary() -> None:
    sim = _build_sim(seed=14)
    recorder = HistoryRecorder()
    sim.register_rule_module(recorder)
    sim.run(20)

    payload = recorder.compile(sim).to_dict()

    assert set(payload) == {"master_seed", "snapshots", "events", "illnesses", "coping_usages", "summary"}
    assert payload["summary"]["final_state"]["age"] == 20
    assert len(payload["summary"]["top_impactful_events"]) <= 10
