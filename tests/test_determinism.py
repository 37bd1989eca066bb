from lifecourse.content.events import DEFAULT_EVENT_CATALOG_PATH, load_event_catalog_json
from lifecourse.content.illnesses import DEFAULT_ILLNESS_CATALOG_PATH, load_illness_catalog_json
from lifecourse.content.io import DEFAULT_PERSONA_PATH, load_persona_json
from lifecourse.sim.core import Simulation, StepSettings
from lifecourse.sim.hash import simulation_hash, state_hash


def _build_sim(seed: int, settings: StepSettings | None = None) -> Simulation:
    return Simulation(
        state=load_persona_json(DEFAULT_PERSONA_PATH),
        event_catalog=load_event_catalog_json(DEFAULT_EVENT_CATALOG_PATH),
        illness_catalog=load_illness_catalog_json(DEFAULT_ILLNESS_CATALOG_PATH),
        seed=seed,
        settings=settings,
    )


def _event_sequence(sim: Simulation, years: int) -> list[list[str]]:
    return [[applied.event.event_id for applied in step[0]] for step in sim.run(years)]


def test_same_seed_produces_identical_run_and_hash() -> None:
    sim_a = _build_sim(seed=31415)
    sim_b = _build_sim(seed=31415)

    assert _event_sequence(sim_a, 40) == _event_sequence(sim_b, 40)
    assert state_hash(sim_a.state) == state_hash(sim_b.state)
    assert simulation_hash(sim_a) == simulation_hash(sim_b)


def test_multi_event_mode_is_deterministic() -> None:
    settings = StepSettings(generic_events_per_turn=2, personal_events_per_turn=2)
    sim_a = _build_sim(seed=7, settings=settings)
    sim_b = _build_sim(seed=7, settings=StepSettings.from_dict(settings.to_dict()))

    assert _event_sequence(sim_a, 30) == _event_sequence(sim_b, 30)
    assert simulation_hash(sim_a) == simulation_hash(sim_b)


def test_different_seeds_diverge() -> None:
    sim_a = _build_sim(seed=1)
    sim_b = _build_sim(seed=2)

    sim_a.run(40)
    sim_b.run(40)

    assert simulation_hash(sim_a) != simulation_hash(sim_b)
