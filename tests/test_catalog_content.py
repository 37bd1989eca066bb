import copy
from typing import Any

import pytest

from lifecourse.content.events import (
    DEFAULT_EVENT_CATALOG_PATH,
    CopingMechanism,
    GenericEvent,
    PersonalEvent,
    load_event_catalog_json,
    validate_event_catalog_payload,
)
from lifecourse.content.illnesses import (
    DEFAULT_ILLNESS_CATALOG_PATH,
    load_illness_catalog_json,
    validate_illness_catalog_payload,
)
from lifecourse.sim.illness import EMOTIONAL_EATING_COPING_ID, SUBSTANCE_USE_COPING_ID, TRIGGER_PREDICATES
from lifecourse.sim.state import LIFE_PHASES


def _event_payload() -> dict[str, Any]:
    return {
        "schema_version": 1,
        "generic_events": [
            {
                "event_id": "first_day",
                "phase": "school_beginning",
                "name": "First day",
                "base_probability": 0.5,
                "effects": {"stress": 3},
                "influences": [{"factor": "AnxietyLevel", "exponent": 0.5}],
            }
        ],
        "personal_events": [],
        "coping_mechanisms": [
            {
                "event_id": "coping_sports",
                "name": "Sports",
                "base_probability": 0.3,
                "coping_type": "functional",
                "habit_forming": True,
                "trigger": {"stress": 40},
            }
        ],
    }


def _illness_payload() -> dict[str, Any]:
    return {
        "schema_version": 1,
        "illnesses": [
            {
                "illness_key": "MildDepression",
                "display_name": "Depressive Episode",
                "stress_debuff": 1.05,
                "mood_debuff": 0.92,
                "social_debuff": 0.95,
                "trigger_chance": 6,
                "healing_time": 2,
            }
        ],
    }


def test_default_event_catalog_loads_every_phase() -> None:
    catalog = load_event_catalog_json(DEFAULT_EVENT_CATALOG_PATH)

    for phase in LIFE_PHASES:
        assert catalog.generic_for_phase(phase)
        assert catalog.personal_for_phase(phase)
    assert all(isinstance(event, GenericEvent) for event in catalog.generic_events)
    assert all(isinstance(event, PersonalEvent) for event in catalog.personal_events)
    assert all(isinstance(event, CopingMechanism) for event in catalog.coping_mechanisms)

    coping_ids = {mechanism.event_id for mechanism in catalog.coping_mechanisms}
    assert {SUBSTANCE_USE_COPING_ID, EMOTIONAL_EATING_COPING_ID} <= coping_ids
    assert len(catalog.by_id()) == (
        len(catalog.generic_events) + len(catalog.personal_events) + len(catalog.coping_mechanisms)
    )


def test_event_catalog_parses_variant_fields() -> None:
    catalog = load_event_catalog_json(DEFAULT_EVENT_CATALOG_PATH)
    events = catalog.by_id()

    substance = events[SUBSTANCE_USE_COPING_ID]
    assert substance.kind == "coping"
    assert substance.coping_type == "dysfunctional"
    assert substance.is_habit_forming
    assert substance.trigger.stress_threshold == 60.0
    assert substance.trigger.belonging_threshold is None

    university = events["emerging_university"]
    assert university.kind == "generic"
    assert university.exclusions == ("emerging_apprenticeship",)

    shy = events["childhood_shy_phase"]
    assert shy.kind == "personal"
    assert shy.social_energy_change == -10


def test_event_catalog_validation_rejects_bad_rows() -> None:
    validate_event_catalog_payload(_event_payload())

    broken = _event_payload()
    broken["generic_events"][0]["base_probability"] = 0
    with pytest.raises(ValueError, match=r"generic_events\[0\].base_probability"):
        validate_event_catalog_payload(broken)

    broken = _event_payload()
    broken["generic_events"][0]["phase"] = "retirement"
    with pytest.raises(ValueError, match="phase must be one of"):
        validate_event_catalog_payload(broken)

    broken = _event_payload()
    broken["coping_mechanisms"][0]["event_id"] = "first_day"
    with pytest.raises(ValueError, match="duplicate event_id: first_day"):
        validate_event_catalog_payload(broken)

    broken = _event_payload()
    broken["coping_mechanisms"][0]["coping_type"] = "heroic"
    with pytest.raises(ValueError, match="coping_type must be one of"):
        validate_event_catalog_payload(broken)

    broken = _event_payload()
    broken["generic_events"][0]["effects"]["anger"] = 3
    with pytest.raises(ValueError, match="effects has unknown field: anger"):
        validate_event_catalog_payload(broken)

    broken = _event_payload()
    broken["schema_version"] = 2
    with pytest.raises(ValueError, match="unsupported event catalog schema_version: 2"):
        validate_event_catalog_payload(broken)


def test_default_illness_catalog_matches_trigger_predicates() -> None:
    catalog = load_illness_catalog_json(DEFAULT_ILLNESS_CATALOG_PATH)
    by_key = catalog.by_key()

    assert set(by_key) == set(TRIGGER_PREDICATES)
    assert len(catalog.illnesses) == 14
    assert by_key["PTSD"].display_name == "Post-Traumatic Stress Disorder"
    assert by_key["PTSD"].healing_time == 10
    assert by_key["AnorexiaNervosa"].gender_modifier("female") == 2.0
    assert by_key["AnorexiaNervosa"].gender_modifier("non_binary") == 1.0
    assert by_key["SocialPhobia"].social_range == (0.65, 0.85)
    assert by_key["MildDepression"].onset_text() == "enters a depressive episode"
    assert by_key["OCD"].healing_text() == "has overcome Obsessive-Compulsive Disorder"


def test_illness_catalog_validation_rejects_bad_rows() -> None:
    validate_illness_catalog_payload(_illness_payload())

    cases = [
        ("trigger_chance", 0, "trigger_chance must be integer >= 1"),
        ("healing_time", 0, "healing_time must be integer >= 1"),
        ("stress_debuff", 0.9, "stress_debuff must be >= 1.0"),
        ("mood_debuff", 1.2, "mood_debuff must be <= 1.0"),
        ("volatility", 1.5, "volatility must be a number in"),
        ("mood_range", [0.9, 0.7], "mood_range min must be <= max"),
        ("stress_range", [-1.0, 0.2], "stress_range bounds must be >= 1.0"),
        ("stress_range", [0.8, 1.2], "stress_range bounds must be >= 1.0"),
        ("mood_range", [0.9, 3.0], "mood_range bounds must be in"),
        ("social_range", [0.0, 0.5], "social_range bounds must be in"),
        ("gender_modifiers", {"robot": 1.0}, "unknown gender: robot"),
    ]
    for key, value, message in cases:
        broken = copy.deepcopy(_illness_payload())
        broken["illnesses"][0][key] = value
        with pytest.raises(ValueError, match=message):
            validate_illness_catalog_payload(broken)

    duplicated = _illness_payload()
    duplicated["illnesses"].append(copy.deepcopy(duplicated["illnesses"][0]))
    with pytest.raises(ValueError, match="duplicate illness_key: MildDepression"):
        validate_illness_catalog_payload(duplicated)
