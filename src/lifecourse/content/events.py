from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from lifecourse.sim.state import LIFE_PHASES

EVENT_CATALOG_SCHEMA_VERSION = 1
DEFAULT_EVENT_CATALOG_PATH = "content/catalogs/life_events.json"

EVENT_KIND_GENERIC = "generic"
EVENT_KIND_PERSONAL = "personal"
EVENT_KIND_COPING = "coping"

COPING_TYPE_FUNCTIONAL = "functional"
COPING_TYPE_DYSFUNCTIONAL = "dysfunctional"
COPING_TYPE_NEUTRAL = "neutral"
COPING_TYPES = {COPING_TYPE_FUNCTIONAL, COPING_TYPE_DYSFUNCTIONAL, COPING_TYPE_NEUTRAL}

DEFAULT_MAX_AGE = 100


@dataclass(frozen=True)
class EventEffects:
    stress: float = 0.0
    mood: float = 0.0
    social_belonging: float = 0.0
    resilience: float = 0.0
    physical_health: float = 0.0

    @property
    def total_absolute_impact(self) -> float:
        return abs(self.stress) + abs(self.mood) + abs(self.social_belonging) + abs(self.resilience)

    def to_dict(self) -> dict[str, float]:
        return {
            "stress": round(self.stress, 8),
            "mood": round(self.mood, 8),
            "social_belonging": round(self.social_belonging, 8),
            "resilience": round(self.resilience, 8),
            "physical_health": round(self.physical_health, 8),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "EventEffects":
        return cls(
            stress=float(payload.get("stress", 0.0)),
            mood=float(payload.get("mood", 0.0)),
            social_belonging=float(payload.get("social_belonging", 0.0)),
            resilience=float(payload.get("resilience", 0.0)),
            physical_health=float(payload.get("physical_health", 0.0)),
        )


@dataclass(frozen=True)
class InfluenceFactor:
    factor_name: str
    exponent: float


@dataclass(frozen=True)
class CopingTrigger:
    """Disjunctive activation thresholds; ``None`` leaves a threshold unset."""

    stress_threshold: float | None = None
    mood_threshold: float | None = None
    belonging_threshold: float | None = None

    def has_thresholds(self) -> bool:
        return (
            self.stress_threshold is not None
            or self.mood_threshold is not None
            or self.belonging_threshold is not None
        )


@dataclass(frozen=True)
class LifeEvent:
    event_id: str
    name: str
    description: str = ""
    base_probability: float = 0.1
    min_age: int = 0
    max_age: int = DEFAULT_MAX_AGE
    is_unique: bool = False
    is_traumatic: bool = False
    prerequisites: tuple[str, ...] = ()
    exclusions: tuple[str, ...] = ()
    effects: EventEffects = field(default_factory=EventEffects)
    influences: tuple[InfluenceFactor, ...] = ()

    kind = EVENT_KIND_GENERIC


@dataclass(frozen=True)
class GenericEvent(LifeEvent):
    kind = EVENT_KIND_GENERIC


@dataclass(frozen=True)
class PersonalEvent(LifeEvent):
    anxiety_change: int = 0
    social_energy_change: int = 0

    kind = EVENT_KIND_PERSONAL


@dataclass(frozen=True)
class CopingMechanism(LifeEvent):
    coping_type: str = COPING_TYPE_NEUTRAL
    trigger: CopingTrigger = field(default_factory=CopingTrigger)
    is_habit_forming: bool = False

    kind = EVENT_KIND_COPING


@dataclass(frozen=True)
class EventCatalog:
    schema_version: int
    generic_events: tuple[GenericEvent, ...]
    personal_events: tuple[PersonalEvent, ...]
    coping_mechanisms: tuple[CopingMechanism, ...]
    generic_phases: tuple[str, ...] = ()
    personal_phases: tuple[str, ...] = ()

    def generic_for_phase(self, phase: str) -> list[GenericEvent]:
        return [event for event, event_phase in zip(self.generic_events, self.generic_phases) if event_phase == phase]

    def personal_for_phase(self, phase: str) -> list[PersonalEvent]:
        return [
            event for event, event_phase in zip(self.personal_events, self.personal_phases) if event_phase == phase
        ]

    def by_id(self) -> dict[str, LifeEvent]:
        events: list[LifeEvent] = [*self.generic_events, *self.personal_events, *self.coping_mechanisms]
        return {event.event_id: event for event in events}


def load_event_catalog_json(path: str | Path) -> EventCatalog:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return event_catalog_from_payload(payload)


def validate_event_catalog_payload(payload: dict[str, Any]) -> None:
    event_catalog_from_payload(payload)


def event_catalog_from_payload(payload: dict[str, Any]) -> EventCatalog:
    if not isinstance(payload, dict):
        raise ValueError("event catalog payload must be an object")

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("event catalog payload must contain integer field: schema_version")
    if schema_version != EVENT_CATALOG_SCHEMA_VERSION:
        raise ValueError(f"unsupported event catalog schema_version: {schema_version}")

    seen_ids: set[str] = set()
    generic: list[GenericEvent] = []
    generic_phases: list[str] = []
    for index, row in enumerate(_require_list(payload, "generic_events")):
        where = f"generic_events[{index}]"
        common = _common_fields(row, where=where, seen_ids=seen_ids)
        generic.append(GenericEvent(**common))
        generic_phases.append(_phase_field(row, where=where))

    personal: list[PersonalEvent] = []
    personal_phases: list[str] = []
    for index, row in enumerate(_require_list(payload, "personal_events")):
        where = f"personal_events[{index}]"
        common = _common_fields(row, where=where, seen_ids=seen_ids)
        personal.append(
            PersonalEvent(
                **common,
                anxiety_change=_int_field(row, "anxiety_change", where=where, default=0),
                social_energy_change=_int_field(row, "social_energy_change", where=where, default=0),
            )
        )
        personal_phases.append(_phase_field(row, where=where))

    coping: list[CopingMechanism] = []
    for index, row in enumerate(_require_list(payload, "coping_mechanisms")):
        where = f"coping_mechanisms[{index}]"
        common = _common_fields(row, where=where, seen_ids=seen_ids)
        coping_type = row.get("coping_type", COPING_TYPE_NEUTRAL)
        if coping_type not in COPING_TYPES:
            raise ValueError(f"{where}.coping_type must be one of: {', '.join(sorted(COPING_TYPES))}")
        habit_forming = row.get("habit_forming", False)
        if not isinstance(habit_forming, bool):
            raise ValueError(f"{where}.habit_forming must be a boolean")
        coping.append(
            CopingMechanism(
                **common,
                coping_type=coping_type,
                trigger=_trigger_field(row.get("trigger"), where=where),
                is_habit_forming=habit_forming,
            )
        )

    return EventCatalog(
        schema_version=schema_version,
        generic_events=tuple(generic),
        personal_events=tuple(personal),
        coping_mechanisms=tuple(coping),
        generic_phases=tuple(generic_phases),
        personal_phases=tuple(personal_phases),
    )


def _require_list(payload: dict[str, Any], key: str) -> list[Any]:
    rows = payload.get(key, [])
    if not isinstance(rows, list):
        raise ValueError(f"event catalog payload field {key} must be a list")
    return rows


def _phase_field(row: dict[str, Any], *, where: str) -> str:
    phase = row.get("phase")
    if phase not in LIFE_PHASES:
        raise ValueError(f"{where}.phase must be one of: {', '.join(LIFE_PHASES)}")
    return phase


def _int_field(row: dict[str, Any], key: str, *, where: str, default: int) -> int:
    value = row.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{where}.{key} must be an integer")
    return value


def _number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _id_list(row: dict[str, Any], key: str, *, where: str) -> tuple[str, ...]:
    values = row.get(key, [])
    if not isinstance(values, list) or not all(isinstance(value, str) and value for value in values):
        raise ValueError(f"{where}.{key} must be a list of non-empty strings")
    return tuple(values)


def _common_fields(row: Any, *, where: str, seen_ids: set[str]) -> dict[str, Any]:
    if not isinstance(row, dict):
        raise ValueError(f"{where} must be an object")

    event_id = row.get("event_id")
    if not isinstance(event_id, str) or not event_id:
        raise ValueError(f"{where}.event_id must be a non-empty string")
    if event_id in seen_ids:
        raise ValueError(f"duplicate event_id: {event_id}")
    seen_ids.add(event_id)

    name = row.get("name")
    if not isinstance(name, str) or not name:
        raise ValueError(f"{where}.name must be a non-empty string")
    description = row.get("description", "")
    if not isinstance(description, str):
        raise ValueError(f"{where}.description must be a string")

    base_probability = row.get("base_probability")
    if not _number(base_probability) or not 0.0 < base_probability <= 1.0:
        raise ValueError(f"{where}.base_probability must be a number in (0, 1]")

    min_age = _int_field(row, "min_age", where=where, default=0)
    max_age = _int_field(row, "max_age", where=where, default=DEFAULT_MAX_AGE)
    if min_age < 0 or max_age < min_age:
        raise ValueError(f"{where} requires 0 <= min_age <= max_age")

    flags: dict[str, bool] = {}
    for key in ("unique", "traumatic"):
        value = row.get(key, False)
        if not isinstance(value, bool):
            raise ValueError(f"{where}.{key} must be a boolean")
        flags[key] = value

    effects_payload = row.get("effects", {})
    if not isinstance(effects_payload, dict):
        raise ValueError(f"{where}.effects must be an object")
    for key, value in effects_payload.items():
        if key not in {"stress", "mood", "social_belonging", "resilience", "physical_health"}:
            raise ValueError(f"{where}.effects has unknown field: {key}")
        if not _number(value):
            raise ValueError(f"{where}.effects.{key} must be a number")

    influences_payload = row.get("influences", [])
    if not isinstance(influences_payload, list):
        raise ValueError(f"{where}.influences must be a list")
    influences: list[InfluenceFactor] = []
    for influence_index, influence in enumerate(influences_payload):
        if not isinstance(influence, dict):
            raise ValueError(f"{where}.influences[{influence_index}] must be an object")
        factor_name = influence.get("factor")
        if not isinstance(factor_name, str) or not factor_name:
            raise ValueError(f"{where}.influences[{influence_index}].factor must be a non-empty string")
        exponent = influence.get("exponent")
        if not _number(exponent):
            raise ValueError(f"{where}.influences[{influence_index}].exponent must be a number")
        influences.append(InfluenceFactor(factor_name=factor_name, exponent=float(exponent)))

    return {
        "event_id": event_id,
        "name": name,
        "description": description,
        "base_probability": float(base_probability),
        "min_age": min_age,
        "max_age": max_age,
        "is_unique": flags["unique"],
        "is_traumatic": flags["traumatic"],
        "prerequisites": _id_list(row, "prerequisites", where=where),
        "exclusions": _id_list(row, "exclusions", where=where),
        "effects": EventEffects.from_dict(effects_payload),
        "influences": tuple(influences),
    }


def _trigger_field(payload: Any, *, where: str) -> CopingTrigger:
    if payload is None:
        return CopingTrigger()
    if not isinstance(payload, dict):
        raise ValueError(f"{where}.trigger must be an object")
    thresholds: dict[str, float | None] = {}
    for key in ("stress", "mood", "belonging"):
        value = payload.get(key)
        if value is not None and not _number(value):
            raise ValueError(f"{where}.trigger.{key} must be a number or null")
        thresholds[key] = None if value is None else float(value)
    return CopingTrigger(
        stress_threshold=thresholds["stress"],
        mood_threshold=thresholds["mood"],
        belonging_threshold=thresholds["belonging"],
    )
