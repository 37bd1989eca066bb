from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lifecourse.sim.state import GENDERS

ILLNESS_CATALOG_SCHEMA_VERSION = 1
DEFAULT_ILLNESS_CATALOG_PATH = "content/catalogs/illnesses.json"

DEFAULT_VOLATILITY = 0.3


@dataclass(frozen=True)
class DiseaseConfig:
    """Immutable illness definition.

    Debuff multipliers are applied to event impacts while the illness is active:
    stress multipliers are >= 1.0 (amplify), mood and social multipliers are
    <= 1.0 (dampen). Optional ranges replace the fixed value with an interval the
    noise fluctuation moves through.
    """

    illness_key: str
    display_name: str
    stress_debuff: float
    mood_debuff: float
    social_debuff: float
    trigger_chance: int
    healing_time: int
    min_age: int = 0
    volatility: float = DEFAULT_VOLATILITY
    stress_range: tuple[float, float] | None = None
    mood_range: tuple[float, float] | None = None
    social_range: tuple[float, float] | None = None
    gender_modifiers: tuple[tuple[str, float], ...] = ()
    onset_message: str = ""
    healing_message: str = ""

    def gender_modifier(self, gender: str) -> float:
        for modifier_gender, value in self.gender_modifiers:
            if modifier_gender == gender:
                return value
        return 1.0

    def onset_text(self) -> str:
        return self.onset_message or f"develops {self.display_name}"

    def healing_text(self) -> str:
        return self.healing_message or f"has overcome {self.display_name}"


@dataclass(frozen=True)
class IllnessCatalog:
    schema_version: int
    illnesses: tuple[DiseaseConfig, ...]

    def by_key(self) -> dict[str, DiseaseConfig]:
        return {illness.illness_key: illness for illness in self.illnesses}


def load_illness_catalog_json(path: str | Path) -> IllnessCatalog:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return illness_catalog_from_payload(payload)


def validate_illness_catalog_payload(payload: dict[str, Any]) -> None:
    illness_catalog_from_payload(payload)


def illness_catalog_from_payload(payload: dict[str, Any]) -> IllnessCatalog:
    if not isinstance(payload, dict):
        raise ValueError("illness catalog payload must be an object")

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("illness catalog payload must contain integer field: schema_version")
    if schema_version != ILLNESS_CATALOG_SCHEMA_VERSION:
        raise ValueError(f"unsupported illness catalog schema_version: {schema_version}")

    rows = payload.get("illnesses")
    if not isinstance(rows, list):
        raise ValueError("illness catalog payload must contain list field: illnesses")

    seen_keys: set[str] = set()
    illnesses: list[DiseaseConfig] = []
    for index, row in enumerate(rows):
        where = f"illnesses[{index}]"
        if not isinstance(row, dict):
            raise ValueError(f"{where} must be an object")

        illness_key = row.get("illness_key")
        if not isinstance(illness_key, str) or not illness_key:
            raise ValueError(f"{where}.illness_key must be a non-empty string")
        if illness_key in seen_keys:
            raise ValueError(f"duplicate illness_key: {illness_key}")
        seen_keys.add(illness_key)

        display_name = row.get("display_name")
        if not isinstance(display_name, str) or not display_name:
            raise ValueError(f"{where}.display_name must be a non-empty string")

        stress_debuff = _positive_number(row, "stress_debuff", where=where)
        if stress_debuff < 1.0:
            raise ValueError(f"{where}.stress_debuff must be >= 1.0")
        mood_debuff = _positive_number(row, "mood_debuff", where=where)
        social_debuff = _positive_number(row, "social_debuff", where=where)
        for key, value in (("mood_debuff", mood_debuff), ("social_debuff", social_debuff)):
            if value > 1.0:
                raise ValueError(f"{where}.{key} must be <= 1.0")

        trigger_chance = row.get("trigger_chance")
        if not isinstance(trigger_chance, int) or isinstance(trigger_chance, bool) or trigger_chance < 1:
            raise ValueError(f"{where}.trigger_chance must be integer >= 1")
        healing_time = row.get("healing_time")
        if not isinstance(healing_time, int) or isinstance(healing_time, bool) or healing_time < 1:
            raise ValueError(f"{where}.healing_time must be integer >= 1")
        min_age = row.get("min_age", 0)
        if not isinstance(min_age, int) or isinstance(min_age, bool) or min_age < 0:
            raise ValueError(f"{where}.min_age must be integer >= 0")

        volatility = row.get("volatility", DEFAULT_VOLATILITY)
        if not isinstance(volatility, (int, float)) or isinstance(volatility, bool) or not 0.0 <= volatility <= 1.0:
            raise ValueError(f"{where}.volatility must be a number in [0, 1]")

        gender_payload = row.get("gender_modifiers", {})
        if not isinstance(gender_payload, dict):
            raise ValueError(f"{where}.gender_modifiers must be an object")
        gender_modifiers: list[tuple[str, float]] = []
        for gender, modifier in sorted(gender_payload.items()):
            if gender not in GENDERS:
                raise ValueError(f"{where}.gender_modifiers has unknown gender: {gender}")
            if not isinstance(modifier, (int, float)) or isinstance(modifier, bool) or modifier < 0:
                raise ValueError(f"{where}.gender_modifiers.{gender} must be a number >= 0")
            gender_modifiers.append((gender, float(modifier)))

        messages: dict[str, str] = {}
        for key in ("onset_message", "healing_message"):
            value = row.get(key, "")
            if not isinstance(value, str):
                raise ValueError(f"{where}.{key} must be a string")
            messages[key] = value

        illnesses.append(
            DiseaseConfig(
                illness_key=illness_key,
                display_name=display_name,
                stress_debuff=stress_debuff,
                mood_debuff=mood_debuff,
                social_debuff=social_debuff,
                trigger_chance=trigger_chance,
                healing_time=healing_time,
                min_age=min_age,
                volatility=float(volatility),
                stress_range=_range_field(row, "stress_range", where=where, amplifies=True),
                mood_range=_range_field(row, "mood_range", where=where, amplifies=False),
                social_range=_range_field(row, "social_range", where=where, amplifies=False),
                gender_modifiers=tuple(gender_modifiers),
                onset_message=messages["onset_message"],
                healing_message=messages["healing_message"],
            )
        )

    return IllnessCatalog(schema_version=schema_version, illnesses=tuple(illnesses))


def _positive_number(row: dict[str, Any], key: str, *, where: str) -> float:
    value = row.get(key)
    if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
        raise ValueError(f"{where}.{key} must be a number > 0")
    return float(value)


def _range_field(row: dict[str, Any], key: str, *, where: str, amplifies: bool) -> tuple[float, float] | None:
    value = row.get(key)
    if value is None:
        return None
    if (
        not isinstance(value, list)
        or len(value) != 2
        or not all(isinstance(bound, (int, float)) and not isinstance(bound, bool) for bound in value)
    ):
        raise ValueError(f"{where}.{key} must be a [min, max] pair of numbers")
    lower, upper = float(value[0]), float(value[1])
    if lower > upper:
        raise ValueError(f"{where}.{key} min must be <= max")
    if amplifies and lower < 1.0:
        raise ValueError(f"{where}.{key} bounds must be >= 1.0")
    if not amplifies and (lower <= 0.0 or upper > 1.0):
        raise ValueError(f"{where}.{key} bounds must be in (0, 1.0]")
    return (lower, upper)
