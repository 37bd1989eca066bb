from __future__ import annotations

from collections.abc import Callable

from lifecourse.sim.state import (
    EDUCATION_TIER_RANGE,
    GENDER_FEMALE,
    GENDER_MALE,
    GENDER_NON_BINARY,
    INCOME_TIER_RANGE,
    JOB_STATUS_TIER_RANGE,
    RELATIONSHIP_QUALITY_TIER_RANGE,
    SOCIAL_ENERGY_TIER_RANGE,
    SimulationState,
)

NORMALIZED_MIN = 0.01
NORMALIZED_MAX = 0.99
NEUTRAL_VALUE = 0.5


def _tier(value: int, bounds: tuple[int, int]) -> float:
    lower, upper = bounds
    return (value - lower) / (upper - lower)


def _percent(value: float) -> float:
    return value / 100.0


def _intelligence(score: float) -> float:
    # Piecewise linear over 75-140 with the population mean 100 at 0.5.
    if score <= 100:
        return (score - 75) / 25 * 0.5
    return 0.5 + (score - 100) / 40 * 0.5


def _gender_indicator(state: SimulationState, gender: str) -> float:
    if state.gender == gender:
        return 1.0
    if state.gender == GENDER_NON_BINARY:
        return 0.5
    return 0.0


_FACTOR_READERS: dict[str, Callable[[SimulationState], float]] = {
    "IncomeLevel": lambda state: _tier(state.income_level, INCOME_TIER_RANGE),
    "ParentsEducationLevel": lambda state: _tier(state.parents_education_level, EDUCATION_TIER_RANGE),
    "JobStatus": lambda state: _tier(state.job_status, JOB_STATUS_TIER_RANGE),
    "SocialEnergyLevel": lambda state: _tier(state.social_energy_level, SOCIAL_ENERGY_TIER_RANGE),
    "ParentsRelationshipQuality": lambda state: _tier(
        state.parents_relationship_quality, RELATIONSHIP_QUALITY_TIER_RANGE
    ),
    # Single-axis reading: female 1.0, male 0.0, non-binary 0.5.
    "Gender": lambda state: _gender_indicator(state, GENDER_FEMALE),
    "GenderMale": lambda state: _gender_indicator(state, GENDER_MALE),
    "GenderFemale": lambda state: _gender_indicator(state, GENDER_FEMALE),
    "GenderNonBinary": lambda state: 1.0 if state.gender == GENDER_NON_BINARY else 0.0,
    "AnxietyLevel": lambda state: _percent(state.anxiety_level),
    "FamilyCloseness": lambda state: _percent(state.family_closeness),
    "SocialEnvironmentLevel": lambda state: _percent(state.social_environment_level),
    "IntelligenceScore": lambda state: _intelligence(state.intelligence_score),
    "HasAdhd": lambda state: 1.0 if state.has_adhd else 0.0,
    "HasAutism": lambda state: 1.0 if state.has_autism else 0.0,
    "ParentsWithAddiction": lambda state: 1.0 if state.parents_with_addiction else 0.0,
    "CurrentStress": lambda state: _percent(state.current_stress),
    "CurrentMood": lambda state: (state.current_mood + 100.0) / 200.0,
    "SocialBelonging": lambda state: _percent(state.social_belonging),
    "ResilienceScore": lambda state: _percent(state.resilience_score),
    "PhysicalHealth": lambda state: _percent(state.physical_health),
}

KNOWN_FACTORS = frozenset(_FACTOR_READERS)


def normalize_factor(state: SimulationState, factor_name: str) -> float:
    """Map a named state attribute onto [0.01, 0.99]; unknown names read as 0.5."""
    reader = _FACTOR_READERS.get(factor_name)
    if reader is None:
        return NEUTRAL_VALUE
    return max(NORMALIZED_MIN, min(NORMALIZED_MAX, reader(state)))
