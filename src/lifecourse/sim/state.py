from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lifecourse.content.illnesses import DiseaseConfig

LIFE_PHASE_CHILDHOOD = "childhood"
LIFE_PHASE_SCHOOL_BEGINNING = "school_beginning"
LIFE_PHASE_ADOLESCENCE = "adolescence"
LIFE_PHASE_EMERGING_ADULTHOOD = "emerging_adulthood"
LIFE_PHASE_ADULTHOOD = "adulthood"
LIFE_PHASES = (
    LIFE_PHASE_CHILDHOOD,
    LIFE_PHASE_SCHOOL_BEGINNING,
    LIFE_PHASE_ADOLESCENCE,
    LIFE_PHASE_EMERGING_ADULTHOOD,
    LIFE_PHASE_ADULTHOOD,
)
# Upper age bound (exclusive) of every phase but the last.
LIFE_PHASE_AGE_LIMITS = (6, 12, 18, 24)

GENDER_MALE = "male"
GENDER_FEMALE = "female"
GENDER_NON_BINARY = "non_binary"
GENDERS = {GENDER_MALE, GENDER_FEMALE, GENDER_NON_BINARY}

SEVERITY_MILD = "mild"
SEVERITY_MODERATE = "moderate"
SEVERITY_SEVERE = "severe"
SEVERITIES = (SEVERITY_MILD, SEVERITY_MODERATE, SEVERITY_SEVERE)

# Inclusive ordinal tier ranges for background traits.
INCOME_TIER_RANGE = (0, 6)
EDUCATION_TIER_RANGE = (0, 6)
JOB_STATUS_TIER_RANGE = (0, 6)
RELATIONSHIP_QUALITY_TIER_RANGE = (0, 2)
SOCIAL_ENERGY_TIER_RANGE = (0, 4)
INTELLIGENCE_RANGE = (75, 140)
# Accepted persona scores; normalization saturates outside INTELLIGENCE_RANGE.
INTELLIGENCE_SCORE_LIMITS = (40, 160)
PERCENT_TRAIT_RANGE = (0, 100)

STRESS_RANGE = (0.0, 100.0)
MOOD_RANGE = (-100.0, 100.0)
SOCIAL_BELONGING_RANGE = (0.0, 100.0)
RESILIENCE_RANGE = (0.0, 100.0)
PHYSICAL_HEALTH_RANGE = (0.0, 100.0)
ANXIETY_RANGE = (0, 100)

DEFAULT_STEPS_SINCE_LAST_TRIGGER = 2


def clamp(value: float, bounds: tuple[float, float]) -> float:
    lower, upper = bounds
    return max(lower, min(upper, value))


def life_phase_for_age(age: int) -> str:
    for phase, limit in zip(LIFE_PHASES, LIFE_PHASE_AGE_LIMITS):
        if age < limit:
            return phase
    return LIFE_PHASE_ADULTHOOD


def life_phase_index(phase: str) -> int:
    if phase not in LIFE_PHASES:
        raise ValueError(f"unknown life phase: {phase}")
    return LIFE_PHASES.index(phase)


def _require_tier(name: str, value: Any, bounds: tuple[int, int]) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not bounds[0] <= value <= bounds[1]:
        raise ValueError(f"{name} must be an integer in [{bounds[0]}, {bounds[1]}]")


def _require_metric(name: str, value: Any, bounds: tuple[float, float]) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not bounds[0] <= value <= bounds[1]:
        raise ValueError(f"{name} must be a number in [{bounds[0]}, {bounds[1]}]")


@dataclass
class IllnessProgressionState:
    """Per-illness bookkeeping created at onset and dropped at healing."""

    illness_key: str
    steps_active: int = 0
    onset_age: int = 0
    severity: str = SEVERITY_MODERATE
    noise_seed: int = 0
    last_fluctuation: float = 0.5

    def __post_init__(self) -> None:
        if not isinstance(self.illness_key, str) or not self.illness_key:
            raise ValueError("illness_key must be a non-empty string")
        if self.severity not in SEVERITIES:
            raise ValueError(f"severity must be one of: {', '.join(SEVERITIES)}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "illness_key": self.illness_key,
            "steps_active": self.steps_active,
            "onset_age": self.onset_age,
            "severity": self.severity,
            "noise_seed": self.noise_seed,
            "last_fluctuation": round(self.last_fluctuation, 8),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "IllnessProgressionState":
        return cls(
            illness_key=str(payload["illness_key"]),
            steps_active=int(payload.get("steps_active", 0)),
            onset_age=int(payload.get("onset_age", 0)),
            severity=str(payload.get("severity", SEVERITY_MODERATE)),
            noise_seed=int(payload.get("noise_seed", 0)),
            last_fluctuation=float(payload.get("last_fluctuation", 0.5)),
        )


@dataclass
class SimulationState:
    # Background traits, fixed for the whole run.
    income_level: int = 3
    parents_education_level: int = 3
    job_status: int = 3
    social_environment_level: int = 50
    family_closeness: int = 50
    parents_relationship_quality: int = 1
    parents_with_addiction: bool = False
    has_adhd: bool = False
    has_autism: bool = False
    intelligence_score: int = 100
    anxiety_level: int = 30
    social_energy_level: int = 2
    gender: str = GENDER_FEMALE

    # Dynamic metrics.
    current_stress: float = 20.0
    current_mood: float = 20.0
    social_belonging: float = 60.0
    resilience_score: float = 50.0
    physical_health: float = 100.0

    current_age: int = 0
    event_history: list[str] = field(default_factory=list)
    active_illnesses: dict[str, DiseaseConfig] = field(default_factory=dict)
    illness_progressions: dict[str, IllnessProgressionState] = field(default_factory=dict)
    coping_preferences: dict[str, float] = field(default_factory=dict)
    traumatic_event_ages: list[int] = field(default_factory=list)
    steps_since_last_trigger: int = DEFAULT_STEPS_SINCE_LAST_TRIGGER

    def __post_init__(self) -> None:
        _require_tier("income_level", self.income_level, INCOME_TIER_RANGE)
        _require_tier("parents_education_level", self.parents_education_level, EDUCATION_TIER_RANGE)
        _require_tier("job_status", self.job_status, JOB_STATUS_TIER_RANGE)
        _require_tier(
            "parents_relationship_quality",
            self.parents_relationship_quality,
            RELATIONSHIP_QUALITY_TIER_RANGE,
        )
        _require_tier("social_energy_level", self.social_energy_level, SOCIAL_ENERGY_TIER_RANGE)
        _require_tier("social_environment_level", self.social_environment_level, PERCENT_TRAIT_RANGE)
        _require_tier("family_closeness", self.family_closeness, PERCENT_TRAIT_RANGE)
        _require_tier("anxiety_level", self.anxiety_level, ANXIETY_RANGE)
        _require_tier("intelligence_score", self.intelligence_score, INTELLIGENCE_SCORE_LIMITS)
        _require_metric("current_stress", self.current_stress, STRESS_RANGE)
        _require_metric("current_mood", self.current_mood, MOOD_RANGE)
        _require_metric("social_belonging", self.social_belonging, SOCIAL_BELONGING_RANGE)
        _require_metric("resilience_score", self.resilience_score, RESILIENCE_RANGE)
        _require_metric("physical_health", self.physical_health, PHYSICAL_HEALTH_RANGE)
        if self.gender not in GENDERS:
            raise ValueError(f"gender must be one of: {', '.join(sorted(GENDERS))}")
        if not isinstance(self.current_age, int) or self.current_age < 0:
            raise ValueError("current_age must be a non-negative integer")

    @property
    def life_phase(self) -> str:
        return life_phase_for_age(self.current_age)

    def coping_preference(self, coping_id: str) -> float:
        return self.coping_preferences.get(coping_id, 0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "income_level": self.income_level,
            "parents_education_level": self.parents_education_level,
            "job_status": self.job_status,
            "social_environment_level": self.social_environment_level,
            "family_closeness": self.family_closeness,
            "parents_relationship_quality": self.parents_relationship_quality,
            "parents_with_addiction": self.parents_with_addiction,
            "has_adhd": self.has_adhd,
            "has_autism": self.has_autism,
            "intelligence_score": self.intelligence_score,
            "anxiety_level": self.anxiety_level,
            "social_energy_level": self.social_energy_level,
            "gender": self.gender,
            "current_stress": round(self.current_stress, 8),
            "current_mood": round(self.current_mood, 8),
            "social_belonging": round(self.social_belonging, 8),
            "resilience_score": round(self.resilience_score, 8),
            "physical_health": round(self.physical_health, 8),
            "current_age": self.current_age,
            "life_phase": self.life_phase,
            "event_history": list(self.event_history),
            "active_illnesses": sorted(self.active_illnesses),
            "illness_progressions": [
                self.illness_progressions[key].to_dict() for key in sorted(self.illness_progressions)
            ],
            "coping_preferences": {
                key: round(value, 8) for key, value in sorted(self.coping_preferences.items())
            },
            "traumatic_event_ages": list(self.traumatic_event_ages),
            "steps_since_last_trigger": self.steps_since_last_trigger,
        }

    @classmethod
    def from_traits(cls, payload: dict[str, Any]) -> "SimulationState":
        """Build a fresh state from a persona trait payload; unknown keys are rejected."""
        if not isinstance(payload, dict):
            raise ValueError("persona payload must be an object")
        allowed = {
            "income_level",
            "parents_education_level",
            "job_status",
            "social_environment_level",
            "family_closeness",
            "parents_relationship_quality",
            "parents_with_addiction",
            "has_adhd",
            "has_autism",
            "intelligence_score",
            "anxiety_level",
            "social_energy_level",
            "gender",
            "current_stress",
            "current_mood",
            "social_belonging",
            "resilience_score",
            "physical_health",
            "current_age",
        }
        unknown = sorted(set(payload) - allowed)
        if unknown:
            raise ValueError(f"unknown persona fields: {', '.join(unknown)}")
        return cls(**copy.deepcopy(payload))
