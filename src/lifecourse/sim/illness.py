from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from lifecourse.content.events import EventEffects, LifeEvent
from lifecourse.content.illnesses import DiseaseConfig, IllnessCatalog
from lifecourse.sim.noise import SmoothNoise
from lifecourse.sim.state import (
    LIFE_PHASE_ADOLESCENCE,
    MOOD_RANGE,
    RESILIENCE_RANGE,
    SEVERITY_MILD,
    SEVERITY_MODERATE,
    SEVERITY_SEVERE,
    STRESS_RANGE,
    IllnessProgressionState,
    SimulationState,
    clamp,
    life_phase_index,
)

MAX_CONCURRENT_ILLNESSES = 3
ILLNESS_TRIGGER_COOLDOWN = 2
BOUNCE_BACK_BONUS = 10.0
RECENT_TRAUMA_WINDOW = 2

MAX_STRESS_DEBUFF = 2.5
MIN_MOOD_DEBUFF = 0.3
MIN_SOCIAL_DEBUFF = 0.3
FIXED_DEBUFF_JITTER = 0.1
MAX_RECOVERY_REDUCTION = 0.5

SEVERITY_MULTIPLIERS = {
    SEVERITY_MILD: 0.7,
    SEVERITY_MODERATE: 1.0,
    SEVERITY_SEVERE: 1.2,
}
# Cumulative percent thresholds for the onset severity roll.
SEVERITY_ROLL_THRESHOLDS = ((50, SEVERITY_MILD), (85, SEVERITY_MODERATE), (100, SEVERITY_SEVERE))

CHANGE_TYPE_ONSET = "onset"
CHANGE_TYPE_HEALED = "healed"

SUBSTANCE_USE_COPING_ID = "coping_substance_use"
EMOTIONAL_EATING_COPING_ID = "coping_emotional_eating"


@dataclass(frozen=True)
class IllnessNotification:
    illness_key: str
    display_name: str
    change_type: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "illness_key": self.illness_key,
            "display_name": self.display_name,
            "change_type": self.change_type,
            "message": self.message,
        }


def _at_least_adolescent(state: SimulationState) -> bool:
    return life_phase_index(state.life_phase) >= life_phase_index(LIFE_PHASE_ADOLESCENCE)


def _recent_trauma(state: SimulationState) -> bool:
    return any(age >= state.current_age - RECENT_TRAUMA_WINDOW for age in state.traumatic_event_ages)


TRIGGER_PREDICATES: dict[str, Callable[[SimulationState], bool]] = {
    "MildDepression": lambda s: s.current_stress > s.resilience_score,
    "GeneralizedAnxiety": lambda s: s.anxiety_level > 60 and s.current_stress > 50,
    "SocialPhobia": lambda s: s.social_belonging < 40 and s.anxiety_level > 50,
    "PanicDisorder": lambda s: s.anxiety_level > 70 and s.current_stress > 70,
    "PTSD": _recent_trauma,
    "Alcoholism": lambda s: s.coping_preference(SUBSTANCE_USE_COPING_ID) > 0.5,
    "SubstanceAbuse": lambda s: s.coping_preference(SUBSTANCE_USE_COPING_ID) > 0.3 and s.parents_with_addiction,
    "AnorexiaNervosa": lambda s: s.current_stress > 70 and s.current_mood < -60,
    "BulimiaNervosa": lambda s: s.coping_preference(EMOTIONAL_EATING_COPING_ID) > 0.5 and s.current_mood < -20,
    "BingeEatingDisorder": lambda s: s.coping_preference(EMOTIONAL_EATING_COPING_ID) > 0.5
    and s.current_stress > 50,
    "OCD": lambda s: s.anxiety_level > 90 and s.current_stress > 70,
    "BorderlinePersonality": lambda s: s.family_closeness < 30 and s.current_mood < -40 and _at_least_adolescent(s),
    "AvoidantPersonality": lambda s: s.social_belonging < 30 and s.anxiety_level > 60 and _at_least_adolescent(s),
    "DissociativeDisorder": lambda s: bool(s.traumatic_event_ages) and s.current_stress > 80,
}


def check_trigger_condition(illness_key: str, state: SimulationState) -> bool:
    predicate = TRIGGER_PREDICATES.get(illness_key)
    if predicate is None:
        return False
    return predicate(state)


def roll_severity(rng: random.Random) -> str:
    roll = rng.randrange(100)
    for threshold, severity in SEVERITY_ROLL_THRESHOLDS:
        if roll < threshold:
            return severity
    return SEVERITY_SEVERE


def _recovery_factor(steps_active: int, healing_time: int) -> float:
    if healing_time <= 0:
        return 1.0
    progress = min(steps_active / healing_time, 1.0)
    return 1.0 - progress * MAX_RECOVERY_REDUCTION


class DebuffCalculator:
    """Combines the fluctuating multipliers of every active illness."""

    def __init__(self) -> None:
        self._noise: dict[tuple[str, int], SmoothNoise] = {}

    def noise_for(self, progression: IllnessProgressionState) -> SmoothNoise:
        cache_key = (progression.illness_key, progression.noise_seed)
        generator = self._noise.get(cache_key)
        if generator is None:
            generator = SmoothNoise(progression.noise_seed)
            self._noise[cache_key] = generator
        return generator

    def forget(self, progression: IllnessProgressionState) -> None:
        self._noise.pop((progression.illness_key, progression.noise_seed), None)

    def single_debuff(
        self, config: DiseaseConfig, progression: IllnessProgressionState
    ) -> tuple[float, float, float]:
        fluctuation = self.noise_for(progression).fluctuation(progression.steps_active, config.volatility)
        progression.last_fluctuation = fluctuation

        jitter = 1.0 + FIXED_DEBUFF_JITTER * (fluctuation - 0.5)
        raw: list[float] = []
        for value_range, fixed in (
            (config.stress_range, config.stress_debuff),
            (config.mood_range, config.mood_debuff),
            (config.social_range, config.social_debuff),
        ):
            if value_range is not None:
                raw.append(value_range[0] + (value_range[1] - value_range[0]) * fluctuation)
            else:
                raw.append(fixed * jitter)

        severity = SEVERITY_MULTIPLIERS.get(progression.severity, 1.0)
        recovery = _recovery_factor(progression.steps_active, config.healing_time)
        stress, mood, social = (1.0 + (value - 1.0) * severity for value in raw)

        stress = 1.0 + (stress - 1.0) * recovery
        mood = 1.0 - (1.0 - mood) * recovery
        social = 1.0 - (1.0 - social) * recovery
        return stress, mood, social

    def combined_debuffs(
        self,
        active_illnesses: dict[str, DiseaseConfig],
        progressions: dict[str, IllnessProgressionState],
    ) -> tuple[float, float, float]:
        stress = mood = social = 1.0
        for key, config in active_illnesses.items():
            progression = progressions.get(key)
            if progression is None:
                continue
            single_stress, single_mood, single_social = self.single_debuff(config, progression)
            stress *= single_stress
            mood *= single_mood
            social *= single_social
        return (
            min(stress, MAX_STRESS_DEBUFF),
            max(mood, MIN_MOOD_DEBUFF),
            max(social, MIN_SOCIAL_DEBUFF),
        )

    def reset(self) -> None:
        self._noise.clear()


class IllnessManager:
    """Per-turn illness state machine: healing, bounce-back, onset, progression."""

    def __init__(
        self,
        catalog: IllnessCatalog,
        rng: random.Random,
        debuff_calculator: DebuffCalculator | None = None,
    ) -> None:
        if not isinstance(catalog, IllnessCatalog):
            raise TypeError("catalog must be an IllnessCatalog")
        self._catalog = catalog
        self._rng = rng
        self._debuffs = debuff_calculator or DebuffCalculator()

    @property
    def catalog(self) -> IllnessCatalog:
        return self._catalog

    def process_step(self, state: SimulationState) -> list[IllnessNotification]:
        if state is None:
            raise ValueError("state is required")

        notifications = self._process_healing(state)
        if state.steps_since_last_trigger < ILLNESS_TRIGGER_COOLDOWN:
            self._apply_bounce_back(state)
        onset = self._process_triggers(state)
        if onset is not None:
            notifications.append(onset)
        for progression in state.illness_progressions.values():
            progression.steps_active += 1
        state.steps_since_last_trigger += 1
        return notifications

    def apply_debuffs(self, state: SimulationState, event: LifeEvent) -> EventEffects:
        if state is None:
            raise ValueError("state is required")
        if event is None:
            raise ValueError("event is required")

        effects = event.effects
        if not state.active_illnesses:
            return effects

        stress_debuff, mood_debuff, social_debuff = self._debuffs.combined_debuffs(
            state.active_illnesses, state.illness_progressions
        )
        return EventEffects(
            stress=effects.stress * stress_debuff if effects.stress > 0 else effects.stress,
            mood=_apply_dampening(effects.mood, mood_debuff),
            social_belonging=_apply_dampening(effects.social_belonging, social_debuff),
            resilience=effects.resilience,
            physical_health=effects.physical_health,
        )

    def can_trigger_new_illness(self, state: SimulationState) -> bool:
        return (
            state.steps_since_last_trigger >= ILLNESS_TRIGGER_COOLDOWN
            and len(state.active_illnesses) < MAX_CONCURRENT_ILLNESSES
        )

    def _process_healing(self, state: SimulationState) -> list[IllnessNotification]:
        notifications: list[IllnessNotification] = []
        healed = [
            key
            for key, config in state.active_illnesses.items()
            if key in state.illness_progressions
            and state.illness_progressions[key].steps_active >= config.healing_time
        ]
        for key in healed:
            config = state.active_illnesses.pop(key)
            progression = state.illness_progressions.pop(key)
            self._debuffs.forget(progression)
            notifications.append(
                IllnessNotification(
                    illness_key=key,
                    display_name=config.display_name,
                    change_type=CHANGE_TYPE_HEALED,
                    message=config.healing_text(),
                )
            )
        return notifications

    @staticmethod
    def _apply_bounce_back(state: SimulationState) -> None:
        state.current_mood = clamp(state.current_mood + BOUNCE_BACK_BONUS, MOOD_RANGE)
        state.resilience_score = clamp(state.resilience_score + BOUNCE_BACK_BONUS, RESILIENCE_RANGE)
        state.current_stress = clamp(state.current_stress - BOUNCE_BACK_BONUS, STRESS_RANGE)

    def _process_triggers(self, state: SimulationState) -> IllnessNotification | None:
        if not self.can_trigger_new_illness(state):
            return None
        for config in self._catalog.illnesses:
            if len(state.active_illnesses) >= MAX_CONCURRENT_ILLNESSES:
                return None
            if not self._should_consider(config, state):
                continue
            probability = min(1.0 / config.trigger_chance * config.gender_modifier(state.gender), 1.0)
            if self._rng.random() < probability:
                return self._trigger(config, state)
        return None

    @staticmethod
    def _should_consider(config: DiseaseConfig, state: SimulationState) -> bool:
        return (
            config.illness_key not in state.active_illnesses
            and state.current_age >= config.min_age
            and check_trigger_condition(config.illness_key, state)
        )

    def _trigger(self, config: DiseaseConfig, state: SimulationState) -> IllnessNotification:
        severity = roll_severity(self._rng)
        state.active_illnesses[config.illness_key] = config
        state.illness_progressions[config.illness_key] = IllnessProgressionState(
            illness_key=config.illness_key,
            steps_active=0,
            onset_age=state.current_age,
            severity=severity,
            noise_seed=self._rng.getrandbits(31),
        )
        state.steps_since_last_trigger = 0
        return IllnessNotification(
            illness_key=config.illness_key,
            display_name=config.display_name,
            change_type=CHANGE_TYPE_ONSET,
            message=config.onset_text(),
        )


def _apply_dampening(value: float, multiplier: float) -> float:
    if value > 0:
        return value * multiplier
    if value < 0:
        return value / multiplier
    return value
