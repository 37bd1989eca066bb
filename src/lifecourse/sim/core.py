from __future__ import annotations

import copy
import random
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from lifecourse.content.events import (
    EVENT_KIND_COPING,
    EVENT_KIND_GENERIC,
    EVENT_KIND_PERSONAL,
    EventCatalog,
    EventEffects,
    LifeEvent,
)
from lifecourse.content.illnesses import IllnessCatalog
from lifecourse.sim.coping import CopingTriggerChecker
from lifecourse.sim.engine import EventEngine
from lifecourse.sim.illness import IllnessManager, IllnessNotification
from lifecourse.sim.rng import draw_master_seed, stream_for
from lifecourse.sim.rules import RuleModule
from lifecourse.sim.sampling import StochasticSampler
from lifecourse.sim.state import SimulationState
from lifecourse.sim.weights import EventWeightCalculator

RNG_SAMPLER_STREAM_NAME = "rng_sampler"
RNG_ILLNESS_STREAM_NAME = "rng_illness"
MAX_EVENT_TRACE = 256
MAX_EVENTS_PER_CATEGORY = 10

BASE_STEP_DELAY_SECONDS = 2.0
MIN_STEP_DELAY_SECONDS = 0.1
MAX_STEP_DELAY_SECONDS = 5.0

TRACE_EVENT_APPLIED = "event_applied"
TRACE_ILLNESS_CHANGED = "illness_changed"


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


def step_delay_seconds(speed_multiplier: float) -> float:
    if speed_multiplier <= 0:
        return BASE_STEP_DELAY_SECONDS
    delay = BASE_STEP_DELAY_SECONDS / speed_multiplier
    return max(MIN_STEP_DELAY_SECONDS, min(MAX_STEP_DELAY_SECONDS, delay))


@dataclass
class StepSettings:
    generic_events_per_turn: int = 1
    personal_events_per_turn: int = 1
    coping_enabled: bool = True
    step_delay_seconds: float = 0.0

    def __post_init__(self) -> None:
        for field_name in ("generic_events_per_turn", "personal_events_per_turn"):
            value = getattr(self, field_name)
            if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= MAX_EVENTS_PER_CATEGORY:
                raise ValueError(f"settings.{field_name} must be an integer in [1, {MAX_EVENTS_PER_CATEGORY}]")
        if not isinstance(self.coping_enabled, bool):
            raise ValueError("settings.coping_enabled must be a boolean")
        if not isinstance(self.step_delay_seconds, (int, float)) or self.step_delay_seconds < 0:
            raise ValueError("settings.step_delay_seconds must be a number >= 0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "generic_events_per_turn": self.generic_events_per_turn,
            "personal_events_per_turn": self.personal_events_per_turn,
            "coping_enabled": self.coping_enabled,
            "step_delay_seconds": self.step_delay_seconds,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any] | None) -> "StepSettings":
        if payload is None:
            return cls()
        if not isinstance(payload, dict):
            raise ValueError("settings must be an object")
        return cls(
            generic_events_per_turn=payload.get("generic_events_per_turn", 1),
            personal_events_per_turn=payload.get("personal_events_per_turn", 1),
            coping_enabled=payload.get("coping_enabled", True),
            step_delay_seconds=payload.get("step_delay_seconds", 0.0),
        )


@dataclass(frozen=True)
class AppliedEvent:
    event: LifeEvent
    category: str
    age: int
    effects: EventEffects

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event.event_id,
            "category": self.category,
            "age": self.age,
            "effects": self.effects.to_dict(),
        }


StepResult = tuple[list[AppliedEvent], list[IllnessNotification]]


class Simulation:
    """Single-owner turn loop for one persona.

    Each call to ``run_step`` applies generic events, personal events, an
    optional coping mechanism and the illness step, then advances age by one
    year. All draws come from named streams derived from ``master_seed``.
    """

    def __init__(
        self,
        state: SimulationState,
        event_catalog: EventCatalog,
        illness_catalog: IllnessCatalog,
        seed: int | None = None,
        settings: StepSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not isinstance(state, SimulationState):
            raise TypeError("state must be a SimulationState")
        if not isinstance(event_catalog, EventCatalog):
            raise TypeError("event_catalog must be an EventCatalog")
        if not isinstance(illness_catalog, IllnessCatalog):
            raise TypeError("illness_catalog must be an IllnessCatalog")

        self.state = state
        self.event_catalog = event_catalog
        self.illness_catalog = illness_catalog
        self.master_seed = draw_master_seed() if seed is None else seed
        self.settings = settings or StepSettings()
        self._sleep = sleep
        self._rng_streams: dict[str, random.Random] = {}

        self.weight_calculator = EventWeightCalculator()
        self.trigger_checker = CopingTriggerChecker()
        self.sampler = StochasticSampler(
            self.weight_calculator,
            self.trigger_checker,
            self.rng_stream(RNG_SAMPLER_STREAM_NAME),
        )
        self.illness_manager = IllnessManager(illness_catalog, self.rng_stream(RNG_ILLNESS_STREAM_NAME))
        self.engine = EventEngine()

        self.rule_modules: list[RuleModule] = []
        self.turn = 0
        self.turn_interrupted = False
        self._turn_left_open = False
        self._event_trace: list[dict[str, Any]] = []

    def rng_stream(self, name: str) -> random.Random:
        if name not in self._rng_streams:
            self._rng_streams[name] = stream_for(self.master_seed, name)
        return self._rng_streams[name]

    def rng_state_payload(self) -> dict[str, Any]:
        return {
            "master_seed": self.master_seed,
            "rng_stream_states": {
                name: list(stream.getstate()[1])
                for name, stream in sorted(self._rng_streams.items(), key=lambda item: item[0])
            },
        }

    def get_rule_module(self, module_name: str) -> RuleModule | None:
        for module in self.rule_modules:
            if module.name == module_name:
                return module
        return None

    def register_rule_module(self, module: RuleModule) -> None:
        if not isinstance(module, RuleModule):
            raise TypeError("module must be a RuleModule")
        if self.get_rule_module(module.name) is not None:
            raise ValueError(f"duplicate rule module name: {module.name}")
        self.rule_modules.append(module)
        module.on_simulation_start(self)

    def get_event_trace(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._event_trace)

    def run_step(self, cancel: CancelToken | None = None) -> StepResult:
        """Advance one turn.

        When ``cancel`` is set between two sub-steps the turn stops there:
        already applied sub-steps stay applied, age is not advanced and
        ``turn_interrupted`` is set. A turn cancelled after it started cannot be
        finished, so any further ``run_step`` call raises ``RuntimeError``. A
        cancel seen before the turn starts leaves the simulation resumable.
        """
        if self._turn_left_open:
            raise RuntimeError(f"turn {self.turn} was interrupted mid-way; the simulation cannot be resumed")
        self.turn_interrupted = False
        applied: list[AppliedEvent] = []
        notifications: list[IllnessNotification] = []
        if _cancelled(cancel):
            self.turn_interrupted = True
            return applied, notifications

        for module in self.rule_modules:
            module.on_turn_start(self, self.turn)

        phase = self.state.life_phase
        categories: list[tuple[str, Callable[[], list[LifeEvent]]]] = [
            (
                EVENT_KIND_GENERIC,
                lambda: self._select(
                    self.event_catalog.generic_for_phase(phase), self.settings.generic_events_per_turn
                ),
            ),
            (
                EVENT_KIND_PERSONAL,
                lambda: self._select(
                    self.event_catalog.personal_for_phase(phase), self.settings.personal_events_per_turn
                ),
            ),
        ]
        if self.settings.coping_enabled:
            categories.append((EVENT_KIND_COPING, self._select_coping))

        for category, select in categories:
            for event in select():
                if _cancelled(cancel):
                    self.turn_interrupted = True
                    self._turn_left_open = True
                    return applied, notifications
                if applied and self.settings.step_delay_seconds > 0:
                    self._sleep(self.settings.step_delay_seconds)
                applied.append(self._apply_event(event, category))

        if _cancelled(cancel):
            self.turn_interrupted = True
            self._turn_left_open = True
            return applied, notifications

        notifications = self.illness_manager.process_step(self.state)
        for notification in notifications:
            self._append_trace(
                {
                    "turn": self.turn,
                    "age": self.state.current_age,
                    "entry_type": TRACE_ILLNESS_CHANGED,
                    "params": notification.to_dict(),
                }
            )
            for module in self.rule_modules:
                module.on_illness_changed(self, notification)

        self.state.current_age += 1
        for module in self.rule_modules:
            module.on_turn_end(self, self.turn)
        self.turn += 1
        return applied, notifications

    def run(self, years: int, cancel: CancelToken | None = None) -> list[StepResult]:
        if not isinstance(years, int) or years < 0:
            raise ValueError("years must be a non-negative integer")
        results: list[StepResult] = []
        for _ in range(years):
            if _cancelled(cancel):
                break
            result = self.run_step(cancel)
            if self.turn_interrupted:
                if result[0]:
                    results.append(result)
                break
            results.append(result)
        return results

    def _select(self, pool: Sequence[LifeEvent], count: int) -> list[LifeEvent]:
        if count == 1:
            selected = self.sampler.select_single(pool, self.state)
            return [] if selected is None else [selected]
        return self.sampler.select_multiple(pool, self.state, count)

    def _select_coping(self) -> list[LifeEvent]:
        selected = self.sampler.select_coping_mechanism(self.event_catalog.coping_mechanisms, self.state)
        return [] if selected is None else [selected]

    def _apply_event(self, event: LifeEvent, category: str) -> AppliedEvent:
        effects = self.illness_manager.apply_debuffs(self.state, event)
        age = self.state.current_age
        self.engine.apply_event(self.state, event, effects)
        applied = AppliedEvent(event=event, category=category, age=age, effects=effects)
        self._append_trace(
            {
                "turn": self.turn,
                "age": age,
                "entry_type": TRACE_EVENT_APPLIED,
                "params": applied.to_dict(),
            }
        )
        for module in self.rule_modules:
            module.on_event_applied(self, applied)
        return applied

    def _append_trace(self, entry: dict[str, Any]) -> None:
        self._event_trace.append(entry)
        if len(self._event_trace) > MAX_EVENT_TRACE:
            overflow = len(self._event_trace) - MAX_EVENT_TRACE
            del self._event_trace[:overflow]


def _cancelled(cancel: CancelToken | None) -> bool:
    return cancel is not None and cancel.is_set()
