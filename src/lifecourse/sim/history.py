from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any

from lifecourse.content.events import (
    COPING_TYPE_DYSFUNCTIONAL,
    COPING_TYPE_FUNCTIONAL,
    CopingMechanism,
    EventEffects,
)
from lifecourse.sim.core import AppliedEvent, Simulation
from lifecourse.sim.illness import CHANGE_TYPE_HEALED, CHANGE_TYPE_ONSET, IllnessNotification
from lifecourse.sim.rules import RuleModule
from lifecourse.sim.state import SimulationState

TOP_IMPACT_EVENT_LIMIT = 10


@dataclass(frozen=True)
class TurnSnapshot:
    age: int
    stress: float
    mood: float
    social_belonging: float
    resilience: float
    physical_health: float
    life_phase: str

    @classmethod
    def from_state(cls, state: SimulationState) -> "TurnSnapshot":
        return cls(
            age=state.current_age,
            stress=state.current_stress,
            mood=state.current_mood,
            social_belonging=state.social_belonging,
            resilience=state.resilience_score,
            physical_health=state.physical_health,
            life_phase=state.life_phase,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "age": self.age,
            "stress": round(self.stress, 8),
            "mood": round(self.mood, 8),
            "social_belonging": round(self.social_belonging, 8),
            "resilience": round(self.resilience, 8),
            "physical_health": round(self.physical_health, 8),
            "life_phase": self.life_phase,
        }


@dataclass(frozen=True)
class EventRecord:
    event_id: str
    name: str
    description: str
    age: int
    is_traumatic: bool
    category: str
    effects: EventEffects

    @property
    def total_absolute_impact(self) -> float:
        return self.effects.total_absolute_impact

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "name": self.name,
            "description": self.description,
            "age": self.age,
            "is_traumatic": self.is_traumatic,
            "category": self.category,
            "effects": self.effects.to_dict(),
        }


@dataclass
class IllnessRecord:
    illness_key: str
    display_name: str
    onset_age: int
    healed_age: int | None = None

    @property
    def is_ongoing(self) -> bool:
        return self.healed_age is None

    def duration(self, current_age: int) -> int:
        end_age = current_age if self.healed_age is None else self.healed_age
        return end_age - self.onset_age

    def to_dict(self) -> dict[str, Any]:
        return {
            "illness_key": self.illness_key,
            "display_name": self.display_name,
            "onset_age": self.onset_age,
            "healed_age": self.healed_age,
        }


@dataclass(frozen=True)
class CopingUsageRecord:
    coping_id: str
    name: str
    coping_type: str
    age: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "coping_id": self.coping_id,
            "name": self.name,
            "coping_type": self.coping_type,
            "age": self.age,
        }


@dataclass(frozen=True)
class SimulationHistory:
    """Compiled run record with the evaluation views built on top of it."""

    master_seed: int
    snapshots: tuple[TurnSnapshot, ...]
    events: tuple[EventRecord, ...]
    illnesses: tuple[IllnessRecord, ...]
    coping_usages: tuple[CopingUsageRecord, ...]
    final_state: TurnSnapshot

    def top_impactful_events(self, limit: int = TOP_IMPACT_EVENT_LIMIT) -> list[EventRecord]:
        candidates = [record for record in self.events if not record.is_traumatic]
        # sorted() is stable, so ties keep chronological order.
        return sorted(candidates, key=lambda record: record.total_absolute_impact, reverse=True)[:limit]

    def traumatic_events(self) -> list[EventRecord]:
        return sorted((record for record in self.events if record.is_traumatic), key=lambda record: record.age)

    def illness_timeline(self) -> list[IllnessRecord]:
        return sorted(self.illnesses, key=lambda record: (record.onset_age, record.illness_key))

    def coping_usage_by_name(self) -> list[tuple[str, int]]:
        counts = Counter(record.name for record in self.coping_usages)
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))

    def functional_coping_count(self) -> int:
        return sum(1 for record in self.coping_usages if record.coping_type == COPING_TYPE_FUNCTIONAL)

    def dysfunctional_coping_count(self) -> int:
        return sum(1 for record in self.coping_usages if record.coping_type == COPING_TYPE_DYSFUNCTIONAL)

    def summary(self) -> dict[str, Any]:
        return {
            "top_impactful_events": [record.to_dict() for record in self.top_impactful_events()],
            "traumatic_events": [record.to_dict() for record in self.traumatic_events()],
            "illness_timeline": [
                {**record.to_dict(), "duration": record.duration(self.final_state.age)}
                for record in self.illness_timeline()
            ],
            "coping_usage": [{"name": name, "count": count} for name, count in self.coping_usage_by_name()],
            "functional_coping_count": self.functional_coping_count(),
            "dysfunctional_coping_count": self.dysfunctional_coping_count(),
            "final_state": self.final_state.to_dict(),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "master_seed": self.master_seed,
            "snapshots": [snapshot.to_dict() for snapshot in self.snapshots],
            "events": [record.to_dict() for record in self.events],
            "illnesses": [record.to_dict() for record in self.illnesses],
            "coping_usages": [record.to_dict() for record in self.coping_usages],
            "summary": self.summary(),
        }


class HistoryRecorder(RuleModule):
    """Collects snapshots and records from the turn loop hooks."""

    name = "history"

    def __init__(self) -> None:
        self._snapshots: list[TurnSnapshot] = []
        self._events: list[EventRecord] = []
        self._illnesses: list[IllnessRecord] = []
        self._coping_usages: list[CopingUsageRecord] = []

    def on_simulation_start(self, sim: Simulation) -> None:
        self._snapshots.append(TurnSnapshot.from_state(sim.state))

    def on_event_applied(self, sim: Simulation, applied: AppliedEvent) -> None:
        event = applied.event
        self._events.append(
            EventRecord(
                event_id=event.event_id,
                name=event.name,
                description=event.description,
                age=applied.age,
                is_traumatic=event.is_traumatic,
                category=applied.category,
                effects=applied.effects,
            )
        )
        if isinstance(event, CopingMechanism):
            self._coping_usages.append(
                CopingUsageRecord(
                    coping_id=event.event_id,
                    name=event.name,
                    coping_type=event.coping_type,
                    age=applied.age,
                )
            )

    def on_illness_changed(self, sim: Simulation, notification: IllnessNotification) -> None:
        age = sim.state.current_age
        if notification.change_type == CHANGE_TYPE_ONSET:
            self._illnesses.append(
                IllnessRecord(
                    illness_key=notification.illness_key,
                    display_name=notification.display_name,
                    onset_age=age,
                )
            )
            return
        if notification.change_type == CHANGE_TYPE_HEALED:
            for record in reversed(self._illnesses):
                if record.illness_key == notification.illness_key and record.is_ongoing:
                    record.healed_age = age
                    return

    def on_turn_end(self, sim: Simulation, turn: int) -> None:
        self._snapshots.append(TurnSnapshot.from_state(sim.state))

    def compile(self, sim: Simulation) -> SimulationHistory:
        return SimulationHistory(
            master_seed=sim.master_seed,
            snapshots=tuple(self._snapshots),
            events=tuple(self._events),
            illnesses=tuple(IllnessRecord(**record.to_dict()) for record in self._illnesses),
            coping_usages=tuple(self._coping_usages),
            final_state=TurnSnapshot.from_state(sim.state),
        )
