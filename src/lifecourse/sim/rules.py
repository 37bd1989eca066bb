from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lifecourse.sim.core import AppliedEvent, Simulation
    from lifecourse.sim.illness import IllnessNotification


class RuleModule:
    """Observer substrate for the turn loop.

    Rule modules are registered on a ``Simulation`` instance and are called in
    stable registration order. Hooks run between atomic sub-steps, so a module
    never sees a half-applied event or illness transition.
    """

    name: str

    def on_simulation_start(self, sim: Simulation) -> None:
        """Called once, immediately when the module is registered."""

    def on_turn_start(self, sim: Simulation, turn: int) -> None:
        """Called before the first sub-step of each turn."""

    def on_event_applied(self, sim: Simulation, applied: AppliedEvent) -> None:
        """Called after an event's debuffed impacts are applied to the state."""

    def on_illness_changed(self, sim: Simulation, notification: IllnessNotification) -> None:
        """Called for each onset or healing produced by the illness step."""

    def on_turn_end(self, sim: Simulation, turn: int) -> None:
        """Called after the age advance that closes a turn."""
