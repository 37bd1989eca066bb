from __future__ import annotations

import hashlib
import json
from typing import Any

from lifecourse.sim.core import Simulation
from lifecourse.sim.state import SimulationState


def _digest(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def state_hash(state: SimulationState) -> str:
    return _digest(state.to_dict())


def simulation_hash(simulation: Simulation) -> str:
    payload = {
        "master_seed": simulation.master_seed,
        "turn": simulation.turn,
        "settings": simulation.settings.to_dict(),
        "rng_state": simulation.rng_state_payload(),
        "state": simulation.state.to_dict(),
        "event_trace": simulation.get_event_trace(),
    }
    return _digest(payload)
