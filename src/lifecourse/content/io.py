from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from lifecourse.sim.history import SimulationHistory
from lifecourse.sim.state import SimulationState

HISTORY_SCHEMA_VERSION = 1
PERSONA_SCHEMA_VERSION = 1
CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")
DEFAULT_PERSONA_PATH = "content/personas/default.json"


def _canonical_json(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload,
        indent=CANONICAL_JSON_INDENT,
        separators=CANONICAL_JSON_SEPARATORS,
        sort_keys=True,
    )


def _write_atomic_json(path: str | Path, payload: dict[str, Any]) -> None:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    serialized = _canonical_json(payload)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=destination.parent,
            delete=False,
            suffix=".tmp",
        ) as temp_file:
            temp_file.write(serialized)
            temp_file.flush()
            os.fsync(temp_file.fileno())
            temp_path = Path(temp_file.name)
        os.replace(temp_path, destination)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


def history_hash(history_payload: dict[str, Any]) -> str:
    encoded = json.dumps(history_payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def save_history_json(path: str | Path, history: SimulationHistory) -> None:
    history_payload = history.to_dict()
    _write_atomic_json(
        path,
        {
            "schema_version": HISTORY_SCHEMA_VERSION,
            "history": history_payload,
            "history_hash": history_hash(history_payload),
        },
    )


def load_history_json(path: str | Path) -> dict[str, Any]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("history payload must be an object")
    if payload.get("schema_version") != HISTORY_SCHEMA_VERSION:
        raise ValueError(f"unsupported history schema_version: {payload.get('schema_version')}")
    history_payload = payload.get("history")
    if not isinstance(history_payload, dict):
        raise ValueError("history payload must contain object field: history")
    expected_hash = payload.get("history_hash")
    actual_hash = history_hash(history_payload)
    if expected_hash != actual_hash:
        raise ValueError(
            f"history_hash mismatch while loading history (stored={expected_hash}, recomputed={actual_hash})"
        )
    return history_payload


def load_persona_json(path: str | Path) -> SimulationState:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("persona payload must be an object")
    if payload.get("schema_version") != PERSONA_SCHEMA_VERSION:
        raise ValueError(f"unsupported persona schema_version: {payload.get('schema_version')}")
    traits = payload.get("traits")
    if not isinstance(traits, dict):
        raise ValueError("persona payload must contain object field: traits")
    return SimulationState.from_traits(traits)
