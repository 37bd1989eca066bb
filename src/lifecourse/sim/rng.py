from __future__ import annotations

import hashlib
import random

MASTER_SEED_BITS = 63


def derive_stream_seed(master_seed: int, stream_name: str) -> int:
    """Derive a deterministic child RNG seed from (master_seed, stream_name)."""
    digest = hashlib.sha256(f"{master_seed}:{stream_name}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False)


def draw_master_seed() -> int:
    """Draw a fresh master seed from the platform entropy source for unseeded runs."""
    return random.SystemRandom().getrandbits(MASTER_SEED_BITS)


def stream_for(master_seed: int, stream_name: str) -> random.Random:
    return random.Random(derive_stream_seed(master_seed=master_seed, stream_name=stream_name))
