from __future__ import annotations

import math
import random

PERMUTATION_SIZE = 256
BASE_FREQUENCY = 0.05
VOLATILITY_FREQUENCY_SCALE = 0.3
SECOND_OCTAVE_VOLATILITY = 0.5
SECOND_OCTAVE_WEIGHT = 0.5


def _fade(t: float) -> float:
    return t * t * t * (t * (t * 6 - 15) + 10)


def _lerp(a: float, b: float, t: float) -> float:
    return a + t * (b - a)


def _gradient(hash_value: int, offset: float) -> float:
    # Sixteen gradient slopes spread over [-1, 1].
    return ((hash_value & 15) / 7.5 - 1.0) * offset


class SmoothNoise:
    """Seeded one-dimensional gradient noise in [0, 1].

    The permutation table is shuffled once from ``seed``; the same seed always
    yields the same curve, and nearby inputs yield nearby outputs.
    """

    def __init__(self, seed: int) -> None:
        self.seed = seed
        table = list(range(PERMUTATION_SIZE))
        random.Random(seed).shuffle(table)
        self._permutation = table + table

    def noise_1d(self, x: float) -> float:
        cell = math.floor(x)
        xi = cell & (PERMUTATION_SIZE - 1)
        xf = x - cell
        left = _gradient(self._permutation[xi], xf)
        right = _gradient(self._permutation[xi + 1], xf - 1.0)
        value = _lerp(left, right, _fade(xf))
        return max(0.0, min(1.0, (value + 1.0) / 2.0))

    def fluctuation(self, step: int, volatility: float) -> float:
        volatility = max(0.0, min(1.0, volatility))
        frequency = BASE_FREQUENCY + volatility * VOLATILITY_FREQUENCY_SCALE
        value = self.noise_1d(step * frequency)
        if volatility > SECOND_OCTAVE_VOLATILITY:
            detail = self.noise_1d(step * frequency * 2)
            value = (value + detail * SECOND_OCTAVE_WEIGHT) / (1.0 + SECOND_OCTAVE_WEIGHT)
        return max(0.0, min(1.0, value))
