from __future__ import annotations

INFLUENCE_MIN = 0.02
INFLUENCE_MAX = 50.0
NEUTRAL_EXPONENT_EPSILON = 0.001
VALUE_FLOOR = 0.01


def calculate_influence(normalized_value: float, exponent: float) -> float:
    """Turn a normalized factor and a signed exponent into a probability multiplier.

    Positive exponents favour high factor values (``v ** e``), negative ones
    favour low values (``(1 - v) ** |e|``). Near-zero exponents are neutral.
    """
    if abs(exponent) < NEUTRAL_EXPONENT_EPSILON:
        return 1.0

    value = max(normalized_value, VALUE_FLOOR)
    if exponent > 0:
        multiplier = value**exponent
    else:
        multiplier = max(1.0 - value, VALUE_FLOOR) ** abs(exponent)
    return max(INFLUENCE_MIN, min(INFLUENCE_MAX, multiplier))
