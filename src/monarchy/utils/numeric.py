"""Rounding helpers shared by the rules engine.

Rule constants such as ``0.0735`` or ``1.2`` are not exactly representable
in binary floating point, so ``100 * 1.2`` evaluates to ``120.00000000000001``
and a naive ``ceil`` would charge 121. The helpers below snap products to
nine decimal places before rounding towards an integer.
"""

from __future__ import annotations

import math

_PRECISION = 9


def floor_int(value: float) -> int:
    """Floor ``value`` after snapping away float representation noise."""

    return math.floor(round(value, _PRECISION))


def ceil_int(value: float) -> int:
    """Ceil ``value`` after snapping away float representation noise."""

    return math.ceil(round(value, _PRECISION))


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]``, mapping NaN to ``low``."""

    if math.isnan(value):
        return low
    return max(low, min(high, value))


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning ``default`` when the result would not be finite."""

    if denominator == 0:
        return default
    result = numerator / denominator
    if not math.isfinite(result):
        return default
    return result
