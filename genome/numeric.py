"""
Numeric helpers shared by the genetic operators.

Small integer/float utilities used when sizing mutation regions and
clamping channel values.
"""

from __future__ import annotations

import math

import numpy as np


_POWERS_OF_TEN = (1, 10, 100, 1_000, 10_000, 100_000, 1_000_000)


def clamp(value, low, high):
    """Clamp ``value`` into ``[low, high]``."""
    if value < low:
        return low
    if value > high:
        return high
    return value


def floor_power_of_ten(n: int) -> int:
    """
    Largest power of ten that is <= ``n``.

    Non-positive inputs and inputs below 10 return 1.
    """
    if n < 10:
        return 1

    for power in _POWERS_OF_TEN:
        if n < power * 10:
            return power

    result = 1
    while n >= 10:
        n //= 10
        result *= 10
    return result


def fast_log10(n: int) -> float:
    """Base-10 logarithm, 0.0 for non-positive input."""
    if n <= 0:
        return 0.0
    return math.log10(n)


def random_between(rng: np.random.Generator, a: int, b: int) -> int:
    """Random integer in ``[a, b]`` inclusive; bounds may be given in either order."""
    if a > b:
        a, b = b, a
    return int(rng.integers(a, b + 1))


__all__ = [
    "clamp",
    "floor_power_of_ten",
    "fast_log10",
    "random_between",
]
