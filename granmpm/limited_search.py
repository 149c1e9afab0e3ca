"""Admissible line searches on the plastic volumetric strain.

These helpers damp a Newton step on the plastic volumetric Hencky strain
``epv`` so that the plastic multiplier stays non-negative. They also detect
when the iterate crosses the apex of the yield surface.

Each search returns a tuple ``(epv, right)``. ``right`` records on which side
of the apex the trial point started: 1 for the right, 0 for the left. It is -1
once a crossing has been detected. When no admissible step exists in either
direction, ``ArithmeticError`` is raised.
"""

from __future__ import annotations

import math
from typing import Callable

_MAX_TRIES = 32
_MIDPOINT_TOLERANCE = 1e-5


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def _exp(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def _sinh(x: float) -> float:
    try:
        return math.sinh(x)
    except OverflowError:
        return math.copysign(math.inf, x)


def _limited_search(
    epv: float,
    epv_t: float,
    epv_delta: float,
    K: float,
    p_t: float,
    beta: float,
    right: int,
    p0_of: Callable[[float], float],
) -> tuple[float, int]:
    for _direction in range(2):
        scale = 1.0
        for _ in range(_MAX_TRIES):
            test_epv = epv - scale * epv_delta
            pp0 = p0_of(test_epv)
            pp = K * (test_epv - epv_t) + p_t
            # Only the sign matters: the denominator of the plastic multiplier.
            val = 2.0 * pp + (beta - 1.0) * pp0
            midpoint = (pp0 - beta * pp0) * 0.5

            if abs(pp - midpoint) <= _MIDPOINT_TOLERANCE:
                return test_epv, right

            crossed_right = right == 1 and (pp < midpoint or p_t < midpoint)
            crossed_left = right == 0 and (pp > midpoint or p_t > midpoint)
            if crossed_right or crossed_left:
                return epv, -1

            direction = _sign(epv_t - test_epv)
            if direction == _sign(val) or direction == 0:
                return test_epv, right
            scale *= 0.5
        epv_delta = -epv_delta
    raise ArithmeticError("no admissible epv step in either direction")


def limited_search_exponential(
    epv: float,
    epv_t: float,
    epv_delta: float,
    xi: float,
    K: float,
    p_t: float,
    p00: float,
    beta: float,
    right: int,
) -> tuple[float, int]:
    """Damped epv step under the exponential hardening law p0 = p00 exp(-xi epv)."""
    return _limited_search(
        epv, epv_t, epv_delta, K, p_t, beta, right,
        lambda e: p00 * _exp(-xi * e),
    )


def limited_search_sinh(
    epv: float,
    epv_t: float,
    epv_delta: float,
    xi: float,
    K: float,
    p_t: float,
    p00: float,
    p0_min: float,
    beta: float,
    right: int,
) -> tuple[float, int]:
    """Damped epv step under the sinh hardening law, floored at ``p0_min``."""
    offset = math.asinh(p00 / K)
    return _limited_search(
        epv, epv_t, epv_delta, K, p_t, beta, right,
        lambda e: max(p0_min, K * _sinh(-xi * e + offset)),
    )