"""Implicit Modified Cam-Clay return mapping iterating on the plastic strain.

Both functions run a one-dimensional Newton iteration on the plastic
volumetric Hencky strain ``epv``. The consolidation pressure ``p0`` follows a
hardening law in ``epv``, and each Newton step is damped by an admissible line
search. The relations used are::

    p           = (epv - epv_trial) K + p_trial
    delta_gamma = (p_trial - p) / (2 K M^2 p + M^2 (beta - 1) K p0)
    q           = q_trial / (1 + 2 mu delta_gamma)
    y           = M^2 (p - p0)(p + beta p0) + q^2

Stresses and moduli are scaled by the trial ``p0`` while iterating. The
result is scaled back afterwards.
"""

from __future__ import annotations

import logging
import math
from typing import Callable

from .limited_search import limited_search_exponential, limited_search_sinh
from .return_mapping import ReturnMapResult

logger = logging.getLogger(__name__)

_MIDPOINT_TOLERANCE = 1e-4
_YIELD_TOLERANCE = 1e-4


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


def _cosh(x: float) -> float:
    try:
        return math.cosh(x)
    except OverflowError:
        return math.inf


def _sqrt(x: float) -> float:
    return math.sqrt(x) if x >= 0 else math.nan


def _div(a: float, b: float) -> float:
    """Floating-point division that yields inf or nan instead of raising."""
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _apex_q(p: float, M: float, p0: float, beta: float) -> float:
    return M * _sqrt((p0 - p) * (beta * p0 + p))


def _iterate(
    p: float,
    q: float,
    M: float,
    beta: float,
    mu: float,
    K: float,
    epv: float,
    p0_t: float,
    max_iter: int,
    p0_of: Callable[[float], tuple[float, float]],
    search: Callable[[float, float, float, float, int], tuple[float, int]],
    warn_threshold: float,
    fail_on_no_convergence: bool,
) -> ReturnMapResult:
    """Shared Newton loop on already scaled quantities.

    ``p0_of(epv)`` returns ``(p0, dp0_depv)``. ``search(epv, epv_t, delta, p_t,
    right)`` returns the damped iterate and the updated apex side.
    """
    Msq = M * M
    p0 = 1.0
    p_t, q_t, epv_t = p, q, epv
    right = 1 if p_t > 0.5 * (p0 - beta * p0) else 0
    failed = False

    for iteration in range(max_iter):
        midpoint = (p0 - beta * p0) * 0.5
        if abs(p - midpoint) < _MIDPOINT_TOLERANCE:
            # At the apex there is no plastic flow in p: map q onto the top.
            q = _apex_q(p, M, p0, beta)
            return ReturnMapResult(True, p * p0_t, q * p0_t, failed)

        p = (epv - epv_t) * K + p_t
        p0, dp0_depv = p0_of(epv)

        denom = 2.0 * K * Msq * p + Msq * (beta - 1.0) * K * p0
        dg_step = _div(p_t - p, denom)
        q_denom = 1.0 + 2.0 * mu * dg_step
        q = _div(q_t, q_denom)

        y = Msq * (p - p0) * (p + beta * p0) + q * q

        if iteration > 5 and abs(y) < _YIELD_TOLERANCE:
            break

        if iteration == max_iter - 1 and p0 > warn_threshold:
            logger.warning(
                "RMA: did not converge: y=%s p0=%s K=%s G=%s pt=%s qt=%s "
                "epvt=%s epv=%s p=%s q=%s p0_t=%s",
                y, p0, K, mu, p_t, q_t, epv_t, epv, p, q, p0_t,
            )
            if fail_on_no_convergence:
                failed = True

        dp_depv = K
        ddelta_gamma_depv = _div(-dp_depv, denom) - _div(
            (p_t - p) * (2.0 * K * Msq * dp_depv + Msq * (beta - 1.0) * K * dp0_depv),
            denom * denom,
        )
        dq_depv = _div(-q_t * 2.0 * mu * ddelta_gamma_depv, q_denom * q_denom)
        dy_depv = (
            Msq * (dp_depv - dp0_depv) * (p + beta * p0)
            + Msq * (p - p0) * (beta * dp0_depv + dp_depv)
            + 2.0 * q * dq_depv
        )

        try:
            epv, right = search(epv, epv_t, _div(y, dy_depv), p_t, right)
        except ArithmeticError:
            logger.warning(
                "RMA: no valid epv value found at iteration %s: y=%s p0=%s K=%s "
                "G=%s pt=%s qt=%s epvt=%s epv=%s p=%s q=%s p0_t=%s",
                iteration, y, p0, K, mu, p_t, q_t, epv_t, epv, p, q, p0_t,
            )
            failed = True
            break

    p = min(max(p, -beta * p0), p0)
    q = _apex_q(p, M, p0, beta)
    return ReturnMapResult(True, p * p0_t, q * p0_t, failed)


def mcc_rma_implicit_exponential_onevar(
    p: float,
    q: float,
    M: float,
    p00: float,
    beta: float,
    mu: float,
    K: float,
    xi: float,
    rma_prefac: float,
    epv: float,
) -> ReturnMapResult:
    """Return mapping under the hardening law p0 = p00 exp(-xi epv).

    ``rma_prefac`` is accepted for a uniform signature and is not used.
    """
    p0_t = p00 * _exp(-xi * epv)
    Msq = M * M
    y = Msq * (p * p + (beta - 1.0) * p0_t * p - beta * p0_t * p0_t) + q * q
    if y <= 0:
        return ReturnMapResult(False, p, q)

    scale = 1.0 / p0_t
    p00 *= scale
    p *= scale
    q *= scale
    mu *= scale
    K *= scale

    def p0_of(e: float) -> tuple[float, float]:
        p0 = p00 * _exp(-xi * e)
        return p0, -xi * p0

    def search(e: float, e_t: float, delta: float, p_t: float, right: int):
        return limited_search_exponential(e, e_t, delta, xi, K, p_t, p00, beta, right)

    return _iterate(
        p, q, M, beta, mu, K, epv, p0_t,
        max_iter=30,
        p0_of=p0_of,
        search=search,
        warn_threshold=1e-3 * scale,
        fail_on_no_convergence=False,
    )


def mcc_rma_implicit_sinh_onevar(
    p: float,
    q: float,
    M: float,
    p00: float,
    beta: float,
    mu: float,
    K: float,
    xi: float,
    rma_prefac: float,
    epv: float,
) -> ReturnMapResult:
    """Return mapping under p0 = K sinh(-xi epv + asinh(p00 / K)), floored at 0.01.

    ``rma_prefac`` is accepted for a uniform signature and is not used. The
    result is flagged as failed when the iteration does not converge.
    """
    p0 = max(0.01, K * _sinh(-xi * epv + math.asinh(p00 / K)))
    Msq = M * M
    y = Msq * (p * p + (beta - 1.0) * p0 * p - beta * p0 * p0) + q * q
    if y <= 0:
        return ReturnMapResult(False, p, q)

    p0_t = p0
    scale = 1.0 / p0_t
    p0_min = 0.01 * scale
    p00 *= scale
    p *= scale
    q *= scale
    mu *= scale
    K *= scale
    offset = math.asinh(p00 / K)

    def p0_of(e: float) -> tuple[float, float]:
        arg = -xi * e + offset
        helper = K * _sinh(arg)
        derivative = -xi * K * _cosh(arg)
        # Smoothed derivative of max(p0_min, helper).
        if helper > p0_min:
            dp0 = 0.5 * (derivative + derivative - p0_min)
        else:
            dp0 = 0.5 * (derivative + p0_min - derivative)
        return max(p0_min, helper), dp0

    def search(e: float, e_t: float, delta: float, p_t: float, right: int):
        return limited_search_sinh(e, e_t, delta, xi, K, p_t, p00, p0_min, beta, right)

    return _iterate(
        p, q, M, beta, mu, K, epv, p0_t,
        max_iter=40,
        p0_of=p0_of,
        search=search,
        warn_threshold=p0_min,
        fail_on_no_convergence=True,
    )