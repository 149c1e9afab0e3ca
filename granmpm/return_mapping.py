"""Return mapping onto the Modified Cam-Clay yield surface.

The yield function is ``y = M^2 (p - p0)(p + beta p0) + q^2``. A trial state
with ``y <= 0`` is elastic and is returned unchanged. Otherwise the state is
projected onto the surface.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_Q_FLOOR = 1e-15
_DET_TOLERANCE = 1e-6


@dataclass(frozen=True)
class ReturnMapResult:
    """Outcome of a return mapping: the stress invariants and whether it flowed."""

    plastic: bool
    p: float
    q: float
    failed: bool = False


def _exp(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def _sqrt(x: float) -> float:
    return math.sqrt(x) if x >= 0 else math.nan


def _project(p: float, M: float, p0: float, beta: float) -> tuple[float, float]:
    p = min(max(p, -beta * p0), p0)
    return p, M * _sqrt((p0 - p) * (beta * p0 + p))


def _newton_step(
    p: float,
    q: float,
    delta_gamma: float,
    jac: tuple[float, float, float, float, float, float],
    r1: float,
    r2: float,
    y: float,
    fallback_p0: float,
) -> tuple[float, float, float]:
    J11, J13, J22, J23, J31, J32 = jac
    det = J11 * (-J32 * J23) + J13 * (-J31 * J22)
    if abs(det) < _DET_TOLERANCE:
        logger.debug("RMA: determinant of Jacobian too small: det = %s", det)
        return (
            p - 0.001 * r1,
            q - 0.001 * r2,
            delta_gamma - 0.001 * y / (fallback_p0 * fallback_p0),
        )
    return (
        p - (-J32 * J23 * r1 + J32 * J13 * r2 - J22 * J13 * y) / det,
        q - (J31 * J23 * r1 - J31 * J13 * r2 - J11 * J23 * y) / det,
        delta_gamma - (-J31 * J22 * r1 - J11 * J32 * r2 + J11 * J22 * y) / det,
    )


def _converged(iteration: int, y: float, r1: float, r2: float) -> bool:
    return iteration > 4 and abs(y) < 1e-3 and abs(r1) < 1e-3 and abs(r2) < 1e-3


def mcc_rma_explicit(
    p: float,
    q: float,
    M: float,
    p0: float,
    beta: float,
    mu: float,
    K: float,
    rma_prefac: float,
) -> ReturnMapResult:
    """Return mapping with a fixed consolidation pressure ``p0``."""
    Msq = M * M
    y = Msq * (p - p0) * (p + beta * p0) + q * q
    if not y > 0:
        return ReturnMapResult(False, p, q)

    max_iter = 40
    delta_gamma = 0.0
    pt, qt = p, q
    dkdp = 2 * Msq
    dldq = 2.0
    for iteration in range(max_iter):
        y = Msq * (p - p0) * (p + beta * p0) + q * q
        k = Msq * (beta * p0 + 2 * p - p0)
        l = 2 * q
        r1 = pt - p - K * delta_gamma * k
        r2 = qt - q - rma_prefac * mu * delta_gamma * l

        if _converged(iteration, y, r1, r2):
            break
        if iteration == max_iter - 1:
            if p0 > 0.1:
                logger.warning(
                    "RMA: did not converge: r1=%s r2=%s y=%s p0=%s pt=%s qt=%s p=%s q=%s",
                    r1, r2, y, p0, pt, qt, p, q,
                )
            else:
                p = q = _Q_FLOOR
            break

        jac = (
            -1 - K * delta_gamma * dkdp,
            -K * k,
            -1 - rma_prefac * mu * delta_gamma * dldq,
            -rma_prefac * mu * l,
            k,
            l,
        )
        p, q, delta_gamma = _newton_step(p, q, delta_gamma, jac, r1, r2, y, p0)
        q = max(q, _Q_FLOOR)

    p, q = _project(p, M, p0, beta)
    return ReturnMapResult(True, p, q)


def mcc_rma_explicit_onevar(
    p: float,
    q: float,
    M: float,
    p0: float,
    beta: float,
    mu: float,
    K: float,
    rma_prefac: float,
) -> ReturnMapResult:
    """Return mapping with fixed ``p0``, solved by Newton on the plastic multiplier.

    Stresses and moduli are scaled by ``1/p0`` during the iteration. The
    result is flagged as failed when the iteration does not converge.
    """
    Msq = M * M
    y = Msq * (p - p0) * (p + beta * p0) + q * q
    if not y > 0:
        return ReturnMapResult(False, p, q)

    p0_t = p0
    scale = 1.0 / p0_t
    p0 = 1.0
    p *= scale
    q *= scale
    mu *= scale
    K *= scale
    pt, qt = p, q
    bm1 = beta - 1.0

    max_iter = 100
    delta_gamma = 0.0
    failed = False
    for iteration in range(max_iter):
        p_den = 1.0 + 2.0 * Msq * K * delta_gamma
        q_den = 1.0 + 2.0 * mu * delta_gamma
        p = (pt - Msq * K * delta_gamma * bm1 * p0) / p_den
        q = qt / q_den
        y = Msq * (p - p0) * (p + beta * p0) + q * q

        if iteration > 3 and y < 1e-6:
            break
        if iteration == max_iter - 1:
            logger.warning(
                "RMA: did not converge: y=%s p0=%s pt=%s qt=%s p=%s q=%s",
                y, p0, pt, qt, p, q,
            )
            failed = True
            break

        dp = (-2.0 * Msq * K * pt - Msq * K * bm1 * p0) / (p_den * p_den)
        dq = -2.0 * mu * qt / (q_den * q_den)
        dy = Msq * (2.0 * p * dp + bm1 * p0 * dp) + 2.0 * q * dq
        delta_gamma -= y / dy

    p, q = _project(p, M, p0, beta)
    return ReturnMapResult(True, p * p0_t, q * p0_t, failed)


def mcc_rma_implicit_exponential(
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
    """Return mapping with implicit exponential hardening p0 = p00 exp(-xi epv)."""
    Msq = M * M
    p0 = max(1e-2, p00 * _exp(-xi * epv))
    y = Msq * (p - p0) * (p + beta * p0) + q * q
    if not y > 0:
        return ReturnMapResult(False, p, q)

    max_iter = 40
    delta_gamma = 0.0
    pt, qt = p, q
    ddydqq = 2.0
    for iteration in range(max_iter):
        delta_epv = (p - pt) / K
        p0 = p00 * _exp(-xi * (epv + delta_epv))
        dp0dp = -xi / K * p0
        ddp0dpp = xi * xi / (K * K) * p0

        y = Msq * (p - p0) * (p + beta * p0) + q * q
        dydp = Msq * (2 * p + (beta - 1) * (dp0dp * p + p0) + 2 * beta * p0 * dp0dp)
        ddydpp = Msq * (
            2
            + (beta - 1) * (p * ddp0dpp + 2 * dp0dp)
            + 2 * beta * (dp0dp * dp0dp + p0 * ddp0dpp)
        )
        dydq = 2 * q

        r1 = pt - p - K * delta_gamma * dydp
        r2 = qt - q - rma_prefac * mu * delta_gamma * dydq

        if _converged(iteration, y, r1, r2):
            break
        if iteration == max_iter - 1:
            if p0 > 1.01e-1:
                logger.warning(
                    "RMA: did not converge: r1=%s r2=%s y=%s p0=%s pt=%s qt=%s p=%s q=%s",
                    r1, r2, y, p0, pt, qt, p, q,
                )
            else:
                p = q = _Q_FLOOR
                break

        jac = (
            -1 - K * delta_gamma * ddydpp,
            -K * dydp,
            -1 - rma_prefac * mu * delta_gamma * ddydqq,
            -rma_prefac * mu * dydq,
            dydp,
            dydq,
        )
        p, q, delta_gamma = _newton_step(p, q, delta_gamma, jac, r1, r2, y, p00)
        q = max(q, _Q_FLOOR)

    p, q = _project(p, M, p0, beta)
    return ReturnMapResult(True, p, q)