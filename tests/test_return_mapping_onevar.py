import math

import pytest

from granmpm.return_mapping_onevar import (
    mcc_rma_implicit_exponential_onevar,
    mcc_rma_implicit_sinh_onevar,
)


def _yield(p, q, M, p0, beta):
    return M * M * (p - p0) * (p + beta * p0) + q * q


def test_elastic_state_is_returned_unchanged():
    results = (
        mcc_rma_implicit_exponential_onevar(0.4, 0.1, 1.0, 1.0, 0.0, 5.0, 10.0, 0.0, 1.0, 0.0),
        mcc_rma_implicit_sinh_onevar(0.4, 0.1, 1.0, 1.0, 0.0, 5.0, 10.0, 0.0, 1.0, 0.0),
    )
    for result in results:
        assert result.plastic is False
        assert result.p == 0.4
        assert result.q == 0.1
        assert result.failed is False


def test_state_on_surface_is_elastic():
    results = (
        mcc_rma_implicit_exponential_onevar(1.0, 0.0, 1.0, 1.0, 0.0, 5.0, 10.0, 0.0, 1.0, 0.0),
        mcc_rma_implicit_sinh_onevar(1.0, 0.0, 1.0, 1.0, 0.0, 5.0, 10.0, 0.0, 1.0, 0.0),
    )
    for result in results:
        assert result.plastic is False
        assert result.p == 1.0
        assert result.q == 0.0


@pytest.mark.parametrize(
    "p, q",
    [(1.5, 0.5), (1.2, 0.8), (0.8, 1.0), (0.2, 0.9)],
)
def test_plastic_state_lands_on_yield_surface_without_hardening(p, q):
    M, p00, beta = 1.0, 1.0, 0.0
    results = (
        mcc_rma_implicit_exponential_onevar(p, q, M, p00, beta, 5.0, 10.0, 0.0, 1.0, 0.0),
        mcc_rma_implicit_sinh_onevar(p, q, M, p00, beta, 5.0, 10.0, 0.0, 1.0, 0.0),
    )
    for result in results:
        assert result.plastic is True
        assert math.isfinite(result.p) and math.isfinite(result.q)
        assert -beta * p00 - 1e-9 <= result.p <= p00 + 1e-9
        assert result.q >= 0
        assert _yield(result.p, result.q, M, p00, beta) == pytest.approx(0.0, abs=1e-6)


def test_trial_point_at_apex_maps_to_top_of_surface():
    M, p00, beta = 1.2, 2.0, 0.0
    p = 0.5 * (1 - beta) * p00
    results = (
        mcc_rma_implicit_exponential_onevar(p, 5.0, M, p00, beta, 5.0, 10.0, 0.0, 1.0, 0.0),
        mcc_rma_implicit_sinh_onevar(p, 5.0, M, p00, beta, 5.0, 10.0, 0.0, 1.0, 0.0),
    )
    for result in results:
        assert result.plastic is True
        assert result.p == pytest.approx(p, rel=1e-6)
        assert result.q == pytest.approx(M * math.sqrt((p00 - p) * (beta * p00 + p)), rel=1e-6)


def test_exponential_result_scales_with_stress_level():
    args = dict(M=1.0, beta=0.1, xi=0.5, rma_prefac=1.0, epv=0.1)
    base = mcc_rma_implicit_exponential_onevar(
        1.5, 0.5, p00=1.0, mu=5.0, K=10.0, **args
    )
    s = 1000.0
    scaled = mcc_rma_implicit_exponential_onevar(
        1.5 * s, 0.5 * s, p00=1.0 * s, mu=5.0 * s, K=10.0 * s, **args
    )
    assert base.plastic and scaled.plastic
    assert scaled.p == pytest.approx(base.p * s, rel=1e-6)
    assert scaled.q == pytest.approx(base.q * s, rel=1e-6)


def test_hardening_result_is_finite_and_non_negative_q():
    results = (
        mcc_rma_implicit_exponential_onevar(1.5, 0.5, 1.0, 1.0, 0.0, 5.0, 10.0, 0.5, 1.0, 0.0),
        mcc_rma_implicit_sinh_onevar(1.5, 0.5, 1.0, 1.0, 0.0, 5.0, 10.0, 0.5, 1.0, 0.0),
    )
    for result in results:
        assert result.plastic is True
        assert math.isfinite(result.p)
        assert math.isfinite(result.q)
        assert result.q >= 0


def test_exponential_with_cohesion_lies_within_bounds():
    M, p00, beta = 1.0, 1.0, 0.3
    result = mcc_rma_implicit_exponential_onevar(
        -0.1, 0.9, M, p00, beta, 5.0, 10.0, 0.0, 1.0, 0.0
    )
    assert result.plastic is True
    assert -beta * p00 - 1e-9 <= result.p <= p00 + 1e-9
    assert _yield(result.p, result.q, M, p00, beta) == pytest.approx(0.0, abs=1e-6)