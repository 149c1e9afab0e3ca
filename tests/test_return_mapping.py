import pytest

from granmpm.return_mapping import (
    ReturnMapResult,
    mcc_rma_explicit,
    mcc_rma_explicit_onevar,
    mcc_rma_implicit_exponential,
)

MODULI = dict(mu=5.0, K=10.0, rma_prefac=1.0)


def _yield(p, q, M, p0, beta):
    return M * M * (p - p0) * (p + beta * p0) + q * q


def test_elastic_state_is_unchanged():
    results = [
        mcc_rma_explicit(0.5, 0.1, M=1.0, p0=1.0, beta=0.0, **MODULI),
        mcc_rma_explicit_onevar(0.5, 0.1, M=1.0, p0=1.0, beta=0.0, **MODULI),
        mcc_rma_implicit_exponential(
            0.5, 0.1, M=1.0, p00=1.0, beta=0.0, xi=0.0, epv=0.0, **MODULI
        ),
    ]
    for result in results:
        assert result == ReturnMapResult(False, 0.5, 0.1)


@pytest.mark.parametrize("p, q", [(0.5, 2.0), (0.8, 1.5), (0.2, 1.0), (3.0, 0.1)])
def test_plastic_state_lands_on_yield_surface(p, q):
    results = [
        mcc_rma_explicit(p, q, M=1.0, p0=1.0, beta=0.0, **MODULI),
        mcc_rma_explicit_onevar(p, q, M=1.0, p0=1.0, beta=0.0, **MODULI),
        mcc_rma_implicit_exponential(
            p, q, M=1.0, p00=1.0, beta=0.0, xi=0.0, epv=0.0, **MODULI
        ),
    ]
    for result in results:
        assert result.plastic
        assert 0.0 <= result.p <= 1.0
        assert result.q >= 0.0
        assert abs(_yield(result.p, result.q, 1.0, 1.0, 0.0)) < 1e-9


def test_cohesion_bounds_tension():
    results = [
        mcc_rma_explicit(-1.0, 0.1, M=1.0, p0=1.0, beta=0.5, **MODULI),
        mcc_rma_explicit_onevar(-1.0, 0.1, M=1.0, p0=1.0, beta=0.5, **MODULI),
        mcc_rma_implicit_exponential(
            -1.0, 0.1, M=1.0, p00=1.0, beta=0.5, xi=0.0, epv=0.0, **MODULI
        ),
    ]
    for result in results:
        assert result.plastic
        assert -0.5 <= result.p <= 1.0
        assert abs(_yield(result.p, result.q, 1.0, 1.0, 0.5)) < 1e-9


def test_onevar_apex_keeps_pressure():
    result = mcc_rma_explicit_onevar(0.5, 2.0, M=1.0, p0=1.0, beta=0.0, **MODULI)
    assert result.plastic
    assert not result.failed
    assert result.p == pytest.approx(0.5)
    assert result.q == pytest.approx((result.p * (1.0 - result.p)) ** 0.5)


def test_onevar_is_scale_invariant():
    base = mcc_rma_explicit_onevar(0.8, 1.5, M=1.2, p0=1.0, beta=0.1, mu=5.0, K=10.0, rma_prefac=1.0)
    c = 3.0
    scaled = mcc_rma_explicit_onevar(
        0.8 * c, 1.5 * c, M=1.2, p0=1.0 * c, beta=0.1, mu=5.0 * c, K=10.0 * c, rma_prefac=1.0
    )
    assert scaled.p == pytest.approx(base.p * c, rel=1e-9)
    assert scaled.q == pytest.approx(base.q * c, rel=1e-9)


def test_implicit_without_hardening_matches_explicit():
    explicit = mcc_rma_explicit(0.8, 1.5, M=1.0, p0=1.0, beta=0.0, **MODULI)
    implicit = mcc_rma_implicit_exponential(
        0.8, 1.5, M=1.0, p00=1.0, beta=0.0, xi=0.0, epv=0.0, **MODULI
    )
    assert implicit.p == pytest.approx(explicit.p, rel=1e-9)
    assert implicit.q == pytest.approx(explicit.q, rel=1e-9)


def test_implicit_hardening_enlarges_elastic_region():
    kwargs = dict(M=1.0, p00=1.0, beta=0.0, xi=1.0, **MODULI)
    softened = mcc_rma_implicit_exponential(0.5, 2.0, epv=0.0, **kwargs)
    hardened = mcc_rma_implicit_exponential(0.5, 2.0, epv=-3.0, **kwargs)
    assert softened.plastic
    assert hardened == ReturnMapResult(False, 0.5, 2.0)