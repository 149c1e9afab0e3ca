"""Hyperelastic stress measures: first Piola-Kirchhoff and Kirchhoff stress.

All functions accept a single deformation gradient of shape ``(d, d)`` or a
stack of them of shape ``(..., d, d)``.
"""

from __future__ import annotations

import numpy as np

from .data_structures import ElasticModel


def _transpose(a: np.ndarray) -> np.ndarray:
    return np.swapaxes(a, -1, -2)


def neo_hookean_piola(Fe, mu: float, lam: float) -> np.ndarray:
    """First Piola-Kirchhoff stress of the compressible Neo-Hookean model."""
    Fe = np.asarray(Fe, dtype=float)
    inv_t = _transpose(np.linalg.inv(Fe))
    with np.errstate(invalid="ignore", divide="ignore"):
        log_j = np.log(np.linalg.det(Fe))
    return mu * (Fe - inv_t) + lam * np.asarray(log_j)[..., None, None] * inv_t


def hencky_piola(Fe, mu: float, lam: float) -> np.ndarray:
    """First Piola-Kirchhoff stress of the Hencky (logarithmic strain) model."""
    Fe = np.asarray(Fe, dtype=float)
    U, sigma, Vh = np.linalg.svd(Fe)
    with np.errstate(invalid="ignore", divide="ignore"):
        log_sigma = np.log(np.abs(sigma))
        inv_sigma = 1.0 / sigma
        trace_log = np.sum(log_sigma, axis=-1, keepdims=True)
        diagonal = 2 * mu * inv_sigma * log_sigma + lam * trace_log * inv_sigma
    return (U * diagonal[..., None, :]) @ Vh


def kirchhoff_stress(Fe, elastic_model: ElasticModel, mu: float, lam: float) -> np.ndarray:
    """Kirchhoff stress ``tau = P Fe^T`` for the chosen elastic model."""
    Fe = np.asarray(Fe, dtype=float)
    if elastic_model is ElasticModel.NeoHookean:
        piola = neo_hookean_piola(Fe, mu, lam)
    elif elastic_model is ElasticModel.Hencky:
        piola = hencky_piola(Fe, mu, lam)
    else:
        raise ValueError(f"unsupported elastic model {elastic_model!r}")
    return piola @ _transpose(Fe)