"""Core enumerations and the particle and grid containers."""

from __future__ import annotations

from enum import Enum, auto

import numpy as np


class BC(Enum):
    """Boundary condition applied where material meets an object."""

    NoSlip = auto()


class PlateType(Enum):
    """Which side of the domain a plate bounds."""

    left = auto()
    right = auto()
    bottom = auto()
    top = auto()
    back = auto()
    front = auto()


class ElasticModel(Enum):
    """Hyperelastic model used for the elastic response."""

    NeoHookean = auto()
    Hencky = auto()


class PlasticModel(Enum):
    """Plastic flow model applied after the elastic predictor."""

    NoPlasticity = auto()
    DPVisc = auto()
    MCCVisc = auto()
    DPMui = auto()
    MCCMui = auto()


class HardeningLaw(Enum):
    """Hardening law for the consolidation pressure."""

    ExpoImpl = auto()


def _check_dim(dim: int) -> int:
    if dim not in (2, 3):
        raise ValueError(f"dimension must be 2 or 3, got {dim}")
    return dim


class Particles:
    """Per-particle state stored as numpy arrays indexed by particle."""

    def __init__(self, count: int = 1, dim: int = 2) -> None:
        if count < 0:
            raise ValueError(f"particle count must be non-negative, got {count}")
        self.dim = _check_dim(dim)
        self.x = np.zeros((count, dim))
        self.v = np.zeros((count, dim))
        self.pic = np.zeros((count, dim))
        self.flip = np.zeros((count, dim))

        self.eps_pl_dev = np.zeros(count)
        self.eps_pl_vol = np.zeros(count)
        self.eps_pl_vol_pradhana = np.zeros(count)
        self.delta_gamma = np.zeros(count)
        self.viscosity = np.zeros(count)
        self.muI = np.zeros(count)

        self.F = np.tile(np.eye(dim), (count, 1, 1))
        self.Bmat = np.zeros((count, dim, dim))

    def __len__(self) -> int:
        return self.x.shape[0]


class Grid:
    """Background Eulerian grid: axis coordinates plus nodal fields."""

    def __init__(self, dim: int = 2) -> None:
        self.dim = _check_dim(dim)
        self.x = np.zeros(0)
        self.y = np.zeros(0)
        self.z = np.zeros(0)
        self.v = np.zeros((0, dim))
        self.flip = np.zeros((0, dim))
        self.mass = np.zeros(0)
        self.friction = np.zeros(0)
        self.xc = 0.0
        self.yc = 0.0
        self.zc = 0.0

    @property
    def axes(self) -> tuple[np.ndarray, ...]:
        """The coordinate arrays of the active dimensions."""
        return (self.x, self.y, self.z)[: self.dim]

    @property
    def shape(self) -> tuple[int, ...]:
        """Number of nodes along each axis."""
        return tuple(len(axis) for axis in self.axes)

    def node_positions(self) -> np.ndarray:
        """Positions of all nodes, the last axis varying fastest."""
        mesh = np.meshgrid(*self.axes, indexing="ij")
        return np.stack([m.ravel() for m in mesh], axis=-1)