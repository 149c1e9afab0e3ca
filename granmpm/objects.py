"""Analytic boundary objects described by an inside test and a normal."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from .data_structures import BC


def _unit(n: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(n)
    return n / norm if norm > 0 else n


class ObjectGeneral(ABC):
    """An object with a boundary condition, a friction and a name."""

    def __init__(self, bc: BC, friction: float, name: str = "") -> None:
        self.bc = bc
        self.friction = float(friction)
        self.name = name

    @abstractmethod
    def inside(self, x) -> bool:
        """Whether the point lies inside the object."""

    @abstractmethod
    def normal(self, x) -> np.ndarray:
        """Outward unit normal of the object boundary at the point."""


class ObjectBump(ObjectGeneral):
    """Ground with a smooth sech-shaped bump."""

    def inside(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        with np.errstate(over="ignore"):
            y_limit = 0.0475 / np.cosh(25 * (x[0] - 0.43))
        return bool(x[1] < y_limit)

    def normal(self, x) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        arg = 25 * (x[0] - 0.43)
        with np.errstate(over="ignore"):
            b_der = -25 * 0.0475 * np.tanh(arg) / np.cosh(arg)
        n = np.zeros_like(x)
        n[0] = -b_der
        n[1] = 1.0
        return _unit(n)


class ObjectCurve(ObjectGeneral):
    """Region below the parabola y = x^2."""

    def __init__(self, bc: BC = BC.NoSlip, friction: float = 0.0, name: str = "") -> None:
        super().__init__(bc, friction, name)

    def inside(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        return not bool(x[1] > x[0] * x[0])

    def normal(self, x) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        n = np.zeros_like(x)
        n[0] = -2 * x[0]
        n[1] = 1.0
        return _unit(n)


class ObjectGate(ObjectGeneral):
    """Region above the parabola y = height + 100 x^2."""

    def __init__(
        self, bc: BC, friction: float, name: str = "", height: float = 0.016
    ) -> None:
        super().__init__(bc, friction, name)
        self.height = float(height)

    def inside(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        y_limit = self.height + 100 * x[0] * x[0]
        return bool(x[1] > y_limit)

    def normal(self, x) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        n = np.zeros_like(x)
        n[0] = -(2.0 * 100 * x[0])
        n[1] = 1.0
        return _unit(-n)


class ObjectGround(ObjectGeneral):
    """Everything at or below a horizontal level."""

    def __init__(
        self,
        bc: BC = BC.NoSlip,
        friction: float = 0.0,
        name: str = "",
        y_ground: float = 0.0,
    ) -> None:
        super().__init__(bc, friction, name)
        self.y_ground = float(y_ground)

    def inside(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        return not bool(x[1] > self.y_ground)

    def normal(self, x) -> np.ndarray:
        n = np.zeros(len(x))
        n[1] = 1.0
        return n


class ObjectRamp(ObjectGeneral):
    """Ground following a tanh-shaped step down."""

    def inside(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        y_limit = 0.1 * np.tanh(-100 * x[0])
        return bool(x[1] < y_limit)

    def normal(self, x) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        with np.errstate(over="ignore"):
            tmp = np.cosh(-100 * x[0])
            b_der = 0.1 * (-100) / (tmp * tmp)
        n = np.zeros_like(x)
        n[0] = -b_der
        n[1] = 1.0
        return _unit(n)


class ObjectSilo(ObjectGeneral):
    """Wall of a three-dimensional silo of radius tanh(y) + 1 above a cut."""

    def __init__(self, bc: BC, friction: float, name: str = "", cut: float = -1.0) -> None:
        super().__init__(bc, friction, name)
        self.cut = float(cut)

    def inside(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        px, py, pz = x[0], x[1], x[2]
        if py < self.cut:
            return False
        r_surface = np.tanh(py) + 1
        return not bool(px * px + pz * pz < r_surface * r_surface)

    def normal(self, x) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        theta = np.arctan2(x[2], x[0])
        with np.errstate(over="ignore"):
            sech_y = 1.0 / np.cosh(x[1])
        n = np.array([-np.cos(theta), sech_y * sech_y, -np.sin(theta)])
        return _unit(n)