"""Axis-aligned moving plates bounding the domain."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .data_structures import BC, PlateType


@dataclass
class ObjectPlate:
    """A half-space plate, optionally bounded along its own direction, that moves."""

    pos_object: float
    plate_type: PlateType
    bc: BC = BC.NoSlip
    friction: float = 0.0
    pos_lower: float = -1e15
    pos_upper: float = 1e15
    vx_object: float = 0.0
    vy_object: float = 0.0
    vz_object: float = 0.0
    vmin_factor: float = 1.0
    load_factor: float = 0.0
    name: str = ""
    vx_object_original: float = field(init=False)
    vy_object_original: float = field(init=False)
    vz_object_original: float = field(init=False)

    def __post_init__(self) -> None:
        self.vx_object_original = self.vx_object
        self.vy_object_original = self.vy_object
        self.vz_object_original = self.vz_object

    def _within(self, coordinate: float) -> bool:
        return self.pos_lower < coordinate < self.pos_upper

    def inside(self, x) -> bool:
        """Whether the point lies on the material-excluding side of the plate."""
        x = np.asarray(x, dtype=float)
        kind = self.plate_type
        if kind is PlateType.left:
            return self._within(x[1]) and x[0] - self.pos_object <= 0
        if kind is PlateType.right:
            return self._within(x[1]) and self.pos_object - x[0] <= 0
        if kind is PlateType.bottom:
            return self._within(x[0]) and x[1] - self.pos_object <= 0
        if kind is PlateType.top:
            return self._within(x[0]) and self.pos_object - x[1] <= 0
        if kind in (PlateType.back, PlateType.front) and len(x) < 3:
            raise ValueError(f"invalid plate type {kind.name} for a {len(x)}D point")
        if kind is PlateType.back:
            return bool(x[2] - self.pos_object <= 0)
        if kind is PlateType.front:
            return bool(self.pos_object - x[2] <= 0)
        raise ValueError(f"invalid plate type {kind!r}")

    def move(self, dt: float, frame_dt: float, time: float) -> None:
        """Advance the plate by one time step."""
        factor = 1.0 / self.vmin_factor if time < self.load_factor * frame_dt else 1.0
        self.vx_object = self.vx_object_original * factor
        self.vy_object = self.vy_object_original * factor
        self.vz_object = self.vz_object_original * factor

        kind = self.plate_type
        if kind in (PlateType.left, PlateType.right):
            self.pos_object += dt * self.vx_object
            self.pos_upper += dt * self.vy_object
            self.pos_lower += dt * self.vy_object
        elif kind in (PlateType.bottom, PlateType.top):
            self.pos_object += dt * self.vy_object
            self.pos_upper += dt * self.vx_object
            self.pos_lower += dt * self.vx_object
        elif kind in (PlateType.back, PlateType.front):
            self.pos_object += dt * self.vz_object