"""Construction of the background grid around the particles."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .data_structures import Grid

# Values at or above this mark the reference point as unset.
_REFERENCE_UNSET = 1e10


@dataclass(frozen=True)
class RemeshState:
    """Extents recorded by the first remesh and reused by later ones."""

    min_init: np.ndarray
    max_init: np.ndarray
    low_init: np.ndarray
    high_init: np.ndarray
    shape_init: tuple[int, ...]


def arange(start: float, stop: float, step: float) -> np.ndarray:
    """Evenly spaced values from ``start`` up to but excluding ``stop``."""
    if step == 0:
        raise ValueError("step must be non-zero")
    return np.arange(start, stop, step, dtype=float)


def _grid_from_axes(axes: Sequence[np.ndarray]) -> Grid:
    grid = Grid(len(axes))
    for name, axis in zip("xyz", axes):
        if len(axis) == 0:
            raise ValueError(f"grid axis {name} has no nodes")
        setattr(grid, name, axis)
        setattr(grid, f"{name}c", float(axis[0]))
    return grid


def _extents(positions) -> tuple[np.ndarray, np.ndarray]:
    positions = np.asarray(positions, dtype=float)
    if positions.ndim != 2 or positions.shape[0] == 0:
        raise ValueError("positions must be a non-empty (count, dim) array")
    return positions.min(axis=0), positions.max(axis=0)


def remesh_fixed(lengths: Sequence[float], dx: float, extra_nodes: int) -> Grid:
    """A fixed grid covering the box ``[0, L]`` in every direction plus padding.

    The vertical axis gets only one node of padding below zero; the others get
    ``1 + extra_nodes`` on the low side. Every axis gets ``2 + extra_nodes``
    nodes of padding above its length.
    """
    if len(lengths) not in (2, 3):
        raise ValueError(f"expected 2 or 3 lengths, got {len(lengths)}")
    axes = []
    for d, length in enumerate(lengths):
        low = -dx if d == 1 else -dx * (1 + extra_nodes)
        axes.append(arange(low, length + (2 + extra_nodes) * dx, dx))
    return _grid_from_axes(axes)


def remesh_fixed_init(
    positions,
    dx: float,
    safety_factors: Sequence[int] = (2, 2, 2),
    reference_point=None,
) -> tuple[Grid, RemeshState]:
    """The first grid around the particles, padded by ``safety_factors`` nodes.

    A ``reference_point`` with first component below 1e10 is included in the
    extents, so the grid always covers it.
    """
    min_x, max_x = _extents(positions)
    dim = min_x.shape[0]

    if reference_point is not None:
        ref = np.asarray(reference_point, dtype=float)
        if ref[0] < _REFERENCE_UNSET:
            for d in range(dim):
                if ref[d] < min_x[d]:
                    min_x[d] = ref[d]
                elif ref[d] > max_x[d]:
                    max_x[d] = ref[d]

    factors = np.asarray(safety_factors[:dim], dtype=float)
    low = min_x - dx * factors
    high = max_x + dx * factors

    grid = _grid_from_axes([arange(lo, hi + dx, dx) for lo, hi in zip(low, high)])
    state = RemeshState(
        min_init=min_x,
        max_init=max_x,
        low_init=low,
        high_init=high,
        shape_init=grid.shape,
    )
    return grid, state


def _shift(distance: float, dx: float) -> int:
    return math.floor(max(0.0, distance / dx - 1e-8 * dx))


def remesh_fixed_cont(positions, dx: float, state: RemeshState) -> Grid:
    """A grid following the particles, moved by whole cells from the first one."""
    min_x, max_x = _extents(positions)
    if min_x.shape[0] != state.min_init.shape[0]:
        raise ValueError("positions do not match the dimension of the remesh state")

    axes = []
    for d in range(min_x.shape[0]):
        if max_x[d] < state.max_init[d]:
            high = state.high_init[d] - _shift(state.max_init[d] - max_x[d], dx) * dx
        else:
            high = state.high_init[d] + _shift(max_x[d] - state.max_init[d], dx) * dx

        if min_x[d] > state.min_init[d]:
            low = state.low_init[d] + _shift(min_x[d] - state.min_init[d], dx) * dx
        else:
            low = state.low_init[d] - _shift(state.min_init[d] - min_x[d], dx) * dx

        axes.append(arange(low, high + dx, dx))
    return _grid_from_axes(axes)


def resize_grid(grid: Grid, use_mibf: bool = False) -> Grid:
    """Reset the nodal fields to zero, sized to the grid's node count."""
    nodes = int(np.prod(grid.shape))
    grid.v = np.zeros((nodes, grid.dim))
    grid.flip = np.zeros((nodes, grid.dim))
    grid.mass = np.zeros(nodes)
    if use_mibf:
        grid.friction = np.zeros(nodes)
    else:
        grid.friction = np.zeros_like(grid.friction)
    return grid