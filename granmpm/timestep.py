"""Time step selection and the ramped gravity schedule."""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

_MIN_SPEED = 1e-10


def compute_dt(
    velocities,
    cfl: float,
    dx: float,
    dt_max: float,
    wave_speed: float,
    frame_dt: float,
    frame: int,
    time: float,
    final_time: float,
) -> float:
    """The time step from the CFL condition, limited by frame and end times."""
    velocities = np.asarray(velocities, dtype=float)
    if velocities.ndim != 2 or velocities.shape[0] == 0:
        raise ValueError("velocities must be a non-empty (count, dim) array")

    max_speed = float(np.sqrt(np.max(np.sum(velocities * velocities, axis=1))))

    if max_speed >= wave_speed:
        logger.warning(
            "Detected particle speed %s larger than elastic wave speed %s",
            max_speed,
            wave_speed,
        )

    if abs(max_speed) > _MIN_SPEED:
        dt = min(cfl * dx / max_speed, dt_max)
    else:
        dt = dt_max

    dt = min(dt, frame_dt * (frame + 1) - time)
    dt = min(dt, final_time - time)
    return dt


def ramped_gravity(gravity_final, time: float, gravity_time: float) -> np.ndarray:
    """Gravity growing linearly from zero until ``gravity_time``, then constant."""
    gravity_final = np.asarray(gravity_final, dtype=float)
    if time < gravity_time:
        return gravity_final * time / gravity_time
    return gravity_final.copy()