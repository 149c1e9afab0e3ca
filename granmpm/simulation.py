"""Simulation state, parameter setup and the particle-level update steps."""

from __future__ import annotations

import logging
import math
from pathlib import Path

import numpy as np

from .data_structures import (
    ElasticModel,
    Grid,
    HardeningLaw,
    Particles,
    PlasticModel,
)
from .output import OutputWriter, compute_avg_data, particle_stress_measures
from .remesh import RemeshState, remesh_fixed, remesh_fixed_cont, remesh_fixed_init, resize_grid
from .timestep import compute_dt, ramped_gravity

logger = logging.getLogger(__name__)

_CONSERVATION_TOLERANCE = 1e-10
_APIC_FACTORS = {3: 3.0, 2: 4.0, 1: 0.0}


class Simulation:
    """Material point simulation parameters and state for a 2D or 3D run."""

    def __init__(self, dim: int = 2) -> None:
        if dim not in (2, 3):
            raise ValueError(f"dimension must be 2 or 3, got {dim}")
        self.dim = dim

        self.end_frame = 1
        self.is_initialized = False
        self.save_sim = True
        self.reduce_verbose = False
        self.pbc = False
        self.change_particle_positions = False
        self.gravity_special = False
        self.save_grid = False
        self.use_mibf = False
        self.use_musl = False
        self.spline_degree = 2

        self.grid_reference_point = 2e10 * np.ones(dim)
        self.gravity = np.zeros(dim)

        self.fps = 1.0
        self.cfl = 0.5
        self.cfl_elastic = 0.5
        self.flip_ratio = -0.95
        self.rho = 1000.0
        self.gravity_time = 0.0
        self.Lx = 1.0
        self.Ly = 1.0
        self.Lz = 1.0

        self.particles = Particles(1, dim)
        self.particle_mass = 0.0
        self.particle_volume = 0.0
        self.dx: float | None = None

        self.elastic_model = ElasticModel.Hencky
        self.plastic_model = PlasticModel.NoPlasticity
        self.hardening_law = HardeningLaw.ExpoImpl
        self.use_pradhana = True
        self.use_mises_q = False
        self.E = 1e6
        self.nu = 0.3
        self.stress_tolerance = 1e-5
        self.xi = 0.0

        self.q_max = 100.0
        self.q_min = 100.0
        self.p_min = -1e20

        self.M = 1.0
        self.q_cohesion = 0.0

        self.perzyna_exp = 1.0
        self.perzyna_visc = 0.0

        self.beta = 0.0
        self.p0 = 1000.0

        self.rho_s = 2500.0
        self.grain_diameter = 1e-3
        self.I_ref = 0.279
        self.mu_1 = math.tan(20.9 * math.pi / 180.0)
        self.mu_2 = math.tan(32.8 * math.pi / 180.0)

        self.plates: list = []
        self.objects: list = []

        self.current_time_step = 0
        self.frame = 0
        self.time = 0.0
        self.runtime_p2g = 0.0
        self.runtime_g2p = 0.0
        self.runtime_euler = 0.0
        self.runtime_defgrad = 0.0
        self.runtime_total = 0.0

        self.sim_name = "dummy"
        self.directory = "output/"
        self._writer: OutputWriter | None = None

        self.gravity_final = np.zeros(dim)
        self.final_time = 0.0
        self.frame_dt = 0.0
        self.dt = 0.0
        self.dt_max = 0.0
        self.wave_speed = 0.0
        self.mu = 0.0
        self.lam = 0.0
        self.K = 0.0
        self.fac_Q = 0.0

        self.q_prefac = 0.0
        self.d_prefac = 0.0
        self.e_mu_prefac = 0.0
        self.f_mu_prefac = 0.0
        self.rma_prefac = 0.0

        self.one_over_dx = 0.0
        self.one_over_dx_square = 0.0
        self.apicDinverse = 0.0

        self.grid = Grid(dim)
        self.remesh_state: RemeshState | None = None

    @property
    def Np(self) -> int:
        """Number of particles."""
        return len(self.particles)

    @property
    def lengths(self) -> tuple[float, ...]:
        """Domain lengths along the active axes."""
        return (self.Lx, self.Ly, self.Lz)[: self.dim]

    @property
    def output_path(self) -> Path:
        """Directory that receives this simulation's files."""
        return Path(self.directory) / self.sim_name

    def initialize(self, save: bool = True, directory: str = "output/", name: str = "dummy") -> None:
        """Set the output location and, when saving, create its directories."""
        self.save_sim = save
        self.directory = directory
        self.sim_name = name
        self._writer = OutputWriter(directory, name)
        if self.save_sim:
            self.create_directory()
        self.is_initialized = True

    def create_directory(self) -> None:
        """Create the output directory and the simulation's subdirectory."""
        base = Path(self.directory)
        for path, label in ((base, "Directory"), (self.output_path, "Simulation")):
            try:
                path.mkdir(parents=True)
            except FileExistsError:
                logger.info("%s %s has already been created", label, path)
            else:
                logger.info("%s %s was created now", label, path)

    def prepare(self) -> None:
        """Derive the material constants and time stepping limits before stepping."""
        if not self.is_initialized:
            raise RuntimeError("simulation not initialized; call initialize() first")
        if (
            self.elastic_model is not ElasticModel.Hencky
            and self.plastic_model is not PlasticModel.NoPlasticity
        ):
            raise ValueError("this plastic model is only compatible with Hencky elasticity")
        if self.dx is None or self.dx <= 0:
            raise ValueError("grid spacing dx must be set to a positive value")
        if self.spline_degree not in _APIC_FACTORS:
            raise ValueError(f"unsupported spline degree {self.spline_degree}")

        dx = self.dx
        self.apicDinverse = _APIC_FACTORS[self.spline_degree] / (dx * dx)

        self.lam = self.nu * self.E / ((1.0 + self.nu) * (1.0 - 2.0 * self.nu))
        self.mu = self.E / (2.0 * (1.0 + self.nu))
        self.K = self.calculate_bulk_modulus()
        self.wave_speed = math.sqrt(self.E / self.rho)
        self.dt_max = self.cfl_elastic * dx / self.wave_speed
        self.frame_dt = 1.0 / self.fps
        self.gravity_final = np.asarray(self.gravity, dtype=float).copy()

        self.one_over_dx = 1.0 / dx
        self.one_over_dx_square = self.one_over_dx * self.one_over_dx

        if self.use_mises_q:
            self.q_prefac = math.sqrt(3.0) / math.sqrt(2.0)
            self.d_prefac = math.sqrt(2.0) / math.sqrt(3.0)
        else:
            self.q_prefac = 1.0 / math.sqrt(2.0)
            self.d_prefac = math.sqrt(2.0)
        self.e_mu_prefac = 2 * self.q_prefac * self.mu
        self.f_mu_prefac = 2 * self.q_prefac / self.d_prefac * self.mu
        self.rma_prefac = 2 * self.q_prefac * self.q_prefac

        self.fac_Q = self.I_ref / (self.grain_diameter * math.sqrt(self.rho_s))

        if self.use_mibf:
            if self.plastic_model in (PlasticModel.DPMui, PlasticModel.MCCMui):
                self.particles.muI[:] = self.mu_1
            else:
                self.particles.muI[:] = self.M

        logger.info(
            "Np=%s dx=%s wave speed=%s dt_max=%s volume=%s mass=%s",
            self.Np, dx, self.wave_speed, self.dt_max, self.particle_volume, self.particle_mass,
        )

        self.time = 0.0
        self.frame = 0
        self.final_time = self.end_frame * self.frame_dt

        if self.save_sim:
            self.save_info()
            self.save_particle_data()

    def calculate_bulk_modulus(self) -> float:
        """Bulk modulus from the Lame parameters in the simulation's dimension."""
        return self.lam + 2.0 * self.mu / self.dim

    def update_dt(self) -> float:
        """Choose the next time step and update a ramped gravity if enabled."""
        self.dt = compute_dt(
            self.particles.v,
            self.cfl,
            self.dx,
            self.dt_max,
            self.wave_speed,
            self.frame_dt,
            self.frame,
            self.time,
            self.final_time,
        )
        if self.gravity_special:
            self.gravity = ramped_gravity(self.gravity_final, self.time, self.gravity_time)
        return self.dt

    def remesh(self) -> Grid:
        """Rebuild the background grid for the current step and zero its fields."""
        if self.pbc:
            if self.current_time_step == 0:
                self.grid = remesh_fixed(self.lengths, self.dx, 4)
        elif self.current_time_step == 0 or self.remesh_state is None:
            self.grid, self.remesh_state = remesh_fixed_init(
                self.particles.x, self.dx, (2, 2, 2), self.grid_reference_point
            )
        else:
            self.grid = remesh_fixed_cont(self.particles.x, self.dx, self.remesh_state)
        return resize_grid(self.grid, self.use_mibf)

    def position_update(self) -> None:
        """Advect particles with PIC velocities and blend in FLIP velocities."""
        parts = self.particles
        parts.x = parts.x + self.dt * parts.pic

        if not self.use_musl:
            if self.flip_ratio < -1:
                parts.v = parts.pic.copy()
            else:
                ratio = abs(self.flip_ratio)
                parts.v = ratio * (parts.v + parts.flip) + (1 - ratio) * parts.pic

        if self.pbc:
            x0 = parts.x[:, 0]
            parts.x[:, 0] = np.where(x0 > self.Lx, x0 - self.Lx, np.where(x0 < 0, self.Lx + x0, x0))

        if self.change_particle_positions:
            moved = parts.x[:, 0] > 0.8
            parts.x[moved, 0] = -0.1
            parts.x[moved, 1] += 0.27

    def move_objects(self) -> None:
        """Advance every plate by the current time step."""
        for plate in self.plates:
            plate.move(self.dt, self.frame_dt, self.time)

    def check_mass_conservation(self) -> tuple[float, float]:
        """Compare grid and particle mass; raise RuntimeError if they differ."""
        particle_total = self.particle_mass * self.Np
        grid_total = float(np.sum(self.grid.mass))
        logger.debug("total grid mass = %s, total particle mass = %s", grid_total, particle_total)
        if abs(grid_total - particle_total) > _CONSERVATION_TOLERANCE * particle_total:
            raise RuntimeError("mass not conserved")
        return grid_total, particle_total

    def check_momentum_conservation(self) -> tuple[np.ndarray, np.ndarray]:
        """Compare grid and particle momentum; raise RuntimeError if they differ."""
        grid_momentum = np.sum(self.grid.mass[:, None] * self.grid.v, axis=0)
        particle_momentum = self.particle_mass * np.sum(self.particles.v, axis=0)
        logger.debug(
            "grid momentum = %s, particle momentum = %s",
            np.linalg.norm(grid_momentum), np.linalg.norm(particle_momentum),
        )
        difference = np.linalg.norm(grid_momentum - particle_momentum)
        if difference > _CONSERVATION_TOLERANCE * np.linalg.norm(particle_momentum):
            raise RuntimeError("momentum not conserved")
        return grid_momentum, particle_momentum

    def overwrite_grid_velocity(self, xi, vi) -> np.ndarray:
        """Impose a vertical pulling velocity near the top and bottom edges."""
        xi = np.asarray(xi, dtype=float)
        vi = np.array(vi, dtype=float)
        y_start = self.Ly - 0.25 * self.dx
        width = 2 * self.dx
        v_imp = 0.1  # positive means tension
        if xi[1] > y_start - width + v_imp * self.time:
            vi[1] = v_imp
        if xi[1] < width - v_imp * self.time:
            vi[1] = -v_imp
        return vi

    def _output(self) -> OutputWriter:
        if self._writer is None:
            raise RuntimeError("simulation not initialized; call initialize() first")
        return self._writer

    def save_particle_data(self, extra: str = "") -> Path:
        """Write the particle file of the current frame."""
        pressure, devstress, Je = particle_stress_measures(
            self.particles.F, self.elastic_model, self.mu, self.lam, self.use_mises_q
        )
        return self._output().save_particles(
            self.frame, self.particles, pressure, devstress, Je,
            self.plastic_model, self.use_mibf, extra,
        )

    def save_grid_data(self, extra: str = "") -> Path:
        """Write the grid file of the current frame."""
        return self._output().save_grid(self.frame, self.grid, self.use_mibf, extra)

    def save_avg_data(self) -> None:
        """Write the volume-averaged stresses and Jacobian of the current frame."""
        cauchy, kirchhoff, j_avg = compute_avg_data(
            self.particles.F, self.particles.eps_pl_vol, self.elastic_model, self.mu, self.lam
        )
        self._output().save_avg(self.frame, cauchy, kirchhoff, j_avg)

    def save_info(self) -> None:
        """Write the run parameters file."""
        self._output().save_info(self.end_frame, self.fps, self.dx, self.Np, self.particle_volume)

    def save_timing(self) -> None:
        """Write the timing file."""
        self._output().save_timing(
            self.current_time_step,
            self.runtime_total,
            self.runtime_p2g,
            self.runtime_g2p,
            self.runtime_euler,
            self.runtime_defgrad,
        )