# granmpm

Building blocks for material point method (MPM) simulations of elastic,
elastoplastic and granular materials in two or three dimensions. The package
is built on NumPy.

## Modules

### `granmpm.data_structures`

This module holds the containers and the enumerations used throughout the
package.

- `Particles(count, dim)` stores per-particle NumPy arrays:
  - `x`, `v`, `pic` and `flip` are vectors.
  - `eps_pl_dev`, `eps_pl_vol`, `eps_pl_vol_pradhana`, `delta_gamma`,
    `viscosity` and `muI` are scalars.
  - `F` starts as the identity.
  - `Bmat` starts at zero.
  - `len(particles)` is the particle count.
- `Grid(dim)` holds:
  - the axis coordinates `x`, `y` and `z`;
  - the origin `xc`, `yc` and `zc`;
  - the nodal fields `v`, `flip`, `mass` and `friction`.

  `node_positions()` returns every node position, with the last axis varying
  fastest.
- The enumerations are `BC`, `PlateType`, `ElasticModel`, `PlasticModel` and
  `HardeningLaw`.
- Only dimensions 2 and 3 are accepted. Any other value raises `ValueError`.

### `granmpm.objects`

This module holds analytic obstacles. Each one has `bc`, `friction` and
`name`, and answers `inside(x)` and `normal(x)`.

| Class | What it is |
| --- | --- |
| `ObjectGround` | everything at or below `y_ground` |
| `ObjectCurve` | the region below `y = x²` |
| `ObjectBump` | ground with a sech-shaped bump |
| `ObjectRamp` | ground following a tanh step |
| `ObjectGate` | the region above `y = height + 100 x²` |
| `ObjectSilo` | a 3D silo wall of radius `tanh(y) + 1` above `cut` |

All of them derive from the abstract `ObjectGeneral`.

### `granmpm.plate`

`ObjectPlate` is an axis-aligned plate of one `PlateType`:

- `left`, `right`, `bottom` and `top` can be bounded by `pos_lower` and
  `pos_upper`.
- `back` and `front` exist in 3D only.

`inside(x)` tests a point. A `back` or `front` plate given a 2D point raises
`ValueError`.

`move(dt, frame_dt, time)` advances the plate with its velocity. While `time`
is below `load_factor * frame_dt`, that velocity is divided by `vmin_factor`.

### `granmpm.return_mapping` and `granmpm.return_mapping_onevar`

These modules hold Modified Cam-Clay return mappings onto the yield surface
`y = M²(p − p0)(p + β p0) + q²`.

Each function returns a `ReturnMapResult` with four fields:

- `plastic`
- `p`
- `q`
- `failed`, which is set when an iteration gave up.

An elastic trial state is returned unchanged with `plastic=False`.

- `mcc_rma_explicit` solves with a fixed `p0`, using a three-variable Newton
  iteration.
- `mcc_rma_explicit_onevar` solves with a fixed `p0`, using Newton on the
  plastic multiplier.
- `mcc_rma_implicit_exponential` solves with exponential hardening
  `p0 = p00 exp(−ξ epv)`.
- `mcc_rma_implicit_exponential_onevar` and `mcc_rma_implicit_sinh_onevar`
  use Newton on the plastic volumetric strain. The first uses exponential
  hardening. The second uses sinh hardening, floored at 0.01.

Convergence problems are reported through the `logging` module.

### `granmpm.limited_search`

This module holds the damped line searches `limited_search_exponential` and
`limited_search_sinh`. They are used by the one-variable mappings.

Each search returns `(epv, right)`. When no admissible step exists in either
direction, it raises `ArithmeticError`.

### `granmpm.stress`

This module holds `neo_hookean_piola`, `hencky_piola` and `kirchhoff_stress`.
Each accepts a single deformation gradient or a stack of them.

### `granmpm.remesh`

This module builds the background grid.

- `arange(start, stop, step)` returns evenly spaced values up to, but not
  including, `stop`.
- `remesh_fixed(lengths, dx, extra_nodes)` builds a padded grid over the box
  `[0, L]`.
- `remesh_fixed_init(positions, dx, safety_factors, reference_point)` builds
  the first grid around the particles. It returns `(grid, RemeshState)`.
- `remesh_fixed_cont(positions, dx, state)` builds later grids. Each one is
  shifted by whole cells from the first.
- `resize_grid(grid, use_mibf)` zeroes the nodal fields.

### `granmpm.timestep`

- `compute_dt(...)` picks the time step. It takes the smaller of the CFL step
  and `dt_max`, and then cuts that step so it does not pass the end of the
  frame or the final time.
- `ramped_gravity(gravity_final, time, gravity_time)` grows gravity linearly
  until `gravity_time`.

### `granmpm.output`

- `write_ply(path, properties)` writes scalar vertex properties as a binary
  little-endian PLY file of doubles.
- `read_ply(path)` reads the vertex element back. It handles ASCII and binary
  PLY files.
- `particle_stress_measures` returns pressure, deviatoric stress and `Je` for
  each particle.
- `compute_avg_data` returns the volume-averaged Cauchy stress, the
  volume-averaged Kirchhoff stress and the mean Jacobian.
- `OutputWriter(directory, sim_name)` writes files into the existing
  directory `directory/sim_name`:

| Method | File |
| --- | --- |
| `save_particles` | `particles_f<extra><frame>.ply`, plus `last_written.txt` |
| `save_grid` | `grid_f<extra><frame>.ply` |
| `save_avg` | `avg_cauchy_frame_<frame>.csv`, `avg_kirchh_frame_<frame>.csv`, `avg_J_frame_<frame>.csv`, `last_saved_frame.txt` |
| `save_info` | `info.txt` |
| `save_timing` | `info_timing.txt` |

### `granmpm.simulation`

`Simulation(dim)` holds the material parameters, the particles, the grid, the
plates and the objects.

- `initialize(save, directory, name)` sets the output location. When saving,
  it creates the directories.
- `prepare()` derives the elastic constants, the wave speed, `dt_max` and the
  plasticity prefactors. When saving, it also writes `info.txt` and the
  first particle file.

  It raises an error in these cases:
  - the simulation is not initialised;
  - a plastic model is combined with non-Hencky elasticity;
  - `dx` is missing or not positive;
  - `spline_degree` is unsupported.

The step-level operations are:

- `update_dt`
- `remesh`
- `position_update`, which covers the PIC, FLIP and APIC blends and the
  periodic wrap in x
- `move_objects`
- `overwrite_grid_velocity`

`check_mass_conservation` and `check_momentum_conservation` raise
`RuntimeError` on a mismatch. The `save_*` methods write through an
`OutputWriter`.

## Example

```python
import numpy as np

from granmpm.data_structures import BC, PlateType
from granmpm.objects import ObjectGround
from granmpm.plate import ObjectPlate
from granmpm.return_mapping import mcc_rma_explicit

ground = ObjectGround(BC.NoSlip, 0.0, "ground", 0.0)
ground.inside(np.array([0.5, -0.1]))   # True
ground.normal(np.array([0.5, -0.1]))   # array([0., 1.])

plate = ObjectPlate(1.0, PlateType.left, BC.NoSlip, 0.0,
                    -1e15, 1e15, 0.1, 0.0, 0.0, 1.0, 0.0, "piston")
plate.move(0.01, 0.1, 0.0)             # pos_object becomes 1.001

result = mcc_rma_explicit(p=500.0, q=900.0, M=1.0, p0=1000.0,
                          beta=0.0, mu=1e5, K=2e5, rma_prefac=1.0)
result.plastic                         # True: the trial state was outside
```

## What the package does not do

The package has no complete time-stepping loop, and it has no command-line
program. Several steps of an MPM step are not provided:

- particle-to-grid and grid-to-particle transfer;
- the explicit grid velocity update;
- collision of grid velocities with objects and plates;
- the deformation gradient and plasticity update per particle;
- the MUSL correction;
- adding and removing periodic ghost particles.

`Simulation` supplies the state and the surrounding steps. The transfers and
updates above must be supplied by the caller.

## Running the tests

```
pip install -e .[test]
pytest
```