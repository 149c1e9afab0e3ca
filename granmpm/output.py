"""Writing simulation output: PLY point data, averages, info and timing files."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

import numpy as np

from .data_structures import ElasticModel, Grid, Particles, PlasticModel
from .stress import kirchhoff_stress

_PLY_TYPES = {
    "char": "i1", "int8": "i1",
    "uchar": "u1", "uint8": "u1",
    "short": "i2", "int16": "i2",
    "ushort": "u2", "uint16": "u2",
    "int": "i4", "int32": "i4",
    "uint": "u4", "uint32": "u4",
    "float": "f4", "float32": "f4",
    "double": "f8", "float64": "f8",
}

_ENDIAN = {"binary_little_endian": "<", "binary_big_endian": ">"}

_AXES = "xyz"


def write_ply(path, properties: Mapping[str, np.ndarray]) -> None:
    """Write scalar vertex properties as a binary little-endian PLY file."""
    if not properties:
        raise ValueError("at least one property is required")
    columns = {name: np.asarray(values, dtype=float).ravel() for name, values in properties.items()}
    lengths = {len(c) for c in columns.values()}
    if len(lengths) != 1:
        raise ValueError("all properties must have the same length")
    count = lengths.pop()

    records = np.empty(count, dtype=[(name, "<f8") for name in columns])
    for name, column in columns.items():
        records[name] = column

    header = ["ply", "format binary_little_endian 1.0", f"element vertex {count}"]
    header += [f"property double {name}" for name in columns]
    header.append("end_header")
    with open(path, "wb") as out:
        out.write(("\n".join(header) + "\n").encode("ascii"))
        out.write(records.tobytes())


def read_ply(path) -> dict[str, np.ndarray]:
    """Read the scalar properties of the vertex element of a PLY file."""
    data = Path(path).read_bytes()
    marker = b"end_header\n"
    end = data.find(marker)
    if not data.startswith(b"ply") or end < 0:
        raise ValueError(f"{path} is not a PLY file")
    body = data[end + len(marker):]

    fmt = None
    elements: list[tuple[str, int, list[tuple[str, str]]]] = []
    for line in data[:end].decode("ascii").splitlines()[1:]:
        words = line.split()
        if not words or words[0] in ("comment", "obj_info"):
            continue
        if words[0] == "format":
            fmt = words[1]
        elif words[0] == "element":
            elements.append((words[1], int(words[2]), []))
        elif words[0] == "property":
            if not elements:
                raise ValueError("property declared before any element")
            if words[1] == "list":
                raise ValueError("list properties are not supported")
            if words[1] not in _PLY_TYPES:
                raise ValueError(f"unknown PLY type {words[1]}")
            elements[-1][2].append((words[2], _PLY_TYPES[words[1]]))
        else:
            raise ValueError(f"unexpected header line {line!r}")

    if fmt is None:
        raise ValueError("PLY header has no format line")

    ascii_rows = body.decode("ascii").split("\n") if fmt == "ascii" else None
    if fmt != "ascii" and fmt not in _ENDIAN:
        raise ValueError(f"unknown PLY format {fmt}")

    offset = 0
    for name, count, props in elements:
        if fmt == "ascii":
            rows = ascii_rows[offset:offset + count]
            offset += count
            table = np.array([r.split() for r in rows], dtype=float).reshape(count, len(props))
            columns = {p: table[:, i].astype(t) for i, (p, t) in enumerate(props)}
        else:
            dtype = np.dtype([(p, _ENDIAN[fmt] + t) for p, t in props])
            size = dtype.itemsize * count
            if offset + size > len(body):
                raise ValueError("PLY body is shorter than its header declares")
            records = np.frombuffer(body, dtype=dtype, count=count, offset=offset)
            offset += size
            columns = {p: records[p].astype(records[p].dtype.newbyteorder("=")) for p, _ in props}
        if name == "vertex":
            return columns
    raise ValueError(f"{path} has no vertex element")


def particle_stress_measures(
    F, elastic_model: ElasticModel, mu: float, lam: float, use_mises_q: bool
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Pressure, deviatoric stress measure and elastic Jacobian per particle."""
    F = np.asarray(F, dtype=float)
    dim = F.shape[-1]
    tau = kirchhoff_stress(F, elastic_model, mu, lam)
    pressure = -np.einsum("...ii->...", tau) / dim
    tau_dev = tau + pressure[..., None, None] * np.eye(dim)
    self_double_dot = np.sum(tau_dev * tau_dev, axis=(-2, -1))
    factor = 1.5 if use_mises_q else 0.5
    devstress = np.sqrt(factor * self_double_dot)
    Je = np.linalg.det(F)
    return pressure, devstress, Je


def compute_avg_data(
    F, eps_pl_vol, elastic_model: ElasticModel, mu: float, lam: float
) -> tuple[np.ndarray, np.ndarray, float]:
    """Volume-averaged Cauchy and Kirchhoff stresses and the mean total Jacobian."""
    F = np.asarray(F, dtype=float)
    if F.ndim != 3 or F.shape[0] == 0:
        raise ValueError("F must be a non-empty (count, dim, dim) array")
    tau = kirchhoff_stress(F, elastic_model, mu, lam)
    J = np.linalg.det(F) * np.exp(np.asarray(eps_pl_vol, dtype=float))
    j_sum = float(np.sum(J))
    cauchy = tau.sum(axis=0) / j_sum
    kirchhoff = (tau * J[:, None, None]).sum(axis=0) / j_sum
    return cauchy, kirchhoff, j_sum / F.shape[0]


def _fmt(value) -> str:
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    return f"{float(value):g}"


def _vector_properties(prefix: str, values: np.ndarray) -> dict[str, np.ndarray]:
    values = np.asarray(values, dtype=float)
    return {prefix + _AXES[d]: values[:, d] for d in range(values.shape[1])}


class OutputWriter:
    """Writes the files of one simulation into ``directory/sim_name``."""

    def __init__(self, directory, sim_name: str) -> None:
        self.directory = Path(directory)
        self.sim_name = sim_name
        self.path = self.directory / sim_name

    def _write_text(self, name: str, lines) -> Path:
        target = self.path / name
        target.write_text("".join(f"{line}\n" for line in lines))
        return target

    def save_particles(
        self,
        frame: int,
        particles: Particles,
        pressure,
        devstress,
        Je,
        plastic_model: PlasticModel,
        use_mibf: bool = False,
        extra: str = "",
    ) -> Path:
        """Write the particle PLY file of a frame and record it as last written."""
        props = _vector_properties("", particles.x)
        props.update(_vector_properties("v", particles.v))
        props["p"] = pressure
        props["q"] = devstress
        props["Je"] = Je

        if plastic_model is not PlasticModel.NoPlasticity:
            props["eps_pl_vol"] = particles.eps_pl_vol
            props["eps_pl_dev"] = particles.eps_pl_dev
            props["delta_gamma"] = particles.delta_gamma
            mui_models = (PlasticModel.DPMui, PlasticModel.MCCMui)
            visc_models = (PlasticModel.DPVisc, PlasticModel.MCCVisc)
            if (plastic_model in visc_models and use_mibf) or plastic_model in mui_models:
                props["muI"] = particles.muI
            if plastic_model in mui_models:
                props["viscosity"] = particles.viscosity

        target = self.path / f"particles_f{extra}{frame}.ply"
        write_ply(target, props)
        self._write_text("last_written.txt", [frame])
        return target

    def save_grid(self, frame: int, grid: Grid, use_mibf: bool = False, extra: str = "") -> Path:
        """Write the grid PLY file of a frame."""
        props = _vector_properties("", grid.node_positions())
        props.update(_vector_properties("v", grid.v))
        props["mass"] = grid.mass
        if use_mibf:
            props["friction"] = grid.friction
        target = self.path / f"grid_f{extra}{frame}.ply"
        write_ply(target, props)
        return target

    def save_avg(self, frame: int, cauchy, kirchhoff, Javg: float) -> None:
        """Write the averaged stresses and Jacobian of a frame as CSV files."""
        for prefix, matrix in (("avg_cauchy", cauchy), ("avg_kirchh", kirchhoff)):
            row = ",".join(_fmt(v) for v in np.asarray(matrix, dtype=float).ravel())
            self._write_text(f"{prefix}_frame_{frame}.csv", [row])
        self._write_text(f"avg_J_frame_{frame}.csv", [_fmt(Javg)])
        self._write_text("last_saved_frame.txt", [frame])

    def save_info(self, end_frame: int, fps: float, dx: float, Np: int, particle_volume: float) -> None:
        """Write the simulation parameters file."""
        self._write_text("info.txt", [_fmt(v) for v in (end_frame, fps, dx, Np, particle_volume)])

    def save_timing(
        self,
        time_step: int,
        runtime_total: float,
        runtime_p2g: float,
        runtime_g2p: float,
        runtime_euler: float,
        runtime_defgrad: float,
    ) -> None:
        """Write the timing file; the total runtime is given in milliseconds."""
        values = (
            time_step,
            float(runtime_total) / 1000.0,
            runtime_p2g,
            runtime_g2p,
            runtime_euler,
            runtime_defgrad,
        )
        self._write_text("info_timing.txt", [_fmt(v) for v in values])