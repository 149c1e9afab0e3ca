import numpy as np
import pytest

from granmpm.data_structures import ElasticModel, Grid, Particles, PlasticModel
from granmpm.output import (
    OutputWriter,
    compute_avg_data,
    particle_stress_measures,
    read_ply,
    write_ply,
)
from granmpm.remesh import remesh_fixed, resize_grid

MU = 3.0
LAM = 2.0


@pytest.fixture
def writer(tmp_path):
    (tmp_path / "run").mkdir()
    return OutputWriter(tmp_path, "run")


def test_ply_round_trip(tmp_path):
    path = tmp_path / "a.ply"
    props = {"x": np.array([0.5, 1.5, -2.0]), "p": np.array([1e-3, 7.0, 3.25])}
    write_ply(path, props)
    back = read_ply(path)
    assert list(back) == ["x", "p"]
    for name, values in props.items():
        assert np.array_equal(back[name], values)


def test_ply_header_is_binary_little_endian(tmp_path):
    path = tmp_path / "h.ply"
    write_ply(path, {"x": [1.0, 2.0]})
    assert path.read_bytes().startswith(b"ply\nformat binary_little_endian 1.0\n")


def test_ply_rejects_mismatched_lengths(tmp_path):
    with pytest.raises(ValueError):
        write_ply(tmp_path / "bad.ply", {"x": [1.0, 2.0], "y": [1.0]})


def test_read_ply_rejects_non_ply(tmp_path):
    path = tmp_path / "n.ply"
    path.write_bytes(b"not a ply file")
    with pytest.raises(ValueError):
        read_ply(path)


def test_stress_measures_identity():
    F = np.tile(np.eye(2), (4, 1, 1))
    p, q, Je = particle_stress_measures(F, ElasticModel.Hencky, MU, LAM, False)
    assert np.allclose(p, 0.0)
    assert np.allclose(q, 0.0)
    assert np.allclose(Je, 1.0)


def test_pure_dilation_has_no_deviatoric_stress():
    F = np.array([1.1 * np.eye(3), 0.9 * np.eye(3)])
    p, q, Je = particle_stress_measures(F, ElasticModel.Hencky, MU, LAM, True)
    assert np.allclose(q, 0.0, atol=1e-12)
    assert p[0] < 0 < p[1]
    assert np.allclose(Je, np.linalg.det(F))


def test_mises_q_scales_by_sqrt_three():
    F = np.array([[[1.2, 0.1], [0.0, 0.85]]])
    _, q_plain, _ = particle_stress_measures(F, ElasticModel.Hencky, MU, LAM, False)
    _, q_mises, _ = particle_stress_measures(F, ElasticModel.Hencky, MU, LAM, True)
    assert np.allclose(q_mises, np.sqrt(3.0) * q_plain)


def test_compute_avg_data_identity():
    F = np.tile(np.eye(2), (3, 1, 1))
    cauchy, kirchhoff, Javg = compute_avg_data(F, np.zeros(3), ElasticModel.Hencky, MU, LAM)
    assert np.allclose(cauchy, 0.0)
    assert np.allclose(kirchhoff, 0.0)
    assert Javg == pytest.approx(1.0)


def test_compute_avg_data_uniform_state():
    F = np.tile(np.diag([1.2, 0.9]), (5, 1, 1))
    eps = np.full(5, 0.1)
    cauchy, kirchhoff, Javg = compute_avg_data(F, eps, ElasticModel.Hencky, MU, LAM)
    J = np.linalg.det(F[0]) * np.exp(0.1)
    assert Javg == pytest.approx(J)
    assert np.allclose(kirchhoff * 5, cauchy * 5 * J)


def test_save_particles_plain(writer):
    particles = Particles(3, 2)
    particles.x[:] = [[0.0, 1.0], [2.0, 3.0], [4.0, 5.0]]
    p, q, Je = particle_stress_measures(particles.F, ElasticModel.Hencky, MU, LAM, False)
    target = writer.save_particles(7, particles, p, q, Je, PlasticModel.NoPlasticity)
    assert target.name == "particles_f7.ply"
    data = read_ply(target)
    assert list(data) == ["x", "y", "vx", "vy", "p", "q", "Je"]
    assert np.array_equal(data["y"], particles.x[:, 1])
    assert (writer.path / "last_written.txt").read_text() == "7\n"


def test_save_particles_mui_fields(writer):
    particles = Particles(2, 3)
    particles.viscosity[:] = [0.25, 0.75]
    p, q, Je = particle_stress_measures(particles.F, ElasticModel.Hencky, MU, LAM, False)
    target = writer.save_particles(0, particles, p, q, Je, PlasticModel.MCCMui, extra="x")
    assert target.name == "particles_fx0.ply"
    data = read_ply(target)
    for name in ("z", "vz", "eps_pl_vol", "eps_pl_dev", "delta_gamma", "muI", "viscosity"):
        assert name in data
    assert np.array_equal(data["viscosity"], particles.viscosity)


@pytest.mark.parametrize("use_mibf", [False, True])
def test_save_particles_visc_mui_depends_on_mibf(writer, use_mibf):
    particles = Particles(2, 2)
    p, q, Je = particle_stress_measures(particles.F, ElasticModel.Hencky, MU, LAM, False)
    target = writer.save_particles(1, particles, p, q, Je, PlasticModel.DPVisc, use_mibf)
    data = read_ply(target)
    assert ("muI" in data) == use_mibf
    assert "viscosity" not in data


def test_save_grid(writer):
    grid = resize_grid(remesh_fixed([1.0, 1.0], 0.5, 0), use_mibf=True)
    grid.mass[:] = np.arange(len(grid.mass), dtype=float)
    target = writer.save_grid(2, grid, use_mibf=True)
    assert target.name == "grid_f2.ply"
    data = read_ply(target)
    assert np.array_equal(data["mass"], grid.mass)
    assert np.allclose(np.column_stack([data["x"], data["y"]]), grid.node_positions())
    assert "friction" in data


def test_save_avg(writer):
    writer.save_avg(4, np.zeros((2, 2)), np.zeros((2, 2)), 1.0)
    assert (writer.path / "avg_cauchy_frame_4.csv").read_text() == "0,0,0,0\n"
    assert (writer.path / "avg_J_frame_4.csv").read_text() == "1\n"
    assert (writer.path / "last_saved_frame.txt").read_text() == "4\n"


def test_save_info(writer):
    writer.save_info(10, 24.0, 0.01, 5, 0.5)
    assert (writer.path / "info.txt").read_text().split("\n")[:5] == ["10", "24", "0.01", "5", "0.5"]


def test_save_timing_converts_total_to_seconds(writer):
    writer.save_timing(12, 2500.0, 0.1, 0.2, 0.3, 0.4)
    lines = (writer.path / "info_timing.txt").read_text().splitlines()
    assert lines[0] == "12"
    assert float(lines[1]) == pytest.approx(2.5)
    assert lines[2:] == ["0.1", "0.2", "0.3", "0.4"]


def test_grid_default_dimension_for_writer(writer):
    grid = Grid(2)
    with pytest.raises(ValueError):
        writer.save_grid(0, grid)