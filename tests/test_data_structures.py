import numpy as np
import pytest

from granmpm.data_structures import Grid, Particles


def test_particles_shapes_2d():
    particles = Particles(5, 2)
    assert len(particles) == 5
    assert particles.x.shape == (5, 2)
    assert particles.v.shape == (5, 2)
    assert particles.F.shape == (5, 2, 2)
    assert particles.eps_pl_vol.shape == (5,)


def test_particles_initial_values():
    particles = Particles(3, 3)
    assert np.all(particles.x == 0)
    assert np.all(particles.pic == 0)
    assert np.all(particles.Bmat == 0)
    assert np.all(particles.muI == 0)
    for F in particles.F:
        np.testing.assert_array_equal(F, np.eye(3))


def test_particles_deformation_gradients_are_independent():
    particles = Particles(2, 2)
    particles.F[0, 0, 0] = 5.0
    assert particles.F[1, 0, 0] == 1.0


def test_particles_default_single():
    particles = Particles()
    assert len(particles) == 1
    assert particles.dim == 2


@pytest.mark.parametrize("dim", [1, 4])
def test_particles_invalid_dim(dim):
    with pytest.raises(ValueError):
        Particles(2, dim)


def test_particles_negative_count():
    with pytest.raises(ValueError):
        Particles(-1, 2)


def test_grid_node_positions_order_2d():
    grid = Grid(2)
    grid.x = np.array([0.0, 1.0])
    grid.y = np.array([10.0, 20.0, 30.0])
    pos = grid.node_positions()
    assert pos.shape == (6, 2)
    np.testing.assert_array_equal(pos[0], [0.0, 10.0])
    np.testing.assert_array_equal(pos[1], [0.0, 20.0])
    np.testing.assert_array_equal(pos[3], [1.0, 10.0])
    assert grid.shape == (2, 3)


def test_grid_node_positions_order_3d():
    grid = Grid(3)
    grid.x = np.array([0.0, 1.0])
    grid.y = np.array([2.0, 3.0])
    grid.z = np.array([4.0, 5.0, 6.0])
    pos = grid.node_positions()
    assert pos.shape == (12, 3)
    np.testing.assert_array_equal(pos[1], [0.0, 2.0, 5.0])
    np.testing.assert_array_equal(pos[3], [0.0, 3.0, 4.0])
    np.testing.assert_array_equal(pos[-1], [1.0, 3.0, 6.0])


def test_grid_empty():
    grid = Grid(2)
    assert grid.node_positions().shape[0] == 0
    assert grid.shape == (0, 0)


def test_grid_invalid_dim():
    with pytest.raises(ValueError):
        Grid(5)