"""Tests for particle-to-grid scatter and grid-to-particle gather kernels."""

import numpy as np
import pytest

from mpm.cell import Cell, CellNotInitialisedError
from mpm.shapefn import make_shapefn


def nodal(cell, attribute, phase=0):
    """Stack a per-node quantity for one phase in local-node order."""
    values = [getattr(node, attribute)[..., phase] for node in cell.nodes]
    return np.array(values)


class TestScatter:
    """P2G kernels accumulate shape-function-weighted particle quantities."""

    def test_mass_conservation(self, square_cell, rng):
        """Scattered mass sums to the particle mass."""
        for _ in range(5):
            xi = rng.uniform(-1, 1, size=2)
            square_cell.map_particle_mass_to_nodes(xi, 0, 2.5)
        assert np.isclose(np.sum(nodal(square_cell, "mass")), 12.5, atol=1e-12)

    def test_mass_weights(self, square_cell):
        """Each node receives N_i(xi) * m."""
        xi = np.array([0.3, -0.4])
        square_cell.map_particle_mass_to_nodes(xi, 0, 10.0)
        expected = 10.0 * square_cell.shape_function.shapefn(xi)
        assert np.allclose(nodal(square_cell, "mass"), expected)

    def test_mass_accumulates(self, square_cell):
        """Repeated scatters add rather than overwrite."""
        square_cell.map_particle_mass_to_nodes([0.0, 0.0], 0, 4.0)
        square_cell.map_particle_mass_to_nodes([0.0, 0.0], 0, 4.0)
        assert np.allclose(nodal(square_cell, "mass"), 2.0)

    def test_volume(self, cube_cell):
        """Scattered volume sums to the particle volume in 3D."""
        cube_cell.map_particle_volume_to_nodes([0.1, 0.5, -0.7], 0, 0.125)
        assert np.isclose(np.sum(nodal(cube_cell, "volume")), 0.125)

    def test_momentum(self, square_cell):
        """Scattered momentum sums to m * v."""
        square_cell.compute_nodal_momentum([0.2, 0.6], 0, 2.0, [1.0, -3.0])
        assert np.allclose(nodal(square_cell, "momentum").sum(axis=0), [2.0, -6.0])

    def test_body_force(self, cube_cell):
        """Scattered body force sums to m * g."""
        cube_cell.compute_nodal_body_force([0.0, 0.0, 0.0], 0, 3.0, [0.0, 0.0, -9.81])
        forces = nodal(cube_cell, "external_force")
        assert np.allclose(forces.sum(axis=0), [0.0, 0.0, -29.43])
        assert np.allclose(forces[:, 2], -29.43 / 8)

    def test_phase_indexing(self, two_phase_square_cell):
        """Each phase accumulates independently."""
        cell = two_phase_square_cell
        cell.map_particle_mass_to_nodes([0.0, 0.0], 1, 8.0)
        assert np.allclose(nodal(cell, "mass", phase=0), 0.0)
        assert np.allclose(nodal(cell, "mass", phase=1), 2.0)

    def test_invalid_phase(self, square_cell):
        """Phases beyond the node's phase count are rejected."""
        with pytest.raises(IndexError):
            square_cell.map_particle_mass_to_nodes([0.0, 0.0], 1, 1.0)


class TestInternalForce:
    """Internal force is -B^T sigma V."""

    def test_uniaxial_stress_2d(self, square_cell):
        """Node 0 of the unit-Jacobian square under sigma_xx."""
        stress = np.array([100.0, 0.0, 0.0, 0.0, 0.0, 0.0])
        square_cell.compute_nodal_internal_force([0.0, 0.0], 0, 1.0, stress)
        forces = nodal(square_cell, "internal_force")
        # grad N_0 = (-1/4, -1/4) -> f_0 = -V * (-25, 0)
        assert np.allclose(forces[0], [25.0, 0.0])
        assert np.allclose(forces[1], [-25.0, 0.0])

    def test_shear_stress_2d_uses_xy_component(self, square_cell):
        """2D kernel reads the xy entry (index 3) of the Voigt stress."""
        stress = np.array([0.0, 0.0, 50.0, 40.0, 7.0, 9.0])
        square_cell.compute_nodal_internal_force([0.0, 0.0], 0, 2.0, stress)
        forces = nodal(square_cell, "internal_force")
        # B_0^T sigma = (dNy * sxy, dNx * sxy) = (-10, -10)
        assert np.allclose(forces[0], [20.0, 20.0])

    def test_shear_stress_3d(self, cube_cell):
        """3D kernel uses the full Voigt stress."""
        stress = np.array([0.0, 0.0, 0.0, 8.0, 0.0, 0.0])
        cube_cell.compute_nodal_internal_force([0.0, 0.0, 0.0], 0, 1.0, stress)
        forces = nodal(cube_cell, "internal_force")
        assert np.allclose(forces[0], [1.0, 1.0, 0.0])

    @pytest.mark.parametrize("fixture", ["square_cell", "cube_cell"])
    def test_self_equilibrated(self, fixture, request, rng):
        """A single stress state produces zero net nodal force."""
        cell = request.getfixturevalue(fixture)
        tdim = cell.shape_function.tdim
        cell.compute_nodal_internal_force(
            rng.uniform(-1, 1, size=tdim), 0, 0.7, rng.normal(size=6)
        )
        assert np.allclose(nodal(cell, "internal_force").sum(axis=0), 0.0, atol=1e-12)

    def test_scaled_cell(self, make_cell):
        """Gradients are taken in global coordinates."""
        cell = make_cell([(0, 0), (4, 0), (4, 4), (0, 4)], "quad4")
        stress = np.array([100.0, 0.0, 0.0, 0.0, 0.0, 0.0])
        cell.compute_nodal_internal_force([0.0, 0.0], 0, 1.0, stress)
        # dx/dxi = 2 halves the global gradient
        assert np.allclose(nodal(cell, "internal_force")[0], [12.5, 0.0])


class TestGather:
    """G2P kernels interpolate nodal velocity and acceleration."""

    def test_linear_velocity_field(self, square_cell):
        """Bilinear interpolation reproduces a linear nodal field."""
        for node in square_cell.nodes:
            x, y = node.coordinates
            node.assign_velocity(0, [x, 2.0 * y])
        # xi = (0.5, 0.5) is global (1.5, 1.5)
        velocity = square_cell.interpolate_nodal_velocity([0.5, 0.5], 0)
        assert np.allclose(velocity, [1.5, 3.0])

    def test_uniform_acceleration(self, cube_cell):
        """Uniform nodal acceleration is returned unchanged."""
        for node in cube_cell.nodes:
            node.assign_acceleration(0, [0.0, 0.0, -9.81])
        acceleration = cube_cell.interpolate_nodal_acceleration([0.3, -0.2, 0.9], 0)
        assert np.allclose(acceleration, [0.0, 0.0, -9.81])

    def test_scatter_then_gather(self, square_cell):
        """Momentum / mass at the nodes gathers back to the particle velocity."""
        xi = np.array([-0.25, 0.75])
        square_cell.map_particle_mass_to_nodes(xi, 0, 3.0)
        square_cell.compute_nodal_momentum(xi, 0, 3.0, [0.4, -1.2])
        for node in square_cell.nodes:
            node.compute_velocity()
        assert np.allclose(square_cell.interpolate_nodal_velocity(xi, 0), [0.4, -1.2])


class TestPreconditions:
    """Kernels refuse to run on uninitialised cells."""

    @pytest.mark.parametrize(
        "kernel,args",
        [
            ("map_particle_mass_to_nodes", (0, 1.0)),
            ("map_particle_volume_to_nodes", (0, 1.0)),
            ("compute_nodal_momentum", (0, 1.0, [0.0, 0.0])),
            ("compute_nodal_body_force", (0, 1.0, [0.0, -9.81])),
            ("compute_nodal_internal_force", (0, 1.0, np.zeros(6))),
            ("interpolate_nodal_velocity", (0,)),
            ("interpolate_nodal_acceleration", (0,)),
        ],
    )
    def test_uninitialised(self, kernel, args):
        """Every kernel raises CellNotInitialisedError."""
        cell = Cell(0, 4, make_shapefn("quad4"))
        with pytest.raises(CellNotInitialisedError):
            getattr(cell, kernel)(np.zeros(2), *args)
