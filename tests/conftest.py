"""Pytest configuration and fixtures for the MPM transfer core tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


TOLERANCE = 1e-9


def build_cell(coordinates, element_type, cell_id=0, nphases=1, node_id_offset=0):
    """Cell with fresh nodes at ``coordinates`` and its volume computed."""
    from mpm.cell import Cell
    from mpm.nodes import Node
    from mpm.shapefn import make_shapefn

    shapefn = make_shapefn(element_type)
    cell = Cell(cell_id, shapefn.nfunctions(), shapefn)
    for local_id, coords in enumerate(coordinates):
        cell.add_node(local_id, Node(node_id_offset + local_id, coords, nphases=nphases))
    cell.compute_volume()
    return cell


SQUARE = [(0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0)]

CUBE = [
    (0.0, 0.0, 0.0),
    (2.0, 0.0, 0.0),
    (2.0, 2.0, 0.0),
    (0.0, 2.0, 0.0),
    (0.0, 0.0, 2.0),
    (2.0, 0.0, 2.0),
    (2.0, 2.0, 2.0),
    (0.0, 2.0, 2.0),
]


@pytest.fixture
def make_cell():
    """Factory building an initialised cell from nodal coordinates."""
    return build_cell


@pytest.fixture
def square_coords():
    return list(SQUARE)


@pytest.fixture
def cube_coords():
    return list(CUBE)


@pytest.fixture
def square_cell():
    """4-node quadrilateral spanning (0,0)-(2,2)."""
    return build_cell(SQUARE, "quad4")


@pytest.fixture
def two_phase_square_cell():
    """4-node quadrilateral spanning (0,0)-(2,2) with two-phase nodes."""
    return build_cell(SQUARE, "quad4", nphases=2)


@pytest.fixture
def cube_cell():
    """8-node hexahedron spanning (0,0,0)-(2,2,2)."""
    return build_cell(CUBE, "hex8")


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
