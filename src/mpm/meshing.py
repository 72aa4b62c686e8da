"""Structured mesh generation and particle seeding.

Builds rectilinear meshes of 4-node quadrilaterals (2D) or 8-node
hexahedra (3D) starting at the origin.

Numbering Conventions:
- Node (i, j[, k]) has id ``i + (nx + 1) * (j + (ny + 1) * k)``.
- Cell (i, j[, k]) has id ``i + nx * (j + ny * k)``.
- Cell nodes follow the shape-function numbering: counter-clockwise on the
  bottom face, then the top face in 3D.
- Neighbour slots enumerate face-adjacent cells as
  (-x, +x, -y, +y[, -z, +z]), skipping those outside the mesh.
"""

import itertools
import logging

import numpy as np

from .cell import Cell
from .mesh import Mesh
from .nodes import Node
from .particles import Particle
from .shapefn import ElementType, make_shapefn

log = logging.getLogger(__name__)


_STRUCTURED_ELEMENTS = {2: ElementType.QUAD4, 3: ElementType.HEX8}


def _node_index(index, nnodes_dim):
    flat = 0
    stride = 1
    for i, n in zip(index, nnodes_dim):
        flat += i * stride
        stride *= n
    return flat


def create_structured_mesh(lengths, ncells, element_type=None, mesh_id: int = 0, nphases: int = 1) -> Mesh:
    """Create a structured mesh with computed cell volumes.

    Parameters
    ----------
    lengths : sequence of float
        Domain extent per direction.
    ncells : sequence of int
        Number of cells per direction.
    element_type : ElementType or str, optional
        ``quad4`` in 2D or ``hex8`` in 3D (the default for the dimension).
    mesh_id : int
        Id of the created mesh.
    nphases : int
        Number of phases carried by each node.

    Returns
    -------
    Mesh
        Mesh with shared nodes, neighbour links and initialised cells.
    """
    tdim = len(lengths)
    if tdim not in _STRUCTURED_ELEMENTS or len(ncells) != tdim:
        raise ValueError(f"Structured meshes are 2D or 3D, got lengths={lengths}, ncells={ncells}")
    expected = _STRUCTURED_ELEMENTS[tdim]
    element_type = expected if element_type is None else ElementType(element_type)
    if element_type is not expected:
        raise ValueError(f"Structured {tdim}D meshes use {expected.value}, got {element_type.value}")

    shapefn = make_shapefn(element_type)
    spacing = np.asarray(lengths, dtype=float) / np.asarray(ncells)
    nnodes_dim = [n + 1 for n in ncells]

    mesh = Mesh(mesh_id)

    # x varies fastest
    for index in itertools.product(*[range(n) for n in reversed(nnodes_dim)]):
        index = index[::-1]
        node = Node(_node_index(index, nnodes_dim), np.asarray(index) * spacing, nphases=nphases)
        mesh.add_node(node)

    # Local node offsets from the cell's lowest corner
    offsets = (shapefn.natural_nodes() > 0).astype(int)

    cell_indices = [idx[::-1] for idx in itertools.product(*[range(n) for n in reversed(ncells)])]
    for index in cell_indices:
        cell = Cell(_node_index(index, ncells), shapefn.nfunctions(), shapefn)
        for local_id, offset in enumerate(offsets):
            cell.add_node(local_id, mesh.nodes[_node_index(np.add(index, offset), nnodes_dim)])
        cell.compute_volume()
        mesh.add_cell(cell)

    for index in cell_indices:
        cell = mesh.cells[_node_index(index, ncells)]
        slot = 0
        for d in range(tdim):
            for step in (-1, 1):
                neighbour = list(index)
                neighbour[d] += step
                if 0 <= neighbour[d] < ncells[d]:
                    cell.add_neighbour(slot, mesh.cells[_node_index(neighbour, ncells)])
                    slot += 1

    log.info(
        "Created %dD structured mesh: %d nodes, %d cells (%s)",
        tdim,
        mesh.nnodes(),
        mesh.ncells(),
        element_type.value,
    )
    return mesh


def seed_particles(mesh: Mesh, particles_per_dim: int = 2, density: float = 1.0,
                   nphases: int = 1, start_id: int = 0):
    """Seed particles uniformly inside every (quadrilateral/hexahedral) cell.

    Particles sit at the centres of a ``particles_per_dim``-per-direction
    subdivision of each cell's local domain. Each receives an equal share
    of the cell volume and ``density * volume`` as mass in every phase.

    Returns
    -------
    list of Particle
        Created particles, in cell order.
    """
    particles = []
    pid = start_id
    for cell in mesh.cells:
        shapefn = cell.shape_function
        coords = cell.nodal_coordinates()
        local = -1.0 + (2.0 * np.arange(particles_per_dim) + 1.0) / particles_per_dim
        npc = particles_per_dim ** shapefn.tdim
        for xi in itertools.product(local, repeat=shapefn.tdim):
            particle = Particle(pid, shapefn.shapefn(np.asarray(xi)) @ coords, nphases=nphases)
            particle.volume[:] = cell.volume / npc
            particle.mass[:] = density * cell.volume / npc
            mesh.add_particle(particle)
            particles.append(particle)
            pid += 1
    log.info("Seeded %d particles in %d cells", len(particles), mesh.ncells())
    return particles
