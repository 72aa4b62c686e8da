"""Mesh: registries of nodes, cells and particles plus particle localization.

Nodes and cells are keyed on their own ids. Particles are held by identity:
adding the same particle object twice fails, two distinct particle objects
may share an id. A cell keeps a shared id as long as any particle carrying
it is still assigned to that cell.

Localization
------------
``locate_particles_mesh`` assigns every particle to the first cell whose
``point_in_cell`` accepts it, scanning

1. the particle's previous cell,
2. that cell's neighbours in slot order,
3. every cell of the mesh in id order,

skipping cells already tested. First match wins, so particles on a shared
face stay with the cell they were in, or go to the lowest-id cell otherwise.

A particle that no cell accepts is detached from its previous cell, its
``cell_id`` and ``xi`` are cleared, and it is returned to the caller.
"""

import logging
from typing import Callable, List

import numpy as np
import pandas as pd

from .registry import EntityRegistry

log = logging.getLogger(__name__)


class Mesh:
    """Top-level spatial container.

    Parameters
    ----------
    id : int
        Mesh id.
    """

    def __init__(self, id: int):
        self.id = id
        self.nodes = EntityRegistry("node")
        self.cells = EntityRegistry("cell")
        self.neighbours = EntityRegistry("neighbour mesh")
        # id(particle) -> particle, in insertion order
        self._particles = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def add_node(self, node) -> bool:
        return self.nodes.insert_entity(node)

    def remove_node(self, node) -> bool:
        if self.nodes.get(node.id) is not node:
            return False
        return self.nodes.remove(node.id)

    def add_cell(self, cell) -> bool:
        return self.cells.insert_entity(cell)

    def remove_cell(self, cell) -> bool:
        if self.cells.get(cell.id) is not cell:
            return False
        return self.cells.remove(cell.id)

    def add_particle(self, particle) -> bool:
        key = id(particle)
        if key in self._particles:
            return False
        self._particles[key] = particle
        return True

    def remove_particle(self, particle) -> bool:
        """Remove ``particle`` and detach it from the cell holding it."""
        if self._particles.pop(id(particle), None) is None:
            return False
        if particle.cell_id is not None:
            cell = self.cells.get(particle.cell_id)
            if cell is not None:
                self._detach(cell, particle)
        return True

    def add_neighbour(self, local_id: int, mesh) -> bool:
        if mesh is self:
            return False
        return self.neighbours.insert(local_id, mesh)

    # =========================================================================
    # Status
    # =========================================================================

    def nnodes(self) -> int:
        return self.nodes.size()

    def ncells(self) -> int:
        return self.cells.size()

    def nparticles(self) -> int:
        return len(self._particles)

    def nneighbours(self) -> int:
        return self.neighbours.size()

    def status(self) -> bool:
        """Active if the mesh holds at least one particle."""
        return len(self._particles) > 0

    @property
    def particles(self) -> List:
        return list(self._particles.values())

    # =========================================================================
    # Bulk visitation
    # =========================================================================

    def iterate_over_nodes(self, fn: Callable) -> None:
        self.nodes.for_each(fn)

    def iterate_over_cells(self, fn: Callable) -> None:
        self.cells.for_each(fn)

    def iterate_over_particles(self, fn: Callable) -> None:
        for particle in list(self._particles.values()):
            fn(particle)

    def compute_cell_volumes(self) -> None:
        self.iterate_over_cells(lambda cell: cell.compute_volume())

    # =========================================================================
    # Localization
    # =========================================================================

    def _detach(self, cell, particle):
        """Drop ``particle.id`` from ``cell`` unless another particle with that id still lives there."""
        for other in self._particles.values():
            if other is not particle and other.id == particle.id and other.cell_id == cell.id:
                return
        cell.remove_particle_id(particle.id)

    def _candidate_cells(self, particle):
        seen = set()
        previous = None
        if particle.cell_id is not None:
            previous = self.cells.get(particle.cell_id)

        if previous is not None:
            seen.add(previous.id)
            yield previous
            for neighbour in previous.neighbours:
                if neighbour.id not in seen and neighbour.id in self.cells:
                    seen.add(neighbour.id)
                    yield neighbour

        for cell in self.cells:
            if cell.id not in seen:
                seen.add(cell.id)
                yield cell

    def locate_particle(self, particle):
        """Return the first cell containing ``particle``, or ``None``."""
        for cell in self._candidate_cells(particle):
            if cell.point_in_cell(particle.coordinates):
                return cell
        return None

    def locate_particles_mesh(self) -> List:
        """Assign every particle to a cell.

        Returns
        -------
        list
            Particles that no cell accepts. They are detached from their
            previous cell and carry ``cell_id = None``.
        """
        unlocated = []
        for particle in list(self._particles.values()):
            previous = None
            if particle.cell_id is not None:
                previous = self.cells.get(particle.cell_id)

            cell = self.locate_particle(particle)
            if cell is None:
                if previous is not None:
                    self._detach(previous, particle)
                particle.invalidate_cell()
                unlocated.append(particle)
                continue

            xi = cell.local_coordinates_point(particle.coordinates)
            if previous is not None and previous is not cell:
                self._detach(previous, particle)
            cell.add_particle_id(particle.id)
            particle.assign_cell(cell.id, xi)

        if unlocated:
            log.warning(
                "Mesh %s: %d particle(s) outside every cell: %s",
                self.id,
                len(unlocated),
                [p.id for p in unlocated],
            )
        log.info(
            "Mesh %s: located %d/%d particles",
            self.id,
            self.nparticles() - len(unlocated),
            self.nparticles(),
        )
        return unlocated

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def nodal_summary(self) -> pd.DataFrame:
        """Per-node, per-phase mass, volume and momentum as a DataFrame."""
        rows = []
        for node in self.nodes:
            for phase in range(node.nphases):
                row = {
                    "node_id": node.id,
                    "phase": phase,
                    "mass": node.mass[phase],
                    "volume": node.volume[phase],
                }
                for d in range(node.ndof):
                    row[f"momentum_{d}"] = node.momentum[d, phase]
                rows.append(row)
        return pd.DataFrame(rows)

    def total_mass(self, phase: int = 0) -> float:
        return float(np.sum([node.mass[phase] for node in self.nodes]))

    def __repr__(self) -> str:
        return (
            f"Mesh(id={self.id}, nnodes={self.nnodes()}, "
            f"ncells={self.ncells()}, nparticles={self.nparticles()})"
        )
