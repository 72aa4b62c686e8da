"""Material points.

A particle knows its global coordinates and, after localization, the id of
the cell containing it and its local coordinate ``xi`` in that cell. An
unlocated particle has ``cell_id is None`` and ``xi is None``.

Stress and strain are 6-vectors per phase in Voigt order
(xx, yy, zz, xy, yz, xz), also in 2D.
"""

import numpy as np


class Particle:
    """Lagrangian material point.

    Parameters
    ----------
    id : int
        Global particle id.
    coordinates : array_like
        Global coordinates; their length sets the dimension.
    nphases : int
        Number of phases carried by the particle.
    """

    def __init__(self, id: int, coordinates, nphases: int = 1):
        self.id = id
        self.coordinates = np.array(coordinates, dtype=float)
        self.nphases = nphases
        tdim = self.coordinates.size

        self.mass = np.zeros(nphases)
        self.volume = np.zeros(nphases)
        self.velocity = np.zeros((tdim, nphases))
        self.acceleration = np.zeros((tdim, nphases))
        self.stress = np.zeros((6, nphases))
        self.strain = np.zeros((6, nphases))

        self.cell_id = None
        self.xi = None

    @property
    def tdim(self) -> int:
        return self.coordinates.size

    def assign_coordinates(self, coordinates):
        self.coordinates = np.array(coordinates, dtype=float)

    def assign_cell(self, cell_id: int, xi):
        self.cell_id = cell_id
        self.xi = np.array(xi, dtype=float)

    def invalidate_cell(self):
        """Drop the cell association (particle becomes unlocated)."""
        self.cell_id = None
        self.xi = None

    def is_located(self) -> bool:
        return self.cell_id is not None

    def __repr__(self) -> str:
        return f"Particle(id={self.id}, coordinates={self.coordinates.tolist()}, cell_id={self.cell_id})"
