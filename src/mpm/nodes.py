"""Mesh nodes carrying per-phase nodal accumulators.

A node is shared by every cell that touches it. Cell kernels add into the
accumulators; resetting them between steps (``initialise``) is the job of
whoever drives the time loop.

Array layout
------------
- ``mass``, ``volume``: shape ``(nphases,)``
- ``momentum``, ``external_force``, ``internal_force``, ``velocity``,
  ``acceleration``: shape ``(ndof, nphases)``
"""

import logging

import numpy as np

log = logging.getLogger(__name__)


class Node:
    """Background-mesh node.

    Parameters
    ----------
    id : int
        Global node id.
    coordinates : array_like
        Global coordinates; their length sets the dimension.
    ndof : int, optional
        Degrees of freedom per vector quantity (defaults to the dimension).
    nphases : int
        Number of phases tracked independently.
    """

    def __init__(self, id: int, coordinates, ndof: int = None, nphases: int = 1):
        self.id = id
        self.coordinates = np.array(coordinates, dtype=float)
        self.ndof = self.coordinates.size if ndof is None else ndof
        self.nphases = nphases
        self.initialise()

    def initialise(self):
        """Zero every accumulator."""
        self.mass = np.zeros(self.nphases)
        self.volume = np.zeros(self.nphases)
        self.momentum = np.zeros((self.ndof, self.nphases))
        self.external_force = np.zeros((self.ndof, self.nphases))
        self.internal_force = np.zeros((self.ndof, self.nphases))
        self.velocity = np.zeros((self.ndof, self.nphases))
        self.acceleration = np.zeros((self.ndof, self.nphases))

    @property
    def tdim(self) -> int:
        return self.coordinates.size

    def assign_coordinates(self, coordinates):
        self.coordinates = np.array(coordinates, dtype=float)

    def _check_phase(self, phase: int):
        if not 0 <= phase < self.nphases:
            raise IndexError(f"Phase {phase} out of range for node {self.id} with {self.nphases} phase(s)")

    def _check_vector(self, value) -> np.ndarray:
        value = np.asarray(value, dtype=float).ravel()
        if value.size != self.ndof:
            raise ValueError(f"Expected {self.ndof} components, got {value.size}")
        return value

    # =========================================================================
    # Accumulators (update=True adds, update=False assigns)
    # =========================================================================

    def update_mass(self, phase: int, mass: float, update: bool = True):
        self._check_phase(phase)
        self.mass[phase] = self.mass[phase] * update + mass

    def update_volume(self, phase: int, volume: float, update: bool = True):
        self._check_phase(phase)
        self.volume[phase] = self.volume[phase] * update + volume

    def update_momentum(self, phase: int, momentum, update: bool = True):
        self._check_phase(phase)
        self.momentum[:, phase] = self.momentum[:, phase] * update + self._check_vector(momentum)

    def update_external_force(self, phase: int, force, update: bool = True):
        self._check_phase(phase)
        self.external_force[:, phase] = (
            self.external_force[:, phase] * update + self._check_vector(force)
        )

    def update_internal_force(self, phase: int, force, update: bool = True):
        self._check_phase(phase)
        self.internal_force[:, phase] = (
            self.internal_force[:, phase] * update + self._check_vector(force)
        )

    def assign_velocity(self, phase: int, velocity):
        self._check_phase(phase)
        self.velocity[:, phase] = self._check_vector(velocity)

    def assign_acceleration(self, phase: int, acceleration):
        self._check_phase(phase)
        self.acceleration[:, phase] = self._check_vector(acceleration)

    # =========================================================================
    # Nodal solve helpers
    # =========================================================================

    def compute_velocity(self):
        """Velocity = momentum / mass for every phase with positive mass."""
        active = self.mass > 0.0
        self.velocity[:, active] = self.momentum[:, active] / self.mass[active]
        self.velocity[:, ~active] = 0.0

    def compute_acceleration(self):
        """Acceleration = (external + internal force) / mass."""
        active = self.mass > 0.0
        total = self.external_force + self.internal_force
        self.acceleration[:, active] = total[:, active] / self.mass[active]
        self.acceleration[:, ~active] = 0.0

    def __repr__(self) -> str:
        return f"Node(id={self.id}, coordinates={self.coordinates.tolist()})"
