"""Abstract constitutive model."""

from abc import ABC, abstractmethod

import numpy as np


class Material(ABC):
    """Maps a strain increment to a stress update.

    Parameters
    ----------
    id : int
        Material id.
    properties : dict
        Model parameters, read by ``read_properties``.
    """

    def __init__(self, id: int, properties: dict = None):
        self.id = id
        self.properties = dict(properties or {})
        self.read_properties(self.properties)

    @abstractmethod
    def read_properties(self, properties: dict):
        pass

    @abstractmethod
    def compute_stress(self, stress: np.ndarray, dstrain: np.ndarray) -> np.ndarray:
        """Return the updated Voigt stress (xx, yy, zz, xy, yz, xz)."""
        pass
