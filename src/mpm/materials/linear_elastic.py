"""Isotropic linear elasticity."""

import logging

import numpy as np

from .base import Material

log = logging.getLogger(__name__)


class LinearElastic(Material):
    """Hookean solid defined by Young's modulus and Poisson's ratio.

    Strains use engineering shear components, so the shear diagonal of the
    elastic tensor is the shear modulus G.
    """

    def read_properties(self, properties: dict):
        self.youngs_modulus = float(properties["youngs_modulus"])
        self.poisson_ratio = float(properties["poisson_ratio"])
        if self.youngs_modulus <= 0.0:
            raise ValueError(f"youngs_modulus must be positive, got {self.youngs_modulus}")
        if not -1.0 < self.poisson_ratio < 0.5:
            raise ValueError(f"poisson_ratio must lie in (-1, 0.5), got {self.poisson_ratio}")
        self.de = self.elastic_tensor()
        log.debug(
            "LinearElastic %s: E=%g, nu=%g", self.id, self.youngs_modulus, self.poisson_ratio
        )

    def elastic_tensor(self) -> np.ndarray:
        E, nu = self.youngs_modulus, self.poisson_ratio
        bulk_modulus = E / (3.0 * (1.0 - 2.0 * nu))
        shear_modulus = E / (2.0 * (1.0 + nu))
        a1 = bulk_modulus + 4.0 / 3.0 * shear_modulus
        a2 = bulk_modulus - 2.0 / 3.0 * shear_modulus

        de = np.zeros((6, 6))
        de[:3, :3] = a2
        de[[0, 1, 2], [0, 1, 2]] = a1
        de[[3, 4, 5], [3, 4, 5]] = shear_modulus
        return de

    def compute_stress(self, stress, dstrain):
        return np.asarray(stress, dtype=float) + self.de @ np.asarray(dstrain, dtype=float)
