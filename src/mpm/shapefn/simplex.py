"""Linear simplex elements: 3-node triangle and 4-node tetrahedron.

Both live on the unit reference simplex with node 0 at the origin and node
``k`` at the ``k``-th unit vector. The inverse map starts from the simplex
centroid rather than the origin of the local axes.
"""

import numpy as np

from .base import ShapeFunction


class _LinearSimplexShapeFn(ShapeFunction):
    """Barycentric basis: N_0 = 1 - sum(xi), N_k = xi_k."""

    def natural_nodes(self):
        return np.vstack([np.zeros(self.tdim), np.eye(self.tdim)])

    def shapefn(self, xi):
        xi = np.asarray(xi, dtype=float)
        return np.concatenate([[1.0 - np.sum(xi)], xi])

    def grad_shapefn(self, xi):
        return np.vstack([-np.ones(self.tdim), np.eye(self.tdim)])

    def local_origin(self):
        return np.full(self.tdim, 1.0 / (self.tdim + 1))

    def corner_indices(self):
        return np.arange(self.nnodes)


class TriangleShapeFn(_LinearSimplexShapeFn):
    tdim = 2
    nnodes = 3

    def __init__(self, nnodes: int = 3):
        if nnodes != 3:
            raise ValueError(f"Unsupported triangle with {nnodes} nodes")

    def inhedron_indices(self):
        return np.array([[0, 1], [1, 2], [2, 0]])


class TetrahedronShapeFn(_LinearSimplexShapeFn):
    tdim = 3
    nnodes = 4

    def __init__(self, nnodes: int = 4):
        if nnodes != 4:
            raise ValueError(f"Unsupported tetrahedron with {nnodes} nodes")

    def inhedron_indices(self):
        # Outward-oriented faces
        return np.array([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]])
