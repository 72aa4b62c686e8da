"""Trilinear 8-node hexahedron on the reference cube [-1, 1]^3.

Nodes 0-3 form the bottom face (zeta = -1) counter-clockwise seen from
above, nodes 4-7 the top face in the same order.
"""

import numpy as np

from .base import ShapeFunction


class HexahedronShapeFn(ShapeFunction):
    """Trilinear hexahedron."""

    tdim = 3
    nnodes = 8

    _NODES = np.array([
        [-1.0, -1.0, -1.0],
        [1.0, -1.0, -1.0],
        [1.0, 1.0, -1.0],
        [-1.0, 1.0, -1.0],
        [-1.0, -1.0, 1.0],
        [1.0, -1.0, 1.0],
        [1.0, 1.0, 1.0],
        [-1.0, 1.0, 1.0],
    ])

    # Outward faces, each split into two triangles
    _FACES = np.array([
        [0, 3, 2, 1],
        [4, 5, 6, 7],
        [0, 1, 5, 4],
        [1, 2, 6, 5],
        [2, 3, 7, 6],
        [3, 0, 4, 7],
    ])

    def __init__(self, nnodes: int = 8):
        if nnodes != 8:
            raise ValueError(f"Unsupported hexahedron with {nnodes} nodes")

    def natural_nodes(self):
        return self._NODES.copy()

    def shapefn(self, xi):
        xi = np.asarray(xi, dtype=float)
        factors = 1.0 + self._NODES * xi
        return 0.125 * np.prod(factors, axis=1)

    def grad_shapefn(self, xi):
        xi = np.asarray(xi, dtype=float)
        factors = 1.0 + self._NODES * xi
        grad = np.empty((8, 3))
        grad[:, 0] = 0.125 * self._NODES[:, 0] * factors[:, 1] * factors[:, 2]
        grad[:, 1] = 0.125 * self._NODES[:, 1] * factors[:, 0] * factors[:, 2]
        grad[:, 2] = 0.125 * self._NODES[:, 2] * factors[:, 0] * factors[:, 1]
        return grad

    def corner_indices(self):
        return np.arange(8)

    def inhedron_indices(self):
        triangles = []
        for a, b, c, d in self._FACES:
            triangles.append([a, b, c])
            triangles.append([a, c, d])
        return np.array(triangles)
