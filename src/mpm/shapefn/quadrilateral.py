"""Quadrilateral shape functions on the reference square [-1, 1]^2.

Node numbering (counter-clockwise corners first, then mid-sides, then the
centre for the 9-node element)::

    3 -- 6 -- 2
    |         |
    7    8    5
    |         |
    0 -- 4 -- 1
"""

import numpy as np

from .base import ShapeFunction


_QUAD_NATURAL_NODES = np.array([
    [-1.0, -1.0],
    [1.0, -1.0],
    [1.0, 1.0],
    [-1.0, 1.0],
    [0.0, -1.0],
    [1.0, 0.0],
    [0.0, 1.0],
    [-1.0, 0.0],
    [0.0, 0.0],
])


def _quadratic_lagrange(s: float, node: float):
    """1D quadratic Lagrange polynomial through {-1, 0, 1} and its derivative."""
    if node < 0:
        return 0.5 * s * (s - 1.0), s - 0.5
    if node > 0:
        return 0.5 * s * (s + 1.0), s + 0.5
    return 1.0 - s * s, -2.0 * s


class QuadrilateralShapeFn(ShapeFunction):
    """Bilinear (4), serendipity (8) or biquadratic Lagrange (9) quadrilateral.

    Parameters
    ----------
    nnodes : int
        Number of element nodes: 4, 8 or 9.
    """

    tdim = 2

    def __init__(self, nnodes: int = 4):
        if nnodes not in (4, 8, 9):
            raise ValueError(f"Unsupported quadrilateral with {nnodes} nodes")
        self.nnodes = nnodes
        self._nodes = _QUAD_NATURAL_NODES[:nnodes].copy()

    def natural_nodes(self) -> np.ndarray:
        return self._nodes.copy()

    def shapefn(self, xi):
        xi = np.asarray(xi, dtype=float)
        if self.nnodes == 4:
            return 0.25 * (1.0 + xi[0] * self._nodes[:, 0]) * (1.0 + xi[1] * self._nodes[:, 1])
        if self.nnodes == 8:
            return self._serendipity(xi)[0]
        return self._lagrange(xi)[0]

    def grad_shapefn(self, xi):
        xi = np.asarray(xi, dtype=float)
        if self.nnodes == 4:
            xn, yn = self._nodes[:, 0], self._nodes[:, 1]
            grad = np.empty((4, 2))
            grad[:, 0] = 0.25 * xn * (1.0 + xi[1] * yn)
            grad[:, 1] = 0.25 * yn * (1.0 + xi[0] * xn)
            return grad
        if self.nnodes == 8:
            return self._serendipity(xi)[1]
        return self._lagrange(xi)[1]

    def _serendipity(self, xi):
        x, y = xi
        values = np.empty(8)
        grad = np.empty((8, 2))
        for i, (xn, yn) in enumerate(self._nodes):
            if i < 4:
                values[i] = 0.25 * (1 + x * xn) * (1 + y * yn) * (x * xn + y * yn - 1)
                grad[i, 0] = 0.25 * xn * (1 + y * yn) * (2 * x * xn + y * yn)
                grad[i, 1] = 0.25 * yn * (1 + x * xn) * (x * xn + 2 * y * yn)
            elif xn == 0.0:
                values[i] = 0.5 * (1 - x * x) * (1 + y * yn)
                grad[i, 0] = -x * (1 + y * yn)
                grad[i, 1] = 0.5 * (1 - x * x) * yn
            else:
                values[i] = 0.5 * (1 + x * xn) * (1 - y * y)
                grad[i, 0] = 0.5 * xn * (1 - y * y)
                grad[i, 1] = -y * (1 + x * xn)
        return values, grad

    def _lagrange(self, xi):
        values = np.empty(9)
        grad = np.empty((9, 2))
        for i, (xn, yn) in enumerate(self._nodes):
            lx, dlx = _quadratic_lagrange(xi[0], xn)
            ly, dly = _quadratic_lagrange(xi[1], yn)
            values[i] = lx * ly
            grad[i, 0] = dlx * ly
            grad[i, 1] = lx * dly
        return values, grad

    def corner_indices(self):
        return np.array([0, 1, 2, 3])

    def inhedron_indices(self):
        return np.array([[0, 1], [1, 2], [2, 3], [3, 0]])
