"""Shape-function contract shared by every element family.

A shape function is a pure function of the local coordinate ``xi``. It
holds no cell or mesh state, so one instance is shared by every cell of the
same element type.

Conventions
-----------
- ``shapefn(xi)`` returns an ``(N,)`` array of weights.
- ``grad_shapefn(xi)`` returns an ``(N, tdim)`` array of local gradients.
- ``bmatrix(xi)`` returns a list of ``N`` strain-displacement blocks of
  shape ``(3, 2)`` in 2D and ``(6, 3)`` in 3D. Rows follow the Voigt order
  (xx, yy, xy) in 2D and (xx, yy, zz, xy, yz, xz) in 3D.
- ``corner_indices()`` lists the geometric corner nodes. In 2D they form
  the polygon in counter-clockwise order.
- ``inhedron_indices()`` decomposes the cell boundary: edges (node pairs)
  in 2D, outward-oriented triangles (node triples) in 3D. Joining every
  entry to a common apex yields the sub-triangles / sub-tetrahedra used
  for volume and point containment.
"""

from abc import ABC, abstractmethod
from typing import List

import numpy as np


class ShapeFunction(ABC):
    """Abstract base class for element shape functions."""

    #: Number of local (and global) dimensions
    tdim: int = None

    #: Number of nodes / basis functions
    nnodes: int = None

    def nfunctions(self) -> int:
        return self.nnodes

    @abstractmethod
    def shapefn(self, xi: np.ndarray) -> np.ndarray:
        """Evaluate the basis functions at local coordinate ``xi``."""
        pass

    @abstractmethod
    def grad_shapefn(self, xi: np.ndarray) -> np.ndarray:
        """Evaluate local gradients of the basis functions at ``xi``."""
        pass

    @abstractmethod
    def natural_nodes(self) -> np.ndarray:
        """Canonical local coordinate of every node, shape ``(N, tdim)``."""
        pass

    @abstractmethod
    def corner_indices(self) -> np.ndarray:
        pass

    @abstractmethod
    def inhedron_indices(self) -> np.ndarray:
        pass

    def local_origin(self) -> np.ndarray:
        """Starting point for the inverse isoparametric map."""
        return np.zeros(self.tdim)

    def bmatrix(self, xi: np.ndarray, nodal_coordinates: np.ndarray = None) -> List[np.ndarray]:
        """Strain-displacement blocks at ``xi``.

        Parameters
        ----------
        xi : np.ndarray
            Local coordinate, shape ``(tdim,)``.
        nodal_coordinates : np.ndarray, optional
            Global nodal coordinates, shape ``(N, tdim)``. When given, the
            local gradients are mapped to global ones through the inverse
            Jacobian before the blocks are assembled.

        Returns
        -------
        list of np.ndarray
            One block per node.
        """
        grad = self.grad_shapefn(xi)
        if nodal_coordinates is not None:
            jacobian = nodal_coordinates.T @ grad
            # dN/dx = dN/dxi . dxi/dx
            grad = grad @ np.linalg.inv(jacobian)

        blocks = []
        for dn in grad:
            if self.tdim == 2:
                block = np.array([
                    [dn[0], 0.0],
                    [0.0, dn[1]],
                    [dn[1], dn[0]],
                ])
            else:
                block = np.array([
                    [dn[0], 0.0, 0.0],
                    [0.0, dn[1], 0.0],
                    [0.0, 0.0, dn[2]],
                    [dn[1], dn[0], 0.0],
                    [0.0, dn[2], dn[1]],
                    [dn[2], 0.0, dn[0]],
                ])
            blocks.append(block)
        return blocks

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tdim={self.tdim}, nnodes={self.nnodes})"
