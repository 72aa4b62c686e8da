"""Background-mesh cell: geometry, localization and particle/node transfer.

A cell binds ``nnodes`` shared nodes (slot = local node index), an optional
set of neighbour cells and one shape function. Once all of these are bound
and ``compute_volume`` has run, the cell is initialised and can

- test whether a point lies inside it (``point_in_cell``),
- invert the isoparametric map (``local_coordinates_point``),
- scatter particle quantities to its nodes (P2G kernels),
- gather nodal quantities at a local coordinate (G2P kernels).

Volume and containment share one decomposition: every entry of the shape
function's ``inhedron_indices`` table (an edge in 2D, a boundary triangle in
3D) is joined to a common apex. With the cell centroid as apex the signed
sub-volumes add up to the cell volume. With a query point as apex the
absolute sub-volumes add up to the cell volume only if the point is inside
a convex cell.

Kernels write only to this cell's nodes. Nodes are shared between cells,
so callers that run kernels of different cells concurrently must serialize
updates to shared nodes.
"""

import logging

import numpy as np

from .registry import EntityRegistry

log = logging.getLogger(__name__)


class CellNotInitialisedError(RuntimeError):
    """Geometric or transfer operation on a cell that is not initialised."""


class Cell:
    """Spatial unit of the background mesh.

    Parameters
    ----------
    id : int
        Global cell id.
    nnodes : int
        Number of nodes the cell expects.
    shapefn : ShapeFunction, optional
        Shape function to bind at construction.
    """

    #: Relative tolerance of the sub-volume containment test
    volume_tolerance = 1e-9

    #: Newton iteration cap and tolerance for the inverse map
    max_newton_iterations = 20
    newton_tolerance = 1e-12

    def __init__(self, id: int, nnodes: int, shapefn=None):
        self.id = id
        self._nnodes = nnodes
        self.volume = None
        self._particles = []
        self.nodes = EntityRegistry("node")
        self.neighbours = EntityRegistry("neighbour cell")
        self._shapefn = None
        if shapefn is not None:
            self.shapefn(shapefn)

    # =========================================================================
    # Status
    # =========================================================================

    def nnodes(self) -> int:
        """Number of nodes currently bound."""
        return self.nodes.size()

    def nfunctions(self) -> int:
        """Number of shape functions, zero if none is bound."""
        return self._shapefn.nfunctions() if self._shapefn is not None else 0

    def nneighbours(self) -> int:
        return self.neighbours.size()

    def status(self) -> bool:
        """Active if at least one particle is located in the cell."""
        return len(self._particles) > 0

    def is_initialised(self) -> bool:
        return (
            self._shapefn is not None
            and self.nodes.size() == self._nnodes
            and self.volume is not None
        )

    def _check_initialised(self):
        if not self.is_initialised():
            raise CellNotInitialisedError(
                f"Cell {self.id} is not initialised "
                f"(shapefn={self._shapefn is not None}, "
                f"nodes={self.nodes.size()}/{self._nnodes}, "
                f"volume={'set' if self.volume is not None else 'unset'})"
            )

    # =========================================================================
    # Binding
    # =========================================================================

    def shapefn(self, shapefn) -> bool:
        """Bind a shape function.

        Rebinding is allowed as long as the node count still matches; the
        volume is invalidated when the bound instance changes.

        Raises
        ------
        ValueError
            If ``shapefn.nfunctions()`` differs from the cell's node count,
            or its dimension differs from already bound nodes.
        """
        if shapefn.nfunctions() != self._nnodes:
            raise ValueError(
                f"Cell {self.id} expects {self._nnodes} nodes, "
                f"shape function provides {shapefn.nfunctions()}"
            )
        for node in self.nodes:
            if node.tdim != shapefn.tdim:
                raise ValueError(
                    f"Cell {self.id}: node {node.id} is {node.tdim}D, "
                    f"shape function is {shapefn.tdim}D"
                )
        if self._shapefn is not None and self._shapefn is not shapefn:
            self.volume = None
        self._shapefn = shapefn
        return True

    @property
    def shape_function(self):
        return self._shapefn

    def add_node(self, local_id: int, node) -> bool:
        """Bind ``node`` at local index ``local_id``; fails if taken or out of range."""
        if not 0 <= local_id < self._nnodes:
            log.warning(
                "Cell %s: local node id %s out of range [0, %d)", self.id, local_id, self._nnodes
            )
            return False
        return self.nodes.insert(local_id, node)

    def add_neighbour(self, local_id: int, neighbour) -> bool:
        if neighbour.id == self.id:
            return False
        return self.neighbours.insert(local_id, neighbour)

    def add_particle_id(self, id: int) -> bool:
        if id in self._particles:
            return False
        self._particles.append(id)
        return True

    def remove_particle_id(self, id: int):
        if id in self._particles:
            self._particles.remove(id)

    @property
    def particle_ids(self):
        return list(self._particles)

    # =========================================================================
    # Geometry
    # =========================================================================

    def nodal_coordinates(self) -> np.ndarray:
        """Coordinates of bound nodes in local-index order, shape ``(N, tdim)``."""
        return np.array([node.coordinates for node in self.nodes])

    def centroid(self) -> np.ndarray:
        coords = self.nodal_coordinates()
        return coords[self._shapefn.corner_indices()].mean(axis=0)

    def _sub_volumes(self, apex: np.ndarray) -> np.ndarray:
        """Signed sub-volumes of the boundary decomposition joined to ``apex``."""
        coords = self.nodal_coordinates()
        facets = coords[self._shapefn.inhedron_indices()]
        edges = facets[:, 1:, :] - facets[:, :1, :]
        to_apex = apex - facets[:, 0, :]
        if self._shapefn.tdim == 2:
            return 0.5 * (edges[:, 0, 0] * to_apex[:, 1] - edges[:, 0, 1] * to_apex[:, 0])
        return np.einsum("ij,ij->i", np.cross(edges[:, 0], edges[:, 1]), to_apex) / 6.0

    def compute_volume(self):
        """Compute and store the cell volume (area in 2D).

        A degenerate cell (zero volume) logs a warning and keeps its volume
        unset, so it stays uninitialised.

        Raises
        ------
        CellNotInitialisedError
            If the shape function or any node is missing.
        """
        if self._shapefn is None or self.nodes.size() != self._nnodes:
            raise CellNotInitialisedError(
                f"Cell {self.id}: cannot compute volume with "
                f"{self.nodes.size()}/{self._nnodes} nodes and "
                f"{'a' if self._shapefn is not None else 'no'} shape function"
            )
        volume = abs(np.sum(self._sub_volumes(self.centroid())))
        if volume <= 0.0:
            # Degenerate cells stay uninitialised
            log.warning("Cell %s is degenerate (zero volume)", self.id)
            self.volume = None
            return
        self.volume = float(volume)
        log.debug("Cell %s volume = %.6e", self.id, self.volume)

    def point_in_cell(self, point) -> bool:
        """Check whether ``point`` lies in the cell (boundary included)."""
        self._check_initialised()
        point = np.asarray(point, dtype=float)
        total = np.sum(np.abs(self._sub_volumes(point)))
        return abs(total - self.volume) <= self.volume_tolerance * self.volume

    def jacobian(self, xi) -> np.ndarray:
        """Jacobian ``dx/dxi`` of the isoparametric map at ``xi``."""
        return self.nodal_coordinates().T @ self._shapefn.grad_shapefn(xi)

    def inverse_map(self, point):
        """Newton inversion of ``x(xi) = sum_i N_i(xi) x_i``.

        Returns
        -------
        xi : np.ndarray
            Best estimate of the local coordinate.
        converged : bool
            Whether the iteration met the tolerance within the cap.
        """
        self._check_initialised()
        point = np.asarray(point, dtype=float)
        coords = self.nodal_coordinates()
        length_scale = self.volume ** (1.0 / self._shapefn.tdim)
        xi = self._shapefn.local_origin()

        for iteration in range(self.max_newton_iterations):
            residual = point - self._shapefn.shapefn(xi) @ coords
            if np.linalg.norm(residual) <= self.newton_tolerance * length_scale:
                return xi, True
            jacobian = coords.T @ self._shapefn.grad_shapefn(xi)
            try:
                dxi = np.linalg.solve(jacobian, residual)
            except np.linalg.LinAlgError:
                log.warning("Cell %s: singular Jacobian at xi=%s", self.id, xi)
                return xi, False
            xi = xi + dxi
            if np.linalg.norm(dxi) <= self.newton_tolerance:
                return xi, True

        return xi, False

    def local_coordinates_point(self, point) -> np.ndarray:
        """Local coordinate of ``point``.

        On non-convergence a warning is logged and the best estimate is
        returned; containment must be established with ``point_in_cell``.
        """
        xi, converged = self.inverse_map(point)
        if not converged:
            log.warning(
                "Cell %s: local coordinates of %s did not converge in %d iterations",
                self.id,
                np.asarray(point).tolist(),
                self.max_newton_iterations,
            )
        return xi

    # =========================================================================
    # Particle to grid (scatter)
    # =========================================================================

    def map_particle_mass_to_nodes(self, xi, phase: int, pmass: float):
        self._check_initialised()
        weights = self._shapefn.shapefn(xi)
        for weight, node in zip(weights, self.nodes):
            node.update_mass(phase, weight * pmass)

    def map_particle_volume_to_nodes(self, xi, phase: int, pvolume: float):
        self._check_initialised()
        weights = self._shapefn.shapefn(xi)
        for weight, node in zip(weights, self.nodes):
            node.update_volume(phase, weight * pvolume)

    def compute_nodal_momentum(self, xi, phase: int, pmass: float, pvelocity):
        self._check_initialised()
        momentum = pmass * np.asarray(pvelocity, dtype=float)
        weights = self._shapefn.shapefn(xi)
        for weight, node in zip(weights, self.nodes):
            node.update_momentum(phase, weight * momentum)

    def compute_nodal_body_force(self, xi, phase: int, pmass: float, pgravity):
        self._check_initialised()
        force = pmass * np.asarray(pgravity, dtype=float)
        weights = self._shapefn.shapefn(xi)
        for weight, node in zip(weights, self.nodes):
            node.update_external_force(phase, weight * force)

    def compute_nodal_internal_force(self, xi, phase: int, pvolume: float, pstress):
        """Scatter ``-B_i^T sigma V_p`` to every node.

        Parameters
        ----------
        pstress : array_like
            Voigt stress (xx, yy, zz, xy, yz, xz); only (xx, yy, xy) are
            used in 2D.
        """
        self._check_initialised()
        pstress = np.asarray(pstress, dtype=float)
        if self._shapefn.tdim == 2:
            stress = pstress[[0, 1, 3]]
        else:
            stress = pstress
        bmatrix = self._shapefn.bmatrix(xi, self.nodal_coordinates())
        for block, node in zip(bmatrix, self.nodes):
            node.update_internal_force(phase, -pvolume * (block.T @ stress))

    # =========================================================================
    # Grid to particle (gather)
    # =========================================================================

    def _interpolate(self, xi, phase: int, attribute: str) -> np.ndarray:
        self._check_initialised()
        weights = self._shapefn.shapefn(xi)
        nodal = np.array([getattr(node, attribute)[:, phase] for node in self.nodes])
        return weights @ nodal

    def interpolate_nodal_velocity(self, xi, phase: int) -> np.ndarray:
        return self._interpolate(xi, phase, "velocity")

    def interpolate_nodal_acceleration(self, xi, phase: int) -> np.ndarray:
        return self._interpolate(xi, phase, "acceleration")

    def __repr__(self) -> str:
        return f"Cell(id={self.id}, nnodes={self._nnodes}, volume={self.volume})"
