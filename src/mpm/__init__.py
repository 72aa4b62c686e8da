"""Material Point Method discretization and transfer core.

Structure:
-----------------
Mesh (nodes, cells, particles, localization)
└── Cell (geometry, containment, inverse map, P2G / G2P kernels)
    ├── Node (shared per-phase accumulators)
    └── ShapeFunction (stateless element families)
"""

from .cell import Cell, CellNotInitialisedError
from .datastructures import MeshParameters, TransferMetrics
from .mesh import Mesh
from .meshing import create_structured_mesh, seed_particles
from .nodes import Node
from .particles import Particle
from .registry import EntityRegistry
from .shapefn import ElementType, ShapeFunction, make_shapefn

__all__ = [
    # Containers
    "EntityRegistry",
    "Mesh",
    "Cell",
    "CellNotInitialisedError",
    # Collaborators
    "Node",
    "Particle",
    # Shape functions
    "ElementType",
    "ShapeFunction",
    "make_shapefn",
    # Mesh generation
    "create_structured_mesh",
    "seed_particles",
    # Data structures
    "MeshParameters",
    "TransferMetrics",
]
