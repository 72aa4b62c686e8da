"""Element shape functions.

The set of element families is closed: ``ElementType`` enumerates every
supported family and ``make_shapefn`` returns the (shared) implementation.

Families
--------
ShapeFunction (abstract contract)
├── QuadrilateralShapeFn (4, 8, 9 nodes)
├── TriangleShapeFn (3 nodes)
├── HexahedronShapeFn (8 nodes)
└── TetrahedronShapeFn (4 nodes)
"""

from enum import Enum
from functools import lru_cache

from .base import ShapeFunction
from .hexahedron import HexahedronShapeFn
from .quadrilateral import QuadrilateralShapeFn
from .simplex import TetrahedronShapeFn, TriangleShapeFn


class ElementType(Enum):
    """Supported element families."""

    QUAD4 = "quad4"
    QUAD8 = "quad8"
    QUAD9 = "quad9"
    TRI3 = "tri3"
    HEX8 = "hex8"
    TET4 = "tet4"


_FAMILIES = {
    ElementType.QUAD4: (QuadrilateralShapeFn, 4),
    ElementType.QUAD8: (QuadrilateralShapeFn, 8),
    ElementType.QUAD9: (QuadrilateralShapeFn, 9),
    ElementType.TRI3: (TriangleShapeFn, 3),
    ElementType.HEX8: (HexahedronShapeFn, 8),
    ElementType.TET4: (TetrahedronShapeFn, 4),
}


@lru_cache(maxsize=None)
def _shared_shapefn(element_type: ElementType) -> ShapeFunction:
    cls, nnodes = _FAMILIES[element_type]
    return cls(nnodes)


def make_shapefn(element_type) -> ShapeFunction:
    """Return the shape function for ``element_type``.

    Shape functions are stateless, so the same instance is returned for
    repeated calls with the same element type.

    Parameters
    ----------
    element_type : ElementType or str
        Enum member or its value, e.g. ``"quad4"``.
    """
    return _shared_shapefn(ElementType(element_type))


__all__ = [
    "ElementType",
    "ShapeFunction",
    "QuadrilateralShapeFn",
    "TriangleShapeFn",
    "HexahedronShapeFn",
    "TetrahedronShapeFn",
    "make_shapefn",
]
