"""Constitutive models consumed by the internal-force kernel.

Material (abstract base)
└── LinearElastic
"""

from .base import Material
from .linear_elastic import LinearElastic
from .registry import MaterialRegistry, default_material_registry

__all__ = [
    "Material",
    "LinearElastic",
    "MaterialRegistry",
    "default_material_registry",
]
