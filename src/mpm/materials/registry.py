"""Name -> constructor mapping for material models.

The registry is an ordinary object built by whoever sets up a run; nothing
registers itself at import time.
"""

import logging
from typing import Callable, Dict, List

from .base import Material
from .linear_elastic import LinearElastic

log = logging.getLogger(__name__)


class MaterialRegistry:
    """Explicit registry of material constructors."""

    def __init__(self):
        self._constructors: Dict[str, Callable[..., Material]] = {}

    def register(self, name: str, constructor: Callable[..., Material]) -> bool:
        """Register ``constructor`` under ``name``; fails if the name is taken."""
        if name in self._constructors:
            return False
        self._constructors[name] = constructor
        return True

    def create(self, name: str, id: int, properties: dict = None) -> Material:
        if name not in self._constructors:
            raise KeyError(f"Unknown material model '{name}'. Available: {self.names()}")
        log.info("Creating material %s (%s)", id, name)
        return self._constructors[name](id, properties)

    def names(self) -> List[str]:
        return sorted(self._constructors)

    def __contains__(self, name) -> bool:
        return name in self._constructors


def default_material_registry() -> MaterialRegistry:
    """Registry with every built-in material model."""
    registry = MaterialRegistry()
    registry.register("LinearElastic", LinearElastic)
    return registry
