"""Identifier-keyed container of shared entities.

Nodes, neighbour cells and neighbour meshes are all held in an
``EntityRegistry``. A registry stores a reference, never a copy, so a node
bound to four cells is the same object in all four registries and in the
mesh.

Slots are small non-negative integers. Insertion into an occupied slot is
rejected without touching the registry, and iteration always follows
ascending slot order regardless of insertion order.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

log = logging.getLogger(__name__)


class EntityRegistry:
    """Order-preserving map from slot index to entity handle."""

    def __init__(self, name: str = "entity"):
        self.name = name
        self._entities: Dict[int, Any] = {}
        self._order: Optional[List[int]] = []

    def insert(self, slot: int, handle) -> bool:
        """Bind ``handle`` to ``slot``; fails if the slot is occupied."""
        if slot < 0:
            raise ValueError(f"{self.name} slot must be non-negative, got {slot}")
        if slot in self._entities:
            log.debug("%s slot %d already occupied", self.name, slot)
            return False
        self._entities[slot] = handle
        self._order = None
        return True

    def insert_entity(self, handle) -> bool:
        """Insert keyed on the entity's own ``id``."""
        return self.insert(handle.id, handle)

    def remove(self, slot: int) -> bool:
        if slot not in self._entities:
            return False
        del self._entities[slot]
        self._order = None
        return True

    def get(self, slot: int, default=None):
        return self._entities.get(slot, default)

    def size(self) -> int:
        return len(self._entities)

    def slots(self) -> List[int]:
        """Occupied slots in ascending order."""
        if self._order is None:
            self._order = sorted(self._entities)
        return list(self._order)

    def items(self) -> Iterator[Tuple[int, Any]]:
        for slot in self.slots():
            yield slot, self._entities[slot]

    def for_each(self, fn: Callable[[Any], Any]) -> None:
        """Apply ``fn`` to every handle in slot order.

        The slot list is snapshotted before the traversal starts; the
        registry must not be mutated from inside ``fn``.
        """
        for slot in self.slots():
            fn(self._entities[slot])

    def __getitem__(self, slot: int):
        return self._entities[slot]

    def __contains__(self, slot) -> bool:
        return slot in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self):
        for slot in self.slots():
            yield self._entities[slot]

    def __repr__(self) -> str:
        return f"EntityRegistry(name={self.name!r}, size={len(self)})"
