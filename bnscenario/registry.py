"""
Identifier registry shared by the named entities of a model.

Networks and scenarios of one model live in a single namespace. The registry
is the only object in the package guarded by a lock: registration, removal
and renames are serialised, and a rename swaps the old mapping for the new
one in a single critical section so no observer can see both or neither.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterator, Optional, Protocol

from bnscenario.errors import IdentifierConflict


class Identifiable(Protocol):
    """Entity that carries a registry-managed identifier."""

    @property
    def id(self) -> str: ...

    def _assign_id(self, new_id: str) -> None: ...


def _check_id(entity_id: object) -> str:
    if not isinstance(entity_id, str):
        raise TypeError(f"Identifier must be a string, got {type(entity_id).__name__}")
    if not entity_id.strip():
        raise ValueError("Identifier cannot be empty")
    return entity_id


class IdentifierRegistry:
    """
    Mapping from identifier to entity with enforced uniqueness.

    Attributes:
        _entries: Identifier to entity mapping.
        _lock: Exclusive lock held for the duration of each mutation.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Identifiable] = {}
        self._lock = threading.Lock()

    def register(self, entity_id: str, entity: Identifiable) -> None:
        """
        Register an entity under an identifier.

        Raises:
            IdentifierConflict: If the identifier is already taken.
        """
        entity_id = _check_id(entity_id)
        with self._lock:
            if entity_id in self._entries:
                raise IdentifierConflict(f"Identifier '{entity_id}' is already in use")
            self._entries[entity_id] = entity

    def unregister(self, entity_id: str) -> None:
        """Remove an identifier. Unknown identifiers are ignored."""
        with self._lock:
            self._entries.pop(entity_id, None)

    def rename(self, entity: Identifiable, new_id: str) -> None:
        """
        Move an entity to a new identifier.

        The entity's own id is updated inside the same critical section via
        its ``_assign_id`` hook. On conflict nothing changes.

        Raises:
            IdentifierConflict: If ``new_id`` belongs to another entity.
            KeyError: If the entity is not registered here.
        """
        new_id = _check_id(new_id)
        with self._lock:
            old_id = entity.id
            if self._entries.get(old_id) is not entity:
                raise KeyError(f"Entity '{old_id}' is not registered")
            if new_id == old_id:
                return
            holder = self._entries.get(new_id)
            if holder is not None:
                raise IdentifierConflict(
                    f"Identifier '{new_id}' is already in use"
                )
            del self._entries[old_id]
            self._entries[new_id] = entity
            entity._assign_id(new_id)

    def lookup(self, entity_id: str) -> Optional[Identifiable]:
        with self._lock:
            return self._entries.get(entity_id)

    def __contains__(self, entity_id: object) -> bool:
        with self._lock:
            return entity_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._entries))
