from __future__ import annotations

from typing import Any, Dict, Iterator, Tuple

from .errors import ReferenceResolutionError

NO_IDENTITY = 0


class IdentityRegistry:
    """Bidirectional mapping between live entities and numeric identities.

    Entities are keyed by object identity, never by equality, so two equal but
    distinct objects always get distinct identities. The registry keeps a
    strong reference to every entity it has seen; its lifetime is one
    serialize or deserialize pass. Identity 0 is reserved for "no reference".
    """

    def __init__(self) -> None:
        self._by_object: Dict[int, int] = {}
        self._by_identity: Dict[int, Any] = {}
        self._next = NO_IDENTITY + 1

    def identity_of(self, entity: Any) -> int:
        """Return the entity's identity, allocating a new one on first sight."""
        identity = self._by_object.get(id(entity))
        if identity is None:
            identity = self._allocate()
            self._by_object[id(entity)] = identity
            self._by_identity[identity] = entity
        return identity

    def entity_of(self, identity: int) -> Any:
        try:
            return self._by_identity[identity]
        except KeyError as e:
            raise ReferenceResolutionError(identity) from e

    def register(self, identity: int, entity: Any) -> None:
        """Record an entity at a fixed identity (used when rebuilding a graph)."""
        if identity <= NO_IDENTITY:
            raise ValueError(f"Identity must be positive, got {identity}")
        if identity in self._by_identity:
            raise ValueError(f"Identity {identity} is already registered")
        if id(entity) in self._by_object:
            raise ValueError(f"Entity is already registered as {self._by_object[id(entity)]}")
        self._by_object[id(entity)] = identity
        self._by_identity[identity] = entity
        self._next = max(self._next, identity + 1)

    def has_identity(self, identity: int) -> bool:
        return identity in self._by_identity

    def items(self) -> Iterator[Tuple[int, Any]]:
        return iter(self._by_identity.items())

    def _allocate(self) -> int:
        identity = self._next
        self._next += 1
        return identity

    def __contains__(self, entity: object) -> bool:
        return id(entity) in self._by_object

    def __len__(self) -> int:
        return len(self._by_identity)
