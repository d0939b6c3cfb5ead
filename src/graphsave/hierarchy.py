"""Adapters over the hosting runtime's parent/child relationship."""
from __future__ import annotations

from typing import Any, List, Optional, Protocol


class Hierarchy(Protocol):
    def parent_of(self, entity: Any) -> Optional[Any]: ...

    def children_of(self, entity: Any) -> List[Any]: ...

    def attach(self, parent: Any, child: Any) -> None: ...


class FlatHierarchy:
    """No structural relationships; the graph is defined by attributes alone."""

    def parent_of(self, entity: Any) -> Optional[Any]:
        return None

    def children_of(self, entity: Any) -> List[Any]:
        return []

    def attach(self, parent: Any, child: Any) -> None:
        raise TypeError(f"Cannot attach {child!r} to {parent!r}: hierarchy is flat")


class NodeHierarchy:
    """Scene-tree hierarchy for objects exposing ``parent``, ``get_children`` and ``add_child``.

    Objects without that surface (plain records) simply have no parent and no
    children, so mixed graphs work.
    """

    def parent_of(self, entity: Any) -> Optional[Any]:
        if not hasattr(entity, "get_children"):
            return None
        return getattr(entity, "parent", None)

    def children_of(self, entity: Any) -> List[Any]:
        get_children = getattr(entity, "get_children", None)
        if get_children is None:
            return []
        return list(get_children())

    def attach(self, parent: Any, child: Any) -> None:
        add_child = getattr(parent, "add_child", None)
        if add_child is None:
            raise TypeError(f"{type(parent).__name__} cannot hold children")
        add_child(child)

