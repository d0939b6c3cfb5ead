from __future__ import annotations

from typing import Iterator, List, Optional

from .resolver import serializable


@serializable
class Node:
    """A minimal scene-tree object: a name, one parent and ordered children.

    ``parent`` and ``children`` are structural and read-only; they are saved as
    the snapshot's parent/index linkage rather than as attributes. ``owner`` is
    an ordinary reference to another node (typically the scene root).
    """

    name: str

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._parent: Optional[Node] = None
        self._children: List[Node] = []
        self._owner: Optional[Node] = None

    @property
    def parent(self) -> Optional[Node]:
        return self._parent

    @property
    def owner(self) -> Optional[Node]:
        return self._owner

    @owner.setter
    def owner(self, value: Optional[Node]) -> None:
        if value is not None and not isinstance(value, Node):
            raise TypeError("owner must be a Node")
        self._owner = value

    def add_child(self, child: Node) -> None:
        if child is self:
            raise ValueError("A node cannot be its own child")
        if child._parent is not None:
            raise ValueError(f"Node {child.name!r} already has a parent ({child._parent.name!r})")
        ancestor = self._parent
        while ancestor is not None:
            if ancestor is child:
                raise ValueError(f"Node {child.name!r} is an ancestor of {self.name!r}")
            ancestor = ancestor._parent
        child._parent = self
        self._children.append(child)

    def remove_child(self, child: Node) -> None:
        if child._parent is not self:
            raise ValueError(f"Node {child.name!r} is not a child of {self.name!r}")
        self._children.remove(child)
        child._parent = None

    def get_children(self) -> List[Node]:
        return list(self._children)

    def get_child_count(self) -> int:
        return len(self._children)

    def get_children_recursive(self, include_root: bool = False) -> List[Node]:
        """All descendants in pre-order, optionally preceded by this node."""
        nodes: List[Node] = [self] if include_root else []
        nodes.extend(self._iter_descendants())
        return nodes

    def _iter_descendants(self) -> Iterator[Node]:
        for child in self._children:
            yield child
            yield from child._iter_descendants()

    def get_path(self) -> str:
        parts = []
        node: Optional[Node] = self
        while node is not None:
            parts.append(node.name)
            node = node._parent
        return "/" + "/".join(reversed(parts))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
