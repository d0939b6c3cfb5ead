from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional

from .errors import FieldAccessError
from .hierarchy import Hierarchy, NodeHierarchy
from .identity import IdentityRegistry
from .introspection import FieldIntrospector, FieldRead

logger = logging.getLogger(__name__)


@dataclass
class Visit:
    """One entity reached by the walk, with its persisted attribute values already read."""

    identity: int
    entity: Any
    fields: List[FieldRead] = field(default_factory=list)
    errors: List[FieldAccessError] = field(default_factory=list)


class GraphWalker:
    """Discovers every entity reachable from a root, each exactly once.

    Edges are entity-valued persisted attributes (in declared order) followed by
    the hierarchy children. The walk is a pre-order depth-first traversal driven
    by an explicit stack, so deep scene trees do not hit the recursion limit.
    Identities are assigned in discovery order; the root is always first.
    """

    def __init__(
        self,
        introspector: FieldIntrospector,
        registry: Optional[IdentityRegistry] = None,
        hierarchy: Optional[Hierarchy] = None,
    ) -> None:
        self.introspector = introspector
        self.registry = registry if registry is not None else IdentityRegistry()
        self.hierarchy = hierarchy if hierarchy is not None else NodeHierarchy()

    def walk(self, root: Any) -> Iterator[Visit]:
        is_entity = self.introspector.resolver.is_entity
        visited = set()
        stack = [root]
        self.registry.identity_of(root)
        while stack:
            entity = stack.pop()
            identity = self.registry.identity_of(entity)
            if identity in visited:
                continue
            visited.add(identity)

            fields, errors = self.introspector.read_fields(entity)
            neighbours = [value for _, value in fields if is_entity(value)]
            for child in self.hierarchy.children_of(entity):
                if is_entity(child):
                    neighbours.append(child)
                else:
                    logger.warning("Skipping child %r of %r: type is not registered", child, entity)
            for neighbour in neighbours:
                self.registry.identity_of(neighbour)
            stack.extend(reversed(neighbours))

            yield Visit(identity=identity, entity=entity, fields=fields, errors=errors)
        logger.debug("Walked %d entities from a %s root", len(visited), type(root).__name__)

    def collect(self, root: Any) -> List[Any]:
        """Every reachable entity in walk order."""
        return [visit.entity for visit in self.walk(root)]
