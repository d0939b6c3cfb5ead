from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .errors import EncodingError, ReferenceResolutionError, TypeResolutionError
from .hierarchy import Hierarchy, NodeHierarchy
from .identity import NO_IDENTITY, IdentityRegistry
from .introspection import FieldIntrospector
from .issues import ACCESS, FieldIssue
from .policy import DEFAULT_POLICY, ExclusionPolicy
from .resolver import TypeResolver
from .scalars import encode_scalar
from .snapshot import AttributeValue, EntitySnapshot, GraphSnapshot
from .typeinfo import qualified_name
from .walker import GraphWalker, Visit

logger = logging.getLogger(__name__)


class Serializer:
    """Flattens a live entity graph into a GraphSnapshot.

    Each entity appears once however many references point at it. Values are
    classified when read: None is null, a registered entity is a reference,
    anything else is encoded as a scalar. A value that cannot be encoded aborts
    the pass with an EncodingError; an attribute that cannot be read is skipped
    and reported in ``issues``.
    """

    def __init__(
        self,
        resolver: TypeResolver,
        policy: ExclusionPolicy = DEFAULT_POLICY,
        hierarchy: Optional[Hierarchy] = None,
    ) -> None:
        self.resolver = resolver
        self.policy = policy
        self.hierarchy = hierarchy if hierarchy is not None else NodeHierarchy()
        self.introspector = FieldIntrospector(resolver, policy)
        self.issues: List[FieldIssue] = []

    def serialize(self, root: Any) -> GraphSnapshot:
        if not self.resolver.is_entity(root):
            name = qualified_name(type(root))
            raise TypeResolutionError(name, f"Root object type is not registered: {name}")
        self.issues = []
        registry = IdentityRegistry()
        walker = GraphWalker(self.introspector, registry, self.hierarchy)
        entities: Dict[int, EntitySnapshot] = {}
        for visit in walker.walk(root):
            entities[visit.identity] = self._snapshot(visit, registry)

        self._link_parents(entities, registry, root)
        snapshot = GraphSnapshot(entities=entities)
        missing = snapshot.dangling_references()
        if missing:
            # Every referenced entity is walked, so this means the graph changed mid-pass.
            owner, name, target = missing[0]
            raise ReferenceResolutionError(target, f"Entity {owner} attribute {name!r} escaped the walk")
        logger.debug("Serialized %d entities (%d skipped attributes)", len(entities), len(self.issues))
        return snapshot

    def _snapshot(self, visit: Visit, registry: IdentityRegistry) -> EntitySnapshot:
        type_name = self.resolver.name_of(visit.entity)
        for error in visit.errors:
            logger.warning("Skipping unreadable attribute: %s", error)
            self.issues.append(FieldIssue(visit.identity, type_name, error.attribute, ACCESS, str(error)))

        attributes: Dict[str, AttributeValue] = {}
        for attr, value in visit.fields:
            if value is None:
                attributes[attr.name] = AttributeValue.null()
            elif self.resolver.is_entity(value):
                attributes[attr.name] = AttributeValue.reference(registry.identity_of(value))
            else:
                try:
                    text = encode_scalar(value, self.resolver.is_entity)
                except EncodingError as e:
                    raise EncodingError(
                        e.reason, type_name=type_name, identity=visit.identity, attribute=attr.name
                    ) from e
                attributes[attr.name] = AttributeValue.scalar(text)
        return EntitySnapshot(type_name=type_name, attributes=attributes)

    def _link_parents(self, entities: Dict[int, EntitySnapshot], registry: IdentityRegistry, root: Any) -> None:
        """Record hierarchy parent and sibling position for every entity but the root."""
        for identity, snapshot in entities.items():
            entity = registry.entity_of(identity)
            if entity is root:
                continue
            parent = self.hierarchy.parent_of(entity)
            if parent is None or parent not in registry:
                continue
            parent_identity = registry.identity_of(parent)
            if parent_identity not in entities:
                continue
            snapshot.parent = parent_identity
            snapshot.index = _sibling_index(self.hierarchy, parent, entity)
        entities[registry.identity_of(root)].parent = NO_IDENTITY


def _sibling_index(hierarchy: Hierarchy, parent: Any, child: Any) -> int:
    for i, sibling in enumerate(hierarchy.children_of(parent)):
        if sibling is child:
            return i
    return 0
