from __future__ import annotations

import enum
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import DecodingError, FieldAccessError, PassStateError, TypeResolutionError
from .hierarchy import Hierarchy, NodeHierarchy
from .identity import NO_IDENTITY, IdentityRegistry
from .introspection import FieldIntrospector
from .issues import ACCESS, DECODE, TYPE_MISMATCH, FieldIssue
from .policy import DEFAULT_POLICY, ExclusionPolicy
from .resolver import TypeResolver
from .scalars import decode_scalar
from .snapshot import AttributeValue, EntitySnapshot, GraphSnapshot
from .typeinfo import is_assignable

logger = logging.getLogger(__name__)


class _Mismatch(Exception):
    """A reference whose target does not fit the declared attribute type."""


class PassState(enum.Enum):
    EMPTY = "empty"
    ALLOCATED = "allocated"
    POPULATED = "populated"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass
class LoadResult:
    """A fully rebuilt graph plus every attribute that could not be restored."""

    root: Any
    entities: Dict[int, Any]
    issues: List[FieldIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


class LoadPass:
    """One deserialization pass over a snapshot.

    The phases must run in order: ``allocate`` builds an empty instance for
    every identity, ``populate`` assigns attributes and re-attaches children,
    ``finalize`` hands the graph over. Attribute population only starts once
    every entity exists, which is what lets forward references, self
    references and cycles resolve. Any exception leaves the pass unusable and
    its partial graph must be discarded.
    """

    def __init__(
        self,
        snapshot: GraphSnapshot,
        introspector: FieldIntrospector,
        hierarchy: Hierarchy,
    ) -> None:
        self.snapshot = snapshot
        self.introspector = introspector
        self.resolver = introspector.resolver
        self.policy = introspector.policy
        self.hierarchy = hierarchy
        self.registry = IdentityRegistry()
        self.issues: List[FieldIssue] = []
        self.state = PassState.EMPTY

    def allocate(self) -> None:
        self._require(PassState.EMPTY)
        try:
            self.snapshot.validate()
            root_identity = self.snapshot.root_identity
            for identity, entity_snapshot in self.snapshot.entities.items():
                cls = self.resolver.resolve(entity_snapshot.type_name)
                self.registry.register(identity, self._construct(cls, entity_snapshot.type_name))
        except Exception:
            self.state = PassState.FAILED
            raise
        self.state = PassState.ALLOCATED
        logger.debug("Allocated %d entities (root %d)", len(self.registry), root_identity)

    def populate(self) -> None:
        self._require(PassState.ALLOCATED)
        try:
            self._attach_children()
            for identity, entity_snapshot in self.snapshot.entities.items():
                self._populate_entity(identity, entity_snapshot)
        except Exception:
            self.state = PassState.FAILED
            raise
        self.state = PassState.POPULATED

    def finalize(self) -> LoadResult:
        self._require(PassState.POPULATED)
        root = self.registry.entity_of(self.snapshot.root_identity)
        self.state = PassState.FINALIZED
        if self.issues:
            logger.warning("Loaded snapshot with %d unrestored attributes", len(self.issues))
        return LoadResult(root=root, entities=dict(self.registry.items()), issues=list(self.issues))

    # Internals

    def _require(self, expected: PassState) -> None:
        if self.state is not expected:
            raise PassStateError(f"Pass is {self.state.value}; expected {expected.value}")

    @staticmethod
    def _construct(cls: type, type_name: str) -> Any:
        try:
            inspect.signature(cls).bind()
        except TypeError:
            # Constructor needs arguments; attributes are assigned in populate.
            logger.debug("%s requires constructor arguments; allocating without __init__", type_name)
            return cls.__new__(cls)
        except ValueError:
            # No introspectable signature; just try it.
            pass
        try:
            return cls()
        except Exception as e:
            raise TypeResolutionError(type_name, f"Cannot construct {type_name}: {e!r}") from e

    def _attach_children(self) -> None:
        linked = [
            (s.parent, s.index, identity)
            for identity, s in self.snapshot.entities.items()
            if s.parent != NO_IDENTITY
        ]
        for parent_identity, _, identity in sorted(linked):
            parent = self.registry.entity_of(parent_identity)
            child = self.registry.entity_of(identity)
            try:
                self.hierarchy.attach(parent, child)
            except (TypeError, ValueError) as e:
                type_name = self.snapshot.entities[identity].type_name
                self._report(identity, type_name, "<parent>", ACCESS, f"cannot attach to {parent_identity}: {e}")

    def _populate_entity(self, identity: int, entity_snapshot: EntitySnapshot) -> None:
        entity = self.registry.entity_of(identity)
        entity_type = type(entity)
        type_name = entity_snapshot.type_name
        for name, value in entity_snapshot.attributes.items():
            attr = self.introspector.attribute(type_name, name)
            if attr is None:
                self._report(identity, type_name, name, ACCESS, "attribute no longer exists")
                continue
            if self.policy.excludes_attribute(entity_type, name):
                continue
            try:
                resolved = self._resolve_value(value, attr.declared_type)
            except DecodingError as e:
                self._report(identity, type_name, name, DECODE, str(e))
                continue
            except _Mismatch as e:
                self._report(identity, type_name, name, TYPE_MISMATCH, str(e))
                continue
            try:
                attr.write(entity, resolved)
            except FieldAccessError as e:
                self._report(identity, type_name, name, ACCESS, str(e))

    def _resolve_value(self, value: AttributeValue, declared_type: Any) -> Any:
        if value.is_null:
            return None
        if value.is_reference:
            target = self.registry.entity_of(value.identity)
            if not is_assignable(target, declared_type):
                raise _Mismatch(
                    f"entity {value.identity} ({type(target).__name__}) is not assignable to {declared_type!r}"
                )
            return target
        return decode_scalar(value.text, declared_type)

    def _report(self, identity: int, type_name: str, attribute: str, kind: str, message: str) -> None:
        issue = FieldIssue(identity, type_name, attribute, kind, message)
        logger.warning("Attribute not restored: %s", issue)
        self.issues.append(issue)


class Deserializer:
    """Rebuilds a live graph from a GraphSnapshot in two phases."""

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

    def begin(self, snapshot: GraphSnapshot) -> LoadPass:
        return LoadPass(snapshot, self.introspector, self.hierarchy)

    def deserialize(self, snapshot: GraphSnapshot) -> LoadResult:
        load = self.begin(snapshot)
        load.allocate()
        load.populate()
        return load.finalize()
