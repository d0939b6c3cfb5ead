"""Discovery of persistable attributes on entity classes.

An attribute is persistable when it is declared on the instance (class
annotations, dataclass fields, or properties with both a getter and a setter),
is public, and is not marked obsolete. Type-level ``ClassVar`` declarations are
never persisted.
"""
from __future__ import annotations

import dataclasses
import inspect
import logging
import typing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple, TypeVar

from .errors import FieldAccessError
from .policy import ExclusionPolicy
from .typeinfo import qualified_name

if TYPE_CHECKING:
    from .resolver import TypeResolver

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def obsolete(reason: str = "obsolete") -> Callable[[F], F]:
    """Mark a property getter as obsolete so it is no longer persisted.

    Sets ``__deprecated__`` the same way ``warnings.deprecated`` does, so either
    decorator can be used.
    """

    def mark(func: F) -> F:
        func.__deprecated__ = reason  # type: ignore[attr-defined]
        return func

    return mark


@dataclass(frozen=True)
class Attribute:
    """One persistable attribute of an entity class.

    Any exception raised by a getter or setter surfaces as FieldAccessError,
    so the caller can skip the attribute and carry on.
    """

    name: str
    declared_type: Any
    declaring_type: type

    def read(self, entity: Any) -> Any:
        try:
            return getattr(entity, self.name)
        except Exception as e:
            raise FieldAccessError(qualified_name(type(entity)), self.name, f"cannot read: {e!r}") from e

    def write(self, entity: Any, value: Any) -> None:
        try:
            setattr(entity, self.name, value)
        except Exception as e:
            raise FieldAccessError(qualified_name(type(entity)), self.name, f"cannot write: {e!r}") from e


# What typing.get_type_hints raises for annotations it cannot evaluate
_HINT_ERRORS = (NameError, AttributeError, TypeError, SyntaxError)


def _is_class_var(annotation: Any) -> bool:
    """True for type-level or init-only declarations (ClassVar, InitVar)."""
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar", "InitVar", "dataclasses.InitVar"))
    if isinstance(annotation, dataclasses.InitVar) or annotation is dataclasses.InitVar:
        return True
    return annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar


def _resolve_annotation(name: str, annotation: Any, owner: type) -> Any:
    """Resolve one annotation in the owner's module, or Any when that fails."""
    if not isinstance(annotation, str):
        return annotation
    holder = type(owner.__name__, (), {"__annotations__": {name: annotation}, "__module__": owner.__module__})
    try:
        return typing.get_type_hints(holder, localns={owner.__name__: owner, **vars(owner)})[name]
    except _HINT_ERRORS as e:
        logger.debug("Unresolvable annotation %r on %s (%s); treating as Any", annotation, qualified_name(owner), e)
        return Any


def _class_annotations(owner: type) -> Dict[str, Any]:
    raw = inspect.get_annotations(owner)
    try:
        hints = typing.get_type_hints(owner, localns={owner.__name__: owner})
    except _HINT_ERRORS:
        # One bad annotation spoils the batch; resolve the rest one by one.
        hints = {}
    resolved: Dict[str, Any] = {}
    for name, annotation in raw.items():
        if _is_class_var(annotation):
            continue
        declared = hints.get(name, annotation)
        if _is_class_var(declared):
            continue
        resolved[name] = _resolve_annotation(name, declared, owner)
    return resolved


def _property_type(prop: property, owner: type) -> Any:
    try:
        hints = typing.get_type_hints(prop.fget, localns={owner.__name__: owner})
    except _HINT_ERRORS:
        hints = {}
    if "return" in hints:
        return hints["return"]
    annotation = getattr(prop.fget, "__annotations__", {}).get("return", Any)
    return _resolve_annotation("return", annotation, owner)


def _deprecated_fields(owner: type) -> set:
    if not dataclasses.is_dataclass(owner):
        return set()
    return {f.name for f in dataclasses.fields(owner) if f.metadata.get("deprecated")}


def discover_attributes(cls: type) -> List[Attribute]:
    """Enumerate the persistable attributes of ``cls`` in declaration order.

    Base classes come first. A name redeclared in a subclass keeps its original
    position but takes the subclass's declared type.
    """
    found: Dict[str, Attribute] = {}
    obsolete_names: set = set()
    for owner in reversed(cls.__mro__):
        if owner is object:
            continue
        obsolete_names |= _deprecated_fields(owner)
        for name, declared in _class_annotations(owner).items():
            if name.startswith("_"):
                continue
            # A class attribute shadowed by a read-only property is not settable.
            member = inspect.getattr_static(cls, name, None)
            if isinstance(member, property) and member.fset is None:
                continue
            found[name] = Attribute(name, declared, owner)
        for name, member in vars(owner).items():
            if name.startswith("_") or not isinstance(member, property):
                continue
            if member.fget is None or member.fset is None:
                found.pop(name, None)
                continue
            if getattr(member.fget, "__deprecated__", None):
                obsolete_names.add(name)
                continue
            found[name] = Attribute(name, _property_type(member, owner), owner)
    return [a for name, a in found.items() if name not in obsolete_names]


FieldRead = Tuple[Attribute, Any]


class FieldIntrospector:
    """Lists persistable attributes for entity types and applies an ExclusionPolicy."""

    def __init__(self, resolver: "TypeResolver", policy: ExclusionPolicy) -> None:
        self.resolver = resolver
        self.policy = policy
        self._cache: Dict[str, List[Attribute]] = {}

    def attributes(self, type_name: str) -> List[Attribute]:
        attrs = self._cache.get(type_name)
        if attrs is None:
            attrs = self.resolver.introspect(type_name)
            self._cache[type_name] = attrs
        return attrs

    def attribute(self, type_name: str, name: str) -> Optional[Attribute]:
        for attr in self.attributes(type_name):
            if attr.name == name:
                return attr
        return None

    def is_persisted(self, entity_type: type, attribute: Attribute, value: Any) -> bool:
        """Decide whether an already-read (attribute, value) pair goes into a snapshot."""
        if self.policy.excludes_attribute(entity_type, attribute.name):
            return False
        if value is None:
            return not self.policy.excludes_declared(attribute.declared_type)
        return not self.policy.excludes_value(value)

    def read_fields(self, entity: Any) -> Tuple[List[FieldRead], List[FieldAccessError]]:
        """Read every persisted attribute of an entity.

        Unreadable attributes are returned as errors instead of raising, so one
        bad attribute does not abort a whole save.
        """
        entity_type = type(entity)
        fields: List[FieldRead] = []
        errors: List[FieldAccessError] = []
        for attr in self.attributes(self.resolver.name_of(entity_type)):
            if self.policy.excludes_attribute(entity_type, attr.name):
                continue
            try:
                value = attr.read(entity)
            except FieldAccessError as e:
                errors.append(e)
                continue
            if self.is_persisted(entity_type, attr, value):
                fields.append((attr, value))
        return fields, errors
