from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional, TypeVar

from .errors import TypeResolutionError
from .introspection import Attribute, discover_attributes
from .typeinfo import qualified_name

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=type)


class TypeResolver:
    """Registry of entity classes addressable by a stable type name.

    Only instances whose exact class is registered are treated as entities;
    everything else stored in an attribute is a scalar. Type names default to
    the fully-qualified ``module.QualName`` and must not change between a save
    and the matching load.
    """

    def __init__(self) -> None:
        self._by_name: Dict[str, type] = {}
        self._names: Dict[type, str] = {}

    def register(self, cls: Optional[T] = None, name: Optional[str] = None) -> Any:
        """Register an entity class. Usable directly or as a class decorator."""
        if cls is None:
            return lambda c: self.register(c, name)
        if not isinstance(cls, type):
            raise TypeError(f"Only classes can be registered, got {cls!r}")
        type_name = name or qualified_name(cls)
        existing = self._by_name.get(type_name)
        if existing is not None and existing is not cls:
            raise ValueError(f"Type name {type_name!r} is already registered to {existing!r}")
        previous = self._names.get(cls)
        if previous is not None and previous != type_name:
            raise ValueError(f"{cls!r} is already registered as {previous!r}")
        self._by_name[type_name] = cls
        self._names[cls] = type_name
        logger.debug("Registered entity type %s", type_name)
        return cls

    def resolve(self, type_name: str) -> type:
        try:
            return self._by_name[type_name]
        except KeyError as e:
            raise TypeResolutionError(type_name) from e

    def name_of(self, obj_or_cls: Any) -> str:
        cls = obj_or_cls if isinstance(obj_or_cls, type) else type(obj_or_cls)
        try:
            return self._names[cls]
        except KeyError as e:
            raise TypeResolutionError(qualified_name(cls), f"Type is not registered: {qualified_name(cls)}") from e

    def is_entity(self, value: Any) -> bool:
        return value is not None and type(value) in self._names

    def introspect(self, type_name: str) -> List[Attribute]:
        return discover_attributes(self.resolve(type_name))

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._by_name

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)


# A default, module-level resolver for convenience
default_resolver = TypeResolver()


def serializable(cls: Optional[T] = None, *, name: Optional[str] = None):
    """Class decorator registering an entity type with the default resolver."""
    if cls is None:
        return lambda c: default_resolver.register(c, name)
    return default_resolver.register(cls, name)
