from __future__ import annotations

import json
import logging
import threading
import types
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from .typeinfo import lineage_names, qualified_name, runtime_class, union_members

TypeRef = Union[type, str]


def _type_key(ref: TypeRef) -> str:
    if isinstance(ref, str):
        if not ref:
            raise ValueError("Type name must be a non-empty string")
        return ref
    if isinstance(ref, type):
        return qualified_name(ref)
    raise TypeError(f"Expected a class or qualified type name, got {ref!r}")


@dataclass(frozen=True)
class ExclusionPolicy:
    """Which attributes are left out of a snapshot.

    - excluded_types: values whose runtime type (or any base class) is listed
      are never persisted, whatever attribute holds them.
    - excluded_attributes: declaring type name -> attribute names. A name
      excluded for a class is excluded for all of its subclasses.

    Types are stored by qualified name so a policy can be written in JSON.
    Build instances with ``ExclusionPolicy.build`` to pass classes directly.
    """

    excluded_types: FrozenSet[str] = frozenset()
    excluded_attributes: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "excluded_types", frozenset(self.excluded_types))
        frozen = {k: frozenset(v) for k, v in self.excluded_attributes.items()}
        object.__setattr__(self, "excluded_attributes", MappingProxyType(frozen))

    @classmethod
    def build(
        cls,
        types: Iterable[TypeRef] = (),
        attributes: Optional[Mapping[TypeRef, Iterable[str]]] = None,
    ) -> "ExclusionPolicy":
        merged: Dict[str, FrozenSet[str]] = {}
        for owner, names in (attributes or {}).items():
            key = _type_key(owner)
            merged[key] = merged.get(key, frozenset()) | frozenset(names)
        return cls(
            excluded_types=frozenset(_type_key(t) for t in types),
            excluded_attributes=merged,
        )

    def merged(self, other: "ExclusionPolicy") -> "ExclusionPolicy":
        """Return a policy excluding everything either policy excludes."""
        attributes: Dict[str, FrozenSet[str]] = dict(self.excluded_attributes)
        for owner, names in other.excluded_attributes.items():
            attributes[owner] = attributes.get(owner, frozenset()) | names
        return ExclusionPolicy(
            excluded_types=self.excluded_types | other.excluded_types,
            excluded_attributes=attributes,
        )

    # Queries

    def excludes_type(self, cls: type) -> bool:
        if not self.excluded_types:
            return False
        return any(name in self.excluded_types for name in lineage_names(cls))

    def excludes_value(self, value: Any) -> bool:
        return value is not None and self.excludes_type(type(value))

    def excludes_declared(self, declared: Any) -> bool:
        """True when any member of a declared type is an excluded type."""
        for member in union_members(declared):
            cls = runtime_class(member)
            if cls is not None and self.excludes_type(cls):
                return True
        return False

    def excludes_attribute(self, owner: type, name: str) -> bool:
        if not self.excluded_attributes:
            return False
        for type_name in lineage_names(owner):
            names = self.excluded_attributes.get(type_name)
            if names and name in names:
                return True
        return False

    # Serialization of the policy itself

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exclude_types": sorted(self.excluded_types),
            "exclude_attributes": {k: sorted(v) for k, v in sorted(self.excluded_attributes.items())},
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "ExclusionPolicy":
        types_ = data.get("exclude_types", [])
        attributes = data.get("exclude_attributes", {})
        if not isinstance(types_, list) or not all(isinstance(t, str) for t in types_):
            raise ValueError("exclude_types must be a list of qualified type names")
        if not isinstance(attributes, dict):
            raise ValueError("exclude_attributes must map type names to attribute lists")
        for owner, names in attributes.items():
            if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
                raise ValueError(f"exclude_attributes[{owner!r}] must be a list of names")
        return ExclusionPolicy.build(types=types_, attributes=attributes)

    @classmethod
    def from_json(cls, path: Path) -> "ExclusionPolicy":
        with Path(path).open("r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


def _default_excluded_types() -> List[type]:
    return [
        types.FunctionType,
        types.BuiltinFunctionType,
        types.MethodType,
        types.ModuleType,
        types.GeneratorType,
        type(threading.Lock()),
        type(threading.RLock()),
        logging.Logger,
    ]


# Values that can never be meaningfully restored from a save.
DEFAULT_POLICY = ExclusionPolicy.build(types=_default_excluded_types())
