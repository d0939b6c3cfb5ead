"""Helpers for reasoning about declared types and runtime classes."""
from __future__ import annotations

import types
import typing
from typing import Any, List, Tuple

NONE_TYPE = type(None)


def qualified_name(cls: type) -> str:
    """Return the stable, fully-qualified name of a class."""
    return f"{cls.__module__}.{cls.__qualname__}"


def lineage_names(cls: type) -> List[str]:
    """Qualified names of a class and all of its bases, most-derived first."""
    return [qualified_name(c) for c in cls.__mro__ if c is not object]


def union_members(declared: Any) -> Tuple[Any, ...]:
    """Split a declared type into its non-None members.

    ``Optional[X]`` and ``X | None`` become ``(X,)``; anything that is not a
    union is returned as a one-element tuple.
    """
    origin = typing.get_origin(declared)
    if origin is typing.Union or origin is types.UnionType:
        return tuple(a for a in typing.get_args(declared) if a is not NONE_TYPE)
    return (declared,)


def runtime_class(declared: Any) -> Any:
    """Class usable with isinstance for a declared type, or None if there is none."""
    if isinstance(declared, type):
        return declared
    origin = typing.get_origin(declared)
    if origin is typing.Annotated:
        return runtime_class(typing.get_args(declared)[0])
    if isinstance(origin, type):
        return origin
    return None


def is_assignable(value: Any, declared: Any) -> bool:
    """True when value may be stored in an attribute declared as ``declared``.

    Unknown or non-class declarations (Any, TypeVars, unresolved forward
    references) accept everything.
    """
    if declared is Any:
        return True
    for member in union_members(declared):
        if member is Any:
            return True
        cls = runtime_class(member)
        if cls is None or isinstance(value, cls):
            return True
    return False
