"""Structured-data encoding of attribute values that are not entities.

Values are dumped to JSON with a pydantic TypeAdapter built for the value's
runtime type and loaded back with an adapter for the attribute's declared
type, which restores tuples, sets, enums, datetimes and dataclasses.

Non-finite floats are written as the JSON constants ``Infinity``, ``-Infinity``
and ``NaN``. A dataclass or model value cannot take that setting, so a
non-finite float inside one stored directly in an attribute is an
EncodingError rather than a silent ``null``.
"""
from __future__ import annotations

import dataclasses
import logging
import math
from functools import lru_cache
from typing import Any, Callable, Optional, Tuple

from pydantic import ConfigDict, PydanticSchemaGenerationError, PydanticUserError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from .errors import DecodingError, EncodingError
from .typeinfo import is_assignable

logger = logging.getLogger(__name__)

_CONTAINERS = (list, tuple, set, frozenset)
_ENCODE_CONFIG = ConfigDict(ser_json_inf_nan="constants")


@lru_cache(maxsize=512)
def _cached_adapter(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


def _adapter(tp: Any) -> TypeAdapter:
    try:
        return _cached_adapter(tp)
    except TypeError as e:
        if isinstance(e, PydanticSchemaGenerationError):
            raise
        # Unhashable type expressions bypass the cache
        return TypeAdapter(tp)


@lru_cache(maxsize=512)
def _encoder(tp: type) -> Tuple[TypeAdapter, bool]:
    """Adapter used for dumping, and whether it keeps non-finite floats."""
    try:
        return TypeAdapter(tp, config=_ENCODE_CONFIG), True
    except PydanticUserError as e:
        if e.code != "type-adapter-config-unused":
            raise
        return TypeAdapter(tp), False


def _children(value: Any) -> list:
    if isinstance(value, dict):
        return list(value.keys()) + list(value.values())
    if isinstance(value, _CONTAINERS):
        return list(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return [getattr(value, f.name, None) for f in dataclasses.fields(value)]
    return []


def _find_nested(value: Any, predicate: Callable[[Any], bool]) -> Optional[Any]:
    if isinstance(value, dict) or isinstance(value, _CONTAINERS):
        items = _children(value)
    else:
        return None
    for item in items:
        if predicate(item):
            return item
        nested = _find_nested(item, predicate)
        if nested is not None:
            return nested
    return None


def _has_non_finite(value: Any) -> bool:
    if isinstance(value, float):
        return not math.isfinite(value)
    return any(_has_non_finite(item) for item in _children(value))


def encode_scalar(value: Any, is_entity: Optional[Callable[[Any], bool]] = None) -> str:
    """Encode a non-entity value as JSON text.

    Raises EncodingError when the value has no JSON shape, when it is a
    container holding an entity (references are only kept for direct
    attribute values), or when part of it would be written as ``null``.
    """
    if is_entity is not None:
        nested = _find_nested(value, is_entity)
        if nested is not None:
            raise EncodingError(
                f"{type(value).__name__} value contains entity {nested!r}; "
                "entities can only be stored directly in an attribute"
            )
    try:
        adapter, keeps_non_finite = _encoder(type(value))
        text = adapter.dump_json(value).decode("utf-8")
    except (PydanticSchemaGenerationError, PydanticSerializationError) as e:
        raise EncodingError(f"unsupported value of type {type(value).__name__}: {e}") from e
    if value is not None and text == "null":
        raise EncodingError(f"{type(value).__name__} value {value!r} encodes as null")
    if not keeps_non_finite and _has_non_finite(value):
        raise EncodingError(f"{type(value).__name__} value holds a non-finite float")
    return text


def decode_scalar(text: str, declared_type: Any = Any) -> Any:
    """Decode JSON text produced by encode_scalar into ``declared_type``."""
    try:
        adapter = _adapter(declared_type)
    except PydanticSchemaGenerationError:
        logger.debug("No schema for %r; decoding as plain JSON", declared_type)
        adapter = None
    try:
        if adapter is not None:
            return adapter.validate_json(text)
        value = _adapter(Any).validate_json(text)
    except ValidationError as e:
        raise DecodingError(f"cannot decode {text!r} as {declared_type!r}: {e}") from e
    if value is not None and not is_assignable(value, declared_type):
        raise DecodingError(f"decoded {type(value).__name__} does not fit {declared_type!r}")
    return value
