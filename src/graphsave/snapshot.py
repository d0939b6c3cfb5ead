"""Flat snapshot model of an entity graph and its text form.

Text schema (JSON, order preserved)::

    {
      "<identity>": {
        "type": "<qualified type name>",
        "parent": <identity of the hierarchy parent, 0 for none>,
        "index": <position among the parent's children>,
        "vals": {"<attribute>": "<text>"},
        "refs": ["<attribute whose text is an identity>", ...]
      }
    }

Each value text is the literal "null", a decimal identity (for attributes
listed in "refs") or the JSON encoding of a scalar.
"""
from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Tuple

from jsonschema import Draft202012Validator

from .errors import ReferenceResolutionError, SnapshotFormatError
from .identity import NO_IDENTITY

logger = logging.getLogger(__name__)

NULL_TEXT = "null"

SNAPSHOT_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "graphsave snapshot",
    "type": "object",
    "propertyNames": {"pattern": "^[1-9][0-9]*$"},
    "additionalProperties": {
        "type": "object",
        "required": ["type", "vals"],
        "additionalProperties": False,
        "properties": {
            "type": {"type": "string", "minLength": 1},
            "parent": {"type": "integer", "minimum": 0},
            "index": {"type": "integer", "minimum": 0},
            "vals": {"type": "object", "additionalProperties": {"type": "string"}},
            "refs": {"type": "array", "items": {"type": "string"}, "uniqueItems": True},
        },
    },
}

_VALIDATOR = Draft202012Validator(SNAPSHOT_SCHEMA)


class ValueKind(enum.Enum):
    NULL = "null"
    REFERENCE = "reference"
    SCALAR = "scalar"


@dataclass(frozen=True)
class AttributeValue:
    """Tagged attribute value: null, a reference to an identity, or encoded scalar text."""

    kind: ValueKind
    identity: int = NO_IDENTITY
    text: str = NULL_TEXT

    @staticmethod
    def null() -> "AttributeValue":
        return _NULL

    @staticmethod
    def reference(identity: int) -> "AttributeValue":
        if identity <= NO_IDENTITY:
            raise ValueError(f"Reference identity must be positive, got {identity}")
        return AttributeValue(ValueKind.REFERENCE, identity=identity, text=str(identity))

    @staticmethod
    def scalar(text: str) -> "AttributeValue":
        return AttributeValue(ValueKind.SCALAR, text=text)

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    @property
    def is_reference(self) -> bool:
        return self.kind is ValueKind.REFERENCE

    @property
    def is_scalar(self) -> bool:
        return self.kind is ValueKind.SCALAR


_NULL = AttributeValue(ValueKind.NULL)


@dataclass
class EntitySnapshot:
    """Serialized form of one entity."""

    type_name: str
    attributes: Dict[str, AttributeValue] = field(default_factory=dict)
    parent: int = NO_IDENTITY
    index: int = 0

    def references(self) -> Iterator[Tuple[str, int]]:
        for name, value in self.attributes.items():
            if value.is_reference:
                yield name, value.identity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type_name,
            "parent": self.parent,
            "index": self.index,
            "vals": {name: value.text for name, value in self.attributes.items()},
            "refs": [name for name, _ in self.references()],
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "EntitySnapshot":
        refs = set(data.get("refs", []))
        vals: Mapping[str, str] = data["vals"]
        unknown = refs - set(vals)
        if unknown:
            raise SnapshotFormatError(f"refs name attributes missing from vals: {sorted(unknown)}")
        attributes: Dict[str, AttributeValue] = {}
        for name, text in vals.items():
            if text == NULL_TEXT:
                attributes[name] = AttributeValue.null()
            elif name in refs:
                if not (text.isascii() and text.isdigit()) or int(text) <= NO_IDENTITY:
                    raise SnapshotFormatError(f"Attribute {name!r} has invalid reference {text!r}")
                attributes[name] = AttributeValue.reference(int(text))
            else:
                attributes[name] = AttributeValue.scalar(text)
        return EntitySnapshot(
            type_name=data["type"],
            attributes=attributes,
            parent=int(data.get("parent", NO_IDENTITY)),
            index=int(data.get("index", 0)),
        )


@dataclass
class GraphSnapshot:
    """The whole serialized graph: identity -> EntitySnapshot, in discovery order."""

    entities: Dict[int, EntitySnapshot] = field(default_factory=dict)

    @property
    def root_identity(self) -> int:
        if not self.entities:
            raise SnapshotFormatError("Snapshot contains no entities")
        return min(self.entities)

    def dangling_references(self) -> List[Tuple[int, str, int]]:
        """(owner identity, attribute, missing identity) for every unresolvable edge.

        A missing hierarchy parent is reported under the attribute name "<parent>".
        """
        missing: List[Tuple[int, str, int]] = []
        for identity, entity in self.entities.items():
            for name, target in entity.references():
                if target not in self.entities:
                    missing.append((identity, name, target))
            if entity.parent != NO_IDENTITY and entity.parent not in self.entities:
                missing.append((identity, "<parent>", entity.parent))
        return missing

    def validate(self) -> None:
        """Raise ReferenceResolutionError unless the snapshot is closed under reachability."""
        missing = self.dangling_references()
        if missing:
            owner, name, target = missing[0]
            raise ReferenceResolutionError(
                target,
                f"Entity {owner} attribute {name!r} references missing entity {target}"
                + (f" (and {len(missing) - 1} more)" if len(missing) > 1 else ""),
            )

    # Text form

    def to_dict(self) -> Dict[str, Any]:
        return {str(identity): entity.to_dict() for identity, entity in self.entities.items()}

    @staticmethod
    def from_dict(data: Any) -> "GraphSnapshot":
        errors = sorted(_VALIDATOR.iter_errors(data), key=lambda e: [str(p) for p in e.path])
        if errors:
            for err in errors:
                logger.error("Snapshot schema error at %s: %s", list(err.path), err.message)
            lines = [f"- {'/'.join(str(p) for p in err.path) or '$'}: {err.message}" for err in errors]
            raise SnapshotFormatError("Snapshot does not match schema:\n" + "\n".join(lines))
        return GraphSnapshot(
            entities={int(key): EntitySnapshot.from_dict(value) for key, value in data.items()}
        )

    def to_text(self, indent: Any = None) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    @staticmethod
    def from_text(text: str) -> "GraphSnapshot":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise SnapshotFormatError(f"Invalid JSON: {e}") from e
        return GraphSnapshot.from_dict(data)

    def __len__(self) -> int:
        return len(self.entities)

    def __contains__(self, identity: object) -> bool:
        return identity in self.entities

    def __getitem__(self, identity: int) -> EntitySnapshot:
        return self.entities[identity]
