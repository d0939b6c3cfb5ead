from __future__ import annotations

from typing import Optional


class SaveGraphError(Exception):
    """Base exception for save/load errors."""


class TypeResolutionError(SaveGraphError):
    """Raised when a type name is unknown to the resolver or cannot be constructed."""

    def __init__(self, type_name: str, message: Optional[str] = None) -> None:
        self.type_name = type_name
        super().__init__(message or f"Unknown entity type: {type_name}")


class FieldAccessError(SaveGraphError):
    """Raised when an eligible attribute cannot actually be read or written."""

    def __init__(self, type_name: str, attribute: str, message: str) -> None:
        self.type_name = type_name
        self.attribute = attribute
        super().__init__(f"{type_name}.{attribute}: {message}")


class ReferenceResolutionError(SaveGraphError):
    """Raised when a reference points at an identity absent from the snapshot."""

    def __init__(self, identity: int, message: Optional[str] = None) -> None:
        self.identity = identity
        super().__init__(message or f"Unresolved entity reference: {identity}")


class EncodingError(SaveGraphError):
    """Raised when an attribute value cannot be encoded as a scalar."""

    def __init__(
        self,
        message: str,
        *,
        type_name: Optional[str] = None,
        identity: Optional[int] = None,
        attribute: Optional[str] = None,
    ) -> None:
        self.type_name = type_name
        self.identity = identity
        self.attribute = attribute
        self.reason = message
        if attribute is not None:
            location = f"{type_name}#{identity}.{attribute}"
            super().__init__(f"Cannot encode {location}: {message}")
        else:
            super().__init__(message)


class DecodingError(SaveGraphError):
    """Raised when scalar text cannot be decoded into the declared type."""


class CodecError(SaveGraphError):
    """Raised when the transport codec fails to encode or decode."""


class SnapshotFormatError(SaveGraphError):
    """Raised when snapshot text does not match the snapshot schema."""


class PassStateError(SaveGraphError):
    """Raised when deserialization phases are run out of order."""


class SaveStoreError(SaveGraphError):
    """Raised when a save slot cannot be written or read."""


class SaveNotFoundError(SaveStoreError):
    """Raised when a save slot does not exist."""

    def __init__(self, slot: str) -> None:
        self.slot = slot
        super().__init__(f"Save slot not found: {slot}")
