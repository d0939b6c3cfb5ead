from __future__ import annotations

import base64
import binascii
import zlib
from typing import Protocol

from .errors import CodecError


class Codec(Protocol):
    """Lossless transport encoding of snapshot text."""

    def encode(self, text: str) -> str: ...

    def decode(self, data: str) -> str: ...


class PlainCodec:
    """Leaves snapshot text untouched."""

    def encode(self, text: str) -> str:
        return text

    def decode(self, data: str) -> str:
        return data


class ZlibCodec:
    """zlib-compressed, base64-encoded ASCII form of snapshot text."""

    def __init__(self, level: int = 9) -> None:
        if not -1 <= level <= 9:
            raise ValueError("zlib level must be between -1 and 9")
        self.level = level

    def encode(self, text: str) -> str:
        try:
            packed = zlib.compress(text.encode("utf-8"), self.level)
        except zlib.error as e:
            raise CodecError(f"Failed to compress snapshot: {e}") from e
        return base64.b64encode(packed).decode("ascii")

    def decode(self, data: str) -> str:
        try:
            packed = base64.b64decode(data.encode("ascii"), validate=True)
            return zlib.decompress(packed).decode("utf-8")
        except (binascii.Error, zlib.error, UnicodeError) as e:
            raise CodecError(f"Failed to decompress snapshot: {e}") from e
