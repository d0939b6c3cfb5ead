from __future__ import annotations

from dataclasses import dataclass

ACCESS = "access"
DECODE = "decode"
TYPE_MISMATCH = "type_mismatch"


@dataclass(frozen=True)
class FieldIssue:
    """A non-fatal problem with a single attribute during a pass.

    kind is one of "access", "decode" or "type_mismatch".
    """

    identity: int
    type_name: str
    attribute: str
    kind: str
    message: str

    def __str__(self) -> str:
        return f"[{self.kind}] {self.type_name}#{self.identity}.{self.attribute}: {self.message}"
