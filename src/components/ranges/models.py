"""
Ranges component - Data models.

ByteRange, the framing decision, and the static content-type tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ByteRange:
    """Inclusive, zero-based span of an object's bytes."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


class Framing(Enum):
    FULL = "full"
    PARTIAL = "partial"
    NOT_SATISFIABLE = "not_satisfiable"


@dataclass(frozen=True)
class RangeDecision:
    """
    Outcome of range negotiation.

    byte_range is None for NOT_SATISFIABLE and for a FULL read of an empty object.
    """

    framing: Framing
    total_size: int
    byte_range: ByteRange | None = None

    @property
    def content_length(self) -> int:
        if self.framing is Framing.NOT_SATISFIABLE:
            return 0
        if self.byte_range is None:
            return 0
        return self.byte_range.length


@dataclass(frozen=True)
class ContentTypeTable:
    """
    Ordered extension -> MIME table with a fallback.

    Lookups are exact-suffix matches on the lowercased name; first match wins.
    """

    entries: tuple[tuple[str, str], ...]
    default: str

    def lookup(self, filename: str) -> str:
        name = filename.lower()
        for extension, mime_type in self.entries:
            if name.endswith("." + extension.lower().lstrip(".")):
                return mime_type
        return self.default
