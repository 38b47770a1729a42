"""
Ranges component - Byte-range negotiation and response framing.

Translates a client Range header plus an object's true size into a framing
decision and the exact wire headers. Never reads object bytes, so
negotiation cost is independent of object size.

Invariants:
- Out-of-bounds ranges are reported, never clamped
- Unparsable headers fall back to a full response
- Stored content type wins over the extension table
"""

from __future__ import annotations

import re

from .models import ByteRange, ContentTypeTable, Framing, RangeDecision

# --- Static Tables ---

DOCUMENT_TYPES = ContentTypeTable(
    entries=(
        ("pdf", "application/pdf"),
        ("doc", "application/msword"),
        ("docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ("xls", "application/vnd.ms-excel"),
        ("xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
        ("zip", "application/zip"),
        ("txt", "text/plain"),
        ("jpg", "image/jpeg"),
        ("jpeg", "image/jpeg"),
        ("png", "image/png"),
    ),
    default="application/octet-stream",
)

MEDIA_TYPES = ContentTypeTable(
    entries=(
        ("mp4", "video/mp4"),
        ("webm", "video/webm"),
        ("ogg", "video/ogg"),
    ),
    default="video/mp4",
)

_RANGE_PATTERN = re.compile(r"^bytes=(\d+)-(\d*)$")

STATUS_OK = 200
STATUS_PARTIAL_CONTENT = 206
STATUS_RANGE_NOT_SATISFIABLE = 416


# --- Negotiation ---


def parse_range_header(range_header: str | None) -> tuple[int, int | None] | None:
    """
    Parse `bytes=<start>-[<end>]`.

    Returns (start, end-or-None), or None when absent or unparsable.
    Suffix ranges and multi-range lists are treated as unparsable.
    """
    if not range_header:
        return None
    match = _RANGE_PATTERN.match(range_header.strip())
    if match is None:
        return None
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else None
    return start, end


def resolve_range(range_header: str | None, total_size: int) -> RangeDecision:
    """Decide between full, partial and not-satisfiable framing."""
    parsed = parse_range_header(range_header)

    if parsed is None:
        full = ByteRange(0, total_size - 1) if total_size > 0 else None
        return RangeDecision(framing=Framing.FULL, total_size=total_size, byte_range=full)

    start, end = parsed
    if end is None:
        end = total_size - 1

    if start < 0 or end >= total_size or start > end:
        return RangeDecision(framing=Framing.NOT_SATISFIABLE, total_size=total_size)

    return RangeDecision(
        framing=Framing.PARTIAL,
        total_size=total_size,
        byte_range=ByteRange(start, end),
    )


def resolve_content_type(
    stored_type: str | None,
    filename: str,
    table: ContentTypeTable = DOCUMENT_TYPES,
) -> str:
    """Prefer the stored type; otherwise match the filename against table."""
    if stored_type and stored_type.strip():
        return stored_type
    return table.lookup(filename)


# --- Wire Framing ---


def status_for(decision: RangeDecision) -> int:
    if decision.framing is Framing.PARTIAL:
        return STATUS_PARTIAL_CONTENT
    if decision.framing is Framing.NOT_SATISFIABLE:
        return STATUS_RANGE_NOT_SATISFIABLE
    return STATUS_OK


def unsatisfiable_headers(total_size: int) -> dict[str, str]:
    return {"Content-Range": f"bytes */{total_size}"}


def build_range_headers(decision: RangeDecision, content_type: str) -> dict[str, str]:
    """
    Build the response headers for a decision.

    - 206: Content-Type, Accept-Ranges, Content-Length, Content-Range
    - 200: Content-Type, Accept-Ranges, Content-Length
    - 416: Content-Range only
    """
    if decision.framing is Framing.NOT_SATISFIABLE:
        return unsatisfiable_headers(decision.total_size)

    headers = {
        "Content-Type": content_type,
        "Accept-Ranges": "bytes",
        "Content-Length": str(decision.content_length),
    }
    if decision.framing is Framing.PARTIAL and decision.byte_range is not None:
        byte_range = decision.byte_range
        headers["Content-Range"] = (
            f"bytes {byte_range.start}-{byte_range.end}/{decision.total_size}"
        )
    return headers
