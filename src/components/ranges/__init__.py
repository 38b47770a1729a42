"""
Ranges component - Byte-range negotiation and content-type resolution.
"""

from .component import (
    DOCUMENT_TYPES,
    MEDIA_TYPES,
    build_range_headers,
    parse_range_header,
    resolve_content_type,
    resolve_range,
    status_for,
    unsatisfiable_headers,
)
from .models import ByteRange, ContentTypeTable, Framing, RangeDecision

__all__ = [
    # Entry points
    "resolve_range",
    "resolve_content_type",
    # Helper functions
    "build_range_headers",
    "parse_range_header",
    "status_for",
    "unsatisfiable_headers",
    # Static tables
    "DOCUMENT_TYPES",
    "MEDIA_TYPES",
    # Models
    "ByteRange",
    "ContentTypeTable",
    "Framing",
    "RangeDecision",
]
