"""
Assets component input/output models.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import BinaryIO
from uuid import UUID

from src.components.ranges import (
    DOCUMENT_TYPES,
    MEDIA_TYPES,
    ContentTypeTable,
    RangeDecision,
    status_for,
)
from src.core.entities import Asset, Principal
from src.domain.entities import AssetKind

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 2 * 1024 * 1024 * 1024  # 2 GiB
DEFAULT_CHUNK_SIZE = 64 * 1024

# --- Configuration Models ---


@dataclass(frozen=True)
class AssetsConfig:
    """Coordinator limits and the MIME tables used per asset kind."""

    max_upload_bytes: int = MAX_UPLOAD_BYTES
    chunk_size: int = DEFAULT_CHUNK_SIZE
    document_types: ContentTypeTable = DOCUMENT_TYPES
    media_types: ContentTypeTable = MEDIA_TYPES

    def table_for(self, kind: str) -> ContentTypeTable:
        return self.media_types if kind == "media" else self.document_types


# --- Input Models ---


@dataclass(frozen=True)
class UploadAssetInput:
    """Input for uploading an asset. size is the declared byte count."""

    principal: Principal
    data: BinaryIO
    filename: str
    size: int
    content_type: str | None = None
    parent_id: UUID | None = None  # Lesson to attach to
    kind: AssetKind = "document"


@dataclass(frozen=True)
class GetAssetInput:
    principal: Principal
    asset_id: UUID


@dataclass(frozen=True)
class ListAssetsInput:
    principal: Principal


@dataclass(frozen=True)
class ListLessonAssetsInput:
    principal: Principal
    parent_id: UUID
    kind: AssetKind | None = None


@dataclass(frozen=True)
class DownloadInput:
    """Input for reading an asset's bytes, optionally a single byte range."""

    principal: Principal
    asset_id: UUID
    range_header: str | None = None


@dataclass(frozen=True)
class DeleteAssetInput:
    principal: Principal
    asset_id: UUID


@dataclass(frozen=True)
class RenameAssetInput:
    principal: Principal
    asset_id: UUID
    display_name: str


@dataclass(frozen=True)
class TransitionInput:
    principal: Principal
    asset_id: UUID
    target: str


# --- Output Models ---


@dataclass
class AssetDownload:
    """
    A negotiated read, ready to be streamed.

    The caller owns the stream: consume iter_chunks() to the end or call
    close(). iter_chunks() closes the stream on every exit path.
    """

    asset: Asset
    decision: RangeDecision
    content_type: str
    headers: dict[str, str]
    stream: BinaryIO
    chunk_size: int = DEFAULT_CHUNK_SIZE
    _closed: bool = field(default=False, repr=False)

    @property
    def status_code(self) -> int:
        return status_for(self.decision)

    @property
    def content_length(self) -> int:
        return self.decision.content_length

    def iter_chunks(self) -> Iterator[bytes]:
        remaining = self.content_length
        try:
            while remaining > 0:
                chunk = self.stream.read(min(self.chunk_size, remaining))
                if not chunk:
                    logger.warning(
                        "Stream for %s ended %d bytes early", self.asset.object_key, remaining
                    )
                    break
                remaining -= len(chunk)
                yield chunk
        finally:
            self.close()

    def read_all(self) -> bytes:
        return b"".join(self.iter_chunks())

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self.stream.close()


@dataclass(frozen=True)
class DeleteOutput:
    asset_id: UUID
    object_key: str
