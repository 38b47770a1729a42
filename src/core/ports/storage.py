"""
Object Store Gateway interface.

Protocol-based interface for a single named bucket with partial-read support.
Implementations: local filesystem (src/adapters/local_storage.py).

Invariants:
- put never leaves a partially written object visible
- size recorded for a key equals the bytes actually written
- delete is idempotent
- partial reads are re-verified against stat, never against a caller's size
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import BinaryIO, Protocol
from uuid import uuid4

from src.core.errors import InvalidRangeError, NotFoundError, StorageUnavailableError


@dataclass(frozen=True)
class ObjectStat:
    """Metadata for a stored object."""

    key: str
    size_bytes: int
    content_type: str | None


class ObjectStorePort(Protocol):
    """
    Object store port interface.

    Streams returned by get() must be closed by the caller.
    """

    def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist."""
        ...

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        size: int,
        content_type: str | None,
    ) -> str:
        """
        Store exactly `size` bytes under key.

        Returns:
            The key written

        Raises:
            StoreWriteError: On any I/O fault or byte-count mismatch
        """
        ...

    def get(
        self,
        key: str,
        offset: int | None = None,
        length: int | None = None,
    ) -> BinaryIO:
        """
        Open a stream over the object, or over `length` bytes from `offset`.

        Raises:
            ObjectNotFoundError: If key doesn't exist
            ObjectRangeError: If the window falls outside the object
        """
        ...

    def stat(self, key: str) -> ObjectStat:
        """
        Get object metadata without reading bytes.

        Raises:
            ObjectNotFoundError: If key doesn't exist
        """
        ...

    def delete(self, key: str) -> None:
        """Delete object. Absent keys are not an error."""
        ...


_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]")


def generate_object_key(original_name: str) -> str:
    """
    Generate a collision-free key that keeps a readable suffix.

    Format: {random token}_{sanitized original basename}
    """
    basename = PurePosixPath(original_name.replace("\\", "/")).name
    safe_name = _UNSAFE_NAME_CHARS.sub("_", basename).strip(". ") or "file"
    return f"{uuid4().hex}_{safe_name}"


class StorageError(Exception):
    """Base class for storage adapter errors."""


class ObjectNotFoundError(StorageError, NotFoundError):
    """Raised when key doesn't exist."""

    def __init__(self, key: str) -> None:
        self.key = key
        NotFoundError.__init__(self, f"object {key}")


class ObjectRangeError(StorageError, InvalidRangeError):
    """Raised when a partial read window exceeds the object."""

    def __init__(self, key: str, offset: int, length: int, size: int) -> None:
        self.key = key
        self.offset = offset
        self.length = length
        InvalidRangeError.__init__(
            self,
            size,
            f"Window {offset}+{length} outside object {key} of size {size}",
        )


class StoreWriteError(StorageError, StorageUnavailableError):
    """Raised when an object could not be written."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        StorageUnavailableError.__init__(self, f"Failed to write {key}: {message}")


class StoreAccessError(StorageError, StorageUnavailableError):
    """Raised when reading, stating or deleting fails for a reason other than absence."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        StorageUnavailableError.__init__(self, f"Storage failure on {key}: {message}")
