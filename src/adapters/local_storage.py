"""
Local Filesystem Object Store Adapter.

Implements ObjectStorePort over a directory per bucket.
Used for development, tests and single-server deployments.

Invariants:
- Objects become visible only through an atomic rename after all bytes landed
- Stored size equals the byte count actually written
- Partial reads never transfer more than the requested length
"""

from __future__ import annotations

import io
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, BinaryIO, cast

from src.core.ports.storage import (
    ObjectNotFoundError,
    ObjectRangeError,
    ObjectStat,
    StoreAccessError,
    StoreWriteError,
)

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class BoundedReader(io.RawIOBase):
    """Read-only view over at most `length` bytes of an open file."""

    def __init__(self, raw: BinaryIO, length: int) -> None:
        self._raw = raw
        self._remaining = length

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        if self._remaining <= 0:
            return 0
        view = memoryview(buffer)[: self._remaining]
        count = self._raw.readinto(view)  # type: ignore[attr-defined]
        if not count:
            return 0
        self._remaining -= count
        return int(count)

    def close(self) -> None:
        if not self.closed:
            self._raw.close()
        super().close()


class LocalObjectStore:
    """
    Local filesystem implementation of ObjectStorePort.

    Stores objects as files with accompanying metadata JSON.
    Directory structure: {base_path}/{bucket}/{key}.bin + {key}.meta.json
    """

    def __init__(
        self,
        base_path: str | Path,
        bucket: str = "files",
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """
        Initialize local object store.

        Args:
            base_path: Root directory holding buckets
            bucket: Bucket name (a subdirectory of base_path)
            chunk_size: Copy buffer size for streamed writes
        """
        self.base_path = Path(base_path).resolve()
        self.bucket = bucket
        self.bucket_path = self.base_path / bucket
        self.chunk_size = chunk_size

    def ensure_bucket(self) -> None:
        """Create the bucket directory if it doesn't exist."""
        if not self.bucket_path.exists():
            self.bucket_path.mkdir(parents=True, exist_ok=True)
            logger.info("Bucket '%s' created at %s", self.bucket, self.bucket_path)

    def _key_to_paths(self, key: str) -> tuple[Path, Path]:
        """Convert storage key to file paths (data and metadata)."""
        # Prevent traversal
        target = (self.bucket_path / key.lstrip("/")).resolve()
        if not str(target).startswith(str(self.bucket_path) + os.sep):
            raise ValueError(f"Path traversal attempt detected: {key}")
        return target.with_name(target.name + ".bin"), target.with_name(target.name + ".meta.json")

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        size: int,
        content_type: str | None,
    ) -> str:
        """Stream exactly `size` bytes under key, committing atomically."""
        try:
            data_path, meta_path = self._key_to_paths(key)
        except ValueError as e:
            raise StoreWriteError(key, str(e)) from e

        source: BinaryIO = io.BytesIO(data) if isinstance(data, bytes) else data
        tmp_data: Path | None = None
        tmp_meta: Path | None = None

        try:
            data_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_data = self._write_temp(data_path.parent, source, size, key)
            with tempfile.NamedTemporaryFile(
                "w", dir=meta_path.parent, suffix=".tmp", delete=False
            ) as meta_file:
                tmp_meta = Path(meta_file.name)
                json.dump(
                    {"key": key, "size_bytes": size, "content_type": content_type},
                    meta_file,
                )

            # Data file appearing is the commit point.
            os.replace(tmp_meta, meta_path)
            tmp_meta = None
            os.replace(tmp_data, data_path)
            tmp_data = None
        except StoreWriteError:
            raise
        except OSError as e:
            logger.exception("Error writing object %s", key)
            raise StoreWriteError(key, str(e)) from e
        finally:
            for leftover in (tmp_data, tmp_meta):
                if leftover is not None:
                    leftover.unlink(missing_ok=True)

        logger.info("Object stored: %s (%d bytes)", key, size)
        return key

    def _write_temp(self, directory: Path, source: BinaryIO, size: int, key: str) -> Path:
        """Copy exactly `size` bytes from source into a temp file."""
        with tempfile.NamedTemporaryFile("wb", dir=directory, suffix=".tmp", delete=False) as out:
            tmp_path = Path(out.name)
            try:
                remaining = size
                while remaining > 0:
                    chunk = source.read(min(self.chunk_size, remaining))
                    if not chunk:
                        break
                    out.write(chunk)
                    remaining -= len(chunk)

                if remaining > 0:
                    raise StoreWriteError(key, f"stream ended {remaining} bytes short of {size}")
                if source.read(1):
                    raise StoreWriteError(key, f"stream holds more than the declared {size} bytes")
            except BaseException:
                tmp_path.unlink(missing_ok=True)
                raise

        return tmp_path

    def get(
        self,
        key: str,
        offset: int | None = None,
        length: int | None = None,
    ) -> BinaryIO:
        """Open the full object, or a bounded window re-verified against stat."""
        if offset is None and length is None:
            data_path = self._existing_data_path(key)
            try:
                return open(data_path, "rb")
            except FileNotFoundError as e:
                raise ObjectNotFoundError(key) from e
            except OSError as e:
                raise StoreAccessError(key, str(e)) from e

        start = offset or 0
        stat = self.stat(key)
        if length is None:
            length = stat.size_bytes - start
        if start < 0 or length < 0 or start + length > stat.size_bytes:
            raise ObjectRangeError(key, start, length, stat.size_bytes)

        data_path = self._existing_data_path(key)
        try:
            handle = open(data_path, "rb")
        except FileNotFoundError as e:
            raise ObjectNotFoundError(key) from e
        except OSError as e:
            raise StoreAccessError(key, str(e)) from e

        try:
            handle.seek(start)
        except OSError as e:
            handle.close()
            raise StoreAccessError(key, str(e)) from e
        return cast(BinaryIO, BoundedReader(handle, length))

    def stat(self, key: str) -> ObjectStat:
        """Get object metadata without reading bytes."""
        data_path = self._existing_data_path(key)
        _, meta_path = self._key_to_paths(key)

        try:
            with open(meta_path) as f:
                meta = json.load(f)
        except FileNotFoundError:
            # Metadata sidecar lost; fall back to the filesystem size.
            return ObjectStat(key=key, size_bytes=data_path.stat().st_size, content_type=None)
        except (OSError, ValueError) as e:
            raise StoreAccessError(key, str(e)) from e

        return ObjectStat(
            key=key,
            size_bytes=int(meta["size_bytes"]),
            content_type=meta.get("content_type"),
        )

    def delete(self, key: str) -> None:
        """Delete object by key. Missing keys are ignored."""
        try:
            data_path, meta_path = self._key_to_paths(key)
            data_path.unlink(missing_ok=True)
            meta_path.unlink(missing_ok=True)
        except ValueError as e:
            raise StoreAccessError(key, str(e)) from e
        except OSError as e:
            logger.exception("Error deleting object %s", key)
            raise StoreAccessError(key, str(e)) from e

        logger.info("Object deleted: %s", key)

    def _existing_data_path(self, key: str) -> Path:
        try:
            data_path, _ = self._key_to_paths(key)
        except ValueError as e:
            raise ObjectNotFoundError(key) from e
        if not data_path.exists():
            raise ObjectNotFoundError(key)
        return data_path


def create_local_storage(
    base_path: str | Path | None = None,
    bucket: str = "files",
    *,
    env_var: str = "FILES_STORAGE_PATH",
    default_path: str = "./data/storage",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> LocalObjectStore:
    """
    Factory function to create LocalObjectStore from config.

    Args:
        base_path: Explicit base path (overrides env var)
        bucket: Bucket name
        env_var: Environment variable name for storage path
        default_path: Default path if not configured
        chunk_size: Copy buffer size

    Returns:
        Configured LocalObjectStore with its bucket created
    """
    if base_path is None:
        base_path = os.environ.get(env_var, default_path)

    store = LocalObjectStore(base_path, bucket, chunk_size=chunk_size)
    store.ensure_bucket()
    return store
