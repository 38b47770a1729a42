"""
Error taxonomy for the file service.

Every failure the core can report derives from FileServiceError. The API
layer maps each class to one stable status outcome (see src/api/errors.py);
adapters subclass the matching class so callers never need to know which
backend raised.
"""

from __future__ import annotations


class FileServiceError(Exception):
    """Base class for file service errors."""


class NotFoundError(FileServiceError):
    """Asset record or object-store key is absent."""

    def __init__(self, what: str) -> None:
        self.what = what
        super().__init__(f"Not found: {what}")


class InvalidRangeError(FileServiceError):
    """Requested byte range is outside the object's true size."""

    def __init__(self, total_size: int, message: str | None = None) -> None:
        self.total_size = total_size
        super().__init__(message or f"Range not satisfiable for size {total_size}")


class AccessDeniedError(FileServiceError):
    """Authorization failed. Carries a machine-checkable reason code."""

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or f"Access denied: {reason}")


class StorageUnavailableError(FileServiceError):
    """Object-store I/O failed on write, read or delete."""


class EventDeliveryFailedError(FileServiceError):
    """A domain event could not be handed to the sink. Never propagated."""


class UploadTooLargeError(FileServiceError):
    """Declared upload size exceeds the configured limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Upload of {size} bytes exceeds maximum of {limit} bytes")


class InvalidTransitionError(FileServiceError):
    """Asset status change not allowed by the lifecycle."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move asset from '{current}' to '{target}'")


class MetadataInconsistencyError(FileServiceError):
    """Blob was stored but its metadata record could not be written."""

    def __init__(self, object_key: str) -> None:
        self.object_key = object_key
        super().__init__(f"Object {object_key} stored without a metadata record")
