# course-file-service: Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from src.core.ports.db import (
    AssetRepoPort,
    CourseRepoPort,
    EnrollmentRepoPort,
    LessonRepoPort,
)
from src.core.ports.storage import (
    ObjectNotFoundError,
    ObjectRangeError,
    ObjectStat,
    ObjectStorePort,
    StorageError,
    StoreAccessError,
    StoreWriteError,
    generate_object_key,
)

__all__ = [
    # Metadata store
    "AssetRepoPort",
    "CourseRepoPort",
    "EnrollmentRepoPort",
    "LessonRepoPort",
    # Object store
    "ObjectNotFoundError",
    "ObjectRangeError",
    "ObjectStat",
    "ObjectStorePort",
    "StorageError",
    "StoreAccessError",
    "StoreWriteError",
    "generate_object_key",
]
