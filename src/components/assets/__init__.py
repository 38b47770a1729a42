"""
Assets component - Asset lifecycle coordination.

Upload, download with byte ranges, delete, rename and status transitions.
"""

from .component import (
    ALLOWED_TRANSITIONS,
    STATUS_ALIASES,
    AssetService,
    can_transition,
    create_asset_service,
    normalize_status,
    run_delete,
    run_download,
    run_get,
    run_list,
    run_list_lesson,
    run_rename,
    run_transition,
    run_upload,
)
from .models import (
    DEFAULT_CHUNK_SIZE,
    MAX_UPLOAD_BYTES,
    AssetDownload,
    AssetsConfig,
    DeleteAssetInput,
    DeleteOutput,
    DownloadInput,
    GetAssetInput,
    ListAssetsInput,
    ListLessonAssetsInput,
    RenameAssetInput,
    TransitionInput,
    UploadAssetInput,
)
from .ports import (
    AssetRepoPort,
    NotifierPort,
    ObjectStorePort,
    RelationLookupPort,
)

__all__ = [
    # Entry points
    "run_delete",
    "run_download",
    "run_get",
    "run_list",
    "run_list_lesson",
    "run_rename",
    "run_transition",
    "run_upload",
    # Helper functions
    "can_transition",
    "normalize_status",
    # Configuration
    "ALLOWED_TRANSITIONS",
    "DEFAULT_CHUNK_SIZE",
    "MAX_UPLOAD_BYTES",
    "STATUS_ALIASES",
    "AssetsConfig",
    # Service class
    "AssetService",
    "create_asset_service",
    # Input models
    "DeleteAssetInput",
    "DownloadInput",
    "GetAssetInput",
    "ListAssetsInput",
    "ListLessonAssetsInput",
    "RenameAssetInput",
    "TransitionInput",
    "UploadAssetInput",
    # Output models
    "AssetDownload",
    "DeleteOutput",
    # Ports
    "AssetRepoPort",
    "NotifierPort",
    "ObjectStorePort",
    "RelationLookupPort",
]
