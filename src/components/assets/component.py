"""
Assets component - Asset lifecycle coordination.

Orchestrates upload, download, delete, rename and status transitions. Every
operation loads metadata, asks the Access Engine, then touches the object
store; events are queued only after the state change has committed.

Invariants:
- An Asset record exists only for a blob that was fully written
- object_key never changes after upload
- Delete removes the blob first; the record survives a failed blob delete
- Unsatisfiable ranges are rejected before any byte is read
- Event emission never fails or delays the operation
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from typing import BinaryIO
from uuid import UUID

from src.components.ranges import (
    Framing,
    build_range_headers,
    resolve_content_type,
    resolve_range,
)
from src.core.entities import Asset, DomainEvent, EventType, ParentRelation, Principal
from src.core.errors import (
    InvalidRangeError,
    InvalidTransitionError,
    MetadataInconsistencyError,
    NotFoundError,
    StorageUnavailableError,
    UploadTooLargeError,
)
from src.core.ports.storage import generate_object_key
from src.domain.policy import AccessEngine, Action

from .models import (
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
from .ports import AssetRepoPort, NotifierPort, ObjectStorePort, RelationLookupPort

logger = logging.getLogger(__name__)

CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

# --- Lifecycle ---

STATUS_ALIASES = {"processed": "ready"}

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "uploaded": frozenset({"processing", "failed"}),
    "processing": frozenset({"ready", "failed"}),
    "ready": frozenset(),
    "failed": frozenset(),
}


def normalize_status(status: str) -> str:
    value = status.strip().lower()
    return STATUS_ALIASES.get(value, value)


def can_transition(current: str, target: str) -> bool:
    allowed = ALLOWED_TRANSITIONS.get(normalize_status(current), frozenset())
    return normalize_status(target) in allowed


# --- Helper Functions ---


def _require_asset(repo: AssetRepoPort, asset_id: UUID) -> Asset:
    asset = repo.get_by_id(asset_id)
    if asset is None:
        raise NotFoundError(f"asset {asset_id}")
    return asset


def _relation_for(asset: Asset, relations: RelationLookupPort | None) -> ParentRelation | None:
    if asset.parent_id is None or relations is None:
        return None
    return relations.relation_for(asset.parent_id)


def _emit(notifier: NotifierPort | None, event: DomainEvent) -> None:
    if notifier is None:
        return
    try:
        notifier.notify(event)
    except Exception:
        logger.exception("Dropped %s event for %s", event.type, event.subject_id)


def _next_position(repo: AssetRepoPort, parent_id: UUID, kind: str) -> int:
    siblings = [a for a in repo.list_by_parent(parent_id) if a.kind == kind]
    if not siblings:
        return 1
    return max(a.position for a in siblings) + 1


# --- Entry Points ---


def run_upload(
    inp: UploadAssetInput,
    *,
    repo: AssetRepoPort,
    store: ObjectStorePort,
    engine: AccessEngine,
    relations: RelationLookupPort | None = None,
    notifier: NotifierPort | None = None,
    config: AssetsConfig | None = None,
    bucket: str = "files",
) -> Asset:
    """
    Store the bytes, then record the metadata, then queue one upload event.

    Raises:
        AccessDeniedError: Caller may not upload
        UploadTooLargeError: Declared size above the configured limit
        NotFoundError: parent_id names no lesson
        StorageUnavailableError: The blob could not be written (no record made)
        MetadataInconsistencyError: Blob stored but the record write failed
    """
    config = config or AssetsConfig()
    engine.require(inp.principal, Action.UPLOAD)

    if inp.size < 0:
        raise ValueError("Upload size must not be negative")
    if inp.size > config.max_upload_bytes:
        raise UploadTooLargeError(inp.size, config.max_upload_bytes)

    if inp.parent_id is not None:
        if relations is None or not relations.lesson_exists(inp.parent_id):
            raise NotFoundError(f"lesson {inp.parent_id}")

    position = 0
    if inp.parent_id is not None:
        position = _next_position(repo, inp.parent_id, inp.kind)

    content_type = inp.content_type or resolve_content_type(
        None, inp.filename, config.table_for(inp.kind)
    )
    object_key = generate_object_key(inp.filename)

    try:
        store.put(object_key, inp.data, inp.size, content_type)
    except StorageUnavailableError:
        logger.exception("Object store write failed for %s", object_key)
        raise

    asset = Asset(
        object_key=object_key,
        bucket=bucket,
        filename_original=inp.filename,
        display_name=inp.filename,
        size_bytes=inp.size,
        content_type=content_type,
        owner_id=inp.principal.subject_id,
        parent_id=inp.parent_id,
        kind=inp.kind,
        position=position,
    )
    try:
        asset = repo.save(asset)
    except Exception as e:
        logger.error(
            "Orphaned blob %s/%s: metadata write failed (%s); needs reconciliation",
            bucket,
            object_key,
            e,
        )
        raise MetadataInconsistencyError(object_key) from e

    logger.info(
        "Asset %s uploaded by %s (%d bytes, key %s)",
        asset.id,
        asset.owner_id,
        asset.size_bytes,
        object_key,
    )
    _emit(
        notifier,
        DomainEvent(
            type=EventType.UPLOAD,
            subject_id=asset.owner_id,
            payload={
                "fileId": str(asset.id),
                "objectName": object_key,
                "bucket": bucket,
                "filename": asset.filename_original,
                "parentId": str(asset.parent_id) if asset.parent_id else None,
            },
        ),
    )
    return asset


def run_get(
    inp: GetAssetInput,
    *,
    repo: AssetRepoPort,
    engine: AccessEngine,
    relations: RelationLookupPort | None = None,
) -> Asset:
    asset = _require_asset(repo, inp.asset_id)
    engine.require(inp.principal, Action.VIEW, asset, _relation_for(asset, relations))
    return asset


def run_list(inp: ListAssetsInput, *, repo: AssetRepoPort) -> list[Asset]:
    """Admins see every asset; everyone else sees their own uploads."""
    if inp.principal.is_admin:
        return repo.list_all()
    return repo.list_by_owner(inp.principal.subject_id)


def run_list_lesson(
    inp: ListLessonAssetsInput,
    *,
    repo: AssetRepoPort,
    engine: AccessEngine,
    relations: RelationLookupPort | None = None,
) -> list[Asset]:
    """Assets attached to a lesson that the caller may view."""
    if relations is None or not relations.lesson_exists(inp.parent_id):
        raise NotFoundError(f"lesson {inp.parent_id}")

    relation = relations.relation_for(inp.parent_id)
    visible = []
    for asset in repo.list_by_parent(inp.parent_id):
        if inp.kind is not None and asset.kind != inp.kind:
            continue
        if engine.check(inp.principal, Action.VIEW, asset, relation).allowed:
            visible.append(asset)
    return visible


def run_download(
    inp: DownloadInput,
    *,
    repo: AssetRepoPort,
    store: ObjectStorePort,
    engine: AccessEngine,
    relations: RelationLookupPort | None = None,
    config: AssetsConfig | None = None,
) -> AssetDownload:
    """
    Authorize, negotiate the range against the stored size, open the stream.

    Raises:
        NotFoundError: Unknown asset, or its blob is gone
        AccessDeniedError: Caller may not download
        InvalidRangeError: Range lies outside the object (carries true size)
    """
    config = config or AssetsConfig()
    asset = _require_asset(repo, inp.asset_id)
    engine.require(inp.principal, Action.DOWNLOAD, asset, _relation_for(asset, relations))

    stat = store.stat(asset.object_key)
    decision = resolve_range(inp.range_header, stat.size_bytes)
    if decision.framing is Framing.NOT_SATISFIABLE:
        raise InvalidRangeError(
            stat.size_bytes,
            f"Range {inp.range_header!r} not satisfiable for {stat.size_bytes} bytes",
        )

    content_type = resolve_content_type(
        stat.content_type or asset.content_type,
        asset.filename_original,
        config.table_for(asset.kind),
    )

    stream: BinaryIO
    if decision.framing is Framing.PARTIAL and decision.byte_range is not None:
        stream = store.get(
            asset.object_key,
            offset=decision.byte_range.start,
            length=decision.byte_range.length,
        )
    else:
        stream = store.get(asset.object_key)

    return AssetDownload(
        asset=asset,
        decision=decision,
        content_type=content_type,
        headers=build_range_headers(decision, content_type),
        stream=stream,
        chunk_size=config.chunk_size,
    )


def run_delete(
    inp: DeleteAssetInput,
    *,
    repo: AssetRepoPort,
    store: ObjectStorePort,
    engine: AccessEngine,
    relations: RelationLookupPort | None = None,
    notifier: NotifierPort | None = None,
) -> DeleteOutput:
    """
    Delete the blob, then the record, then queue one delete event.

    A blob delete failure keeps the record so the blob stays reachable.
    """
    asset = _require_asset(repo, inp.asset_id)
    engine.require(inp.principal, Action.DELETE, asset, _relation_for(asset, relations))

    try:
        store.delete(asset.object_key)
    except StorageUnavailableError:
        logger.exception("Object store delete failed for %s; record retained", asset.object_key)
        raise

    repo.delete_by_id(asset.id)
    logger.info("Asset %s deleted by %s", asset.id, inp.principal.subject_id)
    _emit(
        notifier,
        DomainEvent(
            type=EventType.DELETE,
            subject_id=inp.principal.subject_id,
            payload={
                "fileId": str(asset.id),
                "objectName": asset.object_key,
                "filename": asset.filename_original,
                "ownerId": asset.owner_id,
            },
        ),
    )
    return DeleteOutput(asset_id=asset.id, object_key=asset.object_key)


def run_rename(
    inp: RenameAssetInput,
    *,
    repo: AssetRepoPort,
    engine: AccessEngine,
    relations: RelationLookupPort | None = None,
) -> Asset:
    """Change the display name. The stored object and its key are untouched."""
    display_name = inp.display_name.strip()
    if not display_name:
        raise ValueError("Display name must not be empty")
    if CONTROL_CHARS.search(display_name):
        raise ValueError("Display name must not contain control characters")

    asset = _require_asset(repo, inp.asset_id)
    engine.require(inp.principal, Action.UPDATE, asset, _relation_for(asset, relations))

    asset = asset.model_copy(update={"display_name": display_name})
    return repo.save(asset)


def run_transition(
    inp: TransitionInput,
    *,
    repo: AssetRepoPort,
    engine: AccessEngine,
) -> Asset:
    """Move an asset along uploaded -> processing -> ready, or to failed."""
    asset = _require_asset(repo, inp.asset_id)
    engine.require(inp.principal, Action.PROCESS, asset)

    target = normalize_status(inp.target)
    if target not in ALLOWED_TRANSITIONS:
        raise ValueError(f"Unknown asset status: {inp.target}")
    if not can_transition(asset.status, target):
        raise InvalidTransitionError(asset.status, target)

    update: dict[str, object] = {"status": target}
    if target == "ready":
        update["processed_at"] = datetime.now(UTC)
    asset = repo.save(asset.model_copy(update=update))
    logger.info("Asset %s moved to %s", asset.id, target)
    return asset


# --- Service Class ---


class AssetService:
    """Asset lifecycle operations bound to one set of collaborators."""

    def __init__(
        self,
        repo: AssetRepoPort,
        store: ObjectStorePort,
        engine: AccessEngine | None = None,
        relations: RelationLookupPort | None = None,
        notifier: NotifierPort | None = None,
        config: AssetsConfig | None = None,
        bucket: str = "files",
    ) -> None:
        self.repo = repo
        self.store = store
        self.engine = engine or AccessEngine()
        self.relations = relations
        self.notifier = notifier
        self.config = config or AssetsConfig()
        self.bucket = bucket

    def upload(
        self,
        principal: Principal,
        data: BinaryIO,
        filename: str,
        size: int,
        content_type: str | None = None,
        parent_id: UUID | None = None,
        kind: str = "document",
    ) -> Asset:
        inp = UploadAssetInput(
            principal=principal,
            data=data,
            filename=filename,
            size=size,
            content_type=content_type,
            parent_id=parent_id,
            kind=kind,  # type: ignore[arg-type]
        )
        return run_upload(
            inp,
            repo=self.repo,
            store=self.store,
            engine=self.engine,
            relations=self.relations,
            notifier=self.notifier,
            config=self.config,
            bucket=self.bucket,
        )

    def get(self, principal: Principal, asset_id: UUID) -> Asset:
        return run_get(
            GetAssetInput(principal=principal, asset_id=asset_id),
            repo=self.repo,
            engine=self.engine,
            relations=self.relations,
        )

    def list_for(self, principal: Principal) -> list[Asset]:
        return run_list(ListAssetsInput(principal=principal), repo=self.repo)

    def list_lesson(
        self, principal: Principal, lesson_id: UUID, kind: str | None = None
    ) -> list[Asset]:
        inp = ListLessonAssetsInput(
            principal=principal,
            parent_id=lesson_id,
            kind=kind,  # type: ignore[arg-type]
        )
        return run_list_lesson(inp, repo=self.repo, engine=self.engine, relations=self.relations)

    def open_download(
        self, principal: Principal, asset_id: UUID, range_header: str | None = None
    ) -> AssetDownload:
        return run_download(
            DownloadInput(principal=principal, asset_id=asset_id, range_header=range_header),
            repo=self.repo,
            store=self.store,
            engine=self.engine,
            relations=self.relations,
            config=self.config,
        )

    def delete(self, principal: Principal, asset_id: UUID) -> DeleteOutput:
        return run_delete(
            DeleteAssetInput(principal=principal, asset_id=asset_id),
            repo=self.repo,
            store=self.store,
            engine=self.engine,
            relations=self.relations,
            notifier=self.notifier,
        )

    def rename(self, principal: Principal, asset_id: UUID, display_name: str) -> Asset:
        return run_rename(
            RenameAssetInput(principal=principal, asset_id=asset_id, display_name=display_name),
            repo=self.repo,
            engine=self.engine,
            relations=self.relations,
        )

    def transition(self, principal: Principal, asset_id: UUID, target: str) -> Asset:
        return run_transition(
            TransitionInput(principal=principal, asset_id=asset_id, target=target),
            repo=self.repo,
            engine=self.engine,
        )


def create_asset_service(
    repo: AssetRepoPort,
    store: ObjectStorePort,
    engine: AccessEngine | None = None,
    relations: RelationLookupPort | None = None,
    notifier: NotifierPort | None = None,
    config: AssetsConfig | None = None,
    bucket: str = "files",
) -> AssetService:
    """Factory function for AssetService."""
    return AssetService(repo, store, engine, relations, notifier, config, bucket)
