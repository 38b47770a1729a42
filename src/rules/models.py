from typing import Literal

from pydantic import BaseModel, Field

from src.components.assets import AssetsConfig
from src.components.notifier import EventRoutes, NotifierConfig
from src.components.ranges import DOCUMENT_TYPES, MEDIA_TYPES, ContentTypeTable
from src.domain.policy import AccessPolicy, DeletePolicy

GIB = 1024 * 1024 * 1024


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class StorageRules(BaseModel):
    bucket: str = Field(default="files", min_length=1)
    max_upload_bytes: int = Field(default=2 * GIB, gt=0)
    chunk_size: int = Field(default=64 * 1024, gt=0)


class AccessRules(BaseModel):
    delete_policy: Literal["admin_only", "owner_or_admin"] = "admin_only"
    instructors_read_all: bool = False
    # Token role label -> internal role
    role_aliases: dict[str, str] = Field(
        default_factory=lambda: {"teacher": "instructor", "client": "member"}
    )

    def to_policy(self) -> AccessPolicy:
        return AccessPolicy(
            delete_policy=DeletePolicy(self.delete_policy),
            instructors_read_all=self.instructors_read_all,
        )


class ContentTypeEntry(BaseModel):
    extension: str = Field(min_length=1)
    mime_type: str = Field(min_length=1)


class ContentTypeTableRules(BaseModel):
    default: str
    entries: list[ContentTypeEntry]

    def to_table(self) -> ContentTypeTable:
        return ContentTypeTable(
            entries=tuple((e.extension.lower().lstrip("."), e.mime_type) for e in self.entries),
            default=self.default,
        )


class ContentTypesRules(BaseModel):
    # None keeps the built-in table
    documents: ContentTypeTableRules | None = None
    media: ContentTypeTableRules | None = None


class EventsRules(BaseModel):
    capacity: int = Field(default=1000, gt=0)
    default_queue: str = "notification.queue"
    routes: dict[str, str] = Field(
        default_factory=lambda: {"upload": "file.processing.queue"}
    )

    def to_config(self) -> NotifierConfig:
        return NotifierConfig(
            capacity=self.capacity,
            routes=EventRoutes(routes=dict(self.routes), default_queue=self.default_queue),
        )


class AuthRules(BaseModel):
    client_id: str = "microservices-client"
    algorithm: str = "HS256"


class Rules(BaseModel):
    project: ProjectRules
    storage: StorageRules = Field(default_factory=StorageRules)
    access: AccessRules = Field(default_factory=AccessRules)
    content_types: ContentTypesRules = Field(default_factory=ContentTypesRules)
    events: EventsRules = Field(default_factory=EventsRules)
    auth: AuthRules = Field(default_factory=AuthRules)

    def assets_config(self) -> AssetsConfig:
        documents = self.content_types.documents
        media = self.content_types.media
        return AssetsConfig(
            max_upload_bytes=self.storage.max_upload_bytes,
            chunk_size=self.storage.chunk_size,
            document_types=documents.to_table() if documents else DOCUMENT_TYPES,
            media_types=media.to_table() if media else MEDIA_TYPES,
        )
