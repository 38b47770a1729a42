from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Shared Enums/Types ---
AssetStatus = Literal["uploaded", "processing", "ready", "failed"]
AssetKind = Literal["document", "media"]
CourseStatus = Literal["draft", "published", "archived"]

ADMIN_ROLE = "admin"
INSTRUCTOR_ROLE = "instructor"
MEMBER_ROLE = "member"


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Identity ---

@dataclass(frozen=True)
class Principal:
    """Authenticated caller. Built per request, never persisted."""

    subject_id: str
    roles: frozenset[str] = field(default_factory=frozenset)

    def has_role(self, role: str) -> bool:
        return role.lower() in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(ADMIN_ROLE)

    @property
    def is_instructor(self) -> bool:
        return self.has_role(INSTRUCTOR_ROLE)


# --- Assets ---

class Asset(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    object_key: str  # Immutable once set
    bucket: str = "files"
    filename_original: str
    display_name: str
    size_bytes: int  # Bytes actually written to the object store
    content_type: str | None = None
    owner_id: str
    parent_id: UUID | None = None  # Lesson the asset is attached to
    kind: AssetKind = "document"
    status: AssetStatus = "uploaded"
    position: int = 0
    uploaded_at: datetime = Field(default_factory=_utcnow)
    processed_at: datetime | None = None


# --- Courses ---

class Course(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    description: str = ""
    instructor_id: str
    status: CourseStatus = "draft"
    created_at: datetime = Field(default_factory=_utcnow)


class Lesson(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    course_id: UUID
    title: str
    description: str = ""
    position: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
