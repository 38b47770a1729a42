from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# --- Shared Enums/Types ---
AssetStatusValue = Literal["uploaded", "processing", "ready", "processed", "failed"]
CourseStatusValue = Literal["draft", "published", "archived"]


# --- Assets ---
class AssetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    object_key: str
    bucket: str
    filename_original: str
    display_name: str
    size_bytes: int
    content_type: str | None
    owner_id: str
    parent_id: UUID | None
    kind: str
    status: str
    position: int
    uploaded_at: datetime
    processed_at: datetime | None


class RenameRequest(BaseModel):
    display_name: str = Field(min_length=1, max_length=255)


class StatusRequest(BaseModel):
    status: AssetStatusValue


# --- Courses ---
class CourseCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""


class CourseUpdateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""


class CourseStatusRequest(BaseModel):
    status: str = Field(min_length=1, max_length=32)  # Any case, e.g. "PUBLISHED"


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    instructor_id: str
    status: CourseStatusValue
    created_at: datetime


class LessonCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    position: int | None = Field(default=None, ge=0)


class LessonUpdateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    position: int | None = Field(default=None, ge=0)  # None keeps the current position


class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    description: str
    position: int
    created_at: datetime


class EnrollResponse(BaseModel):
    course_id: UUID
    student_id: str
    enrolled: bool = True
    changed: bool


class EnrollmentCountResponse(BaseModel):
    course_id: UUID
    count: int
