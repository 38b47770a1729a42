"""
Metadata Store Interfaces.

Protocol-based interfaces for repository operations.
Implementations: SQLite (src/adapters/sqlite/repos.py).

References between records are ids only (Lesson.course_id, Asset.parent_id);
no repository returns nested objects.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.core.entities import Asset, Course, Lesson

# -----------------------------------------------------------------------------
# Asset Repository
# -----------------------------------------------------------------------------


class AssetRepoPort(Protocol):
    """
    Repository for asset metadata.

    Invariants:
    - object_key is written once and never changed by a later save
    - delete_by_id of an absent id is a no-op
    """

    def save(self, asset: Asset) -> Asset:
        """Insert or update an asset record."""
        ...

    def get_by_id(self, asset_id: UUID) -> Asset | None:
        """Get asset by ID."""
        ...

    def list_by_owner(self, owner_id: str) -> list[Asset]:
        """All assets uploaded by owner_id, newest first."""
        ...

    def list_by_parent(self, parent_id: UUID) -> list[Asset]:
        """Assets attached to a lesson, in position order."""
        ...

    def list_all(self) -> list[Asset]:
        """All assets, newest first."""
        ...

    def delete_by_id(self, asset_id: UUID) -> None:
        """Delete asset record."""
        ...


# -----------------------------------------------------------------------------
# Course / Lesson / Enrollment Repositories
# -----------------------------------------------------------------------------


class CourseRepoPort(Protocol):
    def save(self, course: Course) -> Course:
        ...

    def get_by_id(self, course_id: UUID) -> Course | None:
        ...

    def list_all(self) -> list[Course]:
        ...

    def list_by_instructor(self, instructor_id: str) -> list[Course]:
        ...

    def list_by_status(self, status: str) -> list[Course]:
        ...

    def delete_by_id(self, course_id: UUID) -> None:
        """Remove the course with its lessons and enrollments."""
        ...


class LessonRepoPort(Protocol):
    def save(self, lesson: Lesson) -> Lesson:
        ...

    def get_by_id(self, lesson_id: UUID) -> Lesson | None:
        ...

    def list_by_course(self, course_id: UUID) -> list[Lesson]:
        """Lessons of a course in position order."""
        ...


class EnrollmentRepoPort(Protocol):
    """
    Course membership.

    Invariants:
    - add() is idempotent and reports whether membership changed
    """

    def add(self, course_id: UUID, student_id: str) -> bool:
        """Enroll student_id. Returns False if already enrolled."""
        ...

    def list_students(self, course_id: UUID) -> frozenset[str]:
        ...

    def count(self, course_id: UUID) -> int:
        ...

    def list_courses_for(self, student_id: str) -> list[UUID]:
        """Ids of courses student_id is enrolled in."""
        ...
