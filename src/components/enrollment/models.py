"""
Enrollment component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from src.core.entities import Course, Lesson, Principal

# --- Input Models ---


@dataclass(frozen=True)
class CreateCourseInput:
    principal: Principal
    title: str
    description: str = ""


@dataclass(frozen=True)
class UpdateCourseInput:
    principal: Principal
    course_id: UUID
    title: str
    description: str = ""


@dataclass(frozen=True)
class SetCourseStatusInput:
    principal: Principal
    course_id: UUID
    status: str  # Case-insensitive: draft, published or archived


@dataclass(frozen=True)
class DeleteCourseInput:
    principal: Principal
    course_id: UUID


@dataclass(frozen=True)
class CreateLessonInput:
    principal: Principal
    course_id: UUID
    title: str
    description: str = ""
    position: int | None = None  # None appends after the last lesson


@dataclass(frozen=True)
class UpdateLessonInput:
    principal: Principal
    lesson_id: UUID
    title: str
    description: str = ""
    position: int | None = None  # None keeps the current position


@dataclass(frozen=True)
class EnrollInput:
    """
    Input for enrolling in a course.

    student_id defaults to the principal; only admins may enroll someone else.
    """

    principal: Principal
    course_id: UUID
    student_id: str | None = None


# --- Output Models ---


@dataclass(frozen=True)
class CourseOutput:
    course: Course


@dataclass(frozen=True)
class LessonOutput:
    lesson: Lesson
    notified: int = 0  # Enrolled students a lesson.created event was queued for


@dataclass(frozen=True)
class EnrollOutput:
    course_id: UUID
    student_id: str
    changed: bool  # False when the student was already enrolled
