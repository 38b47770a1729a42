"""
Enrollment component - Courses, lessons and course membership.

Owns the parent resources assets can be attached to, and answers the
Access Engine's one question about them: who teaches a lesson and who is
enrolled in it.

Invariants:
- Only instructors and admins create courses
- Only the course instructor or an admin changes a course or its lessons
- New courses start as drafts
- Enrollment is idempotent; an event is emitted only when membership changes
- Events are queued only after the record was saved
"""

from __future__ import annotations

import logging
from uuid import UUID

from src.core.entities import (
    Course,
    DomainEvent,
    EventType,
    Lesson,
    ParentRelation,
    Principal,
)
from src.core.errors import AccessDeniedError, NotFoundError
from src.domain.policy import DenyReason

from .models import (
    CourseOutput,
    CreateCourseInput,
    CreateLessonInput,
    DeleteCourseInput,
    EnrollInput,
    EnrollOutput,
    LessonOutput,
    SetCourseStatusInput,
    UpdateCourseInput,
    UpdateLessonInput,
)
from .ports import CourseRepoPort, EnrollmentRepoPort, LessonRepoPort, NotifierPort

logger = logging.getLogger(__name__)

COURSE_STATUSES = ("draft", "published", "archived")


# --- Helper Functions ---


def _require_course(courses: CourseRepoPort, course_id: UUID) -> Course:
    course = courses.get_by_id(course_id)
    if course is None:
        raise NotFoundError(f"course {course_id}")
    return course


def _require_lesson(lessons: LessonRepoPort, lesson_id: UUID) -> Lesson:
    lesson = lessons.get_by_id(lesson_id)
    if lesson is None:
        raise NotFoundError(f"lesson {lesson_id}")
    return lesson


def can_manage_course(principal: Principal, course: Course) -> bool:
    return principal.is_admin or course.instructor_id == principal.subject_id


def _require_manager(principal: Principal, course: Course, message: str) -> None:
    if not can_manage_course(principal, course):
        raise AccessDeniedError(DenyReason.ROLE_INSUFFICIENT.value, message)


def _require_title(title: str, what: str) -> str:
    title = title.strip()
    if not title:
        raise ValueError(f"{what} title is required")
    return title


def _emit(notifier: NotifierPort | None, event: DomainEvent) -> None:
    if notifier is None:
        return
    try:
        notifier.notify(event)
    except Exception:
        logger.exception("Dropped %s event for %s", event.type, event.subject_id)


# --- Entry Points ---


def run_create_course(
    inp: CreateCourseInput,
    *,
    courses: CourseRepoPort,
) -> CourseOutput:
    """Create a course taught by the calling instructor."""
    if not (inp.principal.is_instructor or inp.principal.is_admin):
        raise AccessDeniedError(
            DenyReason.ROLE_INSUFFICIENT.value,
            "Only instructors can create courses",
        )
    title = _require_title(inp.title, "Course")

    course = courses.save(
        Course(
            title=title,
            description=inp.description,
            instructor_id=inp.principal.subject_id,
        )
    )
    logger.info("Course %s created by %s", course.id, course.instructor_id)
    return CourseOutput(course=course)


def run_update_course(
    inp: UpdateCourseInput,
    *,
    courses: CourseRepoPort,
) -> CourseOutput:
    """Replace title and description. Status and instructor are untouched."""
    course = _require_course(courses, inp.course_id)
    _require_manager(inp.principal, course, "Only the course instructor can update the course")
    title = _require_title(inp.title, "Course")

    course = courses.save(
        course.model_copy(update={"title": title, "description": inp.description})
    )
    logger.info("Course %s updated by %s", course.id, inp.principal.subject_id)
    return CourseOutput(course=course)


def run_set_course_status(
    inp: SetCourseStatusInput,
    *,
    courses: CourseRepoPort,
) -> CourseOutput:
    """
    Move a course between draft, published and archived.

    Raises:
        NotFoundError: Unknown course
        AccessDeniedError: Caller neither teaches the course nor is an admin
        ValueError: Unknown status name
    """
    course = _require_course(courses, inp.course_id)
    _require_manager(inp.principal, course, "Only the course instructor can change its status")

    target = inp.status.strip().lower()
    if target not in COURSE_STATUSES:
        raise ValueError(f"Unknown course status: {inp.status}")

    if course.status != target:
        course = courses.save(course.model_copy(update={"status": target}))
        logger.info("Course %s is now %s", course.id, target)
    return CourseOutput(course=course)


def run_delete_course(
    inp: DeleteCourseInput,
    *,
    courses: CourseRepoPort,
) -> None:
    """Delete a course with its lessons and enrollments. Attached assets are kept."""
    course = _require_course(courses, inp.course_id)
    _require_manager(inp.principal, course, "Only the course instructor can delete the course")

    courses.delete_by_id(course.id)
    logger.info("Course %s deleted by %s", course.id, inp.principal.subject_id)


def run_create_lesson(
    inp: CreateLessonInput,
    *,
    courses: CourseRepoPort,
    lessons: LessonRepoPort,
    enrollments: EnrollmentRepoPort,
    notifier: NotifierPort | None = None,
) -> LessonOutput:
    """
    Add a lesson to a course.

    Enrolled students are told about it through one lesson.created event.
    """
    course = _require_course(courses, inp.course_id)
    _require_manager(inp.principal, course, "Only the course instructor can add lessons")
    title = _require_title(inp.title, "Lesson")

    position = inp.position
    if position is None:
        existing = lessons.list_by_course(course.id)
        position = existing[-1].position + 1 if existing else 1

    lesson = lessons.save(
        Lesson(
            course_id=course.id,
            title=title,
            description=inp.description,
            position=position,
        )
    )

    students = enrollments.list_students(course.id)
    notified = 0
    if students and notifier is not None:
        _emit(
            notifier,
            DomainEvent(
                type=EventType.LESSON_CREATED,
                subject_id=inp.principal.subject_id,
                payload={
                    "courseId": str(course.id),
                    "courseTitle": course.title,
                    "lessonId": str(lesson.id),
                    "lessonTitle": lesson.title,
                    "recipients": sorted(students),
                },
            ),
        )
        notified = len(students)
        logger.info(
            "Queued lesson notification for %d students of course %s", notified, course.id
        )

    return LessonOutput(lesson=lesson, notified=notified)


def run_update_lesson(
    inp: UpdateLessonInput,
    *,
    courses: CourseRepoPort,
    lessons: LessonRepoPort,
) -> LessonOutput:
    """Replace a lesson's title and description, and optionally move it."""
    lesson = _require_lesson(lessons, inp.lesson_id)
    course = _require_course(courses, lesson.course_id)
    _require_manager(inp.principal, course, "Only the course instructor can update lessons")
    title = _require_title(inp.title, "Lesson")
    if inp.position is not None and inp.position < 0:
        raise ValueError("Lesson position must not be negative")

    update: dict[str, object] = {"title": title, "description": inp.description}
    if inp.position is not None:
        update["position"] = inp.position
    lesson = lessons.save(lesson.model_copy(update=update))
    logger.info("Lesson %s of course %s updated", lesson.id, course.id)
    return LessonOutput(lesson=lesson)


def run_enroll(
    inp: EnrollInput,
    *,
    courses: CourseRepoPort,
    enrollments: EnrollmentRepoPort,
    notifier: NotifierPort | None = None,
) -> EnrollOutput:
    """Enroll a student. Re-enrolling is a silent no-op."""
    course = _require_course(courses, inp.course_id)

    student_id = inp.student_id or inp.principal.subject_id
    if student_id != inp.principal.subject_id and not inp.principal.is_admin:
        raise AccessDeniedError(
            DenyReason.ROLE_INSUFFICIENT.value,
            "Only admins can enroll other users",
        )

    changed = enrollments.add(course.id, student_id)
    if changed:
        logger.info("Student %s enrolled in course %s", student_id, course.id)
        _emit(
            notifier,
            DomainEvent(
                type=EventType.ENROLL,
                subject_id=student_id,
                payload={"courseId": str(course.id), "courseTitle": course.title},
            ),
        )

    return EnrollOutput(course_id=course.id, student_id=student_id, changed=changed)


def run_enrollment_count(
    course_id: UUID,
    *,
    courses: CourseRepoPort,
    enrollments: EnrollmentRepoPort,
) -> int:
    _require_course(courses, course_id)
    return enrollments.count(course_id)


# --- Relation Lookup ---


class EnrollmentDirectory:
    """
    Resolves lesson -> course -> (instructor, enrolled set).

    Used by the asset coordinator to build the ParentRelation handed to the
    Access Engine.
    """

    def __init__(
        self,
        courses: CourseRepoPort,
        lessons: LessonRepoPort,
        enrollments: EnrollmentRepoPort,
    ) -> None:
        self._courses = courses
        self._lessons = lessons
        self._enrollments = enrollments

    def relation_for(self, parent_id: UUID) -> ParentRelation | None:
        lesson = self._lessons.get_by_id(parent_id)
        if lesson is None:
            return None
        course = self._courses.get_by_id(lesson.course_id)
        if course is None:
            logger.warning("Lesson %s references missing course %s", lesson.id, lesson.course_id)
            return None
        return ParentRelation(
            parent_id=lesson.id,
            instructor_id=course.instructor_id,
            enrolled=self._enrollments.list_students(course.id),
        )

    def lesson_exists(self, lesson_id: UUID) -> bool:
        return self._lessons.get_by_id(lesson_id) is not None


# --- Service Class ---


class CourseService:
    """Course, lesson and enrollment operations bound to their repositories."""

    def __init__(
        self,
        courses: CourseRepoPort,
        lessons: LessonRepoPort,
        enrollments: EnrollmentRepoPort,
        notifier: NotifierPort | None = None,
    ) -> None:
        self.courses = courses
        self.lessons = lessons
        self.enrollments = enrollments
        self.notifier = notifier
        self.directory = EnrollmentDirectory(courses, lessons, enrollments)

    def create_course(self, principal: Principal, title: str, description: str = "") -> Course:
        inp = CreateCourseInput(principal=principal, title=title, description=description)
        return run_create_course(inp, courses=self.courses).course

    def get_course(self, course_id: UUID) -> Course:
        return _require_course(self.courses, course_id)

    def update_course(
        self, principal: Principal, course_id: UUID, title: str, description: str = ""
    ) -> Course:
        inp = UpdateCourseInput(
            principal=principal, course_id=course_id, title=title, description=description
        )
        return run_update_course(inp, courses=self.courses).course

    def set_course_status(self, principal: Principal, course_id: UUID, status: str) -> Course:
        inp = SetCourseStatusInput(principal=principal, course_id=course_id, status=status)
        return run_set_course_status(inp, courses=self.courses).course

    def delete_course(self, principal: Principal, course_id: UUID) -> None:
        run_delete_course(
            DeleteCourseInput(principal=principal, course_id=course_id), courses=self.courses
        )

    def list_published(self) -> list[Course]:
        return self.courses.list_by_status("published")

    def list_by_instructor(self, principal: Principal, instructor_id: str) -> list[Course]:
        """Staff see every course of the instructor; others only the published ones."""
        found = self.courses.list_by_instructor(instructor_id)
        if principal.is_admin or principal.is_instructor:
            return found
        return [c for c in found if c.status == "published"]

    def list_courses(self, principal: Principal) -> list[Course]:
        """Instructors and admins see every course; others see their enrollments."""
        if principal.is_admin or principal.is_instructor:
            return self.courses.list_all()
        result = []
        for course_id in self.enrollments.list_courses_for(principal.subject_id):
            course = self.courses.get_by_id(course_id)
            if course is not None:
                result.append(course)
        return result

    def create_lesson(
        self,
        principal: Principal,
        course_id: UUID,
        title: str,
        description: str = "",
        position: int | None = None,
    ) -> Lesson:
        inp = CreateLessonInput(
            principal=principal,
            course_id=course_id,
            title=title,
            description=description,
            position=position,
        )
        return run_create_lesson(
            inp,
            courses=self.courses,
            lessons=self.lessons,
            enrollments=self.enrollments,
            notifier=self.notifier,
        ).lesson

    def update_lesson(
        self,
        principal: Principal,
        lesson_id: UUID,
        title: str,
        description: str = "",
        position: int | None = None,
    ) -> Lesson:
        inp = UpdateLessonInput(
            principal=principal,
            lesson_id=lesson_id,
            title=title,
            description=description,
            position=position,
        )
        return run_update_lesson(inp, courses=self.courses, lessons=self.lessons).lesson

    def get_lesson(self, lesson_id: UUID) -> Lesson:
        return _require_lesson(self.lessons, lesson_id)

    def list_lessons(self, course_id: UUID) -> list[Lesson]:
        _require_course(self.courses, course_id)
        return self.lessons.list_by_course(course_id)

    def enroll(
        self, principal: Principal, course_id: UUID, student_id: str | None = None
    ) -> EnrollOutput:
        inp = EnrollInput(principal=principal, course_id=course_id, student_id=student_id)
        return run_enroll(
            inp, courses=self.courses, enrollments=self.enrollments, notifier=self.notifier
        )

    def enrollment_count(self, course_id: UUID) -> int:
        return run_enrollment_count(course_id, courses=self.courses, enrollments=self.enrollments)


def create_course_service(
    courses: CourseRepoPort,
    lessons: LessonRepoPort,
    enrollments: EnrollmentRepoPort,
    notifier: NotifierPort | None = None,
) -> CourseService:
    return CourseService(courses, lessons, enrollments, notifier)
