"""
Enrollment component - Courses, lessons and course membership.
"""

from .component import (
    CourseService,
    EnrollmentDirectory,
    can_manage_course,
    create_course_service,
    run_create_course,
    run_create_lesson,
    run_delete_course,
    run_enroll,
    run_enrollment_count,
    run_set_course_status,
    run_update_course,
    run_update_lesson,
)
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

__all__ = [
    # Entry points
    "run_create_course",
    "run_update_course",
    "run_set_course_status",
    "run_delete_course",
    "run_create_lesson",
    "run_update_lesson",
    "run_enroll",
    "run_enrollment_count",
    # Helper functions
    "can_manage_course",
    # Service class
    "CourseService",
    "EnrollmentDirectory",
    "create_course_service",
    # Input models
    "CreateCourseInput",
    "UpdateCourseInput",
    "SetCourseStatusInput",
    "DeleteCourseInput",
    "CreateLessonInput",
    "UpdateLessonInput",
    "EnrollInput",
    # Output models
    "CourseOutput",
    "EnrollOutput",
    "LessonOutput",
    # Ports
    "CourseRepoPort",
    "EnrollmentRepoPort",
    "LessonRepoPort",
    "NotifierPort",
]
