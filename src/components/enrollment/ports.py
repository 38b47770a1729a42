"""
Enrollment component port definitions.
"""

from __future__ import annotations

from src.components.notifier.ports import NotifierPort
from src.core.ports.db import CourseRepoPort, EnrollmentRepoPort, LessonRepoPort

__all__ = [
    "CourseRepoPort",
    "EnrollmentRepoPort",
    "LessonRepoPort",
    "NotifierPort",
]
