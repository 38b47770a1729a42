import sqlite3
from uuid import uuid4

import pytest

from src.adapters.sqlite.repos import (
    SQLiteAssetRepo,
    SQLiteCourseRepo,
    SQLiteEnrollmentRepo,
    SQLiteLessonRepo,
)
from src.domain.entities import Asset, Course, Lesson


@pytest.fixture
def asset_repo(db_path):
    return SQLiteAssetRepo(db_path)


@pytest.fixture
def course_repo(db_path):
    return SQLiteCourseRepo(db_path)


@pytest.fixture
def lesson_repo(db_path):
    return SQLiteLessonRepo(db_path)


@pytest.fixture
def enrollment_repo(db_path):
    return SQLiteEnrollmentRepo(db_path)


@pytest.fixture
def course(course_repo):
    return course_repo.save(Course(title="Algebra", instructor_id="teacher-1"))


def make_asset(**overrides):
    fields = dict(
        object_key=f"{uuid4().hex}_notes.pdf",
        filename_original="notes.pdf",
        display_name="notes.pdf",
        size_bytes=42,
        content_type="application/pdf",
        owner_id="teacher-1",
    )
    fields.update(overrides)
    return Asset(**fields)


# --- Assets ---


def test_save_and_get_asset(asset_repo):
    asset = make_asset()
    asset_repo.save(asset)

    fetched = asset_repo.get_by_id(asset.id)
    assert fetched is not None
    assert fetched.object_key == asset.object_key
    assert fetched.size_bytes == 42
    assert fetched.status == "uploaded"
    assert fetched.uploaded_at == asset.uploaded_at


def test_object_key_is_never_rewritten(asset_repo):
    asset = make_asset()
    asset_repo.save(asset)

    updated = asset_repo.save(
        asset.model_copy(update={"object_key": "other-key", "display_name": "Renamed"})
    )

    assert updated.display_name == "Renamed"
    assert updated.object_key == asset.object_key


def test_duplicate_object_key_rejected(asset_repo):
    asset = make_asset()
    asset_repo.save(asset)

    with pytest.raises(sqlite3.IntegrityError):
        asset_repo.save(make_asset(object_key=asset.object_key))


def test_list_by_owner_and_parent(asset_repo):
    lesson_id = uuid4()
    asset_repo.save(make_asset(parent_id=lesson_id, position=2))
    asset_repo.save(make_asset(parent_id=lesson_id, position=1, display_name="first"))
    asset_repo.save(make_asset(owner_id="teacher-2"))

    by_parent = asset_repo.list_by_parent(lesson_id)
    assert [a.position for a in by_parent] == [1, 2]
    assert by_parent[0].display_name == "first"

    assert len(asset_repo.list_by_owner("teacher-1")) == 2
    assert len(asset_repo.list_all()) == 3


def test_delete_asset(asset_repo):
    asset = make_asset()
    asset_repo.save(asset)

    asset_repo.delete_by_id(asset.id)
    asset_repo.delete_by_id(asset.id)

    assert asset_repo.get_by_id(asset.id) is None


# --- Courses & Lessons ---


def test_course_round_trip(course_repo, course):
    fetched = course_repo.get_by_id(course.id)
    assert fetched is not None
    assert fetched.title == "Algebra"
    assert [c.id for c in course_repo.list_all()] == [course.id]


def test_lessons_listed_in_position_order(lesson_repo, course):
    lesson_repo.save(Lesson(course_id=course.id, title="Two", position=2))
    lesson_repo.save(Lesson(course_id=course.id, title="One", position=1))

    titles = [x.title for x in lesson_repo.list_by_course(course.id)]
    assert titles == ["One", "Two"]


def test_course_status_persists(course_repo, course):
    assert course_repo.get_by_id(course.id).status == "draft"

    course_repo.save(course.model_copy(update={"status": "published", "title": "Algebra I"}))

    fetched = course_repo.get_by_id(course.id)
    assert (fetched.status, fetched.title) == ("published", "Algebra I")
    assert [c.id for c in course_repo.list_by_status("published")] == [course.id]
    assert course_repo.list_by_status("draft") == []


def test_courses_by_instructor(course_repo, course):
    other = course_repo.save(Course(title="Geometry", instructor_id="teacher-2"))

    assert [c.id for c in course_repo.list_by_instructor("teacher-1")] == [course.id]
    assert [c.id for c in course_repo.list_by_instructor("teacher-2")] == [other.id]
    assert course_repo.list_by_instructor("nobody") == []


def test_lesson_update_keeps_course(lesson_repo, course):
    lesson = lesson_repo.save(Lesson(course_id=course.id, title="Draft", position=1))

    lesson_repo.save(lesson.model_copy(update={"title": "Final", "position": 3}))

    fetched = lesson_repo.get_by_id(lesson.id)
    assert (fetched.title, fetched.position, fetched.course_id) == ("Final", 3, course.id)


def test_delete_course_cascades(course_repo, lesson_repo, enrollment_repo, course):
    lesson = lesson_repo.save(Lesson(course_id=course.id, title="One"))
    enrollment_repo.add(course.id, "student-1")

    course_repo.delete_by_id(course.id)

    assert course_repo.get_by_id(course.id) is None
    assert lesson_repo.get_by_id(lesson.id) is None
    assert enrollment_repo.list_courses_for("student-1") == []


def test_lesson_requires_existing_course(lesson_repo):
    with pytest.raises(sqlite3.IntegrityError):
        lesson_repo.save(Lesson(course_id=uuid4(), title="Orphan"))


# --- Enrollments ---


def test_enrollment_is_idempotent(enrollment_repo, course):
    assert enrollment_repo.add(course.id, "student-1") is True
    assert enrollment_repo.add(course.id, "student-1") is False

    assert enrollment_repo.count(course.id) == 1
    assert enrollment_repo.list_students(course.id) == frozenset({"student-1"})


def test_courses_for_student(enrollment_repo, course_repo, course):
    other = course_repo.save(Course(title="Geometry", instructor_id="teacher-2"))
    enrollment_repo.add(course.id, "student-1")
    enrollment_repo.add(other.id, "student-1")
    enrollment_repo.add(other.id, "student-2")

    assert set(enrollment_repo.list_courses_for("student-1")) == {course.id, other.id}
    assert enrollment_repo.list_courses_for("nobody") == []
    assert enrollment_repo.count(other.id) == 2
