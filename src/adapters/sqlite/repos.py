import sqlite3
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from src.domain.entities import Asset, Course, Lesson


def _parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn


class SQLiteAssetRepo(_SQLiteRepo):
    def save(self, asset: Asset) -> Asset:
        conn = self._get_conn()
        try:
            # object_key and bucket are write-once: the update clause omits them.
            conn.execute(
                """
                INSERT INTO assets (
                    id, object_key, bucket, filename_original, display_name,
                    size_bytes, content_type, owner_id, parent_id, kind,
                    status, position, uploaded_at, processed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    display_name=excluded.display_name,
                    content_type=excluded.content_type,
                    parent_id=excluded.parent_id,
                    status=excluded.status,
                    position=excluded.position,
                    processed_at=excluded.processed_at
            """,
                (
                    str(asset.id),
                    asset.object_key,
                    asset.bucket,
                    asset.filename_original,
                    asset.display_name,
                    asset.size_bytes,
                    asset.content_type,
                    asset.owner_id,
                    str(asset.parent_id) if asset.parent_id else None,
                    asset.kind,
                    asset.status,
                    asset.position,
                    asset.uploaded_at.isoformat(),
                    asset.processed_at.isoformat() if asset.processed_at else None,
                ),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        stored = self.get_by_id(asset.id)
        return stored if stored is not None else asset

    def get_by_id(self, asset_id: UUID) -> Asset | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM assets WHERE id = ?", (str(asset_id),)).fetchone()
            if not row:
                return None
            return self._row_to_asset(row)
        finally:
            conn.close()

    def list_by_owner(self, owner_id: str) -> list[Asset]:
        return self._query(
            "SELECT * FROM assets WHERE owner_id = ? ORDER BY uploaded_at DESC", (owner_id,)
        )

    def list_by_parent(self, parent_id: UUID) -> list[Asset]:
        return self._query(
            "SELECT * FROM assets WHERE parent_id = ? ORDER BY position ASC, uploaded_at ASC",
            (str(parent_id),),
        )

    def list_all(self) -> list[Asset]:
        return self._query("SELECT * FROM assets ORDER BY uploaded_at DESC", ())

    def delete_by_id(self, asset_id: UUID) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM assets WHERE id = ?", (str(asset_id),))
            conn.commit()
        finally:
            conn.close()

    def _query(self, sql: str, params: tuple[Any, ...]) -> list[Asset]:
        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
            return [self._row_to_asset(row) for row in rows]
        finally:
            conn.close()

    def _row_to_asset(self, row: sqlite3.Row) -> Asset:
        return Asset(
            id=UUID(row["id"]),
            object_key=row["object_key"],
            bucket=row["bucket"],
            filename_original=row["filename_original"],
            display_name=row["display_name"],
            size_bytes=row["size_bytes"],
            content_type=row["content_type"],
            owner_id=row["owner_id"],
            parent_id=UUID(row["parent_id"]) if row["parent_id"] else None,
            kind=row["kind"],
            status=row["status"],
            position=row["position"],
            uploaded_at=_parse_dt(row["uploaded_at"]) or datetime.now(UTC),
            processed_at=_parse_dt(row["processed_at"]),
        )


class SQLiteCourseRepo(_SQLiteRepo):
    def save(self, course: Course) -> Course:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO courses (id, title, description, instructor_id, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    description=excluded.description,
                    instructor_id=excluded.instructor_id,
                    status=excluded.status
            """,
                (
                    str(course.id),
                    course.title,
                    course.description,
                    course.instructor_id,
                    course.status,
                    course.created_at.isoformat(),
                ),
            )
            conn.commit()
            return course
        finally:
            conn.close()

    def get_by_id(self, course_id: UUID) -> Course | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM courses WHERE id = ?", (str(course_id),)).fetchone()
            return self._row_to_course(row) if row else None
        finally:
            conn.close()

    def list_all(self) -> list[Course]:
        return self._query("SELECT * FROM courses ORDER BY created_at ASC", ())

    def list_by_instructor(self, instructor_id: str) -> list[Course]:
        return self._query(
            "SELECT * FROM courses WHERE instructor_id = ? ORDER BY created_at ASC",
            (instructor_id,),
        )

    def list_by_status(self, status: str) -> list[Course]:
        return self._query(
            "SELECT * FROM courses WHERE status = ? ORDER BY created_at ASC", (status,)
        )

    def delete_by_id(self, course_id: UUID) -> None:
        """Lessons and enrollments go with the course."""
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM courses WHERE id = ?", (str(course_id),))
            conn.commit()
        finally:
            conn.close()

    def _query(self, sql: str, params: tuple[Any, ...]) -> list[Course]:
        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
            return [self._row_to_course(row) for row in rows]
        finally:
            conn.close()

    def _row_to_course(self, row: sqlite3.Row) -> Course:
        return Course(
            id=UUID(row["id"]),
            title=row["title"],
            description=row["description"],
            instructor_id=row["instructor_id"],
            status=row["status"],
            created_at=_parse_dt(row["created_at"]) or datetime.now(UTC),
        )


class SQLiteLessonRepo(_SQLiteRepo):
    def save(self, lesson: Lesson) -> Lesson:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO lessons (id, course_id, title, description, position, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    description=excluded.description,
                    position=excluded.position
            """,
                (
                    str(lesson.id),
                    str(lesson.course_id),
                    lesson.title,
                    lesson.description,
                    lesson.position,
                    lesson.created_at.isoformat(),
                ),
            )
            conn.commit()
            return lesson
        finally:
            conn.close()

    def get_by_id(self, lesson_id: UUID) -> Lesson | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM lessons WHERE id = ?", (str(lesson_id),)).fetchone()
            return self._row_to_lesson(row) if row else None
        finally:
            conn.close()

    def list_by_course(self, course_id: UUID) -> list[Lesson]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM lessons WHERE course_id = ? ORDER BY position ASC, created_at ASC",
                (str(course_id),),
            ).fetchall()
            return [self._row_to_lesson(row) for row in rows]
        finally:
            conn.close()

    def _row_to_lesson(self, row: sqlite3.Row) -> Lesson:
        return Lesson(
            id=UUID(row["id"]),
            course_id=UUID(row["course_id"]),
            title=row["title"],
            description=row["description"],
            position=row["position"],
            created_at=_parse_dt(row["created_at"]) or datetime.now(UTC),
        )


class SQLiteEnrollmentRepo(_SQLiteRepo):
    def add(self, course_id: UUID, student_id: str) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                INSERT INTO enrollments (course_id, student_id, enrolled_at)
                VALUES (?, ?, ?)
                ON CONFLICT(course_id, student_id) DO NOTHING
            """,
                (str(course_id), student_id, datetime.now(UTC).isoformat()),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def list_students(self, course_id: UUID) -> frozenset[str]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT student_id FROM enrollments WHERE course_id = ?", (str(course_id),)
            ).fetchall()
            return frozenset(row["student_id"] for row in rows)
        finally:
            conn.close()

    def count(self, course_id: UUID) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT COUNT(*) AS cnt FROM enrollments WHERE course_id = ?", (str(course_id),)
            ).fetchone()
            return int(row["cnt"]) if row else 0
        finally:
            conn.close()

    def list_courses_for(self, student_id: str) -> list[UUID]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT course_id FROM enrollments WHERE student_id = ? ORDER BY enrolled_at ASC",
                (student_id,),
            ).fetchall()
            return [UUID(row["course_id"]) for row in rows]
        finally:
            conn.close()
