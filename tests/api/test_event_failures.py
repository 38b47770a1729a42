"""
A broker outage never reaches the caller.

Every publish raises; uploads, enrollments and deletes still commit and
answer normally while the notifier counts the failed deliveries.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from src.adapters.events import InMemoryEventSink
from src.components.notifier import EventNotifier

Headers = Callable[..., dict[str, str]]


@pytest.fixture
def sink() -> InMemoryEventSink:
    return InMemoryEventSink(fail_with=ConnectionError("broker down"))


def test_operations_succeed_while_broker_is_down(
    client: TestClient,
    notifier: EventNotifier,
    sink: InMemoryEventSink,
    auth_header: Headers,
) -> None:
    teacher = auth_header("teacher-1", "teacher")
    student = auth_header("student-1", "client")
    admin = auth_header("admin-1", "admin")

    uploaded = client.post(
        "/api/files", files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")}, headers=teacher
    )
    assert uploaded.status_code == 201

    course = client.post("/api/courses", json={"title": "Algebra"}, headers=teacher).json()
    enrolled = client.post(f"/api/courses/{course['id']}/enroll", headers=student)
    assert enrolled.status_code == 200

    deleted = client.delete(f"/api/files/{uploaded.json()['id']}", headers=admin)
    assert deleted.status_code == 204

    assert notifier.flush()
    stats = notifier.stats()
    assert stats.failed >= 3
    assert stats.delivered == 0
    assert sink.published == []


def test_files_stay_readable_after_failed_upload_event(
    client: TestClient, notifier: EventNotifier, auth_header: Headers
) -> None:
    teacher = auth_header("teacher-1", "teacher")
    body = client.post(
        "/api/files", files={"file": ("a.txt", b"hello", "text/plain")}, headers=teacher
    ).json()

    assert notifier.flush()
    assert notifier.stats().failed == 1

    download = client.get(f"/api/files/{body['id']}/download", headers=teacher)
    assert download.status_code == 200
    assert download.content == b"hello"
