"""
Files API through the HTTP surface.

- Upload records the true size and queues one upload event
- Byte-range downloads: 200, 206 and 416 framing
- Access denial carries a reason code
- Rename, status transitions and the delete policy
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.events import InMemoryEventSink
from src.api.deps import get_rules
from src.rules.models import Rules

PAYLOAD = bytes(i % 251 for i in range(1000))

Headers = Callable[..., dict[str, str]]


@pytest.fixture
def teacher(auth_header: Headers) -> dict[str, str]:
    return auth_header("teacher-1", "teacher")


@pytest.fixture
def admin_headers(auth_header: Headers) -> dict[str, str]:
    return auth_header("admin-1", "admin")


@pytest.fixture
def outsider(auth_header: Headers) -> dict[str, str]:
    return auth_header("student-2", "client")


def upload(
    client: TestClient,
    headers: dict[str, str],
    data: bytes = PAYLOAD,
    filename: str = "notes.pdf",
    content_type: str = "application/pdf",
) -> dict[str, Any]:
    response = client.post(
        "/api/files", files={"file": (filename, data, content_type)}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestAuthentication:
    def test_missing_token(self, client: TestClient) -> None:
        assert client.get("/api/files").status_code == 401

    def test_bad_token(self, client: TestClient) -> None:
        response = client.get("/api/files", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401

    def test_cookie_token(self, client: TestClient, make_token: Callable[..., str]) -> None:
        client.cookies.set("access_token", f"Bearer {make_token('teacher-1', 'teacher')}")
        assert client.get("/api/files").status_code == 200


class TestUpload:
    def test_upload_records_size_and_emits_event(
        self, client: TestClient, teacher: dict[str, str], sink: InMemoryEventSink
    ) -> None:
        body = upload(client, teacher)

        assert body["size_bytes"] == 1000
        assert body["status"] == "uploaded"
        assert body["owner_id"] == "teacher-1"
        assert body["content_type"] == "application/pdf"

        assert sink.wait_for(1)
        [message] = sink.messages_for("file.processing.queue")
        assert message.event.type == "upload"
        assert message.message["payload"]["fileId"] == body["id"]
        assert message.message["payload"]["objectName"] == body["object_key"]

    def test_member_cannot_upload(self, client: TestClient, outsider: dict[str, str]) -> None:
        response = client.post(
            "/api/files", files={"file": ("x.txt", b"x", "text/plain")}, headers=outsider
        )

        assert response.status_code == 403
        assert response.json()["reason"] == "RoleInsufficient"

    def test_upload_over_limit_is_413(
        self, api_app: FastAPI, client: TestClient, rules: Rules, teacher: dict[str, str]
    ) -> None:
        storage = rules.storage.model_copy(update={"max_upload_bytes": 10})
        small = rules.model_copy(update={"storage": storage})
        api_app.dependency_overrides[get_rules] = lambda: small

        response = client.post(
            "/api/files",
            files={"file": ("big.bin", b"x" * 11, "application/octet-stream")},
            headers=teacher,
        )

        assert response.status_code == 413
        assert response.json()["limit"] == 10


class TestDownload:
    def test_full_download(self, client: TestClient, teacher: dict[str, str]) -> None:
        asset = upload(client, teacher)

        response = client.get(f"/api/files/{asset['id']}/download", headers=teacher)

        assert response.status_code == 200
        assert response.content == PAYLOAD
        assert response.headers["accept-ranges"] == "bytes"
        assert response.headers["content-length"] == "1000"
        assert response.headers["content-type"].startswith("application/pdf")
        assert response.headers["content-disposition"].startswith("attachment;")
        assert "content-range" not in response.headers

    def test_partial_download(self, client: TestClient, teacher: dict[str, str]) -> None:
        asset = upload(client, teacher)

        response = client.get(
            f"/api/files/{asset['id']}/download",
            headers={**teacher, "Range": "bytes=200-299"},
        )

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 200-299/1000"
        assert response.headers["content-length"] == "100"
        assert response.content == PAYLOAD[200:300]

    def test_open_ended_range(self, client: TestClient, teacher: dict[str, str]) -> None:
        asset = upload(client, teacher)

        response = client.get(
            f"/api/files/{asset['id']}/download",
            headers={**teacher, "Range": "bytes=990-"},
        )

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 990-999/1000"
        assert response.content == PAYLOAD[990:]

    def test_unsatisfiable_range(self, client: TestClient, teacher: dict[str, str]) -> None:
        asset = upload(client, teacher)

        response = client.get(
            f"/api/files/{asset['id']}/download",
            headers={**teacher, "Range": "bytes=900-1200"},
        )

        assert response.status_code == 416
        assert response.headers["content-range"] == "bytes */1000"
        assert response.content == b""

    def test_malformed_range_serves_whole_file(
        self, client: TestClient, teacher: dict[str, str]
    ) -> None:
        asset = upload(client, teacher)

        response = client.get(
            f"/api/files/{asset['id']}/download",
            headers={**teacher, "Range": "items=0-10"},
        )

        assert response.status_code == 200
        assert len(response.content) == 1000

    def test_stranger_denied(
        self, client: TestClient, teacher: dict[str, str], outsider: dict[str, str]
    ) -> None:
        asset = upload(client, teacher)

        response = client.get(f"/api/files/{asset['id']}/download", headers=outsider)

        assert response.status_code == 403
        assert response.json()["reason"] == "NotOwnerNotEnrolled"

    def test_admin_may_download(
        self, client: TestClient, teacher: dict[str, str], admin_headers: dict[str, str]
    ) -> None:
        asset = upload(client, teacher)

        response = client.get(f"/api/files/{asset['id']}/download", headers=admin_headers)
        assert response.status_code == 200

    def test_unknown_asset(self, client: TestClient, teacher: dict[str, str]) -> None:
        response = client.get(
            "/api/files/00000000-0000-0000-0000-000000000000/download", headers=teacher
        )
        assert response.status_code == 404


class TestListing:
    def test_owner_sees_own_files_admin_sees_all(
        self,
        client: TestClient,
        teacher: dict[str, str],
        auth_header: Headers,
        admin_headers: dict[str, str],
    ) -> None:
        upload(client, teacher)
        upload(client, auth_header("teacher-2", "teacher"))

        mine = client.get("/api/files", headers=teacher).json()
        assert [a["owner_id"] for a in mine] == ["teacher-1"]

        everything = client.get("/api/files", headers=admin_headers).json()
        assert len(everything) == 2

    def test_get_metadata(self, client: TestClient, teacher: dict[str, str]) -> None:
        asset = upload(client, teacher)

        response = client.get(f"/api/files/{asset['id']}", headers=teacher)
        assert response.status_code == 200
        assert response.json()["filename_original"] == "notes.pdf"


class TestRenameAndStatus:
    def test_rename_keeps_object_key(self, client: TestClient, teacher: dict[str, str]) -> None:
        asset = upload(client, teacher)

        response = client.patch(
            f"/api/files/{asset['id']}", json={"display_name": "Week 1"}, headers=teacher
        )

        assert response.status_code == 200
        assert response.json()["display_name"] == "Week 1"
        assert response.json()["object_key"] == asset["object_key"]

        download = client.get(f"/api/files/{asset['id']}/download", headers=teacher)
        assert "Week%201" in download.headers["content-disposition"]

    def test_blank_rename_rejected(self, client: TestClient, teacher: dict[str, str]) -> None:
        asset = upload(client, teacher)

        response = client.patch(
            f"/api/files/{asset['id']}", json={"display_name": "   "}, headers=teacher
        )
        assert response.status_code == 400

    def test_rename_with_line_break_rejected(
        self, client: TestClient, teacher: dict[str, str]
    ) -> None:
        asset = upload(client, teacher)

        response = client.patch(
            f"/api/files/{asset['id']}",
            json={"display_name": "a\r\nSet-Cookie: x=1"},
            headers=teacher,
        )
        assert response.status_code == 400

        download = client.get(f"/api/files/{asset['id']}/download", headers=teacher)
        assert download.status_code == 200
        assert 'filename="notes.pdf"' in download.headers["content-disposition"]

    def test_status_walks_lifecycle(
        self, client: TestClient, teacher: dict[str, str], admin_headers: dict[str, str]
    ) -> None:
        asset = upload(client, teacher)
        url = f"/api/files/{asset['id']}/status"

        assert client.patch(url, json={"status": "processing"}, headers=admin_headers).json()[
            "status"
        ] == "processing"

        done = client.patch(url, json={"status": "processed"}, headers=admin_headers).json()
        assert done["status"] == "ready"
        assert done["processed_at"] is not None

    def test_illegal_transition_is_409(
        self, client: TestClient, teacher: dict[str, str], admin_headers: dict[str, str]
    ) -> None:
        asset = upload(client, teacher)

        response = client.patch(
            f"/api/files/{asset['id']}/status", json={"status": "ready"}, headers=admin_headers
        )
        assert response.status_code == 409

    def test_owner_cannot_set_status(self, client: TestClient, teacher: dict[str, str]) -> None:
        asset = upload(client, teacher)

        response = client.patch(
            f"/api/files/{asset['id']}/status", json={"status": "processing"}, headers=teacher
        )
        assert response.status_code == 403


class TestDelete:
    def test_admin_delete_removes_blob_and_record(
        self,
        client: TestClient,
        teacher: dict[str, str],
        admin_headers: dict[str, str],
        sink: InMemoryEventSink,
    ) -> None:
        asset = upload(client, teacher)

        assert client.delete(f"/api/files/{asset['id']}", headers=admin_headers).status_code == 204
        assert client.get(f"/api/files/{asset['id']}", headers=admin_headers).status_code == 404

        assert sink.wait_for(2)
        [event] = sink.events_of_type("delete")
        assert event.payload["fileId"] == asset["id"]
        assert sink.messages_for("notification.queue")[0].event is event

    def test_owner_delete_denied_under_admin_only(
        self, client: TestClient, teacher: dict[str, str]
    ) -> None:
        asset = upload(client, teacher)

        response = client.delete(f"/api/files/{asset['id']}", headers=teacher)

        assert response.status_code == 403
        assert response.json()["reason"] == "RoleInsufficient"

    def test_owner_delete_allowed_under_owner_policy(
        self, api_app: FastAPI, client: TestClient, rules: Rules, teacher: dict[str, str]
    ) -> None:
        access = rules.access.model_copy(update={"delete_policy": "owner_or_admin"})
        api_app.dependency_overrides[get_rules] = lambda: rules.model_copy(
            update={"access": access}
        )
        asset = upload(client, teacher)

        assert client.delete(f"/api/files/{asset['id']}", headers=teacher).status_code == 204

    def test_stranger_delete_denied_under_owner_policy(
        self,
        api_app: FastAPI,
        client: TestClient,
        rules: Rules,
        teacher: dict[str, str],
        outsider: dict[str, str],
    ) -> None:
        access = rules.access.model_copy(update={"delete_policy": "owner_or_admin"})
        api_app.dependency_overrides[get_rules] = lambda: rules.model_copy(
            update={"access": access}
        )
        asset = upload(client, teacher)

        assert client.delete(f"/api/files/{asset['id']}", headers=outsider).status_code == 403
