from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.events import InMemoryEventSink
from src.adapters.local_storage import LocalObjectStore
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.auth_utils import create_access_token
from src.api.deps import Settings, get_notifier, get_object_store, get_rules, get_settings
from src.api.errors import register_error_handlers
from src.api.routes import courses, files
from src.components.notifier import EventNotifier, NotifierConfig
from src.domain.entities import Principal
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent
TEST_SECRET = "test-secret"


@pytest.fixture
def rules() -> Rules:
    """REAL rules from the project root."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Temporary SQLite database with all migrations applied."""
    path = str(tmp_path / "files.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def store(tmp_path: Path) -> LocalObjectStore:
    s = LocalObjectStore(tmp_path / "storage", "files")
    s.ensure_bucket()
    return s


@pytest.fixture
def sink() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture
def notifier(sink: InMemoryEventSink) -> Iterator[EventNotifier]:
    n = EventNotifier(sink, NotifierConfig(capacity=100))
    n.start()
    yield n
    n.stop()


# --- Principals ---


@pytest.fixture
def admin() -> Principal:
    return Principal(subject_id="admin-1", roles=frozenset({"admin"}))


@pytest.fixture
def instructor() -> Principal:
    return Principal(subject_id="teacher-1", roles=frozenset({"instructor"}))


@pytest.fixture
def other_instructor() -> Principal:
    return Principal(subject_id="teacher-2", roles=frozenset({"instructor"}))


@pytest.fixture
def student() -> Principal:
    return Principal(subject_id="student-1", roles=frozenset({"member"}))


@pytest.fixture
def stranger() -> Principal:
    return Principal(subject_id="student-2", roles=frozenset({"member"}))


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Signed bearer token in the identity provider's claim layout."""

    def _make(subject: str, *realm_roles: str, **extra: Any) -> str:
        claims: dict[str, Any] = {"sub": subject, "realm_access": {"roles": list(realm_roles)}}
        claims.update(extra)
        return create_access_token(claims, secret_key=TEST_SECRET)

    return _make


@pytest.fixture
def auth_header(make_token: Callable[..., str]) -> Callable[..., dict[str, str]]:
    def _header(subject: str, *realm_roles: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(subject, *realm_roles)}"}

    return _header


# --- API ---


@pytest.fixture
def settings(tmp_path: Path, db_path: str) -> Settings:
    return Settings(
        data_dir=tmp_path,
        rules_path=PROJECT_ROOT / "rules.yaml",
        secret_key=TEST_SECRET,
    )


@pytest.fixture
def api_app(
    settings: Settings,
    rules: Rules,
    store: LocalObjectStore,
    notifier: EventNotifier,
) -> FastAPI:
    """Routers and error handlers wired to temp storage and an in-memory sink."""
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(files.router, prefix="/api/files")
    app.include_router(courses.router, prefix="/api/courses")

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_rules] = lambda: rules
    app.dependency_overrides[get_object_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier
    return app


@pytest.fixture
def client(api_app: FastAPI) -> TestClient:
    return TestClient(api_app)
