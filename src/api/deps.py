import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.adapters.events import LoggingEventSink
from src.adapters.local_storage import LocalObjectStore
from src.adapters.sqlite.repos import (
    SQLiteAssetRepo,
    SQLiteCourseRepo,
    SQLiteEnrollmentRepo,
    SQLiteLessonRepo,
)
from src.api.auth_utils import decode_access_token, principal_from_claims
from src.components.assets import AssetService
from src.components.enrollment import CourseService
from src.components.notifier import EventNotifier
from src.domain.entities import Principal
from src.domain.policy import AccessEngine
from src.rules.loader import load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(
        self,
        data_dir: str | Path | None = None,
        rules_path: str | Path | None = None,
        secret_key: str | None = None,
    ) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(data_dir or os.environ.get("FILES_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "files.db")
        self.storage_dir = self.data_dir / "storage"
        self.migrations_dir = self.base_dir / "migrations"
        self.rules_path = Path(
            rules_path or os.environ.get("FILES_RULES_PATH", self.base_dir / "rules.yaml")
        )
        self.secret_key = secret_key or os.environ.get("FILES_SECRET_KEY", "dev-secret-unsafe")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Repos ---
def get_asset_repo(settings: Settings = Depends(get_settings)) -> SQLiteAssetRepo:
    return SQLiteAssetRepo(settings.db_path)


def get_course_repo(settings: Settings = Depends(get_settings)) -> SQLiteCourseRepo:
    return SQLiteCourseRepo(settings.db_path)


def get_lesson_repo(settings: Settings = Depends(get_settings)) -> SQLiteLessonRepo:
    return SQLiteLessonRepo(settings.db_path)


def get_enrollment_repo(settings: Settings = Depends(get_settings)) -> SQLiteEnrollmentRepo:
    return SQLiteEnrollmentRepo(settings.db_path)


# --- Adapters (process-wide) ---

_object_store_instance: LocalObjectStore | None = None
_notifier_instance: EventNotifier | None = None


def get_object_store(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> LocalObjectStore:
    """Get object store singleton."""
    global _object_store_instance
    if _object_store_instance is None:
        _object_store_instance = LocalObjectStore(
            settings.storage_dir,
            rules.storage.bucket,
            chunk_size=rules.storage.chunk_size,
        )
    return _object_store_instance


def get_notifier(rules: Rules = Depends(get_rules)) -> EventNotifier:
    """Get event notifier singleton. Started and stopped by the app lifespan."""
    global _notifier_instance
    if _notifier_instance is None:
        _notifier_instance = EventNotifier(LoggingEventSink(), rules.events.to_config())
    return _notifier_instance


# --- Services ---
def get_access_engine(rules: Rules = Depends(get_rules)) -> AccessEngine:
    return AccessEngine(rules.access.to_policy())


def get_course_service(
    courses: SQLiteCourseRepo = Depends(get_course_repo),
    lessons: SQLiteLessonRepo = Depends(get_lesson_repo),
    enrollments: SQLiteEnrollmentRepo = Depends(get_enrollment_repo),
    notifier: EventNotifier = Depends(get_notifier),
) -> CourseService:
    """Get enrollment component service."""
    return CourseService(courses, lessons, enrollments, notifier)


def get_asset_service(
    repo: SQLiteAssetRepo = Depends(get_asset_repo),
    store: LocalObjectStore = Depends(get_object_store),
    engine: AccessEngine = Depends(get_access_engine),
    courses: CourseService = Depends(get_course_service),
    notifier: EventNotifier = Depends(get_notifier),
    rules: Rules = Depends(get_rules),
) -> AssetService:
    """Get assets component service."""
    return AssetService(
        repo,
        store,
        engine,
        relations=courses.directory,
        notifier=notifier,
        config=rules.assets_config(),
        bucket=rules.storage.bucket,
    )


# --- Auth ---
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> Principal:
    token = credentials.credentials if credentials else None

    # Fall back to the HttpOnly cookie used by browser clients.
    if not token:
        cookie_token = request.cookies.get("access_token")
        if cookie_token and cookie_token.startswith("Bearer "):
            token = cookie_token.split(" ", 1)[1]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = decode_access_token(
        token, secret_key=settings.secret_key, algorithm=rules.auth.algorithm
    )
    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    principal = principal_from_claims(
        claims, client_id=rules.auth.client_id, aliases=rules.access.role_aliases
    )
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )
    return principal
