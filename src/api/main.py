import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_notifier, get_object_store, get_rules, get_settings
from src.api.errors import register_error_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules on startup (fail-fast)
    try:
        rules = get_rules(settings)
        logger.info("Rules loaded from %s", settings.rules_path)
    except (FileNotFoundError, ValueError) as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
    get_object_store(settings, rules).ensure_bucket()

    notifier = get_notifier(rules)
    notifier.start()
    try:
        yield
    finally:
        notifier.stop()


app = FastAPI(
    title="Course File Service",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

register_error_handlers(app)

# --- Routers ---
from src.api.routes import courses, files  # noqa: E402

app.include_router(files.router, prefix="/api/files", tags=["Files"])
app.include_router(courses.router, prefix="/api/courses", tags=["Courses"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Range", "Accept-Ranges", "Content-Disposition"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    stats = get_notifier(get_rules(get_settings())).stats()
    return {
        "status": "ok",
        "service": "files",
        "events": {
            "queued": stats.queued,
            "delivered": stats.delivered,
            "failed": stats.failed,
            "dropped": stats.dropped,
        },
    }
