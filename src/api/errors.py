"""
Exception handlers.

Maps the error taxonomy in src/core/errors.py onto HTTP status codes in one
place. Handlers are looked up along the exception's MRO, so storage adapter
errors land on the class they specialise.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from src.components.ranges import unsatisfiable_headers
from src.core.errors import (
    AccessDeniedError,
    InvalidRangeError,
    InvalidTransitionError,
    MetadataInconsistencyError,
    NotFoundError,
    StorageUnavailableError,
    UploadTooLargeError,
)

logger = logging.getLogger(__name__)


async def not_found_handler(request: Request, exc: Exception) -> Response:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def access_denied_handler(request: Request, exc: AccessDeniedError) -> Response:
    return JSONResponse(status_code=403, content={"detail": str(exc), "reason": exc.reason})


async def invalid_range_handler(request: Request, exc: InvalidRangeError) -> Response:
    return Response(status_code=416, headers=unsatisfiable_headers(exc.total_size))


async def upload_too_large_handler(request: Request, exc: UploadTooLargeError) -> Response:
    return JSONResponse(
        status_code=413,
        content={"detail": str(exc), "limit": exc.limit},
    )


async def invalid_transition_handler(request: Request, exc: Exception) -> Response:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


async def storage_unavailable_handler(request: Request, exc: Exception) -> Response:
    logger.error("Storage unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage temporarily unavailable"})


async def metadata_inconsistency_handler(request: Request, exc: Exception) -> Response:
    return JSONResponse(status_code=500, content={"detail": "Upload could not be recorded"})


async def value_error_handler(request: Request, exc: Exception) -> Response:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(AccessDeniedError, access_denied_handler)
    app.add_exception_handler(InvalidRangeError, invalid_range_handler)
    app.add_exception_handler(UploadTooLargeError, upload_too_large_handler)
    app.add_exception_handler(InvalidTransitionError, invalid_transition_handler)
    app.add_exception_handler(StorageUnavailableError, storage_unavailable_handler)
    app.add_exception_handler(MetadataInconsistencyError, metadata_inconsistency_handler)
    app.add_exception_handler(ValueError, value_error_handler)
