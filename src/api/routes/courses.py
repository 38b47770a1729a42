"""
Courses API routes.

Courses, lessons, enrollment and the lesson-attached file and video
endpoints (including range-aware video streaming).
"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Header, Response, UploadFile, status
from fastapi.responses import StreamingResponse

from src.api.deps import get_asset_service, get_course_service, get_current_principal
from src.api.responses import stream_download, upload_size
from src.api.schemas import (
    AssetResponse,
    CourseCreateRequest,
    CourseResponse,
    CourseStatusRequest,
    CourseUpdateRequest,
    EnrollmentCountResponse,
    EnrollResponse,
    LessonCreateRequest,
    LessonResponse,
    LessonUpdateRequest,
)
from src.components.assets import AssetService
from src.components.enrollment import CourseService
from src.domain.entities import Principal

router = APIRouter()


# --- Courses ---


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    request: CourseCreateRequest,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> CourseResponse:
    course = service.create_course(principal, request.title, request.description)
    return CourseResponse.model_validate(course)


@router.get("", response_model=list[CourseResponse])
def list_courses(
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> list[CourseResponse]:
    return [CourseResponse.model_validate(c) for c in service.list_courses(principal)]


@router.get("/published", response_model=list[CourseResponse])
def list_published_courses(
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> list[CourseResponse]:
    return [CourseResponse.model_validate(c) for c in service.list_published()]


@router.get("/instructor/{instructor_id}", response_model=list[CourseResponse])
def list_instructor_courses(
    instructor_id: str,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> list[CourseResponse]:
    courses = service.list_by_instructor(principal, instructor_id)
    return [CourseResponse.model_validate(c) for c in courses]


@router.get("/{course_id}", response_model=CourseResponse)
def get_course(
    course_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> CourseResponse:
    return CourseResponse.model_validate(service.get_course(course_id))


@router.put("/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: UUID,
    request: CourseUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> CourseResponse:
    course = service.update_course(principal, course_id, request.title, request.description)
    return CourseResponse.model_validate(course)


@router.patch("/{course_id}/status", response_model=CourseResponse)
def set_course_status(
    course_id: UUID,
    request: CourseStatusRequest,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> CourseResponse:
    course = service.set_course_status(principal, course_id, request.status)
    return CourseResponse.model_validate(course)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> Response:
    service.delete_course(principal, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Lessons ---


@router.post(
    "/{course_id}/lessons", response_model=LessonResponse, status_code=status.HTTP_201_CREATED
)
def create_lesson(
    course_id: UUID,
    request: LessonCreateRequest,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> LessonResponse:
    lesson = service.create_lesson(
        principal, course_id, request.title, request.description, request.position
    )
    return LessonResponse.model_validate(lesson)


@router.get("/{course_id}/lessons", response_model=list[LessonResponse])
def list_lessons(
    course_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> list[LessonResponse]:
    return [LessonResponse.model_validate(x) for x in service.list_lessons(course_id)]


@router.get("/lessons/{lesson_id}", response_model=LessonResponse)
def get_lesson(
    lesson_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> LessonResponse:
    return LessonResponse.model_validate(service.get_lesson(lesson_id))


@router.put("/lessons/{lesson_id}", response_model=LessonResponse)
def update_lesson(
    lesson_id: UUID,
    request: LessonUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> LessonResponse:
    lesson = service.update_lesson(
        principal, lesson_id, request.title, request.description, request.position
    )
    return LessonResponse.model_validate(lesson)


# --- Enrollment ---


@router.post("/{course_id}/enroll", response_model=EnrollResponse)
def enroll(
    course_id: UUID,
    student_id: str | None = None,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> EnrollResponse:
    """Enroll the caller (admins may pass student_id)."""
    result = service.enroll(principal, course_id, student_id)
    return EnrollResponse(
        course_id=result.course_id, student_id=result.student_id, changed=result.changed
    )


@router.get("/{course_id}/enrollments/count", response_model=EnrollmentCountResponse)
def enrollment_count(
    course_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: CourseService = Depends(get_course_service),
) -> EnrollmentCountResponse:
    return EnrollmentCountResponse(
        course_id=course_id, count=service.enrollment_count(course_id)
    )


# --- Lesson Files & Videos ---


@router.post(
    "/lessons/{lesson_id}/files",
    response_model=AssetResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_lesson_file(
    lesson_id: UUID,
    file: UploadFile = File(...),
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> AssetResponse:
    asset = service.upload(
        principal,
        file.file,
        file.filename or "file",
        upload_size(file),
        content_type=file.content_type,
        parent_id=lesson_id,
        kind="document",
    )
    return AssetResponse.model_validate(asset)


@router.get("/lessons/{lesson_id}/files", response_model=list[AssetResponse])
def list_lesson_files(
    lesson_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> list[AssetResponse]:
    assets = service.list_lesson(principal, lesson_id, kind="document")
    return [AssetResponse.model_validate(a) for a in assets]


@router.post(
    "/lessons/{lesson_id}/videos",
    response_model=AssetResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_lesson_video(
    lesson_id: UUID,
    file: UploadFile = File(...),
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> AssetResponse:
    asset = service.upload(
        principal,
        file.file,
        file.filename or "video",
        upload_size(file),
        content_type=file.content_type,
        parent_id=lesson_id,
        kind="media",
    )
    return AssetResponse.model_validate(asset)


@router.get("/lessons/{lesson_id}/videos", response_model=list[AssetResponse])
def list_lesson_videos(
    lesson_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> list[AssetResponse]:
    assets = service.list_lesson(principal, lesson_id, kind="media")
    return [AssetResponse.model_validate(a) for a in assets]


@router.get("/videos/{asset_id}/stream")
def stream_video(
    asset_id: UUID,
    range_header: str | None = Header(default=None, alias="Range"),
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> StreamingResponse:
    """Stream a video inline; players seek with `Range: bytes=`."""
    download = service.open_download(principal, asset_id, range_header)
    return stream_download(download, "inline", no_cache=False)
