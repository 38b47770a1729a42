"""
Files API routes.

Upload, listing, range-aware download, rename, status and delete for assets.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Header, Response, UploadFile, status
from fastapi.responses import StreamingResponse

from src.api.deps import get_asset_service, get_current_principal
from src.api.responses import stream_download, upload_size
from src.api.schemas import AssetResponse, RenameRequest, StatusRequest
from src.components.assets import AssetService
from src.domain.entities import Principal

router = APIRouter()


@router.post("", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = File(...),
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> AssetResponse:
    """Upload a standalone file."""
    asset = service.upload(
        principal,
        file.file,
        file.filename or "file",
        upload_size(file),
        content_type=file.content_type,
    )
    return AssetResponse.model_validate(asset)


@router.get("", response_model=list[AssetResponse])
def list_files(
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> list[AssetResponse]:
    """List the caller's files (every file for admins)."""
    return [AssetResponse.model_validate(a) for a in service.list_for(principal)]


@router.get("/{asset_id}", response_model=AssetResponse)
def get_file(
    asset_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> AssetResponse:
    return AssetResponse.model_validate(service.get(principal, asset_id))


@router.get("/{asset_id}/download")
def download_file(
    asset_id: UUID,
    range_header: str | None = Header(default=None, alias="Range"),
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> StreamingResponse:
    """Download a file; honours a single `bytes=` range."""
    download = service.open_download(principal, asset_id, range_header)
    return stream_download(download, "attachment")


@router.patch("/{asset_id}", response_model=AssetResponse)
def rename_file(
    asset_id: UUID,
    request: RenameRequest,
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> AssetResponse:
    return AssetResponse.model_validate(service.rename(principal, asset_id, request.display_name))


@router.patch("/{asset_id}/status", response_model=AssetResponse)
def update_file_status(
    asset_id: UUID,
    request: StatusRequest,
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> AssetResponse:
    return AssetResponse.model_validate(service.transition(principal, asset_id, request.status))


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(
    asset_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: AssetService = Depends(get_asset_service),
) -> Response:
    service.delete(principal, asset_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
