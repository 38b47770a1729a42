"""
Streaming response helpers shared by the file and course routes.
"""

import re
from typing import Literal
from urllib.parse import quote

from fastapi import UploadFile
from fastapi.responses import StreamingResponse

from src.components.assets import AssetDownload

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def content_disposition(filename: str, disposition: Literal["attachment", "inline"]) -> str:
    """RFC 6266 header with an ASCII fallback and an RFC 5987 UTF-8 filename."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "_")
    fallback = CONTROL_CHARS.sub("_", fallback)
    encoded = quote(filename, safe="")
    return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


def stream_download(
    download: AssetDownload,
    disposition: Literal["attachment", "inline"] = "attachment",
    *,
    no_cache: bool = True,
) -> StreamingResponse:
    """Frame a negotiated download as a 200 or 206 streaming response."""
    headers = dict(download.headers)
    headers["Content-Disposition"] = content_disposition(download.asset.display_name, disposition)
    if no_cache:
        headers.update(NO_CACHE_HEADERS)

    return StreamingResponse(
        download.iter_chunks(),
        status_code=download.status_code,
        headers=headers,
    )


def upload_size(file: UploadFile) -> int:
    """Byte count of a spooled upload, without reading it into memory."""
    if file.size is not None:
        return file.size
    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)
    return size
