"""FastAPI router for media upload endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from .errors import MissingFileError
from .formatting import format_file_size
from .schemas import (
    IncomingFile,
    MediaCategory,
    MultipleUploadResponse,
    StoredFileRecord,
    UploadedFile,
    UploadInfo,
    UploadInfoResponse,
    UploadResponse,
)
from .service import UploadService

logger = logging.getLogger(__name__)

MISSING_FILE_MESSAGES = {
    "file": 'No file uploaded. Please provide a file with the field name "file"',
    "files": 'No files uploaded. Please provide files with the field name "files"',
}

router = APIRouter(prefix="/api/upload", tags=["upload"])


def get_upload_service(request: Request) -> UploadService:
    """Return the upload service the app was created with."""
    return request.app.state.upload_service


def get_public_url(request: Request, relative_url: str) -> str:
    """Attach the request's scheme and host to a stored file's URL."""
    base_url = str(request.base_url).rstrip("/")
    return f"{base_url}{relative_url}"


def _to_response(request: Request, record: StoredFileRecord) -> UploadedFile:
    return UploadedFile(
        original_name=record.original_name,
        filename=record.filename,
        file_type=record.file_type,
        size=record.size,
        mimetype=record.mimetype,
        path=str(record.path) if record.path is not None else None,
        url=get_public_url(request, record.url),
        persisted=record.persisted,
        note=record.note,
        size_formatted=format_file_size(record.size),
    )


async def _to_incoming(upload: UploadFile) -> IncomingFile:
    content = await upload.read()
    return IncomingFile(
        original_name=upload.filename or "",
        mime_type=upload.content_type or "application/octet-stream",
        size_bytes=len(content),
        content=content,
    )


@router.get("/info", response_model=UploadInfoResponse)
async def get_upload_info(service: UploadService = Depends(get_upload_service)):
    """Get the upload size limit and allowed extensions."""
    policy = service.policy
    return UploadInfoResponse(
        data=UploadInfo(
            max_file_size=policy.max_file_size,
            max_file_size_formatted=format_file_size(policy.max_file_size),
            allowed_image_types=list(policy.extensions_for(MediaCategory.IMAGE)),
            allowed_audio_types=list(policy.extensions_for(MediaCategory.AUDIO)),
            allowed_video_types=list(policy.extensions_for(MediaCategory.VIDEO)),
        )
    )


@router.post("/single", response_model=UploadResponse, status_code=201)
async def upload_file(
    request: Request,
    file: Optional[UploadFile] = File(None),
    service: UploadService = Depends(get_upload_service),
):
    """Upload a single image, audio or video file.

    Args:
        file: The file to upload (multipart field ``file``)

    Returns:
        UploadResponse with file metadata and public URL

    Raises:
        MissingFileError: If the ``file`` field is absent (400)
        UnsupportedTypeError: If the extension is not allowed (400)
        FileTooLargeError: If the file exceeds the size limit (413)
        StorageFailureError: If the file could not be written (500)
    """
    if file is None or not file.filename:
        raise MissingFileError(MISSING_FILE_MESSAGES["file"])

    incoming = await _to_incoming(file)
    record = await run_in_threadpool(service.save_file, incoming)

    logger.info(
        "File uploaded: %s -> %s (%d bytes)", record.original_name, record.url, record.size,
    )

    return UploadResponse(
        message="File uploaded successfully",
        data=_to_response(request, record),
    )


@router.post("/multiple", response_model=MultipleUploadResponse, status_code=201)
async def upload_files(
    request: Request,
    files: Optional[List[UploadFile]] = File(None),
    service: UploadService = Depends(get_upload_service),
):
    """Upload several files at once (multipart field ``files``).

    The batch is all or nothing: if any file is rejected, none are kept.
    """
    uploads = [f for f in (files or []) if f.filename]
    if not uploads:
        raise MissingFileError(MISSING_FILE_MESSAGES["files"])

    incoming = [await _to_incoming(f) for f in uploads]
    records = await run_in_threadpool(service.save_files, incoming)

    logger.info("Uploaded %d file(s)", len(records))

    return MultipleUploadResponse(
        message=f"{len(records)} file(s) uploaded successfully",
        data=[_to_response(request, record) for record in records],
    )
