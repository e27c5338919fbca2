"""FastAPI router for file upload and download endpoints."""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, JSONResponse
from starlette.requests import ClientDisconnect

from app.config import get_config
from app.errors import BadRequestError, NotFoundError, NotImplementedFeatureError
from app.messages.schemas import Message, MessageType
from app.messages.store import get_message_store
from app.multipart import decode_upload, parse_boundary

from .schemas import get_message_type, get_mime_type
from .service import FileStorageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["files"])


@router.post("/upload", status_code=201)
async def upload_file(request: Request) -> JSONResponse:
    """Upload a file and post it to the message log.

    Expects ``multipart/form-data`` with one file part and an optional
    ``sender`` field. The body is decoded by hand so the payload is stored
    byte-for-byte.

    Returns:
        The created message (201). ``content`` holds the stored filename to
        fetch from ``/api/files/{content}``.

    Raises:
        BadRequestError (400): Wrong Content-Type, missing boundary, or an
            undecodable body (the decoder's message is returned verbatim).
        InternalError (500): The file could not be written.
        NotImplementedFeatureError (501): Uploads are disabled in config.
    """
    if not get_config().uploads.enabled:
        raise NotImplementedFeatureError("File upload is disabled")

    try:
        body = await request.body()
    except ClientDisconnect as exc:
        raise BadRequestError("Failed to read request body") from exc

    boundary = parse_boundary(request.headers.get("content-type"))
    upload = decode_upload(body, boundary)

    service = FileStorageService.get_instance()
    stored = await service.save_file(upload.filename, upload.file_bytes)

    message = Message(
        content=stored.stored_filename,
        sender=upload.sender,
        type=stored.message_type,
        filename=stored.original_filename,
        file_size=stored.size_bytes,
        mime_type=stored.mime_type,
    )
    try:
        message = get_message_store().append(message)
    except OSError as exc:
        # The file is already on disk; report success and leave it there.
        logger.error("Failed to record upload %s in message log: %s", stored.stored_filename, exc)

    logger.info(
        f"File uploaded: {stored.original_filename} "
        f"({stored.size_bytes} bytes) by {upload.sender} as {stored.stored_filename}"
    )
    return JSONResponse(message.to_wire(), status_code=201)


@router.get("/files/{stored_filename}")
async def download_file(stored_filename: str) -> FileResponse:
    """Download a stored file.

    Images are served inline; everything else gets an attachment
    Content-Disposition so browsers download it.

    Raises:
        NotFoundError (404): No such stored file.
    """
    service = FileStorageService.get_instance()
    file_path = service.get_file_path(stored_filename)
    if file_path is None:
        raise NotFoundError("File not found")

    media_type = get_mime_type(stored_filename)
    if get_message_type(stored_filename) is MessageType.IMAGE:
        return FileResponse(path=file_path, media_type=media_type)
    return FileResponse(path=file_path, media_type=media_type, filename=stored_filename)
