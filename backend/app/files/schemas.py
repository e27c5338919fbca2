"""File metadata helpers for uploads.

This module defines how Sharebox classifies an upload from its filename:
- StoredFile: where an upload landed and what was inferred about it
- IMAGE_EXTENSIONS: extensions rendered inline as images by the client
- MIME_TYPES: extension → MIME type table used for uploads and downloads

Classification is purely extension based; the payload is never sniffed.
"""
from dataclasses import dataclass
from typing import Optional

from app.messages.schemas import MessageType

DEFAULT_MIME_TYPE = "application/octet-stream"

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "ico"})

MIME_TYPES = {
    # Images
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "bmp": "image/bmp",
    "ico": "image/x-icon",
    # Documents
    "pdf": "application/pdf",
    "txt": "text/plain",
    "md": "text/markdown",
    "csv": "text/csv",
    "html": "text/html",
    "json": "application/json",
    "xml": "application/xml",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    # Archives
    "zip": "application/zip",
    "tar": "application/x-tar",
    "gz": "application/gzip",
    # Audio / video
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "mp4": "video/mp4",
    "webm": "video/webm",
}


@dataclass
class StoredFile:
    """An upload written to the uploads directory.

    Attributes:
        stored_filename: ``{uuid}.{ext}`` name on disk.
        original_filename: Name the client sent.
        size_bytes: Payload length.
        mime_type: MIME type inferred from the original extension.
        message_type: IMAGE or FILE.
    """
    stored_filename: str
    original_filename: str
    size_bytes: int
    mime_type: str
    message_type: MessageType


def get_extension(filename: str) -> Optional[str]:
    """Text after the last dot of *filename*, or None.

    Returns None when there is no dot, nothing after it, or the candidate
    contains a path separator or NUL (it could not be used in a stored name).
    """
    _, dot, ext = filename.rpartition(".")
    if not dot or not ext:
        return None
    if any(ch in ext for ch in ("/", "\\", "\x00")):
        return None
    return ext


def get_mime_type(filename: str) -> str:
    """MIME type for *filename* from its extension (case-insensitive).

    Examples:
        >>> get_mime_type("a.PNG")
        'image/png'
        >>> get_mime_type("archive.unknown")
        'application/octet-stream'
    """
    ext = get_extension(filename)
    if ext is None:
        return DEFAULT_MIME_TYPE
    return MIME_TYPES.get(ext.lower(), DEFAULT_MIME_TYPE)


def get_message_type(filename: str) -> MessageType:
    """IMAGE for known image extensions, FILE otherwise."""
    ext = get_extension(filename)
    if ext is not None and ext.lower() in IMAGE_EXTENSIONS:
        return MessageType.IMAGE
    return MessageType.FILE
