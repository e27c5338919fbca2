"""Errors raised while decoding a multipart/form-data request.

All of them are client errors (400). Their messages are returned to the
caller unchanged, so keep them short and human readable.
"""
from app.errors import BadRequestError


class MultipartError(BadRequestError):
    """Base class for multipart framing and decoding failures."""

    default_message = "Invalid multipart body"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)


class NotMultipartError(MultipartError):
    default_message = "Content-Type must be multipart/form-data"


class MissingBoundaryError(MultipartError):
    default_message = "Missing boundary in Content-Type"


class NoFileDataError(MultipartError):
    default_message = "No file data found"


class NoFilenameError(MultipartError):
    default_message = "No filename found"


class MalformedHeadersError(MultipartError):
    default_message = "Malformed multipart headers"
