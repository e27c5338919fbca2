"""Multipart/form-data decoding for Sharebox uploads.

The decoder works on the raw request body and never relies on a multipart
library, so uploaded payloads are recovered byte-for-byte even when they are
not valid UTF-8.

Usage:
    boundary = parse_boundary(request.headers.get("content-type"))
    upload = decode_upload(body, boundary)
    upload.file_bytes, upload.filename, upload.sender
"""
from .errors import (
    MalformedHeadersError,
    MissingBoundaryError,
    MultipartError,
    NoFileDataError,
    NoFilenameError,
    NotMultipartError,
)
from .parser import (
    DEFAULT_SENDER,
    MultipartPart,
    UploadedFile,
    decode_upload,
    iter_parts,
    parse_boundary,
    parse_multipart,
)

__all__ = [
    "DEFAULT_SENDER",
    "MalformedHeadersError",
    "MissingBoundaryError",
    "MultipartError",
    "MultipartPart",
    "NoFileDataError",
    "NoFilenameError",
    "NotMultipartError",
    "UploadedFile",
    "decode_upload",
    "iter_parts",
    "parse_boundary",
    "parse_multipart",
]
