"""Byte-level multipart/form-data scanner.

The request body is walked exactly once as bytes. Offsets into the original
buffer are tracked directly, so binary payloads (images, archives, anything
that is not valid UTF-8) come out byte-for-byte identical to what the client
sent. Only header blocks are ever decoded to text.

Scanner states
--------------
PREAMBLE   Bytes before the first delimiter. Ignored.
BOUNDARY   Just consumed ``--{boundary}``. A following ``--`` ends the body;
           otherwise the rest of the line (transport padding) is skipped.
HEADERS    Header block, terminated by ``\\r\\n\\r\\n`` (or ``\\n\\n`` for
           lenient clients).
BODY       Payload up to the line break before the next delimiter, or up to
           the end of the buffer when the client never closed the part.
EPILOGUE   Everything after the terminal delimiter. Ignored.

Example body (boundary ``XYZ``)::

    --XYZ\\r\\n
    Content-Disposition: form-data; name="file"; filename="a.png"\\r\\n
    \\r\\n
    <payload bytes>\\r\\n
    --XYZ\\r\\n
    Content-Disposition: form-data; name="sender"\\r\\n
    \\r\\n
    Alice\\r\\n
    --XYZ--
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

from .errors import (
    MalformedHeadersError,
    MissingBoundaryError,
    NoFileDataError,
    NoFilenameError,
    NotMultipartError,
)

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "Unknown"

_CRLFCRLF = b"\r\n\r\n"
_LFLF = b"\n\n"
_FILENAME_MARKER = "filename="
_FILENAME_QUOTED = 'filename="'
_NAME_PARAM = re.compile(r'(?:^|[;\s])name="([^"]*)"')


class ScanState(str, Enum):
    """Position of the scanner within the multipart body."""
    PREAMBLE = "preamble"
    BOUNDARY = "boundary"
    HEADERS = "headers"
    BODY = "body"
    EPILOGUE = "epilogue"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class MultipartPart:
    """One part of a multipart body.

    Attributes:
        headers: Decoded header lines, in order, without line terminators.
        data: Payload bytes sliced from the original request body.
        malformed: True when no header/body separator was found. ``data`` is
            empty in that case.
    """
    headers: List[str] = field(default_factory=list)
    data: bytes = b""
    malformed: bool = False

    @property
    def is_file(self) -> bool:
        """True when any header line carries a ``filename=`` parameter."""
        return any(_FILENAME_MARKER in line for line in self.headers)

    @property
    def filename(self) -> Optional[str]:
        """Text between the first ``filename="`` and the next quote."""
        for line in self.headers:
            start = line.find(_FILENAME_QUOTED)
            if start < 0:
                continue
            start += len(_FILENAME_QUOTED)
            end = line.find('"', start)
            if end < 0:
                return None
            return line[start:end]
        return None

    @property
    def name(self) -> Optional[str]:
        """Form field name from the Content-Disposition header."""
        for line in self.headers:
            match = _NAME_PARAM.search(line)
            if match:
                return match.group(1)
        return None

    def has_field_name(self, name: str) -> bool:
        marker = f'name="{name}"'
        return any(marker in line for line in self.headers)

    def text(self) -> str:
        """Payload decoded as UTF-8 (invalid bytes replaced) and trimmed."""
        return self.data.decode("utf-8", errors="replace").strip()


@dataclass
class UploadedFile:
    """Result of decoding an upload form.

    Attributes:
        file_bytes: Exact bytes of the first file part.
        filename: Client-supplied filename of that part.
        sender: Value of the ``sender`` field, ``"Unknown"`` when absent.
        fields: Every named text field in the form, first value wins.
    """
    file_bytes: bytes
    filename: str
    sender: str = DEFAULT_SENDER
    fields: Dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Content-Type handling
# ---------------------------------------------------------------------------

def parse_boundary(content_type: Optional[str]) -> str:
    """Extract the boundary token from a multipart/form-data Content-Type.

    Args:
        content_type: Raw header value, e.g.
            ``multipart/form-data; boundary="----abc"``.

    Returns:
        The boundary with surrounding quotes removed.

    Raises:
        NotMultipartError: The header is missing or not multipart/form-data.
        MissingBoundaryError: No non-empty ``boundary=`` parameter.
    """
    if not content_type or not content_type.strip().lower().startswith("multipart/form-data"):
        raise NotMultipartError()

    for param in content_type.split(";")[1:]:
        key, sep, value = param.strip().partition("=")
        if sep and key.strip().lower() == "boundary":
            value = value.strip().strip('"')
            if value:
                return value
    raise MissingBoundaryError()


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------

def _is_delimiter_at(body: bytes, index: int, delimiter: bytes) -> bool:
    """A delimiter is followed by ``--``, or by optional blanks and a line end."""
    if not body.startswith(delimiter, index):
        return False
    rest = index + len(delimiter)
    if body.startswith(b"--", rest):
        return True
    while body[rest:rest + 1] in (b" ", b"\t"):
        rest += 1
    return rest >= len(body) or body[rest:rest + 1] in (b"\r", b"\n")


def _find_delimiter(body: bytes, delimiter: bytes, start: int) -> int:
    """Index of the next delimiter that starts a line, or -1."""
    if start == 0 and _is_delimiter_at(body, 0, delimiter):
        return 0
    needle = b"\n" + delimiter
    search_from = max(start - 1, 0)
    while True:
        found = body.find(needle, search_from)
        if found < 0:
            return -1
        if _is_delimiter_at(body, found + 1, delimiter):
            return found + 1
        search_from = found + 1


def _payload_end(body: bytes, delimiter_index: int, payload_start: int) -> int:
    """Strip the line break that belongs to the delimiter."""
    end = delimiter_index
    if end > payload_start and body[end - 1:end] == b"\n":
        end -= 1
        if end > payload_start and body[end - 1:end] == b"\r":
            end -= 1
    return max(end, payload_start)


def _split_headers(body: bytes, start: int, limit: int):
    """Locate the header/body separator inside ``body[start:limit]``.

    The first blank line ends the headers: ``\\r\\n\\r\\n`` normally, ``\\n\\n``
    when the client only sends bare line feeds.

    Returns ``(headers_end, payload_start)`` or ``None``.
    """
    if body.startswith(b"\r\n", start) and start + 2 <= limit:
        return start, start + 2
    if body.startswith(b"\n", start) and start + 1 <= limit:
        return start, start + 1

    crlf = body.find(_CRLFCRLF, start, limit)
    lf = body.find(_LFLF, start, limit)
    if crlf >= 0 and (lf < 0 or crlf < lf):
        return crlf, crlf + len(_CRLFCRLF)
    if lf >= 0:
        return lf, lf + len(_LFLF)
    return None


def _decode_header_lines(raw: bytes) -> List[str]:
    text = raw.decode("utf-8", errors="replace")
    return [line for line in text.splitlines() if line.strip()]


def iter_parts(body: bytes, boundary: str) -> Iterator[MultipartPart]:
    """Yield each part of *body* in order.

    Args:
        body: The untouched request body.
        boundary: Boundary token without the leading dashes.

    Yields:
        MultipartPart objects. Parts whose header block never terminates are
        yielded with ``malformed=True`` so callers can decide how to report
        them.
    """
    delimiter = b"--" + boundary.encode("utf-8")
    state = ScanState.PREAMBLE
    pos = 0
    headers_end = payload_start = 0
    next_delimiter = -1

    while state is not ScanState.EPILOGUE:
        if state is ScanState.PREAMBLE:
            first = _find_delimiter(body, delimiter, 0)
            if first < 0:
                return
            pos = first + len(delimiter)
            state = ScanState.BOUNDARY

        elif state is ScanState.BOUNDARY:
            if body.startswith(b"--", pos):
                state = ScanState.EPILOGUE
                continue
            line_end = body.find(b"\n", pos)
            if line_end < 0:
                return
            pos = line_end + 1
            state = ScanState.HEADERS

        elif state is ScanState.HEADERS:
            next_delimiter = _find_delimiter(body, delimiter, pos)
            limit = next_delimiter if next_delimiter >= 0 else len(body)
            split = _split_headers(body, pos, limit)
            if split is None:
                logger.debug("Multipart part at offset %d has no header terminator", pos)
                yield MultipartPart(
                    headers=_decode_header_lines(body[pos:limit]),
                    malformed=True,
                )
                if next_delimiter < 0:
                    return
                pos = next_delimiter + len(delimiter)
                state = ScanState.BOUNDARY
                continue
            headers_end, payload_start = split
            state = ScanState.BODY

        elif state is ScanState.BODY:
            headers = _decode_header_lines(body[pos:headers_end])
            if next_delimiter < 0:
                yield MultipartPart(headers=headers, data=body[payload_start:])
                return
            end = _payload_end(body, next_delimiter, payload_start)
            yield MultipartPart(headers=headers, data=body[payload_start:end])
            pos = next_delimiter + len(delimiter)
            state = ScanState.BOUNDARY


def parse_multipart(body: bytes, boundary: str) -> List[MultipartPart]:
    """Decode every part of *body* at once."""
    return list(iter_parts(body, boundary))


# ---------------------------------------------------------------------------
# Upload form
# ---------------------------------------------------------------------------

def decode_upload(body: bytes, boundary: str) -> UploadedFile:
    """Extract the uploaded file and the ``sender`` field from a form body.

    The first part carrying ``filename=`` is the file; its bytes are returned
    exactly as received. The first part named ``sender`` supplies the sender.
    Any other named text parts are collected into ``fields``; parts with no
    name are ignored.

    Raises:
        MalformedHeadersError: No file part, and some part had no
            header/body separator.
        NoFileDataError: No file part at all.
        NoFilenameError: The file part has no (or an empty) quoted filename.
    """
    file_part: Optional[MultipartPart] = None
    fields: Dict[str, str] = {}
    saw_malformed = False

    for part in iter_parts(body, boundary):
        if part.malformed:
            saw_malformed = True
            continue
        if part.is_file:
            if file_part is None:
                file_part = part
            continue
        if part.has_field_name("sender"):
            fields.setdefault("sender", part.text())
            continue
        name = part.name
        if name:
            fields.setdefault(name, part.text())

    if file_part is None:
        if saw_malformed:
            raise MalformedHeadersError()
        raise NoFileDataError()

    filename = file_part.filename
    if not filename:
        raise NoFilenameError()

    return UploadedFile(
        file_bytes=file_part.data,
        filename=filename,
        sender=fields.get("sender") or DEFAULT_SENDER,
        fields=fields,
    )
