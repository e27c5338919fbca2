"""Message endpoints.

Endpoints:
    GET  /api/messages:      Every stored message, oldest first
    POST /api/messages:      Append a text message
    GET  /api/messages/poll: Messages newer than ``since`` plus a new cursor
"""
import logging
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from .schemas import Message, PollResponse, SendMessageRequest
from .store import MessageStore, get_message_store
from .timeutil import parse_rfc3339

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["messages"])


def _store() -> MessageStore:
    return get_message_store()


@router.get("")
async def list_messages() -> JSONResponse:
    """Return all messages in log order."""
    messages = _store().load_all()
    return JSONResponse([m.to_wire() for m in messages])


@router.post("", status_code=201)
async def send_message(body: SendMessageRequest) -> JSONResponse:
    """Append a message to the log.

    The stored message (with its server-assigned id and timestamp) is
    returned with 201 Created. If the log cannot be written the failure is
    logged and the unsaved message is still returned.
    """
    message = Message(
        content=body.content,
        sender=body.sender,
        type=body.type,
        filename=body.filename,
    )
    try:
        message = _store().append(message)
    except OSError as exc:
        logger.error("Failed to append message %s: %s", message.id, exc)

    logger.info("[messages] %s from %s (%s)", message.id, message.sender, message.type.value)
    return JSONResponse(message.to_wire(), status_code=201)


@router.get("/poll")
async def poll_messages(
    since: Optional[str] = Query(None, description="RFC 3339 cursor from the previous poll"),
) -> JSONResponse:
    """Return messages appended after ``since``.

    A missing or unparseable ``since`` returns every message. The returned
    ``timestamp`` is taken from the store before the log is read, so anything
    appended while the read is in progress is returned again on the next poll
    rather than skipped.

    Example:
        GET /api/messages/poll?since=2024-05-01T12:00:00.000000%2B00:00
    """
    store = _store()
    cursor = store.cursor()
    threshold = parse_rfc3339(since)

    if threshold is None:
        if since:
            logger.debug("Ignoring malformed poll cursor %r", since)
        messages = store.load_all()
    else:
        messages = store.load_since(threshold)

    response = PollResponse(messages=messages, timestamp=cursor)
    return JSONResponse(response.model_dump(mode="json", by_alias=True))
