"""Pydantic schemas for chat messages.

A Message is one line of the append-only log and the payload every message
endpoint returns. Upload metadata (``fileSize``, ``mimeType``) uses the
camelCase names the browser client expects; both spellings are accepted on
input.
"""
import uuid
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .timeutil import now_rfc3339


class MessageType(str, Enum):
    """Kind of content a message carries.

    Attributes:
        TEXT: Plain text in ``content``.
        IMAGE: Uploaded image; ``content`` is the stored filename.
        FILE: Any other upload; ``content`` is the stored filename.
    """
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


class Message(BaseModel):
    """A persisted chat message.

    Attributes:
        id: Server-generated unique identifier.
        content: Message text, or the stored filename for uploads.
        sender: Free-form display name supplied by the client.
        timestamp: RFC 3339 time assigned when the message is appended.
        type: text, image or file.
        filename: Original client filename (uploads only).
        file_size: Payload size in bytes (uploads only).
        mime_type: MIME type inferred from the filename (uploads only).
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Message ID")
    content: str = Field(..., description="Text or stored filename")
    sender: str = Field(..., description="Display name of sender")
    timestamp: str = Field(default_factory=now_rfc3339, description="RFC 3339 timestamp")
    type: MessageType = Field(default=MessageType.TEXT, description="Message type")
    filename: Optional[str] = Field(None, description="Original filename")
    file_size: Optional[int] = Field(None, alias="fileSize", description="Size in bytes")
    mime_type: Optional[str] = Field(None, alias="mimeType", description="MIME type")

    def to_wire(self) -> dict:
        """JSON-compatible dict using the client's field names."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json_line(self) -> str:
        return self.model_dump_json(by_alias=True)


class SendMessageRequest(BaseModel):
    """Request body for POST /api/messages."""
    content: str
    sender: str
    type: MessageType = MessageType.TEXT
    filename: Optional[str] = None


class PollResponse(BaseModel):
    """Response body for GET /api/messages/poll.

    ``timestamp`` is the value the client should send as ``since`` on its
    next poll.
    """
    messages: List[Message]
    timestamp: str
