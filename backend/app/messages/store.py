"""Append-only message log.

Messages are stored one JSON object per line in ``messages.jsonl``. The log is
never rewritten: records are only appended, and readers tolerate damage by
skipping any line that does not parse (for example a half-written final line
observed while another request is appending).

Ordering:
    Appends are serialized through a single lock per store, and the store
    assigns each message its timestamp while holding that lock. Timestamps are
    strictly increasing, so the order of lines in the file is the order of
    their timestamps. ``load_since`` still scans and filters the whole log
    rather than stopping early, so it stays correct for logs written by older
    versions that did not guarantee ordering.

Usage:
    store = get_message_store()
    stored = store.append(Message(content="hi", sender="Alice"))
    recent = store.load_since(parse_rfc3339("2024-05-01T12:00:00Z"))
"""
import logging
import os
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from app.config import get_config

from .schemas import Message
from .timeutil import format_rfc3339, parse_rfc3339

logger = logging.getLogger(__name__)


def filter_since(messages: List[Message], threshold: datetime) -> List[Message]:
    """Keep messages whose timestamp is strictly after *threshold*.

    A message whose timestamp cannot be parsed is kept.
    """
    if threshold.tzinfo is None:
        threshold = threshold.replace(tzinfo=timezone.utc)
    result = []
    for message in messages:
        ts = parse_rfc3339(message.timestamp)
        if ts is None or ts > threshold:
            result.append(message)
    return result


class MessageStore(ABC):
    """Storage interface for the message log.

    Subclasses implement ``_write`` and ``load_all``; timestamp assignment and
    write serialization live here so every backend orders messages the same
    way.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_timestamp: Optional[datetime] = None
        self._clock_seeded = False

    def append(self, message: Message) -> Message:
        """Stamp *message* with the current time and append it.

        Args:
            message: The message to store. Its ``timestamp`` is replaced.

        Returns:
            The stored copy, carrying the assigned timestamp.

        Raises:
            OSError: The record could not be written.
        """
        with self._lock:
            stored = message.model_copy(update={"timestamp": self._next_timestamp()})
            self._write(stored)
        return stored

    def cursor(self) -> str:
        """Timestamp that every later append is guaranteed to exceed.

        Polling clients send it back as ``since``; nothing appended after
        this call can compare equal to it and be skipped.
        """
        with self._lock:
            return self._next_timestamp()

    @abstractmethod
    def load_all(self) -> List[Message]:
        """Return every readable message in append order."""

    def load_since(self, threshold: datetime) -> List[Message]:
        """Return messages with a timestamp strictly after *threshold*."""
        return filter_since(self.load_all(), threshold)

    @abstractmethod
    def _write(self, message: Message) -> None:
        """Persist one already-stamped message. Called with the lock held."""

    def _latest_stored_timestamp(self) -> Optional[datetime]:
        return None

    def _next_timestamp(self) -> str:
        if not self._clock_seeded:
            self._last_timestamp = self._latest_stored_timestamp()
            self._clock_seeded = True

        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return format_rfc3339(now)


class JsonlMessageStore(MessageStore):
    """Message log backed by a newline-delimited JSON file."""

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _write(self, message: Message) -> None:
        line = (message.to_json_line() + "\n").encode("utf-8")
        self._path.parent.mkdir(parents=True, exist_ok=True)

        # Whole record in one write() on an O_APPEND descriptor; loop covers short writes.
        fd = os.open(self._path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
        try:
            view = memoryview(line)
            while view:
                written = os.write(fd, view)
                view = view[written:]
        finally:
            os.close(fd)

    def load_all(self) -> List[Message]:
        try:
            fh = self._path.open("rb")
        except FileNotFoundError:
            return []

        messages: List[Message] = []
        with fh:
            for line_number, raw in enumerate(fh, start=1):
                line = raw.strip()
                if not line:
                    continue
                try:
                    messages.append(Message.model_validate_json(line))
                except ValidationError:
                    logger.warning(
                        "Skipping unreadable line %d in %s", line_number, self._path
                    )
        return messages

    def _latest_stored_timestamp(self) -> Optional[datetime]:
        latest = None
        for message in self.load_all():
            ts = parse_rfc3339(message.timestamp)
            if ts is not None and (latest is None or ts > latest):
                latest = ts
        return latest


class InMemoryMessageStore(MessageStore):
    """List-backed store with the same semantics, for tests and previews."""

    def __init__(self, messages: Optional[List[Message]] = None) -> None:
        super().__init__()
        self._messages: List[Message] = list(messages or [])

    def _write(self, message: Message) -> None:
        self._messages.append(message)

    def load_all(self) -> List[Message]:
        with self._lock:
            return list(self._messages)

    def _latest_stored_timestamp(self) -> Optional[datetime]:
        parsed = [parse_rfc3339(m.timestamp) for m in self._messages]
        parsed = [ts for ts in parsed if ts is not None]
        return max(parsed) if parsed else None


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_store: Optional[MessageStore] = None


def get_message_store() -> MessageStore:
    """Get the global message store, creating it from config on first use."""
    global _store
    if _store is None:
        path = get_config().storage.messages_path
        _store = JsonlMessageStore(path)
        logger.info("Message log: %s", path)
    return _store


def set_message_store(store: Optional[MessageStore]) -> None:
    """Set (or clear, with None) the global message store."""
    global _store
    _store = store
