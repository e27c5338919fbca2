"""RFC 3339 helpers shared by the message store and the poll endpoint."""
import re
from datetime import datetime, timezone
from typing import Optional

# 2024-05-01T12:30:00.123456789+02:00, with optional fraction and offset
_RFC3339 = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?(?P<offset>[Zz]|[+-]\d{2}:\d{2})?$"
)


def format_rfc3339(value: datetime) -> str:
    """Render *value* in UTC with microsecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def now_rfc3339() -> str:
    return format_rfc3339(datetime.now(timezone.utc))


def parse_rfc3339(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp into an aware datetime.

    Fractions longer than microseconds are truncated, ``Z`` means UTC and a
    missing offset is taken as UTC. Returns None for anything unparseable.
    """
    if not value:
        return None
    match = _RFC3339.match(value.strip())
    if not match:
        return None

    fraction = (match.group("fraction") or "")[:6]
    offset = match.group("offset") or "+00:00"
    if offset in ("Z", "z"):
        offset = "+00:00"
    text = f"{match.group('date')}T{match.group('time')}"
    if fraction:
        text += "." + fraction.ljust(6, "0")
    text += offset

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
