import re
import threading
import time
from datetime import datetime, timezone
from typing import Optional

_id_lock = threading.Lock()
_last_note_id = 0
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_storage_time(value: datetime) -> datetime:
    """Normalizes an aware datetime to naive UTC; naive values are kept as given."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def coerce_id(value) -> Optional[int]:
    """Returns value as an int, or None when it cannot name any row."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


# PUBLIC_INTERFACE
def next_note_id() -> int:
    """
    Default note id: milliseconds since the epoch, bumped past the last id
    handed out so two notes created in the same millisecond do not collide.
    """
    global _last_note_id
    with _id_lock:
        candidate = time.time_ns() // 1_000_000
        if candidate <= _last_note_id:
            candidate = _last_note_id + 1
        _last_note_id = candidate
        return candidate


def parse_int_prefix(value) -> Optional[int]:
    """Reads the integer value starts with ("12abc" -> 12, "1.5" -> 1), or None."""
    match = _LEADING_INT.match(str(value))
    if match is None:
        return None
    return int(match.group(1))
