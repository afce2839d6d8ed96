from __future__ import annotations

import time
import uuid
from datetime import date, datetime
from typing import Optional


# PUBLIC_INTERFACE
def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# PUBLIC_INTERFACE
def new_id() -> str:
    """Return a fresh opaque record id."""
    return str(uuid.uuid4())


# PUBLIC_INTERFACE
def date_key(epoch_ms: Optional[int] = None) -> str:
    """
    Return the local calendar-day key ('YYYY-MM-DD') for an epoch-millis
    timestamp, or for today when no timestamp is given.
    """
    if epoch_ms is None:
        return date.today().isoformat()
    return datetime.fromtimestamp(epoch_ms / 1000).date().isoformat()


def is_date_key(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return len(value) == 10


def format_clock(duration_ms: int) -> str:
    """Stopwatch display, 'HH:MM:SS'."""
    total_seconds = max(0, duration_ms // 1000)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_duration(duration_ms: float) -> str:
    """Compact duration rounded to minutes: '45m' or '2h5m'."""
    total_minutes = int(round(duration_ms / 60000))
    hours, minutes = divmod(total_minutes, 60)
    if hours == 0:
        return f"{minutes}m"
    return f"{hours}h{minutes}m"
