from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


# PUBLIC_INTERFACE
def utc_now(after: Optional[datetime] = None) -> datetime:
    """
    Return the current UTC time.

    If ``after`` is given, the result is guaranteed to be strictly later than it,
    so successive mutations of the same record always move its timestamp forward
    even when the clock has not ticked.
    """
    now = datetime.now(timezone.utc)
    if after is not None and now <= after:
        now = after + timedelta(microseconds=1)
    return now


# PUBLIC_INTERFACE
def timestamp_id(now: datetime, last: int = 0) -> int:
    """
    Build a numeric todo id from a creation time in milliseconds.

    ``last`` is the most recently issued id; the result is bumped past it so two
    todos created within the same millisecond still get distinct ids.
    """
    candidate = int(now.timestamp() * 1000)
    return candidate if candidate > last else last + 1
