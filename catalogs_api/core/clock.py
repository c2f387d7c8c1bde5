from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Naive UTC, truncated to the second so one stamp compares equal after a DB round trip."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)
