"""
Throttle for the opportunistic sheet import.

SyncThrottle is an in-process fast path: it keeps page polling from even reading
settings more than once per floor interval. It is per-process and best effort; the
persisted import watermark (see import_due) is what actually prevents repeated work
across processes and restarts.
"""

import time
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple

from app.core.timeutils import parse_watermark

from .schemas import (
    AUTO_SYNC_ENABLED_KEY,
    DEFAULT_SYNC_INTERVAL_MINUTES,
    IMPORT_WATERMARK_KEY,
    SYNC_INTERVAL_KEY,
)


class SyncThrottle:
    def __init__(self, min_interval_seconds: float = 60, clock: Callable[[], float] = time.monotonic) -> None:
        self.min_interval_seconds = min_interval_seconds
        self._clock = clock
        self._last_attempt: Optional[float] = None

    def too_soon(self) -> bool:
        if self._last_attempt is None:
            return False
        return self._clock() - self._last_attempt < self.min_interval_seconds

    def mark_attempt(self) -> None:
        self._last_attempt = self._clock()

    def reset(self) -> None:
        self._last_attempt = None


def is_auto_sync_enabled(values: Dict[str, str]) -> bool:
    return values.get(AUTO_SYNC_ENABLED_KEY, "true").strip().lower() != "false"


def sync_interval_minutes(values: Dict[str, str]) -> int:
    try:
        minutes = int(values.get(SYNC_INTERVAL_KEY) or DEFAULT_SYNC_INTERVAL_MINUTES)
    except ValueError:
        return DEFAULT_SYNC_INTERVAL_MINUTES
    return minutes if minutes > 0 else DEFAULT_SYNC_INTERVAL_MINUTES


def effective_interval(values: Dict[str, str], floor_seconds: float) -> timedelta:
    """Configured interval, never shorter than the hard floor."""
    return max(timedelta(minutes=sync_interval_minutes(values)), timedelta(seconds=floor_seconds))


def import_due(values: Dict[str, str], now: datetime, floor_seconds: float) -> Tuple[bool, Optional[str]]:
    """Whether an automatic import should run now, and if not, why."""
    if not is_auto_sync_enabled(values):
        return False, "Auto-sync is disabled"
    last_imported = values.get(IMPORT_WATERMARK_KEY)
    if last_imported and now - parse_watermark(last_imported) < effective_interval(values, floor_seconds):
        return False, "Sync interval has not elapsed"
    return True, None
