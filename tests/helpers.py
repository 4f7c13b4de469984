from datetime import datetime
from typing import List, Optional

from app.core.exceptions import SheetSyncError
from app.core.timeutils import from_local


def local(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> datetime:
    """Wall-clock time in the display timezone, as stored (naive UTC)."""
    return from_local(datetime(year, month, day, hour, minute, second))


class FakeSheetsClient:
    """In-memory stand-in for GoogleSheetsClient."""

    def __init__(self, rows: Optional[List[List[str]]] = None, configured: bool = True) -> None:
        self.rows: List[List[str]] = [list(r) for r in rows or []]
        self.appended: List[List[List[str]]] = []
        self.is_configured = configured
        self.fail_read = False
        self.fail_append = False
        self.read_calls = 0

    async def read_all_rows(self) -> List[List[str]]:
        self.read_calls += 1
        if self.fail_read:
            raise SheetSyncError("Sync failed: could not read Google Sheet (boom)")
        return [list(r) for r in self.rows]

    async def append_rows(self, rows: List[List[str]]) -> None:
        if not rows:
            return
        if self.fail_append:
            raise SheetSyncError("Sync failed: could not append to Google Sheet (boom)")
        self.appended.append([list(r) for r in rows])
        self.rows.extend(list(r) for r in rows)
