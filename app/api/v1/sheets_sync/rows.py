"""Spreadsheet row <-> SheetEvent conversion and the reconciliation key."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Sequence

from app.core.timeutils import format_sheet_timestamp, parse_sheet_timestamp

from .schemas import CLOCK_IN, CLOCK_OUT

_EVENT_TYPES = {"clock in": CLOCK_IN, "clock out": CLOCK_OUT}


@dataclass(frozen=True)
class SheetEvent:
    timestamp: datetime  # naive UTC
    type: str  # CLOCK_IN | CLOCK_OUT
    name: str
    subteam: str

    @property
    def sort_key(self):
        # Same instant: clock-in folds before clock-out
        return (self.timestamp, 0 if self.type == CLOCK_IN else 1)


def reconciliation_key(name: str, day: date) -> str:
    return f"{name.strip().lower()}|{day.isoformat()}"


def _cell(row: Sequence[str], index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def parse_sheet_row(row: Sequence[str]) -> Optional[SheetEvent]:
    """One sheet row to a SheetEvent, or None when the row is malformed."""
    raw_timestamp, raw_type, name = _cell(row, 0), _cell(row, 1), _cell(row, 2)
    if not raw_timestamp or not raw_type or not name:
        return None
    event_type = _EVENT_TYPES.get(raw_type.lower())
    if event_type is None:
        return None
    timestamp = parse_sheet_timestamp(raw_timestamp)
    if timestamp is None:
        return None
    return SheetEvent(timestamp=timestamp, type=event_type, name=name, subteam=_cell(row, 3))


def parse_sheet_rows(rows: Sequence[Sequence[str]]) -> List[SheetEvent]:
    events = []
    for row in rows:
        event = parse_sheet_row(row)
        if event is not None:
            events.append(event)
    return events


def build_sheet_row(event: SheetEvent) -> List[str]:
    return [format_sheet_timestamp(event.timestamp), event.type, event.name, event.subteam]
