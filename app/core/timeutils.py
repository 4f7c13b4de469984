"""
Time helpers shared by the attendance ledger and the sheet sync.

Timestamps are stored as naive UTC datetimes. Calendar days and everything shown
on the spreadsheet are expressed in the display timezone (settings.display_timezone).
"""
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser

from app.core.config import settings

EPOCH = datetime(1970, 1, 1)


def display_tz() -> ZoneInfo:
    return ZoneInfo(settings.display_timezone)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC. Naive input is assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_display(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc).astimezone(display_tz())


def local_date(value: datetime) -> date:
    """Calendar day of a naive UTC timestamp in the display timezone."""
    return to_display(value).date()


def today_local() -> date:
    return local_date(utcnow())


def from_local(value: datetime) -> datetime:
    """Interpret a naive wall-clock time in the display timezone and return naive UTC."""
    return to_utc_naive(value.replace(tzinfo=display_tz()))


def format_sheet_timestamp(value: datetime) -> str:
    """e.g. 02/12/2026, 9:00 AM"""
    local = to_display(value)
    hour = local.hour % 12 or 12
    meridiem = "PM" if local.hour >= 12 else "AM"
    return f"{local:%m/%d/%Y}, {hour}:{local:%M} {meridiem}"


def parse_sheet_timestamp(raw: str) -> Optional[datetime]:
    """Parse a human-entered timestamp. Returns naive UTC, or None when unparseable."""
    try:
        parsed = date_parser.parse(raw)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return from_local(parsed)
    return to_utc_naive(parsed)


def parse_watermark(raw: Optional[str]) -> datetime:
    """Stored watermark as naive UTC; missing or corrupt values mean 'never'."""
    if not raw:
        return EPOCH
    try:
        return to_utc_naive(datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError:
        return EPOCH


def format_watermark(value: datetime) -> str:
    return value.replace(tzinfo=timezone.utc).isoformat()
