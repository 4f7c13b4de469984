"""Export stage: push ledger activity since the last export to the sheet."""

import logging
from datetime import datetime
from typing import List, Tuple

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.models import Student, StudentAttendance
from app.core.settings_service import get_setting_value, set_setting_value
from app.core.timeutils import format_watermark, parse_watermark, utcnow
from app.integrations.google_sheets import GoogleSheetsClient

from .rows import SheetEvent, build_sheet_row
from .schemas import CLOCK_IN, CLOCK_OUT, EXPORT_WATERMARK_KEY

logger = logging.getLogger(__name__)


async def collect_export_events(db: AsyncSession, since: datetime) -> List[SheetEvent]:
    """Clock-in/clock-out events with a timestamp strictly after `since`, oldest first.

    A record contributes a clock-in row, a clock-out row, or both.
    """
    stmt = (
        select(StudentAttendance, Student.name)
        .join(Student, StudentAttendance.student_id == Student.id)
        .where(
            or_(
                StudentAttendance.checked_in_at > since,
                StudentAttendance.checked_out_at > since,
            )
        )
        .order_by(StudentAttendance.checked_in_at)
    )
    result = await db.execute(stmt)
    rows: List[Tuple[StudentAttendance, str]] = result.all()

    events: List[SheetEvent] = []
    for record, name in rows:
        subteam = record.subteam or ""
        if record.checked_in_at > since:
            events.append(SheetEvent(record.checked_in_at, CLOCK_IN, name, subteam))
        if record.checked_out_at is not None and record.checked_out_at > since:
            events.append(SheetEvent(record.checked_out_at, CLOCK_OUT, name, subteam))
    events.sort(key=lambda e: e.sort_key)
    return events


async def export_to_sheets(db: AsyncSession, client: GoogleSheetsClient) -> int:
    """Append new ledger events to the sheet and advance the export watermark.

    The watermark only moves after a successful append, so a failed run is
    re-emitted in full next time. Returns the number of rows appended.
    """
    started_at = utcnow()
    watermark = parse_watermark(await get_setting_value(db, EXPORT_WATERMARK_KEY))

    events = await collect_export_events(db, watermark)
    rows = [build_sheet_row(e) for e in events]
    await client.append_rows(rows)

    await set_setting_value(db, EXPORT_WATERMARK_KEY, format_watermark(max(started_at, watermark)))
    await db.commit()
    logger.info("Exported %d attendance events to sheet (since %s)", len(rows), watermark.isoformat())
    return len(rows)
