"""
Import stage: fold kiosk clock-in/clock-out rows from the sheet into the ledger.

Rows are matched to ledger records by reconciliation key (lower(name)|date), since
the sheet carries names and dates but no ids. The import never overwrites an
existing check-in and never re-opens a closed record.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.models import Student, StudentAttendance
from app.core.settings_service import get_setting_value, set_setting_value
from app.core.timeutils import format_watermark, local_date, parse_watermark, utcnow
from app.integrations.google_sheets import GoogleSheetsClient

from .rows import SheetEvent, parse_sheet_rows, reconciliation_key
from .schemas import CLOCK_IN, IMPORT_WATERMARK_KEY, SheetImportResult

logger = logging.getLogger(__name__)


def duplicate_tolerance() -> timedelta:
    """Window within which a sheet clock-in is the same tap as an existing local check-in."""
    return timedelta(seconds=settings.sheets_duplicate_tolerance_seconds)


class _Roster:
    """Case-insensitive name -> student id map that creates missing students on demand."""

    def __init__(self, db: AsyncSession, ids_by_name: Dict[str, int]) -> None:
        self.db = db
        self.ids_by_name = ids_by_name
        self.created = 0

    @classmethod
    async def load(cls, db: AsyncSession) -> "_Roster":
        result = await db.execute(select(Student.id, Student.name).order_by(Student.id))
        ids_by_name: Dict[str, int] = {}
        for student_id, name in result.all():
            ids_by_name.setdefault(name.strip().lower(), student_id)
        return cls(db, ids_by_name)

    async def ensure(self, name: str) -> int:
        name = name.strip()
        student_id = self.ids_by_name.get(name.lower())
        if student_id is not None:
            return student_id

        student = Student(name=name)
        try:
            async with self.db.begin_nested():
                self.db.add(student)
        except IntegrityError:
            # Another import created this name since the roster was loaded
            student_id = await _find_student_id(self.db, name)
            if student_id is None:
                raise
            logger.debug("Student %r already created by a concurrent import", name)
        else:
            student_id = student.id
            self.created += 1
            logger.info("Created student %r (id=%s) from sheet import", name, student_id)
        self.ids_by_name[name.lower()] = student_id
        return student_id


async def _find_student_id(db: AsyncSession, name: str) -> Optional[int]:
    result = await db.execute(
        select(Student.id).where(func.lower(Student.name) == name.lower()).order_by(Student.id).limit(1)
    )
    return result.scalar_one_or_none()


async def _load_attendance_by_key(
    db: AsyncSession, days: Iterable[date]
) -> Dict[str, StudentAttendance]:
    days = sorted(set(days))
    if not days:
        return {}
    result = await db.execute(
        select(StudentAttendance, Student.name)
        .join(Student, StudentAttendance.student_id == Student.id)
        .where(StudentAttendance.date.in_(days))
    )
    by_key: Dict[str, StudentAttendance] = {}
    for record, name in result.all():
        by_key[reconciliation_key(name, record.date)] = record
    return by_key


async def _get_attendance(db: AsyncSession, student_id: int, day: date) -> Optional[StudentAttendance]:
    result = await db.execute(
        select(StudentAttendance).where(
            StudentAttendance.student_id == student_id,
            StudentAttendance.date == day,
        )
    )
    return result.scalar_one_or_none()


async def _apply_clock_in(
    db: AsyncSession,
    event: SheetEvent,
    student_id: int,
    day: date,
    key: str,
    attendance_by_key: Dict[str, StudentAttendance],
) -> bool:
    existing = attendance_by_key.get(key)
    if existing is not None:
        if abs(existing.checked_in_at - event.timestamp) <= duplicate_tolerance():
            logger.debug("Skip clock-in for %s: already recorded locally", key)
        else:
            logger.debug("Skip clock-in for %s: existing check-in kept", key)
        return False

    record = StudentAttendance(
        student_id=student_id,
        date=day,
        checked_in_at=event.timestamp,
        subteam=event.subteam,
    )
    try:
        async with db.begin_nested():
            db.add(record)
    except IntegrityError:
        # Another import (or a local tap) created the row since we loaded the day
        logger.debug("Skip clock-in for %s: lost insert race", key)
        winner = await _get_attendance(db, student_id, day)
        if winner is not None:
            attendance_by_key[key] = winner
        return False
    attendance_by_key[key] = record
    return True


async def _apply_clock_out(
    db: AsyncSession,
    event: SheetEvent,
    key: str,
    attendance_by_key: Dict[str, StudentAttendance],
) -> bool:
    existing = attendance_by_key.get(key)
    if existing is None or existing.checked_out_at is not None:
        logger.debug("Skip clock-out for %s: no open record", key)
        return False
    if event.timestamp < existing.checked_in_at:
        logger.debug("Skip clock-out for %s: earlier than check-in", key)
        return False
    existing.checked_out_at = event.timestamp
    await db.flush()
    return True


async def fold_events(
    db: AsyncSession,
    events: Sequence[SheetEvent],
    roster: _Roster,
) -> int:
    """Apply events oldest first. Returns the number of records created or updated."""
    ordered = sorted(events, key=lambda e: e.sort_key)
    attendance_by_key = await _load_attendance_by_key(db, (local_date(e.timestamp) for e in ordered))

    imported = 0
    for event in ordered:
        day = local_date(event.timestamp)
        key = reconciliation_key(event.name, day)
        if event.type == CLOCK_IN:
            student_id = await roster.ensure(event.name)
            applied = await _apply_clock_in(db, event, student_id, day, key, attendance_by_key)
        else:
            applied = await _apply_clock_out(db, event, key, attendance_by_key)
        if applied:
            imported += 1
    return imported


def split_by_watermark(
    events: Sequence[SheetEvent], watermark: datetime
) -> Tuple[List[SheetEvent], Set[str]]:
    """Events newer than the watermark, plus every distinct name seen in the sheet."""
    fresh = [e for e in events if e.timestamp > watermark]
    names = {e.name for e in events}
    return fresh, names


async def import_from_sheets(db: AsyncSession, client: GoogleSheetsClient) -> SheetImportResult:
    """Run one import. Advances the import watermark even when nothing was imported."""
    started_at = utcnow()
    rows = await client.read_all_rows()
    watermark = parse_watermark(await get_setting_value(db, IMPORT_WATERMARK_KEY))

    events, names = split_by_watermark(parse_sheet_rows(rows), watermark)

    roster = await _Roster.load(db)
    # Back-fill students named anywhere in the sheet, not only in new rows
    for name in sorted(names, key=str.lower):
        await roster.ensure(name)

    imported = await fold_events(db, events, roster) if events else 0

    await set_setting_value(db, IMPORT_WATERMARK_KEY, format_watermark(max(started_at, watermark)))
    await db.commit()
    logger.info(
        "Imported %d attendance changes from %d sheet rows (%d new events, %d students created)",
        imported,
        len(rows),
        len(events),
        roster.created,
    )
    return SheetImportResult(imported=imported, students_created=roster.created)
