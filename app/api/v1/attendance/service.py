"""Student attendance ledger: day views and the local clock-in/clock-out taps."""

import logging
from datetime import date
from typing import Optional

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.core.models import Student, StudentAttendance
from app.core.timeutils import local_date, to_utc_naive, utcnow

from .schemas import (
    ClockInRequest,
    ClockOutRequest,
    RosterEntry,
    StudentAttendanceDay,
    StudentAttendanceRecord,
    StudentRoster,
)

logger = logging.getLogger(__name__)


def _to_record(sa: StudentAttendance, student_name: str) -> StudentAttendanceRecord:
    return StudentAttendanceRecord(
        id=sa.id,
        student_id=sa.student_id,
        student_name=student_name,
        date=sa.date,
        checked_in_at=sa.checked_in_at,
        checked_out_at=sa.checked_out_at,
        subteam=sa.subteam or "",
    )


async def _get_student(db: AsyncSession, student_id: int) -> Student:
    student = await db.get(Student, student_id)
    if not student:
        raise ServiceError("Student not found", status.HTTP_404_NOT_FOUND)
    return student


async def _get_attendance(db: AsyncSession, student_id: int, att_date: date) -> Optional[StudentAttendance]:
    result = await db.execute(
        select(StudentAttendance).where(
            StudentAttendance.student_id == student_id,
            StudentAttendance.date == att_date,
        )
    )
    return result.scalar_one_or_none()


async def get_attendance_day(db: AsyncSession, att_date: date) -> StudentAttendanceDay:
    result = await db.execute(
        select(StudentAttendance, Student.name)
        .join(Student, StudentAttendance.student_id == Student.id)
        .where(StudentAttendance.date == att_date)
        .order_by(StudentAttendance.checked_in_at)
    )
    records = [_to_record(sa, name) for sa, name in result.all()]
    return StudentAttendanceDay(
        date=att_date,
        total_present=sum(1 for r in records if r.checked_out_at is None),
        total_checked_out=sum(1 for r in records if r.checked_out_at is not None),
        records=records,
    )


async def get_roster(db: AsyncSession, att_date: date) -> StudentRoster:
    students = (await db.execute(select(Student).order_by(Student.name))).scalars().all()
    result = await db.execute(select(StudentAttendance).where(StudentAttendance.date == att_date))
    by_student = {sa.student_id: sa for sa in result.scalars().all()}
    entries = []
    for student in students:
        sa = by_student.get(student.id)
        entries.append(RosterEntry(
            id=student.id,
            name=student.name,
            checked_in=sa is not None and sa.checked_out_at is None,
            checked_out=sa is not None and sa.checked_out_at is not None,
        ))
    return StudentRoster(date=att_date, students=entries)


async def clock_in(db: AsyncSession, payload: ClockInRequest) -> StudentAttendanceRecord:
    """Create today's record, or re-open it with a new check-in time after a checkout.

    A record that is still open is returned unchanged.
    """
    student = await _get_student(db, payload.student_id)
    student_id, student_name = student.id, student.name
    clock_time = to_utc_naive(payload.time) if payload.time else utcnow()
    att_date = local_date(clock_time)

    sa = await _get_attendance(db, student_id, att_date)
    if sa is None:
        sa = StudentAttendance(
            student_id=student_id,
            date=att_date,
            checked_in_at=clock_time,
            subteam=payload.subteam or "",
        )
        db.add(sa)
        try:
            await db.commit()
        except IntegrityError:
            # A concurrent sheet import created the row first; fall through to update it
            await db.rollback()
            sa = await _get_attendance(db, student_id, att_date)
            if sa is None:
                raise ServiceError("Could not record check-in", status.HTTP_409_CONFLICT)
        else:
            logger.info("Student %s clocked in at %s", student_id, clock_time.isoformat())
            return _to_record(sa, student_name)

    if sa.checked_out_at is None:
        logger.debug("Student %s is already clocked in", student_id)
        return _to_record(sa, student_name)

    sa.checked_in_at = clock_time
    sa.checked_out_at = None
    if payload.subteam is not None:
        sa.subteam = payload.subteam
    await db.commit()
    logger.info("Student %s clocked in again at %s", student_id, clock_time.isoformat())
    return _to_record(sa, student_name)


async def clock_out(db: AsyncSession, payload: ClockOutRequest) -> StudentAttendanceRecord:
    student = await _get_student(db, payload.student_id)
    clock_time = to_utc_naive(payload.time) if payload.time else utcnow()
    sa = await _get_attendance(db, student.id, local_date(clock_time))
    if sa is None:
        raise ServiceError("Student is not clocked in", status.HTTP_400_BAD_REQUEST)
    if clock_time < sa.checked_in_at:
        raise ServiceError("Clock-out time is before check-in time", status.HTTP_400_BAD_REQUEST)
    sa.checked_out_at = clock_time
    if payload.subteam is not None:
        sa.subteam = payload.subteam
    await db.commit()
    logger.info("Student %s clocked out at %s", student.id, clock_time.isoformat())
    return _to_record(sa, student.name)
