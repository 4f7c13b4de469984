"""Import stage: folding kiosk sheet rows into the attendance ledger."""

from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.sheets_sync import importer
from app.api.v1.sheets_sync.importer import import_from_sheets
from app.api.v1.sheets_sync.schemas import IMPORT_WATERMARK_KEY
from app.core.models import Student, StudentAttendance
from app.core.settings_service import get_setting_value, set_setting_value
from app.core.timeutils import format_watermark, parse_watermark

from helpers import FakeSheetsClient, local

ADA_DAY = [
    ["2026-02-12 09:00 AM", "Clock in", "Ada Lovelace", "Programming"],
    ["2026-02-12 03:00 PM", "Clock out", "Ada Lovelace", "Programming"],
]


async def _all_attendance(db: AsyncSession):
    result = await db.execute(select(StudentAttendance).order_by(StudentAttendance.id))
    return result.scalars().all()


async def _student_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(Student.id)))).scalar_one()


async def _add_student(db: AsyncSession, name: str) -> Student:
    student = Student(name=name)
    db.add(student)
    await db.commit()
    return student


@pytest.mark.asyncio
async def test_clean_import(db_session: AsyncSession) -> None:
    result = await import_from_sheets(db_session, FakeSheetsClient(ADA_DAY))

    assert result.imported == 2
    assert result.students_created == 1
    records = await _all_attendance(db_session)
    assert len(records) == 1
    record = records[0]
    student = await db_session.get(Student, record.student_id)
    assert student.name == "Ada Lovelace"
    assert record.date == date(2026, 2, 12)
    assert record.checked_in_at == local(2026, 2, 12, 9, 0)
    assert record.checked_out_at == local(2026, 2, 12, 15, 0)
    assert record.subteam == "Programming"


@pytest.mark.asyncio
async def test_second_import_is_idempotent(db_session: AsyncSession) -> None:
    sheets = FakeSheetsClient(ADA_DAY)
    await import_from_sheets(db_session, sheets)

    again = await import_from_sheets(db_session, sheets)
    assert again.imported == 0
    assert again.students_created == 0

    # Even with the watermark wiped, dedup keeps a single record per day
    await set_setting_value(db_session, IMPORT_WATERMARK_KEY, "")
    await db_session.commit()
    replay = await import_from_sheets(db_session, sheets)
    assert replay.imported == 0
    assert len(await _all_attendance(db_session)) == 1


@pytest.mark.asyncio
async def test_clock_out_listed_first_still_closes_record(db_session: AsyncSession) -> None:
    result = await import_from_sheets(db_session, FakeSheetsClient(list(reversed(ADA_DAY))))

    assert result.imported == 2
    (record,) = await _all_attendance(db_session)
    assert record.checked_in_at == local(2026, 2, 12, 9, 0)
    assert record.checked_out_at == local(2026, 2, 12, 15, 0)


@pytest.mark.asyncio
async def test_closed_record_is_not_reopened_or_overwritten(db_session: AsyncSession) -> None:
    ada = await _add_student(db_session, "Ada Lovelace")
    db_session.add(StudentAttendance(
        student_id=ada.id,
        date=date(2026, 2, 12),
        checked_in_at=local(2026, 2, 12, 9, 0),
        checked_out_at=local(2026, 2, 12, 15, 0),
        subteam="Programming",
    ))
    await db_session.commit()

    rows = [
        ["2026-02-12 04:00 PM", "Clock out", "Ada Lovelace", "Programming"],
        ["2026-02-12 11:00 AM", "Clock in", "Ada Lovelace", "Programming"],
    ]
    result = await import_from_sheets(db_session, FakeSheetsClient(rows))

    assert result.imported == 0
    (record,) = await _all_attendance(db_session)
    assert record.checked_in_at == local(2026, 2, 12, 9, 0)
    assert record.checked_out_at == local(2026, 2, 12, 15, 0)


@pytest.mark.asyncio
async def test_clock_out_without_check_in_is_ignored(db_session: AsyncSession) -> None:
    rows = [["2026-02-12 03:00 PM", "Clock out", "Ada Lovelace", ""]]
    result = await import_from_sheets(db_session, FakeSheetsClient(rows))

    assert result.imported == 0
    assert result.students_created == 1
    assert await _all_attendance(db_session) == []


@pytest.mark.asyncio
async def test_clock_in_within_tolerance_of_local_tap_is_skipped(db_session: AsyncSession) -> None:
    ada = await _add_student(db_session, "Ada Lovelace")
    db_session.add(StudentAttendance(
        student_id=ada.id,
        date=date(2026, 2, 12),
        checked_in_at=local(2026, 2, 12, 9, 0, 30),
        subteam="Programming",
    ))
    await db_session.commit()

    rows = [["2026-02-12 09:00 AM", "Clock in", "Ada Lovelace", "Programming"]]
    result = await import_from_sheets(db_session, FakeSheetsClient(rows))

    assert result.imported == 0
    assert result.students_created == 0
    (record,) = await _all_attendance(db_session)
    assert record.checked_in_at == local(2026, 2, 12, 9, 0, 30)


@pytest.mark.asyncio
async def test_unknown_student_created_once_regardless_of_case(db_session: AsyncSession) -> None:
    first = await import_from_sheets(db_session, FakeSheetsClient([
        ["2026-02-12 09:00 AM", "Clock in", "Ada Lovelace", ""],
    ]))
    second = await import_from_sheets(db_session, FakeSheetsClient([
        ["2026-02-12 09:00 AM", "Clock in", "Ada Lovelace", ""],
        ["2099-02-13 09:00 AM", "Clock in", "ada lovelace", ""],
    ]))

    assert first.students_created == 1
    assert second.students_created == 0
    assert second.imported == 1
    assert await _student_count(db_session) == 1
    records = await _all_attendance(db_session)
    assert {r.student_id for r in records} == {records[0].student_id}


@pytest.mark.asyncio
async def test_rows_at_or_before_watermark_are_skipped(db_session: AsyncSession) -> None:
    await _add_student(db_session, "Ada Lovelace")
    old_watermark = local(2026, 2, 13, 0, 0)
    await set_setting_value(db_session, IMPORT_WATERMARK_KEY, format_watermark(old_watermark))
    await db_session.commit()

    result = await import_from_sheets(db_session, FakeSheetsClient(ADA_DAY))

    assert result.imported == 0
    assert result.students_created == 0
    assert await _all_attendance(db_session) == []
    new_watermark = parse_watermark(await get_setting_value(db_session, IMPORT_WATERMARK_KEY))
    assert new_watermark > old_watermark


@pytest.mark.asyncio
async def test_historical_names_are_backfilled_as_students(db_session: AsyncSession) -> None:
    await set_setting_value(db_session, IMPORT_WATERMARK_KEY, format_watermark(local(2026, 3, 1)))
    await db_session.commit()
    rows = [
        ["2026-02-12 09:00 AM", "Clock in", "Grace Hopper", ""],
        ["2099-03-02 09:00 AM", "Clock in", "Ada Lovelace", ""],
    ]
    result = await import_from_sheets(db_session, FakeSheetsClient(rows))

    assert result.students_created == 2
    assert result.imported == 1


@pytest.mark.asyncio
async def test_empty_sheet_still_advances_watermark(db_session: AsyncSession) -> None:
    result = await import_from_sheets(db_session, FakeSheetsClient([]))

    assert result.imported == 0
    assert await get_setting_value(db_session, IMPORT_WATERMARK_KEY)


@pytest.mark.asyncio
async def test_insert_race_on_unique_constraint_is_a_duplicate(
    db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
) -> None:
    ada = await _add_student(db_session, "Ada Lovelace")
    db_session.add(StudentAttendance(
        student_id=ada.id,
        date=date(2026, 2, 12),
        checked_in_at=local(2026, 2, 12, 8, 55),
        subteam="",
    ))
    await db_session.commit()

    # Simulate a concurrent import that read the day before the row above existed
    async def stale_day_index(db, days):
        return {}

    monkeypatch.setattr(importer, "_load_attendance_by_key", stale_day_index)

    result = await import_from_sheets(db_session, FakeSheetsClient(ADA_DAY))

    # Clock-in lost the race; clock-out closes the winner's record
    assert result.imported == 1
    (record,) = await _all_attendance(db_session)
    assert record.checked_in_at == local(2026, 2, 12, 8, 55)
    assert record.checked_out_at == local(2026, 2, 12, 15, 0)


@pytest.mark.asyncio
async def test_student_created_by_concurrent_import_is_reused(
    db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
) -> None:
    ada = await _add_student(db_session, "ada lovelace")

    # Simulate a concurrent import that loaded the roster before the student above existed
    async def stale_roster(db):
        return importer._Roster(db, {})

    monkeypatch.setattr(importer._Roster, "load", stale_roster)

    result = await import_from_sheets(db_session, FakeSheetsClient(ADA_DAY))

    assert result.students_created == 0
    assert result.imported == 2
    assert await _student_count(db_session) == 1
    (record,) = await _all_attendance(db_session)
    assert record.student_id == ada.id
    assert record.checked_out_at == local(2026, 2, 12, 15, 0)


@pytest.mark.asyncio
async def test_student_names_are_unique_ignoring_case(db_session: AsyncSession) -> None:
    await _add_student(db_session, "Ada Lovelace")

    db_session.add(Student(name="ADA LOVELACE"))
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()

    assert await _student_count(db_session) == 1
