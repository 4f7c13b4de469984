"""Student-facing attendance API router.

Read endpoints are polled by the kiosk and student pages, so each one first gives
the sheet import a chance to run (throttled, never fails the request).
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.sheets_sync.dependencies import get_sheets_client, get_sync_throttle
from app.api.v1.sheets_sync.service import maybe_import_from_sheets
from app.api.v1.sheets_sync.throttle import SyncThrottle
from app.core.exceptions import ServiceError
from app.core.timeutils import today_local
from app.db.session import get_db
from app.integrations.google_sheets import GoogleSheetsClient

from . import service
from .schemas import (
    ClockInRequest,
    ClockOutRequest,
    StudentAttendanceDay,
    StudentAttendanceRecord,
    StudentRoster,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/student-attendance", tags=["student-attendance"])


async def refresh_from_sheets(
    db: AsyncSession = Depends(get_db),
    client: GoogleSheetsClient = Depends(get_sheets_client),
    throttle: SyncThrottle = Depends(get_sync_throttle),
) -> None:
    outcome = await maybe_import_from_sheets(db, client, throttle)
    if outcome.result is not None and outcome.result.imported:
        logger.info("Pulled %d attendance changes from sheet before read", outcome.result.imported)


@router.get(
    "",
    response_model=StudentAttendanceDay,
    dependencies=[Depends(refresh_from_sheets)],
)
async def get_attendance_day(
    att_date: Optional[date] = Query(None, alias="date", description="Defaults to today"),
    db: AsyncSession = Depends(get_db),
):
    """Day-wise attendance (today unless a date is given)."""
    return await service.get_attendance_day(db, att_date or today_local())


@router.get(
    "/roster",
    response_model=StudentRoster,
    dependencies=[Depends(refresh_from_sheets)],
)
async def get_roster(db: AsyncSession = Depends(get_db)):
    """All students with today's presence flags."""
    return await service.get_roster(db, today_local())


@router.post(
    "/clock-in",
    response_model=StudentAttendanceRecord,
    status_code=status.HTTP_200_OK,
)
async def clock_in(
    payload: ClockInRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.clock_in(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/clock-out",
    response_model=StudentAttendanceRecord,
    status_code=status.HTTP_200_OK,
)
async def clock_out(
    payload: ClockOutRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.clock_out(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
