"""Admin sheet sync API router."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_admin, get_sync_caller
from app.auth.schemas import SyncCaller
from app.core.exceptions import ServiceError
from app.db.session import get_db
from app.integrations.google_sheets import GoogleSheetsClient

from . import service
from .dependencies import get_sheets_client
from .schemas import SheetSyncResult, SyncSettingsResponse, SyncSettingsUpdate

router = APIRouter(prefix="/api/v1/admin/student-attendance", tags=["sheets-sync"])


@router.post(
    "/sync-sheets",
    response_model=SheetSyncResult,
    status_code=status.HTTP_200_OK,
)
async def sync_sheets(
    db: AsyncSession = Depends(get_db),
    client: GoogleSheetsClient = Depends(get_sheets_client),
    caller: SyncCaller = Depends(get_sync_caller),
):
    """Export ledger activity to the sheet, then import kiosk rows.

    Admin sessions always run; the scheduler is subject to the auto-sync toggle and interval.
    """
    try:
        if caller.kind == "scheduler":
            return await service.run_scheduled_sync(db, client)
        return await service.run_manual_sync(db, client)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/sync-settings",
    response_model=SyncSettingsResponse,
    dependencies=[Depends(get_current_admin)],
)
async def get_sync_settings(
    db: AsyncSession = Depends(get_db),
    client: GoogleSheetsClient = Depends(get_sheets_client),
):
    return await service.get_sync_settings(db, client)


@router.put(
    "/sync-settings",
    response_model=SyncSettingsResponse,
    dependencies=[Depends(get_current_admin)],
)
async def update_sync_settings(
    payload: SyncSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    client: GoogleSheetsClient = Depends(get_sheets_client),
):
    """Toggle automatic syncing and set the interval (minutes)."""
    return await service.update_sync_settings(db, client, payload)
