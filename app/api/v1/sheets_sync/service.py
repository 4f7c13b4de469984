"""Sheet sync orchestration: manual/scheduled full sync and the opportunistic import."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import SheetsNotConfiguredError, SheetSyncError
from app.core.settings_service import get_setting_values, set_setting_value
from app.core.timeutils import parse_watermark, utcnow
from app.integrations.google_sheets import GoogleSheetsClient

from .exporter import export_to_sheets
from .importer import import_from_sheets
from .schemas import (
    AUTO_SYNC_ENABLED_KEY,
    EXPORT_WATERMARK_KEY,
    IMPORT_WATERMARK_KEY,
    SYNC_INTERVAL_KEY,
    ImportOutcome,
    SheetSyncResult,
    SyncSettingsResponse,
    SyncSettingsUpdate,
)
from .throttle import SyncThrottle, import_due, is_auto_sync_enabled, sync_interval_minutes

logger = logging.getLogger(__name__)

SYNC_SETTING_KEYS = (
    AUTO_SYNC_ENABLED_KEY,
    SYNC_INTERVAL_KEY,
    EXPORT_WATERMARK_KEY,
    IMPORT_WATERMARK_KEY,
)


async def _rollback_quietly(db: AsyncSession) -> None:
    try:
        await db.rollback()
    except SQLAlchemyError:
        logger.exception("Rollback after failed sheet sync also failed")


async def run_manual_sync(db: AsyncSession, client: GoogleSheetsClient) -> SheetSyncResult:
    """Export then import, unthrottled. Raises ServiceError subclasses on failure."""
    if not client.is_configured:
        raise SheetsNotConfiguredError()
    try:
        exported = await export_to_sheets(db, client)
        imported = await import_from_sheets(db, client)
    except SheetSyncError:
        logger.exception("Google Sheets sync failed")
        await _rollback_quietly(db)
        raise
    except SQLAlchemyError as e:
        logger.exception("Google Sheets sync failed on database write")
        await _rollback_quietly(db)
        raise SheetSyncError("Sync failed: database error") from e
    return SheetSyncResult(
        exported=exported,
        imported=imported.imported,
        students_created=imported.students_created,
    )


async def run_scheduled_sync(db: AsyncSession, client: GoogleSheetsClient) -> SheetSyncResult:
    """Full sync for a scheduled caller; honours the auto-sync toggle and interval."""
    if not client.is_configured:
        raise SheetsNotConfiguredError()
    values = await get_setting_values(db, SYNC_SETTING_KEYS)
    due, reason = import_due(values, utcnow(), settings.sheets_min_sync_interval_seconds)
    if not due:
        logger.info("Scheduled sheet sync skipped: %s", reason)
        return SheetSyncResult(skipped=True, reason=reason)
    return await run_manual_sync(db, client)


async def maybe_import_from_sheets(
    db: AsyncSession,
    client: GoogleSheetsClient,
    throttle: SyncThrottle,
) -> ImportOutcome:
    """Throttled, best-effort import for student-facing reads. Never raises."""
    if throttle.too_soon():
        return ImportOutcome.skipped("throttled")
    if not client.is_configured:
        return ImportOutcome.skipped("not configured")

    throttle.mark_attempt()
    try:
        values = await get_setting_values(db, SYNC_SETTING_KEYS)
        due, reason = import_due(values, utcnow(), throttle.min_interval_seconds)
        if not due:
            return ImportOutcome.skipped(reason)
        result = await import_from_sheets(db, client)
    except Exception as e:
        logger.exception("Opportunistic sheet import failed")
        await _rollback_quietly(db)
        return ImportOutcome.failed(str(e) or e.__class__.__name__)
    return ImportOutcome.imported(result)


# ----- Admin sync settings -----
async def get_sync_settings(db: AsyncSession, client: GoogleSheetsClient) -> SyncSettingsResponse:
    values = await get_setting_values(db, SYNC_SETTING_KEYS)
    return SyncSettingsResponse(
        configured=client.is_configured,
        auto_sync_enabled=is_auto_sync_enabled(values),
        sync_interval_minutes=sync_interval_minutes(values),
        last_exported_at=parse_watermark(values[EXPORT_WATERMARK_KEY]) if values.get(EXPORT_WATERMARK_KEY) else None,
        last_imported_at=parse_watermark(values[IMPORT_WATERMARK_KEY]) if values.get(IMPORT_WATERMARK_KEY) else None,
    )


async def update_sync_settings(
    db: AsyncSession,
    client: GoogleSheetsClient,
    payload: SyncSettingsUpdate,
) -> SyncSettingsResponse:
    if payload.auto_sync_enabled is not None:
        await set_setting_value(db, AUTO_SYNC_ENABLED_KEY, "true" if payload.auto_sync_enabled else "false")
    if payload.sync_interval_minutes is not None:
        await set_setting_value(db, SYNC_INTERVAL_KEY, str(payload.sync_interval_minutes))
    await db.commit()
    return await get_sync_settings(db, client)
