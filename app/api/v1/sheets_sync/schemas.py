from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# ----- Settings keys -----
AUTO_SYNC_ENABLED_KEY = "sheets_auto_sync_enabled"
SYNC_INTERVAL_KEY = "sheets_sync_interval"
EXPORT_WATERMARK_KEY = "sheets_last_synced_at"
IMPORT_WATERMARK_KEY = "sheets_last_imported_at"

DEFAULT_SYNC_INTERVAL_MINUTES = 60

CLOCK_IN = "Clock in"
CLOCK_OUT = "Clock out"


class SheetImportResult(BaseModel):
    """Outcome of one import stage run."""

    imported: int = 0  # attendance rows created or updated
    students_created: int = 0


class SheetSyncResult(BaseModel):
    """Manual/scheduled sync summary."""

    exported: int = 0
    imported: int = 0
    students_created: int = 0
    skipped: bool = False
    reason: Optional[str] = None


class ImportStatus(str, Enum):
    IMPORTED = "imported"
    SKIPPED = "skipped"
    FAILED = "failed"


class ImportOutcome(BaseModel):
    """Result of an opportunistic import: ran, was skipped, or failed (and was swallowed)."""

    status: ImportStatus
    result: Optional[SheetImportResult] = None
    reason: Optional[str] = None

    @classmethod
    def imported(cls, result: SheetImportResult) -> "ImportOutcome":
        return cls(status=ImportStatus.IMPORTED, result=result)

    @classmethod
    def skipped(cls, reason: str) -> "ImportOutcome":
        return cls(status=ImportStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "ImportOutcome":
        return cls(status=ImportStatus.FAILED, reason=reason)


class SyncSettingsResponse(BaseModel):
    configured: bool
    auto_sync_enabled: bool
    sync_interval_minutes: int
    last_exported_at: Optional[datetime] = None
    last_imported_at: Optional[datetime] = None


class SyncSettingsUpdate(BaseModel):
    auto_sync_enabled: Optional[bool] = None
    sync_interval_minutes: Optional[int] = Field(None, ge=1, le=24 * 60)
