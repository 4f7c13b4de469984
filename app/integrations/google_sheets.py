"""
Google Sheets collaborator for the attendance sync.

The sheet is an append-only log of [timestamp, "Clock in"|"Clock out", name, subteam]
rows written by the kiosk. The Google client is synchronous, so calls run in a worker
thread to keep the event loop free.
"""
import asyncio
import json
import logging
import threading
from typing import List, Optional

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.core.config import Settings, settings
from app.core.exceptions import SheetSyncError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class GoogleSheetsClient:
    def __init__(
        self,
        service_account_key: Optional[str],
        sheet_id: Optional[str],
        sheet_range: str = "Sheet1!A:D",
    ) -> None:
        self.service_account_key = service_account_key
        self.sheet_id = sheet_id
        self.sheet_range = sheet_range
        self._credentials = None
        self._credentials_lock = threading.Lock()

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "GoogleSheetsClient":
        return cls(
            config.google_service_account_key,
            config.google_sheet_id,
            config.google_sheet_range,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.service_account_key and self.sheet_id)

    def _get_credentials(self) -> service_account.Credentials:
        with self._credentials_lock:
            if self._credentials is None:
                info = json.loads(self.service_account_key)
                self._credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
            return self._credentials

    def _values(self):
        # httplib2 is not thread-safe: each call gets its own service and connection
        service = build("sheets", "v4", credentials=self._get_credentials(), cache_discovery=False)
        return service.spreadsheets().values()

    def _read_all_rows(self) -> List[List[str]]:
        response = self._values().get(spreadsheetId=self.sheet_id, range=self.sheet_range).execute()
        return response.get("values", [])

    def _append_rows(self, rows: List[List[str]]) -> None:
        self._values().append(
            spreadsheetId=self.sheet_id,
            range=self.sheet_range,
            valueInputOption="USER_ENTERED",
            body={"values": rows},
        ).execute()

    async def read_all_rows(self) -> List[List[str]]:
        """Full current contents of the sheet, one list of cell strings per row."""
        try:
            rows = await asyncio.to_thread(self._read_all_rows)
        except (HttpError, GoogleAuthError, OSError, ValueError) as e:
            raise SheetSyncError(f"Sync failed: could not read Google Sheet ({e})") from e
        logger.debug("Read %d rows from sheet %s", len(rows), self.sheet_id)
        return rows

    async def append_rows(self, rows: List[List[str]]) -> None:
        """Append rows in a single call. No-op for an empty batch."""
        if not rows:
            return
        try:
            await asyncio.to_thread(self._append_rows, rows)
        except (HttpError, GoogleAuthError, OSError, ValueError) as e:
            raise SheetSyncError(f"Sync failed: could not append to Google Sheet ({e})") from e
        logger.info("Appended %d rows to sheet %s", len(rows), self.sheet_id)
