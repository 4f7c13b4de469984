from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


SHEETS_NOT_CONFIGURED_MESSAGE = (
    "Google Sheets is not configured. Set GOOGLE_SERVICE_ACCOUNT_KEY and GOOGLE_SHEET_ID environment variables."
)


class SheetsNotConfiguredError(ServiceError):
    """Raised by the manual sync when no sheet credentials are present."""

    def __init__(self, message: str = SHEETS_NOT_CONFIGURED_MESSAGE) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class SheetSyncError(ServiceError):
    """Export or import against the spreadsheet failed."""

    def __init__(self, message: str = "Sync failed") -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
