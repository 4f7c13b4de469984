from fastapi import Request

from app.integrations.google_sheets import GoogleSheetsClient

from .throttle import SyncThrottle


def get_sheets_client(request: Request) -> GoogleSheetsClient:
    """Sheets collaborator created once per process in create_app."""
    return request.app.state.sheets_client


def get_sync_throttle(request: Request) -> SyncThrottle:
    return request.app.state.sync_throttle
