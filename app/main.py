from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.attendance.router import router as attendance_router
from app.api.v1.auth.router import router as auth_router
from app.api.v1.sheets_sync.router import router as sheets_sync_router
from app.api.v1.sheets_sync.throttle import SyncThrottle
from app.core.config import settings
from app.core.logging_config import configure_logging
from app.integrations.google_sheets import GoogleSheetsClient


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Attendance Backend")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Process-wide sync collaborators
    app.state.sheets_client = GoogleSheetsClient.from_settings(settings)
    app.state.sync_throttle = SyncThrottle(min_interval_seconds=settings.sheets_min_sync_interval_seconds)

    # Routers
    app.include_router(auth_router)
    app.include_router(attendance_router)
    app.include_router(sheets_sync_router)

    return app


app = create_app()
