from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Bootstrap admin password; replaced by the bcrypt hash stored in settings once set
    admin_password: Optional[str] = Field(None, alias="ADMIN_PASSWORD")
    # Shared secret for scheduled callers (sent as x-api-key)
    cron_secret: Optional[str] = Field(None, alias="CRON_SECRET")

    google_service_account_key: Optional[str] = Field(None, alias="GOOGLE_SERVICE_ACCOUNT_KEY")
    google_sheet_id: Optional[str] = Field(None, alias="GOOGLE_SHEET_ID")
    google_sheet_range: str = Field("Sheet1!A:D", alias="GOOGLE_SHEET_RANGE")

    display_timezone: str = Field("America/Chicago", alias="DISPLAY_TIMEZONE")
    # Clock-in rows this close to an existing local check-in are the same tap
    sheets_duplicate_tolerance_seconds: int = Field(120, alias="SHEETS_DUPLICATE_TOLERANCE_SECONDS")
    sheets_min_sync_interval_seconds: int = Field(60, alias="SHEETS_MIN_SYNC_INTERVAL_SECONDS")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
