from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class AdminLoginRequest(BaseModel):
    password: str = Field(..., min_length=1)


class AdminLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    issued_at: datetime


class CurrentAdmin(BaseModel):
    """Authenticated administrator session (single shared admin account)."""

    role: str = "ADMIN"


class SyncCaller(BaseModel):
    """Who is allowed to trigger a sheet sync: an admin session or the scheduler secret."""

    kind: Literal["admin", "scheduler"]
