import logging
import secrets
from datetime import datetime, timezone

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import AdminLoginRequest, AdminLoginResponse
from app.auth.security import create_admin_token, hash_password, verify_password
from app.core.config import settings
from app.core.exceptions import ServiceError
from app.core.settings_service import get_setting_value, set_setting_value

logger = logging.getLogger(__name__)

ADMIN_PASSWORD_HASH_KEY = "admin_password_hash"


async def _check_admin_password(db: AsyncSession, password: str) -> bool:
    stored_hash = await get_setting_value(db, ADMIN_PASSWORD_HASH_KEY)
    if stored_hash:
        return verify_password(password, stored_hash)
    if not settings.admin_password:
        raise ServiceError("Admin login is not configured", status.HTTP_503_SERVICE_UNAVAILABLE)
    if not secrets.compare_digest(password.encode("utf-8"), settings.admin_password.encode("utf-8")):
        return False
    # First login with the bootstrap password: persist its hash
    await set_setting_value(db, ADMIN_PASSWORD_HASH_KEY, hash_password(password))
    await db.commit()
    return True


async def login_admin(db: AsyncSession, payload: AdminLoginRequest) -> AdminLoginResponse:
    if not await _check_admin_password(db, payload.password):
        logger.warning("Rejected admin login attempt")
        raise ServiceError("Invalid password", status.HTTP_401_UNAUTHORIZED)
    access_token = create_admin_token()
    return AdminLoginResponse(
        access_token=access_token,
        issued_at=datetime.now(timezone.utc),
    )
