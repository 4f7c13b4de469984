import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from app.auth.schemas import CurrentAdmin, SyncCaller
from app.auth.security import decode_admin_token
from app.core.config import settings


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/admin/login-oauth", auto_error=False)


def _resolve_admin(token: Optional[str]) -> Optional[CurrentAdmin]:
    if not token:
        return None
    claims = decode_admin_token(token)
    if claims is None:
        return None
    return CurrentAdmin(role=claims["role"])


async def get_current_admin(token: Optional[str] = Depends(oauth2_scheme)) -> CurrentAdmin:
    """Resolve the admin session from the bearer token."""
    admin = _resolve_admin(token)
    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return admin


def _is_scheduler_key(api_key: Optional[str]) -> bool:
    if not api_key or not settings.cron_secret:
        return False
    return secrets.compare_digest(api_key.encode("utf-8"), settings.cron_secret.encode("utf-8"))


async def get_sync_caller(
    token: Optional[str] = Depends(oauth2_scheme),
    x_api_key: Optional[str] = Header(None),
) -> SyncCaller:
    """Single identity check for sync triggers: admin bearer token or the cron shared secret."""
    if _resolve_admin(token) is not None:
        return SyncCaller(kind="admin")
    if _is_scheduler_key(x_api_key):
        return SyncCaller(kind="scheduler")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
