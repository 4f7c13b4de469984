"""
Settings service: read/write of the generic key/value settings table.

Values are opaque strings; callers own parsing (booleans are "true"/"false",
timestamps are ISO-8601 UTC).
"""
from datetime import datetime
from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.models import Setting


async def get_setting_values(db: AsyncSession, keys: Iterable[str]) -> Dict[str, str]:
    """Return {key: value} for the keys that exist."""
    result = await db.execute(select(Setting).where(Setting.key.in_(list(keys))))
    return {row.key: row.value for row in result.scalars().all()}


async def get_setting_value(db: AsyncSession, key: str) -> Optional[str]:
    row = await db.get(Setting, key)
    return row.value if row else None


async def set_setting_value(db: AsyncSession, key: str, value: str) -> None:
    """Upsert a setting. Does not commit; the caller owns the transaction."""
    row = await db.get(Setting, key)
    if row is None:
        db.add(Setting(key=key, value=value))
    else:
        row.value = value
        row.updated_at = datetime.utcnow()
    await db.flush()
