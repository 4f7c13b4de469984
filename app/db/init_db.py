"""
Create the application tables if they do not exist.

Usage: python -m app.db.init_db
"""
import asyncio
import logging

# Register all models on Base.metadata
import app.core.models  # noqa: F401
from app.core.logging_config import configure_logging
from app.db.session import Base, engine

logger = logging.getLogger(__name__)


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


async def main() -> None:
    try:
        await init_db()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
