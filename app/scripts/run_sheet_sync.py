"""
Run the Google Sheets attendance sync from a cron host.

Full sync exports ledger activity to the sheet and then imports kiosk rows.
Usage: python -m app.scripts.run_sheet_sync [--import-only] [--respect-schedule]
"""

import argparse
import asyncio
import logging
import sys

from app.api.v1.sheets_sync.importer import import_from_sheets
from app.api.v1.sheets_sync.service import run_manual_sync, run_scheduled_sync
from app.core.exceptions import ServiceError, SheetsNotConfiguredError
from app.core.logging_config import configure_logging
from app.db.session import AsyncSessionLocal, engine
from app.integrations.google_sheets import GoogleSheetsClient

logger = logging.getLogger(__name__)


async def run(import_only: bool, respect_schedule: bool) -> int:
    client = GoogleSheetsClient.from_settings()
    async with AsyncSessionLocal() as session:
        try:
            if import_only:
                if not client.is_configured:
                    raise SheetsNotConfiguredError()
                result = await import_from_sheets(session, client)
                print(f"Imported {result.imported} change(s), created {result.students_created} student(s).")
                return 0
            if respect_schedule:
                summary = await run_scheduled_sync(session, client)
            else:
                summary = await run_manual_sync(session, client)
        except ServiceError as e:
            await session.rollback()
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
    if summary.skipped:
        print(f"Skipped: {summary.reason}")
        return 0
    print(
        f"Exported {summary.exported} row(s), imported {summary.imported} change(s), "
        f"created {summary.students_created} student(s)."
    )
    return 0


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--import-only", action="store_true", help="Only pull rows from the sheet")
    parser.add_argument(
        "--respect-schedule",
        action="store_true",
        help="Skip when auto-sync is disabled or the interval has not elapsed",
    )
    args = parser.parse_args(argv)
    try:
        return await run(args.import_only, args.respect_schedule)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    configure_logging()
    sys.exit(asyncio.run(main()))
