"""Worker process for the yearly leave usage reset.

Runs an asyncio loop that checks the business-timezone date and resets usage
once on January 1st of each year. The audit log records each scheduled run, so
a restart on January 1st does not reset a second time.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import TYPE_CHECKING

from leave_ledger.config import Settings, get_settings
from leave_ledger.db import get_session_factory
from leave_ledger.models.enums import ResetStrategy
from leave_ledger.services.reset import ResetResult, run_yearly_reset

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


def should_reset(today: date, last_reset_year: int | None) -> bool:
    """January 1st, and not already reset this year by this process.

    Only a cheap in-process check; ``run_yearly_reset(once_per_year=True)``
    consults the database before touching any usage.
    """
    return today.month == 1 and today.day == 1 and last_reset_year != today.year


async def run_reset_once(
    settings: Settings,
    today: date,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> ResetResult:
    """Run the scheduled reset for ``today`` in its own session."""
    session_factory = session_factory or get_session_factory()
    async with session_factory() as session:
        result = await run_yearly_reset(
            session,
            settings=settings,
            force=False,
            strategy=ResetStrategy.ZERO,
            today=today,
            once_per_year=True,
        )
    logger.info(
        "Scheduled reset for %s: positions=%d employees=%d rows=%d",
        today,
        result.positions,
        result.employees,
        result.affected_rows,
    )
    return result


async def run_reset_loop(settings: Settings) -> None:
    """Main worker loop; wakes every ``reset_check_interval_seconds``."""
    logger.info(
        "Reset worker started (timezone=%s, interval=%ds)",
        settings.timezone,
        settings.reset_check_interval_seconds,
    )
    last_reset_year: int | None = None

    while True:
        today = settings.today()
        if should_reset(today, last_reset_year):
            try:
                await run_reset_once(settings, today)
                last_reset_year = today.year
            except Exception:
                logger.exception("Yearly reset failed for %s", today)

        await asyncio.sleep(settings.reset_check_interval_seconds)


def main() -> None:
    """Entry point for the worker process."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    if not settings.enable_yearly_reset:
        logger.info("Yearly reset is disabled; worker exiting")
        return
    asyncio.run(run_reset_loop(settings))


if __name__ == "__main__":
    main()
