from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from leave_ledger.api.health import router as health_router
from leave_ledger.api.router import api_router
from leave_ledger.config import Settings, get_settings
from leave_ledger.db import create_tables, dispose_engine
from leave_ledger.exceptions import setup_exception_handlers
from leave_ledger.middleware import setup_middleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _log_ledger_settings(settings: Settings) -> None:
    logger.info(
        "Ledger: timezone=%s business_date=%s hours_per_day=%d unlimited=%s strict_revert=%s",
        settings.timezone,
        settings.today().isoformat(),
        settings.hours_per_day,
        ",".join(settings.unlimited_leave_categories) or "-",
        settings.strict_revert,
    )
    if settings.allow_backdated_requests:
        logger.warning("Backdated leave requests are accepted from every employee")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    logger.info("Starting %s v%s [%s]", settings.app_name, settings.app_version, settings.environment)
    _log_ledger_settings(settings)
    if settings.auto_create_tables:
        await create_tables()
    try:
        yield
    finally:
        logger.info("Shutting down %s", settings.app_name)
        await dispose_engine()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API; ``settings`` defaults to the environment-driven ones."""
    settings = settings or get_settings()
    expose_docs = settings.environment != "production"

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if expose_docs else None,
        redoc_url="/redoc" if expose_docs else None,
    )
    setup_middleware(application, settings)
    setup_exception_handlers(application)
    application.include_router(health_router)
    application.include_router(api_router)
    return application


app = create_app()
