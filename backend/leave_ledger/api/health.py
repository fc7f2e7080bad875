# ruff: noqa: TC003
import logging
from datetime import date
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from leave_ledger.api.deps import SettingsDep
from leave_ledger.db import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    version: str
    environment: str
    database: bool
    timezone: str
    business_date: date


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep, settings: SettingsDep) -> HealthResponse:
    """Liveness, a database round trip, and the date the ledger treats as today.

    ``business_date`` is what backdating checks and the January 1st reset
    compare against, so a wrong ``TIMEZONE`` shows up here first.
    """
    try:
        await session.execute(text("SELECT 1"))
        database_ok = True
    except Exception:
        logger.exception("Health check: database unreachable")
        database_ok = False

    return HealthResponse(
        status="ok" if database_ok else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database=database_ok,
        timezone=settings.timezone,
        business_date=settings.today(),
    )
