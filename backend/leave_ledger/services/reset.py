# ruff: noqa: TC003
"""Yearly reset of leave usage.

Clears the usage rows of every employee whose position opts into the new-year
reset. Entitlements are never touched, and the reset commits or rolls back as
a single unit.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlmodel import col

from leave_ledger.db import atomic
from leave_ledger.exceptions import NotFoundError, StateConflictError
from leave_ledger.models.audit import AuditLog
from leave_ledger.models.enums import AuditAction, AuditEntityType, ResetStrategy
from leave_ledger.models.organization import Employee, Position
from leave_ledger.models.usage import LeaveUsage
from leave_ledger.services.audit import SYSTEM_ACTOR, write_audit_log
from leave_ledger.services.notifier import ADMIN_ROOM, USAGE_RESET, LeaveEvent, publish_safely

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.config import Settings
    from leave_ledger.services.notifier import LeaveEventNotifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResetResult:
    """Outcome of a reset run."""

    strategy: ResetStrategy
    positions: int
    employees: int
    affected_rows: int
    message: str


def _is_new_year(today: date) -> bool:
    return today.month == 1 and today.day == 1


async def scheduled_reset_done(session: AsyncSession, year: int, settings: Settings) -> bool:
    """Whether the scheduler already reset usage during ``year`` in the business timezone.

    The system actor's RESET audit row is the marker, so the answer survives
    worker restarts.
    """
    zone = ZoneInfo(settings.timezone)
    starts = datetime(year, 1, 1, tzinfo=zone).astimezone(UTC)
    ends = datetime(year + 1, 1, 1, tzinfo=zone).astimezone(UTC)
    result = await session.execute(
        select(col(AuditLog.id))
        .where(
            col(AuditLog.action) == AuditAction.RESET.value,
            col(AuditLog.actor_id) == SYSTEM_ACTOR,
            col(AuditLog.created_at) >= starts,
            col(AuditLog.created_at) < ends,
        )
        .limit(1)
    )
    return result.first() is not None


async def _apply_strategy(session: AsyncSession, employee_ids: list[uuid.UUID], strategy: ResetStrategy) -> int:
    """Zero or delete the usage rows of ``employee_ids``; returns rows affected."""
    if not employee_ids:
        return 0
    result = await session.execute(
        select(LeaveUsage).where(col(LeaveUsage.employee_id).in_(employee_ids)).with_for_update()
    )
    usages = list(result.scalars().all())
    for usage in usages:
        if strategy == ResetStrategy.DELETE:
            await session.delete(usage)
        else:
            usage.days_used = 0
            usage.hours_used = 0
            usage.version += 1
    await session.flush()
    return len(usages)


async def run_yearly_reset(
    session: AsyncSession,
    *,
    settings: Settings,
    position_id: uuid.UUID | None = None,
    force: bool = False,
    strategy: ResetStrategy = ResetStrategy.ZERO,
    today: date | None = None,
    actor_id: uuid.UUID = SYSTEM_ACTOR,
    notifier: LeaveEventNotifier | None = None,
    once_per_year: bool = False,
) -> ResetResult:
    """Reset usage for the positions that opt into the new-year reset.

    Only runs on January 1st in the business timezone unless ``force`` is set.
    With ``position_id`` the scope is that single position, whatever its
    reset flag. With ``once_per_year`` (the scheduler) a second run in the
    same year changes nothing.
    """
    today = today or settings.today()
    if not force and not _is_new_year(today):
        raise StateConflictError(
            "Yearly reset only runs on January 1st; pass force to run it now",
            context={"today": today.isoformat()},
        )

    async with atomic(session):
        if once_per_year and await scheduled_reset_done(session, today.year, settings):
            logger.info("Yearly reset for %d already ran, skipping", today.year)
            return ResetResult(
                strategy=strategy,
                positions=0,
                employees=0,
                affected_rows=0,
                message=f"Leave usage was already reset for {today.year}",
            )

        if position_id is not None:
            position = await session.get(Position, position_id)
            if position is None:
                raise NotFoundError("Position not found")
            position_ids = [position.id]
        else:
            result = await session.execute(
                select(col(Position.id)).where(col(Position.reset_on_new_year).is_(True))
            )
            position_ids = list(result.scalars().all())

        if not position_ids:
            logger.info("Yearly reset: no position opts into the reset, nothing to do")
            return ResetResult(
                strategy=strategy,
                positions=0,
                employees=0,
                affected_rows=0,
                message="No positions are configured for the yearly reset",
            )

        emp_result = await session.execute(select(col(Employee.id)).where(col(Employee.position_id).in_(position_ids)))
        employee_ids = list(emp_result.scalars().all())
        affected = await _apply_strategy(session, employee_ids, strategy)

        await write_audit_log(
            session,
            actor_id=actor_id,
            entity_type=AuditEntityType.USAGE,
            entity_id=position_id,
            action=AuditAction.RESET,
            after_json={
                "strategy": strategy.value,
                "position_ids": [str(p) for p in position_ids],
                "employees": len(employee_ids),
                "affected_rows": affected,
                "forced": force,
            },
        )

    logger.info(
        "Yearly reset (%s): %d position(s), %d employee(s), %d usage row(s)",
        strategy.value,
        len(position_ids),
        len(employee_ids),
        affected,
    )
    reset = ResetResult(
        strategy=strategy,
        positions=len(position_ids),
        employees=len(employee_ids),
        affected_rows=affected,
        message=f"Reset leave usage for {len(employee_ids)} employee(s)",
    )
    if notifier is not None:
        await publish_safely(
            notifier,
            [LeaveEvent(event=USAGE_RESET, room=ADMIN_ROOM, payload={"employees": reset.employees})],
        )
    return reset


async def reset_usage_for_employees(
    session: AsyncSession,
    *,
    employee_ids: list[uuid.UUID],
    strategy: ResetStrategy = ResetStrategy.ZERO,
    actor_id: uuid.UUID = SYSTEM_ACTOR,
    notifier: LeaveEventNotifier | None = None,
) -> ResetResult:
    """Reset usage for an explicit list of employees, on any date.

    Unknown IDs are ignored; the result reports how many employees matched.
    """
    async with atomic(session):
        result = await session.execute(select(col(Employee.id)).where(col(Employee.id).in_(employee_ids)))
        found = list(result.scalars().all())
        affected = await _apply_strategy(session, found, strategy)
        await write_audit_log(
            session,
            actor_id=actor_id,
            entity_type=AuditEntityType.USAGE,
            entity_id=None,
            action=AuditAction.RESET,
            after_json={
                "strategy": strategy.value,
                "employee_ids": [str(e) for e in found],
                "affected_rows": affected,
            },
        )

    logger.info("Reset usage (%s) for %d employee(s), %d row(s)", strategy.value, len(found), affected)
    reset = ResetResult(
        strategy=strategy,
        positions=0,
        employees=len(found),
        affected_rows=affected,
        message=f"Reset leave usage for {len(found)} employee(s)",
    )
    if notifier is not None:
        await publish_safely(
            notifier,
            [LeaveEvent(event=USAGE_RESET, room=ADMIN_ROOM, payload={"employees": reset.employees})],
        )
    return reset
