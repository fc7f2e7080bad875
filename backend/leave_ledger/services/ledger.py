# ruff: noqa: TC003
"""Leave-quota ledger: quota check, consume, revert, and the usage read path.

Every write here expects to run inside the caller's transaction (see
``leave_ledger.db.atomic``). Usage and entitlement rows are read with
``SELECT ... FOR UPDATE`` so the read-check-write sequence of two concurrent
approvals for the same employee and leave type is serialized by the database.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_ledger.exceptions import ConfigurationError, QuotaExceededError
from leave_ledger.models.entitlement import LeaveEntitlement
from leave_ledger.models.leave_type import LeaveType
from leave_ledger.models.organization import Employee
from leave_ledger.models.usage import LeaveUsage
from leave_ledger.schemas.usage import (
    QuotaSummaryItem,
    QuotaSummaryResponse,
    UsageListResponse,
    UsageResponse,
    UsageSummaryItem,
    UsageSummaryResponse,
)
from leave_ledger.services.duration import LeaveDuration, minutes_to_days
from leave_ledger.services.organization import get_employee_or_404

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.config import Settings

logger = logging.getLogger(__name__)

_MINUTES_PER_HOUR = 60


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of an admitted quota check."""

    unlimited: bool
    quota_minutes: int = 0
    used_minutes: int = 0
    requested_minutes: int = 0
    hours_per_day: int = 8

    @property
    def remaining_days(self) -> Decimal:
        """Quota left before this request, in days, never below zero."""
        remaining = max(self.quota_minutes - self.used_minutes, 0)
        return minutes_to_days(remaining, self.hours_per_day)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _usage_stmt(employee_id: uuid.UUID, leave_type_id: uuid.UUID) -> Select[tuple[LeaveUsage]]:
    return select(LeaveUsage).where(
        col(LeaveUsage.employee_id) == employee_id,
        col(LeaveUsage.leave_type_id) == leave_type_id,
    )


def _entitlement_stmt(position_id: uuid.UUID, leave_type_id: uuid.UUID) -> Select[tuple[LeaveEntitlement]]:
    return select(LeaveEntitlement).where(
        col(LeaveEntitlement.position_id) == position_id,
        col(LeaveEntitlement.leave_type_id) == leave_type_id,
    )


def usage_minutes(usage: LeaveUsage, hours_per_day: int) -> int:
    """Total booked minutes of a usage row."""
    return (usage.days_used * hours_per_day + usage.hours_used) * _MINUTES_PER_HOUR


def quota_minutes(entitlement: LeaveEntitlement, hours_per_day: int) -> int:
    """Entitlement expressed in minutes, rounded down to whole minutes."""
    total = Decimal(entitlement.quota_days) * hours_per_day * _MINUTES_PER_HOUR
    return int(total.to_integral_value(rounding=ROUND_FLOOR))


def _store_minutes(usage: LeaveUsage, total_minutes: int, hours_per_day: int) -> None:
    """Write a total back onto the usage row in normalized day+hour form."""
    normalized = LeaveDuration(minutes=max(total_minutes, 0), hours_per_day=hours_per_day)
    usage.days_used = normalized.days
    usage.hours_used = normalized.hours
    usage.version += 1


async def _get_usage_for_update(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
) -> LeaveUsage | None:
    """Get the usage row with a FOR UPDATE lock, or None if absent."""
    result = await session.execute(_usage_stmt(employee_id, leave_type_id).with_for_update())
    return result.scalar_one_or_none()


async def _get_or_create_usage_for_update(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
) -> LeaveUsage:
    """Get the usage row with a FOR UPDATE lock, creating it if absent."""
    usage = await _get_usage_for_update(session, employee_id, leave_type_id)
    if usage is None:
        usage = LeaveUsage(employee_id=employee_id, leave_type_id=leave_type_id, days_used=0, hours_used=0)
        session.add(usage)
        await session.flush()
    return usage


def is_unlimited(leave_type: LeaveType, settings: Settings) -> bool:
    """Whether the leave type's category bypasses the quota check."""
    return leave_type.category in settings.unlimited_leave_categories


async def require_entitlement(
    session: AsyncSession,
    employee: Employee,
    leave_type: LeaveType,
    settings: Settings,
) -> None:
    """Raise ConfigurationError unless a quota is configured for the employee.

    A lock-free pre-check for request submission; approval re-checks under lock.
    """
    if is_unlimited(leave_type, settings):
        return
    if employee.position_id is None:
        raise ConfigurationError(f"Employee {employee.name} has no position, so no leave quota applies")
    result = await session.execute(_entitlement_stmt(employee.position_id, leave_type.id))
    if result.scalar_one_or_none() is None:
        raise ConfigurationError("No leave quota is configured for this position and leave type")


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


async def check_quota(
    session: AsyncSession,
    employee: Employee,
    leave_type: LeaveType,
    duration: LeaveDuration,
    settings: Settings,
) -> QuotaDecision:
    """Admit or deny ``duration`` against the employee's remaining quota.

    Locks the entitlement row and the usage row for the rest of the
    transaction. Raises ``ConfigurationError`` when no entitlement exists and
    ``QuotaExceededError`` when the request does not fit.
    """
    if is_unlimited(leave_type, settings):
        return QuotaDecision(unlimited=True, requested_minutes=duration.charged_minutes)

    if employee.position_id is None:
        raise ConfigurationError(f"Employee {employee.name} has no position, so no leave quota applies")

    result = await session.execute(_entitlement_stmt(employee.position_id, leave_type.id).with_for_update())
    entitlement = result.scalar_one_or_none()
    if entitlement is None:
        raise ConfigurationError("No leave quota is configured for this position and leave type")

    usage = await _get_or_create_usage_for_update(session, employee.id, leave_type.id)

    hours_per_day = duration.hours_per_day
    decision = QuotaDecision(
        unlimited=False,
        quota_minutes=quota_minutes(entitlement, hours_per_day),
        used_minutes=usage_minutes(usage, hours_per_day),
        requested_minutes=duration.charged_minutes,
        hours_per_day=hours_per_day,
    )

    if decision.used_minutes + decision.requested_minutes > decision.quota_minutes:
        logger.info(
            "Quota denied employee=%s leave_type=%s used=%d requested=%d quota=%d",
            employee.id,
            leave_type.id,
            decision.used_minutes,
            decision.requested_minutes,
            decision.quota_minutes,
        )
        raise QuotaExceededError(decision.remaining_days)

    return decision


async def consume_usage(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    duration: LeaveDuration,
) -> LeaveUsage:
    """Book ``duration`` onto the usage row, creating it on first use.

    Not idempotent: the request state machine guarantees a request is
    consumed at most once.
    """
    hours_per_day = duration.hours_per_day
    usage = await _get_or_create_usage_for_update(session, employee_id, leave_type_id)
    _store_minutes(usage, usage_minutes(usage, hours_per_day) + duration.charged_minutes, hours_per_day)
    await session.flush()

    logger.info(
        "Consumed %dd %dh employee=%s leave_type=%s -> used %dd %dh",
        duration.days,
        duration.hours,
        employee_id,
        leave_type_id,
        usage.days_used,
        usage.hours_used,
    )
    return usage


async def revert_usage(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    duration: LeaveDuration,
) -> LeaveUsage | None:
    """Take ``duration`` back off the usage row.

    The subtraction borrows across days and hours and is floored at zero, so
    consuming then reverting the same duration restores the row exactly.
    Returns None (and changes nothing) when the employee has no usage row.
    """
    hours_per_day = duration.hours_per_day
    usage = await _get_usage_for_update(session, employee_id, leave_type_id)
    if usage is None:
        logger.warning("No usage row to revert for employee=%s leave_type=%s", employee_id, leave_type_id)
        return None

    current = usage_minutes(usage, hours_per_day)
    if duration.charged_minutes > current:
        logger.warning(
            "Revert of %d minutes exceeds booked %d for employee=%s leave_type=%s; clamping at zero",
            duration.charged_minutes,
            current,
            employee_id,
            leave_type_id,
        )
    _store_minutes(usage, current - duration.charged_minutes, hours_per_day)
    await session.flush()

    logger.info(
        "Reverted %dd %dh employee=%s leave_type=%s -> used %dd %dh",
        duration.days,
        duration.hours,
        employee_id,
        leave_type_id,
        usage.days_used,
        usage.hours_used,
    )
    return usage


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


def _build_usage_response(usage: LeaveUsage, leave_type: LeaveType | None) -> UsageResponse:
    return UsageResponse(
        employee_id=usage.employee_id,
        leave_type_id=usage.leave_type_id,
        leave_type_name_th=leave_type.name_th if leave_type else None,
        leave_type_name_en=leave_type.name_en if leave_type else None,
        days_used=usage.days_used,
        hours_used=usage.hours_used,
        updated_at=usage.updated_at,
    )


async def list_employee_usage(session: AsyncSession, employee_id: uuid.UUID) -> UsageListResponse:
    """All usage rows of one employee, with leave type names."""
    await get_employee_or_404(session, employee_id)
    result = await session.execute(
        select(LeaveUsage, LeaveType)
        .join(LeaveType, col(LeaveType.id) == col(LeaveUsage.leave_type_id), isouter=True)
        .where(col(LeaveUsage.employee_id) == employee_id)
        .order_by(col(LeaveType.name_en))
    )
    items = [_build_usage_response(usage, leave_type) for usage, leave_type in result.all()]
    return UsageListResponse(items=items, total=len(items))


async def get_employee_quota_summary(
    session: AsyncSession,
    employee_id: uuid.UUID,
    settings: Settings,
) -> QuotaSummaryResponse:
    """Quota, usage, and remaining days for every active leave type."""
    employee = await get_employee_or_404(session, employee_id)
    hours_per_day = settings.hours_per_day

    leave_types = list(
        (
            await session.execute(
                select(LeaveType).where(col(LeaveType.is_active).is_(True)).order_by(col(LeaveType.name_en))
            )
        )
        .scalars()
        .all()
    )

    entitlements: dict[uuid.UUID, LeaveEntitlement] = {}
    if employee.position_id is not None:
        ent_result = await session.execute(
            select(LeaveEntitlement).where(col(LeaveEntitlement.position_id) == employee.position_id)
        )
        entitlements = {e.leave_type_id: e for e in ent_result.scalars().all()}

    usage_result = await session.execute(select(LeaveUsage).where(col(LeaveUsage.employee_id) == employee_id))
    usages = {u.leave_type_id: u for u in usage_result.scalars().all()}

    items: list[QuotaSummaryItem] = []
    for leave_type in leave_types:
        usage = usages.get(leave_type.id)
        used = usage_minutes(usage, hours_per_day) if usage else 0
        used_duration = LeaveDuration(minutes=used, hours_per_day=hours_per_day)
        entitlement = entitlements.get(leave_type.id)
        unlimited = is_unlimited(leave_type, settings)

        remaining_days: Decimal | None = None
        if entitlement is not None and not unlimited:
            remaining = max(quota_minutes(entitlement, hours_per_day) - used, 0)
            remaining_days = minutes_to_days(remaining, hours_per_day)

        items.append(
            QuotaSummaryItem(
                leave_type_id=leave_type.id,
                leave_type_name_th=leave_type.name_th,
                leave_type_name_en=leave_type.name_en,
                category=leave_type.category,
                quota_days=entitlement.quota_days if entitlement else None,
                days_used=used_duration.days,
                hours_used=used_duration.hours,
                remaining_days=remaining_days,
                is_unlimited=unlimited,
            )
        )

    return QuotaSummaryResponse(employee_id=employee.id, hours_per_day=hours_per_day, items=items)


async def get_usage_summary(session: AsyncSession, settings: Settings) -> UsageSummaryResponse:
    """Usage totals per leave type across all employees."""
    hours_per_day = settings.hours_per_day
    total_minutes = func.sum(
        (col(LeaveUsage.days_used) * hours_per_day + col(LeaveUsage.hours_used)) * _MINUTES_PER_HOUR
    )
    result = await session.execute(
        select(
            col(LeaveType.id),
            col(LeaveType.name_th),
            col(LeaveType.name_en),
            func.coalesce(total_minutes, 0).label("minutes"),
            func.count(col(LeaveUsage.employee_id)).label("employees"),
        )
        .join(LeaveUsage, col(LeaveUsage.leave_type_id) == col(LeaveType.id))
        .group_by(col(LeaveType.id), col(LeaveType.name_th), col(LeaveType.name_en))
        .order_by(col(LeaveType.name_en))
    )

    items: list[UsageSummaryItem] = []
    for row in result.all():
        totals = LeaveDuration(minutes=int(row.minutes), hours_per_day=hours_per_day)
        items.append(
            UsageSummaryItem(
                leave_type_id=row.id,
                leave_type_name_th=row.name_th,
                leave_type_name_en=row.name_en,
                total_days=totals.days,
                total_hours=totals.hours,
                employee_count=int(row.employees),
            )
        )
    return UsageSummaryResponse(items=items, total=len(items))
