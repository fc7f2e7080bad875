# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from leave_ledger.models.enums import ResetStrategy

# ---------------------------------------------------------------------------
# Usage response schemas
# ---------------------------------------------------------------------------


class UsageResponse(BaseModel):
    """Consumption booked for one employee and leave type."""

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    leave_type_name_th: str | None
    leave_type_name_en: str | None
    days_used: int
    hours_used: int
    updated_at: datetime | None


class UsageListResponse(BaseModel):
    """All usage rows of an employee."""

    items: list[UsageResponse]
    total: int


class QuotaSummaryItem(BaseModel):
    """Quota position of one employee for a single leave type."""

    leave_type_id: uuid.UUID
    leave_type_name_th: str
    leave_type_name_en: str
    category: str
    quota_days: Decimal | None  # None when no entitlement is configured
    days_used: int
    hours_used: int
    remaining_days: Decimal | None  # None for unlimited or unconfigured types
    is_unlimited: bool


class QuotaSummaryResponse(BaseModel):
    """Quota position of an employee across leave types."""

    employee_id: uuid.UUID
    hours_per_day: int
    items: list[QuotaSummaryItem]


class UsageSummaryItem(BaseModel):
    """Usage totals for one leave type across employees."""

    leave_type_id: uuid.UUID
    leave_type_name_th: str
    leave_type_name_en: str
    total_days: int
    total_hours: int
    employee_count: int


class UsageSummaryResponse(BaseModel):
    """Usage totals per leave type."""

    items: list[UsageSummaryItem]
    total: int


# ---------------------------------------------------------------------------
# Reset payloads
# ---------------------------------------------------------------------------


class ResetPayload(BaseModel):
    """Request body for the yearly usage reset."""

    position_id: uuid.UUID | None = None
    force: bool = False
    strategy: ResetStrategy = ResetStrategy.ZERO


class ResetByEmployeesPayload(BaseModel):
    """Request body for resetting an explicit list of employees."""

    employee_ids: list[uuid.UUID] = Field(min_length=1)
    strategy: ResetStrategy = ResetStrategy.ZERO


class ResetResponse(BaseModel):
    """Counts reported by a reset run."""

    message: str
    strategy: ResetStrategy
    positions: int
    employees: int
    affected_rows: int
