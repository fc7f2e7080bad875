# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import Self

from pydantic import BaseModel, Field, model_validator

from leave_ledger.models.enums import DurationUnit, RequestStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


def validate_leave_range(
    start_date: date | None,
    end_date: date | None,
    start_time: time | None,
    end_time: time | None,
) -> None:
    if start_date is not None and end_date is not None and end_date < start_date:
        msg = "end_date must be on or after start_date"
        raise ValueError(msg)
    if (start_time is None) != (end_time is None):
        msg = "start_time and end_time must be given together"
        raise ValueError(msg)
    if start_time is not None and start_time == end_time:
        msg = "start_time and end_time cannot be the same"
        raise ValueError(msg)


class SubmitRequestPayload(BaseModel):
    """Request body for submitting a leave request.

    ``leave_type`` accepts the leave type's id or its Thai or English name.
    Give ``start_time`` and ``end_time`` for an hourly request.
    """

    leave_type: str = Field(min_length=1, max_length=255)
    start_date: date
    end_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    reason: str | None = Field(default=None, max_length=2000)
    contact: str | None = Field(default=None, max_length=255)
    allow_backdated: bool = False

    @model_validator(mode="after")
    def _validate_range(self) -> Self:
        if self.end_date is None:
            self.end_date = self.start_date
        validate_leave_range(self.start_date, self.end_date, self.start_time, self.end_time)
        return self


class AdminCreateRequestPayload(SubmitRequestPayload):
    """Request body for an admin filing a request on an employee's behalf."""

    employee_id: uuid.UUID
    approve: bool = False
    note: str | None = Field(default=None, max_length=1000)


class UpdateRequestPayload(BaseModel):
    """Partial update of a pending request. Omitted fields keep their value."""

    leave_type: str | None = Field(default=None, min_length=1, max_length=255)
    start_date: date | None = None
    end_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    reason: str | None = Field(default=None, max_length=2000)
    contact: str | None = Field(default=None, max_length=255)
    allow_backdated: bool = False


class DecisionPayload(BaseModel):
    """Request body for approving a request."""

    note: str | None = Field(default=None, max_length=1000)


class RejectPayload(BaseModel):
    """Request body for rejecting a request."""

    reason: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date | None
    end_date: date | None
    start_time: time | None
    end_time: time | None
    duration_unit: DurationUnit
    duration_days: int
    duration_hours: int
    reason: str | None
    contact: str | None
    status: RequestStatus
    backdated: bool
    decided_at: datetime | None
    decided_by: uuid.UUID | None
    rejection_reason: str | None
    created_at: datetime


class LeaveRequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveRequestResponse]
    total: int
