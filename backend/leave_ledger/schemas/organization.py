# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from leave_ledger.models.enums import EmployeeRole, LeaveCategory

# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------


class CreatePositionRequest(BaseModel):
    """Request body for creating a position."""

    name: str = Field(min_length=1, max_length=255)
    reset_on_new_year: bool = True


class UpdatePositionRequest(BaseModel):
    """Request body for updating a position."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    reset_on_new_year: bool | None = None


class PositionResponse(BaseModel):
    id: uuid.UUID
    name: str
    reset_on_new_year: bool
    created_at: datetime


class PositionListResponse(BaseModel):
    items: list[PositionResponse]
    total: int


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------


class CreateEmployeeRequest(BaseModel):
    """Request body for creating an employee."""

    name: str = Field(min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    role: EmployeeRole = EmployeeRole.EMPLOYEE
    position_id: uuid.UUID | None = None


class EmployeeResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str | None
    role: EmployeeRole
    position_id: uuid.UUID | None
    created_at: datetime


class EmployeeListResponse(BaseModel):
    items: list[EmployeeResponse]
    total: int


# ---------------------------------------------------------------------------
# Leave types
# ---------------------------------------------------------------------------


class CreateLeaveTypeRequest(BaseModel):
    """Request body for creating a leave type."""

    name_th: str = Field(min_length=1, max_length=255)
    name_en: str = Field(min_length=1, max_length=255)
    category: LeaveCategory = LeaveCategory.OTHER


class LeaveTypeResponse(BaseModel):
    id: uuid.UUID
    name_th: str
    name_en: str
    category: LeaveCategory
    is_active: bool
    created_at: datetime


class LeaveTypeListResponse(BaseModel):
    items: list[LeaveTypeResponse]
    total: int
