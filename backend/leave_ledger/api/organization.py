# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from leave_ledger.api.deps import AdminDep, AuthDep, ensure_self_or_admin
from leave_ledger.db import SessionDep
from leave_ledger.schemas.organization import (
    CreateEmployeeRequest,
    CreateLeaveTypeRequest,
    CreatePositionRequest,
    EmployeeListResponse,
    EmployeeResponse,
    LeaveTypeListResponse,
    LeaveTypeResponse,
    PositionListResponse,
    PositionResponse,
    UpdatePositionRequest,
)
from leave_ledger.services import organization as organization_service

positions_router = APIRouter(prefix="/positions", tags=["positions"])
employees_router = APIRouter(prefix="/employees", tags=["employees"])
leave_types_router = APIRouter(prefix="/leave-types", tags=["leave-types"])


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------


@positions_router.get("", response_model=PositionListResponse)
async def list_positions(session: SessionDep, _auth: AuthDep) -> PositionListResponse:
    """List positions."""
    return await organization_service.list_positions(session)


@positions_router.post("", response_model=PositionResponse, status_code=status.HTTP_201_CREATED)
async def create_position(payload: CreatePositionRequest, session: SessionDep, auth: AdminDep) -> PositionResponse:
    """Create a position (admin only)."""
    return await organization_service.create_position(session, auth, payload)


@positions_router.put("/{position_id}", response_model=PositionResponse)
async def update_position(
    position_id: uuid.UUID,
    payload: UpdatePositionRequest,
    session: SessionDep,
    auth: AdminDep,
) -> PositionResponse:
    """Rename a position or change its yearly reset flag (admin only)."""
    return await organization_service.update_position(session, auth, position_id, payload)


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------


@employees_router.get("", response_model=EmployeeListResponse)
async def list_employees(
    session: SessionDep,
    _auth: AdminDep,
    position_id: uuid.UUID | None = Query(default=None),
) -> EmployeeListResponse:
    """List employees (admin only)."""
    return await organization_service.list_employees(session, position_id)


@employees_router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(employee_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> EmployeeResponse:
    """Get one employee."""
    ensure_self_or_admin(auth, employee_id)
    return await organization_service.get_employee(session, employee_id)


@employees_router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(payload: CreateEmployeeRequest, session: SessionDep, auth: AdminDep) -> EmployeeResponse:
    """Create an employee (admin only)."""
    return await organization_service.create_employee(session, auth, payload)


# ---------------------------------------------------------------------------
# Leave types
# ---------------------------------------------------------------------------


@leave_types_router.get("", response_model=LeaveTypeListResponse)
async def list_leave_types(
    session: SessionDep,
    _auth: AuthDep,
    include_inactive: bool = Query(default=False),
) -> LeaveTypeListResponse:
    """List leave types."""
    return await organization_service.list_leave_types(session, include_inactive)


@leave_types_router.post("", response_model=LeaveTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_type(payload: CreateLeaveTypeRequest, session: SessionDep, auth: AdminDep) -> LeaveTypeResponse:
    """Create a leave type (admin only)."""
    return await organization_service.create_leave_type(session, auth, payload)
