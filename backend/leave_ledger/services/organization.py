# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_ledger.db import atomic
from leave_ledger.exceptions import NotFoundError, StateConflictError
from leave_ledger.models.enums import AuditAction, AuditEntityType, EmployeeRole, LeaveCategory
from leave_ledger.models.leave_type import LeaveType
from leave_ledger.models.organization import Employee, Position
from leave_ledger.schemas.organization import (
    EmployeeListResponse,
    EmployeeResponse,
    LeaveTypeListResponse,
    LeaveTypeResponse,
    PositionListResponse,
    PositionResponse,
)
from leave_ledger.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.auth import AuthContext
    from leave_ledger.schemas.organization import (
        CreateEmployeeRequest,
        CreateLeaveTypeRequest,
        CreatePositionRequest,
        UpdatePositionRequest,
    )


# ---------------------------------------------------------------------------
# Lookups shared with the request and ledger services
# ---------------------------------------------------------------------------


async def get_position_or_404(session: AsyncSession, position_id: uuid.UUID) -> Position:
    position = await session.get(Position, position_id)
    if position is None:
        raise NotFoundError("Position not found")
    return position


async def get_employee_or_404(session: AsyncSession, employee_id: uuid.UUID) -> Employee:
    employee = await session.get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


async def get_leave_type_or_404(session: AsyncSession, leave_type_id: uuid.UUID) -> LeaveType:
    leave_type = await session.get(LeaveType, leave_type_id)
    if leave_type is None:
        raise NotFoundError("Leave type not found")
    return leave_type


async def resolve_leave_type(session: AsyncSession, identifier: str) -> LeaveType:
    """Resolve a leave type from its id or its Thai/English display name.

    Used once at the API boundary; everything downstream works with the id.
    """
    identifier = identifier.strip()
    try:
        leave_type_id = uuid.UUID(identifier)
    except ValueError:
        result = await session.execute(
            select(LeaveType)
            .where(or_(col(LeaveType.name_th) == identifier, col(LeaveType.name_en) == identifier))
            .order_by(col(LeaveType.is_active).desc(), col(LeaveType.created_at))
            .limit(1)
        )
        leave_type = result.scalar_one_or_none()
        if leave_type is None:
            raise NotFoundError(f"Leave type '{identifier}' not found") from None
        return leave_type
    return await get_leave_type_or_404(session, leave_type_id)


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------


def _build_position_response(position: Position) -> PositionResponse:
    return PositionResponse(
        id=position.id,
        name=position.name,
        reset_on_new_year=position.reset_on_new_year,
        created_at=position.created_at,
    )


async def list_positions(session: AsyncSession) -> PositionListResponse:
    result = await session.execute(select(Position).order_by(col(Position.name)))
    items = [_build_position_response(p) for p in result.scalars().all()]
    return PositionListResponse(items=items, total=len(items))


async def create_position(session: AsyncSession, auth: AuthContext, payload: CreatePositionRequest) -> PositionResponse:
    position = Position(name=payload.name, reset_on_new_year=payload.reset_on_new_year)
    try:
        async with atomic(session):
            session.add(position)
            await session.flush()
            await write_audit_log(
                session,
                actor_id=auth.user_id,
                entity_type=AuditEntityType.POSITION,
                entity_id=position.id,
                action=AuditAction.CREATE,
                after_json=model_to_audit_dict(position),
            )
    except IntegrityError:
        raise StateConflictError(f"Position '{payload.name}' already exists") from None
    return _build_position_response(position)


async def update_position(
    session: AsyncSession,
    auth: AuthContext,
    position_id: uuid.UUID,
    payload: UpdatePositionRequest,
) -> PositionResponse:
    try:
        async with atomic(session):
            position = await get_position_or_404(session, position_id)
            before = model_to_audit_dict(position)
            if payload.name is not None:
                position.name = payload.name
            if payload.reset_on_new_year is not None:
                position.reset_on_new_year = payload.reset_on_new_year
            await session.flush()
            await write_audit_log(
                session,
                actor_id=auth.user_id,
                entity_type=AuditEntityType.POSITION,
                entity_id=position.id,
                action=AuditAction.UPDATE,
                before_json=before,
                after_json=model_to_audit_dict(position),
            )
    except IntegrityError:
        raise StateConflictError(f"Position '{payload.name}' already exists") from None
    return _build_position_response(position)


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------


def _build_employee_response(employee: Employee) -> EmployeeResponse:
    return EmployeeResponse(
        id=employee.id,
        name=employee.name,
        email=employee.email,
        role=EmployeeRole(employee.role),
        position_id=employee.position_id,
        created_at=employee.created_at,
    )


async def list_employees(session: AsyncSession, position_id: uuid.UUID | None = None) -> EmployeeListResponse:
    query = select(Employee).order_by(col(Employee.name))
    if position_id is not None:
        query = query.where(col(Employee.position_id) == position_id)
    result = await session.execute(query)
    items = [_build_employee_response(e) for e in result.scalars().all()]
    return EmployeeListResponse(items=items, total=len(items))


async def get_employee(session: AsyncSession, employee_id: uuid.UUID) -> EmployeeResponse:
    return _build_employee_response(await get_employee_or_404(session, employee_id))


async def create_employee(session: AsyncSession, auth: AuthContext, payload: CreateEmployeeRequest) -> EmployeeResponse:
    async with atomic(session):
        if payload.position_id is not None:
            await get_position_or_404(session, payload.position_id)
        employee = Employee(
            name=payload.name,
            email=payload.email,
            role=payload.role.value,
            position_id=payload.position_id,
        )
        session.add(employee)
        await session.flush()
        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.EMPLOYEE,
            entity_id=employee.id,
            action=AuditAction.CREATE,
            after_json=model_to_audit_dict(employee),
        )
    return _build_employee_response(employee)


# ---------------------------------------------------------------------------
# Leave types
# ---------------------------------------------------------------------------


def _build_leave_type_response(leave_type: LeaveType) -> LeaveTypeResponse:
    return LeaveTypeResponse(
        id=leave_type.id,
        name_th=leave_type.name_th,
        name_en=leave_type.name_en,
        category=LeaveCategory(leave_type.category),
        is_active=leave_type.is_active,
        created_at=leave_type.created_at,
    )


async def list_leave_types(session: AsyncSession, include_inactive: bool = False) -> LeaveTypeListResponse:
    query = select(LeaveType).order_by(col(LeaveType.name_en))
    if not include_inactive:
        query = query.where(col(LeaveType.is_active).is_(True))
    result = await session.execute(query)
    items = [_build_leave_type_response(lt) for lt in result.scalars().all()]
    return LeaveTypeListResponse(items=items, total=len(items))


async def create_leave_type(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateLeaveTypeRequest,
) -> LeaveTypeResponse:
    async with atomic(session):
        leave_type = LeaveType(name_th=payload.name_th, name_en=payload.name_en, category=payload.category.value)
        session.add(leave_type)
        await session.flush()
        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE_TYPE,
            entity_id=leave_type.id,
            action=AuditAction.CREATE,
            after_json=model_to_audit_dict(leave_type),
        )
    return _build_leave_type_response(leave_type)
