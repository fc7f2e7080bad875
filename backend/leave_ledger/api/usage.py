# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter

from leave_ledger.api.deps import AdminDep, AuthDep, NotifierDep, SettingsDep, ensure_self_or_admin
from leave_ledger.db import SessionDep
from leave_ledger.schemas.usage import (
    QuotaSummaryResponse,
    ResetByEmployeesPayload,
    ResetPayload,
    ResetResponse,
    UsageListResponse,
    UsageSummaryResponse,
)
from leave_ledger.services import ledger
from leave_ledger.services.reset import ResetResult, reset_usage_for_employees, run_yearly_reset

employee_usage_router = APIRouter(prefix="/employees/{employee_id}", tags=["usage"])
usage_router = APIRouter(prefix="/usage", tags=["usage"])


def _build_reset_response(result: ResetResult) -> ResetResponse:
    return ResetResponse(
        message=result.message,
        strategy=result.strategy,
        positions=result.positions,
        employees=result.employees,
        affected_rows=result.affected_rows,
    )


@employee_usage_router.get("/usage", response_model=UsageListResponse)
async def get_employee_usage(employee_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> UsageListResponse:
    """Usage rows of one employee."""
    ensure_self_or_admin(auth, employee_id)
    return await ledger.list_employee_usage(session, employee_id)


@employee_usage_router.get("/quota", response_model=QuotaSummaryResponse)
async def get_employee_quota(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    settings: SettingsDep,
) -> QuotaSummaryResponse:
    """Quota, usage, and remaining days per leave type for one employee."""
    ensure_self_or_admin(auth, employee_id)
    return await ledger.get_employee_quota_summary(session, employee_id, settings)


@usage_router.get("/summary", response_model=UsageSummaryResponse)
async def get_usage_summary(session: SessionDep, _auth: AdminDep, settings: SettingsDep) -> UsageSummaryResponse:
    """Usage totals per leave type across all employees (admin only)."""
    return await ledger.get_usage_summary(session, settings)


@usage_router.post("/reset", response_model=ResetResponse)
async def reset_usage(
    payload: ResetPayload,
    session: SessionDep,
    auth: AdminDep,
    settings: SettingsDep,
    notifier: NotifierDep,
) -> ResetResponse:
    """Run the yearly reset now (admin only); outside January 1st it needs ``force``."""
    result = await run_yearly_reset(
        session,
        settings=settings,
        position_id=payload.position_id,
        force=payload.force,
        strategy=payload.strategy,
        actor_id=auth.user_id,
        notifier=notifier,
    )
    return _build_reset_response(result)


@usage_router.post("/reset-by-employees", response_model=ResetResponse)
async def reset_usage_by_employees(
    payload: ResetByEmployeesPayload,
    session: SessionDep,
    auth: AdminDep,
    notifier: NotifierDep,
) -> ResetResponse:
    """Reset usage for an explicit list of employees (admin only)."""
    result = await reset_usage_for_employees(
        session,
        employee_ids=payload.employee_ids,
        strategy=payload.strategy,
        actor_id=auth.user_id,
        notifier=notifier,
    )
    return _build_reset_response(result)
