# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, Response, status

from leave_ledger.api.deps import AdminDep, AuthDep, NotifierDep, SettingsDep
from leave_ledger.db import SessionDep
from leave_ledger.exceptions import PermissionDeniedError
from leave_ledger.models.enums import RequestStatus
from leave_ledger.schemas.request import (
    AdminCreateRequestPayload,
    DecisionPayload,
    LeaveRequestListResponse,
    LeaveRequestResponse,
    RejectPayload,
    SubmitRequestPayload,
    UpdateRequestPayload,
)
from leave_ledger.services import request as request_service

requests_router = APIRouter(prefix="/leave-requests", tags=["leave-requests"])


@requests_router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    payload: SubmitRequestPayload,
    session: SessionDep,
    auth: AuthDep,
    settings: SettingsDep,
    notifier: NotifierDep,
) -> LeaveRequestResponse:
    """Submit a leave request for the authenticated employee."""
    return await request_service.submit_request(session, auth, payload, settings, notifier)


@requests_router.post("/admin", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request_for_employee(
    payload: AdminCreateRequestPayload,
    session: SessionDep,
    auth: AdminDep,
    settings: SettingsDep,
    notifier: NotifierDep,
) -> LeaveRequestResponse:
    """File a request on an employee's behalf, optionally approved at once (admin only)."""
    return await request_service.create_request_for_employee(session, auth, payload, settings, notifier)


@requests_router.get("", response_model=LeaveRequestListResponse)
async def list_requests(
    session: SessionDep,
    auth: AuthDep,
    settings: SettingsDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    employee_id: uuid.UUID | None = Query(default=None),
    leave_type_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """List leave requests. Employees only see their own."""
    if not auth.is_admin:
        if employee_id is not None and not auth.can_access(employee_id):
            raise PermissionDeniedError("Not authorized to list another employee's requests")
        employee_id = auth.user_id
    return await request_service.list_requests(
        session, settings, status_filter, employee_id, leave_type_id, offset, limit
    )


@requests_router.get("/{request_id}", response_model=LeaveRequestResponse)
async def get_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    settings: SettingsDep,
) -> LeaveRequestResponse:
    """Get a single leave request."""
    response = await request_service.get_request(session, request_id, settings)
    if not auth.can_access(response.employee_id):
        raise PermissionDeniedError("Not authorized to view this leave request")
    return response


@requests_router.put("/{request_id}", response_model=LeaveRequestResponse)
async def update_request(
    request_id: uuid.UUID,
    payload: UpdateRequestPayload,
    session: SessionDep,
    auth: AuthDep,
    settings: SettingsDep,
    notifier: NotifierDep,
) -> LeaveRequestResponse:
    """Edit a pending leave request."""
    return await request_service.update_request(session, auth, request_id, payload, settings, notifier)


@requests_router.post("/{request_id}/approve", response_model=LeaveRequestResponse)
async def approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    settings: SettingsDep,
    notifier: NotifierDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    """Approve a pending request, consuming quota (admin only)."""
    return await request_service.approve_request(session, auth, request_id, settings, notifier, payload)


@requests_router.post("/{request_id}/reject", response_model=LeaveRequestResponse)
async def reject_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    settings: SettingsDep,
    notifier: NotifierDep,
    payload: RejectPayload | None = None,
) -> LeaveRequestResponse:
    """Reject a request; an approved request gives its quota back (admin only)."""
    return await request_service.reject_request(session, auth, request_id, settings, notifier, payload)


@requests_router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    settings: SettingsDep,
    notifier: NotifierDep,
) -> Response:
    """Delete a request, reverting its quota consumption if it was approved."""
    await request_service.delete_request(session, auth, request_id, settings, notifier)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
