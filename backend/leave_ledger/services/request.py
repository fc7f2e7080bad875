# ruff: noqa: TC003
"""Leave request workflow: the state machine that drives the quota ledger.

Transitions and their ledger effect:

* ``pending -> approved``: quota check + consume (one transaction)
* ``pending -> rejected``: none
* ``approved -> rejected``: revert
* delete ``approved``: revert, then remove the row
* delete ``pending``/``rejected``: remove the row

Every other transition, including ``approved -> approved``, is a
``StateConflictError``; that is what keeps a request from being consumed twice.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_ledger.db import atomic
from leave_ledger.exceptions import AppError, NotFoundError, PermissionDeniedError, StateConflictError
from leave_ledger.models.enums import AuditAction, AuditEntityType, DurationUnit, RequestStatus
from leave_ledger.models.request import LeaveRequest
from leave_ledger.schemas.request import LeaveRequestListResponse, LeaveRequestResponse, validate_leave_range
from leave_ledger.services import ledger
from leave_ledger.services.audit import model_to_audit_dict, write_audit_log
from leave_ledger.services.duration import request_duration
from leave_ledger.services.notifier import (
    ADMIN_ROOM,
    LEAVE_REQUEST_CREATED,
    LEAVE_REQUEST_DELETED,
    LEAVE_REQUEST_STATUS_CHANGED,
    LEAVE_REQUEST_UPDATED,
    LeaveEvent,
    employee_room,
    publish_safely,
)
from leave_ledger.services.organization import (
    get_employee_or_404,
    get_leave_type_or_404,
    resolve_leave_type,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.config import Settings
    from leave_ledger.models.organization import Employee
    from leave_ledger.schemas.auth import AuthContext
    from leave_ledger.schemas.request import (
        AdminCreateRequestPayload,
        DecisionPayload,
        RejectPayload,
        SubmitRequestPayload,
        UpdateRequestPayload,
    )
    from leave_ledger.services.notifier import LeaveEventNotifier

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(request: LeaveRequest, hours_per_day: int) -> LeaveRequestResponse:
    """Map a request model to its response schema."""
    duration = request_duration(request, hours_per_day)
    return LeaveRequestResponse(
        id=request.id,
        employee_id=request.employee_id,
        leave_type_id=request.leave_type_id,
        start_date=request.start_date,
        end_date=request.end_date,
        start_time=request.start_time,
        end_time=request.end_time,
        duration_unit=DurationUnit(duration.unit),
        duration_days=duration.days,
        duration_hours=duration.hours,
        reason=request.reason,
        contact=request.contact,
        status=RequestStatus(request.status),
        backdated=request.backdated,
        decided_at=request.decided_at,
        decided_by=request.decided_by,
        rejection_reason=request.rejection_reason,
        created_at=request.created_at,
    )


def _status_event(request: LeaveRequest, actor_id: uuid.UUID) -> list[LeaveEvent]:
    payload = {
        "request_id": str(request.id),
        "employee_id": str(request.employee_id),
        "status": request.status,
        "decided_by": str(actor_id),
    }
    return [
        LeaveEvent(event=LEAVE_REQUEST_STATUS_CHANGED, room=employee_room(request.employee_id), payload=payload),
        LeaveEvent(event=LEAVE_REQUEST_STATUS_CHANGED, room=ADMIN_ROOM, payload=payload),
    ]


async def _get_request_or_404(
    session: AsyncSession,
    request_id: uuid.UUID,
    for_update: bool = False,
) -> LeaveRequest:
    """Fetch a request by ID. Raises 404 if not found.

    ``for_update`` locks the row so concurrent transitions of the same request
    serialize and the loser sees the winner's status.
    """
    query = select(LeaveRequest).where(col(LeaveRequest.id) == request_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Leave request not found")
    return request


def _is_backdated(request: LeaveRequest, settings: Settings) -> bool:
    return request.start_date is not None and request.start_date < settings.today()


async def _approve_in_transaction(
    session: AsyncSession,
    request: LeaveRequest,
    employee: Employee,
    actor_id: uuid.UUID,
    settings: Settings,
    note: str | None,
) -> None:
    """Quota check, consume, and mark approved. Caller owns the transaction.

    Unlimited categories skip only the quota check; their usage is still booked.
    """
    leave_type = await get_leave_type_or_404(session, request.leave_type_id)
    duration = request_duration(request, settings.hours_per_day)

    decision = await ledger.check_quota(session, employee, leave_type, duration, settings)
    await ledger.consume_usage(session, employee.id, leave_type.id, duration)

    request.status = RequestStatus.APPROVED.value
    request.decided_at = datetime.now(UTC)
    request.decided_by = actor_id
    request.rejection_reason = None
    logger.info(
        "Approved leave request %s for employee=%s (%dd %dh, unlimited=%s) by %s%s",
        request.id,
        employee.id,
        duration.days,
        duration.hours,
        decision.unlimited,
        actor_id,
        f" note={note!r}" if note else "",
    )


async def _revert_in_transaction(session: AsyncSession, request: LeaveRequest, settings: Settings) -> None:
    """Give an approved request's duration back to the ledger.

    With ``strict_revert`` a failure propagates and aborts the enclosing
    action. Otherwise the revert runs in a savepoint, and a failure is logged
    and rolled back on its own while the action goes ahead.
    """
    duration = request_duration(request, settings.hours_per_day)
    if settings.strict_revert:
        await ledger.revert_usage(session, request.employee_id, request.leave_type_id, duration)
        return

    try:
        async with session.begin_nested():
            await ledger.revert_usage(session, request.employee_id, request.leave_type_id, duration)
    except Exception:
        logger.exception(
            "Reverting usage for leave request %s failed; continuing without ledger rollback",
            request.id,
        )


# ---------------------------------------------------------------------------
# Create / update
# ---------------------------------------------------------------------------


async def submit_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: SubmitRequestPayload,
    settings: Settings,
    notifier: LeaveEventNotifier,
) -> LeaveRequestResponse:
    """Submit a pending request for the authenticated employee.

    Flow:
    1. Resolve employee and leave type (by id or name)
    2. Require a configured quota unless the leave type is unlimited
    3. Reject backdated requests unless allowed
    4. Create the request (pending) and audit it
    5. Commit, then notify admins
    """
    async with atomic(session):
        employee = await get_employee_or_404(session, auth.user_id)
        leave_type = await resolve_leave_type(session, payload.leave_type)
        await ledger.require_entitlement(session, employee, leave_type, settings)

        request = LeaveRequest(
            employee_id=employee.id,
            leave_type_id=leave_type.id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            reason=payload.reason,
            contact=payload.contact,
            status=RequestStatus.PENDING.value,
        )
        request.backdated = _is_backdated(request, settings)
        if request.backdated and not (payload.allow_backdated or settings.allow_backdated_requests):
            raise AppError("Backdated leave is not allowed", status_code=400)

        session.add(request)
        await session.flush()

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE_REQUEST,
            entity_id=request.id,
            action=AuditAction.SUBMIT,
            after_json=model_to_audit_dict(request),
        )

    await publish_safely(
        notifier,
        [
            LeaveEvent(
                event=LEAVE_REQUEST_CREATED,
                room=ADMIN_ROOM,
                payload={
                    "request_id": str(request.id),
                    "employee_id": str(employee.id),
                    "employee_name": employee.name,
                    "leave_type": leave_type.name_th or leave_type.name_en,
                    "start_date": request.start_date.isoformat() if request.start_date else None,
                    "end_date": request.end_date.isoformat() if request.end_date else None,
                },
            )
        ],
    )
    return _build_request_response(request, settings.hours_per_day)


async def create_request_for_employee(
    session: AsyncSession,
    auth: AuthContext,
    payload: AdminCreateRequestPayload,
    settings: Settings,
    notifier: LeaveEventNotifier,
) -> LeaveRequestResponse:
    """File a request on an employee's behalf, optionally approving it at once.

    An immediate approval goes through the same quota check and consumption
    as ``approve_request``, inside the same transaction as the insert.
    """
    if payload.approve and payload.employee_id == auth.user_id:
        raise StateConflictError("You cannot approve your own leave request")

    async with atomic(session):
        employee = await get_employee_or_404(session, payload.employee_id)
        leave_type = await resolve_leave_type(session, payload.leave_type)

        request = LeaveRequest(
            employee_id=employee.id,
            leave_type_id=leave_type.id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            reason=payload.reason,
            contact=payload.contact,
            status=RequestStatus.PENDING.value,
        )
        request.backdated = _is_backdated(request, settings)
        session.add(request)
        await session.flush()

        if payload.approve:
            await _approve_in_transaction(session, request, employee, auth.user_id, settings, payload.note)
        else:
            await ledger.require_entitlement(session, employee, leave_type, settings)

        await session.flush()
        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE_REQUEST,
            entity_id=request.id,
            action=AuditAction.APPROVE if payload.approve else AuditAction.CREATE,
            after_json=model_to_audit_dict(request),
        )

    events = [
        LeaveEvent(
            event=LEAVE_REQUEST_CREATED,
            room=ADMIN_ROOM,
            payload={"request_id": str(request.id), "employee_id": str(employee.id), "status": request.status},
        )
    ]
    if payload.approve:
        events.extend(_status_event(request, auth.user_id))
    await publish_safely(notifier, events)
    return _build_request_response(request, settings.hours_per_day)


async def update_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: UpdateRequestPayload,
    settings: Settings,
    notifier: LeaveEventNotifier,
) -> LeaveRequestResponse:
    """Edit a pending request.

    Decided requests are frozen: the amount reverted later is recomputed from
    these fields, so they must not change after approval.
    """
    async with atomic(session):
        request = await _get_request_or_404(session, request_id, for_update=True)
        if not auth.can_access(request.employee_id):
            raise PermissionDeniedError("Not authorized to edit this leave request")
        if request.status != RequestStatus.PENDING.value:
            raise StateConflictError("Only pending leave requests can be edited")

        before = model_to_audit_dict(request)
        original_start = request.start_date
        changes = payload.model_dump(exclude_unset=True, exclude={"allow_backdated"})

        if "leave_type" in changes:
            if changes["leave_type"] is None:
                raise AppError("leave_type cannot be empty", status_code=422)
            leave_type = await resolve_leave_type(session, changes.pop("leave_type"))
            employee = await get_employee_or_404(session, request.employee_id)
            await ledger.require_entitlement(session, employee, leave_type, settings)
            request.leave_type_id = leave_type.id

        for field_name, value in changes.items():
            setattr(request, field_name, value)

        if request.start_date is None:
            raise AppError("start_date cannot be empty", status_code=422)
        if request.end_date is None:
            request.end_date = request.start_date
        try:
            validate_leave_range(request.start_date, request.end_date, request.start_time, request.end_time)
        except ValueError as exc:
            raise AppError(str(exc), status_code=422) from None
        request.backdated = _is_backdated(request, settings)
        moved_start = request.start_date != original_start
        if moved_start and request.backdated and not (payload.allow_backdated or settings.allow_backdated_requests):
            raise AppError("Backdated leave is not allowed", status_code=400)

        await session.flush()
        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE_REQUEST,
            entity_id=request.id,
            action=AuditAction.UPDATE,
            before_json=before,
            after_json=model_to_audit_dict(request),
        )

    await publish_safely(
        notifier,
        [LeaveEvent(event=LEAVE_REQUEST_UPDATED, room=ADMIN_ROOM, payload={"request_id": str(request.id)})],
    )
    return _build_request_response(request, settings.hours_per_day)


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


async def approve_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    settings: Settings,
    notifier: LeaveEventNotifier,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    """Approve a pending request, consuming its duration from the quota.

    1. Lock the request; it must be pending and not the approver's own.
    2. Quota check under lock (skipped for unlimited leave types).
    3. Consume the duration onto the usage row.
    4. Transition to approved and audit.
    5. Commit, then notify.

    Any failure rolls back the whole sequence: no approved request exists
    without its consumption, and no consumption without its approval.
    """
    note = payload.note if payload else None
    async with atomic(session):
        request = await _get_request_or_404(session, request_id, for_update=True)
        if request.status != RequestStatus.PENDING.value:
            raise StateConflictError(f"Only pending leave requests can be approved (current: {request.status})")
        if request.employee_id == auth.user_id:
            raise StateConflictError("You cannot approve your own leave request")

        employee = await get_employee_or_404(session, request.employee_id)
        before = model_to_audit_dict(request)

        await _approve_in_transaction(session, request, employee, auth.user_id, settings, note)
        await session.flush()

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE_REQUEST,
            entity_id=request.id,
            action=AuditAction.APPROVE,
            before_json=before,
            after_json=model_to_audit_dict(request),
        )

    await publish_safely(notifier, _status_event(request, auth.user_id))
    return _build_request_response(request, settings.hours_per_day)


async def reject_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    settings: Settings,
    notifier: LeaveEventNotifier,
    payload: RejectPayload | None = None,
) -> LeaveRequestResponse:
    """Reject a pending request, or un-approve an approved one.

    Rejecting an approved request gives its duration back to the ledger in the
    same transaction as the status change.
    """
    async with atomic(session):
        request = await _get_request_or_404(session, request_id, for_update=True)
        if request.status == RequestStatus.REJECTED.value:
            raise StateConflictError("Leave request is already rejected")

        before = model_to_audit_dict(request)
        if request.status == RequestStatus.APPROVED.value:
            await _revert_in_transaction(session, request, settings)

        request.status = RequestStatus.REJECTED.value
        request.decided_at = datetime.now(UTC)
        request.decided_by = auth.user_id
        request.rejection_reason = payload.reason if payload else None
        await session.flush()

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE_REQUEST,
            entity_id=request.id,
            action=AuditAction.REJECT,
            before_json=before,
            after_json=model_to_audit_dict(request),
        )

    logger.info("Rejected leave request %s (was %s) by %s", request.id, before["status"], auth.user_id)
    await publish_safely(notifier, _status_event(request, auth.user_id))
    return _build_request_response(request, settings.hours_per_day)


async def delete_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    settings: Settings,
    notifier: LeaveEventNotifier,
) -> None:
    """Delete a request, reverting its consumption first if it was approved.

    Employees may delete their own pending requests; admins may delete any.
    """
    async with atomic(session):
        request = await _get_request_or_404(session, request_id, for_update=True)
        is_owner = request.employee_id == auth.user_id
        if not auth.is_admin and not (is_owner and request.status == RequestStatus.PENDING.value):
            raise PermissionDeniedError("Not authorized to delete this leave request")

        before = model_to_audit_dict(request)
        if request.status == RequestStatus.APPROVED.value:
            await _revert_in_transaction(session, request, settings)

        await session.delete(request)
        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE_REQUEST,
            entity_id=request_id,
            action=AuditAction.DELETE,
            before_json=before,
        )

    logger.info("Deleted leave request %s (was %s) by %s", request_id, before["status"], auth.user_id)
    await publish_safely(
        notifier,
        [
            LeaveEvent(
                event=LEAVE_REQUEST_DELETED,
                room=ADMIN_ROOM,
                payload={"request_id": str(request_id), "employee_id": before["employee_id"]},
            )
        ],
    )


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_request(session: AsyncSession, request_id: uuid.UUID, settings: Settings) -> LeaveRequestResponse:
    """Get a single request by ID."""
    request = await _get_request_or_404(session, request_id)
    return _build_request_response(request, settings.hours_per_day)


async def list_requests(
    session: AsyncSession,
    settings: Settings,
    status_filter: RequestStatus | None = None,
    employee_id: uuid.UUID | None = None,
    leave_type_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LeaveRequestListResponse:
    """List requests with optional filters, ordered by created_at DESC."""
    filters = []
    if status_filter is not None:
        filters.append(col(LeaveRequest.status) == status_filter.value)
    if employee_id is not None:
        filters.append(col(LeaveRequest.employee_id) == employee_id)
    if leave_type_id is not None:
        filters.append(col(LeaveRequest.leave_type_id) == leave_type_id)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*filters)
        .order_by(col(LeaveRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    requests = list(result.scalars().all())

    return LeaveRequestListResponse(
        items=[_build_request_response(r, settings.hours_per_day) for r in requests],
        total=total,
    )
