# ruff: noqa: TC003
"""Administration of leave entitlements (quota per position and leave type).

The ledger only reads entitlements; they change exclusively through here.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_ledger.db import atomic
from leave_ledger.exceptions import NotFoundError, StateConflictError
from leave_ledger.models.entitlement import LeaveEntitlement
from leave_ledger.models.enums import AuditAction, AuditEntityType
from leave_ledger.schemas.entitlement import EntitlementListResponse, EntitlementResponse
from leave_ledger.services.audit import model_to_audit_dict, write_audit_log
from leave_ledger.services.organization import get_leave_type_or_404, get_position_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.auth import AuthContext
    from leave_ledger.schemas.entitlement import CreateEntitlementRequest, UpdateEntitlementRequest


def _build_entitlement_response(entitlement: LeaveEntitlement) -> EntitlementResponse:
    return EntitlementResponse(
        id=entitlement.id,
        position_id=entitlement.position_id,
        leave_type_id=entitlement.leave_type_id,
        quota_days=entitlement.quota_days,
        created_at=entitlement.created_at,
    )


async def _get_entitlement_or_404(session: AsyncSession, entitlement_id: uuid.UUID) -> LeaveEntitlement:
    entitlement = await session.get(LeaveEntitlement, entitlement_id)
    if entitlement is None:
        raise NotFoundError("Entitlement not found")
    return entitlement


async def list_entitlements(
    session: AsyncSession,
    position_id: uuid.UUID | None = None,
    leave_type_id: uuid.UUID | None = None,
) -> EntitlementListResponse:
    """List entitlements, optionally filtered by position and/or leave type."""
    query = select(LeaveEntitlement).order_by(col(LeaveEntitlement.created_at))
    if position_id is not None:
        query = query.where(col(LeaveEntitlement.position_id) == position_id)
    if leave_type_id is not None:
        query = query.where(col(LeaveEntitlement.leave_type_id) == leave_type_id)
    result = await session.execute(query)
    items = [_build_entitlement_response(e) for e in result.scalars().all()]
    return EntitlementListResponse(items=items, total=len(items))


async def get_entitlement(session: AsyncSession, entitlement_id: uuid.UUID) -> EntitlementResponse:
    return _build_entitlement_response(await _get_entitlement_or_404(session, entitlement_id))


async def create_entitlement(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateEntitlementRequest,
) -> EntitlementResponse:
    """Configure the quota of a position for a leave type (one row per pair)."""
    try:
        async with atomic(session):
            await get_position_or_404(session, payload.position_id)
            await get_leave_type_or_404(session, payload.leave_type_id)
            entitlement = LeaveEntitlement(
                position_id=payload.position_id,
                leave_type_id=payload.leave_type_id,
                quota_days=payload.quota_days,
            )
            session.add(entitlement)
            await session.flush()
            await write_audit_log(
                session,
                actor_id=auth.user_id,
                entity_type=AuditEntityType.ENTITLEMENT,
                entity_id=entitlement.id,
                action=AuditAction.CREATE,
                after_json=model_to_audit_dict(entitlement),
            )
    except IntegrityError:
        raise StateConflictError("An entitlement already exists for this position and leave type") from None
    return _build_entitlement_response(entitlement)


async def update_entitlement(
    session: AsyncSession,
    auth: AuthContext,
    entitlement_id: uuid.UUID,
    payload: UpdateEntitlementRequest,
) -> EntitlementResponse:
    """Change a configured quota. Existing usage is left untouched."""
    async with atomic(session):
        entitlement = await _get_entitlement_or_404(session, entitlement_id)
        before = model_to_audit_dict(entitlement)
        entitlement.quota_days = payload.quota_days
        await session.flush()
        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.ENTITLEMENT,
            entity_id=entitlement.id,
            action=AuditAction.UPDATE,
            before_json=before,
            after_json=model_to_audit_dict(entitlement),
        )
    return _build_entitlement_response(entitlement)


async def delete_entitlement(session: AsyncSession, auth: AuthContext, entitlement_id: uuid.UUID) -> None:
    """Remove a configured quota; approvals for the pair fail until it is re-created."""
    async with atomic(session):
        entitlement = await _get_entitlement_or_404(session, entitlement_id)
        before = model_to_audit_dict(entitlement)
        await session.delete(entitlement)
        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.ENTITLEMENT,
            entity_id=entitlement_id,
            action=AuditAction.DELETE,
            before_json=before,
        )
