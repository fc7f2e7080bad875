# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, Response, status

from leave_ledger.api.deps import AdminDep, AuthDep
from leave_ledger.db import SessionDep
from leave_ledger.schemas.entitlement import (
    CreateEntitlementRequest,
    EntitlementListResponse,
    EntitlementResponse,
    UpdateEntitlementRequest,
)
from leave_ledger.services import entitlement as entitlement_service

entitlements_router = APIRouter(prefix="/entitlements", tags=["entitlements"])


@entitlements_router.get("", response_model=EntitlementListResponse)
async def list_entitlements(
    session: SessionDep,
    _auth: AuthDep,
    position_id: uuid.UUID | None = Query(default=None),
    leave_type_id: uuid.UUID | None = Query(default=None),
) -> EntitlementListResponse:
    """List configured quotas."""
    return await entitlement_service.list_entitlements(session, position_id, leave_type_id)


@entitlements_router.get("/{entitlement_id}", response_model=EntitlementResponse)
async def get_entitlement(entitlement_id: uuid.UUID, session: SessionDep, _auth: AuthDep) -> EntitlementResponse:
    """Get a single entitlement."""
    return await entitlement_service.get_entitlement(session, entitlement_id)


@entitlements_router.post("", response_model=EntitlementResponse, status_code=status.HTTP_201_CREATED)
async def create_entitlement(
    payload: CreateEntitlementRequest,
    session: SessionDep,
    auth: AdminDep,
) -> EntitlementResponse:
    """Configure a quota for a position and leave type (admin only)."""
    return await entitlement_service.create_entitlement(session, auth, payload)


@entitlements_router.put("/{entitlement_id}", response_model=EntitlementResponse)
async def update_entitlement(
    entitlement_id: uuid.UUID,
    payload: UpdateEntitlementRequest,
    session: SessionDep,
    auth: AdminDep,
) -> EntitlementResponse:
    """Change a configured quota (admin only)."""
    return await entitlement_service.update_entitlement(session, auth, entitlement_id, payload)


@entitlements_router.delete("/{entitlement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entitlement(entitlement_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> Response:
    """Remove a configured quota (admin only)."""
    await entitlement_service.delete_entitlement(session, auth, entitlement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
