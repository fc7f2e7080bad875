# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CreateEntitlementRequest(BaseModel):
    """Request body for configuring a position's quota for a leave type."""

    position_id: uuid.UUID
    leave_type_id: uuid.UUID
    quota_days: Decimal = Field(ge=0, max_digits=6, decimal_places=2)


class UpdateEntitlementRequest(BaseModel):
    """Request body for changing a configured quota."""

    quota_days: Decimal = Field(ge=0, max_digits=6, decimal_places=2)


class EntitlementResponse(BaseModel):
    """A configured quota."""

    id: uuid.UUID
    position_id: uuid.UUID
    leave_type_id: uuid.UUID
    quota_days: Decimal
    created_at: datetime


class EntitlementListResponse(BaseModel):
    """List of configured quotas."""

    items: list[EntitlementResponse]
    total: int
