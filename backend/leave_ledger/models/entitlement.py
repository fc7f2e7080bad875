# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UUIDBase


class LeaveEntitlement(UUIDBase, TimestampMixin, table=True):
    """Configured leave allowance, in days, for a position and leave type."""

    __tablename__ = "leave_entitlement"
    __table_args__ = (sa.UniqueConstraint("position_id", "leave_type_id", name="uq_entitlement_position_type"),)

    position_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("position.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    quota_days: Decimal = Field(default=Decimal(0), max_digits=6, decimal_places=2)
