# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UpdatedAtMixin


class LeaveUsage(TimestampMixin, UpdatedAtMixin, table=True):
    """Accumulated consumption per employee and leave type.

    ``hours_used`` is kept below one working day; anything above carries into
    ``days_used``. Mutated only by the ledger service.
    """

    __tablename__ = "leave_usage"
    __table_args__ = (sa.PrimaryKeyConstraint("employee_id", "leave_type_id"),)

    employee_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id", ondelete="CASCADE"), nullable=False),
    )
    days_used: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    hours_used: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
