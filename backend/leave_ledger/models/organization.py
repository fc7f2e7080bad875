# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UUIDBase
from leave_ledger.models.enums import EmployeeRole


class Position(UUIDBase, TimestampMixin, table=True):
    """A job position; entitlements are configured per position."""

    __tablename__ = "position"
    __table_args__ = (sa.UniqueConstraint("name", name="uq_position_name"),)

    name: str = Field(max_length=255)
    # Usage of employees in this position is cleared by the yearly reset.
    reset_on_new_year: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})


class Employee(UUIDBase, TimestampMixin, table=True):
    """An employee who submits and (as admin) decides leave requests."""

    __tablename__ = "employee"

    name: str = Field(max_length=255)
    email: str | None = Field(default=None, max_length=255)
    role: str = Field(default=EmployeeRole.EMPLOYEE, max_length=50, sa_column_kwargs={"server_default": "employee"})
    position_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("position.id", ondelete="SET NULL"), nullable=True, index=True),
    )
