# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import UUIDBase, timestamp_field


class AuditLog(UUIDBase, table=True):
    """Append-only trail of request decisions, quota changes and resets.

    ``before_json``/``after_json`` hold JSON-safe snapshots of the row around
    the change. Resets that span many employees store their scope in
    ``after_json`` and leave ``entity_id`` empty.
    """

    __tablename__ = "leave_audit_log"
    __table_args__ = (
        sa.Index("ix_leave_audit_entity", "entity_type", "entity_id"),
        sa.Index("ix_leave_audit_actor", "actor_id"),
    )

    actor_id: uuid.UUID
    entity_type: str = Field(max_length=50)
    entity_id: uuid.UUID | None = None
    action: str = Field(max_length=50)
    before_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    after_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    created_at: datetime = timestamp_field(index=True)
