"""Shared table building blocks: UUID keys and timezone-aware timestamps."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(UTC)


def timestamp_field(*, refresh_on_update: bool = False, index: bool = False) -> Any:
    """A ``timestamptz`` column filled by both the client and the server.

    With ``refresh_on_update`` the value is bumped on every UPDATE, which the
    usage ledger relies on to show when a quota was last touched.
    """
    column_kwargs: dict[str, Any] = {"server_default": sa.func.now()}
    if refresh_on_update:
        column_kwargs["onupdate"] = utc_now
    return Field(
        default_factory=utc_now,
        index=index,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs=column_kwargs,
    )


class UUIDBase(SQLModel):
    """Surrogate UUID v4 primary key."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, sa_type=sa.Uuid)


class TimestampMixin(SQLModel):
    created_at: datetime = timestamp_field()


class UpdatedAtMixin(SQLModel):
    updated_at: datetime = timestamp_field(refresh_on_update=True)
