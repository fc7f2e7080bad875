from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UUIDBase
from leave_ledger.models.enums import LeaveCategory


class LeaveType(UUIDBase, TimestampMixin, table=True):
    """A kind of leave (vacation, sick, emergency, ...) with Thai and English names."""

    __tablename__ = "leave_type"

    name_th: str = Field(max_length=255, index=True)
    name_en: str = Field(max_length=255, index=True)
    category: str = Field(default=LeaveCategory.OTHER, max_length=50)
    is_active: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
