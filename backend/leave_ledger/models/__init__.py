from sqlmodel import SQLModel

from leave_ledger.models.audit import AuditLog
from leave_ledger.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from leave_ledger.models.entitlement import LeaveEntitlement
from leave_ledger.models.enums import (
    AuditAction,
    AuditEntityType,
    DurationUnit,
    EmployeeRole,
    LeaveCategory,
    RequestStatus,
    ResetStrategy,
)
from leave_ledger.models.leave_type import LeaveType
from leave_ledger.models.organization import Employee, Position
from leave_ledger.models.request import LeaveRequest
from leave_ledger.models.usage import LeaveUsage

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "DurationUnit",
    "Employee",
    "EmployeeRole",
    "LeaveCategory",
    "LeaveEntitlement",
    "LeaveRequest",
    "LeaveType",
    "LeaveUsage",
    "Position",
    "RequestStatus",
    "ResetStrategy",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
]
