from __future__ import annotations

import enum


class LeaveCategory(enum.StrEnum):
    """Category of a leave type."""

    VACATION = "VACATION"
    SICK = "SICK"
    PERSONAL = "PERSONAL"
    EMERGENCY = "EMERGENCY"
    OTHER = "OTHER"


class RequestStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DurationUnit(enum.StrEnum):
    """Unit a leave request is denominated in."""

    DAY = "day"
    HOUR = "hour"


class ResetStrategy(enum.StrEnum):
    """How the yearly reset treats usage rows."""

    ZERO = "zero"
    DELETE = "delete"


class EmployeeRole(enum.StrEnum):
    """Role of an employee account."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    LEAVE_REQUEST = "LEAVE_REQUEST"
    ENTITLEMENT = "ENTITLEMENT"
    USAGE = "USAGE"
    POSITION = "POSITION"
    EMPLOYEE = "EMPLOYEE"
    LEAVE_TYPE = "LEAVE_TYPE"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    RESET = "RESET"
