# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header

from leave_ledger.config import Settings, get_settings
from leave_ledger.exceptions import PermissionDeniedError
from leave_ledger.models.enums import EmployeeRole
from leave_ledger.schemas.auth import AuthContext
from leave_ledger.services.notifier import LeaveEventNotifier, get_notifier


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: EmployeeRole = Header(default=EmployeeRole.EMPLOYEE),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if not auth.is_admin:
        raise PermissionDeniedError("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]

SettingsDep = Annotated[Settings, Depends(get_settings)]

NotifierDep = Annotated[LeaveEventNotifier, Depends(get_notifier)]


def ensure_self_or_admin(auth: AuthContext, employee_id: uuid.UUID) -> None:
    """Employees may only read their own records; admins may read anyone's."""
    if not auth.can_access(employee_id):
        raise PermissionDeniedError("Not authorized to view another employee's leave")
