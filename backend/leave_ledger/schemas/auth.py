# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from leave_ledger.models.enums import EmployeeRole


class AuthContext(BaseModel):
    """Caller identity taken from the ``X-User-Id`` and ``X-Role`` headers.

    The user id is the caller's employee id; there is no separate account table.
    """

    user_id: uuid.UUID
    role: EmployeeRole = EmployeeRole.EMPLOYEE

    @property
    def is_admin(self) -> bool:
        return self.role == EmployeeRole.ADMIN

    def can_access(self, employee_id: uuid.UUID) -> bool:
        """Admins reach every employee's leave; employees only their own."""
        return self.is_admin or self.user_id == employee_id
