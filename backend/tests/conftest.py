from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from leave_ledger.config import Settings, get_settings
from leave_ledger.db import get_session
from leave_ledger.main import app
from leave_ledger.models import (
    Employee,
    EmployeeRole,
    LeaveCategory,
    LeaveEntitlement,
    LeaveType,
    Position,
    SQLModel,
)
from leave_ledger.services.notifier import InMemoryNotifier, get_notifier

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory SQLite database per test.

    pysqlite's own transaction handling breaks SAVEPOINT, so BEGIN is emitted
    explicitly (see the SQLAlchemy SQLite dialect notes on savepoints).
    """
    _engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(_engine.sync_engine, "connect")
    def _do_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(_engine.sync_engine, "begin")
    def _do_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Session shared by the test body and the app under test."""
    session = AsyncSession(bind=engine, expire_on_commit=False)
    yield session
    await session.close()


@pytest.fixture
def settings() -> Settings:
    """Settings with the defaults the ledger ships with."""
    return Settings(database_url=TEST_DATABASE_URL)


@pytest.fixture
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    settings: Settings,
    notifier: InMemoryNotifier,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with session, settings and notifier overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_notifier] = lambda: notifier
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Seed:
    """IDs of the organization every ledger test starts from."""

    engineer_position_id: uuid.UUID
    contractor_position_id: uuid.UUID
    vacation_id: uuid.UUID
    sick_id: uuid.UUID
    emergency_id: uuid.UUID
    vacation_entitlement_id: uuid.UUID
    admin_id: uuid.UUID
    employee_id: uuid.UUID
    contractor_id: uuid.UUID
    unassigned_id: uuid.UUID


def auth_headers(user_id: uuid.UUID, role: str = "employee") -> dict[str, str]:
    return {"X-User-Id": str(user_id), "X-Role": role}


@pytest.fixture
async def seed(db_session: AsyncSession) -> Seed:
    """Two positions, three leave types, quotas, and four employees.

    Engineers get 5 vacation days and 30 sick days; contractors get 10
    vacation days and are not reset on the new year. Emergency leave has no
    quota (unlimited by default settings).
    """
    engineer = Position(name="Engineer", reset_on_new_year=True)
    contractor = Position(name="Contractor", reset_on_new_year=False)
    vacation = LeaveType(name_th="ลาพักร้อน", name_en="Vacation", category=LeaveCategory.VACATION)
    sick = LeaveType(name_th="ลาป่วย", name_en="Sick", category=LeaveCategory.SICK)
    emergency = LeaveType(name_th="ลาฉุกเฉิน", name_en="Emergency", category=LeaveCategory.EMERGENCY)
    db_session.add_all([engineer, contractor, vacation, sick, emergency])
    await db_session.flush()

    vacation_quota = LeaveEntitlement(position_id=engineer.id, leave_type_id=vacation.id, quota_days=Decimal(5))
    db_session.add_all(
        [
            vacation_quota,
            LeaveEntitlement(position_id=engineer.id, leave_type_id=sick.id, quota_days=Decimal(30)),
            LeaveEntitlement(position_id=contractor.id, leave_type_id=vacation.id, quota_days=Decimal(10)),
        ]
    )

    admin = Employee(name="Admin", role=EmployeeRole.ADMIN, position_id=engineer.id)
    employee = Employee(name="Somchai", email="somchai@example.com", position_id=engineer.id)
    contractor_emp = Employee(name="Malee", position_id=contractor.id)
    unassigned = Employee(name="Nobody")
    db_session.add_all([admin, employee, contractor_emp, unassigned])
    await db_session.commit()

    return Seed(
        engineer_position_id=engineer.id,
        contractor_position_id=contractor.id,
        vacation_id=vacation.id,
        sick_id=sick.id,
        emergency_id=emergency.id,
        vacation_entitlement_id=vacation_quota.id,
        admin_id=admin.id,
        employee_id=employee.id,
        contractor_id=contractor_emp.id,
        unassigned_id=unassigned.id,
    )
