"""Tests for the leave request workflow: submit, approve, reject, delete,
quota admission, revert on un-approval, notifications, and audit.
"""

from __future__ import annotations

from datetime import date, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlmodel import col

from conftest import auth_headers
from leave_ledger.models.audit import AuditLog
from leave_ledger.models.request import LeaveRequest
from leave_ledger.services import ledger
from leave_ledger.services.notifier import ADMIN_ROOM, LEAVE_REQUEST_CREATED, LEAVE_REQUEST_STATUS_CHANGED, employee_room

if TYPE_CHECKING:
    import uuid

    import pytest
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from conftest import Seed
    from leave_ledger.config import Settings
    from leave_ledger.services.notifier import InMemoryNotifier

REQUESTS_URL = "/leave-requests"


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


def _day(offset: int = 0) -> date:
    """A working date safely in the future."""
    return date.today() + timedelta(days=60 + offset)


async def _submit(
    client: AsyncClient,
    employee_id: uuid.UUID,
    leave_type: str = "Vacation",
    days: int = 1,
    offset: int = 0,
    **extra: Any,
) -> dict[str, Any]:
    start = _day(offset)
    payload: dict[str, Any] = {
        "leave_type": leave_type,
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=days - 1)).isoformat(),
    }
    payload.update(extra)
    resp = await client.post(REQUESTS_URL, json=payload, headers=auth_headers(employee_id))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _approve(client: AsyncClient, request_id: str, admin_id: uuid.UUID) -> Any:
    return await client.post(f"{REQUESTS_URL}/{request_id}/approve", headers=auth_headers(admin_id, "admin"))


async def _submit_and_approve(client: AsyncClient, seed: Seed, days: int, offset: int = 0) -> dict[str, Any]:
    req = await _submit(client, seed.employee_id, days=days, offset=offset)
    resp = await _approve(client, req["id"], seed.admin_id)
    assert resp.status_code == 200, resp.text
    return resp.json()


async def _usage_of(client: AsyncClient, seed: Seed, employee_id: uuid.UUID, leave_type_id: uuid.UUID) -> tuple[int, int]:
    resp = await client.get(f"/employees/{employee_id}/usage", headers=auth_headers(seed.admin_id, "admin"))
    assert resp.status_code == 200
    for item in resp.json()["items"]:
        if item["leave_type_id"] == str(leave_type_id):
            return item["days_used"], item["hours_used"]
    return 0, 0


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


async def test_submit_creates_pending_request(async_client: AsyncClient, seed: Seed) -> None:
    data = await _submit(async_client, seed.employee_id, days=3)
    assert data["status"] == "pending"
    assert data["employee_id"] == str(seed.employee_id)
    assert data["leave_type_id"] == str(seed.vacation_id)
    assert data["duration_unit"] == "day"
    assert data["duration_days"] == 3
    assert data["duration_hours"] == 0
    assert data["backdated"] is False


async def test_submit_resolves_leave_type_by_thai_name(async_client: AsyncClient, seed: Seed) -> None:
    data = await _submit(async_client, seed.employee_id, leave_type="ลาป่วย")
    assert data["leave_type_id"] == str(seed.sick_id)


async def test_submit_resolves_leave_type_by_id(async_client: AsyncClient, seed: Seed) -> None:
    data = await _submit(async_client, seed.employee_id, leave_type=str(seed.sick_id))
    assert data["leave_type_id"] == str(seed.sick_id)


async def test_submit_hourly_request(async_client: AsyncClient, seed: Seed) -> None:
    data = await _submit(async_client, seed.employee_id, start_time="13:00:00", end_time="17:00:00")
    assert data["duration_unit"] == "hour"
    assert (data["duration_days"], data["duration_hours"]) == (0, 4)


async def test_submit_unknown_leave_type_returns_404(async_client: AsyncClient, seed: Seed) -> None:
    resp = await async_client.post(
        REQUESTS_URL,
        json={"leave_type": "Sabbatical", "start_date": _day().isoformat()},
        headers=auth_headers(seed.employee_id),
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFoundError"


async def test_submit_without_quota_returns_422(async_client: AsyncClient, seed: Seed) -> None:
    resp = await async_client.post(
        REQUESTS_URL,
        json={"leave_type": "Vacation", "start_date": _day().isoformat()},
        headers=auth_headers(seed.unassigned_id),
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "ConfigurationError"


async def test_submit_unlimited_leave_needs_no_quota(async_client: AsyncClient, seed: Seed) -> None:
    data = await _submit(async_client, seed.unassigned_id, leave_type="Emergency")
    assert data["status"] == "pending"


async def test_submit_backdated_rejected_by_default(async_client: AsyncClient, seed: Seed) -> None:
    resp = await async_client.post(
        REQUESTS_URL,
        json={"leave_type": "Vacation", "start_date": (date.today() - timedelta(days=10)).isoformat()},
        headers=auth_headers(seed.employee_id),
    )
    assert resp.status_code == 400
    assert "Backdated" in resp.json()["detail"]


async def test_submit_backdated_allowed_when_requested(async_client: AsyncClient, seed: Seed) -> None:
    resp = await async_client.post(
        REQUESTS_URL,
        json={
            "leave_type": "Vacation",
            "start_date": (date.today() - timedelta(days=10)).isoformat(),
            "allow_backdated": True,
        },
        headers=auth_headers(seed.employee_id),
    )
    assert resp.status_code == 201
    assert resp.json()["backdated"] is True


async def test_submit_end_before_start_returns_422(async_client: AsyncClient, seed: Seed) -> None:
    resp = await async_client.post(
        REQUESTS_URL,
        json={"leave_type": "Vacation", "start_date": _day(5).isoformat(), "end_date": _day().isoformat()},
        headers=auth_headers(seed.employee_id),
    )
    assert resp.status_code == 422


async def test_submit_notifies_admin_room(async_client: AsyncClient, seed: Seed, notifier: InMemoryNotifier) -> None:
    data = await _submit(async_client, seed.employee_id)
    events = notifier.for_room(ADMIN_ROOM)
    assert len(events) == 1
    assert events[0].event == LEAVE_REQUEST_CREATED
    assert events[0].payload["request_id"] == data["id"]
    assert events[0].payload["employee_name"] == "Somchai"


async def test_submit_requires_auth_headers(async_client: AsyncClient, seed: Seed) -> None:
    resp = await async_client.post(REQUESTS_URL, json={"leave_type": "Vacation", "start_date": _day().isoformat()})
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Approve
# ---------------------------------------------------------------------------


async def test_approve_consumes_quota(async_client: AsyncClient, seed: Seed) -> None:
    data = await _submit_and_approve(async_client, seed, days=2)
    assert data["status"] == "approved"
    assert data["decided_by"] == str(seed.admin_id)
    assert data["decided_at"] is not None
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (2, 0)


async def test_approve_hourly_requests_carry_into_days(async_client: AsyncClient, seed: Seed) -> None:
    for offset in range(3):
        req = await _submit(async_client, seed.employee_id, offset=offset, start_time="08:00:00", end_time="11:00:00")
        assert (await _approve(async_client, req["id"], seed.admin_id)).status_code == 200
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (1, 1)


async def test_approve_request_that_fills_quota_exactly(async_client: AsyncClient, seed: Seed) -> None:
    await _submit_and_approve(async_client, seed, days=4)

    req = await _submit(async_client, seed.employee_id, days=1, offset=10)
    resp = await _approve(async_client, req["id"], seed.admin_id)

    assert resp.status_code == 200
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (5, 0)


async def test_approve_over_quota_is_denied_and_leaves_state_unchanged(
    async_client: AsyncClient, seed: Seed
) -> None:
    await _submit_and_approve(async_client, seed, days=4)

    # 00:00 -> 09:00 is nine hours: one working day and one hour.
    req = await _submit(async_client, seed.employee_id, offset=10, start_time="00:00:00", end_time="09:00:00")
    assert (req["duration_days"], req["duration_hours"]) == (1, 1)
    resp = await _approve(async_client, req["id"], seed.admin_id)

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "QuotaExceededError"
    assert Decimal(body["context"]["remaining_days"]) == Decimal(1)
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (4, 0)

    fetched = await async_client.get(f"{REQUESTS_URL}/{req['id']}", headers=auth_headers(seed.admin_id, "admin"))
    assert fetched.json()["status"] == "pending"


async def test_second_approval_is_rejected_and_usage_unchanged(async_client: AsyncClient, seed: Seed) -> None:
    data = await _submit_and_approve(async_client, seed, days=2)

    resp = await _approve(async_client, data["id"], seed.admin_id)

    assert resp.status_code == 409
    assert resp.json()["error"] == "StateConflictError"
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (2, 0)


async def test_self_approval_is_rejected(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.admin_id)

    resp = await _approve(async_client, req["id"], seed.admin_id)

    assert resp.status_code == 409
    assert "own" in resp.json()["detail"]
    assert await _usage_of(async_client, seed, seed.admin_id, seed.vacation_id) == (0, 0)


async def test_approve_requires_admin(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id)

    resp = await async_client.post(f"{REQUESTS_URL}/{req['id']}/approve", headers=auth_headers(seed.contractor_id))

    assert resp.status_code == 403
    assert resp.json()["error"] == "PermissionDeniedError"


async def test_approve_unknown_request_returns_404(async_client: AsyncClient, seed: Seed) -> None:
    resp = await _approve(async_client, "00000000-0000-0000-0000-000000000001", seed.admin_id)
    assert resp.status_code == 404


async def test_approve_unlimited_leave_books_usage_without_quota(
    async_client: AsyncClient, seed: Seed, monkeypatch: pytest.MonkeyPatch
) -> None:
    decisions: list[ledger.QuotaDecision] = []
    real_check = ledger.check_quota

    async def _recording_check(*args: Any, **kwargs: Any) -> ledger.QuotaDecision:
        decision = await real_check(*args, **kwargs)
        decisions.append(decision)
        return decision

    monkeypatch.setattr(ledger, "check_quota", _recording_check)
    req = await _submit(async_client, seed.employee_id, leave_type="Emergency", days=20)

    resp = await _approve(async_client, req["id"], seed.admin_id)

    assert resp.status_code == 200
    assert [d.unlimited for d in decisions] == [True]
    usage = await async_client.get(
        f"/employees/{seed.employee_id}/usage", headers=auth_headers(seed.admin_id, "admin")
    )
    assert usage.json()["total"] == 1
    assert await _usage_of(async_client, seed, seed.employee_id, seed.emergency_id) == (20, 0)


async def test_delete_approved_unlimited_leave_reverts_usage(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id, leave_type="Emergency", days=3)
    assert (await _approve(async_client, req["id"], seed.admin_id)).status_code == 200

    resp = await async_client.delete(f"{REQUESTS_URL}/{req['id']}", headers=auth_headers(seed.admin_id, "admin"))

    assert resp.status_code == 204
    assert await _usage_of(async_client, seed, seed.employee_id, seed.emergency_id) == (0, 0)


async def test_revert_ignores_later_unlimited_setting_change(
    async_client: AsyncClient, seed: Seed, settings: Settings
) -> None:
    req = await _submit(async_client, seed.employee_id, leave_type="Emergency", days=2)
    assert (await _approve(async_client, req["id"], seed.admin_id)).status_code == 200

    settings.unlimited_leave_categories = []
    resp = await async_client.post(
        f"{REQUESTS_URL}/{req['id']}/reject", json={}, headers=auth_headers(seed.admin_id, "admin")
    )

    assert resp.status_code == 200
    assert await _usage_of(async_client, seed, seed.employee_id, seed.emergency_id) == (0, 0)


async def test_approve_notifies_employee_and_admins(
    async_client: AsyncClient, seed: Seed, notifier: InMemoryNotifier
) -> None:
    data = await _submit_and_approve(async_client, seed, days=1)

    personal = notifier.for_room(employee_room(seed.employee_id))
    assert [e.event for e in personal] == [LEAVE_REQUEST_STATUS_CHANGED]
    assert personal[0].payload == {
        "request_id": data["id"],
        "employee_id": str(seed.employee_id),
        "status": "approved",
        "decided_by": str(seed.admin_id),
    }
    assert LEAVE_REQUEST_STATUS_CHANGED in [e.event for e in notifier.for_room(ADMIN_ROOM)]


async def test_notifier_failure_does_not_undo_approval(
    async_client: AsyncClient, seed: Seed, notifier: InMemoryNotifier, monkeypatch: pytest.MonkeyPatch
) -> None:
    req = await _submit(async_client, seed.employee_id, days=2)

    async def _broken_publish(_event: Any) -> None:
        msg = "socket closed"
        raise ConnectionError(msg)

    monkeypatch.setattr(notifier, "publish", _broken_publish)
    resp = await _approve(async_client, req["id"], seed.admin_id)

    assert resp.status_code == 200
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (2, 0)


async def test_approve_writes_audit_entry(async_client: AsyncClient, seed: Seed, db_session: AsyncSession) -> None:
    data = await _submit_and_approve(async_client, seed, days=1)

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.action) == "APPROVE").order_by(col(AuditLog.created_at))
    )
    entries = list(result.scalars().all())
    assert len(entries) == 1
    assert str(entries[0].entity_id) == data["id"]
    assert entries[0].actor_id == seed.admin_id
    assert entries[0].before_json is not None
    assert entries[0].before_json["status"] == "pending"
    assert entries[0].after_json is not None
    assert entries[0].after_json["status"] == "approved"


# ---------------------------------------------------------------------------
# Reject
# ---------------------------------------------------------------------------


async def test_reject_pending_request(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id)

    resp = await async_client.post(
        f"{REQUESTS_URL}/{req['id']}/reject",
        json={"reason": "Team offsite"},
        headers=auth_headers(seed.admin_id, "admin"),
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "rejected"
    assert resp.json()["rejection_reason"] == "Team offsite"
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (0, 0)


async def test_reject_approved_request_reverts_usage(async_client: AsyncClient, seed: Seed) -> None:
    await _submit_and_approve(async_client, seed, days=1)
    data = await _submit_and_approve(async_client, seed, days=3, offset=10)
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (4, 0)

    resp = await async_client.post(f"{REQUESTS_URL}/{data['id']}/reject", headers=auth_headers(seed.admin_id, "admin"))

    assert resp.status_code == 200
    assert resp.json()["status"] == "rejected"
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (1, 0)


async def test_reject_rejected_request_conflicts(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id)
    url = f"{REQUESTS_URL}/{req['id']}/reject"
    assert (await async_client.post(url, headers=auth_headers(seed.admin_id, "admin"))).status_code == 200

    resp = await async_client.post(url, headers=auth_headers(seed.admin_id, "admin"))

    assert resp.status_code == 409


async def test_rejected_request_cannot_be_approved(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id)
    await async_client.post(f"{REQUESTS_URL}/{req['id']}/reject", headers=auth_headers(seed.admin_id, "admin"))

    resp = await _approve(async_client, req["id"], seed.admin_id)

    assert resp.status_code == 409
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (0, 0)


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


async def test_delete_approved_request_reverts_usage(async_client: AsyncClient, seed: Seed) -> None:
    data = await _submit_and_approve(async_client, seed, days=2)

    resp = await async_client.delete(f"{REQUESTS_URL}/{data['id']}", headers=auth_headers(seed.admin_id, "admin"))

    assert resp.status_code == 204
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (0, 0)
    fetched = await async_client.get(f"{REQUESTS_URL}/{data['id']}", headers=auth_headers(seed.admin_id, "admin"))
    assert fetched.status_code == 404


async def test_employee_deletes_own_pending_request(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id)

    resp = await async_client.delete(f"{REQUESTS_URL}/{req['id']}", headers=auth_headers(seed.employee_id))

    assert resp.status_code == 204


async def test_employee_cannot_delete_approved_request(async_client: AsyncClient, seed: Seed) -> None:
    data = await _submit_and_approve(async_client, seed, days=1)

    resp = await async_client.delete(f"{REQUESTS_URL}/{data['id']}", headers=auth_headers(seed.employee_id))

    assert resp.status_code == 403
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (1, 0)


async def test_employee_cannot_delete_someone_elses_request(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id)

    resp = await async_client.delete(f"{REQUESTS_URL}/{req['id']}", headers=auth_headers(seed.contractor_id))

    assert resp.status_code == 403


async def test_strict_revert_failure_aborts_delete(
    async_client: AsyncClient, seed: Seed, monkeypatch: pytest.MonkeyPatch
) -> None:
    data = await _submit_and_approve(async_client, seed, days=2)

    async def _failing_revert(*_args: Any, **_kwargs: Any) -> None:
        raise OperationalError("UPDATE leave_usage", {}, Exception("database is locked"))

    monkeypatch.setattr(ledger, "revert_usage", _failing_revert)
    resp = await async_client.delete(f"{REQUESTS_URL}/{data['id']}", headers=auth_headers(seed.admin_id, "admin"))

    assert resp.status_code == 500
    assert resp.json()["error"] == "PersistenceError"
    fetched = await async_client.get(f"{REQUESTS_URL}/{data['id']}", headers=auth_headers(seed.admin_id, "admin"))
    assert fetched.json()["status"] == "approved"
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (2, 0)


async def test_lenient_revert_failure_still_deletes(
    async_client: AsyncClient, seed: Seed, settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    settings.strict_revert = False
    data = await _submit_and_approve(async_client, seed, days=2)

    async def _failing_revert(*_args: Any, **_kwargs: Any) -> None:
        raise OperationalError("UPDATE leave_usage", {}, Exception("database is locked"))

    monkeypatch.setattr(ledger, "revert_usage", _failing_revert)
    resp = await async_client.delete(f"{REQUESTS_URL}/{data['id']}", headers=auth_headers(seed.admin_id, "admin"))

    assert resp.status_code == 204
    fetched = await async_client.get(f"{REQUESTS_URL}/{data['id']}", headers=auth_headers(seed.admin_id, "admin"))
    assert fetched.status_code == 404
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (2, 0)


# ---------------------------------------------------------------------------
# Admin-created requests
# ---------------------------------------------------------------------------


async def test_admin_creates_and_approves_in_one_step(async_client: AsyncClient, seed: Seed) -> None:
    resp = await async_client.post(
        f"{REQUESTS_URL}/admin",
        json={
            "employee_id": str(seed.employee_id),
            "leave_type": "Vacation",
            "start_date": _day().isoformat(),
            "end_date": _day(1).isoformat(),
            "approve": True,
        },
        headers=auth_headers(seed.admin_id, "admin"),
    )

    assert resp.status_code == 201
    assert resp.json()["status"] == "approved"
    assert await _usage_of(async_client, seed, seed.employee_id, seed.vacation_id) == (2, 0)


async def test_admin_create_over_quota_leaves_no_request(
    async_client: AsyncClient, seed: Seed, db_session: AsyncSession
) -> None:
    resp = await async_client.post(
        f"{REQUESTS_URL}/admin",
        json={
            "employee_id": str(seed.employee_id),
            "leave_type": "Vacation",
            "start_date": _day().isoformat(),
            "end_date": _day(5).isoformat(),
            "approve": True,
        },
        headers=auth_headers(seed.admin_id, "admin"),
    )

    assert resp.status_code == 400
    result = await db_session.execute(select(LeaveRequest))
    assert result.scalars().all() == []


async def test_admin_create_pending_by_default(async_client: AsyncClient, seed: Seed) -> None:
    resp = await async_client.post(
        f"{REQUESTS_URL}/admin",
        json={"employee_id": str(seed.contractor_id), "leave_type": "Vacation", "start_date": _day().isoformat()},
        headers=auth_headers(seed.admin_id, "admin"),
    )

    assert resp.status_code == 201
    assert resp.json()["status"] == "pending"
    assert await _usage_of(async_client, seed, seed.contractor_id, seed.vacation_id) == (0, 0)


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


async def test_update_pending_request_dates(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id)

    resp = await async_client.put(
        f"{REQUESTS_URL}/{req['id']}",
        json={"start_date": _day(3).isoformat(), "end_date": _day(5).isoformat(), "reason": "Trip"},
        headers=auth_headers(seed.employee_id),
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["duration_days"] == 3
    assert data["reason"] == "Trip"


async def test_update_switches_to_hourly(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id)

    resp = await async_client.put(
        f"{REQUESTS_URL}/{req['id']}",
        json={"start_time": time(9, 0).isoformat(), "end_time": time(11, 0).isoformat()},
        headers=auth_headers(seed.employee_id),
    )

    assert resp.status_code == 200
    assert resp.json()["duration_unit"] == "hour"
    assert resp.json()["duration_hours"] == 2


async def test_update_with_invalid_range_returns_422(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id, offset=5)

    resp = await async_client.put(
        f"{REQUESTS_URL}/{req['id']}",
        json={"end_date": _day().isoformat()},
        headers=auth_headers(seed.employee_id),
    )

    assert resp.status_code == 422


async def test_update_approved_request_conflicts(async_client: AsyncClient, seed: Seed) -> None:
    data = await _submit_and_approve(async_client, seed, days=1)

    resp = await async_client.put(
        f"{REQUESTS_URL}/{data['id']}",
        json={"end_date": _day(4).isoformat()},
        headers=auth_headers(seed.admin_id, "admin"),
    )

    assert resp.status_code == 409


async def test_update_into_the_past_rejected_by_default(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id)
    past = date.today() - timedelta(days=10)

    resp = await async_client.put(
        f"{REQUESTS_URL}/{req['id']}",
        json={"start_date": past.isoformat(), "end_date": past.isoformat()},
        headers=auth_headers(seed.employee_id),
    )

    assert resp.status_code == 400
    assert "Backdated" in resp.json()["detail"]
    fetched = await async_client.get(f"{REQUESTS_URL}/{req['id']}", headers=auth_headers(seed.employee_id))
    assert fetched.json()["start_date"] == req["start_date"]
    assert fetched.json()["backdated"] is False


async def test_update_into_the_past_with_override(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id)
    past = date.today() - timedelta(days=10)

    resp = await async_client.put(
        f"{REQUESTS_URL}/{req['id']}",
        json={"start_date": past.isoformat(), "end_date": past.isoformat(), "allow_backdated": True},
        headers=auth_headers(seed.employee_id),
    )

    assert resp.status_code == 200
    assert resp.json()["backdated"] is True


async def test_update_reason_of_backdated_request_keeps_dates(async_client: AsyncClient, seed: Seed) -> None:
    past = date.today() - timedelta(days=10)
    req = await _submit(
        async_client, seed.employee_id, start_date=past.isoformat(), end_date=past.isoformat(), allow_backdated=True
    )

    resp = await async_client.put(
        f"{REQUESTS_URL}/{req['id']}",
        json={"reason": "Doctor's note attached"},
        headers=auth_headers(seed.employee_id),
    )

    assert resp.status_code == 200
    assert resp.json()["backdated"] is True


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


async def test_list_requests_filters_by_status(async_client: AsyncClient, seed: Seed) -> None:
    await _submit_and_approve(async_client, seed, days=1)
    await _submit(async_client, seed.employee_id, offset=10)

    resp = await async_client.get(
        REQUESTS_URL, params={"status": "pending"}, headers=auth_headers(seed.admin_id, "admin")
    )

    assert resp.status_code == 200
    assert resp.json()["total"] == 1
    assert resp.json()["items"][0]["status"] == "pending"


async def test_employee_lists_only_own_requests(async_client: AsyncClient, seed: Seed) -> None:
    await _submit(async_client, seed.employee_id)
    await _submit(async_client, seed.contractor_id)

    resp = await async_client.get(REQUESTS_URL, headers=auth_headers(seed.contractor_id))

    assert resp.json()["total"] == 1
    assert resp.json()["items"][0]["employee_id"] == str(seed.contractor_id)


async def test_employee_cannot_read_someone_elses_request(async_client: AsyncClient, seed: Seed) -> None:
    req = await _submit(async_client, seed.employee_id)

    resp = await async_client.get(f"{REQUESTS_URL}/{req['id']}", headers=auth_headers(seed.contractor_id))

    assert resp.status_code == 403
