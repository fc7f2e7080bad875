"""Tests for the notification channel and the reset worker schedule."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest

from leave_ledger.config import Settings
from leave_ledger.services.notifier import (
    ADMIN_ROOM,
    InMemoryNotifier,
    LeaveEvent,
    LeaveEventNotifier,
    employee_room,
    get_notifier,
    publish_safely,
    set_notifier,
)
from leave_ledger.worker import should_reset

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def _restore_notifier() -> Iterator[None]:
    original = get_notifier()
    yield
    set_notifier(original)


def test_in_memory_notifier_satisfies_protocol() -> None:
    assert isinstance(InMemoryNotifier(), LeaveEventNotifier)


def test_employee_room_name() -> None:
    employee_id = uuid.UUID("12345678-1234-5678-1234-567812345678")
    assert employee_room(employee_id) == "user_12345678-1234-5678-1234-567812345678"


async def test_in_memory_notifier_records_by_room() -> None:
    notifier = InMemoryNotifier()
    await notifier.publish(LeaveEvent(event="a", room=ADMIN_ROOM, payload={}))
    await notifier.publish(LeaveEvent(event="b", room="user_x", payload={}))

    assert [e.event for e in notifier.for_room(ADMIN_ROOM)] == ["a"]
    assert len(notifier.events) == 2


async def test_publish_safely_logs_and_continues(caplog: pytest.LogCaptureFixture) -> None:
    delivered: list[str] = []

    class FlakyNotifier:
        async def publish(self, event: LeaveEvent) -> None:
            if event.event == "boom":
                msg = "transport down"
                raise ConnectionError(msg)
            delivered.append(event.event)

    events = [
        LeaveEvent(event="boom", room=ADMIN_ROOM, payload={}),
        LeaveEvent(event="ok", room=ADMIN_ROOM, payload={}),
    ]
    with caplog.at_level("ERROR", logger="leave_ledger.services.notifier"):
        await publish_safely(FlakyNotifier(), events)

    assert delivered == ["ok"]
    assert "Failed to publish boom" in caplog.text


@pytest.mark.usefixtures("_restore_notifier")
def test_set_notifier_overrides_dependency() -> None:
    custom = InMemoryNotifier()
    set_notifier(custom)
    assert get_notifier() is custom


# ---------------------------------------------------------------------------
# Worker schedule
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("today", "last_reset_year", "expected"),
    [
        (date(2027, 1, 1), None, True),
        (date(2027, 1, 1), 2026, True),
        (date(2027, 1, 1), 2027, False),
        (date(2027, 1, 2), None, False),
        (date(2026, 12, 31), 2026, False),
    ],
)
def test_should_reset_once_on_new_year(today: date, last_reset_year: int | None, expected: bool) -> None:
    assert should_reset(today, last_reset_year) is expected


def test_settings_today_uses_business_timezone() -> None:
    settings = Settings(timezone="Asia/Bangkok")
    assert isinstance(settings.today(), date)
