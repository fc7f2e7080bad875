# ruff: noqa: TC003
"""Notification channel for leave request events.

The production transport (socket rooms, push) lives outside this service; the
request service only depends on the :class:`LeaveEventNotifier` protocol and
receives an implementation through FastAPI dependency injection.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

logger = logging.getLogger(__name__)

ADMIN_ROOM = "admin_room"

# Event names.
LEAVE_REQUEST_CREATED = "leave_request.created"
LEAVE_REQUEST_UPDATED = "leave_request.updated"
LEAVE_REQUEST_STATUS_CHANGED = "leave_request.status_changed"
LEAVE_REQUEST_DELETED = "leave_request.deleted"
USAGE_RESET = "usage.reset"


def employee_room(employee_id: uuid.UUID) -> str:
    """Room that reaches a single employee."""
    return f"user_{employee_id}"


class LeaveEvent(BaseModel):
    """An event addressed to a room of the notification channel."""

    event: str
    room: str
    payload: dict[str, Any]


@runtime_checkable
class LeaveEventNotifier(Protocol):
    """Interface for the notification channel."""

    async def publish(self, event: LeaveEvent) -> None:
        """Deliver an event. May raise on transport failure."""
        ...


class InMemoryNotifier:
    """In-memory implementation that records published events."""

    def __init__(self) -> None:
        self.events: list[LeaveEvent] = []

    async def publish(self, event: LeaveEvent) -> None:
        """Record the event."""
        self.events.append(event)

    def for_room(self, room: str) -> list[LeaveEvent]:
        """Events published to ``room``, oldest first."""
        return [e for e in self.events if e.room == room]


async def publish_safely(notifier: LeaveEventNotifier, events: list[LeaveEvent]) -> None:
    """Publish events after a commit; failures are logged, never raised."""
    for event in events:
        try:
            await notifier.publish(event)
        except Exception:
            logger.exception("Failed to publish %s to %s", event.event, event.room)


_notifier: LeaveEventNotifier = InMemoryNotifier()


def get_notifier() -> LeaveEventNotifier:
    """FastAPI dependency for the notification channel."""
    return _notifier


def set_notifier(notifier: LeaveEventNotifier) -> None:
    """Override the notifier (for testing or production wiring)."""
    global _notifier
    _notifier = notifier
