"""Duration normalization for leave requests.

All quota arithmetic goes through :class:`LeaveDuration`, a single value type
measured in minutes. The mixed day+hour representation only appears at the
edges: the usage row columns and the API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from leave_ledger.models.enums import DurationUnit

if TYPE_CHECKING:
    from leave_ledger.models.request import LeaveRequest

_MINUTES_PER_HOUR = 60
_MINUTES_PER_CLOCK_DAY = 24 * _MINUTES_PER_HOUR
_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class LeaveDuration:
    """A leave amount in minutes, with the working-day length used to split it."""

    minutes: int
    hours_per_day: int
    unit: DurationUnit = DurationUnit.DAY

    def __post_init__(self) -> None:
        if self.hours_per_day <= 0:
            msg = "hours_per_day must be positive"
            raise ValueError(msg)
        if self.minutes < 0:
            msg = "minutes must not be negative"
            raise ValueError(msg)

    @classmethod
    def from_parts(
        cls,
        days: int,
        hours: int,
        hours_per_day: int,
        unit: DurationUnit = DurationUnit.DAY,
    ) -> LeaveDuration:
        """Build a duration from whole days and whole hours."""
        return cls(
            minutes=(days * hours_per_day + hours) * _MINUTES_PER_HOUR,
            hours_per_day=hours_per_day,
            unit=unit,
        )

    @property
    def minutes_per_day(self) -> int:
        return self.hours_per_day * _MINUTES_PER_HOUR

    @property
    def days(self) -> int:
        """Whole working days after carrying full days out of the hours."""
        return self.minutes // self.minutes_per_day

    @property
    def hours(self) -> int:
        """Whole hours left over after :attr:`days`; always below ``hours_per_day``."""
        return (self.minutes % self.minutes_per_day) // _MINUTES_PER_HOUR

    @property
    def charged_minutes(self) -> int:
        """Minutes the ledger books: partial hours are truncated."""
        return (self.days * self.hours_per_day + self.hours) * _MINUTES_PER_HOUR

    @property
    def elapsed_hours(self) -> Decimal:
        """Exact elapsed hours, for display."""
        return (Decimal(self.minutes) / _MINUTES_PER_HOUR).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)

    def as_days(self) -> Decimal:
        """Charged duration expressed in (fractional) working days, two decimals."""
        return minutes_to_days(self.charged_minutes, self.hours_per_day)


def minutes_to_days(minutes: int, hours_per_day: int) -> Decimal:
    """Convert minutes to working days with two-decimal precision."""
    day_minutes = Decimal(hours_per_day * _MINUTES_PER_HOUR)
    return (Decimal(minutes) / day_minutes).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def _minutes_of_day(value: time) -> int:
    return value.hour * _MINUTES_PER_HOUR + value.minute


def _inclusive_day_count(start_date: date, end_date: date) -> int:
    """Calendar days from start to end inclusive; 0 when the range is inverted."""
    days = (end_date - start_date).days + 1
    return max(days, 0)


def normalize_duration(
    start_date: date | None,
    end_date: date | None,
    start_time: time | None,
    end_time: time | None,
    hours_per_day: int,
) -> LeaveDuration:
    """Compute the normalized duration of a leave request.

    A time range wins over a date range. An end time earlier than the start
    time wraps past midnight (22:00-02:00 is four hours). Date ranges count
    inclusive calendar days and never go negative.
    """
    if start_time is not None and end_time is not None:
        elapsed = (_minutes_of_day(end_time) - _minutes_of_day(start_time)) % _MINUTES_PER_CLOCK_DAY
        return LeaveDuration(minutes=elapsed, hours_per_day=hours_per_day, unit=DurationUnit.HOUR)

    if start_date is not None and end_date is not None:
        days = _inclusive_day_count(start_date, end_date)
        return LeaveDuration.from_parts(days, 0, hours_per_day, unit=DurationUnit.DAY)

    return LeaveDuration(minutes=0, hours_per_day=hours_per_day, unit=DurationUnit.DAY)


def request_duration(request: LeaveRequest, hours_per_day: int) -> LeaveDuration:
    """Normalize the stored fields of a leave request.

    Deterministic in the stored fields, so the amount reverted later matches
    the amount consumed at approval.
    """
    return normalize_duration(
        request.start_date,
        request.end_date,
        request.start_time,
        request.end_time,
        hours_per_day,
    )
