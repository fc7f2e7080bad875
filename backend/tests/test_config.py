from __future__ import annotations

import pytest
from pydantic import ValidationError

from leave_ledger.config import Settings


def test_hours_per_day_defaults_to_eight() -> None:
    assert Settings().hours_per_day == 8


@pytest.mark.parametrize("hours", [0, -8])
def test_non_positive_hours_per_day_rejected_at_load(hours: int) -> None:
    with pytest.raises(ValidationError, match="hours_per_day"):
        Settings(hours_per_day=hours)


def test_hours_per_day_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOURS_PER_DAY", "0")
    with pytest.raises(ValidationError):
        Settings()
