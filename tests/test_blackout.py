"""Tests for is_within_blackout."""

from datetime import UTC, datetime, timedelta

from stagebot.blackout import is_within_blackout
from stagebot.config import BlackoutWindow

START = datetime(2024, 11, 25, tzinfo=UTC)
END = datetime(2024, 11, 29, 23, 59, tzinfo=UTC)
WINDOWS = [BlackoutWindow(start=START, end=END)]


def test_inside_window() -> None:
    assert is_within_blackout(WINDOWS, now=START + timedelta(days=1))


def test_bounds_inclusive() -> None:
    assert is_within_blackout(WINDOWS, now=START)
    assert is_within_blackout(WINDOWS, now=END)


def test_outside_window() -> None:
    assert not is_within_blackout(WINDOWS, now=START - timedelta(seconds=1))
    assert not is_within_blackout(WINDOWS, now=END + timedelta(seconds=1))


def test_no_windows() -> None:
    assert not is_within_blackout([], now=START)


def test_offset_days_shifts_now() -> None:
    """An offset starts the freeze early (e.g. a day before the window)."""
    day_before = START - timedelta(hours=12)
    assert not is_within_blackout(WINDOWS, now=day_before)
    assert is_within_blackout(WINDOWS, now=day_before, offset_days=1)


def test_naive_now_treated_as_utc() -> None:
    assert is_within_blackout(WINDOWS, now=datetime(2024, 11, 26, 8, 0))
