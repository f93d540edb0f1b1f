"""Change freeze (blackout window) check.

While a window is active the run stops before touching any pull request.
"""

from datetime import UTC, datetime, timedelta
from typing import Iterable

from stagebot.config import BlackoutWindow


def is_within_blackout(
    windows: Iterable[BlackoutWindow],
    now: datetime | None = None,
    offset_days: int = 0,
) -> bool:
    """True if now (shifted by offset_days) falls in any window, ends inclusive."""
    moment = (now or datetime.now(UTC)) + timedelta(days=offset_days)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return any(w.start <= moment <= w.end for w in windows)
