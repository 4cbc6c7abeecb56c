"""Daily schedule for unattended cleanup runs."""

from datetime import datetime
from typing import Optional


def is_auto_cleanup_due(last_run: Optional[datetime], now: datetime, run_hour: int = 2) -> bool:
    """Check whether the daily automatic cleanup should run now.

    It runs once per calendar day, during the configured hour.
    """
    if last_run is not None and last_run.date() == now.date():
        return False
    return now.hour == run_hour


def describe_next_run(last_run: Optional[datetime], now: datetime, run_hour: int = 2) -> str:
    """Describe when the next automatic cleanup will happen."""
    at = f"{run_hour:02d}:00"
    if last_run is not None and last_run.date() == now.date():
        return f"ran at {last_run:%H:%M}, next: tomorrow at {at}"
    if now.hour < run_hour:
        return f"tonight at {at}"
    if now.hour == run_hour:
        return f"today at {at}"
    return f"tomorrow at {at}"
