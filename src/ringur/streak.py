"""Valid-day streak tracking"""

from datetime import date, timedelta
from typing import Any, Iterable, List, Optional, Tuple

from .actions import VALID_DAY_THRESHOLD
from .dates import to_date

STREAK_MILESTONES = (7, 30, 90, 180, 365)
ROLLING_WINDOW_DAYS = 7


def _field(log: Any, *names: str):
    for name in names:
        if isinstance(log, dict):
            if name in log:
                return log[name]
        elif hasattr(log, name):
            return getattr(log, name)
    raise KeyError(f"log entry has none of {names}")


def _entries(logs: Iterable[Any]) -> List[Tuple[date, bool]]:
    return [
        (to_date(_field(log, "log_date", "date")), bool(_field(log, "is_valid_day")))
        for log in logs
    ]


def compute_streak(logs: Iterable[Any], today: Optional[date] = None) -> int:
    """Valid-day streak ending today or yesterday.

    ``logs`` are habit-log records or mappings with ``log_date`` (or
    ``date``) and ``is_valid_day``. Each counted day moves the expected
    date to the day before it, and a log up to one day earlier than that
    still counts, so a single missing day is bridged. A gap of two or
    more days, or an explicit invalid day, ends the streak.
    """
    entries = sorted(_entries(logs), key=lambda entry: entry[0], reverse=True)

    streak = 0
    expected = today or date.today()

    for log_date, valid in entries:
        if (expected - log_date).days > 1:
            break
        if not valid:
            break
        streak += 1
        expected = log_date - timedelta(days=1)

    return streak


def longest_streak(logs: Iterable[Any]) -> int:
    """Longest run of valid days on consecutive calendar dates"""
    valid_days = sorted({log_date for log_date, valid in _entries(logs) if valid})

    longest = 0
    run = 0
    previous = None
    for day in valid_days:
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day
    return longest


def weekly_valid_days(logs: Iterable[Any], today: Optional[date] = None) -> int:
    """Valid days among the last 7 calendar days, today included"""
    today = today or date.today()
    window_start = today - timedelta(days=ROLLING_WINDOW_DAYS - 1)
    return len({
        log_date for log_date, valid in _entries(logs)
        if valid and window_start <= log_date <= today
    })


def next_milestone(streak: int) -> Optional[int]:
    for milestone in STREAK_MILESTONES:
        if streak < milestone:
            return milestone
    return None


def days_to_next_milestone(streak: int) -> Optional[int]:
    milestone = next_milestone(streak)
    if milestone is None:
        return None
    return milestone - streak


def is_streak_at_risk(
    streak: int,
    last_valid_date: Optional[date],
    today: Optional[date] = None,
) -> bool:
    """A running streak is at risk until today is logged as valid"""
    if streak == 0 or last_valid_date is None:
        return False
    return last_valid_date != (today or date.today())


def streak_message(
    streak: int,
    last_valid_date: Optional[date],
    today_progress: float,
    today: Optional[date] = None,
) -> str:
    today = today or date.today()
    valid_today = today_progress >= VALID_DAY_THRESHOLD

    if streak == 0:
        if today_progress > 0:
            remaining = VALID_DAY_THRESHOLD - today_progress
            return f"{remaining:.1f} more points to start your streak!"
        return "Log an action to start your streak!"

    if valid_today or last_valid_date == today:
        milestone = next_milestone(streak)
        if milestone:
            to_go = milestone - streak
            if to_go <= 3:
                return f"{to_go} day{'' if to_go == 1 else 's'} to {milestone}-day milestone!"
        return f"{streak} valid days and counting!"

    if today_progress > 0:
        remaining = VALID_DAY_THRESHOLD - today_progress
        return f"{remaining:.1f} more points to keep your streak!"

    return "Log an action to protect your streak!"
