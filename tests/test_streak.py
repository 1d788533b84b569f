"""
Unit tests for valid-day streaks.
"""
from datetime import timedelta

from ringur.models import DailyHabitLog
from ringur.streak import (
    compute_streak,
    days_to_next_milestone,
    is_streak_at_risk,
    longest_streak,
    next_milestone,
    streak_message,
    weekly_valid_days,
)

from conftest import TODAY


def log(days_ago, valid=True):
    return {"date": (TODAY - timedelta(days=days_ago)).isoformat(), "is_valid_day": valid}


class TestComputeStreak:
    """Consecutive valid days ending today or yesterday."""

    def test_empty(self):
        assert compute_streak([], TODAY) == 0

    def test_today_not_logged_yet(self):
        logs = [log(1), log(2), log(3)]
        assert compute_streak(logs, TODAY) == 3

    def test_unsorted_input(self):
        logs = [log(2), log(0), log(1)]
        assert compute_streak(logs, TODAY) == 3

    def test_two_day_gap_breaks(self):
        logs = [log(0), log(1), log(4), log(5)]
        assert compute_streak(logs, TODAY) == 2

    def test_single_missing_day_bridged(self):
        logs = [log(0), log(1), log(3), log(4)]
        assert compute_streak(logs, TODAY) == 4

    def test_invalid_day_breaks(self):
        logs = [log(0), log(1, valid=False), log(2)]
        assert compute_streak(logs, TODAY) == 1

    def test_invalid_today_breaks_immediately(self):
        logs = [log(0, valid=False), log(1), log(2)]
        assert compute_streak(logs, TODAY) == 0

    def test_stale_history(self):
        logs = [log(2), log(3)]
        assert compute_streak(logs, TODAY) == 0

    def test_accepts_habit_logs(self):
        logs = [
            DailyHabitLog(log_date=TODAY, total_weight=3, action_count=1, is_valid_day=True),
            DailyHabitLog(log_date=TODAY - timedelta(days=1), total_weight=1, action_count=1, is_valid_day=True),
        ]
        assert compute_streak(logs, TODAY) == 2


class TestLongestStreak:
    """Best run of valid days on consecutive dates."""

    def test_empty(self):
        assert longest_streak([]) == 0

    def test_older_run_wins(self):
        logs = [log(10), log(9), log(8), log(5), log(4)]
        assert longest_streak(logs) == 3

    def test_invalid_day_splits_run(self):
        logs = [log(3), log(2, valid=False), log(1), log(0)]
        assert longest_streak(logs) == 2

    def test_missing_day_splits_run(self):
        logs = [log(4), log(3), log(1), log(0)]
        assert longest_streak(logs) == 2


class TestWeeklyValidDays:
    """Valid days in the rolling seven-day window."""

    def test_window_includes_today_and_six_days_back(self):
        logs = [log(0), log(2), log(6), log(7), log(3, valid=False)]
        assert weekly_valid_days(logs, TODAY) == 3

    def test_future_logs_ignored(self):
        logs = [{"date": (TODAY + timedelta(days=1)).isoformat(), "is_valid_day": True}]
        assert weekly_valid_days(logs, TODAY) == 0


class TestMilestones:
    """Milestone lookup."""

    def test_next(self):
        assert next_milestone(0) == 7
        assert next_milestone(7) == 30
        assert next_milestone(365) is None
        assert days_to_next_milestone(25) == 5
        assert days_to_next_milestone(400) is None


class TestRisk:
    """A streak is at risk until today counts."""

    def test_at_risk(self):
        assert is_streak_at_risk(4, TODAY - timedelta(days=1), TODAY)
        assert not is_streak_at_risk(4, TODAY, TODAY)
        assert not is_streak_at_risk(0, None, TODAY)


class TestMessages:
    """Encouragement text."""

    def test_no_streak(self):
        assert streak_message(0, None, 0, TODAY) == "Log an action to start your streak!"

    def test_near_milestone(self):
        assert streak_message(5, TODAY, 3, TODAY) == "2 days to 7-day milestone!"
        assert streak_message(6, TODAY, 3, TODAY) == "1 day to 7-day milestone!"

    def test_counting(self):
        assert streak_message(12, TODAY, 1, TODAY) == "12 valid days and counting!"

    def test_protect(self):
        assert streak_message(12, TODAY - timedelta(days=1), 0, TODAY) == "Log an action to protect your streak!"
