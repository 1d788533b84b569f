"""
Tests for the record store and the relationship tracker.

Usage:
    pytest tests/test_relationship.py -v
"""
import logging
from datetime import date, timedelta

import pytest

from ringur.decay import replay_strength
from ringur.models import (
    ActionType,
    CatchupFrequency,
    Connection,
    ConnectionLifecycle,
    DailyAction,
    RelationshipStrength,
)
from ringur.store import RecordStore

from conftest import TODAY, make_connection


class TestRecordStore:
    """Persistence and lookup."""

    def test_round_trip_on_disk(self, data_dir, store):
        store.add_connection(make_connection("Ana", last_days_ago=3))
        store.add_action(DailyAction(date=TODAY, action_type=ActionType.CALL, connection_id="ana"))

        reopened = RecordStore(data_dir)
        assert reopened.get_connection("ana").name == "Ana"
        assert reopened.get_connection("ana").last_interaction_date == TODAY - timedelta(days=3)
        [action] = reopened.actions_for("ana")
        assert action.weight == 3
        assert action.id is not None

    def test_find_connection(self, store):
        store.add_connection(make_connection("Ana Lima", conn_id="c1"))
        assert store.find_connection("c1").name == "Ana Lima"
        assert store.find_connection("ana lima").id == "c1"
        assert store.find_connection("Ana") is None

    def test_remove_connection_drops_actions(self, store):
        store.add_connection(make_connection("Ana"))
        store.add_connection(make_connection("Ben"))
        store.add_actions([
            DailyAction(date=TODAY, action_type=ActionType.TEXT, connection_id="ana"),
            DailyAction(date=TODAY, action_type=ActionType.TEXT, connection_id="ben"),
        ])
        assert store.remove_connection("ana")
        assert not store.remove_connection("ana")
        assert [a.connection_id for a in store.actions_for()] == ["ben"]

    def test_actions_between_half_open(self, store):
        store.add_actions([
            DailyAction(date=TODAY - timedelta(days=n), action_type=ActionType.TEXT) for n in range(5)
        ])
        selected = store.actions_between(TODAY - timedelta(days=3), TODAY)
        assert sorted(a.date for a in selected) == [TODAY - timedelta(days=n) for n in (3, 2, 1)]

    def test_delete_action(self, store):
        action = store.add_action(DailyAction(date=TODAY, action_type=ActionType.TEXT))
        assert store.delete_action(action.id)
        assert not store.delete_action(action.id)


class TestLogAction:
    """Logging contact updates health and connection."""

    def test_unknown_connection(self, tracker):
        with pytest.raises(KeyError):
            tracker.log_action("nobody", ActionType.TEXT, today=TODAY)

    def test_new_connection_is_stable(self, tracker):
        conn = tracker.add_connection("Ana")
        assert tracker.get_health(conn.id).current_strength is RelationshipStrength.STABLE

    def test_missing_health_estimated_from_cadence(self, tracker, store):
        store.add_connection(Connection(
            id="ana", name="Ana", catchup_frequency=CatchupFrequency.WEEKLY,
            last_interaction_date=date.today() - timedelta(days=2),
        ))
        store.add_connection(Connection(id="ben", name="Ben"))
        assert tracker.get_health("ana").current_strength is RelationshipStrength.FLOURISHING
        assert tracker.get_health("ben").current_strength is RelationshipStrength.STABLE

    def test_contact_steps_up_once_per_day(self, tracker):
        conn = tracker.add_connection("Ana")
        _, health = tracker.log_action(conn.id, ActionType.CALL, today=TODAY)
        assert health.current_strength is RelationshipStrength.STRONG
        assert health.last_evaluated == TODAY

        _, health = tracker.log_action(conn.id, ActionType.TEXT, today=TODAY)
        assert health.current_strength is RelationshipStrength.STRONG
        assert health.total_actions_logged == 2
        assert health.total_weight_accumulated == 4
        assert health.last_action_type is ActionType.TEXT

    def test_legacy_type_translated(self, tracker):
        conn = tracker.add_connection("Ana")
        action, _ = tracker.log_action(conn.id, "group_activity", today=TODAY)
        assert action.action_type is ActionType.IN_PERSON_1ON1
        assert action.weight == 6

    def test_backdated_action_keeps_latest_contact(self, tracker):
        conn = tracker.add_connection("Ana")
        tracker.log_action(conn.id, ActionType.CALL, today=TODAY)
        tracker.log_action(conn.id, ActionType.TEXT, on=TODAY - timedelta(days=5), today=TODAY)
        assert tracker.store.get_connection(conn.id).last_interaction_date == TODAY
        assert tracker.get_health(conn.id).last_action_type is ActionType.CALL

    def test_contact_resets_nudge_level(self, tracker):
        conn = tracker.add_connection("Ana")
        tracker.nudge(conn.id)
        tracker.nudge(conn.id)
        assert tracker.get_health(conn.id).last_nudge_level == 2
        tracker.log_action(conn.id, ActionType.CALL, today=TODAY)
        assert tracker.get_health(conn.id).last_nudge_level == 0


class TestRefresh:
    """Daily re-evaluation of strength."""

    def test_recent_contact_keeps_climbing(self, tracker):
        conn = tracker.add_connection("Ana")
        tracker.log_action(conn.id, ActionType.CALL, today=TODAY)
        health = tracker.refresh(TODAY + timedelta(days=1))[conn.id]
        assert health.current_strength is RelationshipStrength.FLOURISHING
        assert health.previous_strength is RelationshipStrength.STRONG

    def test_same_day_refresh_is_idempotent(self, tracker):
        conn = tracker.add_connection("Ana")
        tracker.log_action(conn.id, ActionType.CALL, on=TODAY - timedelta(days=10), today=TODAY - timedelta(days=10))
        first = tracker.refresh(TODAY)[conn.id]
        second = tracker.refresh(TODAY)[conn.id]
        assert first.current_strength is second.current_strength is RelationshipStrength.STABLE

    def test_silence_decays_to_pending_action(self, tracker, caplog):
        caplog.set_level(logging.INFO)
        start = TODAY - timedelta(days=40)
        conn = tracker.add_connection("Ana")
        tracker.log_action(conn.id, ActionType.CALL, today=start)

        health = tracker.refresh(TODAY - timedelta(days=30))[conn.id]
        assert health.current_strength is RelationshipStrength.STABLE
        assert health.decay_started_at is None

        health = tracker.refresh(TODAY)[conn.id]
        assert health.current_strength is RelationshipStrength.DECAYING
        assert health.decay_started_at == TODAY
        assert health.days_since_action == 40
        assert tracker.store.get_connection(conn.id).lifecycle is ConnectionLifecycle.PENDING_ACTION
        assert "needs a decision" in caplog.text

    def test_contact_reactivates_pending_connection(self, tracker):
        conn = tracker.add_connection("Ana")
        tracker.log_action(conn.id, ActionType.TEXT, today=TODAY - timedelta(days=40))
        tracker.refresh(TODAY)
        _, health = tracker.log_action(conn.id, ActionType.IN_PERSON_1ON1, today=TODAY + timedelta(days=1))
        assert health.current_strength is RelationshipStrength.THINNING
        assert health.decay_started_at is not None
        assert tracker.store.get_connection(conn.id).lifecycle is ConnectionLifecycle.ACTIVE

    def test_archived_connections_skipped(self, tracker):
        conn = tracker.add_connection("Ana")
        archived = tracker.store.get_connection(conn.id).model_copy(
            update={"lifecycle": ConnectionLifecycle.ARCHIVED}
        )
        tracker.store.update_connection(archived)
        assert tracker.refresh(TODAY) == {}
        assert tracker.sorted_connections(today=TODAY) == []


class TestRebuildHealth:
    """Strength caches are re-derivable from actions."""

    def test_matches_replay(self, tracker):
        conn = tracker.add_connection("Ana")
        dates = [TODAY - timedelta(days=n) for n in (20, 19, 4)]
        for day in dates:
            tracker.log_action(conn.id, ActionType.CALL, on=day, today=day)

        rebuilt = tracker.rebuild_health(conn.id, TODAY)
        assert rebuilt.current_strength is replay_strength(dates, TODAY, tracker.thresholds)
        assert rebuilt.total_actions_logged == 3
        assert rebuilt.total_weight_accumulated == 9
        assert rebuilt.last_action_date == TODAY - timedelta(days=4)

    def test_stale_cache_is_reported(self, tracker, caplog):
        conn = tracker.add_connection("Ana")
        tracker.log_action(conn.id, ActionType.CALL, today=TODAY)
        tracker.store.save_health(tracker.get_health(conn.id).model_copy(
            update={"current_strength": RelationshipStrength.DECAYING}
        ))
        rebuilt = tracker.rebuild_health(conn.id, TODAY)
        assert rebuilt.current_strength is RelationshipStrength.STRONG
        assert "Stale strength cache" in caplog.text

    def test_no_actions(self, tracker):
        conn = tracker.add_connection("Ana")
        rebuilt = tracker.rebuild_health(conn.id, TODAY)
        assert rebuilt.current_strength is RelationshipStrength.STABLE
        assert rebuilt.last_action_date is None

    def test_rebuild_records_transition(self, tracker, store):
        conn = tracker.add_connection("Ana")
        store.add_action(DailyAction(
            date=TODAY - timedelta(days=40), action_type=ActionType.CALL, connection_id=conn.id,
        ))
        rebuilt = tracker.rebuild_health(conn.id, TODAY)
        assert rebuilt.current_strength is RelationshipStrength.DECAYING
        assert rebuilt.previous_strength is RelationshipStrength.STABLE
        assert rebuilt.strength_changed_at == TODAY
        assert rebuilt.decay_started_at == TODAY
        assert store.get_connection(conn.id).lifecycle is ConnectionLifecycle.PENDING_ACTION

    def test_unknown_connection(self, tracker):
        with pytest.raises(KeyError):
            tracker.rebuild_health("nobody", TODAY)


class TestNudge:
    """Escalation nudges are remembered until contact."""

    def test_ladder_then_stop(self, tracker):
        conn = tracker.add_connection("Ana")
        levels = [tracker.nudge(conn.id) for _ in range(4)]
        assert [n.level for n in levels[:3]] == [1, 2, 3]
        assert levels[3] is None


class TestHabitLogsAndStreak:
    """Per-day aggregation feeds the streak."""

    def test_streak_from_logged_actions(self, tracker):
        conn = tracker.add_connection("Ana")
        for n in (1, 2, 3):
            day = TODAY - timedelta(days=n)
            tracker.log_action(conn.id, ActionType.TEXT, on=day, today=day)
        assert tracker.streak(TODAY) == 3

        tracker.log_action(conn.id, ActionType.CALL, today=TODAY)
        logs = tracker.habit_logs()
        assert logs[0].log_date == TODAY
        assert logs[0].total_weight == 3
        assert tracker.streak(TODAY) == 4

    def test_cache_reused_until_new_action(self, tracker):
        conn = tracker.add_connection("Ana")
        tracker.log_action(conn.id, ActionType.TEXT, today=TODAY)
        first = tracker.habit_logs()
        assert tracker.habit_logs() is first

        tracker.log_action(conn.id, ActionType.TEXT, on=TODAY - timedelta(days=1), today=TODAY)
        assert tracker.habit_logs() is not first

    def test_longest_and_weekly(self, tracker):
        conn = tracker.add_connection("Ana")
        for n in (10, 9, 8, 1, 0):
            day = TODAY - timedelta(days=n)
            tracker.log_action(conn.id, ActionType.CALL, on=day, today=day)
        assert tracker.streak(TODAY) == 2
        assert tracker.longest_streak(TODAY) == 3
        assert tracker.weekly_valid_days(TODAY) == 2

    def test_longest_covers_bridged_streak(self, tracker):
        conn = tracker.add_connection("Ana")
        for n in (4, 3, 1, 0):
            day = TODAY - timedelta(days=n)
            tracker.log_action(conn.id, ActionType.CALL, on=day, today=day)
        assert tracker.streak(TODAY) == 4
        assert tracker.longest_streak(TODAY) == 4


class TestWeeklyReview:
    """Review scores the calendar week and suggests actions."""

    def test_review(self, tracker):
        ana = tracker.add_connection("Ana")
        ben = tracker.add_connection("Ben")
        tracker.log_action(ana.id, ActionType.CALL, on=TODAY, today=TODAY)
        tracker.log_action(ana.id, ActionType.TEXT, on=TODAY - timedelta(days=1), today=TODAY)
        # Last week, outside the reviewed window
        tracker.log_action(ben.id, ActionType.TEXT, on=TODAY - timedelta(days=40),
                           today=TODAY - timedelta(days=40))
        tracker.refresh(TODAY)

        patterns, suggestions = tracker.weekly_review(TODAY, TODAY)
        assert patterns.depth_score == 50
        assert patterns.variety_score == 67
        assert patterns.consistency_score == 29
        assert suggestions[0].target_connection_name == "Ben"
