"""Relationship tracking over stored connections and actions"""

import uuid
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple
import logging

from .actions import summarize_day, to_canonical, AnyActionType
from .cache import TTLCache
from .dates import days_since, week_start
from .decay import (
    RECENT_CONTACT_DAYS,
    derive_strength_from_recency,
    is_pending_action,
    next_strength,
    replay_strength,
)
from .escalation import ConnectionSnapshot, generate_suggested_actions, suggest_escalation
from .models import (
    CatchupFrequency,
    Connection,
    ConnectionHealth,
    ConnectionLifecycle,
    DailyAction,
    DailyHabitLog,
    DecayThresholds,
    EscalationNudge,
    RelationshipStrength,
    RingTier,
    SuggestedAction,
    WeeklyPatternData,
)
from .patterns import analyze_week, split_weeks
from .priority import SortMode, sort_connections
from .store import RecordStore
from .streak import compute_streak, longest_streak, weekly_valid_days

HABIT_LOG_TTL_SECONDS = 5 * 60


class RelationshipTracker:
    """Applies the strength engine to the records kept in a RecordStore.

    Each connection's strength is evaluated at most once per calendar day,
    either when an action is logged or on refresh.
    """

    def __init__(self, store: RecordStore, thresholds: Optional[DecayThresholds] = None,
                 habit_log_cache: Optional[TTLCache] = None):
        self.store = store
        self.thresholds = thresholds or DecayThresholds()
        self.habit_log_cache = habit_log_cache or TTLCache(HABIT_LOG_TTL_SECONDS)
        self.logger = logging.getLogger(__name__)

    def add_connection(
        self,
        name: str,
        frequency: CatchupFrequency = CatchupFrequency.MONTHLY,
        ring_tier: RingTier = RingTier.CORE,
    ) -> Connection:
        connection = Connection(
            id=uuid.uuid4().hex[:16],
            name=name,
            catchup_frequency=frequency,
            ring_tier=ring_tier,
        )
        self.store.add_connection(connection)
        self.store.save_health(ConnectionHealth(connection_id=connection.id))
        self.logger.info(f"Added connection {name} ({connection.id})")
        return connection

    def get_health(self, connection_id: str) -> ConnectionHealth:
        """Cached health, or a first estimate from the contact cadence"""
        health = self.store.get_health(connection_id)
        if health is not None:
            return health

        connection = self.store.get_connection(connection_id)
        if connection is None:
            return ConnectionHealth(connection_id=connection_id)
        return ConnectionHealth(
            connection_id=connection_id,
            current_strength=derive_strength_from_recency(
                days_since(connection.last_interaction_date), connection.catchup_frequency
            ),
        )

    def log_action(
        self,
        connection_id: str,
        action_type: AnyActionType,
        on: Optional[date] = None,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Tuple[DailyAction, ConnectionHealth]:
        """Record a contact and re-evaluate the connection's strength"""
        connection = self.store.get_connection(connection_id)
        if connection is None:
            raise KeyError(f"Unknown connection: {connection_id}")

        today = today or date.today()
        action = self.store.add_action(DailyAction(
            date=on or today,
            action_type=to_canonical(action_type),
            connection_id=connection_id,
            notes=notes,
        ))
        self.habit_log_cache.clear()

        if connection.last_interaction_date is None or action.date > connection.last_interaction_date:
            connection = connection.model_copy(update={"last_interaction_date": action.date})
            if connection.lifecycle is ConnectionLifecycle.PENDING_ACTION:
                connection = connection.model_copy(update={"lifecycle": ConnectionLifecycle.ACTIVE})
            self.store.update_connection(connection)

        health = self.get_health(connection_id)
        health = health.model_copy(update={
            "total_actions_logged": health.total_actions_logged + 1,
            "total_weight_accumulated": health.total_weight_accumulated + action.weight,
        })
        if health.last_action_date is None or action.date >= health.last_action_date:
            health = health.model_copy(update={
                "last_action_date": action.date,
                "last_action_type": action.action_type,
                "last_nudge_level": 0,
            })
        health = self._evaluate(connection, health, today, new_contact=True)
        self.store.save_health(health)
        return action, health

    def _evaluate(self, connection: Connection, health: ConnectionHealth,
                  today: date, new_contact: bool = False) -> ConnectionHealth:
        days = days_since(health.last_action_date, today)

        if health.last_evaluated == today:
            # Once a day; fresh contact may still earn its single step up
            fresh_contact = days is not None and days <= RECENT_CONTACT_DAYS
            credited = (
                health.days_since_action is not None
                and health.days_since_action <= RECENT_CONTACT_DAYS
            )
            if not (new_contact and fresh_contact and not credited):
                return health.model_copy(update={"days_since_action": days})

        current = health.current_strength
        new = next_strength(days, current, self.thresholds)
        update = {"days_since_action": days, "last_evaluated": today}
        update.update(self._transition(connection, health, current, new, days, today))
        return health.model_copy(update=update)

    def _transition(self, connection: Connection, health: ConnectionHealth,
                    current: RelationshipStrength, new: RelationshipStrength,
                    days: Optional[int], today: date) -> Dict[str, object]:
        """Health fields and lifecycle changes that follow a tier moving from ``current`` to ``new``"""
        update: Dict[str, object] = {}

        if new != current:
            update.update({
                "previous_strength": current,
                "current_strength": new,
                "strength_changed_at": today,
            })
            self.logger.info(f"{connection.name}: {current.value} -> {new.value}")

        if new <= RelationshipStrength.THINNING:
            if health.decay_started_at is None:
                update["decay_started_at"] = today
        else:
            update["decay_started_at"] = None

        if is_pending_action(days, new, self.thresholds) and \
                connection.lifecycle is ConnectionLifecycle.ACTIVE:
            self.logger.warning(f"{connection.name} has been decaying for {days} days and needs a decision")
            self.store.update_connection(
                connection.model_copy(update={"lifecycle": ConnectionLifecycle.PENDING_ACTION})
            )

        return update

    def refresh(self, today: Optional[date] = None) -> Dict[str, ConnectionHealth]:
        """Evaluate every active connection once for ``today`` and persist the caches"""
        today = today or date.today()
        refreshed = {}
        for connection in self.store.list_connections():
            if connection.lifecycle is ConnectionLifecycle.ARCHIVED:
                continue
            health = self._evaluate(connection, self.get_health(connection.id), today)
            self.store.save_health(health)
            refreshed[connection.id] = health
        return refreshed

    def rebuild_health(self, connection_id: str, today: Optional[date] = None) -> ConnectionHealth:
        """Discard the cached strength and re-derive it from the raw actions"""
        connection = self.store.get_connection(connection_id)
        if connection is None:
            raise KeyError(f"Unknown connection: {connection_id}")

        today = today or date.today()
        actions = self.store.actions_for(connection_id)
        cached = self.store.get_health(connection_id)
        rebuilt = replay_strength([a.date for a in actions], today, self.thresholds)
        days = days_since(actions[-1].date, today) if actions else None

        if cached is not None and cached.current_strength != rebuilt:
            self.logger.warning(
                f"Stale strength cache for {connection_id}: "
                f"{cached.current_strength.value} rebuilt as {rebuilt.value}"
            )

        health = ConnectionHealth(
            connection_id=connection_id,
            current_strength=cached.current_strength if cached else RelationshipStrength.STABLE,
            previous_strength=cached.previous_strength if cached else None,
            strength_changed_at=cached.strength_changed_at if cached else None,
            decay_started_at=cached.decay_started_at if cached else None,
            last_nudge_level=cached.last_nudge_level if cached else 0,
            days_since_action=days,
            last_action_date=actions[-1].date if actions else None,
            last_action_type=actions[-1].action_type if actions else None,
            total_actions_logged=len(actions),
            total_weight_accumulated=sum(a.weight for a in actions),
            last_evaluated=today,
        )
        update = self._transition(connection, health, health.current_strength, rebuilt, days, today)
        return self.store.save_health(health.model_copy(update=update))

    def nudge(self, connection_id: str) -> Optional[EscalationNudge]:
        """Next escalation suggestion for a connection, remembering the level offered"""
        health = self.get_health(connection_id)
        suggestion = suggest_escalation(health.last_action_type, health.last_nudge_level)
        if suggestion is not None:
            self.store.save_health(health.model_copy(update={"last_nudge_level": suggestion.level}))
        return suggestion

    def set_next_catchup(self, connection_id: str, when: Optional[date]) -> Connection:
        connection = self.store.get_connection(connection_id)
        if connection is None:
            raise KeyError(f"Unknown connection: {connection_id}")
        return self.store.update_connection(connection.model_copy(update={"next_catchup_date": when}))

    def sorted_connections(self, mode: SortMode = SortMode.PRIORITY,
                           today: Optional[date] = None) -> List[Connection]:
        active = [
            c for c in self.store.list_connections()
            if c.lifecycle is not ConnectionLifecycle.ARCHIVED
        ]
        return sort_connections(active, mode, today)

    def habit_logs(self) -> List[DailyHabitLog]:
        """One aggregated log per day that has any action, newest first"""
        return self.habit_log_cache.get_or_load("habit_logs", self._build_habit_logs)

    def _build_habit_logs(self) -> List[DailyHabitLog]:
        by_day: Dict[date, List[DailyAction]] = defaultdict(list)
        for action in self.store.actions_for():
            by_day[action.date].append(action)
        return [summarize_day(day, by_day[day]) for day in sorted(by_day, reverse=True)]

    def streak(self, today: Optional[date] = None) -> int:
        return compute_streak(self.habit_logs(), today)

    def longest_streak(self, today: Optional[date] = None) -> int:
        # A running streak may bridge a missing day, so it can exceed the strict run
        return max(longest_streak(self.habit_logs()), self.streak(today))

    def weekly_valid_days(self, today: Optional[date] = None) -> int:
        return weekly_valid_days(self.habit_logs(), today)

    def weekly_review(
        self,
        week_of: Optional[date] = None,
        today: Optional[date] = None,
    ) -> Tuple[WeeklyPatternData, List[SuggestedAction]]:
        """Pattern insight for the week starting ``week_of`` plus suggested actions"""
        today = today or date.today()
        start = week_start(week_of or today)
        this_week, previous_week = split_weeks(
            self.store.actions_between(start - timedelta(days=7), start + timedelta(days=7)),
            start,
        )
        patterns = analyze_week(this_week, previous_week)

        snapshots = []
        for connection in self.store.list_connections():
            if connection.lifecycle is ConnectionLifecycle.ARCHIVED:
                continue
            health = self.get_health(connection.id)
            snapshots.append(ConnectionSnapshot(
                id=connection.id,
                name=connection.name,
                strength=health.current_strength,
                last_action_type=health.last_action_type,
                days_since_action=days_since(health.last_action_date, today),
            ))
        return patterns, generate_suggested_actions(patterns, snapshots)
