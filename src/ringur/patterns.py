"""Weekly pattern analysis over logged actions"""

from datetime import date, timedelta
from types import MappingProxyType
from typing import Dict, Iterable, List, Sequence, Tuple

from .actions import total_weight
from .models import ActionType, DailyAction, InsightType, WeeklyPatternData

DEEP_ACTIONS = frozenset({ActionType.CALL, ActionType.IN_PERSON_1ON1})
DAYS_IN_WEEK = 7

INSIGHT_MESSAGES = MappingProxyType({
    InsightType.CONTACT_NOT_DEPTH: "You're maintaining contact, not building depth.",
    InsightType.GOOD_DEPTH: "You're investing in deep, meaningful connections.",
    InsightType.SPORADIC: "Your connection patterns are sporadic this week.",
    InsightType.CONSISTENT: "You are building strong, consistent habits.",
    InsightType.ESCALATING: "You're investing more in your relationships!",
})


def _percent(part: int, whole: int) -> int:
    # Half-up rounding, capped at 100
    if whole <= 0:
        return 0
    return min(100, int(part * 100 / whole + 0.5))


def analyze_week(
    actions: Sequence[DailyAction],
    previous_week_actions: Iterable[DailyAction] = (),
) -> WeeklyPatternData:
    """Score a week of actions for depth, variety and consistency.

    The insight is the first matching rule, in order: contact without
    depth, good depth, sporadic, escalating over last week, consistent.
    """
    counts: Dict[ActionType, int] = {action_type: 0 for action_type in ActionType}
    for action in actions:
        counts[action.action_type] += 1
    week_weight = total_weight(actions)

    # max() keeps the first of equal counts, so enum order breaks ties
    dominant = max(ActionType, key=lambda t: counts[t])
    dominant_action_type = dominant if counts[dominant] > 0 else None

    action_count = len(actions)
    deep_count = sum(1 for action in actions if action.action_type in DEEP_ACTIONS)
    depth_score = _percent(deep_count, action_count)

    used_types = sum(1 for count in counts.values() if count > 0)
    variety_score = _percent(used_types, len(ActionType))

    active_days = len({action.date for action in actions})
    consistency_score = _percent(active_days, DAYS_IN_WEEK)

    previous_weight = total_weight(previous_week_actions)

    if depth_score < 30 and action_count >= 3:
        insight_type = InsightType.CONTACT_NOT_DEPTH
    elif depth_score >= 60:
        insight_type = InsightType.GOOD_DEPTH
    # An empty week falls through to the default insight
    elif action_count and consistency_score < 30:
        insight_type = InsightType.SPORADIC
    elif previous_weight > 0 and week_weight > previous_weight * 1.2:
        insight_type = InsightType.ESCALATING
    else:
        insight_type = InsightType.CONSISTENT

    return WeeklyPatternData(
        dominant_action_type=dominant_action_type,
        depth_score=depth_score,
        variety_score=variety_score,
        consistency_score=consistency_score,
        insight_type=insight_type,
        insight_message=INSIGHT_MESSAGES[insight_type],
    )


def split_weeks(
    actions: Iterable[DailyAction],
    week_of: date,
) -> Tuple[List[DailyAction], List[DailyAction]]:
    """Partition actions into the 7 days from ``week_of`` and the 7 days before"""
    this_end = week_of + timedelta(days=DAYS_IN_WEEK)
    previous_start = week_of - timedelta(days=DAYS_IN_WEEK)

    this_week: List[DailyAction] = []
    previous_week: List[DailyAction] = []
    for action in actions:
        if week_of <= action.date < this_end:
            this_week.append(action)
        elif previous_start <= action.date < week_of:
            previous_week.append(action)
    return this_week, previous_week
