"""Action types, their social-investment weights and legacy translation"""

from datetime import date
from types import MappingProxyType
from typing import Iterable, Optional, Union

from .models import (
    ACTION_WEIGHTS,
    ActionType,
    DailyAction,
    DailyHabitLog,
    InteractionType,
    LegacyActionType,
)

# Minimum total weight for a day to count toward the streak
VALID_DAY_THRESHOLD = 1

ACTION_LABELS = MappingProxyType({
    ActionType.TEXT: "Message",
    ActionType.CALL: "Call",
    ActionType.IN_PERSON_1ON1: "In-person",
})

# Historical action and interaction kinds, folded onto the canonical three
_LEGACY_TRANSLATION = MappingProxyType({
    LegacyActionType.SELF_REFLECTION.value: ActionType.TEXT,
    LegacyActionType.SOCIAL_PLANNING.value: ActionType.TEXT,
    LegacyActionType.GROUP_ACTIVITY.value: ActionType.IN_PERSON_1ON1,
    InteractionType.IN_PERSON.value: ActionType.IN_PERSON_1ON1,
    InteractionType.OTHER.value: ActionType.TEXT,
})

AnyActionType = Union[ActionType, LegacyActionType, InteractionType, str]


def weight_of(action_type: ActionType) -> int:
    return ACTION_WEIGHTS[action_type]


def to_canonical(value: AnyActionType) -> ActionType:
    """Translate a current, legacy or interaction type name to an ActionType.

    Raises ValueError for names that are none of these; callers at the
    input boundary are expected to surface that to the user.
    """
    raw = value.value if isinstance(value, (ActionType, LegacyActionType, InteractionType)) else value
    if raw in _LEGACY_TRANSLATION:
        return _LEGACY_TRANSLATION[raw]
    return ActionType(raw)


def is_valid_day(total_weight: float) -> bool:
    return total_weight >= VALID_DAY_THRESHOLD


def total_weight(actions: Iterable[DailyAction]) -> int:
    return sum(action.weight for action in actions)


def highest_action(actions: Iterable[DailyAction]) -> Optional[ActionType]:
    """Type of the first action carrying the highest weight"""
    highest = None
    for action in actions:
        if highest is None or action.weight > highest.weight:
            highest = action
    return highest.action_type if highest else None


def summarize_day(day: date, actions: Iterable[DailyAction]) -> DailyHabitLog:
    """Aggregate one day's actions into a habit log entry"""
    todays = [action for action in actions if action.date == day]
    weight = total_weight(todays)
    return DailyHabitLog(
        log_date=day,
        total_weight=weight,
        action_count=len(todays),
        is_valid_day=is_valid_day(weight),
        highest_action=highest_action(todays),
    )
