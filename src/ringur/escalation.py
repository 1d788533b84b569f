"""Escalation ladder: nudges toward deeper contact, never blocking lighter ones"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .models import (
    ACTION_WEIGHTS,
    ActionType,
    EscalationNudge,
    EscalationStep,
    RelationshipStrength,
    SuggestedAction,
    SuggestionPriority,
    WeeklyPatternData,
)

MAX_LEVEL = 3
MAX_SUGGESTIONS = 5

ESCALATION_LADDER = (
    EscalationStep(level=1, action_type=ActionType.TEXT,
                   label="Send a text", suggestion="Start with a quick text"),
    EscalationStep(level=2, action_type=ActionType.CALL,
                   label="Make a call", suggestion="Try giving them a call"),
    EscalationStep(level=3, action_type=ActionType.IN_PERSON_1ON1,
                   label="Meet in person", suggestion="Plan to meet in person"),
)

TEXT_TO_CALL = "Text keeps contact. Calls build connection."
CALL_TO_IN_PERSON = "Calls maintain. In-person moments create bonds."


def suggest_escalation(
    last_action_type: Optional[ActionType],
    last_nudge_level: int,
) -> Optional[EscalationNudge]:
    """Next rung above ``last_nudge_level``, or None once the top was suggested.

    ``last_action_type`` is accepted for callers that track it but does
    not change the ladder position.
    """
    if last_nudge_level >= MAX_LEVEL:
        return None

    next_level = min(max(last_nudge_level, 0) + 1, MAX_LEVEL)
    for step in ESCALATION_LADDER:
        if step.level == next_level:
            return EscalationNudge(
                level=step.level,
                suggestion=step.suggestion,
                action_type=step.action_type,
            )
    return None


def message_for(current_action_type: ActionType) -> Optional[str]:
    """Canned nudge for the depth of the current action; None at full depth"""
    weight = ACTION_WEIGHTS[current_action_type]
    if weight <= 1:
        return TEXT_TO_CALL
    if weight <= 3:
        return CALL_TO_IN_PERSON
    return None


@dataclass
class ConnectionSnapshot:
    """What the suggestion generator needs to know about one connection"""

    id: str
    name: str
    strength: RelationshipStrength
    last_action_type: Optional[ActionType] = None
    days_since_action: Optional[int] = None


def generate_suggested_actions(
    patterns: WeeklyPatternData,
    connections: Iterable[ConnectionSnapshot],
) -> List[SuggestedAction]:
    """Suggested actions for the weekly review, neediest connections first"""
    suggestions: List[SuggestedAction] = []

    neediest: Sequence[ConnectionSnapshot] = sorted(connections, key=lambda c: c.strength.rank)

    for conn in neediest[:3]:
        if conn.strength not in (RelationshipStrength.DECAYING, RelationshipStrength.THINNING):
            continue
        nudge = suggest_escalation(conn.last_action_type, 0)
        if nudge is None:
            continue
        decaying = conn.strength is RelationshipStrength.DECAYING
        suggestions.append(SuggestedAction(
            action_type=nudge.action_type,
            target_connection_id=conn.id,
            target_connection_name=conn.name,
            reason="Relationship needs attention" if decaying else "Prevent decay",
            priority=SuggestionPriority.HIGH if decaying else SuggestionPriority.MEDIUM,
        ))

    if patterns.depth_score < 40:
        suggestions.append(SuggestedAction(
            action_type=ActionType.CALL,
            reason=TEXT_TO_CALL,
            priority=SuggestionPriority.MEDIUM,
        ))

    if patterns.variety_score < 30:
        for action_type in (ActionType.CALL, ActionType.IN_PERSON_1ON1):
            if action_type != patterns.dominant_action_type:
                suggestions.append(SuggestedAction(
                    action_type=action_type,
                    reason="Try varying your connection methods",
                    priority=SuggestionPriority.LOW,
                ))
                break

    return suggestions[:MAX_SUGGESTIONS]
