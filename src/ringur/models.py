"""Data models for ringur"""

from datetime import datetime, date
from typing import Optional
from enum import Enum
from types import MappingProxyType
from pydantic import BaseModel, ConfigDict, Field, model_validator


class ActionType(str, Enum):
    """Canonical contact types, ordered by depth of engagement"""
    TEXT = "text"
    CALL = "call"
    IN_PERSON_1ON1 = "in_person_1on1"


# Social-investment value of each action type
ACTION_WEIGHTS = MappingProxyType({
    ActionType.TEXT: 1,
    ActionType.CALL: 3,
    ActionType.IN_PERSON_1ON1: 6,
})


class LegacyActionType(str, Enum):
    """Action types from the first habit model, folded into ActionType"""
    SELF_REFLECTION = "self_reflection"
    SOCIAL_PLANNING = "social_planning"
    GROUP_ACTIVITY = "group_activity"


class InteractionType(str, Enum):
    """Interaction kinds logged before weighted actions existed"""
    CALL = "call"
    TEXT = "text"
    IN_PERSON = "in_person"
    OTHER = "other"


class RelationshipStrength(str, Enum):
    """5-tier relationship strength, least to most healthy"""
    DECAYING = "decaying"
    THINNING = "thinning"
    STABLE = "stable"
    STRONG = "strong"
    FLOURISHING = "flourishing"

    @property
    def rank(self) -> int:
        return _STRENGTH_ORDER.index(self)

    def step_up(self) -> "RelationshipStrength":
        """One tier toward flourishing, saturating at the top"""
        return _STRENGTH_ORDER[min(self.rank + 1, len(_STRENGTH_ORDER) - 1)]

    def step_down(self) -> "RelationshipStrength":
        """One tier toward decaying, saturating at the bottom"""
        return _STRENGTH_ORDER[max(self.rank - 1, 0)]

    def __lt__(self, other):
        if not isinstance(other, RelationshipStrength):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, RelationshipStrength):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, RelationshipStrength):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, RelationshipStrength):
            return NotImplemented
        return self.rank >= other.rank


_STRENGTH_ORDER = list(RelationshipStrength)


class InsightType(str, Enum):
    """Weekly pattern insight categories"""
    CONTACT_NOT_DEPTH = "contact_not_depth"
    GOOD_DEPTH = "good_depth"
    SPORADIC = "sporadic"
    CONSISTENT = "consistent"
    ESCALATING = "escalating"


class SuggestionPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CatchupFrequency(str, Enum):
    """How often the user wants to catch up with a connection"""
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    BIANNUALLY = "biannually"
    ANNUALLY = "annually"


class RingTier(str, Enum):
    CORE = "core"
    OUTER = "outer"


class ConnectionLifecycle(str, Enum):
    ACTIVE = "active"
    PENDING_ACTION = "pending_action"  # 30+ days decaying, needs a decision
    ARCHIVED = "archived"


class DailyAction(BaseModel):
    """A single logged contact. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    date: date
    action_type: ActionType
    weight: int = Field(ge=0)
    id: Optional[str] = None
    connection_id: Optional[str] = None
    notes: Optional[str] = None
    legacy_interaction_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _fill_weight(cls, data):
        # Weight is a cached copy of the type's weight at logging time;
        # a missing action type is left for field validation to report
        if isinstance(data, dict) and data.get("weight") is None and data.get("action_type") is not None:
            data = dict(data)
            data["weight"] = ACTION_WEIGHTS[ActionType(data["action_type"])]
        return data


class DecayThresholds(BaseModel):
    """Day counts past which silence degrades a relationship"""
    model_config = ConfigDict(frozen=True)

    thinning_signal: int = 3
    weakening: int = 7
    erosion: int = 14
    decay_state: int = 30

    @model_validator(mode="after")
    def _check_order(self):
        if not (self.thinning_signal < self.weakening < self.erosion < self.decay_state):
            raise ValueError(
                "decay thresholds must be strictly increasing: "
                "thinning_signal < weakening < erosion < decay_state"
            )
        return self


class WeeklyPatternData(BaseModel):
    """Derived weekly pattern scores and insight"""
    dominant_action_type: Optional[ActionType] = None
    depth_score: int = Field(ge=0, le=100)
    variety_score: int = Field(ge=0, le=100)
    consistency_score: int = Field(ge=0, le=100)
    insight_type: InsightType
    insight_message: str


class SuggestedAction(BaseModel):
    """Ephemeral recommendation for the weekly review"""
    action_type: ActionType
    target_connection_id: Optional[str] = None
    target_connection_name: Optional[str] = None
    reason: str
    priority: SuggestionPriority


class EscalationStep(BaseModel):
    """One rung of the escalation ladder"""
    model_config = ConfigDict(frozen=True)

    level: int
    action_type: ActionType
    label: str
    suggestion: str


class EscalationNudge(BaseModel):
    level: int
    suggestion: str
    action_type: ActionType


class Connection(BaseModel):
    """A person the user wants to keep in touch with"""
    id: str
    name: str
    catchup_frequency: CatchupFrequency = CatchupFrequency.MONTHLY
    last_interaction_date: Optional[date] = None
    next_catchup_date: Optional[date] = None
    ring_tier: RingTier = RingTier.CORE
    lifecycle: ConnectionLifecycle = ConnectionLifecycle.ACTIVE
    created_at: datetime = Field(default_factory=datetime.now)


class ConnectionHealth(BaseModel):
    """Cached strength state for display. Always re-derivable from actions."""
    connection_id: str
    current_strength: RelationshipStrength = RelationshipStrength.STABLE
    previous_strength: Optional[RelationshipStrength] = None
    strength_changed_at: Optional[date] = None
    days_since_action: Optional[int] = None
    decay_started_at: Optional[date] = None
    last_action_date: Optional[date] = None
    last_action_type: Optional[ActionType] = None
    last_evaluated: Optional[date] = None
    last_nudge_level: int = 0
    total_actions_logged: int = 0
    total_weight_accumulated: int = 0


class DailyHabitLog(BaseModel):
    """Aggregated per-day habit record"""
    log_date: date
    total_weight: int = 0
    action_count: int = 0
    is_valid_day: bool = False
    highest_action: Optional[ActionType] = None
