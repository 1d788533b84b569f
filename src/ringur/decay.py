"""Relationship strength decay model.

Contact is the only upward driver: any action within two days lifts the
strength one tier. Silence degrades it gradually through the
thinning-signal, weakening and erosion brackets, then collapses it to
``decaying`` once the decay-state threshold is reached.
"""

from datetime import date, timedelta
from types import MappingProxyType
from typing import Iterable, Optional

from .models import CatchupFrequency, DecayThresholds, RelationshipStrength
from .priority import FREQUENCY_DAYS

DEFAULT_THRESHOLDS = DecayThresholds()

# Contact this recent always counts as a step up
RECENT_CONTACT_DAYS = 2

STRENGTH_LABELS = MappingProxyType({
    RelationshipStrength.FLOURISHING: "Flourishing",
    RelationshipStrength.STRONG: "Strong",
    RelationshipStrength.STABLE: "Stable",
    RelationshipStrength.THINNING: "Thinning",
    RelationshipStrength.DECAYING: "Decaying",
})

STRENGTH_COLORS = MappingProxyType({
    RelationshipStrength.FLOURISHING: "#22c55e",
    RelationshipStrength.STRONG: "#84cc16",
    RelationshipStrength.STABLE: "#eab308",
    RelationshipStrength.THINNING: "#f97316",
    RelationshipStrength.DECAYING: "#ef4444",
})

DECAY_WARNING = "Relationships don't break. They thin."


def next_strength(
    days_since_action: Optional[int],
    current_strength: RelationshipStrength,
    thresholds: DecayThresholds = DEFAULT_THRESHOLDS,
) -> RelationshipStrength:
    """Strength after ``days_since_action`` days without a qualifying action"""
    if days_since_action is None:
        # No history: neutral, non-alarming default
        return RelationshipStrength.STABLE

    if days_since_action <= RECENT_CONTACT_DAYS:
        return current_strength.step_up()

    if days_since_action >= thresholds.decay_state:
        return RelationshipStrength.DECAYING

    if days_since_action >= thresholds.erosion:
        # Floor at thinning; decaying is never promoted by time alone
        if current_strength >= RelationshipStrength.STABLE:
            return RelationshipStrength.THINNING
        return current_strength

    if days_since_action >= thresholds.weakening:
        if current_strength >= RelationshipStrength.STABLE:
            return current_strength.step_down()
        return current_strength

    if days_since_action >= thresholds.thinning_signal:
        if current_strength is RelationshipStrength.FLOURISHING:
            return RelationshipStrength.STRONG
        return current_strength

    return current_strength


def is_pending_action(
    days_since_action: Optional[int],
    current_strength: RelationshipStrength,
    thresholds: DecayThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """Whether a connection has sat in full decay long enough to need a decision"""
    return (
        current_strength is RelationshipStrength.DECAYING
        and days_since_action is not None
        and days_since_action >= thresholds.decay_state
    )


def decay_status_message(
    days_since_action: Optional[int],
    strength: RelationshipStrength,
    thresholds: DecayThresholds = DEFAULT_THRESHOLDS,
) -> str:
    if days_since_action is None:
        return "Never connected"
    if strength is RelationshipStrength.FLOURISHING:
        return "Connection is flourishing"
    if strength is RelationshipStrength.DECAYING:
        return DECAY_WARNING
    if days_since_action >= thresholds.weakening:
        return f"{days_since_action} days since last connection"
    return "Connection is healthy"


def derive_strength_from_recency(
    days_since_contact: Optional[int],
    frequency: CatchupFrequency,
) -> RelationshipStrength:
    """Rough strength from the contact gap relative to the catch-up cadence.

    Used when a connection has no cached health record yet.
    """
    if days_since_contact is None:
        return RelationshipStrength.STABLE

    ratio = days_since_contact / FREQUENCY_DAYS[frequency]

    if ratio <= 0.5:
        return RelationshipStrength.FLOURISHING
    elif ratio <= 1.0:
        return RelationshipStrength.STRONG
    elif ratio <= 1.5:
        return RelationshipStrength.STABLE
    elif ratio <= 2.5:
        return RelationshipStrength.THINNING
    return RelationshipStrength.DECAYING


def replay_strength(
    action_dates: Iterable[date],
    today: date,
    thresholds: DecayThresholds = DEFAULT_THRESHOLDS,
) -> RelationshipStrength:
    """Re-derive a strength by evaluating every day from the first action to today.

    Mirrors a tracker that evaluates each connection once per day, so a
    cached strength can always be rebuilt from the raw action dates.
    """
    contact_days = sorted(set(action_dates))
    if not contact_days:
        return next_strength(None, RelationshipStrength.STABLE, thresholds)

    strength = RelationshipStrength.STABLE
    latest_index = 0
    day = contact_days[0]
    while day <= today:
        while latest_index + 1 < len(contact_days) and contact_days[latest_index + 1] <= day:
            latest_index += 1
        strength = next_strength((day - contact_days[latest_index]).days, strength, thresholds)
        day += timedelta(days=1)
    return strength
