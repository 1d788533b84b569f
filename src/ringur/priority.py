"""Display ordering for connections"""

from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Iterable, List, Optional

from .dates import days_since, days_until
from .models import CatchupFrequency, Connection

FREQUENCY_DAYS = MappingProxyType({
    CatchupFrequency.DAILY: 1,
    CatchupFrequency.WEEKLY: 7,
    CatchupFrequency.BIWEEKLY: 14,
    CatchupFrequency.MONTHLY: 30,
    CatchupFrequency.QUARTERLY: 90,
    CatchupFrequency.BIANNUALLY: 180,
    CatchupFrequency.ANNUALLY: 365,
})

FREQUENCY_LABELS = MappingProxyType({
    CatchupFrequency.DAILY: "Daily",
    CatchupFrequency.WEEKLY: "Weekly",
    CatchupFrequency.BIWEEKLY: "Every 2 weeks",
    CatchupFrequency.MONTHLY: "Monthly",
    CatchupFrequency.QUARTERLY: "Every 3 months",
    CatchupFrequency.BIANNUALLY: "Every 6 months",
    CatchupFrequency.ANNUALLY: "Annually",
})

# Sorts never-contacted connections after everyone else
NEVER_CONTACTED_SCORE = 999999


class SortMode(str, Enum):
    PRIORITY = "priority"
    ALPHABETICAL = "alphabetical"


def priority_score(connection: Connection, today: Optional[date] = None) -> int:
    """Urgency of a connection; lower is more urgent, negative is overdue"""
    if connection.next_catchup_date is not None:
        return days_until(connection.next_catchup_date, today)

    if connection.last_interaction_date is None:
        return NEVER_CONTACTED_SCORE

    cadence = FREQUENCY_DAYS[connection.catchup_frequency]
    return cadence - days_since(connection.last_interaction_date, today)


def sort_connections(
    connections: Iterable[Connection],
    mode: SortMode = SortMode.PRIORITY,
    today: Optional[date] = None,
) -> List[Connection]:
    """Order connections for display.

    Priority mode breaks equal scores by case-insensitive name; anything
    still tied keeps its input order.
    """
    if SortMode(mode) is SortMode.ALPHABETICAL:
        return sorted(connections, key=lambda c: c.name.casefold())

    today = today or date.today()
    return sorted(connections, key=lambda c: (priority_score(c, today), c.name.casefold()))
