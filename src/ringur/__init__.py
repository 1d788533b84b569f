"""ringur - relationship strength tracking for the people who matter"""

__version__ = "0.1.0"

from .store import RecordStore
from .relationship import RelationshipTracker
from .importer import LegacyImporter
from .decay import next_strength
from .patterns import analyze_week
from .streak import compute_streak
from .priority import priority_score, sort_connections

__all__ = [
    "RecordStore",
    "RelationshipTracker",
    "LegacyImporter",
    "next_strength",
    "analyze_week",
    "compute_streak",
    "priority_score",
    "sort_connections",
]
