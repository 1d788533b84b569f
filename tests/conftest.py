"""
Pytest fixtures for ringur tests.
"""
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest

# Ensure src/ is on sys.path so tests run without an installed package.
ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from ringur.models import ActionType, CatchupFrequency, Connection, DailyAction, DecayThresholds
from ringur.relationship import RelationshipTracker
from ringur.store import RecordStore


# A Wednesday, so the surrounding week runs Monday 10th to Sunday 16th.
TODAY = date(2024, 6, 12)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def thresholds():
    return DecayThresholds(thinning_signal=3, weakening=7, erosion=14, decay_state=30)


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def store(data_dir):
    return RecordStore(data_dir)


@pytest.fixture
def tracker(store):
    return RelationshipTracker(store)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point Config at a temporary directory for the duration of a test"""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("RINGUR_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("RINGUR_DATA_DIR", raising=False)
    return config_dir


def make_action(action_type: ActionType, days_ago: int = 0, connection_id: str = None) -> DailyAction:
    return DailyAction(
        date=TODAY - timedelta(days=days_ago),
        action_type=action_type,
        connection_id=connection_id,
    )


def make_connection(name: str, frequency=CatchupFrequency.MONTHLY, last_days_ago=None,
                    next_in_days=None, conn_id=None) -> Connection:
    return Connection(
        id=conn_id or name.lower(),
        name=name,
        catchup_frequency=frequency,
        last_interaction_date=TODAY - timedelta(days=last_days_ago) if last_days_ago is not None else None,
        next_catchup_date=TODAY + timedelta(days=next_in_days) if next_in_days is not None else None,
    )
