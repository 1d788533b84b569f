"""JSON-file record store for connections, actions and cached health"""

import json
import uuid
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional
import logging

from .models import Connection, ConnectionHealth, DailyAction


class RecordStore:
    """Keeps connections, logged actions and health caches in the data directory.

    The store is the source of truth for raw actions. Health records are
    a display cache and may be rebuilt from the actions at any time.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir
        self.connections_file = data_dir / "connections.json"
        self.actions_file = data_dir / "actions.json"
        self.health_file = data_dir / "health.json"
        self.connections: Dict[str, Connection] = {}
        self.actions: List[DailyAction] = []
        self.health: Dict[str, ConnectionHealth] = {}
        self.logger = logging.getLogger(__name__)
        self._load()

    def _load(self):
        """Load records from persistent storage"""
        if self.connections_file.exists():
            with open(self.connections_file, 'r', encoding='utf-8') as f:
                for conn_id, conn_data in json.load(f).items():
                    self.connections[conn_id] = Connection(**conn_data)

        if self.actions_file.exists():
            with open(self.actions_file, 'r', encoding='utf-8') as f:
                self.actions = [DailyAction(**a) for a in json.load(f)]

        if self.health_file.exists():
            with open(self.health_file, 'r', encoding='utf-8') as f:
                for conn_id, health_data in json.load(f).items():
                    self.health[conn_id] = ConnectionHealth(**health_data)

    def _save(self):
        """Save records to persistent storage"""
        self.data_dir.mkdir(parents=True, exist_ok=True)

        with open(self.connections_file, 'w', encoding='utf-8') as f:
            json.dump(
                {cid: c.model_dump(mode='json') for cid, c in self.connections.items()},
                f, indent=2,
            )

        with open(self.actions_file, 'w', encoding='utf-8') as f:
            json.dump([a.model_dump(mode='json') for a in self.actions], f, indent=2)

        with open(self.health_file, 'w', encoding='utf-8') as f:
            json.dump(
                {cid: h.model_dump(mode='json') for cid, h in self.health.items()},
                f, indent=2,
            )

    # Connections

    def add_connection(self, connection: Connection) -> Connection:
        self.connections[connection.id] = connection
        self._save()
        return connection

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        return self.connections.get(connection_id)

    def find_connection(self, name_or_id: str) -> Optional[Connection]:
        """Look up by id, then by case-insensitive exact name"""
        if name_or_id in self.connections:
            return self.connections[name_or_id]
        wanted = name_or_id.casefold()
        for connection in self.connections.values():
            if connection.name.casefold() == wanted:
                return connection
        return None

    def update_connection(self, connection: Connection) -> Connection:
        self.connections[connection.id] = connection
        self._save()
        return connection

    def remove_connection(self, connection_id: str) -> bool:
        """Delete a connection with its actions and cached health"""
        if connection_id not in self.connections:
            return False
        del self.connections[connection_id]
        self.health.pop(connection_id, None)
        before = len(self.actions)
        self.actions = [a for a in self.actions if a.connection_id != connection_id]
        self._save()
        self.logger.info(
            f"Removed connection {connection_id} and {before - len(self.actions)} actions"
        )
        return True

    def list_connections(self) -> List[Connection]:
        return list(self.connections.values())

    # Actions

    def add_action(self, action: DailyAction) -> DailyAction:
        if action.id is None:
            action = action.model_copy(update={"id": uuid.uuid4().hex[:16]})
        self.actions.append(action)
        self._save()
        return action

    def add_actions(self, actions: List[DailyAction]) -> int:
        """Bulk insert without one write per action"""
        for action in actions:
            if action.id is None:
                action = action.model_copy(update={"id": uuid.uuid4().hex[:16]})
            self.actions.append(action)
        self._save()
        return len(actions)

    def delete_action(self, action_id: str) -> bool:
        before = len(self.actions)
        self.actions = [a for a in self.actions if a.id != action_id]
        if len(self.actions) == before:
            return False
        self._save()
        return True

    def actions_for(self, connection_id: Optional[str] = None) -> List[DailyAction]:
        """Actions for one connection (or all), oldest first"""
        selected = [
            a for a in self.actions
            if connection_id is None or a.connection_id == connection_id
        ]
        return sorted(selected, key=lambda a: a.date)

    def actions_between(self, start: date, end: date) -> List[DailyAction]:
        """Actions dated in ``[start, end)``"""
        return [a for a in self.actions if start <= a.date < end]

    def has_legacy_interaction(self, legacy_id: str) -> bool:
        return any(a.legacy_interaction_id == legacy_id for a in self.actions)

    # Health cache

    def get_health(self, connection_id: str) -> Optional[ConnectionHealth]:
        return self.health.get(connection_id)

    def save_health(self, health: ConnectionHealth) -> ConnectionHealth:
        self.health[health.connection_id] = health
        self._save()
        return health
