"""Importer for interactions exported from the pre-habit-engine app"""

import json
from datetime import date
from pathlib import Path
from typing import Dict, List, Any, Optional
import logging

from pydantic import ValidationError

from .actions import to_canonical
from .dates import to_date
from .models import CatchupFrequency, Connection, DailyAction
from .relationship import RelationshipTracker

logger = logging.getLogger(__name__)


class LegacyImporter:
    """Import legacy interaction records as daily actions.

    The export is a JSON list of interactions, each with ``id``,
    ``interaction_type`` (or ``action_type``), ``interaction_date`` and
    either ``connection_id`` or ``connection_name``. Legacy types are
    translated to the canonical action types; records already imported
    are skipped by their legacy id.
    """

    def __init__(self, tracker: RelationshipTracker):
        self.tracker = tracker
        self.store = tracker.store

    def import_from_file(self, file_path: Path, today: Optional[date] = None) -> Dict[str, int]:
        """Import interactions from a JSON export file

        Args:
            file_path: Path to the exported JSON file
            today: Reference date for rebuilding strengths

        Returns:
            Dict with import statistics
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read legacy export {file_path}: {e}")
            raise

        if not isinstance(records, list):
            raise ValueError(f"{file_path} does not contain a list of interactions")
        return self.import_records(records, today)

    def import_records(self, records: List[Dict[str, Any]], today: Optional[date] = None) -> Dict[str, int]:
        stats = {
            "actions_imported": 0,
            "connections_created": 0,
            "duplicates": 0,
            "skipped": 0,
        }

        actions: List[DailyAction] = []
        touched = set()
        seen = set()

        for record in records:
            if not isinstance(record, dict):
                logger.warning(f"Skipping legacy record that is not an object: {record!r}")
                stats["skipped"] += 1
                continue

            legacy_id = str(record["id"]) if record.get("id") is not None else None
            if legacy_id and (legacy_id in seen or self.store.has_legacy_interaction(legacy_id)):
                stats["duplicates"] += 1
                continue

            try:
                # Parse before resolving so a bad record never creates a connection
                when = to_date(record["interaction_date"])
                action_type = to_canonical(record.get("interaction_type") or record["action_type"])
                connection = self._resolve_connection(record, stats)
                action = DailyAction(
                    date=when,
                    action_type=action_type,
                    connection_id=connection.id,
                    notes=record.get("memory"),
                    legacy_interaction_id=legacy_id,
                )
            except (KeyError, TypeError, ValueError, ValidationError) as e:
                logger.warning(f"Skipping legacy record {legacy_id}: {e}")
                stats["skipped"] += 1
                continue

            actions.append(action)
            if legacy_id:
                seen.add(legacy_id)
            touched.add(connection.id)
            self._bump_last_interaction(connection, action.date)

        if actions:
            self.store.add_actions(actions)
            self.tracker.habit_log_cache.clear()
        stats["actions_imported"] = len(actions)

        # Imported history replaces whatever strength was cached
        for connection_id in touched:
            self.tracker.rebuild_health(connection_id, today)

        logger.info(f"Legacy import completed: {stats}")
        return stats

    def _resolve_connection(self, record: Dict[str, Any], stats: Dict[str, int]) -> Connection:
        connection_id = record.get("connection_id")
        if connection_id:
            connection = self.store.get_connection(connection_id)
            if connection is None:
                raise KeyError(f"unknown connection {connection_id}")
            return connection

        name = record["connection_name"]
        connection = self.store.find_connection(name)
        if connection is None:
            frequency = CatchupFrequency(record.get("catchup_frequency", CatchupFrequency.MONTHLY.value))
            connection = self.tracker.add_connection(name, frequency)
            stats["connections_created"] += 1
        return connection

    def _bump_last_interaction(self, connection: Connection, when: date):
        current = self.store.get_connection(connection.id)
        if current.last_interaction_date is None or when > current.last_interaction_date:
            self.store.update_connection(current.model_copy(update={"last_interaction_date": when}))
