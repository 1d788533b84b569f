"""Configuration management for ringur"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple
import logging

from pydantic import ValidationError

from .models import DecayThresholds
from .priority import SortMode

DEFAULT_CONFIG: Dict[str, Any] = {
    "decay": {
        "thinning_signal": 3,
        "weakening": 7,
        "erosion": 14,
        "decay_state": 30,
    },
    "display": {
        "sort_mode": "priority",
    },
}


class Config:
    """Manages configuration settings"""

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            env_dir = os.getenv("RINGUR_CONFIG_DIR")
            config_dir = Path(env_dir) if env_dir else Path.home() / ".config" / "ringur"

        self.config_dir = config_dir
        self.config_file = config_dir / "config.json"

        data_dir = os.getenv("RINGUR_DATA_DIR")
        self.data_dir = Path(data_dir) if data_dir else config_dir / "data"

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(__name__)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self):
        """Load configuration from file"""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    self._config = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Failed to load config: {e}")
                self._config = copy.deepcopy(DEFAULT_CONFIG)
        else:
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            self._save_config()

    def _save_config(self):
        """Save configuration to file"""
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self._config, f, indent=2)
        except OSError as e:
            self.logger.error(f"Failed to save config: {e}")

    def _section(self, key: str, create: bool = False) -> Tuple[Optional[Dict[str, Any]], str]:
        """Dict holding the last part of a dotted key, and that last part"""
        *path, leaf = key.split('.')
        node = self._config
        for part in path:
            child = node.get(part)
            if not isinstance(child, dict):
                if not create:
                    return None, leaf
                child = node[part] = {}
            node = child
        return node, leaf

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation"""
        section, leaf = self._section(key)
        if section is None or leaf not in section:
            return default
        return section[leaf]

    def set(self, key: str, value: Any):
        """Set a value using dot notation.

        Strings are coerced to bool/int/float where they clearly are one.
        Raises ValueError when a ``decay.*`` or ``display.sort_mode`` value
        would not be usable, leaving the stored config untouched.
        """
        value = _coerce(value)
        self._validate(key, value)

        section, leaf = self._section(key, create=True)
        section[leaf] = value
        self._save_config()

    def _validate(self, key: str, value: Any):
        if key == "decay":
            raise ValueError("set decay thresholds one at a time, e.g. decay.weakening")

        if key.startswith("decay."):
            field = key.split('.', 1)[1]
            if field not in DecayThresholds.model_fields:
                raise ValueError(f"unknown decay threshold '{field}'")
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{key} must be a positive number of days")

            current = self.get("decay")
            merged = dict(current) if isinstance(current, dict) else {}
            merged[field] = value
            try:
                DecayThresholds(**merged)
            except ValidationError:
                raise ValueError(
                    f"{key}={value} breaks the order "
                    "thinning_signal < weakening < erosion < decay_state"
                ) from None

        elif key == "display.sort_mode":
            SortMode(value)

    def delete(self, key: str) -> bool:
        """Delete configuration value"""
        section, leaf = self._section(key)
        if section is None or leaf not in section:
            return False
        del section[leaf]
        self._save_config()
        return True

    def list_keys(self, prefix: str = "") -> list[str]:
        """List all configuration keys with optional prefix"""
        return [key for key in _flatten(self._config) if key.startswith(prefix)]

    def decay_thresholds(self) -> DecayThresholds:
        """Configured decay thresholds, falling back to defaults when invalid"""
        section = self.get("decay", {})
        if not isinstance(section, dict):
            self.logger.error(f"Config key 'decay' is not a mapping ({section!r}), using default thresholds")
            return DecayThresholds()
        try:
            return DecayThresholds(**section)
        except ValidationError as e:
            self.logger.error(f"Invalid decay thresholds in config, using defaults: {e}")
            return DecayThresholds()


def _flatten(config: Dict[str, Any], prefix: str = "") -> Iterator[str]:
    for k, v in config.items():
        full_key = f"{prefix}.{k}" if prefix else k
        if isinstance(v, dict):
            yield from _flatten(v, full_key)
        else:
            yield full_key


def _coerce(value: Any) -> Any:
    """Turn CLI strings into ints/floats/bools where they clearly are one"""
    if not isinstance(value, str):
        return value
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value
