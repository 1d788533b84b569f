"""Time-boxed in-memory cache owned by its caller"""

import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


class TTLCache:
    """Key/value cache whose entries expire ``ttl_seconds`` after being set.

    The clock is injectable so expiry can be tested without sleeping.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return default
        return value

    def set(self, key: Hashable, value: Any):
        self._entries[key] = (self._clock(), value)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value, calling ``loader`` on a miss or expiry"""
        missing = object()
        value = self.get(key, missing)
        if value is missing:
            value = loader()
            self.set(key, value)
        return value

    def invalidate(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.pop(key, None)
        return entry[1] if entry else None

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)
