"""
Owner-scoped result cache.
Entries are keyed by (operation, owner_id, argument hash) and dropped for a
whole owner whenever that owner's data changes.
"""
import hashlib
import threading
import time
from typing import Any, Callable, Dict, Hashable, Tuple
from src.core import config


class OwnerScopedCache:
    """Thread-safe TTL cache partitioned by owner."""

    def __init__(self, ttl_seconds: int = None, time_func: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else config.settings.cache_ttl_seconds
        self._time = time_func
        self._entries: Dict[str, Dict[Tuple[str, str], Tuple[float, Any]]] = {}
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def get_or_compute(self, operation: str, owner_id: str, args: Hashable, compute: Callable[[], Any]) -> Any:
        """
        Return the cached value for the key or compute and store it.

        A value computed while the owner was invalidated is returned but not
        stored. Exceptions raised by ``compute`` propagate and nothing is stored.
        """
        key = (operation, self._hash_args(args))
        now = self._time()

        with self._lock:
            entry = self._entries.get(owner_id, {}).get(key)
            if entry is not None and entry[0] > now:
                return entry[1]
            generation = self._generations.get(owner_id, 0)

        value = compute()

        if self.ttl_seconds > 0:
            with self._lock:
                if self._generations.get(owner_id, 0) == generation:
                    self._entries.setdefault(owner_id, {})[key] = (now + self.ttl_seconds, value)
        return value

    def invalidate_owner(self, owner_id: str) -> None:
        """Drop every entry belonging to an owner."""
        with self._lock:
            self._entries.pop(owner_id, None)
            self._generations[owner_id] = self._generations.get(owner_id, 0) + 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @staticmethod
    def _hash_args(args: Hashable) -> str:
        return hashlib.sha256(repr(args).encode('utf-8')).hexdigest()
