"""
Process-wide read cache with named invalidation scopes.

Aggregated screens (dashboard, contract list, period lists) are expensive to
rebuild and change only when a write touches the same resource.  Entries are
grouped by scope so a write can drop exactly the views it affects::

    cache.get_or_set(SCOPE_DASHBOARD, ("resumen",), build_dashboard)
    ...
    cache.invalidate(SCOPE_DASHBOARD)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Hashable

from app.config import get_settings

logger = logging.getLogger(__name__)

_MISSING = object()


class ScopedCache:
    """Time-bounded key/value store partitioned by scope name.

    Args:
        ttl_seconds: Lifetime of an entry; ``0`` disables caching.
    """

    def __init__(self, ttl_seconds: float) -> None:
        self._ttl = ttl_seconds
        self._data: dict[str, dict[Hashable, tuple[float, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, scope: str, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            entry = self._data.get(scope, {}).get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if time.monotonic() >= expires_at:
                del self._data[scope][key]
                return default
            return value

    def set(self, scope: str, key: Hashable, value: Any) -> None:
        if self._ttl <= 0:
            return
        with self._lock:
            self._data.setdefault(scope, {})[key] = (time.monotonic() + self._ttl, value)

    def get_or_set(self, scope: str, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Return the cached value or build, store and return a fresh one."""
        value = self.get(scope, key, _MISSING)
        if value is not _MISSING:
            logger.debug("cache hit scope=%s key=%s", scope, key)
            return value
        value = factory()
        self.set(scope, key, value)
        return value

    def invalidate(self, *scopes: str) -> None:
        with self._lock:
            for scope in scopes:
                self._data.pop(scope, None)
        logger.debug("cache invalidated scopes=%s", scopes)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


cache = ScopedCache(get_settings().CACHE_TTL_SECONDS)
