"""
Response cache: process-wide key -> JSON payload with a per-entry TTL.

Entries expire lazily on read; there is no capacity bound and no LRU. Two
handlers missing the same key concurrently both fetch upstream and the last
set wins. The cache is owned by the application and injected into handlers.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Awaitable, Callable

from backend_staking.staking_logging import get_logger

logger = get_logger(__name__)

DEFAULT_TTL_SEC = 300.0
STAKES_TTL_SEC = 600
REWARDS_TTL_SEC = 600
COMPLIANCE_TTL_SEC = 3600
EXPLORER_TTL_SEC = 60
ENHANCED_ACCOUNTS_TTL_SEC = 300


class TTLCache:
    """Thread-safe cache with TTL. Key -> (value, expiry_ts)."""

    def __init__(
        self,
        default_ttl_sec: float = DEFAULT_TTL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl_sec
        self._clock = clock
        self._store: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on miss or expiry."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, expiry = entry
            if self._clock() > expiry:
                del self._store[key]
                logger.debug("cache_expired", key=key)
                return None
            return value

    def set(self, key: str, value: Any, ttl_sec: float | None = None) -> None:
        ttl = self._default_ttl if ttl_sec is None else ttl_sec
        with self._lock:
            self._store[key] = (value, self._clock() + ttl)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


def normalize_account_ids(raw: str | list[str] | None) -> list[str]:
    """Split a comma-separated account list, strip blanks, de-duplicate and sort."""
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    return sorted({p.strip() for p in parts if p and p.strip()})


def cache_key(endpoint: str, **params: Any) -> str:
    """
    Build a cache key from the endpoint name and normalized query parameters.

    Parameters are sorted by name; None becomes 'all'; lists are joined with ','.
        cache_key("stakes", accounts=["a", "b"], analytics="basic") -> "stakes:accounts=a,b|analytics=basic"
    """
    parts: list[str] = []
    for name in sorted(params):
        value = params[name]
        if value is None or value == [] or value == "":
            value = "all"
        elif isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        parts.append(f"{name}={value}")
    return f"{endpoint}:" + "|".join(parts) if parts else endpoint


async def get_or_build(
    cache: TTLCache,
    key: str,
    build: Callable[[], Awaitable[Any]],
    ttl_sec: float | None = None,
    *,
    cache_if: Callable[[Any], bool] | None = None,
) -> Any:
    """
    Return the cached value for key, or await build(), store and return it.
    When cache_if is given, values it rejects are returned without being stored.
    """
    hit = cache.get(key)
    if hit is not None:
        logger.debug("cache_hit", key=key)
        return hit
    value = await build()
    if cache_if is None or cache_if(value):
        cache.set(key, value, ttl_sec)
    return value
