"""
In-memory TTL cache for upstream-derived API payloads.
"""

from backend_staking.cache.ttl_cache import (
    COMPLIANCE_TTL_SEC,
    ENHANCED_ACCOUNTS_TTL_SEC,
    EXPLORER_TTL_SEC,
    REWARDS_TTL_SEC,
    STAKES_TTL_SEC,
    TTLCache,
    cache_key,
    get_or_build,
    normalize_account_ids,
)

__all__ = [
    "COMPLIANCE_TTL_SEC",
    "ENHANCED_ACCOUNTS_TTL_SEC",
    "EXPLORER_TTL_SEC",
    "REWARDS_TTL_SEC",
    "STAKES_TTL_SEC",
    "TTLCache",
    "cache_key",
    "get_or_build",
    "normalize_account_ids",
]
