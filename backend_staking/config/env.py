"""
Environment variable loading and validation for Backend Staking.

- PORT / API_HOST: listen address (default 0.0.0.0:3001)
- KILN_API_KEY: Kiln API bearer token (live data source is disabled without it)
- KILN_API_BASE: Kiln API root (default https://api.kiln.fi/v1)
- ETHERSCAN_API_KEY: Etherscan API key (compliance and explorer lookups)
- USE_MOCK_DATA: force the synthetic data source
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root: config is backend_staking/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_PORT = 3001
DEFAULT_KILN_API_BASE = "https://api.kiln.fi/v1"
DEFAULT_ETHERSCAN_API_BASE = "https://api.etherscan.io/api"
# Placeholder ETH/USD quote; not a market feed
DEFAULT_ETH_USD_PRICE = 3500.0
DEFAULT_SANCTIONS_LIST_PATH = _BACKEND_DIR / "analytics" / "sanctioned_addresses.json"

_TRUTHY = ("1", "true", "yes", "on")


def load_staking_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH)


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or "").strip() or default


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_port() -> int:
    """Return PORT from env. Default: 3001."""
    load_staking_env()
    return _env_int("PORT", DEFAULT_PORT)


def get_kiln_api_key() -> str:
    """Return KILN_API_KEY from env, or empty string when unset."""
    load_staking_env()
    return _env_str("KILN_API_KEY")


def get_etherscan_api_key() -> str:
    """
    Return ETHERSCAN_API_KEY from env.
    Falls back to REACT_APP_ETHERSCAN_API_KEY, which the SPA build shares via the same .env.
    """
    load_staking_env()
    return _env_str("ETHERSCAN_API_KEY") or _env_str("REACT_APP_ETHERSCAN_API_KEY")


def use_mock_data() -> bool:
    """
    Return True when the synthetic data source should be used for every request.
    Set USE_MOCK_DATA=1 when the Kiln API is unavailable.
    """
    load_staking_env()
    return _env_str("USE_MOCK_DATA").lower() in _TRUTHY


def mask_secret(value: str, visible: int = 6) -> str:
    """Mask an API key for logging: first characters plus '...'."""
    if not value:
        return "NOT FOUND"
    return value[:visible] + "..."
