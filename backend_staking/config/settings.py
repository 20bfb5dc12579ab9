"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and .env files.
- Provide defaults for optional settings.
- Expose typed settings (API keys, upstream URLs, port, cache TTL, ETH price)
  for use across data sources, analytics and the API server.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from backend_staking.config.env import (
    DEFAULT_ETH_USD_PRICE,
    DEFAULT_ETHERSCAN_API_BASE,
    DEFAULT_KILN_API_BASE,
    DEFAULT_SANCTIONS_LIST_PATH,
    _env_float,
    _env_str,
    get_etherscan_api_key,
    get_kiln_api_key,
    get_port,
    load_staking_env,
    use_mock_data,
)

DEFAULT_CACHE_TTL_SEC = 300
DEFAULT_UPSTREAM_TIMEOUT_SEC = 15.0


@dataclass(frozen=True)
class Settings:
    """Typed service configuration. Build with get_settings() or directly in tests."""

    api_host: str = "0.0.0.0"
    port: int = 3001
    kiln_api_key: str = ""
    kiln_api_base: str = DEFAULT_KILN_API_BASE
    etherscan_api_key: str = ""
    etherscan_api_base: str = DEFAULT_ETHERSCAN_API_BASE
    eth_usd_price: float = DEFAULT_ETH_USD_PRICE
    cache_ttl_sec: float = DEFAULT_CACHE_TTL_SEC
    upstream_timeout_sec: float = DEFAULT_UPSTREAM_TIMEOUT_SEC
    use_mock_data: bool = False
    sanctions_list_path: Path = DEFAULT_SANCTIONS_LIST_PATH

    @property
    def live_enabled(self) -> bool:
        """Live upstream calls need a Kiln key and must not be forced off."""
        return bool(self.kiln_api_key) and not self.use_mock_data


def get_settings() -> Settings:
    """
    Return the current application settings read from the environment.

    Returns:
        Settings with api_host, port, kiln/etherscan keys and base URLs,
        eth_usd_price, cache_ttl_sec, upstream_timeout_sec, use_mock_data.
    """
    load_staking_env()
    sanctions_path = _env_str("SANCTIONS_LIST_PATH")
    return Settings(
        api_host=_env_str("API_HOST", "0.0.0.0"),
        port=get_port(),
        kiln_api_key=get_kiln_api_key(),
        kiln_api_base=_env_str("KILN_API_BASE", DEFAULT_KILN_API_BASE).rstrip("/"),
        etherscan_api_key=get_etherscan_api_key(),
        etherscan_api_base=_env_str("ETHERSCAN_API_BASE", DEFAULT_ETHERSCAN_API_BASE),
        eth_usd_price=_env_float("ETH_USD_PRICE", DEFAULT_ETH_USD_PRICE),
        cache_ttl_sec=_env_float("CACHE_TTL_SEC", DEFAULT_CACHE_TTL_SEC),
        upstream_timeout_sec=_env_float("UPSTREAM_TIMEOUT_SEC", DEFAULT_UPSTREAM_TIMEOUT_SEC),
        use_mock_data=use_mock_data(),
        sanctions_list_path=Path(sanctions_path) if sanctions_path else DEFAULT_SANCTIONS_LIST_PATH,
    )
