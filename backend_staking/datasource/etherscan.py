"""
Etherscan API client: address balance, transaction count, latest block.

Uses the account and proxy modules of https://api.etherscan.io/api over a
shared httpx.AsyncClient. Etherscan reports many failures with HTTP 200 and
{"status": "0", "message": "NOTOK"}; those are raised as UpstreamError too.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend_staking.core.exceptions import UpstreamError
from backend_staking.staking_logging import get_logger

logger = get_logger(__name__)

SERVICE = "etherscan"


def parse_hex_int(value: Any) -> int:
    """Parse a JSON-RPC quantity ('0x1a') into an int. Raises ValueError on garbage."""
    if isinstance(value, int):
        return value
    if not isinstance(value, str) or not value.startswith(("0x", "0X")):
        raise ValueError(f"not a hex quantity: {value!r}")
    return int(value, 16)


class EtherscanClient:
    """Async client for the Etherscan HTTP API."""

    def __init__(self, http: httpx.AsyncClient, api_key: str, base_url: str) -> None:
        self._http = http
        self._api_key = api_key
        self._base_url = base_url

    async def _call(self, module: str, action: str, **params: Any) -> Any:
        if not self._api_key:
            raise UpstreamError(SERVICE, "ETHERSCAN_API_KEY not configured")
        query = {"module": module, "action": action, **params, "apikey": self._api_key}
        try:
            response = await self._http.get(self._base_url, params=query)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("etherscan_http_error", action=action, status=status)
            raise UpstreamError(SERVICE, f"HTTP {status} for {action}", e.response.text) from e
        except httpx.HTTPError as e:
            logger.warning("etherscan_transport_error", action=action, error=str(e) or type(e).__name__)
            raise UpstreamError(SERVICE, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise UpstreamError(SERVICE, f"Invalid JSON for {action}") from e

        if not isinstance(payload, dict):
            raise UpstreamError(SERVICE, f"Unexpected payload for {action}", payload)
        if payload.get("status") == "0" and payload.get("message") != "No transactions found":
            raise UpstreamError(SERVICE, payload.get("message") or "NOTOK", payload.get("result"))
        if "error" in payload:
            raise UpstreamError(SERVICE, f"RPC error for {action}", payload["error"])
        return payload.get("result")

    async def get_address_balance(self, address: str) -> str:
        result = await self._call("account", "balance", address=address, tag="latest")
        balance = str(result or "0").strip()
        if not balance.isdigit():
            raise UpstreamError(SERVICE, "Unexpected balance result", result)
        return balance

    async def get_transaction_count(self, address: str) -> int:
        result = await self._call("proxy", "eth_getTransactionCount", address=address, tag="latest")
        try:
            return parse_hex_int(result)
        except ValueError as e:
            raise UpstreamError(SERVICE, "Unexpected transaction count result", result) from e

    async def get_latest_block(self) -> dict[str, Any]:
        number_hex = await self._call("proxy", "eth_blockNumber")
        block = await self._call("proxy", "eth_getBlockByNumber", tag=number_hex, boolean="true")
        if not isinstance(block, dict):
            raise UpstreamError(SERVICE, "Block not returned", block)
        try:
            return {
                "number": parse_hex_int(block.get("number") or number_hex),
                "timestamp": parse_hex_int(block.get("timestamp") or "0x0"),
                "transactions": [tx for tx in block.get("transactions") or [] if isinstance(tx, dict)],
            }
        except ValueError as e:
            raise UpstreamError(SERVICE, "Malformed block", block) from e
