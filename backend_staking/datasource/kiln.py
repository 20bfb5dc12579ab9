"""
Kiln API client: accounts, ETH stakes and rewards, validators, network stats.

Thin async wrapper over a shared httpx.AsyncClient. Bearer auth with
KILN_API_KEY. No retries; every transport, HTTP status or JSON failure is
raised as UpstreamError("kiln", ...) carrying the upstream error body when
there is one.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx

from backend_staking.core.exceptions import UpstreamError
from backend_staking.datasource.base import DEFAULT_PAGE_SIZE, DEFAULT_VALIDATOR_LIMIT
from backend_staking.staking_logging import get_logger

logger = get_logger(__name__)

SERVICE = "kiln"


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or response.reason_phrase


def unwrap_list(payload: Any, *keys: str) -> list[dict[str, Any]]:
    """
    Return the first list found under payload['data'][key], payload['data'],
    payload[key] or payload itself. Non-list payloads yield [].
    """
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if isinstance(data, dict):
        for key in keys:
            if isinstance(data.get(key), list):
                return data[key]
    if isinstance(data, list):
        return data
    for key in keys:
        if isinstance(payload.get(key), list):
            return payload[key]
    return []


def unwrap_object(payload: Any) -> dict[str, Any]:
    """Return payload['data'] when it is an object, else the payload itself."""
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, dict):
            return data
        return payload
    return {}


class KilnClient:
    """Async client for the Kiln REST API."""

    def __init__(self, http: httpx.AsyncClient, api_key: str, base_url: str) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = await self._http.get(url, headers=self._headers, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("kiln_http_error", path=path, status=status)
            raise UpstreamError(SERVICE, f"HTTP {status} for {path}", _error_body(e.response)) from e
        except httpx.HTTPError as e:
            logger.warning("kiln_transport_error", path=path, error=str(e) or type(e).__name__)
            raise UpstreamError(SERVICE, str(e) or type(e).__name__) from e
        except ValueError as e:
            logger.warning("kiln_invalid_json", path=path)
            raise UpstreamError(SERVICE, f"Invalid JSON from {path}") from e

    async def list_accounts(self) -> list[dict[str, Any]]:
        return unwrap_list(await self._get("/accounts"))

    async def list_stakes(
        self,
        account_id: str,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        current_page: int = 1,
    ) -> list[dict[str, Any]]:
        payload = await self._get(
            "/eth/stakes",
            {"accounts": account_id, "page_size": page_size, "current_page": current_page},
        )
        return unwrap_list(payload)

    async def list_rewards(
        self,
        account_id: str,
        *,
        date_from: date,
        date_to: date | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "accounts": account_id,
            "page_size": page_size,
            "current_page": 1,
            "date_from": date_from.isoformat(),
        }
        if date_to is not None:
            params["date_to"] = date_to.isoformat()
        return unwrap_list(await self._get("/eth/rewards", params))

    async def list_validators(self, *, limit: int = DEFAULT_VALIDATOR_LIMIT) -> list[dict[str, Any]]:
        payload = await self._get("/validators", {"limit": limit})
        return unwrap_list(payload, "validators")

    async def get_validator(self, validator_id: str) -> dict[str, Any]:
        return unwrap_object(await self._get(f"/validators/{validator_id}"))

    async def get_network_stats(self, chain: str) -> dict[str, Any]:
        return unwrap_object(await self._get(f"/{chain}/network-stats"))

    async def get_organization_portfolio(self, org_id: str) -> dict[str, Any]:
        # refresh=0: serve Kiln's cached portfolio
        return unwrap_object(await self._get(f"/organizations/{org_id}/portfolio", {"refresh": 0}))
