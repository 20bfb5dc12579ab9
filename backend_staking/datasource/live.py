"""
Live data source: Kiln for staking data, Etherscan for chain lookups.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx

from backend_staking.config.settings import Settings
from backend_staking.datasource.base import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_VALIDATOR_LIMIT,
    StakingDataSource,
)
from backend_staking.datasource.etherscan import EtherscanClient
from backend_staking.datasource.kiln import KilnClient


class LiveDataSource(StakingDataSource):
    name = "kiln"

    def __init__(self, kiln: KilnClient, etherscan: EtherscanClient) -> None:
        self._kiln = kiln
        self._etherscan = etherscan

    @classmethod
    def from_settings(cls, http: httpx.AsyncClient, settings: Settings) -> "LiveDataSource":
        return cls(
            KilnClient(http, settings.kiln_api_key, settings.kiln_api_base),
            EtherscanClient(http, settings.etherscan_api_key, settings.etherscan_api_base),
        )

    async def list_accounts(self) -> list[dict[str, Any]]:
        return await self._kiln.list_accounts()

    async def list_stakes(
        self,
        account_id: str,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        current_page: int = 1,
    ) -> list[dict[str, Any]]:
        return await self._kiln.list_stakes(account_id, page_size=page_size, current_page=current_page)

    async def list_rewards(
        self,
        account_id: str,
        *,
        date_from: date,
        date_to: date | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        return await self._kiln.list_rewards(
            account_id, date_from=date_from, date_to=date_to, page_size=page_size
        )

    async def list_validators(self, *, limit: int = DEFAULT_VALIDATOR_LIMIT) -> list[dict[str, Any]]:
        return await self._kiln.list_validators(limit=limit)

    async def get_validator(self, validator_id: str) -> dict[str, Any]:
        return await self._kiln.get_validator(validator_id)

    async def get_network_stats(self, chain: str) -> dict[str, Any]:
        return await self._kiln.get_network_stats(chain)

    async def get_organization_portfolio(self, org_id: str) -> dict[str, Any]:
        return await self._kiln.get_organization_portfolio(org_id)

    async def get_address_balance(self, address: str) -> str:
        return await self._etherscan.get_address_balance(address)

    async def get_transaction_count(self, address: str) -> int:
        return await self._etherscan.get_transaction_count(address)

    async def get_latest_block(self) -> dict[str, Any]:
        return await self._etherscan.get_latest_block()
