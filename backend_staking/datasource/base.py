"""
Data source contract shared by the live (Kiln + Etherscan) and synthetic variants.

Every operation is async and returns plain upstream-shaped dicts (snake_case
Kiln/Etherscan field names). Live implementations raise UpstreamError on any
failure; analytics code never sees transport exceptions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any

STAKE_STATE_PENDING = "pending"
STAKE_STATE_ACTIVE = "active_ongoing"
STAKE_STATE_EXITING = "active_exiting"
STAKE_STATE_SLASHED = "active_slashed"
STAKE_STATE_EXITED = "exited"

STAKE_STATES = (
    STAKE_STATE_PENDING,
    STAKE_STATE_ACTIVE,
    STAKE_STATE_EXITING,
    STAKE_STATE_SLASHED,
    STAKE_STATE_EXITED,
)

DEFAULT_PAGE_SIZE = 100
DEFAULT_VALIDATOR_LIMIT = 50


class StakingDataSource(ABC):
    """Accounts, stakes, rewards, validators and chain lookups from one origin."""

    name: str = "unknown"

    @abstractmethod
    async def list_accounts(self) -> list[dict[str, Any]]:
        """Organization accounts: id, name, external_id, ..."""

    @abstractmethod
    async def list_stakes(
        self,
        account_id: str,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        current_page: int = 1,
    ) -> list[dict[str, Any]]:
        """ETH stakes of one account (balance, state, activated_at, rewards in wei)."""

    @abstractmethod
    async def list_rewards(
        self,
        account_id: str,
        *,
        date_from: date,
        date_to: date | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """Daily ETH reward records of one account within [date_from, date_to]."""

    @abstractmethod
    async def list_validators(self, *, limit: int = DEFAULT_VALIDATOR_LIMIT) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    async def get_validator(self, validator_id: str) -> dict[str, Any]:
        ...

    @abstractmethod
    async def get_network_stats(self, chain: str) -> dict[str, Any]:
        """Network statistics for 'eth' or 'sol'."""

    @abstractmethod
    async def get_organization_portfolio(self, org_id: str) -> dict[str, Any]:
        ...

    @abstractmethod
    async def get_address_balance(self, address: str) -> str:
        """Balance of an Ethereum address in wei, as a base-10 string."""

    @abstractmethod
    async def get_transaction_count(self, address: str) -> int:
        ...

    @abstractmethod
    async def get_latest_block(self) -> dict[str, Any]:
        """
        Latest Ethereum block: {"number": int, "timestamp": int, "transactions": [...]}.
        Transactions keep the JSON-RPC shape (hex 'value' and 'gas').
        """
