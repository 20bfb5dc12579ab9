"""
Pytest fixtures for Backend Staking tests.

Builds apps through create_app() with an isolated TTL cache, a fixed ETH price
and an injected data source: a scriptable FakeDataSource standing in for the
live Kiln/Etherscan source, or only the seeded synthetic source.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from backend_staking.core.exceptions import UpstreamError
from backend_staking.datasource.base import StakingDataSource

WEI = 10**18
SANCTIONED_ADDRESS = "0x7f367cc41522ce07553e823bf3be79a889debe1b"


def make_stake(
    *,
    balance_eth: float = 32,
    state: str = "active_ongoing",
    rewards_eth: float = 1.6,
    activated_at: str | None = "2023-01-15T00:00:00Z",
    validator_address: str = "0xabc",
    gross_apy: float | None = 4.0,
) -> dict[str, Any]:
    return {
        "validator_address": validator_address,
        "validator_index": 123456,
        "state": state,
        "balance": str(int(balance_eth * WEI)),
        "rewards": str(int(rewards_eth * WEI)),
        "consensus_rewards": str(int(rewards_eth * WEI)),
        "execution_rewards": "0",
        "gross_apy": gross_apy,
        "activated_at": activated_at,
    }


def make_reward(day: str, consensus_eth: float = 0.004, execution_eth: float = 0.0, apy: float = 4.5) -> dict[str, Any]:
    return {
        "date": day,
        "consensus_rewards": str(int(consensus_eth * WEI)),
        "execution_rewards": str(int(execution_eth * WEI)),
        "gross_apy": apy,
    }


class FakeDataSource(StakingDataSource):
    """
    Scriptable stand-in for the live source. Accounts listed in failing_accounts
    raise UpstreamError on per-account calls; fail_all makes every call raise.
    """

    name = "kiln"

    def __init__(
        self,
        accounts: list[dict[str, Any]] | None = None,
        stakes: dict[str, list[dict[str, Any]]] | None = None,
        rewards: dict[str, list[dict[str, Any]]] | None = None,
        *,
        failing_accounts: tuple[str, ...] = (),
        fail_all: bool = False,
        failing_chains: tuple[str, ...] = (),
        balance: str = "0",
        tx_count: int | None = 100,
        block: dict[str, Any] | None = None,
        validators: list[dict[str, Any]] | None = None,
    ) -> None:
        self.accounts = accounts if accounts is not None else []
        self.stakes = stakes or {}
        self.rewards = rewards or {}
        self.failing_accounts = failing_accounts
        self.fail_all = fail_all
        self.failing_chains = failing_chains
        self.balance = balance
        self.tx_count = tx_count
        self.block = block or {"number": 1, "timestamp": 0, "transactions": []}
        self.validators = validators or []
        self.calls: list[tuple[str, Any]] = []

    def _check(self, op: str, key: Any = None) -> None:
        self.calls.append((op, key))
        if self.fail_all:
            raise UpstreamError("kiln", f"{op} unavailable")

    async def list_accounts(self) -> list[dict[str, Any]]:
        self._check("list_accounts")
        return [dict(a) for a in self.accounts]

    async def list_stakes(self, account_id: str, *, page_size: int = 100, current_page: int = 1) -> list[dict[str, Any]]:
        self._check("list_stakes", account_id)
        if account_id in self.failing_accounts:
            raise UpstreamError("kiln", f"HTTP 500 for stakes of {account_id}")
        return list(self.stakes.get(account_id, []))

    async def list_rewards(
        self,
        account_id: str,
        *,
        date_from: date,
        date_to: date | None = None,
        page_size: int = 100,
    ) -> list[dict[str, Any]]:
        self._check("list_rewards", (account_id, date_from, date_to))
        if account_id in self.failing_accounts:
            raise UpstreamError("kiln", f"HTTP 500 for rewards of {account_id}")
        return list(self.rewards.get(account_id, []))

    async def list_validators(self, *, limit: int = 50) -> list[dict[str, Any]]:
        self._check("list_validators", limit)
        return [dict(v) for v in self.validators[:limit]]

    async def get_validator(self, validator_id: str) -> dict[str, Any]:
        self._check("get_validator", validator_id)
        return {"id": validator_id, "name": "Fake Validator"}

    async def get_network_stats(self, chain: str) -> dict[str, Any]:
        self._check("get_network_stats", chain)
        if chain in self.failing_chains:
            raise UpstreamError("kiln", f"{chain} stats unavailable")
        return {"chain": chain, "network_gross_apy": 3.2}

    async def get_organization_portfolio(self, org_id: str) -> dict[str, Any]:
        self._check("get_organization_portfolio", org_id)
        return {"organization_id": org_id, "total_stakes": 3}

    async def get_address_balance(self, address: str) -> str:
        self._check("get_address_balance", address)
        return self.balance

    async def get_transaction_count(self, address: str) -> int:
        self._check("get_transaction_count", address)
        if self.tx_count is None:
            raise UpstreamError("etherscan", "eth_getTransactionCount failed")
        return self.tx_count

    async def get_latest_block(self) -> dict[str, Any]:
        self._check("get_latest_block")
        return self.block


@pytest.fixture
def two_accounts():
    return [{"id": "acct1", "name": "Treasury"}, {"id": "acct2", "name": "Operations"}]


@pytest.fixture
def fake_source(two_accounts):
    """Live-like source: acct1 has two healthy stakes, acct2 fails."""
    return FakeDataSource(
        accounts=two_accounts,
        stakes={"acct1": [make_stake(validator_address="0xa"), make_stake(validator_address="0xb")]},
        failing_accounts=("acct2",),
    )


@pytest.fixture
def make_client():
    """
    Factory: make_client(primary=None) -> TestClient for an app whose live source
    is `primary` (None: synthetic only). Lifespan runs; clients are closed after the test.
    """
    from fastapi.testclient import TestClient

    from backend_staking.api_server.server import create_app
    from backend_staking.cache import TTLCache
    from backend_staking.config import Settings
    from backend_staking.datasource import DataSourceSelector, FixedPriceSource, SyntheticDataSource

    clients: list[TestClient] = []

    def _make(primary: StakingDataSource | None = None, *, seed: int = 7) -> TestClient:
        app = create_app(
            Settings(),
            cache=TTLCache(),
            data_sources=DataSourceSelector(SyntheticDataSource(seed=seed), primary),
            price_source=FixedPriceSource(3500.0),
            sanctioned=frozenset({SANCTIONED_ADDRESS}),
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    """TestClient backed by the seeded synthetic source only."""
    return make_client()
