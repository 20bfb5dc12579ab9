"""
Synthetic data source: random but well-formed Kiln/Etherscan-shaped records.

Used when no Kiln key is configured, when USE_MOCK_DATA is set, and as the
fallback whenever a live operation fails. Pass a seed for deterministic output.
"""

from __future__ import annotations

import random
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable

from backend_staking.datasource.base import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_VALIDATOR_LIMIT,
    STAKE_STATE_ACTIVE,
    STAKE_STATE_EXITED,
    STAKE_STATE_EXITING,
    STAKE_STATE_PENDING,
    STAKE_STATE_SLASHED,
    StakingDataSource,
)

WEI = 10**18
GWEI = 10**9
DEFAULT_ACCOUNT_COUNT = 4
BASE_BLOCK_NUMBER = 18_800_000

# Mostly healthy validators, like a real institutional book
_STATE_WEIGHTS = (
    (STAKE_STATE_ACTIVE, 80),
    (STAKE_STATE_PENDING, 6),
    (STAKE_STATE_EXITING, 6),
    (STAKE_STATE_EXITED, 5),
    (STAKE_STATE_SLASHED, 3),
)
_ACCOUNT_NAMES = ("Treasury", "Operations", "Client Omnibus", "Research", "Reserve", "Custody")
_VALIDATOR_OPERATORS = ("Kiln", "Figment", "Chorus One", "Staked", "Blockdaemon", "P2P")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _random_hex(rng: random.Random, n_chars: int) -> str:
    return "0x" + "".join(rng.choices("0123456789abcdef", k=n_chars))


class SyntheticDataSource(StakingDataSource):
    name = "mock"

    def __init__(
        self,
        seed: int | None = None,
        account_count: int = DEFAULT_ACCOUNT_COUNT,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._rng = random.Random(seed)
        self._now = now
        self._accounts = [
            {
                "id": f"mock-account-{i + 1}",
                "name": f"{_ACCOUNT_NAMES[i % len(_ACCOUNT_NAMES)]} {i + 1}",
                "description": "Synthetic account",
                "external_id": f"ext-{i + 1:04d}",
            }
            for i in range(account_count)
        ]

    async def list_accounts(self) -> list[dict[str, Any]]:
        return [dict(a) for a in self._accounts]

    def _stake(self, account_id: str) -> dict[str, Any]:
        rng = self._rng
        states = [s for s, _ in _STATE_WEIGHTS]
        weights = [w for _, w in _STATE_WEIGHTS]
        state = rng.choices(states, weights=weights, k=1)[0]
        activated = self._now() - timedelta(days=rng.randint(1, 720))
        balance = 32 * WEI + rng.randrange(0, 2 * WEI)
        consensus = rng.randrange(0, 3 * WEI)
        execution = rng.randrange(0, WEI // 2)
        return {
            "validator_address": _random_hex(rng, 96),
            "validator_index": rng.randint(100_000, 1_500_000),
            "state": state,
            "balance": str(balance),
            "consensus_rewards": str(consensus),
            "execution_rewards": str(execution),
            "rewards": str(consensus + execution),
            "gross_apy": round(rng.uniform(3.0, 7.0), 2),
            "activated_at": activated.isoformat().replace("+00:00", "Z"),
            "delegated_at": (activated - timedelta(days=rng.randint(1, 5))).isoformat().replace("+00:00", "Z"),
            "account_id": account_id,
        }

    async def list_stakes(
        self,
        account_id: str,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        current_page: int = 1,
    ) -> list[dict[str, Any]]:
        count = min(page_size, self._rng.randint(2, 10))
        return [self._stake(account_id) for _ in range(count)]

    async def list_rewards(
        self,
        account_id: str,
        *,
        date_from: date,
        date_to: date | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        rng = self._rng
        end = date_to or self._now().date()
        rewards: list[dict[str, Any]] = []
        day = date_from
        while day <= end and len(rewards) < page_size:
            consensus = rng.randrange(2 * 10**15, 5 * 10**15)
            execution = rng.randrange(0, 2 * 10**15) if rng.random() > 0.3 else 0
            rewards.append({
                "date": day.isoformat(),
                "account_id": account_id,
                "validator_address": _random_hex(rng, 96),
                "consensus_rewards": str(consensus),
                "execution_rewards": str(execution),
                "gross_apy": round(rng.uniform(2.5, 7.5), 2),
            })
            day += timedelta(days=1)
        return rewards

    async def list_validators(self, *, limit: int = DEFAULT_VALIDATOR_LIMIT) -> list[dict[str, Any]]:
        rng = self._rng
        return [
            {
                "id": f"mock-validator-{i + 1}",
                "name": f"{rng.choice(_VALIDATOR_OPERATORS)} Validator {i + 1}",
                "address": _random_hex(rng, 40),
                "chain": "eth",
                "public_commission_rate_percent": round(rng.uniform(5.0, 15.0), 2),
            }
            for i in range(limit)
        ]

    async def get_validator(self, validator_id: str) -> dict[str, Any]:
        rng = self._rng
        return {
            "id": validator_id,
            "name": f"{rng.choice(_VALIDATOR_OPERATORS)} Validator",
            "address": _random_hex(rng, 40),
            "chain": "eth",
            "state": STAKE_STATE_ACTIVE,
        }

    async def get_network_stats(self, chain: str) -> dict[str, Any]:
        rng = self._rng
        if chain == "sol":
            return {
                "network_gross_apy": round(rng.uniform(6.0, 8.0), 2),
                "supply_staked_percent": round(rng.uniform(60.0, 70.0), 2),
                "nb_validators": rng.randint(1_300, 1_600),
            }
        return {
            "network_gross_apy": round(rng.uniform(3.0, 4.5), 2),
            "supply_staked_percent": round(rng.uniform(25.0, 30.0), 2),
            "nb_validators": rng.randint(900_000, 1_100_000),
        }

    async def get_organization_portfolio(self, org_id: str) -> dict[str, Any]:
        rng = self._rng
        total_stakes = rng.randint(10, 200)
        return {
            "organization_id": org_id,
            "total_stakes": total_stakes,
            "total_balance": str(total_stakes * 32 * WEI),
            "total_rewards": str(rng.randrange(0, total_stakes * WEI)),
            "currency": "ETH",
        }

    async def get_address_balance(self, address: str) -> str:
        if self._rng.random() < 0.3:
            return "0"
        return str(self._rng.randrange(0, 50 * WEI))

    async def get_transaction_count(self, address: str) -> int:
        return self._rng.randint(0, 20_000)

    async def get_latest_block(self) -> dict[str, Any]:
        rng = self._rng
        transactions = [
            {
                "hash": _random_hex(rng, 64),
                "from": _random_hex(rng, 40),
                "to": _random_hex(rng, 40),
                "value": hex(rng.randrange(0, 132 * WEI)),
                "gas": hex(rng.randint(21_000, 121_000)),
                "gasPrice": hex(rng.randint(5, 60) * GWEI),
            }
            for _ in range(rng.randint(20, 60))
        ]
        return {
            "number": BASE_BLOCK_NUMBER + rng.randint(0, 1_000),
            "timestamp": int(self._now().timestamp()),
            "transactions": transactions,
        }
