"""
Pytest tests for the synthetic data source: shapes, ranges and determinism.
"""

from __future__ import annotations

import asyncio
from datetime import date

from backend_staking.analytics.units import parse_wei, wei_to_eth
from backend_staking.datasource import SyntheticDataSource
from backend_staking.datasource.base import STAKE_STATES


def test_same_seed_gives_same_records():
    a = SyntheticDataSource(seed=42)
    b = SyntheticDataSource(seed=42)
    assert asyncio.run(a.list_stakes("x")) == asyncio.run(b.list_stakes("x"))


def test_stakes_look_like_upstream_records():
    stakes = asyncio.run(SyntheticDataSource(seed=3).list_stakes("mock-account-1"))
    assert 2 <= len(stakes) <= 10
    for stake in stakes:
        assert stake["state"] in STAKE_STATES
        assert 32 <= wei_to_eth(stake["balance"]) < 34
        assert parse_wei(stake["rewards"]) == parse_wei(stake["consensus_rewards"]) + parse_wei(stake["execution_rewards"])
        assert stake["activated_at"].endswith("Z")


def test_rewards_one_per_day_within_window():
    rewards = asyncio.run(
        SyntheticDataSource(seed=3).list_rewards("a", date_from=date(2024, 3, 1), date_to=date(2024, 3, 7))
    )
    assert [r["date"] for r in rewards] == [f"2024-03-0{d}" for d in range(1, 8)]


def test_rewards_respect_page_size():
    rewards = asyncio.run(
        SyntheticDataSource(seed=3).list_rewards(
            "a", date_from=date(2024, 1, 1), date_to=date(2024, 3, 31), page_size=10
        )
    )
    assert len(rewards) == 10


def test_latest_block_values_are_hex_quantities():
    block = asyncio.run(SyntheticDataSource(seed=5).get_latest_block())
    assert isinstance(block["number"], int)
    assert block["transactions"]
    assert all(tx["value"].startswith("0x") for tx in block["transactions"])
