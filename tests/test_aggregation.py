"""
Pytest tests for multi-account aggregation: account selection, partial failures,
reward windows and enhanced account portfolios.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone

import pytest

from conftest import FakeDataSource, make_reward, make_stake

from backend_staking.core.exceptions import UpstreamError

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def test_select_accounts_defaults_to_first_three():
    from backend_staking.analytics.aggregation import select_accounts

    accounts = [{"id": f"a{i}"} for i in range(5)]
    selected, selection = select_accounts(accounts, None)
    assert [a["id"] for a in selected] == ["a0", "a1", "a2"]
    assert selection == "default_first_3"


def test_select_accounts_keeps_listing_order_and_drops_unknown_ids():
    from backend_staking.analytics.aggregation import select_accounts

    accounts = [{"id": f"a{i}"} for i in range(5)]
    selected, selection = select_accounts(accounts, ["a4", "missing", "a1"])
    assert [a["id"] for a in selected] == ["a1", "a4"]
    assert selection == "requested"


def test_stakes_aggregation_survives_a_failing_account(fake_source):
    """acct2 raises upstream; acct1's two stakes are still aggregated."""
    from backend_staking.analytics.aggregation import aggregate_stakes

    result = asyncio.run(aggregate_stakes(fake_source, None, eth_usd=3500.0, now=NOW))

    assert result["analytics"]["totalStakes"] == 2
    assert result["analytics"]["totalStakedEth"] == pytest.approx(64.0)
    assert result["analytics"]["activeStakes"] == 2
    by_id = {entry["account"]["id"]: entry for entry in result["accounts"]}
    assert "error" not in by_id["acct1"]
    assert by_id["acct2"]["stakes"] == []
    assert "acct2" in by_id["acct2"]["error"]
    assert result["metadata"]["accountsAnalyzed"] == 2
    assert result["metadata"]["accountSelection"] == "default_first_3"
    assert result["metadata"]["analyticsDepth"] == "basic"


def test_stakes_aggregation_analytics_shape(fake_source):
    from backend_staking.analytics.aggregation import aggregate_stakes

    result = asyncio.run(aggregate_stakes(fake_source, ["acct1"], analytics="advanced", eth_usd=3500.0, now=NOW))
    analytics = result["analytics"]

    assert [b["accountId"] for b in analytics["accountBreakdown"]] == ["acct1"]
    assert analytics["accountBreakdown"][0]["diversificationScore"] > 0
    assert analytics["performanceBenchmarks"]["topPerformingAccount"]["accountId"] == "acct1"
    assert analytics["stakingTimeline"] == [{"month": "2023-01", "stakesActivated": 2}]
    assert analytics["portfolioRisk"]["overallRiskScore"] == 0
    # a single account has no spread across accounts
    assert analytics["portfolioRisk"]["diversificationScore"] == 0
    assert result["metadata"]["accountSelection"] == "requested"
    assert result["metadata"]["analyticsDepth"] == "advanced"


def test_failing_account_listing_propagates():
    from backend_staking.analytics.aggregation import aggregate_stakes

    with pytest.raises(UpstreamError):
        asyncio.run(aggregate_stakes(FakeDataSource(fail_all=True), None, eth_usd=3500.0))


def test_rewards_aggregation_window_and_totals(two_accounts):
    from backend_staking.analytics.aggregation import aggregate_rewards

    source = FakeDataSource(
        accounts=two_accounts,
        rewards={
            "acct1": [make_reward("2024-03-29", 0.004), make_reward("2024-03-30", 0.004)],
            "acct2": [make_reward("2024-03-30", 0.002, 0.002)],
        },
    )
    result = asyncio.run(
        aggregate_rewards(source, None, timeframe="7d", eth_usd=3500.0, today=date(2024, 3, 31))
    )

    calls = [key for op, key in source.calls if op == "list_rewards"]
    assert calls == [("acct1", date(2024, 3, 24), date(2024, 3, 31)), ("acct2", date(2024, 3, 24), date(2024, 3, 31))]
    assert result["analytics"]["totalCount"] == 3
    assert result["analytics"]["totalRewardsEth"] == pytest.approx(0.012)
    assert result["analytics"]["totalRewards"] == pytest.approx(42.0)
    assert result["analytics"]["benchmarks"]["topPerformingAccount"]["accountId"] == "acct1"
    assert [p["date"] for p in result["analytics"]["timeSeriesData"]] == ["2024-03-29", "2024-03-30"]
    assert result["metadata"]["dateRange"] == {"from": "2024-03-24", "to": "2024-03-31"}


def test_unknown_timeframe_uses_30_days_but_is_echoed(two_accounts):
    from backend_staking.analytics.aggregation import aggregate_rewards

    source = FakeDataSource(accounts=two_accounts)
    result = asyncio.run(
        aggregate_rewards(source, ["acct1"], timeframe="2w", eth_usd=3500.0, today=date(2024, 3, 31))
    )
    assert result["metadata"]["timeframe"] == "2w"
    assert result["metadata"]["dateRange"]["from"] == "2024-03-01"
    assert result["analytics"]["totalCount"] == 0
    assert result["analytics"]["benchmarks"]["growthTrends"]["trend"] == "INSUFFICIENT_DATA"


def test_rewards_failing_account_becomes_error_entry(two_accounts):
    from backend_staking.analytics.aggregation import aggregate_rewards

    source = FakeDataSource(
        accounts=two_accounts,
        rewards={"acct1": [make_reward("2024-03-30")]},
        failing_accounts=("acct2",),
    )
    result = asyncio.run(aggregate_rewards(source, None, eth_usd=3500.0, today=date(2024, 3, 31)))
    errors = [entry for entry in result["accounts"] if "error" in entry]
    assert [entry["account"]["id"] for entry in errors] == ["acct2"]
    assert result["analytics"]["totalCount"] == 1


def test_account_overall_grade():
    """Healthy stake (100), consistent rewards (100), no risk: 60 + 25 + 15 = 100."""
    from backend_staking.analytics.aggregation import calculate_account_overall_grade

    stakes = [make_stake()]
    rewards = [make_reward("2024-05-01"), make_reward("2024-05-02")]
    assert calculate_account_overall_grade(stakes, rewards, now=NOW) == 100
    assert calculate_account_overall_grade([], rewards, now=NOW) == 0


def test_enhanced_accounts_sorted_by_aum_with_failures_last():
    from backend_staking.analytics.aggregation import enhanced_accounts

    accounts = [{"id": "small", "name": "S"}, {"id": "broken", "name": "B"}, {"id": "large", "name": "L"}]
    source = FakeDataSource(
        accounts=accounts,
        stakes={
            "small": [make_stake(balance_eth=32)],
            "large": [make_stake(balance_eth=32) for _ in range(6)],
        },
        rewards={"large": [make_reward("2024-05-20"), make_reward("2024-05-21")]},
        failing_accounts=("broken",),
    )
    result = asyncio.run(enhanced_accounts(source, eth_usd=3500.0, now=NOW))

    assert [a["id"] for a in result["accounts"]] == ["large", "small", "broken"]
    large, small, broken = result["accounts"]
    assert large["portfolio"]["totalStakedEth"] == pytest.approx(192.0)
    assert large["portfolio"]["last30dRewards"] == 2
    assert large["portfolio"]["riskLevel"] == "LOW"
    assert large["isSelected"] is False
    assert broken["portfolio"] is None
    assert "broken" in broken["error"]

    analytics = result["analytics"]
    assert analytics["totalAccounts"] == 3
    assert analytics["totalAUM"] == pytest.approx(224.0)
    assert analytics["riskDistribution"] == {"low": 2, "medium": 0, "high": 0}
    assert analytics["recommendedForAnalysis"] == ["large"]
    assert [a["id"] for a in analytics["topPerformers"]] == ["large", "small"]
    assert result["metadata"]["dataFreshness"] == "real-time"

    reward_calls = [key for op, key in source.calls if op == "list_rewards"]
    assert all(key[1] == date(2024, 5, 2) for key in reward_calls)
