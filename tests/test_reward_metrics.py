"""
Pytest tests for reward analytics: ratings, grades, time series, benchmarks, trends.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from conftest import make_reward

ACCOUNT = {"id": "acct1", "name": "Treasury"}


def _enriched(day: str, consensus_eth: float = 0.004, execution_eth: float = 0.0, apy: float = 4.5):
    from backend_staking.analytics.reward_metrics import enrich_reward

    return enrich_reward(make_reward(day, consensus_eth, execution_eth, apy), ACCOUNT, eth_usd=3500.0)


# --- Per-record rating and type ---


def test_rating_rewards_large_reward_and_high_apy():
    """0.2 ETH at 7% APY: 50 + 20 + 15 = 85."""
    from backend_staking.analytics.reward_metrics import calculate_reward_performance_rating

    assert calculate_reward_performance_rating(make_reward("2024-03-01", 0.2, 0.0, 7)) == 85


def test_rating_penalizes_dust_and_low_apy():
    """0.005 ETH at 2% APY: 50 - 15 - 10 = 25."""
    from backend_staking.analytics.reward_metrics import calculate_reward_performance_rating

    assert calculate_reward_performance_rating(make_reward("2024-03-01", 0.005, 0.0, 2)) == 25


def test_rating_mid_bands():
    from backend_staking.analytics.reward_metrics import calculate_reward_performance_rating

    # 0.06 ETH (+10) at 5% (+5)
    assert calculate_reward_performance_rating(make_reward("2024-03-01", 0.03, 0.03, 5)) == 65
    # 0.02 ETH and 3.5%: neither band applies
    assert calculate_reward_performance_rating(make_reward("2024-03-01", 0.02, 0.0, 3.5)) == 50


@pytest.mark.parametrize(
    "consensus,execution,expected",
    [(0.01, 0.01, "MIXED"), (0.01, 0.0, "CONSENSUS"), (0.0, 0.01, "EXECUTION"), (0.0, 0.0, "NONE")],
)
def test_determine_reward_type(consensus, execution, expected):
    from backend_staking.analytics.reward_metrics import determine_reward_type

    assert determine_reward_type(make_reward("2024-03-01", consensus, execution)) == expected


def test_enrich_reward_fields():
    reward = _enriched("2024-03-01", 0.003, 0.001, apy=4.5)
    assert reward["accountId"] == "acct1"
    assert reward["totalRewardEth"] == pytest.approx(0.004)
    assert reward["rewardValueUsd"] == 14.0
    assert reward["annualizedReturn"] == 4.5
    assert reward["frequency"] == "Daily"
    assert reward["rewardType"] == "MIXED"
    # upstream wei strings are kept alongside the display values
    assert reward["consensus_rewards"] == str(int(0.003 * 10**18))


# --- Consistency and grades ---


def test_consistency_with_fewer_than_two_rewards_is_100():
    from backend_staking.analytics.reward_metrics import calculate_reward_consistency

    assert calculate_reward_consistency([]) == 100
    assert calculate_reward_consistency([_enriched("2024-03-01")]) == 100


def test_consistency_all_zero_rewards_is_0():
    from backend_staking.analytics.reward_metrics import calculate_reward_consistency

    zero = [_enriched("2024-03-01", 0.0), _enriched("2024-03-02", 0.0)]
    assert calculate_reward_consistency(zero) == 0


def test_consistency_of_equal_and_uneven_amounts():
    """[1, 3]: mean 2, pstdev 1, CV 0.5 -> 50."""
    from backend_staking.analytics.reward_metrics import calculate_reward_consistency

    equal = [_enriched("2024-03-01", 0.004), _enriched("2024-03-02", 0.004)]
    uneven = [{"totalRewardEth": 1.0}, {"totalRewardEth": 3.0}]
    assert calculate_reward_consistency(equal) == 100
    assert calculate_reward_consistency(uneven) == 50


def test_consistency_rounds_half_up():
    """[5, 11]: mean 8, pstdev 3, CV 0.375 -> 62.5 -> 63."""
    from backend_staking.analytics.reward_metrics import calculate_reward_consistency

    assert calculate_reward_consistency([{"totalRewardEth": 5.0}, {"totalRewardEth": 11.0}]) == 63


def test_account_reward_grade():
    """Average rating 70 with perfectly consistent rewards: 70 * 0.7 + 100 * 0.3 = 79."""
    from backend_staking.analytics.reward_metrics import calculate_account_reward_grade

    rewards = [
        {"totalRewardEth": 0.01, "performanceRating": 60},
        {"totalRewardEth": 0.01, "performanceRating": 80},
    ]
    assert calculate_account_reward_grade(rewards) == 79
    assert calculate_account_reward_grade([]) == 0


def test_account_performance_summary():
    from backend_staking.analytics.reward_metrics import account_performance

    entry = {"account": ACCOUNT, "rewards": [_enriched("2024-03-01", 0.007), _enriched("2024-03-02", 0.0, 0.007)]}
    perf = account_performance(entry, "7d")
    assert perf["accountId"] == "acct1"
    assert perf["totalRewards"] == pytest.approx(0.014)
    assert perf["avgDailyReward"] == pytest.approx(0.002)
    assert perf["rewardCount"] == 2
    assert perf["avgAPY"] == pytest.approx(4.5)
    assert perf["rewardDistribution"] == {"CONSENSUS": 1, "EXECUTION": 1, "MIXED": 0, "NONE": 0}


# --- Timeframes and time series ---


def test_timeframe_window():
    from backend_staking.analytics.reward_metrics import timeframe_window

    today = date(2024, 3, 31)
    assert timeframe_window("7d", today) == (date(2024, 3, 24), today)
    assert timeframe_window("1y", today) == (date(2023, 3, 31), today)
    # unknown timeframe uses the 30 day window
    assert timeframe_window("2w", today) == (date(2024, 3, 1), today)
    assert timeframe_window(None, today) == (date(2024, 3, 1), today)


def test_one_year_window_is_a_calendar_year():
    from backend_staking.analytics.reward_metrics import timeframe_window

    # crosses Feb 29 2024: 366 days back
    assert timeframe_window("1y", date(2024, 3, 1)) == (date(2023, 3, 1), date(2024, 3, 1))
    assert timeframe_window("1y", date(2024, 2, 29)) == (date(2023, 3, 1), date(2024, 2, 29))
    assert timeframe_window("1y", date(2023, 6, 15)) == (date(2022, 6, 15), date(2023, 6, 15))


def test_week_key_starts_on_sunday():
    from backend_staking.analytics.reward_metrics import _week_key

    # 2024-03-04 is a Monday
    assert _week_key(datetime(2024, 3, 4, tzinfo=timezone.utc)) == "2024-03-03"
    assert _week_key(datetime(2024, 3, 3, tzinfo=timezone.utc)) == "2024-03-03"
    assert _week_key(datetime(2024, 3, 9, tzinfo=timezone.utc)) == "2024-03-03"


def test_daily_time_series_groups_by_day_in_order():
    from backend_staking.analytics.reward_metrics import generate_reward_time_series

    rewards = [
        _enriched("2024-03-02T10:00:00Z", 0.002),
        _enriched("2024-03-01", 0.001),
        _enriched("2024-03-02T20:00:00Z", 0.0, 0.003),
        {"date": None, "totalRewardEth": 9.0},
    ]
    series = generate_reward_time_series(rewards, "30d")
    assert [b["date"] for b in series] == ["2024-03-01", "2024-03-02"]
    assert series[1]["count"] == 2
    assert series[1]["totalRewards"] == pytest.approx(0.005)
    assert series[1]["executionRewards"] == pytest.approx(0.003)


def test_weekly_time_series_for_long_timeframes():
    from backend_staking.analytics.reward_metrics import generate_reward_time_series

    rewards = [_enriched("2024-03-04"), _enriched("2024-03-09"), _enriched("2024-03-10")]
    series = generate_reward_time_series(rewards, "90d")
    assert [(b["date"], b["count"]) for b in series] == [("2024-03-03", 2), ("2024-03-10", 1)]


def test_seasonal_trends_by_calendar_month():
    from backend_staking.analytics.reward_metrics import analyze_seasonal_trends

    rewards = [_enriched("2024-02-10", 0.002), _enriched("2023-02-10", 0.004), _enriched("2024-01-05", 0.001)]
    trends = analyze_seasonal_trends(rewards)
    assert [t["monthName"] for t in trends] == ["January", "February"]
    assert trends[1]["month"] == 2
    assert trends[1]["avgRewards"] == pytest.approx(0.003)


# --- Benchmarks, trends, risk-adjusted metrics ---


@pytest.mark.parametrize(
    "avg,percentile",
    [(0.025, 90), (0.019, 75), (0.016, 50), (0.013, 25), (0.005, 10), (0.0, 10)],
)
def test_percentile_ranking(avg, percentile):
    from backend_staking.analytics.reward_metrics import calculate_percentile_ranking

    assert calculate_percentile_ranking(avg) == percentile


def test_industry_benchmarks():
    from backend_staking.analytics.reward_metrics import generate_industry_benchmarks

    above = generate_industry_benchmarks([{"totalRewardEth": 0.02}, {"totalRewardEth": 0.03}])
    assert above["performance_vs_industry"] == "ABOVE"
    assert above["percentile_ranking"] == 90
    assert generate_industry_benchmarks([{"totalRewardEth": 0.012}])["performance_vs_industry"] == "AVERAGE"
    assert generate_industry_benchmarks([])["performance_vs_industry"] == "BELOW"


def test_growth_trends():
    from backend_staking.analytics.reward_metrics import calculate_growth_trends

    rewards = [
        {"date": "2024-03-04", "totalRewardEth": 2.0},
        {"date": "2024-03-01", "totalRewardEth": 1.0},
        {"date": "2024-03-03", "totalRewardEth": 2.0},
        {"date": "2024-03-02", "totalRewardEth": 1.0},
    ]
    growth = calculate_growth_trends(rewards)
    assert growth["trend"] == "INCREASING"
    assert growth["growthRate"] == 100.0
    # input order is untouched
    assert rewards[0]["date"] == "2024-03-04"

    falling = calculate_growth_trends([
        {"date": "2024-03-01", "totalRewardEth": 2.0},
        {"date": "2024-03-02", "totalRewardEth": 1.0},
    ])
    assert falling["trend"] == "DECREASING"
    assert calculate_growth_trends(rewards[:1]) == {"trend": "INSUFFICIENT_DATA", "growthRate": 0}


def test_risk_adjusted_metrics_for_constant_rewards():
    from backend_staking.analytics.reward_metrics import risk_adjusted_metrics

    rewards = [{"date": f"2024-03-0{d}", "totalRewardEth": 0.01} for d in range(1, 5)]
    metrics = risk_adjusted_metrics(rewards)
    assert metrics["volatility"] == 0
    assert metrics["sharpeRatio"] == 0
    assert metrics["maxDrawdown"] == 0
    assert metrics["stabilityScore"] == 100


def test_sharpe_ratio_for_varying_rewards():
    """mean 0.02, pstdev 0.01 -> (0.02 - 0.0002) / 0.01."""
    from backend_staking.analytics.reward_metrics import calculate_sharpe_ratio

    rewards = [{"totalRewardEth": 0.01}, {"totalRewardEth": 0.03}]
    assert calculate_sharpe_ratio(rewards) == pytest.approx(1.98)
