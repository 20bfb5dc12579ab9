"""
Reward analytics: per-record rating, per-account grade and consistency,
portfolio time series, benchmarks and risk-adjusted metrics.

Inputs are reward records already passed through enrich_reward(), so every
record carries a float 'totalRewardEth'. All functions are pure.
"""

from __future__ import annotations

import calendar
import statistics
from datetime import date, datetime, timedelta
from typing import Any

from backend_staking.analytics.units import (
    EPOCH,
    clamp,
    parse_timestamp,
    parse_wei,
    round_half_up,
    to_float,
    wei_to_eth,
)

TIMEFRAME_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
DEFAULT_TIMEFRAME = "30d"
DAILY_TIMEFRAMES = ("7d", "30d")

REWARD_TYPE_MIXED = "MIXED"
REWARD_TYPE_CONSENSUS = "CONSENSUS"
REWARD_TYPE_EXECUTION = "EXECUTION"
REWARD_TYPE_NONE = "NONE"
REWARD_TYPES = (REWARD_TYPE_CONSENSUS, REWARD_TYPE_EXECUTION, REWARD_TYPE_MIXED, REWARD_TYPE_NONE)

TREND_INCREASING = "INCREASING"
TREND_DECREASING = "DECREASING"
TREND_STABLE = "STABLE"
TREND_INSUFFICIENT = "INSUFFICIENT_DATA"
GROWTH_THRESHOLD_PCT = 5.0

# Daily risk-free return used by the Sharpe-like ratio (about 7% a year)
RISK_FREE_DAILY = 0.0002

INDUSTRY_AVG_DAILY_REWARD = 0.015
INDUSTRY_AVERAGE_FLOOR = 0.010
# (threshold, percentile), checked top-down
PERCENTILE_BANDS = ((0.020, 90), (0.018, 75), (0.015, 50), (0.012, 25))
PERCENTILE_FLOOR = 10


def days_in_timeframe(timeframe: str | None) -> int:
    return TIMEFRAME_DAYS.get(timeframe or DEFAULT_TIMEFRAME, TIMEFRAME_DAYS[DEFAULT_TIMEFRAME])


def timeframe_window(timeframe: str | None, today: date | None = None) -> tuple[date, date]:
    """
    [start, today] for the timeframe; unknown timeframes use 30 days. '1y' goes
    back one calendar year, and Feb 29 maps to Mar 1 of the previous year.
    """
    today = today or date.today()
    if timeframe == "1y":
        try:
            return today.replace(year=today.year - 1), today
        except ValueError:
            return date(today.year - 1, 3, 1), today
    return today - timedelta(days=days_in_timeframe(timeframe)), today


def reward_total_wei(reward: dict[str, Any]) -> int:
    return parse_wei(reward.get("consensus_rewards")) + parse_wei(reward.get("execution_rewards"))


def determine_reward_type(reward: dict[str, Any]) -> str:
    consensus = parse_wei(reward.get("consensus_rewards"))
    execution = parse_wei(reward.get("execution_rewards"))
    if consensus > 0 and execution > 0:
        return REWARD_TYPE_MIXED
    if consensus > 0:
        return REWARD_TYPE_CONSENSUS
    if execution > 0:
        return REWARD_TYPE_EXECUTION
    return REWARD_TYPE_NONE


def calculate_reward_performance_rating(reward: dict[str, Any]) -> int:
    """
    Rate one reward record 0-100 from base 50.

    Reward size: > 0.1 ETH +20, > 0.05 +10, < 0.01 -15.
    APY: > 6 +15, > 4 +5, < 3 -10.
    """
    total = reward_total_wei(reward) / 10**18
    apy = to_float(reward.get("gross_apy"))

    rating = 50
    if total > 0.1:
        rating += 20
    elif total > 0.05:
        rating += 10
    elif total < 0.01:
        rating -= 15

    if apy > 6:
        rating += 15
    elif apy > 4:
        rating += 5
    elif apy < 3:
        rating -= 10

    return int(clamp(rating))


def enrich_reward(reward: dict[str, Any], account: dict[str, Any], *, eth_usd: float) -> dict[str, Any]:
    total_eth = reward_total_wei(reward) / 10**18
    return {
        **reward,
        "accountId": account.get("id"),
        "accountName": account.get("name"),
        "date": reward.get("date") or reward.get("updated_at"),
        "validatorAddress": reward.get("validator_address"),
        "consensusRewards": round(wei_to_eth(reward.get("consensus_rewards")), 6),
        "executionRewards": round(wei_to_eth(reward.get("execution_rewards")), 6),
        "totalRewardEth": round(total_eth, 6),
        "rewardValueUsd": round(total_eth * eth_usd, 2),
        "annualizedReturn": to_float(reward.get("gross_apy")),
        "frequency": "Daily",
        "rewardType": determine_reward_type(reward),
        "performanceRating": calculate_reward_performance_rating(reward),
    }


def _amounts(rewards: list[dict[str, Any]]) -> list[float]:
    return [to_float(r.get("totalRewardEth")) for r in rewards]


def _total(rewards: list[dict[str, Any]]) -> float:
    return sum(_amounts(rewards))


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _sorted_by_date(rewards: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Copy sorted by date; undated records sort first."""
    return sorted(rewards, key=lambda r: parse_timestamp(r.get("date")) or EPOCH)


def calculate_reward_consistency(rewards: list[dict[str, Any]]) -> int:
    """100 minus the coefficient of variation in percent; 100 for fewer than two rewards."""
    if len(rewards) < 2:
        return 100
    amounts = _amounts(rewards)
    mean = statistics.fmean(amounts)
    cv = statistics.pstdev(amounts) / mean if mean > 0 else 1
    return round_half_up(max(0.0, 100 - cv * 100))


def calculate_account_reward_grade(rewards: list[dict[str, Any]]) -> int:
    if not rewards:
        return 0
    avg_rating = _mean([r.get("performanceRating", 0) for r in rewards])
    return round_half_up(avg_rating * 0.7 + calculate_reward_consistency(rewards) * 0.3)


def calculate_reward_distribution(rewards: list[dict[str, Any]]) -> dict[str, int]:
    distribution = dict.fromkeys(REWARD_TYPES, 0)
    for reward in rewards:
        kind = reward.get("rewardType") or determine_reward_type(reward)
        distribution[kind] = distribution.get(kind, 0) + 1
    return distribution


def calculate_avg_daily_rewards(rewards: list[dict[str, Any]], timeframe: str | None) -> float:
    return _total(rewards) / days_in_timeframe(timeframe)


def account_performance(entry: dict[str, Any], timeframe: str | None) -> dict[str, Any]:
    rewards = entry.get("rewards") or []
    account = entry.get("account") or {}
    total = _total(rewards)
    return {
        "accountId": account.get("id"),
        "accountName": account.get("name"),
        "totalRewards": total,
        "avgDailyReward": total / days_in_timeframe(timeframe),
        "rewardCount": len(rewards),
        "avgAPY": _mean([to_float(r.get("annualizedReturn")) for r in rewards]),
        "performanceGrade": calculate_account_reward_grade(rewards),
        "consistencyScore": calculate_reward_consistency(rewards),
        "rewardDistribution": calculate_reward_distribution(rewards),
    }


def _week_key(day: datetime) -> str:
    """Sunday that starts the week containing day."""
    start = day.date() - timedelta(days=(day.weekday() + 1) % 7)
    return start.isoformat()


def generate_reward_time_series(rewards: list[dict[str, Any]], timeframe: str | None) -> list[dict[str, Any]]:
    """Daily buckets for 7d/30d, weekly (Sunday-start) buckets otherwise."""
    daily = timeframe in DAILY_TIMEFRAMES
    buckets: dict[str, dict[str, Any]] = {}
    for reward in rewards:
        parsed = parse_timestamp(reward.get("date"))
        if parsed is None:
            continue
        key = parsed.date().isoformat() if daily else _week_key(parsed)
        bucket = buckets.setdefault(key, {
            "date": key,
            "totalRewards": 0.0,
            "count": 0,
            "consensusRewards": 0.0,
            "executionRewards": 0.0,
        })
        bucket["totalRewards"] += to_float(reward.get("totalRewardEth"))
        bucket["count"] += 1
        bucket["consensusRewards"] += to_float(reward.get("consensusRewards"))
        bucket["executionRewards"] += to_float(reward.get("executionRewards"))
    return [buckets[k] for k in sorted(buckets)]


def analyze_seasonal_trends(rewards: list[dict[str, Any]]) -> list[dict[str, Any]]:
    months: dict[int, list[float]] = {}
    for reward in rewards:
        parsed = parse_timestamp(reward.get("date"))
        if parsed is None:
            continue
        months.setdefault(parsed.month, []).append(to_float(reward.get("totalRewardEth")))
    return [
        {
            "month": month,
            "monthName": calendar.month_name[month],
            "avgRewards": _mean(amounts),
            "totalRewards": sum(amounts),
        }
        for month, amounts in sorted(months.items())
    ]


def top_reward_account(account_entries: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Account with the highest total rewards; first one wins ties."""
    if not account_entries:
        return None
    best = max(account_entries, key=lambda e: _total(e.get("rewards") or []))
    account = best.get("account") or {}
    return {
        "accountId": account.get("id"),
        "accountName": account.get("name"),
        "totalRewards": _total(best.get("rewards") or []),
        "rewardCount": len(best.get("rewards") or []),
    }


def calculate_percentile_ranking(avg_reward: float) -> int:
    for threshold, percentile in PERCENTILE_BANDS:
        if avg_reward > threshold:
            return percentile
    return PERCENTILE_FLOOR


def generate_industry_benchmarks(rewards: list[dict[str, Any]]) -> dict[str, Any]:
    avg_reward = _mean(_amounts(rewards))
    if avg_reward > INDUSTRY_AVG_DAILY_REWARD:
        comparison = "ABOVE"
    elif avg_reward > INDUSTRY_AVERAGE_FLOOR:
        comparison = "AVERAGE"
    else:
        comparison = "BELOW"
    return {
        "industry_avg_daily_reward": INDUSTRY_AVG_DAILY_REWARD,
        "your_avg_daily_reward": avg_reward,
        "performance_vs_industry": comparison,
        "percentile_ranking": calculate_percentile_ranking(avg_reward),
    }


def calculate_reward_efficiency(account_entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    metrics = []
    for entry in account_entries:
        rewards = entry.get("rewards") or []
        account = entry.get("account") or {}
        avg_reward = _mean(_amounts(rewards))
        consistency = calculate_reward_consistency(rewards)
        metrics.append({
            "accountId": account.get("id"),
            "accountName": account.get("name"),
            "rewardEfficiency": avg_reward,
            "consistencyScore": consistency,
            "overallEfficiency": avg_reward * consistency / 100,
        })
    return metrics


def calculate_growth_trends(rewards: list[dict[str, Any]]) -> dict[str, Any]:
    """Second-half average against first-half average of the date-sorted rewards."""
    if len(rewards) < 2:
        return {"trend": TREND_INSUFFICIENT, "growthRate": 0}
    amounts = _amounts(_sorted_by_date(rewards))
    mid = len(amounts) // 2
    first_avg = _mean(amounts[:mid])
    second_avg = _mean(amounts[mid:])
    growth = (second_avg - first_avg) / first_avg * 100 if first_avg > 0 else 0.0

    if growth > GROWTH_THRESHOLD_PCT:
        trend = TREND_INCREASING
    elif growth < -GROWTH_THRESHOLD_PCT:
        trend = TREND_DECREASING
    else:
        trend = TREND_STABLE
    return {
        "trend": trend,
        "growthRate": round(growth, 2),
        "firstPeriodAvg": first_avg,
        "secondPeriodAvg": second_avg,
    }


def calculate_reward_volatility(rewards: list[dict[str, Any]]) -> float:
    if len(rewards) < 2:
        return 0.0
    return statistics.pstdev(_amounts(rewards))


def calculate_sharpe_ratio(rewards: list[dict[str, Any]]) -> float:
    if len(rewards) < 2:
        return 0.0
    amounts = _amounts(rewards)
    volatility = statistics.pstdev(amounts)
    if volatility <= 0:
        return 0.0
    return (statistics.fmean(amounts) - RISK_FREE_DAILY) / volatility


def calculate_max_drawdown(rewards: list[dict[str, Any]]) -> float:
    """Largest fall of the cumulative reward series from its running peak, in percent."""
    if len(rewards) < 2:
        return 0.0
    peak = 0.0
    running = 0.0
    worst = 0.0
    for amount in _amounts(_sorted_by_date(rewards)):
        running += amount
        peak = max(peak, running)
        if peak > 0:
            worst = max(worst, (peak - running) / peak)
    return worst * 100


def calculate_stability_score(rewards: list[dict[str, Any]]) -> int:
    consistency = calculate_reward_consistency(rewards)
    volatility = calculate_reward_volatility(rewards)
    avg = _mean(_amounts(rewards))
    volatility_score = max(0.0, 100 - volatility / avg * 100) if avg > 0 else 0.0
    return round_half_up(consistency * 0.6 + volatility_score * 0.4)


def risk_adjusted_metrics(rewards: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "sharpeRatio": calculate_sharpe_ratio(rewards),
        "volatility": calculate_reward_volatility(rewards),
        "maxDrawdown": calculate_max_drawdown(rewards),
        "stabilityScore": calculate_stability_score(rewards),
    }


