"""
Aggregation service: multi-account stakes, rewards and enhanced-account analytics.

Each operation fetches the account listing, fans out one upstream call per
selected account concurrently, enriches the records and computes portfolio
analytics. A failing account becomes an entry with an 'error' string and
empty data; the others are still aggregated. A failing account listing
raises UpstreamError to the caller.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Any

from backend_staking.analytics import reward_metrics as rm
from backend_staking.analytics import stake_metrics as sm
from backend_staking.analytics.units import round_half_up, to_float, wei_to_eth
from backend_staking.core.exceptions import UpstreamError
from backend_staking.datasource.base import DEFAULT_PAGE_SIZE, StakingDataSource
from backend_staking.staking_logging import get_logger

logger = get_logger(__name__)

DEFAULT_ACCOUNT_COUNT = 3
SELECTION_REQUESTED = "requested"
SELECTION_DEFAULT = "default_first_3"

ENHANCED_REWARDS_DAYS = 30
ENHANCED_REWARDS_PAGE_SIZE = 50
TOP_PERFORMER_GRADE = 80
TOP_PERFORMERS_MAX = 5
RECOMMENDED_MIN_STAKES = 5
RECOMMENDED_MAX = 10

# Overall account grade weights
GRADE_WEIGHT_STAKES = 0.6
GRADE_WEIGHT_CONSISTENCY = 0.25
GRADE_WEIGHT_RISK = 0.15


def select_accounts(
    accounts: list[dict[str, Any]],
    account_ids: list[str] | None,
) -> tuple[list[dict[str, Any]], str]:
    """
    Accounts to analyze and how they were chosen.

    With ids: the listed accounts whose id was requested, in listing order
    (unknown ids are dropped). Without: the first 3 accounts of the listing.
    """
    if account_ids:
        wanted = set(account_ids)
        return [a for a in accounts if a.get("id") in wanted], SELECTION_REQUESTED
    return accounts[:DEFAULT_ACCOUNT_COUNT], SELECTION_DEFAULT


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _avg(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


async def _fetch_account_stakes(
    source: StakingDataSource,
    account: dict[str, Any],
    *,
    eth_usd: float,
    now: datetime,
) -> dict[str, Any]:
    try:
        stakes = await source.list_stakes(account["id"], page_size=DEFAULT_PAGE_SIZE, current_page=1)
    except UpstreamError as e:
        logger.warning("account_stakes_fetch_failed", account_id=account.get("id"), error=e.message)
        return {"account": account, "stakes": [], "error": str(e)}
    return {
        "account": account,
        "stakes": [sm.enrich_stake(s, account, eth_usd=eth_usd, now=now) for s in stakes],
    }


async def aggregate_stakes(
    source: StakingDataSource,
    account_ids: list[str] | None,
    *,
    analytics: str = "basic",
    eth_usd: float,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Stakes of the selected accounts with per-stake scores and portfolio analytics."""
    now = now or _utcnow()
    accounts, selection = select_accounts(await source.list_accounts(), account_ids)
    logger.info("stakes_aggregation_start", accounts=len(accounts), selection=selection)

    entries = list(await asyncio.gather(
        *(_fetch_account_stakes(source, a, eth_usd=eth_usd, now=now) for a in accounts)
    ))
    stakes = [s for entry in entries for s in entry["stakes"]]

    analytics_data = {
        "totalStakes": len(stakes),
        "totalStakedEth": sum(to_float(s.get("totalValueEth")) for s in stakes),
        "totalStakedUsd": sum(to_float(s.get("totalValueUsd")) for s in stakes),
        "totalRewardsEth": sum(to_float(s.get("totalRewards")) for s in stakes),
        "avgApy": _avg([to_float(s.get("estimatedAnnualApy")) for s in stakes]),
        "activeStakes": sum(1 for s in stakes if s.get("status") == "active_ongoing"),
        "accountBreakdown": [sm.account_breakdown(entry) for entry in entries],
        "performanceBenchmarks": {
            "topPerformingAccount": sm.top_performing_account(entries),
            "avgRewardsByAccount": [
                {
                    "accountId": entry["account"].get("id"),
                    "account": entry["account"].get("name"),
                    "avgRewards": sm.average_stake_rewards(entry["stakes"]),
                }
                for entry in entries
            ],
            "riskVsRewardMatrix": sm.calculate_risk_vs_reward_matrix(entries),
        },
        "stakingTimeline": sm.calculate_staking_timeline(stakes),
        "portfolioRisk": {
            "overallRiskScore": sm.calculate_overall_risk_score(stakes),
            "riskFactors": sm.identify_risk_factors(stakes),
            "diversificationScore": sm.calculate_portfolio_diversification(entries),
        },
    }

    failed = sum(1 for entry in entries if "error" in entry)
    logger.info("stakes_aggregation_done", total_stakes=len(stakes), accounts=len(entries), failed_accounts=failed)
    return {
        "accounts": entries,
        "stakes": stakes,
        "analytics": analytics_data,
        "metadata": {
            "generatedAt": now.isoformat(),
            "accountsAnalyzed": len(accounts),
            "totalStakesAnalyzed": len(stakes),
            "analyticsDepth": analytics,
            "accountSelection": selection,
        },
    }


async def _fetch_account_rewards(
    source: StakingDataSource,
    account: dict[str, Any],
    *,
    date_from: date,
    date_to: date,
    eth_usd: float,
) -> dict[str, Any]:
    try:
        rewards = await source.list_rewards(
            account["id"], date_from=date_from, date_to=date_to, page_size=DEFAULT_PAGE_SIZE
        )
    except UpstreamError as e:
        logger.warning("account_rewards_fetch_failed", account_id=account.get("id"), error=e.message)
        return {"account": account, "rewards": [], "error": str(e)}
    return {
        "account": account,
        "rewards": [rm.enrich_reward(r, account, eth_usd=eth_usd) for r in rewards],
    }


async def aggregate_rewards(
    source: StakingDataSource,
    account_ids: list[str] | None,
    *,
    timeframe: str = rm.DEFAULT_TIMEFRAME,
    analytics: str = "basic",
    eth_usd: float,
    today: date | None = None,
) -> dict[str, Any]:
    """Rewards of the selected accounts over the timeframe window with portfolio analytics."""
    effective = timeframe if timeframe in rm.TIMEFRAME_DAYS else rm.DEFAULT_TIMEFRAME
    date_from, date_to = rm.timeframe_window(effective, today)
    accounts, selection = select_accounts(await source.list_accounts(), account_ids)
    logger.info(
        "rewards_aggregation_start",
        accounts=len(accounts),
        selection=selection,
        date_from=date_from.isoformat(),
        date_to=date_to.isoformat(),
    )

    entries = list(await asyncio.gather(
        *(
            _fetch_account_rewards(source, a, date_from=date_from, date_to=date_to, eth_usd=eth_usd)
            for a in accounts
        )
    ))
    rewards = [r for entry in entries for r in entry["rewards"]]

    analytics_data = {
        "totalRewards": sum(to_float(r.get("rewardValueUsd")) for r in rewards),
        "totalRewardsEth": sum(to_float(r.get("totalRewardEth")) for r in rewards),
        "totalCount": len(rewards),
        "avgDailyRewards": rm.calculate_avg_daily_rewards(rewards, effective),
        "accountPerformance": [rm.account_performance(entry, effective) for entry in entries],
        "timeSeriesData": rm.generate_reward_time_series(rewards, effective),
        "seasonalTrends": rm.analyze_seasonal_trends(rewards),
        "benchmarks": {
            "topPerformingAccount": rm.top_reward_account(entries),
            "industryComparison": rm.generate_industry_benchmarks(rewards),
            "efficiencyMetrics": rm.calculate_reward_efficiency(entries),
            "growthTrends": rm.calculate_growth_trends(rewards),
        },
        "riskAdjustedMetrics": rm.risk_adjusted_metrics(rewards),
    }

    logger.info("rewards_aggregation_done", total_rewards=len(rewards), accounts=len(entries))
    return {
        "accounts": entries,
        "rewards": rewards,
        "analytics": analytics_data,
        "metadata": {
            "generatedAt": _utcnow().isoformat(),
            "timeframe": timeframe,
            "analyticsDepth": analytics,
            "accountSelection": selection,
            "accountsAnalyzed": len(accounts),
            "totalRewardsAnalyzed": len(rewards),
            "dateRange": {"from": date_from.isoformat(), "to": date_to.isoformat()},
        },
    }


def calculate_account_overall_grade(
    stakes: list[dict[str, Any]],
    rewards: list[dict[str, Any]],
    *,
    now: datetime | None = None,
) -> int:
    """
    Blend of stake performance (60%), reward consistency (25%) and low risk (15%).

    Takes raw upstream stakes and rewards. 0 for an account without stakes.
    """
    if not stakes:
        return 0
    avg_grade = _avg([sm.calculate_performance_grade(s) for s in stakes])
    consistency = rm.calculate_reward_consistency(
        [{"totalRewardEth": rm.reward_total_wei(r) / 10**18} for r in rewards]
    )
    avg_risk = _avg([sm.calculate_stake_risk_score(s, now=now).score for s in stakes])
    risk_grade = max(0.0, 100 - avg_risk)
    return round_half_up(
        avg_grade * GRADE_WEIGHT_STAKES
        + consistency * GRADE_WEIGHT_CONSISTENCY
        + risk_grade * GRADE_WEIGHT_RISK
    )


def account_portfolio(
    stakes: list[dict[str, Any]],
    rewards: list[dict[str, Any]],
    *,
    eth_usd: float,
    now: datetime | None = None,
) -> dict[str, Any]:
    total_staked = sum(wei_to_eth(s.get("balance")) for s in stakes)
    total_rewards = sum(rm.reward_total_wei(r) for r in rewards) / 10**18
    avg_risk = _avg([sm.calculate_stake_risk_score(s, now=now).score for s in stakes])
    return {
        "totalStakes": len(stakes),
        "activeStakes": sum(1 for s in stakes if s.get("state") == "active_ongoing"),
        "totalStakedEth": total_staked,
        "totalStakedUsd": total_staked * eth_usd,
        "totalRewardsEth": total_rewards,
        "totalRewardsUsd": total_rewards * eth_usd,
        "avgApy": _avg([to_float(s.get("gross_apy")) for s in stakes]),
        "avgRiskScore": avg_risk,
        "riskLevel": sm.risk_level(avg_risk),
        "last30dRewards": len(rewards),
        "performanceGrade": calculate_account_overall_grade(stakes, rewards, now=now),
        "diversificationScore": sm.calculate_account_diversification(stakes),
    }


async def _enhance_account(
    source: StakingDataSource,
    account: dict[str, Any],
    *,
    date_from: date,
    eth_usd: float,
    now: datetime,
) -> dict[str, Any]:
    try:
        stakes, rewards = await asyncio.gather(
            source.list_stakes(account["id"], page_size=DEFAULT_PAGE_SIZE),
            source.list_rewards(account["id"], date_from=date_from, page_size=ENHANCED_REWARDS_PAGE_SIZE),
        )
    except UpstreamError as e:
        logger.warning("account_portfolio_fetch_failed", account_id=account.get("id"), error=e.message)
        return {**account, "portfolio": None, "error": str(e), "isSelected": False}
    return {
        **account,
        "portfolio": account_portfolio(stakes, rewards, eth_usd=eth_usd, now=now),
        "isSelected": False,
    }


async def enhanced_accounts(
    source: StakingDataSource,
    *,
    eth_usd: float,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Every account with a portfolio summary, largest first, plus selection insights."""
    now = now or _utcnow()
    date_from = now.date() - timedelta(days=ENHANCED_REWARDS_DAYS)
    accounts = await source.list_accounts()
    logger.info("enhanced_accounts_start", accounts=len(accounts))

    enhanced = list(await asyncio.gather(
        *(_enhance_account(source, a, date_from=date_from, eth_usd=eth_usd, now=now) for a in accounts)
    ))
    enhanced.sort(key=lambda a: (a.get("portfolio") or {}).get("totalStakedEth", 0), reverse=True)

    portfolios = [a["portfolio"] for a in enhanced if a.get("portfolio")]
    total_aum = sum(p["totalStakedEth"] for p in portfolios)
    levels = [p["riskLevel"] for p in portfolios]
    analytics_data = {
        "totalAccounts": len(enhanced),
        "totalAUM": total_aum,
        "avgPortfolioSize": total_aum / len(enhanced) if enhanced else 0.0,
        "topPerformers": [
            a for a in enhanced
            if a.get("portfolio") and a["portfolio"]["performanceGrade"] > TOP_PERFORMER_GRADE
        ][:TOP_PERFORMERS_MAX],
        "riskDistribution": {
            "low": levels.count(sm.RISK_LOW),
            "medium": levels.count(sm.RISK_MEDIUM),
            "high": levels.count(sm.RISK_HIGH),
        },
        "recommendedForAnalysis": [
            a.get("id") for a in enhanced
            if a.get("portfolio") and a["portfolio"]["totalStakes"] > RECOMMENDED_MIN_STAKES
        ][:RECOMMENDED_MAX],
    }

    logger.info("enhanced_accounts_done", accounts=len(enhanced), total_aum=round(total_aum, 4))
    return {
        "accounts": enhanced,
        "analytics": analytics_data,
        "metadata": {"generatedAt": now.isoformat(), "dataFreshness": "real-time"},
    }
