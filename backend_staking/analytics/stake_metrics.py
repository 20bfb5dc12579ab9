"""
Stake analytics: risk score, performance grade, diversification and portfolio risk.

Rule-based and explainable. Every function is pure: the inputs are stake
dicts as returned by the data source (snake_case upstream fields), optionally
enriched with the camelCase fields added by enrich_stake().
"""

from __future__ import annotations

import math
import statistics
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

from backend_staking.analytics.units import (
    clamp,
    month_key,
    parse_timestamp,
    parse_wei,
    round_half_up,
    to_float,
    wei_to_eth,
)
from backend_staking.datasource.base import (
    STAKE_STATE_ACTIVE,
    STAKE_STATE_EXITING,
    STAKE_STATE_SLASHED,
)

RISK_LOW = "LOW"
RISK_MEDIUM = "MEDIUM"
RISK_HIGH = "HIGH"

FACTOR_RECENTLY_ACTIVATED = "Recently activated validator"
FACTOR_SLASHED = "Validator has been slashed"
FACTOR_EXITING = "Validator is exiting"
FACTOR_HIGH_VALUE = "High value stake"

RECENT_ACTIVATION_DAYS = 30
HIGH_VALUE_STAKE_ETH = 100.0

# Risk points per rule
RISK_POINTS_RECENT = 20
RISK_POINTS_SLASHED = 50
RISK_POINTS_EXITING = 30
RISK_POINTS_HIGH_VALUE = 10

# Performance grade deductions and reward-ratio bands
GRADE_PENALTY_SLASHED = 40
GRADE_PENALTY_EXITING = 20
GRADE_PENALTY_NOT_ACTIVE = 10
REWARD_RATIO_BONUS_ABOVE = 0.10
REWARD_RATIO_PENALTY_BELOW = 0.02
GRADE_REWARD_BONUS = 10
GRADE_REWARD_PENALTY = 15
# Full validator deposit, assumed when a stake reports no balance
DEFAULT_BALANCE_ETH = 32.0
# shown when a stake reports no APY (missing or 0)
DEFAULT_APY = 5.0

# Diversification weights
WEIGHT_VALIDATORS = 0.4
WEIGHT_TEMPORAL = 0.3
WEIGHT_BALANCE = 0.3
TEMPORAL_MONTHS = 12


@dataclass
class RiskScore:
    """
    Risk of a single stake: score 0-100, level and the rules that fired.

    Recomputed on every request; has no identity beyond the computation.
    """

    score: int
    level: str
    factors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "level": self.level, "factors": list(self.factors)}


def risk_level(score: float) -> str:
    """LOW below 20, MEDIUM below 50, otherwise HIGH."""
    if score < 20:
        return RISK_LOW
    if score < 50:
        return RISK_MEDIUM
    return RISK_HIGH


def stake_rewards_wei(stake: dict[str, Any]) -> int:
    """Accumulated rewards: the 'rewards' total when present, else consensus + execution."""
    if stake.get("rewards") not in (None, ""):
        return parse_wei(stake.get("rewards"))
    return parse_wei(stake.get("consensus_rewards")) + parse_wei(stake.get("execution_rewards"))


def calculate_stake_risk_score(stake: dict[str, Any], *, now: datetime | None = None) -> RiskScore:
    """
    Score one stake from its state, activation time and balance.

    +20 activated less than 30 days ago, +50 slashed, +30 exiting, +10 balance
    above 100 ETH; clamped to [0, 100].
    """
    now = now or datetime.now(timezone.utc)
    score = 0
    factors: list[str] = []

    activated = parse_timestamp(stake.get("activated_at"))
    if activated is not None:
        days_since = (now - activated).total_seconds() / 86400
        if days_since < RECENT_ACTIVATION_DAYS:
            score += RISK_POINTS_RECENT
            factors.append(FACTOR_RECENTLY_ACTIVATED)

    state = stake.get("state")
    if state == STAKE_STATE_SLASHED:
        score += RISK_POINTS_SLASHED
        factors.append(FACTOR_SLASHED)
    if state == STAKE_STATE_EXITING:
        score += RISK_POINTS_EXITING
        factors.append(FACTOR_EXITING)

    if wei_to_eth(stake.get("balance")) > HIGH_VALUE_STAKE_ETH:
        score += RISK_POINTS_HIGH_VALUE
        factors.append(FACTOR_HIGH_VALUE)

    score = int(clamp(score))
    return RiskScore(score=score, level=risk_level(score), factors=factors)


def reward_ratio(stake: dict[str, Any]) -> float | None:
    """
    Rewards over balance, both in ETH. A missing balance counts as 32 ETH.
    Zero balance: inf when there are rewards, None (no signal) otherwise.
    """
    rewards_eth = stake_rewards_wei(stake) / 10**18
    if stake.get("balance") in (None, ""):
        balance_eth = DEFAULT_BALANCE_ETH
    else:
        balance_eth = wei_to_eth(stake.get("balance"))
    if balance_eth > 0:
        return rewards_eth / balance_eth
    if rewards_eth > 0:
        return math.inf
    return None


def calculate_performance_grade(stake: dict[str, Any]) -> int:
    """
    Grade a stake 0-100: start at 100, deduct for slashed (-40), exiting (-20)
    and any non-active state (-10); reward ratio above 0.10 adds 10, below
    0.02 deducts 15.
    """
    score = 100
    state = stake.get("state")
    if state == STAKE_STATE_SLASHED:
        score -= GRADE_PENALTY_SLASHED
    if state == STAKE_STATE_EXITING:
        score -= GRADE_PENALTY_EXITING
    if state != STAKE_STATE_ACTIVE:
        score -= GRADE_PENALTY_NOT_ACTIVE

    ratio = reward_ratio(stake)
    if ratio is not None:
        if ratio > REWARD_RATIO_BONUS_ABOVE:
            score += GRADE_REWARD_BONUS
        elif ratio < REWARD_RATIO_PENALTY_BELOW:
            score -= GRADE_REWARD_PENALTY

    return int(clamp(score))


def gini_coefficient(values: Iterable[float]) -> float:
    """Gini of non-negative values; 0 for an empty or all-zero set."""
    ordered = sorted(values)
    n = len(ordered)
    total = sum(ordered)
    if n == 0 or total <= 0:
        return 0.0
    weighted = sum((2 * (i + 1) - n - 1) * v for i, v in enumerate(ordered))
    return weighted / (n * total)


def calculate_account_diversification(stakes: list[dict[str, Any]]) -> int:
    """
    Diversification of one account's stakes, 0-100.

    40% distinct validators per stake, 30% distinct activation months (capped
    at 12), 30% balance evenness (1 - |Gini|). Accounts with one stake or
    none score 0.
    """
    if len(stakes) <= 1:
        return 0

    validators = {s.get("validator_address") for s in stakes}
    validator_div = len(validators) / len(stakes) * 100

    months = {m for m in (month_key(s.get("activated_at")) for s in stakes) if m}
    temporal_div = min(100.0, len(months) / TEMPORAL_MONTHS * 100)

    gini = gini_coefficient(parse_wei(s.get("balance")) for s in stakes)
    balance_div = (1 - abs(gini)) * 100

    score = validator_div * WEIGHT_VALIDATORS + temporal_div * WEIGHT_TEMPORAL + balance_div * WEIGHT_BALANCE
    return round_half_up(score)


def calculate_portfolio_diversification(account_entries: list[dict[str, Any]]) -> int:
    """
    How evenly stakes are spread across accounts, 0-100:
    100 minus the coefficient of variation of stake counts. One account or none scores 0.
    """
    if len(account_entries) <= 1:
        return 0
    counts = [len(entry.get("stakes") or []) for entry in account_entries]
    avg = statistics.fmean(counts)
    if avg <= 0:
        return 0
    cv = statistics.pstdev(counts) / avg
    return round_half_up(max(0.0, 100 - cv * 100))


def calculate_risk_distribution(stakes: list[dict[str, Any]]) -> dict[str, int]:
    distribution = {RISK_LOW: 0, RISK_MEDIUM: 0, RISK_HIGH: 0}
    for stake in stakes:
        risk = stake.get("riskScore")
        if risk and risk.get("level") in distribution:
            distribution[risk["level"]] += 1
    return distribution


def calculate_status_distribution(stakes: list[dict[str, Any]]) -> dict[str, int]:
    return dict(Counter(s.get("status") or "unknown" for s in stakes))


def calculate_staking_timeline(stakes: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Stakes activated per month, oldest month first."""
    counts = Counter(m for m in (month_key(s.get("activated_at")) for s in stakes) if m)
    return [{"month": month, "stakesActivated": counts[month]} for month in sorted(counts)]


def calculate_overall_risk_score(stakes: list[dict[str, Any]]) -> int:
    if not stakes:
        return 0
    total = sum((s.get("riskScore") or {}).get("score", 0) for s in stakes)
    return round_half_up(total / len(stakes))


def identify_risk_factors(stakes: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Risk factors across stakes, most frequent first, with share of stakes in percent."""
    counts = Counter(
        factor for s in stakes for factor in (s.get("riskScore") or {}).get("factors", [])
    )
    return [
        {
            "factor": factor,
            "occurrences": occurrences,
            "percentage": round(occurrences / len(stakes) * 100, 1),
        }
        for factor, occurrences in counts.most_common()
    ]


def _avg(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def average_stake_rewards(stakes: list[dict[str, Any]]) -> float:
    return _avg([to_float(s.get("totalRewards")) for s in stakes])


def calculate_staking_efficiency(stakes: list[dict[str, Any]]) -> float:
    """Rewards per staked ETH, divided by average risk (as a fraction) when risk is non-zero; in percent."""
    if not stakes:
        return 0.0
    total_rewards = sum(to_float(s.get("totalRewards")) for s in stakes)
    total_staked = sum(to_float(s.get("totalValueEth")) for s in stakes)
    avg_risk = _avg([(s.get("riskScore") or {}).get("score", 0) for s in stakes])
    raw = total_rewards / total_staked if total_staked > 0 else 0.0
    adjusted = raw / (avg_risk / 100) if avg_risk > 0 else raw
    return round(adjusted * 100, 2)


def calculate_risk_vs_reward_matrix(account_entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    matrix = []
    for entry in account_entries:
        stakes = entry.get("stakes") or []
        account = entry.get("account") or {}
        avg_rewards = average_stake_rewards(stakes)
        avg_risk = _avg([(s.get("riskScore") or {}).get("score", 0) for s in stakes])
        matrix.append({
            "accountId": account.get("id"),
            "accountName": account.get("name"),
            "avgRewards": avg_rewards,
            "avgRisk": avg_risk,
            "riskAdjustedReturn": avg_rewards / avg_risk * 100 if avg_risk > 0 else avg_rewards,
            "efficiency": calculate_staking_efficiency(stakes),
        })
    return matrix


def top_performing_account(account_entries: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Account with the highest average rewards per stake; first one wins ties."""
    if not account_entries:
        return None
    best = account_entries[0]
    best_avg = average_stake_rewards(best.get("stakes") or [])
    for entry in account_entries[1:]:
        avg = average_stake_rewards(entry.get("stakes") or [])
        if avg > best_avg:
            best, best_avg = entry, avg
    account = best.get("account") or {}
    return {
        "accountId": account.get("id"),
        "accountName": account.get("name"),
        "avgRewards": best_avg,
        "stakesCount": len(best.get("stakes") or []),
    }


def enrich_stake(
    stake: dict[str, Any],
    account: dict[str, Any],
    *,
    eth_usd: float,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Upstream stake plus display values in ETH/USD, risk score and performance grade."""
    value_eth = wei_to_eth(stake.get("balance"))
    apy = stake.get("gross_apy")
    return {
        **stake,
        "accountId": account.get("id"),
        "accountName": account.get("name"),
        "totalValueEth": round(value_eth, 4),
        "totalValueUsd": round(value_eth * eth_usd, 2),
        "estimatedAnnualApy": round(to_float(apy), 2) if apy else DEFAULT_APY,
        "status": stake.get("state") or "unknown",
        "consensusRewards": round(wei_to_eth(stake.get("consensus_rewards")), 6),
        "executionRewards": round(wei_to_eth(stake.get("execution_rewards")), 6),
        "totalRewards": round(stake_rewards_wei(stake) / 10**18, 6),
        "validatorIndex": stake.get("validator_index"),
        "activatedAt": stake.get("activated_at"),
        "delegatedAt": stake.get("delegated_at"),
        "riskScore": calculate_stake_risk_score(stake, now=now).to_dict(),
        "performanceGrade": calculate_performance_grade(stake),
    }


def account_breakdown(entry: dict[str, Any]) -> dict[str, Any]:
    """Per-account summary of enriched stakes."""
    stakes = entry.get("stakes") or []
    account = entry.get("account") or {}
    return {
        "accountId": account.get("id"),
        "accountName": account.get("name"),
        "stakesCount": len(stakes),
        "totalValue": sum(to_float(s.get("totalValueEth")) for s in stakes),
        "totalRewards": sum(to_float(s.get("totalRewards")) for s in stakes),
        "avgPerformanceGrade": _avg([s.get("performanceGrade", 0) for s in stakes]),
        "riskDistribution": calculate_risk_distribution(stakes),
        "statusDistribution": calculate_status_distribution(stakes),
        "diversificationScore": calculate_account_diversification(stakes),
    }
