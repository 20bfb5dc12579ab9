"""
Staking analytics engine.

Scores stakes and rewards, aggregates multi-account portfolios and enriches
compliance, validator and explorer data. Modules: stake_metrics,
reward_metrics, aggregation, compliance, validators, explorer.
"""

from backend_staking.analytics.aggregation import aggregate_rewards, aggregate_stakes, enhanced_accounts
from backend_staking.analytics.compliance import check_address, load_sanctions_list
from backend_staking.analytics.stake_metrics import calculate_performance_grade, calculate_stake_risk_score

__all__ = [
    "aggregate_stakes",
    "aggregate_rewards",
    "enhanced_accounts",
    "check_address",
    "load_sanctions_list",
    "calculate_stake_risk_score",
    "calculate_performance_grade",
]
