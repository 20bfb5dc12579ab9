"""
Data sources: where accounts, stakes, rewards and chain data come from.

Two variants of one capability: LiveDataSource (Kiln + Etherscan over httpx)
and SyntheticDataSource (random mock records). DataSourceSelector picks one per
request and falls back to synthetic data when a live call fails.
"""

from backend_staking.datasource.base import StakingDataSource
from backend_staking.datasource.live import LiveDataSource
from backend_staking.datasource.pricing import FixedPriceSource, PriceSource
from backend_staking.datasource.selector import DataSourceSelector, SelectedSource
from backend_staking.datasource.synthetic import SyntheticDataSource

__all__ = [
    "DataSourceSelector",
    "FixedPriceSource",
    "LiveDataSource",
    "PriceSource",
    "SelectedSource",
    "StakingDataSource",
    "SyntheticDataSource",
]
