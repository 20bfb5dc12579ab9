"""
Backend Staking: analytics API for Ethereum/Solana staking dashboards.

Proxies the Kiln staking API and Etherscan, computes account, stake and reward
analytics per request, and caches responses in memory. Modular layout with
clear separation between data sources, analytics, cache and API server.
"""

__version__ = "2.0.0"
