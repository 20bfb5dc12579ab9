"""
ETH/USD price source used for every USD conversion.

Only a fixed quote is implemented (ETH_USD_PRICE, default 3500); it is a
placeholder, not a market feed. Handlers receive the price source as a
dependency so conversions can be asserted independently of market data.
"""

from __future__ import annotations

from typing import Protocol


class PriceSource(Protocol):
    def eth_usd(self) -> float:
        ...


class FixedPriceSource:
    def __init__(self, eth_usd: float) -> None:
        if eth_usd < 0:
            raise ValueError("eth_usd must be non-negative")
        self._eth_usd = float(eth_usd)

    def eth_usd(self) -> float:
        return self._eth_usd
