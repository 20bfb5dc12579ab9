"""
Explorer: latest-block Ethereum transactions in display form.

Transactions keep the JSON-RPC shape from the data source (hex 'value' and
'gas'). Integrators are tagged from a table of known staking contracts;
unknown addresses fall into a coarse bucket chosen by their last hex digit.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from backend_staking.analytics.units import WEI_PER_ETH
from backend_staking.datasource.etherscan import parse_hex_int

# Deposits above this are treated as solo (dedicated) validator deposits
DEDICATED_THRESHOLD_ETH = 31.0

KNOWN_INTEGRATORS = {
    "0x00000000219ab540356cbb839cbe05303d7705fa": "Ethereum 2.0 Deposit Contract",
    "0x4e5b2e1dc63f6b91cb6cd759936495434c7e972f": "Rocket Pool",
    "0xae7ab96520de3a18e5e111b5eaab095312d7fe84": "Lido",
    "0xa4c8d221d8bb851f83aadd0223a8900a6921a349": "Coinbase",
    "0x3cd751e6b0078be393132286c442345e5dc49699": "Binance",
    "0x8103151e2377e78c04a3d2564e20542680ed3096": "Kraken",
}
INTEGRATOR_BUCKETS = ("Validator", "Staker", "Pool", "Institution", "Individual")


def _quantity(value: Any) -> int:
    try:
        return parse_hex_int(value)
    except ValueError:
        return 0


def integrator_from_address(address: str | None) -> str:
    if not address:
        return "Unknown"
    known = KNOWN_INTEGRATORS.get(address.lower())
    if known:
        return known
    try:
        digit = int(address[-1], 16)
    except ValueError:
        return "Unknown"
    return INTEGRATOR_BUCKETS[digit % len(INTEGRATOR_BUCKETS)]


def format_transaction(tx: dict[str, Any], block: dict[str, Any], *, eth_usd: float) -> dict[str, Any]:
    value_eth = _quantity(tx.get("value")) / WEI_PER_ETH
    timestamp = datetime.fromtimestamp(int(block.get("timestamp") or 0), tz=timezone.utc)
    return {
        "hash": tx.get("hash"),
        "type": "dedicated" if value_eth > DEDICATED_THRESHOLD_ETH else "pooled",
        "amount": f"{value_eth:.4f} ETH",
        "amountUsd": f"${value_eth * eth_usd:,.2f}",
        "timestamp": timestamp.isoformat(),
        "from": tx.get("from"),
        "to": tx.get("to"),
        "integrator": integrator_from_address(tx.get("to")),
        "status": "confirmed",
        "blockNumber": block.get("number"),
        "gasUsed": _quantity(tx.get("gas")),
    }


def latest_transactions(block: dict[str, Any], *, limit: int, eth_usd: float) -> dict[str, Any]:
    transactions = block.get("transactions") or []
    return {
        "transactions": [format_transaction(tx, block, eth_usd=eth_usd) for tx in transactions[:limit]],
        "block": block.get("number"),
    }
