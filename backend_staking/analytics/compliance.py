"""
Address compliance: sanctions list lookup and a heuristic address risk score.

The sanctions list is a JSON array of addresses (sanctioned_addresses.json,
overridable with SANCTIONS_LIST_PATH). It is a simulated OFAC list; lookups
are case-insensitive.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from backend_staking.core.exceptions import UpstreamError
from backend_staking.datasource.base import StakingDataSource
from backend_staking.staking_logging import get_logger

logger = get_logger(__name__)

SANCTIONS_SOURCE = "OFAC_SIMULATED"
STATUS_FLAGGED = "FLAGGED"
STATUS_CLEAR = "CLEAR"
STATUS_ERROR = "ERROR"

LOW_TX_COUNT = 10
HIGH_TX_COUNT = 10_000
RISK_POINTS_LOW_TX = 20
RISK_POINTS_HIGH_TX = 10
RISK_HIGH_AT = 30
RISK_MEDIUM_AT = 15


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def load_sanctions_list(path: str | Path) -> frozenset[str]:
    """Load sanctioned addresses (lowercased). Returns an empty set when the file is missing or invalid."""
    path = Path(path)
    if not path.is_file():
        logger.warning("sanctions_list_missing", path=str(path))
        return frozenset()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("sanctions_list_load_failed", path=str(path), error=str(e))
        return frozenset()
    if not isinstance(data, list):
        logger.warning("sanctions_list_invalid", path=str(path), type=type(data).__name__)
        return frozenset()
    addresses = frozenset(str(a).strip().lower() for a in data if a)
    logger.info("sanctions_list_loaded", path=str(path), count=len(addresses))
    return addresses


def is_sanctioned(address: str, sanctioned: Iterable[str]) -> bool:
    return address.strip().lower() in sanctioned


def check_sanctions(address: str, sanctioned: frozenset[str]) -> dict[str, Any]:
    hit = is_sanctioned(address, sanctioned)
    return {
        "isSanctioned": hit,
        "source": SANCTIONS_SOURCE,
        "details": "Address found in sanctions list" if hit else "Address not found in sanctions list",
        "checkedAt": _now_iso(),
    }


def address_risk_level(score: int) -> str:
    if score >= RISK_HIGH_AT:
        return "HIGH"
    if score >= RISK_MEDIUM_AT:
        return "MEDIUM"
    return "LOW"


def calculate_address_risk_score(tx_count: int) -> dict[str, Any]:
    """Very new (< 10 txs) and very busy (> 10000 txs) addresses score higher."""
    score = 0
    factors: list[str] = []
    if tx_count < LOW_TX_COUNT:
        score += RISK_POINTS_LOW_TX
        factors.append("Low transaction count")
    if tx_count > HIGH_TX_COUNT:
        score += RISK_POINTS_HIGH_TX
        factors.append("Very high transaction count")
    return {
        "score": score,
        "level": address_risk_level(score),
        "factors": factors,
        "transactionCount": tx_count,
        "calculatedAt": _now_iso(),
    }


def unknown_address_risk() -> dict[str, Any]:
    return {
        "score": 0,
        "level": "UNKNOWN",
        "factors": ["Unable to calculate risk"],
        "transactionCount": 0,
        "calculatedAt": _now_iso(),
    }


async def check_address(
    source: StakingDataSource,
    address: str,
    *,
    sanctioned: frozenset[str],
) -> dict[str, Any]:
    """
    Full compliance record: sanctions status, address risk and balance.

    A failed transaction-count lookup degrades the risk score to UNKNOWN; a
    failed balance lookup raises UpstreamError.
    """
    sanctions = check_sanctions(address, sanctioned)
    try:
        risk = calculate_address_risk_score(await source.get_transaction_count(address))
    except UpstreamError as e:
        logger.warning("address_risk_unavailable", address=address, error=e.message)
        risk = unknown_address_risk()

    balance = await source.get_address_balance(address)
    return {
        "address": address,
        "status": STATUS_FLAGGED if sanctions["isSanctioned"] else STATUS_CLEAR,
        "sanctionsCheck": sanctions,
        "riskScore": risk,
        "etherscanData": {"hasBalance": balance != "0", "balance": balance},
        "lastChecked": _now_iso(),
    }


def sanctions_only_entry(address: Any, sanctioned: frozenset[str]) -> dict[str, Any]:
    """Bulk-check entry. Non-string addresses yield an ERROR entry."""
    if not isinstance(address, str) or not address.strip():
        return {"address": address, "status": STATUS_ERROR, "error": "Address must be a non-empty string"}
    sanctions = check_sanctions(address, sanctioned)
    return {
        "address": address,
        "status": STATUS_FLAGGED if sanctions["isSanctioned"] else STATUS_CLEAR,
        "sanctionsCheck": sanctions,
        "lastChecked": _now_iso(),
    }
