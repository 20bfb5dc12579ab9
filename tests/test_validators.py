"""
Pytest tests for validator badges, enrichment and network stats.
"""

from __future__ import annotations

import asyncio
import random
from datetime import date, datetime, timezone

from conftest import SANCTIONED_ADDRESS, FakeDataSource

from backend_staking.analytics.validators import (
    ValidatorSignals,
    calculate_validator_badges,
    enrich_validator,
    generate_performance_history,
    network_stats,
    validator_compliance_status,
)

SANCTIONED = frozenset({SANCTIONED_ADDRESS})


def _badge_types(signals):
    return [b["type"] for b in calculate_validator_badges(signals)]


def test_all_badges():
    assert _badge_types(ValidatorSignals(uptime=99.5, days_since_slashing=200, active_days=10)) == [
        "top-performer",
        "no-slashing",
        "new-entrant",
    ]


def test_top_performer_needs_uptime_and_clean_record():
    assert _badge_types(ValidatorSignals(uptime=99.5, days_since_slashing=90, active_days=100)) == []
    assert _badge_types(ValidatorSignals(uptime=98.0, days_since_slashing=100, active_days=100)) == []
    assert _badge_types(ValidatorSignals(uptime=99.5, days_since_slashing=91, active_days=30)) == ["top-performer"]


def test_compliance_status():
    assert validator_compliance_status(SANCTIONED_ADDRESS.upper().replace("0X", "0x"), SANCTIONED) == "FLAGGED"
    assert validator_compliance_status("0x1", SANCTIONED) == "CLEAR"
    assert validator_compliance_status("abcd", SANCTIONED) == "UNKNOWN"
    assert validator_compliance_status(None, SANCTIONED) == "UNKNOWN"


def test_enrich_validator_keeps_upstream_commission():
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    v = enrich_validator(
        {"id": "v1", "address": "0x1", "public_commission_rate_percent": 8.5},
        sanctioned=SANCTIONED,
        rng=random.Random(1),
        now=now,
    )
    assert v["commission"] == 8.5
    assert v["validatorAddress"] == "0x1"
    assert v["complianceStatus"] == "CLEAR"
    assert 95 <= v["uptime"] <= 100
    assert v["lastSlashing"] is None or v["lastSlashing"] < now.isoformat()


def test_enrich_validator_is_deterministic_with_seed():
    a = enrich_validator({"id": "v1"}, sanctioned=SANCTIONED, rng=random.Random(3), now=datetime(2024, 6, 1, tzinfo=timezone.utc))
    b = enrich_validator({"id": "v1"}, sanctioned=SANCTIONED, rng=random.Random(3), now=datetime(2024, 6, 1, tzinfo=timezone.utc))
    assert a == b
    assert 5 <= a["commission"] <= 15


def test_performance_history_covers_31_days_oldest_first():
    history = generate_performance_history(rng=random.Random(0), today=date(2024, 3, 31))
    assert len(history) == 31
    assert history[0]["date"] == "2024-03-01"
    assert history[-1]["date"] == "2024-03-31"
    assert all(200 <= h["attestations"] < 300 for h in history)


def test_network_stats_failed_chain_is_null():
    stats = asyncio.run(network_stats(FakeDataSource(failing_chains=("eth",))))
    assert stats["eth"] is None
    assert stats["sol"]["chain"] == "sol"
    assert stats["summary"]["networkUptime"] == "99.8%"
