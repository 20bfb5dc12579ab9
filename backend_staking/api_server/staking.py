"""
FastAPI router: stakes and rewards analytics, accounts, organization portfolio.

GET /stakes and GET /rewards aggregate the selected accounts (default: the
first 3 of the listing, reported as metadata.accountSelection). Payloads carry
'source' ("kiln" or "mock"); fallback payloads are served but not cached.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from backend_staking.analytics.aggregation import aggregate_rewards, aggregate_stakes, enhanced_accounts
from backend_staking.analytics.reward_metrics import DEFAULT_TIMEFRAME
from backend_staking.api_server.dependencies import (
    get_cache,
    get_data_source,
    get_price_source,
    served_by_primary,
)
from backend_staking.cache import (
    ENHANCED_ACCOUNTS_TTL_SEC,
    REWARDS_TTL_SEC,
    STAKES_TTL_SEC,
    TTLCache,
    cache_key,
    get_or_build,
    normalize_account_ids,
)
from backend_staking.datasource import PriceSource, SelectedSource
from backend_staking.staking_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["staking"])

DATA_SOURCE_HEADER = "X-Data-Source"


def _failure(message: str, e: Exception) -> HTTPException:
    return HTTPException(status_code=500, detail={"error": message, "details": str(e)})


@router.get("/stakes")
async def get_stakes(
    accounts: str | None = Query(None, description="Comma-separated account IDs"),
    analytics: str = Query("basic", description="basic or advanced"),
    cache: TTLCache = Depends(get_cache),
    source: SelectedSource = Depends(get_data_source),
    price: PriceSource = Depends(get_price_source),
) -> dict[str, Any]:
    """Multi-account stakes with risk scores, performance grades and portfolio analytics."""
    account_ids = normalize_account_ids(accounts)
    key = cache_key("stakes", accounts=account_ids, analytics=analytics)

    async def build() -> dict[str, Any]:
        result, source_name = await source.run(
            lambda ds: aggregate_stakes(ds, account_ids, analytics=analytics, eth_usd=price.eth_usd()),
            name="stakes",
        )
        result["metadata"]["source"] = source_name
        return {**result, "source": source_name}

    try:
        return await get_or_build(cache, key, build, STAKES_TTL_SEC, cache_if=served_by_primary(source))
    except Exception as e:
        logger.exception("stakes_request_failed", accounts=account_ids, error=str(e))
        raise _failure("Failed to fetch ETH stakes analytics", e) from e


@router.get("/rewards")
async def get_rewards(
    accounts: str | None = Query(None, description="Comma-separated account IDs"),
    timeframe: str = Query(DEFAULT_TIMEFRAME, description="7d, 30d, 90d or 1y"),
    analytics: str = Query("basic", description="basic or advanced"),
    cache: TTLCache = Depends(get_cache),
    source: SelectedSource = Depends(get_data_source),
    price: PriceSource = Depends(get_price_source),
) -> dict[str, Any]:
    """Multi-account rewards over the timeframe with time series, benchmarks and risk-adjusted metrics."""
    account_ids = normalize_account_ids(accounts)
    key = cache_key("rewards", accounts=account_ids, analytics=analytics, timeframe=timeframe)

    async def build() -> dict[str, Any]:
        result, source_name = await source.run(
            lambda ds: aggregate_rewards(
                ds, account_ids, timeframe=timeframe, analytics=analytics, eth_usd=price.eth_usd()
            ),
            name="rewards",
        )
        result["metadata"]["source"] = source_name
        return {**result, "source": source_name}

    try:
        return await get_or_build(cache, key, build, REWARDS_TTL_SEC, cache_if=served_by_primary(source))
    except Exception as e:
        logger.exception("rewards_request_failed", accounts=account_ids, timeframe=timeframe, error=str(e))
        raise _failure("Failed to fetch ETH rewards analytics", e) from e


@router.get("/accounts")
async def get_accounts(
    response: Response,
    cache: TTLCache = Depends(get_cache),
    source: SelectedSource = Depends(get_data_source),
) -> list[dict[str, Any]]:
    """Raw organization accounts. The serving source is reported in the X-Data-Source header."""

    async def build() -> dict[str, Any]:
        data, source_name = await source.run(lambda ds: ds.list_accounts(), name="accounts")
        return {"source": source_name, "data": data}

    try:
        cached = await get_or_build(cache, "accounts", build, cache_if=served_by_primary(source))
    except Exception as e:
        logger.exception("accounts_request_failed", error=str(e))
        raise _failure("Failed to fetch accounts", e) from e
    response.headers[DATA_SOURCE_HEADER] = cached["source"]
    return cached["data"]


@router.get("/accounts/enhanced")
async def get_enhanced_accounts(
    cache: TTLCache = Depends(get_cache),
    source: SelectedSource = Depends(get_data_source),
    price: PriceSource = Depends(get_price_source),
) -> dict[str, Any]:
    """Every account with a portfolio summary, for account selection."""

    async def build() -> dict[str, Any]:
        result, source_name = await source.run(
            lambda ds: enhanced_accounts(ds, eth_usd=price.eth_usd()),
            name="accounts_enhanced",
        )
        return {**result, "source": source_name}

    try:
        return await get_or_build(
            cache, "accounts_enhanced", build, ENHANCED_ACCOUNTS_TTL_SEC, cache_if=served_by_primary(source)
        )
    except Exception as e:
        logger.exception("enhanced_accounts_request_failed", error=str(e))
        raise _failure("Failed to fetch enhanced accounts data", e) from e


@router.get("/organization/{org_id}/portfolio")
async def get_organization_portfolio(
    org_id: str,
    cache: TTLCache = Depends(get_cache),
    source: SelectedSource = Depends(get_data_source),
) -> dict[str, Any]:
    """Organization portfolio overview, proxied from Kiln."""

    async def build() -> dict[str, Any]:
        portfolio, source_name = await source.run(
            lambda ds: ds.get_organization_portfolio(org_id),
            name="organization_portfolio",
        )
        return {**portfolio, "source": source_name}

    try:
        return await get_or_build(
            cache, cache_key("portfolio", org_id=org_id), build, cache_if=served_by_primary(source)
        )
    except Exception as e:
        logger.exception("organization_portfolio_request_failed", org_id=org_id, error=str(e))
        raise _failure("Failed to fetch organization portfolio", e) from e
