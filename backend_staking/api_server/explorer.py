"""
FastAPI router: latest-block Ethereum transactions for the explorer view.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from backend_staking.analytics.explorer import latest_transactions
from backend_staking.api_server.dependencies import (
    get_cache,
    get_data_source,
    get_price_source,
    served_by_primary,
)
from backend_staking.cache import EXPLORER_TTL_SEC, TTLCache, cache_key, get_or_build
from backend_staking.datasource import PriceSource, SelectedSource
from backend_staking.staking_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/explorer", tags=["explorer"])


@router.get("/transactions")
async def get_transactions(
    limit: int = Query(10, ge=1, le=100, description="Transactions to return"),
    network: str = Query("mainnet"),
    cache: TTLCache = Depends(get_cache),
    source: SelectedSource = Depends(get_data_source),
    price: PriceSource = Depends(get_price_source),
) -> dict[str, Any]:
    """First `limit` transactions of the latest block, tagged with integrator and type."""

    async def build() -> dict[str, Any]:
        block, source_name = await source.run(lambda ds: ds.get_latest_block(), name="explorer_transactions")
        result = latest_transactions(block, limit=limit, eth_usd=price.eth_usd())
        logger.info("explorer_transactions_fetched", block=result["block"], count=len(result["transactions"]))
        return {**result, "network": network, "source": source_name}

    try:
        return await get_or_build(
            cache,
            cache_key("explorer", limit=limit, network=network),
            build,
            EXPLORER_TTL_SEC,
            cache_if=served_by_primary(source),
        )
    except Exception as e:
        logger.exception("explorer_transactions_failed", error=str(e))
        raise HTTPException(
            status_code=500, detail={"error": "Failed to fetch transactions", "details": str(e)}
        ) from e
