"""
FastAPI router: validators, validator details, network stats, Kiln connectivity probe.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse

from backend_staking.analytics.validators import list_enriched_validators, network_stats, validator_details
from backend_staking.api_server.dependencies import (
    get_cache,
    get_data_source,
    get_sanctions_list,
    served_by_primary,
)
from backend_staking.api_server.staking import DATA_SOURCE_HEADER
from backend_staking.cache import TTLCache, cache_key, get_or_build
from backend_staking.core.exceptions import UpstreamError
from backend_staking.datasource import SelectedSource
from backend_staking.staking_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["validators"])


@router.get("/validators")
async def get_validators(
    response: Response,
    cache: TTLCache = Depends(get_cache),
    source: SelectedSource = Depends(get_data_source),
    sanctioned: frozenset[str] = Depends(get_sanctions_list),
) -> list[dict[str, Any]]:
    """Validators with reputation badges, display metrics and compliance status."""

    async def build() -> dict[str, Any]:
        data, source_name = await source.run(
            lambda ds: list_enriched_validators(ds, sanctioned=sanctioned),
            name="validators",
        )
        return {"source": source_name, "data": data}

    try:
        cached = await get_or_build(cache, "validators", build, cache_if=served_by_primary(source))
    except Exception as e:
        logger.exception("validators_request_failed", error=str(e))
        raise HTTPException(
            status_code=500, detail={"error": "Failed to fetch validators", "details": str(e)}
        ) from e
    response.headers[DATA_SOURCE_HEADER] = cached["source"]
    return cached["data"]


@router.get("/network-stats")
async def get_network_stats(
    cache: TTLCache = Depends(get_cache),
    source: SelectedSource = Depends(get_data_source),
) -> dict[str, Any]:
    """ETH and SOL network statistics plus a summary."""

    async def build() -> dict[str, Any]:
        stats, source_name = await source.run(network_stats, name="network_stats")
        return {**stats, "source": source_name}

    try:
        return await get_or_build(cache, "network_stats", build, cache_if=served_by_primary(source))
    except Exception as e:
        logger.exception("network_stats_request_failed", error=str(e))
        raise HTTPException(
            status_code=500, detail={"error": "Failed to fetch network stats", "details": str(e)}
        ) from e


@router.get("/validators/{validator_id}")
async def get_validator(
    validator_id: str,
    cache: TTLCache = Depends(get_cache),
    source: SelectedSource = Depends(get_data_source),
) -> dict[str, Any]:
    """Validator record with badges and a 31-day performance history."""

    async def build() -> dict[str, Any]:
        validator, source_name = await source.run(
            lambda ds: ds.get_validator(validator_id),
            name="validator_details",
        )
        return {**validator_details(validator), "source": source_name}

    try:
        return await get_or_build(
            cache, cache_key("validator", id=validator_id), build, cache_if=served_by_primary(source)
        )
    except Exception as e:
        logger.exception("validator_details_request_failed", validator_id=validator_id, error=str(e))
        raise HTTPException(
            status_code=500, detail={"error": "Failed to fetch validator details", "details": str(e)}
        ) from e


@router.get("/test-connection")
async def test_connection(source: SelectedSource = Depends(get_data_source)) -> Any:
    """Probe Kiln with a one-validator listing. No fallback: 500 when Kiln is unreachable or not configured."""
    if source.is_synthetic:
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Kiln API connection failed",
                "details": "KILN_API_KEY not configured or USE_MOCK_DATA set",
            },
        )
    try:
        sample = await source.primary.list_validators(limit=1)
    except UpstreamError as e:
        logger.warning("kiln_connection_test_failed", error=e.message)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Kiln API connection failed", "details": e.details},
        )
    logger.info("kiln_connection_test_ok")
    return {"success": True, "message": "Kiln API connection successful", "sampleData": sample}
