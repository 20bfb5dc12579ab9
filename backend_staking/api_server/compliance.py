"""
FastAPI router: address compliance screening.

GET /compliance/check-address/{address}: sanctions, address risk and balance.
POST /compliance/bulk-check: sanctions-only screening of many addresses.
Results are cached per address for one hour.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from backend_staking.analytics.compliance import check_address, sanctions_only_entry
from backend_staking.api_server.dependencies import (
    get_cache,
    get_data_source,
    get_sanctions_list,
    served_by_primary,
)
from backend_staking.cache import COMPLIANCE_TTL_SEC, TTLCache, cache_key, get_or_build
from backend_staking.core.exceptions import InvalidRequestError
from backend_staking.datasource import SelectedSource
from backend_staking.staking_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/compliance", tags=["compliance"])


class BulkCheckRequest(BaseModel):
    """POST /compliance/bulk-check body."""

    addresses: list[Any] = Field(..., min_length=1, description="Addresses to screen")


class BulkCheckResponse(BaseModel):
    results: list[dict[str, Any]] = Field(default_factory=list)


def _address_key(address: str) -> str:
    return cache_key("compliance", address=address.strip().lower())


def _sanctions_key(address: str) -> str:
    return cache_key("compliance_sanctions", address=address.strip().lower())


@router.get("/check-address/{address}")
async def check_address_compliance(
    address: str,
    cache: TTLCache = Depends(get_cache),
    source: SelectedSource = Depends(get_data_source),
    sanctioned: frozenset[str] = Depends(get_sanctions_list),
) -> dict[str, Any]:
    """Sanctions status, heuristic risk score and balance for one address."""

    async def build() -> dict[str, Any]:
        result, source_name = await source.run(
            lambda ds: check_address(ds, address, sanctioned=sanctioned),
            name="compliance_check",
        )
        return {**result, "source": source_name}

    try:
        result = await get_or_build(
            cache, _address_key(address), build, COMPLIANCE_TTL_SEC, cache_if=served_by_primary(source)
        )
    except Exception as e:
        logger.exception("compliance_check_failed", address=address, error=str(e))
        raise HTTPException(
            status_code=500, detail={"error": "Failed to check compliance", "details": str(e)}
        ) from e
    logger.info("compliance_checked", address=address, status=result["status"])
    return result


@router.post("/bulk-check", response_model=BulkCheckResponse)
async def bulk_check(
    request: Request,
    cache: TTLCache = Depends(get_cache),
    sanctioned: frozenset[str] = Depends(get_sanctions_list),
) -> BulkCheckResponse:
    """
    Sanctions-only screening. Reuses a cached full check when present.
    Returns 400 when the body has no non-empty 'addresses' array.
    """
    try:
        body = BulkCheckRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        raise InvalidRequestError("Addresses array is required") from e

    results: list[dict[str, Any]] = []
    for address in body.addresses:
        if not isinstance(address, str) or not address.strip():
            results.append(sanctions_only_entry(address, sanctioned))
            continue
        cached = cache.get(_address_key(address)) or cache.get(_sanctions_key(address))
        if cached is not None:
            results.append({**cached, "address": address})
            continue
        entry = sanctions_only_entry(address, sanctioned)
        cache.set(_sanctions_key(address), entry, COMPLIANCE_TTL_SEC)
        results.append(entry)

    flagged = sum(1 for r in results if r.get("status") == "FLAGGED")
    logger.info("compliance_bulk_checked", addresses=len(results), flagged=flagged)
    return BulkCheckResponse(results=results)
