"""
Request dependencies: resolve app-owned collaborators from app.state.

Everything a handler needs (cache, data source, price source, sanctions
list) is created once in create_app() and injected per request.
"""

from __future__ import annotations

from fastapi import Request

from backend_staking.cache import TTLCache
from backend_staking.datasource import PriceSource, SelectedSource


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


def get_data_source(request: Request) -> SelectedSource:
    """Data source for this request: live when configured, synthetic otherwise."""
    return request.app.state.data_sources.select()


def get_price_source(request: Request) -> PriceSource:
    return request.app.state.price_source


def get_sanctions_list(request: Request) -> frozenset[str]:
    return request.app.state.sanctioned


def served_by_primary(source: SelectedSource):
    """cache_if predicate: only payloads produced by the selected source are cached, not fallbacks."""
    return lambda payload: payload.get("source") == source.primary.name
