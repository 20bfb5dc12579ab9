"""
FastAPI server: staking analytics API for the dashboard SPA.

create_app() wires the app-owned collaborators (settings, TTL cache, data
source selector, price source, sanctions list) onto app.state; handlers
resolve them per request through dependencies. Any collaborator can be
injected, which is how tests run against a fake or seeded synthetic source.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend_staking import __version__
from backend_staking.analytics.compliance import load_sanctions_list
from backend_staking.api_server import compliance, explorer, staking, validators
from backend_staking.api_server.middleware import log_requests
from backend_staking.cache import TTLCache
from backend_staking.config import Settings, get_settings
from backend_staking.config.env import mask_secret
from backend_staking.core.exceptions import InvalidRequestError
from backend_staking.datasource import (
    DataSourceSelector,
    FixedPriceSource,
    LiveDataSource,
    PriceSource,
    SyntheticDataSource,
)
from backend_staking.staking_logging import get_logger

logger = get_logger(__name__)

API_TITLE = "Kiln Dashboard API with Business Intelligence Analytics"

ENDPOINTS = [
    "GET /api/health - Health check",
    "GET /api/test-connection - Test Kiln API connectivity",
    "GET /api/validators - Validator data with reputation badges",
    "GET /api/network-stats - Network statistics for ETH and SOL",
    "GET /api/validators/{id} - Individual validator details",
    "GET /api/compliance/check-address/{address} - Address compliance check",
    "POST /api/compliance/bulk-check - Bulk address screening",
    "GET /api/accounts/enhanced - Account selection with portfolio insights",
    "GET /api/stakes?accounts=id1,id2&analytics=advanced - Multi-account stakes analytics",
    "GET /api/rewards?accounts=id1,id2&timeframe=30d&analytics=advanced - Rewards intelligence",
    "GET /api/accounts - Basic organization accounts",
    "GET /api/organization/{orgId}/portfolio - Organization portfolio overview",
    "GET /api/explorer/transactions?limit=10&network=mainnet - Latest block transactions",
]

QUERY_PARAMETERS = {
    "accounts": "Comma-separated account IDs for multi-account analysis",
    "timeframe": "7d, 30d, 90d, 1y for time-based analytics",
    "analytics": "basic, advanced for depth of analysis",
}


class HealthResponse(BaseModel):
    """GET /api/health response."""

    status: str = Field(..., description="'OK' when the API is up")
    timestamp: str = Field(..., description="Server time, ISO 8601")
    version: str


def create_app(
    settings: Settings | None = None,
    *,
    cache: TTLCache | None = None,
    data_sources: DataSourceSelector | None = None,
    price_source: PriceSource | None = None,
    sanctioned: frozenset[str] | None = None,
) -> FastAPI:
    """
    Build the FastAPI app. Collaborators not passed in are built from settings;
    the data source selector (and its shared httpx client) is built at startup.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the data sources when not injected; close the HTTP client on shutdown."""
        http: httpx.AsyncClient | None = None
        if app.state.data_sources is None:
            live = None
            if settings.live_enabled:
                http = httpx.AsyncClient(timeout=settings.upstream_timeout_sec)
                live = LiveDataSource.from_settings(http, settings)
            app.state.data_sources = DataSourceSelector(SyntheticDataSource(), live)
        logger.info(
            "api_started",
            live_enabled=app.state.data_sources.live_enabled,
            kiln_api_key=mask_secret(settings.kiln_api_key),
            etherscan_api_key=mask_secret(settings.etherscan_api_key),
            eth_usd_price=app.state.price_source.eth_usd(),
        )
        try:
            yield
        finally:
            if http is not None:
                await http.aclose()
            logger.info("api_stopped")

    app = FastAPI(
        title="Backend Staking API",
        description="Staking analytics over Kiln and Etherscan data, with synthetic fallback.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.cache = cache if cache is not None else TTLCache(settings.cache_ttl_sec)
    app.state.data_sources = data_sources
    app.state.price_source = price_source or FixedPriceSource(settings.eth_usd_price)
    app.state.sanctioned = (
        sanctioned if sanctioned is not None else load_sanctions_list(settings.sanctions_list_path)
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[staking.DATA_SOURCE_HEADER],
    )
    app.middleware("http")(log_requests)

    app.include_router(staking.router, prefix="/api")
    app.include_router(validators.router, prefix="/api")
    app.include_router(compliance.router, prefix="/api")
    app.include_router(explorer.router, prefix="/api")

    @app.get("/")
    def index() -> dict[str, Any]:
        """API index: endpoints and query parameters."""
        return {
            "message": API_TITLE,
            "version": __version__,
            "endpoints": ENDPOINTS,
            "queryParameters": QUERY_PARAMETERS,
        }

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        """Liveness probe: API is up."""
        return HealthResponse(
            status="OK",
            timestamp=datetime.now(timezone.utc).isoformat(),
            version=__version__,
        )

    @app.exception_handler(StarletteHTTPException)
    def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Consistent JSON error body: dict details as-is, anything else under 'error'."""
        content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(InvalidRequestError)
    def invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
        logger.info("invalid_request", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=400, content={"error": exc.message})

    return app


app = create_app()
