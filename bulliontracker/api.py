"""
BullionTracker — Query API

Read-only JSON surface over the cached price, FX and comparison data.

Routes:
    GET /api/health
    GET /api/prices       → MetalPriceSnapshot[]
    GET /api/fx           → FxSnapshot
    GET /api/comparisons  → ProductComparison[]

Errors are always {"error": str, "details"?: str}: 500 when an upstream
fetch fails with nothing cached, 404 for unknown routes or methods.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bulliontracker.config import settings
from bulliontracker.exceptions import BullionTrackerError
from bulliontracker.models import FxSnapshot, MetalPriceSnapshot, ProductComparison
from bulliontracker.pipeline.comparisons import ComparisonAggregator
from bulliontracker.pipeline.quote_client import QuoteClient
from bulliontracker.pipeline.spot import SpotAggregator
from bulliontracker.scraper.runner import ScraperRunner

logger = structlog.get_logger(__name__)

UPSTREAM_ERROR_MESSAGE = "Failed to fetch Yahoo Finance spot rates"
COMPARISONS_ERROR_MESSAGE = "Failed to fetch dealer comparisons"

CORS_ALLOW_ORIGIN = "*"
CORS_ALLOW_METHODS = ["GET", "POST", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type"]


def build_services(http_client: httpx.AsyncClient) -> tuple[SpotAggregator, ComparisonAggregator]:
    """Wire the engine around one shared HTTP client."""
    quotes = QuoteClient(http_client=http_client)
    spot = SpotAggregator(quotes)
    comparisons = ComparisonAggregator(ScraperRunner(http_client))
    return spot, comparisons


def create_app(
    spot: SpotAggregator | None = None,
    comparisons: ComparisonAggregator | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Services passed in are used as-is. Otherwise the lifespan creates a
    shared httpx client, wires the services around it and closes it on
    shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        http_client: httpx.AsyncClient | None = None
        if app.state.spot is None or app.state.comparisons is None:
            http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
            built_spot, built_comparisons = build_services(http_client)
            app.state.spot = app.state.spot or built_spot
            app.state.comparisons = app.state.comparisons or built_comparisons
            logger.info("api_services_ready", sellers=len(built_comparisons.sellers), source="api")
        try:
            yield
        finally:
            if http_client is not None:
                await http_client.aclose()
                logger.info("api_http_client_closed", source="api")

    app = FastAPI(
        title="BullionTracker API",
        description="Precious-metal spot prices and cross-dealer product comparisons",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.spot = spot
    app.state.comparisons = comparisons

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[CORS_ALLOW_ORIGIN],
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )

    # -----------------------------------------------------------------------
    # Error handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # The catch-all OPTIONS route turns unmatched GETs into 405s.
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": "Not Found"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(BullionTrackerError)
    async def upstream_error_handler(request: Request, exc: BullionTrackerError) -> JSONResponse:
        message = (
            COMPARISONS_ERROR_MESSAGE
            if request.url.path == "/api/comparisons"
            else UPSTREAM_ERROR_MESSAGE
        )
        logger.error(
            "api_upstream_error",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
            source="api",
        )
        return JSONResponse(status_code=500, content={"error": message, "details": str(exc)})

    # Runs in ServerErrorMiddleware, outside CORSMiddleware.
    @app.exception_handler(Exception)
    async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "api_unhandled_error",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
            source="api",
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "details": str(exc) or type(exc).__name__},
            headers={"Access-Control-Allow-Origin": CORS_ALLOW_ORIGIN},
        )

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------

    @app.options("/{path:path}")
    async def preflight(path: str) -> dict[str, bool]:
        return {"ok": True}

    @app.get("/api/health")
    async def health(request: Request) -> dict:
        state = request.app.state
        caches: dict[str, dict] = {}
        if state.spot is not None:
            caches["prices"] = state.spot.prices_cache.summary()
            caches["fx"] = state.spot.fx_cache.summary()
        if state.comparisons is not None:
            caches["comparisons"] = state.comparisons.cache.summary()
        return {"status": "ok", "service": settings.SERVICE_NAME, "caches": caches}

    @app.get("/api/prices", response_model=list[MetalPriceSnapshot])
    async def prices(request: Request) -> list[MetalPriceSnapshot]:
        return await request.app.state.spot.get_metal_prices()

    @app.get("/api/fx", response_model=FxSnapshot)
    async def fx(request: Request) -> FxSnapshot:
        return await request.app.state.spot.get_fx_snapshot()

    @app.get("/api/comparisons", response_model=list[ProductComparison])
    async def comparisons_route(request: Request) -> list[ProductComparison]:
        return await request.app.state.comparisons.get_comparisons()

    return app
