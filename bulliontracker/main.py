"""
BullionTracker — Application Entrypoint

Configures structlog and serves the query API with uvicorn.

Run via:
    python -m bulliontracker.main
"""

from __future__ import annotations

import logging
import sys

import structlog
import uvicorn

from bulliontracker.api import create_app
from bulliontracker.config import settings


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def _configure_logging(log_level: str = "INFO") -> None:
    """
    Set up structured logging with JSON output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    # Configure stdlib logging first (for uvicorn and httpx)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application Startup
# ---------------------------------------------------------------------------


def main() -> None:
    """Configure logging and block serving HTTP until shutdown."""
    _configure_logging(log_level=settings.LOG_LEVEL)
    logger = structlog.get_logger(__name__)

    logger.info(
        "bulliontracker_startup",
        host=settings.HOST,
        port=settings.PORT,
        sellers=len(settings.SELLERS),
        prices_ttl_seconds=settings.PRICES_CACHE_TTL_SECONDS,
        comparisons_ttl_seconds=settings.COMPARISONS_CACHE_TTL_SECONDS,
        ticker_ttl_seconds=settings.TICKER_CACHE_TTL_SECONDS,
        fx_ttl_seconds=settings.FX_CACHE_TTL_SECONDS,
    )

    try:
        uvicorn.run(
            create_app(),
            host=settings.HOST,
            port=settings.PORT,
            log_level=settings.LOG_LEVEL.lower(),
        )
    finally:
        logger.info("bulliontracker_shutdown_complete")


# ---------------------------------------------------------------------------
# CLI Entry
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    main()
