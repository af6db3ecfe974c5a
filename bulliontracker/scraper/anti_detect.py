"""
BullionTracker — Browser-like request signature for retailer pages.

Retailer storefronts frequently answer bare HTTP clients with 403s or
bot-check pages, so catalog fetches go out with a rotating desktop user
agent and the Accept headers a browser would send.
"""

from __future__ import annotations

import random

import structlog

logger = structlog.get_logger(__name__)


class AntiDetect:
    """
    Builds request headers for catalog page fetches.

    Usage:
        headers = AntiDetect().build_headers()
    """

    # Realistic user agents for rotation
    USER_AGENTS = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:123.0) Gecko/20100101 Firefox/123.0",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.3 Safari/605.1.15",
    ]

    ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
    ACCEPT_LANGUAGE = "en-AU,en;q=0.9"

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def get_random_user_agent(self) -> str:
        """Return a random user agent string."""
        return self._rng.choice(self.USER_AGENTS)

    def build_headers(self) -> dict[str, str]:
        user_agent = self.get_random_user_agent()
        logger.debug("anti_detect_user_agent", user_agent=user_agent, source="anti_detect")
        return {
            "User-Agent": user_agent,
            "Accept": self.ACCEPT_HTML,
            "Accept-Language": self.ACCEPT_LANGUAGE,
        }
