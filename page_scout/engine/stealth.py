"""Stealth browser strategy for sites behind anti-bot challenges."""
from __future__ import annotations

import logging
import random
from typing import Any, Dict, List

from playwright.async_api import BrowserContext, Page
from playwright.async_api import Error as PlaywrightError

from page_scout.engine.base import FetchOptions
from page_scout.engine.browser import PlaywrightStrategy

__all__ = ("StealthStrategy", "STEALTH_SCRIPTS", "CHALLENGE_SELECTORS")

logger = logging.getLogger(__name__)

STEALTH_SCRIPTS: Dict[str, str] = {
    "webdriver": """
        Object.defineProperty(navigator, 'webdriver', { get: () => false });
    """,
    "plugins": """
        Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
    """,
    "languages": """
        Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
    """,
    "permissions": """
        const originalQuery = window.navigator.permissions.query;
        window.navigator.permissions.query = (parameters) =>
            parameters.name === 'notifications'
                ? Promise.resolve({ state: Notification.permission })
                : originalQuery(parameters);
    """,
    "cdc_cleanup": """
        delete window.cdc_adoQpoasnfa76pfcZLmcfl_Array;
        delete window.cdc_adoQpoasnfa76pfcZLmcfl_Promise;
        delete window.cdc_adoQpoasnfa76pfcZLmcfl_Symbol;
    """,
}

COMBINED_STEALTH_SCRIPT = "\n".join(STEALTH_SCRIPTS.values())

CHALLENGE_SELECTORS = (
    "#challenge-running",
    ".cf-browser-verification",
    "#challenge-form",
    '[data-testid="challenge-running"]',
    ".challenge-running",
)


class StealthStrategy(PlaywrightStrategy):
    """Playwright with fingerprint patches, human-like input and challenge waiting."""

    name = "stealth"
    default_timeout = 30.0

    launch_args: List[str] = PlaywrightStrategy.launch_args + [
        "--disable-web-security",
        "--disable-features=IsolateOrigins,site-per-process",
    ]
    challenge_timeout_ms = 15_000
    challenge_grace_ms = 2_000

    def context_options(self, options: FetchOptions) -> Dict[str, Any]:
        context_options = super().context_options(options)
        context_options["geolocation"] = {"latitude": 40.7128, "longitude": -74.006}
        context_options["permissions"] = ["geolocation"]
        return context_options

    async def prepare_context(self, context: BrowserContext) -> None:
        await context.add_init_script(COMBINED_STEALTH_SCRIPT)
        await super().prepare_context(context)

    async def before_navigation(self, page: Page) -> None:
        await page.mouse.move(100 + random.random() * 500, 100 + random.random() * 300)
        await page.wait_for_timeout(500 + random.random() * 1000)

    async def after_navigation(self, page: Page) -> None:
        await self.wait_for_challenge(page)

    async def wait_for_challenge(self, page: Page) -> None:
        """Wait for the first visible challenge widget to detach, then settle."""
        for selector in CHALLENGE_SELECTORS:
            if await page.query_selector(selector) is None:
                continue
            logger.debug("Challenge %s detected on %s, waiting", selector, page.url)
            try:
                await page.wait_for_selector(selector, state="detached", timeout=self.challenge_timeout_ms)
                await page.wait_for_timeout(self.challenge_grace_ms)
            except PlaywrightError as exc:
                logger.debug("Challenge did not resolve on %s: %s", page.url, exc)
            break
