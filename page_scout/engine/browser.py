"""Playwright-backed strategies and the shared browser runtime.

A :class:`BrowserRuntime` owns the Playwright driver and answers "can a browser
be launched here?" exactly once per crawl: it checks for the Chromium binary and,
if missing, makes a single best-effort ``playwright install chromium`` attempt.
Each strategy owns one browser/context pair and opens one page per fetch.
"""
from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright
from playwright.async_api import Error as PlaywrightError

from page_scout.auth import load_storage_state
from page_scout.engine.base import FetchOptions, FetchResult, FetchStrategy
from page_scout.engine.fetch import DEFAULT_USER_AGENT
from page_scout.errors import BrowserUnavailableError, FetchError

__all__ = ("BrowserRuntime", "PlaywrightStrategy", "BLOCKED_RESOURCE_TYPES")

logger = logging.getLogger(__name__)

BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})

_LAUNCH_ARGS: List[str] = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-infobars",
    "--window-position=0,0",
    "--ignore-certificate-errors",
    "--ignore-certificate-errors-spki-list",
]


class BrowserRuntime:
    """Lazily started Playwright driver with a memoized availability check."""

    def __init__(self, *, install: bool = True) -> None:
        self.install = install
        self._playwright: Optional[Playwright] = None
        self._available: Optional[bool] = None
        self._lock = asyncio.Lock()

    async def playwright(self) -> Playwright:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return self._playwright

    async def ensure_available(self) -> bool:
        """Return True when Chromium can be launched; the outcome is computed once."""
        async with self._lock:
            if self._available is None:
                available = await self._check_binary()
                if not available and self.install:
                    available = await self._install() and await self._check_binary()
                self._available = available
            return self._available

    async def require(self) -> Playwright:
        if not await self.ensure_available():
            raise BrowserUnavailableError("Chromium is not installed and could not be installed")
        return await self.playwright()

    async def _check_binary(self) -> bool:
        try:
            pw = await self.playwright()
            return Path(pw.chromium.executable_path).exists()
        except (PlaywrightError, OSError) as exc:
            logger.debug("Browser runtime check failed: %s", exc)
            return False

    async def _install(self) -> bool:
        logger.info("Protected site detected. Installing browser...")
        try:
            proc = await asyncio.create_subprocess_exec(sys.executable, "-m", "playwright", "install", "chromium")
            returncode = await proc.wait()
        except OSError as exc:
            logger.error("Failed to install browser: %s", exc)
            return False
        if returncode != 0:
            logger.error("Failed to install browser (exit code %s). Some sites may not work.", returncode)
            return False
        logger.info("Browser installed successfully.")
        return True

    async def close(self) -> None:
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None


async def _block_heavy_resources(route: Route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


class PlaywrightStrategy(FetchStrategy):
    """Headless Chromium with JavaScript rendering."""

    name = "playwright"
    default_timeout = 15.0
    requires_browser = True

    settle_ms = 1000
    launch_args: List[str] = _LAUNCH_ARGS

    def __init__(self, runtime: BrowserRuntime, user_agent: Optional[str] = None) -> None:
        self.runtime = runtime
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._lock = asyncio.Lock()

    def context_options(self, options: FetchOptions) -> Dict[str, Any]:
        context_options: Dict[str, Any] = {
            "user_agent": options.user_agent or self.user_agent,
            "viewport": {"width": 1920, "height": 1080},
            "locale": "en-US",
            "timezone_id": "America/New_York",
            "device_scale_factor": 1,
            "has_touch": False,
            "is_mobile": False,
        }
        if options.auth_state_path:
            state = load_storage_state(options.auth_state_path)
            if state:
                context_options["storage_state"] = state
        return context_options

    async def prepare_context(self, context: BrowserContext) -> None:
        await context.route("**/*", _block_heavy_resources)

    async def _ensure_context(self, url: str, options: FetchOptions) -> BrowserContext:
        # the first call decides the context options, stored auth included
        async with self._lock:
            if self._context is None:
                pw = await self.runtime.require()
                try:
                    self._browser = await pw.chromium.launch(headless=True, args=self.launch_args)
                    context = await self._browser.new_context(**self.context_options(options))
                    await self.prepare_context(context)
                except PlaywrightError as exc:
                    await self._discard_browser()
                    raise FetchError(self.name, url, f"Failed to start browser: {exc.message or exc}") from exc
                self._context = context
            return self._context

    async def _discard_browser(self) -> None:
        if self._browser is None:
            return
        try:
            await self._browser.close()
        except PlaywrightError as exc:
            logger.debug("Closing a half-started browser failed: %s", exc)
        self._browser = None

    async def before_navigation(self, page: Page) -> None:
        """Hook for subclasses; runs on the blank page before ``goto``."""

    async def after_navigation(self, page: Page) -> None:
        await page.wait_for_timeout(self.settle_ms)

    async def fetch(self, url: str, options: FetchOptions) -> FetchResult:
        timeout = options.timeout or self.default_timeout
        context = await self._ensure_context(url, options)
        try:
            page = await context.new_page()
        except PlaywrightError as exc:
            raise FetchError(self.name, url, f"Failed to create new page: {exc}") from exc
        try:
            await self.before_navigation(page)
            response = await page.goto(url, wait_until="networkidle", timeout=timeout * 1000)
            await self.after_navigation(page)
            html = await page.content()
            status = response.status if response is not None else 200
            return FetchResult(html=html, status_code=status, final_url=page.url)
        except PlaywrightError as exc:
            raise FetchError(self.name, url, exc.message or str(exc)) from exc
        finally:
            try:
                await page.close()
            except PlaywrightError as exc:
                raise FetchError(self.name, url, f"Failed to close page: {exc.message or exc}") from exc

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
