"""Engine waterfall: cheapest strategy first, escalate only when needed.

Plain HTTP handles most sites. When a response is classified as an anti-bot
block, or the strategy fails outright, the next more expensive strategy runs.
Browser strategies are created on first use and reused for the whole crawl.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple

from aiohttp import ClientSession

from page_scout.config import EngineName
from page_scout.engine.base import FetchOptions, FetchStrategy
from page_scout.engine.browser import BrowserRuntime, PlaywrightStrategy
from page_scout.engine.detector import BlockDetector, BlockReason, needs_browser
from page_scout.engine.fetch import HttpStrategy
from page_scout.engine.stealth import StealthStrategy
from page_scout.errors import AllEnginesFailedError, BrowserUnavailableError, FetchError

__all__ = ("ENGINE_ORDER", "EngineResult", "EngineStats", "EngineWaterfall")

logger = logging.getLogger(__name__)

ENGINE_ORDER: Tuple[EngineName, ...] = ("fetch", "playwright", "stealth")


@dataclass(slots=True)
class EngineResult:
    html: str
    status_code: int
    strategy_used: EngineName
    blocked: bool
    final_url: str
    block_reason: Optional[BlockReason] = None


@dataclass
class EngineStats:
    """Счётчики успешных загрузок по стратегиям и исчерпанных цепочек."""

    fetch: int = 0
    playwright: int = 0
    stealth: int = 0
    blocked: int = 0

    def record(self, name: str) -> None:
        setattr(self, name, getattr(self, name) + 1)

    def as_dict(self) -> Dict[str, int]:
        return {"fetch": self.fetch, "playwright": self.playwright, "stealth": self.stealth, "blocked": self.blocked}


class EngineWaterfall:
    """Ordered fallback chain of fetch strategies.

    ``strategies`` pre-populates instances by name (used by tests and callers
    that bring their own); anything missing is built on first use.
    """

    def __init__(
        self,
        *,
        session: Optional[ClientSession] = None,
        runtime: Optional[BrowserRuntime] = None,
        detector: Optional[BlockDetector] = None,
        user_agent: Optional[str] = None,
        strategies: Optional[Mapping[str, FetchStrategy]] = None,
        install_browser: bool = True,
    ) -> None:
        self.runtime = runtime or BrowserRuntime(install=install_browser)
        self.detector = detector or BlockDetector()
        self._factories: Dict[str, Callable[[], FetchStrategy]] = {
            "fetch": lambda: HttpStrategy(session, user_agent),
            "playwright": lambda: PlaywrightStrategy(self.runtime, user_agent),
            "stealth": lambda: StealthStrategy(self.runtime, user_agent),
        }
        self._strategies: Dict[str, FetchStrategy] = dict(strategies or {})
        self.stats = EngineStats()

    def _strategy(self, name: str) -> FetchStrategy:
        strategy = self._strategies.get(name)
        if strategy is None:
            factory = self._factories.get(name)
            if factory is None:
                raise ValueError(f"Unknown engine: {name}")
            strategy = self._strategies[name] = factory()
        return strategy

    async def fetch(self, url: str, options: Optional[FetchOptions] = None) -> EngineResult:
        options = options or FetchOptions()

        if options.force_engine:
            result = await self._fetch_with(url, options.force_engine, options)
            if result.blocked:
                self.stats.blocked += 1
            else:
                self.stats.record(result.strategy_used)
            return result

        chain = ENGINE_ORDER[1:] if needs_browser(url) else ENGINE_ORDER
        for name in chain:
            try:
                result = await self._fetch_with(url, name, options)
            except (FetchError, BrowserUnavailableError) as exc:
                logger.debug("  %s failed: %s", name, exc)
                continue
            if not result.blocked:
                self.stats.record(name)
                return result
            logger.debug("  %s blocked: %s", name, result.block_reason.value if result.block_reason else "unknown")

        self.stats.blocked += 1
        raise AllEnginesFailedError(url)

    async def _fetch_with(self, url: str, name: EngineName, options: FetchOptions) -> EngineResult:
        strategy = self._strategy(name)
        if strategy.requires_browser and not await self.runtime.ensure_available():
            raise BrowserUnavailableError("Browser not available")

        fetched = await strategy.fetch(url, options)
        check = self.detector.classify(fetched.html, fetched.status_code, url)
        return EngineResult(
            html=fetched.html,
            status_code=fetched.status_code,
            strategy_used=name,
            blocked=check.blocked,
            block_reason=check.reason,
            final_url=fetched.final_url,
        )

    def get_stats(self) -> Dict[str, int]:
        return self.stats.as_dict()

    async def close(self) -> None:
        strategies = list(self._strategies.values())
        self._strategies.clear()
        try:
            for strategy in strategies:
                await strategy.close()
        finally:
            await self.runtime.close()
