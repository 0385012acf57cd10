# === FILE: page_scout/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncIterator, Dict, Iterable, List, Optional, Set

from page_scout.auth import AuthStore
from page_scout.config import CrawlConfig
from page_scout.crawler.models import CrawlResult, CrawlStats, FrontierEntry
from page_scout.crawler.queue import RateLimitedQueue
from page_scout.crawler.robots import RobotsPolicy
from page_scout.crawler.sitemap import SitemapDiscoverer
from page_scout.dedup import DedupTracker
from page_scout.engine.base import FetchOptions
from page_scout.engine.waterfall import EngineWaterfall
from page_scout.errors import EmptyFrontierError
from page_scout.parser.html_parser import Extractor
from page_scout.utils import extract_domain, get_base_domain, normalize_url, should_skip_url

__all__ = ("Crawler",)

logger = logging.getLogger(__name__)


class Crawler:
    """Асинхронный краулер с очередью с ограничением частоты, robots.txt, sitemap и дедупликацией.

    Всё состояние обхода (посещённые URL, кэши robots/sitemap, статистика)
    принадлежит экземпляру; один экземпляр обслуживает один вызов :meth:`crawl`.
    """

    def __init__(
        self,
        config: Optional[CrawlConfig] = None,
        *,
        engine: Optional[EngineWaterfall] = None,
        extractor: Optional[Extractor] = None,
        auth_store: Optional[AuthStore] = None,
    ) -> None:
        self.config = config or CrawlConfig()
        self.engine = engine or EngineWaterfall(
            user_agent=self.config.user_agent,
            install_browser=self.config.install_browser,
        )
        self.extractor = extractor or Extractor()
        self.auth_store = auth_store or AuthStore(self.config.auth_dir)
        self.robots = RobotsPolicy()
        self.sitemap = SitemapDiscoverer()
        self.dedup = DedupTracker(self.config.preferred_language)

        self.visited: Set[str] = set()
        self.base_domains: Set[str] = set()
        self.stats = CrawlStats()
        self._progress = asyncio.Event()
        # после остановки обхода новые URL в очередь не попадают
        self._finished = False
        self._results: asyncio.Queue[CrawlResult] = asyncio.Queue()
        self.queue = RateLimitedQueue(
            self.config.concurrency,
            self.config.rate_limit,
            on_task_done=self._progress.set,
        )

    async def __aenter__(self) -> Crawler:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------ #
    # Обход
    # ------------------------------------------------------------------ #

    async def crawl(self, start_urls: Iterable[str]) -> AsyncIterator[CrawlResult]:
        """Обходит сайт и отдаёт результаты по мере готовности (в порядке завершения).

        Обход заканчивается, когда очередь пуста, достигнут ``max_pages``
        или ``idle_timeout`` секунд не было новых результатов.
        """
        seeds = self._seed_urls(start_urls)
        if not seeds:
            raise EmptyFrontierError("No valid start URLs")

        self.base_domains.update(get_base_domain(url) for url in seeds)
        logger.info("Старт обхода: %s", ", ".join(seeds))
        start = time.monotonic()

        # стартовые URL ставятся в очередь сразу, до robots и sitemap
        for url in seeds:
            self._add_to_queue(url, 0)
        await self._discover(seeds)

        max_pages = self.config.max_pages
        yielded = 0
        last_result = time.monotonic()
        try:
            while self.queue.has_work or not self._results.empty():
                while not self._results.empty() and yielded < max_pages:
                    yield self._results.get_nowait()
                    yielded += 1
                    last_result = time.monotonic()

                if yielded >= max_pages:
                    logger.debug("Page budget of %d reached", max_pages)
                    break

                remaining = self.config.idle_timeout - (time.monotonic() - last_result)
                if remaining <= 0:
                    logger.info("Нет новых результатов %.1f с, обход остановлен", self.config.idle_timeout)
                    break

                self._progress.clear()
                if not self._results.empty() or not self.queue.has_work:
                    continue
                try:
                    await asyncio.wait_for(self._progress.wait(), timeout=remaining)
                except asyncio.TimeoutError:
                    pass

            while not self._results.empty() and yielded < max_pages:
                yield self._results.get_nowait()
                yielded += 1
        finally:
            self._finished = True
            self.queue.clear()
            duration = time.monotonic() - start
            logger.info(
                "Завершено: %d страниц за %.2f с (посещено %d)",
                yielded,
                duration,
                len(self.visited),
            )

    @staticmethod
    def _seed_urls(start_urls: Iterable[str]) -> List[str]:
        seeds: List[str] = []
        for raw in start_urls:
            if not raw or not raw.strip():
                continue
            try:
                url = normalize_url(raw)
            except ValueError:
                logger.warning("Пропущен некорректный URL: %s", raw)
                continue
            if get_base_domain(url) and url not in seeds:
                seeds.append(url)
        return seeds

    async def _discover(self, seeds: List[str]) -> None:
        """robots.txt и sitemap с отдельными таймаутами; ошибки не прерывают обход."""
        if self.config.respect_robots:
            try:
                await asyncio.wait_for(
                    asyncio.gather(*(self.robots.parse(url) for url in seeds)),
                    timeout=self.config.robots_timeout,
                )
            except asyncio.TimeoutError:
                logger.debug("robots.txt discovery timed out after %.1fs", self.config.robots_timeout)

        if self.config.use_sitemap:
            try:
                await asyncio.wait_for(self._seed_from_sitemaps(seeds), timeout=self.config.sitemap_timeout)
            except asyncio.TimeoutError:
                logger.debug("Sitemap discovery timed out after %.1fs", self.config.sitemap_timeout)

    async def _seed_from_sitemaps(self, seeds: List[str]) -> None:
        limit = self.config.sitemap_limit
        for seed in seeds:
            declared = self.robots.get_sitemaps(seed)
            if declared:
                urls = await self.sitemap.discover_url(declared[0])
            else:
                urls = await self.sitemap.discover(seed)
            added = 0
            for url in urls[:limit]:
                if self.should_crawl(url, 1) and self._add_to_queue(url, 1):
                    added += 1
            logger.debug("Sitemap for %s: %d URLs, %d queued", seed, len(urls), added)

    def _add_to_queue(self, url: str, depth: int) -> bool:
        if self._finished:
            return False
        normalized = normalize_url(url)
        if normalized in self.visited or len(self.visited) >= self.config.max_pages:
            return False
        # URL помечается посещённым до создания задачи
        self.visited.add(normalized)
        entry = FrontierEntry(url=url, depth=depth)
        self.queue.add(lambda: self._process_url(entry.url, entry.depth))
        return True

    async def _process_url(self, url: str, depth: int) -> None:
        try:
            result = await self.engine.fetch(
                url,
                FetchOptions(
                    timeout=self.config.timeout,
                    user_agent=self.config.user_agent,
                    force_engine=self.config.force_engine,
                    auth_state_path=self._auth_state_path(url),
                ),
            )

            if result.blocked:
                self.stats.blocked += 1
                logger.debug("  Blocked: %s (%s)", url, result.block_reason.value if result.block_reason else "")
                return
            if result.status_code >= 400:
                self.stats.http_error += 1
                logger.debug("  HTTP %d: %s", result.status_code, url)
                return

            extracted = self.extractor.extract(result.html, result.final_url)
            if extracted.word_count < self.config.min_word_count:
                self.stats.low_content += 1
                logger.debug("  Low content: %s (%d words)", url, extracted.word_count)
                return

            self.stats.accepted += 1
            self._results.put_nowait(
                CrawlResult(
                    url=url,
                    final_url=result.final_url,
                    extracted=extracted,
                    depth=depth,
                    strategy_used=result.strategy_used,
                )
            )

            if depth < self.config.depth:
                for link in extracted.links:
                    if self.should_crawl(link, depth + 1):
                        self._add_to_queue(link, depth + 1)
        except Exception as exc:  # noqa: BLE001 - одна страница не должна прерывать обход
            self.stats.failed += 1
            logger.debug("  Failed: %s - %s", url, exc)

    def _auth_state_path(self, url: str) -> Optional[str]:
        if not self.config.use_auth:
            return None
        domain = extract_domain(url)
        if not self.auth_store.has_session(domain):
            return None
        logger.debug("  Using stored auth for %s", domain)
        return str(self.auth_store.session_path(domain))

    # ------------------------------------------------------------------ #
    # Допуск URL
    # ------------------------------------------------------------------ #

    def should_crawl(self, url: str, depth: int) -> bool:
        """Проверки по порядку: посещён, лимит, глубина, расширение, домен, robots, шаблоны, локаль."""
        try:
            normalized = normalize_url(url)
            if normalized in self.visited:
                return False
            if len(self.visited) >= self.config.max_pages:
                return False
            if depth > self.config.depth:
                return False
            if should_skip_url(url):
                return False
            if get_base_domain(url) not in self.base_domains:
                return False
            if self.config.respect_robots and not self.robots.is_allowed(url, self.config.robots_user_agent):
                return False
            if self.config.include_pattern is not None and not self.config.include_pattern.search(url):
                return False
            if self.config.exclude_pattern is not None and self.config.exclude_pattern.search(url):
                return False

            decision = self.dedup.should_skip(url)
            if decision.skip:
                logger.debug("  Skip: %s (%s)", url, decision.reason)
                return False
            return True
        except Exception as exc:  # noqa: BLE001 - некорректный URL отклоняется
            logger.debug("  Rejected %r: %s", url, exc)
            return False

    # ------------------------------------------------------------------ #
    # Статистика и освобождение ресурсов
    # ------------------------------------------------------------------ #

    def get_stats(self) -> Dict[str, object]:
        return {
            **self.engine.get_stats(),
            "visited": len(self.visited),
            "queued": self.queue.size,
            "pending": self.queue.pending,
            "dedup": self.dedup.get_stats(),
            "pages": self.stats.as_dict(),
        }

    async def close(self) -> None:
        """Отменяет оставшиеся задачи и закрывает движок, robots и sitemap."""
        self._finished = True
        self.queue.clear()
        await self.queue.close()
        try:
            await self.engine.close()
        finally:
            await self.robots.close()
            await self.sitemap.close()
