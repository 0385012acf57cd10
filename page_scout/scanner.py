# === FILE: page_scout/scanner.py ===
"""
Модуль-обёртка для функции запуска обхода.
"""
from typing import Any, Dict, Iterable, List, Tuple

from page_scout.config import CrawlConfig
from page_scout.crawler.crawler import Crawler
from page_scout.crawler.models import CrawlResult


async def start_scan(cfg: CrawlConfig, urls: Iterable[str]) -> Tuple[List[CrawlResult], Dict[str, Any]]:
    """
    Запускает краулер в контексте и собирает все результаты.

    Parameters
    ----------
    cfg : CrawlConfig
        Конфигурация обхода.
    urls : Iterable[str]
        Стартовые URL.

    Returns
    -------
    Tuple[List[CrawlResult], Dict[str, Any]]
        Результаты в порядке получения и итоговая статистика краулера.
    """
    results: List[CrawlResult] = []
    async with Crawler(cfg) as crawler:
        async for result in crawler.crawl(urls):
            results.append(result)
        stats = crawler.get_stats()
    return results, stats

__all__ = ["start_scan"]
