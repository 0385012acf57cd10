# File: page_scout/aggregator.py
"""page_scout.aggregator: сборка отчёта об обходе из результатов краулера."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, TypedDict

from page_scout.crawler.models import CrawlResult


class PageInfo(TypedDict, total=False):
    """Сводка по одной принятой странице."""

    url: str
    final_url: str
    title: str
    description: str
    depth: int
    strategy: str
    words: int
    bytes: int


@dataclass(slots=True)
class CrawlReport:
    """Итог обхода: страницы и статистика движка, очереди и дедупликации."""

    pages: List[PageInfo] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    strategies: Dict[str, int] = field(default_factory=dict)

    raw_results: Optional[List[CrawlResult]] = None

    @property
    def total_words(self) -> int:
        return sum(page.get("words", 0) for page in self.pages)

    def to_dict(self) -> Dict[str, Any]:
        """Словарь без сырых результатов (содержимое страниц не включается)."""
        return {k: v for k, v in asdict(self).items() if k != "raw_results"}

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление CrawlReport без сырых данных."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def _page_info(result: CrawlResult) -> PageInfo:
    extracted = result.extracted
    return {
        "url": result.url,
        "final_url": result.final_url,
        "title": extracted.title,
        "description": extracted.description,
        "depth": result.depth,
        "strategy": result.strategy_used,
        "words": extracted.word_count,
        "bytes": extracted.byte_size,
    }


def aggregate_results(results: Iterable[CrawlResult], stats: Optional[Mapping[str, Any]] = None) -> CrawlReport:
    """Собирает все части отчёта в CrawlReport."""
    raw = list(results)
    report = CrawlReport(raw_results=raw, stats=dict(stats or {}))
    report.pages = [_page_info(r) for r in raw]
    for r in raw:
        report.strategies[r.strategy_used] = report.strategies.get(r.strategy_used, 0) + 1
    return report
