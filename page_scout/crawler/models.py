# page_scout/crawler/models.py
"""
Data models for the page_scout crawler.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict

from page_scout.parser.html_parser import ExtractResult


@dataclass(slots=True, frozen=True)
class FrontierEntry:
    """URL as admitted to the queue (not normalized) together with its link depth."""

    url: str
    depth: int


@dataclass(slots=True)
class CrawlResult:
    """One successfully fetched, non-blocked page with enough content."""

    url: str
    final_url: str
    extracted: ExtractResult
    depth: int
    strategy_used: str


@dataclass
class CrawlStats:
    """Pages accepted and pages skipped, by reason."""

    accepted: int = 0
    blocked: int = 0
    http_error: int = 0
    low_content: int = 0
    failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)
