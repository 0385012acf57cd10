# File: page_scout/parser/html_parser.py
"""Content extraction: metadata, links and the main text of a page as Markdown.

Main content comes from readability-lxml; when readability finds nothing
substantial the first of ``<main>``, ``<article>``, ``<body>`` is used
instead. Markdown conversion is done by markdownify.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag
from markdownify import markdownify
from readability import Document
from readability.readability import Unparseable

from page_scout.crawler.link_extractor import extract_links
from page_scout.logger import logger

__all__: Sequence[str] = ("ExtractResult", "Extractor")

_TITLE_SPLIT_RE = re.compile(r"\s*[|\-–—]\s*")
_STRIP_TAGS = ["script", "style", "noscript", "template", "iframe", "svg"]
_TRUNCATION_MARK = "\n\n[Content truncated...]"


@dataclass(slots=True)
class ExtractResult:
    """Extracted page content; ``document`` is Markdown."""

    title: str
    document: str
    description: str = ""
    author: Optional[str] = None
    published_date: Optional[str] = None
    links: list[str] = field(default_factory=list)
    word_count: int = 0
    byte_size: int = 0


def _meta(soup: BeautifulSoup, **attrs: str) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if isinstance(tag, Tag):
        content = tag.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
    return None


def _first_text(soup: BeautifulSoup, selector: str) -> Optional[str]:
    tag = soup.select_one(selector)
    if tag is None:
        return None
    text = tag.get_text(" ", strip=True)
    return text or None


class Extractor:
    """Default content extractor used by the crawler."""

    def __init__(self, *, include_links: bool = True, max_content_length: int = 500_000) -> None:
        self.include_links = include_links
        self.max_content_length = max_content_length

    def extract(self, html: str, url: str) -> ExtractResult:
        if not html or not html.strip():
            return ExtractResult(title=self._title_from_url(url), document="")

        soup = BeautifulSoup(html, "html.parser")
        title = self._title(soup, url)
        description = self._description(soup)
        author = self._author(soup)
        published = self._published_date(soup)
        links = extract_links(soup, url) if self.include_links else []

        for element in soup(_STRIP_TAGS):
            element.decompose()
        document = self._main_content(html, soup)

        if self.max_content_length and len(document) > self.max_content_length:
            document = document[: self.max_content_length] + _TRUNCATION_MARK

        return ExtractResult(
            title=title,
            document=document,
            description=description,
            author=author,
            published_date=published,
            links=links,
            word_count=len(document.split()),
            byte_size=len(document.encode("utf-8")),
        )

    def _main_content(self, html: str, soup: BeautifulSoup) -> str:
        try:
            summary = Document(html).summary(html_partial=True)
        except (Unparseable, ValueError) as exc:
            logger.debug("readability failed: %s", exc)
            summary = ""
        if summary:
            summary_soup = BeautifulSoup(summary, "html.parser")
            if len(summary_soup.get_text(" ", strip=True)) > 100:
                return self._to_markdown(str(summary_soup))

        for name in ("main", "article", "body"):
            node = soup.find(name)
            if isinstance(node, Tag):
                return self._to_markdown(str(node))
        return self._to_markdown(str(soup))

    @staticmethod
    def _to_markdown(fragment: str) -> str:
        text = markdownify(fragment, heading_style="ATX", strip=["img"])
        return re.sub(r"\n{3,}", "\n\n", text).strip()

    def _title(self, soup: BeautifulSoup, url: str) -> str:
        candidates = [
            _meta(soup, property="og:title"),
            _meta(soup, name="twitter:title"),
            soup.title.get_text(strip=True) if soup.title else None,
            _first_text(soup, "h1"),
        ]
        for candidate in candidates:
            if candidate:
                # "Page Title | Site Name" -> "Page Title"
                cleaned = _TITLE_SPLIT_RE.split(candidate)[0].strip()
                if cleaned:
                    return cleaned
        return self._title_from_url(url)

    @staticmethod
    def _title_from_url(url: str) -> str:
        path = urlsplit(url).path.rstrip("/")
        if path:
            last = re.sub(r"\.\w+$", "", path.rsplit("/", 1)[-1]).replace("-", " ").replace("_", " ")
            if last:
                return last
        return url

    @staticmethod
    def _description(soup: BeautifulSoup) -> str:
        for attrs in ({"property": "og:description"}, {"name": "description"}, {"name": "twitter:description"}):
            value = _meta(soup, **attrs)
            if value:
                return value[:300]
        return ""

    @staticmethod
    def _author(soup: BeautifulSoup) -> Optional[str]:
        candidates = [
            _meta(soup, name="author"),
            _meta(soup, property="article:author"),
            _first_text(soup, '[rel="author"]'),
            _first_text(soup, '[itemprop="author"]'),
            _first_text(soup, ".author"),
        ]
        for candidate in candidates:
            if candidate:
                return candidate[:100]
        return None

    @staticmethod
    def _published_date(soup: BeautifulSoup) -> Optional[str]:
        candidates = [
            _meta(soup, property="article:published_time"),
            _meta(soup, name="date"),
            _meta(soup, name="publish-date"),
        ]
        time_tag = soup.find("time", attrs={"datetime": True})
        if isinstance(time_tag, Tag):
            candidates.append(str(time_tag.get("datetime")))
        for candidate in candidates:
            if not candidate:
                continue
            try:
                return datetime.fromisoformat(candidate.strip().replace("Z", "+00:00")).isoformat()
            except ValueError:
                continue
        return None
