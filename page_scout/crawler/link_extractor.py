# page_scout/crawler/link_extractor.py
"""
Link extraction for page_scout.
"""
from __future__ import annotations

from typing import List, Set, Union
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from page_scout.utils import resolve_url, should_skip_url

__all__ = ("extract_links",)


def extract_links(page: Union[str, BeautifulSoup], base_url: str, *, same_host: bool = False) -> List[str]:
    """
    Extract absolute HTTP(S) links in document order, without duplicates.

    Ignores mailto:, javascript:, fragments and non-document resources.
    With ``same_host`` only links to the host of ``base_url`` are kept.
    """
    soup = page if isinstance(page, BeautifulSoup) else BeautifulSoup(page, "html.parser")
    base_host = urlsplit(base_url).hostname
    seen: Set[str] = set()
    links: List[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        absolute = resolve_url(href_val, base_url)
        if absolute is None or should_skip_url(absolute) or absolute in seen:
            continue
        if same_host and urlsplit(absolute).hostname != base_host:
            continue
        seen.add(absolute)
        links.append(absolute)
    return links
