# File: page_scout/parser/sitemap_parser.py
"""page_scout.parser.sitemap_parser: разбор sitemap.xml и sitemap-индексов."""

from __future__ import annotations

import gzip
from dataclasses import dataclass
from typing import List, Optional, Union

from lxml import etree

__all__ = (
    "SitemapUrl",
    "decode_sitemap",
    "is_sitemap_index",
    "parse_sitemap_index",
    "parse_urlset",
    "parse_with_metadata",
)


@dataclass(slots=True)
class SitemapUrl:
    loc: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None
    priority: Optional[float] = None


def decode_sitemap(payload: bytes) -> bytes:
    """Распаковывает gzip, если содержимое сжато (``.xml.gz``)."""
    if payload[:2] == b"\x1f\x8b":
        return gzip.decompress(payload)
    return payload


def _root(content: Union[str, bytes]) -> Optional[etree._Element]:
    data = content.encode("utf-8") if isinstance(content, str) else content
    if not data.strip():
        return None
    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False, no_network=True)
    try:
        return etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError:
        return None


def _text(element: etree._Element, tag: str) -> Optional[str]:
    child = element.find(f"{{*}}{tag}")
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def is_sitemap_index(content: Union[str, bytes]) -> bool:
    """True, если корневой элемент документа ``<sitemapindex>``."""
    root = _root(content)
    return root is not None and etree.QName(root).localname == "sitemapindex"


def parse_sitemap_index(content: Union[str, bytes]) -> List[str]:
    """Возвращает ссылки на дочерние sitemap из ``<sitemap><loc>``."""
    root = _root(content)
    if root is None:
        return []
    return [loc for loc in (_text(el, "loc") for el in root.iterfind(".//{*}sitemap")) if loc]


def parse_urlset(content: Union[str, bytes]) -> List[str]:
    """Разбирает ``<urlset>`` и возвращает URL из ``<url><loc>``.

    Пример:
    ```python
    from page_scout.parser.sitemap_parser import parse_urlset

    with open('sitemap.xml', 'rb') as f:
        urls = parse_urlset(f.read())
    ```
    """
    return [entry.loc for entry in parse_with_metadata(content)]


def parse_with_metadata(content: Union[str, bytes]) -> List[SitemapUrl]:
    """Как :func:`parse_urlset`, но с ``lastmod``, ``changefreq`` и ``priority``."""
    root = _root(content)
    if root is None:
        return []

    entries: List[SitemapUrl] = []
    for el in root.iterfind(".//{*}url"):
        loc = _text(el, "loc")
        if not loc:
            continue
        priority: Optional[float] = None
        raw_priority = _text(el, "priority")
        if raw_priority is not None:
            try:
                priority = float(raw_priority)
            except ValueError:
                priority = None
        entries.append(
            SitemapUrl(
                loc=loc,
                lastmod=_text(el, "lastmod"),
                changefreq=_text(el, "changefreq"),
                priority=priority,
            )
        )
    return entries
