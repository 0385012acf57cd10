# page_scout/crawler/sitemap.py
"""
Sitemap discovery: tries well-known locations and expands sitemap indexes.
"""
from __future__ import annotations

import asyncio
import logging
import zlib
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from aiohttp import ClientError, ClientSession, ClientTimeout

from page_scout.http import ManagedSession
from page_scout.parser.sitemap_parser import (
    SitemapUrl,
    decode_sitemap,
    is_sitemap_index,
    parse_sitemap_index,
    parse_urlset,
    parse_with_metadata,
)

__all__ = ("SitemapDiscoverer", "SITEMAP_PATHS", "NEWS_SITEMAP_PATHS")

logger = logging.getLogger(__name__)

SITEMAP_PATHS = ("/sitemap.xml", "/sitemap_index.xml", "/sitemap/sitemap.xml")
NEWS_SITEMAP_PATHS = ("/sitemap/news.xml", "/news-sitemap.xml", "/sitemap-news.xml", "/sitemaps/news.xml")

_HEADERS = {"User-Agent": "page_scout/1.0 (sitemap crawler)", "Accept": "application/xml, text/xml, */*"}


def _origin(url: str) -> Optional[str]:
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


class SitemapDiscoverer:
    """Best-effort sitemap reader; every failure yields an empty list."""

    max_urls = 200
    max_index_children = 2
    max_metadata_urls = 1000

    def __init__(
        self,
        session: Optional[ClientSession] = None,
        *,
        timeout: float = 5.0,
        metadata_timeout: float = 10.0,
    ) -> None:
        self._session = ManagedSession(session, headers=_HEADERS)
        self.timeout = timeout
        self.metadata_timeout = metadata_timeout
        self._cache: Dict[str, List[str]] = {}

    async def _fetch(self, url: str, timeout: Optional[float] = None) -> Optional[bytes]:
        try:
            session = await self._session.get()
            async with session.get(url, timeout=ClientTimeout(total=timeout or self.timeout)) as resp:
                if resp.status >= 400:
                    logger.debug("Sitemap %s -> HTTP %s", url, resp.status)
                    return None
                return decode_sitemap(await resp.read())
        except (ClientError, asyncio.TimeoutError, OSError, EOFError, zlib.error) as exc:
            logger.debug("Sitemap fetch failed for %s: %s", url, exc)
            return None

    async def _collect(self, content: bytes) -> List[str]:
        if not is_sitemap_index(content):
            return parse_urlset(content)[: self.max_urls]

        urls: List[str] = []
        for child in parse_sitemap_index(content)[: self.max_index_children]:
            if len(urls) >= self.max_urls:
                break
            child_content = await self._fetch(child)
            if child_content:
                urls.extend(parse_urlset(child_content)[: self.max_urls - len(urls)])
        return urls[: self.max_urls]

    async def discover(self, url: str) -> List[str]:
        """Try the default sitemap locations of the host of *url*."""
        origin = _origin(url)
        if origin is None:
            return []
        host = urlsplit(origin).hostname or origin
        if host in self._cache:
            return list(self._cache[host])

        urls: List[str] = []
        for path in SITEMAP_PATHS:
            content = await self._fetch(origin + path)
            if content:
                urls = await self._collect(content)
            if urls:
                break

        logger.debug("Sitemap discovery for %s: %d URLs", host, len(urls))
        return list(self._cache.setdefault(host, urls))

    async def discover_url(self, sitemap_url: str) -> List[str]:
        """Read one explicitly named sitemap, e.g. from a robots.txt ``Sitemap:`` line."""
        if _origin(sitemap_url) is None:
            return []
        content = await self._fetch(sitemap_url)
        return await self._collect(content) if content else []

    async def discover_with_metadata(self, url: str) -> List[SitemapUrl]:
        """Sitemap entries with metadata, news sitemaps first."""
        origin = _origin(url)
        if origin is None:
            return []

        for path in NEWS_SITEMAP_PATHS:
            content = await self._fetch(origin + path, self.metadata_timeout)
            if content:
                entries = parse_with_metadata(content)
                if entries:
                    return entries[: self.max_metadata_urls]

        for path in ("/sitemap.xml", "/sitemap_index.xml"):
            entries = await self._metadata_from(origin + path)
            if entries:
                return entries[: self.max_metadata_urls]
        return []

    async def _metadata_from(self, sitemap_url: str) -> List[SitemapUrl]:
        content = await self._fetch(sitemap_url, self.metadata_timeout)
        if not content:
            return []
        if not is_sitemap_index(content):
            return parse_with_metadata(content)

        entries: List[SitemapUrl] = []
        for child in parse_sitemap_index(content):
            if len(entries) >= self.max_metadata_urls:
                break
            child_content = await self._fetch(child, self.metadata_timeout)
            if child_content:
                entries.extend(parse_with_metadata(child_content))
        return entries

    async def close(self) -> None:
        await self._session.close()
