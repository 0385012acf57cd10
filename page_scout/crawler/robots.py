# page_scout/crawler/robots.py
"""
Per-host robots.txt cache used by the crawler.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from aiohttp import ClientError, ClientSession, ClientTimeout

from page_scout.http import ManagedSession
from page_scout.parser.robots_parser import HostRobotsRecord, crawl_delay, is_allowed, parse_robots_txt

__all__ = ("RobotsPolicy", "ROBOTS_USER_AGENT")

logger = logging.getLogger(__name__)

ROBOTS_USER_AGENT = "page_scout/1.0"


class RobotsPolicy:
    """Fetches robots.txt once per host and answers allow/deny questions.

    Any failure to obtain robots.txt records an empty rule set for the host,
    so everything on it is allowed.
    """

    def __init__(self, session: Optional[ClientSession] = None, *, timeout: float = 5.0) -> None:
        self._session = ManagedSession(session, headers={"User-Agent": ROBOTS_USER_AGENT})
        self.timeout = timeout
        self._records: Dict[str, HostRobotsRecord] = {}

    async def parse(self, url: str) -> None:
        """Load robots.txt for the host of *url* unless it is already cached."""
        try:
            parts = urlsplit(url)
        except ValueError:
            return
        host = parts.hostname
        if not host or host in self._records:
            return

        robots_url = f"{parts.scheme}://{parts.netloc}/robots.txt"
        record = HostRobotsRecord()
        try:
            session = await self._session.get()
            async with session.get(robots_url, timeout=ClientTimeout(total=self.timeout)) as resp:
                if resp.status < 400:
                    record = parse_robots_txt(await resp.text(errors="replace"))
                else:
                    logger.debug("No robots.txt at %s (HTTP %s)", robots_url, resp.status)
        except (ClientError, asyncio.TimeoutError, UnicodeDecodeError) as exc:
            logger.debug("robots.txt fetch failed for %s: %s", robots_url, exc)
        self._records.setdefault(host, record)

    def record(self, url: str) -> Optional[HostRobotsRecord]:
        try:
            host = urlsplit(url).hostname
        except ValueError:
            return None
        return self._records.get(host) if host else None

    def is_allowed(self, url: str, user_agent: str = "*") -> bool:
        try:
            parts = urlsplit(url)
        except ValueError:
            return True
        path = (parts.path or "/") + (f"?{parts.query}" if parts.query else "")
        return is_allowed(self._records.get(parts.hostname or ""), path, user_agent)

    def get_crawl_delay(self, url: str, user_agent: str = "*") -> Optional[float]:
        return crawl_delay(self.record(url), user_agent)

    def get_sitemaps(self, url: str) -> List[str]:
        record = self.record(url)
        return list(record.sitemaps) if record else []

    async def close(self) -> None:
        await self._session.close()
