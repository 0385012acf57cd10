"""Fast HTTP fetch strategy, the default for most sites."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional
from urllib.parse import urlsplit

from aiohttp import ClientError, ClientSession, ClientTimeout

from page_scout.auth import load_storage_state
from page_scout.engine.base import FetchOptions, FetchResult, FetchStrategy
from page_scout.errors import FetchError
from page_scout.http import ManagedSession

__all__ = ("DEFAULT_USER_AGENT", "DEFAULT_HEADERS", "HttpStrategy", "cookie_header")

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS: Dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Sec-Ch-Ua": '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"macOS"',
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}


def cookie_header(auth_state_path: str, url: str) -> Optional[str]:
    """Build a Cookie header from a stored session for the host of *url*."""
    state = load_storage_state(auth_state_path)
    if not state:
        return None
    host = urlsplit(url).hostname or ""
    pairs = []
    for cookie in state.get("cookies", []):
        domain = str(cookie.get("domain", "")).lstrip(".")
        if domain and (host == domain or host.endswith(f".{domain}")):
            pairs.append(f"{cookie.get('name')}={cookie.get('value')}")
    return "; ".join(pairs) or None


class HttpStrategy(FetchStrategy):
    """Plain aiohttp GET with browser-like headers, redirects followed."""

    name = "fetch"
    default_timeout = 5.0

    def __init__(self, session: Optional[ClientSession] = None, user_agent: Optional[str] = None) -> None:
        self._session = ManagedSession(session)
        self.user_agent = user_agent or DEFAULT_USER_AGENT

    async def fetch(self, url: str, options: FetchOptions) -> FetchResult:
        timeout = options.timeout or self.default_timeout
        headers = {"User-Agent": options.user_agent or self.user_agent, **DEFAULT_HEADERS, **options.headers}
        if options.auth_state_path:
            cookies = cookie_header(options.auth_state_path, url)
            if cookies:
                headers["Cookie"] = cookies

        session = await self._session.get()
        try:
            async with session.get(
                url,
                headers=headers,
                allow_redirects=True,
                timeout=ClientTimeout(total=timeout),
            ) as resp:
                html = await resp.text(errors="replace")
                logger.debug("GET %s -> %s (%d chars)", url, resp.status, len(html))
                return FetchResult(
                    html=html,
                    status_code=resp.status,
                    final_url=str(resp.url),
                    headers={k: v for k, v in resp.headers.items()},
                )
        except asyncio.TimeoutError as exc:
            raise FetchError(self.name, url, f"Timeout after {timeout:.1f}s") from exc
        except ClientError as exc:
            raise FetchError(self.name, url, str(exc) or exc.__class__.__name__) from exc

    async def close(self) -> None:
        await self._session.close()
