# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web

from page_scout.config import CrawlConfig

#: filler text long enough to pass the minimum word count of the crawler
FILLER = (
    "Gardens grow slowly through spring while careful people water every bed each morning. "
    "Tomatoes, beans and peppers share long rows beside the fence near the old stone wall. "
    "Neighbours trade seeds, stories and advice about soil, sunlight and patient harvest work."
)


def html_page(title: str, links: Iterable[str] = (), text: str = FILLER) -> str:
    """Simple article page with a title, some prose and a list of links."""
    anchors = "".join(f'<li><a href="{href}">{href}</a></li>' for href in links)
    return (
        f"<html><head><title>{title}</title></head><body><main><h1>{title}</h1>"
        f"<p>{text}</p><ul>{anchors}</ul></main></body></html>"
    )


@pytest.fixture()
def make_page() -> Callable[..., str]:
    return html_page


@pytest_asyncio.fixture
async def serve(unused_tcp_port_factory) -> AsyncIterator[Callable[[web.Application], Awaitable[str]]]:
    """Start aiohttp applications on free ports, yield a starter, clean up afterwards."""
    runners: list[web.AppRunner] = []

    async def _serve(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{port}"

    try:
        yield _serve
    finally:
        for runner in runners:
            await runner.cleanup()


@pytest.fixture()
def crawl_config(tmp_path: Path) -> CrawlConfig:
    """Fast configuration for crawler tests: plain HTTP only, short timeouts."""
    return CrawlConfig(
        depth=2,
        concurrency=5,
        max_pages=50,
        rate_limit=100,
        timeout=2.0,
        force_engine="fetch",
        install_browser=False,
        idle_timeout=5.0,
        robots_timeout=1.0,
        sitemap_timeout=1.0,
        auth_dir=tmp_path / "auth",
    )
