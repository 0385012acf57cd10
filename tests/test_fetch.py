# File: tests/test_fetch.py
import asyncio
import json

import pytest
from aiohttp import web

from page_scout.engine.base import FetchOptions
from page_scout.engine.fetch import HttpStrategy, cookie_header
from page_scout.errors import FetchError


@pytest.mark.asyncio()
async def test_http_strategy_follows_redirects_and_sends_headers(serve):
    seen = {}

    async def start(_):
        raise web.HTTPFound("/final")

    async def final(request):
        seen["ua"] = request.headers.get("User-Agent")
        seen["accept"] = request.headers.get("Accept")
        return web.Response(text="<html>done</html>", content_type="text/html")

    app = web.Application()
    app.router.add_get("/start", start)
    app.router.add_get("/final", final)
    base = await serve(app)

    strategy = HttpStrategy(user_agent="TestAgent/1.0")
    try:
        result = await strategy.fetch(f"{base}/start", FetchOptions())
    finally:
        await strategy.close()

    assert result.status_code == 200
    assert result.final_url == f"{base}/final"
    assert result.html == "<html>done</html>"
    assert seen["ua"] == "TestAgent/1.0"
    assert seen["accept"].startswith("text/html")


@pytest.mark.asyncio()
async def test_http_strategy_returns_error_statuses(serve):
    app = web.Application()
    base = await serve(app)
    strategy = HttpStrategy()
    try:
        result = await strategy.fetch(f"{base}/missing", FetchOptions())
    finally:
        await strategy.close()
    assert result.status_code == 404


@pytest.mark.asyncio()
async def test_http_strategy_timeout(serve):
    async def slow(_):
        await asyncio.sleep(2)
        return web.Response(text="late")

    app = web.Application()
    app.router.add_get("/slow", slow)
    base = await serve(app)

    strategy = HttpStrategy()
    try:
        with pytest.raises(FetchError, match="fetch: Timeout after 0.2s"):
            await strategy.fetch(f"{base}/slow", FetchOptions(timeout=0.2))
    finally:
        await strategy.close()


@pytest.mark.asyncio()
async def test_http_strategy_connection_error(unused_tcp_port):
    strategy = HttpStrategy()
    try:
        with pytest.raises(FetchError) as info:
            await strategy.fetch(f"http://127.0.0.1:{unused_tcp_port}/", FetchOptions(timeout=1.0))
    finally:
        await strategy.close()
    assert info.value.strategy == "fetch"


def _write_state(tmp_path):
    path = tmp_path / "example.com.json"
    path.write_text(
        json.dumps(
            {
                "domain": "example.com",
                "authState": {
                    "cookies": [
                        {"name": "sid", "value": "abc", "domain": ".example.com"},
                        {"name": "other", "value": "x", "domain": "other.org"},
                    ],
                    "origins": [],
                },
            }
        ),
        encoding="utf-8",
    )
    return path


def test_cookie_header_matches_host(tmp_path):
    path = _write_state(tmp_path)
    assert cookie_header(str(path), "https://www.example.com/page") == "sid=abc"
    assert cookie_header(str(path), "https://unrelated.net/") is None
    assert cookie_header(str(tmp_path / "missing.json"), "https://example.com/") is None


@pytest.mark.asyncio()
async def test_http_strategy_sends_stored_cookies(serve, tmp_path):
    seen = {}

    async def page(request):
        seen["cookie"] = request.headers.get("Cookie")
        return web.Response(text="ok")

    app = web.Application()
    app.router.add_get("/", page)
    base = await serve(app)

    path = tmp_path / "local.json"
    path.write_text(
        json.dumps({"authState": {"cookies": [{"name": "token", "value": "t1", "domain": "127.0.0.1"}]}}),
        encoding="utf-8",
    )
    strategy = HttpStrategy()
    try:
        await strategy.fetch(f"{base}/", FetchOptions(auth_state_path=str(path)))
    finally:
        await strategy.close()
    assert seen["cookie"] == "token=t1"
