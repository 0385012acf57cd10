# File: tests/test_sitemap.py
import gzip

import pytest
from aiohttp import web

from page_scout.crawler.sitemap import SitemapDiscoverer
from page_scout.parser.sitemap_parser import (
    is_sitemap_index,
    parse_sitemap_index,
    parse_urlset,
    parse_with_metadata,
)

NS = 'xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"'


def urlset(urls, *, meta=False):
    entries = []
    for url in urls:
        extra = "<lastmod>2024-01-02</lastmod><changefreq>daily</changefreq><priority>0.8</priority>" if meta else ""
        entries.append(f"<url><loc>{url}</loc>{extra}</url>")
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset {NS}>{"".join(entries)}</urlset>'


def sitemap_index(children):
    entries = "".join(f"<sitemap><loc>{c}</loc></sitemap>" for c in children)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex {NS}>{entries}</sitemapindex>'


def xml_response(body: str) -> web.Response:
    return web.Response(text=body, content_type="application/xml")


def test_parse_urlset_and_metadata():
    content = urlset(["https://example.com/a", "https://example.com/b"], meta=True)
    assert not is_sitemap_index(content)
    assert parse_urlset(content) == ["https://example.com/a", "https://example.com/b"]
    entry = parse_with_metadata(content)[0]
    assert entry.loc == "https://example.com/a"
    assert entry.lastmod == "2024-01-02"
    assert entry.changefreq == "daily"
    assert entry.priority == 0.8


def test_parse_sitemap_index():
    content = sitemap_index(["https://example.com/s1.xml", "https://example.com/s2.xml"])
    assert is_sitemap_index(content)
    assert parse_sitemap_index(content) == ["https://example.com/s1.xml", "https://example.com/s2.xml"]


def test_garbage_parses_to_nothing():
    assert parse_urlset("") == []
    assert parse_urlset("this is not xml") == []
    assert not is_sitemap_index("<html><body>nope</body></html>")


@pytest.mark.asyncio()
async def test_index_expands_only_first_two_children_with_cap(serve):
    fetched = []
    app = web.Application()

    async def index(request):
        base = f"http://{request.host}"
        return xml_response(sitemap_index([f"{base}/child{i}.xml" for i in range(10)]))

    def child_handler(i):
        async def handler(request):
            fetched.append(i)
            base = f"http://{request.host}"
            return xml_response(urlset([f"{base}/c{i}/p{j}" for j in range(500)]))

        return handler

    app.router.add_get("/sitemap.xml", index)
    for i in range(10):
        app.router.add_get(f"/child{i}.xml", child_handler(i))
    base = await serve(app)

    discoverer = SitemapDiscoverer()
    try:
        urls = await discoverer.discover(base)
    finally:
        await discoverer.close()

    assert len(urls) == 200
    assert fetched == [0]  # the first child already fills the cap
    assert all("/c0/" in url for url in urls)


@pytest.mark.asyncio()
async def test_index_combines_two_small_children(serve):
    fetched = []
    app = web.Application()

    async def index(request):
        base = f"http://{request.host}"
        return xml_response(sitemap_index([f"{base}/child{i}.xml" for i in range(5)]))

    def child_handler(i):
        async def handler(request):
            fetched.append(i)
            return xml_response(urlset([f"http://{request.host}/c{i}/p{j}" for j in range(3)]))

        return handler

    app.router.add_get("/sitemap.xml", index)
    for i in range(5):
        app.router.add_get(f"/child{i}.xml", child_handler(i))
    base = await serve(app)

    discoverer = SitemapDiscoverer()
    try:
        urls = await discoverer.discover(base)
    finally:
        await discoverer.close()

    assert sorted(fetched) == [0, 1]
    assert len(urls) == 6


@pytest.mark.asyncio()
async def test_tries_fallback_locations_and_caches(serve):
    hits = {"sitemap.xml": 0, "sitemap_index.xml": 0}
    app = web.Application()

    async def missing(_):
        hits["sitemap.xml"] += 1
        return web.Response(status=404)

    async def index_location(request):
        hits["sitemap_index.xml"] += 1
        return xml_response(urlset([f"http://{request.host}/p{i}" for i in range(300)]))

    app.router.add_get("/sitemap.xml", missing)
    app.router.add_get("/sitemap_index.xml", index_location)
    base = await serve(app)

    discoverer = SitemapDiscoverer()
    try:
        first = await discoverer.discover(f"{base}/some/page")
        second = await discoverer.discover(base)
    finally:
        await discoverer.close()

    assert len(first) == 200
    assert first == second
    assert hits == {"sitemap.xml": 1, "sitemap_index.xml": 1}


@pytest.mark.asyncio()
async def test_gzipped_sitemap(serve):
    app = web.Application()

    async def gz(request):
        payload = gzip.compress(urlset([f"http://{request.host}/gz"]).encode("utf-8"))
        return web.Response(body=payload, content_type="application/octet-stream")

    app.router.add_get("/sitemap.xml.gz", gz)
    base = await serve(app)

    discoverer = SitemapDiscoverer()
    try:
        urls = await discoverer.discover_url(f"{base}/sitemap.xml.gz")
    finally:
        await discoverer.close()
    assert urls == [f"{base}/gz"]


@pytest.mark.asyncio()
async def test_metadata_prefers_news_sitemap(serve):
    app = web.Application()

    async def news(request):
        return xml_response(urlset([f"http://{request.host}/news/1"], meta=True))

    async def regular(request):
        return xml_response(urlset([f"http://{request.host}/regular"]))

    app.router.add_get("/news-sitemap.xml", news)
    app.router.add_get("/sitemap.xml", regular)
    base = await serve(app)

    discoverer = SitemapDiscoverer()
    try:
        entries = await discoverer.discover_with_metadata(base)
    finally:
        await discoverer.close()

    assert [e.loc for e in entries] == [f"{base}/news/1"]
    assert entries[0].changefreq == "daily"


@pytest.mark.asyncio()
async def test_failures_yield_empty_lists(serve, unused_tcp_port):
    base = await serve(web.Application())
    discoverer = SitemapDiscoverer(timeout=1.0, metadata_timeout=1.0)
    try:
        assert await discoverer.discover(base) == []
        assert await discoverer.discover_with_metadata(base) == []
        assert await discoverer.discover_url(f"http://127.0.0.1:{unused_tcp_port}/sitemap.xml") == []
        assert await discoverer.discover("not a url") == []
    finally:
        await discoverer.close()
