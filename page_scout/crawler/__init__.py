"""Crawl scheduling: queue, robots.txt, sitemap discovery and the crawler itself."""
