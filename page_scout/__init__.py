# page_scout/__init__.py
"""
page_scout package initializer.
Defines package version; the crawler lives in :mod:`page_scout.crawler.crawler`.
"""
__version__ = "0.1.0"
