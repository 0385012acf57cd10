"""Exception hierarchy for page_scout."""
from __future__ import annotations

__all__ = (
    "PageScoutError",
    "FetchError",
    "BrowserUnavailableError",
    "AllEnginesFailedError",
    "EmptyFrontierError",
)


class PageScoutError(Exception):
    """Base class for every error raised by page_scout."""


class FetchError(PageScoutError):
    """A single fetch strategy failed (network error, timeout, browser crash)."""

    def __init__(self, strategy: str, url: str, message: str) -> None:
        super().__init__(f"{strategy}: {message}")
        self.strategy = strategy
        self.url = url


class BrowserUnavailableError(PageScoutError):
    """The browser runtime is missing and could not be installed."""


class AllEnginesFailedError(PageScoutError):
    """Every strategy left in the waterfall failed or was blocked."""

    def __init__(self, url: str) -> None:
        super().__init__(f"All engines failed for {url}")
        self.url = url


class EmptyFrontierError(PageScoutError):
    """The crawl was started without a single usable seed URL."""
