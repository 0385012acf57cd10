"""Contract shared by every fetch strategy."""
from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import ClassVar, Dict, Optional

from page_scout.config import EngineName

__all__ = ("FetchOptions", "FetchResult", "FetchStrategy")


@dataclass(frozen=True)
class FetchOptions:
    """Per-call fetch options.

    ``timeout`` is in seconds; ``None`` means "use the strategy default".
    """

    timeout: Optional[float] = None
    user_agent: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    force_engine: Optional[EngineName] = None
    auth_state_path: Optional[str] = None


@dataclass(slots=True)
class FetchResult:
    html: str
    status_code: int
    final_url: str
    headers: Dict[str, str] = field(default_factory=dict)


class FetchStrategy(abc.ABC):
    """One way of turning a URL into HTML.

    Implementations raise :class:`page_scout.errors.FetchError` for network
    failures and timeouts, and must release every resource in :meth:`close`.
    """

    name: ClassVar[str]
    default_timeout: ClassVar[float]
    requires_browser: ClassVar[bool] = False

    @abc.abstractmethod
    async def fetch(self, url: str, options: FetchOptions) -> FetchResult:
        """Fetch *url*; never returns partial results."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Tear down sessions, browsers and contexts owned by the strategy."""
