"""Lazily created aiohttp session shared by one component."""
from __future__ import annotations

from typing import Mapping, Optional

from aiohttp import ClientSession

__all__ = ("ManagedSession",)


class ManagedSession:
    """Wraps an optional externally supplied :class:`ClientSession`.

    When no session is supplied one is created on first use (inside the running
    event loop) and closed by :meth:`close`; a supplied session is never closed.
    """

    def __init__(
        self,
        session: Optional[ClientSession] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._session = session
        self._owned = session is None
        self._headers = dict(headers or {})

    async def get(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession(headers=self._headers, raise_for_status=False)
            self._owned = True
        return self._session

    async def close(self) -> None:
        if self._owned and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owned:
            self._session = None
