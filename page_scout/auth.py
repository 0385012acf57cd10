"""Read-only access to stored browser sessions.

Sessions are JSON files, one per domain, holding a Playwright storage state::

    {"domain": "...", "createdAt": "...", "lastUsed": "...", "authState": {...}}

The crawler only asks whether a session exists and where it lives; writing
sessions belongs to the interactive login flow, which lives elsewhere.
"""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

__all__ = ("AuthStore", "default_auth_dir", "load_storage_state")

logger = logging.getLogger(__name__)

_UNSAFE_RE = re.compile(r"[^a-z0-9.-]", re.IGNORECASE)


def default_auth_dir() -> Path:
    return Path.home() / ".page_scout" / "auth"


class AuthStore:
    """File-based session lookup keyed by domain."""

    def __init__(self, auth_dir: Union[str, Path, None] = None) -> None:
        self.auth_dir = Path(auth_dir).expanduser() if auth_dir else default_auth_dir()

    def session_path(self, domain: str) -> Path:
        return self.auth_dir / f"{_UNSAFE_RE.sub('_', domain)}.json"

    def has_session(self, domain: str) -> bool:
        return self.session_path(domain).is_file()

    def load_state(self, domain: str) -> Optional[Dict[str, Any]]:
        """Return the stored storage state for *domain* or None if absent/unreadable."""
        return load_storage_state(self.session_path(domain))


def load_storage_state(path: Union[str, Path]) -> Optional[Dict[str, Any]]:
    """Read the ``authState`` part of a stored session file."""
    p = Path(path)
    if not p.is_file():
        return None
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable session file %s: %s", p, exc)
        return None
    state = data.get("authState") if isinstance(data, dict) else None
    return state if isinstance(state, dict) else None
