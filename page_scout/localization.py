# === FILE: page_scout/localization.py ===
"""Detection of locale markers in URLs (path segments, subdomains, query parameters)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit

__all__ = (
    "LANGUAGE_CODES",
    "COUNTRY_CODES",
    "FALSE_POSITIVE_SEGMENTS",
    "LOCALE_QUERY_PARAMS",
    "LocaleInfo",
    "extract_locale",
)

# ISO 639-1
LANGUAGE_CODES = frozenset(
    """
    en de fr es it pt nl pl ru ja ko zh ar hi tr vi th id ms sv no da fi cs el he hu ro sk uk
    bg hr lt lv et sl bn ta te mr gu kn ml pa ur km lo ne si tl mn fa ps sq mk sr bs is mt cy
    ga eu gl sw am af ha yo ig zu az uz kk ka hy tg
    """.split()
)

# ISO 3166-1 alpha-2 ("uk" kept alongside "gb", sites use both)
COUNTRY_CODES = frozenset(
    """
    us gb uk ca au nz ie de at ch fr be es it pt nl pl ru se no dk fi cz gr hu ro sk ua bg hr
    rs si lt lv ee jp kr cn tw hk sg my th vn ph mm kh la np lk bd pk in ae sa il eg ma dz tn
    lb jo kw qa bh om iq ir tr za ng ke gh tz ug et sn ci mx ar br co cl pe ec ve bo py uy cr
    pa gt hn ni cu do pr jm
    """.split()
)

# Two-letter segments that are usually English words, not locales.
FALSE_POSITIVE_SEGMENTS = frozenset(
    """
    us uk my in at be to do go so no id am is it me or as if an on up la ha pa om
    """.split()
)

LOCALE_QUERY_PARAMS = ("lang", "locale", "hl", "language")

_LEADING_RE = re.compile(r"^/([a-z]{2})(?:[-_]([a-z]{2}))?(?=/|$)", re.IGNORECASE)
_MID_PATH_RE = re.compile(r"/([a-z]{2})(?:[-_]([a-z]{2}))?(?=/)", re.IGNORECASE)


@dataclass(slots=True)
class LocaleInfo:
    has_locale: bool
    canonical_path: str
    canonical_host: str = ""
    locale: Optional[str] = None
    language: Optional[str] = None
    country: Optional[str] = None


def _split_code(first: str, second: Optional[str]) -> tuple[str, Optional[str], Optional[str]]:
    """Return (locale, language, country) for a ``xx`` / ``xx-yy`` pair."""
    language = first if first in LANGUAGE_CODES else None
    country = None if language else first
    if second and (second in COUNTRY_CODES or second in LANGUAGE_CODES):
        # /de-de/ style pairs reuse a language code as the region
        return f"{first}-{second}", language, second
    return first, language, country


def extract_locale(url: str) -> LocaleInfo:
    """Extract locale information and the locale-free canonical path from *url*.

    Checked in order: the first path segment (``/en``, ``/en-us``, ``/de_DE``;
    language or country codes), a later path segment (``/docs/es/guide``;
    common English words excluded), the leading host label (``de.example.com``;
    language codes only) and the ``lang``/``locale``/``hl``/``language`` query
    parameters. The canonical path has the locale segment and every locale
    query parameter removed; the canonical host drops a locale subdomain.
    """
    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
    except ValueError:
        return LocaleInfo(has_locale=False, canonical_path=url, canonical_host="")

    path = parts.path or "/"
    canonical_host = host
    locale: Optional[str] = None
    language: Optional[str] = None
    country: Optional[str] = None

    match = _LEADING_RE.match(path)
    if match:
        first = match.group(1).lower()
        second = match.group(2).lower() if match.group(2) else None
        if first in LANGUAGE_CODES or first in COUNTRY_CODES:
            locale, language, country = _split_code(first, second)
            path = path[match.end():] or "/"

    if locale is None:
        match = _MID_PATH_RE.search(path)
        if match:
            first = match.group(1).lower()
            second = match.group(2).lower() if match.group(2) else None
            known = first in LANGUAGE_CODES or first in COUNTRY_CODES
            if known and first not in FALSE_POSITIVE_SEGMENTS:
                language = first if first in LANGUAGE_CODES else None
                country = None if language else first
                if second and second in COUNTRY_CODES:
                    country = second
                    locale = f"{first}-{second}"
                else:
                    locale = first
                path = path[: match.start()] + path[match.end():]

    if locale is None:
        labels = host.split(".")
        if (
            len(labels) >= 3
            and labels[0] in LANGUAGE_CODES
            and labels[0] not in FALSE_POSITIVE_SEGMENTS
        ):
            locale = language = labels[0]
            canonical_host = ".".join(labels[1:])

    query = parse_qsl(parts.query, keep_blank_values=True)
    if locale is None:
        params = dict(query)
        value = next((params[k] for k in LOCALE_QUERY_PARAMS if params.get(k)), None)
        if value:
            pieces = re.split(r"[-_]", value.lower())
            if pieces[0] in LANGUAGE_CODES:
                language = pieces[0]
                if len(pieces) > 1 and pieces[1] in COUNTRY_CODES:
                    country = pieces[1]
                    locale = f"{pieces[0]}-{pieces[1]}"
                else:
                    locale = pieces[0]

    remaining = urlencode([(k, v) for k, v in query if k not in LOCALE_QUERY_PARAMS])
    canonical_path = f"{path}?{remaining}" if remaining else path

    return LocaleInfo(
        has_locale=locale is not None,
        canonical_path=canonical_path,
        canonical_host=canonical_host,
        locale=locale,
        language=language,
        country=country,
    )
