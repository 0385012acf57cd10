# File: page_scout/utils.py
"""page_scout.utils: Утилитарные функции для нормализации URL, проверки доменов и фильтрации ресурсов."""

from __future__ import annotations

from typing import Optional, Sequence
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit

from page_scout.logger import logger

__all__: Sequence[str] = (
    "TRACKING_PARAMS",
    "SKIP_EXTENSIONS",
    "normalize_url",
    "get_base_domain",
    "extract_domain",
    "should_skip_url",
    "resolve_url",
)

TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_content",
        "utm_term",
        "ref",
        "fbclid",
        "gclid",
    }
)

SKIP_EXTENSIONS = (
    ".pdf", ".jpg", ".jpeg", ".png", ".gif", ".svg", ".ico", ".webp", ".avif",
    ".css", ".js", ".mjs", ".cjs", ".ts", ".tsx", ".jsx",
    ".woff", ".woff2", ".ttf", ".eot", ".otf",
    ".mp4", ".mp3", ".wav", ".ogg", ".webm", ".avi", ".mov",
    ".zip", ".tar", ".gz", ".rar", ".7z", ".exe", ".dmg", ".pkg", ".deb", ".rpm",
    ".json", ".xml", ".yaml", ".yml", ".toml",
    ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
)

_SKIP_SCHEMES = ("mailto:", "javascript:", "tel:")


def _with_scheme(url: str) -> str:
    return url if "://" in url else f"https://{url}"


def normalize_url(url: str) -> str:
    """Нормализует URL для дедупликации.

    Добавляет схему при её отсутствии, приводит схему и хост к нижнему регистру,
    убирает трекинговые параметры, завершающий слеш и фрагмент.
    Повторная нормализация возвращает тот же результат.
    """
    parts = urlsplit(_with_scheme(url.strip()))
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    path = parts.path.rstrip("/") or "/"
    query_items = [
        (k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in TRACKING_PARAMS
    ]
    query = urlencode(query_items, doseq=True)
    normalized = f"{scheme}://{netloc}{path}"
    if query:
        normalized = f"{normalized}?{query}"
    return normalized


def get_base_domain(url: str) -> str:
    """Возвращает хост без префикса ``www.`` (в нижнем регистре)."""
    host = urlsplit(_with_scheme(url)).hostname or ""
    return host[4:] if host.startswith("www.") else host


def extract_domain(url: str) -> str:
    """Возвращает хост URL без дополнительных преобразований."""
    return urlsplit(url).hostname or url


def should_skip_url(url: str) -> bool:
    """Проверяет, что URL указывает не на HTML-документ (изображения, архивы, mailto: и т.д.)."""
    if url.startswith(_SKIP_SCHEMES):
        return True
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return True
    return path.endswith(SKIP_EXTENSIONS)


def resolve_url(href: str, base_url: str) -> Optional[str]:
    """Разрешает относительную ссылку относительно base_url; якоря и mailto: отбрасываются."""
    href = href.strip()
    if not href or href.startswith("#") or href.startswith(_SKIP_SCHEMES):
        return None
    try:
        absolute = urljoin(base_url, href)
        scheme = urlsplit(absolute).scheme
    except ValueError as exc:
        logger.debug("Cannot resolve %r against %s: %s", href, base_url, exc)
        return None
    if scheme not in ("http", "https"):
        return None
    return absolute
