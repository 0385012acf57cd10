"""URL-level and content-level duplicate suppression.

* Localized variants of one page (``/en/docs``, ``/de/docs``, ``?lang=fr``) share a
  canonical key; only one representative per key is crawled, preferring the
  configured language.
* Near-duplicate content is detected by Jaccard similarity over sampled
  fingerprints. The scheduler does not call this itself; it is offered to
  callers that want content-level dedup on top of URL-level dedup.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional

from page_scout.localization import extract_locale

__all__ = (
    "SkipDecision",
    "DedupStats",
    "DedupTracker",
    "generate_fingerprint",
    "calculate_similarity",
)

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"[^\w\s]")

_SAMPLE_THRESHOLD = 500
_SAMPLE_SIZE = 300


@dataclass(slots=True)
class SkipDecision:
    skip: bool
    reason: Optional[str] = None


@dataclass(slots=True)
class _Representative:
    url: str
    locale: Optional[str] = None


@dataclass
class DedupStats:
    locale_skipped: int = 0
    similar_skipped: int = 0
    total: int = 0


def generate_fingerprint(text: str) -> str:
    """Normalize *text* and, for long texts, sample its start, middle and end."""
    normalized = _PUNCT_RE.sub("", _WHITESPACE_RE.sub(" ", text.lower())).strip()
    length = len(normalized)
    if length < _SAMPLE_THRESHOLD:
        return normalized
    half = _SAMPLE_SIZE // 2
    middle = length // 2
    start = normalized[:_SAMPLE_SIZE]
    centre = normalized[middle - half: middle + half]
    end = normalized[-_SAMPLE_SIZE:]
    return f"{start}|{centre}|{end}"


def calculate_similarity(fp1: str, fp2: str) -> float:
    """Jaccard similarity (0..1) of the word sets (words longer than 3 chars)."""
    if fp1 == fp2:
        return 1.0
    if not fp1 or not fp2:
        return 0.0
    words1 = {w for w in fp1.split() if len(w) > 3}
    words2 = {w for w in fp2.split() if len(w) > 3}
    if not words1 or not words2:
        return 0.0
    intersection = len(words1 & words2)
    union = len(words1) + len(words2) - intersection
    return intersection / union


class DedupTracker:
    """Tracks canonical-path occupancy and content fingerprints for one crawl."""

    def __init__(self, preferred_language: str = "en") -> None:
        self.preferred_language = preferred_language.lower()
        self.stats = DedupStats()
        self._canonical: Dict[str, _Representative] = {}
        self._fingerprints: Dict[str, str] = {}

    @staticmethod
    def canonical_key(url: str) -> str:
        info = extract_locale(url)
        return f"{info.canonical_host}{info.canonical_path}"

    def representative(self, url: str) -> Optional[str]:
        """Return the URL currently representing *url*'s canonical key."""
        entry = self._canonical.get(self.canonical_key(url))
        return entry.url if entry else None

    def should_skip(self, url: str) -> SkipDecision:
        """Decide whether *url* is a locale variant of an already admitted page.

        Re-checking the current representative itself is always accepted, so the
        decision is stable for a URL that has already been recorded.
        """
        info = extract_locale(url)
        key = f"{info.canonical_host}{info.canonical_path}"
        existing = self._canonical.get(key)

        if existing is not None and existing.url == url:
            return SkipDecision(skip=False)

        if existing is not None and info.has_locale:
            existing_info = extract_locale(existing.url)
            if existing_info.language == self.preferred_language or not existing_info.has_locale:
                self.stats.locale_skipped += 1
                return SkipDecision(skip=True, reason=f"locale:{info.locale}")
            if info.language == self.preferred_language:
                self._canonical[key] = _Representative(url=url, locale=info.locale)
                return SkipDecision(skip=False)
            self.stats.locale_skipped += 1
            return SkipDecision(skip=True, reason=f"locale:{info.locale}")

        self._canonical[key] = _Representative(url=url, locale=info.locale)
        self.stats.total += 1
        return SkipDecision(skip=False)

    def check_content_similarity(self, url: str, content: str, threshold: float = 0.85) -> SkipDecision:
        fingerprint = generate_fingerprint(content)
        for existing in self._fingerprints.values():
            similarity = calculate_similarity(fingerprint, existing)
            if similarity >= threshold:
                self.stats.similar_skipped += 1
                return SkipDecision(skip=True, reason=f"similar:{similarity * 100:.0f}%")
        self._fingerprints[url] = fingerprint
        return SkipDecision(skip=False)

    def get_stats(self) -> Dict[str, int]:
        return {
            "locale_skipped": self.stats.locale_skipped,
            "similar_skipped": self.stats.similar_skipped,
            "total": self.stats.total,
            "unique_paths": len(self._canonical),
            "unique_content": len(self._fingerprints),
        }
