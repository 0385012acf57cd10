"""Block detection heuristics for anti-bot systems.

The marker lists are heuristic. Confidences and size ceilings live in
:class:`DetectorThresholds` so they can be recalibrated without code changes.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence
from urllib.parse import urlsplit

__all__ = (
    "BlockReason",
    "BlockCheck",
    "DetectorThresholds",
    "BlockDetector",
    "KNOWN_PROTECTED_DOMAINS",
    "is_blocked",
    "needs_browser",
)


class BlockReason(str, Enum):
    CLOUDFLARE = "cloudflare"
    DATADOME = "datadome"
    CAPTCHA = "captcha"
    RATE_LIMIT = "rate_limit"
    FORBIDDEN = "forbidden"
    EMPTY_BODY = "empty_body"
    JAVASCRIPT_REQUIRED = "javascript_required"
    ACCESS_DENIED = "access_denied"


@dataclass(frozen=True, slots=True)
class BlockCheck:
    blocked: bool
    reason: Optional[BlockReason] = None
    confidence: float = 0.0


CLOUDFLARE_PATTERNS = (
    re.compile(r"Checking your browser", re.I),
    re.compile(r"cf-browser-verification", re.I),
    re.compile(r"cloudflare", re.I),
    re.compile(r"_cf_chl_opt"),
    re.compile(r"challenge-platform", re.I),
    re.compile(r"Just a moment\.\.\.", re.I),
    re.compile(r"ray id:", re.I),
    re.compile(r"cf-turnstile", re.I),
)

DATADOME_PATTERNS = (
    re.compile(r"datadome", re.I),
    re.compile(r"dd\.js"),
    re.compile(r"captcha-delivery\.com"),
    re.compile(r"geo\.captcha-delivery\.com"),
)

PERIMETERX_PATTERNS = (
    re.compile(r"perimeterx", re.I),
    re.compile(r"px-captcha", re.I),
    re.compile(r"_pxhd"),
    re.compile(r"human challenge", re.I),
)

AKAMAI_PATTERNS = (
    re.compile(r"akamai", re.I),
    re.compile(r"ak_bmsc"),
    re.compile(r"_abck"),
)

BOT_DETECTION_PATTERNS = (
    re.compile(r"access denied", re.I),
    re.compile(r"please verify you are human", re.I),
    re.compile(r"enable javascript", re.I),
    re.compile(r"browser.*not supported", re.I),
    re.compile(r"automated access", re.I),
    re.compile(r"bot detected", re.I),
    re.compile(r"please complete the security check", re.I),
    re.compile(r"unusual traffic", re.I),
    re.compile(r"blocked", re.I),
    re.compile(r"forbidden", re.I),
    re.compile(r"not allowed", re.I),
)

CAPTCHA_PATTERNS = (
    re.compile(r"recaptcha", re.I),
    re.compile(r"hcaptcha", re.I),
    re.compile(r"g-recaptcha"),
    re.compile(r"h-captcha"),
    re.compile(r"captcha", re.I),
    re.compile(r"turnstile", re.I),
)

KNOWN_PROTECTED_DOMAINS = frozenset(
    {
        "linkedin.com",
        "instagram.com",
        "facebook.com",
        "twitter.com",
        "x.com",
        "tiktok.com",
        "indeed.com",
        "glassdoor.com",
        "zillow.com",
        "yelp.com",
    }
)


@dataclass(frozen=True)
class DetectorThresholds:
    """Calibration of :class:`BlockDetector`. Confidences are targets, not guarantees."""

    forbidden_confidence: float = 0.9
    rate_limit_confidence: float = 0.95
    challenge_503_confidence: float = 0.95

    min_substantive_length: int = 500
    empty_body_markers: Sequence[str] = field(default=("challenge", "captcha"))
    empty_body_confidence: float = 0.7

    cloudflare_min_matches: int = 2
    cloudflare_confidence: float = 0.9
    datadome_min_matches: int = 2
    datadome_confidence: float = 0.9
    perimeterx_min_matches: int = 1
    perimeterx_confidence: float = 0.85
    akamai_min_matches: int = 2
    akamai_confidence: float = 0.8
    provider_max_length: int = 50_000

    captcha_min_matches: int = 2
    captcha_max_length: int = 10_000
    captcha_confidence: float = 0.85

    generic_max_length: int = 3_000
    generic_confidence: float = 0.7

    javascript_max_length: int = 5_000
    javascript_confidence: float = 0.6


def _count(patterns: Sequence[re.Pattern[str]], body: str) -> int:
    return sum(1 for p in patterns if p.search(body))


class BlockDetector:
    """Classifies a response as a normal page or an anti-bot block page."""

    def __init__(self, thresholds: Optional[DetectorThresholds] = None) -> None:
        self.thresholds = thresholds or DetectorThresholds()

    def classify(self, body: str, status_code: int, url: str = "") -> BlockCheck:
        t = self.thresholds
        body = body or ""
        length = len(body)

        if status_code == 403:
            return BlockCheck(True, BlockReason.FORBIDDEN, t.forbidden_confidence)
        if status_code == 429:
            return BlockCheck(True, BlockReason.RATE_LIMIT, t.rate_limit_confidence)
        if status_code == 503 and _count(CLOUDFLARE_PATTERNS, body) >= 1:
            return BlockCheck(True, BlockReason.CLOUDFLARE, t.challenge_503_confidence)

        if length < t.min_substantive_length and any(m in body for m in t.empty_body_markers):
            return BlockCheck(True, BlockReason.EMPTY_BODY, t.empty_body_confidence)

        if _count(CLOUDFLARE_PATTERNS, body) >= t.cloudflare_min_matches:
            return BlockCheck(True, BlockReason.CLOUDFLARE, t.cloudflare_confidence)

        short_for_provider = length < t.provider_max_length
        if short_for_provider and _count(DATADOME_PATTERNS, body) >= t.datadome_min_matches:
            return BlockCheck(True, BlockReason.DATADOME, t.datadome_confidence)
        if short_for_provider and _count(PERIMETERX_PATTERNS, body) >= t.perimeterx_min_matches:
            return BlockCheck(True, BlockReason.ACCESS_DENIED, t.perimeterx_confidence)
        if short_for_provider and _count(AKAMAI_PATTERNS, body) >= t.akamai_min_matches:
            return BlockCheck(True, BlockReason.ACCESS_DENIED, t.akamai_confidence)

        # long pages with captcha widgets are usually forms, not challenges
        if length < t.captcha_max_length and _count(CAPTCHA_PATTERNS, body) >= t.captcha_min_matches:
            return BlockCheck(True, BlockReason.CAPTCHA, t.captcha_confidence)

        if length < t.generic_max_length and _count(BOT_DETECTION_PATTERNS, body) >= 1:
            return BlockCheck(True, BlockReason.ACCESS_DENIED, t.generic_confidence)

        if (
            "noscript" in body
            and ("enable javascript" in body or "JavaScript is required" in body)
            and "<article" not in body
            and "<main" not in body
            and length < t.javascript_max_length
        ):
            return BlockCheck(True, BlockReason.JAVASCRIPT_REQUIRED, t.javascript_confidence)

        return BlockCheck(False, None, 0.0)


_DEFAULT_DETECTOR = BlockDetector()


def is_blocked(body: str, status_code: int, url: str = "") -> BlockCheck:
    """Classify with the default thresholds."""
    return _DEFAULT_DETECTOR.classify(body, status_code, url)


def needs_browser(url: str) -> bool:
    """True for hosts known to reject plain HTTP clients outright."""
    try:
        host = urlsplit(url).hostname or ""
    except ValueError:
        return False
    host = host.replace("www.", "", 1)
    if host in KNOWN_PROTECTED_DOMAINS:
        return True
    return any(host.endswith(f".{domain}") for domain in KNOWN_PROTECTED_DOMAINS)
