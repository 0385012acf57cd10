# File: tests/test_detector.py
import pytest

from page_scout.engine.detector import (
    BlockDetector,
    BlockReason,
    DetectorThresholds,
    is_blocked,
    needs_browser,
)

ARTICLE = "<html><body><main><article>" + ("Plain article text about gardening. " * 200) + "</article></main></body></html>"


@pytest.mark.parametrize(
    "status,reason,confidence",
    [
        (403, BlockReason.FORBIDDEN, 0.9),
        (429, BlockReason.RATE_LIMIT, 0.95),
    ],
)
def test_status_codes_block_regardless_of_body(status, reason, confidence):
    check = is_blocked(ARTICLE, status)
    assert check.blocked
    assert check.reason is reason
    assert check.confidence == confidence


def test_503_with_challenge_marker():
    check = is_blocked("<html>Just a moment...</html>", 503)
    assert check.reason is BlockReason.CLOUDFLARE
    assert check.confidence == 0.95


def test_503_without_marker_is_not_a_challenge():
    assert not is_blocked(ARTICLE, 503).blocked


def test_short_body_with_challenge_word():
    check = is_blocked("<html><body>solve the challenge</body></html>", 200)
    assert check.reason is BlockReason.EMPTY_BODY
    assert check.confidence == 0.7


def test_cloudflare_needs_two_markers():
    page = "<html><title>Just a moment...</title><div id='cf-browser-verification'></div>" + "x" * 1000 + "</html>"
    check = is_blocked(page, 200)
    assert check.reason is BlockReason.CLOUDFLARE
    assert check.confidence == 0.9


def test_long_page_mentioning_provider_is_not_blocked():
    page = ARTICLE.replace("gardening", "gardening behind cloudflare", 1)
    assert not is_blocked(page, 200).blocked


def test_datadome_requires_short_body():
    markers = "datadome dd.js captcha-delivery.com "
    assert is_blocked("<html>" + markers + "y" * 5000 + "</html>", 200).reason is BlockReason.DATADOME
    assert not is_blocked("<html>" + markers + "y" * 60_000 + "</html>", 200).blocked


def test_perimeterx_single_marker():
    check = is_blocked("<html>" + "z" * 4000 + "<div id='px-captcha'></div></html>", 200)
    assert check.reason is BlockReason.ACCESS_DENIED
    assert check.confidence == 0.85


def test_captcha_widget_on_short_page():
    page = "<html><div class='g-recaptcha'></div>" + "w" * 4000 + "</html>"
    check = is_blocked(page, 200)
    assert check.reason is BlockReason.CAPTCHA
    assert check.confidence == 0.85


def test_generic_bot_phrase_on_short_page():
    page = "<html><body>" + "q" * 600 + " Access Denied </body></html>"
    check = is_blocked(page, 200)
    assert check.reason is BlockReason.ACCESS_DENIED
    assert check.confidence == 0.7


def test_javascript_required():
    page = (
        "<html><body><noscript>Please turn JavaScript on, JavaScript is required</noscript>"
        + "k" * 3500
        + "</body></html>"
    )
    check = is_blocked(page, 200)
    assert check.reason is BlockReason.JAVASCRIPT_REQUIRED
    assert check.confidence == 0.6


def test_normal_page_not_blocked():
    check = is_blocked(ARTICLE, 200)
    assert not check.blocked
    assert check.reason is None
    assert check.confidence == 0.0


def test_thresholds_are_configurable():
    detector = BlockDetector(DetectorThresholds(forbidden_confidence=0.5))
    assert detector.classify("", 403).confidence == 0.5


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://www.linkedin.com/in/someone", True),
        ("https://uk.linkedin.com/jobs", True),
        ("https://x.com/home", True),
        ("https://example.com", False),
        ("https://notlinkedin.com", False),
        ("not a url", False),
    ],
)
def test_needs_browser(url, expected):
    assert needs_browser(url) is expected
