# File: tests/test_dedup.py
import pytest

from page_scout.dedup import DedupTracker, calculate_similarity, generate_fingerprint
from page_scout.localization import extract_locale


@pytest.mark.parametrize(
    "url,locale,language,country,canonical_path",
    [
        ("https://example.com/en/docs", "en", "en", None, "/docs"),
        ("https://example.com/en-us/docs/", "en-us", "en", "us", "/docs/"),
        ("https://example.com/de_DE/hilfe", "de-de", "de", "de", "/hilfe"),
        ("https://example.com/fr", "fr", "fr", None, "/"),
        ("https://example.com/docs/es/guide", "es", "es", None, "/docs/guide"),
        ("https://example.com/docs?lang=pt-br&page=2", "pt-br", "pt", "br", "/docs?page=2"),
    ],
)
def test_extract_locale(url, locale, language, country, canonical_path):
    info = extract_locale(url)
    assert info.has_locale
    assert info.locale == locale
    assert info.language == language
    assert info.country == country
    assert info.canonical_path == canonical_path


def test_locale_subdomain():
    info = extract_locale("https://de.example.com/produkte")
    assert info.locale == "de"
    assert info.canonical_host == "example.com"
    assert info.canonical_path == "/produkte"


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/docs/guide",
        "https://example.com/blog/to/read",  # common English word, not a locale
        "https://example.com/about/us/team",
        "https://example.com/page1",
        "https://example.com/",
    ],
)
def test_no_locale(url):
    info = extract_locale(url)
    assert not info.has_locale
    assert info.locale is None


def test_localized_variant_is_skipped_after_base():
    tracker = DedupTracker("en")
    assert not tracker.should_skip("https://example.com/docs").skip
    decision = tracker.should_skip("https://example.com/de/docs")
    assert decision.skip
    assert decision.reason == "locale:de"
    assert tracker.get_stats()["locale_skipped"] == 1


def test_preferred_language_replaces_representative():
    tracker = DedupTracker("en")
    assert not tracker.should_skip("https://example.com/fr/guide").skip
    assert not tracker.should_skip("https://example.com/en/guide").skip
    assert tracker.representative("https://example.com/guide") == "https://example.com/en/guide"
    # once English holds the key other locales are rejected
    assert tracker.should_skip("https://example.com/de/guide").reason == "locale:de"


def test_two_non_preferred_locales():
    tracker = DedupTracker("en")
    assert not tracker.should_skip("https://example.com/fr/guide").skip
    assert tracker.should_skip("https://example.com/es/guide").reason == "locale:es"
    assert tracker.representative("https://example.com/guide") == "https://example.com/fr/guide"


def test_should_skip_is_idempotent_for_representative():
    tracker = DedupTracker("en")
    url = "https://example.com/de/start"
    assert not tracker.should_skip(url).skip
    assert not tracker.should_skip(url).skip
    assert tracker.get_stats()["total"] == 1


def test_different_paths_are_independent():
    tracker = DedupTracker()
    assert not tracker.should_skip("https://example.com/a").skip
    assert not tracker.should_skip("https://example.com/b").skip
    assert tracker.get_stats()["unique_paths"] == 2


def test_fingerprint_samples_long_text():
    short = generate_fingerprint("Hello,   World!")
    assert short == "hello world"
    long_fp = generate_fingerprint("word " * 1000)
    assert long_fp.count("|") == 2
    assert len(long_fp) <= 3 * 300 + 2


def test_similarity():
    assert calculate_similarity("alpha beta gamma delta", "alpha beta gamma delta") == 1.0
    assert calculate_similarity("", "something") == 0.0
    assert calculate_similarity("alpha beta gamma delta", "epsilon zeta theta iota") == 0.0
    assert calculate_similarity("alpha beta gamma delta", "alpha beta gamma omega") == pytest.approx(0.6)


def test_content_similarity_check():
    tracker = DedupTracker()
    text = "Gardens need water, sunlight and patience before harvest season arrives again."
    assert not tracker.check_content_similarity("https://example.com/a", text).skip
    decision = tracker.check_content_similarity("https://example.com/b", text + " Indeed.")
    assert decision.skip
    assert decision.reason.startswith("similar:")
    assert not tracker.check_content_similarity("https://example.com/c", "Completely unrelated words about trains").skip
    stats = tracker.get_stats()
    assert stats["similar_skipped"] == 1
    assert stats["unique_content"] == 2
