# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from page_scout.config import CrawlConfig, load_config, override_config

REPO_ROOT = Path(__file__).resolve().parent.parent


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("depth: 1\nmax_pages: 5", ".yaml", None),
        (json.dumps({"depth": 1, "max_pages": 5}), ".json", None),
        ("depth: 1\nmax_pages: 5", ".yml", None),
        ("{}", ".json", None),
        ("depth: -1", ".yaml", ValidationError),
        ("unknown_option: 1", ".yaml", ValidationError),
        ("not: a: mapping", ".yaml", ValueError),
        ("- a\n- b", ".yaml", TypeError),
        ("[1, 2]", ".json", TypeError),
        ("{broken", ".json", ValueError),
        ("depth = 1", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, CrawlConfig)
        if content != "{}":
            assert cfg.depth == 1
            assert cfg.max_pages == 5


def test_load_config_default_missing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        load_config(None)


def test_load_config_explicit_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_shipped_default_matches_model_defaults(monkeypatch):
    monkeypatch.chdir(REPO_ROOT)
    assert load_config(None).model_dump() == CrawlConfig().model_dump()


def test_defaults():
    cfg = CrawlConfig()
    assert cfg.depth == 2
    assert cfg.concurrency == 10
    assert cfg.max_pages == 150
    assert cfg.rate_limit == 10
    assert cfg.respect_robots and cfg.use_sitemap
    assert cfg.force_engine is None
    assert cfg.preferred_language == "en"


def test_patterns_and_language_are_normalized():
    cfg = CrawlConfig(include_pattern=r"/docs/\d+", preferred_language="DE")
    assert cfg.include_pattern.search("https://example.com/docs/42")
    assert cfg.preferred_language == "de"


def test_config_is_frozen():
    cfg = CrawlConfig()
    with pytest.raises(ValidationError):
        cfg.depth = 5


def test_override_config_replaces_only_given_fields():
    base = CrawlConfig(include_pattern="blog", auth_dir="/tmp/sessions")
    cfg = override_config(base, depth=0, max_pages=None, force_engine="stealth")

    assert cfg is not base
    assert cfg.depth == 0
    assert cfg.max_pages == base.max_pages
    assert cfg.force_engine == "stealth"
    assert cfg.include_pattern.pattern == "blog"
    assert cfg.auth_dir == Path("/tmp/sessions")
    assert base.depth == 2


def test_override_config_without_changes_returns_same_object():
    base = CrawlConfig()
    assert override_config(base, depth=None) is base


def test_override_config_validates():
    with pytest.raises(ValidationError):
        override_config(CrawlConfig(), concurrency=0)
    with pytest.raises(ValidationError):
        override_config(CrawlConfig(), force_engine="curl")


def test_sitemap_limit_respects_page_budget():
    assert CrawlConfig(max_pages=10).sitemap_limit == 10
    assert CrawlConfig(max_pages=500, sitemap_seed_limit=50).sitemap_limit == 50
