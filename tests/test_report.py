# File: tests/test_report.py
import json

from page_scout.aggregator import aggregate_results
from page_scout.crawler.models import CrawlResult
from page_scout.parser.html_parser import ExtractResult
from page_scout.report import render_html, render_json


def make_result(path: str, strategy: str = "fetch", words: int = 10) -> CrawlResult:
    url = f"https://example.com{path}"
    return CrawlResult(
        url=url,
        final_url=url,
        extracted=ExtractResult(
            title=f"Title {path}",
            document="text " * words,
            description="<b>desc</b>",
            word_count=words,
            byte_size=words * 5,
        ),
        depth=path.count("/"),
        strategy_used=strategy,
    )


def test_aggregate_results():
    results = [make_result("/a"), make_result("/b", "playwright", 5), make_result("/c")]
    report = aggregate_results(results, {"visited": 3})

    assert [p["url"] for p in report.pages] == [r.url for r in results]
    assert report.strategies == {"fetch": 2, "playwright": 1}
    assert report.total_words == 25
    assert report.stats == {"visited": 3}
    assert report.raw_results == results
    assert "raw_results" not in report.to_dict()


def test_report_json_is_serializable():
    report = aggregate_results([make_result("/a")])
    data = json.loads(report.json(pretty=True))
    assert data["pages"][0]["title"] == "Title /a"
    assert data["pages"][0]["strategy"] == "fetch"
    assert data["stats"] == {}


def test_render_json_and_html(tmp_path):
    report = aggregate_results([make_result("/a")], {"visited": 1, "blocked": 0})

    json_path = render_json(report, tmp_path / "nested" / "report.json")
    assert json.loads(json_path.read_text(encoding="utf-8"))["stats"]["visited"] == 1

    html_path = render_html(report, tmp_path / "report.html")
    html = html_path.read_text(encoding="utf-8")
    assert "Title /a" in html
    assert "https://example.com/a" in html
    assert "1 pages, 10 words." in html
