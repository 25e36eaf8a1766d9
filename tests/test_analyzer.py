import time

import pytest
import requests

import config as cfg
from analyzer import WebsiteAnalyzer, build_report, normalise_target_url
from exceptions import FetchError, InvalidURLError

from conftest import ALL_SECURITY_HEADERS, page


# ── URL validation ─────────────────────────────────────────────────────────────

def test_bare_host_gets_https():
    assert normalise_target_url(" example.com ") == "https://example.com"
    assert normalise_target_url("http://example.com/a") == "http://example.com/a"


@pytest.mark.parametrize("bad", [
    "", "   ", None, "ftp://example.com", "https://", "http://exa mple.com",
    "http://[::1", "https://exa]mple.com", "https://example.com:abc/", "https://example.com:99999",
])
def test_invalid_urls_rejected(bad):
    with pytest.raises(InvalidURLError):
        normalise_target_url(bad)


def test_invalid_url_rejected_before_any_request(fake_session):
    session = fake_session()
    with pytest.raises(InvalidURLError):
        WebsiteAnalyzer("mailto://someone", session=session)
    assert session.calls == []


# ── Report assembly ────────────────────────────────────────────────────────────

def test_report_shape_and_json_contract(wordpress_page):
    report = build_report(wordpress_page, "https://example.com", timestamp="2024-01-01T00:00:00Z")
    data = report.to_dict()

    assert set(data) == {"url", "timestamp", "security", "gdpr", "accessibility",
                         "overallScore", "grade", "categoryScores", "recommendations"}
    assert data["security"]["isWordPress"] is True
    assert data["security"]["wordpressVersion"] == "6.5"
    assert data["categoryScores"] == {"security": report.security.score,
                                      "gdpr": report.gdpr.score,
                                      "accessibility": report.accessibility.score}
    assert len(data["gdpr"]["trackers"]) == 10
    assert isinstance(data["recommendations"], list)


def test_overall_score_uses_category_scores(wordpress_page):
    report = build_report(wordpress_page, "https://example.com")
    s = report.category_scores
    assert report.overall_score == int(s.security * 0.5 + s.gdpr * 0.25 + s.accessibility * 0.25 + 0.5)


def test_reports_are_identical_apart_from_timestamp(wordpress_page):
    first = build_report(wordpress_page, "https://example.com", timestamp="2024-01-01T00:00:00Z")
    second = build_report(wordpress_page, "https://example.com", timestamp="2024-06-01T12:30:00Z")
    assert first.model_dump_json().replace("2024-01-01T00:00:00Z", "<ts>") == \
        second.model_dump_json().replace("2024-06-01T12:30:00Z", "<ts>")


def test_recommendations_sorted():
    html = page(body='<img src="a.png"><h3></h3>')
    report = build_report(html, "http://example.com")
    ranks = [r.severity.rank for r in report.recommendations]
    assert ranks == sorted(ranks, reverse=True)
    assert ranks[0] == 4   # no HTTPS


# ── Fetch ──────────────────────────────────────────────────────────────────────

def test_analyze_end_to_end(fake_session, wordpress_page):
    session = fake_session(html=wordpress_page, headers=ALL_SECURITY_HEADERS)
    stages = []
    report = WebsiteAnalyzer("example.com", session=session,
                             progress_callback=lambda stage, detail=None: stages.append(stage)).analyze()

    assert report.url == "https://example.com"
    assert ("GET", "https://example.com") in session.calls
    assert ("HEAD", "https://example.com") in session.calls
    assert report.security.security_headers.score == 30
    assert report.security.ssl_certificate.is_valid
    assert stages == ["fetching", "analysing", "done"]
    assert "User-Agent" in session.headers


def test_non_2xx_is_fetch_error(fake_session):
    with pytest.raises(FetchError) as exc:
        WebsiteAnalyzer("https://example.com/missing", session=fake_session(status_code=404)).analyze()
    assert exc.value.status_code == 404


def test_timeout_is_fetch_error(fake_session):
    session = fake_session(get_error=requests.exceptions.ReadTimeout("slow"))
    with pytest.raises(FetchError, match="timed out"):
        WebsiteAnalyzer("https://example.com", session=session).analyze()


def test_dns_failure_is_fetch_error(fake_session):
    err = requests.exceptions.ConnectionError("Failed to resolve: Name or service not known")
    with pytest.raises(FetchError, match="Domain not found"):
        WebsiteAnalyzer("https://nowhere.invalid", session=fake_session(get_error=err)).analyze()


def test_slow_body_hits_overall_deadline(fake_session, monkeypatch):
    monkeypatch.setattr(cfg, "REQUEST_TIMEOUT", 0.2)
    session = fake_session(html=page(body="<p>" + "x" * 500 + "</p>"), chunk_delay=0.1)
    started = time.monotonic()
    with pytest.raises(FetchError, match="timed out"):
        WebsiteAnalyzer("https://example.com", session=session).analyze()
    assert time.monotonic() - started < 0.8
    assert session.responses[0].closed


def test_body_is_streamed_and_decoded(fake_session):
    session = fake_session(html=page(body="<h1>Café</h1>"))
    resp, html = WebsiteAnalyzer("https://example.com", session=session).fetch()
    assert "<h1>Café</h1>" in html
    assert resp.closed
