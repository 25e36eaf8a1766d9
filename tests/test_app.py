import time

import pytest

import app as app_module
import config as cfg
from admin_store import AnalyticsLog, SessionStore
from analyzer import build_report
from exceptions import FetchError

from conftest import page

SAMPLE = page(body='<h1>Hello</h1><img src="a.png"><footer><a href="/privacy">Privacy</a></footer>')


class StubAnalyzer:
    """Stands in for WebsiteAnalyzer; never touches the network."""

    fail_with = None

    def __init__(self, url, progress_callback=None, session=None):
        self.url = url
        self._cb = progress_callback or (lambda stage, detail=None: None)

    def analyze(self):
        self._cb("fetching", self.url)
        if self.fail_with is not None:
            raise self.fail_with
        self._cb("analysing")
        return build_report(SAMPLE, self.url, timestamp="2024-01-01T00:00:00Z")


@pytest.fixture
def client(monkeypatch):
    StubAnalyzer.fail_with = None
    monkeypatch.setattr(app_module, "WebsiteAnalyzer", StubAnalyzer)
    monkeypatch.setattr(app_module, "analytics", AnalyticsLog())
    monkeypatch.setattr(app_module, "sessions", SessionStore())
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c


def _wait_for_result(client, job_id, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        resp = client.get(f"/result/{job_id}")
        if resp.status_code != 202:
            return resp
        time.sleep(0.02)
    pytest.fail("job did not finish")


# ── Public API ─────────────────────────────────────────────────────────────────

def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "OK"
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.parametrize("query", ["", "?url=", "?url=ftp://example.com"])
def test_sync_analyze_rejects_bad_url(client, query):
    resp = client.get(f"/api/analyze{query}")
    assert resp.status_code == 400
    assert "error" in resp.get_json()
    assert app_module.analytics.summary()["total"] == 0


def test_sync_analyze_returns_camel_case_report(client):
    resp = client.get("/api/analyze?url=example.com")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["url"] == "https://example.com"
    assert {"overallScore", "categoryScores", "grade"} <= set(data)
    assert "missingAltImages" in data["accessibility"]
    assert app_module.analytics.summary()["total"] == 1


def test_sync_analyze_fetch_failure_is_502(client):
    StubAnalyzer.fail_with = FetchError("https://example.com", "Request timed out")
    resp = client.get("/api/analyze?url=https://example.com")
    assert resp.status_code == 502
    body = resp.get_json()
    assert body["error"] == "Failed to analyze website"
    assert "timed out" in body["message"]
    assert app_module.analytics.summary()["failures"] == 1


def test_sync_analyze_unexpected_error_is_500(client):
    StubAnalyzer.fail_with = RuntimeError("boom")
    resp = client.get("/api/analyze?url=https://example.com")
    assert resp.status_code == 500


# ── Job queue ──────────────────────────────────────────────────────────────────

def test_job_lifecycle(client):
    resp = client.post("/analyze", json={"url": "example.com"})
    assert resp.status_code == 202
    job_id = resp.get_json()["job_id"]

    result = _wait_for_result(client, job_id)
    assert result.status_code == 200
    assert result.get_json()["url"] == "https://example.com"

    status = client.get(f"/status/{job_id}").get_json()
    assert status["status"] == "done"
    assert status["progress"] == 100


def test_failed_job_reports_502(client):
    StubAnalyzer.fail_with = FetchError("https://example.com", "HTTP 404: Not Found", 404)
    job_id = client.post("/analyze", json={"url": "https://example.com"}).get_json()["job_id"]
    result = _wait_for_result(client, job_id)
    assert result.status_code == 502
    assert client.get(f"/status/{job_id}").get_json()["status"] == "error"


def test_job_rejects_bad_url(client):
    assert client.post("/analyze", json={"url": "not a url"}).status_code == 400
    assert client.post("/analyze", data="garbage").status_code == 400


def test_unknown_job(client):
    assert client.get("/status/nope").status_code == 404
    assert client.get("/result/nope").status_code == 404


# ── Admin ──────────────────────────────────────────────────────────────────────

def test_login_disabled_without_password(client, monkeypatch):
    monkeypatch.setattr(cfg, "ADMIN_PASSWORD", "")
    assert client.post("/api/admin/login", json={"password": ""}).status_code == 401


def test_admin_flow(client, monkeypatch):
    monkeypatch.setattr(cfg, "ADMIN_PASSWORD", "s3cret")
    assert client.post("/api/admin/login", json={"password": "wrong"}).status_code == 401
    assert client.get("/api/admin/analytics").status_code == 401

    login = client.post("/api/admin/login", json={"password": "s3cret"})
    assert login.status_code == 200
    token = login.get_json()["token"]
    auth = {"Authorization": f"Bearer {token}"}

    client.get("/api/analyze?url=example.com")
    resp = client.get("/api/admin/analytics?limit=5", headers=auth)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["summary"]["total"] == 1
    assert data["events"][0]["url"] == "https://example.com"

    client.post("/api/admin/logout", headers=auth)
    assert client.get("/api/admin/analytics", headers=auth).status_code == 401


@pytest.mark.parametrize("url", ["http://[::1", "https://example.com:abc/"])
def test_malformed_urls_are_client_errors(client, url):
    assert client.post("/analyze", json={"url": url}).status_code == 400
    assert client.get("/api/analyze", query_string={"url": url}).status_code == 400


def test_non_string_password_is_rejected(client, monkeypatch):
    monkeypatch.setattr(cfg, "ADMIN_PASSWORD", "12345")
    assert client.post("/api/admin/login", json={"password": 12345}).status_code == 401


def test_forwarded_for_header_is_not_trusted_by_default(client):
    client.get("/api/analyze?url=example.com", headers={"X-Forwarded-For": "6.6.6.6"})
    assert app_module.analytics.recent()[0]["ip_address"] == "127.0.0.1"
