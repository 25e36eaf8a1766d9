"""
analyzer.py — Site Health Analyser orchestrator.

Fetches one page, parses it once and runs the security, GDPR and
accessibility analyzers over the same immutable document. The analyzers share
no state, so they run concurrently on a small thread pool; the report is
identical to a sequential run.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from urllib.parse import urlparse

import requests

import config as cfg
from accessibility_analyzer import analyze_accessibility
from document import Document
from exceptions import FetchError, InvalidURLError
from gdpr_analyzer import analyze_gdpr
from models import AnalysisContext, AnalysisReport, CategoryScores
from recommendations import generate_recommendations
from scoring import overall_score, score_grade
from security_analyzer import analyze_security

logger = logging.getLogger(__name__)


def normalise_target_url(url: str | None) -> str:
    """
    Validate a user-supplied target before any network access:
    - a bare host gains ``https://``
    - only http/https URLs with a host are accepted
    """
    if not url or not url.strip():
        raise InvalidURLError("URL parameter is required")
    url = url.strip()
    if "://" not in url:
        url = "https://" + url

    try:
        p = urlparse(url)
        p.port  # raises ValueError on a non-numeric or out-of-range port
    except ValueError as e:
        raise InvalidURLError(f"Invalid URL format: {e}") from e
    if p.scheme not in ("http", "https"):
        raise InvalidURLError(f"Invalid URL scheme: {p.scheme} (must be http or https)")
    if not p.hostname or " " in p.netloc:
        raise InvalidURLError("Invalid URL format: missing domain")
    return url


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_report(html: str, url: str, headers=None, session=None,
                 timestamp: str | None = None) -> AnalysisReport:
    """Run every analyzer over already-fetched HTML and assemble the report."""
    timestamp = timestamp or _now_iso()
    doc = Document(html)
    ctx = AnalysisContext(url=url, html=doc.source, headers=headers,
                          session=session, timestamp=timestamp)

    with ThreadPoolExecutor(max_workers=cfg.ANALYZER_WORKERS) as pool:
        security_f = pool.submit(analyze_security, doc, ctx)
        gdpr_f = pool.submit(analyze_gdpr, doc, ctx)
        accessibility_f = pool.submit(analyze_accessibility, doc, ctx)
        security = security_f.result()
        gdpr = gdpr_f.result()
        accessibility = accessibility_f.result()

    scores = CategoryScores(security=security.score, gdpr=gdpr.score,
                            accessibility=accessibility.score)
    overall = overall_score(scores.security, scores.gdpr, scores.accessibility)

    return AnalysisReport(
        url=url,
        timestamp=timestamp,
        security=security,
        gdpr=gdpr,
        accessibility=accessibility,
        overall_score=overall,
        grade=score_grade(overall),
        category_scores=scores,
        recommendations=generate_recommendations(security, gdpr, accessibility),
    )


class WebsiteAnalyzer:
    def __init__(self, url: str, progress_callback=None, session=None):
        """
        Args:
            url:               Target URL; validated immediately.
            progress_callback: Optional callable(stage: str, detail: str | None).
                               Called at each major stage so callers can track
                               progress (used by the job-queue system in app.py).
            session:           Optional pre-built requests.Session.
        """
        self.url = normalise_target_url(url)
        self._cb = progress_callback or (lambda stage, detail=None: None)

        # Shared session: one connection pool and header set per run
        self.session = session or requests.Session()
        self.session.headers.update(cfg.BROWSER_HEADERS)
        self.session.max_redirects = cfg.MAX_REDIRECTS

    # ── Fetch ──────────────────────────────────────────────────────────────────

    def fetch(self) -> tuple[requests.Response, str]:
        """
        GET the target page and read its body within REQUEST_TIMEOUT overall.
        Any failure aborts the analysis. Returns the response and decoded HTML.
        """
        self._cb("fetching", f"Fetching {self.url}")
        deadline = time.monotonic() + cfg.REQUEST_TIMEOUT
        try:
            resp = self.session.get(self.url, timeout=cfg.REQUEST_TIMEOUT,
                                    allow_redirects=True, stream=True)
            try:
                if not 200 <= resp.status_code < 300:
                    raise FetchError(self.url, f"HTTP {resp.status_code} {resp.reason}",
                                     status_code=resp.status_code)
                html = self._read_body(resp, deadline)
            finally:
                resp.close()
        except requests.exceptions.SSLError as e:
            raise FetchError(self.url, f"SSL error: {str(e)[:120]}") from e
        except requests.exceptions.Timeout as e:
            raise FetchError(self.url, "Request timed out") from e
        except requests.exceptions.ConnectionError as e:
            err = str(e).lower()
            if "name or service not known" in err or "nodename nor servname" in err:
                raise FetchError(self.url, "Domain not found") from e
            if "connection refused" in err:
                raise FetchError(self.url, "Connection refused") from e
            raise FetchError(self.url, str(e)[:200]) from e
        except requests.exceptions.TooManyRedirects as e:
            raise FetchError(self.url, "Too many redirects") from e
        except requests.exceptions.RequestException as e:
            raise FetchError(self.url, str(e)[:200]) from e
        return resp, html

    def _read_body(self, resp: requests.Response, deadline: float) -> str:
        # Overall deadline; requests' own timeout only bounds each read
        chunks = []
        for chunk in resp.iter_content(chunk_size=16384):
            if time.monotonic() > deadline:
                raise FetchError(self.url, "Request timed out")
            chunks.append(chunk)
        raw = b"".join(chunks)
        try:
            return raw.decode(resp.encoding or resp.apparent_encoding or "utf-8",
                              errors="replace")
        except LookupError:
            return raw.decode("utf-8", errors="replace")

    # ── Orchestrator ───────────────────────────────────────────────────────────

    def analyze(self) -> AnalysisReport:
        """Fetch the page, then run all checks. Returns the composed report."""
        resp, html = self.fetch()
        logger.info("Fetched %s (%d chars)", self.url, len(html))

        self._cb("analysing", "Running security, GDPR and accessibility checks")
        report = build_report(html, self.url, headers=resp.headers,
                              session=self.session)

        self._cb("done", f"Overall score {report.overall_score} ({report.grade})")
        return report
