"""
app.py — Flask application for Site Health Analyser.

Routes:
  GET  /health               — liveness probe
  GET  /api/analyze?url=...  — synchronous analysis; returns the report JSON
  POST /analyze              — enqueues the analysis; returns { job_id }
  GET  /status/<job_id>      — returns { status, stage, detail, progress }
  GET  /result/<job_id>      — returns final report JSON (once status == "done")
  POST /api/admin/login      — { password } → { token, expiresAt }
  POST /api/admin/logout     — revokes the bearer token
  GET  /api/admin/analytics  — recent analysis events (bearer token required)
"""

import logging
import threading
import time
import uuid
from datetime import datetime, timezone

from flask import Flask, jsonify, request
from werkzeug.middleware.proxy_fix import ProxyFix

import config as cfg
from admin_store import AnalyticsLog, SessionStore
from analyzer import WebsiteAnalyzer, normalise_target_url
from exceptions import FetchError, InvalidURLError

# ── Logging setup ──────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# ── Flask app ──────────────────────────────────────────────────────────────────
app = Flask(__name__)
if cfg.TRUSTED_PROXIES:
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=cfg.TRUSTED_PROXIES)

analytics = AnalyticsLog()
sessions = SessionStore()

# ── In-memory job store ────────────────────────────────────────────────────────
# Each job:  { status, stage, detail, progress, result, error, code, created_at }
_jobs: dict = {}
_jobs_lock = threading.Lock()


def _cleanup_old_jobs():
    """Remove jobs older than JOB_TTL_SECONDS (runs in the worker thread)."""
    now = time.time()
    with _jobs_lock:
        stale = [jid for jid, j in _jobs.items()
                 if now - j.get("created_at", 0) > cfg.JOB_TTL_SECONDS]
        for jid in stale:
            del _jobs[jid]
    if stale:
        logger.info("Purged %d stale job(s)", len(stale))


# Stage → approximate progress percentage
_STAGE_PROGRESS = {
    "queued":    5,
    "fetching":  20,
    "analysing": 60,
    "done":      100,
    "error":     100,
}


@app.after_request
def _cors(resp):
    resp.headers["Access-Control-Allow-Origin"] = "*"
    resp.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    resp.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
    return resp


def _error(message: str, status: int, detail: str | None = None):
    body = {"error": message}
    if detail:
        body["message"] = detail
    return jsonify(body), status


def _client_ip() -> str | None:
    # X-Forwarded-For is honoured only through ProxyFix (WA_TRUSTED_PROXIES)
    return request.remote_addr


def _run_and_record(url: str, progress_callback=None, ip_address=None, user_agent=None):
    """Analyse ``url`` and log the outcome to the analytics store either way."""
    started = time.monotonic()
    try:
        report = WebsiteAnalyzer(url, progress_callback=progress_callback).analyze()
    except Exception as e:
        analytics.record(url, error=str(e),
                         duration_ms=int((time.monotonic() - started) * 1000),
                         ip_address=ip_address, user_agent=user_agent)
        raise
    analytics.record(url, report=report,
                     duration_ms=int((time.monotonic() - started) * 1000),
                     ip_address=ip_address, user_agent=user_agent)
    return report


def _run_analysis(job_id: str, url: str, ip_address=None, user_agent=None):
    """Worker function — runs in a daemon thread per analysis job."""

    def _progress(stage: str, detail: str | None = None):
        with _jobs_lock:
            if job_id in _jobs:
                _jobs[job_id].update(
                    stage=stage,
                    detail=detail or "",
                    progress=_STAGE_PROGRESS.get(stage, 50),
                )
        logger.info("[job %s] %s — %s", job_id[:8], stage, detail or "")

    try:
        report = _run_and_record(url, _progress, ip_address, user_agent)
        with _jobs_lock:
            _jobs[job_id].update(
                status="done",
                stage="done",
                detail="Analysis complete",
                progress=100,
                result=report.to_dict(),
            )
        logger.info("[job %s] completed successfully", job_id[:8])

    except FetchError as e:
        logger.warning("[job %s] fetch failed: %s", job_id[:8], e)
        with _jobs_lock:
            _jobs[job_id].update(status="error", stage="error", detail=str(e),
                                 progress=100, code=502,
                                 error=f"Failed to analyze website: {e}")

    except Exception as e:
        logger.exception("[job %s] failed: %s", job_id[:8], e)
        with _jobs_lock:
            _jobs[job_id].update(status="error", stage="error", detail=str(e),
                                 progress=100, code=500,
                                 error=f"Analysis failed: {e}")

    finally:
        _cleanup_old_jobs()


# ── Routes ─────────────────────────────────────────────────────────────────────

@app.route("/health")
def health():
    return jsonify({"status": "OK",
                    "timestamp": datetime.now(timezone.utc).isoformat()})


@app.route("/api/analyze")
def analyze_sync():
    """Runs one analysis in the request thread and returns the report."""
    url = request.args.get("url", "")
    try:
        url = normalise_target_url(url)
        report = _run_and_record(url, ip_address=_client_ip(),
                                 user_agent=request.headers.get("User-Agent"))
    except InvalidURLError as e:
        return _error(str(e), 400)
    except FetchError as e:
        logger.warning("Analysis of %s failed: %s", url, e)
        return _error("Failed to analyze website", 502, str(e))
    except Exception as e:
        logger.exception("Analysis error for %s", url)
        return _error("Failed to analyze website", 500, str(e))
    return jsonify(report.to_dict())


@app.route("/analyze", methods=["POST"])
def analyze():
    """
    Enqueues an analysis job.
    Body JSON: { url: str }
    Returns:   { job_id: str }
    """
    data = request.get_json(silent=True) or {}
    url = (data.get("url") or "").strip()

    # Reject bad URLs up front instead of failing inside the worker
    try:
        url = normalise_target_url(url)
    except InvalidURLError as e:
        return _error(str(e), 400)

    job_id = str(uuid.uuid4())
    with _jobs_lock:
        _jobs[job_id] = {
            "status": "running",
            "stage": "queued",
            "detail": "Job queued — starting shortly",
            "progress": 5,
            "result": None,
            "error": None,
            "code": None,
            "created_at": time.time(),
            "url": url,
        }

    thread = threading.Thread(
        target=_run_analysis,
        args=(job_id, url, _client_ip(), request.headers.get("User-Agent")),
        daemon=True,
        name=f"analysis-{job_id[:8]}",
    )
    thread.start()
    logger.info("Job %s started for %s", job_id[:8], url)

    return jsonify({"job_id": job_id}), 202


@app.route("/status/<job_id>")
def status(job_id: str):
    """
    Returns the current state of a job.
    { status, stage, detail, progress }
    """
    with _jobs_lock:
        job = _jobs.get(job_id)

    if not job:
        return _error("Job not found", 404)

    payload = {
        "status":   job["status"],
        "stage":    job["stage"],
        "detail":   job["detail"],
        "progress": job["progress"],
    }
    if job.get("error"):
        payload["error"] = job["error"]

    return jsonify(payload)


@app.route("/result/<job_id>")
def result(job_id: str):
    """
    Returns the final report once the job is done.
    Returns 404 if not found, 202 if still running, 502/500 on error.
    """
    with _jobs_lock:
        job = _jobs.get(job_id)

    if not job:
        return _error("Job not found", 404)

    if job["status"] == "error":
        return _error(job.get("error") or "Unknown error", job.get("code") or 500)

    if job["status"] != "done":
        return jsonify({"status": "running", "progress": job["progress"]}), 202

    return jsonify(job["result"])


# ── Admin ──────────────────────────────────────────────────────────────────────

def _bearer_token() -> str | None:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return None


@app.route("/api/admin/login", methods=["POST"])
def admin_login():
    data = request.get_json(silent=True) or {}
    if not sessions.check_password(data.get("password")):
        logger.warning("Failed admin login from %s", _client_ip())
        return _error("Invalid credentials", 401)
    session = sessions.issue(_client_ip())
    return jsonify({"token": session["session_token"],
                    "expiresAt": session["expires_at"]})


@app.route("/api/admin/logout", methods=["POST"])
def admin_logout():
    sessions.revoke(_bearer_token())
    return jsonify({"status": "logged out"})


@app.route("/api/admin/analytics")
def admin_analytics():
    if not sessions.validate(_bearer_token()):
        return _error("Unauthorized", 401)
    limit = max(1, min(1000, request.args.get("limit", 100, type=int)))
    return jsonify({"summary": analytics.summary(),
                    "events": analytics.recent(limit)})


# ── Dev server ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    # Use Gunicorn in production
    app.run(debug=False, host="0.0.0.0", port=5001)
