"""
admin_store.py — In-memory analytics log and admin sessions.

Both are narrow collaborators of the web layer; the analysis engine never
reads from them.
"""
import hmac
import logging
import secrets
import threading
import time
from collections import deque
from datetime import datetime, timezone

import config as cfg

logger = logging.getLogger(__name__)


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, timezone.utc).isoformat(timespec="seconds")


class AnalyticsLog:
    """Most recent analysis events, newest last."""

    def __init__(self, max_events: int = cfg.ANALYTICS_MAX_EVENTS):
        self._events: deque = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def record(self, url: str, report=None, duration_ms: int | None = None,
               error: str | None = None, ip_address: str | None = None,
               user_agent: str | None = None) -> dict:
        event = {
            "url": url,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "timestamp": _iso(time.time()),
            "analysis_duration_ms": duration_ms,
            "error_message": error,
            "overall_score": None,
            "security_score": None,
            "gdpr_score": None,
            "accessibility_score": None,
        }
        if report is not None:
            event.update(
                overall_score=report.overall_score,
                security_score=report.category_scores.security,
                gdpr_score=report.category_scores.gdpr,
                accessibility_score=report.category_scores.accessibility,
            )
        with self._lock:
            self._events.append(event)
        return event

    def recent(self, limit: int = 100) -> list:
        with self._lock:
            events = list(self._events)
        return events[-limit:][::-1]

    def summary(self) -> dict:
        with self._lock:
            events = list(self._events)
        ok = [e for e in events if e["error_message"] is None]

        def _avg(key):
            vals = [e[key] for e in ok if e[key] is not None]
            return round(sum(vals) / len(vals)) if vals else None

        return {
            "total": len(events),
            "failures": len(events) - len(ok),
            "unique_urls": len({e["url"] for e in events}),
            "average_overall_score": _avg("overall_score"),
            "average_security_score": _avg("security_score"),
            "average_gdpr_score": _avg("gdpr_score"),
            "average_accessibility_score": _avg("accessibility_score"),
        }


class SessionStore:
    """Opaque admin session tokens with a fixed lifetime."""

    def __init__(self, ttl_seconds: int = cfg.ADMIN_SESSION_TTL_SECONDS):
        self.ttl = ttl_seconds
        self._sessions: dict = {}
        self._lock = threading.Lock()

    @staticmethod
    def check_password(candidate: str | None) -> bool:
        if not cfg.ADMIN_PASSWORD or not isinstance(candidate, str) or not candidate:
            return False
        return hmac.compare_digest(candidate.encode(), cfg.ADMIN_PASSWORD.encode())

    def issue(self, ip_address: str | None = None) -> dict:
        token = secrets.token_urlsafe(32)
        now = time.time()
        session = {
            "session_token": token,
            "created_at": _iso(now),
            "expires_at": _iso(now + self.ttl),
            "ip_address": ip_address,
            "_expires": now + self.ttl,
        }
        with self._lock:
            self._purge_expired(now)
            self._sessions[token] = session
        logger.info("Admin session issued for %s", ip_address or "unknown ip")
        return {k: v for k, v in session.items() if not k.startswith("_")}

    def _purge_expired(self, now: float):
        """Drop lapsed sessions; caller holds the lock."""
        expired = [t for t, s in self._sessions.items() if s["_expires"] <= now]
        for t in expired:
            del self._sessions[t]

    def validate(self, token: str | None) -> bool:
        if not token:
            return False
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return False
            if session["_expires"] <= time.time():
                del self._sessions[token]
                return False
        return True

    def revoke(self, token: str | None) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None
