"""
config.py — Centralised configuration for Site Health Analyser.
All tuneable constants live here. Override via environment variables.
"""
import os

# ── HTTP / Network ─────────────────────────────────────────────────────────────
# Seconds before the top-level page fetch is abandoned (fails the whole analysis)
REQUEST_TIMEOUT: int = int(os.getenv("WA_REQUEST_TIMEOUT", 15))

# Seconds for each auxiliary sub-check (HEAD probe, reputation lookups)
HEAD_TIMEOUT: int = int(os.getenv("WA_HEAD_TIMEOUT", 5))

# Redirects followed when fetching the target page
MAX_REDIRECTS: int = int(os.getenv("WA_MAX_REDIRECTS", 5))

# ── Concurrency ────────────────────────────────────────────────────────────────
# Thread-pool size for running the three category analyzers
ANALYZER_WORKERS: int = int(os.getenv("WA_ANALYZER_WORKERS", 3))

# Thread-pool size for network-bound security sub-checks
SUBCHECK_WORKERS: int = int(os.getenv("WA_SUBCHECK_WORKERS", 4))

# ── Security scoring ───────────────────────────────────────────────────────────
# "platform" scores CMS detection and vulnerabilities, "posture" scores
# SSL / headers / console warnings / reputation on their own scale
SECURITY_SCORE_MODE: str = os.getenv("WA_SECURITY_SCORE_MODE", "platform").lower()

SECURITY_BASELINE: int = int(os.getenv("WA_SECURITY_BASELINE", 100))
HARDENED_BONUS: int = int(os.getenv("WA_HARDENED_BONUS", 15))

# Score returned when the platform is not detected at all
NEUTRAL_SECURITY_SCORE: int = int(os.getenv("WA_NEUTRAL_SECURITY_SCORE", 50))

# Vulnerability deductions by severity
VULN_DEDUCTION_CRITICAL: int = int(os.getenv("WA_VULN_CRITICAL", 30))
VULN_DEDUCTION_HIGH: int = int(os.getenv("WA_VULN_HIGH", 20))
VULN_DEDUCTION_MEDIUM: int = int(os.getenv("WA_VULN_MEDIUM", 10))
VULN_DEDUCTION_LOW: int = int(os.getenv("WA_VULN_LOW", 5))

# Deduction when the platform version could not be determined
UNKNOWN_VERSION_DEDUCTION: int = int(os.getenv("WA_UNKNOWN_VERSION", 10))
UNKNOWN_VERSION_DEDUCTION_HARDENED: int = int(os.getenv("WA_UNKNOWN_VERSION_HARDENED", 5))

# Versions (major, minor) below this floor are flagged as outdated
CURRENT_PLATFORM_VERSION: str = os.getenv("WA_CURRENT_PLATFORM_VERSION", "6.4")

# jQuery releases below this floor raise a console warning
CURRENT_JQUERY_VERSION: str = os.getenv("WA_CURRENT_JQUERY_VERSION", "3.5")

# Security header sub-score: ceiling, and the level below which posture is "weak"
HEADER_SCORE_CEILING: int = int(os.getenv("WA_HEADER_SCORE_CEILING", 30))
WEAK_HEADER_THRESHOLD: int = int(os.getenv("WA_WEAK_HEADER_THRESHOLD", 15))

# Posture scale (mode "posture"); the four parts add up to 100
POSTURE_SSL_POINTS: int = 25
POSTURE_CONSOLE_POINTS: int = 25
POSTURE_REPUTATION_POINTS: int = 20
CONSOLE_DEDUCTION_HIGH: int = 10
CONSOLE_DEDUCTION_MEDIUM: int = 5
CONSOLE_DEDUCTION_LOW: int = 2

# ── Reputation lookups ─────────────────────────────────────────────────────────
# Remote lookups send the target URL to a third party; off unless enabled
REMOTE_REPUTATION: bool = os.getenv("WA_REMOTE_REPUTATION", "0") == "1"
SAFE_BROWSING_API_KEY: str = os.getenv("WA_SAFE_BROWSING_API_KEY", "")
SAFE_BROWSING_ENDPOINT: str = "https://safebrowsing.googleapis.com/v4/threatMatches:find"
URLHAUS_ENDPOINT: str = "https://urlhaus-api.abuse.ch/v1/url/"

# ── GDPR scoring ───────────────────────────────────────────────────────────────
GDPR_NO_BANNER_DEDUCTION: int = int(os.getenv("WA_GDPR_NO_BANNER", 40))
GDPR_NO_POLICY_DEDUCTION: int = int(os.getenv("WA_GDPR_NO_POLICY", 40))
# Applied once when trackers fire and there is no consent banner
GDPR_TRACKERS_WITHOUT_CONSENT_DEDUCTION: int = int(os.getenv("WA_GDPR_TRACKERS_NO_CONSENT", 20))

# ── Accessibility scoring ──────────────────────────────────────────────────────
ALT_DEDUCTION_PER_ITEM: int = int(os.getenv("WA_ALT_DEDUCTION", 5))
ALT_DEDUCTION_CAP: int = int(os.getenv("WA_ALT_CAP", 40))
HEADING_DEDUCTION_PER_ITEM: int = int(os.getenv("WA_HEADING_DEDUCTION", 10))
HEADING_DEDUCTION_CAP: int = int(os.getenv("WA_HEADING_CAP", 30))
ARIA_DEDUCTION_PER_ITEM: int = int(os.getenv("WA_ARIA_DEDUCTION", 3))
ARIA_DEDUCTION_CAP: int = int(os.getenv("WA_ARIA_CAP", 30))

# ── Overall score (fixed) ──────────────────────────────────────────────────────
SECURITY_WEIGHT: float = 0.5
GDPR_WEIGHT: float = 0.25
ACCESSIBILITY_WEIGHT: float = 0.25

# Letter grades, highest first; anything below the last floor is "F"
GRADE_THRESHOLDS: tuple = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))

# Qualitative colour bands
COLOR_GOOD_THRESHOLD: int = 80
COLOR_WARNING_THRESHOLD: int = 60

# ── Admin / analytics ──────────────────────────────────────────────────────────
# Empty password disables admin login entirely
ADMIN_PASSWORD: str = os.getenv("WA_ADMIN_PASSWORD", "")
ADMIN_SESSION_TTL_SECONDS: int = int(os.getenv("WA_ADMIN_SESSION_TTL", 24 * 3600))

# Number of analysis events kept in memory for the admin dashboard
ANALYTICS_MAX_EVENTS: int = int(os.getenv("WA_ANALYTICS_MAX_EVENTS", 1000))

# Reverse proxies in front of the app whose X-Forwarded-For is trusted (0 = none)
TRUSTED_PROXIES: int = int(os.getenv("WA_TRUSTED_PROXIES", 0))

# ── Job queue ──────────────────────────────────────────────────────────────────
# How long (seconds) completed job results stay in memory before being purged
JOB_TTL_SECONDS: int = int(os.getenv("WA_JOB_TTL", 3600))

# ── Browser-like headers sent with every outbound request ─────────────────────
BROWSER_HEADERS: dict = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}
