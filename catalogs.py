"""
catalogs.py — Static detection data shared by the analyzers.

Loaded once at import and never mutated: tracker signatures, the canned
vulnerability table, plugin deny-list, consent vendors and the accessibility
"meaningless alt text" patterns.
"""
import re
from types import MappingProxyType

from models import Severity, TrackerType

# ── Trackers ───────────────────────────────────────────────────────────────────
# name → (category, signatures scanned against the full page source)
TRACKERS = MappingProxyType({
    "Google Analytics": (TrackerType.ANALYTICS, (
        re.compile(r"gtag\("),
        re.compile(r"\bga\("),
        re.compile(r"google-analytics\.com"),
        re.compile(r"googletagmanager\.com/gtag/js"),
        re.compile(r"\bUA-\d+-\d+\b"),
        re.compile(r"\bG-[A-Z0-9]{6,}\b"),
    )),
    "Google Tag Manager": (TrackerType.ANALYTICS, (
        re.compile(r"googletagmanager\.com/gtm\.js"),
        re.compile(r"\bGTM-[A-Z0-9]+\b"),
    )),
    "Meta Pixel": (TrackerType.ADVERTISING, (
        re.compile(r"fbq\("),
        re.compile(r"connect\.facebook\.net/[^\"']*/fbevents\.js"),
        re.compile(r"fbevents\.js"),
        re.compile(r"\b_fbp\b"),
    )),
    "Google Ads": (TrackerType.ADVERTISING, (
        re.compile(r"googleadservices\.com"),
        re.compile(r"googlesyndication\.com"),
        re.compile(r"\bAW-\d+\b"),
    )),
    "LinkedIn Insight": (TrackerType.ADVERTISING, (
        re.compile(r"snap\.licdn\.com"),
        re.compile(r"_linkedin_partner_id"),
    )),
    "Twitter Pixel": (TrackerType.ADVERTISING, (
        re.compile(r"static\.ads-twitter\.com"),
        re.compile(r"twq\("),
    )),
    "Hotjar": (TrackerType.ANALYTICS, (
        re.compile(r"static\.hotjar\.com"),
        re.compile(r"\bhj\("),
    )),
    "Facebook Social Plugins": (TrackerType.SOCIAL, (
        re.compile(r"connect\.facebook\.net/[^\"']*/sdk\.js"),
        re.compile(r"\bfb-(?:like|share-button|comments|page)\b"),
    )),
    "Twitter Widgets": (TrackerType.SOCIAL, (
        re.compile(r"platform\.twitter\.com/widgets\.js"),
    )),
    "Microsoft Clarity": (TrackerType.OTHER, (
        re.compile(r"clarity\.ms/tag"),
    )),
})

# ── Consent / privacy ──────────────────────────────────────────────────────────
COOKIE_KEYWORDS = ("cookie",)
CONSENT_WORDS = ("accept", "consent", "privacy")

# Case-sensitive page-text markers of a consent notice
CONSENT_TEXT_MARKERS = ("GDPR", "privacy policy")

# Script hosts of consent-management platforms
CONSENT_VENDORS = ("cookiebot", "onetrust", "cookiepro", "cookieyes",
                   "usercentrics", "iubenda", "quantcast", "didomi", "termly")

# Used when only raw HTML is available (no usable element tree)
CONSENT_HTML_PATTERNS = (
    re.compile(r"cookie.{0,200}?consent", re.I | re.S),
    re.compile(r"accept.{0,200}?cookie", re.I | re.S),
    re.compile(r"cookie.{0,200}?policy", re.I | re.S),
    re.compile(r"gdpr.{0,200}?consent", re.I | re.S),
    re.compile(r"privacy.{0,200}?consent", re.I | re.S),
)

# href fragments and link texts pointing at a privacy policy (en, de, fr, es, it, nl)
PRIVACY_HREF_FRAGMENTS = ("privacy", "datenschutz", "politique-confidentialite",
                          "confidentialite", "privacidad", "privacy-policy", "privacyverklaring")
PRIVACY_LINK_TEXTS = ("privacy", "datenschutz", "politique de confidentialité",
                      "confidentialité", "privacidad", "informativa privacy", "privacyverklaring")

# ── Platform vulnerabilities ───────────────────────────────────────────────────
PLATFORM_NAME = "WordPress Core"

# Exact version → canned findings
KNOWN_VULNERABILITIES = MappingProxyType({
    "6.0": ((Severity.HIGH, "Multiple vulnerabilities in WordPress 6.0"),),
    "5.9": ((Severity.CRITICAL, "Critical security vulnerabilities in WordPress 5.9"),),
})

# Plugin slugs with a record of critical, actively exploited flaws
VULNERABLE_PLUGINS = MappingProxyType({
    "old-vulnerable-plugin": "Known vulnerable plugin detected",
    "wp-file-manager": "File Manager plugin allowed unauthenticated remote code execution (CVE-2020-25213)",
    "revslider": "Slider Revolution exposed arbitrary file download in older releases",
    "wp-gdpr-compliance": "WP GDPR Compliance allowed unauthenticated option updates",
    "social-warfare": "Social Warfare allowed unauthenticated remote code execution",
})

# ── Client-side libraries ──────────────────────────────────────────────────────
JQUERY_VERSION_PATTERNS = (
    re.compile(r"jquery[.-](\d+\.\d+(?:\.\d+)?)(?:\.slim)?(?:\.min)?\.js", re.I),
    re.compile(r"/jquery/(\d+\.\d+(?:\.\d+)?)/jquery", re.I),
    re.compile(r"jquery(?:\.min)?\.js\?ver=(\d+\.\d+(?:\.\d+)?)", re.I),
)

# ── Reputation heuristics ──────────────────────────────────────────────────────
SUSPICIOUS_TLDS = frozenset({"zip", "mov", "tk", "ml", "ga", "cf", "gq", "xyz", "top", "click"})

# ── Accessibility ──────────────────────────────────────────────────────────────
MEANINGLESS_ALT_PATTERNS = (
    re.compile(r"^image$", re.I),
    re.compile(r"^img$", re.I),
    re.compile(r"^picture$", re.I),
    re.compile(r"^photo$", re.I),
    re.compile(r"^untitled$", re.I),
    re.compile(r"^dsc_?\d+$", re.I),
    re.compile(r"^img_?\d+$", re.I),
    re.compile(r"^\d+$"),
    re.compile(r"^click here$", re.I),
    re.compile(r"^read more$", re.I),
)
