"""
gdpr_analyzer.py — Consent banner, privacy policy and third-party trackers.
"""
import logging

import config as cfg
from catalogs import (CONSENT_HTML_PATTERNS, CONSENT_TEXT_MARKERS, CONSENT_VENDORS,
                      CONSENT_WORDS, COOKIE_KEYWORDS, PRIVACY_HREF_FRAGMENTS,
                      PRIVACY_LINK_TEXTS, TRACKERS)
from document import Document
from models import AnalysisContext, GDPRResult, Tracker

logger = logging.getLogger(__name__)


def _has_cookie_attribute(doc: Document) -> bool:
    for kw in COOKIE_KEYWORDS:
        if doc.with_attr_containing(True, "id", kw, ignore_case=True):
            return True
        if doc.with_attr_containing(True, "class", kw, ignore_case=True):
            return True
    return False


def _has_cookie_text(text: str) -> bool:
    lowered = text.lower()
    if not any(kw in lowered for kw in COOKIE_KEYWORDS):
        return False
    return any(word in lowered for word in CONSENT_WORDS)


def _has_consent_vendor(doc: Document) -> bool:
    for script in doc.find_all("script", src=True):
        src = script["src"].lower()
        if any(vendor in src for vendor in CONSENT_VENDORS):
            return True
    return False


def consent_banner_from_html(html: str) -> bool:
    """Keyword co-occurrence rules for when no element tree is available."""
    return any(p.search(html) for p in CONSENT_HTML_PATTERNS)


def detect_cookie_banner(doc: Document) -> bool:
    if not doc.has_elements():
        return consent_banner_from_html(doc.source)

    text = doc.text()
    indicators = (
        lambda: _has_cookie_attribute(doc),
        lambda: _has_cookie_text(text),
        lambda: any(marker in text for marker in CONSENT_TEXT_MARKERS),
        lambda: _has_consent_vendor(doc),
    )
    return any(check() for check in indicators)


def _is_privacy_link(doc: Document, link) -> bool:
    href = (doc.attr(link, "href") or "").lower()
    if any(fragment in href for fragment in PRIVACY_HREF_FRAGMENTS):
        return True
    text = doc.element_text(link).lower()
    return any(t in text for t in PRIVACY_LINK_TEXTS)


def detect_privacy_policy(doc: Document) -> bool:
    # Footers are where policy links live, so look there first
    for link in doc.select("footer a, [role=contentinfo] a"):
        if _is_privacy_link(doc, link):
            logger.debug("Privacy policy link found in footer")
            return True
    return any(_is_privacy_link(doc, link) for link in doc.find_all("a"))


def detect_trackers(source: str) -> list[Tracker]:
    """Every catalogue entry is returned, detected or not."""
    return [
        Tracker(name=name, type=category,
                detected=any(p.search(source) for p in patterns))
        for name, (category, patterns) in TRACKERS.items()
    ]


def gdpr_score(has_banner: bool, has_policy: bool, trackers: list[Tracker]) -> int:
    score = 100
    if not has_banner:
        score -= cfg.GDPR_NO_BANNER_DEDUCTION
    if not has_policy:
        score -= cfg.GDPR_NO_POLICY_DEDUCTION
    if not has_banner and any(t.detected for t in trackers):
        score -= cfg.GDPR_TRACKERS_WITHOUT_CONSENT_DEDUCTION
    return max(0, min(100, score))


def analyze_gdpr(doc: Document, ctx: AnalysisContext) -> GDPRResult:
    has_banner = detect_cookie_banner(doc)
    has_policy = detect_privacy_policy(doc)
    trackers = detect_trackers(ctx.html or doc.source)
    return GDPRResult(
        has_cookie_banner=has_banner,
        has_privacy_policy=has_policy,
        trackers=trackers,
        score=gdpr_score(has_banner, has_policy, trackers),
    )
