"""
recommendations.py — Turns analyzer findings into severity-ranked action items.

Each rule emits at most one Recommendation; a condition that is not triggered
produces nothing. The result is stable-sorted, most severe first.
"""
import config as cfg
from models import (AccessibilityResult, Category, GDPRResult, Recommendation,
                    SecurityResult, Severity)

_ADVERSE_REPUTATION = ("warning", "malicious")


def _security_recommendations(security: SecurityResult) -> list[Recommendation]:
    recs = []

    if not security.is_wordpress:
        recs.append(Recommendation(
            category=Category.SECURITY, severity=Severity.MEDIUM,
            title="WordPress Not Detected",
            description="This site does not appear to be running WordPress.",
            action="Verify that this is a WordPress site or check if WordPress detection is being blocked."))
    elif security.is_hardened:
        recs.append(Recommendation(
            category=Category.SECURITY, severity=Severity.LOW,
            title="Excellent Security Hardening",
            description="WordPress detected through subtle indicators while obvious signs are hidden.",
            action="Continue maintaining this security hardening approach to reduce attack surface."))

    critical = [v for v in security.vulnerabilities if v.severity == Severity.CRITICAL]
    if critical:
        recs.append(Recommendation(
            category=Category.SECURITY, severity=Severity.CRITICAL,
            title="Critical Security Vulnerabilities Found",
            description=f"{len(critical)} critical vulnerabilities detected.",
            action="Update WordPress core, plugins, and themes immediately."))

    if security.ssl_certificate is not None and not security.ssl_certificate.is_valid:
        detail = "; ".join(security.ssl_certificate.warnings) or "No valid HTTPS connection."
        recs.append(Recommendation(
            category=Category.SECURITY, severity=Severity.CRITICAL,
            title="HTTPS Not Properly Configured",
            description=detail,
            action="Serve the site over HTTPS with a valid certificate and redirect all HTTP traffic."))

    headers = security.security_headers
    if headers is not None and headers.score < cfg.WEAK_HEADER_THRESHOLD:
        recs.append(Recommendation(
            category=Category.SECURITY, severity=Severity.HIGH,
            title="Weak Security Headers",
            description=f"Security header score is {headers.score}/{cfg.HEADER_SCORE_CEILING}.",
            action="Add Content-Security-Policy, Strict-Transport-Security, X-Frame-Options, "
                   "X-Content-Type-Options, Referrer-Policy and Permissions-Policy headers."))

    high_warnings = [w for w in security.console_warnings if w.severity == Severity.HIGH]
    if high_warnings:
        recs.append(Recommendation(
            category=Category.SECURITY, severity=Severity.HIGH,
            title="Risky Client-Side Code",
            description="; ".join(w.message for w in high_warnings),
            action="Remove eval()-style code and upgrade outdated JavaScript libraries."))

    flagged = [c for c in security.reputation_checks if c.status in _ADVERSE_REPUTATION]
    if flagged:
        recs.append(Recommendation(
            category=Category.SECURITY, severity=Severity.CRITICAL,
            title="Reputation Warnings",
            description="; ".join(f"{c.service}: {c.details or c.status}" for c in flagged),
            action="Investigate the site for compromise and request delisting once it is clean."))
    return recs


def _gdpr_recommendations(gdpr: GDPRResult) -> list[Recommendation]:
    recs = []
    if not gdpr.has_cookie_banner:
        recs.append(Recommendation(
            category=Category.GDPR, severity=Severity.HIGH,
            title="Missing Cookie Banner",
            description="No cookie consent banner detected.",
            action="Implement a GDPR-compliant cookie consent banner."))
    if not gdpr.has_privacy_policy:
        recs.append(Recommendation(
            category=Category.GDPR, severity=Severity.HIGH,
            title="Missing Privacy Policy",
            description="No privacy policy link found.",
            action="Add a privacy policy page and link it in the footer."))
    return recs


def _accessibility_recommendations(acc: AccessibilityResult) -> list[Recommendation]:
    recs = []
    if acc.missing_alt_images > 0:
        recs.append(Recommendation(
            category=Category.ACCESSIBILITY, severity=Severity.MEDIUM,
            title="Images Missing Alt Text",
            description=f"{acc.missing_alt_images} images are missing alt text.",
            action="Add descriptive alt text to all images for screen readers."))
    if acc.heading_issues:
        recs.append(Recommendation(
            category=Category.ACCESSIBILITY, severity=Severity.MEDIUM,
            title="Heading Structure Issues",
            description="Problems found with heading hierarchy: " + "; ".join(acc.heading_issues),
            action="Fix heading structure to follow proper H1-H6 hierarchy."))
    return recs


def generate_recommendations(security: SecurityResult, gdpr: GDPRResult,
                             accessibility: AccessibilityResult) -> list[Recommendation]:
    recs = (_security_recommendations(security)
            + _gdpr_recommendations(gdpr)
            + _accessibility_recommendations(accessibility))
    # sorted() is stable, so equal severities keep rule order
    return sorted(recs, key=lambda r: r.severity.rank, reverse=True)
