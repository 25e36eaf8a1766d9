"""
security_analyzer.py — Platform detection and security posture.

Two groups of checks:
  1. WordPress fingerprinting from markup: detection signals, version, plugins,
     themes and known vulnerabilities. Sites that hide every obvious marker but
     still leak subtle ones are reported as "hardened".
  2. Auxiliary checks that do not depend on the platform: TLS, response
     security headers, suspicious script patterns and URL reputation.

Network sub-checks (HEAD probe, remote reputation lookups) only run when the
context carries a session. Each one is timeout-bound and degrades to a
conservative default instead of raising.
"""
import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from dataclasses import dataclass
from ipaddress import ip_address
from typing import Mapping
from urllib.parse import urlparse

import requests

import config as cfg
from catalogs import (JQUERY_VERSION_PATTERNS, KNOWN_VULNERABILITIES, PLATFORM_NAME,
                      SUSPICIOUS_TLDS, VULNERABLE_PLUGINS)
from document import Document
from models import (AnalysisContext, ConsoleWarning, Plugin, ReputationCheck,
                    SecurityHeaders, SecurityResult, Severity, SSLCertificate, Theme,
                    Vulnerability)

logger = logging.getLogger(__name__)


# ── Platform detection ─────────────────────────────────────────────────────────

def _meta_generator(doc: Document) -> str:
    return doc.attr(doc.first('meta[name="generator"]'), "content") or ""


def _body_classes(doc: Document) -> bool:
    classes = doc.attr(doc.first("body"), "class") or ""
    return "wordpress" in classes.split() or "wp-" in classes


def _rsd_link(doc: Document) -> bool:
    href = doc.attr(doc.first('link[rel="EditURI"]'), "href") or ""
    return "xmlrpc.php" in href


def _theme_stylesheet_ids(doc: Document) -> bool:
    for link in doc.select('link[id$="-css"]'):
        link_id = link.get("id", "")
        if "style" in link_id or "theme" in link_id:
            return True
    return False


def _platform_comments(doc: Document) -> bool:
    return any("WordPress" in c or "wp-" in c for c in doc.comments())


def _platform_scripts(doc: Document) -> bool:
    return any("wp_" in s or "wordpress" in s for s in doc.inline_scripts())


# (name, is_obvious, check); obvious markers survive no hardening
PLATFORM_SIGNALS = (
    ("wp-content paths", True,
     lambda d: d.exists('link[href*="wp-content"], script[src*="wp-content"]')),
    ("wp-includes paths", True,
     lambda d: d.exists('link[href*="wp-includes"], script[src*="wp-includes"]')),
    ("wp-admin paths", True,
     lambda d: d.exists('link[href*="wp-admin"], script[src*="wp-admin"]')),
    ("meta generator", True, lambda d: "WordPress" in _meta_generator(d)),
    ("admin bar", True, lambda d: d.exists("#wpadminbar")),
    ("login form action", True, lambda d: d.exists('form[action*="wp-login"]')),
    ("body classes", False, _body_classes),
    ("pingback link", False, lambda d: d.exists('link[rel="pingback"]')),
    ("REST API", False, lambda d: d.exists('link[rel="https://api.w.org/"]')),
    ("RSD link", False, _rsd_link),
    ("shortlink", False, lambda d: d.exists('link[rel="shortlink"]')),
    ("WordPress comments", False, _platform_comments),
    ("theme patterns", False, _theme_stylesheet_ids),
    ("WordPress scripts", False, _platform_scripts),
)


def detect_platform(doc: Document) -> tuple[bool, str, bool]:
    """Returns (detected, detection-method label, hardened)."""
    fired = [(name, obvious) for name, obvious, check in PLATFORM_SIGNALS if check(doc)]
    obvious = [name for name, is_obvious in fired if is_obvious]
    subtle = [name for name, is_obvious in fired if not is_obvious]

    if not fired:
        return False, "Not detected", False

    hardened = not obvious and bool(subtle)
    names = ", ".join(name for name, _ in fired)
    prefix = "Hardened" if hardened else "Standard"
    logger.debug("Platform signals fired: %s", names)
    return True, f"{prefix} WordPress (detected via: {names})", hardened


_GENERATOR_VERSION = re.compile(r"WordPress\s+([\d.]+)")
_ASSET_VERSION = re.compile(r"[?&]ver=([\d.]+)")


def detect_version(doc: Document) -> str | None:
    generator = _meta_generator(doc)
    if "WordPress" in generator:
        m = _GENERATOR_VERSION.search(generator)
        if m:
            return m.group(1).rstrip(".")

    for url in doc.asset_urls():
        if "wp-includes" not in url:
            continue
        m = _ASSET_VERSION.search(url)
        if m:
            return m.group(1).rstrip(".")
    return None


def slug_to_name(slug: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))


def _extension_slugs(doc: Document, kind: str) -> list[str]:
    pattern = re.compile(rf"wp-content/{kind}/([^/?#\"']+)")
    slugs = []
    for url in doc.asset_urls():
        m = pattern.search(url)
        if m:
            slugs.append(m.group(1))
    return list(dict.fromkeys(slugs))


def detect_plugins(doc: Document) -> list[Plugin]:
    return [Plugin(name=slug_to_name(s), slug=s) for s in _extension_slugs(doc, "plugins")]


def detect_themes(doc: Document) -> list[Theme]:
    return [Theme(name=slug_to_name(s), slug=s) for s in _extension_slugs(doc, "themes")]


def _version_tuple(version: str) -> tuple:
    parts = [int(p) for p in re.findall(r"\d+", version)[:2]]
    return tuple(parts + [0] * (2 - len(parts)))


def is_outdated(version: str, floor: str) -> bool:
    if not re.search(r"\d", version):
        return False
    return _version_tuple(version) < _version_tuple(floor)


def check_vulnerabilities(version: str | None, plugins: list[Plugin]) -> list[Vulnerability]:
    vulns = []
    if version:
        for severity, description in KNOWN_VULNERABILITIES.get(version, ()):
            vulns.append(Vulnerability(component=PLATFORM_NAME, version=version,
                                       severity=severity, description=description))
        if is_outdated(version, cfg.CURRENT_PLATFORM_VERSION):
            vulns.append(Vulnerability(
                component=PLATFORM_NAME, version=version, severity=Severity.HIGH,
                description="WordPress version is outdated and may contain security vulnerabilities"))

    for plugin in plugins:
        if plugin.slug in VULNERABLE_PLUGINS:
            vulns.append(Vulnerability(component=plugin.name, version=plugin.version,
                                       severity=Severity.CRITICAL,
                                       description=VULNERABLE_PLUGINS[plugin.slug]))
    return vulns


# ── Network sub-checks ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProbeResult:
    ok: bool
    headers: Mapping[str, str] | None = None
    ssl_error: str | None = None
    error: str | None = None


def probe_target(session, url: str) -> ProbeResult:
    """HEAD the target to confirm the TLS handshake and read response headers."""
    try:
        r = session.head(url, timeout=cfg.HEAD_TIMEOUT, allow_redirects=True)
        return ProbeResult(ok=True, headers=dict(r.headers))
    except requests.exceptions.SSLError as e:
        return ProbeResult(ok=False, ssl_error=str(e)[:120])
    except requests.exceptions.Timeout:
        return ProbeResult(ok=False, error="Request timed out")
    except requests.exceptions.RequestException as e:
        return ProbeResult(ok=False, error=str(e)[:120])


def lookup_safe_browsing(session, url: str, checked_at: str) -> ReputationCheck:
    payload = {
        "client": {"clientId": "site-health-analyser", "clientVersion": "1.0"},
        "threatInfo": {
            "threatTypes": ["MALWARE", "SOCIAL_ENGINEERING", "UNWANTED_SOFTWARE",
                            "POTENTIALLY_HARMFUL_APPLICATION"],
            "platformTypes": ["ANY_PLATFORM"],
            "threatEntryTypes": ["URL"],
            "threatEntries": [{"url": url}],
        },
    }
    service = "Google Safe Browsing"
    try:
        r = session.post(cfg.SAFE_BROWSING_ENDPOINT,
                         params={"key": cfg.SAFE_BROWSING_API_KEY},
                         json=payload, timeout=cfg.HEAD_TIMEOUT)
        if r.status_code >= 400:
            return ReputationCheck(service=service, status="unknown",
                                   details=f"Lookup failed (HTTP {r.status_code})",
                                   last_checked=checked_at)
        matches = r.json().get("matches") or []
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("Safe Browsing lookup failed for %s: %s", url, e)
        return ReputationCheck(service=service, status="unknown",
                               details="Lookup unavailable", last_checked=checked_at)

    if not matches:
        return ReputationCheck(service=service, status="clean", last_checked=checked_at)
    threats = sorted({m.get("threatType", "UNKNOWN") for m in matches})
    return ReputationCheck(service=service, status="malicious",
                           details=f"Listed for: {', '.join(threats)}",
                           last_checked=checked_at)


def lookup_urlhaus(session, url: str, checked_at: str) -> ReputationCheck:
    service = "URLhaus"
    try:
        r = session.post(cfg.URLHAUS_ENDPOINT, data={"url": url}, timeout=cfg.HEAD_TIMEOUT)
        query_status = r.json().get("query_status", "")
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("URLhaus lookup failed for %s: %s", url, e)
        return ReputationCheck(service=service, status="unknown",
                               details="Lookup unavailable", last_checked=checked_at)

    if query_status == "ok":
        return ReputationCheck(service=service, status="malicious",
                               details="URL found in URLhaus malware feed",
                               last_checked=checked_at)
    if query_status == "no_results":
        return ReputationCheck(service=service, status="clean", last_checked=checked_at)
    return ReputationCheck(service=service, status="unknown",
                           details=f"Query status: {query_status or 'n/a'}",
                           last_checked=checked_at)


def check_url_heuristics(url: str, checked_at: str) -> ReputationCheck:
    """Local, network-free reputation signals derived from the URL itself."""
    host = (urlparse(url).hostname or "").lower()
    findings = []
    try:
        ip_address(host)
        findings.append("host is a bare IP address")
    except ValueError:
        pass
    if any(label.startswith("xn--") for label in host.split(".")):
        findings.append("punycode hostname")
    tld = host.rsplit(".", 1)[-1] if "." in host else ""
    if tld in SUSPICIOUS_TLDS:
        findings.append(f"high-abuse TLD .{tld}")
    if host.count(".") >= 5:
        findings.append("unusually deep subdomain nesting")

    if findings:
        return ReputationCheck(service="URL heuristics", status="warning",
                               details="; ".join(findings), last_checked=checked_at)
    return ReputationCheck(service="URL heuristics", status="clean", last_checked=checked_at)


def run_network_checks(ctx: AnalysisContext) -> tuple[ProbeResult | None, list[ReputationCheck]]:
    """Run the HEAD probe and remote lookups concurrently, each bound by a timeout."""
    if ctx.session is None:
        return None, []

    tasks = {"probe": lambda: probe_target(ctx.session, ctx.url)}
    if cfg.REMOTE_REPUTATION:
        if cfg.SAFE_BROWSING_API_KEY:
            tasks["Google Safe Browsing"] = lambda: lookup_safe_browsing(
                ctx.session, ctx.url, ctx.timestamp)
        tasks["URLhaus"] = lambda: lookup_urlhaus(ctx.session, ctx.url, ctx.timestamp)

    pool = ThreadPoolExecutor(max_workers=cfg.SUBCHECK_WORKERS)
    futures = {name: pool.submit(fn) for name, fn in tasks.items()}
    deadline = time.monotonic() + cfg.HEAD_TIMEOUT + 1
    results = {}
    try:
        for name, future in futures.items():
            try:
                results[name] = future.result(timeout=max(0.0, deadline - time.monotonic()))
            except FuturesTimeout:
                future.cancel()
                logger.warning("Sub-check %s timed out for %s", name, ctx.url)
            except Exception as e:
                logger.warning("Sub-check %s failed for %s: %s", name, ctx.url, e)
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    probe = results.get("probe") or ProbeResult(ok=False, error="Probe timed out")
    checks = []
    for name in tasks:
        if name == "probe":
            continue
        checks.append(results.get(name) or ReputationCheck(
            service=name, status="unknown", details="Lookup timed out",
            last_checked=ctx.timestamp))
    return probe, checks


# ── Auxiliary findings ─────────────────────────────────────────────────────────

def check_ssl(url: str, probe: ProbeResult | None) -> SSLCertificate:
    if urlparse(url).scheme != "https":
        return SSLCertificate(is_valid=False,
                              warnings=["Website is not using HTTPS encryption"])
    if probe is None or probe.ok:
        return SSLCertificate(is_valid=True)
    if probe.ssl_error:
        return SSLCertificate(is_valid=False,
                              warnings=[f"TLS validation failed: {probe.ssl_error}"])
    return SSLCertificate(is_valid=False,
                          warnings=[f"TLS probe failed: {probe.error or 'unknown error'}"])


# field name → response header
SECURITY_HEADER_FIELDS = {
    "content_security_policy": "content-security-policy",
    "strict_transport_security": "strict-transport-security",
    "x_frame_options": "x-frame-options",
    "x_content_type_options": "x-content-type-options",
    "referrer_policy": "referrer-policy",
    "permissions_policy": "permissions-policy",
}


def check_security_headers(headers: Mapping[str, str] | None) -> SecurityHeaders:
    present_names = {k.lower() for k in (headers or {})}
    flags = {field: header in present_names for field, header in SECURITY_HEADER_FIELDS.items()}
    score = int(sum(flags.values()) / len(flags) * cfg.HEADER_SCORE_CEILING + 0.5)
    return SecurityHeaders(score=score, **flags)


_MIXED_CONTENT = re.compile(
    r"<(?:img|script|iframe|link|source|video|audio|embed)\b[^>]*?\b(?:src|href)\s*=\s*[\"']?http://",
    re.I)
_SCRIPT_BLOCK = re.compile(r"<script\b([^>]*)>(.*?)</script\s*>", re.I | re.S)
_DYNAMIC_CODE = re.compile(r"\beval\s*\(|\bnew\s+Function\s*\(")
_NON_EXECUTABLE_TYPES = ("application/ld+json", "application/json", "text/template",
                         "text/x-template", "importmap")


def scan_console_warnings(html: str, url: str) -> list[ConsoleWarning]:
    warnings = []

    if urlparse(url).scheme == "https":
        mixed = _MIXED_CONTENT.findall(html)
        if mixed:
            warnings.append(ConsoleWarning(
                type="mixed-content", severity=Severity.MEDIUM,
                message=f"{len(mixed)} resource(s) loaded over HTTP on an HTTPS page"))

    inline_without_nonce = 0
    uses_dynamic_code = False
    for attrs, body in _SCRIPT_BLOCK.findall(html):
        attrs_lower = attrs.lower()
        if re.search(r"\bsrc\s*=", attrs_lower) or not body.strip():
            continue
        if any(t in attrs_lower for t in _NON_EXECUTABLE_TYPES):
            continue
        if _DYNAMIC_CODE.search(body):
            uses_dynamic_code = True
        if not re.search(r"\bnonce\s*=", attrs_lower):
            inline_without_nonce += 1

    if uses_dynamic_code:
        warnings.append(ConsoleWarning(
            type="security", severity=Severity.HIGH, source="inline script",
            message="Inline script uses eval() or new Function(), which executes arbitrary strings as code"))
    if inline_without_nonce:
        warnings.append(ConsoleWarning(
            type="security", severity=Severity.LOW,
            message=f"{inline_without_nonce} inline script(s) without a CSP nonce"))

    for pattern in JQUERY_VERSION_PATTERNS:
        m = pattern.search(html)
        if m and is_outdated(m.group(1), cfg.CURRENT_JQUERY_VERSION):
            warnings.append(ConsoleWarning(
                type="vulnerability", severity=Severity.HIGH, source=f"jQuery {m.group(1)}",
                message=f"jQuery {m.group(1)} is outdated and has known XSS vulnerabilities"))
            break

    return warnings


# ── Scoring ────────────────────────────────────────────────────────────────────

_VULN_DEDUCTIONS = {
    Severity.CRITICAL: cfg.VULN_DEDUCTION_CRITICAL,
    Severity.HIGH: cfg.VULN_DEDUCTION_HIGH,
    Severity.MEDIUM: cfg.VULN_DEDUCTION_MEDIUM,
    Severity.LOW: cfg.VULN_DEDUCTION_LOW,
}

_CONSOLE_DEDUCTIONS = {
    Severity.HIGH: cfg.CONSOLE_DEDUCTION_HIGH,
    Severity.MEDIUM: cfg.CONSOLE_DEDUCTION_MEDIUM,
    Severity.LOW: cfg.CONSOLE_DEDUCTION_LOW,
}

_REPUTATION_WEIGHTS = {"clean": 1.0, "unknown": 0.5, "warning": 0.25, "malicious": 0.0}


def _clamp(score: float) -> int:
    return max(0, min(100, int(score + 0.5)))


def platform_score(detected: bool, hardened: bool, version: str | None,
                   vulnerabilities: list[Vulnerability]) -> int:
    if not detected:
        return cfg.NEUTRAL_SECURITY_SCORE

    score = cfg.SECURITY_BASELINE
    if hardened:
        score += cfg.HARDENED_BONUS
    for vuln in vulnerabilities:
        score -= _VULN_DEDUCTIONS[vuln.severity]
    if not version:
        score -= (cfg.UNKNOWN_VERSION_DEDUCTION_HARDENED if hardened
                  else cfg.UNKNOWN_VERSION_DEDUCTION)
    return _clamp(score)


def posture_score(ssl_cert: SSLCertificate, headers: SecurityHeaders | None,
                  console: list[ConsoleWarning], reputation: list[ReputationCheck]) -> int:
    score = cfg.POSTURE_SSL_POINTS if ssl_cert.is_valid else 0
    score += headers.score if headers else 0
    console_penalty = sum(_CONSOLE_DEDUCTIONS.get(w.severity, 0) for w in console)
    score += max(0, cfg.POSTURE_CONSOLE_POINTS - console_penalty)
    if reputation:
        ratio = sum(_REPUTATION_WEIGHTS.get(c.status, 0.5) for c in reputation) / len(reputation)
        score += cfg.POSTURE_REPUTATION_POINTS * ratio
    else:
        score += cfg.POSTURE_REPUTATION_POINTS
    return _clamp(score)


# ── Entry point ────────────────────────────────────────────────────────────────

def analyze_security(doc: Document, ctx: AnalysisContext) -> SecurityResult:
    detected, method, hardened = detect_platform(doc)
    version = detect_version(doc)
    plugins = detect_plugins(doc)
    themes = detect_themes(doc)
    vulnerabilities = check_vulnerabilities(version, plugins)

    probe, remote_checks = run_network_checks(ctx)
    ssl_cert = check_ssl(ctx.url, probe)

    if ctx.headers is not None:
        headers = check_security_headers(ctx.headers)
    elif probe is not None:
        headers = check_security_headers(probe.headers if probe.ok else None)
    else:
        headers = None

    console = scan_console_warnings(ctx.html or doc.source, ctx.url)
    reputation = [check_url_heuristics(ctx.url, ctx.timestamp)] + remote_checks

    if cfg.SECURITY_SCORE_MODE == "posture":
        score = posture_score(ssl_cert, headers, console, reputation)
    else:
        score = platform_score(detected, hardened, version, vulnerabilities)

    return SecurityResult(
        is_wordpress=detected,
        detection_method=method,
        is_hardened=hardened,
        wordpress_version=version,
        plugins=plugins,
        themes=themes,
        vulnerabilities=vulnerabilities,
        ssl_certificate=ssl_cert,
        security_headers=headers,
        console_warnings=console,
        reputation_checks=reputation,
        score=score,
    )
