"""
models.py — Result value objects produced by the analyzers.

All models are frozen and serialise with camelCase keys, so
``report.to_dict()`` is the JSON contract returned to the frontend.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self]


SEVERITY_RANK = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


class Category(str, Enum):
    SECURITY = "security"
    GDPR = "gdpr"
    ACCESSIBILITY = "accessibility"


class TrackerType(str, Enum):
    ANALYTICS = "analytics"
    ADVERTISING = "advertising"
    SOCIAL = "social"
    OTHER = "other"


class _Model(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel,
                              populate_by_name=True)

    def to_dict(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


Score = Annotated[int, Field(ge=0, le=100)]


# ── Security ───────────────────────────────────────────────────────────────────

class Vulnerability(_Model):
    component: str
    version: str | None = None
    severity: Severity
    description: str


class Plugin(_Model):
    name: str
    slug: str
    version: str | None = None


class Theme(Plugin):
    pass


class SSLCertificate(_Model):
    is_valid: bool
    issuer: str | None = None
    expiry_date: str | None = None
    grade: str | None = None
    warnings: list[str] = []


class SecurityHeaders(_Model):
    content_security_policy: bool = False
    strict_transport_security: bool = False
    x_frame_options: bool = False
    x_content_type_options: bool = False
    referrer_policy: bool = False
    permissions_policy: bool = False
    score: int = Field(default=0, ge=0)


class ConsoleWarning(_Model):
    type: str  # security | mixed-content | deprecated | vulnerability
    message: str
    severity: Severity
    source: str | None = None


class ReputationCheck(_Model):
    service: str
    status: str  # clean | warning | malicious | unknown
    details: str | None = None
    last_checked: str


class SecurityResult(_Model):
    is_wordpress: bool = Field(alias="isWordPress")
    detection_method: str
    is_hardened: bool
    wordpress_version: str | None = Field(default=None, alias="wordpressVersion")
    plugins: list[Plugin] = []
    themes: list[Theme] = []
    vulnerabilities: list[Vulnerability] = []
    ssl_certificate: SSLCertificate | None = None
    security_headers: SecurityHeaders | None = None
    console_warnings: list[ConsoleWarning] = []
    reputation_checks: list[ReputationCheck] = []
    score: Score


# ── GDPR ───────────────────────────────────────────────────────────────────────

class Tracker(_Model):
    name: str
    type: TrackerType
    detected: bool


class GDPRResult(_Model):
    has_cookie_banner: bool
    has_privacy_policy: bool
    trackers: list[Tracker]
    score: Score


# ── Accessibility ──────────────────────────────────────────────────────────────

class AccessibilityResult(_Model):
    missing_alt_images: int = Field(ge=0)
    heading_issues: list[str]
    missing_aria_labels: int = Field(ge=0)
    score: Score


# ── Report ─────────────────────────────────────────────────────────────────────

class Recommendation(_Model):
    category: Category
    severity: Severity
    title: str
    description: str
    action: str


class CategoryScores(_Model):
    security: Score
    gdpr: Score
    accessibility: Score


class AnalysisReport(_Model):
    url: str
    timestamp: str
    security: SecurityResult
    gdpr: GDPRResult
    accessibility: AccessibilityResult
    overall_score: Score
    grade: str
    category_scores: CategoryScores
    recommendations: list[Recommendation] = []


# ── Analysis input ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AnalysisContext:
    """Everything an analyzer may look at besides the parsed document.

    ``headers`` are the response headers of the page fetch (None when only the
    HTML is known). ``session`` enables network sub-checks; without it the
    analyzers are pure functions of their inputs.
    """
    url: str
    html: str = ""
    headers: Mapping[str, str] | None = None
    session: Any = None
    timestamp: str = ""
