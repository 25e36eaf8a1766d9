"""
accessibility_analyzer.py — Alt text, heading outline and accessible names.
"""
import config as cfg
from catalogs import MEANINGLESS_ALT_PATTERNS
from document import Document
from models import AccessibilityResult, AnalysisContext

_UNLABELLED_INPUT_TYPES_SKIPPED = ("hidden", "submit", "button")


def is_meaningless_alt(alt: str) -> bool:
    alt = alt.strip()
    return any(p.match(alt) for p in MEANINGLESS_ALT_PATTERNS)


def count_missing_alt(doc: Document) -> int:
    missing = 0
    for img in doc.find_all("img"):
        alt = img.get("alt")
        # Decorative images are exempt
        if img.get("role") == "presentation" or alt == "":
            continue
        if alt is None or not alt.strip() or is_meaningless_alt(alt):
            missing += 1
    return missing


def check_heading_hierarchy(doc: Document) -> list[str]:
    headings = [(int(h.name[1]), doc.element_text(h))
                for h in doc.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])]
    if not headings:
        return ["No headings found on the page"]

    issues = []
    h1_count = sum(1 for level, _ in headings if level == 1)
    if h1_count == 0:
        issues.append("No H1 heading found")
    elif h1_count > 1:
        issues.append(f"Multiple H1 headings found ({h1_count})")

    for (prev, _), (cur, _) in zip(headings, headings[1:]):
        if cur > prev + 1:
            issues.append(f"Heading level jumps from H{prev} to H{cur}")

    for level, text in headings:
        if not text:
            issues.append(f"Empty H{level} heading found")
    return issues


def _non_empty(value) -> bool:
    return bool(value and value.strip())


def count_missing_names(doc: Document) -> int:
    missing = 0
    label_targets = {label.get("for") for label in doc.find_all("label") if label.get("for")}

    for field in doc.find_all(["input", "textarea", "select"]):
        if (field.get("type") or "").lower() in _UNLABELLED_INPUT_TYPES_SKIPPED:
            continue
        field_id = field.get("id")
        if field_id and field_id in label_targets:
            continue
        if _non_empty(field.get("aria-label")) or _non_empty(field.get("aria-labelledby")):
            continue
        missing += 1

    for button in doc.find_all("button"):
        if not (doc.element_text(button) or button.get("aria-label")
                or button.get("aria-labelledby")):
            missing += 1

    for link in doc.find_all("a"):
        if not (doc.element_text(link) or link.get("aria-label")
                or link.get("aria-labelledby") or link.get("title")):
            missing += 1
    return missing


def accessibility_score(missing_alt: int, heading_issues: list[str], missing_names: int) -> int:
    score = 100
    score -= min(missing_alt * cfg.ALT_DEDUCTION_PER_ITEM, cfg.ALT_DEDUCTION_CAP)
    score -= min(len(heading_issues) * cfg.HEADING_DEDUCTION_PER_ITEM, cfg.HEADING_DEDUCTION_CAP)
    score -= min(missing_names * cfg.ARIA_DEDUCTION_PER_ITEM, cfg.ARIA_DEDUCTION_CAP)
    return max(0, min(100, score))


def analyze_accessibility(doc: Document, ctx: AnalysisContext | None = None) -> AccessibilityResult:
    missing_alt = count_missing_alt(doc)
    heading_issues = check_heading_hierarchy(doc)
    missing_names = count_missing_names(doc)
    return AccessibilityResult(
        missing_alt_images=missing_alt,
        heading_issues=heading_issues,
        missing_aria_labels=missing_names,
        score=accessibility_score(missing_alt, heading_issues, missing_names),
    )
