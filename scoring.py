"""
scoring.py — Overall score, letter grade and colour band.
"""
import config as cfg


def overall_score(security: int, gdpr: int, accessibility: int) -> int:
    weighted = (security * cfg.SECURITY_WEIGHT
                + gdpr * cfg.GDPR_WEIGHT
                + accessibility * cfg.ACCESSIBILITY_WEIGHT)
    # round-half-up; Python's round() would send 82.5 to 82
    return max(0, min(100, int(weighted + 0.5)))


def score_grade(score: int) -> str:
    for floor, grade in cfg.GRADE_THRESHOLDS:
        if score >= floor:
            return grade
    return "F"


def score_color(score: int) -> str:
    """good / warning / bad band used by the dashboard."""
    if score >= cfg.COLOR_GOOD_THRESHOLD:
        return "good"
    if score >= cfg.COLOR_WARNING_THRESHOLD:
        return "warning"
    return "bad"
