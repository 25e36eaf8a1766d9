"""
exceptions.py — Error conditions surfaced by the analysis engine.

Only two things can fail a whole analysis: a bad target URL (caught before any
network access) and a failed fetch of the target page. Everything else degrades
to a conservative finding inside the analyzers.
"""


class AnalysisError(Exception):
    """Base class for conditions that abort one analysis request."""


class InvalidURLError(AnalysisError):
    """The target URL is missing or malformed."""


class FetchError(AnalysisError):
    """The target page could not be fetched (network error, timeout, non-2xx)."""

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {reason}")
