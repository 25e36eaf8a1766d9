"""
document.py — Thin query layer over a BeautifulSoup tree.

Parsing never raises: markup the parser rejects yields an empty document, and
every query on an empty or partial tree simply returns no matches.
"""
import logging

from bs4 import BeautifulSoup, Comment, NavigableString
from bs4.builder import ParserRejectedMarkup

logger = logging.getLogger(__name__)

# Containers whose text is never shown to a visitor
_INVISIBLE_PARENTS = frozenset({"script", "style", "noscript", "template", "head", "title"})


class Document:
    def __init__(self, html: str | bytes | None):
        if isinstance(html, bytes):
            html = html.decode("utf-8", errors="replace")
        self.source: str = html or ""
        try:
            self.soup = BeautifulSoup(self.source, "html.parser")
        except (ParserRejectedMarkup, AssertionError) as e:
            logger.warning("HTML rejected by parser, analysing as empty: %s", e)
            self.soup = BeautifulSoup("", "html.parser")

    # ── Selection ──────────────────────────────────────────────────────────────

    def select(self, selector: str) -> list:
        """CSS selector query, e.g. ``'link[href*="wp-content"]'``."""
        return self.soup.select(selector)

    def find_all(self, name, **attrs) -> list:
        return self.soup.find_all(name, **attrs)

    def first(self, selector: str):
        return self.soup.select_one(selector)

    def exists(self, selector: str) -> bool:
        return self.soup.select_one(selector) is not None

    def has_elements(self) -> bool:
        return self.soup.find(True) is not None

    def with_attr_containing(self, tags, attr: str, fragment: str,
                             ignore_case: bool = False) -> list:
        """Elements of ``tags`` whose ``attr`` value contains ``fragment``."""
        needle = fragment.lower() if ignore_case else fragment
        out = []
        for el in self.soup.find_all(tags):
            value = self.attr(el, attr)
            if value is None:
                continue
            if ignore_case:
                value = value.lower()
            if needle in value:
                out.append(el)
        return out

    # ── Reading ────────────────────────────────────────────────────────────────

    @staticmethod
    def attr(el, name: str) -> str | None:
        """Attribute value as a string; multi-valued attributes are space-joined."""
        if el is None:
            return None
        value = el.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    @staticmethod
    def element_text(el) -> str:
        return el.get_text(" ", strip=True) if el is not None else ""

    def text(self) -> str:
        """Visible text of the whole document (no script/style bodies, no comments)."""
        parts = []
        for s in self.soup.find_all(string=True):
            if type(s) is not NavigableString:
                continue
            if s.parent is not None and s.parent.name in _INVISIBLE_PARENTS:
                continue
            chunk = s.strip()
            if chunk:
                parts.append(chunk)
        return " ".join(parts)

    def comments(self) -> list[str]:
        return [str(c) for c in self.soup.find_all(string=lambda s: isinstance(s, Comment))]

    def inline_scripts(self) -> list[str]:
        """Bodies of ``<script>`` tags without a ``src``."""
        return [s.get_text() for s in self.soup.find_all("script") if not s.get("src")]

    def asset_urls(self) -> list[str]:
        """``src`` of scripts and ``href`` of links, in document order."""
        urls = []
        for el in self.soup.find_all(["script", "link"]):
            url = el.get("src") or el.get("href")
            if url:
                urls.append(url)
        return urls
