"""
Shared fixtures: sample pages and a network-free stand-in for requests.Session.
"""
import time

import pytest
import requests
from requests.structures import CaseInsensitiveDict

ALL_SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'",
    "Strict-Transport-Security": "max-age=31536000",
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin",
    "Permissions-Policy": "geolocation=()",
}


def page(head: str = "", body: str = "") -> str:
    return f"<!DOCTYPE html><html lang=\"en\"><head>{head}</head><body>{body}</body></html>"


class FakeResponse:
    def __init__(self, text="", status_code=200, reason="OK", headers=None, chunk_delay=0.0):
        self.text = text
        self.content = text.encode("utf-8")
        self.status_code = status_code
        self.reason = reason
        self.headers = CaseInsensitiveDict(headers or {})
        self.encoding = "utf-8"
        self.apparent_encoding = "utf-8"
        self.chunk_delay = chunk_delay
        self.closed = False

    def iter_content(self, chunk_size=1, decode_unicode=False):
        # A delayed body trickles in as ten slow chunks
        step = max(1, len(self.content) // 10) if self.chunk_delay else chunk_size
        for i in range(0, len(self.content), step):
            time.sleep(self.chunk_delay)
            yield self.content[i:i + step]

    def close(self):
        self.closed = True


class FakeSession:
    """Records calls; ``get``/``head`` return canned responses or raise."""

    def __init__(self, html="", status_code=200, headers=None,
                 get_error=None, head_error=None, chunk_delay=0.0, delay=0.0):
        self.headers = {}
        self.max_redirects = 30
        self.html = html
        self.status_code = status_code
        self.response_headers = headers or {}
        self.get_error = get_error
        self.head_error = head_error
        self.chunk_delay = chunk_delay
        self.delay = delay
        self.calls = []
        self.responses = []

    def get(self, url, **kwargs):
        self.calls.append(("GET", url))
        if self.get_error:
            raise self.get_error
        resp = FakeResponse(self.html, self.status_code,
                            "OK" if self.status_code < 400 else "Not Found",
                            self.response_headers, chunk_delay=self.chunk_delay)
        self.responses.append(resp)
        return resp

    def head(self, url, **kwargs):
        self.calls.append(("HEAD", url))
        time.sleep(self.delay)
        if self.head_error:
            raise self.head_error
        return FakeResponse("", 200, "OK", self.response_headers)

    def post(self, url, **kwargs):
        self.calls.append(("POST", url))
        time.sleep(self.delay)
        raise requests.exceptions.ConnectionError("no network in tests")


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def wordpress_page():
    return page(
        head=(
            '<meta name="generator" content="WordPress 6.5">'
            '<link rel="stylesheet" id="twentytwenty-style-css" '
            'href="https://example.com/wp-content/themes/twentytwenty/style.css?ver=2.1">'
            '<script src="https://example.com/wp-content/plugins/contact-form-7/js/index.js"></script>'
            '<script src="https://example.com/wp-content/plugins/contact-form-7/js/extra.js"></script>'
            '<script src="https://example.com/wp-content/plugins/woocommerce/assets/cart.js"></script>'
            '<script src="https://example.com/wp-includes/js/jquery/jquery.min.js?ver=3.7.1"></script>'
        ),
        body=(
            '<div id="cookie-notice">We use cookies. <button>Accept</button></div>'
            '<h1>Welcome</h1><h2>News</h2>'
            '<img src="/a.jpg" alt="Team photo at the summit">'
            '<footer><a href="/privacy-policy/">Privacy Policy</a></footer>'
        ),
    )
