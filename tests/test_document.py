from document import Document


def test_select_by_attribute_substring():
    doc = Document('<link href="/wp-content/a.css"><script src="/js/app.js"></script>')
    assert len(doc.select('link[href*="wp-content"]')) == 1
    assert doc.select('script[src*="wp-content"]') == []


def test_attr_joins_multi_valued_attributes():
    doc = Document('<body class="home wp-custom-logo"></body>')
    assert Document.attr(doc.first("body"), "class") == "home wp-custom-logo"
    assert Document.attr(None, "class") is None


def test_text_skips_scripts_styles_and_comments():
    doc = Document(
        "<html><head><title>T</title><style>.a{}</style></head>"
        "<body><!-- hidden note --><p>Hello</p><script>var cookie = 1;</script>"
        "<p>world</p></body></html>"
    )
    assert doc.text() == "Hello world"
    assert doc.comments() == [" hidden note "]


def test_inline_scripts_and_asset_urls():
    doc = Document('<script src="/a.js"></script><script>run()</script>'
                   '<link rel="stylesheet" href="/b.css">')
    assert doc.inline_scripts() == ["run()"]
    assert doc.asset_urls() == ["/a.js", "/b.css"]


def test_with_attr_containing_ignores_case_when_asked():
    doc = Document('<div id="CookieBanner"></div><div class="x"></div>')
    assert doc.with_attr_containing(True, "id", "cookie") == []
    assert len(doc.with_attr_containing(True, "id", "cookie", ignore_case=True)) == 1


def test_malformed_html_does_not_raise():
    doc = Document("<div><p>unclosed <b>bold</i></span></table><img src=x")
    assert doc.select("h1") == []
    assert isinstance(doc.text(), str)


def test_empty_and_bytes_input():
    assert not Document(None).has_elements()
    assert Document(b"<p>caf\xc3\xa9</p>").text() == "café"
