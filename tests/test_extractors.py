import asyncio
from unittest.mock import patch

import pytest

from core.context import PageContext
from extractors.forms import FormExtractor, synthesize_value
from extractors.links import LinkExtractor
from extractors.script_content import ScriptExtractor
from models.endpoint import EndpointSource


def make_page(html: str, url: str = "http://example.test/docs/index.html", depth: int = 0) -> PageContext:
    return PageContext(base_url="http://example.test", url=url, html=html, depth=depth)


@pytest.fixture
def links_page():
    return make_page("""
    <html><body>
        <a href="/about">About us</a>
        <a href="guide.html">Guide</a>
        <a href="../api/v1/">API</a>
        <a href="http://example.test/contact#form">Contact</a>
        <a href="https://other.test/evil">Elsewhere</a>
        <a href="#top">Top</a>
        <a href="javascript:void(0)">Nothing</a>
        <a href="mailto:admin@example.test">Mail</a>
        <a href="tel:+100">Call</a>
        <a>No href</a>
    </body></html>
    """, depth=1)


def test_link_extractor_resolves_same_host_links(links_page):
    endpoints = asyncio.run(LinkExtractor().extract(links_page))
    urls = [e.url for e in endpoints]

    assert urls == [
        "http://example.test/about",
        "http://example.test/docs/guide.html",
        "http://example.test/api/v1/",
        "http://example.test/contact",
    ]
    assert all(e.source == EndpointSource.LINK for e in endpoints)
    assert all(e.method == "GET" for e in endpoints)
    assert all(e.depth == 2 for e in endpoints)
    assert endpoints[0].metadata["text"] == "About us"


def test_link_extractor_falls_back_to_tag_scan(links_page):
    with patch("extractors.links.BeautifulSoup", side_effect=RuntimeError("parser exploded")):
        endpoints = asyncio.run(LinkExtractor().extract(links_page))

    assert [e.url for e in endpoints] == [
        "http://example.test/about",
        "http://example.test/docs/guide.html",
        "http://example.test/api/v1/",
        "http://example.test/contact",
    ]
    assert all(e.depth == 2 for e in endpoints)


def test_link_extractor_tag_scan_handles_unquoted_href():
    page = make_page("<A HREF=/raw>raw</A><a class=x href='/single'>s</a>")
    with patch("extractors.links.BeautifulSoup", side_effect=RuntimeError("broken")):
        endpoints = asyncio.run(LinkExtractor().extract(page))

    assert [e.url for e in endpoints] == ["http://example.test/raw", "http://example.test/single"]


def test_form_extractor_synthesizes_input_values():
    page = make_page("""
    <form action="/login" method="post">
        <input name="email" type="email">
        <input name="password" type="password">
        <input name="age" type="number">
        <input name="volume" type="range">
        <input name="remember" type="checkbox">
        <input name="plan" type="radio">
        <input name="nickname">
        <input name="csrf" type="hidden" value="tok123">
        <textarea name="bio"></textarea>
        <select name="country"></select>
        <input type="submit" name="go" value="Go">
        <input type="reset" name="clear">
        <button type="button" name="noop">x</button>
        <input type="text">
    </form>
    """)

    endpoints = asyncio.run(FormExtractor().extract(page))

    assert len(endpoints) == 1
    form = endpoints[0]
    assert form.url == "http://example.test/login"
    assert form.method == "POST"
    assert form.source == EndpointSource.FORM
    assert form.depth == 1
    assert dict(form.metadata["inputs"]) == {
        "email": "test@example.com",
        "password": "password123",
        "age": "1",
        "volume": "1",
        "remember": "on",
        "plan": "on",
        "nickname": "test",
        "csrf": "tok123",
        "bio": "test",
        "country": "test",
    }


def test_form_extractor_defaults_action_and_method():
    page = make_page('<form><input name="q" type="search"></form><form action="https://other.test/x"></form>')

    endpoints = asyncio.run(FormExtractor().extract(page))

    assert len(endpoints) == 1
    assert endpoints[0].url == "http://example.test/docs/index.html"
    assert endpoints[0].method == "GET"
    assert endpoints[0].metadata["inputs"] == {"q": "test"}


def test_synthesize_value_is_case_insensitive():
    assert synthesize_value("EMAIL") == "test@example.com"
    assert synthesize_value("") == "test"


def test_script_extractor_recovers_paths_and_methods():
    page = make_page("""
    <script src="/static/app.js"></script>
    <script>
        fetch('/api/users');
        fetch("/api/items", { method: "POST", body: data });
        axios.delete('/api/items/1');
        axios({ url: '/api/orders', method: 'get' });
        var xhr = new XMLHttpRequest(); xhr.open("PUT", "/api/profile");
        $.post('/comments', payload);
        $.ajax({ url: "/api/search" });
        window.location = "/logout";
        fetch('https://cdn.other.test/track');
    </script>
    """)

    endpoints = asyncio.run(ScriptExtractor().extract(page))
    found = {(e.url, e.method) for e in endpoints}

    assert ("http://example.test/api/users", "GET") in found
    assert ("http://example.test/api/items", "POST") in found
    assert ("http://example.test/api/items/1", "DELETE") in found
    assert ("http://example.test/api/orders", "GET") in found
    assert ("http://example.test/api/profile", "PUT") in found
    assert ("http://example.test/comments", "POST") in found
    assert ("http://example.test/api/search", "GET") in found
    assert ("http://example.test/logout", "GET") in found
    assert ("http://example.test/static/app.js", "GET") in found
    assert not any("other.test" in url for url, _ in found)

    assert all(e.source == EndpointSource.JAVASCRIPT for e in endpoints)
    assert all(e.depth == 1 for e in endpoints)
    assert all("pattern" in e.metadata for e in endpoints)


def test_script_extractor_collapses_duplicate_hits():
    page = make_page("<script>fetch('/api/a'); fetch('/api/a'); get('/api/a');</script>")

    endpoints = asyncio.run(ScriptExtractor().extract(page))

    assert [(e.url, e.method) for e in endpoints] == [("http://example.test/api/a", "GET")]
    assert endpoints[0].metadata["pattern"] == "fetch"
