"""Tests for import and include locator resolution."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

import pytest
import requests

from codeless_ui.dom import LxmlDocument
from codeless_ui.errors import UnreadableImportError
from codeless_ui.render import ImportResolver, Locator

PARTIAL = (
    "<html><body><nav id='menu'><a href='/'>Home</a></nav>"
    "<footer id='foot'>f</footer></body></html>"
)


@dc.dataclass
class _Response:
    text: str
    status_code: int = 200

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            msg = f"{self.status_code} Error"
            raise requests.HTTPError(msg)


@dc.dataclass
class _Session:
    """Serve canned responses keyed by URL and record each request."""

    pages: dict[str, _Response]
    calls: list[tuple[str, float]] = dc.field(default_factory=list)
    closed: bool = False

    def get(self, url: str, timeout: float) -> _Response:
        self.calls.append((url, timeout))
        if url not in self.pages:
            msg = f"cannot reach {url}"
            raise requests.ConnectionError(msg)
        return self.pages[url]

    def close(self) -> None:
        self.closed = True


def _resolver(session: _Session, **kwargs: typ.Any) -> ImportResolver:
    return ImportResolver(session=typ.cast("requests.Session", session), **kwargs)


@pytest.fixture
def document() -> LxmlDocument:
    return LxmlDocument.from_markup(
        "<html><body><aside id='side'><p>s</p></aside><p class='x'>1</p><p class='x'>2</p></body></html>"
    )


@pytest.mark.parametrize(
    ("raw", "kind", "target", "fragment"),
    [
        ("url:https://example.com/a.html", "url", "https://example.com/a.html", None),
        ("url(https://example.com/a.html#nav)", "url", "https://example.com/a.html", "nav"),
        ("file:parts/a.html#card", "file", "parts/a.html", "card"),
        ("FILE(parts/a.html)", "file", "parts/a.html", None),
        ("#sidebar", "internal", "#sidebar", None),
        (" div.card > p ", "internal", "div.card > p", None),
    ],
)
def test_locator_parse(raw: str, kind: str, target: str, fragment: str | None) -> None:
    locator = Locator.parse(raw)
    assert (locator.kind, locator.target, locator.fragment) == (kind, target, fragment)


@pytest.mark.parametrize("raw", ["", "   ", "file:", "url:#frag"])
def test_locator_without_source_raises(raw: str) -> None:
    with pytest.raises(UnreadableImportError):
        Locator.parse(raw)


def test_internal_import_serializes_matches(document: LxmlDocument) -> None:
    resolver = ImportResolver()
    assert resolver.resolve("p.x", document) == '<p class="x">1</p><p class="x">2</p>'
    assert resolver.resolve("#side", document) == '<aside id="side"><p>s</p></aside>'


def test_internal_import_in_xpath_dialect(document: LxmlDocument) -> None:
    resolver = ImportResolver()
    assert resolver.resolve("//aside/p", document, "xpath") == "<p>s</p>"


@pytest.mark.parametrize("locator", ["#missing", "li:hover"])
def test_internal_import_failures(document: LxmlDocument, locator: str) -> None:
    with pytest.raises(UnreadableImportError) as excinfo:
        ImportResolver().resolve(locator, document)
    assert excinfo.value.locator == locator


def test_file_import_with_fragment(tmp_path: Path, document: LxmlDocument) -> None:
    (tmp_path / "partial.html").write_text(PARTIAL, encoding="utf-8")
    resolver = ImportResolver(base_path=tmp_path)
    assert resolver.resolve("file:partial.html#foot", document) == '<footer id="foot">f</footer>'


def test_file_import_without_fragment_uses_body(tmp_path: Path, document: LxmlDocument) -> None:
    path = tmp_path / "partial.html"
    path.write_text(PARTIAL, encoding="utf-8")
    markup = ImportResolver().resolve(f"file:{path}", document)
    assert markup.startswith('<nav id="menu">')
    assert markup.endswith('<footer id="foot">f</footer>')


def test_file_import_missing_fragment(tmp_path: Path, document: LxmlDocument) -> None:
    (tmp_path / "partial.html").write_text(PARTIAL, encoding="utf-8")
    resolver = ImportResolver(base_path=tmp_path)
    with pytest.raises(UnreadableImportError, match="no element with id 'nope'"):
        resolver.resolve("file:partial.html#nope", document)


@pytest.mark.parametrize("name", ["absent.html", "empty.html"])
def test_file_import_unreadable(tmp_path: Path, document: LxmlDocument, name: str) -> None:
    (tmp_path / "empty.html").write_text("  ", encoding="utf-8")
    resolver = ImportResolver(base_path=tmp_path)
    with pytest.raises(UnreadableImportError):
        resolver.resolve(f"file:{name}", document)


def test_url_import_uses_session(document: LxmlDocument) -> None:
    session = _Session({"https://example.com/p.html": _Response(PARTIAL)})
    resolver = _resolver(session, timeout=2.5)
    markup = resolver.resolve("url:https://example.com/p.html#menu", document)
    assert markup == '<nav id="menu"><a href="/">Home</a></nav>'
    assert session.calls == [("https://example.com/p.html", 2.5)]
    resolver.close()
    assert session.closed


@pytest.mark.parametrize(
    "pages",
    [{}, {"https://example.com/p.html": _Response("gone", status_code=404)}],
)
def test_url_import_failures(document: LxmlDocument, pages: dict[str, _Response]) -> None:
    resolver = _resolver(_Session(pages))
    with pytest.raises(UnreadableImportError, match="example.com"):
        resolver.resolve("url(https://example.com/p.html)", document)


def test_include_treats_bare_locator_as_path(tmp_path: Path) -> None:
    (tmp_path / "nav.html").write_text(PARTIAL, encoding="utf-8")
    resolver = ImportResolver(base_path=tmp_path)
    assert resolver.resolve_include("nav.html#menu") == '<nav id="menu"><a href="/">Home</a></nav>'


def test_default_session_retries() -> None:
    resolver = ImportResolver()
    adapter = resolver.session.get_adapter("https://example.com")
    assert adapter.max_retries.total == 3
    assert 503 in adapter.max_retries.status_forcelist
    resolver.close()
