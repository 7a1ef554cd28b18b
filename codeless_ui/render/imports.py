"""Resolve ``@import`` and include locators into markup.

Locator grammar
---------------
``url:<url>[#id]`` / ``url(<url>)``
    Fetch an HTML document over HTTP(S).
``file:<path>[#id]`` / ``file(<path>)``
    Read an HTML document from disk.
anything else
    A selector (``#id`` included) evaluated against the current document.

External documents contribute the serialized ``#id`` element when a fragment
is named, otherwise the inner markup of their ``<body>``.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ
from pathlib import Path

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from codeless_ui.dom.document import LxmlDocument
from codeless_ui.dom.selector import SelectorCompiler
from codeless_ui.errors import EmptyTemplateError, MalformedSelectorError, UnreadableImportError

if typ.TYPE_CHECKING:
    from codeless_ui.dom.document import Document

log = logging.getLogger(__name__)

_WRAPPED = re.compile(r"^(?P<kind>url|file)\((?P<target>.*)\)$", re.IGNORECASE | re.DOTALL)
_PREFIXED = re.compile(r"^(?P<kind>url|file):(?P<target>.*)$", re.IGNORECASE | re.DOTALL)


@dc.dataclass(slots=True, frozen=True)
class Locator:
    """A parsed import locator."""

    raw: str
    kind: typ.Literal["url", "file", "internal"]
    target: str
    fragment: str | None = None

    @classmethod
    def parse(cls, raw: str) -> Locator:
        """Split ``raw`` into source kind, target and optional ``#id`` fragment.

        Examples
        --------
        >>> Locator.parse("file:partials/nav.html#menu").fragment
        'menu'
        >>> Locator.parse("#sidebar").kind
        'internal'
        """
        text = raw.strip()
        if not text:
            raise UnreadableImportError(raw, "empty locator")
        match = _WRAPPED.match(text) or _PREFIXED.match(text)
        if match is None:
            return cls(raw=raw, kind="internal", target=text)
        kind = typ.cast("typ.Literal['url', 'file']", match.group("kind").lower())
        target = match.group("target").strip()
        fragment: str | None = None
        if "#" in target:
            target, _, fragment = target.rpartition("#")
            fragment = fragment or None
        if not target:
            raise UnreadableImportError(raw, "no source named")
        return cls(raw=raw, kind=kind, target=target, fragment=fragment)


def _default_session() -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=3,
        read=3,
        connect=3,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class ImportResolver:
    """Load markup named by import and include locators.

    Parameters
    ----------
    session : requests.Session, optional
        Session used for ``url:`` locators; a retrying session is created on
        first use when omitted.
    timeout : float, optional
        Per-request timeout in seconds. Defaults to ``10.0``.
    base_path : Path, optional
        Directory relative ``file:`` paths are resolved against.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout: float = 10.0,
        base_path: Path | None = None,
    ) -> None:
        self._session = session
        self.timeout = timeout
        self.base_path = base_path

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = _default_session()
        return self._session

    def resolve(self, locator: str, document: Document, selector_type: str = "css") -> str:
        """Return the markup ``locator`` names.

        Parameters
        ----------
        locator : str
            Import locator (see the module docstring for the grammar).
        document : Document
            Current document, queried for internal locators.
        selector_type : str, optional
            Default dialect for internal selectors.

        Raises
        ------
        UnreadableImportError
            If the source is missing or unreachable, the named fragment does
            not exist, or an internal selector matches nothing.
        """
        parsed = Locator.parse(locator)
        if parsed.kind == "internal":
            return self._resolve_internal(parsed, document, selector_type)
        return self._load_external(parsed, format_output=document.format_output)

    def resolve_include(self, locator: str, *, format_output: bool = True) -> str:
        """Return the markup of an include; bare locators are file paths."""
        parsed = Locator.parse(locator)
        if parsed.kind == "internal":
            parsed = Locator.parse(f"file:{parsed.target}")
        return self._load_external(parsed, format_output=format_output)

    def _load_external(self, parsed: Locator, *, format_output: bool) -> str:
        markup = self._fetch(parsed) if parsed.kind == "url" else self._read(parsed)
        try:
            external = LxmlDocument.from_markup(markup, format_output=format_output)
        except EmptyTemplateError as exc:
            raise UnreadableImportError(parsed.raw, "the document is empty") from exc
        if parsed.fragment:
            nodes = external.query(f"//*[@id={_quote(parsed.fragment)}]")
            if not nodes:
                raise UnreadableImportError(parsed.raw, f"no element with id '{parsed.fragment}'")
            return external.serialize(nodes[0])
        bodies = external.query("//body")
        if not bodies:
            return external.serialize()
        return external.inner_markup(bodies[0])

    def _resolve_internal(self, parsed: Locator, document: Document, selector_type: str) -> str:
        compiler = SelectorCompiler(document, selector_type)
        try:
            nodes = compiler.compile(parsed.target)
        except MalformedSelectorError as exc:
            raise UnreadableImportError(parsed.raw, str(exc)) from exc
        if not nodes:
            raise UnreadableImportError(parsed.raw, "the selector matched nothing")
        return "".join(document.serialize(node) for node in nodes)

    def _read(self, parsed: Locator) -> str:
        path = Path(parsed.target).expanduser()
        if not path.is_absolute() and self.base_path is not None:
            path = self.base_path / path
        if not path.is_file():
            raise UnreadableImportError(parsed.raw, f"file '{path}' not found")
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise UnreadableImportError(parsed.raw, str(exc)) from exc

    def _fetch(self, parsed: Locator) -> str:
        log.debug("Fetching import %s", parsed.target)
        try:
            response = self.session.get(parsed.target, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise UnreadableImportError(parsed.raw, str(exc)) from exc
        return response.text

    def close(self) -> None:
        if self._session is not None:
            self._session.close()


def _quote(value: str) -> str:
    return f"'{value}'" if '"' in value else f'"{value}"'


__all__ = ["ImportResolver", "Locator"]
