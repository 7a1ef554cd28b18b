"""Translate CSS-like selectors into XPath queries against a Document.

The dialect is deliberately small: tag, ``#id``, ``.class`` and attribute
predicates, the ``>``, ``+`` and ``~`` combinators, and the ``first-of-type``,
``last-of-type``, ``nth-of-type(n)`` and ``not(...)`` pseudo-classes. A
selector may opt into the other dialect with ``css(...)``/``xpath(...)`` or
``css:``/``xpath:`` prefixes.

Examples
--------
>>> css_to_xpath("ul > li.item")
'//ul/li[contains(concat(" ",@class," ")," item ")]'
>>> css_to_xpath("li:nth-of-type(2)")
'//li[2]'
"""

from __future__ import annotations

import functools
import logging
import re
import typing as typ

from codeless_ui.errors import MalformedSelectorError, UnsupportedPseudoError

if typ.TYPE_CHECKING:
    from .document import Document, Node

log = logging.getLogger(__name__)

COMBINATORS = frozenset({">", "+", "~"})
UNSUPPORTED_PSEUDOS = frozenset({"first-child", "last-child", "nth-child", "empty"})

_TAG = re.compile(r"\*|[a-z_][\w\-]*", re.IGNORECASE)
_NAME = re.compile(r"[\w\-]+")
_ATTRIBUTE = re.compile(
    r"^\s*(?P<name>[^\s~|^$*=\"']+)\s*(?:(?P<op>[~|^$*]?=)\s*(?P<value>.*?))?\s*$",
    re.DOTALL,
)
_DIALECT_PREFIX = re.compile(r"^(?P<kind>css|xpath)(?:\((?P<wrapped>.*)\)|:(?P<tail>.*))$", re.IGNORECASE | re.DOTALL)


def split_dialect(selector: str, default: str = "css") -> tuple[str, str]:
    """Return ``(dialect, body)`` after peeling a ``css``/``xpath`` override."""
    stripped = selector.strip()
    match = _DIALECT_PREFIX.match(stripped)
    if match is None:
        return default, stripped
    body = match.group("wrapped") if match.group("wrapped") is not None else match.group("tail")
    return match.group("kind").lower(), body.strip()


def normalize_selector(selector: str) -> str:
    """Lowercase outside quotes, trim, collapse spaces and ``::`` to ``:``."""
    pieces: list[str] = []
    quote: str | None = None
    for char in selector.strip():
        if quote:
            pieces.append(char)
            if char == quote:
                quote = None
            continue
        if char in "\"'":
            quote = char
        pieces.append(char.lower())
    text = "".join(pieces).replace("::", ":")
    text = re.sub(r"\s*=\s*", "=", text)
    return re.sub(r"\s{2,}", " ", text)


def tokenize(selector: str) -> list[str]:
    """Split on spaces and combinators that sit outside brackets and parens."""
    tokens: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None

    def flush() -> None:
        if current:
            tokens.append("".join(current))
            current.clear()

    for char in selector:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
            current.append(char)
        elif char in "[(":
            depth += 1
            current.append(char)
        elif char in "])":
            depth -= 1
            current.append(char)
        elif depth == 0 and char.isspace():
            flush()
        elif depth == 0 and char in COMBINATORS:
            flush()
            tokens.append(char)
        else:
            current.append(char)
    flush()
    return tokens


def _literal(value: str) -> str:
    """Quote ``value`` as an XPath string literal."""
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    parts = value.split('"')
    return "concat(" + ", '\"', ".join(f'"{part}"' for part in parts) + ")"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _attribute_predicate(inner: str, selector: str) -> str:
    match = _ATTRIBUTE.match(inner)
    if match is None:
        raise MalformedSelectorError(selector, reason=f"bad attribute predicate [{inner}]")
    name = match.group("name").lstrip("@")
    op = match.group("op")
    if op is None:
        return f"[@{name}]"
    value = _unquote(match.group("value") or "")
    literal = _literal(value)
    match op:
        case "=":
            return f"[@{name}={literal}]"
        case "^=":
            return f"[starts-with(@{name},{literal})]"
        case "$=":
            return (
                f"[substring(@{name},string-length(@{name})-string-length({literal})+1)"
                f"={literal}]"
            )
        case "*=":
            return f"[contains(@{name},{literal})]"
        case "|=":
            return f'[contains(concat("-",@{name},"-"),{_literal(f"-{value}-")})]'
        case _:
            return f'[contains(concat(" ",normalize-space(@{name})," "),{_literal(f" {value} ")})]'


def _closing_bracket(unit: str, start: int) -> int:
    quote: str | None = None
    for index in range(start + 1, len(unit)):
        char = unit[index]
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "]":
            return index
    return -1


def _rewrite(unit: str, selector: str) -> str:
    """Rewrite the tag, ``#id``, ``.class`` and ``[attr]`` parts of one unit."""
    tag = ""
    position = 0
    tag_match = _TAG.match(unit)
    if tag_match:
        tag = tag_match.group(0)
        position = tag_match.end()
    predicates: list[str] = []
    while position < len(unit):
        char = unit[position]
        if char in "#.":
            name = _NAME.match(unit, position + 1)
            if name is None:
                raise MalformedSelectorError(selector, reason=f"empty name after '{char}'")
            value = name.group(0)
            if char == "#":
                predicates.append(f"[@id={_literal(value)}]")
            else:
                predicates.append(f'[contains(concat(" ",@class," ")," {value} ")]')
            position = name.end()
        elif char == "[":
            end = _closing_bracket(unit, position)
            if end < 0:
                raise MalformedSelectorError(selector, reason="unbalanced '['")
            predicates.append(_attribute_predicate(unit[position + 1 : end], selector))
            position = end + 1
        else:
            raise MalformedSelectorError(selector, reason=f"unexpected '{char}' in '{unit}'")
    return (tag or "*") + "".join(predicates)


def _split_pseudo(unit: str) -> tuple[str, str | None, str | None]:
    """Return ``(base, pseudo_name, pseudo_argument)`` for one unit."""
    depth = 0
    quote: str | None = None
    for index, char in enumerate(unit):
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char in "[(":
            depth += 1
        elif char in "])":
            depth -= 1
        elif char == ":" and depth == 0:
            pseudo = unit[index + 1 :]
            if "(" in pseudo:
                if not pseudo.endswith(")"):
                    return unit[:index], pseudo, None
                name, _, argument = pseudo.partition("(")
                return unit[:index], name, argument[:-1].strip()
            return unit[:index], pseudo, None
    return unit, None, None


def _compile_unit(unit: str, selector: str) -> str:
    base, pseudo, argument = _split_pseudo(unit)
    rewritten = _rewrite(base, selector)
    if pseudo is None:
        return rewritten
    if pseudo in UNSUPPORTED_PSEUDOS:
        raise UnsupportedPseudoError(selector, pseudo)
    match pseudo:
        case "first-of-type":
            return f"{rewritten}[1]"
        case "last-of-type":
            return f"{rewritten}[last()]"
        case "nth-of-type":
            if argument is None or not argument.isdigit():
                raise MalformedSelectorError(
                    selector, reason=f":nth-of-type expects a number, got {argument!r}"
                )
            return f"{rewritten}[{int(argument)}]"
        case "not":
            if not argument:
                raise MalformedSelectorError(selector, reason=":not() needs a selector")
            return f"{rewritten}[not(self::{css_to_xpath(argument, nested=True)})]"
        case _:
            raise MalformedSelectorError(selector, reason=f"unknown pseudo-class :{pseudo}")


@functools.lru_cache(maxsize=1024)
def css_to_xpath(selector: str, *, nested: bool = False) -> str:
    """Compile a CSS selector into an XPath expression.

    Parameters
    ----------
    selector : str
        CSS-like selector, normalized here.
    nested : bool, optional
        Build a bare sub-query (used for ``:not(...)``) instead of a query
        starting with ``//``.

    Raises
    ------
    MalformedSelectorError
        If the selector is empty, ends with a combinator, or holds an
        unparseable unit.
    UnsupportedPseudoError
        For ``:first-child``, ``:last-child``, ``:nth-child`` and ``:empty``.
    """
    normalized = normalize_selector(selector)
    build = ""
    combinator: str | None = None
    for token in tokenize(normalized):
        if token in COMBINATORS:
            combinator = token
            continue
        unit = _compile_unit(token, selector)
        match combinator:
            case ">":
                build += f"/{unit}"
            case "+":
                build += f"/following-sibling::{unit}"
            case "~":
                build += f"/../{unit}"
            case _:
                build += unit if nested and not build else f"//{unit}"
        combinator = None
    if not build or combinator is not None:
        raise MalformedSelectorError(selector, reason="selector is empty or ends with a combinator")
    return build


class SelectorCompiler:
    """Compile selectors and run them against one document."""

    def __init__(self, document: Document, default_type: str = "css") -> None:
        self.document = document
        self.default_type = default_type

    def to_query(self, selector: str) -> str:
        """Return the XPath for ``selector``, honouring dialect overrides."""
        dialect, body = split_dialect(selector, self.default_type)
        if not body:
            raise MalformedSelectorError(selector, reason="selector is empty")
        if dialect == "xpath":
            return body
        return css_to_xpath(body)

    @typ.overload
    def compile(
        self, selector: str, context: Node | None = None, *, query_string_only: typ.Literal[True]
    ) -> str: ...

    @typ.overload
    def compile(
        self,
        selector: str,
        context: Node | None = None,
        *,
        query_string_only: typ.Literal[False] = False,
    ) -> list[Node]: ...

    def compile(
        self, selector: str, context: Node | None = None, *, query_string_only: bool = False
    ) -> list[Node] | str:
        """Compile ``selector`` and, unless asked for the string, execute it.

        Parameters
        ----------
        selector : str
            Selector in the default dialect or with an explicit override.
        context : Node, optional
            Element the query is scoped to; the whole document when ``None``.
        query_string_only : bool, optional
            Return the XPath string instead of running it.

        Returns
        -------
        list[Node] | str
            Matching elements in document order (consumed elements excluded),
            or the query string.
        """
        query = self.to_query(selector)
        if query_string_only:
            return query
        try:
            nodes = self.document.query(query, context)
        except MalformedSelectorError as exc:
            raise MalformedSelectorError(selector, exc.query, "query failed to evaluate") from exc
        log.debug("%s -> %s (%d)", selector, query, len(nodes))
        return nodes


__all__ = [
    "COMBINATORS",
    "SelectorCompiler",
    "UNSUPPORTED_PSEUDOS",
    "css_to_xpath",
    "normalize_selector",
    "split_dialect",
    "tokenize",
]
