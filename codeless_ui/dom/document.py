"""Document abstraction and its lxml-backed implementation.

The compiler, populator and renderer only talk to the :class:`Document`
protocol: query, duplicate, insert, detach and serialize. :class:`LxmlDocument`
satisfies it on top of ``lxml.html`` so XPath produced by the selector
compiler runs natively.

Text in lxml lives on ``.text``/``.tail`` rather than in separate text
nodes, so whitespace preservation is expressed through tails here.

Examples
--------
>>> doc = LxmlDocument.from_markup("<ul><li>a</li></ul>")
>>> [li.text for li in doc.query("//li")]
['a']
"""

from __future__ import annotations

import copy
import dataclasses as dc
import logging
import typing as typ
from pathlib import Path

import lxml.html
from lxml import etree

from codeless_ui._constants import CONSUMED_ATTRIBUTE
from codeless_ui.errors import EmptyTemplateError, MalformedSelectorError

log = logging.getLogger(__name__)

Node = typ.Any
InsertMode = typ.Literal["replace", "append", "prepend"]


@dc.dataclass(slots=True)
class Fragment:
    """Parsed content ready for insertion: leading text then element nodes."""

    text: str = ""
    elements: list[Node] = dc.field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.text) or bool(self.elements)


class Document(typ.Protocol):
    """Primitives the codeless_ui core needs from a document tree."""

    format_output: bool
    consumed: set[Node]

    @property
    def root(self) -> Node: ...

    def query(self, query: str, context: Node | None = None) -> list[Node]: ...

    def create_text(self, text: str) -> Fragment: ...

    def create_fragment(self, markup: str) -> Fragment: ...

    def duplicate(
        self, node: Node, *, before: Node | None = None, after: Node | None = None
    ) -> Node: ...

    def duplicate_as_child(self, node: Node) -> Node: ...

    def insert(self, element: Node, fragment: Fragment, mode: InsertMode = "replace") -> None: ...

    def replace_node(self, element: Node, fragment: Fragment, mode: InsertMode = "replace") -> None: ...

    def clear(self, element: Node) -> None: ...

    def detach(self, element: Node) -> Node | None: ...

    def element_children(self, element: Node) -> list[Node]: ...

    def get_attribute(self, element: Node, name: str) -> str | None: ...

    def set_attribute(self, element: Node, name: str, value: str) -> None: ...

    def path(self, element: Node) -> str: ...

    def serialize(self, node: Node | None = None) -> str: ...

    def inner_markup(self, node: Node) -> str: ...

    def normalize(self) -> None: ...

    def reload(self, consumed: typ.Iterable[Node]) -> Document: ...


class LxmlDocument:
    """A mutable HTML document backed by ``lxml.html``."""

    def __init__(self, root: Node, *, format_output: bool = True) -> None:
        self._root = root
        self._tree = root.getroottree()
        self.format_output = format_output
        self.consumed: set[Node] = set()

    @classmethod
    def from_markup(cls, markup: str, *, format_output: bool = True) -> LxmlDocument:
        """Parse ``markup`` into a new document.

        Raises
        ------
        EmptyTemplateError
            If ``markup`` is empty or whitespace only.
        """
        if not markup or not markup.strip():
            msg = "No HTML data provided!"
            raise EmptyTemplateError(msg)
        try:
            root = lxml.html.document_fromstring(markup)
        except etree.ParserError as exc:
            msg = f"Template markup could not be parsed: {exc}"
            raise EmptyTemplateError(msg) from exc
        return cls(root, format_output=format_output)

    @classmethod
    def from_file(cls, path: Path, *, format_output: bool = True) -> LxmlDocument:
        """Load a document from disk.

        Raises
        ------
        FileNotFoundError
            If ``path`` does not exist.
        EmptyTemplateError
            If the file holds no markup.
        """
        if not path.is_file():
            msg = f"Template file not found: {path}"
            raise FileNotFoundError(msg)
        return cls.from_markup(path.read_text(encoding="utf-8"), format_output=format_output)

    @property
    def root(self) -> Node:
        return self._root

    # -- querying ---------------------------------------------------------

    def query(self, query: str, context: Node | None = None) -> list[Node]:
        """Run an XPath query, relative to ``context`` when given.

        Consumed elements are never returned. A query that fails to evaluate
        or yields something other than a node set raises
        :class:`MalformedSelectorError`.
        """
        expression = query if context is None else _relative_query(query)
        target = self._root if context is None else context
        try:
            result = target.xpath(expression)
        except etree.XPathError as exc:
            raise MalformedSelectorError(query, expression, str(exc)) from exc
        if not isinstance(result, list):
            raise MalformedSelectorError(query, expression, "query did not return a node set")
        return [
            node
            for node in result
            if isinstance(node, etree._Element)
            and isinstance(node.tag, str)
            and node not in self.consumed
        ]

    def element_children(self, element: Node) -> list[Node]:
        """Return child elements, skipping comments and processing instructions."""
        return [child for child in element if isinstance(child.tag, str)]

    def get_attribute(self, element: Node, name: str) -> str | None:
        return element.get(name)

    def set_attribute(self, element: Node, name: str, value: str) -> None:
        element.set(name, value)

    def path(self, element: Node) -> str:
        """Return an absolute XPath locating ``element`` (for error messages)."""
        try:
            return self._tree.getpath(element)
        except ValueError:
            return f"<detached {element.tag}>"

    # -- content ----------------------------------------------------------

    def create_text(self, text: str) -> Fragment:
        return Fragment(text=text)

    def create_fragment(self, markup: str) -> Fragment:
        """Parse a markup string into a :class:`Fragment`.

        Whole documents (starting with ``<html`` or a doctype) contribute the
        content of their ``<body>``.
        """
        if not markup.strip():
            return Fragment(text=markup)
        try:
            parts = lxml.html.fragments_fromstring(markup)
        except etree.ParserError:
            body = lxml.html.document_fromstring(markup).body
            return Fragment(text=body.text or "", elements=list(body))
        text = ""
        if parts and isinstance(parts[0], str):
            text = parts.pop(0)
        return Fragment(text=text, elements=list(parts))

    def insert(self, element: Node, fragment: Fragment, mode: InsertMode = "replace") -> None:
        """Insert ``fragment`` into ``element`` replacing, appending or prepending."""
        if mode == "replace":
            self.clear(element)
        if mode == "prepend" and (element.text or len(element)):
            old_text = element.text or ""
            element.text = fragment.text or None
            for index, child in enumerate(fragment.elements):
                element.insert(index, child)
            if fragment.elements:
                anchor = fragment.elements[-1]
                anchor.tail = ((anchor.tail or "") + old_text) or None
            else:
                element.text = (fragment.text + old_text) or None
            return
        if fragment.text:
            if len(element):
                last = element[-1]
                last.tail = (last.tail or "") + fragment.text
            else:
                element.text = (element.text or "") + fragment.text
        for child in fragment.elements:
            element.append(child)

    def replace_node(self, element: Node, fragment: Fragment, mode: InsertMode = "replace") -> None:
        """Place ``fragment`` after, before, or in place of ``element`` itself."""
        parent = element.getparent()
        if parent is None:
            msg = "Cannot insert around the document root."
            raise ValueError(msg)
        if mode == "append":
            old_tail = element.tail
            element.tail = fragment.text or None
            index = parent.index(element) + 1
            for offset, child in enumerate(fragment.elements):
                parent.insert(index + offset, child)
            trailing = fragment.elements[-1] if fragment.elements else element
            trailing.tail = ((trailing.tail or "") + (old_tail or "")) or None
            return
        previous = element.getprevious()
        if fragment.text:
            if previous is None:
                parent.text = (parent.text or "") + fragment.text
            else:
                previous.tail = (previous.tail or "") + fragment.text
        index = parent.index(element)
        for offset, child in enumerate(fragment.elements):
            parent.insert(index + offset, child)
        if mode != "replace":
            return
        # The replaced element's tail keeps its place after the new content.
        tail = element.tail or ""
        element.tail = None
        parent.remove(element)
        if not tail:
            return
        if fragment.elements:
            last = fragment.elements[-1]
            last.tail = (last.tail or "") + tail
        elif previous is not None:
            previous.tail = (previous.tail or "") + tail
        else:
            parent.text = (parent.text or "") + tail

    def clear(self, element: Node) -> None:
        """Remove the text and children of ``element``, keeping its tail."""
        element.text = None
        for child in list(element):
            element.remove(child)

    def detach(self, element: Node) -> Node | None:
        """Remove ``element`` from the tree and return its former parent."""
        parent = element.getparent()
        if parent is None:
            return None
        if element.tail is not None and not element.tail.strip():
            element.tail = None
        element.drop_tree()
        return parent

    # -- duplication ------------------------------------------------------

    def duplicate(
        self, node: Node, *, before: Node | None = None, after: Node | None = None
    ) -> Node:
        """Deep-clone ``node`` and place it before ``before`` or after ``after``.

        Without either anchor the clone goes directly after ``node``. When
        formatting is enabled the clone is separated by the whitespace that
        precedes ``node``.
        """
        parent = (before if before is not None else after if after is not None else node).getparent()
        if parent is None:
            msg = "Cannot duplicate the document root."
            raise ValueError(msg)
        separator = self._separator(node) if self.format_output else None
        clone = copy.deepcopy(node)
        if before is not None:
            clone.tail = separator
            parent.insert(parent.index(before), clone)
            return clone
        anchor = after if after is not None else node
        clone.tail = anchor.tail
        anchor.tail = separator
        parent.insert(parent.index(anchor) + 1, clone)
        return clone

    def duplicate_as_child(self, node: Node) -> Node:
        """Append a deep clone of ``node`` as its own last child."""
        clone = copy.deepcopy(node)
        clone.tail = None
        if self.format_output:
            lead = node.text if node.text and not node.text.strip() else "\n"
            if len(node):
                last = node[-1]
                last.tail = (last.tail or "") + lead
            else:
                node.text = (node.text or "") + lead
            clone.tail = "\n"
        node.append(clone)
        return clone

    def _separator(self, node: Node) -> str:
        previous = node.getprevious()
        if previous is not None:
            text = previous.tail
        else:
            parent = node.getparent()
            text = parent.text if parent is not None else None
        if text and not text.strip():
            return text
        return "\n"

    # -- output -----------------------------------------------------------

    def serialize(self, node: Node | None = None) -> str:
        """Return the markup of ``node`` (without its tail) or of the document."""
        if node is None:
            return lxml.html.tostring(self._tree, encoding="unicode")
        return lxml.html.tostring(node, encoding="unicode", with_tail=False)

    def inner_markup(self, node: Node) -> str:
        """Return the markup of ``node``'s content without its own tags."""
        parts = [node.text or ""]
        parts.extend(lxml.html.tostring(child, encoding="unicode") for child in node)
        return "".join(parts)

    def normalize(self) -> None:
        """Collapse empty text and tail strings to ``None``."""
        for node in self._root.iter():
            if node.text == "":
                node.text = None
            if node.tail == "":
                node.tail = None

    def reload(self, consumed: typ.Iterable[Node]) -> LxmlDocument:
        """Serialize and re-parse the document, carrying ``consumed`` across.

        Consumed elements are stamped with a transient attribute for the
        round trip; the stamp is removed from both documents before returning.
        """
        marked = [node for node in consumed if isinstance(node.tag, str)]
        for node in marked:
            node.set(CONSUMED_ATTRIBUTE, "true")
        try:
            markup = self.serialize()
        finally:
            for node in marked:
                node.attrib.pop(CONSUMED_ATTRIBUTE, None)
        fresh = type(self).from_markup(markup, format_output=self.format_output)
        for node in fresh.root.xpath(f"//*[@{CONSUMED_ATTRIBUTE}]"):
            del node.attrib[CONSUMED_ATTRIBUTE]
            fresh.consumed.add(node)
        log.debug("Reloaded document with %d consumed elements", len(fresh.consumed))
        return fresh


def _relative_query(query: str) -> str:
    """Anchor each branch of an XPath union to the context node.

    Examples
    --------
    >>> _relative_query("//a | b")
    './/a | ./b'
    """
    return " | ".join(_anchor(branch) for branch in _union_branches(query))


def _anchor(branch: str) -> str:
    if branch.startswith("."):
        return branch
    if branch.startswith("/"):
        return f".{branch}"
    return f"./{branch}"


def _union_branches(query: str) -> list[str]:
    """Split on ``|`` outside quotes, brackets and parens."""
    branches: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    for char in query:
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char in "[(":
            depth += 1
        elif char in "])":
            depth -= 1
        elif depth == 0 and char == "|":
            branches.append("".join(current).strip())
            current.clear()
            continue
        current.append(char)
    branches.append("".join(current).strip())
    return branches


__all__ = ["Document", "Fragment", "InsertMode", "LxmlDocument", "Node"]
