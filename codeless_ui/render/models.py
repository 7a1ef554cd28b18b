"""Typed data stack model built once from caller-supplied mappings and lists.

Raw data is converted by :func:`parse_data_stack` into a tree of
:class:`DataStack`, :class:`DirectiveMap` and :class:`Scalar` values so the
renderer never sniffs dictionary keys while it walks the document.

Examples
--------
>>> stack = parse_data_stack({".title": "Hello", "ul": ["a", "b"]})
>>> stack.named
True
>>> type(stack[".title"]).__name__
'Scalar'
>>> parse_data_value({"@attr": {"class": "x"}, "@content": "hi"}).kinds
('attr', 'content')
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from codeless_ui._constants import (
    DIRECTIVE_ATTR,
    DIRECTIVE_CHILDREN,
    DIRECTIVE_CONTENT,
    DIRECTIVE_IMPORT,
    DIRECTIVE_KEYS,
    DIRECTIVE_ORDER,
    DIRECTIVE_PARAMS,
    DIRECTIVE_PREFIX,
    DIRECTIVE_SELF,
    INSERT_SUFFIXES,
    TAG_PATTERN,
)
from codeless_ui.errors import InvalidDirectiveKeysError

if typ.TYPE_CHECKING:
    from codeless_ui.dom.document import InsertMode

StackKey = str | int

_MODE_ORDER = {"replace": 0, "append": 1, "prepend": 2}
_RECURSIVE_KINDS = (DIRECTIVE_CHILDREN, DIRECTIVE_CONTENT, DIRECTIVE_SELF)


@dc.dataclass(slots=True, frozen=True)
class Scalar:
    """Literal text or markup bound to an element."""

    text: str | None = None

    @property
    def empty(self) -> bool:
        """``None`` and blank strings count as empty content."""
        return self.text is None or not self.text.strip()

    @property
    def is_markup(self) -> bool:
        return self.text is not None and TAG_PATTERN.search(self.text) is not None

    def __str__(self) -> str:
        return self.text or ""


@dc.dataclass(slots=True, frozen=True)
class DirectiveEntry:
    """One directive of a :class:`DirectiveMap` with its insertion mode."""

    key: str
    kind: str
    mode: InsertMode
    value: typ.Any


@dc.dataclass(slots=True, frozen=True)
class DirectiveMap:
    """Directive entries held in dispatch order.

    Attributes
    ----------
    entries : tuple[DirectiveEntry, ...]
        Sorted params, attr, import, children/content, self; within one kind
        replace, append, prepend.
    """

    entries: tuple[DirectiveEntry, ...] = ()

    @property
    def params(self) -> dict[str, typ.Any]:
        merged: dict[str, typ.Any] = {}
        for entry in self.entries:
            if entry.kind == DIRECTIVE_PARAMS:
                merged.update(entry.value)
        return merged

    @property
    def kinds(self) -> tuple[str, ...]:
        seen: list[str] = []
        for entry in self.entries:
            if entry.kind not in seen:
                seen.append(entry.kind)
        return tuple(seen)

    def __iter__(self) -> typ.Iterator[DirectiveEntry]:
        return iter(self.entries)


@dc.dataclass(slots=True, frozen=True)
class DataStack:
    """Insertion-ordered ``(key, value)`` entries for one container.

    Keys are selector strings (a *named* stack) or integers (a positional
    stack built from a list or an integer-keyed mapping).
    """

    entries: tuple[tuple[StackKey, DataValue], ...] = ()

    @property
    def named(self) -> bool:
        return bool(self.entries) and all(isinstance(key, str) for key, _ in self.entries)

    def keys(self) -> list[StackKey]:
        return [key for key, _ in self.entries]

    def __getitem__(self, key: StackKey) -> DataValue:
        for candidate, value in self.entries:
            if candidate == key:
                return value
        raise KeyError(key)

    def __iter__(self) -> typ.Iterator[tuple[StackKey, DataValue]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)


NestedStack = DataStack
DataValue = Scalar | DirectiveMap | DataStack


def _is_directive_mapping(raw: cabc.Mapping[typ.Any, typ.Any]) -> bool:
    return any(isinstance(key, str) and key.startswith(DIRECTIVE_PREFIX) for key in raw)


def _split_directive_key(key: str) -> tuple[str, InsertMode]:
    for suffix, mode in INSERT_SUFFIXES.items():
        if key.endswith(suffix):
            return key[len(DIRECTIVE_PREFIX) : -len(suffix)], typ.cast("InsertMode", mode)
    return key[len(DIRECTIVE_PREFIX) :], "replace"


def _directive_value(
    kind: str, key: str, value: typ.Any, selector: str | None
) -> typ.Any:
    if kind in (DIRECTIVE_PARAMS, DIRECTIVE_ATTR):
        if value is None:
            return {}
        if not isinstance(value, cabc.Mapping):
            raise InvalidDirectiveKeysError(
                [key], [], selector, reason=f"{key} expects a mapping, got {type(value).__name__}"
            )
        if kind == DIRECTIVE_ATTR:
            return {str(name): "" if item is None else str(item) for name, item in value.items()}
        return dict(value)
    if kind == DIRECTIVE_IMPORT:
        if not isinstance(value, str):
            raise InvalidDirectiveKeysError(
                [key], [], selector, reason=f"{key} expects a locator string"
            )
        return value
    parsed = parse_data_value(value, selector)
    if isinstance(parsed, DirectiveMap):
        raise InvalidDirectiveKeysError(
            [key], [], selector, reason=f"{key} cannot hold another directive map"
        )
    return parsed


def _parse_directive_map(
    raw: cabc.Mapping[typ.Any, typ.Any], selector: str | None
) -> DirectiveMap:
    keys = [str(key) for key in raw]
    unknown = [key for key in keys if key not in DIRECTIVE_KEYS]
    if unknown:
        known = [key for key in keys if key in DIRECTIVE_KEYS]
        raise InvalidDirectiveKeysError(unknown, known, selector)

    entries: list[DirectiveEntry] = []
    for key, value in raw.items():
        kind, mode = _split_directive_key(str(key))
        entries.append(
            DirectiveEntry(
                key=str(key),
                kind=kind,
                mode=mode,
                value=_directive_value(kind, str(key), value, selector),
            )
        )

    recursive = [
        entry.key
        for entry in entries
        if entry.kind in _RECURSIVE_KINDS and isinstance(entry.value, DataStack)
    ]
    if len(recursive) > 1:
        raise InvalidDirectiveKeysError(
            recursive,
            [key for key in keys if key not in recursive],
            selector,
            reason=f"only one nested stack per element, got {', '.join(recursive)}",
        )

    entries.sort(key=lambda entry: (DIRECTIVE_ORDER[entry.kind], _MODE_ORDER[entry.mode]))
    return DirectiveMap(tuple(entries))


def parse_data_value(raw: typ.Any, selector: str | None = None) -> DataValue:
    """Convert one raw data value into a :class:`DataValue`.

    Parameters
    ----------
    raw : Any
        ``None``, a string, number or bool (a scalar), a mapping (a directive
        map when any key starts with ``@``, otherwise a nested stack) or a
        list (a positional nested stack).
    selector : str, optional
        Key the value is bound to, used in error messages.

    Raises
    ------
    InvalidDirectiveKeysError
        If a directive map holds unknown keys or more than one nested stack.
    TypeError
        If ``raw`` is of a type that cannot be rendered.
    """
    match raw:
        case Scalar() | DirectiveMap() | DataStack():
            return raw
        case None:
            return Scalar(None)
        case str():
            return Scalar(raw)
        case bool() | int() | float():
            return Scalar(str(raw))
        case cabc.Mapping():
            if _is_directive_mapping(raw):
                return _parse_directive_map(raw, selector)
            return parse_data_stack(raw)
        case list() | tuple():
            return parse_data_stack(raw)
        case _:
            msg = f"Cannot render a value of type {type(raw).__name__} for '{selector}'."
            raise TypeError(msg)


def _stack_key(key: typ.Any) -> StackKey:
    if isinstance(key, bool):
        return str(key).lower()
    if isinstance(key, int):
        return key
    return str(key)


def parse_data_stack(raw: typ.Any) -> DataStack:
    """Convert a mapping or list into a :class:`DataStack`.

    Top-level keys are always taken as selectors or positions, never as
    directives.
    """
    match raw:
        case DataStack():
            return raw
        case None:
            return DataStack()
        case cabc.Mapping():
            items = [(_stack_key(key), value) for key, value in raw.items()]
        case list() | tuple():
            items = list(enumerate(raw))
        case _:
            msg = f"A data stack must be a mapping or a list, got {type(raw).__name__}."
            raise TypeError(msg)
    return DataStack(
        tuple((key, parse_data_value(value, str(key))) for key, value in items)
    )


__all__ = [
    "DataStack",
    "DataValue",
    "DirectiveEntry",
    "DirectiveMap",
    "NestedStack",
    "Scalar",
    "StackKey",
    "parse_data_stack",
    "parse_data_value",
]
