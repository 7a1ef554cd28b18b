"""Typed dataclasses describing codeless_ui render configuration."""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from codeless_ui._constants import (
    CONTENT_EMPTY_POLICIES,
    REPEAT_FLAGS,
    REPEAT_PAD_FLAGS,
    REPEAT_WRAP_FLAGS,
)
from codeless_ui.errors import InvalidRepeatSpecError, RenderConfigError

_FLAG_SEPARATOR = re.compile(r"[\s,]+")

SELECTOR_TYPES = ("css", "xpath")


@dc.dataclass(slots=True, frozen=True)
class RepeatSpec:
    """Named flags steering how a node list is completed and ordered.

    Attributes
    ----------
    flags : frozenset[str]
        Subset of ``simple``, ``mirror``, ``once``, ``inner_padded``,
        ``#inner_padded``, ``justify`` and ``shuffle``. An empty set disables
        completion entirely.
    """

    flags: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        unknown = sorted(self.flags - REPEAT_FLAGS)
        if unknown:
            msg = f"Unknown repeat flags: {', '.join(unknown)}"
            raise InvalidRepeatSpecError(msg)
        if all(flag in self.flags for flag in REPEAT_WRAP_FLAGS):
            msg = "Repeat flags 'simple' and 'mirror' are mutually exclusive."
            raise InvalidRepeatSpecError(msg)
        if "justify" in self.flags and (self.padded or self.wrap is None):
            msg = "Repeat flag 'justify' needs 'simple' or 'mirror' and no padding."
            raise InvalidRepeatSpecError(msg)
        if "shuffle" in self.flags and (
            self.wrap is not None or self.padded or self.justify
        ):
            msg = "Repeat flag 'shuffle' cannot be combined with wrap, padding or justify."
            raise InvalidRepeatSpecError(msg)

    @classmethod
    def parse(cls, value: str | typ.Iterable[str] | RepeatSpec | None) -> RepeatSpec:
        """Build a spec from ``"simple once"``, ``"mirror,justify"`` or a list."""
        match value:
            case RepeatSpec():
                return value
            case None:
                return cls()
            case str() as text:
                parts = [part for part in _FLAG_SEPARATOR.split(text.strip().lower()) if part]
            case _:
                parts = [str(part).strip().lower() for part in value if str(part).strip()]
        return cls(frozenset(parts))

    def __bool__(self) -> bool:
        return bool(self.flags)

    @property
    def wrap(self) -> str | None:
        """Return ``"simple"``, ``"mirror"`` or ``None``."""
        for flag in REPEAT_WRAP_FLAGS:
            if flag in self.flags:
                return flag
        return None

    @property
    def once(self) -> bool:
        return "once" in self.flags

    @property
    def padded(self) -> bool:
        return any(flag in self.flags for flag in REPEAT_PAD_FLAGS)

    @property
    def pad_left(self) -> bool:
        return "#inner_padded" in self.flags

    @property
    def justify(self) -> bool:
        return "justify" in self.flags

    @property
    def shuffle(self) -> bool:
        return "shuffle" in self.flags

    def __str__(self) -> str:
        return " ".join(sorted(self.flags))


DEFAULT_REPEAT = RepeatSpec(frozenset({"simple"}))


@dc.dataclass(slots=True, frozen=True)
class RenderConfig:
    """Ambient defaults consumed by the compiler, populator and renderer.

    Attributes
    ----------
    selector_type : str
        Default selector dialect, ``"css"`` or ``"xpath"``.
    format_output : bool
        Preserve whitespace formatting when elements are duplicated.
    parse_inserted_data : bool
        Run a single reparse pass over markup inserted by the first pass.
    repeat_x : RepeatSpec
        Repeat spec for odd recursion depths (deeper arrays).
    repeat_y : RepeatSpec
        Repeat spec for even recursion depths (sibling loops, the root).
    on_content_empty : str
        Policy applied when a binding carries empty content.
    shuffle_seed : int | None
        Seed for the ``shuffle`` repeat flag; ``None`` uses fresh entropy.
    """

    selector_type: str = "css"
    format_output: bool = True
    parse_inserted_data: bool = False
    repeat_x: RepeatSpec = DEFAULT_REPEAT
    repeat_y: RepeatSpec = DEFAULT_REPEAT
    on_content_empty: str = "do_nothing"
    shuffle_seed: int | None = None

    def __post_init__(self) -> None:
        if self.selector_type not in SELECTOR_TYPES:
            msg = f"Unknown selector type '{self.selector_type}'; expected css or xpath."
            raise RenderConfigError(msg)
        if self.on_content_empty not in CONTENT_EMPTY_POLICIES:
            msg = f"Unknown on_content_empty policy '{self.on_content_empty}'."
            raise RenderConfigError(msg)

    def with_repeat(
        self, repeat: str | typ.Iterable[str] | RepeatSpec, repeat_x: str | typ.Iterable[str] | RepeatSpec | None = None
    ) -> RenderConfig:
        """Return a copy using ``repeat`` for y and ``repeat_x`` (or ``repeat``) for x."""
        spec_y = RepeatSpec.parse(repeat)
        spec_x = RepeatSpec.parse(repeat_x) if repeat_x else spec_y
        return dc.replace(self, repeat_x=spec_x, repeat_y=spec_y)


@dc.dataclass(slots=True)
class RenderJob:
    """A template, its data stack and includes loaded from one YAML file."""

    config: RenderConfig
    template: str | None = None
    data: dict[str, typ.Any] = dc.field(default_factory=dict)
    includes: dict[str, str] = dc.field(default_factory=dict)


__all__ = [
    "DEFAULT_REPEAT",
    "SELECTOR_TYPES",
    "RenderConfig",
    "RenderJob",
    "RepeatSpec",
]
