"""Utility helpers shared by the codeless_ui configuration loader."""

from __future__ import annotations

import typing as typ

from codeless_ui.errors import InvalidRepeatSpecError, RenderConfigError

from .models import RenderConfig, RepeatSpec

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _coerce_bool(name: str, value: object) -> bool:
    """Return ``value`` as a bool, accepting the usual YAML/env spellings."""
    match value:
        case bool():
            return value
        case int():
            return bool(value)
        case str() as text:
            lowered = text.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
        case _:
            pass
    msg = f"Option '{name}' expects a boolean, got {value!r}."
    raise RenderConfigError(msg)


def _optional_int(name: str, value: object) -> int | None:
    """Return an int or None when the value is empty."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        msg = f"Option '{name}' expects an integer, got {value!r}."
        raise RenderConfigError(msg)
    try:
        return int(typ.cast("typ.Any", value))
    except (TypeError, ValueError) as exc:
        msg = f"Option '{name}' expects an integer, got {value!r}."
        raise RenderConfigError(msg) from exc


def _parse_repeat(name: str, value: object, default: RepeatSpec) -> RepeatSpec:
    """Parse a repeat spec option, reporting the offending option on failure."""
    if value is None:
        return default
    try:
        return RepeatSpec.parse(typ.cast("typ.Any", value))
    except InvalidRepeatSpecError as exc:
        msg = f"Option '{name}' is invalid: {exc}"
        raise RenderConfigError(msg) from exc


def _build_render_config(
    payload: typ.Mapping[str, typ.Any], base: RenderConfig | None = None
) -> RenderConfig:
    """Merge a ``defaults`` mapping into ``base`` (or the built-in defaults)."""
    base = base or RenderConfig()
    repeat_both = payload.get("repeat_fn")
    repeat_y = _parse_repeat(
        "repeat_fn_y", payload.get("repeat_fn_y", repeat_both), base.repeat_y
    )
    repeat_x = _parse_repeat(
        "repeat_fn_x", payload.get("repeat_fn_x", repeat_both), base.repeat_x
    )
    format_output = payload.get("format_output", base.format_output)
    parse_inserted = payload.get("parse_inserted_data", base.parse_inserted_data)
    return RenderConfig(
        selector_type=str(payload.get("selector_type", base.selector_type)).lower(),
        format_output=_coerce_bool("format_output", format_output),
        parse_inserted_data=_coerce_bool("parse_inserted_data", parse_inserted),
        repeat_x=repeat_x,
        repeat_y=repeat_y,
        on_content_empty=str(payload.get("on_content_empty", base.on_content_empty)),
        shuffle_seed=_optional_int(
            "shuffle_seed", payload.get("shuffle_seed", base.shuffle_seed)
        ),
    )


def _string_mapping(name: str, value: object) -> dict[str, str]:
    """Return ``value`` as a str->str mapping or raise RenderConfigError."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"Section '{name}' must be a mapping."
        raise RenderConfigError(msg)
    return {str(key): str(item) for key, item in value.items()}


__all__ = [
    "_build_render_config",
    "_coerce_bool",
    "_optional_int",
    "_parse_repeat",
    "_string_mapping",
]
