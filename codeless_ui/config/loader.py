"""Load render configuration and data stacks from YAML or JSON files."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import msgspec
import msgspec.json as msgspec_json
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from codeless_ui.errors import RenderConfigError

from .helpers import _build_render_config, _string_mapping
from .models import RenderConfig, RenderJob


def _read_yaml(path: Path) -> typ.Any:
    """Return the parsed YAML document at ``path`` (safe loader, YAML 1.2)."""
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        try:
            return loader.load(handle)
        except YAMLError as exc:
            msg = f"Could not parse '{path}': {exc}"
            raise RenderConfigError(msg) from exc


def _read_mapping(path: Path) -> dict[str, typ.Any]:
    loaded = _read_yaml(path) or {}
    if not isinstance(loaded, dict):
        msg = f"Top-level structure of '{path}' must be a mapping."
        raise RenderConfigError(msg)
    return dict(loaded)


def load_render_config(path: Path, *, base: RenderConfig | None = None) -> RenderConfig:
    """Load the ``defaults`` section of a YAML file into a RenderConfig.

    Parameters
    ----------
    path : Path
        YAML file holding a top-level ``defaults`` mapping.
    base : RenderConfig, optional
        Configuration the file overrides; the built-in defaults when omitted.

    Returns
    -------
    RenderConfig
        Immutable configuration ready for :class:`~codeless_ui.ui.CodelessUi`.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    RenderConfigError
        If the YAML is unreadable or an option holds an invalid value.

    Examples
    --------
    >>> from pathlib import Path
    >>> config = load_render_config(Path("codeless.yaml"))  # doctest: +SKIP
    >>> config.repeat_y.wrap  # doctest: +SKIP
    'simple'
    """
    raw = _read_mapping(path)
    defaults = raw.get("defaults", {}) or {}
    if not isinstance(defaults, dict):
        msg = "Section 'defaults' must be a mapping."
        raise RenderConfigError(msg)
    return _build_render_config(defaults, base)


def load_render_job(path: Path) -> RenderJob:
    """Load configuration, template reference, data and includes from one file.

    Relative ``template`` and ``file:`` include paths are resolved against the
    directory holding ``path``.
    """
    raw = _read_mapping(path)
    defaults = raw.get("defaults", {}) or {}
    if not isinstance(defaults, dict):
        msg = "Section 'defaults' must be a mapping."
        raise RenderConfigError(msg)
    config = _build_render_config(defaults)

    template = raw.get("template")
    if template is not None:
        template_path = Path(str(template))
        if not template_path.is_absolute():
            template_path = path.parent / template_path
        template = str(template_path)

    data = raw.get("data") or {}
    if not isinstance(data, dict):
        msg = "Section 'data' must be a mapping of selectors to values."
        raise RenderConfigError(msg)

    includes = {
        selector: _resolve_relative_locator(locator, path.parent)
        for selector, locator in _string_mapping("includes", raw.get("includes")).items()
    }
    return RenderJob(config=config, template=template, data=dict(data), includes=includes)


def _resolve_relative_locator(locator: str, root: Path) -> str:
    """Anchor plain and ``file:`` include paths to ``root``."""
    prefix = ""
    target = locator
    if locator.lower().startswith("file:"):
        prefix, target = "file:", locator[5:]
    elif locator.lower().startswith("url:"):
        return locator
    candidate = Path(target.split("#", 1)[0])
    if candidate.is_absolute() or not target:
        return locator
    return f"{prefix}{root / target}"


def load_data_stack(path: Path) -> dict[str, typ.Any]:
    """Load a data stack from a ``.json`` file or any YAML file.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    RenderConfigError
        If the file cannot be decoded or is not a mapping.
    """
    if path.suffix.lower() == ".json":
        if not path.exists():
            msg = f"Data file '{path}' not found."
            raise FileNotFoundError(msg)
        try:
            loaded = msgspec_json.decode(path.read_bytes())
        except msgspec.DecodeError as exc:
            msg = f"Could not decode '{path}': {exc}"
            raise RenderConfigError(msg) from exc
        if not isinstance(loaded, dict):
            msg = f"Top-level structure of '{path}' must be a mapping."
            raise RenderConfigError(msg)
        return loaded
    return _read_mapping(path)


__all__ = ["load_data_stack", "load_render_config", "load_render_job"]
