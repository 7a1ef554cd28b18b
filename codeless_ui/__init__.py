"""Bind hierarchical data onto plain HTML templates using selectors as keys.

Template authors write ordinary HTML; callers supply a data stack keyed by
CSS-like selectors and codeless_ui fills, repeats and rewrites the matching
elements.

Exports
-------
- ``CodelessUi``: facade holding a template, data stack and includes.
- ``RenderConfig`` / ``RepeatSpec``: render defaults and repeat flags.
- ``app`` / ``main``: the ``codeless`` Cyclopts application.

Examples
--------
>>> from codeless_ui import CodelessUi
>>> ui = CodelessUi()
>>> ui.set_template("<html><body><p class='greeting'></p></body></html>")
>>> ui.assign(".greeting", "Hello")
>>> "Hello" in ui.render()
True
"""

from __future__ import annotations

from .cli import app, main
from .config import RenderConfig, RepeatSpec
from .errors import (
    CodelessUiError,
    EmptyTemplateError,
    InvalidDirectiveKeysError,
    InvalidRepeatSpecError,
    MalformedSelectorError,
    RenderConfigError,
    UnreadableImportError,
    UnsupportedPseudoError,
)
from .ui import CodelessUi

__all__ = [
    "CodelessUi",
    "CodelessUiError",
    "EmptyTemplateError",
    "InvalidDirectiveKeysError",
    "InvalidRepeatSpecError",
    "MalformedSelectorError",
    "RenderConfig",
    "RenderConfigError",
    "RepeatSpec",
    "UnreadableImportError",
    "UnsupportedPseudoError",
    "app",
    "main",
]
