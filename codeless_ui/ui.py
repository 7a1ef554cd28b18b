"""High-level facade: hold a template, a data stack and includes, then render.

Examples
--------
>>> ui = CodelessUi()
>>> ui.set_template("<html><body><h1></h1><ul><li></li></ul></body></html>")
>>> ui.assign("h1", "Fruit")
>>> ui.assign("ul", ["apple", "pear"])
>>> "<li>pear</li>" in ui.render()
True
"""

from __future__ import annotations

import collections.abc as cabc
import copy
import os
import random
import typing as typ
from pathlib import Path

from codeless_ui._constants import TAG_PATTERN
from codeless_ui.config.models import RenderConfig, RenderJob, RepeatSpec
from codeless_ui.dom.document import LxmlDocument
from codeless_ui.dom.selector import SelectorCompiler
from codeless_ui.errors import EmptyTemplateError
from codeless_ui.render.context import RenderContext
from codeless_ui.render.imports import ImportResolver
from codeless_ui.render.renderer import Renderer

if typ.TYPE_CHECKING:
    from codeless_ui.dom.document import Document
    from codeless_ui.render.renderer import ValueModifier


def _replace_recursive(base: typ.Any, incoming: typ.Any) -> typ.Any:
    """Overlay ``incoming`` on ``base``, descending where both are containers."""
    if isinstance(base, cabc.Mapping) and isinstance(incoming, cabc.Mapping):
        merged = dict(base)
        for key, value in incoming.items():
            merged[key] = _replace_recursive(merged[key], value) if key in merged else value
        return merged
    if isinstance(base, list) and isinstance(incoming, list):
        merged_list = list(base)
        for index, value in enumerate(incoming):
            if index < len(merged_list):
                merged_list[index] = _replace_recursive(merged_list[index], value)
            else:
                merged_list.append(value)
        return merged_list
    return incoming


def _merge_recursive(base: typ.Any, incoming: typ.Any) -> typ.Any:
    """Combine ``incoming`` into ``base``; colliding scalars become lists."""
    if isinstance(base, cabc.Mapping) and isinstance(incoming, cabc.Mapping):
        merged = dict(base)
        for key, value in incoming.items():
            merged[key] = _merge_recursive(merged[key], value) if key in merged else value
        return merged
    if isinstance(base, list):
        return [*base, *(incoming if isinstance(incoming, list) else [incoming])]
    if isinstance(incoming, list):
        return [base, *incoming]
    return [base, incoming]


class CodelessUi:
    """Bind data onto an HTML template using selectors as keys.

    Parameters
    ----------
    config : RenderConfig, optional
        Render defaults; the built-in defaults when omitted.
    import_resolver : ImportResolver, optional
        Loader for ``@import`` and include locators.
    """

    def __init__(
        self,
        config: RenderConfig | None = None,
        *,
        import_resolver: ImportResolver | None = None,
    ) -> None:
        self.config = config or RenderConfig()
        self.import_resolver = import_resolver
        self.data_stack: dict[typ.Any, typ.Any] = {}
        self.includes: dict[str, str] = {}
        self.value_modifiers: dict[str, list[ValueModifier]] = {}
        self.document: Document | None = None
        self.rendered = False
        self._template: str | None = None
        self._template_dir: Path | None = None

    @classmethod
    def from_job(
        cls, job: RenderJob, *, import_resolver: ImportResolver | None = None
    ) -> CodelessUi:
        """Build a facade from a loaded :class:`RenderJob`."""
        ui = cls(job.config, import_resolver=import_resolver)
        if job.template is not None:
            ui.set_template(Path(job.template))
        ui.assign_stack(job.data)
        for selector, locator in job.includes.items():
            ui.set_include(selector, locator)
        return ui

    def set_template(self, template: str | os.PathLike[str]) -> None:
        """Load the template from markup or from a file path.

        Raises
        ------
        EmptyTemplateError
            If ``template`` is empty or holds no markup.
        FileNotFoundError
            If ``template`` is neither markup nor an existing file.
        """
        if isinstance(template, os.PathLike):
            path = Path(template)
            markup = self._read_template(path)
        elif not template or not template.strip():
            msg = "No HTML data provided!"
            raise EmptyTemplateError(msg)
        elif TAG_PATTERN.search(template):
            markup, path = template, None
        else:
            path = Path(template.strip())
            markup = self._read_template(path)
        LxmlDocument.from_markup(markup, format_output=self.config.format_output)
        self._template = markup
        self._template_dir = path.parent if path is not None else None
        self.document = None
        self.rendered = False

    @staticmethod
    def _read_template(path: Path) -> str:
        if not path.is_file():
            msg = f"Template file not found: {path}"
            raise FileNotFoundError(msg)
        return path.read_text(encoding="utf-8")

    def assign(
        self, selector: typ.Any, data: typ.Any, *, replace: bool = True, recurse: bool = True
    ) -> None:
        """Add ``data`` under ``selector`` to the data stack.

        ``replace`` overwrites an existing entry, otherwise the two are merged;
        ``recurse`` applies that rule at every nesting level instead of only
        at the top.
        """
        incoming = {selector: copy.deepcopy(data)}
        if replace and recurse:
            self.data_stack = _replace_recursive(self.data_stack, incoming)
        elif replace:
            self.data_stack = {**self.data_stack, **incoming}
        elif recurse:
            self.data_stack = _merge_recursive(self.data_stack, incoming)
        elif isinstance(selector, int) and not isinstance(selector, bool):
            # Positional entries are appended, never overwritten.
            position = max((key for key in self.data_stack if isinstance(key, int)), default=-1) + 1
            self.data_stack = {**self.data_stack, position: incoming[selector]}
        else:
            self.data_stack = {**self.data_stack, **incoming}

    def assign_stack(self, stack: typ.Mapping[typ.Any, typ.Any] | typ.Sequence[typ.Any]) -> None:
        """Replace the whole data stack."""
        if isinstance(stack, cabc.Mapping):
            self.data_stack = dict(stack)
        else:
            self.data_stack = dict(enumerate(stack))

    def set_include(self, selector: str, locator: str) -> None:
        """Append the markup at ``locator`` to every ``selector`` match before binding."""
        self.includes[selector] = locator

    def set_value_modifier(self, selector: str, handler: ValueModifier) -> None:
        """Register ``handler(element, value)`` for the data key ``selector``."""
        self.value_modifiers.setdefault(selector, []).append(handler)

    def set_repeat_functions(
        self,
        repeat: str | typ.Iterable[str] | RepeatSpec,
        repeat_x: str | typ.Iterable[str] | RepeatSpec | None = None,
    ) -> None:
        """Set the y repeat spec, and x too unless ``repeat_x`` is given."""
        self.config = self.config.with_repeat(repeat, repeat_x)

    def obtain_data(self, selector: typ.Any = None) -> typ.Any:
        """Return the whole data stack, or the entry for ``selector`` (``None`` if absent)."""
        if selector is None:
            return self.data_stack
        return self.data_stack.get(selector)

    def obtain_include(self, selector: str | None = None) -> typ.Any:
        if selector is None:
            return self.includes
        return self.includes.get(selector)

    def render(self) -> str:
        """Render a fresh copy of the template and return its markup.

        Raises
        ------
        EmptyTemplateError
            If no template has been set.
        """
        if self._template is None:
            msg = "No HTML data provided!"
            raise EmptyTemplateError(msg)
        document = LxmlDocument.from_markup(self._template, format_output=self.config.format_output)
        rng = None
        if self.config.shuffle_seed is not None:
            rng = random.Random(self.config.shuffle_seed)  # noqa: S311
        owned = self.import_resolver is None
        resolver = self.import_resolver or ImportResolver(base_path=self._template_dir)
        renderer = Renderer(
            document,
            RenderContext.from_config(self.config),
            includes=self.includes,
            value_modifiers=self.value_modifiers,
            import_resolver=resolver,
            rng=rng,
        )
        try:
            self.document = renderer.render(self.data_stack)
        finally:
            if owned:
                resolver.close()
        self.rendered = True
        return self.document.serialize()

    def get_rendered(self, selector: str | None = None) -> str:
        """Return the rendered document, or the joined markup of ``selector``'s matches.

        The template is rendered on first use.
        """
        if not self.rendered or self.document is None:
            markup = self.render()
            if not selector:
                return markup
        document = typ.cast("Document", self.document)
        if not selector:
            return document.serialize()
        compiler = SelectorCompiler(document, self.config.selector_type)
        return "".join(document.serialize(node) for node in compiler.compile(selector))


__all__ = ["CodelessUi"]
