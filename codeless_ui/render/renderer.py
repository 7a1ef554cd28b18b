"""Walk a data stack and bind it onto the document.

The renderer populates a :class:`~codeless_ui.dom.nodelist.NodeList` for
every container, seeks one slot per key and applies the key's value:

* a :class:`Scalar` becomes literal text, or parsed markup when it looks
  like a tag;
* a :class:`DataStack` recurses one level deeper with the slot as container;
* a :class:`DirectiveMap` dispatches ``@params``, ``@attr``, ``@import``,
  ``@children``/``@content`` and ``@self`` in that order.

With ``parse_inserted_data`` enabled a second pass re-renders the reloaded
document once, skipping every element the first pass bound, so markup
inserted by the first pass can pick up pending bindings.
"""

from __future__ import annotations

import logging
import random
import typing as typ

from codeless_ui._constants import (
    CONTENT_EMPTY_ATTRIBUTE,
    DIRECTIVE_ATTR,
    DIRECTIVE_CHILDREN,
    DIRECTIVE_CONTENT,
    DIRECTIVE_IMPORT,
    DIRECTIVE_PREFIX,
    DIRECTIVE_SELF,
)
from codeless_ui.dom.nodelist import NodeListPopulator, split_insert_suffix
from codeless_ui.dom.selector import SelectorCompiler

from .context import RenderContext, resolve_empty_policy, resolve_repeat
from .imports import ImportResolver
from .models import DataStack, DirectiveMap, Scalar, parse_data_stack, parse_data_value

if typ.TYPE_CHECKING:
    from codeless_ui.config.models import RepeatSpec
    from codeless_ui.dom.document import Document, Fragment, InsertMode, Node

    from .models import DataValue, StackKey

log = logging.getLogger(__name__)

ValueModifier = typ.Callable[["Node", "DataValue"], typ.Any]


class Renderer:
    """Render data stacks onto one document.

    Parameters
    ----------
    document : Document
        Template to mutate. After a reparse pass :attr:`document` refers to
        the reloaded document.
    context : RenderContext
        Ambient settings for the root stack.
    includes : Mapping[str, str], optional
        Selector to include-locator pairs appended before any binding.
    value_modifiers : Mapping[str, Sequence[Callable]], optional
        Callbacks per data key, called as ``handler(element, value)``; a
        non-``None`` return replaces the value for that element.
    import_resolver : ImportResolver, optional
        Loader for ``@import`` and include locators.
    rng : random.Random, optional
        Randomness for the ``shuffle`` repeat flag.
    """

    def __init__(
        self,
        document: Document,
        context: RenderContext,
        *,
        includes: typ.Mapping[str, str] | None = None,
        value_modifiers: typ.Mapping[str, typ.Sequence[ValueModifier]] | None = None,
        import_resolver: ImportResolver | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.context = context
        self.includes = dict(includes or {})
        self.value_modifiers = {key: list(handlers) for key, handlers in (value_modifiers or {}).items()}
        self.imports = import_resolver or ImportResolver()
        self.rng = rng
        self._bound: set[Node] = set()
        self._attach(document)

    def _attach(self, document: Document) -> None:
        self.document = document
        self.compiler = SelectorCompiler(document, self.context.selector_type)
        self.populator = NodeListPopulator(document, self.compiler, self.rng)

    def render(self, stack: typ.Any) -> Document:
        """Render ``stack`` and return the resulting document.

        Parameters
        ----------
        stack : Mapping | Sequence | DataStack
            Root data stack keyed by selectors.

        Returns
        -------
        Document
            The rendered document; a fresh instance when a reparse pass ran.

        Raises
        ------
        CodelessUiError
            Any selector, directive or import error aborts the render. Changes
            applied before the failure stay in the document.
        """
        data = parse_data_stack(stack)
        self._bound.clear()
        self._process_includes()
        self._render_stack(data, self.document.root, self.context)
        self.document.normalize()
        if self.context.parse_inserted_data:
            log.debug("Reparsing with %d bound elements", len(self._bound))
            self._attach(self.document.reload(self._bound))
            self._bound.clear()
            self._render_stack(data, self.document.root, self.context.for_reparse())
            self.document.normalize()
        return self.document

    def _process_includes(self) -> None:
        for selector, locator in self.includes.items():
            targets = self.compiler.compile(selector)
            if not targets:
                log.debug("Include target %s matched nothing", selector)
                continue
            markup = self.imports.resolve_include(
                locator, format_output=self.document.format_output
            )
            for target in targets:
                self.document.insert(target, self.document.create_fragment(markup), "append")

    def _render_stack(
        self,
        stack: DataStack,
        container: Node,
        context: RenderContext,
        repeat: RepeatSpec | None = None,
        *,
        self_repeat: bool = False,
    ) -> None:
        if not stack:
            return
        spec = repeat if repeat is not None else context.repeat_for(context.axis)
        node_list = self.populator.populate(
            container, stack.keys(), spec, self_repeat=self_repeat
        )
        for key, value in stack:
            slot = node_list.seek()
            if not slot:
                continue
            _, mode = split_insert_suffix(key)
            for element in slot:
                if context.reparse and element in self.document.consumed:
                    self.document.consumed.discard(element)
                    continue
                if context.parse_inserted_data and not context.reparse:
                    self._bound.add(element)
                self._render_value(element, key, value, mode, context)

    def _render_value(
        self,
        element: Node,
        key: StackKey,
        value: DataValue,
        mode: InsertMode,
        context: RenderContext,
    ) -> None:
        for handler in self.value_modifiers.get(str(key), ()):
            replacement = handler(element, value)
            if replacement is not None:
                value = parse_data_value(replacement, str(key))
        match value:
            case DirectiveMap():
                self._apply_directives(element, value, mode, context)
            case DataStack():
                self._recurse(element, value, {}, context)
            case Scalar():
                self._set_content(element, value, mode, {}, context)

    def _recurse(
        self,
        element: Node,
        stack: DataStack,
        params: typ.Mapping[str, typ.Any],
        context: RenderContext,
        *,
        self_repeat: bool = False,
    ) -> None:
        child = context.descend()
        repeat = resolve_repeat(child.axis, params, element, self.document, context)
        self._render_stack(stack, element, child, repeat, self_repeat=self_repeat)

    def _apply_directives(
        self,
        element: Node,
        directives: DirectiveMap,
        common_mode: InsertMode,
        context: RenderContext,
    ) -> None:
        params = directives.params
        active: Node | None = element
        for entry in directives:
            if active is None:
                break
            mode = common_mode if entry.key == f"{DIRECTIVE_PREFIX}{entry.kind}" else entry.mode
            if entry.kind == DIRECTIVE_ATTR:
                for name, attr_value in entry.value.items():
                    self._set_attribute(active, name, attr_value, mode)
            elif entry.kind == DIRECTIVE_IMPORT:
                markup = self.imports.resolve(entry.value, self.document, context.selector_type)
                active = self._set_content(active, Scalar(markup), mode, params, context)
            elif entry.kind in (DIRECTIVE_CHILDREN, DIRECTIVE_CONTENT):
                if isinstance(entry.value, DataStack):
                    self._recurse(active, entry.value, params, context)
                else:
                    active = self._set_content(active, entry.value, mode, params, context)
            elif entry.kind == DIRECTIVE_SELF:
                if isinstance(entry.value, DataStack):
                    self._recurse(active, entry.value, params, context, self_repeat=True)
                else:
                    active = self._set_self(active, entry.value, mode, params, context)

    def _set_attribute(self, element: Node, name: str, value: str, mode: InsertMode) -> None:
        current = self.document.get_attribute(element, name)
        if current and mode == "append":
            value = f"{current} {value}"
        elif current and mode == "prepend":
            value = f"{value} {current}"
        self.document.set_attribute(element, name, value)

    def _fragment(self, scalar: Scalar) -> Fragment:
        text = scalar.text or ""
        if scalar.is_markup:
            return self.document.create_fragment(text)
        return self.document.create_text(text)

    def _set_content(
        self,
        element: Node,
        scalar: Scalar,
        mode: InsertMode,
        params: typ.Mapping[str, typ.Any],
        context: RenderContext,
    ) -> Node | None:
        """Insert ``scalar`` into ``element``; return the element still active."""
        if scalar.empty:
            return self._apply_empty_policy(element, params, context)
        self.document.insert(element, self._fragment(scalar), mode)
        return element

    def _set_self(
        self,
        element: Node,
        scalar: Scalar,
        mode: InsertMode,
        params: typ.Mapping[str, typ.Any],
        context: RenderContext,
    ) -> Node | None:
        """Place ``scalar`` before, after, or instead of ``element`` itself."""
        if scalar.empty:
            return self._apply_empty_policy(element, params, context)
        self.document.replace_node(element, self._fragment(scalar), mode)
        return None if mode == "replace" else element

    def _apply_empty_policy(
        self,
        element: Node,
        params: typ.Mapping[str, typ.Any],
        context: RenderContext,
    ) -> Node | None:
        policy = resolve_empty_policy(params, element, self.document, context)
        log.debug("Empty content at %s: %s", self.document.path(element), policy)
        match policy:
            case "clear":
                self.document.clear(element)
            case "set_flag":
                self.document.set_attribute(element, CONTENT_EMPTY_ATTRIBUTE, "true")
            case "clear_and_set_flag":
                self.document.clear(element)
                self.document.set_attribute(element, CONTENT_EMPTY_ATTRIBUTE, "true")
            case "no_render":
                return self.document.detach(element)
            case _:
                pass
        return element


__all__ = ["Renderer", "ValueModifier"]
