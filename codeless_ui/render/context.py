"""Immutable render settings threaded through the recursive renderer."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from codeless_ui._constants import CONTENT_EMPTY_POLICIES, PARAM_ATTRIBUTE_TEMPLATE
from codeless_ui.config.models import DEFAULT_REPEAT, RenderConfig, RepeatSpec
from codeless_ui.errors import RenderConfigError

if typ.TYPE_CHECKING:
    from codeless_ui.dom.document import Document, Node

Axis = typ.Literal["x", "y"]


@dc.dataclass(slots=True, frozen=True)
class RenderContext:
    """Settings for one level of recursion.

    ``depth`` is 0 for the root stack and grows by one for every nested
    stack. Populations at even depths use the ``y`` repeat spec, odd depths
    use ``x``.
    """

    selector_type: str = "css"
    format_output: bool = True
    parse_inserted_data: bool = False
    repeat_x: RepeatSpec = DEFAULT_REPEAT
    repeat_y: RepeatSpec = DEFAULT_REPEAT
    on_content_empty: str = "do_nothing"
    depth: int = 0
    reparse: bool = False

    @classmethod
    def from_config(cls, config: RenderConfig) -> RenderContext:
        return cls(
            selector_type=config.selector_type,
            format_output=config.format_output,
            parse_inserted_data=config.parse_inserted_data,
            repeat_x=config.repeat_x,
            repeat_y=config.repeat_y,
            on_content_empty=config.on_content_empty,
        )

    @property
    def axis(self) -> Axis:
        return "y" if self.depth % 2 == 0 else "x"

    def descend(self) -> RenderContext:
        """Return the context for a nested stack one level deeper."""
        return dc.replace(self, depth=self.depth + 1)

    def for_reparse(self) -> RenderContext:
        return dc.replace(self, depth=0, reparse=True)

    def repeat_for(self, axis: Axis) -> RepeatSpec:
        return self.repeat_x if axis == "x" else self.repeat_y

    def default(self, key: str) -> typ.Any:
        """Return the ambient value for a ``@params`` key, or ``None``."""
        match key:
            case "repeat_fn_x":
                return self.repeat_x
            case "repeat_fn_y":
                return self.repeat_y
            case "on_content_empty":
                return self.on_content_empty
            case _:
                return None


def resolve_param(
    key: str,
    params: typ.Mapping[str, typ.Any],
    element: Node | None,
    document: Document,
    context: RenderContext,
) -> typ.Any:
    """Resolve one per-element setting.

    Precedence is the element's ``data-codelessui-<key>`` attribute, then the
    ``@params`` entry, then the context default. Empty values fall through.

    Examples
    --------
    >>> from codeless_ui.dom import LxmlDocument
    >>> doc = LxmlDocument.from_markup('<p data-codelessui-on_content_empty="clear">x</p>')
    >>> p = doc.query("//p")[0]
    >>> resolve_param("on_content_empty", {"on_content_empty": "no_render"}, p, doc, RenderContext())
    'clear'
    """
    if element is not None:
        attribute = document.get_attribute(element, PARAM_ATTRIBUTE_TEMPLATE.format(key=key))
        if attribute:
            return attribute
    value = params.get(key)
    if value is not None and value != "":
        return value
    return context.default(key)


def resolve_repeat(
    axis: Axis,
    params: typ.Mapping[str, typ.Any],
    element: Node | None,
    document: Document,
    context: RenderContext,
) -> RepeatSpec:
    """Return the repeat spec a container's children population should use."""
    return RepeatSpec.parse(resolve_param(f"repeat_fn_{axis}", params, element, document, context))


def resolve_empty_policy(
    params: typ.Mapping[str, typ.Any],
    element: Node | None,
    document: Document,
    context: RenderContext,
) -> str:
    policy = str(resolve_param("on_content_empty", params, element, document, context))
    if policy not in CONTENT_EMPTY_POLICIES:
        msg = f"Unknown on_content_empty policy '{policy}' at {document.path(element)}."
        raise RenderConfigError(msg)
    return policy


__all__ = ["Axis", "RenderContext", "resolve_empty_policy", "resolve_param", "resolve_repeat"]
