"""Data model, render context, import resolution and the recursive renderer."""

from .context import RenderContext, resolve_param
from .imports import ImportResolver, Locator
from .models import (
    DataStack,
    DataValue,
    DirectiveEntry,
    DirectiveMap,
    NestedStack,
    Scalar,
    parse_data_stack,
    parse_data_value,
)
from .renderer import Renderer

__all__ = [
    "DataStack",
    "DataValue",
    "DirectiveEntry",
    "DirectiveMap",
    "ImportResolver",
    "Locator",
    "NestedStack",
    "RenderContext",
    "Renderer",
    "Scalar",
    "parse_data_stack",
    "parse_data_value",
    "resolve_param",
]
