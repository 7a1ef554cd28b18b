"""Common literal values used across codeless_ui.

These constants keep reserved attribute names, directive keys, and repeat
flags centralized so the compiler, populator, renderer, and tests can import
the same values without drifting. Intended for internal use within the
codeless_ui package.

Examples
--------
>>> from codeless_ui import _constants
>>> _constants.PARAM_ATTRIBUTE_TEMPLATE.format(key="repeat_fn_x")
'data-codelessui-repeat_fn_x'
>>> "@content" in _constants.DIRECTIVE_KEYS
True
"""

import re

ATTRIBUTE_PREFIX = "data-codelessui-"
PARAM_ATTRIBUTE_TEMPLATE = ATTRIBUTE_PREFIX + "{key}"
CONTENT_EMPTY_ATTRIBUTE = ATTRIBUTE_PREFIX + "content_empty"
CONSUMED_ATTRIBUTE = ATTRIBUTE_PREFIX + "no_parse"

DIRECTIVE_PREFIX = "@"
DIRECTIVE_PARAMS = "params"
DIRECTIVE_ATTR = "attr"
DIRECTIVE_IMPORT = "import"
DIRECTIVE_CHILDREN = "children"
DIRECTIVE_CONTENT = "content"
DIRECTIVE_SELF = "self"

# Dispatch precedence; children and content share a rank.
DIRECTIVE_ORDER: dict[str, int] = {
    DIRECTIVE_PARAMS: 0,
    DIRECTIVE_ATTR: 1,
    DIRECTIVE_IMPORT: 2,
    DIRECTIVE_CHILDREN: 3,
    DIRECTIVE_CONTENT: 3,
    DIRECTIVE_SELF: 4,
}

INSERT_SUFFIXES: dict[str, str] = {
    "::before": "prepend",
    "::after": "append",
    ":before": "prepend",
    ":after": "append",
}

DIRECTIVE_KEYS: frozenset[str] = frozenset(
    [f"{DIRECTIVE_PREFIX}{DIRECTIVE_PARAMS}"]
    + [
        f"{DIRECTIVE_PREFIX}{name}{suffix}"
        for name in DIRECTIVE_ORDER
        if name != DIRECTIVE_PARAMS
        for suffix in ("", *INSERT_SUFFIXES)
    ]
)

CONTENT_EMPTY_POLICIES = frozenset(
    {"do_nothing", "clear", "set_flag", "clear_and_set_flag", "no_render"}
)

REPEAT_WRAP_FLAGS = ("simple", "mirror")
REPEAT_PAD_FLAGS = ("inner_padded", "#inner_padded")
REPEAT_FLAGS = frozenset(
    (*REPEAT_WRAP_FLAGS, *REPEAT_PAD_FLAGS, "once", "justify", "shuffle")
)

TAG_PATTERN = re.compile(r"<[^<].*>", re.DOTALL)
