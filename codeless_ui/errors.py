"""Exception types raised while compiling selectors and rendering templates.

Every error aborts the current render call. Each carries the selector,
element path, or locator needed to find the offending template or data
entry.
"""

from __future__ import annotations

import typing as typ


class CodelessUiError(Exception):
    """Base class for every error raised by codeless_ui."""


class MalformedSelectorError(CodelessUiError, ValueError):
    """Raised when a selector cannot be compiled or its query fails to run."""

    def __init__(self, selector: str, query: str | None = None, reason: str = "") -> None:
        self.selector = selector
        self.query = query
        detail = f" ({reason})" if reason else ""
        if query is not None:
            msg = f"Malformed query for selector '{selector}': {query}{detail}"
        else:
            msg = f"Malformed selector '{selector}'{detail}"
        super().__init__(msg)


class UnsupportedPseudoError(MalformedSelectorError):
    """Raised for pseudo-classes that are recognised but not implemented."""

    def __init__(self, selector: str, pseudo: str) -> None:
        self.pseudo = pseudo
        super().__init__(selector, reason=f"the :{pseudo} pseudo-class is not supported")


class InvalidDirectiveKeysError(CodelessUiError, ValueError):
    """Raised when a directive map mixes unknown keys with recognised ones."""

    def __init__(
        self,
        unknown: typ.Sequence[str],
        known: typ.Sequence[str],
        selector: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.unknown = list(unknown)
        self.known = list(known)
        self.selector = selector
        where = f" for selector '{selector}'" if selector else ""
        if reason:
            msg = f"Invalid directive map{where}: {reason}"
        else:
            msg = (
                f"Invalid directive keys{where}: {', '.join(self.unknown)}"
                f" mixed with {', '.join(self.known) or 'no known keys'}"
            )
        super().__init__(msg)


class UnreadableImportError(CodelessUiError, OSError):
    """Raised when an import or include locator cannot be read."""

    def __init__(self, locator: str, reason: str = "") -> None:
        self.locator = locator
        detail = f": {reason}" if reason else ""
        super().__init__(f"The import location '{locator}' is not valid{detail}")


class EmptyTemplateError(CodelessUiError, ValueError):
    """Raised when no markup is supplied to initialise the document."""


class InvalidRepeatSpecError(CodelessUiError, ValueError):
    """Raised when repeat flags are unknown or conflict with each other."""


class RenderConfigError(CodelessUiError, ValueError):
    """Raised when the render configuration is invalid or incomplete."""


__all__ = [
    "CodelessUiError",
    "EmptyTemplateError",
    "InvalidDirectiveKeysError",
    "InvalidRepeatSpecError",
    "MalformedSelectorError",
    "RenderConfigError",
    "UnreadableImportError",
    "UnsupportedPseudoError",
]
