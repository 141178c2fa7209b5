"""Error taxonomy for expression handling and rendering.

Only :class:`ClassificationError` and :class:`CompilationError` ever reach
callers of :func:`graphcalc.compiler.parse_expression`, and even those are
folded into a ``ParseResult``. :class:`EvaluationError` is internal: the
numerical engine converts it into "no result" at the sample boundary.
"""

from __future__ import annotations

__all__ = [
    "ClassificationError",
    "CompilationError",
    "DegenerateViewportError",
    "EvaluationError",
    "GraphCalcError",
    "UNDEFINED",
    "SYNTAX",
    "GENERIC",
]

UNDEFINED = "undefined"
SYNTAX = "syntax"
GENERIC = "generic"

_CATEGORY_MESSAGES = {
    UNDEFINED: "undefined variable or function",
    SYNTAX: "unexpected character or syntax error",
}


class GraphCalcError(Exception):
    """Base class for all errors raised by ``graphcalc``."""


class ClassificationError(GraphCalcError, ValueError):
    """Raised when text matches no curve grammar or a sub-pattern is malformed.

    The message is user-facing (e.g. ``"invalid inequality expression"``).
    """


class CompilationError(GraphCalcError, ValueError):
    """Raised when the parsing/compilation backend rejects an expression.

    Parameters
    ----------
    detail : str
        Backend-specific description of the failure.
    category : str
        One of ``"undefined"``, ``"syntax"`` or ``"generic"``.
    """

    def __init__(self, detail: str, *, category: str = GENERIC) -> None:
        super().__init__(detail)
        self.detail = detail
        self.category = category

    @property
    def user_message(self) -> str:
        """Return the short message shown next to the expression."""
        return _CATEGORY_MESSAGES.get(self.category, self.detail or "invalid expression")


class EvaluationError(GraphCalcError, ArithmeticError):
    """Raised by a compiled handle when evaluation cannot produce a value."""


class DegenerateViewportError(GraphCalcError, ValueError):
    """Raised when a viewport has non-positive size or an empty axis range."""
