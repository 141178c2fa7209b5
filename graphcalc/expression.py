"""Expression model: one line of user input and everything derived from it."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Optional

from .cache import CompilationCache
from .classifier import CompiledCurve, detect_parameters
from .compiled_expression import CompiledExpression
from .compiler import parse_expression
from .config import COLORS
from .InputConvert import InputConvert
from .parameters import Parameter, sync_parameters

__all__ = ["Expression", "Range", "palette_color"]

Range = tuple[float, float]

_ids = itertools.count(1)


def _next_id() -> str:
    return f"expr-{next(_ids)}"


def palette_color(index: int) -> str:
    """Return the palette color for the ``index``-th expression."""
    return COLORS[index % len(COLORS)]


def _range(value: Optional[Any], what: str) -> Optional[Range]:
    if value is None:
        return None
    try:
        lo, hi = value
    except (TypeError, ValueError):
        raise ValueError(f"{what} must be a (start, end) pair") from None
    lo, hi = InputConvert(lo), InputConvert(hi)
    if not lo < hi:
        raise ValueError(f"{what} start must be less than end (got {lo}, {hi})")
    return (lo, hi)


@dataclass(eq=False)
class Expression:
    """A user expression and its derived state.

    Parameters
    ----------
    text : str
        Raw input text.
    color : str
        Display color.
    id : str
        Opaque unique id. Generated when not given.

    Notes
    -----
    ``is_valid`` is true exactly when a compiled curve is present.
    ``parameters`` always holds exactly the names returned by
    :func:`~graphcalc.classifier.detect_parameters` for the current text.
    Call :meth:`set_text` to (re)parse; constructing an Expression does not
    parse by itself.
    """

    text: str = ""
    color: str = COLORS[0]
    id: str = field(default_factory=_next_id)
    curve: Optional[CompiledCurve] = None
    error: Optional[str] = None
    parameters: dict[str, Parameter] = field(default_factory=dict)
    integral_range: Optional[Range] = None
    derivative_point: Optional[float] = None
    parametric_range: Optional[Range] = None
    polar_range: Optional[Range] = None

    @classmethod
    def parsed(
        cls,
        text: str,
        *,
        color: str = COLORS[0],
        cache: Optional[CompilationCache] = None,
        id: Optional[str] = None,
    ) -> "Expression":
        """Create an expression and parse ``text`` right away."""
        expr = cls(color=color) if id is None else cls(color=color, id=id)
        expr.set_text(text, cache)
        return expr

    # ---- derived state -------------------------------------------------

    @property
    def is_valid(self) -> bool:
        return self.curve is not None

    @property
    def kind(self) -> Optional[str]:
        return None if self.curve is None else self.curve.kind

    @property
    def operator(self) -> Optional[str]:
        return None if self.curve is None else self.curve.operator

    @property
    def handle(self) -> Optional[CompiledExpression]:
        return None if self.curve is None else self.curve.handle

    def parameter_values(self) -> dict[str, float]:
        return {name: p.value for name, p in self.parameters.items()}

    # ---- mutation -------------------------------------------------------

    def set_text(self, text: str, cache: Optional[CompilationCache] = None) -> None:
        """Replace the text, re-parse it and sync the parameters."""
        self.text = text
        result = parse_expression(text, cache)
        self.curve = result.curve
        self.error = result.error
        self.parameters = sync_parameters(self.parameters, detect_parameters(text))

    def set_integral_range(self, value: Optional[Any]) -> None:
        self.integral_range = _range(value, "integral range")

    def set_parametric_range(self, value: Optional[Any]) -> None:
        self.parametric_range = _range(value, "parametric range")

    def set_polar_range(self, value: Optional[Any]) -> None:
        self.polar_range = _range(value, "polar range")

    def set_derivative_point(self, value: Optional[Any]) -> None:
        self.derivative_point = None if value is None else InputConvert(value)

    def __repr__(self) -> str:
        state = self.kind if self.is_valid else f"error={self.error!r}"
        return f"Expression(id={self.id!r}, text={self.text!r}, {state})"
