"""Expression classifier and free-symbol detector.

Purpose
-------
Decide which curve kind a line of user input describes and split it into the
sub-expressions each kind needs:

``"y >= x^2"``            -> inequality, body ``x^2``, operator ``>=``
``"x = cos(t), y = sin(t)"`` -> parametric, bodies ``cos(t)``, ``sin(t)``
``"x^2 + y^2 = 4"``       -> implicit, body ``(x^2+y^2)-(4)``
``"r = 1 + cos(theta)"``  -> polar, body ``1+cos(t)``
``"sin(x)"``              -> function, body ``sin(x)``

Architecture notes
------------------
Classification happens in two stages. :func:`split_expression` is purely
textual (regex rules checked in a fixed priority order) and never touches the
parsing backend. :func:`classify` then compiles every body and evaluates it once
with the independent variables at zero and every detected parameter at its
default value. A body that does not compile, or whose trial value is not a finite
real number, rejects the whole expression with a kind-specific message.

Important gotchas
-----------------
- A bare ``x = ...`` without a ``y = ...`` clause is a parametric format error,
  not an implicit relation.
- The trial evaluation is a single point, so ``1/x`` is rejected as a function
  (its value at ``x = 0`` is not finite).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .compiled_expression import CompiledExpression, compile_expression, real_scalar
from .config import DEFAULT_PARAMETER_VALUE
from .errors import ClassificationError, CompilationError, EvaluationError
from .parsing import RESERVED_NAMES, free_symbol_names, parse_math

__all__ = [
    "CURVE_KINDS",
    "Classification",
    "FUNCTION",
    "IMPLICIT",
    "INDEPENDENT_VARIABLES",
    "INEQUALITY",
    "INEQUALITY_OPERATORS",
    "PARAMETRIC",
    "POLAR",
    "classify",
    "detect_parameters",
    "split_expression",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

FUNCTION = "function"
INEQUALITY = "inequality"
PARAMETRIC = "parametric"
POLAR = "polar"
IMPLICIT = "implicit"

CURVE_KINDS = (FUNCTION, INEQUALITY, PARAMETRIC, POLAR, IMPLICIT)
INEQUALITY_OPERATORS = (">=", "<=", ">", "<")

INDEPENDENT_VARIABLES: dict[str, tuple[str, ...]] = {
    FUNCTION: ("x",),
    INEQUALITY: ("x", "y"),
    PARAMETRIC: ("t",),
    POLAR: ("t",),
    IMPLICIT: ("x", "y"),
}

_INVALID_MESSAGES = {
    FUNCTION: "invalid expression: result is not numeric",
    INEQUALITY: "invalid inequality expression",
    PARAMETRIC: "invalid parametric expression",
    POLAR: "invalid polar expression",
    IMPLICIT: "invalid implicit expression",
}

# Kinds whose bodies are synthesized from the input and so get their own
# compile failure message.
_UNPARSABLE_MESSAGES = {
    PARAMETRIC: "could not parse parametric expression",
    IMPLICIT: "could not parse implicit expression",
}

PARAMETRIC_FORMAT_MESSAGE = "use the x=..., y=... format for parametric equations"

_INEQUALITY = re.compile(r"^y\s*(>=|<=|>|<)\s*(.+)$", re.IGNORECASE | re.DOTALL)
_PARAMETRIC = re.compile(
    r"^x\s*(?:\(\s*t\s*\))?\s*=\s*(.+?)\s*,\s*y\s*(?:\(\s*t\s*\))?\s*=\s*(.+)$",
    re.IGNORECASE | re.DOTALL,
)
_X_ASSIGNMENT = re.compile(r"^x\s*(?:\(\s*t\s*\))?\s*=", re.IGNORECASE)
_POLAR_CALL = re.compile(r"^r\s*\(\s*(?:theta|θ|t)?\s*\)\s*=\s*(.+)$", re.IGNORECASE | re.DOTALL)
_POLAR = re.compile(r"^r\s*=\s*(.+)$", re.IGNORECASE | re.DOTALL)
_POLAR_PREFIX = re.compile(r"^r\s*[=(]", re.IGNORECASE)
_THETA = re.compile(r"theta|θ", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def _mentions(text: str, name: str) -> bool:
    return re.search(rf"(?<![A-Za-z]){name}(?![A-Za-z])", text) is not None


def _strip(body: str) -> str:
    return _WHITESPACE.sub("", body)


@dataclass(frozen=True)
class Classification:
    """Result of the textual classification stage.

    Parameters
    ----------
    kind : str
        One of :data:`CURVE_KINDS`.
    bodies : tuple[str, ...]
        Whitespace-free sub-expressions (two for parametric, one otherwise).
    operator : str or None
        Comparison operator for inequalities.
    """

    kind: str
    bodies: tuple[str, ...]
    operator: Optional[str] = None

    @property
    def independent_variables(self) -> tuple[str, ...]:
        return INDEPENDENT_VARIABLES[self.kind]


def split_expression(text: str) -> Classification:
    """Classify ``text`` by its shape alone.

    Raises
    ------
    ClassificationError
        For empty input and malformed parametric or polar forms.
    """
    trimmed = text.strip()
    if not trimmed:
        raise ClassificationError("expression cannot be empty")

    match = _INEQUALITY.match(trimmed)
    if match:
        return Classification(INEQUALITY, (_strip(match.group(2)),), match.group(1))

    lowered = trimmed.lower()
    compact = _strip(lowered)
    if ("x(t)" in compact and "y(t)" in compact) or _X_ASSIGNMENT.match(trimmed):
        match = _PARAMETRIC.match(trimmed)
        if match is None:
            raise ClassificationError(PARAMETRIC_FORMAT_MESSAGE)
        return Classification(PARAMETRIC, (_strip(match.group(1)), _strip(match.group(2))))

    is_polar = _POLAR_PREFIX.match(trimmed) is not None
    if "=" in trimmed and not is_polar and _mentions(trimmed, "x") and _mentions(trimmed, "y"):
        lhs, _, rhs = trimmed.partition("=")
        lhs, rhs = _strip(lhs), _strip(rhs)
        if not lhs or not rhs:
            raise ClassificationError(_UNPARSABLE_MESSAGES[IMPLICIT])
        return Classification(IMPLICIT, (f"({lhs})-({rhs})",))

    if is_polar:
        match = _POLAR_CALL.match(trimmed) or _POLAR.match(trimmed)
        if match is None:
            raise ClassificationError(_INVALID_MESSAGES[POLAR])
        return Classification(POLAR, (_THETA.sub("t", _strip(match.group(1))),))

    return Classification(FUNCTION, (_strip(trimmed),))


def _parameters_of(bodies: tuple[str, ...], independent: tuple[str, ...]) -> list[str]:
    names: set[str] = set()
    for body in bodies:
        names |= free_symbol_names(parse_math(body))
    excluded = set(independent) | RESERVED_NAMES
    return sorted(name for name in names if len(name) == 1 and name.isalpha() and name not in excluded)


def detect_parameters(text: str) -> list[str]:
    """Return the sorted parameter names referenced by ``text``.

    Parameters are the single-letter symbols other than the curve's
    independent variables and the reserved constants (``e``, ``i``, ``pi``).
    Text that cannot be split or parsed has no parameters.

    Examples
    --------
    >>> detect_parameters("a*x^2 + b*x + c")
    ['a', 'b', 'c']
    >>> detect_parameters("x^2")
    []
    """
    try:
        split = split_expression(text)
        return _parameters_of(split.bodies, split.independent_variables)
    except (ClassificationError, CompilationError):
        return []


@dataclass(frozen=True)
class CompiledCurve:
    """A classified and compiled expression.

    ``handles`` holds one compiled expression per body, in body order.
    """

    kind: str
    handles: tuple[CompiledExpression, ...]
    parameters: tuple[str, ...]
    operator: Optional[str] = None
    bodies: tuple[str, ...] = ()

    @property
    def handle(self) -> CompiledExpression:
        return self.handles[0]

    @property
    def independent_variables(self) -> tuple[str, ...]:
        return INDEPENDENT_VARIABLES[self.kind]


def _compile_body(split: Classification, body: str, variables: list[str]) -> CompiledExpression:
    try:
        return compile_expression(body, variables)
    except CompilationError as exc:
        if split.kind in _UNPARSABLE_MESSAGES:
            raise ClassificationError(_UNPARSABLE_MESSAGES[split.kind]) from exc
        raise


def classify(text: str) -> CompiledCurve:
    """Classify, compile and trial-evaluate ``text``.

    Returns
    -------
    CompiledCurve

    Raises
    ------
    ClassificationError
        If the text matches no grammar or a trial value is not finite.
    CompilationError
        If the parsing backend rejects a function, inequality or polar body.

    Examples
    --------
    >>> curve = classify("y > a*x")
    >>> curve.kind, curve.operator, curve.parameters
    ('inequality', '>', ('a',))
    """
    split = split_expression(text)
    independent = split.independent_variables
    try:
        parameters = _parameters_of(split.bodies, independent)
    except CompilationError as exc:
        if split.kind in _UNPARSABLE_MESSAGES:
            raise ClassificationError(_UNPARSABLE_MESSAGES[split.kind]) from exc
        raise

    variables = list(independent) + parameters
    handles = tuple(_compile_body(split, body, variables) for body in split.bodies)

    trial = {name: 0.0 for name in independent}
    trial.update({name: DEFAULT_PARAMETER_VALUE for name in parameters})
    for handle in handles:
        try:
            value = real_scalar(handle.evaluate(trial))
        except EvaluationError:
            value = None
        if value is None:
            logger.debug("classify: trial value of %r is not finite", handle.symbolic)
            raise ClassificationError(_INVALID_MESSAGES[split.kind])

    return CompiledCurve(
        kind=split.kind,
        handles=handles,
        parameters=tuple(parameters),
        operator=split.operator,
        bodies=split.bodies,
    )
