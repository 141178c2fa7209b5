"""Calculator-style text parsing on top of SymPy.

Purpose
-------
Turn the text a user types (``2x^2 + sin(a x)``) into a SymPy expression.
This is the "external" parsing primitive of the package: the rest of
``graphcalc`` only sees the resulting expression or a
:class:`~graphcalc.errors.CompilationError`.

Conventions
-----------
- ``^`` is exponentiation and juxtaposition is multiplication (``2x``).
- Every single-letter identifier is a plain symbol, so ``N``, ``S`` or ``Q``
  never resolve to SymPy helpers.
- ``pi``, ``e``/``E`` are constants and ``i`` is the imaginary unit.
- Unknown multi-letter calls such as ``foo(x)`` are rejected instead of
  becoming undefined SymPy functions.
"""

from __future__ import annotations

import logging
import math
import re
from tokenize import TokenError
from typing import Optional

import sympy as sp
from sympy.core.function import AppliedUndef
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_application,
    implicit_multiplication,
    parse_expr,
    standard_transformations,
)

from .errors import GENERIC, SYNTAX, UNDEFINED, CompilationError

__all__ = ["RESERVED_NAMES", "free_symbol_names", "parse_math"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication,
    implicit_application,
    convert_xor,
)

_CONSTANTS: dict[str, sp.Basic] = {
    "pi": sp.pi,
    "e": sp.E,
    "E": sp.E,
    "i": sp.I,
}

# Names that are never reported as free symbols.
RESERVED_NAMES = frozenset(_CONSTANTS)

_EXTRA_FUNCTIONS = {
    "ln": sp.log,
    "log10": lambda arg: sp.log(arg, 10),
    "log2": lambda arg: sp.log(arg, 2),
}

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z_0-9]*")

# Exact constants SymPy would expand while parsing are capped at this many
# decimal digits; ``10^10^10`` would otherwise never finish.
_MAX_EXACT_DIGITS = 4000
_MAX_FACTORIAL_ARG = 1000


def _local_namespace(text: str) -> dict[str, object]:
    """Build the ``local_dict`` for one parse of *text*."""
    local: dict[str, object] = {**_CONSTANTS, **_EXTRA_FUNCTIONS}
    for name in set(_IDENTIFIER.findall(text)):
        if len(name) == 1 and name not in local:
            local[name] = sp.Symbol(name)
    return local


def _numeric(node: sp.Basic) -> Optional[complex]:
    try:
        return complex(node.evalf())
    except (TypeError, ValueError, OverflowError):
        return None


def _check_exact_size(source: str, local: dict[str, object]) -> None:
    """Reject constant powers and factorials too large to evaluate exactly.

    The text is parsed once without evaluation and every constant subterm is
    sized in floating point before SymPy gets a chance to expand it.
    """
    # factorial and gamma are not covered by evaluate=False and would expand
    # integer arguments immediately.
    unevaluated = {
        **local,
        "factorial": lambda *args: sp.factorial(*args, evaluate=False),
        "gamma": lambda *args: sp.gamma(*args, evaluate=False),
    }
    try:
        raw = parse_expr(source, local_dict=unevaluated, transformations=_TRANSFORMATIONS, evaluate=False)
    except Exception as exc:
        # The evaluating parse below reports the real error.
        logger.debug("parse_math: unevaluated parse failed for %r: %s", source, exc)
        return
    if not isinstance(raw, sp.Basic):
        return

    for node in sp.postorder_traversal(raw):
        if not isinstance(node, (sp.Pow, sp.factorial, sp.gamma)):
            continue
        if node.free_symbols or node.has(sp.Float):
            continue
        if isinstance(node, sp.Pow):
            base, exponent = (_numeric(arg) for arg in node.args)
            if base is None or exponent is None or abs(base) in (0.0, 1.0):
                continue
            digits = abs(exponent) * (abs(math.log10(abs(base))) + 1.0)
            too_large = not digits <= _MAX_EXACT_DIGITS
        else:
            arg = _numeric(node.args[0])
            too_large = arg is not None and not arg.real <= _MAX_FACTORIAL_ARG
        if too_large:
            raise CompilationError(f"number too large in {source!r}", category=GENERIC)


def parse_math(text: str) -> sp.Expr:
    """Parse calculator-style *text* into a SymPy expression.

    Parameters
    ----------
    text : str
        Expression text without any ``=``/comparison operator.

    Returns
    -------
    sympy.Expr
        Parsed expression.

    Raises
    ------
    CompilationError
        ``category="syntax"`` for tokenizer/grammar errors,
        ``category="undefined"`` for unknown function names and
        ``category="generic"`` for anything else (including results that are
        not a single scalar formula).

    Examples
    --------
    >>> parse_math("2x^2")
    2*x**2
    >>> parse_math("a*x + e")
    a*x + E
    """
    source = text.strip()
    if not source:
        raise CompilationError("empty expression", category=SYNTAX)

    local = _local_namespace(source)
    _check_exact_size(source, local)
    try:
        expr = parse_expr(source, local_dict=local, transformations=_TRANSFORMATIONS)
    except (SyntaxError, TokenError) as exc:
        logger.debug("parse_math: syntax error for %r: %s", source, exc)
        raise CompilationError(f"syntax error in {source!r}: {exc}", category=SYNTAX) from exc
    except NameError as exc:
        raise CompilationError(str(exc), category=UNDEFINED) from exc
    except Exception as exc:
        raise CompilationError(str(exc) or type(exc).__name__, category=GENERIC) from exc

    if isinstance(expr, (int, float)):
        expr = sp.Float(expr) if isinstance(expr, float) else sp.Integer(expr)
    if not isinstance(expr, sp.Expr):
        raise CompilationError(
            f"{source!r} is not a single numeric formula (got {type(expr).__name__})",
            category=GENERIC,
        )

    unknown = sorted({app.func.__name__ for app in expr.atoms(AppliedUndef)})
    if unknown:
        raise CompilationError(f"Undefined function: {', '.join(unknown)}", category=UNDEFINED)
    return expr


def free_symbol_names(expr: sp.Basic) -> set[str]:
    """Return the names of the free symbols of *expr*."""
    return {sym.name for sym in expr.free_symbols}
