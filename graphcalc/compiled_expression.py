"""
compiled_expression: Compile calculator expressions to NumPy evaluators
=======================================================================

Purpose
-------
Turn expression text (or a SymPy expression) into a :class:`CompiledExpression`,
the opaque handle the rest of ``graphcalc`` evaluates. A handle has exactly
one operation that matters to its consumers:

``handle.evaluate({"x": 2.0, "a": 3.0}) -> 6.0``

Bindings may be Python floats or NumPy arrays; arrays broadcast, so a whole
sample grid is evaluated in one call.

Contract
--------
- Evaluation is pure: the generated function only reads its arguments.
- Bindings for names the expression does not reference are ignored.
- A referenced name without a binding raises :class:`EvaluationError`.
- Floating point warnings are silenced; division by zero and domain errors
  come back as ``inf``/``nan`` and callers decide what that means.

How code is generated
---------------------
SymPy's ``NumPyPrinter`` prints the expression as NumPy source, which is wrapped
in a ``def _generated(<vars>)`` and ``exec``'d. The generated source is kept on
the handle (``handle.source``) for inspection. Functions the printer can only
express through ``math`` (``gamma``, ``erf``, ``factorial``) evaluate one
sample at a time; expressions needing any other module fail to compile.

Logging
-------
Silent by default. Enable compile timings with::

    import logging
    logging.getLogger("graphcalc.compiled_expression").setLevel(logging.DEBUG)
"""

from __future__ import annotations

import builtins
import functools
import keyword
import logging
import math
import textwrap
import time
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional, Protocol, Union, cast, runtime_checkable

import numpy as np
import sympy as sp
from sympy.printing.numpy import NumPyPrinter

from .errors import GENERIC, UNDEFINED, CompilationError, EvaluationError
from .parsing import parse_math

__all__ = ["CompiledExpression", "ExpressionHandle", "compile_expression", "real_array", "real_scalar"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Bindings = Mapping[str, Any]

# Modules the generated source may reference; NumPyPrinter falls back to
# ``math`` for special functions NumPy lacks and to ``functools`` for Min/Max.
_GENERATED_MODULES: dict[str, Any] = {"numpy": np, "math": math, "functools": functools}


@runtime_checkable
class ExpressionHandle(Protocol):
    """Capability interface for anything that evaluates like a compiled expression."""

    def evaluate(self, bindings: Bindings) -> Any: ...


class CompiledExpression:
    """Compiled, side-effect-free NumPy evaluator for one expression."""

    __slots__ = ("_fn", "symbolic", "variables", "call_signature", "source")

    def __init__(
        self,
        fn: Callable[..., Any],
        symbolic: sp.Expr,
        call_signature: tuple[tuple[str, str], ...],
        source: str,
    ) -> None:
        self._fn = fn
        self.symbolic = symbolic
        self.call_signature = call_signature
        self.variables: tuple[str, ...] = tuple(name for name, _ in call_signature)
        self.source = source

    def evaluate(self, bindings: Bindings) -> Any:
        """Evaluate with ``bindings`` mapping variable names to numbers or arrays.

        Raises
        ------
        EvaluationError
            If a referenced variable is unbound or the generated code raises.
        """
        args: list[Any] = []
        for name in self.variables:
            if name not in bindings:
                raise EvaluationError(f"Undefined symbol {name!r}")
            args.append(bindings[name])
        try:
            with np.errstate(all="ignore"):
                return self._fn(*args)
        except (ArithmeticError, ValueError, TypeError, NameError) as exc:
            raise EvaluationError(f"{self.symbolic}: {exc}") from exc

    def __repr__(self) -> str:
        return f"CompiledExpression({self.symbolic!r}, vars=({', '.join(self.variables)}))"


def real_scalar(value: Any) -> Optional[float]:
    """Return ``value`` as a finite real float, or ``None``.

    Complex values count only when their imaginary part is exactly zero.
    """
    try:
        arr = np.asarray(value)
    except (TypeError, ValueError):
        return None
    if arr.size != 1 or arr.dtype == object:
        return None
    item = arr.reshape(()).item()
    if isinstance(item, complex):
        if item.imag != 0:
            return None
        item = item.real
    if not isinstance(item, (int, float)) or isinstance(item, bool):
        return None
    item = float(item)
    return item if np.isfinite(item) else None


def real_array(value: Any, shape: tuple[int, ...]) -> np.ndarray:
    """Return ``value`` broadcast to ``shape`` as floats, non-real entries as ``nan``."""
    arr = np.asarray(value)
    if np.iscomplexobj(arr):
        arr = np.where(arr.imag == 0, arr.real, np.nan)
    try:
        out = np.broadcast_to(arr.astype(float), shape).copy()
    except (TypeError, ValueError):
        return np.full(shape, np.nan)
    out[~np.isfinite(out)] = np.nan
    return out


def _build_call_signature(names: Sequence[str], reserved: set[str]) -> tuple[tuple[str, str], ...]:
    used = set(reserved)
    out: list[tuple[str, str]] = []
    for name in names:
        if not name.isidentifier():
            raise CompilationError(f"cannot use {name!r} as a variable name")
        candidate = name
        suffix = 0
        while candidate in used:
            candidate = f"{name}__{suffix}"
            suffix += 1
        used.add(candidate)
        out.append((name, candidate))
    return tuple(out)


def compile_expression(
    expr: Union[str, sp.Expr],
    variables: Sequence[str] = (),
) -> CompiledExpression:
    """Compile ``expr`` into a :class:`CompiledExpression`.

    Parameters
    ----------
    expr : str or sympy.Expr
        Expression text (parsed with :func:`graphcalc.parsing.parse_math`) or
        an already parsed SymPy expression.
    variables : sequence of str
        Names the expression may reference. Names listed here but absent from
        the expression are accepted and simply not required at evaluation.

    Returns
    -------
    CompiledExpression

    Raises
    ------
    CompilationError
        If parsing fails or the expression references a name outside
        ``variables``.

    Examples
    --------
    >>> f = compile_expression("x^2", ["x"])
    >>> float(f.evaluate({"x": 2}))
    4.0
    """
    symbolic = parse_math(expr) if isinstance(expr, str) else sp.sympify(expr)

    allowed = list(dict.fromkeys(variables))
    referenced = {sym.name for sym in symbolic.free_symbols}
    unknown = sorted(referenced - set(allowed))
    if unknown:
        raise CompilationError(f"Undefined symbol: {', '.join(unknown)}", category=UNDEFINED)

    log_debug = logger.isEnabledFor(logging.DEBUG)
    t0 = time.perf_counter() if log_debug else None

    # Only referenced names become arguments, in the caller's order.
    arg_names = [name for name in allowed if name in referenced]
    reserved = set(keyword.kwlist) | set(dir(builtins)) | set(_GENERATED_MODULES)
    call_signature = _build_call_signature(arg_names, reserved)
    arg_for = dict(call_signature)
    replacement = {sym: sp.Symbol(arg_for[sym.name]) for sym in symbolic.free_symbols}

    printer = NumPyPrinter(settings={"user_functions": {}})
    try:
        expr_code = printer.doprint(symbolic.xreplace(replacement))
    except Exception as exc:
        raise CompilationError(f"cannot compile {symbolic}: {exc}") from exc

    missing = sorted(m for m in printer.module_imports if m.split(".")[0] not in _GENERATED_MODULES)
    if missing:
        raise CompilationError(f"cannot compile {symbolic}: needs {', '.join(missing)}", category=GENERIC)

    args = [arg for _, arg in call_signature]
    lines = ["def _generated(" + ", ".join(args) + "):"]
    for arg in args:
        lines.append(f"    {arg} = numpy.asarray({arg}, dtype=float)")
    lines.append(f"    return {expr_code}")
    src = "\n".join(lines)

    glb: dict[str, Any] = dict(_GENERATED_MODULES)
    loc: dict[str, Any] = {}
    exec(src, glb, loc)
    fn = cast(Callable[..., Any], loc["_generated"])
    fn.__doc__ = textwrap.dedent(
        f"""
        Auto-generated NumPy function.

        expr: {symbolic!r}
        vars: {args}
        """
    ).strip()

    if t0 is not None:
        logger.debug("compile_expression: %s -> vars=%s in %.2f ms", symbolic, args, 1000.0 * (time.perf_counter() - t0))

    return CompiledExpression(fn=fn, symbolic=symbolic, call_signature=call_signature, source=src)
