"""Numerical analysis on compiled expressions.

Purpose
-------
Derivatives, integrals, tangents, point predicates and intersection search
over :class:`~graphcalc.compiled_expression.ExpressionHandle` objects and
plain floats.

Concepts and structure
----------------------
Every operation fails soft. An evaluation that raises, returns a complex
value, or returns ``inf``/``nan`` is "no result" and shows up as ``None``
(for scalar operations), ``False`` (for predicates) or ``nan`` (inside the
arrays returned by :func:`evaluate_many`). Callers never need ``try``.

Parameter values are passed as a plain mapping and merged under the
independent variable, so a parameter named like the variable is shadowed.

Architecture notes
------------------
Scans (Simpson sums, the intersection coarse scan, value tables) bind a NumPy
array to the independent variable and evaluate once. If a handle cannot
evaluate an array, :func:`evaluate_many` falls back to one call per sample.

Important gotchas
-----------------
:func:`find_intersections` is a proximity search, not a bracketing root
finder. It accepts points where ``|f1 - f2| < 0.01``, so it can miss steep
crossings that fall between coarse samples and can report two points for a
shallow crossing when their refinements land just outside the 0.1 dedup box.
"""

from __future__ import annotations

import logging
import math
import operator as _operator
from collections.abc import Mapping
from typing import Any, NamedTuple, Optional

import numpy as np

from .compiled_expression import ExpressionHandle, real_array, real_scalar
from .config import (
    DERIVATIVE_STEP,
    IMPLICIT_HOLDS_TOLERANCE,
    INTERSECTION_COARSE_STEP,
    INTERSECTION_DEDUP_RADIUS,
    INTERSECTION_MAX_SAMPLES,
    INTERSECTION_REFINE_DIVISIONS,
    INTERSECTION_RESIDUAL,
    SIMPSON_INTERVALS,
)
from .errors import EvaluationError

__all__ = [
    "Point",
    "Tangent",
    "definite_integral",
    "derivative",
    "evaluate",
    "evaluate_at",
    "evaluate_many",
    "evaluate_parametric",
    "evaluate_polar",
    "find_intersections",
    "implicit_holds",
    "inequality_holds",
    "tangent_line",
    "value_table",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Params = Optional[Mapping[str, float]]

# What a foreign handle may raise instead of EvaluationError.
_EVALUATION_FAILURES = (EvaluationError, ArithmeticError, ValueError, TypeError)

_COMPARISONS = {
    ">": _operator.gt,
    "<": _operator.lt,
    ">=": _operator.ge,
    "<=": _operator.le,
}


class Point(NamedTuple):
    x: float
    y: float


class Tangent(NamedTuple):
    """Tangent line ``y = slope * x + intercept`` touching the curve at ``(x0, y0)``."""

    slope: float
    intercept: float
    x0: float
    y0: float


# ---------------------------------------------------------------------------
# Evaluation primitives
# ---------------------------------------------------------------------------


def evaluate(handle: ExpressionHandle, bindings: Mapping[str, Any]) -> Optional[float]:
    """Evaluate ``handle`` once; ``None`` unless the result is a finite real."""
    try:
        return real_scalar(handle.evaluate(bindings))
    except _EVALUATION_FAILURES:
        return None


def evaluate_at(handle: ExpressionHandle, x: float, params: Params = None, *, var: str = "x") -> Optional[float]:
    """Evaluate ``handle`` with ``var`` bound to ``x`` on top of ``params``."""
    bindings = dict(params or {})
    bindings[var] = x
    return evaluate(handle, bindings)


def evaluate_many(handle: ExpressionHandle, bindings: Mapping[str, Any], shape: tuple[int, ...]) -> np.ndarray:
    """Evaluate over array bindings, returning a float array of ``shape``.

    Non-finite or non-real results come back as ``nan``.
    """
    try:
        return real_array(handle.evaluate(bindings), shape)
    except _EVALUATION_FAILURES:
        pass

    logger.debug("evaluate_many: falling back to per-sample evaluation for %r", handle)
    arrays = {
        name: np.broadcast_to(np.asarray(value, dtype=float), shape)
        for name, value in bindings.items()
        if np.ndim(value) > 0
    }
    out = np.full(shape, np.nan)
    point = dict(bindings)
    for idx in np.ndindex(*shape):
        for name, values in arrays.items():
            point[name] = float(values[idx])
        value = evaluate(handle, point)
        if value is not None:
            out[idx] = value
    return out


def _grid(start: float, step: float, count: int) -> np.ndarray:
    return start + step * np.arange(count, dtype=float)


# ---------------------------------------------------------------------------
# Calculus
# ---------------------------------------------------------------------------


def derivative(f: ExpressionHandle, x0: float, params: Params = None, h: float = DERIVATIVE_STEP) -> Optional[float]:
    """Central difference ``(f(x0 + h) - f(x0 - h)) / 2h``.

    Examples
    --------
    >>> from graphcalc.compiled_expression import compile_expression
    >>> round(derivative(compile_expression("x^2", ["x"]), 3.0), 6)
    6.0
    """
    ahead = evaluate_at(f, x0 + h, params)
    behind = evaluate_at(f, x0 - h, params)
    if ahead is None or behind is None:
        return None
    slope = (ahead - behind) / (2.0 * h)
    return slope if math.isfinite(slope) else None


def definite_integral(
    f: ExpressionHandle,
    a: float,
    b: float,
    params: Params = None,
    n: int = SIMPSON_INTERVALS,
) -> Optional[float]:
    """Composite Simpson's rule over ``n`` equal subintervals of ``[a, b]``.

    Parameters
    ----------
    f : ExpressionHandle
        Integrand in ``x``.
    a, b : float
        Bounds; ``a >= b`` gives ``None``.
    params : mapping, optional
        Parameter values.
    n : int
        Number of subintervals. Odd values are rounded up to the next even.

    Returns
    -------
    float or None
        The weighted sum ``h/3 * (f0 + 4 f1 + 2 f2 + ... + 4 f_{n-1} + f_n)``.
        Samples without a finite value contribute zero.
    """
    if not (math.isfinite(a) and math.isfinite(b)) or a >= b:
        return None
    n = max(2, int(n))
    if n % 2:
        n += 1

    h = (b - a) / n
    xs = _grid(a, h, n + 1)
    xs[-1] = b
    bindings = dict(params or {})
    bindings["x"] = xs
    ys = evaluate_many(f, bindings, xs.shape)
    ys = np.where(np.isfinite(ys), ys, 0.0)

    weights = np.full(n + 1, 2.0)
    weights[1::2] = 4.0
    weights[0] = weights[-1] = 1.0
    total = float(h / 3.0 * np.dot(weights, ys))
    return total if math.isfinite(total) else None


def tangent_line(f: ExpressionHandle, x0: float, params: Params = None) -> Optional[Tangent]:
    """Return the tangent of ``f`` at ``x0``, or ``None`` if ``f`` or its slope is undefined there."""
    y0 = evaluate_at(f, x0, params)
    if y0 is None:
        return None
    slope = derivative(f, x0, params)
    if slope is None:
        return None
    return Tangent(slope=slope, intercept=y0 - slope * x0, x0=float(x0), y0=y0)


# ---------------------------------------------------------------------------
# Point predicates and curve points
# ---------------------------------------------------------------------------


def inequality_holds(f: ExpressionHandle, x: float, y: float, params: Params, op: str) -> bool:
    """Return ``y <op> f(x)``; ``False`` when ``f(x)`` has no finite value."""
    try:
        compare = _COMPARISONS[op]
    except KeyError:
        raise ValueError(f"unknown inequality operator {op!r}") from None
    bindings = dict(params or {})
    bindings.update(x=x, y=y)
    fx = evaluate(f, bindings)
    if fx is None:
        return False
    return bool(compare(y, fx))


def evaluate_polar(f: ExpressionHandle, theta: float, params: Params = None, *, var: str = "t") -> Optional[Point]:
    """Return the Cartesian point of ``r = f(theta)``; negative radii are rejected."""
    r = evaluate_at(f, theta, params, var=var)
    if r is None or r < 0:
        return None
    return Point(r * math.cos(theta), r * math.sin(theta))


def evaluate_parametric(fx: ExpressionHandle, fy: ExpressionHandle, t: float, params: Params = None) -> Optional[Point]:
    x = evaluate_at(fx, t, params, var="t")
    if x is None:
        return None
    y = evaluate_at(fy, t, params, var="t")
    if y is None:
        return None
    return Point(x, y)


def implicit_holds(
    f: ExpressionHandle,
    x: float,
    y: float,
    params: Params = None,
    tolerance: float = IMPLICIT_HOLDS_TOLERANCE,
) -> bool:
    """Banded zero-set test ``|f(x, y)| < tolerance``."""
    bindings = dict(params or {})
    bindings.update(x=x, y=y)
    value = evaluate(f, bindings)
    return value is not None and abs(value) < tolerance


# ---------------------------------------------------------------------------
# Scans
# ---------------------------------------------------------------------------


def _residuals(f1: ExpressionHandle, f2: ExpressionHandle, xs: np.ndarray, params1: Params, params2: Params) -> np.ndarray:
    b1 = dict(params1 or {})
    b1["x"] = xs
    b2 = dict(params2 or {})
    b2["x"] = xs
    diff = np.abs(evaluate_many(f1, b1, xs.shape) - evaluate_many(f2, b2, xs.shape))
    return np.where(np.isfinite(diff), diff, np.inf)


def find_intersections(
    f1: ExpressionHandle,
    f2: ExpressionHandle,
    x_min: float,
    x_max: float,
    params1: Params = None,
    params2: Params = None,
    coarse_step: float = INTERSECTION_COARSE_STEP,
    *,
    max_samples: int = INTERSECTION_MAX_SAMPLES,
) -> list[Point]:
    """Search ``[x_min, x_max]`` for points where two functions of ``x`` meet.

    Parameters
    ----------
    f1, f2 : ExpressionHandle
        Functions of ``x``.
    x_min, x_max : float
        Scan interval.
    params1, params2 : mapping, optional
        Parameter values for each function.
    coarse_step : float
        Coarse scan spacing. Widened when the interval would need more than
        ``max_samples`` samples.

    Returns
    -------
    list[Point]
        Accepted points in scan order, deduplicated with a 0.1 box.

    Raises
    ------
    ValueError
        If ``coarse_step`` is not positive.

    Examples
    --------
    >>> from graphcalc.compiled_expression import compile_expression
    >>> find_intersections(compile_expression("x", ["x"]), compile_expression("-x", ["x"]), -5, 5)
    [Point(x=0.0, y=0.0)]
    """
    if not coarse_step > 0:
        raise ValueError("coarse_step must be > 0")
    if not (math.isfinite(x_min) and math.isfinite(x_max)) or x_min >= x_max:
        return []

    span = x_max - x_min
    step = float(coarse_step)
    count = int(math.floor(span / step + 1e-9)) + 1
    if count > max_samples:
        step = span / (max_samples - 1)
        count = max_samples

    xs = _grid(x_min, step, count)
    coarse = _residuals(f1, f2, xs, params1, params2)
    candidates = np.nonzero(coarse < INTERSECTION_RESIDUAL)[0]

    offsets = np.linspace(-step, step, 2 * INTERSECTION_REFINE_DIVISIONS + 1)
    found: list[Point] = []
    for idx in candidates:
        best_x = float(xs[idx])
        best_residual = float(coarse[idx])

        window = best_x + offsets
        window = window[(window >= x_min) & (window <= x_max)]
        refined = _residuals(f1, f2, window, params1, params2)
        k = int(np.argmin(refined))
        if refined[k] < best_residual:
            best_x, best_residual = float(window[k]), float(refined[k])

        if best_residual >= INTERSECTION_RESIDUAL:
            continue
        y = evaluate_at(f1, best_x, params1)
        if y is None:
            continue
        if any(
            abs(p.x - best_x) < INTERSECTION_DEDUP_RADIUS and abs(p.y - y) < INTERSECTION_DEDUP_RADIUS
            for p in found
        ):
            continue
        found.append(Point(best_x, y))
    return found


def value_table(
    f: ExpressionHandle,
    start: float,
    end: float,
    step: float,
    params: Params = None,
    *,
    var: str = "x",
) -> list[Point]:
    """Tabulate ``f`` at ``start, start + step, ...`` up to ``end``.

    Only samples with a finite value are returned.

    Raises
    ------
    ValueError
        If a bound is not finite, ``start >= end`` or ``step <= 0``.
    """
    if not (math.isfinite(start) and math.isfinite(end) and math.isfinite(step)):
        raise ValueError("table bounds and step must be finite")
    if start >= end:
        raise ValueError("start must be less than end")
    if step <= 0:
        raise ValueError("step must be positive")

    count = int(math.floor((end - start) / step + 1e-9)) + 1
    xs = _grid(start, step, count)
    bindings = dict(params or {})
    bindings[var] = xs
    ys = evaluate_many(f, bindings, xs.shape)
    return [Point(float(x), float(y)) for x, y in zip(xs, ys) if np.isfinite(y)]
