"""Per-curve-kind samplers.

Purpose
-------
Turn a compiled curve plus a :class:`~graphcalc.viewport.Viewport` into
screen-space geometry: polylines for traced curves, pixel point clouds for
the dense 2-D scans, and a closed polygon for integral shading.

Concepts and structure
----------------------
Sampling density follows pixel density, so zooming in never loses detail:

- ``function``: ``step = x_range / (2 * width)`` across the visible x-range.
- ``parametric``/``polar``: ``step = t_range / (2 * width)`` across the curve
  range (default ``[0, 2*pi]``).
- ``implicit``/``inequality``: ``x_range / (4 * width)`` by
  ``y_range / (4 * height)`` over the visible rectangle.

A sample without a finite value is a path break. Traced curves also break
when a point lands more than :data:`~graphcalc.config.PATH_MARGIN_PX` pixels
outside the canvas, which keeps strokes near asymptotes from shooting across
the screen. Function samples additionally break outside ``[y_min, y_max]``.

Architecture notes
------------------
Every sampler evaluates a whole grid in one vectorized call through
:func:`graphcalc.analysis.evaluate_many`. The 2-D scans run in column chunks
to bound memory. Grid points are ``start + k * step`` rather than a running
sum, so the sample positions do not drift.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Callable, Optional

import numpy as np

from .analysis import evaluate_many
from .compiled_expression import ExpressionHandle
from .config import (
    DEFAULT_CURVE_RANGE,
    DENSE_SAMPLES_PER_PIXEL,
    PATH_MARGIN_PX,
    SAMPLES_PER_PIXEL,
)
from .viewport import Viewport

__all__ = [
    "Polyline",
    "integral_region",
    "sample_grid",
    "scan_implicit",
    "scan_inequality",
    "split_runs",
    "trace_function",
    "trace_parametric",
    "trace_polar",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Polyline = tuple[tuple[float, float], ...]
Params = Optional[Mapping[str, float]]

# Upper bound on grid points evaluated per call in the 2-D scans.
_SCAN_CHUNK = 1 << 20

_MASKS: dict[str, Callable[[np.ndarray, np.ndarray], np.ndarray]] = {
    ">": np.greater,
    "<": np.less,
    ">=": np.greater_equal,
    "<=": np.less_equal,
}


def sample_grid(start: float, stop: float, step: float) -> np.ndarray:
    """Return ``start, start + step, ...`` up to and including ``stop`` (within rounding)."""
    if not step > 0 or stop < start:
        return np.empty(0)
    count = int(math.floor((stop - start) / step + 1e-9)) + 1
    return start + step * np.arange(count, dtype=float)


def split_runs(sx: np.ndarray, sy: np.ndarray, keep: np.ndarray) -> list[Polyline]:
    """Split samples into polylines at every ``keep == False`` sample.

    Runs shorter than two points draw nothing and are dropped.
    """
    idx = np.flatnonzero(keep)
    if idx.size == 0:
        return []
    runs = np.split(idx, np.flatnonzero(np.diff(idx) > 1) + 1)
    return [tuple(zip(sx[run].tolist(), sy[run].tolist())) for run in runs if run.size >= 2]


def _bind(params: Params, **arrays: np.ndarray) -> dict[str, object]:
    bindings: dict[str, object] = dict(params or {})
    bindings.update(arrays)
    return bindings


def _within_margin(viewport: Viewport, sx: np.ndarray, sy: np.ndarray) -> np.ndarray:
    m = PATH_MARGIN_PX
    return (sx >= -m) & (sx <= viewport.width + m) & (sy >= -m) & (sy <= viewport.height + m)


def _trace_points(viewport: Viewport, xs: np.ndarray, ys: np.ndarray) -> list[Polyline]:
    finite = np.isfinite(xs) & np.isfinite(ys)
    with np.errstate(invalid="ignore"):
        sx = viewport.to_screen_x(xs)
        sy = viewport.to_screen_y(ys)
        keep = finite & _within_margin(viewport, sx, sy)
    return split_runs(sx, sy, keep)


def trace_function(handle: ExpressionHandle, viewport: Viewport, params: Params = None, *, var: str = "x") -> list[Polyline]:
    """Trace ``y = f(x)`` across the visible x-range."""
    step = viewport.x_range / (SAMPLES_PER_PIXEL * viewport.width)
    xs = sample_grid(viewport.x_min, viewport.x_max, step)
    ys = evaluate_many(handle, _bind(params, **{var: xs}), xs.shape)
    with np.errstate(invalid="ignore"):
        sx = viewport.to_screen_x(xs)
        sy = viewport.to_screen_y(ys)
        keep = (
            np.isfinite(ys)
            & (ys >= viewport.y_min)
            & (ys <= viewport.y_max)
            & (sy >= -PATH_MARGIN_PX)
            & (sy <= viewport.height + PATH_MARGIN_PX)
        )
    return split_runs(sx, sy, keep)


def _curve_parameter(viewport: Viewport, curve_range: Optional[tuple[float, float]]) -> np.ndarray:
    lo, hi = curve_range if curve_range is not None else DEFAULT_CURVE_RANGE
    return sample_grid(lo, hi, (hi - lo) / (SAMPLES_PER_PIXEL * viewport.width))


def trace_parametric(
    fx: ExpressionHandle,
    fy: ExpressionHandle,
    viewport: Viewport,
    params: Params = None,
    t_range: Optional[tuple[float, float]] = None,
) -> list[Polyline]:
    """Trace ``(x(t), y(t))`` over ``t_range`` (default ``[0, 2*pi]``)."""
    ts = _curve_parameter(viewport, t_range)
    bindings = _bind(params, t=ts)
    xs = evaluate_many(fx, bindings, ts.shape)
    ys = evaluate_many(fy, bindings, ts.shape)
    return _trace_points(viewport, xs, ys)


def trace_polar(
    handle: ExpressionHandle,
    viewport: Viewport,
    params: Params = None,
    theta_range: Optional[tuple[float, float]] = None,
    *,
    var: str = "t",
) -> list[Polyline]:
    """Trace ``r = f(theta)``; samples with negative ``r`` break the path."""
    thetas = _curve_parameter(viewport, theta_range)
    rs = evaluate_many(handle, _bind(params, **{var: thetas}), thetas.shape)
    rs[rs < 0] = np.nan
    return _trace_points(viewport, rs * np.cos(thetas), rs * np.sin(thetas))


def _scan(
    handle: ExpressionHandle,
    viewport: Viewport,
    params: Params,
    accept: Callable[[np.ndarray, np.ndarray], np.ndarray],
) -> np.ndarray:
    """Evaluate ``f(x, y)`` on the dense grid and return the accepted pixels.

    ``accept(values, y)`` receives the evaluated block (``nan`` where there is
    no result) and the matching ``y`` block. The result is an ``(n, 2)`` array
    of unique rounded pixel positions.
    """
    xs = sample_grid(viewport.x_min, viewport.x_max, viewport.x_range / (DENSE_SAMPLES_PER_PIXEL * viewport.width))
    ys = sample_grid(viewport.y_min, viewport.y_max, viewport.y_range / (DENSE_SAMPLES_PER_PIXEL * viewport.height))
    if xs.size == 0 or ys.size == 0:
        return np.empty((0, 2))

    sy_all = np.rint(viewport.to_screen_y(ys))
    columns = max(1, _SCAN_CHUNK // ys.size)
    pixels: list[np.ndarray] = []
    for begin in range(0, xs.size, columns):
        block_x = xs[begin : begin + columns, None]
        block_y = np.broadcast_to(ys[None, :], (block_x.shape[0], ys.size))
        shape = block_y.shape
        values = evaluate_many(handle, _bind(params, x=block_x, y=ys[None, :]), shape)
        with np.errstate(invalid="ignore"):
            hit = accept(values, block_y)
        cols, rows = np.nonzero(hit)
        if cols.size:
            sx = np.rint(viewport.to_screen_x(block_x[cols, 0]))
            pixels.append(np.column_stack((sx, sy_all[rows])))
    if not pixels:
        return np.empty((0, 2))
    return np.unique(np.concatenate(pixels), axis=0)


def scan_implicit(handle: ExpressionHandle, viewport: Viewport, params: Params = None, tolerance: float = 0.05) -> np.ndarray:
    """Pixels where ``|f(x, y)| < tolerance`` (banded zero-set)."""
    return _scan(handle, viewport, params, lambda values, _y: np.abs(values) < tolerance)


def scan_inequality(handle: ExpressionHandle, viewport: Viewport, params: Params, op: str) -> np.ndarray:
    """Pixels where ``y <op> f(x)`` holds."""
    try:
        compare = _MASKS[op]
    except KeyError:
        raise ValueError(f"unknown inequality operator {op!r}") from None
    return _scan(handle, viewport, params, lambda values, y: np.isfinite(values) & compare(y, values))


def integral_region(
    handle: ExpressionHandle,
    viewport: Viewport,
    a: float,
    b: float,
    params: Params = None,
) -> Optional[Polyline]:
    """Polygon between ``f`` and ``y = 0`` over ``[a, b]`` clipped to the visible x-range.

    The outline runs ``(a, 0)``, the finite curve samples, ``(b, 0)``.
    Returns ``None`` when nothing of ``[a, b]`` is visible.
    """
    lo = max(a, viewport.x_min)
    hi = min(b, viewport.x_max)
    if not lo < hi:
        return None
    xs = sample_grid(lo, hi, (hi - lo) / (SAMPLES_PER_PIXEL * viewport.width))
    ys = evaluate_many(handle, _bind(params, x=xs), xs.shape)
    finite = np.isfinite(ys)
    sx = viewport.to_screen_x(xs[finite])
    sy = viewport.to_screen_y(ys[finite])
    base = float(viewport.to_screen_y(0.0))
    outline = [(float(viewport.to_screen_x(lo)), base)]
    outline.extend(zip(sx.tolist(), sy.tolist()))
    outline.append((float(viewport.to_screen_x(hi)), base))
    return tuple(outline)
