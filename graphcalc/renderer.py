"""Viewport & sampling renderer.

Purpose
-------
Own the viewport, the draw settings and the transient pointer state, and turn
the current expression list into a :class:`~graphcalc.scene.Scene`.

Concepts and structure
----------------------
Paint order, one layer after another:

1. background
2. grid (20 divisions per axis)
3. axes (only where 0 is visible) and their tick labels
4. integral shading with the integral value
5. inequality regions
6. curve strokes and implicit point clouds (inequalities and curves with
   integral shading are shading-only)
7. tangent overlays
8. intersection markers (only with at most 3 eligible function curves)
9. hover readout

Architecture notes
------------------
Every mutation (expressions, viewport, settings, pointer state) marks the
scene stale and calls ``on_change`` if set; :meth:`Renderer.snapshot`
re-renders lazily. The renderer never raises for bad expressions: invalid
ones are skipped and evaluation failures are path breaks.

Important gotchas
-----------------
A degenerate viewport is refused, not repaired: :meth:`Renderer.render`
logs a warning and returns an empty scene. Interaction handlers ignore events
while the viewport is degenerate.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
import math
import time
from collections.abc import Iterable, Sequence
from typing import Any, Callable, Optional

import numpy as np

from .analysis import definite_integral, evaluate_at, evaluate_many, find_intersections, tangent_line
from .classifier import FUNCTION, IMPLICIT, INEQUALITY, PARAMETRIC, POLAR
from .config import (
    DENSE_SAMPLES_PER_PIXEL,
    GRID_DIVISIONS,
    INTERSECTION_COLOR,
    MAX_INTERSECTION_CURVES,
    ZOOM_IN_FACTOR,
    ZOOM_OUT_FACTOR,
)
from .events import KeyEvent, PointerEvent, Shortcut, WheelEvent, resolve_shortcut
from .expression import Expression
from .sampling import (
    integral_region,
    sample_grid,
    scan_implicit,
    scan_inequality,
    trace_function,
    trace_parametric,
    trace_polar,
)
from .scene import (
    AXES,
    BACKGROUND,
    CURVES,
    GRID,
    HOVER,
    INEQUALITIES,
    INTEGRALS,
    INTERSECTIONS,
    TANGENTS,
    TICKS,
    Fill,
    Label,
    Marker,
    PointCloud,
    Primitive,
    Rect,
    Scene,
    Segment,
    Stroke,
)
from .settings import POLAR as POLAR_COORDINATES
from .settings import DrawSettings, Theme
from .viewport import Viewport

__all__ = ["Renderer"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

CURVE_WIDTH = 2.5
AXIS_WIDTH = 1.5
INTEGRAL_OPACITY = 0x40 / 255
INEQUALITY_OPACITY = 0x30 / 255
INEQUALITY_CELL = 4.0
IMPLICIT_CELL = 2.0
TANGENT_DASH = (5.0, 5.0)


def _tick_values(lo: float, hi: float, step: float) -> np.ndarray:
    return sample_grid(math.ceil(lo / step) * step, hi, step)


class Renderer:
    """Turns expressions plus viewport state into scenes.

    Parameters
    ----------
    viewport : Viewport, optional
        Initial viewport; defaults to ``[-10, 10]^2`` at 800x600.
    settings : DrawSettings, optional
        Initial draw settings.
    on_change : callable, optional
        Called with no arguments whenever the scene becomes stale.

    Examples
    --------
    >>> r = Renderer()  # doctest: +SKIP
    >>> r.set_expressions([Expression.parsed("sin(x)")])  # doctest: +SKIP
    >>> scene = r.render()  # doctest: +SKIP
    """

    def __init__(
        self,
        viewport: Optional[Viewport] = None,
        settings: Optional[DrawSettings] = None,
        *,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self._viewport = viewport if viewport is not None else Viewport.default()
        self._settings = settings if settings is not None else DrawSettings()
        self._expressions: tuple[Expression, ...] = ()
        self._scene: Optional[Scene] = None
        self.on_change = on_change

        self.dragging = False
        self._pan_start: Optional[tuple[float, float]] = None
        self.hover: Optional[tuple[float, float]] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def settings(self) -> DrawSettings:
        return self._settings

    @property
    def expressions(self) -> tuple[Expression, ...]:
        return self._expressions

    @property
    def is_stale(self) -> bool:
        return self._scene is None

    def invalidate(self) -> None:
        """Mark the scene stale and notify ``on_change``."""
        self._scene = None
        if self.on_change is not None:
            self.on_change()

    def set_expressions(self, expressions: Iterable[Expression]) -> None:
        self._expressions = tuple(expressions)
        self.invalidate()

    def set_viewport(self, viewport: Viewport) -> None:
        if viewport != self._viewport:
            self._viewport = viewport
            self.invalidate()

    def set_settings(self, settings: Optional[DrawSettings] = None, **changes: Any) -> DrawSettings:
        """Replace the settings, or update individual fields by keyword.

        >>> r.set_settings(theme="dark", show_grid=False)  # doctest: +SKIP
        """
        new = settings if settings is not None else self._settings
        if changes:
            new = dataclasses.replace(new, **changes)
        if new != self._settings:
            self._settings = new
            self.invalidate()
        return self._settings

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def handle_pointer_event(self, event: PointerEvent) -> None:
        """Update hover and drag state; a drag pans the viewport."""
        single = event.pointer_type == "mouse" or event.touches == 1
        if event.kind == "down":
            if single:
                self.dragging = True
                self._pan_start = (event.x, event.y)
            return
        if event.kind in ("up", "leave"):
            was_visible = self.dragging or (event.kind == "leave" and self.hover is not None)
            self.dragging = False
            self._pan_start = None
            if event.kind == "leave":
                self.hover = None
            if was_visible:
                self.invalidate()
            return

        # move
        vp = self._viewport
        if vp.is_degenerate:
            return
        changed = False
        if event.pointer_type == "mouse":
            self.hover = (float(vp.to_world_x(event.x)), float(vp.to_world_y(event.y)))
            changed = True
        if self.dragging and self._pan_start is not None and single:
            dx = event.x - self._pan_start[0]
            dy = event.y - self._pan_start[1]
            self._pan_start = (event.x, event.y)
            self._viewport = vp.pan(dx, dy)
            changed = True
        if changed:
            self.invalidate()

    def handle_wheel_event(self, event: WheelEvent) -> None:
        """Zoom about the pointer: out for ``delta_y > 0``, in otherwise."""
        if self._viewport.is_degenerate:
            logger.debug("wheel event ignored: degenerate viewport")
            return
        factor = ZOOM_OUT_FACTOR if event.delta_y > 0 else ZOOM_IN_FACTOR
        self.set_viewport(self._viewport.zoom_at(event.x, event.y, factor))

    def handle_key_event(self, event: KeyEvent) -> Optional[Shortcut]:
        """Apply zoom and fit shortcuts; return the shortcut the event maps to.

        ``Shortcut.NEW_EXPRESSION`` is returned without side effects; adding
        an expression is up to the caller.
        """
        shortcut = resolve_shortcut(event)
        if shortcut is None or self._viewport.is_degenerate:
            return shortcut
        if shortcut is Shortcut.ZOOM_IN:
            self.set_viewport(self._viewport.zoom_centered(ZOOM_IN_FACTOR))
        elif shortcut is Shortcut.ZOOM_OUT:
            self.set_viewport(self._viewport.zoom_centered(ZOOM_OUT_FACTOR))
        elif shortcut is Shortcut.FIT_ALL:
            self.fit_all()
        return shortcut

    def fit_all(self) -> Viewport:
        """Frame every valid function curve sampled over the visible x-range.

        Falls back to the default ranges when no finite sample exists.
        """
        vp = self._viewport.require_valid()
        xs = sample_grid(vp.x_min, vp.x_max, vp.x_range / (DENSE_SAMPLES_PER_PIXEL * vp.width))
        bounds: Optional[list[float]] = None
        for expr in self._expressions:
            if expr.kind != FUNCTION or expr.handle is None:
                continue
            bindings: dict[str, Any] = dict(expr.parameter_values())
            bindings["x"] = xs
            ys = evaluate_many(expr.handle, bindings, xs.shape)
            finite = np.isfinite(ys)
            if not finite.any():
                continue
            fx, fy = xs[finite], ys[finite]
            found = [float(fx.min()), float(fx.max()), float(fy.min()), float(fy.max())]
            if bounds is None:
                bounds = found
            else:
                bounds = [min(bounds[0], found[0]), max(bounds[1], found[1]), min(bounds[2], found[2]), max(bounds[3], found[3])]

        new = vp.reset() if bounds is None else vp.fitted(*bounds)
        self.set_viewport(new)
        return new

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def snapshot(self) -> Scene:
        """Return the current scene, rendering first if it is stale."""
        if self._scene is None:
            return self.render()
        return self._scene

    def render(self) -> Scene:
        """Render the current state into a new :class:`Scene`."""
        t0 = time.perf_counter()
        vp = self._viewport
        theme = self._settings.palette
        if vp.is_degenerate:
            logger.warning("render: refusing to draw degenerate viewport %s", vp)
            self._scene = Scene(viewport=vp, background=theme.background)
            return self._scene

        valid = [expr for expr in self._expressions if expr.is_valid]
        items: list[Primitive] = [Rect(0.0, 0.0, vp.width, vp.height, fill=theme.background, layer=BACKGROUND)]
        if self._settings.show_grid:
            items.extend(self._grid(vp, theme))
        if self._settings.show_axes:
            items.extend(self._axes(vp, theme))
            items.extend(self._ticks(vp, theme))
        for expr in valid:
            items.extend(self._integral(vp, expr))
        for expr in valid:
            items.extend(self._inequality(vp, expr))
        for expr in valid:
            items.extend(self._curve(vp, expr))
        for expr in valid:
            items.extend(self._tangent(vp, theme, expr))
        items.extend(self._intersections(vp, theme, valid))
        items.extend(self._hover(theme))

        self._scene = Scene(viewport=vp, background=theme.background, items=tuple(items))
        logger.debug(
            "render: %d expressions -> %d primitives in %.1f ms",
            len(self._expressions),
            len(items),
            1000.0 * (time.perf_counter() - t0),
        )
        return self._scene

    # ---- layers ------------------------------------------------------

    def _grid(self, vp: Viewport, theme: Theme) -> list[Primitive]:
        out: list[Primitive] = []
        x_step = vp.x_range / GRID_DIVISIONS
        for sx in vp.to_screen_x(_tick_values(vp.x_min, vp.x_max, x_step)).tolist():
            out.append(Segment(sx, 0.0, sx, float(vp.height), color=theme.grid, layer=GRID))
        y_step = vp.y_range / GRID_DIVISIONS
        for sy in vp.to_screen_y(_tick_values(vp.y_min, vp.y_max, y_step)).tolist():
            out.append(Segment(0.0, sy, float(vp.width), sy, color=theme.grid, layer=GRID))
        return out

    def _axes(self, vp: Viewport, theme: Theme) -> list[Primitive]:
        out: list[Primitive] = []
        if vp.y_min <= 0 <= vp.y_max:
            sy = float(vp.to_screen_y(0.0))
            out.append(Segment(0.0, sy, float(vp.width), sy, color=theme.axes, width=AXIS_WIDTH, layer=AXES))
        if vp.x_min <= 0 <= vp.x_max:
            sx = float(vp.to_screen_x(0.0))
            out.append(Segment(sx, 0.0, sx, float(vp.height), color=theme.axes, width=AXIS_WIDTH, layer=AXES))
        return out

    def _ticks(self, vp: Viewport, theme: Theme) -> list[Primitive]:
        out: list[Primitive] = []
        label_y = float(vp.to_screen_y(0.0)) + 5 if vp.y_min <= 0 <= vp.y_max else vp.height - 10 + 5
        for x in _tick_values(vp.x_min, vp.x_max, vp.x_range / GRID_DIVISIONS).tolist():
            if abs(x) > 0.01:
                out.append(Label(float(vp.to_screen_x(x)), label_y, f"{x:.1f}", theme.labels, 11, "center", TICKS))
        label_x = float(vp.to_screen_x(0.0)) - 5 if vp.x_min <= 0 <= vp.x_max else 10 - 5
        for y in _tick_values(vp.y_min, vp.y_max, vp.y_range / GRID_DIVISIONS).tolist():
            if abs(y) > 0.01:
                out.append(Label(label_x, float(vp.to_screen_y(y)), f"{y:.1f}", theme.labels, 11, "right", TICKS))
        return out

    def _integral(self, vp: Viewport, expr: Expression) -> list[Primitive]:
        if expr.integral_range is None or expr.kind != FUNCTION or expr.handle is None:
            return []
        a, b = expr.integral_range
        params = expr.parameter_values()
        outline = integral_region(expr.handle, vp, a, b, params)
        if outline is None:
            return []
        out: list[Primitive] = [Fill(outline, expr.color, INTEGRAL_OPACITY, INTEGRALS, expr.id)]
        value = definite_integral(expr.handle, a, b, params)
        if value is not None:
            # Anchor on the visible part of the shaded region.
            mid = (max(a, vp.x_min) + min(b, vp.x_max)) / 2.0
            mid_y = evaluate_at(expr.handle, mid, params) or 0.0
            out.append(
                Label(
                    float(vp.to_screen_x(mid)),
                    float(vp.to_screen_y(mid_y)) - 10,
                    f"∫ = {value:.3f}",
                    expr.color,
                    12,
                    "center",
                    INTEGRALS,
                    expr.id,
                )
            )
        return out

    def _inequality(self, vp: Viewport, expr: Expression) -> list[Primitive]:
        if expr.kind != INEQUALITY or expr.handle is None or expr.operator is None:
            return []
        pixels = scan_inequality(expr.handle, vp, expr.parameter_values(), expr.operator)
        if not len(pixels):
            return []
        return [PointCloud(pixels, expr.color, INEQUALITY_CELL, INEQUALITY_OPACITY, INEQUALITIES, expr.id)]

    def _curve(self, vp: Viewport, expr: Expression) -> list[Primitive]:
        curve = expr.curve
        if curve is None or curve.kind == INEQUALITY or expr.integral_range is not None:
            return []
        params = expr.parameter_values()
        if curve.kind == IMPLICIT:
            pixels = scan_implicit(curve.handle, vp, params, self._settings.implicit_tolerance)
            if not len(pixels):
                return []
            return [PointCloud(pixels, expr.color, IMPLICIT_CELL, 1.0, CURVES, expr.id)]

        if curve.kind == PARAMETRIC:
            paths = trace_parametric(curve.handles[0], curve.handles[1], vp, params, expr.parametric_range)
        elif curve.kind == POLAR:
            paths = trace_polar(curve.handle, vp, params, expr.polar_range)
        elif self._settings.coordinate_system == POLAR_COORDINATES:
            paths = trace_polar(curve.handle, vp, params, expr.polar_range, var="x")
        else:
            paths = trace_function(curve.handle, vp, params)
        return [Stroke(path, expr.color, CURVE_WIDTH, CURVES, expr.id) for path in paths]

    def _draws_cartesian_function(self, expr: Expression) -> bool:
        return (
            expr.kind == FUNCTION
            and expr.integral_range is None
            and self._settings.coordinate_system != POLAR_COORDINATES
        )

    def _tangent(self, vp: Viewport, theme: Theme, expr: Expression) -> list[Primitive]:
        if expr.derivative_point is None or expr.handle is None or not self._draws_cartesian_function(expr):
            return []
        tangent = tangent_line(expr.handle, expr.derivative_point, expr.parameter_values())
        if tangent is None:
            return []
        slope, _, x0, y0 = tangent
        y1 = slope * (vp.x_min - x0) + y0
        y2 = slope * (vp.x_max - x0) + y0
        sx0, sy0 = float(vp.to_screen_x(x0)), float(vp.to_screen_y(y0))
        return [
            Segment(
                0.0,
                float(vp.to_screen_y(y1)),
                float(vp.width),
                float(vp.to_screen_y(y2)),
                color=expr.color,
                width=1.0,
                dash=TANGENT_DASH,
                layer=TANGENTS,
                expression_id=expr.id,
            ),
            Marker(sx0, sy0, 4.0, expr.color, TANGENTS, expr.id),
            Label(sx0 + 8, sy0 - 8, f"f'({x0:.2f}) = {slope:.3f}", theme.annotations, 11, "left", TANGENTS, expr.id),
        ]

    def _intersections(self, vp: Viewport, theme: Theme, valid: Sequence[Expression]) -> list[Primitive]:
        eligible = [expr for expr in valid if self._draws_cartesian_function(expr)]
        if len(eligible) > MAX_INTERSECTION_CURVES:
            logger.debug("intersections skipped: %d eligible curves", len(eligible))
            return []
        out: list[Primitive] = []
        for first, second in itertools.combinations(eligible, 2):
            if first.handle is None or second.handle is None:
                continue
            points = find_intersections(
                first.handle,
                second.handle,
                vp.x_min,
                vp.x_max,
                first.parameter_values(),
                second.parameter_values(),
            )
            for point in points:
                sx, sy = float(vp.to_screen_x(point.x)), float(vp.to_screen_y(point.y))
                out.append(Marker(sx, sy, 5.0, INTERSECTION_COLOR, INTERSECTIONS))
                out.append(
                    Label(sx, sy - 10, f"({point.x:.2f}, {point.y:.2f})", theme.annotations, 10, "center", INTERSECTIONS)
                )
        return out

    def _hover(self, theme: Theme) -> list[Primitive]:
        if self.hover is None or self.dragging:
            return []
        x, y = self.hover
        return [
            Rect(10.0, 10.0, 140.0, 40.0, fill=theme.hover_fill, stroke=theme.hover_stroke, layer=HOVER),
            Label(15.0, 28.0, f"x: {x:.3f}", theme.hover_text, 11, "left", HOVER),
            Label(15.0, 42.0, f"y: {y:.3f}", theme.hover_text, 11, "left", HOVER),
        ]
