"""Workspace: the object a UI layer talks to.

Purpose
-------
Own the ordered expression list, the compilation cache, the renderer, the
redraw scheduler and the animation clock, and keep them consistent. A UI
translates widget callbacks into the methods below and paints whatever
:meth:`Workspace.snapshot` returns.

Concepts and structure
----------------------
- Expressions are keyed by id and kept in creation order; colors come from
  the palette by creation index.
- Every mutation that can change the picture requests a redraw through the
  :class:`~graphcalc.redraw.RedrawScheduler`.
- Parameter value changes (user edits and animation ticks) are reported to
  hooks as :class:`~graphcalc.ParamEvent.ParamEvent` records.

Important gotchas
-----------------
Hooks run synchronously after the state change. A hook that raises is
reported with ``warnings.warn`` and does not stop the remaining hooks.
"""

from __future__ import annotations

import logging
import time
import warnings
from collections.abc import Hashable, Iterator
from typing import Any, Callable, Optional

from .analysis import Point, value_table
from .animation import AnimationClock
from .cache import CompilationCache
from .classifier import FUNCTION
from .events import KeyEvent, PointerEvent, Shortcut, WheelEvent
from .expression import Expression, palette_color
from .InputConvert import InputConvert
from .ParamEvent import ParamEvent
from .parameters import Parameter
from .redraw import RedrawScheduler
from .renderer import Renderer
from .scene import Scene
from .settings import DrawSettings
from .viewport import Viewport

__all__ = ["Workspace"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class Workspace:
    """Expressions plus everything needed to draw and animate them.

    Parameters
    ----------
    viewport : Viewport, optional
        Initial viewport.
    settings : DrawSettings, optional
        Initial draw settings.
    cache : CompilationCache, optional
        Cache to share; a private one is created by default.
    clock : callable
        Time source for the animation clock.
    frame_interval_ms : int
        Redraw coalescing interval inside an ``asyncio`` loop.

    Examples
    --------
    >>> ws = Workspace()  # doctest: +SKIP
    >>> expr = ws.add_expression("a*sin(x)")  # doctest: +SKIP
    >>> ws.update_parameter(expr.id, "a", value=2)  # doctest: +SKIP
    >>> scene = ws.snapshot()  # doctest: +SKIP
    """

    def __init__(
        self,
        *,
        viewport: Optional[Viewport] = None,
        settings: Optional[DrawSettings] = None,
        cache: Optional[CompilationCache] = None,
        clock: Callable[[], float] = time.monotonic,
        frame_interval_ms: int = 16,
    ) -> None:
        self.cache = cache if cache is not None else CompilationCache()
        self.renderer = Renderer(viewport, settings)
        self.scheduler = RedrawScheduler(self.renderer.render, frame_interval_ms=frame_interval_ms)
        self.renderer.on_change = self.scheduler.request
        self.animation = AnimationClock(clock=clock)

        self._expressions: dict[str, Expression] = {}
        self._created = 0
        self._hooks: dict[Hashable, Callable[[ParamEvent], Any]] = {}
        self._hook_counter = 0

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    @property
    def expressions(self) -> tuple[Expression, ...]:
        return tuple(self._expressions.values())

    def __getitem__(self, expression_id: str) -> Expression:
        try:
            return self._expressions[expression_id]
        except KeyError:
            raise KeyError(f"no expression with id {expression_id!r}") from None

    def __iter__(self) -> Iterator[Expression]:
        return iter(self.expressions)

    def __len__(self) -> int:
        return len(self._expressions)

    def _sync(self) -> None:
        self.renderer.set_expressions(self._expressions.values())

    def add_expression(self, text: str = "") -> Expression:
        """Append a new expression and return it.

        An empty ``text`` gives an invalid placeholder expression the user is
        about to type into.
        """
        expr = Expression.parsed(text, color=palette_color(self._created), cache=self.cache)
        self._created += 1
        self._expressions[expr.id] = expr
        logger.debug("add_expression: %r", expr)
        self._sync()
        return expr

    def update_expression(self, expression_id: str, text: str) -> Expression:
        """Replace the text of an expression, keeping surviving parameters."""
        expr = self[expression_id]
        expr.set_text(text, self.cache)
        self._sync()
        return expr

    def remove_expression(self, expression_id: str) -> None:
        if expression_id not in self._expressions:
            raise KeyError(f"no expression with id {expression_id!r}")
        del self._expressions[expression_id]
        self._sync()

    def set_integral_range(self, expression_id: str, value: Optional[Any]) -> None:
        """Set (or clear, with ``None``) the shaded integral interval."""
        self[expression_id].set_integral_range(value)
        self.renderer.invalidate()

    def set_derivative_point(self, expression_id: str, value: Optional[Any]) -> None:
        self[expression_id].set_derivative_point(value)
        self.renderer.invalidate()

    def set_parametric_range(self, expression_id: str, value: Optional[Any]) -> None:
        self[expression_id].set_parametric_range(value)
        self.renderer.invalidate()

    def set_polar_range(self, expression_id: str, value: Optional[Any]) -> None:
        self[expression_id].set_polar_range(value)
        self.renderer.invalidate()

    def reset(self) -> None:
        """Remove every expression and restore the default ranges at the current pixel size."""
        self._expressions.clear()
        self.animation.reset()
        self.renderer.set_viewport(self.renderer.viewport.reset())
        self._sync()

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def _parameter(self, expression_id: str, name: str) -> Parameter:
        expr = self[expression_id]
        try:
            return expr.parameters[name]
        except KeyError:
            raise KeyError(f"expression {expression_id!r} has no parameter {name!r}") from None

    def update_parameter(self, expression_id: str, name: str, **changes: Any) -> Parameter:
        """Edit a parameter's ``value``, ``min``, ``max`` or ``step``.

        Raises
        ------
        ValueError
            If the edit would break ``min < max`` or ``step > 0``.
        """
        param = self._parameter(expression_id, name)
        old = param.update(**changes)
        self.renderer.invalidate()
        if param.value != old:
            self._fire(ParamEvent(expression_id, name, old, param.value, source="user"))
        return param

    def toggle_animation(self, expression_id: str, name: str, animating: Optional[bool] = None) -> bool:
        """Start or stop animating a parameter; return the new state."""
        param = self._parameter(expression_id, name)
        param.animating = (not param.animating) if animating is None else bool(animating)
        return param.animating

    def tick(self, now: Optional[float] = None) -> list[ParamEvent]:
        """Advance animating parameters (see :class:`AnimationClock`)."""
        events = self.animation.tick(self._expressions.values(), now)
        if events:
            self.renderer.invalidate()
            for event in events:
                self._fire(event)
        return events

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def add_hook(self, callback: Callable[[ParamEvent], Any], hook_id: Optional[Hashable] = None) -> Hashable:
        """Register a parameter change hook and return its id."""
        if hook_id is None:
            self._hook_counter += 1
            hook_id = f"hook:{self._hook_counter}"
        self._hooks[hook_id] = callback
        return hook_id

    def remove_hook(self, hook_id: Hashable) -> None:
        self._hooks.pop(hook_id, None)

    def _fire(self, event: ParamEvent) -> None:
        for h_id, callback in list(self._hooks.items()):
            try:
                callback(event)
            except Exception as e:
                warnings.warn(f"Hook {h_id} failed: {e}")

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def value_table(self, expression_id: str, start: Any, end: Any, step: Any) -> list[Point]:
        """Tabulate a function expression at ``start, start + step, ... <= end``.

        Raises
        ------
        ValueError
            If the expression is not a valid function, or the bounds are bad.
        """
        expr = self[expression_id]
        if expr.kind != FUNCTION or expr.handle is None:
            raise ValueError(f"expression {expression_id!r} is not a valid function")
        return value_table(
            expr.handle,
            InputConvert(start),
            InputConvert(end),
            InputConvert(step),
            expr.parameter_values(),
        )

    # ------------------------------------------------------------------
    # Rendering surface
    # ------------------------------------------------------------------

    @property
    def viewport(self) -> Viewport:
        return self.renderer.viewport

    @property
    def settings(self) -> DrawSettings:
        return self.renderer.settings

    def set_viewport(self, viewport: Viewport) -> None:
        self.renderer.set_viewport(viewport)

    def set_settings(self, settings: Optional[DrawSettings] = None, **changes: Any) -> DrawSettings:
        return self.renderer.set_settings(settings, **changes)

    def handle_pointer_event(self, event: PointerEvent) -> None:
        self.renderer.handle_pointer_event(event)

    def handle_wheel_event(self, event: WheelEvent) -> None:
        self.renderer.handle_wheel_event(event)

    def handle_key_event(self, event: KeyEvent) -> Optional[Shortcut]:
        """Handle a key press; "new expression" appends an empty expression."""
        shortcut = self.renderer.handle_key_event(event)
        if shortcut is Shortcut.NEW_EXPRESSION:
            self.add_expression()
        return shortcut

    def render(self) -> Scene:
        return self.renderer.render()

    def snapshot(self) -> Scene:
        return self.renderer.snapshot()

    def flush(self) -> bool:
        """Run a pending redraw now; return whether one ran."""
        return self.scheduler.flush()
