"""Animation clock for animating parameters.

Each :meth:`AnimationClock.tick` measures the time since the previous tick
and advances every animating parameter by a closed-form rule
(:meth:`graphcalc.parameters.Parameter.advance`). The clock does not care
what calls it: a timer, a display-refresh callback or a test passing explicit
timestamps.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import Callable, Optional

from .config import ANIMATION_SPEED
from .expression import Expression
from .ParamEvent import ParamEvent

__all__ = ["AnimationClock"]


class AnimationClock:
    """Advance animating parameters by elapsed wall time.

    Parameters
    ----------
    speed : float
        Steps per second.
    clock : callable
        Returns the current time in seconds when :meth:`tick` gets no ``now``.
    """

    def __init__(self, speed: float = ANIMATION_SPEED, clock: Callable[[], float] = time.monotonic) -> None:
        self.speed = float(speed)
        self._clock = clock
        self._last: Optional[float] = None

    @property
    def running(self) -> bool:
        """Whether a previous tick has set the time base."""
        return self._last is not None

    def reset(self) -> None:
        """Forget the time base; the next tick has zero elapsed time."""
        self._last = None

    def tick(self, expressions: Iterable[Expression], now: Optional[float] = None) -> list[ParamEvent]:
        """Advance every animating parameter and return the resulting events.

        The first tick after construction or :meth:`reset` only records the
        time. When no parameter is animating the time base is dropped, so a
        parameter that starts animating later does not jump.
        """
        now = self._clock() if now is None else now
        animating = [
            (expr, param)
            for expr in expressions
            for param in expr.parameters.values()
            if param.animating
        ]
        if not animating:
            self._last = None
            return []

        elapsed = 0.0 if self._last is None else max(0.0, now - self._last)
        self._last = now
        events: list[ParamEvent] = []
        for expr, param in animating:
            old = param.value
            new = param.advance(elapsed, self.speed)
            if new != old:
                events.append(ParamEvent(expr.id, param.name, old, new, source="animation"))
        return events
