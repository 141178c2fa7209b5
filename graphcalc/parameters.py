"""Parameter model and lifecycle.

A :class:`Parameter` is a named free symbol of an expression together with
the slider state the UI shows for it. Parameters are created with defaults
the first time a name is detected, keep their state across edits that still
reference them, and disappear when the name does.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from .config import (
    ANIMATION_SPEED,
    DEFAULT_PARAMETER_MAX,
    DEFAULT_PARAMETER_MIN,
    DEFAULT_PARAMETER_STEP,
    DEFAULT_PARAMETER_VALUE,
)
from .InputConvert import InputConvert

__all__ = ["Parameter", "sync_parameters"]


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


@dataclass
class Parameter:
    """Mutable slider state for one parameter.

    Parameters
    ----------
    name : str
        Symbol name.
    value, min, max, step : float
        Current value, inclusive bounds and step.
    animating : bool
        Whether the animation clock advances this parameter.
    direction : int
        ``+1`` or ``-1``; the animation sweep direction.

    Notes
    -----
    Invariants: ``min < max``, ``step > 0`` and ``min <= value <= max``.
    The constructor validates the first two and clamps ``value``.
    """

    name: str
    value: float = DEFAULT_PARAMETER_VALUE
    min: float = DEFAULT_PARAMETER_MIN
    max: float = DEFAULT_PARAMETER_MAX
    step: float = DEFAULT_PARAMETER_STEP
    animating: bool = False
    direction: int = field(default=1)

    def __post_init__(self) -> None:
        self.value, self.min, self.max, self.step = self._validated(self.value, self.min, self.max, self.step)
        self.direction = 1 if self.direction >= 0 else -1

    @staticmethod
    def _validated(value: Any, lo: Any, hi: Any, step: Any) -> tuple[float, float, float, float]:
        lo, hi, step = InputConvert(lo), InputConvert(hi), InputConvert(step)
        value = InputConvert(value)
        if not lo < hi:
            raise ValueError(f"parameter min must be less than max (got min={lo}, max={hi})")
        if not step > 0:
            raise ValueError(f"parameter step must be positive (got {step})")
        return _clamp(value, lo, hi), lo, hi, step

    def update(
        self,
        *,
        value: Optional[Any] = None,
        min: Optional[Any] = None,
        max: Optional[Any] = None,
        step: Optional[Any] = None,
        animating: Optional[bool] = None,
    ) -> float:
        """Apply a user edit and return the previous value.

        Numbers may be given as strings (``"pi/2"``). The update is atomic:
        if the result would violate an invariant, nothing changes.

        Raises
        ------
        ValueError
            If ``min >= max``, ``step <= 0`` or a value does not convert.
        """
        old = self.value
        self.value, self.min, self.max, self.step = self._validated(
            self.value if value is None else value,
            self.min if min is None else min,
            self.max if max is None else max,
            self.step if step is None else step,
        )
        if animating is not None:
            self.animating = bool(animating)
        return old

    def advance(self, elapsed: float, speed: float = ANIMATION_SPEED) -> float:
        """Advance an animation sweep by ``elapsed`` seconds and return the new value.

        The value moves by ``step * direction * speed * elapsed``; on reaching
        a bound it is clamped there and the direction reverses.
        """
        if elapsed <= 0 or not math.isfinite(elapsed):
            return self.value
        candidate = self.value + self.step * self.direction * speed * elapsed
        if candidate >= self.max:
            candidate, self.direction = self.max, -1
        elif candidate <= self.min:
            candidate, self.direction = self.min, 1
        self.value = candidate
        return candidate

    def copy(self) -> "Parameter":
        return Parameter(self.name, self.value, self.min, self.max, self.step, self.animating, self.direction)


def sync_parameters(existing: Mapping[str, Parameter], names: Iterable[str]) -> dict[str, Parameter]:
    """Return the parameter mapping for ``names``.

    Parameters already in ``existing`` are kept as-is; new names get
    defaults; names not listed are dropped.

    Examples
    --------
    >>> params = sync_parameters({}, ["a"])
    >>> params["a"].value = 3.0
    >>> sync_parameters(params, ["a", "b"])["a"].value
    3.0
    """
    return {name: existing[name] if name in existing else Parameter(name) for name in names}
