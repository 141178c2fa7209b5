"""Viewport state and the world <-> screen transform.

Purpose
-------
A :class:`Viewport` is the visible world rectangle plus the pixel size of the
surface it is drawn on. It is immutable; zoom, pan, resize and fit return a
new viewport.

Concepts and structure
----------------------
``screen_x(x) = (x - x_min) / (x_max - x_min) * width``
``screen_y(y) = height - (y - y_min) / (y_max - y_min) * height``

Screen y grows downward, world y grows upward. The ``to_world_*`` methods are
the exact algebraic inverses, and all four accept NumPy arrays.

Important gotchas
-----------------
A viewport can be constructed with empty ranges or a zero pixel size so that
callers can represent whatever a UI hands them. :attr:`Viewport.is_degenerate`
reports that state; the transform methods assume a valid viewport and
:meth:`Viewport.require_valid` is the guard.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any

from .config import DEFAULT_PIXEL_SIZE, DEFAULT_RANGE, FIT_PADDING
from .errors import DegenerateViewportError

__all__ = ["Viewport"]


@dataclass(frozen=True)
class Viewport:
    """Visible world rectangle and pixel size.

    Parameters
    ----------
    x_min, x_max, y_min, y_max : float
        World bounds; valid when ``x_min < x_max`` and ``y_min < y_max``.
    width, height : int
        Pixel size; valid when both are positive.
    """

    x_min: float = DEFAULT_RANGE[0]
    x_max: float = DEFAULT_RANGE[1]
    y_min: float = DEFAULT_RANGE[0]
    y_max: float = DEFAULT_RANGE[1]
    width: int = DEFAULT_PIXEL_SIZE[0]
    height: int = DEFAULT_PIXEL_SIZE[1]

    @classmethod
    def default(cls, width: int = DEFAULT_PIXEL_SIZE[0], height: int = DEFAULT_PIXEL_SIZE[1]) -> "Viewport":
        """Return the ``[-10, 10] x [-10, 10]`` viewport at the given pixel size."""
        return cls(width=width, height=height)

    # ---- validity ----------------------------------------------------------

    @property
    def is_degenerate(self) -> bool:
        bounds = (self.x_min, self.x_max, self.y_min, self.y_max)
        if not all(math.isfinite(v) for v in bounds):
            return True
        return not (self.x_min < self.x_max and self.y_min < self.y_max and self.width > 0 and self.height > 0)

    def require_valid(self) -> "Viewport":
        """Return ``self``, or raise :class:`DegenerateViewportError`."""
        if self.is_degenerate:
            raise DegenerateViewportError(f"degenerate viewport: {self}")
        return self

    @property
    def x_range(self) -> float:
        return self.x_max - self.x_min

    @property
    def y_range(self) -> float:
        return self.y_max - self.y_min

    @property
    def center(self) -> tuple[float, float]:
        return ((self.x_min + self.x_max) / 2.0, (self.y_min + self.y_max) / 2.0)

    # ---- transform ---------------------------------------------------------

    def to_screen_x(self, x: Any) -> Any:
        return (x - self.x_min) / self.x_range * self.width

    def to_screen_y(self, y: Any) -> Any:
        return self.height - (y - self.y_min) / self.y_range * self.height

    def to_world_x(self, px: Any) -> Any:
        return self.x_min + px / self.width * self.x_range

    def to_world_y(self, py: Any) -> Any:
        return self.y_min + (self.height - py) / self.height * self.y_range

    def contains(self, x: float, y: float) -> bool:
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max

    # ---- updates -------------------------------------------------------------

    def zoom_at(self, px: float, py: float, factor: float) -> "Viewport":
        """Scale both ranges by ``factor`` keeping the world point under ``(px, py)`` fixed.

        ``factor < 1`` zooms in, ``factor > 1`` zooms out.
        """
        self.require_valid()
        if not factor > 0:
            raise ValueError("zoom factor must be > 0")
        wx = self.to_world_x(px)
        wy = self.to_world_y(py)
        new_xr = self.x_range * factor
        new_yr = self.y_range * factor
        x_min = wx - (px / self.width) * new_xr
        y_min = wy - ((self.height - py) / self.height) * new_yr
        return replace(self, x_min=x_min, x_max=x_min + new_xr, y_min=y_min, y_max=y_min + new_yr)

    def zoom_centered(self, factor: float) -> "Viewport":
        return self.zoom_at(self.width / 2.0, self.height / 2.0, factor)

    def pan(self, dx: float, dy: float) -> "Viewport":
        """Translate so content follows a drag of ``(dx, dy)`` pixels."""
        self.require_valid()
        dx_world = -(dx / self.width) * self.x_range
        dy_world = (dy / self.height) * self.y_range
        return replace(
            self,
            x_min=self.x_min + dx_world,
            x_max=self.x_max + dx_world,
            y_min=self.y_min + dy_world,
            y_max=self.y_max + dy_world,
        )

    def resized(self, width: int, height: int) -> "Viewport":
        return replace(self, width=int(width), height=int(height))

    def reset(self) -> "Viewport":
        """Return the default ranges at this viewport's pixel size."""
        return Viewport.default(self.width, self.height)

    def fitted(self, x_lo: float, x_hi: float, y_lo: float, y_hi: float, padding: float = FIT_PADDING) -> "Viewport":
        """Return a viewport framing the given bounding box with ``padding`` on each side.

        A zero-width or zero-height box is widened by 1 on each side first.
        """
        if x_hi <= x_lo:
            x_lo, x_hi = x_lo - 1.0, x_hi + 1.0
        if y_hi <= y_lo:
            y_lo, y_hi = y_lo - 1.0, y_hi + 1.0
        px = (x_hi - x_lo) * padding
        py = (y_hi - y_lo) * padding
        return replace(self, x_min=x_lo - px, x_max=x_hi + px, y_min=y_lo - py, y_max=y_hi + py)
