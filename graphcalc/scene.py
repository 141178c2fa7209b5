"""Screen-space draw primitives and the immutable :class:`Scene`.

The renderer does not paint; it produces a :class:`Scene`, an ordered tuple
of primitives in pixel coordinates. Order is paint order. Every primitive
carries the layer it belongs to and, where applicable, the id of the
expression that produced it, so consumers (export, tests, a canvas backend)
can filter without re-deriving anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from .viewport import Viewport

__all__ = [
    "BACKGROUND",
    "GRID",
    "AXES",
    "TICKS",
    "INTEGRALS",
    "INEQUALITIES",
    "CURVES",
    "TANGENTS",
    "INTERSECTIONS",
    "HOVER",
    "LAYERS",
    "Fill",
    "Label",
    "Marker",
    "PointCloud",
    "Primitive",
    "Rect",
    "Scene",
    "Segment",
    "Stroke",
]

BACKGROUND = "background"
GRID = "grid"
AXES = "axes"
TICKS = "ticks"
INTEGRALS = "integrals"
INEQUALITIES = "inequalities"
CURVES = "curves"
TANGENTS = "tangents"
INTERSECTIONS = "intersections"
HOVER = "hover"

LAYERS = (BACKGROUND, GRID, AXES, TICKS, INTEGRALS, INEQUALITIES, CURVES, TANGENTS, INTERSECTIONS, HOVER)

ScreenPoint = tuple[float, float]


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle; ``fill``/``stroke`` of ``None`` are not painted."""

    x: float
    y: float
    width: float
    height: float
    fill: Optional[str]
    stroke: Optional[str] = None
    layer: str = BACKGROUND
    expression_id: Optional[str] = None


@dataclass(frozen=True)
class Segment:
    """Straight line; ``dash`` is an on/off pixel pattern such as ``(5, 5)``."""

    x0: float
    y0: float
    x1: float
    y1: float
    color: str
    width: float = 1.0
    dash: Optional[tuple[float, ...]] = None
    layer: str = GRID
    expression_id: Optional[str] = None


@dataclass(frozen=True)
class Stroke:
    """Open polyline of at least two points."""

    points: tuple[ScreenPoint, ...]
    color: str
    width: float = 2.5
    layer: str = CURVES
    expression_id: Optional[str] = None


@dataclass(frozen=True)
class Fill:
    """Closed polygon filled with ``color`` at ``opacity``."""

    points: tuple[ScreenPoint, ...]
    color: str
    opacity: float
    layer: str = INTEGRALS
    expression_id: Optional[str] = None


@dataclass(frozen=True, eq=False)
class PointCloud:
    """Filled squares of side ``size`` centered at each point.

    ``points`` is an ``(n, 2)`` float array of pixel centers, one per covered
    pixel; dense scans can produce hundreds of thousands of them.
    """

    points: np.ndarray
    color: str
    size: float
    opacity: float = 1.0
    layer: str = CURVES
    expression_id: Optional[str] = None


@dataclass(frozen=True)
class Marker:
    """Filled circle."""

    x: float
    y: float
    radius: float
    color: str
    layer: str = TANGENTS
    expression_id: Optional[str] = None


@dataclass(frozen=True)
class Label:
    """Text anchored at ``(x, y)``; ``align`` is ``"left"``, ``"center"`` or ``"right"``."""

    x: float
    y: float
    text: str
    color: str
    font_size: int = 12
    align: str = "left"
    layer: str = TICKS
    expression_id: Optional[str] = None


Primitive = Union[Rect, Segment, Stroke, Fill, PointCloud, Marker, Label]


@dataclass(frozen=True)
class Scene:
    """A rendered frame: the viewport it was drawn for and its primitives in paint order."""

    viewport: Viewport
    background: str
    items: tuple[Primitive, ...] = ()

    def layer(self, name: str) -> tuple[Primitive, ...]:
        return tuple(item for item in self.items if item.layer == name)

    def by_layer(self) -> dict[str, tuple[Primitive, ...]]:
        """Group primitives by layer, in paint order; empty layers are omitted."""
        grouped: dict[str, list[Primitive]] = {}
        for item in self.items:
            grouped.setdefault(item.layer, []).append(item)
        return {name: tuple(items) for name, items in grouped.items()}

    def for_expression(self, expression_id: str) -> tuple[Primitive, ...]:
        return tuple(item for item in self.items if item.expression_id == expression_id)

    def __len__(self) -> int:
        return len(self.items)
