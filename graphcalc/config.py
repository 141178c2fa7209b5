"""Numeric constants and defaults shared across ``graphcalc``.

Everything tunable lives here so tests can lock the behavior in one place
and the UI layer can read the same defaults the core uses.
"""

from __future__ import annotations

import math

# -----------------------------
# Compilation cache
# -----------------------------
CACHE_TTL_SECONDS: float = 5 * 60.0

# -----------------------------
# Parameters
# -----------------------------
DEFAULT_PARAMETER_VALUE: float = 1.0
DEFAULT_PARAMETER_MIN: float = -10.0
DEFAULT_PARAMETER_MAX: float = 10.0
DEFAULT_PARAMETER_STEP: float = 0.1

# Units of ``step`` per second while a parameter animates.
ANIMATION_SPEED: float = 5.0

# -----------------------------
# Viewport
# -----------------------------
DEFAULT_RANGE: tuple[float, float] = (-10.0, 10.0)
DEFAULT_PIXEL_SIZE: tuple[int, int] = (800, 600)

ZOOM_IN_FACTOR: float = 0.9
ZOOM_OUT_FACTOR: float = 1.1

# Fractional padding added on each side by the fit-all shortcut.
FIT_PADDING: float = 0.1

# -----------------------------
# Sampling
# -----------------------------
SAMPLES_PER_PIXEL: int = 2
DENSE_SAMPLES_PER_PIXEL: int = 4
PATH_MARGIN_PX: float = 100.0
GRID_DIVISIONS: int = 20
DEFAULT_CURVE_RANGE: tuple[float, float] = (0.0, 2.0 * math.pi)
IMPLICIT_TOLERANCE: float = 0.05

# -----------------------------
# Numerical analysis
# -----------------------------
DERIVATIVE_STEP: float = 1e-5
SIMPSON_INTERVALS: int = 1000
IMPLICIT_HOLDS_TOLERANCE: float = 0.1
INTERSECTION_COARSE_STEP: float = 0.1
INTERSECTION_RESIDUAL: float = 0.01
INTERSECTION_DEDUP_RADIUS: float = 0.1
INTERSECTION_REFINE_DIVISIONS: int = 10
INTERSECTION_MAX_SAMPLES: int = 200_000
MAX_INTERSECTION_CURVES: int = 3

# -----------------------------
# Expression palette
# -----------------------------
COLORS: tuple[str, ...] = (
    "#3b82f6",  # blue
    "#ef4444",  # red
    "#10b981",  # green
    "#f59e0b",  # orange
    "#8b5cf6",  # purple
    "#ec4899",  # pink
    "#06b6d4",  # cyan
    "#84cc16",  # lime
)

INTERSECTION_COLOR: str = "#ff6b6b"

__all__ = [
    "ANIMATION_SPEED",
    "CACHE_TTL_SECONDS",
    "COLORS",
    "DEFAULT_CURVE_RANGE",
    "DEFAULT_PARAMETER_MAX",
    "DEFAULT_PARAMETER_MIN",
    "DEFAULT_PARAMETER_STEP",
    "DEFAULT_PARAMETER_VALUE",
    "DEFAULT_PIXEL_SIZE",
    "DEFAULT_RANGE",
    "DENSE_SAMPLES_PER_PIXEL",
    "DERIVATIVE_STEP",
    "FIT_PADDING",
    "GRID_DIVISIONS",
    "IMPLICIT_HOLDS_TOLERANCE",
    "IMPLICIT_TOLERANCE",
    "INTERSECTION_COARSE_STEP",
    "INTERSECTION_COLOR",
    "INTERSECTION_DEDUP_RADIUS",
    "INTERSECTION_MAX_SAMPLES",
    "INTERSECTION_REFINE_DIVISIONS",
    "INTERSECTION_RESIDUAL",
    "MAX_INTERSECTION_CURVES",
    "PATH_MARGIN_PX",
    "SAMPLES_PER_PIXEL",
    "SIMPSON_INTERVALS",
    "ZOOM_IN_FACTOR",
    "ZOOM_OUT_FACTOR",
]
