"""Draw settings and theme palettes."""

from __future__ import annotations

from dataclasses import dataclass

from .config import IMPLICIT_TOLERANCE

__all__ = ["CARTESIAN", "DARK", "LIGHT", "POLAR", "THEMES", "DrawSettings", "Theme"]

LIGHT = "light"
DARK = "dark"
CARTESIAN = "cartesian"
POLAR = "polar"


@dataclass(frozen=True)
class Theme:
    """Colors used by one theme."""

    background: str
    grid: str
    axes: str
    labels: str
    hover_fill: str
    hover_stroke: str
    hover_text: str
    annotations: str


THEMES: dict[str, Theme] = {
    LIGHT: Theme(
        background="#ffffff",
        grid="#f3f4f6",
        axes="#374151",
        labels="#6b7280",
        hover_fill="rgba(255, 255, 255, 0.95)",
        hover_stroke="#e5e7eb",
        hover_text="#374151",
        annotations="#000000",
    ),
    DARK: Theme(
        background="#111827",
        grid="#1f2937",
        axes="#e5e7eb",
        labels="#9ca3af",
        hover_fill="rgba(17, 24, 39, 0.95)",
        hover_stroke="#374151",
        hover_text="#e5e7eb",
        annotations="#ffffff",
    ),
}


@dataclass(frozen=True)
class DrawSettings:
    """What the renderer draws besides curves, and how.

    Parameters
    ----------
    show_grid, show_axes : bool
        Toggle the grid lines and the axes (with their tick labels).
    theme : str
        ``"light"`` or ``"dark"``.
    coordinate_system : str
        ``"cartesian"`` or ``"polar"``. In polar mode, function curves are
        traced as ``r = f(theta)``.
    implicit_tolerance : float
        Band half-width of the implicit-curve zero-set test.
    """

    show_grid: bool = True
    show_axes: bool = True
    theme: str = LIGHT
    coordinate_system: str = CARTESIAN
    implicit_tolerance: float = IMPLICIT_TOLERANCE

    def __post_init__(self) -> None:
        if self.theme not in THEMES:
            raise ValueError(f"theme must be one of {sorted(THEMES)}, got {self.theme!r}")
        if self.coordinate_system not in (CARTESIAN, POLAR):
            raise ValueError(f"coordinate_system must be 'cartesian' or 'polar', got {self.coordinate_system!r}")
        if not self.implicit_tolerance > 0:
            raise ValueError("implicit_tolerance must be > 0")

    @property
    def palette(self) -> Theme:
        return THEMES[self.theme]
