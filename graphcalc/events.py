"""Input event records and the keyboard shortcut table.

Events are platform-neutral: a UI layer translates its native pointer, wheel
and key events into these records before handing them to the renderer.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

__all__ = ["KeyEvent", "PointerEvent", "Shortcut", "WheelEvent", "resolve_shortcut"]

POINTER_KINDS = ("down", "move", "up", "leave")
POINTER_TYPES = ("mouse", "touch")


@dataclass(frozen=True)
class PointerEvent:
    """Pointer (mouse or touch) event in canvas pixel coordinates.

    ``touches`` is the number of active touch points; multi-touch gestures
    never pan.
    """

    kind: str
    x: float
    y: float
    pointer_type: str = "mouse"
    touches: int = 1

    def __post_init__(self) -> None:
        if self.kind not in POINTER_KINDS:
            raise ValueError(f"pointer event kind must be one of {POINTER_KINDS}, got {self.kind!r}")
        if self.pointer_type not in POINTER_TYPES:
            raise ValueError(f"pointer type must be one of {POINTER_TYPES}, got {self.pointer_type!r}")


@dataclass(frozen=True)
class WheelEvent:
    """Wheel event; ``delta_y > 0`` scrolls down, which zooms out."""

    x: float
    y: float
    delta_y: float


@dataclass(frozen=True)
class KeyEvent:
    key: str
    ctrl: bool = False
    meta: bool = False
    alt: bool = False
    shift: bool = False


class Shortcut(enum.Enum):
    NEW_EXPRESSION = "new_expression"
    ZOOM_IN = "zoom_in"
    ZOOM_OUT = "zoom_out"
    FIT_ALL = "fit_all"


def resolve_shortcut(event: KeyEvent) -> Optional[Shortcut]:
    """Map a key event to a logical shortcut.

    ``Ctrl`` and ``Meta`` are interchangeable. ``mod+n`` and ``Alt+e`` add
    an expression; ``mod+'+'`` (or ``'='``) zooms in; ``mod+'-'`` zooms out;
    ``mod+a`` fits all curves.
    """
    key = event.key.lower()
    if event.alt and key == "e":
        return Shortcut.NEW_EXPRESSION
    if not (event.ctrl or event.meta):
        return None
    if key == "n":
        return Shortcut.NEW_EXPRESSION
    if key in ("+", "="):
        return Shortcut.ZOOM_IN
    if key == "-":
        return Shortcut.ZOOM_OUT
    if key == "a":
        return Shortcut.FIT_ALL
    return None
