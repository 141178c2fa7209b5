"""Top-level public API for the ``graphcalc`` package.

This module re-exports the graphing-calculator core so users can import from
a single namespace, for example:

>>> from graphcalc import Workspace, parse_expression, derivative  # doctest: +SKIP

It exposes both the high-level :class:`Workspace` and the lower-level
building blocks (classifier, compilation cache, numerical analysis, viewport
and renderer) for integrations that wire their own UI.
"""

from .analysis import (
    Point,
    Tangent,
    definite_integral,
    derivative,
    evaluate,
    evaluate_at,
    evaluate_parametric,
    evaluate_polar,
    find_intersections,
    implicit_holds,
    inequality_holds,
    tangent_line,
    value_table,
)
from .animation import AnimationClock
from .cache import CacheEntry, CompilationCache
from .classifier import Classification, CompiledCurve, classify, detect_parameters, split_expression
from .compiled_expression import CompiledExpression, ExpressionHandle, compile_expression
from .compiler import ParseResult, parse_expression
from .errors import (
    ClassificationError,
    CompilationError,
    DegenerateViewportError,
    EvaluationError,
    GraphCalcError,
)
from .events import KeyEvent, PointerEvent, Shortcut, WheelEvent, resolve_shortcut
from .export import scene_to_plotly
from .expression import Expression
from .InputConvert import InputConvert
from .ParamEvent import ParamEvent
from .parameters import Parameter, sync_parameters
from .parsing import parse_math
from .redraw import RedrawScheduler
from .renderer import Renderer
from .scene import Fill, Label, Marker, PointCloud, Rect, Scene, Segment, Stroke
from .settings import DrawSettings, Theme
from .viewport import Viewport
from .workspace import Workspace

__all__ = [
    "AnimationClock",
    "CacheEntry",
    "Classification",
    "ClassificationError",
    "CompilationCache",
    "CompilationError",
    "CompiledCurve",
    "CompiledExpression",
    "DegenerateViewportError",
    "DrawSettings",
    "EvaluationError",
    "Expression",
    "ExpressionHandle",
    "Fill",
    "GraphCalcError",
    "InputConvert",
    "KeyEvent",
    "Label",
    "Marker",
    "ParamEvent",
    "Parameter",
    "ParseResult",
    "Point",
    "PointCloud",
    "PointerEvent",
    "Rect",
    "RedrawScheduler",
    "Renderer",
    "Scene",
    "Segment",
    "Shortcut",
    "Stroke",
    "Tangent",
    "Theme",
    "Viewport",
    "WheelEvent",
    "Workspace",
    "classify",
    "compile_expression",
    "definite_integral",
    "derivative",
    "detect_parameters",
    "evaluate",
    "evaluate_at",
    "evaluate_parametric",
    "evaluate_polar",
    "find_intersections",
    "implicit_holds",
    "inequality_holds",
    "parse_expression",
    "parse_math",
    "resolve_shortcut",
    "scene_to_plotly",
    "split_expression",
    "sync_parameters",
    "tangent_line",
    "value_table",
]
