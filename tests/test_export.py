from __future__ import annotations

import plotly.graph_objects as go

from graphcalc.export import scene_to_plotly
from graphcalc.expression import Expression
from graphcalc.renderer import Renderer
from graphcalc.scene import Scene
from graphcalc.settings import DrawSettings
from graphcalc.viewport import Viewport

SMALL = Viewport(-5.0, 5.0, -5.0, 5.0, 100, 80)


def _scene(*texts: str, **settings) -> Scene:
    renderer = Renderer(SMALL, DrawSettings(**settings))
    renderer.set_expressions(Expression.parsed(text, color="#123456") for text in texts)
    return renderer.render()


def test_layout_is_pixel_space_with_flipped_y() -> None:
    fig = scene_to_plotly(_scene(theme="dark"))
    assert isinstance(fig, go.Figure)
    assert (fig.layout.width, fig.layout.height) == (100, 80)
    assert tuple(fig.layout.xaxis.range) == (0, 100)
    assert tuple(fig.layout.yaxis.range) == (80, 0)
    assert fig.layout.paper_bgcolor == "#111827"


def test_grid_and_axes_become_shapes_and_ticks_annotations() -> None:
    scene = _scene()
    fig = scene_to_plotly(scene)
    rects_and_lines = [item for item in scene.items if type(item).__name__ in ("Rect", "Segment")]
    assert len(fig.layout.shapes) == len(rects_and_lines)
    assert {shape.type for shape in fig.layout.shapes} == {"rect", "line"}
    assert len(fig.layout.annotations) == len([item for item in scene.items if type(item).__name__ == "Label"])


def test_curves_become_line_traces() -> None:
    fig = scene_to_plotly(_scene("x^2", show_grid=False, show_axes=False))
    (trace,) = fig.data
    assert trace.mode == "lines"
    assert trace.line.color == "#123456"
    assert trace.name.startswith("expr-")


def test_point_clouds_become_square_markers() -> None:
    fig = scene_to_plotly(_scene("y > x", show_grid=False, show_axes=False))
    (trace,) = fig.data
    assert trace.mode == "markers"
    assert trace.marker.symbol == "square"
    assert trace.opacity < 1.0


def test_integral_fill_is_closed() -> None:
    renderer = Renderer(SMALL, DrawSettings(show_grid=False, show_axes=False))
    expr = Expression.parsed("x")
    expr.set_integral_range((0, 1))
    renderer.set_expressions([expr])
    fig = scene_to_plotly(renderer.render())
    (trace,) = fig.data
    assert trace.fill == "toself"
    assert (trace.x[0], trace.y[0]) == (trace.x[-1], trace.y[-1])
    assert [a.text for a in fig.layout.annotations] == ["∫ = 0.500"]
