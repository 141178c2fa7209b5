from __future__ import annotations

import logging

import pytest

from graphcalc.events import KeyEvent, PointerEvent, Shortcut, WheelEvent
from graphcalc.expression import Expression
from graphcalc.renderer import Renderer
from graphcalc.scene import (
    AXES,
    BACKGROUND,
    CURVES,
    GRID,
    HOVER,
    INEQUALITIES,
    INTEGRALS,
    INTERSECTIONS,
    LAYERS,
    TANGENTS,
    TICKS,
    Fill,
    Label,
    Marker,
    PointCloud,
    Segment,
    Stroke,
)
from graphcalc.settings import DrawSettings
from graphcalc.viewport import Viewport

SMALL = Viewport(-5.0, 5.0, -5.0, 5.0, 100, 80)


def _renderer(*texts: str, viewport: Viewport = SMALL, **settings) -> Renderer:
    renderer = Renderer(viewport, DrawSettings(**settings))
    renderer.set_expressions(Expression.parsed(text) for text in texts)
    return renderer


def test_three_valid_curves_and_one_invalid() -> None:
    renderer = _renderer("sin(x)", "x^2", "x/2", "a*(x")
    invalid = renderer.expressions[3]
    scene = renderer.render()

    drawn = {item.expression_id for item in scene.layer(CURVES)}
    assert drawn == {expr.id for expr in renderer.expressions[:3]}
    assert not invalid.is_valid
    assert invalid.error
    assert scene.for_expression(invalid.id) == ()


def test_layers_follow_paint_order() -> None:
    renderer = _renderer("x", "-x", "y > x", "x^2", show_grid=True)
    renderer.expressions[3].set_integral_range((0, 1))
    renderer.expressions[0].set_derivative_point(1.0)
    renderer.handle_pointer_event(PointerEvent("move", 10, 10))
    scene = renderer.render()

    order = [LAYERS.index(item.layer) for item in scene.items]
    assert order == sorted(order)
    present = set(scene.by_layer())
    assert {BACKGROUND, GRID, AXES, TICKS, INTEGRALS, INEQUALITIES, CURVES, TANGENTS, INTERSECTIONS, HOVER} <= present


def test_grid_has_twenty_one_lines_per_axis() -> None:
    scene = _renderer(show_axes=False).render()
    grid = scene.layer(GRID)
    vertical = [s for s in grid if isinstance(s, Segment) and s.x0 == s.x1]
    horizontal = [s for s in grid if isinstance(s, Segment) and s.y0 == s.y1]
    assert len(vertical) == 21
    assert len(horizontal) == 21
    assert scene.layer(AXES) == ()
    assert scene.layer(TICKS) == ()


def test_axes_only_when_zero_is_visible() -> None:
    scene = _renderer(viewport=Viewport(1.0, 5.0, -5.0, 5.0, 100, 80)).render()
    axes = scene.layer(AXES)
    assert len(axes) == 1
    assert axes[0].y0 == axes[0].y1


def test_tick_labels_skip_origin() -> None:
    scene = _renderer(show_grid=False).render()
    texts = [item.text for item in scene.layer(TICKS)]
    assert "0.0" not in texts and "-0.0" not in texts
    assert "1.0" in texts and "-5.0" in texts


def test_inequality_is_shading_only() -> None:
    renderer = _renderer("y >= x")
    scene = renderer.render()
    assert scene.layer(CURVES) == ()
    (cloud,) = scene.layer(INEQUALITIES)
    assert isinstance(cloud, PointCloud)
    assert cloud.opacity == pytest.approx(0x30 / 255)


def test_integral_replaces_stroke_and_is_labelled() -> None:
    renderer = _renderer("x")
    renderer.expressions[0].set_integral_range((0, 2))
    scene = renderer.render()
    assert scene.layer(CURVES) == ()
    fills = [item for item in scene.layer(INTEGRALS) if isinstance(item, Fill)]
    labels = [item for item in scene.layer(INTEGRALS) if isinstance(item, Label)]
    assert len(fills) == 1
    assert [label.text for label in labels] == ["∫ = 2.000"]


def test_integral_label_sits_over_the_visible_region() -> None:
    renderer = _renderer("x")
    renderer.expressions[0].set_integral_range((0, 100))
    (label,) = [item for item in renderer.render().layer(INTEGRALS) if isinstance(item, Label)]
    assert label.text == "∫ = 5000.000"
    # Visible part is [0, 5]; its midpoint 2.5 maps to pixel 75.
    assert label.x == pytest.approx(75.0)
    assert label.y == pytest.approx(SMALL.to_screen_y(2.5) - 10)


def test_implicit_curve_is_a_point_cloud() -> None:
    scene = _renderer("x^2 + y^2 = 4").render()
    (cloud,) = scene.layer(CURVES)
    assert isinstance(cloud, PointCloud)
    assert cloud.size == 2.0


def test_tangent_overlay() -> None:
    renderer = _renderer("x^2")
    renderer.expressions[0].set_derivative_point(1.0)
    items = renderer.render().layer(TANGENTS)
    segment = next(item for item in items if isinstance(item, Segment))
    marker = next(item for item in items if isinstance(item, Marker))
    label = next(item for item in items if isinstance(item, Label))
    assert segment.dash == (5.0, 5.0)
    assert (segment.x0, segment.x1) == (0.0, 100.0)
    assert marker.radius == 4.0
    assert label.text == "f'(1.00) = 2.000"


def test_intersections_drawn_for_few_curves() -> None:
    scene = _renderer("x", "-x").render()
    markers = [item for item in scene.layer(INTERSECTIONS) if isinstance(item, Marker)]
    labels = [item.text for item in scene.layer(INTERSECTIONS) if isinstance(item, Label)]
    assert len(markers) == 1
    assert markers[0].color == "#ff6b6b"
    assert labels == ["(0.00, 0.00)"]


def test_intersections_skipped_for_more_than_three_curves(caplog) -> None:
    renderer = _renderer("x", "-x", "2x", "-2x")
    with caplog.at_level(logging.DEBUG, logger="graphcalc.renderer"):
        scene = renderer.render()
    assert scene.layer(INTERSECTIONS) == ()
    assert "intersections skipped" in caplog.text


def test_polar_coordinate_system_traces_functions_as_polar() -> None:
    cartesian = _renderer("2").render()
    polar = _renderer("2", coordinate_system="polar").render()
    (flat,) = cartesian.layer(CURVES)
    (circle,) = polar.layer(CURVES)
    assert {round(sy, 6) for _, sy in flat.points} == {round(SMALL.to_screen_y(2.0), 6)}
    assert len({round(sy, 3) for _, sy in circle.points}) > 10


def test_degenerate_viewport_is_refused(caplog) -> None:
    renderer = _renderer("x", viewport=Viewport(1.0, 1.0, 0.0, 1.0, 100, 80))
    with caplog.at_level(logging.WARNING, logger="graphcalc.renderer"):
        scene = renderer.render()
    assert len(scene) == 0
    assert "degenerate" in caplog.text


def test_snapshot_renders_lazily_and_caches() -> None:
    calls = []
    renderer = _renderer("x")
    renderer.on_change = lambda: calls.append(1)
    first = renderer.snapshot()
    assert renderer.snapshot() is first
    renderer.set_settings(theme="dark")
    assert calls == [1]
    second = renderer.snapshot()
    assert second is not first
    assert second.background == "#111827"


def test_wheel_zoom_anchors_pointer() -> None:
    renderer = _renderer()
    before = renderer.viewport
    wx, wy = before.to_world_x(30.0), before.to_world_y(20.0)
    renderer.handle_wheel_event(WheelEvent(30.0, 20.0, delta_y=-1.0))
    after = renderer.viewport
    assert after.x_range == pytest.approx(before.x_range * 0.9)
    assert abs(after.to_screen_x(wx) - 30.0) < 1.0
    assert abs(after.to_screen_y(wy) - 20.0) < 1.0
    renderer.handle_wheel_event(WheelEvent(30.0, 20.0, delta_y=1.0))
    assert renderer.viewport.x_range == pytest.approx(before.x_range * 0.9 * 1.1)


def test_mouse_drag_pans_and_hides_hover() -> None:
    renderer = _renderer()
    renderer.handle_pointer_event(PointerEvent("down", 50, 40))
    renderer.handle_pointer_event(PointerEvent("move", 60, 40))
    assert renderer.viewport.x_min == pytest.approx(-6.0)
    assert renderer.render().layer(HOVER) == ()
    renderer.handle_pointer_event(PointerEvent("up", 60, 40))
    hover = renderer.render().layer(HOVER)
    assert [item.text for item in hover if isinstance(item, Label)] == ["x: 1.000", "y: 0.000"]
    renderer.handle_pointer_event(PointerEvent("leave", 0, 0))
    assert renderer.hover is None


def test_multi_touch_does_not_pan() -> None:
    renderer = _renderer()
    renderer.handle_pointer_event(PointerEvent("down", 50, 40, pointer_type="touch", touches=2))
    renderer.handle_pointer_event(PointerEvent("move", 90, 40, pointer_type="touch", touches=2))
    assert renderer.viewport == SMALL
    renderer.handle_pointer_event(PointerEvent("down", 50, 40, pointer_type="touch"))
    renderer.handle_pointer_event(PointerEvent("move", 40, 40, pointer_type="touch"))
    assert renderer.viewport.x_min == pytest.approx(-4.0)
    assert renderer.hover is None


def test_key_shortcuts() -> None:
    renderer = _renderer("x^2")
    assert renderer.handle_key_event(KeyEvent("=", ctrl=True)) is Shortcut.ZOOM_IN
    assert renderer.viewport.x_range == pytest.approx(9.0)
    assert renderer.handle_key_event(KeyEvent("-", meta=True)) is Shortcut.ZOOM_OUT
    assert renderer.viewport.x_range == pytest.approx(9.9)
    assert renderer.handle_key_event(KeyEvent("n", ctrl=True)) is Shortcut.NEW_EXPRESSION
    assert renderer.handle_key_event(KeyEvent("q", ctrl=True)) is None


def test_fit_all_frames_function_samples() -> None:
    renderer = _renderer("x^2")
    renderer.handle_key_event(KeyEvent("a", ctrl=True))
    vp = renderer.viewport
    # x in [-5, 5], y in [0, 25], padded by 10 %.
    assert (vp.x_min, vp.x_max) == pytest.approx((-6.0, 6.0))
    assert (vp.y_min, vp.y_max) == pytest.approx((-2.5, 27.5))


def test_fit_all_falls_back_to_default_range() -> None:
    renderer = _renderer("sqrt(-1 - x^2)", "y > x")
    vp = renderer.fit_all()
    assert (vp.x_min, vp.x_max, vp.y_min, vp.y_max) == (-10.0, 10.0, -10.0, 10.0)
    assert (vp.width, vp.height) == (100, 80)


def test_strokes_use_expression_color() -> None:
    renderer = Renderer(SMALL)
    expr = Expression.parsed("x", color="#abcdef")
    renderer.set_expressions([expr])
    (stroke,) = renderer.render().layer(CURVES)
    assert isinstance(stroke, Stroke)
    assert stroke.color == "#abcdef"
    assert stroke.width == 2.5
