from __future__ import annotations

import pytest

from graphcalc.config import COLORS
from graphcalc.events import KeyEvent, Shortcut
from graphcalc.scene import CURVES
from graphcalc.viewport import Viewport
from graphcalc.workspace import Workspace

SMALL = Viewport(-5.0, 5.0, -5.0, 5.0, 100, 80)


def _workspace() -> Workspace:
    return Workspace(viewport=SMALL)


def test_add_expression_assigns_palette_colors_in_creation_order() -> None:
    ws = _workspace()
    first = ws.add_expression("x")
    second = ws.add_expression("x^2")
    ws.remove_expression(first.id)
    third = ws.add_expression("x^3")
    assert (first.color, second.color, third.color) == COLORS[:3]
    assert [expr.id for expr in ws] == [second.id, third.id]
    assert len(ws) == 2


def test_unknown_ids_raise_key_error() -> None:
    ws = _workspace()
    with pytest.raises(KeyError):
        ws["expr-missing"]
    with pytest.raises(KeyError):
        ws.remove_expression("expr-missing")
    expr = ws.add_expression("a*x")
    with pytest.raises(KeyError):
        ws.update_parameter(expr.id, "b", value=2)


def test_mutations_request_a_single_coalesced_redraw() -> None:
    ws = _workspace()
    expr = ws.add_expression("a*x")
    ws.update_parameter(expr.id, "a", value=2)
    ws.set_settings(show_grid=False)
    assert ws.scheduler.pending
    assert ws.flush() is True
    assert ws.scheduler.render_count == 1
    assert ws.flush() is False


def test_update_expression_keeps_surviving_parameters() -> None:
    ws = _workspace()
    expr = ws.add_expression("a*x + b")
    ws.update_parameter(expr.id, "a", value=3)
    ws.update_expression(expr.id, "a*x^2")
    assert list(expr.parameters) == ["a"]
    assert expr.parameters["a"].value == 3.0


def test_invalid_expression_is_reported_not_drawn() -> None:
    ws = _workspace()
    good = ws.add_expression("x")
    bad = ws.add_expression("sin(")
    scene = ws.render()
    assert bad.error
    assert {item.expression_id for item in scene.layer(CURVES)} == {good.id}


def test_parameter_hooks_receive_user_events() -> None:
    ws = _workspace()
    expr = ws.add_expression("a*x")
    events = []
    hook_id = ws.add_hook(events.append)
    ws.update_parameter(expr.id, "a", value=2)
    ws.update_parameter(expr.id, "a", max=5)
    assert len(events) == 1
    event = events[0]
    assert (event.expression_id, event.parameter, event.old, event.new, event.source) == (expr.id, "a", 1.0, 2.0, "user")

    ws.remove_hook(hook_id)
    ws.update_parameter(expr.id, "a", value=3)
    assert len(events) == 1


def test_failing_hook_warns_and_others_still_run() -> None:
    ws = _workspace()
    expr = ws.add_expression("a*x")
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    ws.add_hook(broken, hook_id="broken")
    ws.add_hook(seen.append)
    with pytest.warns(UserWarning, match="Hook broken failed: boom"):
        ws.update_parameter(expr.id, "a", value=2)
    assert len(seen) == 1


def test_invalid_parameter_edit_is_rejected() -> None:
    ws = _workspace()
    expr = ws.add_expression("a*x")
    with pytest.raises(ValueError):
        ws.update_parameter(expr.id, "a", step=-1)
    assert expr.parameters["a"].step == 0.1


def test_animation_ticks_fire_animation_events() -> None:
    ws = _workspace()
    expr = ws.add_expression("a*x")
    events = []
    ws.add_hook(events.append)
    assert ws.toggle_animation(expr.id, "a") is True
    assert ws.tick(now=10.0) == []
    fired = ws.tick(now=10.1)
    assert len(fired) == 1
    assert fired[0].source == "animation"
    assert expr.parameters["a"].value == pytest.approx(1.05)
    assert events == fired
    assert ws.toggle_animation(expr.id, "a") is False


def test_new_expression_shortcut_adds_an_empty_expression() -> None:
    ws = _workspace()
    assert ws.handle_key_event(KeyEvent("e", alt=True)) is Shortcut.NEW_EXPRESSION
    (expr,) = ws.expressions
    assert expr.text == ""
    assert not expr.is_valid


def test_reset_clears_expressions_and_keeps_pixel_size() -> None:
    ws = _workspace()
    ws.add_expression("x")
    ws.set_viewport(SMALL.zoom_centered(0.5))
    ws.reset()
    assert len(ws) == 0
    vp = ws.viewport
    assert (vp.x_min, vp.x_max, vp.y_min, vp.y_max) == (-10.0, 10.0, -10.0, 10.0)
    assert (vp.width, vp.height) == (100, 80)


def test_value_table_accepts_expression_inputs() -> None:
    ws = _workspace()
    expr = ws.add_expression("a*x")
    ws.update_parameter(expr.id, "a", value=2)
    rows = ws.value_table(expr.id, "0", "1", "1/2")
    assert [(p.x, p.y) for p in rows] == [(0.0, 0.0), (0.5, 1.0), (1.0, 2.0)]


def test_value_table_requires_a_function() -> None:
    ws = _workspace()
    expr = ws.add_expression("y > x")
    with pytest.raises(ValueError):
        ws.value_table(expr.id, 0, 1, 0.5)


def test_extras_setters_invalidate_the_scene() -> None:
    ws = _workspace()
    expr = ws.add_expression("x")
    ws.snapshot()
    ws.set_integral_range(expr.id, (0, 1))
    assert ws.renderer.is_stale
    assert expr.integral_range == (0.0, 1.0)
