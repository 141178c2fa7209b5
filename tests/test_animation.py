from __future__ import annotations

import pytest

from graphcalc.animation import AnimationClock
from graphcalc.expression import Expression


def _animated(text: str = "a*x", **bounds) -> Expression:
    expr = Expression.parsed(text)
    param = expr.parameters["a"]
    param.update(**bounds)
    param.animating = True
    return expr


def test_first_tick_only_sets_the_time_base() -> None:
    clock = AnimationClock()
    expr = _animated()
    assert not clock.running
    assert clock.tick([expr], now=3.0) == []
    assert clock.running
    assert expr.parameters["a"].value == 1.0


def test_value_moves_step_times_speed_per_second() -> None:
    clock = AnimationClock(speed=5.0)
    expr = _animated()
    clock.tick([expr], now=0.0)
    (event,) = clock.tick([expr], now=2.0)
    assert expr.parameters["a"].value == pytest.approx(2.0)
    assert (event.old, event.source) == (1.0, "animation")
    assert event.new == pytest.approx(2.0)


def test_sweep_bounces_between_bounds() -> None:
    clock = AnimationClock(speed=5.0)
    expr = _animated(value=0.0, min=-1, max=1)
    param = expr.parameters["a"]
    clock.tick([expr], now=0.0)
    clock.tick([expr], now=3.0)
    assert param.value == 1.0
    assert param.direction == -1
    clock.tick([expr], now=4.0)
    assert param.value == pytest.approx(0.5)


def test_idle_clock_drops_time_base() -> None:
    clock = AnimationClock()
    expr = _animated()
    clock.tick([expr], now=0.0)
    expr.parameters["a"].animating = False
    assert clock.tick([expr], now=1.0) == []
    assert not clock.running

    expr.parameters["a"].animating = True
    assert clock.tick([expr], now=100.0) == []
    assert expr.parameters["a"].value == 1.0


def test_uses_injected_clock() -> None:
    times = iter([5.0, 5.5])
    clock = AnimationClock(speed=2.0, clock=lambda: next(times))
    expr = _animated()
    clock.tick([expr])
    clock.tick([expr])
    assert expr.parameters["a"].value == pytest.approx(1.1)


def test_reset_makes_next_tick_zero_elapsed() -> None:
    clock = AnimationClock()
    expr = _animated()
    clock.tick([expr], now=0.0)
    clock.reset()
    assert clock.tick([expr], now=50.0) == []
