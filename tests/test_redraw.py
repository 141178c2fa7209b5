from __future__ import annotations

import asyncio

import pytest

from graphcalc.redraw import RedrawScheduler


class _Recorder:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


def test_flush_without_request_does_nothing() -> None:
    render = _Recorder()
    scheduler = RedrawScheduler(render)
    assert scheduler.flush() is False
    assert render.calls == 0


def test_requests_coalesce_until_flush() -> None:
    render = _Recorder()
    scheduler = RedrawScheduler(render)
    for _ in range(5):
        scheduler.request()
    assert scheduler.pending
    assert scheduler.flush() is True
    assert render.calls == 1
    assert scheduler.render_count == 1
    assert not scheduler.pending


def test_cancel_drops_pending_redraw() -> None:
    render = _Recorder()
    scheduler = RedrawScheduler(render)
    scheduler.request()
    scheduler.cancel()
    assert scheduler.flush() is False
    assert render.calls == 0


def test_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        RedrawScheduler(lambda: None, frame_interval_ms=0)


def test_running_loop_renders_once_per_frame() -> None:
    render = _Recorder()

    async def main() -> None:
        scheduler = RedrawScheduler(render, frame_interval_ms=1)
        for _ in range(10):
            scheduler.request()
        await asyncio.sleep(0.05)
        assert render.calls == 1
        scheduler.request()
        await asyncio.sleep(0.05)

    asyncio.run(main())
    assert render.calls == 2


def test_render_failure_inside_loop_is_warned() -> None:
    def broken() -> None:
        raise RuntimeError("no canvas")

    async def main() -> None:
        scheduler = RedrawScheduler(broken, frame_interval_ms=1)
        scheduler.request()
        await asyncio.sleep(0.05)
        assert not scheduler.pending

    with pytest.warns(UserWarning, match="render failed: no canvas"):
        asyncio.run(main())
