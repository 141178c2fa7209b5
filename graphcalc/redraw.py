"""Coalescing redraw scheduling."""

from __future__ import annotations

import asyncio
import threading
import warnings
from typing import Any, Callable, Optional

__all__ = ["RedrawScheduler"]


class RedrawScheduler:
    """Coalesce redraw requests into at most one render per frame.

    Parameters
    ----------
    render:
        Callable performing the redraw.
    frame_interval_ms:
        Delay between the first request of a frame and the render, when an
        ``asyncio`` loop is running.

    Notes
    -----
    Inside a running event loop the first :meth:`request` of a frame
    schedules the render with ``loop.call_later``; further requests before
    it fires are absorbed. Without a running loop nothing is scheduled and
    the host calls :meth:`flush` once per frame instead.
    """

    def __init__(self, render: Callable[[], Any], *, frame_interval_ms: int = 16) -> None:
        if frame_interval_ms <= 0:
            raise ValueError("frame_interval_ms must be > 0")
        self._render = render
        self._frame_interval_s = frame_interval_ms / 1000.0

        self._pending = False
        self._lock = threading.Lock()
        self._timer: Optional[asyncio.TimerHandle] = None
        self.render_count = 0

    @property
    def pending(self) -> bool:
        return self._pending

    def request(self) -> None:
        with self._lock:
            self._pending = True
            if self._timer is None:
                self._schedule_locked()

    def _schedule_locked(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timer = loop.call_later(self._frame_interval_s, self._on_frame)

    def _on_frame(self) -> None:
        try:
            self.flush()
        except Exception as exc:
            warnings.warn(f"RedrawScheduler render failed: {exc}")

    def flush(self) -> bool:
        """Render now if a redraw is pending; return whether it rendered."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if not self._pending:
                return False
            self._pending = False
        self.render_count += 1
        self._render()
        return True

    def cancel(self) -> None:
        """Drop any pending redraw."""
        with self._lock:
            self._pending = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
