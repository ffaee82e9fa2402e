"""
Frame schedulers.

Both implementations follow request-animation-frame semantics: start(fn)
schedules ONE call of fn on the next frame and returns a handle; the callee
re-schedules itself if it wants another tick. cancel(handle) guarantees the
callback will not run if it has not started yet.
"""
from __future__ import annotations
from typing import Callable, Dict, Protocol
import itertools
import logging
import threading
import time

logger = logging.getLogger(__name__)

TickFn = Callable[[], None]


class Scheduler(Protocol):
    def start(self, tick_fn: TickFn) -> int:
        ...

    def cancel(self, handle: int) -> None:
        ...


class ManualScheduler:
    """Deterministic scheduler driven by explicit run_frame() calls.

    Used by tests and by the preview window, whose own refresh drives frames.
    """
    def __init__(self):
        self._ids = itertools.count(1)
        self._pending: Dict[int, TickFn] = {}
        self.frames = 0

    def start(self, tick_fn: TickFn) -> int:
        handle = next(self._ids)
        self._pending[handle] = tick_fn
        return handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def run_frame(self) -> int:
        """Run callbacks pending at call time; returns how many ran."""
        self.frames += 1
        ran = 0
        for handle in list(self._pending):
            fn = self._pending.pop(handle, None)  # may have been cancelled by an earlier callback
            if fn is None:
                continue
            fn()
            ran += 1
        return ran


class ThreadScheduler:
    """Paces callbacks at a target frame rate on one daemon thread.

    Ticks run one after another on that thread, so a slow tick delays the
    next frame instead of stacking up; missed frame slots are dropped.
    """
    def __init__(self, fps: float = 30.0):
        self.interval = 1.0 / max(1.0, float(fps))
        self._ids = itertools.count(1)
        self._pending: Dict[int, TickFn] = {}
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._closed = False
        self._thread: threading.Thread | None = None

    def start(self, tick_fn: TickFn) -> int:
        with self._lock:
            if self._closed:
                raise RuntimeError("scheduler is closed")
            handle = next(self._ids)
            self._pending[handle] = tick_fn
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(target=self._loop, name="tryon-frames", daemon=True)
                self._thread.start()
        self._wake.set()
        return handle

    def cancel(self, handle: int) -> None:
        with self._lock:
            self._pending.pop(handle, None)

    def close(self, timeout: float = 1.0) -> None:
        with self._lock:
            self._closed = True
            self._pending.clear()
        self._wake.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)

    def _loop(self) -> None:
        next_t = time.monotonic()
        while True:
            with self._lock:
                if self._closed:
                    return
                idle = not self._pending
            if idle:
                self._wake.wait(timeout=0.5)
                self._wake.clear()
                next_t = time.monotonic()
                continue

            next_t += self.interval
            delay = next_t - time.monotonic()
            if delay > 0:
                time.sleep(delay)
            else:
                next_t = time.monotonic()  # behind: drop the missed slots

            with self._lock:
                due = list(self._pending)
            for handle in due:
                # popped one at a time so a cancel from an earlier callback still holds
                with self._lock:
                    if self._closed:
                        return
                    fn = self._pending.pop(handle, None)
                if fn is None:
                    continue
                try:
                    fn()
                except Exception:
                    logger.exception(f"[scheduler] tick handle={handle} failed")
