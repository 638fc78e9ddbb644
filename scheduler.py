# scheduler.py
# Timer abstraction so the render loop can run on tkinter or be stepped by hand.

import heapq
import itertools
import logging
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class TkScheduler:
    """Delayed calls on the tkinter event loop."""

    def __init__(self, root):
        self.root = root

    def call_later(self, delay_ms: int, callback: Callable[[], None]):
        return self.root.after(delay_ms, callback)

    def cancel(self, handle):
        if handle is not None:
            self.root.after_cancel(handle)


class ManualScheduler:
    """Virtual clock. Nothing runs until ``advance`` is called."""

    def __init__(self):
        self.now_ms = 0
        self._pending: List[Tuple[int, int, Callable[[], None]]] = []
        self._cancelled = set()
        self._ids = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        heapq.heappush(self._pending, (self.now_ms + delay_ms, handle, callback))
        return handle

    def cancel(self, handle):
        self._cancelled.add(handle)

    @property
    def pending(self) -> int:
        return sum(1 for _, h, _ in self._pending if h not in self._cancelled)

    def advance(self, ms: int):
        target = self.now_ms + ms
        while self._pending and self._pending[0][0] <= target:
            due, handle, callback = heapq.heappop(self._pending)
            self.now_ms = due
            if handle in self._cancelled:
                self._cancelled.discard(handle)
                continue
            callback()
        self.now_ms = target


class RepeatingTask:
    """Calls ``callback`` every ``interval_ms`` until stopped.

    The next call is scheduled before the callback runs, so an exception in
    one call does not end the repetition.
    """

    def __init__(self, scheduler, interval_ms: int, callback: Callable[[], None]):
        self.scheduler = scheduler
        self.interval_ms = interval_ms
        self.callback = callback
        self._handle = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        if self._running:
            return
        self._running = True
        self._schedule()

    def stop(self):
        self._running = False
        self.scheduler.cancel(self._handle)
        self._handle = None

    def _schedule(self):
        self._handle = self.scheduler.call_later(self.interval_ms, self._fire)

    def _fire(self):
        if not self._running:
            return
        self._schedule()
        try:
            self.callback()
        except Exception:
            logger.exception("RepeatingTask: callback failed")
