"""
Change Notifier: debounced delivery of the serialized workspace.

Every mutation calls ``notify()``, which cancels the pending timer and starts
a new one (cancel-then-restart). When a timer fires without being superseded
the whole workspace is serialized and handed to the registered callback, so a
burst of edits produces a single notification carrying the final state.

Timers come from a ``TimerScheduler``:
    ThreadingScheduler: ``threading.Timer`` based, for live hosts
    VirtualClock: advanced by hand, for tests
"""

import heapq
import itertools
import logging
import threading
from typing import Callable, List, Optional, Tuple


logger = logging.getLogger(__name__)


class TimerHandle:
    """A scheduled callback that can be cancelled before it fires."""

    def cancel(self):
        raise NotImplementedError


class TimerScheduler:
    """Schedules one-shot callbacks after a delay in milliseconds."""

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError


class _ThreadingHandle(TimerHandle):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self):
        self._timer.cancel()


class ThreadingScheduler(TimerScheduler):
    """Runs callbacks on daemon ``threading.Timer`` threads."""

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay_ms / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return _ThreadingHandle(timer)


class _VirtualHandle(TimerHandle):
    def __init__(self):
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class VirtualClock(TimerScheduler):
    """A manually advanced clock; callbacks run inside ``advance``."""

    def __init__(self):
        self.now_ms = 0.0
        self._queue: List[Tuple[float, int, _VirtualHandle, Callable[[], None]]] = []
        self._sequence = itertools.count()

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _VirtualHandle()
        heapq.heappush(self._queue, (self.now_ms + delay_ms, next(self._sequence), handle, callback))
        return handle

    def advance(self, ms: float):
        """Move time forward, firing every timer that falls due on the way."""
        target = self.now_ms + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.now_ms = due
            if handle.cancelled:
                continue
            handle.fired = True
            callback()
        self.now_ms = target

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)


class ChangeNotifier:
    """Debounces workspace mutations into settled notifications."""

    DEFAULT_DELAY_MS = 300

    def __init__(self,
                 serializer: Callable[[], str],
                 callback: Optional[Callable[[str], None]] = None,
                 delay_ms: float = DEFAULT_DELAY_MS,
                 scheduler: Optional[TimerScheduler] = None):
        self.serializer = serializer
        self.callback = callback
        self.delay_ms = delay_ms
        self.scheduler = scheduler or ThreadingScheduler()
        self._lock = threading.Lock()
        self._pending: Optional[TimerHandle] = None
        self._token: Optional[object] = None
        self._disposed = False
        self.delivered_count = 0

    def set_callback(self, callback: Optional[Callable[[str], None]]):
        self.callback = callback

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def notify(self):
        """Record a mutation: cancel the pending timer and start a new one."""
        with self._lock:
            if self._disposed:
                return
            if self._pending is not None:
                self._pending.cancel()
            token = object()
            self._pending = self.scheduler.schedule(self.delay_ms, lambda: self._fire(token))
            self._token = token

    def flush(self) -> bool:
        """Deliver a pending notification immediately."""
        with self._lock:
            handle = self._pending
            if handle is None:
                return False
            handle.cancel()
            self._pending = None
            self._token = None
        self._deliver()
        return True

    def cancel(self):
        """Drop a pending notification without delivering it."""
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
                self._token = None

    def dispose(self):
        """Cancel pending work and detach the callback."""
        self.cancel()
        with self._lock:
            self._disposed = True
            self.callback = None

    def _fire(self, token: object):
        with self._lock:
            # A superseded timer that could not be cancelled in time.
            if token is not self._token:
                return
            self._pending = None
            self._token = None
        self._deliver()

    def _deliver(self):
        try:
            text = self.serializer()
        except Exception:
            logger.exception("Error serializing workspace")
            return

        callback = self.callback
        if callback is None:
            return
        try:
            callback(text)
            self.delivered_count += 1
        except Exception:
            logger.exception("Error delivering workspace change")
