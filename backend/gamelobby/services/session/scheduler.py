import heapq
import itertools
import logging
import threading
import time
from typing import Callable, List, Tuple


class BackgroundScheduler:
    """One-shot deferred calls on Socket.IO background tasks.

    - ``now()`` is monotonic; deadlines computed from it never go backwards
    - Each ``call_later`` gets its own worker that sleeps, then fires once
    - Workers sleep in steps of at most ``poll_sec`` (or the heartbeat, when
      set) and return without firing within one step of ``shutdown()``
    """

    def __init__(self, socketio, heartbeat_sec: float = 0, logger=None, poll_sec: float = 0.5):
        self._socketio = socketio
        self._heartbeat = max(0.0, float(heartbeat_sec or 0))
        self._poll = self._heartbeat or max(0.01, float(poll_sec))
        self._logger = logger or logging.getLogger(__name__)
        self._stopped = threading.Event()

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, fn: Callable, *args, label: str = '') -> None:
        self._logger.info(f"[timer-set] {label} delay={delay}s")
        self._socketio.start_background_task(self._worker, delay, fn, args, label)

    def spawn(self, fn: Callable, *args) -> None:
        self._socketio.start_background_task(fn, *args)

    def shutdown(self) -> None:
        self._stopped.set()

    def _worker(self, delay: float, fn: Callable, args: tuple, label: str) -> None:
        slept = 0.0
        while slept < delay and not self._stopped.is_set():
            step = min(self._poll, delay - slept)
            self._socketio.sleep(step)
            slept += step
            if self._heartbeat:
                self._logger.info(f"[timer-heartbeat] {label} remaining={max(0.0, delay - slept)}s")
        if self._stopped.is_set():
            self._logger.info(f"[timer-abort] {label} scheduler stopped")
            return
        try:
            fn(*args)
        except Exception:
            self._logger.error(f"[timer-error] {label}", exc_info=True)


class ManualScheduler:
    """Scheduler on a virtual clock; timers only fire from ``advance``.

    Used when the app runs under TESTING so rounds close deterministically.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._timers: List[Tuple[float, int, Callable, tuple, str]] = []
        self._seq = itertools.count()
        self._lock = threading.Lock()
        self._stopped = False

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, fn: Callable, *args, label: str = '') -> None:
        with self._lock:
            heapq.heappush(self._timers, (self._now + delay, next(self._seq), fn, args, label))

    def spawn(self, fn: Callable, *args) -> None:
        fn(*args)

    def shutdown(self) -> None:
        self._stopped = True
        with self._lock:
            self._timers.clear()

    def pending(self) -> List[str]:
        with self._lock:
            return [entry[4] for entry in sorted(self._timers)]

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while not self._stopped:
            with self._lock:
                if not self._timers or self._timers[0][0] > target:
                    break
                due, _, fn, args, _label = heapq.heappop(self._timers)
            self._now = max(self._now, due)
            fn(*args)
        self._now = max(self._now, target)
