# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import logging
import time
from threading import Event, Lock, Thread
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DisplayLink:
    """
    Calls `callback(now)` at a fixed cadence on a daemon thread.

    Late frames are skipped, never queued: after a slow tick the next deadline is
    the first one still in the future.
    """

    def __init__(self, callback: Callable[[float], object], fps: float = 60.0,
                 clock: Callable[[], float] = time.monotonic):
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self.callback = callback
        self.period = 1.0 / fps
        self.clock = clock
        self.ticks = 0
        self.skipped = 0
        self._stop = Event()
        self._thread: Optional[Thread] = None
        self._lock = Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        with self._lock:
            if self.running:
                return
            self._stop.clear()
            self._thread = Thread(target=self._run, daemon=True)
            self._thread.start()

    def stop(self):
        with self._lock:
            self._stop.set()
            if self._thread and self._thread.is_alive():
                self._thread.join(timeout=0.5)
            self._thread = None

    def next_deadline(self, deadline: float, now: float) -> float:
        """Advances `deadline` by one period, jumping over any periods already missed."""
        deadline += self.period
        if now > deadline:
            missed = int((now - deadline) // self.period) + 1
            self.skipped += missed
            deadline += missed * self.period
            logger.debug(f"Display link skipped {missed} frame(s)")
        return deadline

    def _run(self):
        deadline = self.clock()
        while not self._stop.is_set():
            now = self.clock()
            try:
                self.callback(now)
            except Exception as e:
                logger.error(f"Display link callback failed: {e}", exc_info=True)
            self.ticks += 1

            deadline = self.next_deadline(deadline, self.clock())
            self._stop.wait(max(0.0, deadline - self.clock()))
