from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Optional

from clock import Clock, seconds_until_next_hour

logger = logging.getLogger(__name__)


class StatusSweeper:
    """
    Background thread that ends finished bookings once an hour.

    The first tick lands on the next full hour of the clock, later ticks
    follow every `interval_seconds`. `tick()` can also be called directly.
    """

    def __init__(
        self,
        sweeps: Iterable[Callable[[], int]],
        clock: Clock,
        interval_seconds: float = 3600,
    ) -> None:
        self._sweeps = list(sweeps)
        self._clock = clock
        self._interval = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> int:
        ended = 0
        for sweep in self._sweeps:
            try:
                ended += sweep()
            except Exception:
                logger.exception("Booking status sweep failed")
        logger.info("Status sweep at %s ended %d booking(s)", self._clock.now().strftime("%Y-%m-%d %H:%M"), ended)
        return ended

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="booking-status-sweeper", daemon=True)
        self._thread.start()
        logger.info("Status sweeper started (interval %ss)", self._interval)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Status sweeper stopped")

    def _run(self) -> None:
        delay = min(seconds_until_next_hour(self._clock.now()), self._interval)
        while not self._stop.wait(delay):
            self.tick()
            delay = self._interval
