# -*- coding: utf-8 -*-

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Ticker:
    """
    Background one-second clock.

    arm() records an absolute wall-clock deadline and starts a worker that
    calls callback(generation) right away and then every `interval` seconds.
    Remaining time is always deadline - clock(), so ticks missed while the
    machine sleeps are never "counted"; the next tick simply sees a large
    negative remainder.

    Every arm/cancel bumps the generation. A callback that was already in
    flight when cancel() returned carries a stale generation and the owner
    is expected to drop it (see is_current).
    """

    def __init__(
        self,
        callback: Callable[[int], None],
        interval: float = 1.0,
        clock: Callable[[], float] = time.time,
    ):
        self._callback = callback
        self.interval = float(interval)
        self._clock = clock

        self._lock = threading.Lock()
        self._generation = 0
        self._stop: Optional[threading.Event] = None
        self._deadline: Optional[float] = None

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def is_armed(self) -> bool:
        return self._deadline is not None

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return self._stop is not None and generation == self._generation

    def remaining(self) -> Optional[float]:
        deadline = self._deadline
        if deadline is None:
            return None
        return deadline - self._clock()

    def arm(self, duration: float) -> float:
        with self._lock:
            if self._stop is not None:
                self._stop.set()
            self._generation += 1
            gen = self._generation
            stop = threading.Event()
            self._stop = stop
            self._deadline = self._clock() + float(duration)
            deadline = self._deadline

        worker = threading.Thread(
            target=self._run,
            args=(gen, stop),
            name=f"ticker-{gen}",
            daemon=True,
        )
        worker.start()
        logger.debug("Ticker armed: generation=%s duration=%.1fs", gen, duration)
        return deadline

    def cancel(self) -> None:
        # never joins: cancel() is also called from inside the callback
        with self._lock:
            if self._stop is None:
                return
            self._stop.set()
            self._stop = None
            self._deadline = None
            self._generation += 1
        logger.debug("Ticker cancelled")

    def _run(self, generation: int, stop: threading.Event) -> None:
        while not stop.is_set():
            try:
                self._callback(generation)
            except Exception:
                logger.exception("Ticker callback failed")
            if stop.wait(self.interval):
                break
