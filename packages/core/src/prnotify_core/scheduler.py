"""Fixed-interval driver for detection cycles and registry refreshes."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prnotify_core.detector import ChangeDetector
    from prnotify_store.models import DedupState

logger = logging.getLogger(__name__)


class Scheduler:
    """Runs one detection cycle per tick, never two at once.

    The next tick starts ``check_interval`` seconds after the previous one
    started, or immediately if the previous cycle overran. The registry is
    refreshed at startup and then every ``refresh_interval`` seconds.
    stop() interrupts the wait between ticks; an in-flight cycle is allowed
    to finish so its state commit is never cut short.
    """

    def __init__(
        self,
        detector: ChangeDetector,
        state: DedupState,
        check_interval: float,
        refresh_interval: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.detector = detector
        self.state = state
        self.check_interval = check_interval
        self.refresh_interval = refresh_interval
        self._clock = clock
        self._stop = threading.Event()
        self._last_refresh: float | None = None
        self.cycles = 0

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    def _refresh_due(self, now: float) -> bool:
        return self._last_refresh is None or now - self._last_refresh >= self.refresh_interval

    def tick(self) -> None:
        """Refresh the registry if due, then run one detection cycle."""
        now = self._clock()
        if self._refresh_due(now):
            self._last_refresh = now
            try:
                self.detector.registry.refresh_or_keep(self.detector.username)
            except Exception:
                logger.exception("Registry refresh failed; keeping the cached PR list")

        try:
            result = self.detector.run_cycle(self.state)
        except Exception:
            # One bad cycle must not take the daemon down; the state is
            # unchanged, so the next tick re-examines the same window.
            logger.exception("Detection cycle failed")
            return
        self.state = result.state

    def run(self, max_cycles: int | None = None) -> None:
        while not self._stop.is_set():
            started = self._clock()
            self.tick()
            self.cycles += 1
            if max_cycles is not None and self.cycles >= max_cycles:
                break
            remaining = self.check_interval - (self._clock() - started)
            if remaining > 0:
                self._stop.wait(remaining)
        logger.info("Scheduler stopped after %d cycle(s)", self.cycles)
