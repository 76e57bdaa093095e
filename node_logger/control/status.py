"""Rate-limited capture status reporting."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CaptureStats:
    ticks: int = 0
    rows_written: int = 0
    not_ready: int = 0
    acquisition_errors: int = 0
    elapsed_s: float = 0.0


def status_line(stats: CaptureStats) -> str:
    return (
        f"[CAPTURE] t={stats.elapsed_s:8.2f}s  ticks={stats.ticks}  rows={stats.rows_written}  "
        f"not_ready={stats.not_ready}  errors={stats.acquisition_errors}"
    )


class StatusReporter:
    """Logs a status line at most status_hz times per second (0 disables)."""

    def __init__(self, status_hz: float = 1.0, clock: Callable[[], float] = time.monotonic):
        self.interval = (1.0 / status_hz) if status_hz > 0.0 else 0.0
        self._clock = clock
        self._last_t: float | None = None

    def update(self, stats: CaptureStats) -> bool:
        if self.interval <= 0.0:
            return False
        now = self._clock()
        if self._last_t is not None and (now - self._last_t) < self.interval:
            return False
        self._last_t = now
        logger.info(status_line(stats))
        return True

    def final(self, stats: CaptureStats) -> None:
        logger.info("%s  (session end)", status_line(stats))
