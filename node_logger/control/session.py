"""Host-side glue between a tracking provider's tick loop and the row writer."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..errors import SampleAcquisitionError, SinkWriteError
from .row_writer import SampleRowWriter
from .status import CaptureStats, StatusReporter
from .tracking_provider import TrackingProvider

logger = logging.getLogger(__name__)


class CaptureSession:
    """Drives one SampleRowWriter from the provider's fixed-rate loop.

    LogTime is seconds since the session clock started. Acquisition errors
    drop the tick and capture continues; sink errors stop the provider loop
    and propagate.
    """

    def __init__(
        self,
        writer: SampleRowWriter,
        provider: TrackingProvider,
        status: Optional[StatusReporter] = None,
        max_ticks: int = 0,
        duration_s: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.writer = writer
        self.provider = provider
        self.status = status or StatusReporter(status_hz=0.0)
        self.max_ticks = max(0, int(max_ticks))
        self.duration_s = max(0.0, float(duration_s))
        self.stats = CaptureStats()
        self._clock = clock
        self._t0: float | None = None

    def start(self) -> None:
        if self._t0 is None:
            self._t0 = self._clock()

    def elapsed(self) -> float:
        if self._t0 is None:
            return 0.0
        return self._clock() - self._t0

    def tick(self) -> None:
        self.start()
        timestamp = self.elapsed()
        self.stats.ticks += 1
        self.stats.elapsed_s = timestamp
        try:
            wrote = self.writer.capture_tick(timestamp)
        except SampleAcquisitionError as exc:
            self.stats.acquisition_errors += 1
            logger.warning("[CAPTURE] tick %d dropped: %s", self.stats.ticks, exc)
        except SinkWriteError:
            logger.exception("[SINK] log append failed; stopping capture")
            self.provider.close()
            raise
        else:
            if wrote:
                self.stats.rows_written += 1
            else:
                self.stats.not_ready += 1

        self.status.update(self.stats)
        if self._limit_reached(timestamp):
            logger.info("[CAPTURE] capture limit reached after %d ticks", self.stats.ticks)
            self.provider.close()

    def _limit_reached(self, timestamp: float) -> bool:
        if self.max_ticks and self.stats.ticks >= self.max_ticks:
            return True
        if self.duration_s and timestamp >= self.duration_s:
            return True
        return False

    def run(self) -> CaptureStats:
        self.start()
        try:
            self.provider.run(self.tick)
        finally:
            self.status.final(self.stats)
        return self.stats
