import io

import numpy as np
import pytest

from node_logger.control.nodes import NodeId
from node_logger.control.row_writer import SampleRowWriter
from node_logger.control.sample import NodePose
from node_logger.control.session import CaptureSession
from node_logger.control.status import CaptureStats, StatusReporter, status_line
from node_logger.control.tracking_provider import TrackingProvider
from node_logger.errors import SinkWriteError


class _FakeClock:
    def __init__(self, step: float = 0.02):
        self.t = 100.0
        self.step = step

    def __call__(self) -> float:
        now = self.t
        self.t += self.step
        return now


class _StaticProvider(TrackingProvider):
    def __init__(self, ready_after: int = 0, fail_on=()):
        self.polls = 0
        self.ready_after = ready_after
        self.fail_on = set(fail_on)

    def is_ready(self) -> bool:
        return self.polls >= self.ready_after

    def poll(self) -> None:
        self.polls += 1

    def get_present(self, node):
        return True

    def get_position_tracked(self, node):
        return True

    def get_orientation_tracked(self, node):
        return True

    def get_position_valid(self, node):
        return True

    def get_orientation_valid(self, node):
        return True

    def get_pose(self, node):
        if self.polls in self.fail_on:
            raise RuntimeError("pose unavailable")
        return NodePose(
            position=np.array([0.0, 1.5, 0.0], dtype=np.float64),
            orientation=np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float64),
        )

    def run(self, on_tick):
        while not self._closed:
            self.poll()
            on_tick()


def _session(provider, sink=None, **kwargs):
    writer = SampleRowWriter(
        provider=provider,
        sink=sink if sink is not None else io.BytesIO(),
        nodes=[NodeId.HEAD, NodeId.HAND_LEFT],
    )
    return CaptureSession(writer=writer, provider=provider, clock=_FakeClock(), **kwargs)


def test_session_stops_after_max_ticks():
    provider = _StaticProvider()
    session = _session(provider, max_ticks=10)
    stats = session.run()
    assert stats.ticks == 10
    assert stats.rows_written == 10
    lines = session.writer.sink.getvalue().decode("ascii").splitlines()
    assert len(lines) == 11


def test_session_counts_not_ready_ticks_and_absorbs_acquisition_errors():
    provider = _StaticProvider(ready_after=3, fail_on={5})
    session = _session(provider, max_ticks=8)
    stats = session.run()
    assert stats.not_ready == 2
    assert stats.acquisition_errors == 1
    assert stats.rows_written == 5
    lines = session.writer.sink.getvalue().decode("ascii").splitlines()
    assert len(lines) == 1 + 5


def test_session_timestamps_increase_from_session_start():
    provider = _StaticProvider()
    session = _session(provider, max_ticks=3)
    session.run()
    rows = session.writer.sink.getvalue().decode("ascii").splitlines()[1:]
    times = [float(row.split(",")[0]) for row in rows]
    assert times[0] > 0.0
    assert times == sorted(times)


def test_session_stops_after_duration():
    provider = _StaticProvider()
    session = _session(provider, duration_s=0.1)
    stats = session.run()
    assert 0 < stats.ticks <= 6


class _FailingSink(io.BytesIO):
    def write(self, data):
        raise OSError(5, "I/O error")


def test_sink_error_stops_provider_and_propagates():
    provider = _StaticProvider()
    session = _session(provider, sink=_FailingSink())
    with pytest.raises(SinkWriteError):
        session.run()
    assert provider._closed


def test_status_reporter_rate_limits(caplog):
    clock_values = iter([0.0, 0.2, 0.5, 1.1, 1.2])
    reporter = StatusReporter(status_hz=1.0, clock=lambda: next(clock_values))
    stats = CaptureStats(ticks=1)
    with caplog.at_level("INFO", logger="node_logger.control.status"):
        emitted = [reporter.update(stats) for _ in range(5)]
    assert emitted == [True, False, False, True, False]
    assert "ticks=1" in caplog.text


def test_status_reporter_disabled_at_zero_hz():
    reporter = StatusReporter(status_hz=0.0)
    assert reporter.update(CaptureStats()) is False


def test_status_line_mentions_counters():
    line = status_line(CaptureStats(ticks=4, rows_written=3, not_ready=1, elapsed_s=0.08))
    assert "rows=3" in line
    assert "not_ready=1" in line
