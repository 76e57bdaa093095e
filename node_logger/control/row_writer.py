"""Per-tick capture of node samples into an append-only CSV sink."""

from __future__ import annotations

import enum
import logging
import os
from typing import BinaryIO, Callable, Iterable, TypeVar

from ..errors import SampleAcquisitionError, SinkWriteError
from .formatting import format_flag, format_full, rotation_formatter
from .nodes import NodeId, parse_node
from .sample import NodeSample, as_quat4, as_vec3
from .schema import SchemaBuilder
from .tracking_provider import TrackingProvider

logger = logging.getLogger(__name__)

DELIMITER = ","
LINE_TERMINATOR = "\n"

T = TypeVar("T")


class WriterState(enum.Enum):
    HEADER_PENDING = "header-pending"
    STREAMING = "streaming"
    FAILED = "failed"


class SampleRowWriter:
    """Owns one capture session: node sequence, sink handle, header state.

    capture_tick() is the only per-tick entry point. The host decides the
    cadence; this class never schedules anything itself and is not
    thread-safe.
    """

    def __init__(
        self,
        provider: TrackingProvider,
        sink: BinaryIO,
        nodes: Iterable[NodeId | str],
        rotation_precision: str = "compat",
        fsync: bool = False,
        strict_nodes: bool = False,
    ):
        self.schema = SchemaBuilder([parse_node(n) for n in nodes], strict=strict_nodes)
        self.nodes = self.schema.nodes
        self.provider = provider
        self.sink = sink
        self.fsync = bool(fsync)
        self._format_rotation = rotation_formatter(rotation_precision)
        self.state = WriterState.HEADER_PENDING
        self.rows_written = 0

    @property
    def header_written(self) -> bool:
        return self.state is not WriterState.HEADER_PENDING

    def capture_tick(self, timestamp: float) -> bool:
        """Sample every node and append one row.

        Returns False without writing anything when the provider is not ready.
        Raises SampleAcquisitionError when a provider call fails (no row is
        written for this tick) and SinkWriteError when the sink rejects a write.
        """
        if self.state is WriterState.FAILED:
            raise SinkWriteError("log sink failed earlier in this session")

        if not self._query("provider", "readiness", self.provider.is_ready):
            return False

        if self.state is WriterState.HEADER_PENDING:
            self._append(DELIMITER.join(self.schema.columns()))
            self.state = WriterState.STREAMING
            logger.debug("[CAPTURE] header written (%d columns)", self.schema.column_count)

        # Gather the complete row before touching the sink.
        fields = [format_full(timestamp)]
        for node in self.nodes:
            fields.extend(self._format_sample(self.read_sample(node)))

        self._append(DELIMITER.join(fields))
        self.rows_written += 1
        return True

    def read_sample(self, node: NodeId) -> NodeSample:
        """One provider round trip per field group, no retries."""
        p = self.provider
        flags = self._query(
            node,
            "tracking flags",
            lambda: (
                bool(p.get_present(node)),
                bool(p.get_position_tracked(node)),
                bool(p.get_orientation_tracked(node)),
                bool(p.get_position_valid(node)),
                bool(p.get_orientation_valid(node)),
            ),
        )
        pose = self._query(node, "pose", lambda: p.get_pose(node))
        position = self._query(node, "pose", lambda: as_vec3(pose.position))
        orientation = self._query(node, "pose", lambda: as_quat4(pose.orientation))
        velocity = self._query(node, "velocity", lambda: as_vec3(p.get_velocity(node)))
        angular_velocity = self._query(
            node, "angular velocity", lambda: as_vec3(p.get_angular_velocity(node))
        )
        return NodeSample(
            *flags,
            position=position,
            orientation=orientation,
            velocity=velocity,
            angular_velocity=angular_velocity,
        )

    def _format_sample(self, sample: NodeSample) -> list[str]:
        fields = [format_flag(flag) for flag in sample.flags()]
        fields.extend(format_full(v) for v in sample.position)
        fields.extend(self._format_rotation(v) for v in sample.orientation)
        fields.extend(format_full(v) for v in sample.velocity)
        fields.extend(format_full(v) for v in sample.angular_velocity)
        return fields

    @staticmethod
    def _query(node, field_group: str, call: Callable[[], T]) -> T:
        try:
            return call()
        except Exception as exc:
            raise SampleAcquisitionError(
                f"failed to read {field_group} for {node}: {exc}",
                node=str(node),
                field_group=field_group,
            ) from exc

    def _append(self, line: str) -> None:
        try:
            self.sink.write((line + LINE_TERMINATOR).encode("ascii"))
            self.sink.flush()
            if self.fsync:
                os.fsync(self.sink.fileno())
        except (OSError, ValueError) as exc:
            self.state = WriterState.FAILED
            raise SinkWriteError(f"failed to append to log sink: {exc}") from exc

    def close(self) -> None:
        if self.sink.closed:
            return
        if self.state is WriterState.FAILED:
            self.sink.close()
            return
        try:
            self.sink.flush()
        except (OSError, ValueError) as exc:
            self.state = WriterState.FAILED
            raise SinkWriteError(f"failed to flush log sink on close: {exc}") from exc
        finally:
            self.sink.close()

    def __enter__(self) -> "SampleRowWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
