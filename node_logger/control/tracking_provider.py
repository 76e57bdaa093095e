"""Tracking provider interface for per-node samples."""

from __future__ import annotations

import time
from typing import Callable

import numpy as np

from .nodes import NodeId
from .sample import NodePose, invalid_pose, zero_vector


class TrackingProvider:
    """Base interface for tracking runtimes.

    All vectors are in the provider's native convention; any coordinate
    conversion happens before values leave the provider. Getters must answer
    for any NodeId, returning false flags and zero vectors for nodes they do
    not track.
    """

    tick_hz: float = 50.0

    _closed: bool = False

    def is_ready(self) -> bool:
        """Whether the runtime is initialized and can be queried this tick."""
        return True

    def get_present(self, node: NodeId) -> bool:
        raise NotImplementedError

    def get_position_tracked(self, node: NodeId) -> bool:
        raise NotImplementedError

    def get_orientation_tracked(self, node: NodeId) -> bool:
        raise NotImplementedError

    def get_position_valid(self, node: NodeId) -> bool:
        raise NotImplementedError

    def get_orientation_valid(self, node: NodeId) -> bool:
        raise NotImplementedError

    def get_pose(self, node: NodeId) -> NodePose:
        return invalid_pose()

    def get_velocity(self, node: NodeId) -> np.ndarray:  # noqa: ARG002
        return zero_vector()

    def get_angular_velocity(self, node: NodeId) -> np.ndarray:  # noqa: ARG002
        return zero_vector()

    def poll(self) -> None:
        """Advance provider state once before the host tick. Optional hook."""
        pass

    def run(self, on_tick: Callable[[], None]) -> None:
        """Call poll() then on_tick at tick_hz until close() is called.

        Sleeps until the next deadline; a slow tick just delays the next one
        instead of queueing catch-up ticks.
        """
        period = 1.0 / max(1e-3, float(self.tick_hz))
        next_t = time.perf_counter()
        while not self._closed:
            self.poll()
            on_tick()
            next_t += period
            delay = next_t - time.perf_counter()
            if delay > 0.0:
                time.sleep(delay)
            else:
                next_t = time.perf_counter()

    def close(self) -> None:
        self._closed = True
