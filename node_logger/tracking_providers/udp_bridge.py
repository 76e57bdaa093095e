"""Tracking provider fed by an external runtime bridge over UDP.

The bridge process owns device access and coordinate conversion; this side
only consumes JSON snapshots of every node it tracks.
"""

from __future__ import annotations

import json
import logging
import socket
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..control.nodes import NodeId
from ..control.sample import NodePose, invalid_pose, zero_vector
from ..control.tracking_provider import TrackingProvider
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

_FLAG_KEYS = (
    "present",
    "position_tracked",
    "orientation_tracked",
    "position_valid",
    "orientation_valid",
)


@dataclass(frozen=True)
class BridgeNodeState:
    present: bool
    position_tracked: bool
    orientation_tracked: bool
    position_valid: bool
    orientation_valid: bool
    position: np.ndarray
    orientation: np.ndarray
    velocity: np.ndarray
    angular_velocity: np.ndarray


def _vector(payload: dict, key: str, size: int) -> Optional[np.ndarray]:
    raw = payload.get(key)
    if raw is None:
        return np.zeros(size, dtype=np.float64)
    v = np.asarray(raw, dtype=np.float64).reshape(-1)
    if v.size != size or not np.isfinite(v).all():
        return None
    return v


def _parse_node_payload(payload: dict) -> Optional[BridgeNodeState]:
    if not isinstance(payload, dict):
        return None
    try:
        position = _vector(payload, "position", 3)
        orientation = _vector(payload, "orientation_xyzw", 4)
        velocity = _vector(payload, "velocity", 3)
        angular_velocity = _vector(payload, "angular_velocity", 3)
    except (TypeError, ValueError):
        return None
    if position is None or orientation is None or velocity is None or angular_velocity is None:
        return None
    present = payload.get("present", True)
    if not isinstance(present, bool):
        return None
    flags = {key: payload.get(key, present) for key in _FLAG_KEYS}
    # JSON booleans only; "false" or 0 would otherwise read as tracked.
    if not all(isinstance(v, bool) for v in flags.values()):
        return None
    return BridgeNodeState(
        position=position,
        orientation=orientation,
        velocity=velocity,
        angular_velocity=angular_velocity,
        **flags,
    )


def _parse_snapshot_payload(payload: dict) -> Optional[dict[NodeId, BridgeNodeState]]:
    nodes = payload.get("nodes")
    if not isinstance(nodes, dict):
        return None
    snapshot: dict[NodeId, BridgeNodeState] = {}
    for label, node_payload in nodes.items():
        try:
            node = NodeId(label)
        except ValueError:
            # Bridge may track more than this build knows about.
            continue
        state = _parse_node_payload(node_payload)
        if state is None:
            return None
        snapshot[node] = state
    return snapshot


def _parse_snapshot_packet(data: bytes) -> Optional[dict[NodeId, BridgeNodeState]]:
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    return _parse_snapshot_payload(payload)


class _UdpSnapshotReceiver:
    def __init__(self, host: str, port: int):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind((host, int(port)))
        self.sock.setblocking(False)

    def recv_latest(self) -> Optional[dict[NodeId, BridgeNodeState]]:
        latest = None
        while True:
            try:
                data, _ = self.sock.recvfrom(65535)
            except BlockingIOError:
                break
            except OSError:
                break
            parsed = _parse_snapshot_packet(data)
            if parsed is not None:
                latest = parsed
        return latest

    def close(self) -> None:
        self.sock.close()


class UdpBridgeTrackingProvider(TrackingProvider):
    """Per-node samples from bridge snapshots over UDP.

    Expected JSON packet schema:
    {
      "nodes": {
        "Head": {
          "present": true,
          "position_tracked": true,
          "orientation_tracked": true,
          "position_valid": true,
          "orientation_valid": true,
          "position": [x, y, z],
          "orientation_xyzw": [x, y, z, w],
          "velocity": [x, y, z],
          "angular_velocity": [x, y, z]
        }
      }
    }

    Flags must be JSON booleans. Missing flags default to "present"; missing
    vectors default to zeros. Nodes absent from the latest snapshot read as
    untracked. Ready once the first valid snapshot has arrived.

    A snapshot older than ``stale_after_s`` is dropped: every node then reads
    as untracked with zero vectors until the bridge sends again.
    """

    def __init__(
        self,
        tick_hz: float = 50.0,
        bridge_host: str = "127.0.0.1",
        bridge_port: int = 24568,
        stale_after_s: float = 0.5,
    ):
        if not bridge_host.strip():
            raise ConfigurationError("bridge host must be non-empty")
        if not stale_after_s > 0.0:
            raise ConfigurationError(f"bridge stale timeout must be > 0, got {stale_after_s}")
        self.tick_hz = float(tick_hz)
        self.bridge_host = str(bridge_host)
        self.bridge_port = int(bridge_port)
        self.stale_after_s = float(stale_after_s)

        self._receiver = _UdpSnapshotReceiver(self.bridge_host, self.bridge_port)
        self._closed = False
        self._snapshot: Optional[dict[NodeId, BridgeNodeState]] = None
        self._last_warn_t = 0.0
        self._last_recv_t = 0.0
        self._recv_count = 0
        self._stale = False

        logger.info(
            "[TRACKING] provider=udp-bridge (host=%s, port=%s, tick_hz=%.1f, stale_after_s=%.3f)",
            self.bridge_host,
            self.bridge_port,
            self.tick_hz,
            self.stale_after_s,
        )

    def is_ready(self) -> bool:
        return self._snapshot is not None

    def is_stale(self) -> bool:
        if self._snapshot is None:
            return False
        return (time.time() - self._last_recv_t) > self.stale_after_s

    def apply_snapshot(
        self,
        snapshot: dict[NodeId, BridgeNodeState],
        received_at: Optional[float] = None,
    ) -> None:
        self._snapshot = snapshot
        self._last_recv_t = time.time() if received_at is None else float(received_at)

    def _node(self, node: NodeId) -> Optional[BridgeNodeState]:
        if self._snapshot is None or self.is_stale():
            return None
        return self._snapshot.get(node)

    def get_present(self, node: NodeId) -> bool:
        state = self._node(node)
        return state is not None and state.present

    def get_position_tracked(self, node: NodeId) -> bool:
        state = self._node(node)
        return state is not None and state.position_tracked

    def get_orientation_tracked(self, node: NodeId) -> bool:
        state = self._node(node)
        return state is not None and state.orientation_tracked

    def get_position_valid(self, node: NodeId) -> bool:
        state = self._node(node)
        return state is not None and state.position_valid

    def get_orientation_valid(self, node: NodeId) -> bool:
        state = self._node(node)
        return state is not None and state.orientation_valid

    def get_pose(self, node: NodeId) -> NodePose:
        state = self._node(node)
        if state is None:
            return invalid_pose()
        return NodePose(position=state.position.copy(), orientation=state.orientation.copy())

    def get_velocity(self, node: NodeId) -> np.ndarray:
        state = self._node(node)
        return zero_vector() if state is None else state.velocity.copy()

    def get_angular_velocity(self, node: NodeId) -> np.ndarray:
        state = self._node(node)
        return zero_vector() if state is None else state.angular_velocity.copy()

    def poll(self) -> None:
        snapshot = self._receiver.recv_latest()
        if snapshot is None:
            now = time.time()
            if not self._stale and self.is_stale():
                self._stale = True
                logger.warning(
                    "[TRACKING] bridge silent for %.2fs; logging nodes as untracked",
                    now - self._last_recv_t,
                )
            # Only nag when the bridge has been silent for a while.
            if (now - self._last_recv_t) > 2.0 and (now - self._last_warn_t) > 2.0:
                logger.info(
                    "[TRACKING] waiting for bridge packets on %s:%s",
                    self.bridge_host,
                    self.bridge_port,
                )
                self._last_warn_t = now
            return

        self._recv_count += 1
        if self._recv_count == 1:
            logger.info(
                "[TRACKING] first bridge packet received on %s:%s (%d nodes)",
                self.bridge_host,
                self.bridge_port,
                len(snapshot),
            )
        elif self._stale:
            logger.info("[TRACKING] bridge packets resumed")
        self._stale = False
        self.apply_snapshot(snapshot)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._receiver.close()
        except OSError:
            pass
