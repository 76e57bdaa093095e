"""Deterministic synthetic tracking for dry runs and tests."""

from __future__ import annotations

import logging
import math

import numpy as np

from ..control.nodes import NodeId
from ..control.sample import NodePose, invalid_pose, zero_vector
from ..control.tracking_provider import TrackingProvider
from ..math3d.quaternion import (
    axis_angle_to_q,
    euler_yaw_pitch_roll_to_q,
    q_rotate_vec,
    q_to_xyzw,
)

logger = logging.getLogger(__name__)

_TWO_PI = 2.0 * math.pi

_HEAD_HEIGHT_M = 1.6
_HEAD_BOB_M = 0.02
_HEAD_BOB_HZ = 0.5
_HEAD_SWAY_M = 0.05
_HEAD_SWAY_HZ = 0.25
_HEAD_YAW_DEG = 30.0
_HEAD_YAW_HZ = 0.2

_HAND_ORBIT_M = 0.10
_HAND_ORBIT_HZ = 0.5
_HAND_CENTER_X_M = 0.25
_HAND_CENTER_Y_M = -0.40
_HAND_CENTER_Z_M = 0.30

# Half interpupillary distance, in head space.
_EYE_OFFSET_M = 0.032

_EYES = {
    NodeId.EYE_LEFT: np.array([-_EYE_OFFSET_M, 0.0, 0.0], dtype=np.float64),
    NodeId.EYE_RIGHT: np.array([_EYE_OFFSET_M, 0.0, 0.0], dtype=np.float64),
    NodeId.EYE_CENTER: np.zeros(3, dtype=np.float64),
}


class _Kinematics:
    __slots__ = ("position", "orientation", "velocity", "angular_velocity")

    def __init__(self, position, orientation, velocity, angular_velocity):
        self.position = position
        self.orientation = orientation
        self.velocity = velocity
        self.angular_velocity = angular_velocity


class SyntheticTrackingProvider(TrackingProvider):
    """Head sways and yaws, hands orbit in front of the body, eyes follow the head.

    Time advances by 1/tick_hz on every poll(). Controllers and trackers are
    reported absent. Velocities are analytic derivatives of the motion, in
    m/s and rad/s.
    """

    def __init__(self, tick_hz: float = 50.0, warmup_ticks: int = 0):
        self.tick_hz = float(tick_hz)
        self.warmup_ticks = max(0, int(warmup_ticks))
        self._polls = 0
        self._t = 0.0
        self._closed = False
        self._state: dict[NodeId, _Kinematics] = {}
        self._update_state()

        logger.info(
            "[TRACKING] provider=synthetic (tick_hz=%.1f, warmup_ticks=%d)",
            self.tick_hz,
            self.warmup_ticks,
        )

    @property
    def time_s(self) -> float:
        return self._t

    def is_ready(self) -> bool:
        return self._polls >= self.warmup_ticks

    def poll(self) -> None:
        self._polls += 1
        self._t = self._polls / self.tick_hz
        self._update_state()

    def _tracked(self, node: NodeId) -> bool:
        return self.is_ready() and node in self._state

    def get_present(self, node: NodeId) -> bool:
        return self._tracked(node)

    def get_position_tracked(self, node: NodeId) -> bool:
        return self._tracked(node)

    def get_orientation_tracked(self, node: NodeId) -> bool:
        return self._tracked(node)

    def get_position_valid(self, node: NodeId) -> bool:
        return self._tracked(node)

    def get_orientation_valid(self, node: NodeId) -> bool:
        return self._tracked(node)

    def get_pose(self, node: NodeId) -> NodePose:
        if not self._tracked(node):
            return invalid_pose()
        k = self._state[node]
        return NodePose(position=k.position.copy(), orientation=q_to_xyzw(k.orientation))

    def get_velocity(self, node: NodeId) -> np.ndarray:
        if not self._tracked(node):
            return zero_vector()
        return self._state[node].velocity.copy()

    def get_angular_velocity(self, node: NodeId) -> np.ndarray:
        if not self._tracked(node):
            return zero_vector()
        return self._state[node].angular_velocity.copy()

    def _update_state(self) -> None:
        t = self._t
        head = self._head(t)
        self._state[NodeId.HEAD] = head
        self._state[NodeId.HAND_LEFT] = self._hand(t, side=-1.0)
        self._state[NodeId.HAND_RIGHT] = self._hand(t, side=1.0)
        for node, offset in _EYES.items():
            self._state[node] = self._eye(head, offset)

    @staticmethod
    def _head(t: float) -> _Kinematics:
        w_bob = _TWO_PI * _HEAD_BOB_HZ
        w_sway = _TWO_PI * _HEAD_SWAY_HZ
        w_yaw = _TWO_PI * _HEAD_YAW_HZ

        position = np.array(
            [
                0.0,
                _HEAD_HEIGHT_M + _HEAD_BOB_M * math.sin(w_bob * t),
                _HEAD_SWAY_M * math.sin(w_sway * t),
            ],
            dtype=np.float64,
        )
        velocity = np.array(
            [
                0.0,
                _HEAD_BOB_M * w_bob * math.cos(w_bob * t),
                _HEAD_SWAY_M * w_sway * math.cos(w_sway * t),
            ],
            dtype=np.float64,
        )
        yaw_deg = _HEAD_YAW_DEG * math.sin(w_yaw * t)
        yaw_rate = math.radians(_HEAD_YAW_DEG) * w_yaw * math.cos(w_yaw * t)
        q = euler_yaw_pitch_roll_to_q(yaw_deg, 0.0, 0.0)
        return _Kinematics(
            position=position,
            orientation=q,
            velocity=velocity,
            angular_velocity=np.array([0.0, yaw_rate, 0.0], dtype=np.float64),
        )

    @staticmethod
    def _hand(t: float, side: float) -> _Kinematics:
        w = _TWO_PI * _HAND_ORBIT_HZ
        phase = w * t
        position = np.array(
            [
                side * _HAND_CENTER_X_M + _HAND_ORBIT_M * math.cos(phase),
                _HEAD_HEIGHT_M + _HAND_CENTER_Y_M,
                _HAND_CENTER_Z_M + _HAND_ORBIT_M * math.sin(phase),
            ],
            dtype=np.float64,
        )
        velocity = np.array(
            [
                -_HAND_ORBIT_M * w * math.sin(phase),
                0.0,
                _HAND_ORBIT_M * w * math.cos(phase),
            ],
            dtype=np.float64,
        )
        # Hands roll with the orbit phase.
        q = axis_angle_to_q(np.array([0.0, 0.0, 1.0]), side * phase)
        return _Kinematics(
            position=position,
            orientation=q,
            velocity=velocity,
            angular_velocity=np.array([0.0, 0.0, side * w], dtype=np.float64),
        )

    @staticmethod
    def _eye(head: _Kinematics, offset_head: np.ndarray) -> _Kinematics:
        r = q_rotate_vec(head.orientation, offset_head)
        return _Kinematics(
            position=head.position + r,
            orientation=head.orientation.copy(),
            velocity=head.velocity + np.cross(head.angular_velocity, r),
            angular_velocity=head.angular_velocity.copy(),
        )
