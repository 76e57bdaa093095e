"""Per-tick data structures for tracked nodes."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(slots=True)
class NodePose:
    """Node pose in the provider's native space.

    position:
      3D translation [x, y, z], meters.
    orientation:
      Orientation quaternion [x, y, z, w], unit length.
    """

    position: np.ndarray
    orientation: np.ndarray


@dataclass(slots=True)
class NodeSample:
    """Everything logged for one node on one tick."""

    present: bool
    position_tracked: bool
    orientation_tracked: bool
    position_valid: bool
    orientation_valid: bool
    position: np.ndarray
    orientation: np.ndarray
    velocity: np.ndarray
    angular_velocity: np.ndarray

    def flags(self) -> tuple[bool, bool, bool, bool, bool]:
        return (
            self.present,
            self.position_tracked,
            self.orientation_tracked,
            self.position_valid,
            self.orientation_valid,
        )


def invalid_pose() -> NodePose:
    """Pose reported for a node the provider cannot see."""
    return NodePose(
        position=np.zeros(3, dtype=np.float64),
        orientation=np.zeros(4, dtype=np.float64),
    )


def zero_vector() -> np.ndarray:
    return np.zeros(3, dtype=np.float64)


def _as_float_array(value) -> np.ndarray:
    a = np.asarray(value).reshape(-1)
    # float32 stays float32 so its shortest form is logged.
    if not np.issubdtype(a.dtype, np.floating):
        a = a.astype(np.float64)
    return a


def as_vec3(value) -> np.ndarray:
    v = _as_float_array(value)
    if v.size != 3:
        raise ValueError(f"expected 3 components, got {v.size}")
    return v


def as_quat4(value) -> np.ndarray:
    q = _as_float_array(value)
    if q.size != 4:
        raise ValueError(f"expected 4 quaternion components, got {q.size}")
    return q
