"""Tracked node identifiers."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Sequence

from ..errors import ConfigurationError


class NodeId(str, Enum):
    """Trackable spatial points on the headset, body and controllers.

    The value is the label used as column prefix in the log.
    """

    HEAD = "Head"
    HAND_LEFT = "HandLeft"
    HAND_RIGHT = "HandRight"
    EYE_LEFT = "EyeLeft"
    EYE_RIGHT = "EyeRight"
    EYE_CENTER = "EyeCenter"
    CONTROLLER_LEFT = "ControllerLeft"
    CONTROLLER_RIGHT = "ControllerRight"
    CONTROLLER_BACK = "ControllerBack"
    TRACKER_ZERO = "TrackerZero"
    TRACKER_ONE = "TrackerOne"
    TRACKER_TWO = "TrackerTwo"
    TRACKER_THREE = "TrackerThree"
    DEVICE_OBJECT_ZERO = "DeviceObjectZero"

    def __str__(self) -> str:
        return self.value


DEFAULT_NODES: tuple[NodeId, ...] = (NodeId.HEAD, NodeId.HAND_LEFT, NodeId.HAND_RIGHT)

_BY_LOWER_NAME = {}
for _node in NodeId:
    _BY_LOWER_NAME[_node.value.lower()] = _node
    _BY_LOWER_NAME[_node.name.lower()] = _node
    _BY_LOWER_NAME[_node.name.lower().replace("_", "")] = _node
del _node


def parse_node(raw) -> NodeId:
    """Resolve a node from its label (``HandLeft``) or enum name (``HAND_LEFT``)."""
    if isinstance(raw, NodeId):
        return raw
    if not isinstance(raw, str):
        raise ConfigurationError(f"node identifier must be a string, got {raw!r}")
    key = raw.strip().lower().replace("-", "_")
    node = _BY_LOWER_NAME.get(key)
    if node is None:
        node = _BY_LOWER_NAME.get(key.replace("_", ""))
    if node is None:
        valid = ", ".join(n.value for n in NodeId)
        raise ConfigurationError(f"unknown node {raw!r}; expected one of: {valid}")
    return node


def parse_node_list(raw: str | Iterable) -> tuple[NodeId, ...]:
    """Parse ``"Head,HandLeft"`` or a sequence of labels, keeping order and duplicates."""
    if isinstance(raw, str):
        items: Sequence = [part for part in raw.split(",") if part.strip()]
    else:
        items = list(raw)
    return tuple(parse_node(item) for item in items)
