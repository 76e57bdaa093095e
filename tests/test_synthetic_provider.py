import numpy as np

from node_logger.control.nodes import NodeId
from node_logger.tracking_providers.synthetic import SyntheticTrackingProvider


def test_warmup_ticks_delay_readiness():
    provider = SyntheticTrackingProvider(tick_hz=50.0, warmup_ticks=3)
    assert provider.is_ready() is False
    for _ in range(2):
        provider.poll()
    assert provider.is_ready() is False
    assert provider.get_present(NodeId.HEAD) is False
    provider.poll()
    assert provider.is_ready() is True
    assert provider.get_present(NodeId.HEAD) is True


def test_untracked_nodes_are_absent_with_zero_vectors():
    provider = SyntheticTrackingProvider()
    node = NodeId.CONTROLLER_LEFT
    assert provider.get_present(node) is False
    assert provider.get_position_valid(node) is False
    pose = provider.get_pose(node)
    np.testing.assert_allclose(pose.position, np.zeros(3))
    np.testing.assert_allclose(pose.orientation, np.zeros(4))
    np.testing.assert_allclose(provider.get_velocity(node), np.zeros(3))
    np.testing.assert_allclose(provider.get_angular_velocity(node), np.zeros(3))


def test_orientations_are_unit_xyzw():
    provider = SyntheticTrackingProvider()
    for _ in range(7):
        provider.poll()
    for node in (NodeId.HEAD, NodeId.HAND_LEFT, NodeId.EYE_RIGHT):
        q = provider.get_pose(node).orientation
        assert q.shape == (4,)
        assert abs(float(np.linalg.norm(q)) - 1.0) < 1e-9


def test_velocity_matches_finite_difference():
    hz = 1000.0
    for node in (NodeId.HEAD, NodeId.HAND_RIGHT, NodeId.EYE_LEFT):
        provider = SyntheticTrackingProvider(tick_hz=hz)
        for _ in range(100):
            provider.poll()
        p0 = provider.get_pose(node).position
        v0 = provider.get_velocity(node)
        provider.poll()
        p1 = provider.get_pose(node).position
        v1 = provider.get_velocity(node)
        np.testing.assert_allclose((p1 - p0) * hz, 0.5 * (v0 + v1), atol=1e-4)


def test_eyes_straddle_the_head():
    provider = SyntheticTrackingProvider()
    head = provider.get_pose(NodeId.HEAD).position
    left = provider.get_pose(NodeId.EYE_LEFT).position
    right = provider.get_pose(NodeId.EYE_RIGHT).position
    np.testing.assert_allclose(0.5 * (left + right), head, atol=1e-12)
    assert abs(float(np.linalg.norm(right - left)) - 0.064) < 1e-9
