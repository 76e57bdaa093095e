"""Tracking provider implementations."""

from .synthetic import SyntheticTrackingProvider
from .udp_bridge import UdpBridgeTrackingProvider

__all__ = [
    "SyntheticTrackingProvider",
    "UdpBridgeTrackingProvider",
]
