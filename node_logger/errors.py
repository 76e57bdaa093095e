"""Exception types raised by the capture loop."""

from __future__ import annotations

from typing import Optional


class NodeLoggerError(Exception):
    """Base class for all node logger errors."""


class ConfigurationError(NodeLoggerError, ValueError):
    """Node list or session setup is unusable; raised before capture starts."""


class SampleAcquisitionError(NodeLoggerError):
    """A tracking provider call failed mid-tick; the tick's row was dropped.

    The session stays usable and the host may keep ticking.
    """

    def __init__(
        self,
        message: str,
        node: Optional[str] = None,
        field_group: Optional[str] = None,
    ):
        super().__init__(message)
        self.node = node
        self.field_group = field_group


class SinkWriteError(NodeLoggerError):
    """Appending to the log sink failed. Fatal for the session."""
