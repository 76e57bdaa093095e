"""Column schema derived from the configured node sequence."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable

from ..errors import ConfigurationError
from .nodes import NodeId

logger = logging.getLogger(__name__)

TIME_COLUMN = "LogTime"

# Per-node columns in row order: flags, position, rotation, velocity, angular velocity.
NODE_FIELD_SUFFIXES: tuple[str, ...] = (
    "Present",
    "PosTracked",
    "RotTracked",
    "PosValid",
    "RotValid",
    "PosX",
    "PosY",
    "PosZ",
    "RotX",
    "RotY",
    "RotZ",
    "RotW",
    "VelX",
    "VelY",
    "VelZ",
    "AngVelX",
    "AngVelY",
    "AngVelZ",
)

FIELDS_PER_NODE = len(NODE_FIELD_SUFFIXES)


def node_columns(node: NodeId | str) -> list[str]:
    label = str(node)
    return [f"{label}_{suffix}" for suffix in NODE_FIELD_SUFFIXES]


def build_columns(nodes: Iterable[NodeId | str]) -> list[str]:
    """Return ``["LogTime", <18 columns per node>...]`` in node order."""
    nodes = list(nodes)
    if not nodes:
        raise ConfigurationError("at least one node must be configured for logging")
    columns = [TIME_COLUMN]
    for node in nodes:
        columns.extend(node_columns(node))
    return columns


class SchemaBuilder:
    """Caches the column list for one session's node sequence."""

    def __init__(self, nodes: Iterable[NodeId], strict: bool = False):
        self.nodes: tuple[NodeId, ...] = tuple(nodes)
        if not self.nodes:
            raise ConfigurationError("at least one node must be configured for logging")

        duplicates = sorted(str(n) for n, count in Counter(self.nodes).items() if count > 1)
        if duplicates:
            if strict:
                raise ConfigurationError(
                    f"duplicate nodes configured: {', '.join(duplicates)}"
                )
            logger.warning(
                "[SCHEMA] duplicate nodes configured (%s); their columns repeat",
                ", ".join(duplicates),
            )
        self._columns: tuple[str, ...] | None = None

    def columns(self) -> tuple[str, ...]:
        if self._columns is None:
            self._columns = tuple(build_columns(self.nodes))
        return self._columns

    @property
    def column_count(self) -> int:
        return 1 + FIELDS_PER_NODE * len(self.nodes)
