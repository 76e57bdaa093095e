"""Log destination: file naming, directory creation, append-mode open."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

DEFAULT_FILENAME_SUFFIX = "_DeviceNodes.csv"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def log_filename(now: datetime, suffix: str = DEFAULT_FILENAME_SUFFIX) -> str:
    return f"{now.strftime(TIMESTAMP_FORMAT)}{suffix}"


def resolve_log_path(
    output_dir: str | Path,
    suffix: str = DEFAULT_FILENAME_SUFFIX,
    now: Optional[datetime] = None,
) -> Path:
    """Return ``<output_dir>/<session start>_DeviceNodes.csv``, creating the directory."""
    directory = Path(output_dir).expanduser()
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        logger.info("[SINK] created directory: %s", directory)
    elif not directory.is_dir():
        raise ValueError(f"output path is not a directory: {directory}")
    return directory / log_filename(now or datetime.now(), suffix)


def open_sink(path: str | Path) -> BinaryIO:
    """Open the log file for appending bytes. Existing content is kept."""
    return open(path, "ab")
