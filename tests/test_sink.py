from datetime import datetime

import pytest

from node_logger.sink import log_filename, open_sink, resolve_log_path


def test_log_filename_uses_session_start_timestamp():
    now = datetime(2025, 3, 7, 9, 5, 1)
    assert log_filename(now) == "2025-03-07_09-05-01_DeviceNodes.csv"
    assert log_filename(now, "_Run.csv") == "2025-03-07_09-05-01_Run.csv"


def test_resolve_log_path_creates_missing_directory(tmp_path):
    target = tmp_path / "nested" / "captures"
    path = resolve_log_path(target, now=datetime(2025, 1, 2, 3, 4, 5))
    assert target.is_dir()
    assert path == target / "2025-01-02_03-04-05_DeviceNodes.csv"


def test_resolve_log_path_rejects_file_as_directory(tmp_path):
    not_a_dir = tmp_path / "file.txt"
    not_a_dir.write_text("x", encoding="utf-8")
    with pytest.raises(ValueError, match="not a directory"):
        resolve_log_path(not_a_dir)


def test_open_sink_appends_to_existing_content(tmp_path):
    path = tmp_path / "log.csv"
    path.write_bytes(b"LogTime\n")
    with open_sink(path) as sink:
        sink.write(b"0.5\n")
    assert path.read_bytes() == b"LogTime\n0.5\n"
