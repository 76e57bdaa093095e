"""CLI config and defaults."""

from __future__ import annotations

import argparse
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .control.formatting import ROTATION_PRECISIONS
from .control.nodes import DEFAULT_NODES, NodeId, parse_node_list
from .errors import ConfigurationError
from .sink import DEFAULT_FILENAME_SUFFIX

TRACKING_PROVIDERS = ("synthetic", "udp-bridge")
LOG_LEVELS = ("debug", "info", "warning", "error")
DEFAULT_NODES_TEXT = ",".join(n.value for n in DEFAULT_NODES)


@dataclass(frozen=True)
class AppConfig:
    nodes: str = DEFAULT_NODES_TEXT
    strict_nodes: bool = False
    output_dir: str = "captures"
    filename_suffix: str = DEFAULT_FILENAME_SUFFIX
    tick_hz: float = 50.0
    duration_s: float = 0.0
    max_ticks: int = 0
    rotation_precision: str = "compat"
    fsync: bool = False
    tracking_provider: str = "synthetic"
    bridge_host: str = "127.0.0.1"
    bridge_port: int = 24568
    bridge_stale_s: float = 0.5
    synthetic_warmup_ticks: int = 0
    status_hz: float = 1.0
    log_level: str = "info"

    def node_ids(self) -> tuple[NodeId, ...]:
        return parse_node_list(self.nodes)


_APP_CONFIG_FIELDS = {f.name for f in fields(AppConfig)}
_BOOL_FIELDS = {"strict_nodes", "fsync"}
_INT_FIELDS = {"max_ticks", "bridge_port", "synthetic_warmup_ticks"}
_FLOAT_FIELDS = {"tick_hz", "duration_s", "bridge_stale_s", "status_hz"}
_STRING_FIELDS = {
    "output_dir",
    "filename_suffix",
    "rotation_precision",
    "tracking_provider",
    "bridge_host",
    "log_level",
}


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        s = value.strip().lower()
        if s in {"1", "true", "yes", "on"}:
            return True
        if s in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"config key '{key}' expects a bool, got {value!r}")


def _coerce_nodes(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    raise ValueError(f"config key 'nodes' expects a list or comma-separated string, got {value!r}")


def _coerce_config_value(key: str, value: Any) -> Any:
    try:
        if key == "nodes":
            return _coerce_nodes(value)
        if key in _BOOL_FIELDS:
            return _parse_bool(value, key)
        if key in _INT_FIELDS:
            return int(value)
        if key in _FLOAT_FIELDS:
            return float(value)
        if key in _STRING_FIELDS:
            return "" if value is None else str(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid value for config key '{key}': {value!r}") from exc
    raise ValueError(f"unsupported config key '{key}'")


def _normalize_config_key(raw_key: Any) -> str:
    if not isinstance(raw_key, str):
        raise ValueError(f"config key must be string, got {type(raw_key).__name__}")
    key = raw_key.strip().replace("-", "_")
    if not key:
        raise ValueError("config key cannot be empty")
    return key


def _load_yaml_config(path: str) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ValueError(f"--config file not found: {p}")
    if not p.is_file():
        raise ValueError(f"--config must point to a file: {p}")

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"failed to read --config file {p}: {exc}") from exc
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"failed to parse YAML config {p}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"--config root must be a mapping/object, got {type(loaded).__name__}")

    normalized: dict[str, Any] = {}
    for raw_key, raw_value in loaded.items():
        key = _normalize_config_key(raw_key)
        if key not in _APP_CONFIG_FIELDS:
            raise ValueError(f"unknown config key in {p}: {raw_key!r}")
        normalized[key] = _coerce_config_value(key, raw_value)
    return normalized


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="node-logger",
        description="Capture tracked node poses into an append-only CSV log.",
    )
    ap.add_argument(
        "--config",
        type=str,
        default="",
        help="YAML config file path. CLI args override YAML values.",
    )
    ap.add_argument(
        "--nodes",
        type=str,
        default=DEFAULT_NODES_TEXT,
        help=(
            "Comma-separated nodes to log, in column order. "
            f"Known: {','.join(n.value for n in NodeId)}"
        ),
    )
    ap.add_argument(
        "--strict-nodes",
        action="store_true",
        help="Reject duplicate nodes instead of logging repeated columns.",
    )
    ap.add_argument(
        "--output-dir",
        type=str,
        default="captures",
        help="Directory for the CSV log (created if missing).",
    )
    ap.add_argument(
        "--filename-suffix",
        type=str,
        default=DEFAULT_FILENAME_SUFFIX,
        help="Appended to the session start timestamp to form the file name.",
    )
    ap.add_argument("--tick-hz", type=float, default=50.0, help="Capture rate in Hz.")
    ap.add_argument(
        "--duration-s",
        type=float,
        default=0.0,
        help="Stop after this many seconds (0 = until interrupted).",
    )
    ap.add_argument(
        "--max-ticks",
        type=int,
        default=0,
        help="Stop after this many ticks (0 = unbounded).",
    )
    ap.add_argument(
        "--rotation-precision",
        choices=list(ROTATION_PRECISIONS),
        default="compat",
        help="Rotation field precision: 7-digit compat output or full round-trip.",
    )
    ap.add_argument(
        "--fsync",
        action="store_true",
        help="fsync the log after every row.",
    )
    ap.add_argument(
        "--tracking-provider",
        choices=list(TRACKING_PROVIDERS),
        default="synthetic",
        help="Tracking backend: synthetic motion or external bridge over UDP.",
    )
    ap.add_argument(
        "--bridge-host",
        type=str,
        default="127.0.0.1",
        help="Host for the tracking bridge UDP stream.",
    )
    ap.add_argument(
        "--bridge-port",
        type=int,
        default=24568,
        help="Port for the tracking bridge UDP stream.",
    )
    ap.add_argument(
        "--bridge-stale-s",
        type=float,
        default=0.5,
        help="Log bridge nodes as untracked after this many seconds without packets.",
    )
    ap.add_argument(
        "--synthetic-warmup-ticks",
        type=int,
        default=0,
        help="Ticks before the synthetic provider reports ready.",
    )
    ap.add_argument(
        "--status-hz",
        type=float,
        default=1.0,
        help="Status log rate in Hz (0 disables).",
    )
    ap.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        default="info",
        help="Global log level.",
    )
    return ap


def validate_config(cfg: AppConfig) -> None:
    try:
        cfg.node_ids()
    except ConfigurationError as exc:
        raise ValueError(f"--nodes: {exc}") from exc
    node_ids = cfg.node_ids()
    if not node_ids:
        raise ValueError("--nodes must list at least one node")
    if cfg.strict_nodes and len(set(node_ids)) != len(node_ids):
        raise ValueError("--nodes contains duplicates while --strict-nodes is set")
    if not str(cfg.output_dir).strip():
        raise ValueError("--output-dir must be non-empty")
    if not cfg.filename_suffix or any(sep in cfg.filename_suffix for sep in ("/", "\\")):
        raise ValueError(
            f"--filename-suffix must be a plain file name suffix, got {cfg.filename_suffix!r}"
        )
    if not math.isfinite(cfg.tick_hz) or cfg.tick_hz <= 0.0:
        raise ValueError(f"--tick-hz must be > 0, got {cfg.tick_hz}")
    if cfg.duration_s < 0.0:
        raise ValueError(f"--duration-s must be >= 0, got {cfg.duration_s}")
    if cfg.max_ticks < 0:
        raise ValueError(f"--max-ticks must be >= 0, got {cfg.max_ticks}")
    if cfg.rotation_precision not in ROTATION_PRECISIONS:
        raise ValueError(
            f"--rotation-precision must be one of compat|full, got {cfg.rotation_precision}"
        )
    if cfg.tracking_provider not in TRACKING_PROVIDERS:
        raise ValueError(
            f"--tracking-provider must be one of synthetic|udp-bridge, got {cfg.tracking_provider}"
        )
    if not cfg.bridge_host.strip():
        raise ValueError("--bridge-host must be non-empty")
    if not (1 <= cfg.bridge_port <= 65535):
        raise ValueError(f"--bridge-port must be in [1,65535], got {cfg.bridge_port}")
    if not math.isfinite(cfg.bridge_stale_s) or cfg.bridge_stale_s <= 0.0:
        raise ValueError(f"--bridge-stale-s must be > 0, got {cfg.bridge_stale_s}")
    if cfg.synthetic_warmup_ticks < 0:
        raise ValueError(
            f"--synthetic-warmup-ticks must be >= 0, got {cfg.synthetic_warmup_ticks}"
        )
    if cfg.status_hz < 0.0:
        raise ValueError(f"--status-hz must be >= 0, got {cfg.status_hz}")
    if cfg.log_level not in LOG_LEVELS:
        raise ValueError(f"--log-level must be one of debug|info|warning|error, got {cfg.log_level}")


def parse_args(argv=None) -> AppConfig:
    bootstrap = argparse.ArgumentParser(add_help=False)
    bootstrap.add_argument("--config", type=str, default="")
    bootstrap_ns, _ = bootstrap.parse_known_args(argv)

    yaml_cfg: dict[str, Any] = {}
    yaml_error: Optional[str] = None
    if bootstrap_ns.config:
        try:
            yaml_cfg = _load_yaml_config(bootstrap_ns.config)
        except ValueError as exc:
            yaml_error = str(exc)

    ap = build_arg_parser()
    if yaml_error is not None:
        ap.error(yaml_error)
    if yaml_cfg:
        ap.set_defaults(**yaml_cfg)
    args = ap.parse_args(argv)

    cfg = AppConfig(
        nodes=args.nodes,
        strict_nodes=args.strict_nodes,
        output_dir=args.output_dir,
        filename_suffix=args.filename_suffix,
        tick_hz=float(args.tick_hz),
        duration_s=float(args.duration_s),
        max_ticks=args.max_ticks,
        rotation_precision=args.rotation_precision,
        fsync=args.fsync,
        tracking_provider=args.tracking_provider,
        bridge_host=args.bridge_host,
        bridge_port=args.bridge_port,
        bridge_stale_s=float(args.bridge_stale_s),
        synthetic_warmup_ticks=args.synthetic_warmup_ticks,
        status_hz=float(args.status_hz),
        log_level=args.log_level,
    )
    try:
        validate_config(cfg)
    except ValueError as exc:
        ap.error(str(exc))
    return cfg
