"""
Node telemetry capture:
- Tracking provider (synthetic motion or external runtime bridge over UDP)
- Fixed-rate tick loop owned by the provider
- One CSV row per tick: LogTime + 18 fields per configured node
- Header written lazily on the first ready tick
- Rows appended and flushed synchronously so a crash loses at most one row
"""

from __future__ import annotations

import logging

from .config import parse_args
from .control.row_writer import SampleRowWriter
from .control.session import CaptureSession
from .control.status import StatusReporter
from .errors import ConfigurationError
from .sink import open_sink, resolve_log_path
from .tracking_providers import SyntheticTrackingProvider, UdpBridgeTrackingProvider

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_tracking_provider(cfg):
    if cfg.tracking_provider == "synthetic":
        return SyntheticTrackingProvider(
            tick_hz=cfg.tick_hz,
            warmup_ticks=cfg.synthetic_warmup_ticks,
        )
    if cfg.tracking_provider == "udp-bridge":
        return UdpBridgeTrackingProvider(
            tick_hz=cfg.tick_hz,
            bridge_host=cfg.bridge_host,
            bridge_port=cfg.bridge_port,
            stale_after_s=cfg.bridge_stale_s,
        )
    raise RuntimeError(f"Unsupported tracking provider: {cfg.tracking_provider}")


def run(argv=None):
    cfg = parse_args(argv)
    configure_logging(cfg.log_level)
    nodes = cfg.node_ids()

    provider = build_tracking_provider(cfg)
    try:
        path = resolve_log_path(cfg.output_dir, cfg.filename_suffix)
        logger.info("[SINK] logging %d nodes to: %s", len(nodes), path)
        sink = open_sink(path)
        try:
            writer = SampleRowWriter(
                provider=provider,
                sink=sink,
                nodes=nodes,
                rotation_precision=cfg.rotation_precision,
                fsync=cfg.fsync,
                strict_nodes=cfg.strict_nodes,
            )
        except ConfigurationError:
            sink.close()
            raise
        session = CaptureSession(
            writer=writer,
            provider=provider,
            status=StatusReporter(status_hz=cfg.status_hz),
            max_ticks=cfg.max_ticks,
            duration_s=cfg.duration_s,
        )
        try:
            session.run()
        except KeyboardInterrupt:
            logger.info("[CAPTURE] interrupted")
        finally:
            writer.close()
    finally:
        provider.close()
    return session.stats


def main(argv=None) -> None:
    run(argv)


if __name__ == "__main__":
    main()
