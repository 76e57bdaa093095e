"""Fixed-rate capture of tracked node telemetry into append-only CSV logs."""

__version__ = "0.1.0"
