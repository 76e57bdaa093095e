"""Field formatting for log rows.

Two precision classes exist:

- full: shortest decimal string that parses back to the identical float
  (``1.0 -> "1"``, ``0.1 -> "0.1"``). Used for time, position and velocities.
- compat: 7 significant digits, general format, matching the default
  single-precision conversion of engine-side loggers. Rotation fields use it
  so logs line up with previously captured sessions.
"""

from __future__ import annotations

import numpy as np

FLAG_TRUE = "1"
FLAG_FALSE = "0"

ROTATION_PRECISIONS = ("compat", "full")

# Same switch points as a 17-digit general format.
_POSITIONAL_MIN = 1e-4
_POSITIONAL_MAX = 1e17


def _as_float_scalar(value) -> np.floating:
    if isinstance(value, np.floating):
        return value
    return np.float64(value)


def format_flag(value: bool) -> str:
    return FLAG_TRUE if value else FLAG_FALSE


def format_full(value) -> str:
    """Shortest round-trippable representation, keeping the input's float width."""
    x = _as_float_scalar(value)
    ax = abs(x)
    if ax == 0 or not np.isfinite(x) or _POSITIONAL_MIN <= ax < _POSITIONAL_MAX:
        return np.format_float_positional(x, unique=True, trim="-")
    return np.format_float_scientific(x, unique=True, trim="-")


def format_compat(value) -> str:
    return format(float(value), ".7g")


def rotation_formatter(precision: str):
    if precision == "compat":
        return format_compat
    if precision == "full":
        return format_full
    raise ValueError(
        f"rotation precision must be one of {'|'.join(ROTATION_PRECISIONS)}, got {precision!r}"
    )
