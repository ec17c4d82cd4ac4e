# bead_map/utils.py
from __future__ import annotations

"""
Shared utilities for bead_map.

Includes time formatting, the colour usage report, and tidy logging.
"""

import sys
from typing import Any, Iterable, List, Mapping, Tuple

from .core_types import HexStr, KeyOf


#  Time / size formatting


def format_seconds_compact(seconds: float) -> str:
    """Human-friendly seconds: '<ms>ms', '<s>s', or 'Mm Ss'."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - 60 * minutes:.1f}s"


# Reports


def colour_usage_report(
    counts: Mapping[HexStr, int], key_of: KeyOf
) -> List[Tuple[HexStr, str, int]]:
    """
    Colour usage rows for the current grid.

    Returns a list of (hex, display key, count) sorted by count descending,
    ties keeping the insertion order of `counts`.
    """
    rows = sorted(counts.items(), key=lambda kv: -int(kv[1]))
    return [(hx, key_of.get(hx, "?"), int(n)) for hx, n in rows]


# Pretty logging


def format_bool_on_off(value: Any) -> str:
    """Pretty boolean: 'on'/'off' for bools; str(value) otherwise."""
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


def format_number_compact(value: Any) -> str:
    """Pretty number: 1_234 style for ints; compact for floats; passthrough otherwise."""
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        text = f"{value:.3f}".rstrip("0").rstrip(".")
        return text
    return str(value)


def format_percentage(x: float, decimals: int = 1) -> str:
    """Format percentage; accepts 0..1 or 0..100 inputs."""
    val = x * 100.0 if 0.0 <= x <= 1.0 else x
    return f"{val:.{decimals}f}%"


def key_value_pairs_to_string(
    pairs: Iterable[Tuple[str, Any]], sep: str = "  ", eq: str = ": "
) -> str:
    """
    Format (name, value) pairs as 'Name: value' blocks separated by sep.
    Uses format_bool_on_off / format_number_compact for readability.
    """
    out: List[str] = []
    for name, value in pairs:
        display = (
            format_bool_on_off(value)
            if isinstance(value, bool)
            else format_number_compact(value)
        )
        out.append(f"{name}{eq}{display}")
    return sep.join(out)


def print_config_line(
    section: str, pairs: Iterable[Tuple[str, Any]], debug: bool
) -> None:
    """
    Emit a single human-readable config line, e.g.:
      [regen] Grid: 50x38  Threshold: 30  Mode: dominant  Palette: 221
    Routes to debug_log() when debug=True, else to log().
    """
    line = f"[{section}] {key_value_pairs_to_string(pairs)}"
    (debug_log if debug else log)(line)


def print_banner(title: str) -> None:
    """Section banner."""
    print(f"\n=== {title} ===", flush=True)


def log(message: str) -> None:
    """Plain log line."""
    print(message, flush=True)


def debug_log(message: str) -> None:
    """Debug log line."""
    print(f"[debug] {message}", flush=True)


def warn(message: str) -> None:
    """Warning log line."""
    print(f"[warn] {message}", flush=True)


def error(message: str) -> None:
    """Error log line to stderr."""
    print(f"[error] {message}", file=sys.stderr, flush=True)


__all__ = [
    # formatting
    "format_seconds_compact",
    "format_bool_on_off",
    "format_number_compact",
    "format_percentage",
    # reports
    "colour_usage_report",
    # logging
    "key_value_pairs_to_string",
    "print_config_line",
    "print_banner",
    "log",
    "debug_log",
    "warn",
    "error",
]
