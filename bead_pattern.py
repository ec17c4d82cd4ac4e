#!/usr/bin/env python3
"""
bead_pattern.py
Turn an image into a bead pattern grid and print the colour usage.

Usage:
  python bead_pattern.py INPUT --granularity N --threshold T --mode [dominant|average]
                         [--selections FILE] [--exclude HEX ...] [--remove-background]
                         [--erase ROW COL] [--replace SRC DST] [--report-limit K] [--debug]

Steps:
  1. Map the image onto an N-column grid of palette colours (rows follow the aspect ratio).
  2. Merge colours closer than T (Euclidean RGB) into more frequent ones.
  3. Apply edits in order: exclusions, background removal, erase, replace.
  4. Print grid size, colour usage and bead total.

Notes:
  Palette data comes from bead_map.palette_data; selections are a JSON object
  {"#rrggbb": true|false}. Refused edits are reported and the run continues.
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from bead_map import BeadPatternEngine, build_registry
from bead_map.constants import (
    DEFAULT_GRANULARITY,
    DEFAULT_MODE,
    DEFAULT_THRESHOLD,
    MAX_GRID_SIDE,
    REPORT_LIMIT,
    SAMPLING_MODES,
)
from bead_map.core_types import normalise_hex
from bead_map.errors import BeadMapError, InvariantViolation
from bead_map.image_io import is_image_file, load_image_rgba
from bead_map.selections import load_selections
from bead_map.utils import (
    debug_log,
    error,
    format_percentage,
    format_seconds_compact,
    key_value_pairs_to_string,
    log,
    print_banner,
    print_config_line,
    warn,
)


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Returns:
      argparse.Namespace with:
        src: Path to the image
        granularity: grid columns N
        threshold: merge threshold
        mode: "dominant" | "average"
        selections: optional Path to a selections JSON file
        exclude: list of hex identities to exclude, in order
        remove_background: bool
        erase: optional [row, col]
        replace: optional [source_hex, target_hex]
        report_limit: rows of the usage report to print (0 = all)
        debug: bool for verbose details
    """
    parser = argparse.ArgumentParser(
        prog="bead_pattern",
        description="Convert an image into a bead pattern grid.",
    )
    parser.add_argument("src", type=Path, help="Input image")
    parser.add_argument(
        "--granularity",
        type=int,
        default=DEFAULT_GRANULARITY,
        help=f"Grid columns (1..{MAX_GRID_SIDE}).",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=DEFAULT_THRESHOLD,
        help="Merge colours closer than this RGB distance. 0 disables merging.",
    )
    parser.add_argument(
        "--mode", choices=list(SAMPLING_MODES), default=DEFAULT_MODE, help="Cell sampling."
    )
    parser.add_argument(
        "--selections", type=Path, default=None, help="Palette selections JSON file"
    )
    parser.add_argument(
        "--exclude", nargs="+", default=[], metavar="HEX", help="Colours to exclude"
    )
    parser.add_argument(
        "--remove-background",
        action="store_true",
        help="Erase the border-majority colour reachable from the border",
    )
    parser.add_argument(
        "--erase", nargs=2, type=int, metavar=("ROW", "COL"), help="Erase a region"
    )
    parser.add_argument(
        "--replace", nargs=2, metavar=("SRC", "DST"), help="Replace one colour everywhere"
    )
    parser.add_argument(
        "--report-limit", type=int, default=REPORT_LIMIT, help="Usage rows to print (0 = all)"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose details")
    return parser.parse_args(argv)


def _refused(what: str, exc: BeadMapError) -> None:
    reason = exc.reason if isinstance(exc, InvariantViolation) else type(exc).__name__
    warn(f"{what} refused ({reason}): {exc}")


def _apply_edits(engine: BeadPatternEngine, args: argparse.Namespace) -> None:
    for raw in args.exclude:
        try:
            res = engine.exclude(normalise_hex(raw))
            log(f"Excluded {res.identity}: {res.cells_remapped:,} cell(s) -> {res.replacement or '-'}")
        except ValueError as exc:
            warn(f"exclude {raw}: {exc}")
        except BeadMapError as exc:
            _refused(f"exclude {raw}", exc)

    if args.remove_background:
        try:
            log(f"Background removed: {engine.auto_remove_background():,} cell(s)")
        except BeadMapError as exc:
            _refused("background removal", exc)

    if args.erase:
        row, col = args.erase
        try:
            log(f"Erased {engine.erase(row, col):,} cell(s) from ({row}, {col})")
        except IndexError as exc:
            warn(f"erase: {exc}")
        except BeadMapError as exc:
            _refused("erase", exc)

    if args.replace:
        src_hex, dst_hex = args.replace
        try:
            n = engine.replace_colour(normalise_hex(src_hex), normalise_hex(dst_hex))
            log(f"Replaced {n:,} cell(s)")
        except ValueError as exc:
            warn(f"replace: {exc}")


def _print_report(engine: BeadPatternEngine, limit: int) -> None:
    grid = engine.current_grid()
    total = engine.current_total()
    rows = engine.usage_report()
    log(f"Grid: {grid.width}x{grid.height} | colours={len(rows)} | excluded={len(engine.excluded)}")
    log("Colours used:")
    shown = rows if limit <= 0 else rows[:limit]
    for hex_code, key, count in shown:
        share = count / total if total else 0.0
        log(f"  {key:>4}  {hex_code}: {count:,}  ({format_percentage(share)})")
    if len(shown) < len(rows):
        log(f"  ... {len(rows) - len(shown)} more")
    log(f"Total beads: {total:,}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point. Returns a process exit code."""
    args = parse_cli_args(argv)
    t_start = time.perf_counter()

    src: Path = args.src
    if not src.exists() or not is_image_file(src):
        error(f"not a readable image: {src}")
        return 2

    registry = build_registry()
    selections = None
    if args.selections is not None:
        selections, dropped = load_selections(args.selections, registry)
        if dropped:
            log(f"Selections: dropped {dropped} invalid entr{'y' if dropped == 1 else 'ies'}")

    engine = BeadPatternEngine(registry, selections=selections, debug=args.debug)
    print_banner(src.name)
    print_config_line(
        "run",
        [
            ("Granularity", args.granularity),
            ("Threshold", args.threshold),
            ("Mode", args.mode),
            ("Palette", len(engine.active_palette())),
        ],
        debug=False,
    )

    rgb, alpha = load_image_rgba(src)
    if args.debug:
        debug_log(key_value_pairs_to_string([("Loaded", f"{rgb.shape[1]}x{rgb.shape[0]}")]))
    try:
        result = engine.regenerate(
            rgb, alpha, n=args.granularity, threshold=args.threshold, mode=args.mode
        )
    except (BeadMapError, ValueError) as exc:
        error(f"cannot generate pattern: {exc}")
        return 1
    if result.merge.absorbed:
        log(f"Merged {len(result.merge.absorbed)} similar colour(s)")

    _apply_edits(engine, args)
    _print_report(engine, args.report_limit)
    log(f"Total time {format_seconds_compact(time.perf_counter() - t_start)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
