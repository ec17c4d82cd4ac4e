# bead_map/region_edit.py
from __future__ import annotations

"""
Region edits on a grid store.

Exports:
  flood_fill(grid, seeds, identity) -> bool mask
  border_cells(height, width)       -> row-major border coordinates
  detect_background(grid)           -> identity or None
  erase(grid, row, col)             -> cells erased
  replace_colour(grid, src, dst)    -> cells changed
  auto_remove_background(grid)      -> cells erased
  paint_cell(grid, row, col, ident) -> changed?

Flood fills are 4-connected, use an explicit stack, and never enter external
cells or cells of another identity. Each operator validates first and then
applies grid and count changes in a single rewrite, so a refusal leaves the
grid untouched.
"""

from collections import Counter
from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np

from .core_types import HexStr, TRANSPARENT
from .errors import (
    NO_BACKGROUND,
    NOT_ERASABLE,
    NOT_PAINTABLE,
    NOTHING_REMOVABLE,
    InvariantViolation,
)
from .grid_store import GridStore
from .utils import debug_log

Coord = Tuple[int, int]

_NEIGHBOURS = ((-1, 0), (1, 0), (0, -1), (0, 1))


def flood_fill(grid: GridStore, seeds: Iterable[Coord], identity: HexStr) -> np.ndarray:
    """
    Cells 4-connected to any seed through non-external cells holding `identity`.
    Seeds that do not hold `identity` contribute nothing.
    """
    code = grid.registry.code_of(identity)
    codes = grid.codes
    external = grid.external
    height, width = grid.shape
    matches = (codes == code) & ~external
    visited = np.zeros((height, width), dtype=bool)

    stack: List[Coord] = []
    for r, c in seeds:
        if 0 <= r < height and 0 <= c < width and matches[r, c] and not visited[r, c]:
            visited[r, c] = True
            stack.append((r, c))

    while stack:
        r, c = stack.pop()
        for dr, dc in _NEIGHBOURS:
            nr, nc = r + dr, c + dc
            if 0 <= nr < height and 0 <= nc < width:
                if matches[nr, nc] and not visited[nr, nc]:
                    visited[nr, nc] = True
                    stack.append((nr, nc))
    return visited


def border_cells(height: int, width: int) -> Iterator[Coord]:
    """Each border cell once, in row-major order."""
    for r in range(height):
        if r == 0 or r == height - 1:
            for c in range(width):
                yield (r, c)
        else:
            yield (r, 0)
            if width > 1:
                yield (r, width - 1)


def detect_background(grid: GridStore) -> Optional[HexStr]:
    """
    Most frequent countable identity on the grid border.
    Ties go to the identity met first in the border scan.
    """
    tally: Counter[HexStr] = Counter()
    for r, c in border_cells(*grid.shape):
        cell = grid.get(r, c)
        if cell.is_countable:
            tally[cell.identity] += 1
    if not tally:
        return None
    # Counter preserves insertion order and max() keeps the first maximum
    return max(tally, key=lambda k: tally[k])


def erase(grid: GridStore, row: int, col: int, debug: bool = False) -> int:
    """Erase the 4-connected region of the start cell's colour. Returns cells erased."""
    cell = grid.get(row, col)
    if not cell.is_countable:
        what = "external" if cell.is_external else "already erased"
        raise InvariantViolation(NOT_ERASABLE, f"cell ({row}, {col}) is {what}")
    region = flood_fill(grid, [(row, col)], cell.identity)
    n = grid.rewrite(region, TRANSPARENT)
    if debug:
        debug_log(f"erase: {n} cell(s) of {cell.identity} from ({row}, {col})")
    return n


def replace_colour(
    grid: GridStore, source: HexStr, target: HexStr, debug: bool = False
) -> int:
    """
    Rewrite every non-external cell holding `source` to `target`, regardless
    of connectivity. Returns the number of cells changed.
    """
    if source == TRANSPARENT or target == TRANSPARENT:
        raise ValueError("replace_colour works on palette colours; use erase to clear cells")
    grid.registry.code_of(target)
    if source == target:
        return 0
    n = grid.rewrite(grid.cells_matching(source), target)
    if debug:
        debug_log(f"replace: {n} cell(s) {source} -> {target}")
    return n


def auto_remove_background(grid: GridStore, debug: bool = False) -> int:
    """
    Erase the border-majority colour everywhere it is reachable from the border.
    Enclosed islands of the same colour are kept. Returns cells erased.
    """
    target = detect_background(grid)
    if target is None:
        raise InvariantViolation(NO_BACKGROUND, "no background colour on the grid border")

    seeds = [
        (r, c) for r, c in border_cells(*grid.shape) if grid.identity_at(r, c) == target
    ]
    region = flood_fill(grid, seeds, target)
    if not region.any():
        raise InvariantViolation(NOTHING_REMOVABLE, "no removable background region")
    n = grid.rewrite(region, TRANSPARENT)
    if debug:
        debug_log(f"background: {target} from {len(seeds)} seed(s), {n} cell(s) erased")
    return n


def paint_cell(grid: GridStore, row: int, col: int, identity: HexStr) -> bool:
    """Set one cell to a palette colour or TRANSPARENT. External cells are refused."""
    cell = grid.get(row, col)
    if cell.is_external:
        raise InvariantViolation(NOT_PAINTABLE, f"cell ({row}, {col}) is external")
    return grid.set(row, col, identity)


__all__ = [
    "flood_fill",
    "border_cells",
    "detect_background",
    "erase",
    "replace_colour",
    "auto_remove_background",
    "paint_cell",
]
