# bead_map/merge.py
from __future__ import annotations

"""
Global colour merge over a freshly mapped grid.

Colours are visited from most to least frequent. Each colour that has not
itself been absorbed absorbs every less frequent colour closer than the
threshold (Euclidean RGB, strict '<'). Absorbed colours never absorb others.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Set

import numpy as np

from .colour_convert import rgb_distance
from .core_types import HexStr, PaletteColor, RGBTuple
from .grid_store import GridStore
from .utils import debug_log, warn


@dataclass
class MergeResult:
    """What a merge pass did. `absorbed` maps each merged colour to its survivor."""

    absorbed: Dict[HexStr, HexStr] = field(default_factory=dict)
    cells_rewritten: int = 0
    colours_before: int = 0
    colours_after: int = 0


def colours_by_frequency(grid: GridStore) -> List[HexStr]:
    """
    Identities of countable cells, most frequent first.
    Equal counts keep their first row-major occurrence order.
    """
    codes = grid.codes
    flat = codes[grid.countable_mask()]
    if flat.size == 0:
        return []
    uniq, first, counts = np.unique(flat, return_index=True, return_counts=True)
    encounter = np.argsort(first, kind="stable")
    ordered = sorted(encounter.tolist(), key=lambda k: -int(counts[k]))
    return [grid.registry.identity_at(int(uniq[k])) for k in ordered]


def merge_similar_colours(
    grid: GridStore,
    threshold: float,
    palette: Optional[Sequence[PaletteColor]] = None,
    debug: bool = False,
) -> MergeResult:
    """
    Merge low-frequency colours into more frequent ones within `threshold`.

    Args:
      grid: grid to rewrite in place
      threshold: Euclidean RGB distance; pairs at exactly the threshold stay apart
      palette: colours whose RGB the merge may use; defaults to the grid's registry.
        Grid identities missing from it are skipped with a warning.
      debug: log each merge
    Returns:
      MergeResult
    """
    if threshold < 0:
        raise ValueError("merge threshold must be >= 0")

    rgb_of: Mapping[HexStr, RGBTuple] = {
        c.identity: c.rgb for c in (grid.registry if palette is None else palette)
    }
    by_freq = colours_by_frequency(grid)
    result = MergeResult(colours_before=len(by_freq))
    if not by_freq:
        if debug:
            debug_log("merge: no countable cells, skipping")
        return result

    absorbed: Set[HexStr] = set()
    warned: Set[HexStr] = set()

    def resolve(identity: HexStr) -> Optional[RGBTuple]:
        rgb = rgb_of.get(identity)
        if rgb is None and identity not in warned:
            warned.add(identity)
            warn(f"merge: no RGB for {identity}, leaving its cells unchanged")
        return rgb

    for i, keep in enumerate(by_freq):
        if keep in absorbed:
            continue
        keep_rgb = resolve(keep)
        if keep_rgb is None:
            continue
        for other in by_freq[i + 1 :]:
            if other in absorbed:
                continue
            other_rgb = resolve(other)
            if other_rgb is None:
                continue
            dist = rgb_distance(keep_rgb, other_rgb)
            if dist < threshold:
                absorbed.add(other)
                result.absorbed[other] = keep
                n = grid.rewrite(grid.cells_matching(other), keep)
                result.cells_rewritten += n
                if debug:
                    debug_log(f"merge: {other} -> {keep} (dist {dist:.2f}, {n} cells)")

    grid.recount_all()
    result.colours_after = len(grid.counts)
    if debug:
        debug_log(
            f"merge: {len(result.absorbed)} colour(s) absorbed, "
            f"{result.colours_before} -> {result.colours_after} distinct"
        )
    return result


__all__ = ["MergeResult", "colours_by_frequency", "merge_similar_colours"]
