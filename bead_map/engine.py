# bead_map/engine.py
from __future__ import annotations

"""
BeadPatternEngine: the single owner of the grid and everything that edits it.

Typical flow:
  engine = BeadPatternEngine(build_registry())
  engine.regenerate(rgb, alpha, n=50, threshold=30)
  engine.exclude("#ffffff")
  engine.auto_remove_background()
  engine.current_counts()

All calls run to completion synchronously. Refused operations raise before
touching any state; accepted ones update grid and counts together. Full
regenerations commit the palette state (exclusions, selections) only after
mapping and merging have succeeded.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from . import tool_mode as tm
from .colour_convert import hue_order
from .constants import (
    DEFAULT_GRANULARITY,
    DEFAULT_MODE,
    DEFAULT_THRESHOLD,
    DOMINANT,
    FALLBACK_HEX,
    SamplingMode,
)
from .core_types import (
    Cell,
    CountMap,
    HexStr,
    PaletteColor,
    Selections,
    TRANSPARENT,
    TRANSPARENT_CODE,
    U8Image,
    U8Mask,
    assert_u8_image_rgb,
)
from .errors import EmptyPaletteError, PreconditionNotMet
from .exclusion import ExclusionRemapper, ExclusionResult
from .grid_store import GridStore
from .merge import MergeResult, merge_similar_colours
from .palette_data import PaletteRegistry
from .pixelate import grid_rows_for, map_initial
from .region_edit import auto_remove_background, erase, paint_cell, replace_colour
from .selections import all_enabled, validate_selections
from .utils import colour_usage_report, format_seconds_compact, print_config_line


@dataclass(frozen=True)
class RegenerationResult:
    grid: GridStore
    counts: CountMap
    initial_colours: FrozenSet[HexStr]
    merge: MergeResult


@dataclass(frozen=True)
class _Source:
    """Inputs of the last full regeneration."""

    image_rgb: U8Image
    alpha: Optional[U8Mask]
    n: int
    m: int
    threshold: float
    mode: SamplingMode
    erased: Optional[np.ndarray] = None  # cells kept empty on every regeneration


class BeadPatternEngine:
    """Owns the grid store, the exclusion state, selections and the tool mode."""

    def __init__(
        self,
        registry: PaletteRegistry,
        selections: Optional[Mapping[str, Any]] = None,
        debug: bool = False,
    ) -> None:
        self.registry = registry
        self.debug = debug
        self._remapper = ExclusionRemapper(registry)
        self._grid: Optional[GridStore] = None
        self._source: Optional[_Source] = None
        self.tool: tm.ToolMode = tm.NEUTRAL
        self._selections: Selections = all_enabled(registry)
        self.dropped_selection_keys = 0
        if selections is not None:
            self._selections, self.dropped_selection_keys = self._validated(selections)

    # Palette state

    @property
    def selections(self) -> Selections:
        return dict(self._selections)

    @property
    def excluded(self) -> FrozenSet[HexStr]:
        return self._remapper.excluded

    @property
    def initial_colours(self) -> FrozenSet[HexStr]:
        return self._remapper.initial_colours

    def _palette_for(
        self, selections: Mapping[HexStr, bool], excluded: FrozenSet[HexStr]
    ) -> List[PaletteColor]:
        return [
            c
            for c in self.registry
            if selections.get(c.identity, False) and c.identity not in excluded
        ]

    def active_palette(self) -> List[PaletteColor]:
        """Enabled, non-excluded colours in registry order."""
        return self._palette_for(self._selections, self.excluded)

    def _validated(self, raw: Mapping[str, Any]) -> Tuple[Selections, int]:
        """
        Full selections from a raw mapping; unlisted colours are disabled.
        A mapping whose keys are all invalid enables everything, as a loaded
        selections file does. An empty mapping disables everything.
        """
        valid, dropped = validate_selections(raw, self.registry)
        if not valid and dropped:
            return all_enabled(self.registry), dropped
        return {i: valid.get(i, False) for i in self.registry.identities}, dropped

    def set_selections(self, raw: Mapping[str, Any]) -> int:
        """
        Replace the enabled subset (identities missing from `raw` are disabled)
        and regenerate if a grid exists. Returns the number of dropped keys.
        """
        selections, dropped = self._validated(raw)
        if self._source is not None:
            self._run(self._source, self.excluded, selections)
        else:
            self._selections = selections
        self.dropped_selection_keys = dropped
        self.tool = tm.reset(self.tool)
        return dropped

    # Full regeneration

    def regenerate(
        self,
        image_rgb: U8Image,
        alpha: Optional[U8Mask] = None,
        n: int = DEFAULT_GRANULARITY,
        m: Optional[int] = None,
        threshold: float = DEFAULT_THRESHOLD,
        mode: SamplingMode = DEFAULT_MODE,
    ) -> RegenerationResult:
        """
        Map an image onto an n x m grid and merge similar colours.
        A different image than last time starts with no exclusions.
        """
        img = assert_u8_image_rgb(image_rgb)[..., :3]
        if m is None:
            m = grid_rows_for(img.shape[1], img.shape[0], n)
        if threshold < 0:
            raise ValueError("merge threshold must be >= 0")
        same = self._source is not None and self._same_image(img, alpha)
        source = _Source(
            image_rgb=np.array(img, dtype=np.uint8),
            alpha=None if alpha is None else np.array(alpha, dtype=np.uint8),
            n=int(n),
            m=int(m),
            threshold=float(threshold),
            mode=mode,
        )
        excluded = self.excluded if same else frozenset()
        return self._run(source, excluded, self._selections)

    def refresh(self) -> RegenerationResult:
        """Regenerate from the last source with the current palette state."""
        return self._run(self._require_source(), self.excluded, self._selections)

    def _same_image(self, img: np.ndarray, alpha: Optional[np.ndarray]) -> bool:
        src = self._require_source()
        if src.image_rgb.shape != img.shape or not np.array_equal(src.image_rgb, img):
            return False
        if (src.alpha is None) != (alpha is None):
            return False
        return alpha is None or np.array_equal(src.alpha, alpha)

    def _run(
        self,
        source: _Source,
        excluded: FrozenSet[HexStr],
        selections: Selections,
    ) -> RegenerationResult:
        palette = self._palette_for(selections, excluded)
        if not palette:
            raise EmptyPaletteError("no active colours: enable or re-include some colours")
        fallback = self.registry.get(FALLBACK_HEX) or palette[0]

        t0 = time.perf_counter()
        grid = map_initial(
            source.image_rgb,
            source.alpha,
            source.n,
            source.m,
            palette,
            source.mode,
            fallback,
            self.registry,
        )
        if source.erased is not None:
            grid.rewrite(source.erased & ~grid.external, TRANSPARENT)
        merge = merge_similar_colours(grid, source.threshold, palette, debug=self.debug)

        self._grid = grid
        self._source = source
        self._selections = dict(selections)
        self._remapper.set_excluded(excluded)
        self._remapper.snapshot(grid)
        self.tool = tm.reset(self.tool)

        if self.debug:
            print_config_line(
                "regen",
                [
                    ("Grid", f"{source.n}x{source.m}"),
                    ("Threshold", source.threshold),
                    ("Mode", source.mode),
                    ("Palette", len(palette)),
                    ("Colours", len(grid.counts)),
                    ("Beads", grid.total),
                    ("Time", format_seconds_compact(time.perf_counter() - t0)),
                ],
                debug=True,
            )
        return RegenerationResult(grid, grid.counts, self._remapper.initial_colours, merge)

    def load_grid(self, rows: Sequence[Sequence[Optional[str]]]) -> RegenerationResult:
        """
        Install an externally supplied grid as if freshly generated.
        Later regenerations sample a one-pixel-per-cell image of it; erased
        cells stay erased and external cells stay external.
        """
        grid = GridStore.from_hex_rows(rows, self.registry)
        self._remapper.reset()
        self._grid = grid
        self._source = _Source(
            image_rgb=grid.rgb_image(),
            alpha=np.where(grid.external, 0, 255).astype(np.uint8),
            n=grid.width,
            m=grid.height,
            threshold=0.0,
            mode=DOMINANT,
            erased=(grid.codes == TRANSPARENT_CODE) & ~grid.external,
        )
        self._remapper.snapshot(grid)
        self.tool = tm.reset(self.tool)
        return RegenerationResult(grid, grid.counts, self._remapper.initial_colours, MergeResult())

    # Exclusion / inclusion

    def exclude(self, identity: HexStr) -> ExclusionResult:
        result = self._remapper.exclude(self._require_grid(), identity, debug=self.debug)
        self.tool = tm.reset(self.tool)
        return result

    def include(self, identity: HexStr) -> RegenerationResult:
        """Re-include a colour; always a full regeneration."""
        source = self._require_source()
        excluded = self._remapper.without(identity)
        self.tool = tm.reset(self.tool)
        return self._run(source, excluded, self._selections)

    def include_all(self) -> Optional[RegenerationResult]:
        """Re-include every excluded colour; regenerates once if anything changed."""
        source = self._require_source()
        self.tool = tm.reset(self.tool)
        if not self.excluded:
            return None
        return self._run(source, frozenset(), self._selections)

    # Region edits

    def erase(self, row: int, col: int) -> int:
        return erase(self._require_grid(), row, col, debug=self.debug)

    def replace_colour(self, source: HexStr, target: HexStr) -> int:
        return replace_colour(self._require_grid(), source, target, debug=self.debug)

    def auto_remove_background(self) -> int:
        return auto_remove_background(self._require_grid(), debug=self.debug)

    def paint(self, row: int, col: int, identity: HexStr) -> bool:
        return paint_cell(self._require_grid(), row, col, identity)

    # Tool-driven interaction

    def toggle_erase_mode(self) -> tm.ToolMode:
        self.tool = tm.toggle_erase(self.tool)
        return self.tool

    def toggle_colour_replace(self) -> tm.ToolMode:
        self.tool = tm.toggle_colour_replace(self.tool)
        return self.tool

    def toggle_manual_colouring(self) -> tm.ToolMode:
        self.tool = tm.toggle_manual(self.tool)
        return self.tool

    def toggle_region_select(self) -> tm.ToolMode:
        self.tool = tm.toggle_region_select(self.tool)
        return self.tool

    def choose_colour(self, identity: HexStr) -> int:
        """
        Palette pick. While a replace waits for its target this performs the
        replacement and returns the cells changed; otherwise it selects the
        colour for manual colouring and returns 0.
        """
        mode = self.tool
        if isinstance(mode, tm.ColourReplace) and tm.awaiting_replace_target(mode):
            if identity != TRANSPARENT and mode.source is not None:
                n = self.replace_colour(mode.source, identity)
                self.tool = tm.reset(mode)
                return n
        self.tool = tm.select_colour(mode, identity)
        return 0

    def click(self, row: int, col: int) -> Cell:
        """Apply the active tool to one cell; returns the cell as it was before."""
        grid = self._require_grid()
        cell = grid.get(row, col)
        mode = self.tool
        if isinstance(mode, tm.ColourReplace) and mode.step == "select-source":
            if cell.is_countable:
                self.tool = tm.pick_source(mode, cell.identity)
        elif isinstance(mode, tm.Erase):
            if cell.is_countable:
                self.erase(row, col)
                self.tool = tm.reset(mode)
        elif isinstance(mode, tm.ManualColouring) and mode.selected is not None:
            if not cell.is_external:
                self.paint(row, col, mode.selected)
        elif isinstance(mode, tm.RegionSelect):
            self.tool = tm.select_corner(mode, row, col)
        return cell

    def selected_region(self) -> Optional[Tuple[int, int, int, int]]:
        """(top, left, bottom, right) of the completed region selection, if any."""
        mode = self.tool
        return mode.region if isinstance(mode, tm.RegionSelect) else None

    def paint_region(self, identity: HexStr) -> int:
        """Set every non-external cell of the selected region; returns cells changed."""
        grid = self._require_grid()
        region = self.selected_region()
        if region is None:
            raise PreconditionNotMet("no region selected")
        top, left, bottom, right = region
        mask = np.zeros(grid.shape, dtype=bool)
        mask[top : bottom + 1, left : right + 1] = True
        return grid.rewrite(mask & ~grid.external, identity)

    # Queries

    def _require_grid(self) -> GridStore:
        if self._grid is None:
            raise PreconditionNotMet("no grid has been generated yet")
        return self._grid

    def _require_source(self) -> _Source:
        if self._source is None:
            raise PreconditionNotMet("no image has been mapped yet")
        return self._source

    def current_grid(self) -> GridStore:
        return self._require_grid()

    def current_counts(self) -> CountMap:
        return self._require_grid().counts

    def current_total(self) -> int:
        return self._require_grid().total

    def usage_report(self) -> List[Tuple[HexStr, str, int]]:
        return colour_usage_report(self.current_counts(), self.registry.key_of)

    def colours_by_hue(self) -> List[HexStr]:
        """Identities on the grid ordered for display by hue."""
        identities = list(self.current_counts())
        rgbs = [self.registry.colour_at(self.registry.code_of(i)).rgb for i in identities]
        return [identities[k] for k in hue_order(rgbs).tolist()]

    def summary(self) -> Dict[str, Any]:
        grid = self._require_grid()
        return {
            "width": grid.width,
            "height": grid.height,
            "colours": len(grid.counts),
            "beads": grid.total,
            "excluded": len(self.excluded),
        }


__all__ = ["BeadPatternEngine", "RegenerationResult"]
