# bead_map/pixelate.py
from __future__ import annotations

"""
Initial grid mapping.

Splits an RGBA image into N x M cells, samples one colour per cell and snaps
it to the nearest active palette colour (Euclidean RGB). Cells without any
opaque pixel become external padding.

Exports:
  grid_rows_for(width, height, columns) -> int
  cell_bounds(length, parts)            -> list of (start, end)
  sample_cell(pixels, mode)             -> RGB row
  map_initial(image_rgb, alpha, n, m, palette, mode, fallback, registry) -> GridStore
"""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .colour_convert import nearest_indices
from .constants import ALPHA_THRESHOLD, AVERAGE, DOMINANT, MAX_GRID_SIDE, SamplingMode
from .core_types import (
    PaletteColor,
    TRANSPARENT_CODE,
    U8Image,
    U8Mask,
    assert_u8_image_rgb,
    assert_u8_mask_2d,
)
from .grid_store import GridStore
from .palette_data import PaletteRegistry


def grid_rows_for(width: int, height: int, columns: int) -> int:
    """Row count M that keeps square cells for an image of the given size."""
    if width <= 0 or height <= 0:
        raise ValueError("image has no pixels")
    return max(1, int(round(columns * height / float(width))))


def cell_bounds(length: int, parts: int) -> List[Tuple[int, int]]:
    """Split [0, length) into `parts` spans of at least one pixel each."""
    spans: List[Tuple[int, int]] = []
    for i in range(parts):
        start = min(int(math.floor(i * length / parts)), length - 1)
        end = max(start + 1, int(math.floor((i + 1) * length / parts)))
        spans.append((start, min(end, length)))
    return spans


def sample_cell(pixels: np.ndarray, mode: SamplingMode) -> np.ndarray:
    """
    One representative colour for a cell's opaque pixels (array [K,3], K >= 1).
      dominant: most frequent colour, first seen on ties
      average : channel mean, rounded
    """
    if mode == AVERAGE:
        return np.rint(pixels.astype(np.float64).mean(axis=0)).astype(np.int32)
    uniq, first, counts = np.unique(pixels, axis=0, return_index=True, return_counts=True)
    best = np.flatnonzero(counts == counts.max())
    pick = best[np.argmin(first[best])]
    return uniq[pick].astype(np.int32)


def map_initial(
    image_rgb: U8Image,
    alpha: Optional[U8Mask],
    n: int,
    m: int,
    palette: Sequence[PaletteColor],
    mode: SamplingMode,
    fallback: PaletteColor,
    registry: PaletteRegistry,
) -> GridStore:
    """
    Map an image onto an n-column, m-row grid of palette colours.

    Args:
      image_rgb: uint8 [H,W,3] (or 4; extra channels ignored)
      alpha: uint8 [H,W] or None for fully opaque
      n, m: grid columns and rows
      palette: active colours, all present in `registry`
      mode: "dominant" or "average"
      fallback: colour used for every cell when the palette is empty
      registry: registry the grid codes refer to
    Returns:
      GridStore with counts computed
    """
    img = assert_u8_image_rgb(image_rgb)[..., :3]
    height, width = img.shape[:2]
    if mode not in (DOMINANT, AVERAGE):
        raise ValueError(f"unknown sampling mode {mode!r}")
    if not (1 <= n <= MAX_GRID_SIDE and 1 <= m <= MAX_GRID_SIDE):
        raise ValueError(f"grid sides must be within 1..{MAX_GRID_SIDE}")
    if alpha is None:
        opaque = np.ones((height, width), dtype=bool)
    else:
        mask = assert_u8_mask_2d(alpha)
        if mask.shape != (height, width):
            raise ValueError("alpha shape does not match image")
        opaque = mask >= ALPHA_THRESHOLD

    codes = np.full((m, n), TRANSPARENT_CODE, dtype=np.int32)
    external = np.zeros((m, n), dtype=bool)
    samples: List[np.ndarray] = []
    positions: List[Tuple[int, int]] = []

    for r, (y0, y1) in enumerate(cell_bounds(height, m)):
        for c, (x0, x1) in enumerate(cell_bounds(width, n)):
            block_mask = opaque[y0:y1, x0:x1]
            if not block_mask.any():
                external[r, c] = True
                continue
            samples.append(sample_cell(img[y0:y1, x0:x1][block_mask], mode))
            positions.append((r, c))

    if positions:
        if palette:
            pal_rgb = np.array([p.rgb for p in palette], dtype=np.int32)
            pal_codes = np.array([registry.code_of(p.identity) for p in palette], dtype=np.int32)
            picked = pal_codes[nearest_indices(np.stack(samples), pal_rgb)]
        else:
            picked = np.full(len(positions), registry.code_of(fallback.identity), dtype=np.int32)
        rows, cols = zip(*positions)
        codes[np.array(rows), np.array(cols)] = picked

    return GridStore(registry, codes, external)


__all__ = ["grid_rows_for", "cell_bounds", "sample_cell", "map_initial"]
