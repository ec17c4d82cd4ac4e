from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np
import pytest

from bead_map.grid_store import GridStore
from bead_map.palette_data import PaletteRegistry, build_registry

A = "#000000"
B = "#0a0a0a"
C = "#c8c8c8"
R = "#ff0000"
G = "#00ff00"

SMALL_PALETTE = [
    (A, "A"),
    (B, "B"),
    (C, "C"),
    (R, "R"),
    (G, "G"),
]


@pytest.fixture
def registry() -> PaletteRegistry:
    return build_registry(SMALL_PALETTE)


def make_grid(rows: Sequence[Sequence[Optional[str]]], registry: PaletteRegistry) -> GridStore:
    return GridStore.from_hex_rows(rows, registry)


def flat_grid(
    identities: List[str], width: int, registry: PaletteRegistry
) -> GridStore:
    """Grid filled row-major from a flat identity list."""
    assert len(identities) % width == 0
    rows = [identities[i : i + width] for i in range(0, len(identities), width)]
    return make_grid(rows, registry)


def countable_cells(grid: GridStore) -> int:
    return int(np.count_nonzero(grid.countable_mask()))


def assert_counts_consistent(grid: GridStore) -> None:
    counts = grid.counts
    assert grid.total == sum(counts.values())
    assert grid.total == countable_cells(grid)
    assert all(n > 0 for n in counts.values())
    fresh = grid.copy()
    assert fresh.counts == counts
