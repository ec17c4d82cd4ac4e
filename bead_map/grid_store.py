# bead_map/grid_store.py
from __future__ import annotations

"""
Grid store and colour statistics.

The grid is held as two arrays of shape (M, N):
  codes    int32 registry positions, TRANSPARENT_CODE for erased cells
  external bool, True for padding outside the drawn shape

Per-colour counts cover cells that are neither external nor transparent.
They are rebuilt in full only by recount_all(); every other mutation goes
through set() or rewrite(), which apply count deltas in the same call.
"""

from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

import numpy as np

from .core_types import (
    Cell,
    CodeGrid,
    CountMap,
    EXTERNAL_MARKER,
    ExternalMask,
    HexStr,
    TRANSPARENT,
    TRANSPARENT_CODE,
    normalise_hex,
)
from .palette_data import PaletteRegistry


class ColourCounts:
    """Occupancy per identity plus a running total. Zero entries are removed."""

    __slots__ = ("_counts", "_total")

    def __init__(self) -> None:
        self._counts: Dict[HexStr, int] = {}
        self._total = 0

    def __len__(self) -> int:
        return len(self._counts)

    def __contains__(self, identity: object) -> bool:
        return identity in self._counts

    def __iter__(self) -> Iterator[HexStr]:
        return iter(self._counts)

    def __getitem__(self, identity: HexStr) -> int:
        return self._counts[identity]

    def get(self, identity: HexStr, default: int = 0) -> int:
        return self._counts.get(identity, default)

    @property
    def total(self) -> int:
        return self._total

    def as_dict(self) -> CountMap:
        return dict(self._counts)

    def clear(self) -> None:
        self._counts.clear()
        self._total = 0

    def add(self, identity: HexStr, n: int = 1) -> None:
        if identity == TRANSPARENT or n == 0:
            return
        if n < 0:
            raise ValueError("add() needs n >= 0")
        self._counts[identity] = self._counts.get(identity, 0) + n
        self._total += n

    def remove(self, identity: HexStr, n: int = 1) -> None:
        if identity == TRANSPARENT or n == 0:
            return
        have = self._counts.get(identity, 0)
        if n < 0 or n > have:
            raise ValueError(f"cannot remove {n} of {identity} (have {have})")
        if n == have:
            del self._counts[identity]
        else:
            self._counts[identity] = have - n
        self._total -= n

    def move(self, old: HexStr, new: HexStr, n: int = 1) -> None:
        """Delta for n cells changing from old to new. Equal identities are a no-op."""
        if old == new:
            return
        self.remove(old, n)
        self.add(new, n)


class GridStore:
    """Owned N x M grid of cell assignments plus live colour counts."""

    def __init__(
        self,
        registry: PaletteRegistry,
        codes: np.ndarray,
        external: Optional[np.ndarray] = None,
    ) -> None:
        codes_arr = np.array(codes, dtype=np.int32)
        if codes_arr.ndim != 2 or codes_arr.size == 0:
            raise ValueError("grid codes must be a non-empty 2-D array")
        if external is None:
            ext_arr = np.zeros(codes_arr.shape, dtype=bool)
        else:
            ext_arr = np.array(external, dtype=bool)
        if ext_arr.shape != codes_arr.shape:
            raise ValueError("external mask shape does not match grid")
        if np.any((codes_arr < TRANSPARENT_CODE) | (codes_arr >= len(registry))):
            raise ValueError("grid contains codes outside the registry")

        self.registry = registry
        self._codes: CodeGrid = codes_arr
        self._external: ExternalMask = ext_arr
        self._counts = ColourCounts()
        self.recount_all()

    # Construction

    @classmethod
    def from_hex_rows(
        cls, rows: Sequence[Sequence[Optional[str]]], registry: PaletteRegistry
    ) -> "GridStore":
        """
        Build a grid from rows of hex strings.
        None or TRANSPARENT marks an erased cell, EXTERNAL_MARKER a padding cell.
        Unknown hex values raise ValueError before anything is built.
        """
        if not rows or not rows[0]:
            raise ValueError("grid needs at least one row and one column")
        width = len(rows[0])
        codes = np.full((len(rows), width), TRANSPARENT_CODE, dtype=np.int32)
        external = np.zeros((len(rows), width), dtype=bool)
        for r, row in enumerate(rows):
            if len(row) != width:
                raise ValueError(f"row {r} has {len(row)} cells, expected {width}")
            for c, value in enumerate(row):
                if value is None or value == TRANSPARENT:
                    continue
                if value == EXTERNAL_MARKER:
                    external[r, c] = True
                    continue
                codes[r, c] = registry.code_of(normalise_hex(value))
        return cls(registry, codes, external)

    # Shape / queries

    @property
    def width(self) -> int:
        """N (columns)"""
        return int(self._codes.shape[1])

    @property
    def height(self) -> int:
        """M (rows)"""
        return int(self._codes.shape[0])

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    @property
    def codes(self) -> CodeGrid:
        """Read-only view of the code array."""
        view = self._codes.view()
        view.setflags(write=False)
        return view

    @property
    def external(self) -> ExternalMask:
        """Read-only view of the external mask."""
        view = self._external.view()
        view.setflags(write=False)
        return view

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def _check_bounds(self, row: int, col: int) -> None:
        if not self.in_bounds(row, col):
            raise IndexError(f"cell ({row}, {col}) outside {self.height}x{self.width} grid")

    def get(self, row: int, col: int) -> Cell:
        self._check_bounds(row, col)
        identity = self.registry.identity_at(int(self._codes[row, col]))
        return Cell(identity=identity, is_external=bool(self._external[row, col]))

    def identity_at(self, row: int, col: int) -> HexStr:
        return self.get(row, col).identity

    def countable_mask(self) -> np.ndarray:
        """Cells that contribute to statistics."""
        return (~self._external) & (self._codes != TRANSPARENT_CODE)

    def cells_matching(self, identity: HexStr) -> np.ndarray:
        """Non-external cells currently holding `identity`."""
        code = self.registry.code_of(identity)
        return (~self._external) & (self._codes == code)

    def colour_set(self) -> Set[HexStr]:
        return set(self._counts)

    @property
    def counts(self) -> CountMap:
        return self._counts.as_dict()

    @property
    def total(self) -> int:
        return self._counts.total

    def to_hex_rows(self) -> List[List[Optional[str]]]:
        """Rows of hex identities; None for erased cells, EXTERNAL_MARKER for padding."""
        out: List[List[Optional[str]]] = []
        for r in range(self.height):
            row: List[Optional[str]] = []
            for c in range(self.width):
                if self._external[r, c]:
                    row.append(EXTERNAL_MARKER)
                    continue
                code = int(self._codes[r, c])
                row.append(None if code == TRANSPARENT_CODE else self.registry.identity_at(code))
            out.append(row)
        return out

    def rgb_image(self, background: Tuple[int, int, int] = (255, 255, 255)) -> np.ndarray:
        """uint8 (M, N, 3) preview; erased and external cells use `background`."""
        out = np.empty((self.height, self.width, 3), dtype=np.uint8)
        out[...] = np.array(background, dtype=np.uint8)
        mask = self.countable_mask()
        if np.any(mask) and len(self.registry) > 0:
            out[mask] = self.registry.rgb_array[self._codes[mask]]
        return out

    # Mutation

    def recount_all(self) -> None:
        """Full rebuild of the counts. Identities are ordered by first row-major occurrence."""
        self._counts.clear()
        flat = self._codes[self.countable_mask()]
        if flat.size == 0:
            return
        uniq, first, counts = np.unique(flat, return_index=True, return_counts=True)
        for k in np.argsort(first, kind="stable"):
            self._counts.add(self.registry.identity_at(int(uniq[k])), int(counts[k]))

    def set(self, row: int, col: int, identity: HexStr) -> bool:
        """
        Assign one non-external cell and apply the count delta.
        Returns True when the cell changed.
        """
        self._check_bounds(row, col)
        if self._external[row, col]:
            raise ValueError(f"cell ({row}, {col}) is external")
        new_code = self.registry.code_of(identity)
        old_code = int(self._codes[row, col])
        if old_code == new_code:
            return False
        self._codes[row, col] = new_code
        self._counts.move(
            self.registry.identity_at(old_code), self.registry.identity_at(new_code)
        )
        return True

    def rewrite(self, mask: np.ndarray, identity: HexStr) -> int:
        """
        Assign `identity` to every cell under `mask` and apply the count deltas.
        The mask must not touch external cells. Returns the number of cells changed.
        """
        mask_arr = np.asarray(mask, dtype=bool)
        if mask_arr.shape != self._codes.shape:
            raise ValueError("mask shape does not match grid")
        if np.any(mask_arr & self._external):
            raise ValueError("rewrite mask covers external cells")
        new_code = self.registry.code_of(identity)
        changed = mask_arr & (self._codes != new_code)
        n_changed = int(np.count_nonzero(changed))
        if n_changed == 0:
            return 0

        uniq, counts = np.unique(self._codes[changed], return_counts=True)
        self._codes[changed] = new_code
        for code, n in zip(uniq.tolist(), counts.tolist()):
            self._counts.move(self.registry.identity_at(int(code)), identity, int(n))
        return n_changed

    def copy(self) -> "GridStore":
        return GridStore(self.registry, self._codes.copy(), self._external.copy())


__all__ = ["ColourCounts", "GridStore"]
