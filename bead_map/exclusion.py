# bead_map/exclusion.py
from __future__ import annotations

"""
Exclusion remapping.

Every palette identity is either active or excluded. Excluding a colour
rewrites its cells to the nearest colour that was present in the grid right
after the last full regeneration and is not itself excluded. If no such colour
exists the exclusion is refused and nothing changes.

Re-including a colour is never patched locally: the cells that used to hold
it are unknown, so the caller regenerates and then commits the new set.
"""

from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Set

from .colour_convert import nearest_index
from .core_types import HexStr, PaletteColor
from .errors import (
    ALREADY_EXCLUDED,
    NO_REMAP_TARGET,
    NOT_EXCLUDED,
    InvariantViolation,
    PreconditionNotMet,
)
from .grid_store import GridStore
from .palette_data import PaletteRegistry
from .utils import debug_log


@dataclass(frozen=True)
class ExclusionResult:
    identity: HexStr
    replacement: Optional[HexStr]  # None when no cell held the identity
    cells_remapped: int


class ExclusionRemapper:
    """Tracks excluded identities and the frozen initial grid colour set."""

    def __init__(self, registry: PaletteRegistry) -> None:
        self.registry = registry
        self._excluded: Set[HexStr] = set()
        self._initial: FrozenSet[HexStr] = frozenset()

    @property
    def excluded(self) -> FrozenSet[HexStr]:
        return frozenset(self._excluded)

    @property
    def initial_colours(self) -> FrozenSet[HexStr]:
        return self._initial

    def is_excluded(self, identity: HexStr) -> bool:
        return identity in self._excluded

    def snapshot(self, grid: GridStore) -> None:
        """Freeze the grid's current colours as the legitimate remap scope."""
        self._initial = frozenset(grid.colour_set())

    def reset(self) -> None:
        """Forget exclusions and the initial colour set (new image)."""
        self._excluded.clear()
        self._initial = frozenset()

    def remap_targets(self, identity: HexStr) -> List[PaletteColor]:
        """Initial colours minus `identity` minus current exclusions, in registry order."""
        allowed = set(self._initial)
        allowed.discard(identity)
        allowed.difference_update(self._excluded)
        return self.registry.subset(allowed)

    def exclude(
        self, grid: GridStore, identity: HexStr, debug: bool = False
    ) -> ExclusionResult:
        """
        Exclude `identity` and remap its cells.

        Raises:
          PreconditionNotMet: no initial colour set yet
          InvariantViolation: already excluded, or nothing left to remap to
          ValueError: identity is not in the registry
        """
        if not self._initial:
            raise PreconditionNotMet("cannot exclude before a grid has been generated")
        colour = self.registry.get(identity)
        if colour is None:
            raise ValueError(f"unknown palette identity {identity!r}")
        if identity in self._excluded:
            raise InvariantViolation(ALREADY_EXCLUDED, f"{identity} is already excluded")

        targets = self.remap_targets(identity)
        if not targets:
            raise InvariantViolation(
                NO_REMAP_TARGET,
                f"cannot exclude {identity}: no other colour from the original grid remains",
            )

        mask = grid.cells_matching(identity)
        replacement: Optional[HexStr] = None
        remapped = 0
        if mask.any():
            best = targets[nearest_index(colour.rgb, [t.rgb for t in targets])]
            replacement = best.identity
            remapped = grid.rewrite(mask, replacement)
        self._excluded.add(identity)

        if debug:
            debug_log(
                f"exclude: {identity} -> {replacement or '-'} ({remapped} cells, "
                f"{len(targets)} target(s))"
            )
        return ExclusionResult(identity, replacement, remapped)

    def without(self, identity: HexStr) -> FrozenSet[HexStr]:
        """
        Excluded set with `identity` re-included, for the caller to commit via
        set_excluded() once the regeneration it triggers has succeeded.
        """
        if identity not in self._excluded:
            raise InvariantViolation(NOT_EXCLUDED, f"{identity} is not excluded")
        return frozenset(self._excluded - {identity})

    def set_excluded(self, identities: FrozenSet[HexStr]) -> None:
        self._excluded = set(identities)


__all__ = ["ExclusionResult", "ExclusionRemapper"]
