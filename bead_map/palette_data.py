# bead_map/palette_data.py
from __future__ import annotations

"""
Palette definitions and the read-only palette registry.

Exports:
  PALETTE: list[tuple[str, str]]  # [(hex, key), ...]
  PaletteRegistry                 # immutable catalogue, registry order preserved
  build_registry(hex_key_pairs=PALETTE) -> PaletteRegistry
"""

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .core_types import (
    HexStr,
    PaletteColor,
    RGBTuple,
    TRANSPARENT,
    TRANSPARENT_CODE,
    hex_to_rgb,
    rgb_to_hex,
)
from .utils import warn


PALETTE: List[Tuple[str, str]] = [
    # A: yellows / oranges
    ("#faf4c8", "A1"),
    ("#fffe9a", "A2"),
    ("#fbed56", "A3"),
    ("#f4d738", "A4"),
    ("#feac4c", "A5"),
    ("#fe8b4c", "A6"),
    ("#ffda45", "A7"),
    ("#ff995b", "A8"),
    ("#f77c31", "A9"),
    ("#ffdd99", "A10"),
    ("#fe9f72", "A11"),
    ("#ffc365", "A12"),
    # B: greens
    ("#dff13b", "B1"),
    ("#64f343", "B2"),
    ("#9ff36d", "B3"),
    ("#5fdf34", "B4"),
    ("#39e158", "B5"),
    ("#64e0a4", "B6"),
    ("#3eae7c", "B7"),
    ("#1d9b54", "B8"),
    ("#2a5037", "B9"),
    ("#9ad1ba", "B10"),
    ("#627032", "B11"),
    ("#1a6e3d", "B12"),
    # C: blues
    ("#f0feef", "C1"),
    ("#abf8fe", "C2"),
    ("#a2e0f7", "C3"),
    ("#44cdfb", "C4"),
    ("#06aadf", "C5"),
    ("#54a7e9", "C6"),
    ("#3977ca", "C7"),
    ("#0f52bd", "C8"),
    ("#3349c3", "C9"),
    ("#3cbce3", "C10"),
    ("#2aded3", "C11"),
    ("#1e334e", "C12"),
    # D: purples
    ("#aceaff", "D1"),
    ("#868dd3", "D2"),
    ("#3554af", "D3"),
    ("#162c7e", "D4"),
    ("#b34ec6", "D5"),
    ("#b37bdc", "D6"),
    ("#8758a9", "D7"),
    ("#e3d2fe", "D8"),
    ("#d5b9f4", "D9"),
    ("#301a49", "D10"),
    ("#beb9e2", "D11"),
    ("#dc99ce", "D12"),
    # E: pinks
    ("#f6d4cb", "E1"),
    ("#fcc1dd", "E2"),
    ("#f6bde8", "E3"),
    ("#e8649e", "E4"),
    ("#f0569f", "E5"),
    ("#eb4172", "E6"),
    ("#c53674", "E7"),
    ("#fddbe9", "E8"),
    ("#e376c7", "E9"),
    ("#d13b95", "E10"),
    ("#f7dad4", "E11"),
    ("#f693bf", "E12"),
    # F: reds
    ("#fe9381", "F1"),
    ("#f63d4b", "F2"),
    ("#ee4e3e", "F3"),
    ("#fb2a40", "F4"),
    ("#e10328", "F5"),
    ("#913635", "F6"),
    ("#911932", "F7"),
    ("#bb0126", "F8"),
    ("#e0677a", "F9"),
    ("#874628", "F10"),
    ("#592323", "F11"),
    ("#f3536b", "F12"),
    # G: skin / browns
    ("#ffe4d3", "G1"),
    ("#fcc6ac", "G2"),
    ("#f1c4a5", "G3"),
    ("#dcb387", "G4"),
    ("#e7b34e", "G5"),
    ("#e3a014", "G6"),
    ("#985c3a", "G7"),
    ("#713d2f", "G8"),
    ("#e4b685", "G9"),
    ("#da8c42", "G10"),
    ("#dac898", "G11"),
    ("#fec993", "G12"),
    # H: neutrals
    ("#ffffff", "H1"),
    ("#fbfbfb", "H2"),
    ("#b4b4b4", "H3"),
    ("#878787", "H4"),
    ("#464648", "H5"),
    ("#2c2c2c", "H6"),
    ("#010101", "H7"),
    ("#e7d6dc", "H8"),
    ("#efedee", "H9"),
    ("#ebebeb", "H10"),
    ("#cdcdcd", "H11"),
    ("#fdf6ee", "H12"),
]


class PaletteRegistry:
    """
    Immutable catalogue of palette colours, unique by hex identity.

    Colour codes used by the grid store are positions in registry order;
    TRANSPARENT_CODE never resolves to a registry colour.
    """

    __slots__ = ("_colours", "_index", "_rgb", "_key_of")

    def __init__(self, colours: Sequence[PaletteColor]) -> None:
        index: Dict[HexStr, int] = {}
        for i, colour in enumerate(colours):
            if colour.identity in index:
                raise ValueError(f"duplicate identity {colour.identity}")
            index[colour.identity] = i
        self._colours: Tuple[PaletteColor, ...] = tuple(colours)
        self._index: Mapping[HexStr, int] = MappingProxyType(index)
        rgb = np.array([c.rgb for c in colours], dtype=np.uint8).reshape(-1, 3)
        rgb.setflags(write=False)
        self._rgb = rgb
        self._key_of: Mapping[HexStr, str] = MappingProxyType(
            {c.identity: c.key for c in colours}
        )

    def __len__(self) -> int:
        return len(self._colours)

    def __iter__(self) -> Iterator[PaletteColor]:
        return iter(self._colours)

    def __contains__(self, identity: object) -> bool:
        return identity in self._index

    def __repr__(self) -> str:
        return f"PaletteRegistry({len(self._colours)} colours)"

    @property
    def identities(self) -> Tuple[HexStr, ...]:
        return tuple(c.identity for c in self._colours)

    @property
    def rgb_array(self) -> np.ndarray:
        """Read-only uint8 [P,3] in registry order."""
        return self._rgb

    @property
    def key_of(self) -> Mapping[HexStr, str]:
        """identity -> display key"""
        return self._key_of

    def get(self, identity: HexStr) -> Optional[PaletteColor]:
        i = self._index.get(identity)
        return None if i is None else self._colours[i]

    def code_of(self, identity: HexStr) -> int:
        """Grid code for an identity; TRANSPARENT maps to TRANSPARENT_CODE."""
        if identity == TRANSPARENT:
            return TRANSPARENT_CODE
        try:
            return self._index[identity]
        except KeyError:
            raise ValueError(f"unknown palette identity {identity!r}") from None

    def identity_at(self, code: int) -> HexStr:
        if code == TRANSPARENT_CODE:
            return TRANSPARENT
        return self._colours[code].identity

    def colour_at(self, code: int) -> PaletteColor:
        return self._colours[code]

    def subset(self, identities: Iterable[HexStr]) -> List[PaletteColor]:
        """Registry colours whose identity is in `identities`, in registry order."""
        wanted = set(identities)
        return [c for c in self._colours if c.identity in wanted]


def build_registry(
    hex_key_pairs: Sequence[Tuple[str, str]] = PALETTE,
) -> PaletteRegistry:
    """
    Convert a list of (hex, key) into a PaletteRegistry.

    Malformed hex values are skipped with a warning. Entries whose hex
    repeats an earlier one are dropped (first entry wins).
    """
    colours: List[PaletteColor] = []
    seen: Dict[HexStr, str] = {}
    for hx, key in hex_key_pairs:
        try:
            rgb: RGBTuple = hex_to_rgb(hx)
        except ValueError:
            warn(f"palette: invalid hex {hx!r} for key {key!r}, skipping")
            continue
        identity = rgb_to_hex(rgb)
        if identity in seen:
            warn(f"palette: {key} repeats {identity} of {seen[identity]}, skipping")
            continue
        seen[identity] = key
        colours.append(PaletteColor(identity=identity, key=key, rgb=rgb))
    return PaletteRegistry(colours)


__all__ = ["PALETTE", "PaletteRegistry", "build_registry"]
