# bead_map/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, and lightweight helpers.
"""

import string
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

import numpy as np
from numpy.typing import NDArray

# Basic aliases

RGBTuple = Tuple[int, int, int]
HexStr = str

U8Image = NDArray[np.uint8]  # (H, W, 3)
U8Mask = NDArray[np.uint8]  # (H, W)
CodeGrid = NDArray[np.int32]  # (M, N) registry indices, TRANSPARENT_CODE for erased
ExternalMask = NDArray[np.bool_]  # (M, N) True outside the drawn shape

# Collections

CountMap = Dict[HexStr, int]  # identity -> occupied cells
Selections = Dict[HexStr, bool]  # identity -> enabled
KeyOf = Mapping[HexStr, str]  # identity -> display key

# Sentinels

TRANSPARENT: HexStr = "transparent"  # erased cell, never in a registry
TRANSPARENT_CODE = -1
EXTERNAL_MARKER = "external"  # padding cell marker in imported grids

# Value objects


@dataclass(frozen=True)
class PaletteColor:
    """Palette entry keyed by its canonical hex identity."""

    identity: HexStr  # "#rrggbb"
    key: str  # display key hint, e.g. "A1"
    rgb: RGBTuple


@dataclass(frozen=True)
class Cell:
    """One grid position as seen by callers."""

    identity: HexStr  # palette identity or TRANSPARENT
    is_external: bool = False

    @property
    def is_transparent(self) -> bool:
        return self.identity == TRANSPARENT

    @property
    def is_countable(self) -> bool:
        """True when the cell contributes to colour statistics."""
        return not self.is_external and not self.is_transparent


# Small helpers


def rgb_to_hex(rgb: RGBTuple) -> HexStr:
    """RGB tuple to lowercase hex string '#rrggbb'."""
    return f"#{rgb[0]:02x}{rgb[1]:02x}{rgb[2]:02x}"


def hex_to_rgb(hex_str: str) -> RGBTuple:
    """Parse '#rgb' or '#rrggbb' (case-insensitive) into an RGB tuple."""
    s = hex_str.strip().lower()
    if not s.startswith("#"):
        raise ValueError("hex must start with '#'")
    if len(s) == 4:
        r, g, b = s[1], s[2], s[3]
        s = f"#{r}{r}{g}{g}{b}{b}"
    if len(s) != 7:
        raise ValueError("hex must be '#rrggbb' or '#rgb'")
    return (int(s[1:3], 16), int(s[3:5], 16), int(s[5:7], 16))


def normalise_hex(hex_str: str) -> HexStr:
    """Canonical identity form of a hex string: lowercase '#rrggbb'."""
    return rgb_to_hex(hex_to_rgb(hex_str))


def is_strict_hex(value: str) -> bool:
    """True only for '#rrggbb' (either case), the persisted selection key format."""
    if len(value) != 7 or not value.startswith("#"):
        return False
    return all(ch in string.hexdigits for ch in value[1:])


def assert_u8_image_rgb(image: np.ndarray) -> U8Image:
    """Validate a uint8 (H,W,3 or 4) image and return it typed as U8Image."""
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[-1] < 3:
        raise TypeError("expected uint8 (H,W,3/4) image")
    return image  # type: ignore[return-value]


def assert_u8_mask_2d(mask_array: np.ndarray) -> U8Mask:
    """Validate a uint8 (H,W) mask and return it typed as U8Mask."""
    if mask_array.dtype != np.uint8 or mask_array.ndim != 2:
        raise TypeError("expected uint8 (H,W) mask")
    return mask_array  # type: ignore[return-value]


__all__ = [
    # aliases / types
    "RGBTuple",
    "HexStr",
    "U8Image",
    "U8Mask",
    "CodeGrid",
    "ExternalMask",
    "CountMap",
    "Selections",
    "KeyOf",
    # sentinels
    "TRANSPARENT",
    "TRANSPARENT_CODE",
    "EXTERNAL_MARKER",
    # value objects
    "PaletteColor",
    "Cell",
    # helpers
    "rgb_to_hex",
    "hex_to_rgb",
    "normalise_hex",
    "is_strict_hex",
    "assert_u8_image_rgb",
    "assert_u8_mask_2d",
]
