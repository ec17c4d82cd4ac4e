# bead_map/tool_mode.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Literal, Optional, Tuple, Union

from .core_types import HexStr, TRANSPARENT

"""
Editing tool modes.

Exactly one tool is active at a time:
  Neutral           inspection only
  ManualColouring   clicks paint `selected` (a palette identity or TRANSPARENT)
  Erase             next click erases a connected region, then back to Neutral
  ColourReplace     click picks the source colour, then a palette choice replaces it
  RegionSelect      two clicks select a rectangle of cells for bulk painting

Transitions are pure functions returning the next mode. Palette
exclusion/inclusion forces Neutral via reset().
"""

ReplaceStep = Literal["select-source", "select-target"]


@dataclass(frozen=True)
class Neutral:
    name: Literal["neutral"] = "neutral"


@dataclass(frozen=True)
class ManualColouring:
    selected: Optional[HexStr] = None
    name: Literal["manual"] = "manual"


@dataclass(frozen=True)
class Erase:
    name: Literal["erase"] = "erase"


@dataclass(frozen=True)
class ColourReplace:
    step: ReplaceStep = "select-source"
    source: Optional[HexStr] = None
    name: Literal["replace"] = "replace"


@dataclass(frozen=True)
class RegionSelect:
    anchor: Optional[Tuple[int, int]] = None  # first corner, waiting for the second
    region: Optional[Tuple[int, int, int, int]] = None  # (top, left, bottom, right), inclusive
    name: Literal["region-select"] = "region-select"


ToolMode = Union[Neutral, ManualColouring, Erase, ColourReplace, RegionSelect]

NEUTRAL = Neutral()


def reset(_mode: ToolMode) -> ToolMode:
    """Leave whatever tool is active."""
    return NEUTRAL


def toggle_manual(mode: ToolMode) -> ToolMode:
    if isinstance(mode, ManualColouring):
        return NEUTRAL
    return ManualColouring()


def toggle_erase(mode: ToolMode) -> ToolMode:
    if isinstance(mode, Erase):
        return NEUTRAL
    return Erase()


def toggle_colour_replace(mode: ToolMode) -> ToolMode:
    if isinstance(mode, ColourReplace):
        return NEUTRAL
    return ColourReplace()


def toggle_region_select(mode: ToolMode) -> ToolMode:
    if isinstance(mode, RegionSelect):
        return NEUTRAL
    return RegionSelect()


def select_colour(mode: ToolMode, identity: HexStr) -> ToolMode:
    """
    Palette pick outside the replace-target step: always lands in manual
    colouring with `identity` selected. Picking the eraser drops an active
    colour replace; any pick drops erase mode.
    """
    if isinstance(mode, ColourReplace) and mode.step == "select-target":
        if identity != TRANSPARENT:
            raise ValueError("replace target pick must be applied by the caller")
    return ManualColouring(selected=identity)


def pick_source(mode: ToolMode, identity: HexStr) -> ToolMode:
    """Record the replace source picked from the grid."""
    if not (isinstance(mode, ColourReplace) and mode.step == "select-source"):
        raise ValueError(f"cannot pick a replace source in {mode.name} mode")
    if identity == TRANSPARENT:
        raise ValueError("replace source must be a palette colour")
    return ColourReplace(step="select-target", source=identity)


def select_corner(mode: ToolMode, row: int, col: int) -> ToolMode:
    """
    Region selection click. The first click anchors a corner, the second
    completes the rectangle; a further click starts a new one.
    """
    if not isinstance(mode, RegionSelect):
        raise ValueError(f"cannot select a region in {mode.name} mode")
    if mode.anchor is None:
        return RegionSelect(anchor=(row, col))
    r0, c0 = mode.anchor
    return RegionSelect(region=(min(r0, row), min(c0, col), max(r0, row), max(c0, col)))


def awaiting_replace_target(mode: ToolMode) -> bool:
    return isinstance(mode, ColourReplace) and mode.step == "select-target"


__all__ = [
    "ReplaceStep",
    "Neutral",
    "ManualColouring",
    "Erase",
    "ColourReplace",
    "RegionSelect",
    "ToolMode",
    "NEUTRAL",
    "reset",
    "toggle_manual",
    "toggle_erase",
    "toggle_colour_replace",
    "toggle_region_select",
    "select_colour",
    "pick_source",
    "select_corner",
    "awaiting_replace_target",
]
