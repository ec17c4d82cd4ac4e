# bead_map/__init__.py
"""
bead_map package.

Purpose:
  Turn an image into a bead pattern: a grid of cells, each bound to one colour
  of a bead palette, with live colour counts. See bead_pattern.py for the CLI.

Public API:
  BeadPatternEngine : owns the grid; regenerate / exclude / include / erase /
                      replace_colour / auto_remove_background / paint.
  build_registry    : build the immutable palette registry (palette_data.PALETTE by default).
  GridStore         : grid + colour counts, usable on its own with region_edit helpers.
  merge             : frequency-biased global colour merge.
  exclusion         : exclusion remapping against the initial grid colour set.
  region_edit       : flood-fill erase, colour replace, background removal.
  tool_mode         : editing tool modes.
  pixelate          : reference image -> grid mapper.
  selections        : load/save palette selections.
  errors            : exception taxonomy.

Quick start:
  from bead_map import BeadPatternEngine, build_registry
  engine = BeadPatternEngine(build_registry())
"""

__version__ = "0.1.0"

# Re-export namespaces for convenience.
from . import core_types
from . import errors
from . import palette_data
from . import grid_store
from . import merge
from . import exclusion
from . import region_edit
from . import tool_mode
from . import pixelate
from . import selections
from . import utils

from .core_types import TRANSPARENT, Cell, PaletteColor  # noqa: E402,F401
from .engine import BeadPatternEngine, RegenerationResult  # noqa: E402,F401
from .grid_store import GridStore  # noqa: E402,F401
from .palette_data import PALETTE, PaletteRegistry, build_registry  # noqa: E402,F401

__all__ = [
    "__version__",
    "core_types",
    "errors",
    "palette_data",
    "grid_store",
    "merge",
    "exclusion",
    "region_edit",
    "tool_mode",
    "pixelate",
    "selections",
    "utils",
    "TRANSPARENT",
    "Cell",
    "PaletteColor",
    "BeadPatternEngine",
    "RegenerationResult",
    "GridStore",
    "PALETTE",
    "PaletteRegistry",
    "build_registry",
]
