# bead_map/constants.py
"""
Tunables used across the project.

- Regeneration defaults (granularity, merge threshold, sampling mode)
- Grid limits
- Reference mapper knobs
"""
from __future__ import annotations

from typing import Literal

# =========================
# Regeneration defaults
# =========================
DEFAULT_GRANULARITY = 50  # columns (N)
DEFAULT_THRESHOLD = 30.0  # Euclidean RGB, strict '<'
MAX_GRID_SIDE = 300

# =========================
# Sampling modes
# =========================
SamplingMode = Literal["dominant", "average"]
DOMINANT: SamplingMode = "dominant"
AVERAGE: SamplingMode = "average"
SAMPLING_MODES = (DOMINANT, AVERAGE)
DEFAULT_MODE: SamplingMode = DOMINANT

# =========================
# Reference mapper
# =========================
ALPHA_THRESHOLD = 127  # pixels with alpha below this are treated as padding
FALLBACK_HEX = "#ffffff"  # used when a cell cannot be resolved

# =========================
# Reports
# =========================
REPORT_LIMIT = 20
