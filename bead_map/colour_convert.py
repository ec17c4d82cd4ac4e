# bead_map/colour_convert.py
from __future__ import annotations

"""
Colour metrics and conversions.

Exports:
  rgb_distance(a, b)
  rgb_distances(src, cand)
  nearest_index(rgb, cand_rgb)
  nearest_indices(src_rgb, cand_rgb)
  rgb_to_linear(srgb)
  rgb_to_lab(rgb)
  lab_to_lch(lab)
  hue_order(rgbs)

The grid engine uses plain Euclidean distance over 8-bit RGB channels.
Lab/LCh are only used to order colours for display.
"""

import math
from typing import Sequence

import numpy as np

from .core_types import RGBTuple


# Euclidean RGB


def rgb_distance(a: RGBTuple, b: RGBTuple) -> float:
    """Euclidean distance between two RGB triples, no weighting, no gamma."""
    dr = int(a[0]) - int(b[0])
    dg = int(a[1]) - int(b[1])
    db = int(a[2]) - int(b[2])
    return math.sqrt(dr * dr + dg * dg + db * db)


def rgb_distances(src: np.ndarray, cand: np.ndarray) -> np.ndarray:
    """
    Pairwise Euclidean RGB distances.
    Args:
      src: array[S,3] (any int dtype)
      cand: array[P,3]
    Returns:
      float64 array[S,P]
    """
    s = np.asarray(src, dtype=np.int32).reshape(-1, 3)
    c = np.asarray(cand, dtype=np.int32).reshape(-1, 3)
    diff = s[:, None, :] - c[None, :, :]
    return np.sqrt(np.sum(diff * diff, axis=2, dtype=np.int64).astype(np.float64))


def nearest_indices(src_rgb: np.ndarray, cand_rgb: np.ndarray) -> np.ndarray:
    """For each source row, index of the nearest candidate. Ties go to the lowest index."""
    if np.asarray(cand_rgb).size == 0:
        raise ValueError("nearest lookup needs at least one candidate")
    dist = rgb_distances(src_rgb, cand_rgb)
    return np.argmin(dist, axis=1).astype(np.int32)


def nearest_index(rgb: RGBTuple, cand_rgb: Sequence[RGBTuple] | np.ndarray) -> int:
    """Index of the candidate nearest to a single RGB triple (first on ties)."""
    src = np.array([rgb], dtype=np.int32)
    return int(nearest_indices(src, np.asarray(cand_rgb, dtype=np.int32))[0])


# sRGB to linear


def rgb_to_linear(srgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB (non-linear 0..1) to linear RGB (0..1). Vectorised.
    Returns float32 with shape preserved.
    """
    srgb_f = srgb.astype(np.float32, copy=False)
    with np.errstate(invalid="ignore"):
        linear = np.where(
            srgb_f <= 0.04045, srgb_f / 12.92, ((srgb_f + 0.055) / 1.055) ** 2.4
        )
    return linear.astype(np.float32, copy=False)


# sRGB to Lab (D65)


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """
    sRGB uint8 [0..255] to CIE Lab (D65). Preserves shape (...,3). Returns float32.
    """
    rgb_f = np.asarray(rgb).astype(np.float32) / 255.0

    r_lin = rgb_to_linear(rgb_f[..., 0])
    g_lin = rgb_to_linear(rgb_f[..., 1])
    b_lin = rgb_to_linear(rgb_f[..., 2])

    # Linear RGB -> XYZ (D65)
    X = 0.4124564 * r_lin + 0.3575761 * g_lin + 0.1804375 * b_lin
    Y = 0.2126729 * r_lin + 0.7151522 * g_lin + 0.0721750 * b_lin
    Z = 0.0193339 * r_lin + 0.1191920 * g_lin + 0.9503041 * b_lin

    Xn, Yn, Zn = 0.95047, 1.00000, 1.08883
    x, y, z = X / Xn, Y / Yn, Z / Zn
    e, k = 216.0 / 24389.0, 24389.0 / 27.0

    def f(t: np.ndarray) -> np.ndarray:
        with np.errstate(invalid="ignore"):
            return np.where(t > e, np.cbrt(t), (k * t + 16.0) / 116.0).astype(
                np.float32, copy=False
            )

    fx, fy, fz = f(x), f(y), f(z)

    out = np.empty(rgb_f.shape, dtype=np.float32)
    out[..., 0] = 116.0 * fy - 16.0
    out[..., 1] = 500.0 * (fx - fy)
    out[..., 2] = 200.0 * (fy - fz)
    return out


# Lab to LCh


def lab_to_lch(lab: np.ndarray) -> np.ndarray:
    """
    Lab[...,3] to LCh[...,3] (degrees in [0,360)).
    Returns float32 with shape preserved.
    """
    orig_shape = lab.shape
    flat = lab.reshape(-1, 3).astype(np.float32, copy=False)
    C = np.hypot(flat[:, 1], flat[:, 2])
    h = (np.degrees(np.arctan2(flat[:, 2], flat[:, 1])) + 360.0) % 360.0
    lch = np.stack([flat[:, 0], C, h], axis=1).astype(np.float32, copy=False)
    return lch.reshape(orig_shape)


# Display ordering

NEUTRAL_C_MAX = 8.0


def hue_order(rgbs: Sequence[RGBTuple]) -> np.ndarray:
    """
    Indices that order colours for display: chromatic colours by hue then
    lightness, followed by neutrals (chroma <= NEUTRAL_C_MAX) from dark to light.
    """
    if len(rgbs) == 0:
        return np.zeros((0,), dtype=np.int64)
    lch = lab_to_lch(rgb_to_lab(np.array(rgbs, dtype=np.uint8)))
    neutral = lch[:, 1] <= NEUTRAL_C_MAX
    # np.lexsort sorts by the last key first
    hue_key = np.where(neutral, 0.0, lch[:, 2])
    return np.lexsort((lch[:, 0], hue_key, neutral.astype(np.int8)))


__all__ = [
    "rgb_distance",
    "rgb_distances",
    "nearest_index",
    "nearest_indices",
    "rgb_to_linear",
    "rgb_to_lab",
    "lab_to_lch",
    "hue_order",
]
