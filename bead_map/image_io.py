# bead_map/image_io.py
from __future__ import annotations

import io
from pathlib import Path
from typing import Tuple

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .constants import ALPHA_THRESHOLD
from .core_types import U8Image, U8Mask

"""
Image I/O helpers (RGBA in sRGB) and alpha binarisation.
"""

try:
    from PIL import ImageCms  # ICC conversion if profile present
except ImportError:  # pragma: no cover
    ImageCms = None  # type: ignore[assignment]


def binarise_alpha(alpha: np.ndarray, threshold: int = ALPHA_THRESHOLD) -> U8Mask:
    """Alpha channel to a 0/255 mask."""
    a = np.asarray(alpha, dtype=np.uint8)
    out = np.zeros_like(a, dtype=np.uint8)
    out[a >= np.uint8(threshold)] = 255
    return out


def _convert_to_srgb_rgba(im: Image.Image) -> Image.Image:
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes and ImageCms is not None:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            im2 = ImageCms.profileToProfile(
                im,
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGBA",
            )
            if im2 is not None:
                return im2
        except (OSError, ValueError, ImageCms.PyCMSError):
            pass

    return im.convert("RGBA")


def load_image_rgba(path: Path) -> Tuple[U8Image, U8Mask]:
    """Load an image with Pillow in sRGB; return (rgb [H,W,3], binarised alpha [H,W])."""
    with Image.open(path) as im0:
        im = _convert_to_srgb_rgba(im0)
    arr = np.array(im, dtype=np.uint8)
    return arr[..., :3].copy(), binarise_alpha(arr[..., 3])


def is_image_file(path: Path) -> bool:
    try:
        with Image.open(path) as im:
            im.seek(0)
            im.load()
        return True
    except (UnidentifiedImageError, OSError):
        return False


__all__ = ["binarise_alpha", "load_image_rgba", "is_image_file"]
