# io_utils/image_handler.py
"""
Image read/write helpers using Pillow.

Functions:
- read_raster(path, keep_alpha=True) -> Raster (H x W x 1, 3 or 4 channels)
- save_raster(path, raster) -> writes image
- detect_is_color(raster_or_array) -> bool
"""

from typing import Union

from PIL import Image
import pillow_avif
import numpy as np

from .raster import Raster

_MODES = {1: "L", 3: "RGB", 4: "RGBA"}


def read_raster(path: str, keep_alpha: bool = True) -> Raster:
    """
    Read an image from `path` as a Raster.
    - Images with alpha (RGBA, LA, palette transparency) become RGBA when keep_alpha is True,
      otherwise RGB.
    - Colour and palette images become RGB, everything else grayscale (L).
    """
    img = Image.open(path)
    mode = img.mode
    has_alpha = mode in ("RGBA", "LA") or ("transparency" in img.info)
    if has_alpha:
        img = img.convert("RGBA" if keep_alpha else "RGB")
    elif mode.startswith("RGB") or mode in ("P",) or path.lower().endswith(".avif"):
        img = img.convert("RGB")
    else:
        img = img.convert("L")
    return Raster(np.asarray(img))


def save_raster(path: str, raster: Raster) -> str:
    """Save a 1, 3 or 4 channel Raster to `path` (format from the extension)."""
    mode = _MODES.get(raster.channel_count)
    if mode is None:
        raise ValueError(f"save_raster cannot write a {raster.channel_count}-channel raster.")
    img = Image.fromarray(raster.as_array())
    img.save(path)
    return path


def detect_is_color(image: Union[Raster, np.ndarray]) -> bool:
    if isinstance(image, Raster):
        return image.channel_count >= 3
    return image.ndim == 3 and image.shape[2] in (3, 4)
