# io_utils/__init__.py
"""
Raster and I/O helpers for the Fourier raster engine.
"""
from .raster import Raster
from .image_handler import read_raster, save_raster, detect_is_color
from .file_utils import make_result_filename

__all__ = [
    "Raster",
    "read_raster",
    "save_raster",
    "detect_is_color",
    "make_result_filename",
]
