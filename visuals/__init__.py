# visuals/__init__.py
"""
Visual helpers for the Fourier raster engine.
Writes reconstructed rasters, spectrum plots and comparison figures.
"""
from .plots import (
    save_raster_image,
    plot_magnitude_spectrum,
    plot_phase_spectrum,
    compare_and_save,
)
__all__ = [
    "save_raster_image",
    "plot_magnitude_spectrum",
    "plot_phase_spectrum",
    "compare_and_save",
]
