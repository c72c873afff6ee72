"""
visuals/plots.py

Writing the engine's rasters and diagnostic plots to disk.

APIs:
- save_raster_image(raster, out_path)
- plot_magnitude_spectrum(image, out_path=None, ignore_alpha=True)
- plot_phase_spectrum(image, out_path=None, ignore_alpha=True)
- compare_and_save(original, processed, out_path=None, titles=None)

Notes:
- The spectrum plots read the image's current grid without changing it. A freshly
  constructed image is quadrant-shifted by default, so DC sits at the centre.
- If out_path is None, the spectrum plots return the Raster and compare_and_save
  returns the matplotlib Figure.
"""

from typing import Optional, Sequence, Union
import os
import matplotlib.pyplot as plt

from fourier.frequency_image import FrequencyDomainImage
from io_utils.image_handler import save_raster
from io_utils.raster import Raster


# Helper to ensure outdir exists
def _ensure_outdir(out_path: Optional[str]):
    if out_path is None:
        return None
    d = os.path.dirname(out_path)
    if d:
        os.makedirs(d, exist_ok=True)
    return out_path


def save_raster_image(raster: Raster, out_path: str) -> str:
    """Save a 1, 3 or 4 channel raster as an image (format from the extension)."""
    _ensure_outdir(out_path)
    return save_raster(out_path, raster)


def _write_or_return(raster: Raster, out_path: Optional[str]) -> Union[str, Raster]:
    if out_path is None:
        return raster
    return save_raster_image(raster, out_path)


def plot_magnitude_spectrum(
    image: FrequencyDomainImage,
    out_path: Optional[str] = None,
    ignore_alpha: bool = True,
) -> Union[str, Raster]:
    """Magnitude spectrum in decibels, min/max stretched to 0..255, full Fourier grid."""
    return _write_or_return(image.magnitude_plot(ignore_alpha=ignore_alpha), out_path)


def plot_phase_spectrum(
    image: FrequencyDomainImage,
    out_path: Optional[str] = None,
    ignore_alpha: bool = True,
) -> Union[str, Raster]:
    """Phase spectrum, [0, 2pi) mapped onto 0..255, full Fourier grid."""
    return _write_or_return(image.phase_plot(ignore_alpha=ignore_alpha), out_path)


def _show(ax, raster: Raster, title: str):
    arr = raster.as_array()
    if arr.ndim == 2:
        ax.imshow(arr, cmap="gray", interpolation="nearest", vmin=0, vmax=255)
    else:
        ax.imshow(arr)
    ax.set_title(title)
    ax.axis("off")


def compare_and_save(
    original: Raster,
    processed: Raster,
    out_path: Optional[str] = None,
    titles: Optional[Sequence[str]] = None,
):
    """
    Original (left) | Processed (right).
    Saves the figure when out_path is given, otherwise returns it.
    """
    left, right = titles if titles else ("Original", "Processed")
    fig, axs = plt.subplots(1, 2, figsize=(12, 6))
    _show(axs[0], original, left)
    _show(axs[1], processed, right)

    if out_path:
        _ensure_outdir(out_path)
        fig.savefig(out_path, dpi=200, bbox_inches="tight", pad_inches=0.05)
        plt.close(fig)
        return out_path
    return fig
