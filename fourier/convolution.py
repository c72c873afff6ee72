"""
fourier/convolution.py

Frequency-domain convolution pipelines over rasters:
  1) FFT of the raster (edge-replicated padding, quadrant shift)
  2) shifted FFT of the centred kernel at the same Fourier size
  3) multiply in the shifted domain
  4) reconstruct (pending shift, inverse FFT, magnitude, renormalize, crop)

API:
- convolve(raster, kernel, ...)
- gaussian_blur(raster, radius, sigma=None, cache=None, ...)
- high_boost(raster, radius, boost, sigma=None, cache=None, ...)

Reconstruction rescales the result so its peak equals the normalization cap
(the raster's own maximum by default), so kernels need not be normalized.
The magnitude is taken per cell, so kernels with negative lobes (high boost)
report |result| where the response dips below zero.
"""

import logging
from typing import Optional

import numpy as np

from io_utils.raster import Raster
from .filters import KernelCache
from .frequency_image import FrequencyDomainImage

logger = logging.getLogger(__name__)


def _transform_for_kernel(
    raster: Raster,
    kernel_width: int,
    kernel_height: int,
    ignore_alpha: bool,
    workers: Optional[int],
) -> FrequencyDomainImage:
    return FrequencyDomainImage.from_raster(
        raster,
        shift_axes=True,
        ignore_alpha=ignore_alpha,
        min_fourier_width=kernel_width,
        min_fourier_height=kernel_height,
        workers=workers,
    )


def _reconstruct(image: FrequencyDomainImage, normalization_cap: Optional[int]) -> Raster:
    if normalization_cap is not None:
        image.normalization_cap = normalization_cap
    return image.to_raster()


def convolve(
    raster: Raster,
    kernel,
    *,
    ignore_alpha: bool = True,
    normalization_cap: Optional[int] = None,
    workers: Optional[int] = None,
) -> Raster:
    """
    Convolve a raster with an arbitrary kernel via the convolution theorem.

    kernel : 2D [x][y] array applied to every channel, or 3D [channel][x][y] array
        with one kernel per channel.
    ignore_alpha : on 4-channel rasters, leave alpha untouched and copy it to the output.
    """
    k = np.asarray(kernel, dtype=np.float32)
    if k.ndim not in (2, 3):
        raise ValueError("Kernel must be a 2D [x][y] or 3D [channel][x][y] array.")
    kernel_width, kernel_height = k.shape[-2], k.shape[-1]
    image = _transform_for_kernel(raster, kernel_width, kernel_height, ignore_alpha, workers)
    with FrequencyDomainImage.from_kernel(
        k,
        shift_axes=True,
        target_width=image.fourier_width,
        target_height=image.fourier_height,
        workers=workers,
    ) as spectrum:
        image.multiply_with(spectrum)
    return _reconstruct(image, normalization_cap)


def _cached_pipeline(
    raster: Raster,
    kind: str,
    radius: int,
    cache: Optional[KernelCache],
    ignore_alpha: bool,
    normalization_cap: Optional[int],
    workers: Optional[int],
    **params,
) -> Raster:
    if cache is None:
        cache = KernelCache(workers=workers)
    side = 2 * int(radius) + 1
    image = _transform_for_kernel(raster, side, side, ignore_alpha, workers)
    spectrum = cache.spectrum(kind, radius, image.fourier_width, image.fourier_height, **params)
    logger.debug("%s pipeline, radius %d, Fourier grid %dx%d", kind, radius, image.fourier_width, image.fourier_height)
    image.multiply_with(spectrum)
    return _reconstruct(image, normalization_cap)


def gaussian_blur(
    raster: Raster,
    radius: int,
    sigma: Optional[float] = None,
    cache: Optional[KernelCache] = None,
    *,
    ignore_alpha: bool = True,
    normalization_cap: Optional[int] = None,
    workers: Optional[int] = None,
) -> Raster:
    """Gaussian blur with a (2r+1)-wide kernel; pass a KernelCache to reuse kernel spectra."""
    return _cached_pipeline(raster, "gaussian", radius, cache, ignore_alpha, normalization_cap, workers, sigma=sigma)


def high_boost(
    raster: Raster,
    radius: int,
    boost: float,
    sigma: Optional[float] = None,
    cache: Optional[KernelCache] = None,
    *,
    ignore_alpha: bool = True,
    normalization_cap: Optional[int] = None,
    workers: Optional[int] = None,
) -> Raster:
    """High-boost sharpening: boost * image - (boost - 1) * gaussian_blur(image). boost must be > 1."""
    return _cached_pipeline(
        raster, "highboost", radius, cache, ignore_alpha, normalization_cap, workers, boost=boost, sigma=sigma
    )
