"""
Fourier raster engine.
Frequency-domain processing of multi-channel 8-bit rasters: power-of-two FFT,
spectral combination and renormalized reconstruction.
"""
from .complex_value import ComplexValue
from .frequency_image import FrequencyDomainImage, ShiftState
from .filters import KernelCache
from .convolution import convolve, gaussian_blur, high_boost

__all__ = [
    "ComplexValue",
    "FrequencyDomainImage",
    "ShiftState",
    "KernelCache",
    "convolve",
    "gaussian_blur",
    "high_boost",
]
