"""
fourier/filters.py

Spatial convolution kernels and a caller-owned cache for them.

Kernels are float32 arrays addressed [x][y] with odd side lengths, so the
centre sample is kernel[r, r] for radius r.

- gaussian_kernel(radius, sigma=None)
- box_kernel(radius)
- impulse_kernel(radius)
- compose_highboost_kernel(lowpass, boost)  -> boost * delta + (1 - boost) * lowpass
- highboost_kernel(radius, boost, sigma=None)
- KernelCache: kernels keyed by (kind, radius, params), kernel spectra keyed by
  the same plus the Fourier size.
"""

from typing import Dict, Optional, Tuple

import numpy as np

from .frequency_image import FrequencyDomainImage

# Default Gaussian sigma is radius / DEFAULT_SIGMA_FACTOR (the kernel then covers +-3 sigma).
DEFAULT_SIGMA_FACTOR = 3.0


# --- Distance grid & helpers ---
def _distance_grid(radius: int, dtype=np.float64) -> np.ndarray:
    """Euclidean distance of every cell of a (2r+1) x (2r+1) grid from its centre."""
    x = np.arange(-radius, radius + 1, dtype=dtype).reshape(-1, 1)
    y = np.arange(-radius, radius + 1, dtype=dtype).reshape(1, -1)
    return np.hypot(x, y)


def _check_radius(radius) -> int:
    if int(radius) != radius or radius < 0:
        raise ValueError("Kernel radius must be a non-negative integer.")
    return int(radius)


# --- Kernels ---
def gaussian_kernel(radius: int, sigma: Optional[float] = None) -> np.ndarray:
    """
    Normalized Gaussian kernel exp(-D^2 / (2 sigma^2)) of side 2*radius + 1.
    sigma defaults to radius / DEFAULT_SIGMA_FACTOR. Radius 0 is the identity kernel.
    """
    radius = _check_radius(radius)
    if radius == 0:
        return np.ones((1, 1), dtype=np.float32)
    if sigma is None:
        sigma = radius / DEFAULT_SIGMA_FACTOR
    if sigma <= 0:
        raise ValueError("Gaussian sigma must be positive.")
    D = _distance_grid(radius)
    kernel = np.exp(-(D ** 2) / (2.0 * float(sigma) ** 2))
    kernel /= kernel.sum()
    return kernel.astype(np.float32)


def box_kernel(radius: int) -> np.ndarray:
    """Uniform averaging kernel of side 2*radius + 1."""
    radius = _check_radius(radius)
    side = 2 * radius + 1
    return np.full((side, side), 1.0 / (side * side), dtype=np.float32)


def impulse_kernel(radius: int) -> np.ndarray:
    """Unit impulse at the centre of a (2r+1) x (2r+1) kernel."""
    radius = _check_radius(radius)
    side = 2 * radius + 1
    kernel = np.zeros((side, side), dtype=np.float32)
    kernel[radius, radius] = 1.0
    return kernel


def compose_highboost_kernel(lowpass: np.ndarray, boost: float) -> np.ndarray:
    """
    Spatial high-boost kernel from a low-pass kernel L and boost factor r:
        Hb = r * delta + (1 - r) * L
    which is the spatial form of the frequency mask r + (1 - r) * L.
    A normalized L gives a kernel that also sums to 1, so flat regions keep their value.
    """
    if boost is None:
        raise ValueError("Boost factor must be provided.")
    boost = float(boost)
    if boost <= 1.0:
        raise ValueError("Boost factor must be > 1.")
    L = np.asarray(lowpass, dtype=np.float64)
    if L.ndim != 2 or L.shape[0] % 2 == 0 or L.shape[1] % 2 == 0:
        raise ValueError("High-boost composition needs a 2D low-pass kernel with odd side lengths.")
    Hb = (1.0 - boost) * L
    Hb[L.shape[0] // 2, L.shape[1] // 2] += boost
    return Hb.astype(np.float32)


def highboost_kernel(radius: int, boost: float, sigma: Optional[float] = None) -> np.ndarray:
    return compose_highboost_kernel(gaussian_kernel(radius, sigma), boost)


_BUILDERS = {
    "gaussian": gaussian_kernel,
    "box": box_kernel,
    "impulse": impulse_kernel,
    "highboost": highboost_kernel,
}


class KernelCache:
    """
    Kernels and kernel spectra, reused across pipeline runs.

    Owned by the caller and not synchronized: share one instance per thread, or
    guard it yourself. Returned kernels are read-only; returned spectra are
    shared and must only be used as combination operands (never reconstructed
    or mutated).
    """

    def __init__(self, workers: Optional[int] = None):
        self.workers = workers
        self._kernels: Dict[Tuple, np.ndarray] = {}
        self._spectra: Dict[Tuple, FrequencyDomainImage] = {}

    @staticmethod
    def _key(kind: str, radius: int, params: Dict) -> Tuple:
        if kind not in _BUILDERS:
            raise ValueError(f"Unknown kernel kind '{kind}'. Choose one of {sorted(_BUILDERS)}.")
        return (kind, int(radius)) + tuple(sorted(params.items()))

    def kernel(self, kind: str, radius: int, **params) -> np.ndarray:
        key = self._key(kind, radius, params)
        kernel = self._kernels.get(key)
        if kernel is None:
            kernel = _BUILDERS[kind](radius, **params)
            kernel.flags.writeable = False
            self._kernels[key] = kernel
        return kernel

    def spectrum(self, kind: str, radius: int, fourier_width: int, fourier_height: int, **params) -> FrequencyDomainImage:
        """Shifted spectrum of the kernel, padded to at least fourier_width x fourier_height."""
        key = self._key(kind, radius, params) + (int(fourier_width), int(fourier_height))
        spectrum = self._spectra.get(key)
        if spectrum is None or spectrum.is_closed:
            spectrum = FrequencyDomainImage.from_kernel(
                self.kernel(kind, radius, **params),
                shift_axes=True,
                target_width=fourier_width,
                target_height=fourier_height,
                workers=self.workers,
            )
            self._spectra[key] = spectrum
        return spectrum

    def clear(self) -> None:
        for spectrum in self._spectra.values():
            spectrum.close()
        self._kernels.clear()
        self._spectra.clear()

    def __len__(self) -> int:
        return len(self._kernels) + len(self._spectra)
