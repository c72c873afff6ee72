"""
fourier/frequency_image.py

Frequency-domain representation of a multi-channel raster.

A FrequencyDomainImage owns one flat complex64 spectrum per channel, padded to
power-of-two Fourier dimensions. The typical pipeline is:

  1) from_raster (edge-replicated padding, forward FFT, optional quadrant shift)
  2) from_kernel for the second operand (centred zero padding, same Fourier size)
  3) multiply_with / divide_by / add_with / subtract_from
  4) to_raster (pending shift undone, inverse FFT, magnitude, rescale to the
     normalization cap, crop to the target size)

Quadrant-shift bookkeeping is the ShiftState machine:
  UNSHIFTED      DC at the origin.
  SHIFTED        DC at the centre; undone before the inverse transform.
  SHIFT_PENDING  DC at the centre and the spectrum carries one centred kernel;
                 the inverse runs on the shifted data (the magnitude drops the
                 resulting sign modulation) and one spatial swap afterwards undoes
                 the kernel's half-grid offset.
Multiplying or dividing by a shifted operand toggles SHIFTED <-> SHIFT_PENDING.

Instances are not thread-safe; each one belongs to the caller running the pipeline.
"""

import logging
import warnings
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from io_utils.raster import Raster
from .complex_value import ComplexValue, magnitude_db
from .fft_engine import ceiling_power_of_two, swap_quadrants, transform_2d
from .parallel import PARALLEL_CUTOFF, parallel_for

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * np.pi


class ShiftState(Enum):
    UNSHIFTED = "unshifted"
    SHIFTED = "shifted"
    SHIFT_PENDING = "shift_pending"

    @property
    def shift_applied(self) -> bool:
        return self is not ShiftState.UNSHIFTED

    @property
    def deferred_shift_parity(self) -> bool:
        return self is ShiftState.SHIFT_PENDING


def next_shift_state(state: ShiftState, operand_shifted: bool) -> ShiftState:
    """State after multiplying/dividing an image in `state` by an operand."""
    if not operand_shifted or state is ShiftState.UNSHIFTED:
        return state
    if state is ShiftState.SHIFTED:
        return ShiftState.SHIFT_PENDING
    return ShiftState.SHIFTED


def _cells_cutoff(cells_per_item: int) -> int:
    return max(1, PARALLEL_CUTOFF * 64 // max(1, cells_per_item))


class FrequencyDomainImage:
    """
    Fourier transform of an image or kernel.

    Use the from_raster / from_kernel constructors. Element access:
    image[c, index] or image[c, x, y] with index = y * fourier_width + x.
    """

    def __init__(
        self,
        spectra: List[np.ndarray],
        target_width: int,
        target_height: int,
        fourier_width: int,
        fourier_height: int,
        original_max: int,
        shift_state: ShiftState = ShiftState.UNSHIFTED,
        alpha_reference: Optional[Raster] = None,
        workers: Optional[int] = None,
    ):
        size = fourier_width * fourier_height
        for spectrum in spectra:
            if spectrum.ndim != 1 or spectrum.size != size:
                raise ValueError("Every channel spectrum must be a flat array of fourier_width * fourier_height values.")
        self._spectra: Optional[List[np.ndarray]] = spectra
        self._target_width = int(target_width)
        self._target_height = int(target_height)
        self._fourier_width = int(fourier_width)
        self._fourier_height = int(fourier_height)
        self._original_max = int(original_max)
        self._normalization_cap = int(original_max)
        self._shift_state = shift_state
        self._alpha_reference = alpha_reference
        self.workers = workers

    # ------------------------------------------------------------------ construction

    @classmethod
    def from_raster(
        cls,
        raster: Raster,
        shift_axes: bool = True,
        ignore_alpha: bool = False,
        min_fourier_width: Optional[int] = None,
        min_fourier_height: Optional[int] = None,
        workers: Optional[int] = None,
    ) -> "FrequencyDomainImage":
        """
        Forward transform of a raster.

        Cells beyond the raster repeat the last valid row/column. With ignore_alpha on a
        4-channel raster only the first three channels are transformed and the raster is
        retained so to_raster can copy its alpha back.
        """
        if raster.width == 0 or raster.height == 0:
            raise ValueError("Cannot transform an empty raster.")
        component_count = raster.channel_count
        alpha_reference = None
        if ignore_alpha and component_count == 4:
            component_count = 3
            alpha_reference = raster

        target_width, target_height = raster.width, raster.height
        fourier_width = ceiling_power_of_two(max(target_width, min_fourier_width or 0))
        fourier_height = ceiling_power_of_two(max(target_height, min_fourier_height or 0))

        xs = np.minimum(np.arange(fourier_width), target_width - 1)
        ys = np.minimum(np.arange(fourier_height), target_height - 1)
        channels = [raster.channel(c) for c in range(component_count)]
        spectra = [np.empty(fourier_width * fourier_height, dtype=np.complex64) for _ in range(component_count)]

        def fill(lo: int, hi: int) -> None:
            for channel, spectrum in zip(channels, spectra):
                grid = spectrum.reshape(fourier_height, fourier_width)
                grid[lo:hi] = channel[np.ix_(ys[lo:hi], xs)]

        parallel_for(0, fourier_height, fill, cutoff=_cells_cutoff(fourier_width * component_count), workers=workers)
        original_max = max(int(channel.max()) for channel in channels)

        image = cls(
            spectra,
            target_width,
            target_height,
            fourier_width,
            fourier_height,
            original_max,
            alpha_reference=alpha_reference,
            workers=workers,
        )
        image.fft()
        if shift_axes:
            image._swap_all()
            image._shift_state = ShiftState.SHIFTED
        logger.debug(
            "Transformed %dx%d raster (%d channels) into %dx%d Fourier grid, original max %d",
            target_width, target_height, component_count, fourier_width, fourier_height, original_max,
        )
        return image

    @classmethod
    def from_kernel(
        cls,
        kernel,
        shift_axes: bool = True,
        target_width: Optional[int] = None,
        target_height: Optional[int] = None,
        workers: Optional[int] = None,
    ) -> "FrequencyDomainImage":
        """
        Forward transform of a convolution kernel. No normalization is applied to the kernel.

        kernel : 2D array addressed [x][y] (one channel) or 3D array addressed [channel][x][y].
        target_width / target_height : minimum Fourier size, e.g. the Fourier size of the
            image the kernel will be combined with. Smaller values than the kernel are ignored.

        The kernel centre (kw // 2, kh // 2) is placed at (fourier_width // 2, fourier_height // 2),
        all other cells are zero.
        """
        k = np.asarray(kernel, dtype=np.float32)
        if k.ndim == 2:
            k = k[np.newaxis]
        elif k.ndim != 3:
            raise ValueError("Kernel must be a 2D [x][y] or 3D [channel][x][y] array.")
        component_count, kernel_width, kernel_height = k.shape
        if component_count == 0 or kernel_width == 0 or kernel_height == 0:
            raise ValueError("Cannot transform an empty kernel.")

        fourier_width = ceiling_power_of_two(max(kernel_width, target_width or 0))
        fourier_height = ceiling_power_of_two(max(kernel_height, target_height or 0))
        x0 = fourier_width // 2 - kernel_width // 2
        y0 = fourier_height // 2 - kernel_height // 2

        spectra = []
        for c in range(component_count):
            spectrum = np.zeros(fourier_width * fourier_height, dtype=np.complex64)
            grid = spectrum.reshape(fourier_height, fourier_width)
            grid[y0:y0 + kernel_height, x0:x0 + kernel_width] = k[c].T
            spectra.append(spectrum)

        image = cls(
            spectra,
            kernel_width,
            kernel_height,
            fourier_width,
            fourier_height,
            255,
            workers=workers,
        )
        image.fft()
        if shift_axes:
            image._swap_all()
            image._shift_state = ShiftState.SHIFTED
        logger.debug(
            "Transformed %dx%d kernel (%d channels) into %dx%d Fourier grid",
            kernel_width, kernel_height, component_count, fourier_width, fourier_height,
        )
        return image

    def copy(self) -> "FrequencyDomainImage":
        """Deep copy of the spectra; the retained alpha raster is shared."""
        self._check_open()
        clone = FrequencyDomainImage(
            [spectrum.copy() for spectrum in self._spectra],
            self._target_width,
            self._target_height,
            self._fourier_width,
            self._fourier_height,
            self._original_max,
            shift_state=self._shift_state,
            alpha_reference=self._alpha_reference,
            workers=self.workers,
        )
        clone._normalization_cap = self._normalization_cap
        return clone

    # ------------------------------------------------------------------ properties

    @property
    def component_count(self) -> int:
        self._check_open()
        return len(self._spectra)

    @property
    def target_width(self) -> int:
        return self._target_width

    @property
    def target_height(self) -> int:
        return self._target_height

    @property
    def target_size(self) -> Tuple[int, int]:
        return self._target_width, self._target_height

    @property
    def fourier_width(self) -> int:
        return self._fourier_width

    @property
    def fourier_height(self) -> int:
        return self._fourier_height

    @property
    def fourier_size(self) -> Tuple[int, int]:
        return self._fourier_width, self._fourier_height

    @property
    def fourier_pixel_count(self) -> int:
        return self._fourier_width * self._fourier_height

    @property
    def original_max(self) -> int:
        return self._original_max

    @property
    def normalization_cap(self) -> int:
        """Output ceiling used by to_raster. Defaults to original_max."""
        return self._normalization_cap

    @normalization_cap.setter
    def normalization_cap(self, value: int) -> None:
        value = int(value)
        if not 0 <= value <= 255:
            raise ValueError("normalization_cap must be between 0 and 255.")
        self._normalization_cap = value

    @property
    def shift_state(self) -> ShiftState:
        return self._shift_state

    @property
    def shift_applied(self) -> bool:
        return self._shift_state.shift_applied

    @property
    def deferred_shift_parity(self) -> bool:
        return self._shift_state.deferred_shift_parity

    @property
    def has_alpha_reference(self) -> bool:
        return self._alpha_reference is not None

    @property
    def is_closed(self) -> bool:
        return self._spectra is None

    def grid(self, channel: int) -> np.ndarray:
        """Writable (fourier_height, fourier_width) view of one channel's spectrum."""
        self._check_open()
        return self._spectra[channel].reshape(self._fourier_height, self._fourier_width)

    def _flat_index(self, key) -> Tuple[int, int]:
        if not isinstance(key, tuple) or len(key) not in (2, 3):
            raise KeyError("Index with image[channel, index] or image[channel, x, y].")
        if len(key) == 2:
            channel, index = key
        else:
            channel, x, y = key
            if not (0 <= x < self._fourier_width and 0 <= y < self._fourier_height):
                raise IndexError(f"({x}, {y}) is outside the {self._fourier_width}x{self._fourier_height} Fourier grid.")
            index = y * self._fourier_width + x
        if not 0 <= index < self.fourier_pixel_count:
            raise IndexError(f"Index {index} is outside the Fourier grid.")
        return channel, index

    def __getitem__(self, key) -> ComplexValue:
        self._check_open()
        channel, index = self._flat_index(key)
        value = self._spectra[channel][index]
        return ComplexValue(float(value.real), float(value.imag))

    def __setitem__(self, key, value) -> None:
        self._check_open()
        channel, index = self._flat_index(key)
        self._spectra[channel][index] = complex(value)

    # ------------------------------------------------------------------ transforms

    def fft(self) -> None:
        """In-place forward 2D FFT of every channel (no shift bookkeeping)."""
        self._transform(True)

    def inverse_fft(self) -> None:
        """In-place inverse 2D FFT of every channel (no shift bookkeeping)."""
        self._transform(False)

    def _transform(self, forward: bool) -> None:
        self._check_open()
        for spectrum in self._spectra:
            transform_2d(spectrum, self._fourier_width, self._fourier_height, forward, workers=self.workers)

    def _swap_all(self) -> None:
        for c in range(len(self._spectra)):
            swap_quadrants(self.grid(c), workers=self.workers)

    def shift(self) -> None:
        """
        Quadrant-shift every channel, toggling UNSHIFTED <-> SHIFTED.
        Raises RuntimeError while a shift is pending after a combination.
        """
        self._check_open()
        if self._shift_state is ShiftState.SHIFT_PENDING:
            raise RuntimeError("Cannot shift manually while a shift is pending; reconstruct with to_raster().")
        self._swap_all()
        if self._shift_state is ShiftState.SHIFTED:
            self._shift_state = ShiftState.UNSHIFTED
        else:
            self._shift_state = ShiftState.SHIFTED

    # ------------------------------------------------------------------ spectral combination

    def _combine(self, other: "FrequencyDomainImage", operation: np.ufunc, tracks_shift: bool) -> None:
        self._check_open()
        if not isinstance(other, FrequencyDomainImage):
            raise TypeError("Spectral operations expect another FrequencyDomainImage.")
        other._check_open()
        if other.fourier_size != self.fourier_size:
            raise ValueError(
                f"Fourier size mismatch: {other.fourier_width}x{other.fourier_height} operand "
                f"vs {self._fourier_width}x{self._fourier_height} image."
            )
        if len(other._spectra) == 1:
            pairs = [(c, 0) for c in range(len(self._spectra))]
        else:
            pairs = [(c, c) for c in range(min(len(self._spectra), len(other._spectra)))]

        if operation is np.divide:
            for operand in {oc for _, oc in pairs}:
                if not np.all(other._spectra[operand]):
                    raise ZeroDivisionError(
                        f"Divisor spectrum channel {operand} contains exact zeros; guard the operand before dividing."
                    )

        def apply(lo: int, hi: int) -> None:
            for c, oc in pairs:
                target = self._spectra[c][lo:hi]
                operation(target, other._spectra[oc][lo:hi], out=target)

        parallel_for(0, self.fourier_pixel_count, apply, cutoff=_cells_cutoff(len(pairs)), workers=self.workers)

        if tracks_shift and other.shift_applied:
            if self._shift_state is ShiftState.UNSHIFTED:
                warnings.warn(
                    "Combining an unshifted spectrum with a quadrant-shifted operand; "
                    "the result will not reconstruct to a centred convolution.",
                    RuntimeWarning,
                )
            self._shift_state = next_shift_state(self._shift_state, True)

    def multiply_with(self, other: "FrequencyDomainImage") -> None:
        """
        Elementwise complex multiplication (convolution in the spatial domain).
        A single-channel operand applies to every channel; otherwise channels pair up in order.
        """
        self._combine(other, np.multiply, tracks_shift=True)

    def divide_by(self, other: "FrequencyDomainImage") -> None:
        """
        Elementwise complex division (deconvolution).
        The divisor must not contain exact zeros: ZeroDivisionError is raised before anything changes.
        """
        self._combine(other, np.divide, tracks_shift=True)

    def add_with(self, other: "FrequencyDomainImage") -> None:
        self._combine(other, np.add, tracks_shift=False)

    def subtract_from(self, other: "FrequencyDomainImage") -> None:
        """Subtract `other` from this image, elementwise."""
        self._combine(other, np.subtract, tracks_shift=False)

    def apply_function(self, function: Callable, with_coordinates: bool = False) -> None:
        """
        Replace every channel grid G by function(G), or function(G, x, y) with
        x of shape (1, fourier_width) and y of shape (fourier_height, 1).
        The function works on whole arrays and must return something broadcastable to G.
        """
        self._check_open()
        x = np.arange(self._fourier_width)[np.newaxis, :]
        y = np.arange(self._fourier_height)[:, np.newaxis]
        for c in range(len(self._spectra)):
            grid = self.grid(c)
            grid[...] = function(grid, x, y) if with_coordinates else function(grid)

    # ------------------------------------------------------------------ reconstruction

    def to_raster(self) -> Raster:
        """
        Inverse transform in place and return the target-sized byte raster.
        The image is closed afterwards; copy() it first to keep the spectrum.
        """
        self._check_open()
        state = self._shift_state
        if state is ShiftState.SHIFTED:
            self._swap_all()
        self._transform(False)
        if state is ShiftState.SHIFT_PENDING:
            self._swap_all()
        self._shift_state = ShiftState.UNSHIFTED

        fw, fh = self._fourier_width, self._fourier_height
        tw, th = self._target_width, self._target_height
        magnitudes = [np.empty((fh, fw), dtype=np.float32) for _ in self._spectra]
        grids = [self.grid(c) for c in range(len(self._spectra))]

        def measure(lo: int, hi: int) -> float:
            peak = 0.0
            for grid, mags in zip(grids, magnitudes):
                np.abs(grid[lo:hi], out=mags[lo:hi])
                peak = max(peak, float(mags[lo:hi].max()))
            return peak

        cutoff = _cells_cutoff(fw * len(grids))
        peak = max(parallel_for(0, fh, measure, cutoff=cutoff, workers=self.workers))
        if peak == 0.0:
            logger.debug("Reconstruction peak magnitude is zero; using unit scale")
            scale = 1.0
        else:
            scale = self._normalization_cap / peak

        component_count = len(self._spectra)
        add_alpha = self._alpha_reference is not None and component_count != 4
        out = np.empty((th, tw, 4 if add_alpha else component_count), dtype=np.uint8)

        def emit(lo: int, hi: int) -> None:
            for c, mags in enumerate(magnitudes):
                scaled = np.rint(mags[lo:hi, :tw].astype(np.float64) * scale)
                out[lo:hi, :, c] = np.clip(scaled, 0, 255).astype(np.uint8)

        parallel_for(0, th, emit, cutoff=cutoff, workers=self.workers)
        if add_alpha:
            out[:, :, 3] = self._alpha_reference.channel(3)
        logger.debug("Reconstructed %dx%d raster, peak magnitude %g, scale %g", tw, th, peak, scale)
        self.close()
        return Raster(out)

    # ------------------------------------------------------------------ diagnostics

    def _plot_channels(self, ignore_alpha: bool) -> List[np.ndarray]:
        self._check_open()
        count = len(self._spectra)
        if count == 4 and ignore_alpha:
            count = 3
        return [self.grid(c) for c in range(count)]

    def magnitude_plot(self, ignore_alpha: bool = True) -> Raster:
        """
        Magnitude of the current grid in decibels (20 * log10), stretched to 0..255 over
        the plot's own min/max. Zero magnitudes take the smallest finite value of the plot.
        """
        grids = self._plot_channels(ignore_alpha)
        db = np.stack([magnitude_db(grid) for grid in grids], axis=2)
        finite = np.isfinite(db)
        if not finite.any():
            return Raster(np.zeros(db.shape, dtype=np.uint8))
        low = float(db[finite].min())
        high = float(db[finite].max())
        db[~finite] = low
        if high == low:
            return Raster(np.zeros(db.shape, dtype=np.uint8))
        plot = (db - low) * (255.0 / (high - low))
        return Raster(np.clip(plot, 0, 255).astype(np.uint8))

    def phase_plot(self, ignore_alpha: bool = True) -> Raster:
        """Phase of the current grid, [0, 2*pi) mapped linearly onto 0..255."""
        grids = self._plot_channels(ignore_alpha)
        phases = np.stack([np.angle(grid).astype(np.float64) for grid in grids], axis=2)
        wrapped = np.mod(phases + TWO_PI, TWO_PI)
        plot = wrapped * (255.0 / TWO_PI)
        return Raster(np.clip(plot, 0, 255).astype(np.uint8))

    # ------------------------------------------------------------------ lifetime

    def _check_open(self) -> None:
        if self._spectra is None:
            raise ValueError("Operation on a closed FrequencyDomainImage.")

    def close(self) -> None:
        """Release the channel buffers and the retained alpha raster."""
        self._spectra = None
        self._alpha_reference = None

    def __enter__(self) -> "FrequencyDomainImage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        if self.is_closed:
            return "FrequencyDomainImage(closed)"
        return (
            f"FrequencyDomainImage(target={self._target_width}x{self._target_height}, "
            f"fourier={self._fourier_width}x{self._fourier_height}, "
            f"channels={len(self._spectra)}, state={self._shift_state.value})"
        )
