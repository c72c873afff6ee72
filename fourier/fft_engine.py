'''
FFT engine.

Functions:
- ceiling_power_of_two / log2: size helpers for power-of-two Fourier grids
- fft_1d: in-place radix-2 transform over a strided, offset view of a flat buffer
- transform_2d: in-place 2D transform of one channel (rows, then columns)
- swap_quadrants: in-place quadrant swap of a 2D grid (its own inverse)
- fft_shift / ifft_shift: centring helpers for standalone arrays (odd sizes too)
- fft / ifft: 1D transforms of arbitrary-length sequences (zero-padded)

Normalization convention: forward passes scale by 1/n, inverse passes are
unscaled, so forward followed by inverse is the identity.
'''

import math
from functools import lru_cache
from typing import Optional, Sequence, Tuple

import numpy as np

from .parallel import PARALLEL_CUTOFF, parallel_for

# Trailing entries with |v|^2 at or below this are dropped by truncate_padding.
TRUNCATE_EPSILON = 1e-6


def ceiling_power_of_two(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    n = int(n)
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def log2(n: int) -> int:
    """Truncated base-2 logarithm of a natural number; 0 for 0 and 1."""
    n = int(n)
    if n < 0:
        raise ValueError("log2 expects a non-negative integer.")
    return max(n.bit_length() - 1, 0)


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


@lru_cache(maxsize=None)
def _bit_reversal_pairs(n: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Index pairs (i, j), i < j, swapped by the bit-reversal permutation of length n.
    Walks i forward while keeping j as the bit-reversed counter.
    """
    first, second = [], []
    half = n >> 1
    j = 0
    for i in range(n - 1):
        if i < j:
            first.append(i)
            second.append(j)
        k = half
        while k <= j:
            j -= k
            k >>= 1
        j += k
    first_arr = np.asarray(first, dtype=np.intp)
    second_arr = np.asarray(second, dtype=np.intp)
    first_arr.flags.writeable = False
    second_arr.flags.writeable = False
    return first_arr, second_arr


def _transform_lines(lines: np.ndarray, log2_length: int, forward: bool) -> None:
    """
    Radix-2 Cooley-Tukey transform of every row of `lines` (shape (count, n)), in place.
    `lines` may be any strided view; all writes go through it.
    """
    n = 1 << log2_length
    if lines.shape[-1] != n:
        raise ValueError(f"Line length {lines.shape[-1]} does not match 2**{log2_length}.")

    first, second = _bit_reversal_pairs(n)
    if first.size:
        held = lines[:, first]
        lines[:, first] = lines[:, second]
        lines[:, second] = held

    # twiddle recurrence: (c1, c2) is the per-stage rotation, (u1, u2) the running twiddle
    c1, c2 = -1.0, 0.0
    sign = -1.0 if forward else 1.0
    l2 = 1
    for _ in range(log2_length):
        l1 = l2
        l2 <<= 1
        u1, u2 = 1.0, 0.0
        for j in range(l1):
            top = lines[:, j::l2]
            bottom = lines[:, j + l1::l2]
            t = bottom * complex(u1, u2)
            bottom[...] = top - t
            top += t
            z = u1 * c1 - u2 * c2
            u2 = u1 * c2 + u2 * c1
            u1 = z
        c2 = math.sqrt((1.0 - c1) * 0.5) * sign
        c1 = math.sqrt((1.0 + c1) * 0.5)

    if forward:
        lines *= np.float32(1.0 / n)


def fft_1d(values: np.ndarray, stride: int, offset: int, log2_length: int, forward: bool = True) -> None:
    """
    In-place 1D FFT of the 2**log2_length elements at values[offset + k * stride].

    values : flat complex numpy array, modified in place.
    forward : True for the forward transform (scaled by 1/n), False for the unscaled inverse.
    """
    if values.ndim != 1:
        raise ValueError("fft_1d expects a flat 1D buffer.")
    if log2_length < 0:
        raise ValueError("log2_length must be non-negative.")
    if stride < 1 or offset < 0:
        raise ValueError("stride must be >= 1 and offset >= 0.")
    n = 1 << int(log2_length)
    last = offset + (n - 1) * stride
    if last >= values.size:
        raise ValueError(
            f"Strided view (offset={offset}, stride={stride}, length={n}) exceeds buffer of size {values.size}."
        )
    view = values[offset:last + 1:stride]
    _transform_lines(view[np.newaxis, :], int(log2_length), forward)


def transform_2d(
    spectrum: np.ndarray,
    width: int,
    height: int,
    forward: bool = True,
    workers: Optional[int] = None,
) -> None:
    """
    In-place 2D FFT of one channel stored row-major in a flat buffer.
    Rows are transformed first, then columns; each pass is split across the worker pool.
    """
    if not (is_power_of_two(width) and is_power_of_two(height)):
        raise ValueError(f"Fourier size must be a power of two in each dimension, got {width}x{height}.")
    if spectrum.ndim != 1 or spectrum.size != width * height:
        raise ValueError("Spectrum buffer does not match the given width and height.")
    grid = spectrum.reshape(height, width)
    width_log2, height_log2 = log2(width), log2(height)

    def rows(lo: int, hi: int) -> None:
        _transform_lines(grid[lo:hi], width_log2, forward)

    def columns(lo: int, hi: int) -> None:
        _transform_lines(grid[:, lo:hi].T, height_log2, forward)

    parallel_for(0, height, rows, cutoff=max(1, PARALLEL_CUTOFF * 64 // width), workers=workers)
    parallel_for(0, width, columns, cutoff=max(1, PARALLEL_CUTOFF * 64 // height), workers=workers)


def swap_quadrants(grid: np.ndarray, workers: Optional[int] = None) -> None:
    """
    Swap top-left <-> bottom-right and top-right <-> bottom-left in place.

    On even sizes this is exactly fftshift (and ifftshift). On odd sizes the
    trailing row/column is the fixed reference and does not move, so applying
    the swap twice always restores the grid.
    """
    if grid.ndim != 2:
        raise ValueError("swap_quadrants expects a 2D grid.")
    h, w = grid.shape
    hh, hw = h // 2, w // 2
    if hh == 0 and hw == 0:
        return

    def swap(lo: int, hi: int) -> None:
        if hw:
            top_left = grid[lo:hi, :hw].copy()
            grid[lo:hi, :hw] = grid[lo + hh:hi + hh, hw:2 * hw]
            grid[lo + hh:hi + hh, hw:2 * hw] = top_left
            top_right = grid[lo:hi, hw:2 * hw].copy()
            grid[lo:hi, hw:2 * hw] = grid[lo + hh:hi + hh, :hw]
            grid[lo + hh:hi + hh, :hw] = top_right
        else:
            # single column: plain half swap of the rows
            top = grid[lo:hi].copy()
            grid[lo:hi] = grid[lo + hh:hi + hh]
            grid[lo + hh:hi + hh] = top

    if hh == 0:
        # single row: plain half swap of the columns
        left = grid[:, :hw].copy()
        grid[:, :hw] = grid[:, hw:2 * hw]
        grid[:, hw:2 * hw] = left
        return
    parallel_for(0, hh, swap, cutoff=max(1, PARALLEL_CUTOFF * 64 // max(w, 1)), workers=workers)


def fft_shift(values: np.ndarray) -> np.ndarray:
    """
    Shift zero-frequency to the centre (returns a new array, all axes).
    For odd lengths the centre sample ends up at the last position; use ifft_shift to undo.
    """
    return np.fft.fftshift(values)


def ifft_shift(values: np.ndarray) -> np.ndarray:
    """Inverse of fft_shift (centre -> origin), exact for odd lengths too."""
    return np.fft.ifftshift(values)


def _padded_transform(values: Sequence[complex], forward: bool, truncate_padding: bool) -> np.ndarray:
    data = np.asarray(values, dtype=np.complex64).ravel()
    length = data.size
    if length == 0:
        return np.zeros(0, dtype=np.complex64)
    if length == 1:
        return data.copy()
    target = ceiling_power_of_two(length)
    result = np.zeros(target, dtype=np.complex64)
    result[:length] = data
    fft_1d(result, 1, 0, log2(target), forward)
    if truncate_padding:
        power = result.real * result.real + result.imag * result.imag
        kept = np.nonzero(power > TRUNCATE_EPSILON)[0]
        if kept.size == 0:
            return np.zeros(0, dtype=np.complex64)
        result = result[:kept[-1] + 1].copy()
    return result


def fft(values: Sequence[complex], truncate_padding: bool = False) -> np.ndarray:
    """
    Forward 1D FFT of an arbitrary-length sequence, zero-padded to the next power of two.
    Returns a new complex64 array; the input is not modified.
    """
    return _padded_transform(values, True, truncate_padding)


def ifft(values: Sequence[complex], truncate_padding: bool = True) -> np.ndarray:
    """
    Inverse 1D FFT of an arbitrary-length sequence, zero-padded to the next power of two.
    With truncate_padding, trailing near-zero entries (the padding) are dropped.
    """
    return _padded_transform(values, False, truncate_padding)
