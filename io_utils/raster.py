# io_utils/raster.py
"""
Bounds-checked raster view used at the boundary of the Fourier engine.

A Raster wraps a uint8 numpy array of shape (H, W, C). Channel order is
whatever the source used (RGB/RGBA from Pillow, or BGR/BGRA from a caller's
own buffer); the engine preserves it.
"""

from typing import Union

import numpy as np


class Raster:
    """Row-major, channel-interleaved 8-bit raster."""

    def __init__(self, pixels: np.ndarray):
        arr = np.asarray(pixels)
        if arr.dtype != np.uint8:
            raise ValueError(f"Raster expects uint8 pixels, got {arr.dtype}.")
        if arr.ndim == 2:
            arr = arr[:, :, np.newaxis]
        elif arr.ndim != 3:
            raise ValueError("Raster expects an HxW or HxWxC array.")
        if arr.shape[2] < 1 or arr.shape[2] > 4:
            raise ValueError("Raster channel count must be between 1 and 4.")
        self._pixels = np.ascontiguousarray(arr)

    @classmethod
    def from_bytes(cls, buffer: Union[bytes, bytearray, memoryview], width: int, height: int, channels: int) -> "Raster":
        expected = width * height * channels
        if len(buffer) != expected:
            raise ValueError(f"Buffer holds {len(buffer)} bytes, expected {expected} for {width}x{height}x{channels}.")
        arr = np.frombuffer(bytes(buffer), dtype=np.uint8).reshape(height, width, channels)
        return cls(arr.copy())

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def channel_count(self) -> int:
        return self._pixels.shape[2]

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def shape(self):
        return self._pixels.shape

    def get_channel_byte(self, pixel_index: int, channel: int) -> int:
        """Byte of `channel` at `pixel_index` (= y * width + x)."""
        if not 0 <= pixel_index < self.pixel_count:
            raise IndexError(f"Pixel index {pixel_index} out of range for {self.width}x{self.height} raster.")
        if not 0 <= channel < self.channel_count:
            raise IndexError(f"Channel {channel} out of range for {self.channel_count}-channel raster.")
        y, x = divmod(pixel_index, self.width)
        return int(self._pixels[y, x, channel])

    def channel(self, channel: int) -> np.ndarray:
        """Read-only (H, W) view of one channel."""
        if not 0 <= channel < self.channel_count:
            raise IndexError(f"Channel {channel} out of range for {self.channel_count}-channel raster.")
        view = self._pixels[:, :, channel]
        view.flags.writeable = False
        return view

    def as_array(self) -> np.ndarray:
        """Copy of the pixels; 2D for single-channel rasters."""
        if self.channel_count == 1:
            return self._pixels[:, :, 0].copy()
        return self._pixels.copy()

    def to_bytes(self) -> bytes:
        return self._pixels.tobytes()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Raster):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._pixels, other._pixels))

    def __repr__(self) -> str:
        return f"Raster({self.width}x{self.height}x{self.channel_count})"
