"""
fourier/complex_value.py

Single-precision complex value type and the vectorized quantities derived from it.

- ComplexValue: immutable (real, imag) pair with magnitude, magnitude_squared,
  magnitude_db and phase.
- magnitude / magnitude_squared / magnitude_db / phase: the same quantities over
  whole numpy arrays (used by reconstruction and the diagnostic plots).

Decibels use 20 * log10(magnitude), so a magnitude of 0 maps to -inf.
"""

import math
from typing import NamedTuple, Union

import numpy as np


class ComplexValue(NamedTuple):
    real: float = 0.0
    imag: float = 0.0

    @classmethod
    def from_complex(cls, value: Union[complex, float, "ComplexValue"]) -> "ComplexValue":
        if isinstance(value, ComplexValue):
            return value
        value = complex(value)
        # round-trip through float32 so values read back match the stored buffer
        return cls(float(np.float32(value.real)), float(np.float32(value.imag)))

    @property
    def magnitude(self) -> float:
        return math.hypot(self.real, self.imag)

    @property
    def magnitude_squared(self) -> float:
        return self.real * self.real + self.imag * self.imag

    @property
    def magnitude_db(self) -> float:
        mag = self.magnitude
        if mag == 0.0:
            return float("-inf")
        return 20.0 * math.log10(mag)

    @property
    def phase(self) -> float:
        """Phase in radians, in (-pi, pi]."""
        return math.atan2(self.imag, self.real)

    def __complex__(self) -> complex:
        return complex(self.real, self.imag)


def magnitude(values: np.ndarray) -> np.ndarray:
    return np.abs(values).astype(np.float32, copy=False)


def magnitude_squared(values: np.ndarray) -> np.ndarray:
    return (values.real * values.real + values.imag * values.imag).astype(np.float32, copy=False)


def magnitude_db(values: np.ndarray) -> np.ndarray:
    """20 * log10(|values|); zero entries become -inf without raising a warning."""
    with np.errstate(divide="ignore"):
        return 20.0 * np.log10(np.abs(values).astype(np.float64))


def phase(values: np.ndarray) -> np.ndarray:
    return np.angle(values)
