import numpy as np
import pytest
from fourier.fft_engine import (
    ceiling_power_of_two, log2, fft_1d, transform_2d, swap_quadrants,
    fft_shift, ifft_shift, fft, ifft,
)


def _random_complex(n, seed=0):
    rng = np.random.default_rng(seed)
    return (rng.random(n) + 1j * rng.random(n)).astype(np.complex64)


def test_ceiling_power_of_two():
    assert [ceiling_power_of_two(n) for n in (0, 1, 2, 3, 5, 8, 9)] == [1, 1, 2, 4, 8, 8, 16]


def test_log2_truncates():
    assert log2(1) == 0
    assert log2(8) == 3
    assert log2(9) == 3


def test_fft_1d_forward_matches_numpy_scaled():
    x = _random_complex(64)
    buf = x.copy()
    fft_1d(buf, 1, 0, 6, forward=True)
    assert np.allclose(buf, np.fft.fft(x) / 64, atol=1e-5)


def test_fft_1d_inverse_is_unscaled():
    x = _random_complex(32, seed=1)
    buf = x.copy()
    fft_1d(buf, 1, 0, 5, forward=False)
    assert np.allclose(buf, np.fft.ifft(x) * 32, rtol=1e-4, atol=1e-4)


def test_fft_1d_roundtrip():
    x = _random_complex(16, seed=2)
    buf = x.copy()
    fft_1d(buf, 1, 0, 4, forward=True)
    fft_1d(buf, 1, 0, 4, forward=False)
    assert np.allclose(buf, x, atol=1e-5)


def test_fft_1d_strided_view_touches_only_its_elements():
    # 4 rows x 8 columns, transform column 3 only
    x = _random_complex(32, seed=3)
    buf = x.copy()
    fft_1d(buf, 8, 3, 2, forward=True)
    column = np.arange(3, 32, 8)
    assert np.allclose(buf[column], np.fft.fft(x[column]) / 4, atol=1e-5)
    others = np.setdiff1d(np.arange(32), column)
    assert np.array_equal(buf[others], x[others])


def test_fft_1d_rejects_views_past_the_buffer():
    with pytest.raises(ValueError):
        fft_1d(np.zeros(6, dtype=np.complex64), 1, 0, 3)
    with pytest.raises(ValueError):
        fft_1d(np.zeros(8, dtype=np.complex64), 2, 2, 2)
    with pytest.raises(ValueError):
        fft_1d(np.zeros((2, 4), dtype=np.complex64), 1, 0, 2)


def test_fft_1d_linearity():
    x = _random_complex(16, seed=4)
    y = _random_complex(16, seed=5)
    a, b = 2.5, -0.75
    combined = (a * x + b * y).astype(np.complex64)
    fx, fy = x.copy(), y.copy()
    fft_1d(combined, 1, 0, 4)
    fft_1d(fx, 1, 0, 4)
    fft_1d(fy, 1, 0, 4)
    assert np.allclose(combined, a * fx + b * fy, atol=1e-5)


def test_parseval_energy_with_forward_normalization():
    x = _random_complex(128, seed=6)
    X = x.copy()
    fft_1d(X, 1, 0, 7)
    energy_in = float(np.sum(np.abs(x.astype(np.complex128)) ** 2))
    energy_out = float(np.sum(np.abs(X.astype(np.complex128)) ** 2)) * 128
    assert energy_out == pytest.approx(energy_in, rel=1e-4)


def test_transform_2d_matches_numpy():
    rng = np.random.default_rng(7)
    img = rng.random((8, 16)).astype(np.float32)
    buf = img.astype(np.complex64).ravel()
    transform_2d(buf, 16, 8, forward=True, workers=1)
    expected = np.fft.fft2(img) / img.size
    assert np.allclose(buf.reshape(8, 16), expected, atol=1e-5)


def test_transform_2d_constant_grid_has_only_dc():
    buf = np.full(16, 100, dtype=np.complex64)
    transform_2d(buf, 4, 4, forward=True)
    grid = buf.reshape(4, 4)
    assert grid[0, 0].real == pytest.approx(100.0, abs=1e-4)
    rest = np.abs(grid).ravel()[1:]
    assert np.all(rest < 1e-4)
    transform_2d(buf, 4, 4, forward=False)
    assert np.allclose(buf, 100.0, atol=1e-4)


def test_transform_2d_parallel_matches_sequential():
    rng = np.random.default_rng(8)
    data = (rng.random(128 * 128) * 255).astype(np.complex64)
    a, b = data.copy(), data.copy()
    transform_2d(a, 128, 128, workers=1)
    transform_2d(b, 128, 128, workers=4)
    assert np.allclose(a, b, atol=1e-5)


def test_transform_2d_validates_sizes():
    with pytest.raises(ValueError):
        transform_2d(np.zeros(12, dtype=np.complex64), 4, 3)
    with pytest.raises(ValueError):
        transform_2d(np.zeros(8, dtype=np.complex64), 4, 4)


def test_swap_quadrants_even_is_fftshift_and_involution():
    grid = np.arange(32, dtype=np.complex64).reshape(4, 8)
    original = grid.copy()
    swap_quadrants(grid)
    assert np.array_equal(grid, np.fft.fftshift(original))
    swap_quadrants(grid)
    assert np.array_equal(grid, original)


@pytest.mark.parametrize("shape", [(5, 3), (3, 4), (1, 8), (8, 1), (1, 1), (7, 7)])
def test_swap_quadrants_involution_any_size(shape):
    grid = np.arange(shape[0] * shape[1], dtype=np.complex64).reshape(shape)
    original = grid.copy()
    swap_quadrants(grid)
    swap_quadrants(grid)
    assert np.array_equal(grid, original)


def test_swap_quadrants_odd_keeps_reference_row_and_column():
    grid = np.arange(15, dtype=np.complex64).reshape(5, 3)
    original = grid.copy()
    swap_quadrants(grid)
    assert np.array_equal(grid[4], original[4])
    assert np.array_equal(grid[:, 2], original[:, 2])
    assert grid[0, 0] == original[2, 1]


def test_fft_shift_odd_length_moves_centre_through_the_end():
    a = np.arange(7)
    shifted = fft_shift(a)
    assert shifted[-1] == 3
    assert shifted[3] == 0
    assert np.array_equal(ifft_shift(shifted), a)


def test_fft_shift_even_is_self_inverse():
    a = np.arange(8)
    assert np.array_equal(fft_shift(fft_shift(a)), a)


def test_padded_fft_and_truncating_ifft():
    x = np.array([1, 2, 3, 4, 5], dtype=np.complex64)
    X = fft(x)
    assert X.size == 8
    padded = np.zeros(8, dtype=np.complex64)
    padded[:5] = x
    assert np.allclose(X, np.fft.fft(padded) / 8, atol=1e-5)
    back = ifft(X)
    assert back.size == 5
    assert np.allclose(back, x, atol=1e-4)
    assert ifft(X, truncate_padding=False).size == 8


def test_padded_fft_degenerate_lengths():
    assert fft([]).size == 0
    single = fft([3 + 1j])
    assert single.size == 1 and single[0] == 3 + 1j
    assert ifft(np.zeros(4)).size == 0
