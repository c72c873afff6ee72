import os
import numpy as np
from io_utils.raster import Raster
from io_utils.image_handler import read_raster
from fourier.frequency_image import FrequencyDomainImage
from visuals.plots import save_raster_image, plot_magnitude_spectrum, plot_phase_spectrum, compare_and_save


def _spectrum():
    rng = np.random.default_rng(0)
    return FrequencyDomainImage.from_raster(Raster(rng.integers(0, 256, size=(20, 30, 3), dtype=np.uint8)))


def test_save_raster_image_creates_directories(tmp_path):
    p = os.path.join(str(tmp_path), "nested", "img.png")
    assert save_raster_image(Raster(np.full((4, 4), 7, dtype=np.uint8)), p) == p
    assert read_raster(p).as_array()[0, 0] == 7


def test_spectrum_plots_written_at_fourier_size(tmp_path):
    image = _spectrum()
    p_mag = os.path.join(str(tmp_path), "mag.png")
    p_phase = os.path.join(str(tmp_path), "phase.png")
    assert plot_magnitude_spectrum(image, out_path=p_mag) == p_mag
    assert plot_phase_spectrum(image, out_path=p_phase) == p_phase
    assert read_raster(p_mag).shape == (32, 32, 3)
    assert os.path.exists(p_phase)
    assert not image.is_closed


def test_spectrum_plot_without_path_returns_raster():
    plot = plot_magnitude_spectrum(_spectrum())
    assert isinstance(plot, Raster)
    assert (plot.width, plot.height) == (32, 32)


def test_compare_and_save(tmp_path):
    orig = Raster(np.zeros((32, 32), dtype=np.uint8))
    boosted = Raster(np.ones((32, 32, 3), dtype=np.uint8) * 10)
    pm = os.path.join(str(tmp_path), "cmp", "cmp.png")
    assert compare_and_save(orig, boosted, out_path=pm, titles=("a", "b")) == pm
    assert os.path.exists(pm)
