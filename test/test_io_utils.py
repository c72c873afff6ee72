import numpy as np
import os
import pytest
from io_utils.raster import Raster
from io_utils.image_handler import read_raster, save_raster, detect_is_color
from io_utils.file_utils import make_result_filename


def test_raster_shape_and_channel_access():
    pixels = np.arange(24, dtype=np.uint8).reshape(2, 4, 3)
    r = Raster(pixels)
    assert (r.width, r.height, r.channel_count, r.pixel_count) == (4, 2, 3, 8)
    # pixel index = y * width + x
    assert r.get_channel_byte(5, 2) == pixels[1, 1, 2]
    with pytest.raises(IndexError):
        r.get_channel_byte(8, 0)
    with pytest.raises(IndexError):
        r.get_channel_byte(0, 3)


def test_raster_channel_view_is_read_only():
    r = Raster(np.zeros((3, 3), dtype=np.uint8))
    assert r.channel_count == 1
    view = r.channel(0)
    with pytest.raises(ValueError):
        view[0, 0] = 1


def test_raster_rejects_bad_input():
    with pytest.raises(ValueError):
        Raster(np.zeros((3, 3), dtype=np.float32))
    with pytest.raises(ValueError):
        Raster(np.zeros((3, 3, 5), dtype=np.uint8))


def test_raster_from_bytes():
    buf = bytes(range(12))
    r = Raster.from_bytes(buf, width=2, height=2, channels=3)
    assert r.to_bytes() == buf
    assert r.get_channel_byte(3, 0) == 9
    with pytest.raises(ValueError):
        Raster.from_bytes(buf, width=2, height=2, channels=4)


def test_detect_is_color():
    assert detect_is_color(np.zeros((16, 16, 3)))
    assert not detect_is_color(np.zeros((16, 16)))
    assert detect_is_color(Raster(np.zeros((4, 4, 4), dtype=np.uint8)))


def test_save_and_read_roundtrip(tmp_path):
    arr = np.arange(100).reshape(10, 10).astype(np.uint8)
    p = tmp_path / "test.png"
    assert save_raster(str(p), Raster(arr)) == str(p)
    out = read_raster(str(p))
    assert out.channel_count == 1
    assert np.array_equal(out.as_array(), arr)


def test_read_raster_alpha(tmp_path):
    from PIL import Image
    arr = np.zeros((10, 10, 4), dtype=np.uint8)
    arr[..., 3] = 128
    p = tmp_path / "rgba.png"
    Image.fromarray(arr).save(p)
    rgba = read_raster(str(p))
    assert rgba.shape == (10, 10, 4)
    assert int(rgba.channel(3).max()) == 128
    rgb = read_raster(str(p), keep_alpha=False)
    assert rgb.shape == (10, 10, 3)


def test_save_rejects_two_channels(tmp_path):
    with pytest.raises(ValueError):
        save_raster(str(tmp_path / "x.png"), Raster(np.zeros((2, 2, 2), dtype=np.uint8)))


def test_make_result_filename(tmp_path):
    outdir = str(tmp_path / "out")
    p = make_result_filename("fourier", "/data/cat.jpg", "blur", "r 8", outdir=outdir, timestamp=False)
    assert p == os.path.join(outdir, "fourier_cat_blur_r_8.png")
    assert os.path.isdir(outdir)
