import csv
import os
import numpy as np
from PIL import Image
from scripts import batch_demo


def test_batch_demo_writes_results_and_skips_missing(tmp_path):
    img_path = str(tmp_path / "gradient.png")
    gradient = np.tile(np.arange(0, 240, 10, dtype=np.uint8), (20, 1))
    Image.fromarray(gradient).save(img_path)
    outdir = str(tmp_path / "results")

    csv_path = batch_demo.main(images=[img_path, str(tmp_path / "missing.png")], outdir=outdir)

    with open(csv_path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 1
    row = rows[0]
    assert (row["width"], row["height"], row["channels"]) == ("24", "20", "1")
    assert (row["fourier_width"], row["fourier_height"]) == ("32", "32")
    assert row["original_max"] == "230"
    for key in ("blurred_path", "boosted_path", "magnitude_path", "phase_path", "compare_path"):
        assert os.path.exists(row[key])
