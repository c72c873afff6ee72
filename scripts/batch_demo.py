"""
Batch-run demo across multiple images.

For every image: Gaussian blur and high-boost via the Fourier engine, the
magnitude and phase spectra of the forward transform, and a side-by-side
comparison. Writes a CSV log with:
- input_path, width, height, channels, fourier_width, fourier_height,
  original_max, blurred_path, boosted_path, magnitude_path, phase_path,
  compare_path, seconds

Usage (from project root):
python -m scripts.batch_demo

Edit the IMAGES list below to point to your files if needed.
"""

import os
import csv
import time
from datetime import datetime

from io_utils.image_handler import read_raster, save_raster
from io_utils.file_utils import make_result_filename
from fourier.frequency_image import FrequencyDomainImage
from fourier.filters import KernelCache
from fourier.convolution import gaussian_blur, high_boost
from visuals.plots import plot_magnitude_spectrum, plot_phase_spectrum, compare_and_save

# CONFIG: list image paths (the data/ directory in the project) you want to run (edit as needed)
IMAGES = [
    "data/Checkerboard_1.tif",
    "data/Checkerboard_2.jpg"
]

# pipeline params
BLUR_RADIUS = 8
BOOST_RADIUS = 4
BOOST = 1.8
PROJECT = "fourier"

# Output directory for this run
timestamp = datetime.now().strftime("%Y%m%dT%H%M%S")
OUTDIR = os.path.join("results", f"batch_demo_{timestamp}")

csv_fields = [
    "input_path", "width", "height", "channels", "fourier_width", "fourier_height",
    "original_max", "blurred_path", "boosted_path", "magnitude_path", "phase_path",
    "compare_path", "seconds",
]


def process_one_image(img_path, cache, outdir=OUTDIR):
    started = time.perf_counter()
    raster = read_raster(img_path)
    run_dir = os.path.join(outdir, os.path.splitext(os.path.basename(img_path))[0])

    def out(operation, desc):
        return make_result_filename(PROJECT, img_path, operation, desc, outdir=run_dir, timestamp=False)

    # diagnostics from the shifted forward transform
    with FrequencyDomainImage.from_raster(raster, ignore_alpha=True) as spectrum:
        fourier_width, fourier_height = spectrum.fourier_size
        original_max = spectrum.original_max
        magnitude_path = plot_magnitude_spectrum(spectrum, out_path=out("fft", "magnitude"))
        phase_path = plot_phase_spectrum(spectrum, out_path=out("fft", "phase"))

    blurred = gaussian_blur(raster, BLUR_RADIUS, cache=cache)
    blurred_path = save_raster(out("blur", f"r{BLUR_RADIUS}"), blurred)

    boosted = high_boost(raster, BOOST_RADIUS, BOOST, cache=cache)
    boosted_path = save_raster(out("highboost", f"r{BOOST_RADIUS}_b{BOOST}"), boosted)

    compare_path = compare_and_save(raster, boosted, out_path=out("compare", "highboost"), titles=("Original", "High-Boosted"))

    return {
        "input_path": img_path,
        "width": raster.width,
        "height": raster.height,
        "channels": raster.channel_count,
        "fourier_width": fourier_width,
        "fourier_height": fourier_height,
        "original_max": original_max,
        "blurred_path": blurred_path,
        "boosted_path": boosted_path,
        "magnitude_path": magnitude_path,
        "phase_path": phase_path,
        "compare_path": compare_path,
        "seconds": round(time.perf_counter() - started, 3),
    }


def main(images=IMAGES, outdir=OUTDIR):
    os.makedirs(outdir, exist_ok=True)
    csv_path = os.path.join(outdir, "results.csv")
    cache = KernelCache()
    with open(csv_path, "w", newline="", encoding="utf-8") as csvf:
        writer = csv.DictWriter(csvf, fieldnames=csv_fields)
        writer.writeheader()

        for img in images:
            if not os.path.exists(img):
                print("Skipping missing:", img)
                continue
            print("Processing:", img)
            rec = process_one_image(img, cache, outdir=outdir)
            writer.writerow(rec)
            csvf.flush()
            print(" -> done in", rec["seconds"], "s, Fourier grid", rec["fourier_width"], "x", rec["fourier_height"])

    print("Batch done. Results in:", outdir, "CSV:", csv_path)
    return csv_path


if __name__ == "__main__":
    main()
