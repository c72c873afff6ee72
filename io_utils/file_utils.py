# io_utils/file_utils.py
"""
Result file naming helper.
"""

import os
import datetime


def make_result_filename(
    projname: str,
    input_path: str,
    operation: str,
    desc: str,
    ext: str = "png",
    outdir: str = ".",
    timestamp: bool = True,
) -> str:
    """
    Build `<outdir>/<projname>_<input base>_<operation>_<desc>[_<timestamp>].<ext>`
    and make sure outdir exists.
    """
    base = os.path.splitext(os.path.basename(input_path))[0]
    safe_desc = str(desc).replace(" ", "_")
    fname = f"{projname}_{base}_{operation}_{safe_desc}"
    if timestamp:
        fname += "_" + datetime.datetime.now().strftime("%Y%m%dT%H%M%S")
    os.makedirs(outdir, exist_ok=True)
    return os.path.join(outdir, f"{fname}.{ext}")
