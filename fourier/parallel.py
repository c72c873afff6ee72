"""
fourier/parallel.py

Data-parallel loop over independent index ranges.

parallel_for(start, stop, body) splits [start, stop) into contiguous chunks and
runs body(lo, hi) for each chunk on a thread pool. The chunk results are
returned in order, so callers can run a parallel phase followed by a
reduction over the returned list. numpy releases the GIL inside its array
kernels, which is what lets row and column chunks overlap.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, TypeVar

T = TypeVar("T")

# Minimum number of work items before a range is split across threads.
PARALLEL_CUTOFF = 64
DEFAULT_WORKERS = min(8, os.cpu_count() or 1)


def chunk_bounds(start: int, stop: int, chunks: int) -> List[tuple]:
    """Split [start, stop) into at most `chunks` contiguous, non-empty ranges."""
    count = stop - start
    if count <= 0:
        return []
    chunks = max(1, min(int(chunks), count))
    base, extra = divmod(count, chunks)
    bounds = []
    lo = start
    for i in range(chunks):
        hi = lo + base + (1 if i < extra else 0)
        bounds.append((lo, hi))
        lo = hi
    return bounds


def parallel_for(
    start: int,
    stop: int,
    body: Callable[[int, int], T],
    cutoff: int = PARALLEL_CUTOFF,
    workers: Optional[int] = None,
) -> List[T]:
    """
    Run body(lo, hi) over chunks of [start, stop) and return the chunk results in order.

    Ranges shorter than `cutoff` items, or workers <= 1, run inline on the
    calling thread as a single chunk. An exception raised by any chunk is
    re-raised here after the pool shuts down.
    """
    count = stop - start
    if count <= 0:
        return []
    if workers is None:
        workers = DEFAULT_WORKERS
    if workers <= 1 or count < max(1, cutoff):
        return [body(start, stop)]

    bounds = chunk_bounds(start, stop, workers)
    with ThreadPoolExecutor(max_workers=len(bounds), thread_name_prefix="fourier") as pool:
        futures = [pool.submit(body, lo, hi) for lo, hi in bounds]
        return [f.result() for f in futures]
