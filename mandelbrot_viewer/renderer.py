"""
Parallel Mandelbrot frame renderer.

The MandelbrotRenderer class handles:
- Mapping the pixel grid onto the complex plane for a viewport
- Splitting the frame buffer into disjoint row bands
- Computing the bands in parallel on a long-lived WorkerPool
- Palette lookup from iteration counts to packed colours

Every band is a view into one frame buffer allocated up front, and no
two bands share a row, so the workers need no locking. The palette is
read-only while they run.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait

import numpy as np
from numba import config as numba_config

from .colormaps import build_palette
from .compute import fill_grid, fill_rows
from .viewport import FrameMapping, Viewport, validate_frame


logger = logging.getLogger(__name__)

DEFAULT_MAX_ITER = 1000
BANDS_PER_WORKER = 4  # Several bands per worker evens out slow rows near the set


def default_worker_count():
    """Number of workers matching the hardware parallelism Numba detected."""
    return numba_config.NUMBA_NUM_THREADS


def partition_rows(height, num_bands):
    """
    Split rows 0..height into contiguous (start, stop) bands.

    Bands are as even as possible, never empty, and together cover every
    row exactly once.
    """
    num_bands = max(1, min(num_bands, height))
    base, extra = divmod(height, num_bands)
    bands = []
    start = 0
    for i in range(num_bands):
        stop = start + base + (1 if i < extra else 0)
        bands.append((start, stop))
        start = stop
    return bands


class WorkerPool:
    """
    Thread pool shared by all frames of an application.

    Create it once, start() it, and pass it to every render. The row
    kernel releases the GIL, so bands run on separate cores.

    Usage:
        with WorkerPool() as pool:
            renderer = MandelbrotRenderer(pool=pool)
            frame = renderer.render(800, 600)
    """

    def __init__(self, num_workers=None):
        """
        Args:
            num_workers: Worker thread count (default: Numba's thread count)
        """
        if num_workers is not None and num_workers < 1:
            raise ValueError(f"num_workers must be at least 1, got {num_workers}")
        self.num_workers = num_workers or default_worker_count()
        self._executor = None
        self._lock = threading.Lock()

    @property
    def started(self):
        return self._executor is not None

    def start(self):
        """Start the worker threads. Calling it again does nothing."""
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.num_workers,
                    thread_name_prefix="mandelbrot-render",
                )
                logger.debug("Started worker pool with %d threads", self.num_workers)
        return self

    def shutdown(self):
        """Wait for running tasks and stop the threads. Safe to call twice."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
            logger.debug("Worker pool shut down")

    def run_all(self, fn, tasks):
        """
        Call fn(*args) for every args tuple in tasks and wait for all.

        Every task has finished before this returns or raises; if any
        failed, the exception of the earliest failing task is re-raised.
        """
        self.start()
        futures = [self._executor.submit(fn, *args) for args in tasks]
        wait(futures)
        for future in futures:
            future.result()

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()


class MandelbrotRenderer:
    """
    Renders Mandelbrot frames into packed-colour buffers.

    Usage:
        pool = WorkerPool().start()
        renderer = MandelbrotRenderer(max_iter=1000, pool=pool)
        buffer = renderer.render(800, 600, Viewport(-0.5, 0.0, 4.0))
        # buffer is a flat uint32 array of 0x00RRGGBB, row-major

    Attributes:
        max_iter: Maximum iteration count
        pool: WorkerPool used for row bands, or None to use Numba's
              prange threads instead
    """

    def __init__(self, max_iter=DEFAULT_MAX_ITER, pool=None):
        validate_frame(1, 1, max_iter)
        self.max_iter = max_iter
        self.pool = pool

    @property
    def palette(self):
        return build_palette(self.max_iter)

    def mapping_for(self, width, height, viewport=None):
        """Pixel-to-complex mapping for a frame; full-set view if no viewport."""
        if viewport is None:
            return FrameMapping.default(width, height)
        return FrameMapping.for_viewport(width, height, viewport)

    def render(self, width, height, viewport=None):
        """
        Render one frame.

        Args:
            width, height: Frame dimensions in pixels
            viewport: Viewport to show (None = default full-set view)

        Returns:
            Flat uint32 array of width * height packed colours
        """
        mapping = self.mapping_for(width, height, viewport)
        palette = self.palette
        buffer = np.empty(width * height, dtype=np.uint32)
        pixels = buffer.reshape(height, width)

        if self.pool is None:
            fill_grid(pixels, mapping.x_offset, mapping.y_offset,
                      mapping.x_scale, mapping.y_scale, self.max_iter, palette)
            return buffer

        bands = partition_rows(height, self.pool.num_workers * BANDS_PER_WORKER)
        tasks = [
            (pixels[start:stop], start, mapping.x_offset, mapping.y_offset,
             mapping.x_scale, mapping.y_scale, self.max_iter, palette)
            for start, stop in bands
        ]
        self.pool.run_all(fill_rows, tasks)
        return buffer


def render(width, height, center_x=None, center_y=None, zoom=None, *,
           max_iter=DEFAULT_MAX_ITER, pool=None):
    """
    Render a frame of the Mandelbrot set.

    Called as render(width, height) for the default full-set view, or
    render(width, height, center_x, center_y, zoom) for any other view.

    Args:
        width, height: Frame dimensions in pixels
        center_x, center_y: Center of the view in the complex plane
        zoom: Zoom factor (> 0); 1 shows BASE_WIDTH x BASE_HEIGHT
        max_iter: Maximum iteration count
        pool: Optional WorkerPool to spread the rows over

    Returns:
        Flat uint32 array of width * height packed 0x00RRGGBB colours
    """
    view_args = (center_x, center_y, zoom)
    if all(arg is None for arg in view_args):
        viewport = None
    elif any(arg is None for arg in view_args):
        raise TypeError("center_x, center_y and zoom must be given together")
    else:
        viewport = Viewport(float(center_x), float(center_y), float(zoom))
    return MandelbrotRenderer(max_iter, pool).render(width, height, viewport)
