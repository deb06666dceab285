"""
Mandelbrot computation functions using Numba JIT compilation.

This module contains all the performance-critical computation functions
that are JIT-compiled for speed. These functions handle:
- Escape-time iteration of z² + c for a single point
- Filling a band of pixel rows (GIL released, for the worker pool)
- Filling a whole pixel grid with prange (Numba's own thread pool)

Pixels are written as packed 0x00RRGGBB values looked up in a palette
indexed by iteration count. Points that never escape use the last
palette entry, which is black.
"""

import logging
import time
from collections import namedtuple

import numpy as np
from numba import jit, prange


logger = logging.getLogger(__name__)

ESCAPE_RADIUS_SQUARED = 4.0  # |z| > 2
BOUNDED = -1  # escape_time() result for points that never escape


@jit(nopython=True, cache=True)
def escape_time(cr, ci, max_iter):
    """
    Count iterations of z = z² + c until |z|² exceeds 4.

    Args:
        cr, ci: Real and imaginary parts of c
        max_iter: Maximum iteration count

    Returns:
        The 1-based iteration at which z escaped, or BOUNDED if it
        stayed inside the radius for all max_iter steps.
    """
    zr = 0.0
    zi = 0.0
    for i in range(1, max_iter + 1):
        zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
        if zr * zr + zi * zi > ESCAPE_RADIUS_SQUARED:
            return i
    return BOUNDED


@jit(nopython=True, cache=True)
def fill_row(row, cy, x_offset, x_scale, max_iter, palette):
    """Colour one row of pixels lying at imaginary coordinate cy."""
    for px in range(row.shape[0]):
        cx = px * x_scale + x_offset
        n = escape_time(cx, cy, max_iter)
        if n == BOUNDED:
            row[px] = palette[max_iter]
        else:
            row[px] = palette[n]


@jit(nopython=True, nogil=True, cache=True)
def fill_rows(band, row_start, x_offset, y_offset, x_scale, y_scale,
              max_iter, palette):
    """
    Fill a contiguous band of rows, writing into an existing array.

    Runs without the GIL so several bands can be computed at once from
    a thread pool. The band only ever touches its own rows.

    Args:
        band: 2D uint32 view (rows, width) into the frame buffer
        row_start: Absolute index of the band's first row in the frame
        x_offset, y_offset: Complex coordinate of pixel (0, 0)
        x_scale, y_scale: Complex-plane size of one pixel
        max_iter: Maximum iteration count
        palette: uint32 array of max_iter + 1 packed colours
    """
    for i in range(band.shape[0]):
        cy = (row_start + i) * y_scale + y_offset
        fill_row(band[i], cy, x_offset, x_scale, max_iter, palette)


@jit(nopython=True, parallel=True, cache=True)
def fill_grid(pixels, x_offset, y_offset, x_scale, y_scale, max_iter, palette):
    """
    Fill a whole (height, width) frame, rows spread over prange.

    Produces exactly the same values as calling fill_rows() over any
    partition of the rows.
    """
    for py in prange(pixels.shape[0]):
        cy = py * y_scale + y_offset
        fill_row(pixels[py], cy, x_offset, x_scale, max_iter, palette)


class EscapeResult(namedtuple('EscapeResult', ['escaped', 'iterations'])):
    """
    Outcome of evaluating one point.

    escaped is True with the 1-based escape iteration in iterations, or
    False with iterations None for a bounded point.
    """
    __slots__ = ()

    @classmethod
    def escaped_at(cls, iterations):
        return cls(True, iterations)

    @classmethod
    def bounded(cls):
        return cls(False, None)

    def __repr__(self):
        if self.escaped:
            return f"Escaped({self.iterations})"
        return "Bounded"


def evaluate(c, max_iterations):
    """
    Classify a single complex coordinate.

    Args:
        c: Point in the complex plane (complex, or anything complex() accepts)
        max_iterations: Maximum iteration count

    Returns:
        EscapeResult
    """
    c = complex(c)
    n = escape_time(c.real, c.imag, int(max_iterations))
    if n == BOUNDED:
        return EscapeResult.bounded()
    return EscapeResult.escaped_at(n)


def warmup_jit():
    """
    Warm up JIT compilation with small dummy arrays.

    Call this once at startup to pre-compile the Numba functions,
    avoiding a delay on the first real frame.
    """
    start = time.perf_counter()
    palette = np.zeros(11, dtype=np.uint32)
    palette.setflags(write=False)
    pixels = np.empty((4, 4), dtype=np.uint32)
    fill_grid(pixels, -2.0, -1.0, 0.75, 0.5, 10, palette)
    fill_rows(pixels[:2], 0, -2.0, -1.0, 0.75, 0.5, 10, palette)
    logger.debug("JIT warm-up finished in %.2fs", time.perf_counter() - start)
