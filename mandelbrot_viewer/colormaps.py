"""
Colour mapping for Mandelbrot visualization.

Iteration counts are turned into colours by sweeping the hue once around
the HSV wheel (full saturation and value) as the count goes from 0 to
max_iter. Points that never escape are black.

Colours are packed as 0x00RRGGBB integers so a frame fits in a single
uint32 array. build_palette() precomputes the colour of every count once
per max_iter, so the kernels only do a table lookup per pixel.
"""

import functools
import logging
import math

import numpy as np


logger = logging.getLogger(__name__)

BLACK = 0x000000


def hsv_to_rgb(h, s, v):
    """Convert HSV (0-1 range) to RGB (0-1 range)."""
    h6 = h * 6.0
    sector = math.floor(h6)
    f = h6 - sector
    p = v * (1 - s)
    q = v * (1 - f * s)
    t = v * (1 - (1 - f) * s)

    i = int(sector) % 6
    if i == 0:
        return v, t, p
    elif i == 1:
        return q, v, p
    elif i == 2:
        return p, v, t
    elif i == 3:
        return p, q, v
    elif i == 4:
        return t, p, v
    return v, p, q


def _to_byte(x):
    # Round half up, so 0.5 steps never round toward even
    return int(math.floor(x * 255 + 0.5))


def pack_rgb(r, g, b):
    """Pack RGB floats (0-1 range) into a 0x00RRGGBB integer."""
    return (_to_byte(r) << 16) | (_to_byte(g) << 8) | _to_byte(b)


def color_for(iteration_count, max_iter):
    """
    Colour for a pixel that took iteration_count iterations.

    Args:
        iteration_count: Iteration count, 0..max_iter
        max_iter: Maximum iteration count (this count means "in the set")

    Returns:
        Packed 0x00RRGGBB colour; black for iteration_count == max_iter
    """
    if iteration_count == max_iter:
        return BLACK
    hue = iteration_count / max_iter
    return pack_rgb(*hsv_to_rgb(hue, 1.0, 1.0))


@functools.lru_cache(maxsize=8)
def build_palette(max_iter):
    """
    Lookup table of colours for every iteration count 0..max_iter.

    The returned array is read-only and shared between callers asking
    for the same max_iter.

    Returns:
        uint32 array of length max_iter + 1
    """
    palette = np.empty(max_iter + 1, dtype=np.uint32)
    for i in range(max_iter + 1):
        palette[i] = color_for(i, max_iter)
    palette.setflags(write=False)
    logger.debug("Built palette for max_iter=%d", max_iter)
    return palette


def unpack_rgb(buffer, width, height):
    """
    Split a packed frame buffer into an RGB image.

    Args:
        buffer: Flat uint32 array of width * height packed colours
        width, height: Frame dimensions

    Returns:
        (height, width, 3) uint8 array
    """
    packed = np.asarray(buffer, dtype=np.uint32).reshape(height, width)
    rgb = np.empty((height, width, 3), dtype=np.uint8)
    rgb[..., 0] = (packed >> 16) & 0xFF
    rgb[..., 1] = (packed >> 8) & 0xFF
    rgb[..., 2] = packed & 0xFF
    return rgb
