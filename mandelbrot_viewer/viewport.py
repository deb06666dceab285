"""
Viewport description and the pixel <-> complex-plane mapping.

At zoom 1 the window shows a BASE_WIDTH x BASE_HEIGHT region of the
complex plane around the viewport center; higher zoom shows
proportionally less. Pixel (0, 0) is the top-left corner and row y maps
to imaginary part y * y_scale + y_offset.
"""

import math
from dataclasses import dataclass


# Extent of the complex plane visible at zoom 1
BASE_WIDTH = 3.5
BASE_HEIGHT = 2.0

# Center of the classic full-set view
DEFAULT_CENTER_X = -0.75
DEFAULT_CENTER_Y = 0.0
DEFAULT_ZOOM = 1.0

# Full-set framing used when no viewport is given: x in [-2.5, 1.0),
# y in [-1.0, 1.0). Must equal the affine mapping of the default viewport.
DEFAULT_X_OFFSET = -2.5
DEFAULT_Y_OFFSET = -1.0
DEFAULT_X_SPAN = 3.5
DEFAULT_Y_SPAN = 2.0


class RenderError(ValueError):
    """Raised for arguments the render engine cannot work with."""


class InvalidViewportError(RenderError):
    """Viewport with a non-positive zoom or non-finite coordinates."""


class InvalidFrameError(RenderError):
    """Frame size or iteration count out of range."""


@dataclass(frozen=True)
class Viewport:
    """Center of the view in the complex plane and its zoom factor."""

    center_x: float = DEFAULT_CENTER_X
    center_y: float = DEFAULT_CENTER_Y
    zoom: float = DEFAULT_ZOOM

    def __post_init__(self):
        for name in ('center_x', 'center_y', 'zoom'):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise InvalidViewportError(f"{name} must be finite, got {value!r}")
        if self.zoom <= 0:
            raise InvalidViewportError(f"zoom must be positive, got {self.zoom!r}")


@dataclass(frozen=True)
class FrameMapping:
    """Affine transform from pixel coordinates to the complex plane."""

    x_offset: float
    y_offset: float
    x_scale: float
    y_scale: float

    @classmethod
    def default(cls, width, height):
        """Mapping framing the whole set, independent of any viewport."""
        validate_frame(width, height)
        return cls(
            x_offset=DEFAULT_X_OFFSET,
            y_offset=DEFAULT_Y_OFFSET,
            x_scale=DEFAULT_X_SPAN / width,
            y_scale=DEFAULT_Y_SPAN / height,
        )

    @classmethod
    def for_viewport(cls, width, height, viewport):
        """Mapping showing the region around viewport's center at its zoom."""
        validate_frame(width, height)
        zoom = viewport.zoom
        return cls(
            x_offset=viewport.center_x - (BASE_WIDTH / 2) / zoom,
            y_offset=viewport.center_y - (BASE_HEIGHT / 2) / zoom,
            x_scale=BASE_WIDTH / (width * zoom),
            y_scale=BASE_HEIGHT / (height * zoom),
        )

    def pixel_to_complex(self, x, y):
        return x * self.x_scale + self.x_offset, y * self.y_scale + self.y_offset

    def complex_to_pixel(self, re, im):
        """Pixel whose area contains the point (re, im)."""
        return (
            math.floor((re - self.x_offset) / self.x_scale),
            math.floor((im - self.y_offset) / self.y_scale),
        )


def validate_frame(width, height, max_iter=None):
    """Reject frame sizes (and iteration counts) the engine can't render."""
    if width < 1 or height < 1:
        raise InvalidFrameError(f"frame must be at least 1x1, got {width}x{height}")
    if max_iter is not None and max_iter < 1:
        raise InvalidFrameError(f"max_iter must be at least 1, got {max_iter}")
