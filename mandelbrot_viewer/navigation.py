"""
Turn one frame's worth of user input into an updated viewport.

Nothing here knows about pygame: the app collects key, mouse and wheel
state into an InputState and apply_input() does the arithmetic. Zoom is
clamped so the renderer never sees a non-positive zoom.
"""

from dataclasses import dataclass, replace

from .viewport import FrameMapping, Viewport


@dataclass(frozen=True)
class NavigationConfig:
    """Step sizes for keyboard, wheel and zoom limits."""

    navigation_step: float = 0.2   # Pan per frame at zoom 1, complex units
    key_zoom_factor: float = 1.1   # Per frame while a zoom key is held
    wheel_zoom_factor: float = 1.2  # Per scroll tick
    min_zoom: float = 1e-3
    max_zoom: float = 1e13  # Beyond this double precision runs out


@dataclass(frozen=True)
class InputState:
    """
    Input gathered during one frame.

    Attributes:
        pan_x, pan_y: -1, 0 or 1 for held arrow keys (+y is down)
        zoom_steps: +1 while a zoom-in key is held, -1 for zoom-out
        wheel: Scroll ticks this frame, positive zooms in
        drag: (dx, dy) pixels the pointer moved with the left button held
        reset: Return to the home view
    """

    pan_x: int = 0
    pan_y: int = 0
    zoom_steps: int = 0
    wheel: int = 0
    drag: tuple = (0, 0)
    reset: bool = False

    @property
    def idle(self):
        return self == InputState()


def clamp_zoom(zoom, config):
    return min(max(zoom, config.min_zoom), config.max_zoom)


def apply_input(viewport, state, width, height, config=None, home=None):
    """
    Apply one frame of input to a viewport.

    Args:
        viewport: Current Viewport
        state: InputState for this frame
        width, height: Frame dimensions, for converting drag pixels
        config: NavigationConfig (default step sizes if None)
        home: Viewport to go back to on reset (default Viewport())

    Returns:
        New Viewport (viewport itself if nothing changed)
    """
    config = config or NavigationConfig()
    if state.reset:
        return home if home is not None else Viewport()
    if state.idle:
        return viewport

    center_x = viewport.center_x
    center_y = viewport.center_y
    zoom = viewport.zoom

    step = config.navigation_step / zoom
    center_x += state.pan_x * step
    center_y += state.pan_y * step

    dx, dy = state.drag
    if dx or dy:
        # Content follows the pointer, so the center moves the other way
        mapping = FrameMapping.for_viewport(width, height, viewport)
        center_x -= dx * mapping.x_scale
        center_y -= dy * mapping.y_scale

    if state.zoom_steps:
        zoom *= config.key_zoom_factor ** state.zoom_steps
    if state.wheel:
        zoom *= config.wheel_zoom_factor ** state.wheel

    return replace(viewport, center_x=center_x, center_y=center_y,
                   zoom=clamp_zoom(zoom, config))
