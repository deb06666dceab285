"""
Mandelbrot Set Viewer Package

A real-time, interactive Mandelbrot set explorer using Pygame for
display and Numba for JIT-compiled, multi-threaded rendering.

Quick Start:
    from mandelbrot_viewer import run
    run()

Or from command line:
    python -m mandelbrot_viewer

Rendering without a window:
    from mandelbrot_viewer import render
    buffer = render(800, 600)                  # whole set
    buffer = render(800, 600, -0.745, 0.11, 50.0)

Package Structure:
    - compute.py: JIT-compiled escape-time and row kernels
    - colormaps.py: Hue palette and packed-colour helpers
    - viewport.py: Viewport and pixel <-> complex-plane mapping
    - renderer.py: Worker pool and frame renderer
    - navigation.py: Input to viewport updates
    - config.py: Settings file and defaults
    - app.py: Window and main loop

Controls:
    - Arrow keys / left drag: Pan
    - +/- (or . and ,) / scroll: Zoom
    - R / right click: Reset to default view
    - S: Save screenshot
    - ESC: Quit
"""

from .app import run, MandelbrotApp
from .colormaps import build_palette, color_for
from .compute import EscapeResult, evaluate
from .config import AppConfig
from .renderer import MandelbrotRenderer, WorkerPool, render
from .viewport import (
    FrameMapping,
    InvalidFrameError,
    InvalidViewportError,
    RenderError,
    Viewport,
)

__version__ = "1.0.0"
__all__ = [
    "run",
    "MandelbrotApp",
    "AppConfig",
    "MandelbrotRenderer",
    "WorkerPool",
    "render",
    "evaluate",
    "EscapeResult",
    "color_for",
    "build_palette",
    "Viewport",
    "FrameMapping",
    "RenderError",
    "InvalidFrameError",
    "InvalidViewportError",
]
