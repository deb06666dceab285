"""
Main application module for the Mandelbrot visualizer.

Contains the MandelbrotApp class which handles:
- Window setup and main loop
- User input (arrow keys, +/- zoom, drag, scroll)
- Rendering each frame on the worker pool and displaying it
- Frame rate capping
"""

import logging
import os
from datetime import datetime

import pygame

from .colormaps import unpack_rgb
from .compute import warmup_jit
from .config import AppConfig
from .navigation import InputState, apply_input
from .renderer import MandelbrotRenderer, WorkerPool


logger = logging.getLogger(__name__)

ZOOM_IN_KEYS = (pygame.K_EQUALS, pygame.K_PLUS, pygame.K_KP_PLUS, pygame.K_PERIOD)
ZOOM_OUT_KEYS = (pygame.K_MINUS, pygame.K_KP_MINUS, pygame.K_COMMA)


class MandelbrotApp:
    """
    Main application class for the Mandelbrot visualizer.

    Owns the pygame window, the worker pool and the renderer. Every
    frame it reads input, updates the viewport, renders and displays.
    """

    def __init__(self, config=None):
        """
        Initialize the application.

        Args:
            config: AppConfig (defaults if None)
        """
        self.config = (config or AppConfig()).validate()
        self.width = self.config.width
        self.height = self.config.height

        self.home = self.config.home_viewport()
        self.viewport = self.home

        # Pygame state (initialized in run())
        self.screen = None
        self.clock = None

        # Components
        self.pool = None
        self.renderer = None

        # Input state
        self.dragging = False
        self.drag_delta = (0, 0)
        self.wheel = 0
        self.reset_requested = False

        self.current_surface = None
        self.running = False

    def run(self):
        """Run the application main loop."""
        self._init_pygame()
        self.pool = WorkerPool(self.config.workers).start()
        try:
            self._init_renderer()
            self.running = True
            while self.running:
                self._handle_events()
                self._update_viewport()
                self._render_frame()
                self._draw()
                self.clock.tick(self.config.max_fps)
                self._update_caption()
        finally:
            self.pool.shutdown()
            pygame.quit()

    def _init_pygame(self):
        """Initialize pygame and create window."""
        pygame.init()
        self.screen = pygame.display.set_mode((self.width, self.height))
        pygame.display.set_caption("Mandelbrot Set")
        self.clock = pygame.time.Clock()
        logger.info("Opened %dx%d window", self.width, self.height)

    def _init_renderer(self):
        """Create the renderer and warm up the JIT."""
        pygame.display.set_caption("Compiling (first run only)...")
        warmup_jit()
        self.renderer = MandelbrotRenderer(self.config.max_iter, self.pool)

    def _handle_events(self):
        """Process all pending pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event)
            elif event.type == pygame.MOUSEWHEEL:
                self.wheel += event.y
            elif event.type == pygame.MOUSEBUTTONDOWN:
                if event.button == 1:
                    self.dragging = True
                elif event.button == 3:
                    self.reset_requested = True
            elif event.type == pygame.MOUSEBUTTONUP:
                if event.button == 1:
                    self.dragging = False
            elif event.type == pygame.MOUSEMOTION and self.dragging:
                dx, dy = self.drag_delta
                self.drag_delta = (dx + event.rel[0], dy + event.rel[1])

    def _handle_key(self, event):
        """Handle one-shot keys; held keys are polled in _collect_input()."""
        if event.key == pygame.K_ESCAPE:
            self.running = False
        elif event.key == pygame.K_r:
            self.reset_requested = True
        elif event.key == pygame.K_s:
            self._save_screenshot()

    def _collect_input(self):
        """Gather this frame's input into an InputState and clear it."""
        keys = pygame.key.get_pressed()
        pan_x = keys[pygame.K_RIGHT] - keys[pygame.K_LEFT]
        pan_y = keys[pygame.K_DOWN] - keys[pygame.K_UP]
        zoom_in = any(keys[k] for k in ZOOM_IN_KEYS)
        zoom_out = any(keys[k] for k in ZOOM_OUT_KEYS)

        state = InputState(
            pan_x=int(pan_x),
            pan_y=int(pan_y),
            zoom_steps=int(zoom_in) - int(zoom_out),
            wheel=self.wheel,
            drag=self.drag_delta,
            reset=self.reset_requested,
        )
        self.wheel = 0
        self.drag_delta = (0, 0)
        self.reset_requested = False
        return state

    def _update_viewport(self):
        state = self._collect_input()
        self.viewport = apply_input(
            self.viewport, state, self.width, self.height,
            self.config.navigation, self.home,
        )

    def _render_frame(self):
        """Render the current viewport into a display surface."""
        buffer = self.renderer.render(self.width, self.height, self.viewport)
        rgb = unpack_rgb(buffer, self.width, self.height)
        self.current_surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1))

    def _draw(self):
        """Draw the current frame."""
        self.screen.blit(self.current_surface, (0, 0))
        pygame.display.flip()

    def _update_caption(self):
        v = self.viewport
        pygame.display.set_caption(
            f"Mandelbrot Set - ({v.center_x:.6g}, {v.center_y:.6g}) "
            f"zoom {v.zoom:.3g} - {self.clock.get_fps():.0f} fps"
        )

    def _save_screenshot(self):
        """Save the frame on screen as a PNG in the working directory."""
        if self.current_surface is None:
            return
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = os.path.abspath(f"mandelbrot_{timestamp}.png")
        pygame.image.save(self.current_surface, filename)
        logger.info("Screenshot saved to %s", filename)


def run(config=None):
    """
    Run the Mandelbrot visualizer.

    Args:
        config: AppConfig (defaults if None)
    """
    app = MandelbrotApp(config)
    try:
        app.run()
    except KeyboardInterrupt:
        pass
