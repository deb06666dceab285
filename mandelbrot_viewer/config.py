"""
Application settings.

Defaults live on AppConfig. A settings.json file (next to this package,
or given on the command line) can override any of them, and command-line
options override the file:

    {
        "width": 1024,
        "height": 768,
        "max_iter": 1500,
        "navigation": {"wheel_zoom_factor": 1.5}
    }
"""

import json
import logging
import math
import os
from dataclasses import dataclass, field, fields, replace
from numbers import Real
from typing import Optional

from .navigation import NavigationConfig
from .renderer import DEFAULT_MAX_ITER
from .viewport import DEFAULT_CENTER_X, DEFAULT_CENTER_Y, DEFAULT_ZOOM, Viewport


logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = os.path.join(os.path.dirname(__file__), 'settings.json')


class ConfigError(ValueError):
    """Invalid application settings."""


def load_settings(path=None):
    """
    Load settings from a JSON file.

    A missing file is not an error; an unreadable one is logged and
    ignored. Either way the result is a (possibly empty) dict.
    """
    path = path or DEFAULT_SETTINGS_PATH
    try:
        with open(path, 'r') as f:
            settings = json.load(f)
    except FileNotFoundError:
        logger.debug("No settings file at %s, using defaults", path)
        return {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not load %s: %s", path, e)
        return {}
    if not isinstance(settings, dict):
        logger.warning("Ignoring %s: expected a JSON object", path)
        return {}
    return settings


@dataclass(frozen=True)
class AppConfig:
    """Everything the app needs to open a window and render."""

    width: int = 800
    height: int = 600
    max_iter: int = DEFAULT_MAX_ITER
    max_fps: int = 60
    center_x: float = DEFAULT_CENTER_X
    center_y: float = DEFAULT_CENTER_Y
    zoom: float = DEFAULT_ZOOM
    workers: Optional[int] = None  # None = one per hardware thread
    navigation: NavigationConfig = field(default_factory=NavigationConfig)

    @classmethod
    def from_settings(cls, settings):
        """Build a config from a settings dict, skipping unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in settings.items():
            if key not in known:
                logger.warning("Unknown setting %r ignored", key)
                continue
            values[key] = value

        nav = values.pop('navigation', None)
        if nav is not None:
            values['navigation'] = cls._navigation_from(nav)
        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigError(str(e)) from e

    @staticmethod
    def _navigation_from(settings):
        if not isinstance(settings, dict):
            raise ConfigError("'navigation' must be an object")
        known = {f.name for f in fields(NavigationConfig)}
        unknown = set(settings) - known
        for key in sorted(unknown):
            logger.warning("Unknown navigation setting %r ignored", key)
        return NavigationConfig(**{k: v for k, v in settings.items() if k in known})

    def with_overrides(self, **overrides):
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self):
        """Raise ConfigError if a setting is out of range. Returns self."""
        for name in ('width', 'height', 'max_iter', 'max_fps'):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if self.workers is not None and (not isinstance(self.workers, int) or self.workers < 1):
            raise ConfigError(f"workers must be a positive integer, got {self.workers!r}")
        nav = self.navigation
        for f in fields(nav):
            value = getattr(nav, f.name)
            if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
                raise ConfigError(f"navigation.{f.name} must be a finite number, got {value!r}")
        if nav.navigation_step <= 0:
            raise ConfigError("navigation_step must be positive")
        if not 0 < nav.min_zoom <= nav.max_zoom:
            raise ConfigError("navigation zoom limits must satisfy 0 < min_zoom <= max_zoom")
        if nav.key_zoom_factor <= 0 or nav.wheel_zoom_factor <= 0:
            raise ConfigError("zoom factors must be positive")
        try:
            self.home_viewport()
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid home view: {e}") from e
        return self

    def home_viewport(self):
        """Viewport the app starts at and resets to."""
        return Viewport(float(self.center_x), float(self.center_y), float(self.zoom))
