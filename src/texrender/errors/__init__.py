"""Error handling — exception hierarchy for rendering and cache bookkeeping."""

from texrender.errors.exceptions import (
    ConfigError,
    DocumentNotFoundError,
    DocumentReadError,
    RenderError,
    TexRenderError,
)

__all__ = [
    "TexRenderError",
    "RenderError",
    "DocumentNotFoundError",
    "DocumentReadError",
    "ConfigError",
]
