"""Package-level default configuration values."""

from __future__ import annotations

from typing import Any

# Renderer
DEFAULT_COMMAND = (
    'latex -interaction=nonstopmode -halt-on-error -shell-escape "{file-path}" '
    '&& dvisvgm --no-fonts "{file-path}"'
)
DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_ADDITIONAL_PACKAGES = ""
DEFAULT_MAX_WORKERS = 4
DEFAULT_CLEAN_WORKDIRS = False

# Cache
DEFAULT_ENABLE_CACHE = True
DEFAULT_CACHE_FOLDER = "svg-cache"
DEFAULT_PNG_COPY = False
DEFAULT_PNG_SCALE = 1.0
DEFAULT_DEBOUNCE_SECONDS = 1.0

# Settings blob location, relative to the document root
DEFAULT_SETTINGS_PATH = ".texrender/settings.db"

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "command": DEFAULT_COMMAND,
        "timeout_ms": DEFAULT_TIMEOUT_MS,
        "enable_cache": DEFAULT_ENABLE_CACHE,
        "cache_folder": DEFAULT_CACHE_FOLDER,
        "additional_packages": DEFAULT_ADDITIONAL_PACKAGES,
        "png_copy": DEFAULT_PNG_COPY,
        "png_scale": DEFAULT_PNG_SCALE,
        "max_workers": DEFAULT_MAX_WORKERS,
        "debounce_seconds": DEFAULT_DEBOUNCE_SECONDS,
        "clean_workdirs": DEFAULT_CLEAN_WORKDIRS,
        "settings_path": DEFAULT_SETTINGS_PATH,
        "log_level": DEFAULT_LOG_LEVEL,
    }
