"""Pydantic model for renderer and cache settings."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic import BaseModel, Field, field_validator

from texrender.config import defaults

FILE_PATH_PLACEHOLDER = "{file-path}"

# Options whose change invalidates everything already in the cache folder.
_CACHE_AFFECTING = ("cache_folder", "additional_packages", "png_copy", "png_scale")


class RendererSettings(BaseModel):
    command: str = defaults.DEFAULT_COMMAND
    timeout_ms: int = Field(default=defaults.DEFAULT_TIMEOUT_MS, gt=0)
    enable_cache: bool = defaults.DEFAULT_ENABLE_CACHE
    cache_folder: str = defaults.DEFAULT_CACHE_FOLDER
    additional_packages: str = defaults.DEFAULT_ADDITIONAL_PACKAGES
    png_copy: bool = defaults.DEFAULT_PNG_COPY
    png_scale: float = Field(default=defaults.DEFAULT_PNG_SCALE, gt=0)
    max_workers: int = Field(default=defaults.DEFAULT_MAX_WORKERS, ge=1)
    debounce_seconds: float = Field(default=defaults.DEFAULT_DEBOUNCE_SECONDS, ge=0)
    clean_workdirs: bool = defaults.DEFAULT_CLEAN_WORKDIRS
    settings_path: str = defaults.DEFAULT_SETTINGS_PATH
    log_level: str = defaults.DEFAULT_LOG_LEVEL

    model_config = {"extra": "ignore"}

    @field_validator("cache_folder")
    @classmethod
    def _cache_folder_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("cache_folder must not be empty")
        return value

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def cache_fingerprint(self) -> str:
        """Digest of the options that make existing cached artifacts stale."""
        payload: dict[str, Any] = {key: getattr(self, key) for key in _CACHE_AFFECTING}
        serialized = json.dumps(payload, sort_keys=True)
        return hashlib.sha256(serialized.encode("utf-8")).hexdigest()

    def affects_cache(self, other: RendererSettings) -> bool:
        return self.cache_fingerprint() != other.cache_fingerprint()
