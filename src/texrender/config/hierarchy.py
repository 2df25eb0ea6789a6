"""Configuration hierarchy — merges sources in priority order.

Precedence (later overrides earlier):
  1. Package defaults
  2. Global config   (~/.texrender/config.yaml)
  3. Project config   (texrender.yaml next to the document root or above it)
  4. Environment variables (TEXRENDER_<OPTION>)
  5. Runtime arguments

Every option in the defaults can be set at every layer. Environment values
are strings and are coerced to the type of the option's default.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from texrender.config.defaults import get_defaults

logger = logging.getLogger(__name__)

_GLOBAL_CONFIG_PATH = Path.home() / ".texrender" / "config.yaml"
_PROJECT_CONFIG_NAME = "texrender.yaml"
_ENV_PREFIX = "TEXRENDER_"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def load_config_hierarchy(
    start_dir: Path | None = None,
    **runtime_overrides: Any,
) -> dict[str, Any]:
    """Load and merge configuration from all sources.

    ``start_dir`` is where the project config search begins (defaults to
    the cwd). Runtime overrides that are None are treated as unset.
    """
    config = get_defaults()
    project_path = _find_project_config(start_dir)

    layers: list[tuple[str, dict[str, Any] | None]] = [
        (str(_GLOBAL_CONFIG_PATH), _load_yaml_config(_GLOBAL_CONFIG_PATH)),
        (str(project_path), _load_yaml_config(project_path) if project_path else None),
        ("environment", _load_env_vars(config)),
        ("arguments", {k: v for k, v in runtime_overrides.items() if v is not None}),
    ]
    for source, values in layers:
        if not values:
            continue
        unknown = sorted(set(values) - set(config))
        if unknown:
            logger.debug("Ignoring unknown option(s) from %s: %s", source, ", ".join(unknown))
        logger.debug("Applying %d option(s) from %s", len(values), source)
        config.update(values)

    return config


def _load_yaml_config(path: Path) -> dict[str, Any] | None:
    """Load a YAML mapping; missing, unreadable or non-mapping files give None."""
    if not path.is_file():
        return None
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load config %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring", path)
        return None
    return data


def _find_project_config(start_dir: Path | None = None) -> Path | None:
    start = (start_dir or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / _PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def _load_env_vars(defaults: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key in defaults:
        value = os.environ.get(_ENV_PREFIX + key.upper())
        if value is not None:
            result[key] = _coerce_env_value(key, value)
    return result


def _coerce_env_value(key: str, value: str) -> Any:
    """Coerce an environment string to the type of the option's default.

    Values that do not parse are passed through unchanged so validation
    reports them against the option.
    """
    target = type(get_defaults().get(key, ""))
    if target is bool:
        lowered = value.strip().lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
        logger.warning("Cannot interpret %s%s as a boolean: %s", _ENV_PREFIX, key.upper(), value)
        return value
    if target in (int, float):
        try:
            return target(value)
        except ValueError:
            logger.warning(
                "Cannot convert %s%s to %s: %s",
                _ENV_PREFIX, key.upper(), target.__name__, value,
            )
            return value
    return value
