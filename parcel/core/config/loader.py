"""
Configuration loader — reads parcel.yml into a HostConfig.

Reads YAML, validates against the pydantic schema, and resolves
relative locations against the directory holding the config file.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from parcel.core.models.config import HostConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "parcel.yml"


class ConfigError(Exception):
    """Raised when the host configuration is invalid or missing."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for parcel.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to parcel.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path) -> HostConfig:
    """Load and validate host configuration.

    Args:
        path: Path to parcel.yml.

    Returns:
        Validated HostConfig with ``mirror`` and ``base_dir`` made absolute.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading host config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "parcel" key or be flat
    config_data = data.get("parcel", data)

    try:
        config = HostConfig.model_validate(config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid host configuration: {e}") from e

    return resolve_locations(config, path.parent.resolve())


def resolve_locations(config: HostConfig, root: Path) -> HostConfig:
    """Return a copy with relative ``mirror``/``base_dir`` anchored at *root*."""
    update: dict[str, str] = {}
    for key in ("mirror", "base_dir"):
        value = getattr(config, key)
        if value and not Path(value).is_absolute():
            update[key] = str((root / value).resolve())
    return config.model_copy(update=update) if update else config


def load_or_default(path: Path | None = None) -> HostConfig:
    """Load *path*, or the nearest parcel.yml, or fall back to defaults."""
    if path is None:
        path = find_config_file()
    if path is None:
        logger.info("No %s found; using default configuration", CONFIG_FILE)
        return resolve_locations(HostConfig(), Path.cwd())
    return load_config(path)
