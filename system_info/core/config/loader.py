"""
Configuration loader — reads the optional config.yml into Settings.

Lookup order:
    --config PATH  >  $SYSTEM_INFO_CONFIG  >  ~/.config/system-info/config.yml

No file at the default locations means defaults. An explicitly named
file that is missing or invalid is an error.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from system_info.core.models.settings import Settings

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SYSTEM_INFO_CONFIG"
CONFIG_FILE = "config.yml"


class ConfigError(Exception):
    """Raised when configuration is invalid or unreadable."""


def config_dir() -> Path:
    """Per-user configuration directory (honours XDG_CONFIG_HOME)."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "system-info"


def find_config_file(explicit: Path | None = None) -> tuple[Path | None, bool]:
    """Locate the config file.

    Returns:
        (path, explicit) where ``explicit`` says whether the user named
        the file (and so its absence is an error).
    """
    if explicit is not None:
        return explicit, True

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path), True

    candidate = config_dir() / CONFIG_FILE
    if candidate.is_file():
        return candidate, False
    return None, False


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate configuration.

    Args:
        path: Explicit path to a config file. If None, searches the
            default locations.

    Returns:
        Validated Settings (defaults when no file is found).

    Raises:
        ConfigError: If a named file is missing, or any file is invalid.
    """
    path, explicit = find_config_file(path)

    if path is None:
        logger.debug("No config file found, using defaults")
        return Settings()

    if not path.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return Settings()

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.info("Loaded config from %s", path)
    return settings
