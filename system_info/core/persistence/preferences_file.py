"""
Preferences persistence — atomic read/write of the per-user file.

Stored as JSON in ~/.config/system-info/preferences.json. Writes are
atomic (write to temp file, then rename). A missing or corrupt file
yields fresh defaults; the report itself never depends on it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from system_info.core.config.loader import config_dir
from system_info.core.models.preferences import Preferences

logger = logging.getLogger(__name__)

PREFERENCES_FILE = "preferences.json"


def default_preferences_path() -> Path:
    return config_dir() / PREFERENCES_FILE


def load_preferences(path: Path | None = None) -> Preferences:
    """Load preferences from a JSON file.

    Returns:
        Preferences model. If the file doesn't exist or is unreadable,
        returns fresh defaults.
    """
    path = path or default_preferences_path()
    if not path.is_file():
        logger.info("No preferences at %s — using defaults", path)
        return Preferences()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        prefs = Preferences.model_validate(data)
        logger.debug("Loaded preferences from %s", path)
        return prefs
    except json.JSONDecodeError as e:
        logger.warning("Corrupt preferences file %s: %s — using defaults", path, e)
        return Preferences()
    except Exception as e:
        logger.warning("Cannot load preferences from %s: %s — using defaults", path, e)
        return Preferences()


def save_preferences(prefs: Preferences, path: Path | None = None) -> Path:
    """Save preferences (atomic write).

    Returns:
        The path written.
    """
    path = path or default_preferences_path()
    prefs.touch()
    path.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(prefs.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".preferences_",
            suffix=".tmp",
        )
        os.close(fd)
        tmp = Path(tmp_path)
        try:
            tmp.write_text(content, encoding="utf-8")
            tmp.rename(path)
            logger.debug("Preferences saved to %s", path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except Exception as e:
        logger.error("Failed to save preferences to %s: %s", path, e)
        raise
    return path
