"""
Logging configuration — one setup call for the CLI.

The report text is written to stdout (and optionally a file); log records
go to stderr so they never end up inside a saved report.

Level precedence:
    --debug / --verbose / --quiet  >  SYSTEM_INFO_LOG_LEVEL  >  WARNING

A second, more detailed log can be kept with SYSTEM_INFO_LOG_FILE
(level SYSTEM_INFO_LOG_FILE_LEVEL, default: the console level).
"""

from __future__ import annotations

import logging
import os
import sys

LEVEL_ENV_VAR = "SYSTEM_INFO_LOG_LEVEL"
FILE_ENV_VAR = "SYSTEM_INFO_LOG_FILE"
FILE_LEVEL_ENV_VAR = "SYSTEM_INFO_LOG_FILE_LEVEL"

# (format, datefmt) per console level band, most detailed first
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    # stderr sits next to the report on a terminal, so say who is talking
    (logging.CRITICAL, "system-info: %(levelname)s: %(message)s", None),
)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(process)d %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Console level name from the CLI flags, falling back to the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LEVEL_ENV_VAR, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Replaces any handlers already installed, so calling it twice is safe.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to WARNING.
        log_file: Optional path of an additional log file.
        log_file_level: Level for the file. Defaults to ``level``.
    """
    console_level = _parse_level(level)
    fmt, datefmt = next(
        (f, d) for ceiling, f, d in _CONSOLE_FORMATS if console_level <= ceiling
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(handler)
        root_level = min(root_level, file_level)

    # the root must pass whatever the most verbose handler wants
    root.setLevel(root_level)
    logging.raiseExceptions = False


def setup_from_environment(level: str) -> None:
    """``setup_logging`` with the file options read from the environment."""
    setup_logging(
        level=level,
        log_file=os.environ.get(FILE_ENV_VAR),
        log_file_level=os.environ.get(FILE_LEVEL_ENV_VAR),
    )


def _parse_level(level: str | None) -> int:
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else logging.WARNING
