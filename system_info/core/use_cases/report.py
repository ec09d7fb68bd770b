"""
Report use case — load settings, pick section groups, run the pipeline.

Group selection, highest priority first:
    --all / --group on the command line  >  last saved selection  >  config ``groups``

A selection made on the command line is saved for next time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from system_info.adapters.registry import AdapterRegistry, default_registry
from system_info.core.config.loader import ConfigError, load_settings
from system_info.core.engine.pipeline import InspectionPipeline, PipelineReport
from system_info.core.inspections import CATALOG
from system_info.core.models.settings import Settings
from system_info.core.persistence.preferences_file import load_preferences, save_preferences

logger = logging.getLogger(__name__)


@dataclass
class ReportResult:
    """Result of a report run."""

    report: PipelineReport | None = None
    settings: Settings | None = None
    groups: list[str] | None = None
    output_path: Path | None = None
    preferences_saved: bool = False
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error or self.report is None:
            return 1
        return self.report.exit_code

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result
        result["groups"] = self.groups or "all"
        result["output"] = str(self.output_path) if self.output_path else None
        if self.report:
            result["report"] = self.report.to_dict()
        return result


@dataclass
class _Tee:
    """Send each report line to the caller and, optionally, a file."""

    emit: Callable[[str], None] | None
    handle: TextIO | None = None

    def __call__(self, line: str) -> None:
        if self.emit is not None:
            self.emit(line)
        if self.handle is not None:
            self.handle.write(line + "\n")


def resolve_groups(
    cli_groups: list[str] | None,
    use_all: bool,
    saved_groups: list[str] | None,
    config_groups: list[str] | None,
) -> list[str] | None:
    """Which section groups to run (None = all)."""
    if use_all:
        return None
    if cli_groups:
        return [g.strip().lower() for g in cli_groups]
    if saved_groups:
        return saved_groups
    return config_groups or None


def run_report(
    config_path: Path | None = None,
    groups: list[str] | None = None,
    use_all: bool = False,
    output: Path | None = None,
    emit: Callable[[str], None] | None = None,
    registry: AdapterRegistry | None = None,
    preferences_path: Path | None = None,
) -> ReportResult:
    """Run the system report.

    Args:
        config_path: Optional explicit config file.
        groups: Section groups named on the command line.
        use_all: Run every group and forget any saved selection.
        output: Also write the report text to this file.
        emit: Called with each report line as it is produced.
        registry: Optional pre-configured adapter registry.
        preferences_path: Override for the preferences file.

    Returns:
        ReportResult with the pipeline report.
    """
    result = ReportResult()

    # ── Load settings ────────────────────────────────────────────
    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.settings = settings

    # ── Resolve selection ────────────────────────────────────────
    prefs = load_preferences(preferences_path)
    selected = resolve_groups(groups, use_all, prefs.groups, settings.groups)
    result.groups = selected

    if registry is None:
        registry = default_registry(default_timeout=settings.command_timeout)

    tee = _Tee(emit)
    try:
        pipeline = InspectionPipeline(
            registry, CATALOG, settings=settings, groups=selected, emit=tee,
        )
    except ValueError as e:
        result.error = str(e)
        return result

    if groups or use_all or output:
        prefs.groups = selected
        if output:
            prefs.output = str(output)
        prefs.touch()
        try:
            save_preferences(prefs, preferences_path)
            result.preferences_saved = True
        except OSError as e:
            logger.warning("Could not save preferences: %s", e)

    # ── Run ──────────────────────────────────────────────────────
    if output is None:
        result.report = pipeline.run()
        return result

    try:
        with output.open("w", encoding="utf-8") as handle:
            tee.handle = handle
            result.report = pipeline.run()
    except OSError as e:
        result.error = f"Cannot write report to {output}: {e}"
        return result
    result.output_path = output
    return result
