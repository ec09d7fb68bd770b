"""
Dependency use case — resolve required and supplemental packages only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from system_info.adapters.registry import AdapterRegistry, default_registry
from system_info.core.config.loader import ConfigError, load_settings
from system_info.core.data.capabilities import REQUIRED_PACKAGES, supplemental_packages
from system_info.core.services import discovery
from system_info.core.services.packages import PackageDatabase
from system_info.core.services.probe import Probe
from system_info.core.services.resolver import (
    PackageResolver,
    RequiredResolution,
    SupplementalResolution,
)
from system_info.core.services.revision import RevisionDecodeError, decode_revision

logger = logging.getLogger(__name__)


@dataclass
class DepsResult:
    """Package tallies for this board."""

    model_name: str = ""
    required: RequiredResolution | None = None
    supplemental: SupplementalResolution | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.required is not None and self.required.ok

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result
        result["model"] = self.model_name or "unknown"
        result["required"] = self.required.to_dict() if self.required else None
        result["supplemental"] = self.supplemental.to_dict() if self.supplemental else None
        return result


def check_dependencies(
    config_path: Path | None = None,
    registry: AdapterRegistry | None = None,
) -> DepsResult:
    """Resolve both package lists against the package database.

    Args:
        config_path: Optional explicit config file.
        registry: Optional pre-configured adapter registry.

    Returns:
        DepsResult with both resolutions, or an error.
    """
    result = DepsResult()

    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    if registry is None:
        registry = default_registry(default_timeout=settings.command_timeout)

    raw, _serial = discovery.read_revision(registry)
    if raw:
        try:
            result.model_name = decode_revision(raw).model_name
        except RevisionDecodeError as e:
            logger.warning("%s", e)

    packages = PackageDatabase(registry)
    if not packages.available():
        result.error = "Missing utility dpkg-query, unable to verify package dependencies."
        return result

    probe = Probe(registry, packages, model_name=result.model_name)
    resolver = PackageResolver(probe, package_manager=settings.package_manager)
    result.required = resolver.resolve_required(REQUIRED_PACKAGES)
    result.supplemental = resolver.resolve_supplemental(
        supplemental_packages(settings.wiringpi_known_good)
    )
    return result
