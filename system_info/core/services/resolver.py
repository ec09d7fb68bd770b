"""
Package dependency resolver — required and supplemental tallies.

Required packages: every missing one is listed with its install
command, then the run is refused. A partial report with sections
silently missing would be harder to read than no report at all.

Supplemental packages: each is re-validated through the probe (a
package record alone does not prove the tool works on this board),
tallied, and never fatal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from system_info.core.models.capability import Capability, ProbeResult
from system_info.core.services.probe import Probe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MissingPackage:
    """A required package that is not installed, with its remedy."""

    name: str
    install_command: str

    @property
    def message(self) -> str:
        return f'Required package "{self.name}" is not installed.'

    def remediation(self) -> list[str]:
        return [self.message, "Install with:", f"  {self.install_command}"]


@dataclass
class RequiredResolution:
    """Outcome of checking the required package list."""

    found: list[str] = field(default_factory=list)
    missing: list[MissingPackage] = field(default_factory=list)
    not_applicable: list[str] = field(default_factory=list)

    @property
    def hits(self) -> int:
        return len(self.found)

    @property
    def total(self) -> int:
        return len(self.found) + len(self.missing)

    @property
    def ok(self) -> bool:
        return not self.missing

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "total": self.total,
            "found": self.found,
            "missing": [m.name for m in self.missing],
            "not_applicable": self.not_applicable,
        }


@dataclass
class SupplementalResolution:
    """Outcome of checking the supplemental package list."""

    found: list[str] = field(default_factory=list)
    absent: list[str] = field(default_factory=list)
    incompatible: dict[str, str] = field(default_factory=dict)

    @property
    def hits(self) -> int:
        return len(self.found)

    @property
    def total(self) -> int:
        return len(self.found) + len(self.absent) + len(self.incompatible)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "total": self.total,
            "found": self.found,
            "absent": self.absent,
            "incompatible": self.incompatible,
        }


class PackageResolver:
    """Partition declared packages into satisfied and missing.

    Args:
        probe: Capability probe (owns the cached package database).
        package_manager: Command named in install instructions.
    """

    def __init__(self, probe: Probe, package_manager: str = "apt"):
        self._probe = probe
        self._manager = package_manager

    def resolve_required(self, capabilities: tuple[Capability, ...] | list[Capability]) -> RequiredResolution:
        resolution = RequiredResolution()
        model = self._probe.model_name

        for capability in capabilities:
            if not capability.applies_to(model):
                logger.debug("Skipping %s: not required on %s", capability.name, model or "this board")
                resolution.not_applicable.append(capability.name)
                continue

            if self._probe.probe(capability) is ProbeResult.PRESENT:
                resolution.found.append(capability.name)
            else:
                resolution.missing.append(MissingPackage(
                    name=capability.package or capability.name,
                    install_command=capability.install_command(self._manager),
                ))

        if resolution.missing:
            logger.warning(
                "%d required package(s) missing: %s",
                len(resolution.missing),
                ", ".join(m.name for m in resolution.missing),
            )
        return resolution

    def resolve_supplemental(self, capabilities: tuple[Capability, ...] | list[Capability]) -> SupplementalResolution:
        resolution = SupplementalResolution()

        for capability in capabilities:
            outcome = self._probe.outcome(capability)
            if outcome.result is ProbeResult.PRESENT:
                resolution.found.append(capability.name)
            elif outcome.result is ProbeResult.INCOMPATIBLE:
                resolution.incompatible[capability.name] = outcome.reason
            else:
                resolution.absent.append(capability.name)

        logger.info(
            "Supplemental packages: %d of %d usable",
            resolution.hits, resolution.total,
        )
        return resolution
