"""
Capability models — declared external dependencies and probe outcomes.

A Capability is one thing the report depends on: a package, an
executable, a device node, a running daemon. It carries one or more
Checks; the probe evaluates them and answers with a ProbeResult.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ProbeResult(str, Enum):
    """Tri-state outcome of probing a capability."""

    PRESENT = "present"
    ABSENT = "absent"
    INCOMPATIBLE = "incompatible"   # installed, but unusable here

    @property
    def usable(self) -> bool:
        return self is ProbeResult.PRESENT


class CapabilityKind(str, Enum):
    """Whether a missing capability aborts the run."""

    REQUIRED = "required"
    OPTIONAL = "optional"


class CheckKind(str, Enum):
    """The kinds of evidence a check can look for."""

    EXECUTABLE = "executable"          # name on PATH
    SMOKE_TEST = "smoke_test"          # on PATH and a read-only invocation succeeds
    PACKAGE = "package"                # recorded in the package database
    PROCESS = "process"                # a running process command line matches
    DEVICE = "device"                  # character device node exists
    FILE = "file"                      # path (file, dir, or link) exists
    KERNEL_MODULE = "kernel_module"    # loaded module name contains a fragment
    SYSTEMD_UNIT = "systemd_unit"      # unit reported active by systemctl


class Check(BaseModel):
    """One piece of evidence for a capability."""

    model_config = ConfigDict(frozen=True)

    kind: CheckKind
    target: str
    args: list[str] = Field(default_factory=list)
    sudo: bool = False

    # SMOKE_TEST: optional exact version gate
    version_pattern: str | None = None   # regex, group 1 is the version
    expect: str | None = None            # known-good version string
    models: list[str] = Field(default_factory=list)  # version gate applies here only

    # PACKAGE: executable used when the tool was built from source
    binary: str | None = None


class Capability(BaseModel):
    """A declared dependency of one or more inspections."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: CapabilityKind = CapabilityKind.OPTIONAL
    checks: list[Check] = Field(default_factory=list)
    match: Literal["all", "any"] = "all"
    package: str | None = None          # package that provides it, for remediation
    models: list[str] = Field(default_factory=list)  # board models it applies to
    description: str = ""

    @property
    def is_required(self) -> bool:
        return self.kind is CapabilityKind.REQUIRED

    def applies_to(self, model_name: str) -> bool:
        """Whether this capability matters on the given board model."""
        return not self.models or model_name in self.models

    def install_command(self, manager: str = "apt") -> str:
        """The command that would provide this capability."""
        return f"sudo {manager} install -y {self.package or self.name}"
