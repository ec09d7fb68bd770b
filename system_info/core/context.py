"""
System context — what discovery learned about this host, frozen.

Built once, after the preliminary checks and before the first
inspection runs, then handed to every inspection. Inspections read
it; none of them write to it. Facts that one section used to leave
behind for another (board model, active display driver, hardware
classes seen by lshw) live here instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from system_info.core.services.revision import HardwareRevision, Revision


@dataclass(frozen=True)
class SystemContext:
    """Read-only facts about the running system."""

    os_release: dict[str, str] = field(default_factory=dict)
    revision: Revision | None = None
    serial: str = ""

    is_root: bool = False
    sudo_path: str | None = None
    boot_marker_found: bool = False

    loaded_modules: frozenset[str] = frozenset()
    display_driver: str = "broadcom"         # broadcom | fake | full
    boot_dir: str = "/boot"
    config_lines: tuple[str, ...] = ()       # active config.txt lines
    cmdline: str = ""
    hardware_classes: frozenset[str] = frozenset()
    businfo_path: Path | None = None
    display: str | None = None               # $DISPLAY, for X queries

    @property
    def model_name(self) -> str:
        """Decoded board model, or '' when the revision is unknown or legacy."""
        return self.revision.model_name if self.revision else ""

    @property
    def processor(self) -> str:
        if isinstance(self.revision, HardwareRevision):
            return self.revision.processor
        return ""

    @property
    def is_4b(self) -> bool:
        return self.model_name == "4B"

    @property
    def has_privilege(self) -> bool:
        """Root already, or sudo available to become root."""
        return self.is_root or bool(self.sudo_path)

    @property
    def os_version(self) -> int | None:
        """Major VERSION_ID from /etc/os-release, if numeric."""
        raw = self.os_release.get("VERSION_ID", "").split(".")[0]
        return int(raw) if raw.isdigit() else None

    @property
    def pretty_name(self) -> str:
        return self.os_release.get("PRETTY_NAME", "unknown")

    @property
    def config_path(self) -> str:
        return f"{self.boot_dir}/config.txt"

    @property
    def cmdline_path(self) -> str:
        return f"{self.boot_dir}/cmdline.txt"

    def config_value(self, key: str) -> str | None:
        """Last value assigned to ``key`` in config.txt (``key=value`` lines)."""
        value = None
        for line in self.config_lines:
            name, sep, rest = line.partition("=")
            if sep and name.strip() == key:
                value = rest.strip()
        return value

    def config_has(self, line: str) -> bool:
        """Whether an active config.txt line starts with the given text."""
        return any(entry.startswith(line) for entry in self.config_lines)

    def module_loaded(self, fragment: str) -> bool:
        """Whether any loaded kernel module name contains ``fragment``."""
        return any(fragment in name for name in self.loaded_modules)

    def has_hardware_class(self, name: str) -> bool:
        return name in self.hardware_classes
