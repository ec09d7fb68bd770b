"""
System discovery — gather the facts later sections branch on.

Everything here is read once, before the first inspection, and frozen
into a SystemContext: OS release, board revision, privilege, loaded
kernel modules, active display driver, boot configuration and the
hardware classes lshw can see.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import replace
from pathlib import Path

from system_info.adapters.registry import AdapterRegistry
from system_info.core.context import SystemContext
from system_info.core.engine.formatting import active_lines
from system_info.core.services.revision import RevisionDecodeError, decode_revision
from system_info.core.services.scratch import RunScratch

logger = logging.getLogger(__name__)

BUSINFO_FILE = "lshw_businfo.txt"

_BOOT_DIRS = ("/boot/firmware", "/boot")

# Device classes reported by lshw that some section keys off.
_HARDWARE_CLASSES = frozenset({
    "bridge", "bus", "communication", "disk", "display", "generic", "input",
    "memory", "multimedia", "network", "power", "processor", "storage",
    "system", "volume",
})


# ── Parsers ─────────────────────────────────────────────────────

def parse_os_release(text: str) -> dict[str, str]:
    """Parse /etc/os-release ``KEY="value"`` lines."""
    fields: dict[str, str] = {}
    for line in active_lines(text):
        key, sep, value = line.partition("=")
        if sep:
            fields[key.strip()] = value.strip().strip('"').strip("'")
    return fields


def parse_cpuinfo(text: str) -> dict[str, str]:
    """Board-level ``Key : value`` fields from /proc/cpuinfo (last wins)."""
    fields: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            fields[key.strip()] = value.strip()
    return fields


def parse_modules(text: str) -> frozenset[str]:
    """Module names from /proc/modules or lsmod output."""
    names = set()
    for line in text.splitlines():
        parts = line.split()
        if parts and parts[0] != "Module":
            names.add(parts[0])
    return frozenset(names)


def classify_display_driver(modules: frozenset[str], dmesg_lines: list[str]) -> str:
    """Which display stack is active.

    No vc4/drm module means the legacy Broadcom driver. With them
    loaded, a ``firmwarekms`` kernel message means the "fake" KMS
    driver, otherwise the "full" one.
    """
    if not any(m.startswith(("vc4", "drm")) for m in modules):
        return "broadcom"
    if any("firmwarekms" in line for line in dmesg_lines):
        return "fake"
    return "full"


def hardware_classes(businfo: str) -> frozenset[str]:
    """Device classes present in ``lshw -businfo`` output."""
    found = set()
    for line in businfo.splitlines()[2:]:
        found.update(word for word in line.split() if word in _HARDWARE_CLASSES)
    return frozenset(found)


# ── Discovery steps ─────────────────────────────────────────────

def read_os_release(registry: AdapterRegistry) -> dict[str, str] | None:
    result = registry.read("/etc/os-release")
    if result.failed:
        return None
    return parse_os_release(result.stdout)


def detect_privilege(registry: AdapterRegistry) -> tuple[bool, str | None]:
    """(running as root, path to sudo or None)."""
    return registry.as_root, shutil.which("sudo")


def boot_marker_present(registry: AdapterRegistry, marker: str) -> bool:
    """Whether the kernel ring buffer still holds the boot banner."""
    result = registry.run("dmesg", sudo=True)
    return any(marker in line for line in result.lines())


def read_revision(registry: AdapterRegistry) -> tuple[str | None, str]:
    """(raw revision code, serial number) from /proc/cpuinfo."""
    result = registry.read("/proc/cpuinfo")
    fields = parse_cpuinfo(result.stdout) if result.ok else {}
    return fields.get("Revision"), fields.get("Serial", "")


def find_boot_dir(registry: AdapterRegistry) -> str:
    for candidate in _BOOT_DIRS:
        if registry.exists(f"{candidate}/config.txt"):
            return candidate
    return "/boot"


def enumerate_hardware(registry: AdapterRegistry, scratch: RunScratch) -> Path | None:
    """Run the slow ``lshw -businfo`` once and keep the output for the run."""
    result = registry.run("lshw", "-businfo", sudo=True)
    if not result.stdout:
        logger.info("lshw -businfo produced no output: %s", result.error)
        return None
    return scratch.write(BUSINFO_FILE, result.stdout + "\n")


def preliminary_context(registry: AdapterRegistry, marker: str) -> SystemContext:
    """Facts needed by the preliminary checks and the dependency check."""
    is_root, sudo_path = detect_privilege(registry)
    raw_revision, serial = read_revision(registry)

    revision = None
    if raw_revision:
        try:
            revision = decode_revision(raw_revision)
        except RevisionDecodeError as e:
            logger.warning("%s", e)

    return SystemContext(
        os_release=read_os_release(registry) or {},
        revision=revision,
        serial=serial,
        is_root=is_root,
        sudo_path=sudo_path,
        boot_marker_found=boot_marker_present(registry, marker),
    )


def complete_context(
    base: SystemContext,
    registry: AdapterRegistry,
    scratch: RunScratch,
) -> SystemContext:
    """Add everything the inspections branch on to the preliminary facts."""
    modules = parse_modules(registry.read("/proc/modules").stdout)
    dmesg_lines = registry.run("dmesg", sudo=True).lines()
    boot_dir = find_boot_dir(registry)
    config = registry.read(f"{boot_dir}/config.txt")
    cmdline = registry.read(f"{boot_dir}/cmdline.txt")

    businfo_path = enumerate_hardware(registry, scratch)
    classes = hardware_classes(businfo_path.read_text(encoding="utf-8")) if businfo_path else frozenset()

    context = replace(
        base,
        loaded_modules=modules,
        display_driver=classify_display_driver(modules, dmesg_lines),
        boot_dir=boot_dir,
        config_lines=tuple(active_lines(config.stdout)) if config.ok else (),
        cmdline=cmdline.stdout.strip() if cmdline.ok else "",
        hardware_classes=classes,
        businfo_path=businfo_path,
        display=os.environ.get("DISPLAY"),
    )
    logger.info(
        "Discovered: model=%s driver=%s boot=%s classes=%s",
        context.model_name or "unknown",
        context.display_driver,
        boot_dir,
        ",".join(sorted(classes)) or "-",
    )
    return context
