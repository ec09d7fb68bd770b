"""
Resources group — limits, core dumps, quotas, memory, IPC and load.
"""

from __future__ import annotations

from system_info.core.context import SystemContext
from system_info.core.data.capabilities import QUOTA, SYSSTAT, SYSTEMD_COREDUMP, executable, file_exists
from system_info.core.engine.formatting import active_lines, grep
from system_info.core.engine.section import Section
from system_info.core.inspections.storage import quota_filesystems
from system_info.core.models.inspection import Inspection

GROUP = "resources"


def core_dump_state(limit: str) -> str:
    """Summary line for a ``ulimit -c`` answer."""
    return " Core dumps are disabled..." if limit == "0" else " Core dumps are enabled..."


def ulimit_and_core_dumps(section: Section, ctx: SystemContext) -> None:
    section.run("sh", "-c", "ulimit -a")
    section.blank()

    limit = section.capture("sh", "-c", "ulimit -c").stdout.strip() or "unknown"
    section.echo(core_dump_state(limit))
    section.echo(f"ulimit = {limit}")
    section.blank()

    registry = section.registry
    limits_files = registry.glob("/etc/security/limits.conf") + registry.glob("/etc/security/limits.d/*")
    hits = [
        line for path in limits_files
        for line in grep(active_lines(registry.read(path).stdout), "core")
    ]
    if hits:
        section.echo(" Core dumps are enabled globally in /etc/security/limits*...")
        section.extend(hits)
        section.blank()

    system_conf = grep(active_lines(registry.read("/etc/systemd/system.conf").stdout), "DefaultLimitCORE")
    if system_conf:
        section.echo(" Default global core dump limit in /etc/systemd/system.conf...")
        section.extend(system_conf)
        section.blank()

    coredump_conf = registry.read("/etc/systemd/coredump.conf")
    if coredump_conf.ok:
        section.echo(" Contents of /etc/systemd/coredump.conf...")
        section.extend(active_lines(coredump_conf.stdout))
        section.blank()

    dumped = grep(section.capture("journalctl", "-xe", "--no-pager").lines(), "dumped core")
    if dumped:
        section.echo(" journalctl -xe...")
        section.extend(dumped)
        section.blank()

    if section.probe.outcome(SYSTEMD_COREDUMP).usable:
        section.echo(" journalctl reports the following core dumps...")
        section.run("coredumpctl", "list", "--no-pager", sudo=True, include_stderr=True)
        section.blank()
        section.echo(" Core dumps present in /var/lib/systemd/coredump...")
        section.extend(registry.listdir("/var/lib/systemd/coredump") or ["(none)"])


def quotas(section: Section, ctx: SystemContext) -> None:
    configured = quota_filesystems(section.read("/etc/fstab").stdout)
    if not configured:
        section.echo("No filesystems are configured for quotas")
        return
    section.echo(" The following filesystems are configured for quotas...")
    section.extend(configured)
    section.blank()
    section.run("repquota", "-u", "-g", "-v", "-a", "-s", "-t", sudo=True, exclude="^#")


def memory_and_swap(section: Section, ctx: SystemContext) -> None:
    section.run("free", "-h")
    section.blank()
    section.run("swapon", "--summary")


def meminfo(section: Section, ctx: SystemContext) -> None:
    section.cat("/proc/meminfo")


def ipc_status(section: Section, ctx: SystemContext) -> None:
    section.run("lsipc")


def mpstat(section: Section, ctx: SystemContext) -> None:
    settings = section.settings
    section.run("mpstat", str(settings.sample_interval), str(settings.sample_count))


def iostat(section: Section, ctx: SystemContext) -> None:
    section.run("iostat", "-x")


def loaded_modules(section: Section, ctx: SystemContext) -> None:
    lines = section.capture("lsmod").lines()
    if not lines:
        section.not_available("lsmod")
        return
    section.echo(lines[0])
    section.extend(sorted(line for line in lines[1:] if "Used by" not in line))


INSPECTIONS: tuple[Inspection, ...] = (
    Inspection("ulimit", "ULIMIT AND CORE DUMPS", GROUP, ulimit_and_core_dumps, supplemental=True),
    Inspection("quotas", "QUOTAS", GROUP, quotas, requires=(QUOTA,), supplemental=True),
    Inspection("memory", "MEMORY AND SWAP", GROUP, memory_and_swap),
    Inspection("meminfo", "MEMINFO", GROUP, meminfo, requires=(file_exists("/proc/meminfo"),)),
    Inspection("ipc", "IPC STATUS", GROUP, ipc_status),
    Inspection("mpstat", "MPSTAT", GROUP, mpstat, requires=(SYSSTAT,), supplemental=True),
    Inspection(
        "iostat", "IOSTAT", GROUP, iostat,
        requires=(SYSSTAT, executable("iostat")), supplemental=True,
    ),
    Inspection("modules", "LOADED MODULES", GROUP, loaded_modules),
)
