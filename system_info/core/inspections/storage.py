"""
Storage group — disks, partitions, RAID, LVM and fstab.
"""

from __future__ import annotations

import re

from system_info.core.context import SystemContext
from system_info.core.data.capabilities import LVM2, MDADM, file_exists
from system_info.core.engine.formatting import active_lines, grep
from system_info.core.engine.section import Section
from system_info.core.models.inspection import Inspection

GROUP = "storage"

LSBLK_COLUMNS = "NAME,FSTYPE,SIZE,MOUNTPOINT,LABEL,UUID,PARTUUID,MODEL"

_UUID_RE = re.compile(r'\bUUID="([^"]+)"')


def storage_devices(section: Section, ctx: SystemContext) -> None:
    section.run("lshw", "-class", "storage", sudo=True)
    section.blank()
    section.run("lshw", "-short", "-class", "disk", "-class", "storage", "-class", "volume", sudo=True)


def disk_configuration(section: Section, ctx: SystemContext) -> None:
    section.run("blkid", sudo=True, exclude="zram", sort=True)
    section.blank()
    section.run("lsblk", "-o", LSBLK_COLUMNS, exclude="zram")
    section.blank()
    section.run("df", "-h", "-T", exclude="tmpfs")


def md_arrays(mdstat: str) -> list[str]:
    """Array names (``md0``...) listed in /proc/mdstat."""
    return [line.split()[0] for line in mdstat.splitlines() if line.startswith("md")]


def md_components(detail: list[str], array: str) -> list[str]:
    """Member devices from ``mdadm --detail`` (last column of the device table)."""
    components = []
    for line in detail:
        last = line.split()[-1] if line.split() else ""
        if last.startswith("/dev/") and not line.startswith(f"/dev/{array}:"):
            components.append(last)
    return components


def raid_arrays(section: Section, ctx: SystemContext) -> None:
    mdstat = section.read("/proc/mdstat")
    section.extend(line for line in mdstat.lines() if line[:1].isalpha())
    section.blank()
    section.echo("Contents of /etc/mdadm/mdadm.conf...")
    section.cat("/etc/mdadm/mdadm.conf", active_only=True)
    section.blank()

    blkid = section.capture("blkid", sudo=True).lines()
    fstab = section.read("/etc/fstab").lines()

    for array in md_arrays(mdstat.stdout):
        path = f"/dev/{array}"
        section.sub_banner(f"RAID ARRAY DEVICE {path}".upper())
        query = section.capture("mdadm", "--query", path, sudo=True)
        section.extend(line.replace(" Use mdadm --detail for more detail.", "") for line in query.lines())
        section.blank()

        match = next((_UUID_RE.search(line) for line in blkid if line.startswith(f"{path}:")), None)
        entries = [line for line in fstab if match and match.group(1) in line]
        if entries:
            section.echo("/etc/fstab entry...")
            section.extend(entries)
            section.blank()
            section.run("df", "-h", entries[0].split()[1])
            section.blank()

        detail = section.run("mdadm", "--detail", path, sudo=True)
        section.blank()
        for component in md_components(detail.lines(), array):
            section.sub_banner(f"RAID ARRAY DEVICE {path} - COMPONENT {component}".upper())
            member = section.capture("mdadm", "--query", component, sudo=True)
            section.extend(
                line.replace("  Use mdadm --examine for more detail.", "")
                for line in member.lines()
                if "is not an md array" not in line
            )
            section.blank()
            section.run("mdadm", "--examine", component, sudo=True)
            section.blank()


def logical_volumes(section: Section, ctx: SystemContext) -> None:
    if not section.capture("vgdisplay", sudo=True).stdout:
        section.echo("No volume groups found")
        return
    section.echo("LOGICAL VOLUMES...")
    section.run("lvs", sudo=True, include_stderr=True)
    section.blank()
    section.run("lvdisplay", sudo=True, include_stderr=True)
    section.blank()
    section.sub_banner("VOLUME GROUPS...")
    section.run("vgs", sudo=True, include_stderr=True)
    section.blank()
    section.run("vgdisplay", sudo=True, include_stderr=True)
    section.blank()
    section.sub_banner("PHYSICAL VOLUMES...")
    section.run("pvs", sudo=True, include_stderr=True)
    section.blank()
    section.run("pvdisplay", sudo=True, include_stderr=True)


def fstab(section: Section, ctx: SystemContext) -> None:
    section.cat("/etc/fstab", active_only=True)


def quota_filesystems(fstab_text: str) -> list[str]:
    """fstab entries mounted with user or group quotas."""
    return grep(active_lines(fstab_text), r"usrquota|grpquota")


INSPECTIONS: tuple[Inspection, ...] = (
    Inspection(
        "storage-devices", "STORAGE DEVICES", GROUP, storage_devices,
        applies=lambda ctx: ctx.has_hardware_class("storage"),
    ),
    Inspection("disks", "DISK CONFIGURATION", GROUP, disk_configuration),
    Inspection(
        "raid", "RAID ARRAY CONFIGURATION", GROUP, raid_arrays,
        requires=(file_exists("/proc/mdstat"), MDADM), supplemental=True,
    ),
    Inspection(
        "lvm", "LOGICAL VOLUME MANAGER CONFIGURATION", GROUP, logical_volumes,
        requires=(LVM2,), supplemental=True,
    ),
    Inspection("fstab", "FSTAB FILE", GROUP, fstab, requires=(file_exists("/etc/fstab"),)),
)
