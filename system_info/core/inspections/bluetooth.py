"""
Bluetooth group — controllers and paired devices, via bluetoothctl.

bluetoothctl blocks when bluetoothd is not running, so nothing here
talks to it without the daemon.
"""

from __future__ import annotations

from system_info.core.context import SystemContext
from system_info.core.data.capabilities import running
from system_info.core.engine.section import Section
from system_info.core.models.inspection import Inspection

GROUP = "bluetooth"

BLUETOOTHD = running("bluetoothd")

_NOISE = ("Agent registered", "Device registered not available")


def _bluetoothctl(section: Section, command: str) -> list[str]:
    result = section.capture("bluetoothctl", sudo=True, input=f"{command}\n", timeout=30)
    return result.lines()


def clean_output(lines: list[str]) -> list[str]:
    """Drop prompts, blank lines and agent chatter from bluetoothctl output."""
    return [
        line for line in lines
        if line.strip() and "[" not in line and not any(noise in line for noise in _NOISE)
    ]


def controllers(lines: list[str]) -> list[tuple[str, bool]]:
    """(MAC, is_default) for every ``Controller`` line of ``list``."""
    found = []
    for line in lines:
        words = line.split()
        if len(words) > 1 and words[0] == "Controller":
            found.append((words[1], "[default]" in line))
    return found


def bluetooth_controllers(section: Section, ctx: SystemContext) -> None:
    if not section.probe.outcome(BLUETOOTHD).usable:
        section.echo("bluetoothd daemon not running")
        return
    found = controllers(_bluetoothctl(section, "list"))
    if not found:
        section.echo("No Bluetooth controllers found")
    for mac, default in found:
        section.echo("Default BT Controller..." if default else "Additional (Non-default) BT Controller...")
        section.extend(clean_output(_bluetoothctl(section, f"show {mac}")))
        section.blank()


def paired_devices(section: Section, ctx: SystemContext) -> None:
    paired = [line.split()[1] for line in clean_output(_bluetoothctl(section, "paired-devices")) if len(line.split()) > 1]
    if not paired:
        section.echo("No paired devices")
        return
    for mac in paired:
        section.extend(clean_output(_bluetoothctl(section, f"info {mac}")))


INSPECTIONS: tuple[Inspection, ...] = (
    Inspection("bt-controllers", "BLUETOOTH CONTROLLERS", GROUP, bluetooth_controllers),
    Inspection(
        "bt-devices", "BLUETOOTH DEVICES (paired w/ default controller)", GROUP, paired_devices,
        requires=(BLUETOOTHD,),
    ),
)
