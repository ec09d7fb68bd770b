"""
System group — identity, operating system, board model and CPU.
"""

from __future__ import annotations

import re

from system_info.core.context import SystemContext
from system_info.core.data.capabilities import GPIOZERO
from system_info.core.engine.formatting import field
from system_info.core.engine.section import Section
from system_info.core.models.inspection import Inspection

GROUP = "system"

_MAC_RE = re.compile(r"\b([0-9a-f]{2}(?::[0-9a-f]{2}){5})\b", re.IGNORECASE)


def identification(section: Section, ctx: SystemContext) -> None:
    hostname = section.capture("hostname")
    section.echo(f"Hostname: {hostname.stdout.strip() or 'unknown'}")
    section.echo(f"Serial #: {ctx.serial or 'unknown'}")


def operating_system(section: Section, ctx: SystemContext) -> None:
    arm_64bit = field(section.capture("vcgencmd", "get_config", "arm_64bit").stdout)
    section.echo(ctx.pretty_name)
    section.run("uname", "-a")
    section.blank()
    section.echo(f"KERNEL IS: {'64' if arm_64bit == '1' else '32'}-BIT")
    section.blank()
    section.run("uptime", "-p")


def mac_addresses(section: Section, ctx: SystemContext) -> None:
    result = section.capture("ifconfig")
    if result.failed and not result.stdout:
        section.not_available("ifconfig", result.error or "")
        return
    macs = []
    for line in result.lines():
        parts = line.split()
        # "ether b8:27:eb:..." lines; loopback and tunnels have no MAC
        if len(parts) > 1 and parts[0] == "ether" and _MAC_RE.fullmatch(parts[1]):
            macs.append(parts[1].upper())
    section.extend(macs or ["No MAC addresses reported"])


def model_and_firmware(section: Section, ctx: SystemContext) -> None:
    model = section.read("/sys/firmware/devicetree/base/model")
    if model.ok:
        section.echo(model.stdout.replace("\x00", "").strip())
    else:
        section.not_available("/sys/firmware/devicetree/base/model", model.error or "")
    section.blank()
    section.run("vcgencmd", "version")


def system_diagram(section: Section, ctx: SystemContext) -> None:
    section.run("pinout", "-m")


def cpu_information(section: Section, ctx: SystemContext) -> None:
    section.run("lscpu")


INSPECTIONS: tuple[Inspection, ...] = (
    Inspection("identification", "SYSTEM IDENTIFICATION", GROUP, identification),
    Inspection("operating-system", "OPERATING SYSTEM", GROUP, operating_system),
    Inspection("mac-addresses", "MAC-ADDRESS(ES)", GROUP, mac_addresses),
    Inspection("model-firmware", "MODEL AND FIRMWARE VERSION", GROUP, model_and_firmware),
    Inspection(
        "system-diagram", "SYSTEM DIAGRAM", GROUP, system_diagram,
        requires=(GPIOZERO,), supplemental=True,
    ),
    Inspection("cpu", "CPU INFORMATION", GROUP, cpu_information),
)
