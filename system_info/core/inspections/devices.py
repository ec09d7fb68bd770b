"""
Devices group — buses, clocks, RNG, watchdog, USB, serial ports and GPIO.
"""

from __future__ import annotations

import posixpath

from system_info.core.context import SystemContext
from system_info.core.data.capabilities import (
    RNG_TOOLS,
    RTL_SDR,
    WATCHDOG,
    WIRINGPI,
    any_of,
    device,
    executable,
    file_exists,
    kernel_module,
    running,
    unit_active,
)
from system_info.core.engine.formatting import active_lines, grep
from system_info.core.engine.section import Section
from system_info.core.models.inspection import Inspection

GROUP = "devices"

UART_TYPES = {"ttyAMA0": "PL011", "ttyS0": "miniUART"}
_IGNORED_I2C_DRIVERS = {"dummy", "stmpe-i2c"}


# ── Buses ───────────────────────────────────────────────────────

def _bus_drivers(section: Section, module: str, label: str, names: list[str]) -> None:
    section.echo(" Loaded Modules...")
    section.run("lsmod", grep=module)
    section.blank()
    section.echo(f" Discovered {label} Drivers...")
    section.extend(names or ["none"])


def one_wire(section: Section, ctx: SystemContext) -> None:
    _bus_drivers(section, "w1_gpio", "1-WIRE", section.registry.listdir("/sys/bus/w1/drivers"))


def spi(section: Section, ctx: SystemContext) -> None:
    _bus_drivers(section, "spi", "SPI", section.registry.listdir("/sys/bus/spi/drivers"))


def i2s(section: Section, ctx: SystemContext) -> None:
    drivers = section.registry.glob("/sys/bus/platform/drivers/*i2s")
    _bus_drivers(section, "i2s", "I2S", [posixpath.basename(d) for d in drivers])


def i2c(section: Section, ctx: SystemContext) -> None:
    drivers = [
        name for name in section.registry.listdir("/sys/bus/i2c/drivers")
        if name not in _IGNORED_I2C_DRIVERS
    ]
    _bus_drivers(section, "i2c", "I2C", drivers)


def i2c_buses(listing: list[str]) -> list[str]:
    """Bus numbers from ``i2cdetect -l`` (``i2c-1  i2c  ...`` → ``1``)."""
    buses = []
    for line in listing:
        name = line.split()[0] if line.split() else ""
        if name.startswith("i2c-"):
            buses.append(name.removeprefix("i2c-"))
    return buses


def i2cdetect(section: Section, ctx: SystemContext) -> None:
    listing = sorted(section.capture("i2cdetect", "-l").lines())
    section.extend(listing)
    section.blank()
    for bus in i2c_buses(listing):
        section.echo(f" I2C BUS: {bus}")
        section.run("i2cdetect", "-y", bus)
        section.blank()


# ── Clocks and entropy ──────────────────────────────────────────

def realtime_clock(section: Section, ctx: SystemContext) -> None:
    messages = grep(section.dmesg(), "rtc")
    section.extend(grep(messages, r"Modules linked in:|crtc", invert=True))
    section.blank()
    section.run("lsmod", grep="rtc")
    section.blank()
    for path in section.registry.glob("/dev/rtc*"):
        target = section.registry.file("readlink", path)
        section.echo(f"{path} -> {target.stdout}" if target.ok else path)
    section.blank()
    section.echo("Hardware RTC says:")
    section.run("hwclock", sudo=True)
    section.blank()
    section.echo("Operating System says:")
    section.run("date")


def hardware_rng(section: Section, ctx: SystemContext) -> None:
    section.run("sh", "-c", "cat /dev/hwrng | rngtest -c 1000 2>&1", sudo=True)


def watchdog_directories(conf_lines: list[str]) -> list[str]:
    """``test-directory`` and ``log-dir`` values from watchdog.conf."""
    dirs = []
    for line in conf_lines:
        key, sep, value = line.partition("=")
        if sep and key.strip() in ("test-directory", "log-dir") and value.strip():
            dirs.append(value.strip())
    return dirs


def watchdog_timer(section: Section, ctx: SystemContext) -> None:
    section.extend(grep(section.dmesg(), "watchdog"))
    section.blank()
    conf = section.read("/etc/watchdog.conf")
    if conf.ok:
        lines = active_lines(conf.stdout)
        section.extend(lines)
        section.blank()
        for directory in watchdog_directories(lines):
            section.echo(f"Contents of {directory}:")
            section.extend(section.registry.listdir(directory) or ["(empty)"])
            section.blank()
    else:
        section.not_available("/etc/watchdog.conf", conf.error or "")
    section.run("systemctl", "status", "--no-pager", "watchdog.service")


# ── lshw device classes ─────────────────────────────────────────

def usb_and_other(section: Section, ctx: SystemContext) -> None:
    section.run("lsusb", sort=True)
    section.blank()
    if ctx.businfo_path is None:
        section.not_available("lshw -businfo", "no output")
        return
    section.cat(str(ctx.businfo_path))


def _lshw_class(name: str):
    def body(section: Section, ctx: SystemContext) -> None:
        section.run("lshw", "-class", name, sudo=True)
    return body


def rtl_sdr_tuner(section: Section, ctx: SystemContext) -> None:
    section.run("rtl_eeprom", include_stderr=True)
    section.blank()
    section.run("rtl_test", "-t", include_stderr=True, grep="^S")


# ── Serial ports ────────────────────────────────────────────────

def uarts(section: Section, ctx: SystemContext) -> None:
    registry = section.registry
    for pattern in ("/dev/ttyAMA?", "/dev/serial?", "/dev/ttyS?", "/dev/ttyACM?"):
        for path in registry.glob(pattern):
            target = registry.file("readlink", path)
            section.echo(f"{path} -> {target.stdout}" if target.ok else path)
    section.blank()

    for number in ("0", "1"):
        link = f"/dev/serial{number}"
        target = registry.file("readlink", link)
        if target.failed:
            continue
        name = posixpath.basename(target.stdout.strip())
        section.echo(f" SERIAL{number}... (/dev/{name}, {UART_TYPES.get(name, 'unknown')})")
        section.run("stty", "-a", "-F", link)
        section.blank()

    dmesg = section.dmesg()
    for number in ("0", "1"):
        path = f"/dev/ttyACM{number}"
        if not registry.is_char_device(path):
            continue
        messages = grep(dmesg, f"ttyACM{number}")
        kind = messages[0].split(":")[3].strip() if messages and messages[0].count(":") >= 3 else "unknown"
        units = section.capture("systemctl", "list-units", "--all", "--no-pager").lines()
        unit = grep(units, rf"dev-ttyACM{number}\.device")
        description = unit[0].split()[-1] if unit else ""
        section.echo(f" ACM{number}... ({path}, {kind}{': ' + description if description else ''})")
        section.run("stty", "-a", "-F", path)
        section.blank()


def gpio_pins(section: Section, ctx: SystemContext) -> None:
    section.run("gpio", "readall")


INSPECTIONS: tuple[Inspection, ...] = (
    Inspection(
        "one-wire", "W1-GPIO (1-WIRE INTERFACE) DRIVERS", GROUP, one_wire,
        requires=(file_exists("/sys/bus/w1/devices"),),
    ),
    Inspection(
        "spi", "SPI (SERIAL PERIPHERAL INTERFACE) DRIVERS", GROUP, spi,
        applies=lambda ctx: ctx.module_loaded("spi"),
    ),
    Inspection(
        "i2s", "I2S (INTER-IC SOUND) DRIVERS", GROUP, i2s,
        applies=lambda ctx: ctx.module_loaded("i2s"),
    ),
    Inspection(
        "i2c", "I2C (INTER-IC COMMUNICATION) DRIVERS", GROUP, i2c,
        applies=lambda ctx: ctx.module_loaded("i2c"),
    ),
    Inspection(
        "i2cdetect", "I2CDETECT", GROUP, i2cdetect,
        applies=lambda ctx: ctx.config_has("dtparam=i2c_arm=on"),
    ),
    Inspection(
        "rtc", "RTC (REALTIME CLOCK)", GROUP, realtime_clock,
        requires=(any_of("rtc", device("/dev/rtc0"), file_exists("/dev/rtc")),),
    ),
    Inspection(
        "hwrng", "HARDWARE RANDOM NUMBER GENERATOR", GROUP, hardware_rng,
        requires=(device("/dev/hwrng"), running("rngd"), RNG_TOOLS), supplemental=True,
    ),
    Inspection(
        "watchdog", "BROADCOM WATCHDOG TIMER", GROUP, watchdog_timer,
        requires=(WATCHDOG, unit_active("watchdog.service")), supplemental=True,
    ),
    Inspection("usb", "USB AND OTHER DEVICE INFO", GROUP, usb_and_other),
    Inspection(
        "input-devices", "INPUT DEVICES", GROUP, _lshw_class("input"),
        applies=lambda ctx: ctx.has_hardware_class("input"),
    ),
    Inspection(
        "generic-devices", "GENERIC DEVICES", GROUP, _lshw_class("generic"),
        applies=lambda ctx: ctx.has_hardware_class("generic"),
    ),
    Inspection(
        "rtl-sdr", "RTL-SDR TUNER", GROUP, rtl_sdr_tuner,
        requires=(RTL_SDR, executable("rtl_eeprom"), kernel_module("rtl2832")), supplemental=True,
    ),
    Inspection(
        "acm-devices", "ACM COMMUNICATION DEVICES", GROUP, _lshw_class("communication"),
        requires=(any_of("acm", device("/dev/ttyACM0"), device("/dev/ttyACM1")),),
        applies=lambda ctx: ctx.has_hardware_class("communication"),
    ),
    Inspection("uarts", "UARTS AND USB SERIAL PORTS", GROUP, uarts),
    Inspection(
        "gpio", "GPIO PIN STATUS via WIRINGPI", GROUP, gpio_pins,
        requires=(WIRINGPI,), supplemental=True,
    ),
)
