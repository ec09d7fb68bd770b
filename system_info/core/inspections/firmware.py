"""
Firmware group — bootloader, boot configuration, clocks and thermals.

Readings come from the VideoCore firmware through ``vcgencmd``; the
arithmetic the report does on them (MHz, MB, °F) happens here.
"""

from __future__ import annotations

import re

from system_info.core.context import SystemContext
from system_info.core.data.capabilities import executable
from system_info.core.engine.formatting import field
from system_info.core.engine.section import Section
from system_info.core.models.inspection import Inspection
from system_info.core.services.throttle import decode_throttle, describe_throttle, parse_throttled

GROUP = "firmware"

OTP_USB_BOOT_ENABLED = "17:3020000a"
_OTP_MODELS = {"Pi2Bv1.2", "3A+", "3B", "3B+"}

COMMON_CLOCKS = ("arm", "core", "h264", "isp", "v3d", "uart", "pwm", "emmc", "pixel", "vec", "hdmi", "dpi")
PI4_CLOCKS = (
    "altscb", "cam0", "cam1", "ckl108", "clk27", "clk54", "debug0", "debug1", "dft",
    "dsi0", "dsi0esc", "dsi1", "dsi1esc", "emmc2", "genet125", "genet250", "gisb",
    "gpclk0", "gpclk1", "hevc", "m2mc", "otp", "pcm", "plla", "pllb", "pllc", "plld",
    "pllh", "pulse", "smi", "tectl", "testmux", "tsens", "usb", "wdog", "xpt",
)
COMMON_VOLTAGES = ("core", "sdram_c", "sdram_i", "sdram_p")
PI4_VOLTAGES = ("2711", "ain1", "usb_pd", "uncached")

_MEMORY_RE = re.compile(r"Memory:\s*\d+K/(\d+)K available")
_TEMP_RE = re.compile(r"temp=([-\d.]+)")


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 9 / 5 + 32


def format_temperature(label: str, celsius: float) -> str:
    return f"{label}: {celsius:.2f}°C ({celsius_to_fahrenheit(celsius):.2f}°F)"


def parse_vc_temperature(text: str) -> float | None:
    """``temp=47.2'C`` → 47.2"""
    match = _TEMP_RE.search(text)
    return float(match.group(1)) if match else None


def arm_memory_mb(dmesg_lines: list[str]) -> int | None:
    """ARM memory from the kernel's boot-time ``Memory:`` line.

    ``vcgencmd get_mem arm`` only sees the first GB on boards with more,
    the kernel's own count is right everywhere.
    """
    for line in dmesg_lines:
        match = _MEMORY_RE.search(line)
        if match:
            return int(match.group(1)) // 1024
    return None


def active_trigger(text: str) -> str | None:
    """The bracketed entry of a LED ``trigger`` file."""
    for word in text.split():
        if word.startswith("[") and word.endswith("]"):
            return word
    return None


def otp_model(ctx: SystemContext) -> str:
    """Board name for OTP purposes; a BCM2837 Pi 2B is the v1.2 board."""
    if ctx.model_name == "Pi2B" and ctx.processor == "BCM2837":
        return "Pi2Bv1.2"
    return ctx.model_name


# ── Bootloader ──────────────────────────────────────────────────

def eeprom_version(section: Section, ctx: SystemContext) -> None:
    section.run("vcgencmd", "bootloader_version")


def eeprom_update_status(section: Section, ctx: SystemContext) -> None:
    section.run("rpi-eeprom-update", sudo=True)


def eeprom_config(section: Section, ctx: SystemContext) -> None:
    section.echo("The meaning of each of these is documented here:")
    section.echo("https://www.raspberrypi.org/documentation/hardware/raspberrypi/bcm2711_bootloader_config.md")
    section.blank()
    section.run("vcgencmd", "bootloader_config")


def otp_boot_from_usb(section: Section, ctx: SystemContext) -> None:
    if otp_model(ctx) not in _OTP_MODELS:
        section.echo("Boot From USB: Feature not available on this model")
        return
    result = section.capture("vcgencmd", "otp_dump")
    if result.failed:
        section.not_available("vcgencmd otp_dump", result.error or "")
        return
    row = next((line.strip() for line in result.lines() if line.startswith("17:")), "")
    if row == OTP_USB_BOOT_ENABLED:
        section.echo("Boot From USB: Enabled")
    else:
        section.echo("Boot From USB: Available, but not enabled")


# ── Device tree ─────────────────────────────────────────────────

def _firmware_log(section: Section, marker: str) -> None:
    result = section.capture("vcdbg", "log", "msg", sudo=True)
    if not result.stdout and not result.stderr:
        section.not_available("vcdbg log msg", result.error or "")
        return
    text = "\n".join(filter(None, (result.stdout, result.stderr)))
    for line in text.splitlines():
        if marker in line:
            section.echo(line.split(":", 1)[1] if ":" in line else line)


def loaded_overlays(section: Section, ctx: SystemContext) -> None:
    _firmware_log(section, "Loaded overlay")


def loaded_dtparams(section: Section, ctx: SystemContext) -> None:
    _firmware_log(section, "dtparam:")


def led_triggers(section: Section, ctx: SystemContext) -> None:
    for label, path in (
        ("LED0", "/sys/class/leds/led0/trigger"),
        ("LED1", "/sys/class/leds/led1/trigger"),
        ("MMC0", "/sys/class/leds/mmc0::/trigger"),
    ):
        result = section.read(path)
        if result.ok:
            section.echo(f"{label}: {active_trigger(result.stdout) or 'none'}")


def cmdline(section: Section, ctx: SystemContext) -> None:
    section.cat(ctx.cmdline_path)


def config_txt(section: Section, ctx: SystemContext) -> None:
    if ctx.config_lines:
        section.extend(ctx.config_lines)
    else:
        section.cat(ctx.config_path, active_only=True)


# ── Memory and display ──────────────────────────────────────────

def memory_split(section: Section, ctx: SystemContext) -> None:
    arm = arm_memory_mb(section.dmesg())
    gpu = field(section.capture("vcgencmd", "get_mem", "gpu").stdout).removesuffix("M")
    section.echo(f"ARM: {arm:4d} MB" if arm is not None else "ARM: unknown")
    section.echo(f"GPU: {int(gpu):4d} MB" if gpu.isdigit() else "GPU: unknown")
    section.blank()
    section.echo('Note: GPU hardware-accelerated codecs will be disabled if "gpu_mem=16".')
    section.echo('At least "gpu_mem=96" is required for HW codecs to run correctly.')
    section.echo('At least "gpu_mem=128" is required for camera operation.')


_DRIVER_NAMES = {
    "broadcom": "Broadcom Display Driver",
    "fake": '"Fake" OpenGL Display Driver',
    "full": '"Full" OpenGL Display Driver',
}


def display_driver(section: Section, ctx: SystemContext) -> None:
    section.echo(_DRIVER_NAMES.get(ctx.display_driver, ctx.display_driver))


# ── Clocks, voltages, temperatures ──────────────────────────────

def _mhz(section: Section, clock: str) -> str:
    value = field(section.capture("vcgencmd", "measure_clock", clock).stdout)
    return f"{int(value) // 1_000_000:4d} MHz" if value.isdigit() else "unknown"


def processor_speeds(section: Section, ctx: SystemContext) -> None:
    section.echo(f" CPU: {_mhz(section, 'arm')}")
    section.echo(f"CORE: {_mhz(section, 'core')}")


def _measurements(section: Section, verb: str, names: tuple[str, ...], width: int) -> None:
    for name in names:
        result = section.capture("vcgencmd", verb, name)
        if result.failed:
            section.not_available(f"{name} ({verb})", result.error or "vcgencmd")
            continue
        answer = result.stdout.strip()
        section.echo(f"{name + ':':<10} {answer:<{width}}".rstrip())


def clock_frequencies(section: Section, ctx: SystemContext) -> None:
    if ctx.is_4b:
        section.echo("Clocks available across all Pi models...")
    _measurements(section, "measure_clock", COMMON_CLOCKS, 28)
    if ctx.is_4b:
        section.blank()
        section.echo("Additional Pi 4B-specific clocks...")
        _measurements(section, "measure_clock", PI4_CLOCKS, 28)


def voltages(section: Section, ctx: SystemContext) -> None:
    if ctx.is_4b:
        section.echo("Voltages available across all Pi models...")
    _measurements(section, "measure_volts", COMMON_VOLTAGES, 40)
    if ctx.is_4b:
        section.blank()
        section.echo("Additional Pi 4B-specific voltages...")
        _measurements(section, "measure_volts", PI4_VOLTAGES, 40)


def temperature(section: Section, ctx: SystemContext) -> None:
    if ctx.is_4b:
        section.echo("Temperatures available across all Pi models...")

    gpu = parse_vc_temperature(section.capture("vcgencmd", "measure_temp").stdout)
    if gpu is None:
        section.not_available("GPU temperature", "vcgencmd measure_temp")
    else:
        section.echo(format_temperature(" GPU Temp", gpu))

    zone = section.read("/sys/class/thermal/thermal_zone0/temp")
    if zone.ok and zone.stdout.strip().lstrip("-").isdigit():
        section.echo(format_temperature(" ARM Temp", int(zone.stdout.strip()) / 1000))
    else:
        section.not_available("ARM temperature", zone.error or "thermal_zone0")

    if ctx.is_4b:
        section.blank()
        section.echo("Additional Pi 4B-specific PMIC temperature...")
        pmic = parse_vc_temperature(section.capture("vcgencmd", "measure_temp", "pmic").stdout)
        if pmic is None:
            section.not_available("PMIC temperature", "vcgencmd measure_temp pmic")
        else:
            section.echo(format_temperature("PMIC Temp", pmic))


def scaling_governor(section: Section, ctx: SystemContext) -> None:
    result = section.read("/sys/devices/system/cpu/cpu0/cpufreq/scaling_governor")
    if result.failed:
        section.not_available("scaling_governor", result.error or "")
        return
    governor = result.stdout.strip()
    section.echo(governor)
    # Every governor but "performance" is overridden by force_turbo
    if governor != "performance" and ctx.config_value("force_turbo") == "1":
        section.echo('(...but overridden by "force_turbo=1" found in config.txt)')


def throttling(section: Section, ctx: SystemContext) -> None:
    result = section.capture("vcgencmd", "get_throttled")
    try:
        status = decode_throttle(parse_throttled(result.stdout))
    except ValueError:
        section.not_available("vcgencmd get_throttled", result.error or "unrecognised answer")
        return
    section.extend(describe_throttle(status))


def _is_4b(ctx: SystemContext) -> bool:
    return ctx.is_4b


INSPECTIONS: tuple[Inspection, ...] = (
    Inspection("eeprom-version", "PI MODEL 4B EEPROM VERSION", GROUP, eeprom_version, applies=_is_4b),
    Inspection(
        "eeprom-update", "PI MODEL 4B EEPROM UPDATE STATUS", GROUP, eeprom_update_status,
        requires=(executable("rpi-eeprom-update"),), applies=_is_4b,
    ),
    Inspection("eeprom-config", "PI MODEL 4B EEPROM CONFIG", GROUP, eeprom_config, applies=_is_4b),
    Inspection(
        "otp-usb-boot", "OTP BOOT-FROM-USB STATUS", GROUP, otp_boot_from_usb,
        applies=lambda ctx: not ctx.is_4b,
    ),
    Inspection("overlays", "LOADED OVERLAYS", GROUP, loaded_overlays),
    Inspection("dtparams", "LOADED DTPARAMS", GROUP, loaded_dtparams),
    Inspection("led-triggers", "LED TRIGGERS", GROUP, led_triggers),
    Inspection("cmdline", "CMDLINE.TXT", GROUP, cmdline),
    Inspection("config-txt", "CONFIG.TXT SETTINGS", GROUP, config_txt),
    Inspection("memory-split", "MEMORY SPLIT", GROUP, memory_split),
    Inspection("display-driver", "ACTIVE DISPLAY DRIVER", GROUP, display_driver),
    Inspection("processor-speeds", "PROCESSOR SPEEDS", GROUP, processor_speeds),
    Inspection("clocks", "CLOCK FREQUENCIES", GROUP, clock_frequencies),
    Inspection("voltages", "VOLTAGES", GROUP, voltages),
    Inspection("temperature", "TEMPERATURE", GROUP, temperature),
    Inspection("governor", "SCALING GOVERNOR", GROUP, scaling_governor),
    Inspection("throttling", "DECODED PROCESSOR THROTTLING STATUS", GROUP, throttling),
)
