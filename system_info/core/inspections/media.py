"""
Media group — codecs, video and camera, sound, printers and displays.
"""

from __future__ import annotations

import re

from system_info.core.context import SystemContext
from system_info.core.data.capabilities import CUPS_CLIENT, X11_XSERVER_UTILS, file_exists
from system_info.core.engine.formatting import field, grep
from system_info.core.engine.section import Section
from system_info.core.models.inspection import Inspection

GROUP = "media"

CODECS = (
    "AGIF", "FLAC", "H263", "H264", "MJPA", "MJPB", "MJPG", "MPG2", "MPG4",
    "MVC0", "PCM", "THRA", "VORB", "VP6", "VP8", "WMV9", "WVC1",
)
LICENSED_CODECS = ("MPG2", "WVC1")

# tvservice -s state words
_TV_NOT_HDMI = "0x120000"
_TV_OFF = "0x2"

_CARD_RE = re.compile(r"^\s*(\d+)\s+\[")
_DISPLAY_RE = re.compile(r"Display Number (\d+)")


def codec_line(codec: str, status: str, model_name: str) -> str:
    """One codec status line.

    MPG2 and WVC1 need a purchased licence key on boards before the 4B
    (the 4B has no hardware decoder for them at all).
    """
    line = f"{codec:>4}: {status}"
    if codec in LICENSED_CODECS and model_name != "4B":
        line += " (licensed)" if status == "enabled" else " (license required to enable)"
    return line


def codecs(section: Section, ctx: SystemContext) -> None:
    for codec in CODECS:
        status = field(section.capture("vcgencmd", "codec_enabled", codec).stdout) or "unknown"
        section.echo(codec_line(codec, status, ctx.model_name))
    section.blank()
    section.echo("Note 1: VP6, VP8, and MJPG are not handled by the hardware video decoder")
    section.echo("in the Broadcom processor, but by the VideoCore GPU.  Enable these")
    section.echo("by running:  sudo raspi-config -> Interfacing Options -> Camera -> Enable")
    section.echo(f'or by adding "start_x=1" to {ctx.config_path}')
    section.blank()
    section.echo('Note 2: GPU hardware-accelerated codecs will be disabled if "gpu_mem=16".')
    section.echo('At least "gpu_mem=96" is required for the codecs to run correctly.')


def v4l2_codecs(section: Section, ctx: SystemContext) -> None:
    section.run("v4l2-ctl", "-d", "10", "--list-formats-out")
    if ctx.is_4b:
        section.blank()
        section.echo("Note: The H.265 codec, new w/ the Pi 4B, isn't part of the videocore.")
        section.echo("It's an entirely new block on the chip, so vcgencmd knows nothing")
        section.echo("about it.  The v4l2-ctl listing above, however, should show the")
        section.echo("H.265 codec, when enabled, on the Pi 4B.")


def video4linux_devices(section: Section, ctx: SystemContext) -> None:
    listing = section.run("v4l2-ctl", "--list-devices")
    devices = [line.strip() for line in listing.lines() if line.strip().startswith("/dev/")]
    for device in devices:
        section.blank()
        section.banner(f"VIDEO4LINUX DEVICE {device}")
        section.run("v4l2-ctl", "-d", device, "--all")


def camera(section: Section, ctx: SystemContext) -> None:
    section.run("vcgencmd", "get_camera")
    led = field(section.capture("vcgencmd", "get_config", "disable_camera_led").stdout)
    if led == "1":
        section.blank()
        section.echo("Camera LED is disabled during record.")


def multimedia_devices(section: Section, ctx: SystemContext) -> None:
    section.run("lshw", "-class", "multimedia", sudo=True)


def alsa_modules(section: Section, ctx: SystemContext) -> None:
    section.cat("/proc/asound/modules")


def alsa_cards(text: str) -> list[str]:
    """Card numbers listed in /proc/asound/cards."""
    return [m.group(1) for m in map(_CARD_RE.match, text.splitlines()) if m]


def alsa_hardware(section: Section, ctx: SystemContext) -> None:
    cards = section.cat("/proc/asound/cards")
    for number in alsa_cards(cards.stdout):
        section.blank()
        section.banner(f"ALSA CARD-{number} INFO")
        section.run("amixer", "-c", number)


def _alsa_devices(section: Section, tool: str, kind: str) -> None:
    result = section.capture(tool, "-l")
    lines = result.lines()
    if any(line.startswith("card") for line in lines):
        section.extend(lines)
    else:
        section.extend(grep(lines, kind.upper()))
        section.echo(f"No {kind} device found")


def alsa_playback_capture(section: Section, ctx: SystemContext) -> None:
    _alsa_devices(section, "aplay", "playback")
    section.blank()
    _alsa_devices(section, "arecord", "capture")


def printer_status(section: Section, ctx: SystemContext) -> None:
    scheduler = section.capture("lpstat", "-r").stdout.strip()
    if scheduler != "scheduler is running":
        section.echo(scheduler or "CUPS scheduler is not running")
        return
    section.run("lpstat", "-t")


def touchscreen(section: Section, ctx: SystemContext) -> None:
    found = grep(section.dmesg(), "ft5406", ignore_case=True)
    section.echo("detected" if found else "not detected")


def hdmi_display_data(section: Section, ctx: SystemContext) -> None:
    section.run("vcgencmd", "dispmanx_list")
    section.blank()
    listing = section.run("tvservice", "-l")
    section.blank()

    for number in (m.group(1) for m in map(_DISPLAY_RE.search, listing.lines()) if m):
        status = section.capture("tvservice", "-s", "-v", number).stdout.strip()
        words = status.split()
        state = words[1] if len(words) > 1 else ""
        if state == _TV_NOT_HDMI:
            section.echo(f"Display {number} is not HDMI... Skipping.")
            section.blank()
            continue
        if state == _TV_OFF:
            section.echo(f"Display {number} TV is Off... Skipping.")
            section.blank()
            continue

        section.sub_banner(f"DISPLAY NUMBER : {number}")
        section.echo(f"DISPLAY STATUS : {status}")
        device = section.capture("tvservice", "-n", "-v", number).stdout
        device = "".join(ch for ch in device if ch.isprintable()).strip()
        section.echo(f"EDID DEVICE ID : {device or 'No Device Present'}")
        audio = [line.strip() for line in section.capture("tvservice", "-a", "-v", number).lines()]
        section.echo(f"SUPPORTED AUDIO: {' '.join(audio) if audio else 'No Device Present'}")
        section.blank()

        # DMT (monitors) or CEA (TV sets); custom modes are listed as DMT
        group = words[3] if len(words) > 3 and words[3] in ("DMT", "CEA") else "DMT"
        section.run("tvservice", f"--modes={group}", "-v", number)
        section.blank()


def screen_resolution(section: Section, ctx: SystemContext) -> None:
    result = section.capture("vcgencmd", "get_lcd_info")
    values = result.stdout.split()
    if len(values) < 3:
        section.not_available("vcgencmd get_lcd_info", result.error or "unrecognised answer")
        return
    section.echo(f"HORIZONTAL : {values[0]} pixels")
    section.echo(f"VERTICAL   : {values[1]} pixels")
    section.echo(f"COLOR DEPTH: {values[2]} bits")


def x_display_resolution(section: Section, ctx: SystemContext) -> None:
    section.echo(f"$DISPLAY={ctx.display}")
    section.run("xrandr", "--verbose", exclude="Failed to get size of gamma")


def _legacy_display(ctx: SystemContext) -> bool:
    # tvservice and get_lcd_info say nothing useful under full KMS
    return ctx.display_driver in ("broadcom", "fake")


INSPECTIONS: tuple[Inspection, ...] = (
    Inspection("codecs", "HARDWARE-ACCELERATED CODECS", GROUP, codecs),
    Inspection("v4l2-codecs", "V4L2-CTL CODECS", GROUP, v4l2_codecs),
    Inspection("video4linux", "VIDEO4LINUX DEVICES", GROUP, video4linux_devices),
    Inspection("camera", "CAMERA", GROUP, camera),
    Inspection(
        "multimedia-devices", "MULTIMEDIA DEVICES", GROUP, multimedia_devices,
        applies=lambda ctx: ctx.has_hardware_class("multimedia"),
    ),
    Inspection(
        "alsa-modules", "ALSA MODULES", GROUP, alsa_modules,
        requires=(file_exists("/proc/asound/modules"),),
    ),
    Inspection(
        "alsa-hardware", "ALSA SOUND HARDWARE", GROUP, alsa_hardware,
        requires=(file_exists("/proc/asound/cards"),),
    ),
    Inspection("alsa-devices", "ALSA PLAYBACK AND CAPTURE DEVICES", GROUP, alsa_playback_capture),
    Inspection(
        "printers", "PRINTER STATUS", GROUP, printer_status,
        requires=(CUPS_CLIENT,), supplemental=True,
    ),
    Inspection("touchscreen", 'OFFICIAL 7" TOUCHSCREEN', GROUP, touchscreen),
    Inspection("hdmi", "HDMI DISPLAY DATA", GROUP, hdmi_display_data, applies=_legacy_display),
    Inspection("screen-resolution", "CURRENT SCREEN RESOLUTION", GROUP, screen_resolution, applies=_legacy_display),
    Inspection(
        "x-display", "CURRENT X-DISPLAY RESOLUTION", GROUP, x_display_resolution,
        requires=(X11_XSERVER_UTILS,), applies=lambda ctx: bool(ctx.display), supplemental=True,
    ),
)
