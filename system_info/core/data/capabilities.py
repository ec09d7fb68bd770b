"""
Capability catalog — every external dependency the report knows about.

Required packages must all be present (on the boards they apply to)
or the run stops before the first inspection. Supplemental packages
only switch individual inspections on. Runtime capabilities (devices,
daemons, kernel modules) are built on the fly with the helpers below.
"""

from __future__ import annotations

from system_info.core.models.capability import Capability, CapabilityKind, Check, CheckKind

WIRINGPI_KNOWN_GOOD = "2.52"


# ── Helper constructors ─────────────────────────────────────────

def executable(name: str, description: str = "") -> Capability:
    """An executable that must be on PATH."""
    return Capability(
        name=f"exec:{name}",
        checks=[Check(kind=CheckKind.EXECUTABLE, target=name)],
        description=description,
    )


def device(path: str) -> Capability:
    """A character device node."""
    return Capability(name=f"device:{path}", checks=[Check(kind=CheckKind.DEVICE, target=path)])


def file_exists(path: str) -> Capability:
    """A file, directory or link that must exist."""
    return Capability(name=f"file:{path}", checks=[Check(kind=CheckKind.FILE, target=path)])


def running(pattern: str) -> Capability:
    """A daemon whose command line contains ``pattern``."""
    return Capability(name=f"process:{pattern}", checks=[Check(kind=CheckKind.PROCESS, target=pattern)])


def kernel_module(fragment: str) -> Capability:
    """A loaded kernel module whose name contains ``fragment``."""
    return Capability(
        name=f"module:{fragment}",
        checks=[Check(kind=CheckKind.KERNEL_MODULE, target=fragment)],
    )


def unit_active(unit: str) -> Capability:
    """A systemd unit in the active state."""
    return Capability(name=f"unit:{unit}", checks=[Check(kind=CheckKind.SYSTEMD_UNIT, target=unit)])


def smoke_test(name: str, target: str, *args: str, **check: object) -> Capability:
    """An executable that must also answer a read-only invocation."""
    return Capability(
        name=name,
        checks=[Check(kind=CheckKind.SMOKE_TEST, target=target, args=list(args), **check)],
    )


def any_of(name: str, *capabilities: Capability) -> Capability:
    """Satisfied when any one of the given capabilities is."""
    checks = [c for cap in capabilities for c in cap.checks]
    return Capability(name=name, checks=checks, match="any")


def package(
    name: str,
    binary: str | None = None,
    kind: CapabilityKind = CapabilityKind.OPTIONAL,
    models: list[str] | None = None,
    extra: list[Check] | None = None,
    description: str = "",
) -> Capability:
    """A package, with an optional PATH fallback for source builds."""
    return Capability(
        name=name,
        kind=kind,
        package=name,
        checks=[Check(kind=CheckKind.PACKAGE, target=name, binary=binary), *(extra or [])],
        models=models or [],
        description=description,
    )


def required(name: str, binary: str | None = None, models: list[str] | None = None) -> Capability:
    return package(name, binary=binary, kind=CapabilityKind.REQUIRED, models=models)


def wiringpi(known_good: str = WIRINGPI_KNOWN_GOOD) -> Capability:
    """WiringPi: installed, ``gpio -v`` works, and on a 4B the exact known-good version."""
    return package(
        "wiringpi",
        binary="gpio",
        extra=[
            Check(
                kind=CheckKind.SMOKE_TEST,
                target="gpio",
                args=["-v"],
                version_pattern=r"gpio version:\s*(\S+)",
                expect=known_good,
                models=["4B"],
            ),
        ],
        description="GPIO pin table",
    )


# ── Required packages ───────────────────────────────────────────

REQUIRED_PACKAGES: tuple[Capability, ...] = (
    required("alsa-utils", binary="aplay"),
    required("bluez", binary="bluetoothctl"),
    required("coreutils", binary="ls"),
    required("i2c-tools", binary="i2cdetect"),
    required("iproute2", binary="ip"),
    required("libraspberrypi-bin", binary="vcgencmd"),
    required("lshw", binary="lshw"),
    required("net-tools", binary="ifconfig"),
    required("rpi-eeprom", binary="rpi-eeprom-update", models=["4B"]),
    required("sed", binary="sed"),
    required("usbutils", binary="lsusb"),
    required("util-linux", binary="lsblk"),
    required("v4l-utils", binary="v4l2-ctl"),
    required("wireless-tools", binary="iwconfig"),
)


# ── Supplemental packages ───────────────────────────────────────

CUPS_CLIENT = package("cups-client", binary="lpstat", description="printer status")
ETHTOOL = package("ethtool", binary="ethtool", description="ethernet driver details")
LVM2 = package("lvm2", binary="vgdisplay", description="logical volumes")
MDADM = package("mdadm", binary="mdadm", description="RAID arrays")
NFS_KERNEL_SERVER = package("nfs-kernel-server", binary="showmount", description="NFS exports")
NMAP = package("nmap", binary="nmap", description="listening services")
GPIOZERO = package("python3-gpiozero", binary="pinout", description="board diagram")
QUOTA = package("quota", binary="repquota", description="disk quotas")
RNG_TOOLS = package("rng-tools", binary="rngtest", description="hardware RNG test")
RPCBIND = package("rpcbind", binary="rpcinfo", description="portmapper")
RTL_SDR = package("rtl-sdr", binary="rtl_test", description="RTL-SDR tuner")
SAMBA = package("samba", binary="smbstatus", description="samba connections")
SYSSTAT = package("sysstat", binary="mpstat", description="CPU and I/O statistics")
SYSTEMD_COREDUMP = package("systemd-coredump", binary="coredumpctl", description="core dumps")
WATCHDOG = package("watchdog", binary="watchdog", description="watchdog timer")
WIRINGPI = wiringpi()
X11_XSERVER_UTILS = package("x11-xserver-utils", binary="xrandr", description="X display modes")

SUPPLEMENTAL_PACKAGES: tuple[Capability, ...] = (
    CUPS_CLIENT,
    ETHTOOL,
    LVM2,
    MDADM,
    NFS_KERNEL_SERVER,
    NMAP,
    GPIOZERO,
    QUOTA,
    RNG_TOOLS,
    RPCBIND,
    RTL_SDR,
    SAMBA,
    SYSSTAT,
    SYSTEMD_COREDUMP,
    WATCHDOG,
    WIRINGPI,
    X11_XSERVER_UTILS,
)


def supplemental_packages(wiringpi_known_good: str = WIRINGPI_KNOWN_GOOD) -> tuple[Capability, ...]:
    """The supplemental list, with the WiringPi version gate from configuration."""
    if wiringpi_known_good == WIRINGPI_KNOWN_GOOD:
        return SUPPLEMENTAL_PACKAGES
    return tuple(
        wiringpi(wiringpi_known_good) if cap.name == "wiringpi" else cap
        for cap in SUPPLEMENTAL_PACKAGES
    )
