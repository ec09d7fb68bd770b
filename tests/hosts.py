"""
Canned host data shared by the tests.
"""

from dataclasses import replace

from system_info.core.context import SystemContext
from system_info.core.services.packages import QUERY_ARGS
from system_info.core.services.revision import decode_revision

DPKG_KEY = "dpkg-query " + " ".join(QUERY_ARGS)

OS_RELEASE = 'PRETTY_NAME="Raspbian GNU/Linux 10 (buster)"\nNAME="Raspbian GNU/Linux"\nVERSION_ID="10"\nID=raspbian\n'
CPUINFO = "processor\t: 0\nHardware\t: BCM2835\nRevision\t: a020d3\nSerial\t\t: 00000000abcd1234\n"
DMESG = "[    0.000000] Booting Linux on physical CPU 0x0\n[    0.000000] Memory: 948304K/970752K available\n"


def dpkg_output(*names: str) -> str:
    """``dpkg-query`` output with every name installed."""
    return "".join(f"{name}:armhf\tinstall ok installed\n" for name in names)


def make_context(revision: str | None = "a020d3", **kwargs) -> SystemContext:
    """A SystemContext for a supported board."""
    base = SystemContext(
        os_release={"PRETTY_NAME": "Raspbian GNU/Linux 10 (buster)", "VERSION_ID": "10"},
        revision=decode_revision(revision) if revision else None,
        serial="00000000abcd1234",
        is_root=True,
        boot_marker_found=True,
    )
    return replace(base, **kwargs)
