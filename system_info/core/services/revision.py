"""
Hardware revision decoder — the board's new-style revision code.

The kernel reports a hex revision code in /proc/cpuinfo. When bit 23
is set the code is a bitfield:

    bits  0-3    PCB revision
    bits  4-11   model
    bits 12-15   processor
    bits 16-19   manufacturer
    bits 20-22   memory size
    bit  23      new-style flag
    bit  24      warranty void (pre Pi2 boards)
    bit  25      warranty void (post Pi2 boards)

Older boards report a small opaque code that is shown as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

UNKNOWN = "unknown"

# None marks a reserved or undefined slot.
_MODEL_NAMES: tuple[str | None, ...] = (
    "A", "B", "A+", "B+", "Pi2B", "Alpha", "CM1", None,
    "3B", "Zero", "CM3", None, "Zero W", "3B+", "3A+", "internal use only",
    "CM3+", "4B", "Zero 2 W", "400", "CM4", "CM4S", "internal use only", "5",
    "CM5", "500", "CM5 Lite",
)

_PROCESSORS: tuple[str | None, ...] = ("BCM2835", "BCM2836", "BCM2837", "BCM2711", "BCM2712")

_MANUFACTURERS: tuple[str | None, ...] = (
    "Sony UK", "Egoman", "Embest", "Sony Japan", "Embest", "Stadium",
)

_MEMORY_SIZES: tuple[str | None, ...] = (
    "256 MB", "512 MB", "1024 MB", "2048 MB", "4096 MB", "8192 MB", "16384 MB",
)

# Original 4B boards with the USB-C power design flaw. The leading
# character only encodes memory size.
_USB_C_FLAW_BITS = 0x03111

_NEW_STYLE_BIT = 23


class RevisionDecodeError(ValueError):
    """Raised when a revision code is not a hexadecimal number."""


def _lookup(table: tuple[str | None, ...], index: int) -> str:
    if 0 <= index < len(table):
        return table[index] or UNKNOWN
    return UNKNOWN


@dataclass(frozen=True)
class HardwareRevision:
    """Fields decoded from a new-style revision code."""

    raw: str
    value: int
    pcb_revision: str
    model_name: str
    processor: str
    manufacturer: str
    memory_size: str
    encoded: bool
    warranty_void_old: bool
    warranty_void_new: bool

    @property
    def warranty_void(self) -> bool:
        return self.warranty_void_old or self.warranty_void_new

    @property
    def usb_c_flaw(self) -> bool:
        """Whether this is a first-run 4B that rejects e-marked USB-C cables."""
        return self.model_name == "4B" and self.value & 0xFFFFF == _USB_C_FLAW_BITS

    def to_dict(self) -> dict[str, Any]:
        return {
            "raw": self.raw,
            "encoded": self.encoded,
            "pcb_revision": self.pcb_revision,
            "model_name": self.model_name,
            "processor": self.processor,
            "manufacturer": self.manufacturer,
            "memory_size": self.memory_size,
            "warranty_void_old": self.warranty_void_old,
            "warranty_void_new": self.warranty_void_new,
            "usb_c_flaw": self.usb_c_flaw,
        }


@dataclass(frozen=True)
class LegacyRevision:
    """A pre-bitfield revision code. Only the raw value is meaningful."""

    raw: str
    value: int
    encoded: bool = False

    @property
    def model_name(self) -> str:
        return ""

    @property
    def usb_c_flaw(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"raw": self.raw, "encoded": False}


Revision = HardwareRevision | LegacyRevision


def decode_revision(raw: str) -> Revision:
    """Decode a revision code as reported by the kernel.

    Args:
        raw: Hex string such as ``"a020d3"`` (an optional ``0x``
            prefix is accepted).

    Returns:
        HardwareRevision when the new-style bit is set, otherwise
        LegacyRevision carrying the raw value only.

    Raises:
        RevisionDecodeError: If ``raw`` is not hexadecimal.
    """
    text = raw.strip()
    digits = text[2:] if text.lower().startswith("0x") else text
    try:
        value = int(digits, 16)
    except ValueError as e:
        raise RevisionDecodeError(f"Not a hexadecimal revision code: {raw!r}") from e
    if value < 0:
        raise RevisionDecodeError(f"Not a hexadecimal revision code: {raw!r}")

    if not (value >> _NEW_STYLE_BIT) & 1:
        return LegacyRevision(raw=text, value=value)

    return HardwareRevision(
        raw=text,
        value=value,
        pcb_revision=str(value & 0xF),
        model_name=_lookup(_MODEL_NAMES, (value >> 4) & 0xFF),
        processor=_lookup(_PROCESSORS, (value >> 12) & 0xF),
        manufacturer=_lookup(_MANUFACTURERS, (value >> 16) & 0xF),
        memory_size=_lookup(_MEMORY_SIZES, (value >> 20) & 0x7),
        encoded=True,
        warranty_void_old=bool((value >> 24) & 1),
        warranty_void_new=bool((value >> 25) & 1),
    )


def describe_revision(revision: Revision) -> list[str]:
    """Report lines for a decoded revision."""
    lines = [f"Revision      : {revision.raw}"]
    if not isinstance(revision, HardwareRevision):
        lines.append("Encoded Flag  : no (old-style revision code, not decoded)")
        return lines

    lines += [
        f"PCB Revision  : {revision.pcb_revision}",
        f"Model Name    : {revision.model_name}",
        f"Processor     : {revision.processor}",
        f"Manufacturer  : {revision.manufacturer}",
        f"Memory Size   : {revision.memory_size}",
        "Encoded Flag  : revision is a bit field",
        "Warranty Void : " + ("'warranty void' bit is set" if revision.warranty_void else "no"),
    ]
    if revision.usb_c_flaw:
        lines += [
            "",
            "This 4B contains a USB-C power design flaw.",
            '"Smart" USB-C cables will not power this Pi.',
        ]
    return lines
