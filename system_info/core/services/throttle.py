"""
Throttle-status decoder — ``vcgencmd get_throttled``.

The firmware reports one status word. Bits 0-3 describe what is
happening right now; bits 16-19 record whether the same condition
has occurred at any point since boot. Every bit is read on its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

UNDERVOLTED = 0x1
FREQUENCY_CAPPED = 0x2
THROTTLED = 0x4
SOFT_TEMP_LIMIT = 0x8
UNDERVOLTED_SINCE_BOOT = 0x10000
FREQUENCY_CAPPED_SINCE_BOOT = 0x20000
THROTTLED_SINCE_BOOT = 0x40000
SOFT_TEMP_LIMIT_SINCE_BOOT = 0x80000

_THROTTLED_RE = re.compile(r"throttled=(0x[0-9a-fA-F]+|\d+)")


@dataclass(frozen=True)
class ThrottleStatus:
    """Eight independent conditions decoded from one status word."""

    raw: int
    undervolted: bool
    undervolted_since_boot: bool
    frequency_capped: bool
    frequency_capped_since_boot: bool
    throttled: bool
    throttled_since_boot: bool
    soft_temp_limit: bool
    soft_temp_limit_since_boot: bool

    @property
    def healthy(self) -> bool:
        """No condition is active now and none has occurred since boot."""
        return self.raw & 0xF000F == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "raw": hex(self.raw),
            "undervolted": self.undervolted,
            "undervolted_since_boot": self.undervolted_since_boot,
            "frequency_capped": self.frequency_capped,
            "frequency_capped_since_boot": self.frequency_capped_since_boot,
            "throttled": self.throttled,
            "throttled_since_boot": self.throttled_since_boot,
            "soft_temp_limit": self.soft_temp_limit,
            "soft_temp_limit_since_boot": self.soft_temp_limit_since_boot,
        }


def decode_throttle(word: int) -> ThrottleStatus:
    """Decode a status word. Total: every integer yields a result."""
    word &= 0xFFFFFFFF
    return ThrottleStatus(
        raw=word,
        undervolted=bool(word & UNDERVOLTED),
        undervolted_since_boot=bool(word & UNDERVOLTED_SINCE_BOOT),
        frequency_capped=bool(word & FREQUENCY_CAPPED),
        frequency_capped_since_boot=bool(word & FREQUENCY_CAPPED_SINCE_BOOT),
        throttled=bool(word & THROTTLED),
        throttled_since_boot=bool(word & THROTTLED_SINCE_BOOT),
        soft_temp_limit=bool(word & SOFT_TEMP_LIMIT),
        soft_temp_limit_since_boot=bool(word & SOFT_TEMP_LIMIT_SINCE_BOOT),
    )


def parse_throttled(text: str) -> int:
    """Extract the status word from ``vcgencmd get_throttled`` output.

    Accepts the full ``throttled=0x50005`` line or a bare number.

    Raises:
        ValueError: If no status word can be found.
    """
    text = text.strip()
    match = _THROTTLED_RE.search(text)
    token = match.group(1) if match else text
    return int(token, 16) if token.lower().startswith("0x") else int(token)


def describe_throttle(status: ThrottleStatus) -> list[str]:
    """Report lines for a decoded status word."""

    def flag(value: bool) -> str:
        return "YES" if value else "no"

    lines = [f"Throttle Status: {hex(status.raw)}", ""]
    for label, now, since_boot in (
        ("Undervolted", status.undervolted, status.undervolted_since_boot),
        ("Throttled", status.throttled, status.throttled_since_boot),
        ("Frequency Capped", status.frequency_capped, status.frequency_capped_since_boot),
        ("Softlimit", status.soft_temp_limit, status.soft_temp_limit_since_boot),
    ):
        lines += [
            f"{label}:",
            f"    Currently: {flag(now)}",
            f"   Since Boot: {flag(since_boot)}",
            "",
        ]
    return lines[:-1]
