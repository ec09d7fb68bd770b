"""
Report formatting — banners, markers and small text filters.

Marker conventions, so a reader can tell a missing feature from a
broken section:

    (***)              section made possible by a supplemental package
    [skipped] ...      tool present but unusable on this system
    [not available]    a collaborator failed while the section ran
"""

from __future__ import annotations

import re
from collections.abc import Iterable

BANNER_WIDTH = 79
SUB_BANNER_WIDTH = 55
SUPPLEMENTAL_MARK = "(***)"


def banner(title: str) -> list[str]:
    return ["=" * BANNER_WIDTH, f" {title}", "=" * BANNER_WIDTH, ""]


def sub_banner(title: str) -> list[str]:
    return ["-" * SUB_BANNER_WIDTH, f" {title}", ""]


def section_heading(title: str, supplemental: bool = False) -> str:
    return f"{title} {SUPPLEMENTAL_MARK}" if supplemental else title


def skipped_line(title: str, reason: str) -> str:
    return f"[skipped] {title}: {reason}"


def not_available_line(what: str, why: str = "") -> str:
    return f"[not available] {what}" + (f" ({why})" if why else "")


def title_block(version: str, when: str) -> list[str]:
    return [
        "",
        f"               _   VERSION {version}   _        __",
        " ___ _   _ ___| |_ ___ _ __ ___   (_)_ __  / _| ___",
        "/ __| | | / __| __/ _ \\ '_ ` _ \\  | | '_ \\| |_ / _ \\",
        "\\__ \\ |_| \\__ \\ ||  __/ | | | | | | | | | |  _| (_) |",
        "|___/\\__, |___/\\__\\___|_| |_| |_| |_|_| |_|_|  \\___/",
        "     |___/",
        "            RASPBERRY PI SYSTEM INFORMATION REPORT",
        "",
        "Report Date and Time:",
        when,
        "",
    ]


# ── Text filters ────────────────────────────────────────────────

def active_lines(text: str) -> list[str]:
    """Lines that are neither blank nor comments."""
    return [
        line for line in text.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]


def grep(
    lines: Iterable[str],
    pattern: str,
    ignore_case: bool = False,
    invert: bool = False,
) -> list[str]:
    """Filter lines by regular expression."""
    regex = re.compile(pattern, re.IGNORECASE if ignore_case else 0)
    return [line for line in lines if bool(regex.search(line)) != invert]


def field(text: str, sep: str = "=", index: int = 1) -> str:
    """One separator-delimited field of a ``key=value`` style answer."""
    parts = text.strip().split(sep)
    return parts[index].strip() if len(parts) > index else ""


# anywhere on the line, prefixed forms included (sae_password, private_key_passwd)
_SECRET_RE = re.compile(r"\b((?:\w*_)?(?:psk|wep_key\d|password|passwd|passphrase))=.*")


def mask_secrets(lines: Iterable[str]) -> list[str]:
    """Hide wpa_supplicant credentials."""
    return [_SECRET_RE.sub(r"\1=**PASSWORD_HIDDEN**", line) for line in lines]
