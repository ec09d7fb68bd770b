"""
Packages group — holds and the installed package list.
"""

from __future__ import annotations

from system_info.core.context import SystemContext
from system_info.core.engine.section import Section
from system_info.core.models.inspection import Inspection

GROUP = "packages"


def held_packages(section: Section, ctx: SystemContext) -> None:
    # apt-mark hold <pkg> blocks upgrades until apt-mark unhold
    held = section.probe.packages.held()
    section.extend(held or ["No packages placed on hold"])


def installed_packages(section: Section, ctx: SystemContext) -> None:
    listing = section.probe.packages.listing()
    if listing.failed and not listing.stdout:
        section.not_available("dpkg -l", listing.error or "")
        return
    section.extend(listing.lines())


INSPECTIONS: tuple[Inspection, ...] = (
    Inspection("held-packages", "PACKAGES ON HOLD TO DISALLOW UPGRADE", GROUP, held_packages),
    Inspection("installed-packages", "INSTALLED PACKAGE LIST", GROUP, installed_packages),
)
