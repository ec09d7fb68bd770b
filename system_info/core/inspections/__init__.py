"""
Inspection catalog — every report section, in report order.

Sections are grouped; a group is the unit of selection on the command
line (``--group network``). Report order is group order, then the
order within each group module.
"""

from __future__ import annotations

from collections.abc import Iterable

from system_info.core.inspections import (
    bluetooth,
    devices,
    firmware,
    logs,
    media,
    network,
    packages,
    resources,
    storage,
    system,
)
from system_info.core.models.inspection import Inspection

_GROUP_MODULES = (system, firmware, resources, media, devices, storage, logs, network, bluetooth, packages)

GROUPS: tuple[str, ...] = tuple(module.GROUP for module in _GROUP_MODULES)

CATALOG: tuple[Inspection, ...] = tuple(
    inspection for module in _GROUP_MODULES for inspection in module.INSPECTIONS
)


def select(groups: Iterable[str] | None = None) -> list[Inspection]:
    """Catalog entries in the given groups (all of them when None or empty).

    Raises:
        ValueError: If a group name is not in GROUPS.
    """
    wanted = {g.strip().lower() for g in groups or ()}
    unknown = wanted - set(GROUPS)
    if unknown:
        raise ValueError(
            f"Unknown section group(s): {', '.join(sorted(unknown))}. "
            f"Valid: {', '.join(GROUPS)}"
        )
    if not wanted:
        return list(CATALOG)
    return [inspection for inspection in CATALOG if inspection.group in wanted]
