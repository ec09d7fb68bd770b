"""
Inspection model — one titled section of the report.

An inspection declares what it needs (capabilities, plus an optional
predicate over the system context) separately from what it does
(its body). The pipeline decides whether it runs.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from system_info.core.models.capability import Capability

if TYPE_CHECKING:
    from system_info.core.context import SystemContext
    from system_info.core.engine.section import Section

Body = Callable[["Section", "SystemContext"], None]
Predicate = Callable[["SystemContext"], bool]


@dataclass(frozen=True)
class Inspection:
    """A declared report section.

    Attributes:
        id: Stable identifier (used in JSON output and logs).
        title: Section heading.
        group: Selection group this section belongs to.
        body: Writes the section through a Section builder.
        requires: Capabilities that must all probe PRESENT.
        applies: Extra condition on the discovered system; when it is
            false the section is left out without comment.
        supplemental: Heading carries the (***) marker.
    """

    id: str
    title: str
    group: str
    body: Body
    requires: tuple[Capability, ...] = ()
    applies: Predicate | None = None
    supplemental: bool = False
