"""
Preferences model — per-user memory of the last report selection.
"""

from __future__ import annotations

from pydantic import BaseModel

from system_info.core.models.invocation import _now_iso


class Preferences(BaseModel):
    """What the user picked last time.

    ``groups`` of None means every section group.
    """

    schema_version: int = 1
    groups: list[str] | None = None
    output: str | None = None
    updated_at: str = ""

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _now_iso()
