"""
Decode use cases — revision codes and throttle words on their own.

Each takes an explicit value, or reads the live one from this system
when none is given.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from system_info.adapters.registry import AdapterRegistry, default_registry
from system_info.core.services import discovery
from system_info.core.services.revision import (
    Revision,
    RevisionDecodeError,
    decode_revision,
    describe_revision,
)
from system_info.core.services.throttle import (
    ThrottleStatus,
    decode_throttle,
    describe_throttle,
    parse_throttled,
)


@dataclass
class RevisionResult:
    """A decoded board revision."""

    revision: Revision | None = None
    lines: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return self.revision.to_dict() if self.revision else {}


@dataclass
class ThrottleResult:
    """A decoded throttle word."""

    status: ThrottleStatus | None = None
    lines: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return self.status.to_dict() if self.status else {}


def decode_revision_code(
    raw: str | None = None,
    registry: AdapterRegistry | None = None,
) -> RevisionResult:
    """Decode ``raw``, or the Revision line of /proc/cpuinfo."""
    result = RevisionResult()
    if raw is None:
        raw, _serial = discovery.read_revision(registry or default_registry())
        if not raw:
            result.error = "No Revision line found in /proc/cpuinfo"
            return result
    try:
        result.revision = decode_revision(raw)
    except RevisionDecodeError as e:
        result.error = str(e)
        return result
    result.lines = describe_revision(result.revision)
    return result


def decode_throttle_word(
    word: str | None = None,
    registry: AdapterRegistry | None = None,
) -> ThrottleResult:
    """Decode ``word``, or the live answer of ``vcgencmd get_throttled``."""
    result = ThrottleResult()
    if word is None:
        answer = (registry or default_registry()).run("vcgencmd", "get_throttled")
        if answer.failed:
            result.error = f"vcgencmd get_throttled failed: {answer.error}"
            return result
        word = answer.stdout
    try:
        result.status = decode_throttle(parse_throttled(word))
    except ValueError as e:
        result.error = str(e)
        return result
    result.lines = describe_throttle(result.status)
    return result
