"""
Invocation and InvokeResult models — the collaborator contract.

An Invocation names one external collaborator (an executable, a kernel
pseudo-file, or a process-table scan) and how to call it. Adapters
answer with an InvokeResult. Never exceptions.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Collaborator = Literal["command", "file", "process"]
FileOperation = Literal[
    "read", "exists", "is_char_device", "list", "glob", "readlink",
]


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Invocation(BaseModel):
    """A request to consult one external collaborator.

    For ``command`` the target is the executable and ``args`` its
    arguments. For ``file`` the target is a path and ``operation``
    says what to do with it. For ``process`` the target is a substring
    searched for in every running command line.
    """

    collaborator: Collaborator = "command"
    target: str
    args: list[str] = Field(default_factory=list)
    operation: FileOperation = "read"
    sudo: bool = False              # escalate when not already root
    input: str | None = None        # text piped to stdin
    timeout: float | None = None    # None = registry default

    @property
    def argv(self) -> list[str]:
        """Command line without any privilege prefix."""
        return [self.target, *self.args]

    @property
    def key(self) -> str:
        """Stable identifier used for logging and scripted mock responses."""
        if self.collaborator == "file":
            return f"{self.operation}:{self.target}"
        if self.collaborator == "process":
            return f"process:{self.target}"
        return " ".join(self.argv)


class InvokeResult(BaseModel):
    """Outcome of consulting a collaborator.

    ``stdout`` is kept on failure too: several system tools print
    useful text and still exit non-zero.
    """

    collaborator: str
    target: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    exit_status: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the collaborator answered successfully."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the collaborator failed."""
        return self.status == "failed"

    def lines(self) -> list[str]:
        """Stdout split into lines (empty list when there is none)."""
        return self.stdout.splitlines() if self.stdout else []

    @classmethod
    def success(
        cls,
        collaborator: str,
        target: str,
        stdout: str = "",
        **kwargs: Any,
    ) -> InvokeResult:
        """Create a success result."""
        kwargs.setdefault("exit_status", 0)
        return cls(
            collaborator=collaborator,
            target=target,
            status="ok",
            stdout=stdout,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        collaborator: str,
        target: str,
        error: str,
        **kwargs: Any,
    ) -> InvokeResult:
        """Create a failure result."""
        return cls(
            collaborator=collaborator,
            target=target,
            status="failed",
            error=error,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        collaborator: str,
        target: str,
        reason: str = "",
        **kwargs: Any,
    ) -> InvokeResult:
        """Create a skip result."""
        return cls(
            collaborator=collaborator,
            target=target,
            status="skipped",
            error=reason or None,
            **kwargs,
        )
