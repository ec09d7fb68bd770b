"""
Adapter base — the protocol contract between the report and the system.

Every collaborator the report consults (executables, kernel
pseudo-files, the process table) is reached through an adapter.
Inspections never call subprocess or open files directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from system_info.core.models.invocation import Invocation, InvokeResult


class ExecutionContext(BaseModel):
    """Everything an adapter needs to answer an invocation."""

    invocation: Invocation
    as_root: bool = False
    default_timeout: float = 120.0

    @property
    def timeout(self) -> float:
        """Per-call timeout, falling back to the registry default."""
        if self.invocation.timeout is not None:
            return self.invocation.timeout
        return self.default_timeout

    @property
    def argv(self) -> list[str]:
        """Command line, with ``sudo`` prepended when escalation is needed."""
        argv = self.invocation.argv
        if self.invocation.sudo and not self.as_root:
            return ["sudo", *argv]
        return argv


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters observe the system and return results.
    They NEVER raise exceptions — failures are captured in the result.

    To create a new adapter:
        1. Subclass Adapter
        2. Implement name, is_available, validate, execute
        3. Register it in the AdapterRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The collaborator kind this adapter serves ('command', 'file', 'process')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter can work on this host. Fast, never raises."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the invocation is well-formed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> InvokeResult:
        """Answer the invocation.

        MUST never raise exceptions. All failures are captured
        in the result with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
