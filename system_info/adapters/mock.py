"""
Mock adapter — universal test double for every collaborator.

Used in mock mode to simulate the host without touching it. Responses
are scripted per invocation key:

    "vcgencmd get_throttled"        a command and its arguments
    "read:/proc/cpuinfo"            a file operation and its path
    "process:bluetoothd"            a process-table scan

Unscripted invocations fall back to a configurable default.
"""

from __future__ import annotations

from system_info.adapters.base import Adapter, ExecutionContext
from system_info.core.models.invocation import InvokeResult


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default, every invocation succeeds with ``default_output``.
    With ``default_ok=False`` every unscripted invocation fails,
    which models a bare host where nothing is installed.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "",
        default_ok: bool = True,
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._default_ok = default_ok
        self._responses: dict[str, InvokeResult] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times execute has been called."""
        return len(self._call_log)

    @property
    def called_keys(self) -> list[str]:
        """Invocation keys in call order."""
        return [ctx.invocation.key for ctx in self._call_log]

    def calls_to(self, target: str) -> int:
        """How many invocations named the given target."""
        return sum(1 for ctx in self._call_log if ctx.invocation.target == target)

    def is_available(self) -> bool:
        return self._available

    def set_response(self, key: str, result: InvokeResult) -> None:
        """Set a custom response for a specific invocation key."""
        self._responses[key] = result

    def set_output(self, key: str, stdout: str) -> None:
        """Configure an invocation to succeed with the given output."""
        self._responses[key] = InvokeResult.success(
            collaborator=self._name, target=key, stdout=stdout,
        )

    def set_failure(
        self,
        key: str,
        error: str = "Mock failure",
        exit_status: int = 1,
        stdout: str = "",
    ) -> None:
        """Configure an invocation to fail."""
        self._responses[key] = InvokeResult.failure(
            collaborator=self._name,
            target=key,
            error=error,
            exit_status=exit_status,
            stdout=stdout,
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> InvokeResult:
        self._call_log.append(context)
        key = context.invocation.key

        if key in self._responses:
            return self._responses[key]

        if self._default_ok:
            return InvokeResult.success(
                collaborator=self._name,
                target=key,
                stdout=self._default_output,
                metadata={"mock": True},
            )
        return InvokeResult.failure(
            collaborator=self._name,
            target=key,
            error=f"[mock] no response scripted for '{key}'",
            exit_status=1,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log and custom responses."""
        self._call_log.clear()
        self._responses.clear()
