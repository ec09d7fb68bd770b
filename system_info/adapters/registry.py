"""
Adapter registry — central dispatch for every collaborator call.

The registry is the single point of adapter management. It handles
registration, lookup, mock mode, and invocation dispatch. Inspections
and services never talk to adapters directly — always through here.
"""

from __future__ import annotations

import logging
import os
import time

from system_info.adapters.base import Adapter, ExecutionContext
from system_info.core.models.invocation import Invocation, InvokeResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class AdapterRegistry:
    """Central registry and dispatcher for adapters.

    Features:
        - Register adapters by collaborator name
        - Mock mode: route every invocation to a single test double
        - Uniform timeout and privilege handling
        - Convenience wrappers for the common invocation shapes
    """

    def __init__(
        self,
        mock_mode: bool = False,
        default_timeout: float = DEFAULT_TIMEOUT,
        as_root: bool | None = None,
    ):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock_adapter: Adapter | None = None
        self._default_timeout = default_timeout
        self._as_root = (os.geteuid() == 0) if as_root is None else as_root

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    @property
    def as_root(self) -> bool:
        return self._as_root

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        """Enable or disable mock mode.

        Args:
            enabled: Whether to use mock mode.
            mock_adapter: Optional custom mock adapter. If None, every
                invocation succeeds with empty output.
        """
        self._mock_mode = enabled
        self._mock_adapter = mock_adapter

    def register(self, adapter: Adapter) -> None:
        """Register an adapter under its collaborator name."""
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def invoke(self, invocation: Invocation) -> InvokeResult:
        """Dispatch one invocation to the matching adapter.

        This is the main dispatch method. It:
        1. Resolves the adapter (or mock)
        2. Builds the execution context
        3. Validates the invocation
        4. Executes it
        5. Returns an InvokeResult (never raises)
        """
        start_time = time.monotonic()

        context = ExecutionContext(
            invocation=invocation,
            as_root=self._as_root,
            default_timeout=self._default_timeout,
        )

        adapter: Adapter | None = None
        if self._mock_mode and self._mock_adapter:
            adapter = self._mock_adapter
        elif self._mock_mode:
            return InvokeResult.success(
                collaborator=invocation.collaborator,
                target=invocation.target,
                metadata={"mock": True},
            )
        else:
            adapter = self._adapters.get(invocation.collaborator)

        if adapter is None:
            return InvokeResult.failure(
                collaborator=invocation.collaborator,
                target=invocation.target,
                error=f"No adapter registered for '{invocation.collaborator}'",
            )

        try:
            is_valid, error_msg = adapter.validate(context)
            if not is_valid:
                return InvokeResult.failure(
                    collaborator=invocation.collaborator,
                    target=invocation.target,
                    error=f"Validation failed: {error_msg}",
                )
        except Exception as e:
            return InvokeResult.failure(
                collaborator=invocation.collaborator,
                target=invocation.target,
                error=f"Validation error: {e}",
            )

        try:
            result = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised during execution: %s", adapter.name, e)
            result = InvokeResult.failure(
                collaborator=invocation.collaborator,
                target=invocation.target,
                error=f"Unexpected error: {e}",
            )

        if result.duration_ms == 0:
            result.duration_ms = int((time.monotonic() - start_time) * 1000)

        if result.failed:
            logger.debug("%s failed: %s", invocation.key, result.error)
        return result

    # ── Convenience wrappers ────────────────────────────────────

    def run(
        self,
        target: str,
        *args: str,
        sudo: bool = False,
        input: str | None = None,
        timeout: float | None = None,
    ) -> InvokeResult:
        """Run an external command."""
        return self.invoke(Invocation(
            collaborator="command",
            target=target,
            args=list(args),
            sudo=sudo,
            input=input,
            timeout=timeout,
        ))

    def file(self, operation: str, path: str) -> InvokeResult:
        """Perform a read-only file operation."""
        return self.invoke(Invocation(collaborator="file", target=path, operation=operation))

    def read(self, path: str) -> InvokeResult:
        return self.file("read", path)

    def exists(self, path: str) -> bool:
        return self.file("exists", path).ok

    def is_char_device(self, path: str) -> bool:
        return self.file("is_char_device", path).ok

    def listdir(self, path: str) -> list[str]:
        return self.file("list", path).lines()

    def glob(self, pattern: str) -> list[str]:
        return self.file("glob", pattern).lines()

    def processes(self, pattern: str) -> InvokeResult:
        """Scan the process table for a command-line substring."""
        return self.invoke(Invocation(collaborator="process", target=pattern))


def default_registry(
    default_timeout: float = DEFAULT_TIMEOUT,
    as_root: bool | None = None,
) -> AdapterRegistry:
    """Build a registry wired to the real command, file and process adapters."""
    from system_info.adapters.shell.command import CommandAdapter
    from system_info.adapters.shell.filesystem import FileAdapter
    from system_info.adapters.system.processes import ProcessAdapter

    registry = AdapterRegistry(default_timeout=default_timeout, as_root=as_root)
    registry.register(CommandAdapter())
    registry.register(FileAdapter())
    registry.register(ProcessAdapter())
    return registry
