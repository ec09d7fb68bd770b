"""
Process adapter — scan the process table for a running daemon.

A daemon's package being installed says nothing about whether it is
running; inspections that talk to bluetoothd, rpcbind, smbd, rngd and
friends need the process itself.
"""

from __future__ import annotations

import logging
import time

import psutil

from system_info.adapters.base import Adapter, ExecutionContext
from system_info.core.models.invocation import InvokeResult

logger = logging.getLogger(__name__)


class ProcessAdapter(Adapter):
    """Find running processes whose command line contains a pattern.

    Invocation fields used:
        target (str): Substring matched against each process's full
            command line (falling back to its name when the command
            line is unreadable).

    On a match, stdout holds one matching command line per line.
    """

    @property
    def name(self) -> str:
        return "process"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.invocation.target:
            return False, "Missing process pattern"
        return True, ""

    def execute(self, context: ExecutionContext) -> InvokeResult:
        pattern = context.invocation.target
        start = time.monotonic()
        matches: list[str] = []

        try:
            for proc in psutil.process_iter(["pid", "name", "cmdline"]):
                try:
                    info = proc.info
                    cmdline = " ".join(info.get("cmdline") or []) or (info.get("name") or "")
                except (psutil.NoSuchProcess, psutil.AccessDenied):
                    continue
                if pattern in cmdline:
                    matches.append(cmdline)
        except Exception as e:
            return InvokeResult.failure(
                collaborator=self.name,
                target=pattern,
                error=f"Process scan error: {e}",
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("Process scan for %r: %d match(es)", pattern, len(matches))

        if matches:
            return InvokeResult.success(
                collaborator=self.name,
                target=pattern,
                stdout="\n".join(matches),
                duration_ms=elapsed_ms,
                metadata={"count": len(matches)},
            )
        return InvokeResult.failure(
            collaborator=self.name,
            target=pattern,
            error=f"No running process matches '{pattern}'",
            exit_status=1,
            duration_ms=elapsed_ms,
        )
