"""
Command adapter — run an external executable and capture its output.

Commands are run from an argv list, never through a shell. Privileged
commands get ``sudo`` prepended when the report is not already root.
"""

from __future__ import annotations

import logging
import subprocess
import time

from system_info.adapters.base import Adapter, ExecutionContext
from system_info.core.models.invocation import InvokeResult

logger = logging.getLogger(__name__)


class CommandAdapter(Adapter):
    """Execute commands and capture output.

    Invocation fields used:
        target (str): The executable.
        args (list[str]): Its arguments.
        sudo (bool): Escalate when not root.
        input (str): Text written to stdin.
        timeout (float): Seconds before the command is killed.
    """

    @property
    def name(self) -> str:
        return "command"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.invocation.target:
            return False, "Missing command target"
        return True, ""

    def execute(self, context: ExecutionContext) -> InvokeResult:
        invocation = context.invocation
        argv = context.argv
        timeout = context.timeout

        logger.debug("Executing: %s", " ".join(argv))
        start = time.monotonic()

        try:
            result = subprocess.run(
                argv,
                input=invocation.input,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout,
            )

            elapsed_ms = int((time.monotonic() - start) * 1000)
            output = result.stdout.rstrip()
            stderr = result.stderr.rstrip()

            if result.returncode == 0:
                return InvokeResult.success(
                    collaborator=self.name,
                    target=invocation.target,
                    stdout=output,
                    stderr=stderr,
                    duration_ms=elapsed_ms,
                    metadata={"argv": argv},
                )
            return InvokeResult.failure(
                collaborator=self.name,
                target=invocation.target,
                error=stderr or f"Command exited with code {result.returncode}",
                exit_status=result.returncode,
                stdout=output,
                stderr=stderr,
                duration_ms=elapsed_ms,
                metadata={"argv": argv},
            )

        except FileNotFoundError:
            return InvokeResult.failure(
                collaborator=self.name,
                target=invocation.target,
                error=f"Command not found: {argv[0]}",
                exit_status=127,
                metadata={"argv": argv},
            )
        except subprocess.TimeoutExpired:
            return InvokeResult.failure(
                collaborator=self.name,
                target=invocation.target,
                error=f"Command timed out after {timeout}s",
                metadata={"argv": argv, "timeout": timeout},
            )
        except Exception as e:
            return InvokeResult.failure(
                collaborator=self.name,
                target=invocation.target,
                error=f"Command execution error: {e}",
                metadata={"argv": argv},
            )
