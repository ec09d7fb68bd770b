"""
File adapter — read-only access to kernel pseudo-files and config files.

Answers presence questions (exists, character device, symlink) and
returns file contents or directory listings. Nothing is ever written.
"""

from __future__ import annotations

import glob
import logging
import os
import stat
from pathlib import Path

from system_info.adapters.base import Adapter, ExecutionContext
from system_info.core.models.invocation import InvokeResult

logger = logging.getLogger(__name__)

_VALID_OPS = {"read", "exists", "is_char_device", "list", "glob", "readlink"}


class FileAdapter(Adapter):
    """Read-only filesystem queries.

    Presence operations succeed when the condition holds and fail
    otherwise, so callers can treat ``result.ok`` as the answer.

    Invocation fields used:
        target (str): Path (or glob pattern for 'glob').
        operation (str): One of 'read', 'exists', 'is_char_device',
            'list', 'glob', 'readlink'.
    """

    @property
    def name(self) -> str:
        return "file"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.invocation.operation
        if operation not in _VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_VALID_OPS))}"
        if not context.invocation.target:
            return False, "Missing path"
        return True, ""

    def execute(self, context: ExecutionContext) -> InvokeResult:
        operation = context.invocation.operation
        target = Path(context.invocation.target)

        try:
            if operation == "read":
                return self._read(target)
            if operation == "list":
                return self._list(target)
            if operation == "glob":
                return self._glob(context.invocation.target)
            if operation == "readlink":
                return self._readlink(target)
            return self._test(operation, target)
        except Exception as e:
            return InvokeResult.failure(
                collaborator=self.name,
                target=str(target),
                error=f"Filesystem error: {e}",
                metadata={"operation": operation},
            )

    def _test(self, operation: str, target: Path) -> InvokeResult:
        if operation == "exists":
            holds = target.exists() or target.is_symlink()
        else:
            try:
                holds = stat.S_ISCHR(target.stat().st_mode)
            except OSError:
                holds = False

        if holds:
            return InvokeResult.success(
                collaborator=self.name, target=str(target), stdout=str(target),
                metadata={"operation": operation},
            )
        return InvokeResult.failure(
            collaborator=self.name,
            target=str(target),
            error=f"{operation} does not hold for {target}",
            exit_status=1,
            metadata={"operation": operation},
        )

    def _read(self, target: Path) -> InvokeResult:
        if not target.is_file():
            return InvokeResult.failure(
                collaborator=self.name,
                target=str(target),
                error=f"File not found: {target}",
                exit_status=1,
            )
        content = target.read_text(encoding="utf-8", errors="replace")
        return InvokeResult.success(
            collaborator=self.name,
            target=str(target),
            stdout=content.rstrip("\n"),
            metadata={"size": len(content)},
        )

    def _list(self, target: Path) -> InvokeResult:
        if not target.is_dir():
            return InvokeResult.failure(
                collaborator=self.name,
                target=str(target),
                error=f"Not a directory: {target}",
                exit_status=1,
            )
        entries = sorted(p.name for p in target.iterdir())
        return InvokeResult.success(
            collaborator=self.name,
            target=str(target),
            stdout="\n".join(entries),
            metadata={"count": len(entries)},
        )

    def _glob(self, pattern: str) -> InvokeResult:
        matches = sorted(glob.glob(pattern))
        if not matches:
            return InvokeResult.failure(
                collaborator=self.name,
                target=pattern,
                error=f"No match for {pattern}",
                exit_status=1,
            )
        return InvokeResult.success(
            collaborator=self.name,
            target=pattern,
            stdout="\n".join(matches),
            metadata={"count": len(matches)},
        )

    def _readlink(self, target: Path) -> InvokeResult:
        if not target.is_symlink():
            return InvokeResult.failure(
                collaborator=self.name,
                target=str(target),
                error=f"Not a symlink: {target}",
                exit_status=1,
            )
        return InvokeResult.success(
            collaborator=self.name,
            target=str(target),
            stdout=os.readlink(target),
        )
