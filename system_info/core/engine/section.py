"""
Section builder — buffered output for one inspection.

An inspection body writes into a Section; nothing reaches the report
until the body has finished, so a heading is never printed without its
body or a body without its heading. Collaborator failures inside a
body become explicit "not available" lines instead of exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from system_info.adapters.registry import AdapterRegistry
from system_info.core.context import SystemContext
from system_info.core.engine import formatting
from system_info.core.models.invocation import InvokeResult
from system_info.core.models.settings import Settings
from system_info.core.services.probe import Probe

logger = logging.getLogger(__name__)


class Section:
    """Collects the lines of one report section.

    Args:
        title: The section heading.
        registry: Adapter registry for collaborator calls.
        probe: Capability probe, for inline tool checks.
        context: Discovered system facts.
        settings: Report configuration (sampling, masking, scans).
    """

    def __init__(
        self,
        title: str,
        registry: AdapterRegistry,
        probe: Probe,
        context: SystemContext,
        settings: Settings | None = None,
    ):
        self.title = title
        self.registry = registry
        self.probe = probe
        self.context = context
        self.settings = settings or Settings()
        self.lines: list[str] = []
        self.failures: list[str] = []

    # ── Writing ─────────────────────────────────────────────────

    def echo(self, text: str = "") -> None:
        self.lines.extend(text.splitlines() or [""])

    def extend(self, lines: Iterable[str]) -> None:
        self.lines.extend(lines)

    def blank(self) -> None:
        self.lines.append("")

    def banner(self, title: str) -> None:
        """A full-width banner inside this section (one per device, etc.)."""
        self.lines.extend(formatting.banner(title))

    def sub_banner(self, title: str) -> None:
        self.lines.extend(formatting.sub_banner(title))

    def not_available(self, what: str, why: str = "") -> None:
        self.failures.append(what)
        self.lines.append(formatting.not_available_line(what, why))

    # ── Collaborators ───────────────────────────────────────────

    def capture(
        self,
        target: str,
        *args: str,
        sudo: bool = False,
        input: str | None = None,
        timeout: float | None = None,
    ) -> InvokeResult:
        """Run a command without writing anything."""
        return self.registry.run(target, *args, sudo=sudo, input=input, timeout=timeout)

    def run(
        self,
        target: str,
        *args: str,
        sudo: bool = False,
        input: str | None = None,
        timeout: float | None = None,
        grep: str | None = None,
        exclude: str | None = None,
        ignore_case: bool = False,
        sort: bool = False,
        active_only: bool = False,
        keep_output_on_failure: bool = True,
        include_stderr: bool = False,
    ) -> InvokeResult:
        """Run a command and write its (filtered) output.

        A failed command still contributes whatever it printed; when
        it printed nothing, a "not available" line takes its place.
        Some tools report on stderr; ``include_stderr`` appends it.
        """
        result = self.capture(target, *args, sudo=sudo, input=input, timeout=timeout)
        text = result.stdout if (result.ok or keep_output_on_failure) else ""
        if include_stderr and result.stderr:
            text = "\n".join(filter(None, (text, result.stderr.rstrip())))
        lines = self._filter(text, grep, exclude, ignore_case, sort, active_only)

        if result.failed and not lines:
            command = " ".join([target, *args])
            logger.info("%s: '%s' failed: %s", self.title, command, result.error)
            self.not_available(command, result.error or "")
        else:
            self.lines.extend(lines)
        return result

    def read(self, path: str) -> InvokeResult:
        """Read a file without writing anything."""
        return self.registry.read(path)

    def cat(
        self,
        path: str,
        grep: str | None = None,
        exclude: str | None = None,
        active_only: bool = False,
    ) -> InvokeResult:
        """Write a file's (filtered) contents."""
        result = self.registry.read(path)
        if result.failed:
            self.not_available(path, result.error or "")
            return result
        self.lines.extend(self._filter(result.stdout, grep, exclude, False, False, active_only))
        return result

    @staticmethod
    def _filter(
        text: str,
        grep: str | None,
        exclude: str | None,
        ignore_case: bool,
        sort: bool,
        active_only: bool,
    ) -> list[str]:
        lines = formatting.active_lines(text) if active_only else text.splitlines()
        if grep:
            lines = formatting.grep(lines, grep, ignore_case=ignore_case)
        if exclude:
            lines = formatting.grep(lines, exclude, ignore_case=ignore_case, invert=True)
        if sort:
            lines = sorted(lines)
        return lines

    # ── Helpers ─────────────────────────────────────────────────

    def has(self, executable: str) -> bool:
        """Whether an executable is on PATH."""
        return self.probe.has(executable)

    def dmesg(self) -> list[str]:
        """Kernel ring buffer lines (empty when unreadable)."""
        return self.capture("dmesg", sudo=True).lines()
