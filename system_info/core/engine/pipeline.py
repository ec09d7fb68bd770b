"""
Inspection pipeline — the report's driver.

Flow:
    preliminary checks → dependency resolution → discovery →
    (for each inspection) gate → body → emit section → end banner

State machine:
    NOT_STARTED → PRECONDITIONS_CHECKED → ABORTED
                                        → RUNNING → COMPLETED

Preconditions (OS version, privilege, intact kernel ring buffer,
required packages) are checked up front and any failure aborts before
a single inspection runs. Each inspection's own gate is evaluated
immediately before it runs, against the discovered context.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from system_info import __version__
from system_info.adapters.registry import AdapterRegistry
from system_info.core.context import SystemContext
from system_info.core.data.capabilities import REQUIRED_PACKAGES, supplemental_packages
from system_info.core.engine import formatting
from system_info.core.engine.section import Section
from system_info.core.models.capability import Capability, ProbeResult
from system_info.core.models.inspection import Inspection
from system_info.core.models.settings import Settings
from system_info.core.services import discovery
from system_info.core.services.packages import PackageDatabase
from system_info.core.services.probe import Probe
from system_info.core.services.resolver import (
    PackageResolver,
    RequiredResolution,
    SupplementalResolution,
)
from system_info.core.services.revision import describe_revision
from system_info.core.services.scratch import RunScratch

logger = logging.getLogger(__name__)

SectionStatus = Literal["ok", "partial", "failed", "skipped", "not_applicable"]


class PipelineState(str, Enum):
    NOT_STARTED = "not_started"
    PRECONDITIONS_CHECKED = "preconditions_checked"
    ABORTED = "aborted"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class SectionResult:
    """What one inspection produced."""

    id: str
    title: str
    group: str
    status: SectionStatus
    reason: str = ""
    lines: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "group": self.group,
            "status": self.status,
            "reason": self.reason,
            "failures": self.failures,
            "duration_ms": self.duration_ms,
        }


@dataclass
class Abort:
    """Why the run stopped before any inspection."""

    reason: Literal[
        "os_unknown", "os_unsupported", "no_privilege", "ring_buffer_wrapped",
        "no_package_manager", "missing_packages",
    ]
    title: str
    lines: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"reason": self.reason, "title": self.title, "lines": self.lines}


@dataclass
class PipelineReport:
    """Result of a report run."""

    operation_id: str = ""
    state: PipelineState = PipelineState.NOT_STARTED
    abort: Abort | None = None
    context: SystemContext | None = None
    required: RequiredResolution | None = None
    supplemental: SupplementalResolution | None = None
    sections: list[SectionResult] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 0 if self.state is PipelineState.COMPLETED else 1

    @property
    def completed(self) -> bool:
        return self.state is PipelineState.COMPLETED

    def count(self, *statuses: str) -> int:
        return sum(1 for s in self.sections if s.status in statuses)

    def section(self, section_id: str) -> SectionResult | None:
        return next((s for s in self.sections if s.id == section_id), None)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def to_dict(self) -> dict[str, Any]:
        ctx = self.context
        return {
            "operation_id": self.operation_id,
            "state": self.state.value,
            "exit_code": self.exit_code,
            "abort": self.abort.to_dict() if self.abort else None,
            "system": {
                "model": ctx.model_name if ctx else "",
                "revision": ctx.revision.to_dict() if ctx and ctx.revision else None,
                "os": ctx.pretty_name if ctx else "",
                "display_driver": ctx.display_driver if ctx else "",
            },
            "required": self.required.to_dict() if self.required else None,
            "supplemental": self.supplemental.to_dict() if self.supplemental else None,
            "sections": {
                "total": len(self.sections),
                "ok": self.count("ok"),
                "partial": self.count("partial"),
                "failed": self.count("failed"),
                "skipped": self.count("skipped"),
                "not_applicable": self.count("not_applicable"),
                "items": [s.to_dict() for s in self.sections],
            },
        }


def generate_operation_id() -> str:
    """Generate a unique run identifier."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    return f"report-{now}-{uuid.uuid4().hex[:6]}"


class InspectionPipeline:
    """Runs the ordered inspection catalog against this system.

    Args:
        registry: Adapter registry for every collaborator call.
        catalog: Ordered inspections to consider.
        settings: Report configuration.
        groups: Section groups to include (None = all).
        emit: Called with each report line as soon as it is final.
        required: Required package capabilities.
        supplemental: Supplemental package capabilities.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        catalog: Sequence[Inspection],
        settings: Settings | None = None,
        groups: Sequence[str] | None = None,
        emit: Callable[[str], None] | None = None,
        required: Sequence[Capability] | None = None,
        supplemental: Sequence[Capability] | None = None,
    ):
        self._registry = registry
        self._settings = settings or Settings()
        self._catalog = list(catalog)
        self._groups = self._validate_groups(groups)
        self._emit_line = emit
        self._required = tuple(REQUIRED_PACKAGES if required is None else required)
        self._supplemental = tuple(
            supplemental_packages(self._settings.wiringpi_known_good)
            if supplemental is None else supplemental
        )
        self._state = PipelineState.NOT_STARTED
        self._report = PipelineReport(operation_id=generate_operation_id())
        self._probe: Probe | None = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def probe(self) -> Probe | None:
        return self._probe

    def _validate_groups(self, groups: Sequence[str] | None) -> set[str] | None:
        if not groups:
            return None
        known = {i.group for i in self._catalog}
        wanted = {g.lower() for g in groups}
        unknown = wanted - known
        if unknown:
            raise ValueError(
                f"Unknown section group(s): {', '.join(sorted(unknown))}. "
                f"Valid: {', '.join(sorted(known))}"
            )
        return wanted

    def _emit(self, *lines: str) -> None:
        for line in lines:
            self._report.lines.append(line)
            if self._emit_line is not None:
                self._emit_line(line)

    # ── Run ─────────────────────────────────────────────────────

    def run(self) -> PipelineReport:
        """Run the whole report. Never raises for system conditions."""
        report = self._report
        when = datetime.now().astimezone().strftime("%a %d %b %Y %H:%M:%S %Z")
        self._emit(*formatting.title_block(__version__, when))

        with RunScratch() as scratch:
            abort = self.check_preconditions()
            if abort is not None:
                self._state = PipelineState.ABORTED
                report.state = self._state
                report.abort = abort
                self._emit(*formatting.banner(abort.title), *abort.lines, "")
                logger.warning("Report aborted: %s", abort.reason)
                return report

            self._state = PipelineState.RUNNING
            report.state = self._state
            assert report.context is not None  # set by check_preconditions
            context = discovery.complete_context(report.context, self._registry, scratch)
            report.context = context

            for inspection in self._catalog:
                if self._groups is not None and inspection.group not in self._groups:
                    continue
                report.sections.append(self._execute(inspection, context))

        self._emit(*formatting.banner("* * * END OF REPORT * * *"))
        self._state = PipelineState.COMPLETED
        report.state = self._state
        logger.info(
            "Report complete: %d sections (%d skipped, %d failed)",
            len(report.sections), report.count("skipped"), report.count("failed"),
        )
        return report

    # ── Preconditions ───────────────────────────────────────────

    def check_preconditions(self) -> Abort | None:
        """Run every check that can stop the report before it starts.

        Returns:
            The first Abort encountered, or None when the run may proceed.
        """
        report = self._report
        settings = self._settings
        context = discovery.preliminary_context(self._registry, settings.boot_marker)
        report.context = context
        self._emit(*formatting.banner("PRELIMINARY CHECKS"))

        try:
            abort = self._check_environment(context)
            if abort is not None:
                return abort

            self._emit(*formatting.banner("DECODED SYSTEM REVISION NUMBER"))
            if context.revision is not None:
                self._emit(*describe_revision(context.revision), "")
            else:
                self._emit("Revision      : not found in /proc/cpuinfo", "")

            packages = PackageDatabase(self._registry)
            self._probe = Probe(self._registry, packages, model_name=context.model_name)
            return self._check_dependencies(packages)
        finally:
            self._state = PipelineState.PRECONDITIONS_CHECKED

    def _check_environment(self, context: SystemContext) -> Abort | None:
        settings = self._settings
        minimum = settings.min_os_version
        supported = f"This report is designed for Raspbian GNU/Linux {minimum} and above."

        if not context.os_release:
            return Abort("os_unknown", "LINUX VERSION UNKNOWN", [
                supported,
                "Unable to identify your version of the operating system... Exiting.",
            ])
        version = context.os_version
        if version is not None and version < minimum:
            return Abort("os_unsupported", "UNSUPPORTED LINUX VERSION", [
                supported,
                f"Version {context.pretty_name} is not supported.",
            ])
        self._emit("OS version check:  OK" if version is not None
                   else "OS version check:  VERSION_ID not reported, continuing")

        if not context.has_privilege:
            return Abort("no_privilege", "ROOT OR SUDO ACCESS REQUIRED", [
                "This report has not been run as root and sudo is not available.",
                "Several sections read files and devices that only root can open.",
                "Re-run as root, or install sudo and grant this user access to it.",
            ])

        if not context.boot_marker_found:
            return Abort("ring_buffer_wrapped", "DMESG RING BUFFER HAS WRAPPED - PLEASE REBOOT", [
                'This report relies on "dmesg" to provide some of the data it needs.',
                "",
                "Kernel messages are stored in a data structure called a ring buffer.",
                "The buffer is fixed in size, with new data overwriting the oldest data.",
                "When data we need has already been overwritten, that data is lost to us.",
                "",
                "Your ring buffer has already wrapped.  Please reboot your system before",
                "attempting to re-run this report, to ensure that the buffer contains",
                "any data we need.",
            ])
        self._emit("dmesg ring buffer: OK")

        if context.is_root:
            self._emit("running as root:   OK")
        else:
            self._emit("running as user:   " + _username(), "sudo is available: OK")
        self._emit("")
        return None

    def _check_dependencies(self, packages: PackageDatabase) -> Abort | None:
        assert self._probe is not None
        report = self._report
        resolver = PackageResolver(self._probe, package_manager=self._settings.package_manager)

        self._emit(*formatting.banner("CHECKING SOFTWARE DEPENDENCIES"))
        self._emit("Checking required software dependencies...")

        if not packages.available():
            return Abort("no_package_manager", "PACKAGE MANAGER NOT AVAILABLE", [
                "Missing utility dpkg-query, unable to verify package dependencies.",
            ])

        required = resolver.resolve_required(self._required)
        report.required = required
        for name in required.found:
            self._emit(f"  found: {name}")
        for missing in required.missing:
            self._emit(*missing.remediation(), "")

        if not required.ok:
            return Abort("missing_packages", "Once any missing packages are installed, re-run this report.")

        self._emit(
            f"{required.hits} out of {required.total} required packages are installed.",
            "All core inspections will be performed.",
            "",
        )

        self._emit(*formatting.sub_banner("Checking supplemental software dependencies...")[:2])
        supplemental = resolver.resolve_supplemental(self._supplemental)
        report.supplemental = supplemental
        for name in supplemental.found:
            self._emit(f"  found: {name}")
        for name, reason in supplemental.incompatible.items():
            self._emit(f"  unusable: {name} ({reason})")
        self._emit(
            f"{supplemental.hits} out of {supplemental.total} supplemental packages are installed.",
            "Some supplemental inspections will be performed." if supplemental.hits
            else "No supplemental inspections will be performed.",
            "",
        )
        return None

    # ── Inspections ─────────────────────────────────────────────

    def gate(self, inspection: Inspection, context: SystemContext) -> tuple[SectionStatus, str]:
        """Decide whether an inspection runs, right before it would.

        Returns:
            ("ok", "") to run it, ("not_applicable", why) to leave it out
            silently, or ("skipped", why) to print a one-line notice.
        """
        assert self._probe is not None
        if inspection.applies is not None and not inspection.applies(context):
            return "not_applicable", "does not apply to this system"

        for capability in inspection.requires:
            outcome = self._probe.outcome(capability)
            if outcome.result is ProbeResult.ABSENT:
                return "not_applicable", outcome.reason or f"{capability.name} absent"
            if outcome.result is ProbeResult.INCOMPATIBLE:
                return "skipped", outcome.reason or f"{capability.name} unusable"
        return "ok", ""

    def _execute(self, inspection: Inspection, context: SystemContext) -> SectionResult:
        assert self._probe is not None
        result = SectionResult(
            id=inspection.id, title=inspection.title, group=inspection.group, status="ok",
        )

        status, reason = self.gate(inspection, context)
        if status == "not_applicable":
            result.status, result.reason = status, reason
            logger.info("⊘ %s → not applicable (%s)", inspection.id, reason)
            return result
        if status == "skipped":
            result.status, result.reason = status, reason
            result.lines = [formatting.skipped_line(inspection.title, reason), ""]
            self._emit(*result.lines)
            logger.info("⊘ %s → skipped (%s)", inspection.id, reason)
            return result

        section = Section(
            inspection.title, self._registry, self._probe, context, settings=self._settings,
        )
        start = time.monotonic()
        try:
            inspection.body(section, context)
        except Exception as e:
            logger.warning("Section %s raised: %s", inspection.id, e, exc_info=logger.isEnabledFor(logging.DEBUG))
            section.not_available(inspection.title, f"{type(e).__name__}: {e}")
            result.status = "failed"
            result.reason = str(e)
        result.duration_ms = int((time.monotonic() - start) * 1000)

        if result.status == "ok" and section.failures:
            result.status = "partial"
        result.failures = list(section.failures)

        body = list(section.lines)
        if not body or body[-1] != "":
            body.append("")
        heading = formatting.section_heading(inspection.title, inspection.supplemental)
        result.lines = formatting.banner(heading) + body
        self._emit(*result.lines)

        marker = "✓" if result.status == "ok" else "✗" if result.status == "failed" else "~"
        logger.info("%s %s → %s (%dms)", marker, inspection.id, result.status, result.duration_ms)
        return result


def _username() -> str:
    import getpass

    try:
        return getpass.getuser()
    except Exception:
        return "unknown"
