"""
Capability probe — is a declared dependency usable right now?

Answers with PRESENT, ABSENT, or INCOMPATIBLE (installed, but fails
its smoke test or reports the wrong version for this board). Absence
is an ordinary outcome, never an exception. Every answer is cached
for the rest of the run.

Smoke tests are short, read-only invocations (``--version`` style).
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass

from system_info.adapters.registry import AdapterRegistry
from system_info.core.models.capability import Capability, Check, CheckKind, ProbeResult
from system_info.core.services.packages import PackageDatabase

logger = logging.getLogger(__name__)

SMOKE_TEST_TIMEOUT = 10.0


@dataclass(frozen=True)
class ProbeOutcome:
    """A probe answer plus the explanation shown for INCOMPATIBLE."""

    result: ProbeResult
    reason: str = ""
    version: str | None = None

    @property
    def usable(self) -> bool:
        return self.result.usable


_PRESENT = ProbeOutcome(ProbeResult.PRESENT)


class Probe:
    """Evaluate capabilities against the running system.

    Args:
        registry: Adapter registry for every collaborator call.
        packages: Package database (shared so dpkg is queried once).
        model_name: Decoded board model, for model-specific checks.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        packages: PackageDatabase | None = None,
        model_name: str = "",
    ):
        self._registry = registry
        self._packages = packages or PackageDatabase(registry)
        self._model = model_name
        self._cache: dict[str, ProbeOutcome] = {}
        self._which: dict[str, str | None] = {}
        self._modules: list[str] | None = None

    @property
    def packages(self) -> PackageDatabase:
        return self._packages

    @property
    def model_name(self) -> str:
        return self._model

    def probe(self, capability: Capability) -> ProbeResult:
        """Probe a capability (cached by name)."""
        return self.outcome(capability).result

    def reason(self, capability: Capability) -> str:
        return self.outcome(capability).reason

    def outcome(self, capability: Capability) -> ProbeOutcome:
        cached = self._cache.get(capability.name)
        if cached is not None:
            return cached

        if not capability.applies_to(self._model):
            outcome = ProbeOutcome(
                ProbeResult.ABSENT,
                reason=f"only applies to {', '.join(capability.models)}",
            )
        else:
            outcome = self._evaluate(capability)

        self._cache[capability.name] = outcome
        logger.info("Probe %s: %s%s", capability.name, outcome.result.value,
                    f" ({outcome.reason})" if outcome.reason else "")
        return outcome

    def results(self) -> dict[str, ProbeOutcome]:
        """Every outcome evaluated so far, by capability name."""
        return dict(self._cache)

    def which(self, executable: str) -> str | None:
        """Cached PATH lookup."""
        if executable not in self._which:
            self._which[executable] = shutil.which(executable)
        return self._which[executable]

    def has(self, executable: str) -> bool:
        return self.which(executable) is not None

    # ── Evaluation ──────────────────────────────────────────────

    def _evaluate(self, capability: Capability) -> ProbeOutcome:
        if not capability.checks:
            return _PRESENT

        if capability.match == "any":
            outcomes = [self._check(check) for check in capability.checks]
            for outcome in outcomes:
                if outcome.usable:
                    return outcome
            for outcome in outcomes:
                if outcome.result is ProbeResult.INCOMPATIBLE:
                    return outcome
            return outcomes[-1]

        last = _PRESENT
        for check in capability.checks:
            last = self._check(check)
            if not last.usable:
                return last
        return last

    def _check(self, check: Check) -> ProbeOutcome:
        kind = check.kind

        if kind is CheckKind.EXECUTABLE:
            if self.has(check.target):
                return _PRESENT
            return ProbeOutcome(ProbeResult.ABSENT, reason=f"{check.target} not found on PATH")

        if kind is CheckKind.SMOKE_TEST:
            return self._smoke_test(check)

        if kind is CheckKind.PACKAGE:
            return self._package(check)

        if kind is CheckKind.PROCESS:
            if self._registry.processes(check.target).ok:
                return _PRESENT
            return ProbeOutcome(ProbeResult.ABSENT, reason=f"{check.target} is not running")

        if kind is CheckKind.DEVICE:
            if self._registry.is_char_device(check.target):
                return _PRESENT
            return ProbeOutcome(ProbeResult.ABSENT, reason=f"no device {check.target}")

        if kind is CheckKind.FILE:
            if self._registry.exists(check.target):
                return _PRESENT
            return ProbeOutcome(ProbeResult.ABSENT, reason=f"{check.target} does not exist")

        if kind is CheckKind.KERNEL_MODULE:
            if any(check.target in name for name in self._loaded_modules()):
                return _PRESENT
            return ProbeOutcome(ProbeResult.ABSENT, reason=f"no {check.target} module loaded")

        if kind is CheckKind.SYSTEMD_UNIT:
            result = self._registry.run("systemctl", "is-active", check.target)
            if result.stdout.strip() == "active":
                return _PRESENT
            return ProbeOutcome(ProbeResult.ABSENT, reason=f"{check.target} is not active")

        return ProbeOutcome(ProbeResult.ABSENT, reason=f"unknown check kind {kind}")

    def _package(self, check: Check) -> ProbeOutcome:
        if self._packages.is_installed(check.target):
            return _PRESENT
        # Built from source: no package record, but the tool is there.
        if check.binary and self.has(check.binary):
            logger.info("%s not in package database, using %s from PATH",
                        check.target, self.which(check.binary))
            return _PRESENT
        return ProbeOutcome(ProbeResult.ABSENT, reason=f"package {check.target} is not installed")

    def _smoke_test(self, check: Check) -> ProbeOutcome:
        if not self.has(check.target):
            return ProbeOutcome(ProbeResult.ABSENT, reason=f"{check.target} not found on PATH")

        command = " ".join([check.target, *check.args])
        result = self._registry.run(
            check.target, *check.args, sudo=check.sudo, timeout=SMOKE_TEST_TIMEOUT,
        )
        if not result.ok:
            return ProbeOutcome(
                ProbeResult.INCOMPATIBLE,
                reason=f"'{command}' failed: {result.error or 'no output'}",
            )

        version = None
        if check.version_pattern:
            match = re.search(check.version_pattern, f"{result.stdout}\n{result.stderr}")
            version = match.group(1) if match else None

        gated = check.expect is not None and (not check.models or self._model in check.models)
        if gated and version != check.expect:
            return ProbeOutcome(
                ProbeResult.INCOMPATIBLE,
                reason=(
                    f"{check.target} version {version or 'unknown'} found, "
                    f"{check.expect} required on the {self._model or 'this board'}"
                ),
                version=version,
            )
        return ProbeOutcome(ProbeResult.PRESENT, version=version)

    def _loaded_modules(self) -> list[str]:
        if self._modules is None:
            result = self._registry.read("/proc/modules")
            self._modules = [line.split()[0] for line in result.lines() if line.split()]
        return self._modules
