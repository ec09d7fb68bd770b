"""
Package database — read-only queries against dpkg.

The installed-package set is fetched once per run and reused by every
lookup; the report never installs anything, so it cannot go stale.
"""

from __future__ import annotations

import logging

from system_info.adapters.registry import AdapterRegistry
from system_info.core.models.invocation import InvokeResult

logger = logging.getLogger(__name__)

_INSTALLED_STATUS = "install ok installed"
QUERY_ARGS = ("-W", "-f=${Package}\t${Status}\n")


class PackageDatabase:
    """Cached view of the dpkg database.

    Args:
        registry: Adapter registry used to run dpkg-query / dpkg.
    """

    def __init__(self, registry: AdapterRegistry):
        self._registry = registry
        self._installed: frozenset[str] | None = None
        self._available: bool | None = None

    def available(self) -> bool:
        """Whether the package manager can be queried at all."""
        if self._available is None:
            self._load()
        return bool(self._available)

    def installed(self) -> frozenset[str]:
        """Names of all installed packages (architecture suffix stripped)."""
        if self._installed is None:
            self._load()
        return self._installed or frozenset()

    def is_installed(self, package: str) -> bool:
        """Exact-name membership test; ``lvm`` never matches ``lvm2``."""
        return package in self.installed()

    def _load(self) -> None:
        result = self._registry.run("dpkg-query", *QUERY_ARGS)
        if result.exit_status == 127 or (result.failed and not result.stdout):
            logger.warning("Package database unavailable: %s", result.error)
            self._available = False
            self._installed = frozenset()
            return

        names = set()
        for line in result.lines():
            name, _, status = line.partition("\t")
            if status.strip() == _INSTALLED_STATUS:
                names.add(name.split(":", 1)[0].strip())

        self._available = True
        self._installed = frozenset(names)
        logger.info("Package database: %d installed packages", len(names))

    def held(self) -> list[str]:
        """Packages placed on hold (upgrade blocked)."""
        result = self._registry.run("dpkg", "--get-selections", sudo=True)
        return [
            line.split()[0]
            for line in result.lines()
            if line.split() and line.split()[-1] == "hold"
        ]

    def listing(self) -> InvokeResult:
        """Full ``dpkg -l`` listing."""
        return self._registry.run("dpkg", "-l")
