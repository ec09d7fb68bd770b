"""
Shared test fixtures and configuration.
"""

import pytest

from hosts import CPUINFO, DMESG, OS_RELEASE
from system_info.adapters.mock import MockAdapter
from system_info.adapters.registry import AdapterRegistry


@pytest.fixture(autouse=True)
def path_tools(monkeypatch) -> set[str]:
    """Executables visible on PATH. Empty unless a test adds names."""
    tools: set[str] = set()
    monkeypatch.setattr(
        "system_info.core.services.probe.shutil.which",
        lambda name: f"/usr/bin/{name}" if name in tools else None,
    )
    return tools


@pytest.fixture
def mock() -> MockAdapter:
    """A bare host: every unscripted invocation fails."""
    return MockAdapter(default_ok=False)


@pytest.fixture
def registry(mock: MockAdapter) -> AdapterRegistry:
    reg = AdapterRegistry(mock_mode=True, as_root=True)
    reg.set_mock_mode(True, mock)
    return reg


@pytest.fixture
def healthy_host(mock: MockAdapter) -> MockAdapter:
    """A supported 3B+ run as root with an intact ring buffer (no packages yet)."""
    mock.set_output("read:/etc/os-release", OS_RELEASE)
    mock.set_output("read:/proc/cpuinfo", CPUINFO)
    mock.set_output("dmesg", DMESG)
    return mock
