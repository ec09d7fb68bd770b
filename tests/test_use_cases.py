"""
Tests for use cases — report, deps, and the standalone decoders.
"""

from pathlib import Path

import pytest

from hosts import DPKG_KEY, dpkg_output
from system_info.core.data.capabilities import REQUIRED_PACKAGES
from system_info.core.persistence.preferences_file import load_preferences
from system_info.core.use_cases.decode import decode_revision_code, decode_throttle_word
from system_info.core.use_cases.deps import check_dependencies
from system_info.core.use_cases.report import resolve_groups, run_report


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("SYSTEM_INFO_CONFIG", raising=False)


@pytest.fixture
def installed_host(healthy_host):
    healthy_host.set_output(DPKG_KEY, dpkg_output(*(c.name for c in REQUIRED_PACKAGES)))
    return healthy_host


# ── Group selection ─────────────────────────────────────────────


class TestResolveGroups:
    def test_all_wins(self):
        assert resolve_groups(["network"], True, ["logs"], ["system"]) is None

    def test_cli_over_saved(self):
        assert resolve_groups([" Network "], False, ["logs"], ["system"]) == ["network"]

    def test_saved_over_config(self):
        assert resolve_groups(None, False, ["logs"], ["system"]) == ["logs"]

    def test_config_fallback(self):
        assert resolve_groups(None, False, None, ["system"]) == ["system"]

    def test_nothing_means_all(self):
        assert resolve_groups(None, False, None, None) is None


# ── Report ──────────────────────────────────────────────────────


class TestRunReport:
    def test_completed_run_writes_output(self, registry, installed_host, tmp_path: Path):
        out = tmp_path / "report.txt"
        prefs = tmp_path / "prefs.json"
        lines: list[str] = []

        result = run_report(
            groups=["bluetooth"], output=out, emit=lines.append,
            registry=registry, preferences_path=prefs,
        )

        assert result.error is None
        assert result.exit_code == 0
        assert result.groups == ["bluetooth"]
        assert result.output_path == out
        assert out.read_text() == "\n".join(lines) + "\n"
        assert " * * * END OF REPORT * * *" in lines
        assert {s.group for s in result.report.sections} == {"bluetooth"}

        saved = load_preferences(prefs)
        assert saved.groups == ["bluetooth"]
        assert saved.output == str(out)

    def test_saved_selection_is_reused(self, registry, installed_host, tmp_path: Path):
        prefs = tmp_path / "prefs.json"
        run_report(groups=["bluetooth"], registry=registry, preferences_path=prefs)

        result = run_report(registry=registry, preferences_path=prefs)
        assert result.groups == ["bluetooth"]
        assert result.preferences_saved is False

    def test_all_clears_saved_selection(self, registry, installed_host, tmp_path: Path):
        prefs = tmp_path / "prefs.json"
        run_report(groups=["bluetooth"], registry=registry, preferences_path=prefs)
        result = run_report(use_all=True, registry=registry, preferences_path=prefs)
        assert result.groups is None
        assert load_preferences(prefs).groups is None

    def test_aborted_run_exits_nonzero(self, registry, tmp_path: Path):
        result = run_report(registry=registry, preferences_path=tmp_path / "p.json")
        assert result.error is None
        assert result.exit_code == 1
        assert result.report.abort.reason == "os_unknown"
        assert result.to_dict()["report"]["state"] == "aborted"

    def test_unknown_group(self, registry, tmp_path: Path):
        result = run_report(groups=["gpu"], registry=registry, preferences_path=tmp_path / "p.json")
        assert "Unknown section group" in result.error
        assert result.exit_code == 1
        assert not (tmp_path / "p.json").exists()

    def test_config_error(self, registry, tmp_path: Path):
        result = run_report(config_path=tmp_path / "missing.yml", registry=registry)
        assert "not found" in result.error
        assert result.to_dict() == {"error": result.error}

    def test_unwritable_output(self, registry, installed_host, tmp_path: Path):
        result = run_report(
            output=tmp_path / "no" / "such" / "dir" / "report.txt",
            registry=registry, preferences_path=tmp_path / "p.json",
        )
        assert result.error.startswith("Cannot write report to")


# ── Dependencies ────────────────────────────────────────────────


class TestCheckDependencies:
    def test_no_package_manager(self, registry, healthy_host):
        result = check_dependencies(registry=registry)
        assert not result.ok
        assert "dpkg-query" in result.error

    def test_all_installed(self, registry, installed_host):
        result = check_dependencies(registry=registry)
        assert result.ok
        assert result.model_name == "3B+"
        assert result.required.hits == result.required.total
        assert result.to_dict()["model"] == "3B+"

    def test_missing_package(self, registry, healthy_host):
        healthy_host.set_output(DPKG_KEY, dpkg_output("coreutils", "sed"))
        result = check_dependencies(registry=registry)
        assert not result.ok
        assert result.error is None
        assert any(m.name == "lshw" for m in result.required.missing)


# ── Decoders ────────────────────────────────────────────────────


class TestDecodeRevisionCode:
    def test_explicit_code(self):
        result = decode_revision_code("a020d3")
        assert result.error is None
        assert result.revision.model_name == "3B+"
        assert result.lines

    def test_invalid_code(self):
        result = decode_revision_code("zz")
        assert result.error
        assert result.to_dict() == {"error": result.error}

    def test_live_code(self, registry, healthy_host):
        result = decode_revision_code(registry=registry)
        assert result.revision.model_name == "3B+"

    def test_live_without_cpuinfo(self, registry):
        result = decode_revision_code(registry=registry)
        assert result.error == "No Revision line found in /proc/cpuinfo"


class TestDecodeThrottleWord:
    def test_explicit_word(self):
        result = decode_throttle_word("throttled=0x50005")
        assert result.error is None
        assert result.status.undervolted
        assert result.lines

    def test_invalid_word(self):
        assert decode_throttle_word("throttled=banana").error

    def test_live_word(self, registry, mock):
        mock.set_output("vcgencmd get_throttled", "throttled=0x0\n")
        result = decode_throttle_word(registry=registry)
        assert result.error is None
        assert not result.status.undervolted

    def test_live_failure(self, registry):
        result = decode_throttle_word(registry=registry)
        assert result.error.startswith("vcgencmd get_throttled failed")
