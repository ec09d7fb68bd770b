"""
Tests for the inspection pipeline — preconditions, gating, sections.
"""

import pytest

from hosts import DPKG_KEY, dpkg_output
from system_info.adapters.mock import MockAdapter
from system_info.adapters.registry import AdapterRegistry
from system_info.core.data.capabilities import executable, package, required, smoke_test
from system_info.core.engine.pipeline import InspectionPipeline, PipelineState
from system_info.core.models.inspection import Inspection
from system_info.core.models.settings import Settings

REQUIRED = (required("lshw"), required("usbutils"))


def _recording(calls: list[str], name: str, *lines: str):
    def body(section, ctx):
        calls.append(name)
        section.extend(lines or (f"{name} output",))
    return body


def _pipeline(registry, catalog, **kwargs) -> InspectionPipeline:
    kwargs.setdefault("required", REQUIRED)
    kwargs.setdefault("supplemental", ())
    return InspectionPipeline(registry, catalog, **kwargs)


@pytest.fixture
def ready_host(healthy_host: MockAdapter) -> MockAdapter:
    """Healthy host with every required package installed."""
    healthy_host.set_output(DPKG_KEY, dpkg_output("lshw", "usbutils"))
    return healthy_host


# ── Preconditions ───────────────────────────────────────────────


class TestPreconditions:
    def test_missing_required_package_aborts_before_any_inspection(self, registry, healthy_host):
        healthy_host.set_output(DPKG_KEY, dpkg_output("lshw"))
        calls: list[str] = []
        pipeline = _pipeline(registry, [Inspection("a", "ALPHA", "g", _recording(calls, "a"))])

        report = pipeline.run()

        assert report.state is PipelineState.ABORTED
        assert report.exit_code == 1
        assert calls == []
        assert report.abort.reason == "missing_packages"
        assert report.lines.count('Required package "usbutils" is not installed.') == 1
        assert report.lines.count("  sudo apt install -y usbutils") == 1
        assert not any("lshw" in line and "not installed" in line for line in report.lines)
        assert " Once any missing packages are installed, re-run this report." in report.lines
        assert report.sections == []

    def test_all_required_present_proceeds(self, registry, ready_host):
        report = _pipeline(registry, []).run()
        assert report.completed
        assert report.exit_code == 0
        assert "2 out of 2 required packages are installed." in report.lines
        assert "All core inspections will be performed." in report.lines
        assert report.lines[-3] == " * * * END OF REPORT * * *"

    def test_unknown_os_aborts(self, registry, ready_host):
        ready_host.set_failure("read:/etc/os-release")
        report = _pipeline(registry, []).run()
        assert report.abort.reason == "os_unknown"
        assert " LINUX VERSION UNKNOWN" in report.lines

    def test_old_os_aborts(self, registry, ready_host):
        ready_host.set_output("read:/etc/os-release", 'PRETTY_NAME="Raspbian GNU/Linux 8 (jessie)"\nVERSION_ID="8"\n')
        report = _pipeline(registry, []).run()
        assert report.abort.reason == "os_unsupported"
        assert "Version Raspbian GNU/Linux 8 (jessie) is not supported." in report.lines

    def test_minimum_os_version_setting(self, registry, ready_host):
        report = _pipeline(registry, [], settings=Settings(min_os_version=11)).run()
        assert report.abort.reason == "os_unsupported"

    def test_no_privilege_aborts(self, ready_host):
        reg = AdapterRegistry(mock_mode=True, as_root=False)
        reg.set_mock_mode(True, ready_host)
        report = _pipeline(reg, []).run()
        assert report.abort.reason == "no_privilege"
        assert " ROOT OR SUDO ACCESS REQUIRED" in report.lines

    def test_sudo_counts_as_privilege(self, ready_host, path_tools):
        path_tools.add("sudo")
        reg = AdapterRegistry(mock_mode=True, as_root=False)
        reg.set_mock_mode(True, ready_host)
        report = _pipeline(reg, []).run()
        assert report.completed
        assert "sudo is available: OK" in report.lines

    def test_wrapped_ring_buffer_aborts(self, registry, ready_host):
        ready_host.set_output("dmesg", "[ 9999.1] usb 1-1.3: new device\n")
        calls: list[str] = []
        report = _pipeline(registry, [Inspection("a", "ALPHA", "g", _recording(calls, "a"))]).run()
        assert report.abort.reason == "ring_buffer_wrapped"
        assert " DMESG RING BUFFER HAS WRAPPED - PLEASE REBOOT" in report.lines
        assert calls == []

    def test_os_checked_before_privilege(self, ready_host):
        ready_host.set_failure("read:/etc/os-release")
        reg = AdapterRegistry(mock_mode=True, as_root=False)
        reg.set_mock_mode(True, ready_host)
        assert _pipeline(reg, []).run().abort.reason == "os_unknown"

    def test_no_package_manager_aborts(self, registry, healthy_host):
        report = _pipeline(registry, []).run()
        assert report.abort.reason == "no_package_manager"
        assert "Missing utility dpkg-query, unable to verify package dependencies." in report.lines

    def test_missing_revision_does_not_abort(self, registry, ready_host):
        ready_host.set_failure("read:/proc/cpuinfo")
        report = _pipeline(registry, []).run()
        assert report.completed
        assert "Revision      : not found in /proc/cpuinfo" in report.lines

    def test_revision_decoded_in_preamble(self, registry, ready_host):
        report = _pipeline(registry, []).run()
        assert "Model Name    : 3B+" in report.lines
        assert report.context.model_name == "3B+"

    def test_preconditions_state(self, registry, ready_host):
        pipeline = _pipeline(registry, [])
        assert pipeline.state is PipelineState.NOT_STARTED
        assert pipeline.check_preconditions() is None
        assert pipeline.state is PipelineState.PRECONDITIONS_CHECKED


# ── Supplemental dependencies ───────────────────────────────────


class TestSupplementalDependencies:
    def test_tally_and_notice(self, registry, ready_host):
        ready_host.set_output(DPKG_KEY, dpkg_output("lshw", "usbutils", "nmap"))
        report = _pipeline(registry, [], supplemental=(package("nmap"), package("mdadm"))).run()
        assert "  found: nmap" in report.lines
        assert "1 out of 2 supplemental packages are installed." in report.lines
        assert "Some supplemental inspections will be performed." in report.lines

    def test_none_installed(self, registry, ready_host):
        report = _pipeline(registry, [], supplemental=(package("mdadm"),)).run()
        assert "No supplemental inspections will be performed." in report.lines

    def test_incompatible_listed(self, registry, ready_host, path_tools):
        path_tools.add("pinout")
        ready_host.set_failure("pinout --help", error="no pin factory")
        report = _pipeline(registry, [], supplemental=(smoke_test("gpiozero", "pinout", "--help"),)).run()
        assert any(line.startswith("  unusable: gpiozero") for line in report.lines)
        assert report.completed


# ── Gating ──────────────────────────────────────────────────────


class TestGating:
    def test_absent_optional_capability_omits_section_silently(self, registry, ready_host):
        calls: list[str] = []
        catalog = [
            Inspection("a", "ALPHA", "g", _recording(calls, "a"), requires=(executable("lpstat"),)),
            Inspection("b", "BRAVO", "g", _recording(calls, "b")),
        ]
        report = _pipeline(registry, catalog).run()

        assert calls == ["b"]
        assert report.section("a").status == "not_applicable"
        assert not any("ALPHA" in line for line in report.lines)
        assert " BRAVO" in report.lines

    def test_incompatible_capability_prints_skip_notice(self, registry, ready_host, path_tools):
        path_tools.add("gpio")
        ready_host.set_failure("gpio -v", error="Unable to determine hardware version")
        calls: list[str] = []
        catalog = [
            Inspection("gpio", "GPIO PINS", "g", _recording(calls, "gpio"),
                       requires=(smoke_test("wiringpi", "gpio", "-v"),)),
        ]
        report = _pipeline(registry, catalog).run()

        assert calls == []
        result = report.section("gpio")
        assert result.status == "skipped"
        skip_lines = [line for line in report.lines if line.startswith("[skipped] GPIO PINS:")]
        assert len(skip_lines) == 1
        assert "Unable to determine hardware version" in skip_lines[0]
        assert " GPIO PINS" not in report.lines

    def test_applies_predicate(self, registry, ready_host):
        calls: list[str] = []
        catalog = [
            Inspection("eeprom", "PI MODEL 4B EEPROM", "g", _recording(calls, "eeprom"),
                       applies=lambda ctx: ctx.is_4b),
            Inspection("otp", "OTP", "g", _recording(calls, "otp"),
                       applies=lambda ctx: not ctx.is_4b),
        ]
        report = _pipeline(registry, catalog).run()
        assert calls == ["otp"]
        assert report.section("eeprom").status == "not_applicable"

    def test_gate_evaluated_against_discovered_context(self, registry, ready_host):
        ready_host.set_output("read:/proc/modules", "vc4 282624 4 - Live 0x0\n")
        calls: list[str] = []
        catalog = [
            Inspection("kms", "KMS", "g", _recording(calls, "kms"),
                       applies=lambda ctx: ctx.display_driver == "full"),
        ]
        _pipeline(registry, catalog).run()
        assert calls == ["kms"]

    def test_supplemental_marker(self, registry, ready_host):
        catalog = [Inspection("s", "SUPPLEMENTAL THING", "g", _recording([], "s"), supplemental=True)]
        report = _pipeline(registry, catalog).run()
        assert " SUPPLEMENTAL THING (***)" in report.lines


# ── Section execution ───────────────────────────────────────────


class TestSectionExecution:
    def test_body_exception_marks_failed_and_run_continues(self, registry, ready_host):
        calls: list[str] = []

        def boom(section, ctx):
            section.echo("partial output")
            raise RuntimeError("kaboom")

        catalog = [
            Inspection("boom", "BROKEN", "g", boom),
            Inspection("next", "NEXT", "g", _recording(calls, "next")),
        ]
        report = _pipeline(registry, catalog).run()

        assert report.completed
        assert report.exit_code == 0
        assert report.section("boom").status == "failed"
        assert "[not available] BROKEN (RuntimeError: kaboom)" in report.lines
        assert "partial output" in report.lines
        assert calls == ["next"]

    def test_collaborator_failure_marks_partial(self, registry, ready_host):
        def body(section, ctx):
            section.echo("header")
            section.run("lsusb")

        report = _pipeline(registry, [Inspection("usb", "USB", "g", body)]).run()
        result = report.section("usb")
        assert result.status == "partial"
        assert result.failures == ["lsusb"]
        assert any(line.startswith("[not available] lsusb") for line in report.lines)

    def test_heading_and_body_emitted_together(self, registry, ready_host):
        emitted: list[str] = []
        seen_during_body: list[list[str]] = []

        def body(section, ctx):
            seen_during_body.append(list(emitted))
            section.echo("first")
            section.echo("second")

        report = _pipeline(registry, [Inspection("x", "ATOMIC", "g", body)], emit=emitted.append).run()

        assert " ATOMIC" not in seen_during_body[0]
        i = emitted.index(" ATOMIC")
        assert emitted[i - 1].startswith("=")
        assert emitted[i + 1].startswith("=")
        assert emitted[i + 2:i + 5] == ["", "first", "second"]
        assert emitted == report.lines

    def test_sections_in_catalog_order(self, registry, ready_host):
        calls: list[str] = []
        catalog = [Inspection(n, n.upper(), "g", _recording(calls, n)) for n in ("c", "a", "b")]
        _pipeline(registry, catalog).run()
        assert calls == ["c", "a", "b"]

    def test_counts_and_dict(self, registry, ready_host):
        catalog = [
            Inspection("ok", "OK", "g", _recording([], "ok")),
            Inspection("na", "NA", "g", _recording([], "na"), applies=lambda ctx: False),
        ]
        data = _pipeline(registry, catalog).run().to_dict()
        assert data["state"] == "completed"
        assert data["system"]["model"] == "3B+"
        assert data["sections"]["ok"] == 1
        assert data["sections"]["not_applicable"] == 1
        assert data["required"]["hits"] == 2


# ── Group selection ─────────────────────────────────────────────


class TestGroups:
    def test_only_selected_groups_run(self, registry, ready_host):
        calls: list[str] = []
        catalog = [
            Inspection("a", "A", "alpha", _recording(calls, "a")),
            Inspection("b", "B", "bravo", _recording(calls, "b")),
        ]
        _pipeline(registry, catalog, groups=["Bravo"]).run()
        assert calls == ["b"]

    def test_unknown_group_rejected(self, registry):
        catalog = [Inspection("a", "A", "alpha", _recording([], "a"))]
        with pytest.raises(ValueError, match="Unknown section group"):
            _pipeline(registry, catalog, groups=["zulu"])
