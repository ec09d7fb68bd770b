"""
Tests for the capability probe.
"""

from hosts import DPKG_KEY, dpkg_output
from system_info.core.data.capabilities import (
    any_of,
    device,
    executable,
    file_exists,
    kernel_module,
    package,
    running,
    smoke_test,
    unit_active,
    wiringpi,
)
from system_info.core.models.capability import ProbeResult
from system_info.core.services.probe import Probe


class TestSimpleChecks:
    def test_executable_on_path(self, registry, path_tools):
        path_tools.add("lsusb")
        probe = Probe(registry)
        assert probe.probe(executable("lsusb")) is ProbeResult.PRESENT

    def test_executable_missing(self, registry):
        probe = Probe(registry)
        outcome = probe.outcome(executable("lsusb"))
        assert outcome.result is ProbeResult.ABSENT
        assert "lsusb not found on PATH" in outcome.reason

    def test_device(self, registry, mock):
        mock.set_output("is_char_device:/dev/rtc0", "/dev/rtc0")
        probe = Probe(registry)
        assert probe.probe(device("/dev/rtc0")) is ProbeResult.PRESENT
        assert probe.probe(device("/dev/hwrng")) is ProbeResult.ABSENT

    def test_file(self, registry, mock):
        mock.set_output("exists:/proc/mdstat", "/proc/mdstat")
        assert Probe(registry).probe(file_exists("/proc/mdstat")) is ProbeResult.PRESENT

    def test_running_process(self, registry, mock):
        mock.set_output("process:bluetoothd", "/usr/libexec/bluetooth/bluetoothd")
        probe = Probe(registry)
        assert probe.probe(running("bluetoothd")) is ProbeResult.PRESENT
        assert probe.probe(running("rngd")) is ProbeResult.ABSENT

    def test_kernel_module_fragment(self, registry, mock):
        mock.set_output("read:/proc/modules", "i2c_bcm2835 16384 0 - Live 0x0\nsnd 73728 1 - Live 0x0")
        probe = Probe(registry)
        assert probe.probe(kernel_module("i2c_bcm")) is ProbeResult.PRESENT
        assert probe.probe(kernel_module("spi_")) is ProbeResult.ABSENT
        # /proc/modules read once for both
        assert mock.calls_to("/proc/modules") == 1

    def test_systemd_unit(self, registry, mock):
        mock.set_output("systemctl is-active watchdog.service", "active\n")
        mock.set_failure("systemctl is-active rpcbind.service", stdout="inactive")
        probe = Probe(registry)
        assert probe.probe(unit_active("watchdog.service")) is ProbeResult.PRESENT
        assert probe.probe(unit_active("rpcbind.service")) is ProbeResult.ABSENT


class TestPackageCheck:
    def test_installed_package(self, registry, mock):
        mock.set_output(DPKG_KEY, dpkg_output("lvm2"))
        assert Probe(registry).probe(package("lvm2")) is ProbeResult.PRESENT

    def test_exact_name_only(self, registry, mock):
        mock.set_output(DPKG_KEY, dpkg_output("lvm2"))
        assert Probe(registry).probe(package("lvm")) is ProbeResult.ABSENT

    def test_source_build_on_path(self, registry, mock, path_tools):
        mock.set_output(DPKG_KEY, "")
        path_tools.add("gpio")
        assert Probe(registry).probe(package("wiringpi", binary="gpio")) is ProbeResult.PRESENT

    def test_package_absent(self, registry, mock):
        mock.set_output(DPKG_KEY, "")
        outcome = Probe(registry).outcome(package("nmap", binary="nmap"))
        assert outcome.result is ProbeResult.ABSENT
        assert outcome.reason == "package nmap is not installed"


class TestSmokeTest:
    def test_passing_smoke_test(self, registry, mock, path_tools):
        path_tools.add("pinout")
        mock.set_output("pinout --help", "usage: pinout")
        assert Probe(registry).probe(smoke_test("gpiozero", "pinout", "--help")) is ProbeResult.PRESENT

    def test_failing_smoke_test_is_incompatible(self, registry, mock, path_tools):
        path_tools.add("pinout")
        mock.set_failure("pinout --help", error="Unable to load any default pin factory")
        outcome = Probe(registry).outcome(smoke_test("gpiozero", "pinout", "--help"))
        assert outcome.result is ProbeResult.INCOMPATIBLE
        assert "pin factory" in outcome.reason

    def test_not_on_path_is_absent(self, registry, mock):
        assert Probe(registry).probe(smoke_test("gpiozero", "pinout", "--help")) is ProbeResult.ABSENT
        assert mock.call_count == 0


class TestWiringPiVersionGate:
    def _host(self, mock, path_tools, version: str) -> None:
        mock.set_output(DPKG_KEY, dpkg_output("wiringpi"))
        path_tools.add("gpio")
        mock.set_output("gpio -v", f"gpio version: {version}\nCopyright (c) 2012-2018 Gordon Henderson")

    def test_known_good_on_4b(self, registry, mock, path_tools):
        self._host(mock, path_tools, "2.52")
        outcome = Probe(registry, model_name="4B").outcome(wiringpi())
        assert outcome.result is ProbeResult.PRESENT
        assert outcome.version == "2.52"

    def test_old_version_on_4b_is_incompatible(self, registry, mock, path_tools):
        self._host(mock, path_tools, "2.50")
        outcome = Probe(registry, model_name="4B").outcome(wiringpi())
        assert outcome.result is ProbeResult.INCOMPATIBLE
        assert "2.50" in outcome.reason
        assert "2.52" in outcome.reason

    def test_version_not_gated_elsewhere(self, registry, mock, path_tools):
        self._host(mock, path_tools, "2.50")
        assert Probe(registry, model_name="3B+").probe(wiringpi()) is ProbeResult.PRESENT

    def test_configured_known_good(self, registry, mock, path_tools):
        self._host(mock, path_tools, "2.60")
        assert Probe(registry, model_name="4B").probe(wiringpi("2.60")) is ProbeResult.PRESENT


class TestProbeBehaviour:
    def test_results_are_cached(self, registry, mock, path_tools):
        path_tools.add("pinout")
        mock.set_output("pinout --help", "ok")
        probe = Probe(registry)
        cap = smoke_test("gpiozero", "pinout", "--help")
        probe.probe(cap)
        probe.probe(cap)
        assert mock.calls_to("pinout") == 1
        assert "gpiozero" in probe.results()

    def test_model_restricted_capability(self, registry, mock):
        mock.set_output(DPKG_KEY, dpkg_output("rpi-eeprom"))
        cap = package("rpi-eeprom", models=["4B"])
        outcome = Probe(registry, model_name="3B+").outcome(cap)
        assert outcome.result is ProbeResult.ABSENT
        assert outcome.reason == "only applies to 4B"
        assert Probe(registry, model_name="4B").probe(cap) is ProbeResult.PRESENT

    def test_any_of(self, registry, mock):
        mock.set_output("exists:/dev/rtc", "/dev/rtc")
        cap = any_of("rtc", device("/dev/rtc0"), file_exists("/dev/rtc"))
        assert Probe(registry).probe(cap) is ProbeResult.PRESENT

    def test_any_of_none_match(self, registry):
        cap = any_of("rtc", device("/dev/rtc0"), file_exists("/dev/rtc"))
        assert Probe(registry).probe(cap) is ProbeResult.ABSENT

    def test_absence_never_raises(self, registry):
        # Nothing scripted at all: every collaborator fails
        probe = Probe(registry)
        for cap in (executable("x"), device("/dev/x"), running("x"), kernel_module("x"), unit_active("x")):
            assert probe.probe(cap) is ProbeResult.ABSENT
