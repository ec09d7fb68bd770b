"""
Tests for the inspection catalog and individual section bodies.
"""

import pytest

from hosts import DPKG_KEY, make_context
from system_info.core.engine.section import Section
from system_info.core.inspections import CATALOG, GROUPS, bluetooth, devices, firmware, logs, media
from system_info.core.inspections import network, packages, resources, select, storage, system
from system_info.core.models.settings import Settings
from system_info.core.services.probe import Probe


def _run(registry, body, ctx=None, settings: Settings | None = None) -> Section:
    ctx = ctx or make_context()
    section = Section("TEST", registry, Probe(registry, model_name=ctx.model_name), ctx, settings=settings)
    body(section, ctx)
    return section


# ── Catalog ─────────────────────────────────────────────────────


class TestCatalog:
    def test_ids_unique(self):
        ids = [i.id for i in CATALOG]
        assert len(ids) == len(set(ids))

    def test_groups_in_order(self):
        assert GROUPS[0] == "system"
        assert GROUPS[-1] == "packages"
        seen = []
        for inspection in CATALOG:
            if not seen or seen[-1] != inspection.group:
                seen.append(inspection.group)
        assert seen == list(GROUPS)

    def test_select(self):
        selected = select(["Network"])
        assert selected
        assert {i.group for i in selected} == {"network"}
        assert select(None) == list(CATALOG)

    def test_select_unknown(self):
        with pytest.raises(ValueError, match="Unknown section group"):
            select(["gpu"])

    def test_supplemental_sections_require_something(self):
        # the ulimit section probes systemd-coredump inline
        for inspection in CATALOG:
            if inspection.supplemental and inspection.id != "ulimit":
                assert inspection.requires, inspection.id


# ── System ──────────────────────────────────────────────────────


class TestSystemGroup:
    def test_identification(self, registry, mock):
        mock.set_output("hostname", "raspberrypi\n")
        section = _run(registry, system.identification)
        assert section.lines == ["Hostname: raspberrypi", "Serial #: 00000000abcd1234"]

    def test_64_bit_kernel(self, registry, mock):
        mock.set_output("vcgencmd get_config arm_64bit", "arm_64bit=1")
        assert "KERNEL IS: 64-BIT" in _run(registry, system.operating_system).lines

    def test_32_bit_kernel(self, registry):
        assert "KERNEL IS: 32-BIT" in _run(registry, system.operating_system).lines

    def test_mac_addresses(self, registry, mock):
        mock.set_output("ifconfig", (
            "eth0: flags=4163<UP,BROADCAST,RUNNING,MULTICAST>  mtu 1500\n"
            "        ether b8:27:eb:12:34:56  txqueuelen 1000  (Ethernet)\n"
            "lo: flags=73<UP,LOOPBACK,RUNNING>  mtu 65536\n"
            "        loop  txqueuelen 1000  (Local Loopback)\n"
        ))
        assert _run(registry, system.mac_addresses).lines == ["B8:27:EB:12:34:56"]


# ── Firmware ────────────────────────────────────────────────────


class TestFirmwareHelpers:
    def test_temperature_conversion(self):
        assert firmware.format_temperature(" GPU Temp", 47.2) == " GPU Temp: 47.20°C (116.96°F)"
        assert firmware.celsius_to_fahrenheit(100) == 212

    def test_vc_temperature(self):
        assert firmware.parse_vc_temperature("temp=47.2'C") == 47.2
        assert firmware.parse_vc_temperature("error") is None

    def test_arm_memory(self):
        lines = ["[0.0] Booting Linux", "[0.0] Memory: 948304K/970752K available (9216K kernel code)"]
        assert firmware.arm_memory_mb(lines) == 948
        assert firmware.arm_memory_mb([]) is None

    def test_active_trigger(self):
        assert firmware.active_trigger("none mmc0 [actpwr] heartbeat") == "[actpwr]"
        assert firmware.active_trigger("none mmc0") is None

    def test_otp_model(self):
        assert firmware.otp_model(make_context("a22042")) == "Pi2Bv1.2"
        assert firmware.otp_model(make_context("a01041")) == "Pi2B"


class TestFirmwareSections:
    def test_otp_enabled(self, registry, mock):
        mock.set_output("vcgencmd otp_dump", "16:00280000\n17:3020000a\n18:3020000a")
        assert _run(registry, firmware.otp_boot_from_usb).lines == ["Boot From USB: Enabled"]

    def test_otp_not_enabled(self, registry, mock):
        mock.set_output("vcgencmd otp_dump", "17:1020000a")
        assert _run(registry, firmware.otp_boot_from_usb).lines == ["Boot From USB: Available, but not enabled"]

    def test_otp_unavailable_model(self, registry):
        section = _run(registry, firmware.otp_boot_from_usb, make_context("900092"))
        assert section.lines == ["Boot From USB: Feature not available on this model"]

    def test_temperature(self, registry, mock):
        mock.set_output("vcgencmd measure_temp", "temp=47.2'C")
        mock.set_output("read:/sys/class/thermal/thermal_zone0/temp", "48312")
        section = _run(registry, firmware.temperature)
        assert section.lines == [" GPU Temp: 47.20°C (116.96°F)", " ARM Temp: 48.31°C (118.96°F)"]

    def test_temperature_4b_pmic(self, registry, mock):
        mock.set_output("vcgencmd measure_temp", "temp=50.0'C")
        mock.set_output("vcgencmd measure_temp pmic", "temp=40.0'C")
        section = _run(registry, firmware.temperature, make_context("c03111"))
        assert "PMIC Temp: 40.00°C (104.00°F)" in section.lines
        assert section.failures == ["ARM temperature"]

    def test_voltages_mark_failed_readings(self, registry, mock):
        for rail in ("core", "sdram_c", "sdram_i"):
            mock.set_output(f"vcgencmd measure_volts {rail}", "volt=1.2000V")
        section = _run(registry, firmware.voltages)
        assert section.lines[0] == "core:      volt=1.2000V"
        assert section.lines[3].startswith("[not available] sdram_p (measure_volts)")
        assert not any(line.rstrip() == "sdram_p:" for line in section.lines)
        assert section.failures == ["sdram_p (measure_volts)"]

    def test_governor_overridden(self, registry, mock):
        mock.set_output("read:/sys/devices/system/cpu/cpu0/cpufreq/scaling_governor", "ondemand\n")
        section = _run(registry, firmware.scaling_governor, make_context(config_lines=("force_turbo=1",)))
        assert section.lines == ["ondemand", '(...but overridden by "force_turbo=1" found in config.txt)']

    def test_governor_performance(self, registry, mock):
        mock.set_output("read:/sys/devices/system/cpu/cpu0/cpufreq/scaling_governor", "performance")
        section = _run(registry, firmware.scaling_governor, make_context(config_lines=("force_turbo=1",)))
        assert section.lines == ["performance"]

    def test_throttling(self, registry, mock):
        mock.set_output("vcgencmd get_throttled", "throttled=0x50005")
        section = _run(registry, firmware.throttling)
        assert section.lines[0] == "Throttle Status: 0x50005"

    def test_throttling_unreadable(self, registry):
        section = _run(registry, firmware.throttling)
        assert section.failures == ["vcgencmd get_throttled"]

    def test_led_triggers(self, registry, mock):
        mock.set_output("read:/sys/class/leds/led0/trigger", "none [mmc0] heartbeat")
        assert _run(registry, firmware.led_triggers).lines == ["LED0: [mmc0]"]


# ── Media ───────────────────────────────────────────────────────


class TestMedia:
    def test_codec_licence_notes(self):
        assert media.codec_line("MPG2", "enabled", "3B+") == "MPG2: enabled (licensed)"
        assert media.codec_line("WVC1", "disabled", "3B+") == "WVC1: disabled (license required to enable)"
        assert media.codec_line("H264", "enabled", "3B+") == "H264: enabled"
        assert media.codec_line("MPG2", "disabled", "4B") == "MPG2: disabled"

    def test_codecs_section(self, registry, mock):
        mock.set_output("vcgencmd codec_enabled H264", "H264=enabled")
        lines = _run(registry, media.codecs).lines
        assert "H264: enabled" in lines
        assert "MPG2: unknown (license required to enable)" in lines

    def test_alsa_cards(self):
        text = " 0 [ALSA           ]: bcm2835_alsa - bcm2835 ALSA\n                      bcm2835 ALSA\n 1 [Device ]: USB-Audio"
        assert media.alsa_cards(text) == ["0", "1"]


# ── Devices ─────────────────────────────────────────────────────


class TestDevices:
    def test_i2c_buses(self):
        listing = ["i2c-1\ti2c       \tbcm2835 I2C adapter  \tI2C adapter", "i2c-20\ti2c  \tFoo"]
        assert devices.i2c_buses(listing) == ["1", "20"]

    def test_watchdog_directories(self):
        conf = ["#test-directory = /x", "test-directory = /etc/watchdog.d", "log-dir = /var/log/watchdog", "max-load-1 = 24"]
        assert devices.watchdog_directories(conf) == ["/etc/watchdog.d", "/var/log/watchdog"]

    def test_uarts(self, registry, mock):
        mock.set_output("glob:/dev/serial?", "/dev/serial0")
        mock.set_output("readlink:/dev/serial0", "ttyS0")
        mock.set_output("stty -a -F /dev/serial0", "speed 115200 baud")
        lines = _run(registry, devices.uarts).lines
        assert "/dev/serial0 -> ttyS0" in lines
        assert " SERIAL0... (/dev/ttyS0, miniUART)" in lines
        assert "speed 115200 baud" in lines


# ── Storage and resources ───────────────────────────────────────


class TestStorage:
    def test_md_arrays(self):
        mdstat = "Personalities : [raid1]\nmd0 : active raid1 sdb1[1] sda1[0]\nunused devices: <none>"
        assert storage.md_arrays(mdstat) == ["md0"]

    def test_md_components(self):
        detail = [
            "/dev/md0:",
            "    Number   Major   Minor   RaidDevice State",
            "       0       8        1        0      active sync   /dev/sda1",
            "       1       8       17        1      active sync   /dev/sdb1",
        ]
        assert storage.md_components(detail, "md0") == ["/dev/sda1", "/dev/sdb1"]

    def test_quota_filesystems(self):
        fstab = "# c\n/dev/sda1 /home ext4 defaults,usrquota 0 2\nproc /proc proc defaults 0 0"
        assert storage.quota_filesystems(fstab) == ["/dev/sda1 /home ext4 defaults,usrquota 0 2"]

    def test_no_volume_groups(self, registry):
        assert "No volume groups found" in _run(registry, storage.logical_volumes).lines


class TestResources:
    def test_core_dump_state(self):
        assert resources.core_dump_state("0") == " Core dumps are disabled..."
        assert resources.core_dump_state("unlimited") == " Core dumps are enabled..."


# ── Network ─────────────────────────────────────────────────────

IP_LINK = [
    "1: lo: <LOOPBACK,UP,LOWER_UP> mtu 65536",
    "2: eth0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500",
    "3: wlan0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500",
    "4: wlan0mon@wlan0: <BROADCAST> mtu 1500",
]

IFCONFIG = [
    "eth0: flags=4163<UP,BROADCAST,RUNNING,MULTICAST>  mtu 1500",
    "        inet 192.168.1.20  netmask 255.255.255.0  broadcast 192.168.1.255",
    "        inet6 fe80::ba27:ebff:fe12:3456  prefixlen 64  scopeid 0x20<link>",
    "        inet6 2001:db8::20  prefixlen 64  scopeid 0x0<global>",
]


class TestNetwork:
    def test_interfaces(self):
        assert network.interfaces(IP_LINK, "eth") == ["eth0"]
        assert network.interfaces(IP_LINK, "wlan") == ["wlan0"]

    def test_local_addresses(self):
        assert network.local_addresses(IFCONFIG) == (["192.168.1.20"], ["2001:db8::20"])

    def test_wpa_supplicant_masked(self, registry, mock):
        mock.set_output(f"cat {network.WPA_SUPPLICANT_CONF}", 'network={\n\tssid="home"\n\tpsk="hunter22"\n}\n')
        lines = _run(registry, network.wpa_supplicant).lines
        assert "\tpsk=**PASSWORD_HIDDEN**" in lines
        assert not any("hunter22" in line for line in lines)

    def test_wpa_supplicant_masks_prefixed_and_inline_keys(self, registry, mock):
        mock.set_output(
            f"cat {network.WPA_SUPPLICANT_CONF}",
            '\tsae_password="hunter2"\n\tprivate_key_passwd="hunter3"\nnetwork={ssid="x" psk="hunter4"}\n',
        )
        lines = _run(registry, network.wpa_supplicant).lines
        assert "\tsae_password=**PASSWORD_HIDDEN**" in lines
        assert "\tprivate_key_passwd=**PASSWORD_HIDDEN**" in lines
        assert 'network={ssid="x" psk=**PASSWORD_HIDDEN**' in lines
        assert not any("hunter" in line for line in lines)

    def test_wpa_supplicant_unmasked_by_setting(self, registry, mock):
        mock.set_output(f"cat {network.WPA_SUPPLICANT_CONF}", '\tpsk="hunter22"\n')
        lines = _run(registry, network.wpa_supplicant, settings=Settings(mask_secrets=False)).lines
        assert lines == ['\tpsk="hunter22"']

    def test_service_scan_disabled(self, registry, mock):
        section = _run(registry, network.service_scan, settings=Settings(scan_ports=False))
        assert section.lines == ["Service scan disabled by configuration (scan_ports: false)"]
        assert mock.call_count == 0

    def test_service_scan(self, registry, mock):
        mock.set_output("ifconfig", "\n".join(IFCONFIG))
        mock.set_output(
            "nmap -Pn -sV -T4 -p 1-65535 --version-light 192.168.1.20",
            "Starting Nmap\nPORT   STATE SERVICE VERSION\n22/tcp open  ssh     OpenSSH 7.9\nNmap done",
        )
        lines = _run(registry, network.service_scan).lines
        assert " IPV4: 192.168.1.20" in lines
        assert "22/tcp open  ssh     OpenSSH 7.9" in lines
        assert "Starting Nmap" not in lines

    def test_empty_tcpwrappers_file(self, registry, mock):
        mock.set_output("read:/etc/hosts.deny", "# comment only\n")
        body = network._tcpwrappers("/etc/hosts.deny")
        assert _run(registry, body).lines == ["file is empty"]


# ── Logs ────────────────────────────────────────────────────────


class TestLogs:
    def test_rsyslog_includes_dropins(self, registry, mock):
        mock.set_output("read:/etc/rsyslog.conf", "kern.*  -/var/log/kern.log")
        mock.set_output("glob:/etc/rsyslog.d/*.conf", "/etc/rsyslog.d/cron.conf")
        mock.set_output("read:/etc/rsyslog.d/cron.conf", "cron.*  /var/log/cron.log")
        lines = _run(registry, logs.rsyslog_analysis).lines
        assert any(line.startswith("Event:  cron.info") and "/var/log/cron.log" in line for line in lines)
        assert any(line.startswith("Event:  kern.err") and "/var/log/kern.log" in line for line in lines)

    def test_localization(self, registry, mock):
        mock.set_output("read:/etc/default/locale", "LANG=en_GB.UTF-8")
        mock.set_output("read:/etc/default/keyboard", 'XKBMODEL="pc105"\nXKBLAYOUT="gb"')
        mock.set_output("read:/etc/timezone", "Europe/London\n")
        lines = _run(registry, logs.localization).lines
        assert lines[0] == "Language : en_GB.UTF-8"
        assert "KB Layout: gb" in lines
        assert lines[-1] == "Timezone : Europe/London"


# ── Bluetooth and packages ──────────────────────────────────────


class TestBluetooth:
    def test_controllers_parsed(self):
        lines = ["Controller B8:27:EB:AA:BB:CC raspberrypi [default]", "Controller 00:1A:7D:DA:71:13 usb"]
        assert bluetooth.controllers(lines) == [("B8:27:EB:AA:BB:CC", True), ("00:1A:7D:DA:71:13", False)]

    def test_clean_output(self):
        lines = ["Agent registered", "[bluetooth]# list", "", "Controller X y [default]", "\tName: pi"]
        assert bluetooth.clean_output(lines) == ["\tName: pi"]

    def test_daemon_not_running(self, registry):
        assert _run(registry, bluetooth.bluetooth_controllers).lines == ["bluetoothd daemon not running"]

    def test_controller_details(self, registry, mock):
        mock.set_output("process:bluetoothd", "/usr/libexec/bluetooth/bluetoothd")
        mock.set_output("bluetoothctl", "Controller B8:27:EB:AA:BB:CC raspberrypi [default]")
        lines = _run(registry, bluetooth.bluetooth_controllers).lines
        assert lines[0] == "Default BT Controller..."


class TestPackagesGroup:
    def test_no_holds(self, registry, mock):
        mock.set_output(DPKG_KEY, "")
        mock.set_output("dpkg --get-selections", "nmap\t\tinstall")
        assert _run(registry, packages.held_packages).lines == ["No packages placed on hold"]

    def test_holds(self, registry, mock):
        mock.set_output("dpkg --get-selections", "raspberrypi-kernel\t\thold")
        assert _run(registry, packages.held_packages).lines == ["raspberrypi-kernel"]
