"""
Logs group — kernel messages, systemd, journald, rsyslog and boot-time config.
"""

from __future__ import annotations

from system_info.core.context import SystemContext
from system_info.core.data.capabilities import file_exists
from system_info.core.engine.formatting import active_lines, grep
from system_info.core.engine.section import Section
from system_info.core.models.inspection import Inspection
from system_info.core.services import rsyslog
from system_info.core.services.discovery import parse_os_release as parse_assignments

GROUP = "logs"

RSYSLOG_CONF = "/etc/rsyslog.conf"
LOCALIZATION_FILES = ("/etc/default/locale", "/etc/default/keyboard", "/etc/default/console-setup", "/etc/timezone")


def dmesg_warnings(section: Section, ctx: SystemContext) -> None:
    section.extend(grep(section.dmesg(), "warn", ignore_case=True))


def dmesg_failures(section: Section, ctx: SystemContext) -> None:
    section.extend(grep(section.dmesg(), "fail", ignore_case=True))


def critical_chain(section: Section, ctx: SystemContext) -> None:
    section.run("systemctl", "list-jobs", "--no-pager")
    section.blank()
    section.run("systemd-analyze", "time")
    section.blank()
    section.run("systemd-analyze", "critical-chain", "--no-pager")


def blame(section: Section, ctx: SystemContext) -> None:
    section.run("systemd-analyze", "blame", "--no-pager")


def systemctl_status(section: Section, ctx: SystemContext) -> None:
    section.run("systemctl", "status", "--no-pager")


def unit_failures(section: Section, ctx: SystemContext) -> None:
    section.run("systemctl", "list-units", "--failed", "--all", "--no-pager", exclude="list-unit-files")


def unit_files(section: Section, ctx: SystemContext) -> None:
    section.run("systemctl", "list-unit-files", "--no-pager")


def _last_field(lines: list[str], marker: str) -> str | None:
    hits = grep(lines, marker)
    if not hits:
        return None
    # "Mon dd hh:mm:ss host systemd-journald[123]: System journal ..."
    return ":".join(hits[-1].split(":")[3:]).strip()


def persistent_journal(section: Section, ctx: SystemContext) -> None:
    section.echo("Persistent Journaling is configured")
    section.run("stat", "-c", "%A %U %G %n", "/var/log/journal")
    section.blank()
    boot = section.capture("journalctl", "-b", "--no-pager", sudo=True).lines()
    for marker in ("System journal", "Runtime journal"):
        line = _last_field(boot, marker)
        if line:
            section.echo(line)
    section.blank()
    section.echo("Journaled boots...")
    section.run("journalctl", "--list-boots", "--no-pager")
    section.blank()
    section.run("journalctl", "--disk-usage")


def rsyslog_analysis(section: Section, ctx: SystemContext) -> None:
    section.echo("This section lists where rsyslog.conf sends every kind of event.")
    section.echo("A selector selects all messages of equal or higher severity.  For example,")
    section.echo("news.err really means news.err, news.crit, news.alert, news.emerg.  And")
    section.echo("mail,uucp.alert means mail.alert, mail.emerg, uucp.alert, and uucp.emerg.")
    section.blank()
    section.echo("An = character before the level (as in news.=err) acts only on messages")
    section.echo("of exactly that level.")
    section.blank()

    registry = section.registry
    texts = [registry.read(RSYSLOG_CONF).stdout]
    texts += [registry.read(path).stdout for path in registry.glob("/etc/rsyslog.d/*.conf")]
    section.extend(rsyslog.describe(rsyslog.analyze("\n".join(texts))))


def rc_local(section: Section, ctx: SystemContext) -> None:
    section.cat("/etc/rc.local", active_only=True)


def localization(section: Section, ctx: SystemContext) -> None:
    values: dict[str, str] = {}
    for path in LOCALIZATION_FILES[:3]:
        values.update(parse_assignments(section.read(path).stdout))
    timezone = section.read("/etc/timezone").stdout.strip()
    section.echo(f"Language : {values.get('LANG', '')}")
    section.echo(f"KB Model : {values.get('XKBMODEL', '')}")
    section.echo(f"KB Layout: {values.get('XKBLAYOUT', '')}")
    section.echo(f"Char. Map: {values.get('CHARMAP', '')}")
    section.echo(f"Timezone : {timezone}")


INSPECTIONS: tuple[Inspection, ...] = (
    Inspection("dmesg-warnings", "DMESG - WARNINGS", GROUP, dmesg_warnings),
    Inspection("dmesg-failures", "DMESG - FAILURES", GROUP, dmesg_failures),
    Inspection("critical-chain", "SYSTEMD-ANALYZE CRITICAL-CHAIN", GROUP, critical_chain),
    Inspection("blame", "SYSTEMD-ANALYZE BLAME", GROUP, blame),
    Inspection("systemctl-status", "SYSTEMCTL STATUS", GROUP, systemctl_status),
    Inspection("unit-failures", "SYSTEMCTL UNIT FAILURES", GROUP, unit_failures),
    Inspection("unit-files", "SYSTEMCTL LIST-UNIT-FILES", GROUP, unit_files),
    Inspection(
        "journal", "PERSISTENT JOURNALING", GROUP, persistent_journal,
        requires=(file_exists("/var/log/journal"),),
    ),
    Inspection(
        "rsyslog", "RSYSLOG.CONF ANALYSIS", GROUP, rsyslog_analysis,
        requires=(file_exists(RSYSLOG_CONF),),
    ),
    Inspection("rc-local", "RC.LOCAL", GROUP, rc_local, requires=(file_exists("/etc/rc.local"),)),
    Inspection(
        "localization", "LOCALIZATION SETTINGS", GROUP, localization,
        requires=tuple(file_exists(path) for path in LOCALIZATION_FILES),
    ),
)
