"""
Network group — name resolution, firewall, interfaces, Wi-Fi and file sharing.
"""

from __future__ import annotations

import re

from system_info.core.context import SystemContext
from system_info.core.data.capabilities import (
    ETHTOOL,
    NFS_KERNEL_SERVER,
    NMAP,
    RPCBIND,
    SAMBA,
    file_exists,
    running,
)
from system_info.core.engine.formatting import active_lines, mask_secrets
from system_info.core.engine.section import Section
from system_info.core.models.inspection import Inspection

GROUP = "network"

WPA_SUPPLICANT_CONF = "/etc/wpa_supplicant/wpa_supplicant.conf"

_LINK_RE = re.compile(r"^\d+:\s+([^:@\s]+)")
_LINK_LOCAL_RE = re.compile(r"^[0-9a-f]{4}::", re.IGNORECASE)
_NMAP_KEEP = r"^PORT|^[1-9][0-9]"


def interfaces(link_output: list[str], prefix: str) -> list[str]:
    """Interface names from ``ip -s link`` that start with ``prefix``."""
    names = []
    for line in link_output:
        match = _LINK_RE.match(line)
        if match and re.fullmatch(rf"{prefix}\d+", match.group(1)):
            names.append(match.group(1))
    return names


def local_addresses(ifconfig_output: list[str]) -> tuple[list[str], list[str]]:
    """(IPv4, IPv6) addresses from ifconfig, without IPv6 link-local ones."""
    ipv4, ipv6 = [], []
    for line in ifconfig_output:
        words = line.split()
        if len(words) < 2:
            continue
        if words[0] == "inet":
            ipv4.append(words[1])
        elif words[0] == "inet6" and not _LINK_LOCAL_RE.match(words[1]):
            ipv6.append(words[1])
    return ipv4, ipv6


def _conf_file(path: str):
    def body(section: Section, ctx: SystemContext) -> None:
        section.cat(path, active_only=True)
    return body


def _tcpwrappers(path: str):
    def body(section: Section, ctx: SystemContext) -> None:
        result = section.read(path)
        if result.failed:
            section.not_available(path, result.error or "")
            return
        section.extend(active_lines(result.stdout) or ["file is empty"])
    return body


def ipv6_disabled(section: Section, ctx: SystemContext) -> None:
    section.echo("IPv6 has been disabled in cmdline.txt")


def route_ipv4(section: Section, ctx: SystemContext) -> None:
    section.run("route", "-4")


def route_ipv6(section: Section, ctx: SystemContext) -> None:
    section.run("route", "-6")


def network_adaptors(section: Section, ctx: SystemContext) -> None:
    section.run("lshw", "-class", "network", sudo=True)


def ethtool(section: Section, ctx: SystemContext) -> None:
    links = section.capture("ip", "-s", "link").lines()
    found = interfaces(links, "eth")
    if not found:
        section.echo("No ethernet interfaces found")
    for name in found:
        section.echo(f"Found {name}...")
        section.blank()
        section.run("ethtool", "-i", name, sudo=True)
        section.blank()
        section.run("ethtool", name, sudo=True)
        section.blank()


def ifconfig(section: Section, ctx: SystemContext) -> None:
    section.run("ifconfig")


def ip_neighbors(section: Section, ctx: SystemContext) -> None:
    section.run("ip", "neigh", exclude="FAILED")


def wpa_supplicant(section: Section, ctx: SystemContext) -> None:
    result = section.capture("cat", WPA_SUPPLICANT_CONF, sudo=True)
    if result.failed:
        section.not_available(WPA_SUPPLICANT_CONF, result.error or "")
        return
    lines = [line for line in result.lines() if line.strip()]
    section.extend(mask_secrets(lines) if section.settings.mask_secrets else lines)


def iwconfig(section: Section, ctx: SystemContext) -> None:
    links = section.capture("ip", "-s", "link").lines()
    wlans = [name for name in interfaces(links, "wlan") if name[-1] in "0123"]
    if not wlans:
        section.echo("No wireless interfaces found")
    for name in wlans:
        section.run("iwconfig", name)


def wifi_access_points(section: Section, ctx: SystemContext) -> None:
    result = section.capture("iwlist", "scan")
    lines = [line for line in result.lines() if line.strip() and "Unknown:" not in line]
    if not lines:
        section.not_available("iwlist scan", result.error or "no scan results")
        return
    section.extend(lines)


def netstat(section: Section, ctx: SystemContext) -> None:
    section.run("netstat", "-n")


def service_scan(section: Section, ctx: SystemContext) -> None:
    if not section.settings.scan_ports:
        section.echo("Service scan disabled by configuration (scan_ports: false)")
        return
    ipv4, ipv6 = local_addresses(section.capture("ifconfig").lines())
    for address in ipv4:
        section.sub_banner(f"IPV4: {address}")
        section.run("nmap", "-Pn", "-sV", "-T4", "-p", "1-65535", "--version-light", address, grep=_NMAP_KEEP)
        section.blank()
    for address in ipv6:
        section.sub_banner(f"IPV6: {address}")
        section.run("nmap", "-6", "-Pn", "-sV", "-T4", "-p", "1-65535", "--version-light", address, grep=_NMAP_KEEP)
        section.blank()


def rpcinfo(section: Section, ctx: SystemContext) -> None:
    section.run("rpcinfo", "localhost")


def nfs_exports(section: Section, ctx: SystemContext) -> None:
    section.run("showmount", "-e", "localhost")


def nfs_mounts(section: Section, ctx: SystemContext) -> None:
    mounts = section.capture("df", "-hT", "--type=nfs", "--type=nfs4")
    if not mounts.stdout:
        section.echo("No NFS shares mounted")
        return
    section.extend(mounts.lines())
    if section.has("nfsiostat"):
        section.blank()
        section.sub_banner("NFSIOSTAT")
        section.run("nfsiostat")


def smbstatus(section: Section, ctx: SystemContext) -> None:
    section.run("smbstatus", sudo=True)


def cifs_mounts(section: Section, ctx: SystemContext) -> None:
    mounts = section.capture("df", "-hT", "--type=cifs")
    section.extend(mounts.lines() or ["No remote CIFS/Windows shares mounted"])


_RPCBIND_RUNNING = running("rpcbind")

INSPECTIONS: tuple[Inspection, ...] = (
    Inspection(
        "ipv6-disabled", "IPV6 DISABLED", GROUP, ipv6_disabled,
        applies=lambda ctx: "ipv6.disable=1" in ctx.cmdline,
    ),
    Inspection("resolv-conf", "RESOLV.CONF", GROUP, _conf_file("/etc/resolv.conf"),
               requires=(file_exists("/etc/resolv.conf"),)),
    Inspection("hosts", "HOSTS FILE", GROUP, _conf_file("/etc/hosts"),
               requires=(file_exists("/etc/hosts"),)),
    Inspection("networks", "NETWORKS FILE", GROUP, _conf_file("/etc/networks"),
               requires=(file_exists("/etc/networks"),)),
    Inspection("iptables", "IPV4 FIREWALL RULES", GROUP, _conf_file("/etc/iptables.up.rules"),
               requires=(file_exists("/etc/iptables.up.rules"),)),
    Inspection("ip6tables", "IPV6 FIREWALL RULES", GROUP, _conf_file("/etc/ip6tables.up.rules"),
               requires=(file_exists("/etc/ip6tables.up.rules"),)),
    Inspection("hosts-deny", "TCPWRAPPERS: HOSTS.DENY", GROUP, _tcpwrappers("/etc/hosts.deny"),
               requires=(file_exists("/etc/hosts.deny"),)),
    Inspection("hosts-allow", "TCPWRAPPERS: HOSTS.ALLOW", GROUP, _tcpwrappers("/etc/hosts.allow"),
               requires=(file_exists("/etc/hosts.allow"),)),
    Inspection("route-ipv4", "ROUTE TABLE - IPV4", GROUP, route_ipv4),
    Inspection("route-ipv6", "ROUTE TABLE - IPV6", GROUP, route_ipv6),
    Inspection("adaptors", "NETWORK ADAPTORS", GROUP, network_adaptors),
    Inspection("ethtool", "ETHTOOL", GROUP, ethtool, requires=(ETHTOOL,), supplemental=True),
    Inspection("ifconfig", "IFCONFIG", GROUP, ifconfig),
    Inspection("neighbors", "IP NEIGHBORS (ARP CACHE)", GROUP, ip_neighbors),
    Inspection(
        "wpa-supplicant", "WPA_SUPPLICANT FILE (Passwords will not be displayed)", GROUP, wpa_supplicant,
        requires=(file_exists(WPA_SUPPLICANT_CONF),),
    ),
    Inspection("iwconfig", "IWCONFIG", GROUP, iwconfig),
    Inspection("wifi-scan", "VISIBLE WIFI ACCESS POINTS", GROUP, wifi_access_points),
    Inspection("netstat", "NETSTAT", GROUP, netstat),
    Inspection(
        "service-scan", "SCANNING FOR LISTENING SERVICES", GROUP, service_scan,
        requires=(NMAP,), supplemental=True,
    ),
    Inspection(
        "rpcinfo", "PORTMAPPER - RPCINFO", GROUP, rpcinfo,
        requires=(_RPCBIND_RUNNING, RPCBIND), supplemental=True,
    ),
    Inspection(
        "nfs-exports", "EXPORTED NFS DIRS", GROUP, nfs_exports,
        requires=(_RPCBIND_RUNNING, NFS_KERNEL_SERVER), supplemental=True,
    ),
    Inspection(
        "nfs-mounts", "MOUNTED NFS DIRS", GROUP, nfs_mounts,
        requires=(_RPCBIND_RUNNING,), supplemental=True,
    ),
    Inspection(
        "smbstatus", "SMBSTATUS - REMOTE SYSTEMS CONNECTED TO US", GROUP, smbstatus,
        requires=(running("smbd"), SAMBA), supplemental=True,
    ),
    Inspection("cifs-mounts", "MOUNTED CIFS DIRS", GROUP, cifs_mounts),
)
