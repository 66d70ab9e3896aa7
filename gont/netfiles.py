"""Configuration files which are bind mounted into the nodes of a network."""

from __future__ import annotations

import ipaddress
from pathlib import Path
from typing import Any, Iterable, TextIO

_LOOPBACK_HOSTS = {
    "127.0.0.1": ["localhost", "localhost.localdomain", "localhost4", "localhost4.localdomain4"],
    "::1": ["localhost", "localhost.localdomain", "localhost6", "localhost6.localdomain6"],
}

_HOSTS_HEADER = "# Autogenerated hosts file by Gont"
_NSSWITCH_HEADER = "# Gont's patched nsswitch.conf"
_UNWANTED_HOST_SOURCES = ("resolve", "mymachines", "myhostname")


def _address(value: Any) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    if isinstance(value, (ipaddress.IPv4Interface, ipaddress.IPv6Interface)):
        return value.ip
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return value
    text = str(value)
    if "/" in text:
        return ipaddress.ip_interface(text).ip
    return ipaddress.ip_address(text)


def write_hosts_file(stream: TextIO, entries: Iterable[tuple[str, str, Any]]) -> None:
    """Write a hosts file.

    ``entries`` holds (host, interface, address) tuples. Each address is
    listed under the host name and under ``<host>-<interface>``.
    """
    hosts: dict[str, list[str]] = {addr: list(names) for addr, names in _LOOPBACK_HOSTS.items()}

    def add(name: str, addr: str) -> None:
        names = hosts.setdefault(addr, [])
        if name not in names:
            names.append(name)

    for host, interface, address in entries:
        ip = _address(address)
        if ip.is_loopback:
            continue
        addr = str(ip)
        add(host, addr)
        add(f"{host}-{interface}", addr)

    stream.write(_HOSTS_HEADER + "\n")
    for addr, names in hosts.items():
        stream.write(f"{addr} {' '.join(names)}\n")


def generate_hosts_file(var_path: str, entries: Iterable[tuple[str, str, Any]]) -> Path:
    """Write the hosts file to ``<var_path>/files/etc/hosts`` and return its path."""
    path = Path(var_path) / "files" / "etc" / "hosts"
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as stream:
        write_hosts_file(stream, entries)
    return path


def read_nsswitch_config(path: str) -> dict[str, list[str]]:
    """Parse an nsswitch.conf file into a mapping from database to sources."""
    config: dict[str, list[str]] = {}
    with open(path, encoding="utf-8") as stream:
        for line in stream:
            if line.startswith("#"):
                continue
            db, sep, sources = line.partition(":")
            if not sep or not db.strip():
                continue
            config[db.strip()] = sources.split()
    return config


def write_nsswitch_config(path: str, config: dict[str, list[str]]) -> None:
    """Write an nsswitch.conf file from a mapping of database to sources."""
    with open(path, "w", encoding="utf-8") as stream:
        stream.write(_NSSWITCH_HEADER + "\n")
        for db, sources in config.items():
            stream.write(f"{db}: {' '.join(sources)}\n")


def _without_unwanted_sources(sources: list[str]) -> list[str]:
    kept: list[str] = []
    dropping_actions = False
    for source in sources:
        if source.startswith(_UNWANTED_HOST_SOURCES):
            dropping_actions = True
            continue
        if source.startswith("[") and dropping_actions:
            continue
        dropping_actions = False
        kept.append(source)
    return kept


def patch_nsswitch_config(source: str = "/etc/nsswitch.conf", var_path: str = ".") -> dict[str, list[str]]:
    """Write a copy of ``source`` whose hosts database avoids systemd-resolved.

    The copy is placed at ``<var_path>/files/etc/nsswitch.conf``; the
    patched configuration is returned.
    """
    config = read_nsswitch_config(source)
    if "hosts" in config:
        config["hosts"] = _without_unwanted_sources(config["hosts"])

    path = Path(var_path) / "files" / "etc" / "nsswitch.conf"
    path.parent.mkdir(parents=True, exist_ok=True)
    write_nsswitch_config(str(path), config)
    return config


def hide_nscd_socket(var_path: str) -> Path:
    """Create the empty file which is mounted over the NSCD socket."""
    path = Path(var_path) / "files" / "var" / "run" / "nscd" / "socket"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch()
    return path