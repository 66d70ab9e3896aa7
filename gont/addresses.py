"""Interface addresses, routes and helpers for option lists."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Iterable, TypeVar, Union

T = TypeVar("T")

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]
IPInterface = Union[ipaddress.IPv4Interface, ipaddress.IPv6Interface]

DEFAULT_IPV4_MASK = ipaddress.IPv4Network("0.0.0.0/0")
DEFAULT_IPV6_MASK = ipaddress.IPv6Network("::/0")


def _format(fmts: str, args: tuple) -> str:
    return fmts % args if args else fmts


@dataclass(frozen=True)
class Route:
    """A route to a destination network via a gateway."""

    dst: IPNetwork
    gw: IPAddress


def customize(opts: Iterable[T], *args: T) -> list[T]:
    """Return a new list with the base options followed by the extra ones."""
    return [*opts, *args]


def address_ipv4(a: int, b: int, c: int, d: int, m: int) -> ipaddress.IPv4Interface:
    """Build an IPv4 interface address from its octets and prefix length."""
    return ipaddress.IPv4Interface((ipaddress.IPv4Address(bytes((a, b, c, d))), m))


def address_ip(fmts: str, *args) -> IPInterface:
    """Parse a CIDR address such as ``fc::1/64``, formatted with ``args``."""
    text = _format(fmts, args)
    if "/" not in text:
        raise ValueError(f"failed to parse IP address '{text}': missing prefix length")
    try:
        return ipaddress.ip_interface(text)
    except ValueError as exc:
        raise ValueError(f"failed to parse IP address '{text}': {exc}") from exc


def route_net(network: IPNetwork, gw: IPAddress) -> Route:
    """Build a route to ``network`` via gateway ``gw``."""
    return Route(dst=network, gw=gw)


def default_gateway_ipv4(a: int, b: int, c: int, d: int) -> Route:
    """Build an IPv4 default route via the given gateway octets."""
    return route_net(DEFAULT_IPV4_MASK, ipaddress.IPv4Address(bytes((a, b, c, d))))


def default_gateway_ip(fmts: str, *args) -> Route:
    """Build a default route via the gateway address, IPv4 or IPv6."""
    text = _format(fmts, args)
    try:
        gw = ipaddress.ip_address(text)
    except ValueError as exc:
        raise ValueError(f"failed to parse gateway address '{text}'") from exc

    if isinstance(gw, ipaddress.IPv6Address) and gw.ipv4_mapped is not None:
        gw = gw.ipv4_mapped

    if isinstance(gw, ipaddress.IPv4Address):
        return route_net(DEFAULT_IPV4_MASK, gw)
    return route_net(DEFAULT_IPV6_MASK, gw)