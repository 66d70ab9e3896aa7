"""Building blocks for nftables filter rules."""

from __future__ import annotations

import enum
import ipaddress
import itertools
import sys
from dataclasses import dataclass
from typing import Any, Iterable, Union

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


class MetaKey(enum.IntEnum):
    """Packet meta information keys."""

    IIF = 4
    OIF = 5
    IIFNAME = 6
    OIFNAME = 7
    NFPROTO = 15
    L4PROTO = 16
    IIFGROUP = 21
    OIFGROUP = 22


class CmpOp(enum.IntEnum):
    """Comparison operators."""

    EQ = 0
    NEQ = 1
    LT = 2
    LTE = 3
    GT = 4
    GTE = 5


class PayloadBase(enum.IntEnum):
    """Header a payload offset is relative to."""

    LL_HEADER = 0
    NETWORK_HEADER = 1
    TRANSPORT_HEADER = 2


class VerdictKind(enum.IntEnum):
    """Rule verdicts."""

    RETURN = -5
    GOTO = -4
    JUMP = -3
    BREAK = -2
    CONTINUE = -1
    DROP = 0
    ACCEPT = 1
    STOLEN = 2
    QUEUE = 3
    REPEAT = 4
    STOP = 5


@dataclass(frozen=True)
class Meta:
    """Load packet meta information into a register."""

    key: MetaKey
    register: int


@dataclass(frozen=True)
class Cmp:
    """Compare a register against data."""

    op: CmpOp
    register: int
    data: bytes


@dataclass(frozen=True)
class Payload:
    """Load bytes of a packet header into a register."""

    dest_register: int
    base: PayloadBase
    offset: int
    length: int


@dataclass(frozen=True)
class Range:
    """Match a register against an inclusive range."""

    op: CmpOp
    register: int
    from_data: bytes
    to_data: bytes


@dataclass(frozen=True)
class Verdict:
    """Terminate rule evaluation with a verdict."""

    kind: VerdictKind


Expr = Union[Meta, Cmp, Payload, Range, Verdict]
Statement = tuple  # a tuple of one or more expressions

DROP: Statement = (Verdict(VerdictKind.DROP),)


@dataclass(frozen=True)
class FilterRule:
    """A list of expressions installed at a filter hook."""

    hook: Any
    exprs: tuple


def filter_rule(hook: Any, *args: Iterable[Expr]) -> FilterRule:
    """Combine statements into one rule for the given hook."""
    return FilterRule(hook=hook, exprs=tuple(itertools.chain.from_iterable(args)))


def _format(fmts: str, args: tuple) -> str:
    return fmts % args if args else fmts


def _uint(value: int, size: int, byteorder: str) -> bytes:
    if not 0 <= value < 1 << (8 * size):
        raise ValueError(f"value {value} out of range for {8 * size}-bit unsigned integer")
    return value.to_bytes(size, byteorder)


def _cstring(name: str) -> bytes:
    raw = (name + "\x00").encode()[:16]
    return raw.ljust(16, b"\x00")


def _interface_name(key: MetaKey, name: str) -> Statement:
    return (Meta(key, 1), Cmp(CmpOp.EQ, 1, _cstring(name)))


def _interface_index_group(key: MetaKey, idx: int) -> Statement:
    return (Meta(key, 1), Cmp(CmpOp.EQ, 1, _uint(idx, 4, "big")))


def output_interface_name(name: str) -> Statement:
    return _interface_name(MetaKey.OIFNAME, name)


def input_interface_name(name: str) -> Statement:
    return _interface_name(MetaKey.IIFNAME, name)


def output_interface_index(idx: int) -> Statement:
    return _interface_index_group(MetaKey.OIF, idx)


def input_interface_index(idx: int) -> Statement:
    return _interface_index_group(MetaKey.IIF, idx)


def output_interface_group(idx: int) -> Statement:
    return _interface_index_group(MetaKey.OIFGROUP, idx)


def input_interface_group(idx: int) -> Statement:
    return _interface_index_group(MetaKey.IIFGROUP, idx)


def protocol(proto: int) -> Statement:
    """Match the network layer protocol family, e.g. socket.AF_INET."""
    return (
        Meta(MetaKey.NFPROTO, 1),
        Cmp(CmpOp.EQ, 1, _uint(proto & 0xFFFFFFFF, 4, sys.byteorder)),
    )


def transport_protocol(proto: int) -> Statement:
    """Match the transport protocol number, e.g. socket.IPPROTO_ICMP."""
    return (Meta(MetaKey.L4PROTO, 1), Cmp(CmpOp.EQ, 1, bytes([proto & 0xFF])))


def _as_network(network: Any) -> IPNetwork:
    if isinstance(network, (ipaddress.IPv4Interface, ipaddress.IPv6Interface)):
        return network.network
    return ipaddress.ip_network(network, strict=False)


def _network(is_source: bool, network: Any) -> Statement:
    net = _as_network(network)
    if net.version == 4:
        offset = 12 if is_source else 16
    else:
        offset = 8 if is_source else 24
    return (
        Payload(
            dest_register=1,
            base=PayloadBase.NETWORK_HEADER,
            offset=offset,
            length=net.max_prefixlen // 8,
        ),
        Range(
            op=CmpOp.EQ,
            register=1,
            from_data=net.network_address.packed,
            to_data=net.broadcast_address.packed,
        ),
    )


def source(network: Any) -> Statement:
    return _network(True, network)


def destination(network: Any) -> Statement:
    return _network(False, network)


def _parse_cidr(fmts: str, args: tuple) -> IPNetwork:
    text = _format(fmts, args)
    if "/" not in text:
        raise ValueError(f"failed to parse CIDR '{text}': missing prefix length")
    try:
        return ipaddress.ip_network(text, strict=False)
    except ValueError as exc:
        raise ValueError(f"failed to parse CIDR '{text}': {exc}") from exc


def source_ip(fmts: str, *args) -> Statement:
    return source(_parse_cidr(fmts, args))


def destination_ip(fmts: str, *args) -> Statement:
    return destination(_parse_cidr(fmts, args))


def _ipv4_network(a: int, b: int, c: int, d: int, m: int) -> ipaddress.IPv4Network:
    return ipaddress.IPv4Network((ipaddress.IPv4Address(bytes((a, b, c, d))), m), strict=False)


def source_ipv4(a: int, b: int, c: int, d: int, m: int) -> Statement:
    return source(_ipv4_network(a, b, c, d, m))


def destination_ipv4(a: int, b: int, c: int, d: int, m: int) -> Statement:
    return destination(_ipv4_network(a, b, c, d, m))


def _transport_port(offset: int) -> Payload:
    return Payload(dest_register=1, base=PayloadBase.TRANSPORT_HEADER, offset=offset, length=2)


def _port(offset: int, port_num: int) -> Statement:
    return (_transport_port(offset), Cmp(CmpOp.EQ, 1, _uint(port_num, 2, "big")))


def _port_range(offset: int, min_port: int, max_port: int) -> Statement:
    return (
        _transport_port(offset),
        Cmp(CmpOp.GTE, 1, _uint(min_port, 2, "big")),
        Cmp(CmpOp.LTE, 1, _uint(max_port, 2, "big")),
    )


def source_port(port_num: int) -> Statement:
    return _port(0, port_num)


def destination_port(port_num: int) -> Statement:
    return _port(2, port_num)


def source_port_range(min_port: int, max_port: int) -> Statement:
    return _port_range(0, min_port, max_port)


def destination_port_range(min_port: int, max_port: int) -> Statement:
    return _port_range(2, min_port, max_port)