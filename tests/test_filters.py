import ipaddress
import socket
import sys

import pytest

from gont.filters import (
    DROP,
    Cmp,
    CmpOp,
    FilterRule,
    Meta,
    MetaKey,
    PayloadBase,
    Range,
    Verdict,
    VerdictKind,
    destination,
    destination_ip,
    destination_ipv4,
    destination_port,
    destination_port_range,
    filter_rule,
    input_interface_group,
    input_interface_index,
    input_interface_name,
    output_interface_index,
    output_interface_name,
    protocol,
    source,
    source_ip,
    source_ipv4,
    source_port,
    source_port_range,
    transport_protocol,
)


def test_drop_statement():
    assert DROP == (Verdict(VerdictKind.DROP),)


def test_output_interface_name_is_padded_cstring():
    meta, cmp = output_interface_name("veth0")
    assert meta == Meta(MetaKey.OIFNAME, 1)
    assert cmp.op == CmpOp.EQ
    assert len(cmp.data) == 16
    assert cmp.data.startswith(b"veth0\x00")
    assert set(cmp.data[5:]) == {0}


def test_long_interface_name_truncated():
    _, cmp = input_interface_name("a" * 20)
    assert cmp.data == b"a" * 16


def test_interface_index_big_endian():
    meta, cmp = input_interface_index(7)
    assert meta.key == MetaKey.IIF
    assert int.from_bytes(cmp.data, "big") == 7
    assert len(cmp.data) == 4
    assert output_interface_index(7)[0].key == MetaKey.OIF


def test_interface_group():
    meta, cmp = input_interface_group(1234)
    assert meta.key == MetaKey.IIFGROUP
    assert int.from_bytes(cmp.data, "big") == 1234


def test_protocol_native_endian():
    meta, cmp = protocol(socket.AF_INET6)
    assert meta.key == MetaKey.NFPROTO
    assert int.from_bytes(cmp.data, sys.byteorder) == socket.AF_INET6


def test_transport_protocol_single_byte():
    meta, cmp = transport_protocol(socket.IPPROTO_ICMP)
    assert meta.key == MetaKey.L4PROTO
    assert cmp.data == bytes([socket.IPPROTO_ICMP])


def _check_range(stmt, net, offset):
    payload, rng = stmt
    assert payload.base == PayloadBase.NETWORK_HEADER
    assert payload.offset == offset
    assert payload.length == len(net.network_address.packed)
    assert isinstance(rng, Range)
    assert rng.from_data == net[0].packed
    assert rng.to_data == net[-1].packed


def test_source_ipv4_network():
    net = ipaddress.ip_network("10.0.3.0/24")
    _check_range(source_ip("10.0.3.0/24"), net, 12)
    _check_range(destination(net), net, 16)


def test_source_ipv6_network():
    net = ipaddress.ip_network("fc00:0:0:3::/64")
    _check_range(source_ip("fc00:0:0:3::1/64"), net, 8)
    _check_range(destination_ip("fc00:0:0:%d::1/64", 3), net, 24)


def test_source_ipv4_octets_equals_parsed():
    assert source_ipv4(10, 0, 3, 1, 24) == source("10.0.3.0/24")
    assert destination_ipv4(10, 0, 3, 1, 24) == destination_ip("10.0.3.1/24")


@pytest.mark.parametrize("text", ["10.0.3.0", "garbage/8"])
def test_source_ip_invalid(text):
    with pytest.raises(ValueError):
        source_ip(text)


def test_ports():
    payload, cmp = source_port(443)
    assert payload.base == PayloadBase.TRANSPORT_HEADER
    assert (payload.offset, payload.length) == (0, 2)
    assert int.from_bytes(cmp.data, "big") == 443
    assert destination_port(53)[0].offset == 2


def test_port_ranges():
    payload, low, high = destination_port_range(1000, 2000)
    assert payload.offset == 2
    assert low.op == CmpOp.GTE and int.from_bytes(low.data, "big") == 1000
    assert high.op == CmpOp.LTE and int.from_bytes(high.data, "big") == 2000
    assert source_port_range(1, 2)[0].offset == 0


@pytest.mark.parametrize("port", [-1, 65536])
def test_port_out_of_range(port):
    with pytest.raises(ValueError):
        source_port(port)


def test_filter_rule_concatenates():
    stmts = [protocol(socket.AF_INET), transport_protocol(socket.IPPROTO_ICMP), source_ip("10.0.3.0/24"), DROP]
    rule = filter_rule("input", *stmts)
    assert isinstance(rule, FilterRule)
    assert rule.hook == "input"
    assert len(rule.exprs) == sum(len(s) for s in stmts)
    assert rule.exprs[-1] == Verdict(VerdictKind.DROP)
    assert isinstance(rule.exprs[1], Cmp)