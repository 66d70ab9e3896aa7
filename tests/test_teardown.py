import re

import pytest

from gont.names import NAMES
from gont.teardown import (
    generate_network_name,
    network_names,
    node_names,
    teardown_all_networks,
    teardown_network,
    teardown_node,
)


def _make_network(var_dir, name, nodes=()):
    nodes_dir = var_dir / name / "nodes"
    nodes_dir.mkdir(parents=True)
    for node in nodes:
        (nodes_dir / node).mkdir()
    return var_dir / name


def test_network_names_sorted_dirs_only(tmp_path):
    (tmp_path / "b").mkdir()
    (tmp_path / "a").mkdir()
    (tmp_path / "c").write_text("not a network")

    assert network_names(str(tmp_path)) == ["a", "b"]


def test_network_names_missing_dir(tmp_path):
    assert network_names(str(tmp_path / "missing")) == []


def test_node_names(tmp_path):
    _make_network(tmp_path, "net", nodes=["h2", "h1"])
    (tmp_path / "net" / "nodes" / "file").write_text("")

    assert node_names("net", str(tmp_path)) == ["h1", "h2"]
    assert node_names("other", str(tmp_path)) == []


def test_generate_network_name_is_free(tmp_path):
    name = generate_network_name(str(tmp_path))

    assert name in NAMES


def test_generated_name_is_listed_once_created(tmp_path):
    name = generate_network_name(str(tmp_path))
    _make_network(tmp_path, name)

    assert name in network_names(str(tmp_path))


def test_generate_network_name_avoids_existing(tmp_path):
    taken = NAMES[0]
    (tmp_path / taken).mkdir()

    results = {generate_network_name(str(tmp_path)) for _ in range(20)}

    assert taken not in results


def test_generate_network_name_fallback_when_all_taken(tmp_path):
    for name in NAMES:
        (tmp_path / name).mkdir()

    name = generate_network_name(str(tmp_path))

    match = re.fullmatch(r"([a-z-]+)(\d+)", name)
    assert match is not None
    assert match.group(1) in NAMES
    assert 1 <= int(match.group(2)) <= 128


def test_teardown_network_removes_directories(tmp_path):
    var_dir = tmp_path / "var"
    tmp_dir = tmp_path / "tmp"
    net = _make_network(var_dir, "gont-test-net", nodes=["h1", "sw"])
    (net / "nodes" / "stray").write_text("")
    (tmp_dir / "gont-test-net").mkdir(parents=True)

    teardown_network("gont-test-net", str(var_dir), str(tmp_dir))

    assert not net.exists()
    assert not (tmp_dir / "gont-test-net").exists()
    assert network_names(str(var_dir)) == []


def test_teardown_network_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        teardown_network("absent", str(tmp_path), str(tmp_path))


def test_teardown_node_removes_node_dir(tmp_path):
    _make_network(tmp_path, "gont-test-net", nodes=["h1", "h2"])

    teardown_node("gont-test-net", "h1", str(tmp_path))

    assert node_names("gont-test-net", str(tmp_path)) == ["h2"]


def test_teardown_all_networks(tmp_path):
    var_dir = tmp_path / "var"
    tmp_dir = tmp_path / "tmp"
    _make_network(var_dir, "gont-test-a", nodes=["h1"])
    _make_network(var_dir, "gont-test-b")

    teardown_all_networks(str(var_dir), str(tmp_dir))

    assert network_names(str(var_dir)) == []


def test_teardown_all_networks_reports_broken_network(tmp_path):
    (tmp_path / "broken").mkdir()

    with pytest.raises(RuntimeError, match="broken"):
        teardown_all_networks(str(tmp_path), str(tmp_path / "tmp"))