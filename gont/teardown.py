"""Enumerate and remove networks and nodes left behind on disk."""

from __future__ import annotations

import os
import random
import shutil
import subprocess
import tempfile
from pathlib import Path

from gont.names import NAMES, get_random_name

BASE_VAR_DIR = "/run/gont"
BASE_TMP_DIR = os.path.join(tempfile.gettempdir(), "gont")

_NETNS_DIR = "/var/run/netns"
_NAME_ATTEMPTS = 32


def _sorted_subdirs(path: Path) -> list[str]:
    try:
        entries = list(path.iterdir())
    except OSError:
        return []
    return sorted(entry.name for entry in entries if entry.is_dir())


def network_names(var_dir: str = BASE_VAR_DIR) -> list[str]:
    """Return the sorted names of all networks found in ``var_dir``."""
    return _sorted_subdirs(Path(var_dir))


def node_names(network: str, var_dir: str = BASE_VAR_DIR) -> list[str]:
    """Return the sorted names of all nodes of ``network``."""
    return _sorted_subdirs(Path(var_dir) / network / "nodes")


def generate_network_name(var_dir: str = BASE_VAR_DIR) -> str:
    """Pick a name not used by an existing network.

    After a number of failed attempts a numbered name is returned,
    which is not checked for uniqueness.
    """
    existing = set(network_names(var_dir))

    for _ in range(_NAME_ATTEMPTS):
        candidate = get_random_name()
        if candidate not in existing:
            return candidate

    return f"{random.choice(NAMES)}{random.randint(1, 128)}"


def teardown_all_networks(var_dir: str = BASE_VAR_DIR, tmp_dir: str = BASE_TMP_DIR) -> None:
    """Tear down every network found in ``var_dir``."""
    for name in network_names(var_dir):
        try:
            teardown_network(name, var_dir, tmp_dir)
        except Exception as exc:
            raise RuntimeError(f"failed to teardown network '{name}': {exc}") from exc


def teardown_network(network: str, var_dir: str = BASE_VAR_DIR, tmp_dir: str = BASE_TMP_DIR) -> None:
    """Tear down all nodes of ``network`` and delete its directories."""
    network_var_path = Path(var_dir) / network
    network_tmp_path = Path(tmp_dir) / network
    nodes_var_path = network_var_path / "nodes"

    try:
        entries = list(nodes_var_path.iterdir())
    except OSError as exc:
        raise OSError(exc.errno, f"failed to read nodes dir: {exc.strerror}", str(nodes_var_path)) from exc

    for entry in entries:
        if not entry.is_dir():
            continue
        try:
            teardown_node(network, entry.name, var_dir)
        except Exception as exc:
            raise RuntimeError(f"failed to teardown node '{entry.name}': {exc}") from exc

    for path in (network_var_path, network_tmp_path):
        _remove_all(path)


def teardown_node(network: str, node: str, var_dir: str = BASE_VAR_DIR) -> None:
    """Release the network namespace of a node and delete its directory."""
    node_path = Path(var_dir) / network / "nodes" / node
    ns_mount = node_path / "ns" / "net"

    if os.path.ismount(ns_mount):
        try:
            _unmount(ns_mount)
        except OSError as exc:
            raise OSError(f"failed to unmount netns of node '{node}': {exc}") from exc

    try:
        _delete_named_netns(f"gont-{network}-{node}")
    except OSError as exc:
        raise OSError(f"failed to delete named network namespace: {exc}") from exc

    _remove_all(node_path)


def _remove_all(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        try:
            path.unlink()
        except FileNotFoundError:
            pass


def _unmount(path: Path) -> None:
    result = subprocess.run(["umount", str(path)], capture_output=True, text=True, check=False)
    if result.returncode != 0:
        raise OSError(result.stderr.strip() or f"umount exited with {result.returncode}")


def _delete_named_netns(name: str) -> None:
    path = Path(_NETNS_DIR) / name
    if os.path.ismount(path):
        _unmount(path)
    try:
        path.unlink()
    except FileNotFoundError:
        pass