"""Addresses, nftables filters, traffic-control settings, trace events and network state files."""

__version__ = "2.0.0"