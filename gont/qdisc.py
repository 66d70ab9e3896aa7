"""Traffic control queuing disciplines: network emulation and token bucket."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

_UINT32 = 0xFFFFFFFF
_MICROSECOND = timedelta(microseconds=1)


@dataclass
class Netem:
    """Network emulation attributes; times are in microseconds."""

    latency: int = 0
    delay_corr: float = 0.0
    limit: int = 0
    loss: float = 0.0
    loss_corr: float = 0.0
    gap: int = 0
    duplicate: float = 0.0
    duplicate_corr: float = 0.0
    jitter: int = 0
    reorder_prob: float = 0.0
    reorder_corr: float = 0.0
    corrupt_prob: float = 0.0
    corrupt_corr: float = 0.0
    rate64: int = 0


@dataclass
class Tbf:
    """Token bucket filter attributes."""

    rate: int = 0
    limit: int = 0
    buffer: int = 0
    peakrate: int = 0
    minburst: int = 0


def with_netem(*args) -> Netem:
    """Build Netem attributes from options applied in order."""
    netem = Netem()
    for opt in args:
        opt.apply_netem(netem)
    return netem


def with_tbf(*args) -> Tbf:
    """Build Tbf attributes from options applied in order."""
    tbf = Tbf()
    for opt in args:
        opt.apply_tbf(tbf)
    return tbf


@dataclass(frozen=True)
class Probability:
    """A probability in percent with its correlation."""

    probability: float = 0.0
    correlation: float = 0.0


def _micros(duration: timedelta) -> int:
    return (duration // _MICROSECOND) & _UINT32


@dataclass(frozen=True)
class Latency:
    duration: timedelta

    def apply_netem(self, netem: Netem) -> None:
        netem.latency = _micros(self.duration)


@dataclass(frozen=True)
class Jitter:
    duration: timedelta

    def apply_netem(self, netem: Netem) -> None:
        netem.jitter = _micros(self.duration)


@dataclass(frozen=True)
class Gap:
    value: int

    def apply_netem(self, netem: Netem) -> None:
        netem.gap = self.value & _UINT32


@dataclass(frozen=True)
class Loss(Probability):
    def apply_netem(self, netem: Netem) -> None:
        netem.loss = self.probability
        netem.loss_corr = self.correlation


@dataclass(frozen=True)
class Reordering(Probability):
    def apply_netem(self, netem: Netem) -> None:
        netem.reorder_prob = self.probability
        netem.reorder_corr = self.correlation


@dataclass(frozen=True)
class Duplicate(Probability):
    def apply_netem(self, netem: Netem) -> None:
        netem.duplicate = self.probability
        netem.duplicate_corr = self.correlation


@dataclass(frozen=True)
class Corruption(Probability):
    def apply_netem(self, netem: Netem) -> None:
        netem.corrupt_prob = self.probability
        netem.corrupt_corr = self.correlation


@dataclass(frozen=True)
class LimitNetem:
    value: int

    def apply_netem(self, netem: Netem) -> None:
        netem.limit = self.value & _UINT32


@dataclass(frozen=True)
class Rate:
    value: int

    def apply_tbf(self, tbf: Tbf) -> None:
        tbf.rate = self.value


@dataclass(frozen=True)
class Buffer:
    value: int

    def apply_tbf(self, tbf: Tbf) -> None:
        tbf.buffer = self.value & _UINT32


@dataclass(frozen=True)
class PeakRate:
    value: int

    def apply_tbf(self, tbf: Tbf) -> None:
        tbf.peakrate = self.value


@dataclass(frozen=True)
class MinBurst:
    value: int

    def apply_tbf(self, tbf: Tbf) -> None:
        tbf.minburst = self.value & _UINT32


@dataclass(frozen=True)
class LimitTbf:
    value: int

    def apply_tbf(self, tbf: Tbf) -> None:
        tbf.limit = self.value & _UINT32