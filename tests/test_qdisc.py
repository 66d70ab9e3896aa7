from datetime import timedelta

from gont.qdisc import (
    Buffer,
    Corruption,
    Duplicate,
    Gap,
    Jitter,
    Latency,
    LimitNetem,
    LimitTbf,
    Loss,
    MinBurst,
    Netem,
    PeakRate,
    Probability,
    Rate,
    Reordering,
    Tbf,
    with_netem,
    with_tbf,
)


def test_empty_netem_is_default():
    assert with_netem() == Netem()
    assert with_tbf() == Tbf()


def test_latency_and_jitter_in_microseconds():
    netem = with_netem(
        Latency(timedelta(microseconds=1500)),
        Jitter(timedelta(microseconds=250)),
    )
    assert netem.latency == 1500
    assert netem.jitter == 250


def test_latency_sub_microsecond_truncates():
    netem = with_netem(Latency(timedelta(microseconds=0.4)))
    assert netem.latency == 0


def test_loss_probability():
    netem = with_netem(Loss(probability=10.0))
    assert netem.loss == 10.0
    assert netem.loss_corr == 0.0


def test_probability_options():
    netem = with_netem(
        Duplicate(probability=50.0, correlation=5.0),
        Reordering(probability=20.0, correlation=2.0),
        Corruption(probability=1.0, correlation=0.5),
    )
    assert (netem.duplicate, netem.duplicate_corr) == (50.0, 5.0)
    assert (netem.reorder_prob, netem.reorder_corr) == (20.0, 2.0)
    assert (netem.corrupt_prob, netem.corrupt_corr) == (1.0, 0.5)


def test_probability_subclasses_share_fields():
    loss = Loss(probability=3.0, correlation=1.0)
    assert isinstance(loss, Probability)
    assert (loss.probability, loss.correlation) == (3.0, 1.0)


def test_gap_and_limit():
    netem = with_netem(Gap(5), LimitNetem(1000))
    assert netem.gap == 5
    assert netem.limit == 1000


def test_later_options_override():
    netem = with_netem(Gap(1), Gap(9))
    assert netem.gap == 9


def test_tbf_options():
    tbf = with_tbf(Rate(1000000), Buffer(2000), PeakRate(3000000), MinBurst(1500), LimitTbf(4000))
    assert tbf == Tbf(rate=1000000, limit=4000, buffer=2000, peakrate=3000000, minburst=1500)


def test_options_do_not_share_state():
    first = with_netem(Gap(3))
    second = with_netem()
    assert first.gap == 3
    assert second.gap == 0