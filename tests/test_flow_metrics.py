import math

import pytest

from conftest import make_record
from smartcity.flow_metrics import derive_metrics


def test_typical_flow():
    metrics = derive_metrics(make_record())
    assert metrics.duration == pytest.approx(80.0)
    assert metrics.throughput == pytest.approx(25600 * 8 / 80.0)
    assert metrics.packet_loss == 0.0
    assert metrics.mean_delay == pytest.approx(0.001)
    assert metrics.mean_jitter == pytest.approx(0.002 / 49)
    assert not metrics.timestamps_inconsistent


def test_zero_duration_has_zero_throughput():
    metrics = derive_metrics(make_record(first_tx=5.0, last_rx=5.0))
    assert metrics.duration == 0.0
    assert metrics.throughput == 0.0


def test_nothing_sent():
    metrics = derive_metrics(make_record(tx_packets=0, rx_packets=0, tx_bytes=0, rx_bytes=0))
    assert metrics.packet_loss == 0.0
    assert metrics.mean_delay == 0.0
    assert metrics.mean_jitter == 0.0


def test_nothing_received_is_full_loss():
    metrics = derive_metrics(make_record(tx_packets=100, rx_packets=0, rx_bytes=0, delay_sum=0.0))
    assert metrics.packet_loss == 1.0
    assert metrics.mean_delay == 0.0


def test_single_packet_has_no_jitter():
    metrics = derive_metrics(make_record(tx_packets=1, rx_packets=1, jitter_sum=0.5))
    assert metrics.mean_jitter == 0.0
    assert metrics.mean_delay == pytest.approx(0.05)


def test_reception_before_transmission_is_flagged():
    metrics = derive_metrics(make_record(first_tx=85.0, last_rx=0.0))
    assert metrics.duration == 0.0
    assert metrics.throughput == 0.0
    assert metrics.timestamps_inconsistent


def test_blackholed_flow_is_not_flagged():
    # no packets received, so the engine leaves the last reception time at zero
    metrics = derive_metrics(make_record(rx_packets=0, rx_bytes=0, first_tx=85.0, last_rx=0.0,
                                         delay_sum=0.0, jitter_sum=0.0))
    assert metrics.duration == 0.0
    assert metrics.throughput == 0.0
    assert not metrics.timestamps_inconsistent


@pytest.mark.parametrize("tx,rx,first,last", [
    (0, 0, 0.0, 0.0),
    (1, 0, 3.0, 1.0),
    (10, 10, 1.0, 1.0),
    (10**9, 1, 0.0, 1e-9),
])
def test_metrics_always_finite(tx, rx, first, last):
    metrics = derive_metrics(make_record(tx_packets=tx, rx_packets=rx, first_tx=first, last_rx=last))
    for value in (metrics.duration, metrics.throughput, metrics.packet_loss,
                  metrics.mean_delay, metrics.mean_jitter):
        assert math.isfinite(value)
