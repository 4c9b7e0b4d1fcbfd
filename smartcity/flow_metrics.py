"""
Flow Metrics Module

Per-flow counters as reported by the simulation engine at the end of a run,
and the quality metrics derived from them. Every ratio is guarded so the
derived values are always finite.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FlowRecord:
    """Raw counters of one observed flow. Times are in seconds."""
    flow_id: int
    src_addr: str
    dst_addr: str
    src_port: int
    dst_port: int
    protocol: int
    tx_packets: int
    rx_packets: int
    tx_bytes: int
    rx_bytes: int
    first_tx_time: float
    last_rx_time: float
    delay_sum: float
    jitter_sum: float

    @property
    def protocol_name(self) -> str:
        return {6: "TCP", 17: "UDP", 1: "ICMP"}.get(self.protocol, str(self.protocol))


@dataclass(frozen=True)
class FlowMetrics:
    duration: float
    throughput: float
    packet_loss: float
    mean_delay: float
    mean_jitter: float
    timestamps_inconsistent: bool = False


def derive_metrics(record: FlowRecord) -> FlowMetrics:
    """
    Derive duration (s), throughput (bit/s), packet loss (fraction), mean delay
    and mean jitter (s) from a flow's counters.

    A negative duration is clamped to zero. It is only flagged as
    ``timestamps_inconsistent`` when the flow received packets: the engine
    reports a zero last-reception time for flows that never got any.
    """
    duration = record.last_rx_time - record.first_tx_time
    inconsistent = duration < 0 and record.rx_packets > 0
    if duration < 0:
        duration = 0.0

    throughput = record.rx_bytes * 8.0 / duration if duration > 0 else 0.0
    packet_loss = ((record.tx_packets - record.rx_packets) / record.tx_packets
                   if record.tx_packets > 0 else 0.0)
    mean_delay = record.delay_sum / record.rx_packets if record.rx_packets > 0 else 0.0
    mean_jitter = record.jitter_sum / (record.rx_packets - 1) if record.rx_packets > 1 else 0.0

    return FlowMetrics(
        duration=float(duration),
        throughput=float(throughput),
        packet_loss=float(packet_loss),
        mean_delay=float(mean_delay),
        mean_jitter=float(mean_jitter),
        timestamps_inconsistent=inconsistent,
    )
