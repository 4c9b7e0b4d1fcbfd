"""
ML Firewall Oracle Client

Synchronous block/allow queries against the external ML classifier. One
compact JSON object is sent per flow over a fresh TCP connection, a single
read of up to 1024 bytes is taken as the reply, and the flow is blocked only
if that reply contains ``"shouldBlock":true``.

The client fails open: a refused connection, a reset, a garbled or truncated
reply all count as "allow", so an unavailable oracle never stalls a run.
"""

import json
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import requests

from .classifier import live_district
from .flow_metrics import FlowMetrics, FlowRecord, derive_metrics
from .utils.logger import get_oracle_logger

logger = get_oracle_logger()

DEFAULT_ORACLE_HOST = "127.0.0.1"
DEFAULT_ORACLE_PORT = 8888
RESPONSE_BUFFER_SIZE = 1024
BLOCK_MARKER = '"shouldBlock":true'


def build_request(flow_id: int, src_ip: str, dst_ip: str, dst_port: int,
                  tx_packets: int, rx_packets: int, tx_bytes: int, rx_bytes: int,
                  duration: float, throughput: float, packet_loss: float,
                  delay: float, jitter: float, district: str) -> Dict[str, Any]:
    """Request object in the key order the oracle expects."""
    return {
        "flowId": int(flow_id),
        "srcIP": str(src_ip),
        "dstIP": str(dst_ip),
        "txPackets": int(tx_packets),
        "rxPackets": int(rx_packets),
        "txBytes": int(tx_bytes),
        "rxBytes": int(rx_bytes),
        "duration": float(duration),
        "throughput": float(throughput),
        "packetLoss": float(packet_loss),
        "delay": float(delay),
        "jitter": float(jitter),
        "dstPort": int(dst_port),
        "district": str(district),
    }


def encode_request(request: Dict[str, Any]) -> bytes:
    return json.dumps(request, separators=(",", ":")).encode("utf-8")


def is_block_verdict(body: str) -> bool:
    return BLOCK_MARKER in body


class OracleClient:
    """Base class for oracle transports."""

    def query(self, request: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def __call__(self, flow_id, src_ip, dst_ip, dst_port, tx_packets, rx_packets, tx_bytes, rx_bytes,
                 duration, throughput, packet_loss, delay, jitter, district) -> bool:
        return self.query(build_request(flow_id, src_ip, dst_ip, dst_port, tx_packets, rx_packets,
                                        tx_bytes, rx_bytes, duration, throughput, packet_loss,
                                        delay, jitter, district))


class TcpOracleClient(OracleClient):
    """Raw TCP transport: connect, send once, read once, close."""

    def __init__(self, host: str = DEFAULT_ORACLE_HOST, port: int = DEFAULT_ORACLE_PORT,
                 timeout: Optional[float] = None):
        self.host = host
        self.port = port
        self.timeout = timeout

    def query(self, request: Dict[str, Any]) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as sock:
                sock.sendall(encode_request(request))
                reply = sock.recv(RESPONSE_BUFFER_SIZE)
        except OSError as e:
            logger.debug(f"Oracle {self.host}:{self.port} unavailable for flow {request.get('flowId')}: {e}")
            return False

        return is_block_verdict(reply.decode("utf-8", errors="replace"))

    def __repr__(self):
        return f"TcpOracleClient({self.host}:{self.port})"


class HttpOracleClient(OracleClient):
    """HTTP transport: POST the same JSON body, same verdict rule on the response text.

    Unless a session is passed in, each thread gets its own ``requests.Session``.
    """

    def __init__(self, url: str, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self._shared_session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, 'session', None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    def query(self, request: Dict[str, Any]) -> bool:
        try:
            response = self.session.post(self.url, data=encode_request(request),
                                         headers={"Content-Type": "application/json"},
                                         timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.debug(f"Oracle {self.url} unavailable for flow {request.get('flowId')}: {e}")
            return False

        return is_block_verdict(response.text[:RESPONSE_BUFFER_SIZE])

    def __repr__(self):
        return f"HttpOracleClient({self.url})"


def query_oracle(flow_id: int, src_ip: str, dst_ip: str, dst_port: int,
                 tx_packets: int, rx_packets: int, tx_bytes: int, rx_bytes: int,
                 duration: float, throughput: float, packet_loss: float,
                 delay: float, jitter: float, district: str,
                 host: str = DEFAULT_ORACLE_HOST, port: int = DEFAULT_ORACLE_PORT) -> bool:
    """Ask the oracle whether a flow should be blocked. Returns False on any failure."""
    return TcpOracleClient(host, port)(flow_id, src_ip, dst_ip, dst_port, tx_packets, rx_packets,
                                       tx_bytes, rx_bytes, duration, throughput, packet_loss,
                                       delay, jitter, district)


def create_oracle_client(transport: str = "tcp", host: str = DEFAULT_ORACLE_HOST,
                         port: int = DEFAULT_ORACLE_PORT, url: Optional[str] = None,
                         timeout: Optional[float] = None) -> OracleClient:
    if transport == "tcp":
        return TcpOracleClient(host, port, timeout)
    if transport == "http":
        return HttpOracleClient(url or f"http://{host}:{port}/", timeout)
    raise ValueError(f"Unknown oracle transport '{transport}' (expected 'tcp' or 'http')")


@dataclass
class FlowVerdict:
    record: FlowRecord
    metrics: FlowMetrics
    district: str
    should_block: bool


@dataclass
class VerdictSummary:
    total: int = 0
    blocked: int = 0
    blocked_flows: List[int] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, flow_id: int, should_block: bool) -> None:
        with self._lock:
            self.total += 1
            if should_block:
                self.blocked += 1
                self.blocked_flows.append(flow_id)

    @property
    def protection_rate(self) -> float:
        """Blocked share of all queried flows, in percent."""
        return self.blocked / self.total * 100 if self.total > 0 else 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "Total flows": self.total,
            "Blocked threats": self.blocked,
            "Protection rate": f"{self.protection_rate:g}%",
        }


def evaluate_flow(record: FlowRecord, client: OracleClient, summary: VerdictSummary) -> FlowVerdict:
    metrics = derive_metrics(record)
    if metrics.timestamps_inconsistent:
        logger.debug(f"Flow {record.flow_id}: querying with duration 0 (inconsistent timestamps)")

    district = live_district(record.src_addr)
    should_block = client(record.flow_id, record.src_addr, record.dst_addr, record.dst_port,
                          record.tx_packets, record.rx_packets, record.tx_bytes, record.rx_bytes,
                          metrics.duration, metrics.throughput, metrics.packet_loss,
                          metrics.mean_delay, metrics.mean_jitter, district)
    summary.record(record.flow_id, should_block)
    return FlowVerdict(record, metrics, district, should_block)


def print_blocked_flow(verdict: FlowVerdict) -> None:
    record, metrics = verdict.record, verdict.metrics
    print(f"[THREAT BLOCKED] Flow {record.flow_id}")
    print(f"  {record.src_addr} -> {record.dst_addr}:{record.dst_port}")
    print(f"  District: {verdict.district}")
    print(f"  Duration: {metrics.duration:g}s | Loss: {metrics.packet_loss * 100:g}%")


def evaluate_flows(records: Iterable[FlowRecord], client: OracleClient, workers: int = 1,
                   report: bool = True) -> VerdictSummary:
    """
    Query the oracle once for every flow.

    With ``workers > 1`` the queries run in a thread pool; blocked flows are
    still reported in engine order once their verdicts are in.
    """
    records = list(records)
    summary = VerdictSummary()
    logger.info(f"Querying {client!r} for {len(records)} flows using {max(1, workers)} worker(s)")

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            verdicts = list(executor.map(lambda r: evaluate_flow(r, client, summary), records))
    else:
        verdicts = [evaluate_flow(record, client, summary) for record in records]

    if report:
        print("\n=== AI FIREWALL ANALYSIS ===")
        for verdict in verdicts:
            if verdict.should_block:
                print_blocked_flow(verdict)
        print("\nAI Firewall Summary:")
        for key, value in summary.as_dict().items():
            print(f"{key}: {value}")

    logger.info(f"[OK] Oracle verdicts: {summary.blocked}/{summary.total} flows blocked "
                f"({summary.protection_rate:.1f}%)")
    return summary
