import json
import socket
import socketserver
import threading
from pathlib import Path

import pytest

from smartcity.flow_metrics import FlowRecord

FLOW_MONITOR_XML = """<?xml version="1.0" ?>
<FlowMonitor>
  <FlowStats>
    <Flow flowId="1" timeFirstTxPacket="+1e+10ns" timeFirstRxPacket="+1.0002e+10ns" timeLastTxPacket="+8.9e+10ns" timeLastRxPacket="+9e+10ns" delaySum="+5e+07ns" jitterSum="+2e+06ns" lastDelay="+1e+06ns" txBytes="25600" rxBytes="25600" txPackets="50" rxPackets="50" lostPackets="0" timesForwarded="150">
      <delayHistogram nBins="1"><bin index="0" start="0" width="0.001" count="50"/></delayHistogram>
    </Flow>
    <Flow flowId="2" timeFirstTxPacket="+8.5e+10ns" timeFirstRxPacket="+0ns" timeLastTxPacket="+9.5e+10ns" timeLastRxPacket="+0ns" delaySum="+0ns" jitterSum="+0ns" lastDelay="+0ns" txBytes="12800" rxBytes="0" txPackets="100" rxPackets="0" lostPackets="100" timesForwarded="0">
    </Flow>
    <Flow flowId="3" timeFirstTxPacket="+2.5e+10ns" timeFirstRxPacket="+2.5001e+10ns" timeLastTxPacket="+1.6e+11ns" timeLastRxPacket="+1.6e+11ns" delaySum="+1e+09ns" jitterSum="+0ns" lastDelay="+1e+06ns" txBytes="5000000" rxBytes="5000000" txPackets="1000" rxPackets="1000" lostPackets="0" timesForwarded="0">
    </Flow>
  </FlowStats>
  <Ipv4FlowClassifier>
    <Flow flowId="1" sourceAddress="192.168.10.10" destinationAddress="192.168.50.2" protocol="17" sourcePort="49153" destinationPort="8101">
      <Dscp value="0x0" packets="50"/>
    </Flow>
    <Flow flowId="2" sourceAddress="192.168.21.3" destinationAddress="192.168.20.2" protocol="17" sourcePort="49154" destinationPort="9201">
      <Dscp value="0x0" packets="100"/>
    </Flow>
    <Flow flowId="3" sourceAddress="192.168.30.2" destinationAddress="192.168.30.7" protocol="6" sourcePort="49155" destinationPort="8400">
      <Dscp value="0x0" packets="1000"/>
    </Flow>
  </Ipv4FlowClassifier>
  <Ipv4FlowProbes>
    <FlowProbe index="0"/>
  </Ipv4FlowProbes>
</FlowMonitor>
"""


def make_record(flow_id=1, src="192.168.10.10", dst="192.168.50.2", dst_port=8101, tx_packets=50,
                rx_packets=50, tx_bytes=25600, rx_bytes=25600, first_tx=10.0, last_rx=90.0,
                delay_sum=0.05, jitter_sum=0.002, protocol=17, src_port=49153):
    return FlowRecord(flow_id=flow_id, src_addr=src, dst_addr=dst, src_port=src_port, dst_port=dst_port,
                      protocol=protocol, tx_packets=tx_packets, rx_packets=rx_packets,
                      tx_bytes=tx_bytes, rx_bytes=rx_bytes, first_tx_time=first_tx,
                      last_rx_time=last_rx, delay_sum=delay_sum, jitter_sum=jitter_sum)


@pytest.fixture
def flows_xml(tmp_path) -> Path:
    path = tmp_path / "ddos-enhanced-flows.xml"
    path.write_text(FLOW_MONITOR_XML)
    return path


@pytest.fixture
def sample_records():
    return [
        make_record(),
        make_record(flow_id=2, src="192.168.21.3", dst="192.168.20.2", dst_port=9201, tx_packets=100,
                    rx_packets=0, tx_bytes=12800, rx_bytes=0, first_tx=85.0, last_rx=0.0,
                    delay_sum=0.0, jitter_sum=0.0, src_port=49154),
        make_record(flow_id=3, src="192.168.30.2", dst="192.168.30.7", dst_port=8400, tx_packets=1000,
                    rx_packets=1000, tx_bytes=5_000_000, rx_bytes=5_000_000, first_tx=25.0, last_rx=160.0,
                    delay_sum=1.0, jitter_sum=0.0, protocol=6, src_port=49155),
    ]


class _OracleStub(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, decide):
        self.decide = decide
        self.requests_seen = []
        self.lock = threading.Lock()
        super().__init__(("127.0.0.1", 0), _OracleHandler)

    @property
    def port(self):
        return self.server_address[1]


class _OracleHandler(socketserver.BaseRequestHandler):
    def handle(self):
        data = b""
        while not data.endswith(b"}"):
            chunk = self.request.recv(4096)
            if not chunk:
                break
            data += chunk
        with self.server.lock:
            self.server.requests_seen.append(data)
        self.request.sendall(self.server.decide(data))


@pytest.fixture
def oracle_stub():
    """Start a local oracle that answers with ``decide(request_bytes) -> reply_bytes``."""
    servers = []

    def start(decide):
        server = _OracleStub(decide)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()


def block_ports(*ports):
    """Oracle decision that blocks flows to the given destination ports."""
    def decide(data):
        request = json.loads(data.decode("utf-8"))
        verdict = "true" if request["dstPort"] in ports else "false"
        return f'{{"flowId":{request["flowId"]},"shouldBlock":{verdict}}}'.encode("utf-8")
    return decide


@pytest.fixture
def free_port():
    """A local port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
