"""
District and Traffic Type Classifier

Rule-based labelling of flows. The district comes from an ordered
first-match table of address prefixes; the traffic type and binary label
come from ordered destination-port range tables.

Two district tables are kept. ``LIVE_DISTRICT_TABLE`` is used when a flow is
sent to the oracle and ``EXPORT_DISTRICT_TABLE`` when it is written to the
dataset. They disagree on the wireless IoT subnet (192.168.50.x is IoT in the
live table but Unknown in the export table) and on research and core
addresses; both are reproduced as the deployed classifier expects them.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from .flow_metrics import FlowRecord

NORMAL_LABEL = 0
ATTACK_LABEL = 1

# (prefix, district), first match wins
LIVE_DISTRICT_TABLE: Tuple[Tuple[str, str], ...] = (
    ("192.168.50.", "IoT"),
    ("192.168.10.", "Hospital"),
    ("192.168.11.", "Hospital"),
    ("192.168.20.", "PowerGrid"),
    ("192.168.21.", "PowerGrid"),
    ("192.168.30.", "Finance"),
    ("192.168.1.", "Home"),
    ("192.168.2.", "Office"),
    ("192.168.3.", "University"),
)
LIVE_DEFAULT_DISTRICT = "Core"

EXPORT_DISTRICT_TABLE: Tuple[Tuple[str, str], ...] = (
    ("192.168.1.", "Home"),
    ("192.168.2.", "Office"),
    ("192.168.3.", "University"),
    ("192.168.4.", "University-Research"),
    ("192.168.5.", "IoT"),
    ("192.168.6.", "IoT"),
    ("192.168.7.", "IoT"),
    ("192.168.8.", "IoT"),
    ("192.168.10.", "Hospital"),
    ("192.168.11.", "Hospital"),
    ("192.168.20.", "PowerGrid"),
    ("192.168.21.", "PowerGrid"),
    ("192.168.30.", "Finance"),
    ("10.", "Core"),
)
EXPORT_DEFAULT_DISTRICT = "Unknown"

# (low, high, traffic type), inclusive ranges, first match wins
ATTACK_PORT_TABLE: Tuple[Tuple[int, int, str], ...] = (
    (5000, 5010, "UniversityAttack"),
    (6000, 6010, "HomeAttack"),
    (8700, 8702, "APT"),
    (8750, 8799, "SupplyChain"),
    (8800, 8849, "Ransomware"),
    (8900, 8949, "GridAttack"),
    (8950, 8999, "Botnet"),
    (9000, 9099, "MedicalHijack"),
    (9100, 9199, "DataExfiltration"),
    (9200, 9299, "DDoS"),
    (21, 21, "PortScan"),
    (22, 22, "PortScan"),
    (80, 80, "PortScan"),
    (443, 443, "PortScan"),
    (9500, 9510, "Reconnaissance"),
    (9600, 9600, "MiTM6G"),
    (9700, 9703, "SideChannel"),
    (9800, 9802, "NetworkSlicing"),
    (9900, 9907, "MLPoisoning"),
    (10000, 10005, "EdgeCompromise"),
    (10100, 10100, "QuantumAttack"),
    (10200, 10207, "GPSSpoofing"),
    (10300, 10300, "BlockchainAttack"),
)

NORMAL_PORT_TABLE: Tuple[Tuple[int, int, str], ...] = (
    (8100, 8199, "Emergency"),
    (8200, 8299, "Medical"),
    (8300, 8399, "PowerGrid"),
    (8400, 8499, "Financial"),
    (8500, 8599, "Surveillance"),
)
DEFAULT_TRAFFIC_TYPE = "Regular"


@dataclass(frozen=True)
class Classification:
    district: str
    traffic_type: str
    label: int

    @property
    def is_attack(self) -> bool:
        return self.label == ATTACK_LABEL


def classify_district(addr: str, table: Sequence[Tuple[str, str]] = LIVE_DISTRICT_TABLE,
                      default: str = LIVE_DEFAULT_DISTRICT) -> str:
    """Return the district of the first prefix in ``table`` that ``addr`` starts with, else ``default``."""
    for prefix, district in table:
        if addr.startswith(prefix):
            return district
    return default


def live_district(addr: str) -> str:
    """District sent to the oracle."""
    return classify_district(addr, LIVE_DISTRICT_TABLE, LIVE_DEFAULT_DISTRICT)


def export_district(addr: str) -> str:
    """District written to the dataset."""
    return classify_district(addr, EXPORT_DISTRICT_TABLE, EXPORT_DEFAULT_DISTRICT)


def _match_port(port: int, table: Iterable[Tuple[int, int, str]]) -> Optional[str]:
    for low, high, traffic_type in table:
        if low <= port <= high:
            return traffic_type
    return None


def attack_type_for_port(port: int) -> Optional[str]:
    """Attack type whose port range contains ``port``, or None."""
    return _match_port(port, ATTACK_PORT_TABLE)


def classify_traffic(dst_port: int, attacks_enabled: bool) -> Tuple[str, int]:
    """
    Map a destination port to ``(traffic_type, label)``.

    The attack table is only consulted when attacks are enabled for the run,
    so the same port is benign traffic in a normal run.
    """
    if attacks_enabled:
        attack_type = attack_type_for_port(dst_port)
        if attack_type is not None:
            return attack_type, ATTACK_LABEL

    return _match_port(dst_port, NORMAL_PORT_TABLE) or DEFAULT_TRAFFIC_TYPE, NORMAL_LABEL


def classify_flow(record: FlowRecord, attacks_enabled: bool) -> Classification:
    """Dataset classification of a flow: export-table district of its source plus traffic type."""
    traffic_type, label = classify_traffic(record.dst_port, attacks_enabled)
    return Classification(
        district=export_district(record.src_addr),
        traffic_type=traffic_type,
        label=label,
    )
