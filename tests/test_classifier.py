import pytest

from conftest import make_record
from smartcity.classifier import (
    ATTACK_PORT_TABLE,
    EXPORT_DEFAULT_DISTRICT,
    EXPORT_DISTRICT_TABLE,
    LIVE_DEFAULT_DISTRICT,
    LIVE_DISTRICT_TABLE,
    NORMAL_PORT_TABLE,
    classify_district,
    classify_flow,
    classify_traffic,
    export_district,
    live_district,
)


@pytest.mark.parametrize("addr,district", [
    ("192.168.50.17", "IoT"),
    ("192.168.10.4", "Hospital"),
    ("192.168.11.200", "Hospital"),
    ("192.168.20.1", "PowerGrid"),
    ("192.168.21.9", "PowerGrid"),
    ("192.168.30.2", "Finance"),
    ("192.168.1.5", "Home"),
    ("192.168.2.5", "Office"),
    ("192.168.3.5", "University"),
    ("192.168.4.5", "Core"),
    ("10.0.0.1", "Core"),
    ("172.16.1.1", "Core"),
])
def test_live_district_table(addr, district):
    assert live_district(addr) == district


@pytest.mark.parametrize("addr,district", [
    ("192.168.1.5", "Home"),
    ("192.168.2.5", "Office"),
    ("192.168.3.5", "University"),
    ("192.168.4.5", "University-Research"),
    ("192.168.6.5", "IoT"),
    ("192.168.11.3", "Hospital"),
    ("192.168.21.3", "PowerGrid"),
    ("192.168.30.3", "Finance"),
    ("10.2.0.1", "Core"),
    ("192.168.50.17", "Unknown"),
    ("172.16.1.1", "Unknown"),
])
def test_export_district_table(addr, district):
    assert export_district(addr) == district


def test_prefix_needs_trailing_dot():
    # 192.168.100.x must not fall into 192.168.10.x
    assert live_district("192.168.100.1") == "Core"
    assert export_district("192.168.100.1") == "Unknown"
    assert live_district("192.168.12.1") == "Core"


def test_explicit_default():
    assert classify_district("8.8.8.8", LIVE_DISTRICT_TABLE, default="Internet") == "Internet"


def test_default_does_not_depend_on_table_identity():
    copied = list(EXPORT_DISTRICT_TABLE)
    assert classify_district("172.16.1.1", copied, EXPORT_DEFAULT_DISTRICT) == "Unknown"
    assert classify_district("172.16.1.1", copied) == LIVE_DEFAULT_DISTRICT
    assert classify_district("172.16.1.1", EXPORT_DISTRICT_TABLE) == LIVE_DEFAULT_DISTRICT
    assert export_district("172.16.1.1") == EXPORT_DEFAULT_DISTRICT


@pytest.mark.parametrize("port,expected", [
    (5000, ("UniversityAttack", 1)),
    (6010, ("HomeAttack", 1)),
    (8702, ("APT", 1)),
    (8703, ("Regular", 0)),
    (8799, ("SupplyChain", 1)),
    (9201, ("DDoS", 1)),
    (22, ("PortScan", 1)),
    (23, ("Regular", 0)),
    (9510, ("Reconnaissance", 1)),
    (9511, ("Regular", 0)),
    (10300, ("BlockchainAttack", 1)),
    (8150, ("Emergency", 0)),
    (8599, ("Surveillance", 0)),
])
def test_traffic_type_with_attacks(port, expected):
    assert classify_traffic(port, True) == expected


def test_attack_ports_are_normal_when_attacks_disabled():
    assert classify_traffic(9201, False) == ("Regular", 0)
    assert classify_traffic(80, False) == ("Regular", 0)
    assert classify_traffic(8200, False) == ("Medical", 0)


def test_port_ranges_never_overlap():
    for table in (ATTACK_PORT_TABLE, NORMAL_PORT_TABLE):
        spans = sorted((low, high) for low, high, _ in table)
        for (_, high), (next_low, _) in zip(spans, spans[1:]):
            assert high < next_low


def test_attack_and_normal_ranges_are_disjoint():
    for low, high, _ in ATTACK_PORT_TABLE:
        for n_low, n_high, _ in NORMAL_PORT_TABLE:
            assert high < n_low or low > n_high


def test_label_matches_table_for_every_port():
    attack_ports = {p for low, high, _ in ATTACK_PORT_TABLE for p in range(low, high + 1)}
    for port in range(0, 11000):
        _, label = classify_traffic(port, True)
        assert label == (1 if port in attack_ports else 0)


def test_classify_flow_uses_source_address():
    flow = make_record(src="192.168.21.3", dst="192.168.20.2", dst_port=9201)
    result = classify_flow(flow, attacks_enabled=True)
    assert (result.district, result.traffic_type, result.label) == ("PowerGrid", "DDoS", 1)
    assert result.is_attack
