import pytest

from smartcity.attacks import ATTACK_FAMILIES
from smartcity.classifier import attack_type_for_port
from smartcity.topology import DEFAULT_TOPOLOGY, Endpoint

EXPECTED_ORDER = [
    "portscan", "ddos", "apt", "ransomware", "botnet", "medical", "grid", "supply", "finance",
    "recon", "mitm6g", "sidechannel", "slicing", "mlpoison", "home", "university", "edge",
    "quantum", "gpsspoof", "blockchain",
]

EXPECTED_TYPES = {
    "portscan": {"PortScan"},
    "ddos": {"DDoS"},
    "apt": {"APT"},
    "ransomware": {"Ransomware"},
    "botnet": {"Botnet"},
    "medical": {"MedicalHijack"},
    "grid": {"GridAttack"},
    "supply": {"SupplyChain"},
    "finance": {"DataExfiltration"},
    "mitm6g": {"MiTM6G"},
    "sidechannel": {"SideChannel"},
    "slicing": {"NetworkSlicing"},
    "mlpoison": {"MLPoisoning"},
    "home": {"HomeAttack"},
    "university": {"UniversityAttack"},
    "edge": {"EdgeCompromise"},
    "quantum": {"QuantumAttack"},
    "gpsspoof": {"GPSSpoofing"},
    "blockchain": {"BlockchainAttack"},
}


def _clients(tasks):
    return [task for task in tasks if not task.is_sink]


def test_registry_order():
    assert list(ATTACK_FAMILIES) == EXPECTED_ORDER


@pytest.mark.parametrize("name", EXPECTED_ORDER)
def test_family_is_pure_and_non_empty(name):
    family = ATTACK_FAMILIES[name]
    first = family(180.0, DEFAULT_TOPOLOGY)
    assert first == family(180.0, DEFAULT_TOPOLOGY)
    assert _clients(first)
    assert all(task.family == name for task in first)


@pytest.mark.parametrize("name", sorted(EXPECTED_TYPES))
def test_client_ports_label_as_family_type(name):
    types = {attack_type_for_port(task.destination_port) for task in _clients(ATTACK_FAMILIES[name](180.0))}
    assert types == EXPECTED_TYPES[name]


def test_recon_ports_follow_subnet():
    tasks = ATTACK_FAMILIES["recon"](180.0)
    assert sorted({task.destination_port for task in tasks}) == [9501, 9511, 9521]
    assert attack_type_for_port(9501) == "Reconnaissance"
    assert attack_type_for_port(9511) is None
    assert tasks[0].destination == "192.168.1.1"
    assert tasks[0].start == pytest.approx(46.2)
    assert len(tasks) == 15


def test_portscan_timing():
    tasks = ATTACK_FAMILIES["portscan"](180.0)
    assert len(tasks) == 12
    last = tasks[-1]
    assert last.destination == "192.168.30.2"
    assert last.destination_port == 443
    assert last.start == pytest.approx(50 + 2 * 5 + 3 * 0.5)
    assert last.stop == pytest.approx(last.start + 2)
    assert last.source == Endpoint("sensors", (2 * 4 + 3) % 7)
    assert (last.max_packets, last.interval, last.packet_size) == (3, 0.2, 64)


def test_ddos_targets_and_attackers():
    tasks = ATTACK_FAMILIES["ddos"](180.0)
    sinks = [task for task in tasks if task.is_sink]
    clients = _clients(tasks)
    assert [(s.source, s.destination_port) for s in sinks] == [
        (Endpoint("hospital_devices", 0), 9200),
        (Endpoint("power_devices", 0), 9201),
        (Endpoint("finance_devices", 0), 9202),
    ]
    assert len(clients) == 9
    power = [c for c in clients if c.destination_port == 9201]
    assert {c.destination for c in power} == {"192.168.20.2"}
    assert [c.source.index for c in power] == [1, 2, 3]
    assert all((c.start, c.stop) == (85.0, 105.0) for c in power)


def test_quantum_runs_until_ten_seconds_before_end():
    clients = _clients(ATTACK_FAMILIES["quantum"](150.0))
    assert clients[0].stop == 140.0
    assert ATTACK_FAMILIES["quantum"](110.0) == []


def test_gpsspoof_targets_vehicle_addresses():
    clients = _clients(ATTACK_FAMILIES["gpsspoof"](180.0))
    assert len(clients) == 8
    for i, task in enumerate(clients):
        assert task.destination == DEFAULT_TOPOLOGY.address_of(Endpoint("smart_vehicles", i), "iot_wifi")
        assert task.source == Endpoint("drones", i % 4)


def test_apt_stages_in_order():
    clients = _clients(ATTACK_FAMILIES["apt"](180.0))
    assert [c.destination_port for c in clients] == [8700, 8701, 8702]
    assert [c.start for c in clients] == [70.0, 95.0, 125.0]
    assert clients[1].destination == "192.168.2.7"
