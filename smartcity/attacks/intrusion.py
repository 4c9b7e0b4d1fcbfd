"""
Intrusion Attack Module

Multi-stage compromises: an APT moving from an IoT foothold to exfiltration,
ransomware spreading from office machines to banking servers, a poisoned
research-cluster update reaching the hospital, and hijacked edge computing
nodes at traffic intersections.
"""

from typing import List

from ..schedule import TaskListBuilder, TaskSpec
from ..topology import DEFAULT_TOPOLOGY, Topology
from ..utils.logger import get_attack_logger

attack_logger = get_attack_logger()


def apt_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Initial compromise, lateral movement and data exfiltration on ports 8700-8702."""
    t = topology
    builder = TaskListBuilder("apt", sim_duration)

    # Stage 1: initial compromise
    builder.udp_server(t.node("core", 0), 8700, start=60.0)
    builder.udp_client(t.node("sensors", 0), t.interface_address("core01", 0), 8700,
                       start=70.0, stop=85.0, max_packets=50, interval=0.1, packet_size=256)

    # Stage 2: lateral movement
    builder.udp_server(t.node("office_devices", 5), 8701, start=90.0)
    builder.udp_client(t.node("sensors", 1), t.interface_address("office_lan", 6), 8701,
                       start=95.0, stop=115.0, max_packets=100, interval=0.05, packet_size=512)

    # Stage 3: data exfiltration
    builder.udp_server(t.node("core", 1), 8702, start=120.0)
    builder.udp_client(t.node("office_devices", 4), t.interface_address("core01", 1), 8702,
                       start=125.0, stop=150.0, max_packets=200, interval=0.025, packet_size=1024)

    attack_logger.debug(f"[apt] {len(builder.tasks)} tasks")
    return builder.build()


def ransomware_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    t = topology
    builder = TaskListBuilder("ransomware", sim_duration)
    banking_servers = t.size("banking_servers")

    for i in range(4):
        port = 8800 + i
        builder.udp_server(t.node("banking_servers", i % banking_servers), port, start=100.0)
        builder.udp_client(t.node("office_devices", i + 6), t.interface_address("finance_lan", 2 + i), port,
                           start=110.0 + i * 2.0, stop=130.0 + i * 2.0,
                           max_packets=300, interval=0.02, packet_size=512)

    attack_logger.debug(f"[ransomware] {len(builder.tasks)} tasks")
    return builder.build()


def supply_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    t = topology
    builder = TaskListBuilder("supply", sim_duration)
    builder.udp_server(t.node("hospital_devices", 2), 8750, start=70.0)
    builder.udp_client(t.node("research_cluster", 2), t.interface_address("hospital_lan", 3), 8750,
                       start=80.0, stop=110.0, max_packets=150, interval=0.1, packet_size=1024)

    attack_logger.debug(f"[supply] {len(builder.tasks)} tasks")
    return builder.build()


def edge_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """One vehicle per traffic system pushes rogue workloads onto its edge node."""
    t = topology
    builder = TaskListBuilder("edge", sim_duration)
    vehicles = t.size("smart_vehicles")

    for i in range(t.size("traffic_systems")):
        port = 10000 + i
        edge_node = t.node("traffic_systems", i)
        builder.udp_server(edge_node, port, start=50.0)
        builder.udp_client(t.node("smart_vehicles", i % vehicles), t.address_of(edge_node, "iot_wifi"), port,
                           start=55.0 + i * 3.0, stop=90.0,
                           max_packets=400, interval=0.05, packet_size=512)

    attack_logger.debug(f"[edge] {len(builder.tasks)} tasks")
    return builder.build()
