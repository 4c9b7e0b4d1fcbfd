"""
Exfiltration Attack Module

Financial data theft through the core, and the district-level home and
university campaigns that pair a local flood with a data theft stage.
"""

from typing import List

from ..schedule import TaskListBuilder, TaskSpec
from ..topology import DEFAULT_TOPOLOGY, Topology
from ..utils.logger import get_attack_logger

attack_logger = get_attack_logger()


def finance_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    t = topology
    builder = TaskListBuilder("finance", sim_duration)
    builder.udp_server(t.node("core", 0), 9100, start=100.0)
    builder.udp_client(t.node("banking_servers", 1), t.interface_address("core01", 0), 9100,
                       start=120.0, stop=160.0, max_packets=500, interval=0.01, packet_size=1024)

    attack_logger.debug(f"[finance] {len(builder.tasks)} tasks")
    return builder.build()


def home_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Flood a home device from three vehicles, then exfiltrate a child's device data."""
    t = topology
    builder = TaskListBuilder("home", sim_duration)

    builder.udp_server(t.node("home_devices", 0), 6000, start=60.0)
    victim = t.interface_address("home_lan", 1)
    for attacker in range(3):
        builder.udp_client(t.node("smart_vehicles", attacker), victim, 6000,
                           start=70.0 + attacker * 2.0, stop=100.0,
                           max_packets=500, interval=0.02, packet_size=256)

    builder.udp_server(t.node("core", 0), 6001, start=80.0)
    builder.udp_client(t.node("home_devices", 2), t.interface_address("core01", 0), 6001,
                       start=90.0, stop=120.0, max_packets=300, interval=0.05, packet_size=1024)

    attack_logger.debug(f"[home] {len(builder.tasks)} tasks")
    return builder.build()


def university_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Compromise a campus server from two sensors, then steal research data."""
    t = topology
    builder = TaskListBuilder("university", sim_duration)

    builder.udp_server(t.node("university_devices", 0), 5000, start=50.0)
    campus_server = t.interface_address("university_lan", 1)
    for attacker in range(2):
        builder.udp_client(t.node("sensors", attacker), campus_server, 5000,
                           start=60.0 + attacker * 5.0, stop=90.0,
                           max_packets=400, interval=0.03, packet_size=512)

    builder.udp_server(t.node("core", 1), 5001, start=70.0)
    builder.udp_client(t.node("research_cluster", 2), t.interface_address("core01", 1), 5001,
                       start=80.0, stop=110.0, max_packets=600, interval=0.025, packet_size=1024)

    attack_logger.debug(f"[university] {len(builder.tasks)} tasks")
    return builder.build()
