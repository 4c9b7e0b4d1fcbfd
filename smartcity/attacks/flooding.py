"""
Flooding Attack Module

Volumetric attacks: distributed floods against critical services, an IoT
botnet beaconing to the core, 6G network-slice exhaustion and a transaction
flood against the finance blockchain node.
"""

from typing import List

from ..schedule import TaskListBuilder, TaskSpec
from ..topology import DEFAULT_TOPOLOGY, Topology
from ..utils.logger import get_attack_logger

attack_logger = get_attack_logger()

# (LAN, interface index, server group) for the hospital, power and finance targets
CRITICAL_TARGETS = (
    ("hospital_lan", 1, "hospital_devices"),
    ("power_lan", 1, "power_devices"),
    ("finance_lan", 1, "finance_devices"),
)
BOTNET_GROUPS = ("sensors", "smart_vehicles", "traffic_systems")


def ddos_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Three smart vehicles flood each critical target, one target every five seconds."""
    t = topology
    builder = TaskListBuilder("ddos", sim_duration)

    for target, (lan, interface, server_group) in enumerate(CRITICAL_TARGETS):
        port = 9200 + target
        builder.udp_server(t.node(server_group, 0), port, start=70.0)
        for attacker in range(3):
            builder.udp_client(t.node("smart_vehicles", attacker + target), t.interface_address(lan, interface),
                               port, start=80.0 + target * 5.0, stop=100.0 + target * 5.0,
                               max_packets=500, interval=0.01, packet_size=128)

    attack_logger.debug(f"[ddos] {len(builder.tasks)} tasks")
    return builder.build()


def botnet_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Up to three bots per IoT group check in with a command server on the primary core."""
    t = topology
    builder = TaskListBuilder("botnet", sim_duration)
    builder.udp_server(t.node("core", 0), 8950, start=60.0)
    command_server = t.interface_address("core01", 0)

    for group_index, group in enumerate(BOTNET_GROUPS):
        for device in range(min(3, t.size(group))):
            offset = group_index * 10.0 + device * 2.0
            builder.udp_client(t.node(group, device), command_server, 8950,
                               start=70.0 + offset, stop=90.0 + offset,
                               max_packets=100, interval=0.1, packet_size=256)

    attack_logger.debug(f"[botnet] {len(builder.tasks)} tasks")
    return builder.build()


def slicing_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Traffic systems saturate the medical, power and financial 6G slices."""
    t = topology
    builder = TaskListBuilder("slicing", sim_duration)
    traffic_systems = t.size("traffic_systems")

    for slice_index, (lan, interface, server_group) in enumerate(CRITICAL_TARGETS):
        port = 9800 + slice_index
        builder.udp_server(t.node(server_group, 0), port, start=85.0)
        for attacker in range(3):
            node = t.node("traffic_systems", (slice_index * 3 + attacker) % traffic_systems)
            builder.udp_client(node, t.interface_address(lan, interface), port,
                               start=90.0 + slice_index * 10.0, stop=120.0,
                               max_packets=500, interval=0.02, packet_size=256)

    attack_logger.debug(f"[slicing] {len(builder.tasks)} tasks")
    return builder.build()


def blockchain_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    t = topology
    builder = TaskListBuilder("blockchain", sim_duration)
    builder.udp_server(t.node("finance_devices", 3), 10300, start=125.0)
    ledger = t.interface_address("finance_lan", 4)

    for i in range(6):
        builder.udp_client(t.node("office_devices", i + 6), ledger, 10300, start=130.0, stop=170.0,
                           max_packets=2000, interval=0.01, packet_size=256)

    attack_logger.debug(f"[blockchain] {len(builder.tasks)} tasks")
    return builder.build()
