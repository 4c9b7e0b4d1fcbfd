"""
Critical Infrastructure Attack Module

Hijacked medical IoT devices talking to hospital systems and rogue
vehicles injecting commands into the smart grid.
"""

from typing import List

from ..schedule import TaskListBuilder, TaskSpec
from ..topology import DEFAULT_TOPOLOGY, Topology
from ..utils.logger import get_attack_logger

attack_logger = get_attack_logger()


def medical_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Each medical IoT device sends forged readings on its own port (9000-9005)."""
    t = topology
    builder = TaskListBuilder("medical", sim_duration)
    hospital_host = t.interface_address("hospital_lan", 1)

    for i in range(t.size("medical_iot")):
        port = 9000 + i
        builder.udp_server(t.node("hospital_devices", 0), port, start=90.0)
        builder.udp_client(t.node("medical_iot", i), hospital_host, port,
                           start=100.0 + i * 3.0, stop=120.0 + i * 3.0,
                           max_packets=200, interval=0.05, packet_size=512)

    attack_logger.debug(f"[medical] {len(builder.tasks)} tasks")
    return builder.build()


def grid_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Vehicles target each smart grid node in turn on ports 8900-8905."""
    t = topology
    builder = TaskListBuilder("grid", sim_duration)
    vehicles = t.size("smart_vehicles")

    for i in range(t.size("smart_grid")):
        port = 8900 + i
        builder.udp_server(t.node("power_devices", 0), port, start=80.0)
        builder.udp_client(t.node("smart_vehicles", i % vehicles), t.interface_address("smart_grid_lan", i + 1),
                           port, start=90.0 + i * 2.0, stop=110.0 + i * 2.0,
                           max_packets=400, interval=0.025, packet_size=256)

    attack_logger.debug(f"[grid] {len(builder.tasks)} tasks")
    return builder.build()
