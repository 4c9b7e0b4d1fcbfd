"""
Benign city traffic present in every scenario, attacks or not.
"""

from typing import List

from .schedule import TaskListBuilder, TaskSpec
from .topology import DEFAULT_TOPOLOGY, Topology
from .utils.logger import get_benign_logger

benign_logger = get_benign_logger()

TRADING_MAX_BYTES = 50_000_000
NORMAL_FAMILIES = ("emergency", "medical_consultation", "grid_control", "trading", "drone_telemetry")


def normal_tasks(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Background city traffic present in every scenario.

    Traffic patterns:
    - Emergency coordination: dispatch alerts to traffic control and the power grid (8100-8102)
    - International medical consultation: hospital -> CDN (8200)
    - Smart grid control loop: six grid nodes -> control center (8300-8305)
    - High-frequency trading: TCP bulk transfer inside the finance LAN (8400)
    - Drone telemetry: every drone -> hospital (8500-8503)
    """
    t = topology

    # 1. Multi-district emergency coordination
    emergency = TaskListBuilder("emergency", sim_duration)
    dispatch = t.node("emergency_response", 0)
    emergency.udp_server(dispatch, 8100, start=10.0)
    emergency.udp_client(dispatch, t.address_of(t.node("traffic_systems", 0), "iot_wifi"), 8101,
                         start=60.0, stop=90.0, max_packets=50, interval=1.0, packet_size=512)
    # Second alert keeps the engine's client defaults
    emergency.udp_client(dispatch, t.interface_address("power_lan", 1), 8102, start=60.0, stop=90.0)

    # 2. International medical consultation
    consultation = TaskListBuilder("medical_consultation", sim_duration)
    consultation.udp_server(t.node("cdn", 0), 8200, start=20.0)
    consultation.udp_client(t.node("hospital_devices", 0), t.interface_address("cdn0", 0), 8200,
                            start=30.0, stop=120.0, max_packets=2000, interval=0.05, packet_size=1400)

    # 3. Smart grid real-time control
    grid = TaskListBuilder("grid_control", sim_duration)
    for i in range(t.size("smart_grid")):
        grid.udp_server(t.node("power_devices", 0), 8300 + i, start=5.0)
        grid.udp_client(t.node("smart_grid", i), t.interface_address("power_lan", 1), 8300 + i,
                        start=10.0 + i, stop=sim_duration, max_packets=1000, interval=0.1, packet_size=200)

    # 4. High-frequency trading
    trading = TaskListBuilder("trading", sim_duration)
    trading.packet_sink(t.node("banking_servers", 0), 8400, start=1.0)
    trading.bulk_send(t.node("finance_devices", 0), t.interface_address("finance_lan", 2), 8400,
                      start=25.0, stop=sim_duration - 20.0, max_bytes=TRADING_MAX_BYTES)

    # 5. Multi-drone coordination
    drones = TaskListBuilder("drone_telemetry", sim_duration)
    for i in range(t.size("drones")):
        port = 8500 + i
        drones.udp_server(t.node("hospital_devices", 0), port, start=30.0)
        drones.udp_client(t.node("drones", i), t.interface_address("hospital_lan", 1), port,
                          start=40.0 + i * 5.0, stop=sim_duration - 10.0,
                          max_packets=800, interval=0.125, packet_size=1200)

    tasks: List[TaskSpec] = []
    for builder in (emergency, consultation, grid, trading, drones):
        tasks.extend(builder.build())
        if builder.dropped:
            benign_logger.debug(f"{builder.family}: {builder.dropped} task(s) fall outside the {sim_duration}s run")

    benign_logger.debug(f"Scheduled {len(tasks)} normal traffic tasks")
    return tasks
