"""
Emerging Threats Module

Attacks specific to 6G-era city infrastructure: a rogue base station,
timing side channels against hospital systems, poisoning of hospital ML
models, quantum-assisted crypto attacks on banking, and GPS spoofing of
vehicles by drones.
"""

from typing import List

from ..schedule import TaskListBuilder, TaskSpec
from ..topology import DEFAULT_TOPOLOGY, Topology
from ..utils.logger import get_attack_logger

attack_logger = get_attack_logger()


def mitm6g_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """A vehicle acts as rogue base station and drones relay intercepted traffic to it."""
    t = topology
    builder = TaskListBuilder("mitm6g", sim_duration)
    rogue_station = t.node("smart_vehicles", 0)
    builder.udp_server(rogue_station, 9600, start=30.0)
    rogue_address = t.address_of(rogue_station, "iot_wifi")
    drones = t.size("drones")

    for i in range(6):
        builder.udp_client(t.node("drones", i % drones), rogue_address, 9600,
                           start=35.0 + i * 2.0, stop=80.0,
                           max_packets=200, interval=0.25, packet_size=1024)

    attack_logger.debug(f"[mitm6g] {len(builder.tasks)} tasks")
    return builder.build()


def sidechannel_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Tiny, very frequent probes from sensors to hospital hosts on ports 9700-9703."""
    t = topology
    builder = TaskListBuilder("sidechannel", sim_duration)
    hospital_devices = t.size("hospital_devices")
    sensors = t.size("sensors")

    for i in range(4):
        port = 9700 + i
        builder.udp_server(t.node("hospital_devices", i % hospital_devices), port, start=70.0)
        builder.udp_client(t.node("sensors", i % sensors), t.interface_address("hospital_lan", 1 + i), port,
                           start=75.0, stop=100.0, max_packets=1000, interval=0.005, packet_size=32)

    attack_logger.debug(f"[sidechannel] {len(builder.tasks)} tasks")
    return builder.build()


def mlpoison_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Research nodes push poisoned training batches to a hospital AI system (9900-9907)."""
    t = topology
    builder = TaskListBuilder("mlpoison", sim_duration)
    hospital_devices = t.size("hospital_devices")
    research_nodes = t.size("research_cluster")
    model_host = t.interface_address("hospital_lan", 2)

    for i in range(8):
        port = 9900 + i
        builder.udp_server(t.node("hospital_devices", i % hospital_devices), port, start=95.0)
        builder.udp_client(t.node("research_cluster", i % research_nodes), model_host, port,
                           start=100.0 + i * 2.0, stop=140.0,
                           max_packets=300, interval=0.1, packet_size=2048)

    attack_logger.debug(f"[mlpoison] {len(builder.tasks)} tasks")
    return builder.build()


def quantum_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    t = topology
    builder = TaskListBuilder("quantum", sim_duration)
    builder.udp_server(t.node("banking_servers", 0), 10100, start=110.0)
    builder.udp_client(t.node("office_devices", 8), t.interface_address("finance_lan", 2), 10100,
                       start=120.0, stop=sim_duration - 10.0,
                       max_packets=1000, interval=0.02, packet_size=1024)

    attack_logger.debug(f"[quantum] {len(builder.tasks)} tasks")
    return builder.build()


def gpsspoof_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Every vehicle receives forged positioning updates from a drone (10200-10207)."""
    t = topology
    builder = TaskListBuilder("gpsspoof", sim_duration)
    drones = t.size("drones")

    for i in range(t.size("smart_vehicles")):
        port = 10200 + i
        vehicle = t.node("smart_vehicles", i)
        builder.udp_server(vehicle, port, start=40.0)
        builder.udp_client(t.node("drones", i % drones), t.address_of(vehicle, "iot_wifi"), port,
                           start=45.0, stop=80.0, max_packets=100, interval=1.0, packet_size=128)

    attack_logger.debug(f"[gpsspoof] {len(builder.tasks)} tasks")
    return builder.build()
