"""
Scanning Attack Module

Port scanning against critical-infrastructure hosts and subnet
reconnaissance sweeps launched from compromised IoT devices.
"""

from typing import List

from ..schedule import TaskListBuilder, TaskSpec
from ..topology import DEFAULT_TOPOLOGY, Topology
from ..utils.logger import get_attack_logger

attack_logger = get_attack_logger()

SCAN_PORTS = (21, 22, 80, 443)
RECON_SUBNETS = (1, 11, 21)
RECON_HOSTS = range(1, 6)


def portscan_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Short UDP probes from sensors to well-known ports on hospital, grid and finance hosts."""
    t = topology
    builder = TaskListBuilder("portscan", sim_duration)
    targets = [
        t.interface_address("hospital_lan", 1),
        t.interface_address("power_lan", 1),
        t.interface_address("finance_lan", 1),
    ]
    scanners = t.size("sensors")

    for target, address in enumerate(targets):
        for port_index, port in enumerate(SCAN_PORTS):
            scanner = (target * len(SCAN_PORTS) + port_index) % scanners
            offset = target * 5.0 + port_index * 0.5
            builder.udp_client(t.node("sensors", scanner), address, port,
                               start=50.0 + offset, stop=52.0 + offset,
                               max_packets=3, interval=0.2, packet_size=64)

    attack_logger.debug(f"[portscan] {len(builder.tasks)} probe tasks")
    return builder.build()


def recon_attack(sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Sweep the first hosts of the home, medical IoT and smart grid subnets.

    The destination port follows the third octet (9501, 9511, 9521), so only
    the first sweep falls inside the reconnaissance port range.
    """
    t = topology
    builder = TaskListBuilder("recon", sim_duration)
    vehicles = t.size("smart_vehicles")

    for subnet in RECON_SUBNETS:
        for host in RECON_HOSTS:
            vehicle = ((subnet - 1) // 10 * 5 + host - 1) % vehicles
            offset = subnet + host * 0.2
            builder.udp_client(t.node("smart_vehicles", vehicle), f"192.168.{subnet}.{host}", 9500 + subnet,
                               start=45.0 + offset, stop=47.0 + offset,
                               max_packets=2, interval=0.5, packet_size=32)

    attack_logger.debug(f"[recon] {len(builder.tasks)} sweep tasks")
    return builder.build()
