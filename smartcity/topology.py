"""
Smart City Topology Model

Static description of the simulated city: seven districts around a core
triangle, the node groups living in each district, the link classes joining
them, and the subnets the engine numbers addresses from.

The engine assigns host addresses sequentially inside each subnet, in member
order, starting at .1. ``Topology.interface_address`` and
``Topology.address_of`` reproduce that numbering so schedules can target
concrete IPv4 addresses without asking the engine.
"""

import ipaddress
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Endpoint:
    """One node of a node group, e.g. ``Endpoint("sensors", 3)``."""
    group: str
    index: int

    def __str__(self):
        return f"{self.group}[{self.index}]"


@dataclass(frozen=True)
class LinkClass:
    name: str
    data_rate: str
    delay: str
    medium: str = "point-to-point"


@dataclass(frozen=True)
class NodeGroup:
    name: str
    count: int
    district: str
    role: str = ""


@dataclass(frozen=True)
class Subnet:
    name: str
    network: str
    link: str
    members: Tuple[Endpoint, ...]

    @property
    def ipv4_network(self) -> ipaddress.IPv4Network:
        return ipaddress.IPv4Network(self.network)


LINK_CLASSES: Dict[str, LinkClass] = {
    "core_backbone": LinkClass("core_backbone", "200Gbps", "0.1ms"),
    "link_6g_ultra": LinkClass("link_6g_ultra", "100Gbps", "0.2ms"),
    "link_6g": LinkClass("link_6g", "50Gbps", "0.5ms"),
    "link_5g": LinkClass("link_5g", "20Gbps", "2ms"),
    "fiber": LinkClass("fiber", "10Gbps", "5ms"),
    "home_fiber": LinkClass("home_fiber", "5Gbps", "8ms"),
    "csma_lan": LinkClass("csma_lan", "1Gbps", "2ms", medium="csma"),
    "csma_high_speed": LinkClass("csma_high_speed", "10Gbps", "0.5ms", medium="csma"),
    "wifi_6": LinkClass("wifi_6", "802.11ax", "", medium="wifi"),
}

NODE_GROUPS: Tuple[NodeGroup, ...] = (
    NodeGroup("core", 3, "Core", "primary, secondary and emergency core routers"),
    NodeGroup("cdn", 2, "Core", "content delivery network"),
    NodeGroup("dns", 2, "Core", "DNS servers"),
    NodeGroup("home_gw", 1, "Home", "district gateway"),
    NodeGroup("office_gw", 1, "Office", "district gateway"),
    NodeGroup("university_gw", 1, "University", "5G district gateway"),
    NodeGroup("iot_gw", 1, "IoT", "6G access point"),
    NodeGroup("hospital_gw", 1, "Hospital", "6G ultra district gateway"),
    NodeGroup("power_gw", 1, "PowerGrid", "6G ultra district gateway"),
    NodeGroup("finance_gw", 1, "Finance", "6G ultra district gateway"),
    NodeGroup("home_devices", 8, "Home", "family devices, smart TV, assistant, security, router"),
    NodeGroup("office_devices", 12, "Office", "manager, employees, servers, security"),
    NodeGroup("university_devices", 10, "University", "students, professors, admin"),
    NodeGroup("research_cluster", 5, "University-Research", "HPC research cluster"),
    NodeGroup("traffic_systems", 6, "IoT", "traffic lights, cameras, road sensors"),
    NodeGroup("smart_vehicles", 8, "IoT", "cars, buses, emergency vehicles"),
    NodeGroup("drones", 4, "IoT", "surveillance, delivery and emergency drones"),
    NodeGroup("sensors", 7, "IoT", "environmental, parking and noise sensors"),
    NodeGroup("hospital_devices", 8, "Hospital", "doctors, nurses, admin, AI systems"),
    NodeGroup("medical_iot", 6, "Hospital", "monitors, ventilators, imaging"),
    NodeGroup("emergency_response", 2, "Hospital", "dispatch and ambulance coordination"),
    NodeGroup("power_devices", 4, "PowerGrid", "control center and operators"),
    NodeGroup("smart_grid", 6, "PowerGrid", "smart meters, transformers, substations"),
    NodeGroup("power_plants", 2, "PowerGrid", "generation facilities"),
    NodeGroup("finance_devices", 4, "Finance", "bank operations and traders"),
    NodeGroup("banking_servers", 4, "Finance", "core banking and transaction processing"),
    NodeGroup("atm_network", 2, "Finance", "ATM network controllers"),
)


def _members(groups, *spec) -> Tuple[Endpoint, ...]:
    """Expand ``("group", count)`` or ``("group", [indices])`` pairs into endpoints."""
    members: List[Endpoint] = []
    for name, selection in spec:
        if selection is None:
            selection = range(groups[name].count)
        for index in selection:
            members.append(Endpoint(name, index))
    return tuple(members)


def _build_subnets(groups: Dict[str, NodeGroup]) -> Tuple[Subnet, ...]:
    def m(*spec):
        return _members(groups, *spec)

    return (
        # Core mesh, CDN and DNS
        Subnet("core01", "10.0.0.0/24", "core_backbone", m(("core", [0, 1]))),
        Subnet("core02", "10.0.1.0/24", "core_backbone", m(("core", [0, 2]))),
        Subnet("core12", "10.0.2.0/24", "core_backbone", m(("core", [1, 2]))),
        Subnet("cdn0", "10.1.0.0/24", "fiber", m(("cdn", [0]), ("core", [0]))),
        Subnet("cdn1", "10.1.1.0/24", "fiber", m(("cdn", [1]), ("core", [1]))),
        Subnet("dns0", "10.2.0.0/24", "fiber", m(("dns", [0]), ("core", [0]))),
        Subnet("dns1", "10.2.1.0/24", "fiber", m(("dns", [1]), ("core", [1]))),
        # Home
        Subnet("home_uplink", "172.16.1.0/30", "home_fiber", m(("home_gw", None), ("core", [0]))),
        Subnet("home_lan", "192.168.1.0/24", "csma_lan", m(("home_gw", None), ("home_devices", None))),
        # Office
        Subnet("office_uplink", "172.16.2.0/30", "fiber", m(("office_gw", None), ("core", [0]))),
        Subnet("office_lan", "192.168.2.0/24", "csma_lan", m(("office_gw", None), ("office_devices", None))),
        # University
        Subnet("university_uplink", "172.16.3.0/30", "link_5g", m(("university_gw", None), ("core", [1]))),
        Subnet("university_lan", "192.168.3.0/24", "csma_lan",
               m(("university_gw", None), ("university_devices", None))),
        Subnet("research_lan", "192.168.4.0/24", "csma_high_speed",
               m(("university_gw", None), ("research_cluster", None))),
        # IoT: every wireless station shares one subnet behind the access point
        Subnet("iot_uplink", "172.16.5.0/30", "link_6g", m(("iot_gw", None), ("core", [0]))),
        Subnet("iot_wifi", "192.168.50.0/24", "wifi_6",
               m(("iot_gw", None), ("traffic_systems", None), ("smart_vehicles", None),
                 ("drones", None), ("sensors", None))),
        # Hospital
        Subnet("hospital_uplink", "172.16.10.0/30", "link_6g_ultra", m(("hospital_gw", None), ("core", [1]))),
        Subnet("hospital_lan", "192.168.10.0/24", "csma_high_speed",
               m(("hospital_gw", None), ("hospital_devices", None), ("emergency_response", None))),
        Subnet("medical_iot_lan", "192.168.11.0/24", "csma_high_speed",
               m(("hospital_gw", None), ("medical_iot", None))),
        # Power grid
        Subnet("power_uplink", "172.16.20.0/30", "link_6g_ultra", m(("power_gw", None), ("core", [2]))),
        Subnet("power_lan", "192.168.20.0/24", "csma_high_speed",
               m(("power_gw", None), ("power_devices", None), ("power_plants", None))),
        Subnet("smart_grid_lan", "192.168.21.0/24", "csma_lan", m(("power_gw", None), ("smart_grid", None))),
        # Finance
        Subnet("finance_uplink", "172.16.30.0/30", "link_6g_ultra", m(("finance_gw", None), ("core", [2]))),
        Subnet("finance_lan", "192.168.30.0/24", "csma_high_speed",
               m(("finance_gw", None), ("finance_devices", None), ("banking_servers", None),
                 ("atm_network", None))),
    )


@dataclass(frozen=True)
class Topology:
    """Immutable city topology passed explicitly to whoever needs addresses."""
    groups: Dict[str, NodeGroup] = field(default_factory=lambda: {g.name: g for g in NODE_GROUPS})
    links: Dict[str, LinkClass] = field(default_factory=lambda: dict(LINK_CLASSES))
    subnets: Tuple[Subnet, ...] = ()

    def __post_init__(self):
        if not self.subnets:
            object.__setattr__(self, "subnets", _build_subnets(self.groups))

    def group(self, name: str) -> NodeGroup:
        try:
            return self.groups[name]
        except KeyError:
            raise KeyError(f"Unknown node group '{name}'") from None

    def size(self, name: str) -> int:
        return self.group(name).count

    def node(self, name: str, index: int) -> Endpoint:
        """Return ``Endpoint(name, index)`` after bounds-checking it."""
        count = self.size(name)
        if not 0 <= index < count:
            raise IndexError(f"{name} has {count} nodes, index {index} is out of range")
        return Endpoint(name, index)

    def subnet(self, name: str) -> Subnet:
        for subnet in self.subnets:
            if subnet.name == name:
                return subnet
        raise KeyError(f"Unknown subnet '{name}'")

    def interface_address(self, subnet_name: str, index: int) -> str:
        """Address of the ``index``-th interface attached to ``subnet_name``."""
        subnet = self.subnet(subnet_name)
        if not 0 <= index < len(subnet.members):
            raise IndexError(f"{subnet_name} has {len(subnet.members)} interfaces, index {index} is out of range")
        return str(subnet.ipv4_network.network_address + 1 + index)

    def address_of(self, endpoint: Endpoint, subnet_name: Optional[str] = None) -> str:
        """Address of ``endpoint``, on ``subnet_name`` or on its first subnet."""
        for subnet in self.subnets:
            if subnet_name is not None and subnet.name != subnet_name:
                continue
            if endpoint in subnet.members:
                return str(subnet.ipv4_network.network_address + 1 + subnet.members.index(endpoint))
        where = f" on {subnet_name}" if subnet_name else ""
        raise KeyError(f"{endpoint} has no interface{where}")

    def district_of(self, endpoint: Endpoint) -> str:
        return self.group(endpoint.group).district

    def end_device_count(self) -> int:
        """Number of end devices, i.e. everything except core, CDN, DNS and gateways."""
        infrastructure = {"core", "cdn", "dns"}
        return sum(g.count for g in self.groups.values()
                   if g.name not in infrastructure and not g.name.endswith("_gw"))


DEFAULT_TOPOLOGY = Topology()
