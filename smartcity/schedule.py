"""
Scenario Schedule Compiler

Turns a scenario name and an attack flag into the ordered list of traffic
tasks to install into the simulation engine. Normal city traffic is always
present; attack families come from the registry in ``smartcity.attacks``.
"""

from collections import Counter
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List, Optional

from .topology import DEFAULT_TOPOLOGY, Endpoint, Topology
from .utils.logger import get_schedule_logger

logger = get_schedule_logger()

NORMAL_SCENARIO = "normal"
MIXED_SCENARIO = "mixed"
DEFAULT_SIM_DURATION = 180.0

# Engine defaults for attributes a client leaves unset
UDP_CLIENT_MAX_PACKETS = 100
UDP_CLIENT_INTERVAL = 1.0
UDP_CLIENT_PACKET_SIZE = 1024
BULK_SEND_SIZE = 512


@dataclass(frozen=True)
class TaskSpec:
    """A single application installed on one node for a fixed time window."""
    family: str
    application: str
    source: Endpoint
    destination: Optional[str]
    destination_port: int
    protocol: str
    start: float
    stop: float
    max_packets: Optional[int] = None
    max_bytes: Optional[int] = None
    interval: Optional[float] = None
    packet_size: Optional[int] = None

    @property
    def is_sink(self) -> bool:
        return self.destination is None

    def key(self):
        return (self.destination_port, self.source, self.start)

    def as_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row['source'] = str(self.source)
        return row


class TaskListBuilder:
    """Collects the tasks of one family, enforcing ``start < stop <= sim_duration``."""

    def __init__(self, family: str, sim_duration: float):
        self.family = family
        self.sim_duration = float(sim_duration)
        self.tasks: List[TaskSpec] = []
        self.dropped = 0

    def _add(self, task: TaskSpec) -> None:
        stop = min(task.stop, self.sim_duration)
        if task.start >= stop:
            self.dropped += 1
            logger.debug(f"[{self.family}] dropping {task.application} on {task.source} port "
                         f"{task.destination_port}: window {task.start}-{task.stop}s outside {self.sim_duration}s run")
            return
        if stop != task.stop:
            task = replace(task, stop=stop)
        self.tasks.append(task)

    def udp_server(self, node: Endpoint, port: int, start: float, stop: Optional[float] = None) -> None:
        self._add(TaskSpec(self.family, "UdpServer", node, None, port, "UDP",
                           float(start), float(self.sim_duration if stop is None else stop)))

    def udp_client(self, node: Endpoint, destination: str, port: int, start: float, stop: float,
                   max_packets: int = UDP_CLIENT_MAX_PACKETS,
                   interval: float = UDP_CLIENT_INTERVAL,
                   packet_size: int = UDP_CLIENT_PACKET_SIZE) -> None:
        self._add(TaskSpec(self.family, "UdpClient", node, destination, port, "UDP",
                           float(start), float(stop), max_packets=max_packets,
                           interval=float(interval), packet_size=packet_size))

    def packet_sink(self, node: Endpoint, port: int, start: float, stop: Optional[float] = None) -> None:
        self._add(TaskSpec(self.family, "PacketSink", node, None, port, "TCP",
                           float(start), float(self.sim_duration if stop is None else stop)))

    def bulk_send(self, node: Endpoint, destination: str, port: int, start: float, stop: float,
                  max_bytes: int, packet_size: int = BULK_SEND_SIZE) -> None:
        self._add(TaskSpec(self.family, "BulkSend", node, destination, port, "TCP",
                           float(start), float(stop), max_bytes=max_bytes, packet_size=packet_size))

    def build(self) -> List[TaskSpec]:
        return list(self.tasks)


def known_scenarios() -> List[str]:
    from .attacks import ATTACK_FAMILIES
    return [NORMAL_SCENARIO, *ATTACK_FAMILIES.keys(), MIXED_SCENARIO]


def attack_tasks(scenario: str, sim_duration: float, topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Attack tasks for ``scenario``; every family when it is ``mixed``, none when unknown."""
    from .attacks import ATTACK_FAMILIES

    if scenario == MIXED_SCENARIO:
        tasks: List[TaskSpec] = []
        for family in ATTACK_FAMILIES.values():
            tasks.extend(family(sim_duration, topology))
        return tasks

    family = ATTACK_FAMILIES.get(scenario)
    if family is None:
        if scenario != NORMAL_SCENARIO:
            logger.warning(f"Unknown scenario '{scenario}': only normal traffic will be scheduled")
        return []
    return family(sim_duration, topology)


def compile_schedule(scenario: str, attacks_enabled: bool, sim_duration: float = DEFAULT_SIM_DURATION,
                     topology: Topology = DEFAULT_TOPOLOGY) -> List[TaskSpec]:
    """Compile the full, deterministic task list for one run."""
    from .gen_benign_traffic import normal_tasks

    tasks = normal_tasks(sim_duration, topology)
    if attacks_enabled:
        logger.info(f"Generating attack scenarios for {scenario}")
        tasks.extend(attack_tasks(scenario, sim_duration, topology))
    logger.debug(f"Compiled {len(tasks)} tasks for scenario={scenario} attacks={attacks_enabled} "
                 f"duration={sim_duration}s")
    return tasks


def schedule_summary(tasks: List[TaskSpec]) -> Dict[str, int]:
    """Number of tasks per family, in first-seen order."""
    return dict(Counter(task.family for task in tasks))
