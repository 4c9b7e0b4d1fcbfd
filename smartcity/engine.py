"""
Simulation Engine Binding

The discrete-event simulator is an external program. This module defines
the contract the pipeline needs from it (install tasks, run, report flow
counters) and two bindings:

- ``FlowMonitorReplayEngine`` reads a FlowMonitor XML report that the engine
  already produced, joining per-flow statistics with the five-tuple
  classifier entries.
- ``CommandEngine`` additionally launches the engine program for the run,
  handing it the compiled schedule as CSV, then replays its report.
"""

import re
import shlex
import subprocess
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from .flow_metrics import FlowRecord
from .schedule import TaskSpec
from .utils.logger import get_engine_logger

logger = get_engine_logger()

SCHEDULE_COLUMNS = [
    'family', 'application', 'source', 'destination', 'destination_port', 'protocol',
    'start', 'stop', 'max_packets', 'max_bytes', 'interval', 'packet_size',
]

_TIME_UNITS = {
    'fs': 1e-15, 'ps': 1e-12, 'ns': 1e-9, 'us': 1e-6, 'ms': 1e-3,
    's': 1.0, 'min': 60.0, 'h': 3600.0, 'd': 86400.0, 'y': 365.0 * 86400.0,
}
_TIME_PATTERN = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*([a-z]*)\s*$')


class EngineError(RuntimeError):
    """The simulation engine failed or its report could not be read."""


def parse_engine_time(value: str) -> float:
    """Convert an engine time string such as ``+1.5e+09ns`` to seconds.

    Values without a unit are in nanoseconds, the engine's default resolution.
    """
    match = _TIME_PATTERN.match(value or '')
    if not match:
        raise ValueError(f"Unparseable engine time '{value}'")
    number, unit = match.groups()
    unit = unit or 'ns'
    if unit not in _TIME_UNITS:
        raise ValueError(f"Unknown time unit '{unit}' in '{value}'")
    return float(number) * _TIME_UNITS[unit]


def schedule_filename(scenario: str) -> str:
    return f"{scenario}-schedule.csv"


def flow_report_filename(scenario: str) -> str:
    return f"{scenario}-enhanced-flows.xml"


def write_schedule(tasks: Sequence[TaskSpec], path: Union[str, Path]) -> Path:
    """Write the compiled task list as CSV, one task per row, in schedule order."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    schedule_df = pd.DataFrame([task.as_row() for task in tasks], columns=SCHEDULE_COLUMNS)
    for column in ('max_packets', 'max_bytes', 'packet_size'):
        schedule_df[column] = schedule_df[column].astype('Int64')
    schedule_df.to_csv(path, index=False)
    logger.info(f"Schedule with {len(schedule_df)} tasks written to {path}")
    return path


def parse_flow_monitor_xml(xml_path: Union[str, Path]) -> List[FlowRecord]:
    """
    Parse a FlowMonitor XML report into flow records, in report order.

    Flow statistics without a matching classifier entry are skipped with a
    warning. A missing or malformed file raises ``EngineError``.
    """
    xml_path = Path(xml_path)
    if not xml_path.exists():
        raise EngineError(f"Flow report not found: {xml_path}")

    try:
        root = ET.parse(xml_path).getroot()
    except ET.ParseError as e:
        raise EngineError(f"Malformed flow report {xml_path}: {e}") from e

    tuples: Dict[str, ET.Element] = {}
    for flow in root.iterfind('./Ipv4FlowClassifier/Flow'):
        tuples[flow.get('flowId')] = flow

    records: List[FlowRecord] = []
    skipped = 0
    for stats in root.iterfind('./FlowStats/Flow'):
        flow_id = stats.get('flowId')
        five_tuple = tuples.get(flow_id)
        if five_tuple is None:
            skipped += 1
            continue
        try:
            records.append(FlowRecord(
                flow_id=int(flow_id),
                src_addr=five_tuple.get('sourceAddress'),
                dst_addr=five_tuple.get('destinationAddress'),
                src_port=int(five_tuple.get('sourcePort')),
                dst_port=int(five_tuple.get('destinationPort')),
                protocol=int(five_tuple.get('protocol')),
                tx_packets=int(stats.get('txPackets', 0)),
                rx_packets=int(stats.get('rxPackets', 0)),
                tx_bytes=int(stats.get('txBytes', 0)),
                rx_bytes=int(stats.get('rxBytes', 0)),
                first_tx_time=parse_engine_time(stats.get('timeFirstTxPacket', '+0ns')),
                last_rx_time=parse_engine_time(stats.get('timeLastRxPacket', '+0ns')),
                delay_sum=parse_engine_time(stats.get('delaySum', '+0ns')),
                jitter_sum=parse_engine_time(stats.get('jitterSum', '+0ns')),
            ))
        except (TypeError, ValueError) as e:
            raise EngineError(f"Bad counters for flow {flow_id} in {xml_path}: {e}") from e

    if skipped:
        logger.warning(f"[WARN] {skipped} flows in {xml_path.name} have no classifier entry and were skipped")
    logger.info(f"Loaded {len(records)} flows from {xml_path}")
    return records


class SimulationEngine(ABC):
    """What the pipeline needs from a discrete-event network simulator."""

    @abstractmethod
    def install(self, tasks: Sequence[TaskSpec]) -> None:
        """Install the compiled tasks before the run."""

    @abstractmethod
    def run(self, sim_duration: float) -> None:
        """Run the simulation to completion."""

    @abstractmethod
    def flow_records(self) -> List[FlowRecord]:
        """Per-flow counters observed during the last run, in engine order."""


class FlowMonitorReplayEngine(SimulationEngine):
    """Replays an existing FlowMonitor XML report as the result of a run."""

    def __init__(self, flows_xml: Union[str, Path], schedule_path: Optional[Union[str, Path]] = None):
        self.flows_xml = Path(flows_xml)
        self.schedule_path = Path(schedule_path) if schedule_path else None
        self.tasks: List[TaskSpec] = []
        self._records: Optional[List[FlowRecord]] = None

    def install(self, tasks: Sequence[TaskSpec]) -> None:
        self.tasks = list(tasks)
        if self.schedule_path is not None:
            write_schedule(self.tasks, self.schedule_path)

    def run(self, sim_duration: float) -> None:
        self._records = parse_flow_monitor_xml(self.flows_xml)

    def flow_records(self) -> List[FlowRecord]:
        if self._records is None:
            raise EngineError("flow_records() called before run()")
        return list(self._records)


class CommandEngine(FlowMonitorReplayEngine):
    """
    Launches the engine program, then replays the report it writes.

    ``command`` is a shell-style template; ``{scenario}``, ``{attacks}``,
    ``{time}``, ``{schedule}`` and ``{flows_xml}`` are substituted before the
    program is started.
    """

    def __init__(self, command: str, scenario: str, attacks_enabled: bool,
                 flows_xml: Union[str, Path], schedule_path: Union[str, Path],
                 timeout: Optional[float] = None, cwd: Optional[Union[str, Path]] = None):
        super().__init__(flows_xml, schedule_path)
        self.command = command
        self.scenario = scenario
        self.attacks_enabled = attacks_enabled
        self.timeout = timeout
        self.cwd = cwd

    def build_command(self, sim_duration: float) -> List[str]:
        rendered = self.command.format(
            scenario=self.scenario,
            attacks=str(self.attacks_enabled).lower(),
            time=f"{sim_duration:g}",
            schedule=self.schedule_path,
            flows_xml=self.flows_xml,
        )
        return shlex.split(rendered)

    def run(self, sim_duration: float) -> None:
        cmd = self.build_command(sim_duration)
        logger.info(f"Starting simulation engine: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout,
                                    cwd=self.cwd, check=False)
        except FileNotFoundError as e:
            raise EngineError(f"Simulation engine not found: {cmd[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise EngineError(f"Simulation engine timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise EngineError(f"Simulation engine exited with code {result.returncode}: {result.stderr.strip()}")
        logger.debug(f"Engine output:\n{result.stdout}")
        super().run(sim_duration)
