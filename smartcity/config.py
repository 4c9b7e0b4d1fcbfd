"""
Run configuration loaded from a JSON file.

Missing sections and keys fall back to the defaults below; unknown keys are
ignored. Command-line flags are applied on top with ``apply_overrides``.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .schedule import DEFAULT_SIM_DURATION, NORMAL_SCENARIO


@dataclass
class SimulationConfig:
    scenario: str = NORMAL_SCENARIO
    attacks: bool = False
    time: float = DEFAULT_SIM_DURATION
    flows_xml: Optional[str] = None
    engine_command: Optional[str] = None
    engine_timeout: Optional[float] = None
    write_schedule: bool = True


@dataclass
class OracleConfig:
    enabled: bool = True
    transport: str = "tcp"
    host: str = "127.0.0.1"
    port: int = 8888
    url: Optional[str] = None
    timeout: Optional[float] = None
    workers: int = 1


@dataclass
class OutputConfig:
    directory: str = "main_output"
    log_level: str = "INFO"


@dataclass
class RunConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    bulk_scenarios: List[str] = field(default_factory=list)

    @property
    def console_level(self) -> int:
        level = logging.getLevelName(self.output.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


def _section(cls, data: Optional[Dict[str, Any]]):
    data = data or {}
    defaults = cls()
    return cls(**{name: data.get(name, getattr(defaults, name)) for name in cls.__dataclass_fields__})


def config_from_dict(data: Dict[str, Any]) -> RunConfig:
    simulation = _section(SimulationConfig, data.get("simulation"))
    simulation.time = float(simulation.time)
    simulation.attacks = bool(simulation.attacks)

    oracle = _section(OracleConfig, data.get("oracle"))
    oracle.port = int(oracle.port)
    oracle.workers = max(1, int(oracle.workers))

    return RunConfig(
        simulation=simulation,
        oracle=oracle,
        output=_section(OutputConfig, data.get("output")),
        bulk_scenarios=list(data.get("bulk_scenarios", [])),
    )


def load_config(path: Union[str, Path]) -> RunConfig:
    """Read ``path`` as JSON. Raises FileNotFoundError or ValueError (bad JSON)."""
    with open(path, 'r') as f:
        return config_from_dict(json.load(f))


def apply_overrides(config: RunConfig, args) -> RunConfig:
    """Apply argparse values that were given on the command line."""
    if getattr(args, 'scenario', None) is not None:
        config.simulation.scenario = args.scenario
    if getattr(args, 'attacks', False):
        config.simulation.attacks = True
    if getattr(args, 'time', None) is not None:
        config.simulation.time = float(args.time)
    if getattr(args, 'flows_xml', None):
        config.simulation.flows_xml = args.flows_xml
    if getattr(args, 'output_dir', None):
        config.output.directory = args.output_dir
    if getattr(args, 'oracle_host', None):
        config.oracle.host = args.oracle_host
    if getattr(args, 'oracle_port', None) is not None:
        config.oracle.port = args.oracle_port
    if getattr(args, 'workers', None) is not None:
        config.oracle.workers = max(1, args.workers)
    if getattr(args, 'no_oracle', False):
        config.oracle.enabled = False
    return config
