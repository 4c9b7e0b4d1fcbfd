#!/usr/bin/env python3
import sys
import time
import logging
import argparse
from pathlib import Path
from datetime import datetime

from smartcity.attacks import ATTACK_FAMILIES
from smartcity.config import RunConfig, apply_overrides, load_config
from smartcity.dataset_generator import dataset_filename, export_flow_dataset
from smartcity.engine import (
    CommandEngine,
    EngineError,
    FlowMonitorReplayEngine,
    SimulationEngine,
    flow_report_filename,
    schedule_filename,
)
from smartcity.gen_benign_traffic import NORMAL_FAMILIES
from smartcity.oracle_client import create_oracle_client, evaluate_flows
from smartcity.schedule import compile_schedule, known_scenarios, schedule_summary
from smartcity.topology import DEFAULT_TOPOLOGY
from smartcity.utils.logger import ConsoleOutput, get_main_logger, initialize_logging, print_dataset_summary, with_run_id
from smartcity.utils.timeline_analysis import analyze_dataset_timeline, print_detailed_timeline_report

# Configuration
BASE_DIR = Path(__file__).parent.resolve()

logger = logging.getLogger('main')


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SmartCity Flow Dataset Generation")
    parser.add_argument(
        'config_file',
        nargs='?',
        default='config.json',
        help='Path to configuration JSON file (default: config.json)'
    )
    parser.add_argument('--attacks', action='store_true',
                        help='Generate attack traffic patterns')
    parser.add_argument('--scenario', type=str, default=None,
                        help='Traffic scenario: an attack family, "mixed" or "normal" (default: normal)')
    parser.add_argument('--time', type=float, default=None,
                        help='Simulation duration in seconds (default: 180)')
    parser.add_argument('--flows-xml', type=str, default=None,
                        help='Replay an existing FlowMonitor XML report instead of launching the engine')
    parser.add_argument('--output-dir', type=str, default=None,
                        help='Directory for datasets, schedule and logs (default: main_output)')
    parser.add_argument('--oracle-host', type=str, default=None,
                        help='ML firewall host (default: 127.0.0.1)')
    parser.add_argument('--oracle-port', type=int, default=None,
                        help='ML firewall port (default: 8888)')
    parser.add_argument('--workers', type=int, default=None,
                        help='Parallel oracle queries (default: 1)')
    parser.add_argument('--no-oracle', action='store_true',
                        help='Skip the ML firewall queries')
    parser.add_argument('--list-scenarios', action='store_true',
                        help='List the known scenarios and exit')
    return parser


def resolve_path(path_str: str) -> Path:
    path = Path(path_str)
    return path if path.is_absolute() else BASE_DIR / path


def build_engine(config: RunConfig, output_dir: Path) -> SimulationEngine:
    """Replay a given report, or launch the configured engine command."""
    sim = config.simulation
    schedule_path = output_dir / schedule_filename(sim.scenario) if sim.write_schedule else None

    if sim.flows_xml:
        logger.info(f"Replaying flow report {sim.flows_xml}")
        return FlowMonitorReplayEngine(resolve_path(sim.flows_xml), schedule_path)

    if sim.engine_command:
        return CommandEngine(sim.engine_command, sim.scenario, sim.attacks,
                             flows_xml=output_dir / flow_report_filename(sim.scenario),
                             schedule_path=schedule_path or output_dir / schedule_filename(sim.scenario),
                             timeout=sim.engine_timeout, cwd=BASE_DIR)

    raise EngineError("No simulation engine configured: set simulation.engine_command or pass --flows-xml")


def run(config: RunConfig, output_dir: Path) -> int:
    sim = config.simulation
    main_start_time = time.time()

    ConsoleOutput.print_header("Enhanced Smart City Network Simulation")
    logger.info(f"Scenario: {sim.scenario}")
    logger.info(f"Attacks: {'enabled' if sim.attacks else 'disabled'}")
    logger.info(f"Duration: {sim.time:g} seconds")
    logger.info(f"[NETWORK] 7 districts, {DEFAULT_TOPOLOGY.end_device_count()} end devices")

    tasks = compile_schedule(sim.scenario, sim.attacks, sim.time, DEFAULT_TOPOLOGY)
    for family, count in schedule_summary(tasks).items():
        logger.info(f"   - {family}: {count} tasks")

    engine = build_engine(config, output_dir)
    engine.install(tasks)
    engine.run(sim.time)
    records = engine.flow_records()
    logger.info(f"Simulation finished with {len(records)} flows")

    summary = None
    if config.oracle.enabled:
        client = create_oracle_client(config.oracle.transport, config.oracle.host, config.oracle.port,
                                      config.oracle.url, config.oracle.timeout)
        summary = evaluate_flows(records, client, workers=config.oracle.workers)
    else:
        logger.info("ML firewall queries disabled")

    output_csv_file = output_dir / dataset_filename(sim.scenario)
    success, _ = export_flow_dataset(records, sim.attacks, output_csv_file, logger)
    if not success:
        return 1

    print_dataset_summary(output_csv_file, logger)

    coverage = None
    if sim.attacks:
        coverage = analyze_dataset_timeline(tasks, output_csv_file, NORMAL_FAMILIES, logger)
        if coverage['score'] < 70:
            print_detailed_timeline_report(coverage, logger)

    total_execution_time = time.time() - main_start_time
    logger.info("=" * 80)
    logger.info("FEATURE FINAL EXECUTION SUMMARY")
    logger.info("=" * 80)
    logger.info(f"[STATS] Flows exported: {len(records)} -> {output_csv_file.name}")
    if summary is not None:
        logger.info(f"[SHIELD] Blocked threats: {summary.blocked}/{summary.total} "
                    f"(protection rate {summary.protection_rate:.1f}%)")
    if coverage is not None:
        logger.info(f"[CHART] Attack Coverage Score: {coverage['score']:.1f}%")
    logger.info(f"[TIME]  Total Execution Time: {total_execution_time:.2f} seconds")
    logger.info(f"[DATE] Dataset Generation Complete: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info("=" * 80)
    return 0


def main(argv=None) -> int:
    global logger
    args = build_arg_parser().parse_args(argv)

    if args.list_scenarios:
        for scenario in known_scenarios():
            marker = "attack" if scenario in ATTACK_FAMILIES else "special"
            print(f"{scenario:<12} ({marker})")
        return 0

    config_file_path = resolve_path(args.config_file)
    if not config_file_path.exists():
        initialize_logging()
        get_main_logger().error(f"Config file not found: {config_file_path}")
        return 1

    try:
        config = apply_overrides(load_config(config_file_path), args)
    except ValueError as e:
        initialize_logging()
        get_main_logger().error(f"Invalid configuration file {config_file_path}: {e}")
        return 1

    output_dir = resolve_path(config.output.directory)
    output_dir.mkdir(parents=True, exist_ok=True)
    initialize_logging(output_dir, console_level=config.console_level)
    logger = get_main_logger(output_dir)
    logger.info(f"Using configuration file: {config_file_path}")

    run_id = f"{config.simulation.scenario}-{datetime.now().strftime('%H%M%S')}"
    with with_run_id(run_id, logger):
        try:
            return run(config, output_dir)
        except EngineError as e:
            logger.error(f"Simulation engine failed: {e}", exc_info=True)
            return 1


if __name__ == "__main__":
    sys.exit(main())
