"""
This module builds the attack label timeline from a compiled schedule and
checks it against the labelled flow dataset, so attack types that were
scheduled but never produced a labelled flow (or that were labelled without
being scheduled) show up in the run summary.
"""
import csv
import logging
from pathlib import Path
from collections import defaultdict

from ..classifier import attack_type_for_port

UNLABELLED = "Unlabelled"


def build_schedule_timeline(tasks, normal_families=()):
    """Attack timeline per traffic type from the compiled schedule.

    Only sending tasks count; sinks only open a port. Client tasks whose
    destination port is outside every attack range are grouped under
    ``Unlabelled`` with the ports listed.
    """
    windows = defaultdict(list)
    families = defaultdict(set)
    unlabelled_ports = set()

    for task in tasks:
        if task.is_sink or task.family in normal_families:
            continue
        traffic_type = attack_type_for_port(task.destination_port)
        if traffic_type is None:
            traffic_type = UNLABELLED
            unlabelled_ports.add(task.destination_port)
        windows[traffic_type].append((task.start, task.stop))
        families[traffic_type].add(task.family)

    timeline = {}
    for traffic_type, spans in windows.items():
        start = min(s for s, _ in spans)
        end = max(e for _, e in spans)
        timeline[traffic_type] = {
            'start': start,
            'end': end,
            'duration': end - start,
            'count': len(spans),
            'families': sorted(families[traffic_type]),
        }
    if unlabelled_ports:
        timeline[UNLABELLED]['ports'] = sorted(unlabelled_ports)
    return timeline


def read_dataset_attacks(csv_file):
    """Attack flows per traffic type in a flow dataset (rows with Label 1)."""
    if not Path(csv_file).exists():
        return {}

    counts = defaultdict(int)
    durations = defaultdict(float)

    try:
        with open(csv_file, 'r', newline='') as f:
            reader = csv.DictReader(f)
            for row in reader:
                if row.get('Label', '').strip() != '1':
                    continue
                traffic_type = row.get('TrafficType', '').strip()
                counts[traffic_type] += 1
                durations[traffic_type] += float(row.get('Duration') or 0)
    except (OSError, ValueError, csv.Error) as e:
        logging.error(f"Error reading {csv_file}: {e}")
        return {}

    return {
        traffic_type: {
            'count': count,
            'mean_duration': durations[traffic_type] / count,
        }
        for traffic_type, count in counts.items()
    }


def format_timestamp(timestamp):
    """Convert timestamp to readable format."""
    return f"{timestamp:.1f}s"


def analyze_coverage(schedule_timeline, dataset_attacks):
    """Compare scheduled attack types with the attack types found in the dataset."""
    analysis = {}
    all_types = set(schedule_timeline.keys()) | set(dataset_attacks.keys())

    for traffic_type in sorted(all_types):
        scheduled = schedule_timeline.get(traffic_type)
        observed = dataset_attacks.get(traffic_type)

        if traffic_type == UNLABELLED:
            status = "[WARN]  UNLABELLED PORTS"
        elif scheduled and observed:
            status = "[OK] COVERED"
        elif scheduled and not observed:
            status = "[FAIL] MISSING IN DATASET"
        else:
            status = "[WARN]  NOT SCHEDULED"

        analysis[traffic_type] = {
            'scheduled': scheduled,
            'observed': observed,
            'status': status,
        }

    return analysis


def calculate_coverage_score(analysis):
    """Share of labelled attack types that are covered, in percent."""
    relevant = {k: v for k, v in analysis.items() if k != UNLABELLED}
    total = len(relevant)
    covered = len([a for a in relevant.values() if "[OK]" in a['status']])
    score = (covered / total * 100) if total > 0 else 0
    return score, covered, total


def get_coverage_status(score):
    if score >= 90:
        return "[DONE] EXCELLENT: Every scheduled attack type is labelled in the dataset."
    elif score >= 70:
        return "[THUMBSUP] GOOD: Attack coverage is acceptable with minor gaps."
    elif score >= 50:
        return "[WARN]  FAIR: Several scheduled attack types produced no labelled flows."
    else:
        return "[FAIL] POOR: Most scheduled attack types are missing from the dataset."


def analyze_dataset_timeline(tasks, flow_csv, normal_families=(), logger=None):
    """Check attack coverage of a flow dataset against its schedule.

    Args:
        tasks: Compiled schedule of the run
        flow_csv: Path to the exported flow dataset
        normal_families: Families that make up background traffic
        logger: Logger instance for output
    Returns:
        dict: Analysis results with score, status, and detailed breakdown
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    logger.info("Starting attack coverage analysis...")

    schedule_timeline = build_schedule_timeline(tasks, normal_families)
    dataset_attacks = read_dataset_attacks(flow_csv)

    if not schedule_timeline and not dataset_attacks:
        logger.info("No attack traffic scheduled or labelled.")
        return {
            'score': 100.0,
            'status': 'NO_ATTACKS',
            'analysis': {},
            'schedule_timeline': {},
            'dataset_attacks': {},
            'missing_in_dataset': [],
            'not_scheduled': [],
        }

    analysis = analyze_coverage(schedule_timeline, dataset_attacks)
    score, covered, total = calculate_coverage_score(analysis)
    status = get_coverage_status(score)

    logger.info("Attack Coverage Results:")
    logger.info(f"  Scheduled/labelled attack types: {total}")
    logger.info(f"  Covered: {covered}")
    logger.info(f"  Overall score: {score:.1f}%")
    logger.info(f"  Status: {status}")

    missing_in_dataset = [t for t, data in analysis.items() if "MISSING IN DATASET" in data['status']]
    not_scheduled = [t for t, data in analysis.items() if "NOT SCHEDULED" in data['status']]

    if missing_in_dataset:
        logger.warning(f"Scheduled but not in dataset: {', '.join(missing_in_dataset)}")
    if not_scheduled:
        logger.warning(f"Labelled but not scheduled: {', '.join(not_scheduled)}")
    if UNLABELLED in schedule_timeline:
        ports = ', '.join(str(p) for p in schedule_timeline[UNLABELLED]['ports'])
        logger.warning(f"Attack tasks on ports outside every attack range (labelled as normal): {ports}")

    return {
        'score': score,
        'status': status,
        'analysis': analysis,
        'schedule_timeline': schedule_timeline,
        'dataset_attacks': dataset_attacks,
        'covered': covered,
        'total_attacks': total,
        'missing_in_dataset': missing_in_dataset,
        'not_scheduled': not_scheduled,
    }


def print_detailed_timeline_report(analysis_results, logger=None):
    """Print detailed coverage report."""
    if logger is None:
        logger = logging.getLogger(__name__)

    analysis = analysis_results['analysis']

    logger.info("\n" + "="*80)
    logger.info("[STATS] DETAILED ATTACK COVERAGE REPORT")
    logger.info("="*80)

    logger.info(f"{'Attack Type':<18} {'Scheduled Window':<22} {'Tasks':<7} {'Flows':<7} {'Status':<25}")
    logger.info("-" * 85)

    for traffic_type in sorted(analysis.keys()):
        data = analysis[traffic_type]
        scheduled = data['scheduled']
        observed = data['observed']

        if scheduled:
            window = f"{format_timestamp(scheduled['start'])} - {format_timestamp(scheduled['end'])}"
            tasks = str(scheduled['count'])
        else:
            window = "NOT SCHEDULED"
            tasks = "-"
        flows = str(observed['count']) if observed else "0"

        logger.info(f"{traffic_type:<18} {window:<22} {tasks:<7} {flows:<7} {data['status']:<25}")

    logger.info("="*80)
