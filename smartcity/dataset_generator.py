#!/usr/bin/env python3
"""
Dataset Generation Module for the SmartCity flow dataset

This module turns the flow records reported by the simulation engine into the
labelled flow-level dataset: one row per flow, with derived quality metrics,
source district, traffic type and binary label. Designed to be easily
imported and called from other scripts.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import pandas as pd

from .classifier import classify_flow
from .flow_metrics import FlowRecord, derive_metrics
from .utils.logger import get_processing_logger

FLOW_COLUMNS = [
    'FlowId', 'SrcIP', 'DstIP', 'SrcPort', 'DstPort', 'Protocol',
    'TxPackets', 'RxPackets', 'TxBytes', 'RxBytes',
    'Duration', 'Throughput', 'PacketLoss', 'Delay', 'Jitter',
    'District', 'TrafficType', 'Label',
]

# %g would round to six significant digits
CSV_FLOAT_FORMAT = '%.10g'


def dataset_filename(scenario: str) -> str:
    return f"{scenario}-enhanced-flows.csv"


def build_flow_rows(records: Iterable[FlowRecord], attacks_enabled: bool,
                    logger: Optional[logging.Logger] = None) -> pd.DataFrame:
    """
    Build the labelled dataset rows in engine order.

    Args:
        records: Flow records as reported by the engine
        attacks_enabled: Whether the run generated attack traffic
        logger: Logger for per-flow diagnostics (processing logger by default)

    Returns:
        DataFrame with exactly ``FLOW_COLUMNS``
    """
    if logger is None:
        logger = get_processing_logger()

    rows: List[list] = []
    for record in records:
        metrics = derive_metrics(record)
        if metrics.timestamps_inconsistent:
            logger.warning(f"Flow {record.flow_id}: last reception at {record.last_rx_time:g}s precedes "
                           f"first transmission at {record.first_tx_time:g}s, duration set to 0")
        classification = classify_flow(record, attacks_enabled)
        rows.append([
            record.flow_id, record.src_addr, record.dst_addr, record.src_port, record.dst_port,
            record.protocol, record.tx_packets, record.rx_packets, record.tx_bytes, record.rx_bytes,
            metrics.duration, metrics.throughput, metrics.packet_loss, metrics.mean_delay,
            metrics.mean_jitter, classification.district, classification.traffic_type,
            classification.label,
        ])
    return pd.DataFrame(rows, columns=FLOW_COLUMNS)


def log_flow_summary(flow_df: pd.DataFrame, logger: logging.Logger) -> None:
    """Log normal/attack counts and the per-traffic-type breakdown."""
    attack_flows = int((flow_df['Label'] == 1).sum()) if len(flow_df) else 0
    normal_flows = len(flow_df) - attack_flows

    logger.info("\n--- Flow Counts by Label ---")
    logger.info(f"  Normal flows: {normal_flows}")
    logger.info(f"  Attack flows: {attack_flows}")

    if len(flow_df):
        logger.info("\n--- Flow Counts by Traffic Type ---")
        for traffic_type, count in flow_df['TrafficType'].value_counts().items():
            logger.info(f"  {traffic_type}: {count} flows")


def export_flow_dataset(records: Iterable[FlowRecord],
                        attacks_enabled: bool,
                        output_csv_file: Union[str, Path],
                        logger: logging.Logger) -> Tuple[bool, Optional[pd.DataFrame]]:
    """
    Write the labelled flow dataset as UTF-8 CSV.

    Args:
        records: Flow records as reported by the engine
        attacks_enabled: Whether the run generated attack traffic
        output_csv_file: Path for the CSV output
        logger: Logger instance

    Returns:
        Tuple of (success, dataframe)
    """
    output_csv_file = Path(output_csv_file)
    try:
        flow_df = build_flow_rows(records, attacks_enabled, logger)
        output_csv_file.parent.mkdir(parents=True, exist_ok=True)
        flow_df.to_csv(output_csv_file, index=False, encoding='utf-8', float_format=CSV_FLOAT_FORMAT)
    except (OSError, ValueError) as e:
        logger.error(f"Error writing flow dataset {output_csv_file}: {e}")
        return False, None

    logger.info(f"Flow-level dataset generated at: {output_csv_file} ({len(flow_df)} flows)")
    log_flow_summary(flow_df, logger)
    return True, flow_df
