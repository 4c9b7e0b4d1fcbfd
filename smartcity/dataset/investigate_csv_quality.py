"""Inspect SmartCity flow datasets for quality metrics and labelling inconsistencies."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List

import numpy as np
import pandas as pd

from smartcity.classifier import ATTACK_LABEL, ATTACK_PORT_TABLE
from smartcity.dataset_generator import FLOW_COLUMNS

LOGGER = logging.getLogger("investigate_csv_quality")

ATTACK_TYPES = {traffic_type for _, _, traffic_type in ATTACK_PORT_TABLE}
COUNTER_COLUMNS = ["TxPackets", "RxPackets", "TxBytes", "RxBytes", "Duration", "Throughput", "Delay", "Jitter"]


@dataclass
class QualityReport:
    dataset_name: str
    total_rows: int
    total_columns: int
    missing_values: int
    infinite_values: int
    dtype_summary: Dict[str, str]
    column_order_ok: bool = True
    duplicate_flow_ids: int = 0
    negative_counters: int = 0
    loss_out_of_range: int = 0
    label_mismatches: int = 0
    label_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def is_clean(self) -> bool:
        return (self.column_order_ok and not self.missing_values and not self.infinite_values
                and not self.negative_counters and not self.loss_out_of_range and not self.label_mismatches)

    def to_dict(self) -> Dict[str, object]:
        return {
            "dataset": self.dataset_name,
            "rows": self.total_rows,
            "columns": self.total_columns,
            "missing_values": self.missing_values,
            "infinite_values": self.infinite_values,
            "dtypes": self.dtype_summary,
            "column_order_ok": self.column_order_ok,
            "duplicate_flow_ids": self.duplicate_flow_ids,
            "negative_counters": self.negative_counters,
            "loss_out_of_range": self.loss_out_of_range,
            "label_mismatches": self.label_mismatches,
            "label_counts": self.label_counts,
        }


def setup_logging(log_path: Path | None = None) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        handlers.append(logging.FileHandler(log_path, mode="w", encoding="utf-8"))

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def load_dataset(csv_path: Path) -> pd.DataFrame:
    if not csv_path.exists():
        raise FileNotFoundError(csv_path)
    LOGGER.info("Loading %s", csv_path)
    return pd.read_csv(csv_path)


def compute_quality_metrics(df: pd.DataFrame) -> Dict[str, object]:
    missing = int(df.isna().sum().sum())
    numeric = df.select_dtypes(include=[np.number])
    infinite = int(np.isinf(numeric.to_numpy(dtype=float)).sum()) if not numeric.empty else 0
    dtype_summary = {column: str(dtype) for column, dtype in df.dtypes.items()}
    return {
        "missing_values": missing,
        "infinite_values": infinite,
        "dtype_summary": dtype_summary,
    }


def compute_flow_checks(df: pd.DataFrame) -> Dict[str, object]:
    """Flow-dataset specific checks; columns that are absent are skipped."""
    checks: Dict[str, object] = {}
    flow_columns = [c for c in df.columns if c in FLOW_COLUMNS]
    checks["column_order_ok"] = flow_columns == FLOW_COLUMNS

    if "FlowId" in df.columns:
        key = ["RunId", "FlowId"] if "RunId" in df.columns else ["FlowId"]
        checks["duplicate_flow_ids"] = int(df.duplicated(subset=key).sum())

    present = [c for c in COUNTER_COLUMNS if c in df.columns]
    if present:
        checks["negative_counters"] = int((df[present] < 0).sum().sum())

    if "PacketLoss" in df.columns:
        loss = df["PacketLoss"]
        checks["loss_out_of_range"] = int(((loss < 0) | (loss > 1)).sum())

    if {"Label", "TrafficType"} <= set(df.columns):
        is_attack_type = df["TrafficType"].isin(ATTACK_TYPES)
        is_attack_label = df["Label"] == ATTACK_LABEL
        checks["label_mismatches"] = int((is_attack_type != is_attack_label).sum())
        checks["label_counts"] = {str(k): int(v) for k, v in df["Label"].value_counts().items()}

    return checks


def detect_inconsistencies(dfs: Dict[str, pd.DataFrame]) -> Dict[str, object]:
    inconsistencies: Dict[str, object] = {}
    if not dfs:
        return inconsistencies

    reference_columns = set(next(iter(dfs.values())).columns)
    for name, df in dfs.items():
        diff_missing = reference_columns - set(df.columns)
        diff_extra = set(df.columns) - reference_columns
        if diff_missing or diff_extra:
            inconsistencies[name] = {
                "missing_columns": sorted(diff_missing),
                "extra_columns": sorted(diff_extra),
            }
    return inconsistencies


def analyze_dataframe(df: pd.DataFrame, dataset_name: str) -> QualityReport:
    metrics = compute_quality_metrics(df)
    checks = compute_flow_checks(df)
    return QualityReport(
        dataset_name,
        len(df),
        len(df.columns),
        metrics["missing_values"],
        metrics["infinite_values"],
        metrics["dtype_summary"],
        **checks,
    )


def analyze_dataset(csv_path: Path, dataset_name: str) -> QualityReport:
    return analyze_dataframe(load_dataset(csv_path), dataset_name)


def summarize_reports(reports: Iterable[QualityReport], inconsistencies: Dict[str, object], output_json: Path | None) -> None:
    reports = list(reports)
    for report in reports:
        LOGGER.info("\n=== %s ===", report.dataset_name)
        LOGGER.info("Rows: %s | Columns: %s", report.total_rows, report.total_columns)
        LOGGER.info("Missing values: %s | Infinite values: %s", report.missing_values, report.infinite_values)
        LOGGER.info("Duplicate flow ids: %s | Negative counters: %s | Loss outside [0, 1]: %s",
                    report.duplicate_flow_ids, report.negative_counters, report.loss_out_of_range)
        if not report.column_order_ok:
            LOGGER.warning("Flow columns are not in the expected order")
        if report.label_mismatches:
            LOGGER.warning("%s rows disagree between Label and TrafficType", report.label_mismatches)
        LOGGER.info("[OK] Dataset is clean" if report.is_clean else "[WARN] Dataset has quality issues")
    if inconsistencies:
        LOGGER.warning("Column mismatches detected: %s", inconsistencies)

    if output_json:
        payload = {
            "reports": [report.to_dict() for report in reports],
            "inconsistencies": inconsistencies,
        }
        output_json.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        LOGGER.info("Saved JSON quality report to %s", output_json)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Investigate flow dataset quality")
    parser.add_argument("--path", default="main_output", help="Directory containing CSV datasets")
    parser.add_argument(
        "--datasets",
        nargs="*",
        default=["smartcity_flow_dataset.csv"],
        help="Dataset files to inspect",
    )
    parser.add_argument("--log", type=Path, default=None, help="Optional log file path")
    parser.add_argument("--json", type=Path, default=None, help="Optional JSON output path")
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    dataset_dir = Path(args.path).resolve()
    if not dataset_dir.exists():
        print(f"[FAIL] Dataset directory not found: {dataset_dir}")
        return 1

    setup_logging(args.log)

    reports: List[QualityReport] = []
    datasets: Dict[str, pd.DataFrame] = {}

    for dataset in args.datasets:
        csv_path = dataset_dir / dataset
        try:
            df = load_dataset(csv_path)
        except FileNotFoundError:
            LOGGER.warning("Missing dataset: %s", csv_path)
            continue
        except (OSError, ValueError) as exc:
            LOGGER.error("Failed to analyze %s: %s", csv_path, exc)
            continue
        datasets[dataset] = df
        reports.append(analyze_dataframe(df, dataset))

    inconsistencies = detect_inconsistencies(datasets)
    summarize_reports(reports, inconsistencies, args.json)
    return 0 if reports else 1


if __name__ == "__main__":
    raise SystemExit(main())
