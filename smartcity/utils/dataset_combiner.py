"""
Dataset Combiner Module for the SmartCity flow dataset

This module combines the per-run flow datasets written by ``main.py`` into a
single dataset for analysis and machine learning. Every row keeps the run
and scenario it came from.
"""

import re
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd

FLOW_DATASET_PATTERN = "*-enhanced-flows.csv"
COMBINED_DATASET_NAME = "smartcity_flow_dataset.csv"
RUN_DIR_PATTERN = re.compile(r'^\d{6}-\d+$')


class DatasetCombiner:
    """Class for combining flow datasets from multiple runs."""

    def __init__(self, output_base: Path, logger: Optional[logging.Logger] = None,
                 output_filename: str = COMBINED_DATASET_NAME):
        """
        Initialize the DatasetCombiner.

        Args:
            output_base: Base directory containing one subdirectory per run
            logger: Optional logger instance for detailed logging
            output_filename: Name of the combined CSV written into ``output_base``
        """
        self.output_base = Path(output_base)
        self.logger = logger or logging.getLogger(__name__)
        self.output_filename = output_filename

    def find_dataset_directories(self) -> List[Path]:
        """
        Find all run directories (``ddmmyy-N``).

        Returns:
            List of run directory paths sorted by name
        """
        datasets = []
        if self.output_base.exists():
            for item in self.output_base.iterdir():
                if item.is_dir() and RUN_DIR_PATTERN.match(item.name):
                    datasets.append(item)

        return sorted(datasets)

    @staticmethod
    def scenario_from_filename(csv_path: Path) -> str:
        return csv_path.name[:-len("-enhanced-flows.csv")]

    def load_run(self, dataset_dir: Path) -> List[pd.DataFrame]:
        frames = []
        for csv_path in sorted(dataset_dir.glob(FLOW_DATASET_PATTERN)):
            try:
                df = pd.read_csv(csv_path)
            except (OSError, ValueError) as e:
                self.logger.error(f"  Failed to read {csv_path}: {e}")
                continue
            df.insert(0, 'Scenario', self.scenario_from_filename(csv_path))
            df.insert(0, 'RunId', dataset_dir.name)
            frames.append(df)
            self.logger.info(f"  {dataset_dir.name}/{csv_path.name}: {len(df):,} flows loaded")
        if not frames:
            self.logger.warning(f"  {dataset_dir} has no flow dataset - skipping")
        return frames

    def combine_csv_files(self, datasets: List[Path]) -> Tuple[bool, int, Tuple[int, int]]:
        """
        Combine the flow datasets of all run directories.

        Args:
            datasets: List of run directory paths

        Returns:
            Tuple of (success, total_records, final_shape)
        """
        self.logger.info(f"Combining flow datasets into {self.output_filename}")
        combined_data = []
        for dataset_dir in datasets:
            combined_data.extend(self.load_run(dataset_dir))

        if not combined_data:
            self.logger.error("  No flow data found")
            return False, 0, (0, 0)

        final_df = pd.concat(combined_data, ignore_index=True)
        output_path = self.output_base / self.output_filename
        final_df.to_csv(output_path, index=False)
        self.logger.info(f"  Combined dataset saved: {output_path}")
        self.logger.info(f"  Total records: {len(final_df):,}")
        self.logger.info(f"  Final shape: {final_df.shape}")
        return True, len(final_df), final_df.shape

    def combine_all_datasets(self) -> bool:
        """
        Combine all run datasets under ``output_base``.

        Returns:
            True if a combined dataset was written, False otherwise
        """
        print("\n[COMBINE] Starting dataset combination...")

        datasets = self.find_dataset_directories()
        if not datasets:
            print("[COMBINE] No dataset directories found!")
            return False

        print(f"[COMBINE] Found {len(datasets)} dataset directories:")
        for dataset in datasets:
            print(f"[COMBINE]   - {dataset.name}")

        success, records, shape = self.combine_csv_files(datasets)
        if success:
            print(f"[COMBINE]   SUCCESS {self.output_filename}: {records:,} records, shape {shape}")
        else:
            print(f"[COMBINE]   FAILED {self.output_filename}: Failed to create")
        return success


def combine_datasets(output_base: Path, logger: Optional[logging.Logger] = None) -> bool:
    """
    Convenience function to combine datasets using the DatasetCombiner class.

    Args:
        output_base: Base directory containing run subdirectories
        logger: Optional logger instance

    Returns:
        True if the combined dataset was written, False otherwise
    """
    combiner = DatasetCombiner(output_base, logger)
    return combiner.combine_all_datasets()
