import logging

import pandas as pd

from smartcity.dataset_generator import FLOW_COLUMNS, export_flow_dataset
from smartcity.utils.dataset_combiner import DatasetCombiner, combine_datasets

logger = logging.getLogger("test_dataset_combiner")


def _make_run(base, run_id, scenario, records, attacks_enabled=True):
    export_flow_dataset(records, attacks_enabled, base / run_id / f"{scenario}-enhanced-flows.csv", logger)


def test_finds_only_run_directories(tmp_path):
    for name in ("191026-2", "191026-1", "scratch", "2026-10-19"):
        (tmp_path / name).mkdir()
    (tmp_path / "191026-3").write_text("not a directory")

    found = DatasetCombiner(tmp_path, logger).find_dataset_directories()
    assert [path.name for path in found] == ["191026-1", "191026-2"]


def test_combines_runs_with_origin_columns(tmp_path, sample_records):
    _make_run(tmp_path, "191026-1", "normal", sample_records[:1], attacks_enabled=False)
    _make_run(tmp_path, "191026-2", "ddos", sample_records)
    (tmp_path / "191026-3").mkdir()

    assert combine_datasets(tmp_path, logger)

    combined = pd.read_csv(tmp_path / "smartcity_flow_dataset.csv", dtype={"RunId": str})
    assert list(combined.columns) == ["RunId", "Scenario"] + FLOW_COLUMNS
    assert len(combined) == 4
    assert combined["RunId"].tolist() == ["191026-1", "191026-2", "191026-2", "191026-2"]
    assert combined["Scenario"].tolist() == ["normal", "ddos", "ddos", "ddos"]
    assert combined["Label"].sum() == 1


def test_nothing_to_combine(tmp_path):
    assert not combine_datasets(tmp_path, logger)
    (tmp_path / "191026-1").mkdir()
    assert not combine_datasets(tmp_path, logger)
    assert not (tmp_path / "smartcity_flow_dataset.csv").exists()


def test_scenario_from_filename(tmp_path):
    assert DatasetCombiner.scenario_from_filename(tmp_path / "gpsspoof-enhanced-flows.csv") == "gpsspoof"
