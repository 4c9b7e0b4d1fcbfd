import argparse
import json
import logging

import pytest

from smartcity.config import RunConfig, apply_overrides, config_from_dict, load_config


def _args(**overrides):
    values = dict(scenario=None, attacks=False, time=None, flows_xml=None, output_dir=None,
                  oracle_host=None, oracle_port=None, workers=None, no_oracle=False)
    values.update(overrides)
    return argparse.Namespace(**values)


def test_defaults():
    config = config_from_dict({})
    assert config.simulation.scenario == "normal"
    assert config.simulation.attacks is False
    assert config.simulation.time == 180.0
    assert (config.oracle.host, config.oracle.port, config.oracle.workers) == ("127.0.0.1", 8888, 1)
    assert config.output.directory == "main_output"
    assert config.bulk_scenarios == []


def test_partial_sections_and_unknown_keys():
    config = config_from_dict({
        "simulation": {"scenario": "grid", "attacks": 1, "time": "90", "colour": "blue"},
        "oracle": {"port": "9999", "workers": 0},
    })
    assert config.simulation.scenario == "grid"
    assert config.simulation.attacks is True
    assert config.simulation.time == 90.0
    assert config.oracle.port == 9999
    assert config.oracle.workers == 1
    assert config.oracle.transport == "tcp"


def test_load_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"output": {"directory": "runs", "log_level": "debug"}}))
    config = load_config(path)
    assert config.output.directory == "runs"
    assert config.console_level == logging.DEBUG


def test_unknown_log_level_falls_back_to_info():
    assert RunConfig().console_level == logging.INFO
    assert config_from_dict({"output": {"log_level": "chatty"}}).console_level == logging.INFO


def test_load_config_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.json")
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ValueError):
        load_config(bad)


def test_overrides_only_apply_given_flags():
    config = config_from_dict({"simulation": {"scenario": "ddos", "attacks": True, "time": 60}})
    apply_overrides(config, _args())
    assert (config.simulation.scenario, config.simulation.attacks, config.simulation.time) == ("ddos", True, 60.0)

    apply_overrides(config, _args(scenario="apt", time=30, flows_xml="apt.xml", output_dir="out",
                                  oracle_host="10.0.0.9", oracle_port=7000, workers=-2, no_oracle=True))
    assert config.simulation.scenario == "apt"
    assert config.simulation.time == 30.0
    assert config.simulation.flows_xml == "apt.xml"
    assert config.output.directory == "out"
    assert (config.oracle.host, config.oracle.port, config.oracle.workers) == ("10.0.0.9", 7000, 1)
    assert config.oracle.enabled is False
