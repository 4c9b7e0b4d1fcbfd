import shlex
import sys

import pandas as pd
import pytest

from conftest import FLOW_MONITOR_XML
from smartcity.engine import (
    SCHEDULE_COLUMNS,
    CommandEngine,
    EngineError,
    FlowMonitorReplayEngine,
    parse_engine_time,
    parse_flow_monitor_xml,
    write_schedule,
)
from smartcity.schedule import compile_schedule


@pytest.mark.parametrize("value,seconds", [
    ("+1.5e+09ns", 1.5),
    ("+0ns", 0.0),
    ("2s", 2.0),
    ("250ms", 0.25),
    ("1500", 1.5e-6),
    ("-3e+06ns", -0.003),
])
def test_parse_engine_time(value, seconds):
    assert parse_engine_time(value) == pytest.approx(seconds)


@pytest.mark.parametrize("value", ["", "abc", "12parsecs", "1.0.0ns"])
def test_parse_engine_time_rejects(value):
    with pytest.raises(ValueError):
        parse_engine_time(value)


def test_parse_flow_monitor_xml(flows_xml):
    records = parse_flow_monitor_xml(flows_xml)
    assert [r.flow_id for r in records] == [1, 2, 3]

    first = records[0]
    assert (first.src_addr, first.dst_addr, first.dst_port, first.protocol) == ("192.168.10.10", "192.168.50.2", 8101, 17)
    assert first.first_tx_time == pytest.approx(10.0)
    assert first.last_rx_time == pytest.approx(90.0)
    assert first.delay_sum == pytest.approx(0.05)
    assert first.jitter_sum == pytest.approx(0.002)

    blackholed = records[1]
    assert (blackholed.tx_packets, blackholed.rx_packets) == (100, 0)
    assert blackholed.last_rx_time == 0.0
    assert records[2].protocol_name == "TCP"


def test_flow_without_classifier_entry_is_skipped(tmp_path):
    xml = FLOW_MONITOR_XML.replace('<Flow flowId="3" sourceAddress', '<Flow flowId="99" sourceAddress')
    path = tmp_path / "flows.xml"
    path.write_text(xml)
    assert [r.flow_id for r in parse_flow_monitor_xml(path)] == [1, 2]


def test_missing_report(tmp_path):
    with pytest.raises(EngineError):
        parse_flow_monitor_xml(tmp_path / "nope.xml")


def test_malformed_report(tmp_path):
    path = tmp_path / "flows.xml"
    path.write_text(FLOW_MONITOR_XML[:400])
    with pytest.raises(EngineError):
        parse_flow_monitor_xml(path)


def test_bad_counter(tmp_path):
    path = tmp_path / "flows.xml"
    path.write_text(FLOW_MONITOR_XML.replace('txPackets="50"', 'txPackets="fifty"'))
    with pytest.raises(EngineError):
        parse_flow_monitor_xml(path)


def test_replay_engine_lifecycle(tmp_path, flows_xml):
    schedule_path = tmp_path / "out" / "ddos-schedule.csv"
    engine = FlowMonitorReplayEngine(flows_xml, schedule_path)
    tasks = compile_schedule("ddos", True, 180.0)
    engine.install(tasks)

    with pytest.raises(EngineError):
        engine.flow_records()

    engine.run(180.0)
    assert len(engine.flow_records()) == 3
    assert schedule_path.exists()


def test_write_schedule(tmp_path):
    tasks = compile_schedule("portscan", True, 180.0)
    path = write_schedule(tasks, tmp_path / "portscan-schedule.csv")
    df = pd.read_csv(path)
    assert list(df.columns) == SCHEDULE_COLUMNS
    assert len(df) == len(tasks)
    scans = df[df["family"] == "portscan"]
    assert scans["max_packets"].tolist() == [3] * 12
    assert scans["source"].iloc[0] == "sensors[0]"
    sinks = df[df["application"].isin(["UdpServer", "PacketSink"])]
    assert sinks["destination"].isna().all()


def test_command_substitution(tmp_path):
    engine = CommandEngine("sim --scenario={scenario} --attacks={attacks} --time={time} "
                           "--schedule={schedule} --flows-xml={flows_xml}",
                           "ddos", True, tmp_path / "f.xml", tmp_path / "s.csv")
    assert engine.build_command(180.0) == [
        "sim", "--scenario=ddos", "--attacks=true", "--time=180",
        f"--schedule={tmp_path / 's.csv'}", f"--flows-xml={tmp_path / 'f.xml'}",
    ]


def test_command_engine_runs_program(tmp_path):
    report = tmp_path / "source.xml"
    report.write_text(FLOW_MONITOR_XML)
    script = tmp_path / "fake_engine.py"
    script.write_text(
        "import shutil, sys\n"
        f"shutil.copy({str(report)!r}, sys.argv[1])\n"
    )
    command = f"{shlex.quote(sys.executable)} {shlex.quote(str(script))} {{flows_xml}}"
    engine = CommandEngine(command, "ddos", True, tmp_path / "ddos-enhanced-flows.xml",
                           tmp_path / "ddos-schedule.csv", timeout=60)
    engine.install(compile_schedule("ddos", True, 180.0))
    engine.run(180.0)

    assert [r.flow_id for r in engine.flow_records()] == [1, 2, 3]
    assert (tmp_path / "ddos-schedule.csv").exists()


def test_command_engine_missing_program(tmp_path):
    engine = CommandEngine("/nonexistent/smartcity-sim --time={time}", "normal", False,
                           tmp_path / "f.xml", tmp_path / "s.csv")
    with pytest.raises(EngineError):
        engine.run(10.0)


def test_command_engine_failure_exit(tmp_path):
    command = f"{shlex.quote(sys.executable)} -c 'raise SystemExit(3)'"
    engine = CommandEngine(command, "normal", False, tmp_path / "f.xml", tmp_path / "s.csv")
    with pytest.raises(EngineError, match="code 3"):
        engine.run(10.0)
