from __future__ import annotations

import json
from pathlib import Path

import pytest

from sched_sandbox.config import ConfigError
from sched_sandbox.models import Policy, PolicyParams
from sched_sandbox.simulation import Simulation
from sched_sandbox.stream_io import (
    InputFormatError,
    ProcessSpec,
    dump_events,
    dump_processes,
    load_workload,
    workload_from_dict,
)
from sched_sandbox.event_sink import InMemoryEventSink

SAMPLES = Path(__file__).resolve().parents[1] / "samples"


def _write(tmp_path: Path, payload: object) -> Path:
    path = tmp_path / "workload.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_workload_happy_path_sample_files() -> None:
    rr = load_workload(SAMPLES / "rr_two_cores.json")
    assert rr.policy == Policy.RR
    assert rr.cores == 2
    assert rr.params == PolicyParams(time_quantum=2)
    assert rr.processes[0] == ProcessSpec(burst_time=5, priority=3, arrival_time=0)
    assert len(rr.processes) == 5

    mlfq = load_workload(SAMPLES / "mlfq_mix.json")
    assert mlfq.policy == Policy.MLFQ
    assert mlfq.params.mlfq_boost_interval == 20


@pytest.mark.parametrize("name", ["rr_two_cores.json", "mlfq_mix.json"])
def test_sample_workloads_run_to_completion(name: str) -> None:
    sim = Simulation()
    sim.load_workload(load_workload(SAMPLES / name))
    sim.run_until_finished(200)
    assert sim.is_finished


def test_defaults_for_optional_fields() -> None:
    w = workload_from_dict({"policy": "fcfs", "processes": [{"burst_time": 4}]})
    assert w.policy == Policy.FCFS
    assert w.cores == 1
    assert w.params == PolicyParams()
    assert w.processes == (ProcessSpec(burst_time=4, priority=3, arrival_time=0),)


@pytest.mark.parametrize(
    "payload, fragment",
    [
        ([], "root must be a JSON object"),
        ({"processes": [{"burst_time": 1}]}, "policy"),
        ({"policy": "Lottery", "processes": [{"burst_time": 1}]}, "unknown policy"),
        ({"policy": "RR", "cores": 0, "processes": [{"burst_time": 1}]}, "cores"),
        ({"policy": "RR", "processes": []}, "non-empty array"),
        ({"policy": "RR", "processes": [3]}, "processes[0] must be an object"),
        ({"policy": "RR", "processes": [{"burst_time": 0}]}, "processes[0].burst_time"),
        ({"policy": "RR", "processes": [{"burst_time": True}]}, "processes[0].burst_time"),
        ({"policy": "RR", "processes": [{"burst_time": 2, "priority": 0}]}, "priority"),
        ({"policy": "RR", "processes": [{"burst_time": 2, "arrival_time": -1}]}, "arrival_time"),
        ({"policy": "RR", "params": {"quantum": 2}, "processes": [{"burst_time": 1}]}, "unknown keys: quantum"),
        ({"policy": "RR", "params": {"time_quantum": 0}, "processes": [{"burst_time": 1}]}, "time_quantum"),
        ({"policy": "RR", "params": [], "processes": [{"burst_time": 1}]}, "params must be an object"),
    ],
)
def test_invalid_workloads_are_rejected(tmp_path: Path, payload: object, fragment: str) -> None:
    with pytest.raises(InputFormatError) as excinfo:
        load_workload(_write(tmp_path, payload))
    assert fragment in str(excinfo.value)


def test_invalid_json_reports_position(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text('{"policy": "RR",', encoding="utf-8")
    with pytest.raises(InputFormatError, match="invalid JSON"):
        load_workload(path)


def test_missing_file_and_directory(tmp_path: Path) -> None:
    with pytest.raises(InputFormatError, match="file not found"):
        load_workload(tmp_path / "nope.json")
    with pytest.raises(InputFormatError, match="not a file"):
        load_workload(tmp_path)


def test_non_utf8_file_is_an_input_error(tmp_path: Path) -> None:
    path = tmp_path / "latin1.json"
    path.write_bytes(b'{"policy": "RR", "processes": [], "note": "caf\xe9"}')
    with pytest.raises(InputFormatError, match="not valid UTF-8"):
        load_workload(path)


def test_input_format_error_is_a_config_error() -> None:
    assert issubclass(InputFormatError, ConfigError)


def test_dumps_are_json_serializable() -> None:
    sink = InMemoryEventSink()
    sim = Simulation(event_sink=sink)
    sim.load_preset("convoy")
    sim.run(2)

    events = dump_events(sink.events)
    assert events[0] == {
        "tick": 0,
        "seq": 1,
        "type": "TICK_START",
        "process": None,
        "core": None,
        "data": {"policy": "FCFS"},
    }
    procs = dump_processes(sim.processes)
    assert procs[0]["status"] == "running"
    assert procs[1]["status"] == "ready"
    json.dumps({"events": events, "processes": procs})
