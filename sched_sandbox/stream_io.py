from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

from sched_sandbox.config import ConfigError, parse_policy, validate_core_count, validate_params
from sched_sandbox.events import Event
from sched_sandbox.models import HistorySegment, Policy, PolicyParams, Process


class InputFormatError(ConfigError):
    """Raised when a workload file fails validation."""


@dataclass(frozen=True)
class ProcessSpec:
    burst_time: int
    priority: int = 3
    arrival_time: int = 0


@dataclass(frozen=True)
class Workload:
    policy: Policy
    cores: int = 1
    params: PolicyParams = PolicyParams()
    processes: tuple[ProcessSpec, ...] = ()


_PARAM_NAMES = {f.name for f in fields(PolicyParams)}


def load_workload(path: Path) -> Workload:
    """Load and validate a workload JSON file.

    Format:
      {
        "policy": "RR",
        "cores": 2,
        "params": {"time_quantum": 2},
        "processes": [
          {"burst_time": 5, "priority": 3, "arrival_time": 0},
          ...
        ]
      }

    Only "policy" and "processes" are required. Unknown params are rejected
    so a typo cannot silently fall back to a default.
    """
    if not path.exists():
        raise InputFormatError(f"file not found: {path}")
    if not path.is_file():
        raise InputFormatError(f"not a file: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise InputFormatError(f"not valid UTF-8: byte {e.start}") from e
    except json.JSONDecodeError as e:
        raise InputFormatError(
            f"invalid JSON: {e.msg} (line {e.lineno}, col {e.colno})"
        ) from e

    return workload_from_dict(raw)


def workload_from_dict(raw: object) -> Workload:
    if not isinstance(raw, dict):
        raise InputFormatError("root must be a JSON object")

    try:
        policy = parse_policy(raw.get("policy"))
    except ConfigError as e:
        raise InputFormatError(f"policy: {e}") from e

    cores = raw.get("cores", 1)
    try:
        validate_core_count(cores)
    except ConfigError as e:
        raise InputFormatError(f"cores: {e}") from e

    params = _parse_params(raw.get("params", {}))

    processes_raw = raw.get("processes")
    if not isinstance(processes_raw, list) or not processes_raw:
        raise InputFormatError("processes must be a non-empty array")

    specs: list[ProcessSpec] = []
    for i, item in enumerate(processes_raw):
        if not isinstance(item, dict):
            raise InputFormatError(f"processes[{i}] must be an object")
        specs.append(_parse_process_spec(item, label=f"processes[{i}]"))

    return Workload(policy=policy, cores=int(cores), params=params, processes=tuple(specs))


def _parse_params(raw: object) -> PolicyParams:
    if raw is None:
        return PolicyParams()
    if not isinstance(raw, dict):
        raise InputFormatError("params must be an object")

    unknown = sorted(set(raw) - _PARAM_NAMES)
    if unknown:
        raise InputFormatError(f"params has unknown keys: {', '.join(unknown)}")

    try:
        return validate_params(PolicyParams(**raw))
    except ConfigError as e:
        raise InputFormatError(f"params: {e}") from e


def _parse_process_spec(raw: dict[str, Any], *, label: str) -> ProcessSpec:
    burst = raw.get("burst_time")
    priority = raw.get("priority", 3)
    arrival = raw.get("arrival_time", 0)

    if isinstance(burst, bool) or not isinstance(burst, int) or burst < 1:
        raise InputFormatError(f"{label}.burst_time must be an int >= 1")
    if isinstance(priority, bool) or not isinstance(priority, int) or priority < 1:
        raise InputFormatError(f"{label}.priority must be an int >= 1")
    if isinstance(arrival, bool) or not isinstance(arrival, int) or arrival < 0:
        raise InputFormatError(f"{label}.arrival_time must be an int >= 0")

    return ProcessSpec(burst_time=burst, priority=priority, arrival_time=arrival)


def _plain(d: dict[str, Any]) -> dict[str, Any]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in d.items()}


def dump_processes(processes: Iterable[Process]) -> list[dict[str, Any]]:
    return [_plain(asdict(p)) for p in processes]


def dump_timeline(segments: Iterable[HistorySegment]) -> list[dict[str, Any]]:
    return [asdict(s) for s in segments]


def dump_events(events: Iterable[Event]) -> list[dict[str, Any]]:
    """Return a JSON-serializable event stream, ordered as emitted."""
    return [_plain(asdict(e)) for e in events]


def write_json(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
