from __future__ import annotations

from sched_sandbox.models import Policy, PolicyParams, Process, ProcessStatus


class ConfigError(ValueError):
    """Raised when configuration is rejected before it can reach the engine."""


def parse_policy(value: object) -> Policy:
    """Accept a Policy or its name (case-insensitive); reject anything else."""
    if isinstance(value, Policy):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"policy must be a non-empty string (got {value!r})")
    wanted = value.strip().lower()
    for p in Policy:
        if p.value.lower() == wanted or p.name.lower() == wanted:
            return p
    names = ", ".join(p.value for p in Policy)
    raise ConfigError(f"unknown policy {value!r}; expected one of: {names}")


def _positive_int(value: object, *, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{label} must be an int (got {value!r})")
    if value <= 0:
        raise ConfigError(f"{label} must be > 0 (got {value})")
    return value


def validate_params(params: PolicyParams) -> PolicyParams:
    _positive_int(params.time_quantum, label="time_quantum")
    _positive_int(params.aging_interval, label="aging_interval")
    _positive_int(params.mlfq_q0_quantum, label="mlfq_q0_quantum")
    _positive_int(params.mlfq_q1_quantum, label="mlfq_q1_quantum")
    _positive_int(params.mlfq_boost_interval, label="mlfq_boost_interval")
    if not isinstance(params.aging_enabled, bool):
        raise ConfigError(f"aging_enabled must be a bool (got {params.aging_enabled!r})")
    return params


def validate_core_count(count: object) -> int:
    return _positive_int(count, label="core count")


def new_process(
    *,
    index: int,
    burst_time: int,
    priority: int,
    arrival_time: int,
    current_tick: int = 0,
) -> Process:
    """
    Build a validated Process named P<index+1>.

    The arrival is clamped to current_tick: a process cannot arrive in the past.
    """
    _positive_int(burst_time, label="burst_time")
    _positive_int(priority, label="priority")
    if isinstance(arrival_time, bool) or not isinstance(arrival_time, int):
        raise ConfigError(f"arrival_time must be an int (got {arrival_time!r})")
    if arrival_time < 0:
        raise ConfigError(f"arrival_time must be >= 0 (got {arrival_time})")

    return Process(
        id=f"P{index + 1}",
        index=index,
        priority=priority,
        burst_time=burst_time,
        arrival_time=max(int(current_tick), arrival_time),
        status=ProcessStatus.NEW,
    )
