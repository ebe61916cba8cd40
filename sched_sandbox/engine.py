from __future__ import annotations

import math
from dataclasses import replace
from typing import Callable, NamedTuple, Sequence

from sched_sandbox.event_sink import EventSink
from sched_sandbox.events import EventType
from sched_sandbox.models import MLFQ_LANES, Core, Policy, PolicyParams, Process, ProcessStatus

DEFAULT_PARAMS = PolicyParams()


class InvariantViolation(RuntimeError):
    """Raised when process/core state is internally inconsistent (programmer error)."""


def _rr_queue_position(p: Process) -> tuple[int, bool]:
    # Fresh arrivals at tick t queue ahead of a process whose quantum expired at t.
    if p.requeued_at is None:
        return p.arrival_time, False
    return p.requeued_at, True


# Dispatch order: smallest key wins, ties broken by collection order.
_SELECTION_KEYS: dict[Policy, Callable[[Process], tuple]] = {
    Policy.FCFS: lambda p: (p.arrival_time,),
    Policy.RR: _rr_queue_position,
    Policy.SJF: lambda p: (p.remaining_time, p.arrival_time),
    Policy.SRTF: lambda p: (p.remaining_time, p.arrival_time),
    Policy.PRIORITY: lambda p: (p.priority, p.arrival_time),
    Policy.MLFQ: lambda p: (p.lane, p.arrival_time),
}


class _Preemption(NamedTuple):
    # beats(contender, running) -> True when the running process must yield.
    beats: Callable[[Process, Process], bool]
    reason: str
    # Ready set taken once per tick (True) or re-read for every core (False).
    snapshot_ready: bool
    reset_quantum: bool


_PREEMPTION: dict[Policy, _Preemption | None] = {
    Policy.FCFS: None,
    Policy.SJF: None,
    Policy.RR: None,
    Policy.SRTF: _Preemption(
        beats=lambda c, r: c.remaining_time < r.remaining_time,
        reason="shorter_remaining_time",
        snapshot_ready=True,
        reset_quantum=True,
    ),
    Policy.PRIORITY: _Preemption(
        beats=lambda c, r: c.priority < r.priority,
        reason="higher_priority",
        snapshot_ready=True,
        reset_quantum=True,
    ),
    Policy.MLFQ: _Preemption(
        beats=lambda c, r: c.lane < r.lane,
        reason="higher_lane",
        snapshot_ready=False,
        reset_quantum=False,
    ),
}

_QUANTUM_POLICIES = frozenset({Policy.RR, Policy.MLFQ})


def mlfq_slice(lane: int, params: PolicyParams) -> float:
    if lane <= 0:
        return params.mlfq_q0_quantum
    if lane == 1:
        return params.mlfq_q1_quantum
    return math.inf


def check_invariants(tick: int, processes: Sequence[Process], cores: Sequence[Core]) -> None:
    """Fail fast on inconsistent state. Nothing is repaired here."""
    by_id: dict[str, Process] = {}
    for p in processes:
        if p.id in by_id:
            raise InvariantViolation(f"duplicate process id {p.id!r}")
        by_id[p.id] = p
        if p.status == ProcessStatus.RUNNING and p.arrival_time > tick:
            raise InvariantViolation(
                f"process {p.id!r} is running at tick {tick} before its arrival ({p.arrival_time})"
            )

    seen_cores: set[str] = set()
    claimed: dict[str, str] = {}
    for core in cores:
        if core.id in seen_cores:
            raise InvariantViolation(f"duplicate core id {core.id!r}")
        seen_cores.add(core.id)

        pid = core.current_process_id
        if pid is None:
            continue
        if pid not in by_id:
            raise InvariantViolation(f"{core.id} references unknown process {pid!r}")
        if pid in claimed:
            raise InvariantViolation(f"process {pid!r} claimed by both {claimed[pid]} and {core.id}")
        if by_id[pid].status != ProcessStatus.RUNNING:
            raise InvariantViolation(
                f"{core.id} references {pid!r} whose status is {ProcessStatus(by_id[pid].status).value}"
            )
        claimed[pid] = core.id

    for p in processes:
        if p.status == ProcessStatus.RUNNING and p.id not in claimed:
            raise InvariantViolation(f"process {p.id!r} is running but no core references it")


def _eligible_ready(tick: int, processes: list[Process]) -> list[Process]:
    return [p for p in processes if p.status == ProcessStatus.READY and p.arrival_time <= tick]


def advance(
    tick: int,
    policy: Policy | str,
    processes: Sequence[Process],
    cores: Sequence[Core],
    params: PolicyParams = DEFAULT_PARAMS,
    event_sink: EventSink | None = None,
) -> tuple[list[Process], list[Core]]:
    """
    Advance the system by exactly one tick and return (processes', cores').

    Inputs are copied, never mutated. The same arguments always give the same
    result; event_sink only observes.

    Fixed order within a tick:
      1) arrival: NEW processes whose arrival_time <= tick become READY
      2) aging (Priority + aging_enabled): READY processes improve priority by 1
         on every aging_interval boundary since arrival, never below 1
      3) MLFQ boost: every boost interval all non-completed processes go to lane 0
      4) execution: every occupied core burns one unit of remaining_time;
         completion, RR quantum expiry and MLFQ demotion vacate the core
      5) preemption: SRTF (shorter remaining), Priority (smaller priority number),
         MLFQ (strictly lower lane); ties keep the incumbent
      6) dispatch: every vacant core takes the best eligible READY process

    completion_time is the boundary right after the last tick of work, which is
    the tick at which the exhaustion is observed (this call's tick).
    """
    policy = Policy(policy)
    procs = [replace(p) for p in processes]
    new_cores = [replace(c) for c in cores]
    check_invariants(tick, procs, new_cores)
    by_id = {p.id: p for p in procs}

    if event_sink is not None:
        event_sink.start_tick(tick)
        event_sink.emit(EventType.TICK_START, policy=policy.value)

    # 1) arrival
    for p in procs:
        if p.status == ProcessStatus.NEW and p.arrival_time <= tick:
            p.status = ProcessStatus.READY
            if event_sink is not None:
                event_sink.emit(EventType.ARRIVED, process=p.id)

    # 2) aging
    if policy is Policy.PRIORITY and params.aging_enabled:
        for p in procs:
            if p.status != ProcessStatus.READY or p.arrival_time > tick:
                continue
            waited = tick - p.arrival_time
            if waited > 0 and waited % params.aging_interval == 0 and p.priority > 1:
                p.priority -= 1
                if event_sink is not None:
                    event_sink.emit(EventType.AGED, process=p.id, priority=p.priority)

    # 3) MLFQ boost
    if policy is Policy.MLFQ and tick > 0 and tick % params.mlfq_boost_interval == 0:
        for p in procs:
            if p.status != ProcessStatus.COMPLETED:
                p.lane = 0
        if event_sink is not None:
            event_sink.emit(EventType.LANES_BOOSTED)

    # 4) execution
    for core in new_cores:
        if core.current_process_id is None:
            continue
        p = by_id[core.current_process_id]
        p.remaining_time -= 1
        if policy in _QUANTUM_POLICIES:
            p.time_quantum_used += 1

        if p.remaining_time <= 0:
            p.remaining_time = 0
            p.status = ProcessStatus.COMPLETED
            p.completion_time = tick
            p.turnaround_time = p.completion_time - p.arrival_time
            p.wait_time = p.turnaround_time - p.burst_time
            core.current_process_id = None
            if event_sink is not None:
                event_sink.emit(
                    EventType.COMPLETED,
                    process=p.id,
                    core=core.id,
                    completion_time=p.completion_time,
                    turnaround_time=p.turnaround_time,
                    wait_time=p.wait_time,
                )
        elif policy is Policy.RR and p.time_quantum_used >= params.time_quantum:
            # time_quantum_used is only reset by the next dispatch
            p.status = ProcessStatus.READY
            p.requeued_at = tick
            core.current_process_id = None
            if event_sink is not None:
                event_sink.emit(EventType.QUANTUM_EXPIRED, process=p.id, core=core.id)
        elif policy is Policy.MLFQ and p.time_quantum_used >= mlfq_slice(p.lane, params):
            p.status = ProcessStatus.READY
            p.time_quantum_used = 0
            p.lane = min(p.lane + 1, MLFQ_LANES - 1)
            core.current_process_id = None
            if event_sink is not None:
                event_sink.emit(EventType.DEMOTED, process=p.id, core=core.id, lane=p.lane)

    # 5) preemption
    rule = _PREEMPTION[policy]
    if rule is not None:
        snapshot = _eligible_ready(tick, procs) if rule.snapshot_ready else None
        for core in new_cores:
            if core.current_process_id is None:
                continue
            running = by_id[core.current_process_id]
            contenders = snapshot if snapshot is not None else _eligible_ready(tick, procs)
            winner = next((c for c in contenders if rule.beats(c, running)), None)
            if winner is None:
                continue
            running.status = ProcessStatus.READY
            if rule.reset_quantum:
                running.time_quantum_used = 0
            core.current_process_id = None
            if event_sink is not None:
                event_sink.emit(
                    EventType.PREEMPTED,
                    process=running.id,
                    core=core.id,
                    reason=rule.reason,
                    contender=winner.id,
                )

    # 6) dispatch
    key = _SELECTION_KEYS[policy]
    for core in new_cores:
        if core.current_process_id is not None:
            continue
        ready = _eligible_ready(tick, procs)
        if not ready:
            continue
        # min() keeps the first of equal keys, so collection order breaks ties
        chosen = min(ready, key=key)
        first = chosen.start_time is None
        chosen.status = ProcessStatus.RUNNING
        if first:
            chosen.start_time = tick
        chosen.time_quantum_used = 0
        core.current_process_id = chosen.id
        if event_sink is not None:
            event_sink.emit(
                EventType.DISPATCHED,
                process=chosen.id,
                core=core.id,
                first_dispatch=first,
                lane=chosen.lane,
            )

    check_invariants(tick, procs, new_cores)
    return procs, new_cores
