from __future__ import annotations

from dataclasses import dataclass, field, replace

from sched_sandbox.config import (
    new_process,
    parse_policy,
    validate_core_count,
    validate_params,
)
from sched_sandbox.engine import advance
from sched_sandbox.event_sink import EventSink
from sched_sandbox.metrics import SimulationMetrics, summarize
from sched_sandbox.models import Core, HistorySegment, Policy, PolicyParams, Process, ProcessStatus
from sched_sandbox.presets import get_preset
from sched_sandbox.stream_io import Workload
from sched_sandbox.timeline import TimelineRecorder


def _core_id(n: int) -> str:
    return f"core-{n}"


def _seed_cores() -> list[Core]:
    return [Core(_core_id(1))]


@dataclass
class Simulation:
    """
    The single owner of simulation state between ticks.

    advance() stays pure; this object decides which tick comes next, keeps the
    timeline in step with it and is the only place configuration changes land.
    Configuration is applied between ticks only. Not thread-safe: while a
    TickDriver plays, change configuration through the driver.
    """

    policy: Policy = Policy.FCFS
    params: PolicyParams = field(default_factory=PolicyParams)
    event_sink: EventSink | None = None
    tick: int = field(default=0, init=False)
    _processes: list[Process] = field(default_factory=list, init=False)
    _cores: list[Core] = field(default_factory=_seed_cores, init=False)
    timeline: TimelineRecorder = field(default_factory=TimelineRecorder, init=False)

    def __post_init__(self) -> None:
        self.policy = parse_policy(self.policy)
        validate_params(self.params)

    # -- read side --

    @property
    def processes(self) -> tuple[Process, ...]:
        return tuple(self._processes)

    @property
    def cores(self) -> tuple[Core, ...]:
        return tuple(self._cores)

    @property
    def segments(self) -> tuple[HistorySegment, ...]:
        return self.timeline.segments

    @property
    def is_finished(self) -> bool:
        """True once at least one process exists and every process has completed."""
        return bool(self._processes) and all(
            p.status == ProcessStatus.COMPLETED for p in self._processes
        )

    def process(self, process_id: str) -> Process:
        for p in self._processes:
            if p.id == process_id:
                return p
        raise KeyError(process_id)

    def metrics(self) -> SimulationMetrics:
        return summarize(self._processes, self.timeline.segments, self.tick, [c.id for c in self._cores])

    # -- ticking --

    def step(self) -> None:
        processes, cores = advance(
            self.tick,
            self.policy,
            self._processes,
            self._cores,
            self.params,
            event_sink=self.event_sink,
        )
        self.timeline.record(self.tick, processes, cores)
        self._processes = processes
        self._cores = cores
        self.tick += 1

    def run(self, ticks: int) -> None:
        for _ in range(int(ticks)):
            self.step()

    def run_until_finished(self, max_ticks: int) -> int:
        """Step until every process completed or max_ticks elapsed; return ticks taken."""
        taken = 0
        while taken < max_ticks and not self.is_finished:
            self.step()
            taken += 1
        return taken

    # -- configuration (between ticks) --

    def set_policy(self, policy: Policy | str) -> None:
        self.policy = parse_policy(policy)

    def set_params(self, params: PolicyParams) -> None:
        self.params = validate_params(params)

    def add_process(self, burst_time: int, priority: int = 3, arrival_time: int | None = None) -> Process:
        p = new_process(
            index=len(self._processes),
            burst_time=burst_time,
            priority=priority,
            arrival_time=self.tick if arrival_time is None else arrival_time,
            current_tick=self.tick,
        )
        self._processes.append(p)
        return p

    def add_core(self) -> Core:
        core = Core(_core_id(len(self._cores) + 1))
        self._cores.append(core)
        return core

    def set_core_count(self, count: int) -> None:
        """
        Grow or shrink the core list, keeping existing cores in place.
        A process on a removed core goes back to READY.
        """
        validate_core_count(count)
        kept = self._cores[:count]
        released = {c.current_process_id for c in self._cores[count:] if c.current_process_id}
        if released:
            self._processes = [
                replace(p, status=ProcessStatus.READY, time_quantum_used=0) if p.id in released else p
                for p in self._processes
            ]
        for n in range(len(kept) + 1, count + 1):
            kept.append(Core(_core_id(n)))
        self._cores = kept

    def reset(self) -> None:
        """Back to the seeded empty state: tick 0, no processes, one idle core, no history."""
        self.tick = 0
        self._processes = []
        self._cores = _seed_cores()
        self.timeline.reset()
        if self.event_sink is not None:
            self.event_sink.reset()

    def load_workload(self, workload: Workload) -> None:
        params = validate_params(workload.params)
        validate_core_count(workload.cores)
        self.reset()
        self.policy = parse_policy(workload.policy)
        self.params = params
        self.set_core_count(workload.cores)
        for spec in workload.processes:
            self.add_process(spec.burst_time, spec.priority, spec.arrival_time)

    def load_preset(self, name: str) -> None:
        self.load_workload(get_preset(name))
