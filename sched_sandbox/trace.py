from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from sched_sandbox.models import Core, Process, ProcessStatus
from sched_sandbox.simulation import Simulation


@dataclass(frozen=True)
class CoreTrace:
    core_id: str
    process_id: str | None
    # remaining_time of the occupant AFTER this tick, None when idle
    remaining_time: int | None
    lane: int | None


@dataclass(frozen=True)
class TickTrace:
    tick: int
    cores: list[CoreTrace]
    # eligible READY processes after dispatch, in collection order
    ready: list[str]
    completed: list[str]


def snapshot_tick(tick: int, processes: Sequence[Process], cores: Sequence[Core]) -> TickTrace:
    """
    Create a trace snapshot of the state produced by the tick.

    This function does not modify simulation behavior.
    """
    by_id = {p.id: p for p in processes}
    core_traces: list[CoreTrace] = []
    for c in cores:
        p = by_id.get(c.current_process_id) if c.current_process_id is not None else None
        core_traces.append(
            CoreTrace(
                core_id=c.id,
                process_id=p.id if p is not None else None,
                remaining_time=p.remaining_time if p is not None else None,
                lane=p.lane if p is not None else None,
            )
        )

    return TickTrace(
        tick=tick,
        cores=core_traces,
        ready=[
            p.id for p in processes if p.status == ProcessStatus.READY and p.arrival_time <= tick
        ],
        completed=[p.id for p in processes if p.status == ProcessStatus.COMPLETED],
    )


def run_ticks_with_trace(sim: Simulation, num_ticks: int) -> list[TickTrace]:
    """
    Step the simulation num_ticks times, returning a per-tick trace log.

    Adds observability only (no rule changes).
    """
    log: list[TickTrace] = []
    for _ in range(num_ticks):
        tick = sim.tick
        sim.step()
        log.append(snapshot_tick(tick, sim.processes, sim.cores))
    return log
