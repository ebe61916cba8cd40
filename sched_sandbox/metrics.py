from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from sched_sandbox.models import HistorySegment, Process, ProcessStatus


@dataclass(frozen=True, slots=True)
class SimulationMetrics:
    completed: int
    total: int
    avg_wait_time: float
    avg_turnaround_time: float
    # completed processes per elapsed tick
    throughput: float
    # busy core-ticks / recorded core-ticks, in [0, 1]
    utilization: float
    core_utilization: dict[str, float]


def _ratio(num: float, den: float) -> float:
    return num / den if den else 0.0


def summarize(
    processes: Iterable[Process],
    segments: Sequence[HistorySegment],
    tick: int,
    core_ids: Iterable[str] | None = None,
) -> SimulationMetrics:
    """
    Aggregate figures for the run so far.

    Wait and turnaround are averaged over completed processes only (0.0 when
    none completed). Utilization is read from the timeline, so cores that were
    removed mid-run still count for the ticks they existed.
    """
    processes = list(processes)
    done = [p for p in processes if p.status == ProcessStatus.COMPLETED]

    busy_by_core: dict[str, int] = {}
    total_by_core: dict[str, int] = {}
    for s in segments:
        total_by_core[s.core_id] = total_by_core.get(s.core_id, 0) + s.duration
        if s.process_id is not None:
            busy_by_core[s.core_id] = busy_by_core.get(s.core_id, 0) + s.duration

    ids = list(core_ids) if core_ids is not None else list(total_by_core)
    core_utilization = {
        cid: _ratio(busy_by_core.get(cid, 0), total_by_core.get(cid, 0)) for cid in ids
    }

    return SimulationMetrics(
        completed=len(done),
        total=len(processes),
        avg_wait_time=_ratio(sum(p.wait_time or 0 for p in done), len(done)),
        avg_turnaround_time=_ratio(sum(p.turnaround_time or 0 for p in done), len(done)),
        throughput=_ratio(len(done), tick),
        utilization=_ratio(sum(busy_by_core.values()), sum(total_by_core.values())),
        core_utilization=core_utilization,
    )
