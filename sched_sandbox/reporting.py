from __future__ import annotations

from typing import Iterable, Sequence

from sched_sandbox.events import Event, EventType
from sched_sandbox.metrics import SimulationMetrics
from sched_sandbox.models import HistorySegment, Process, ProcessStatus

IDLE_LABEL = "idle"


def _describe(e: Event) -> str | None:
    """
    One kernel-log sentence per event. TICK_START carries no news and is skipped.
    """
    t = e.type
    if t == EventType.ARRIVED:
        return f"{e.process} loaded into the ready queue."
    if t == EventType.AGED:
        return f"{e.process} aged to priority {e.data.get('priority')}."
    if t == EventType.LANES_BOOSTED:
        return "Priority boost: every process back to lane 0."
    if t == EventType.COMPLETED:
        return f"{e.process} terminated on {e.core}. Wait: {e.data.get('wait_time')}."
    if t == EventType.QUANTUM_EXPIRED:
        return f"{e.process} used up its quantum on {e.core}; back of the queue."
    if t == EventType.DEMOTED:
        return f"{e.process} demoted to lane {e.data.get('lane')}."
    if t == EventType.PREEMPTED:
        reason = str(e.data.get("reason", "")).replace("_", " ")
        return f"{e.process} preempted on {e.core} by {e.data.get('contender')} ({reason})."
    if t == EventType.DISPATCHED:
        return f"Context switch: {e.process} onto {e.core}."
    return None


def kernel_log_lines(events: Iterable[Event]) -> list[str]:
    out: list[str] = []
    for e in events:
        msg = _describe(e)
        if msg is not None:
            out.append(f"[{e.tick:03d}] {msg}")
    return out


def _segment_label(s: HistorySegment) -> str:
    who = s.process_id if s.process_id is not None else IDLE_LABEL
    return f"{who}[{s.start_time}-{s.end_time})"


def render_timeline(segments: Sequence[HistorySegment], core_ids: Iterable[str] | None = None) -> str:
    """
    One line per core, segments in recorded order:

        core-1: P1[0-18) P2[18-20) idle[24-25)
    """
    if core_ids is None:
        core_ids = list(dict.fromkeys(s.core_id for s in segments))
    core_ids = list(core_ids)
    if not core_ids:
        return "(no cores)\n"

    width = max(len(c) for c in core_ids)
    out: list[str] = []
    for cid in core_ids:
        labels = [_segment_label(s) for s in segments if s.core_id == cid]
        out.append(f"{cid.ljust(width)}: {' '.join(labels) if labels else '-'}")
    return "\n".join(out) + "\n"


def _fmt(value: int | None) -> str:
    return "-" if value is None else str(value)


def render_process_table(processes: Sequence[Process]) -> str:
    header = ("id", "prio", "burst", "left", "arrive", "start", "finish", "tat", "wait", "status")
    rows = [header]
    for p in processes:
        rows.append(
            (
                p.id,
                str(p.priority),
                str(p.burst_time),
                str(p.remaining_time),
                str(p.arrival_time),
                _fmt(p.start_time),
                _fmt(p.completion_time),
                _fmt(p.turnaround_time),
                _fmt(p.wait_time),
                ProcessStatus(p.status).value,
            )
        )

    widths = [max(len(r[i]) for r in rows) for i in range(len(header))]
    lines = ["  ".join(cell.rjust(widths[i]) for i, cell in enumerate(r)).rstrip() for r in rows]
    return "\n".join(lines) + "\n"


def render_metrics(m: SimulationMetrics) -> str:
    out = [
        f"completed:      {m.completed}/{m.total}",
        f"avg wait:       {m.avg_wait_time:.2f}",
        f"avg turnaround: {m.avg_turnaround_time:.2f}",
        f"throughput:     {m.throughput:.3f} /tick",
        f"utilization:    {m.utilization * 100.0:.1f}%",
    ]
    for cid, u in m.core_utilization.items():
        out.append(f"  {cid}: {u * 100.0:.1f}%")
    return "\n".join(out) + "\n"
