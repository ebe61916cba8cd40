from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Sequence

from sched_sandbox.engine import InvariantViolation
from sched_sandbox.models import Core, HistorySegment, Process


def _segment_id(core_id: str, process_id: str | None, tick: int) -> str:
    if process_id is None:
        return f"seg-idle-{core_id}-{tick}"
    return f"seg-{core_id}-{tick}"


@dataclass
class TimelineRecorder:
    """
    Compacted per-core occupancy history.

    Rules (per core, after every advance()):
      - same occupant as the core's latest segment, and that segment ends at
        this tick -> the segment grows by one tick
      - anything else -> a new segment starting at this tick with duration 1

    The log only grows at the end or extends a core's latest segment in place.
    It is observational: nothing here is ever fed back into the engine.
    """

    _segments: list[HistorySegment] = field(default_factory=list)
    # core id -> position of that core's latest segment in _segments
    _latest: dict[str, int] = field(default_factory=dict)

    @property
    def segments(self) -> tuple[HistorySegment, ...]:
        return tuple(self._segments)

    def for_core(self, core_id: str) -> tuple[HistorySegment, ...]:
        return tuple(s for s in self._segments if s.core_id == core_id)

    def record(self, tick: int, processes: Sequence[Process], cores: Sequence[Core]) -> None:
        index_of = {p.id: p.index for p in processes}

        for core in cores:
            pid = core.current_process_id
            if pid is not None and pid not in index_of:
                raise InvariantViolation(f"{core.id} references unknown process {pid!r}")

            pos = self._latest.get(core.id)
            if pos is not None:
                last = self._segments[pos]
                if last.process_id == pid and last.end_time == tick:
                    self._segments[pos] = replace(last, duration=last.duration + 1)
                    continue

            self._segments.append(
                HistorySegment(
                    id=_segment_id(core.id, pid, tick),
                    core_id=core.id,
                    process_id=pid,
                    process_index=index_of[pid] if pid is not None else None,
                    start_time=tick,
                    duration=1,
                )
            )
            self._latest[core.id] = len(self._segments) - 1

    def reset(self) -> None:
        self._segments.clear()
        self._latest.clear()
