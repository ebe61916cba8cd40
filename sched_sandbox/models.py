from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Policy(str, Enum):
    """
    Closed set of scheduling policies understood by the engine.
    Per-policy behavior lives in tables keyed by every member.
    """

    FCFS = "FCFS"
    SJF = "SJF"
    SRTF = "SRTF"
    RR = "RR"
    PRIORITY = "Priority"
    MLFQ = "MLFQ"


class ProcessStatus(str, Enum):
    # NEW: arrival_time still lies in the future.
    NEW = "new"
    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"


MLFQ_LANES = 3


@dataclass
class Process:
    id: str
    index: int
    # Lower number = more urgent. Never below 1.
    priority: int
    burst_time: int
    arrival_time: int
    remaining_time: int | None = None
    status: ProcessStatus = ProcessStatus.NEW
    # MLFQ lane, 0 is the highest priority lane.
    lane: int = 0
    time_quantum_used: int = 0
    # RR only: tick at which the quantum last expired (back of the ready queue).
    requeued_at: int | None = None

    # Lifecycle fields, each set at most once.
    start_time: int | None = None
    completion_time: int | None = None
    turnaround_time: int | None = None
    wait_time: int | None = None

    def __post_init__(self) -> None:
        if self.remaining_time is None:
            self.remaining_time = self.burst_time


@dataclass
class Core:
    id: str
    # Reference into the process collection, never ownership.
    current_process_id: str | None = None


@dataclass(frozen=True, slots=True)
class HistorySegment:
    """
    One contiguous stretch of a core's occupancy by a single process
    (or by nothing, when process_id is None).
    """

    id: str
    core_id: str
    process_id: str | None
    process_index: int | None
    start_time: int
    duration: int

    @property
    def end_time(self) -> int:
        return self.start_time + self.duration


@dataclass(frozen=True)
class PolicyParams:
    time_quantum: int = 3
    aging_enabled: bool = True
    aging_interval: int = 10
    mlfq_q0_quantum: int = 3
    mlfq_q1_quantum: int = 5
    mlfq_boost_interval: int = 20
