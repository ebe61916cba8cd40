from __future__ import annotations

from sched_sandbox.engine import advance
from sched_sandbox.models import Core, HistorySegment, Policy, PolicyParams
from sched_sandbox.timeline import TimelineRecorder
from tests._support.engine_helpers import make_cores, make_processes


def record_run(policy, procs, cores, ticks, params=PolicyParams()) -> TimelineRecorder:
    rec = TimelineRecorder()
    for tick in range(ticks):
        procs, cores = advance(tick, policy, procs, cores, params)
        rec.record(tick, procs, cores)
    return rec


def spans(rec: TimelineRecorder, core_id: str = "core-1") -> list[tuple[str | None, int, int]]:
    return [(s.process_id, s.start_time, s.duration) for s in rec.for_core(core_id)]


def test_round_robin_history_is_compacted_per_occupant() -> None:
    rec = record_run(
        Policy.RR, make_processes((5, 0), (4, 0)), make_cores(1), 12, PolicyParams(time_quantum=2)
    )
    assert spans(rec) == [
        ("P1", 0, 2),
        ("P2", 2, 2),
        ("P1", 4, 2),
        ("P2", 6, 2),
        ("P1", 8, 1),
        (None, 9, 3),
    ]


def test_segment_ids_and_process_index() -> None:
    rec = record_run(Policy.FCFS, make_processes((2, 1)), make_cores(1), 4)
    assert rec.segments == (
        HistorySegment("seg-idle-core-1-0", "core-1", None, None, 0, 1),
        HistorySegment("seg-core-1-1", "core-1", "P1", 0, 1, 2),
        HistorySegment("seg-idle-core-1-3", "core-1", None, None, 3, 1),
    )


def test_idle_cores_accumulate_a_single_idle_segment() -> None:
    rec = record_run(Policy.FCFS, [], make_cores(2), 5)
    assert [(s.core_id, s.process_id, s.start_time, s.duration) for s in rec.segments] == [
        ("core-1", None, 0, 5),
        ("core-2", None, 0, 5),
    ]


def test_redispatch_of_same_process_extends_the_segment() -> None:
    # a lone RR process is requeued and immediately dispatched again
    rec = record_run(Policy.RR, make_processes((5, 0)), make_cores(1), 5, PolicyParams(time_quantum=2))
    assert spans(rec) == [("P1", 0, 5)]


def test_gap_in_recording_starts_a_new_segment() -> None:
    procs = make_processes((10, 0))
    cores = make_cores(1)
    rec = TimelineRecorder()

    procs, cores = advance(0, Policy.FCFS, procs, cores)
    rec.record(0, procs, cores)
    # tick 1 happens but is not recorded (e.g. the core was removed and re-added)
    procs, cores = advance(1, Policy.FCFS, procs, cores)
    procs, cores = advance(2, Policy.FCFS, procs, cores)
    rec.record(2, procs, cores)

    assert spans(rec) == [("P1", 0, 1), ("P1", 2, 1)]


def test_returned_segments_are_not_aliased() -> None:
    procs = make_processes((3, 0))
    rec = TimelineRecorder()
    procs, cores = advance(0, Policy.FCFS, procs, make_cores(1))
    rec.record(0, procs, cores)
    first = rec.segments

    procs, cores = advance(1, Policy.FCFS, procs, cores)
    rec.record(1, procs, cores)

    assert first[0].duration == 1
    assert rec.segments[0].duration == 2


def test_recording_never_feeds_back_into_the_engine() -> None:
    procs = make_processes((4, 0), (2, 1))
    cores: list[Core] = make_cores(1)
    plain_procs, plain_cores = procs, cores
    rec = TimelineRecorder()

    for tick in range(8):
        procs, cores = advance(tick, Policy.SRTF, procs, cores)
        rec.record(tick, procs, cores)
        plain_procs, plain_cores = advance(tick, Policy.SRTF, plain_procs, plain_cores)

    assert procs == plain_procs
    assert cores == plain_cores


def test_reset_clears_history() -> None:
    rec = record_run(Policy.FCFS, make_processes((2, 0)), make_cores(1), 3)
    rec.reset()
    assert rec.segments == ()
    assert rec.for_core("core-1") == ()
