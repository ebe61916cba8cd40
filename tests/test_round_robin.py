from sched_sandbox.models import Policy, PolicyParams, ProcessStatus
from tests._support.engine_helpers import by_id, make_cores, make_processes, occupant, run_ticks

Q2 = PolicyParams(time_quantum=2)


def test_round_robin_alternates_every_quantum():
    """
    quantum=2, P1 (burst 5) and P2 (burst 4) both arrive at 0 on one core.
    Nobody gets two quanta in a row while the other waits.
    """
    procs = make_processes((5, 0), (4, 0))
    procs, _, history = run_ticks(Policy.RR, procs, make_cores(1), 10, Q2)

    occupants = [occupant(cores) for _, cores in history]
    assert occupants == ["P1", "P1", "P2", "P2", "P1", "P1", "P2", "P2", "P1", None]

    assert by_id(procs, "P2").completion_time == 8
    assert by_id(procs, "P1").completion_time == 9
    assert by_id(procs, "P1").wait_time == 4
    assert by_id(procs, "P2").wait_time == 4


def test_quantum_counter_is_not_reset_on_expiry_only_on_dispatch():
    procs = make_processes((5, 0), (4, 0))
    _, _, history = run_ticks(Policy.RR, procs, make_cores(1), 5, Q2)

    # tick 2: P1's quantum expired, P2 was dispatched instead
    procs_at_2, _ = history[2]
    p1 = by_id(procs_at_2, "P1")
    assert p1.status == ProcessStatus.READY
    assert p1.time_quantum_used == 2
    assert p1.requeued_at == 2
    assert by_id(procs_at_2, "P2").time_quantum_used == 0

    # tick 4: P1 dispatched again, fresh quantum
    procs_at_4, _ = history[4]
    assert by_id(procs_at_4, "P1").status == ProcessStatus.RUNNING
    assert by_id(procs_at_4, "P1").time_quantum_used == 0


def test_lone_process_is_redispatched_after_expiry():
    procs = make_processes((5, 0))
    procs, _, history = run_ticks(Policy.RR, procs, make_cores(1), 6, Q2)

    assert [occupant(cores) for _, cores in history] == ["P1"] * 5 + [None]
    assert by_id(procs, "P1").completion_time == 5


def test_fresh_arrival_queues_ahead_of_expired_process():
    """
    P2 arrives at tick 2, the same tick P1's quantum expires: the newcomer
    is ahead of the process going to the back of the queue.
    """
    procs = make_processes((6, 0), (2, 2))
    _, _, history = run_ticks(Policy.RR, procs, make_cores(1), 3, Q2)

    _, cores = history[2]
    assert occupant(cores) == "P2"


def test_round_robin_on_two_cores_keeps_every_core_busy():
    procs = make_processes((3, 0), (3, 0), (3, 0))
    procs, _, history = run_ticks(Policy.RR, procs, make_cores(2), 6, Q2)

    for processes, cores in history:
        ready = [p for p in processes if p.status == ProcessStatus.READY]
        if ready:
            assert all(c.current_process_id is not None for c in cores)

    assert all(p.status == ProcessStatus.COMPLETED for p in procs)
