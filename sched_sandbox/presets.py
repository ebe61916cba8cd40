from __future__ import annotations

from sched_sandbox.config import ConfigError
from sched_sandbox.models import Policy
from sched_sandbox.stream_io import ProcessSpec, Workload

# One long job ahead of three short ones: the short jobs queue behind it.
CONVOY = Workload(
    policy=Policy.FCFS,
    cores=1,
    processes=(
        ProcessSpec(burst_time=18, priority=3, arrival_time=0),
        ProcessSpec(burst_time=2, priority=3, arrival_time=1),
        ProcessSpec(burst_time=2, priority=3, arrival_time=2),
        ProcessSpec(burst_time=2, priority=3, arrival_time=3),
    ),
)

# A low-priority job keeps losing the CPU to a stream of urgent ones.
STARVATION = Workload(
    policy=Policy.PRIORITY,
    cores=1,
    processes=(
        ProcessSpec(burst_time=10, priority=5, arrival_time=0),
        ProcessSpec(burst_time=5, priority=1, arrival_time=2),
        ProcessSpec(burst_time=5, priority=1, arrival_time=4),
        ProcessSpec(burst_time=5, priority=1, arrival_time=6),
    ),
)

PRESETS: dict[str, Workload] = {
    "convoy": CONVOY,
    "starvation": STARVATION,
}


def get_preset(name: str) -> Workload:
    try:
        return PRESETS[name.strip().lower()]
    except KeyError:
        raise ConfigError(
            f"unknown preset {name!r}; expected one of: {', '.join(sorted(PRESETS))}"
        ) from None
