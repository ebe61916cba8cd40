from __future__ import annotations

import sys

from sched_sandbox.simulation import Simulation
from sched_sandbox.trace import run_ticks_with_trace


def main(preset: str = "convoy", ticks: int = 26) -> None:
    sim = Simulation()
    sim.load_preset(preset)

    log = run_ticks_with_trace(sim, ticks)

    print(f"Preset {preset!r} under {sim.policy.value}")
    for entry in log:
        cores = "  ".join(
            f"{c.core_id}={c.process_id or '-':<3s}"
            + (f"(left={c.remaining_time})" if c.process_id is not None else "")
            for c in entry.cores
        )
        ready = ",".join(entry.ready) or "-"
        done = ",".join(entry.completed) or "-"
        print(f"Tick {entry.tick:3d} | {cores} | ready={ready} | done={done}")


if __name__ == "__main__":
    main(*sys.argv[1:2])
