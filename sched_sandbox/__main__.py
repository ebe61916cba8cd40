from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sched_sandbox.config import ConfigError
from sched_sandbox.driver import DriverSnapshot, TickDriver
from sched_sandbox.event_sink import InMemoryEventSink
from sched_sandbox.presets import PRESETS, get_preset
from sched_sandbox.reporting import (
    kernel_log_lines,
    render_metrics,
    render_process_table,
    render_timeline,
)
from sched_sandbox.simulation import Simulation
from sched_sandbox.stream_io import (
    InputFormatError,
    dump_events,
    dump_processes,
    dump_timeline,
    load_workload,
    write_json,
)


def _print_tick(snap: DriverSnapshot) -> None:
    occupants = " ".join(f"{c.id}={c.current_process_id or '-'}" for c in snap.cores)
    print(f"tick {snap.tick - 1:3d} | {occupants}", flush=True)


def _render_report(sim: Simulation, *, with_log: bool, events) -> str:
    core_ids = list(dict.fromkeys(s.core_id for s in sim.segments)) or [c.id for c in sim.cores]
    out: list[str] = [
        f"Policy: {sim.policy.value} | cores: {len(sim.cores)} | ticks: {sim.tick}",
        "",
        render_process_table(sim.processes),
        "Timeline",
        render_timeline(sim.segments, core_ids),
        "Metrics",
        render_metrics(sim.metrics()),
    ]
    if with_log:
        out.append("Kernel log")
        out.extend(kernel_log_lines(events))
        out.append("")
    return "\n".join(out).rstrip() + "\n"


def _cmd_run(args: argparse.Namespace) -> int:
    chosen = sum(1 for v in [bool(args.preset), bool(args.workload)] if v)
    if chosen != 1:
        print("ERROR: choose exactly one of --preset or --workload.", file=sys.stderr)
        return 2

    sink = InMemoryEventSink()
    sim = Simulation(event_sink=sink)

    try:
        if args.workload:
            workload = load_workload(Path(str(args.workload)))
        else:
            workload = get_preset(str(args.preset))
        sim.load_workload(workload)
        if args.policy:
            sim.set_policy(args.policy)
        if args.cores is not None:
            sim.set_core_count(int(args.cores))
    except InputFormatError as e:
        print(f"ERROR: invalid workload: {e}", file=sys.stderr)
        return 2
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    ticks = int(args.ticks)
    if ticks < 0:
        print("ERROR: --ticks must be >= 0.", file=sys.stderr)
        return 2

    if args.speed is not None:
        try:
            driver = TickDriver(sim, speed=float(args.speed), on_tick=_print_tick)
        except ConfigError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 2
        try:
            driver.play(max_ticks=ticks)
        except KeyboardInterrupt:
            driver.pause()
    else:
        sim.run_until_finished(ticks)

    sys.stdout.write(_render_report(sim, with_log=bool(args.log), events=sink.events))

    if args.events_out:
        write_json(Path(str(args.events_out)), dump_events(sink.events))
    if args.timeline_out:
        write_json(
            Path(str(args.timeline_out)),
            {"segments": dump_timeline(sim.segments), "processes": dump_processes(sim.processes)},
        )
    return 0


def _cmd_presets(args: argparse.Namespace) -> int:
    for name in sorted(PRESETS):
        w = PRESETS[name]
        print(f"{name:<12s} policy={w.policy.value:<8s} cores={w.cores} processes={len(w.processes)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="sched_sandbox",
        description=(
            "CPU Scheduling Sandbox: discrete-time scheduler harness.\n"
            "\n"
            "Runs FCFS, SJF, SRTF, RR, Priority (with aging) or MLFQ over a\n"
            "workload and prints per-process results, the per-core timeline\n"
            "and summary metrics."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a workload until every process completes.")
    run.add_argument("--preset", type=str, help="Run a built-in preset (see the 'presets' command).")
    run.add_argument("--workload", type=str, help="Run a workload JSON file.")
    run.add_argument("--policy", type=str, default=None, help="Override the workload's policy.")
    run.add_argument("--cores", type=int, default=None, help="Override the workload's core count.")
    run.add_argument("--ticks", type=int, default=500, help="Safety cap: max ticks to simulate.")
    run.add_argument(
        "--speed",
        type=float,
        default=None,
        help="Play in real time at this speed multiplier (1.0 = one tick per second).",
    )
    run.add_argument("--log", action="store_true", help="Append the kernel log to the report.")
    run.add_argument("--events-out", type=str, default=None, help="Write the event stream as JSON.")
    run.add_argument(
        "--timeline-out",
        type=str,
        default=None,
        help="Write history segments and final process state as JSON.",
    )
    run.set_defaults(func=_cmd_run)

    presets = sub.add_parser("presets", help="List the built-in presets.")
    presets.set_defaults(func=_cmd_presets)

    return parser


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
