from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from sched_sandbox.config import ConfigError
from sched_sandbox.models import Core, HistorySegment, Policy, PolicyParams, Process
from sched_sandbox.simulation import Simulation

T = TypeVar("T")

# One tick per second at 1x speed.
BASE_INTERVAL_MS = 1000.0
# Upper bound on a single wait so pause() and speed changes are picked up quickly.
_MAX_WAIT_S = 0.05


@dataclass(frozen=True)
class DriverSnapshot:
    tick: int
    processes: tuple[Process, ...]
    cores: tuple[Core, ...]
    segments: tuple[HistorySegment, ...]
    playing: bool


def _validate_speed(multiplier: object) -> float:
    if isinstance(multiplier, bool) or not isinstance(multiplier, (int, float)):
        raise ConfigError(f"speed multiplier must be a number (got {multiplier!r})")
    if not multiplier > 0:
        raise ConfigError(f"speed multiplier must be > 0 (got {multiplier})")
    return float(multiplier)


class TickDriver:
    """
    Paces calls into a Simulation.

    Two modes:
      - manual: step() advances exactly one tick per call
      - timed play: play() (blocking) or start() (background thread) advances one
        tick every BASE_INTERVAL_MS / speed milliseconds until pause()

    The driver is the only writer of the simulation while it runs: other
    threads read through snapshot() and change configuration through
    configure() or the set_*/add_* helpers, which wait for the tick in
    progress. Changing speed never touches the tick counter. clock/sleep are injectable so pacing can be tested without
    real waiting.
    """

    def __init__(
        self,
        simulation: Simulation,
        *,
        speed: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        on_tick: Callable[[DriverSnapshot], None] | None = None,
    ) -> None:
        self.simulation = simulation
        self._speed = _validate_speed(speed)
        self._clock = clock
        self._sleep = sleep
        self._on_tick = on_tick
        self._lock = threading.RLock()
        self._playing = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def interval_seconds(self) -> float:
        return BASE_INTERVAL_MS / self._speed / 1000.0

    @property
    def is_playing(self) -> bool:
        return self._playing.is_set()

    def set_speed(self, multiplier: float) -> None:
        speed = _validate_speed(multiplier)
        with self._lock:
            self._speed = speed

    # -- configuration, applied between ticks --

    def configure(self, change: Callable[[Simulation], T]) -> T:
        """Run change(simulation) under the tick lock so it lands between two ticks."""
        with self._lock:
            return change(self.simulation)

    def set_policy(self, policy: Policy | str) -> None:
        self.configure(lambda sim: sim.set_policy(policy))

    def set_params(self, params: PolicyParams) -> None:
        self.configure(lambda sim: sim.set_params(params))

    def add_process(self, burst_time: int, priority: int = 3, arrival_time: int | None = None) -> Process:
        return self.configure(lambda sim: sim.add_process(burst_time, priority, arrival_time))

    def add_core(self) -> Core:
        return self.configure(lambda sim: sim.add_core())

    def set_core_count(self, count: int) -> None:
        self.configure(lambda sim: sim.set_core_count(count))

    def snapshot(self) -> DriverSnapshot:
        with self._lock:
            sim = self.simulation
            return DriverSnapshot(
                tick=sim.tick,
                processes=sim.processes,
                cores=sim.cores,
                segments=sim.segments,
                playing=self.is_playing,
            )

    def step(self) -> int:
        """Advance one tick; return the new tick counter."""
        with self._lock:
            self.simulation.step()
            tick = self.simulation.tick
        if self._on_tick is not None:
            self._on_tick(self.snapshot())
        return tick

    def play(self, max_ticks: int | None = None, stop_when_finished: bool = True) -> int:
        """Run the pacing loop on the calling thread; return the number of ticks taken."""
        self._playing.set()
        return self._loop(max_ticks, stop_when_finished)

    def start(self, max_ticks: int | None = None, stop_when_finished: bool = True) -> threading.Thread:
        """
        Run the pacing loop on a daemon thread.

        While already playing this returns the running thread. A loop that was
        paused but has not exited yet is joined before the new one starts.
        """
        old = self._thread
        if old is not None and old.is_alive():
            if self._playing.is_set():
                return old
            old.join()
        self._playing.set()
        self._thread = threading.Thread(
            target=self._loop,
            args=(max_ticks, stop_when_finished),
            name="tick-driver",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def pause(self, timeout: float | None = None) -> None:
        """Stop invoking ticks. Any tick in progress completes first."""
        self._playing.clear()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if not thread.is_alive():
                self._thread = None

    def reset(self) -> None:
        self.pause()
        with self._lock:
            self.simulation.reset()

    def _finished(self) -> bool:
        with self._lock:
            return self.simulation.is_finished

    def _loop(self, max_ticks: int | None, stop_when_finished: bool) -> int:
        taken = 0
        last = self._clock()
        try:
            while self._playing.is_set():
                if max_ticks is not None and taken >= max_ticks:
                    break
                if stop_when_finished and self._finished():
                    break

                remaining = self.interval_seconds - (self._clock() - last)
                if remaining > 0:
                    self._sleep(min(remaining, _MAX_WAIT_S))
                    continue

                self.step()
                taken += 1
                last = self._clock()
        finally:
            self._playing.clear()
        return taken
