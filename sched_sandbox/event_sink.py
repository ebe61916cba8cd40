from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from sched_sandbox.events import Event, EventType


class EventSink(ABC):
    """
    Consumer of structured events.
    The engine must be able to run with event_sink=None (no events).
    """

    @abstractmethod
    def start_tick(self, tick: int) -> int: ...

    @abstractmethod
    def emit(
        self,
        event_type: EventType,
        process: str | None = None,
        core: str | None = None,
        **data: Any,
    ) -> None: ...

    def reset(self) -> None:
        """Forget everything recorded so far. Sinks without memory need not override."""


@dataclass
class InMemoryEventSink(EventSink):
    """
    Simple sink for tests, the CLI and demos.
    Owns seq numbering so the engine stays free of global state.
    """

    events: list[Event] = field(default_factory=list)
    _tick: int | None = field(default=None, init=False)
    _seq: int = field(default=0, init=False)

    @property
    def current_tick(self) -> int | None:
        return self._tick

    def start_tick(self, tick: int) -> int:
        self._tick = int(tick)
        self._seq = 0
        return self._tick

    def emit(
        self,
        event_type: EventType,
        process: str | None = None,
        core: str | None = None,
        **data: Any,
    ) -> None:
        if self._tick is None:
            raise RuntimeError("EventSink.start_tick() must be called before emitting events.")
        self._seq += 1
        self.events.append(
            Event(
                tick=self._tick,
                seq=self._seq,
                type=event_type,
                process=process,
                core=core,
                data=dict(data),
            )
        )

    def of_type(self, event_type: EventType) -> list[Event]:
        return [e for e in self.events if e.type == event_type]

    def reset(self) -> None:
        self.events.clear()
        self._tick = None
        self._seq = 0
