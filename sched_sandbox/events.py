from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    """
    Vocabulary of facts the tick engine can report.
    One type per state transition; the engine never reads them back.
    """

    TICK_START = "TICK_START"
    ARRIVED = "ARRIVED"
    AGED = "AGED"
    LANES_BOOSTED = "LANES_BOOSTED"
    COMPLETED = "COMPLETED"
    QUANTUM_EXPIRED = "QUANTUM_EXPIRED"
    DEMOTED = "DEMOTED"
    PREEMPTED = "PREEMPTED"
    DISPATCHED = "DISPATCHED"


@dataclass(frozen=True, slots=True)
class Event:
    """
    A structured, orderable fact emitted by the engine (optionally).

    seq is owned by the sink; tick is the tick passed to advance().
    """

    tick: int
    seq: int
    type: EventType
    process: str | None = None
    core: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
