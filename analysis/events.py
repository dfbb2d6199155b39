"""
Trace Model for the Dining Philosophers Simulator.

Records what the engine did (grants, denials, releases, conflicts,
deadlock) so runs can be inspected and analysed afterwards.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TraceEventType(Enum):
    """Types of traced actions in the simulation."""
    ACQUIRE = "acquire"
    DENIAL = "denial"
    RELEASE = "release"
    CONFLICT = "conflict"
    DEADLOCK = "deadlock"


@dataclass
class TraceEvent:
    """
    Represents a single traced action.

    Attributes:
        time: Logical time of the batch
        event_type: Type of action
        philosopher_id: Philosopher involved (-1 for table-wide events)
        chopstick_id: Chopstick involved (if applicable)
        message: Human-readable description
        reason: Reason for a denial or conflict outcome (if applicable)
    """
    time: int
    event_type: TraceEventType
    philosopher_id: int
    chopstick_id: Optional[int] = None
    message: str = ""
    reason: str = ""

    def __str__(self) -> str:
        """Format event for logging."""
        base = f"t={self.time}: P{self.philosopher_id}"

        if self.event_type == TraceEventType.ACQUIRE:
            return f"{base} picks up C{self.chopstick_id} - GRANTED"
        elif self.event_type == TraceEventType.DENIAL:
            return f"{base} picks up C{self.chopstick_id} - DENIED ({self.reason})"
        elif self.event_type == TraceEventType.RELEASE:
            return f"{base} puts down C{self.chopstick_id}"
        elif self.event_type == TraceEventType.CONFLICT:
            return f"t={self.time}: CONFLICT on C{self.chopstick_id} ({self.message})"
        elif self.event_type == TraceEventType.DEADLOCK:
            return f"t={self.time}: DEADLOCK DETECTED ({self.message})"
        else:
            return f"{base} - {self.event_type.value}: {self.message}"


@dataclass
class EventLog:
    """
    Collection of traced actions.

    Attributes:
        events: Recorded actions, oldest first
        max_events: Keep only the most recent `max_events` actions
            (None = unbounded, 0 = tracing disabled)
        dropped: Actions discarded because of the cap
    """
    events: list = None
    max_events: Optional[int] = None
    dropped: int = 0

    def __post_init__(self):
        if self.max_events is not None and self.max_events < 0:
            raise ValueError(f"max_events must be >= 0, got {self.max_events}")
        if self.events is None:
            self.events = []
        self.events = self._new_store(self.events)

    def _new_store(self, items=()):
        if self.max_events is None:
            return list(items)
        return deque(items, maxlen=self.max_events)

    @property
    def enabled(self) -> bool:
        return self.max_events != 0

    def add(self, event: TraceEvent) -> None:
        """Add an event to the log, evicting the oldest one when full."""
        if self.max_events is not None and len(self.events) >= self.max_events:
            self.dropped += 1
            if not self.enabled:
                return
        self.events.append(event)

    def get_events_by_type(self, event_type: TraceEventType) -> list:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def get_events_by_time(self, time: int) -> list:
        """Get all events from a specific logical time."""
        return [e for e in self.events if e.time == time]

    def get_events_by_philosopher(self, philosopher_id: int) -> list:
        """Get all events involving a philosopher."""
        return [e for e in self.events if e.philosopher_id == philosopher_id]

    def clear(self) -> None:
        self.events = self._new_store()
        self.dropped = 0

    def display(self) -> str:
        """Format all events for display."""
        return "\n".join(str(event) for event in self.events)
