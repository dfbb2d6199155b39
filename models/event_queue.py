"""
Event queue and logical clock for the Dining Philosophers Simulator.

Events are kept in a heap ordered by fire time, then by priority (higher
first), then by insertion order. Popping always removes a whole batch of
same-time events.
"""

import heapq
import itertools
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple


class EventType(Enum):
    """Kinds of scheduled philosopher actions."""
    END_THINKING = "END_THINKING"
    PICKUP_LEFT = "PICKUP_LEFT"
    PICKUP_RIGHT = "PICKUP_RIGHT"
    END_EATING = "END_EATING"

    @property
    def is_pickup(self) -> bool:
        return self in (EventType.PICKUP_LEFT, EventType.PICKUP_RIGHT)


@dataclass(frozen=True)
class Event:
    """
    A scheduled future action.

    Attributes:
        fire_time: Absolute logical time at which the event fires
        event_type: Action to perform
        philosopher_id: Philosopher the action belongs to
        priority: Tie-break weight among same-time events (higher first)
    """
    fire_time: int
    event_type: EventType
    philosopher_id: int
    priority: int = 0

    def __str__(self) -> str:
        suffix = f", priority={self.priority}" if self.priority else ""
        return f"t={self.fire_time} P{self.philosopher_id} {self.event_type.value}{suffix}"


class EventQueue:
    """
    Time-ordered multiset of pending events plus the logical clock.

    Invariant: no queued event fires before `current_time`.
    """

    def __init__(self):
        self.current_time = 0
        self._heap: List[Tuple[int, int, int, Event]] = []
        self._sequence = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def is_empty(self) -> bool:
        return not self._heap

    def schedule(
        self,
        delay: int,
        event_type: EventType,
        philosopher_id: int,
        priority: int = 0
    ) -> Event:
        """
        Schedule an event `delay` time units after the current time.

        Args:
            delay: Non-negative offset from the current time (0 allowed)
            event_type: Action to perform
            philosopher_id: Philosopher the action belongs to
            priority: Tie-break weight (higher is processed first)

        Returns:
            The scheduled Event

        Raises:
            ValueError: If delay is negative
        """
        if delay < 0:
            raise ValueError(f"Cannot schedule {event_type.value} in the past (delay={delay})")

        event = Event(
            fire_time=self.current_time + delay,
            event_type=event_type,
            philosopher_id=philosopher_id,
            priority=priority
        )
        heapq.heappush(self._heap, (event.fire_time, -priority, next(self._sequence), event))
        return event

    def pop_next_batch(self) -> List[Event]:
        """
        Remove all events sharing the earliest fire time.

        Advances the clock to that time. Events are returned in queue order
        (priority descending, then insertion order).

        Returns:
            List of simultaneous events, empty when the queue is exhausted
        """
        if not self._heap:
            return []

        batch_time = self._heap[0][0]
        batch = []
        while self._heap and self._heap[0][0] == batch_time:
            batch.append(heapq.heappop(self._heap)[3])

        self.current_time = batch_time
        return batch

    def peek_time(self) -> int:
        """Fire time of the next batch, or -1 if the queue is empty."""
        if not self._heap:
            return -1
        return self._heap[0][0]

    def pending(self) -> List[Event]:
        """Copy of all queued events in processing order."""
        return [entry[3] for entry in sorted(self._heap)]

    def clear(self) -> None:
        """Drop every queued event and rewind the clock."""
        self._heap = []
        self._sequence = itertools.count()
        self.current_time = 0
