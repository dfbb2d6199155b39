"""
Snapshot and statistics models for the Dining Philosophers Simulator.

Snapshots are immutable copies of the engine state taken between steps.
They are the only view external consumers (renderers, analysis) get.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from models.philosopher import Philosopher, PhilosopherState
from models.table_state import TableState


@dataclass
class SimulationStats:
    """
    Process-wide simulation counters.

    Attributes:
        event_count: Batches fully processed
        conflict_count: Contested chopsticks resolved (one per chopstick per batch)
        deadlock_detected: Set once a deadlock has been declared
        current_time: Logical time of the last processed batch
        fallback_resolutions: Conflicts resolved by the first-requester fallback
    """
    event_count: int = 0
    conflict_count: int = 0
    deadlock_detected: bool = False
    current_time: int = 0
    fallback_resolutions: int = 0


class StepOutcome(Enum):
    """Result of one engine step."""
    ADVANCED = "advanced"
    QUEUE_EXHAUSTED = "queue_exhausted"
    DEADLOCK = "deadlock"

    @property
    def is_terminal(self) -> bool:
        return self is not StepOutcome.ADVANCED


@dataclass(frozen=True)
class PhilosopherSnapshot:
    philosopher_id: int
    state: PhilosopherState
    left_chopstick: int
    right_chopstick: int
    has_left: bool
    has_right: bool
    thinking_time: int
    eating_time: int
    waiting_time: int
    thinking_count: int
    eating_count: int
    waiting_count: int
    avg_thinking_time: float
    avg_eating_time: float
    avg_waiting_time: float

    @classmethod
    def of(cls, philosopher: Philosopher) -> "PhilosopherSnapshot":
        stats = philosopher.stats
        return cls(
            philosopher_id=philosopher.philosopher_id,
            state=philosopher.state,
            left_chopstick=philosopher.left_chopstick,
            right_chopstick=philosopher.right_chopstick,
            has_left=philosopher.has_left,
            has_right=philosopher.has_right,
            thinking_time=stats.thinking_time,
            eating_time=stats.eating_time,
            waiting_time=stats.waiting_time,
            thinking_count=stats.thinking_count,
            eating_count=stats.eating_count,
            waiting_count=stats.waiting_count,
            avg_thinking_time=stats.avg_thinking_time,
            avg_eating_time=stats.avg_eating_time,
            avg_waiting_time=stats.avg_waiting_time,
        )


@dataclass(frozen=True)
class ChopstickSnapshot:
    chopstick_id: int
    available: bool
    held_by: Optional[int]


@dataclass(frozen=True)
class SimulationSnapshot:
    """Immutable view of the whole simulation between two steps."""
    current_time: int
    strategy: str
    philosophers: Tuple[PhilosopherSnapshot, ...]
    chopsticks: Tuple[ChopstickSnapshot, ...]
    event_count: int
    conflict_count: int
    deadlock_detected: bool
    fallback_resolutions: int = 0
    pending_events: int = 0

    @classmethod
    def capture(
        cls,
        table: TableState,
        stats: SimulationStats,
        strategy: str,
        pending_events: int = 0
    ) -> "SimulationSnapshot":
        return cls(
            current_time=stats.current_time,
            strategy=strategy,
            philosophers=tuple(PhilosopherSnapshot.of(p) for p in table.philosophers),
            chopsticks=tuple(
                ChopstickSnapshot(c.chopstick_id, c.available, c.held_by)
                for c in table.chopsticks
            ),
            event_count=stats.event_count,
            conflict_count=stats.conflict_count,
            deadlock_detected=stats.deadlock_detected,
            fallback_resolutions=stats.fallback_resolutions,
            pending_events=pending_events,
        )

    def states(self) -> Tuple[PhilosopherState, ...]:
        """Philosopher states in seat order."""
        return tuple(p.state for p in self.philosophers)

    def held_chopsticks(self) -> int:
        return sum(1 for c in self.chopsticks if not c.available)

    def total_meals(self) -> int:
        return sum(p.eating_count for p in self.philosophers)


@dataclass(frozen=True)
class StepResult:
    """Outcome of `DiningSimulation.step()` with the snapshot taken after it."""
    outcome: StepOutcome
    snapshot: SimulationSnapshot
    conflicts: int = 0
    events_applied: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.outcome.is_terminal
