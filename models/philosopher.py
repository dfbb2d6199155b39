"""
Philosopher model for the Dining Philosophers Simulator.

Represents a seated philosopher with its fixed chopstick pair, its current
state and the time it has spent in each phase.
"""

from dataclasses import dataclass, field
from enum import Enum


class PhilosopherState(Enum):
    """Philosopher states in the simulation."""
    THINKING = "THINKING"
    HUNGRY = "HUNGRY"
    WAITING = "WAITING"
    EATING = "EATING"
    DEADLOCK = "DEADLOCK"


class Side(Enum):
    """Which of a philosopher's two chopsticks an action refers to."""
    LEFT = "left"
    RIGHT = "right"

    @property
    def other(self) -> "Side":
        return Side.RIGHT if self is Side.LEFT else Side.LEFT


@dataclass
class PhilosopherStats:
    """
    Per-philosopher phase statistics.

    Totals are in logical time units. Counts are the number of times each
    phase was entered (thinking and eating are counted when they end).
    """
    thinking_time: int = 0
    eating_time: int = 0
    waiting_time: int = 0
    thinking_count: int = 0
    eating_count: int = 0
    waiting_count: int = 0

    @property
    def avg_thinking_time(self) -> float:
        if self.thinking_count == 0:
            return 0.0
        return self.thinking_time / self.thinking_count

    @property
    def avg_eating_time(self) -> float:
        if self.eating_count == 0:
            return 0.0
        return self.eating_time / self.eating_count

    @property
    def avg_waiting_time(self) -> float:
        if self.waiting_count == 0:
            return 0.0
        return self.waiting_time / self.waiting_count


@dataclass
class Philosopher:
    """
    Represents a philosopher seated at the table.

    Attributes:
        philosopher_id: Seat identifier (unique, in [0, N))
        left_chopstick: Chopstick id on the left (== philosopher_id)
        right_chopstick: Chopstick id on the right ((id + 1) mod N)
        state: Current philosopher state
        has_left: True while holding the left chopstick
        has_right: True while holding the right chopstick
        last_state_change: Logical time of the last recorded phase boundary
        stats: Accumulated phase statistics
    """
    philosopher_id: int
    left_chopstick: int
    right_chopstick: int
    state: PhilosopherState = PhilosopherState.THINKING
    has_left: bool = False
    has_right: bool = False
    last_state_change: int = 0
    stats: PhilosopherStats = field(default_factory=PhilosopherStats)

    @classmethod
    def seated(cls, philosopher_id: int, num_philosophers: int) -> "Philosopher":
        """Create a philosopher at a seat of a table with num_philosophers seats."""
        return cls(
            philosopher_id=philosopher_id,
            left_chopstick=philosopher_id,
            right_chopstick=(philosopher_id + 1) % num_philosophers,
        )

    def chopstick_for(self, side: Side) -> int:
        """Chopstick id on the given side."""
        return self.left_chopstick if side is Side.LEFT else self.right_chopstick

    def holds(self, side: Side) -> bool:
        return self.has_left if side is Side.LEFT else self.has_right

    def set_holding(self, side: Side, holding: bool) -> None:
        if side is Side.LEFT:
            self.has_left = holding
        else:
            self.has_right = holding

    def holds_any(self) -> bool:
        return self.has_left or self.has_right

    def holds_both(self) -> bool:
        return self.has_left and self.has_right

    @property
    def lower_side(self) -> Side:
        """Side of the numerically lower chopstick."""
        if self.left_chopstick < self.right_chopstick:
            return Side.LEFT
        return Side.RIGHT

    def enter_waiting(self) -> bool:
        """
        Move to WAITING, counting the phase only on entry.

        Returns:
            True if the philosopher was not already waiting
        """
        if self.state == PhilosopherState.WAITING:
            return False
        self.state = PhilosopherState.WAITING
        self.stats.waiting_count += 1
        return True

    def record_thinking(self, now: int) -> None:
        """Close a thinking phase ending at `now`."""
        self.stats.thinking_time += now - self.last_state_change
        self.stats.thinking_count += 1
        self.last_state_change = now

    def record_waiting(self, now: int) -> None:
        """Close the hungry/waiting phase ending at `now`."""
        self.stats.waiting_time += now - self.last_state_change
        self.last_state_change = now

    def record_eating(self, now: int) -> None:
        """Close an eating phase ending at `now`."""
        self.stats.eating_time += now - self.last_state_change
        self.stats.eating_count += 1
        self.last_state_change = now

    def is_deadlock_pattern(self) -> bool:
        """Holds exactly its left chopstick and waits for the right one."""
        return (
            self.has_left
            and not self.has_right
            and self.state == PhilosopherState.WAITING
        )

    def __repr__(self) -> str:
        return (
            f"Philosopher(P{self.philosopher_id}, state={self.state.value}, "
            f"left=C{self.left_chopstick}{'*' if self.has_left else ''}, "
            f"right=C{self.right_chopstick}{'*' if self.has_right else ''})"
        )
