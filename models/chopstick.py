"""
Chopstick model for the Dining Philosophers Simulator.

Represents a single shared chopstick placed between two seats.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Chopstick:
    """
    Represents one chopstick on the table.

    Attributes:
        chopstick_id: Chopstick identifier, in [0, N)
        available: True when nobody holds the chopstick
        held_by: Philosopher id of the current holder, or None

    Invariant:
        available == (held_by is None)
    """
    chopstick_id: int
    available: bool = True
    held_by: Optional[int] = None

    def __post_init__(self):
        """Validate chopstick state."""
        if self.chopstick_id < 0:
            raise ValueError(f"Chopstick id cannot be negative ({self.chopstick_id})")
        if self.available != (self.held_by is None):
            raise ValueError(
                f"Chopstick {self.chopstick_id}: available={self.available} "
                f"inconsistent with held_by={self.held_by}"
            )

    def is_consistent(self) -> bool:
        """Check the available/held_by invariant."""
        return self.available == (self.held_by is None)

    def __repr__(self) -> str:
        holder = "free" if self.held_by is None else f"P{self.held_by}"
        return f"Chopstick(C{self.chopstick_id}, {holder})"
