"""
Table State model for the Dining Philosophers Simulator.

Owns the chopsticks (the resource table) and the philosophers seated around
them. Provides the acquire/release operations used by the state machine and
the consistency checks used after every batch.
"""

import numpy as np
from typing import List
from dataclasses import dataclass, field

from models.chopstick import Chopstick
from models.philosopher import Philosopher, Side


class InternalConsistencyError(RuntimeError):
    """Raised when a simulation invariant is broken. The current step is aborted."""
    pass


@dataclass
class TableState:
    """
    Resource table plus philosopher records for one simulation instance.

    Attributes:
        philosophers: Philosophers ordered by seat id
        chopsticks: Chopsticks ordered by id
    """
    philosophers: List[Philosopher] = field(default_factory=list)
    chopsticks: List[Chopstick] = field(default_factory=list)

    @classmethod
    def create(cls, num_philosophers: int) -> "TableState":
        """Build a fresh table: all chopsticks free, everybody thinking."""
        return cls(
            philosophers=[Philosopher.seated(i, num_philosophers) for i in range(num_philosophers)],
            chopsticks=[Chopstick(chopstick_id=i) for i in range(num_philosophers)],
        )

    @property
    def num_philosophers(self) -> int:
        return len(self.philosophers)

    @property
    def num_chopsticks(self) -> int:
        return len(self.chopsticks)

    def is_available(self, chopstick_id: int) -> bool:
        """Check whether a chopstick is currently free."""
        return self.chopsticks[chopstick_id].available

    def acquire(self, chopstick_id: int, philosopher_id: int) -> None:
        """
        Hand a free chopstick to a philosopher.

        Args:
            chopstick_id: Chopstick to take
            philosopher_id: New holder

        Raises:
            InternalConsistencyError: If the chopstick is already held
        """
        chopstick = self.chopsticks[chopstick_id]
        if not chopstick.available:
            raise InternalConsistencyError(
                f"C{chopstick_id} acquired by P{philosopher_id} "
                f"while held by P{chopstick.held_by}"
            )
        chopstick.available = False
        chopstick.held_by = philosopher_id

    def release(self, chopstick_id: int) -> None:
        """
        Return a held chopstick to the table.

        Raises:
            InternalConsistencyError: If the chopstick is already free
        """
        chopstick = self.chopsticks[chopstick_id]
        if chopstick.available:
            raise InternalConsistencyError(f"C{chopstick_id} released while already free")
        chopstick.available = True
        chopstick.held_by = None

    def pick_up(self, philosopher: Philosopher, side: Side) -> None:
        """Acquire the chopstick on `side` and mark it on the philosopher."""
        self.acquire(philosopher.chopstick_for(side), philosopher.philosopher_id)
        philosopher.set_holding(side, True)

    def put_down(self, philosopher: Philosopher, side: Side) -> None:
        """Release the chopstick on `side` and clear the philosopher's flag."""
        chopstick_id = philosopher.chopstick_for(side)
        holder = self.chopsticks[chopstick_id].held_by
        if holder != philosopher.philosopher_id:
            raise InternalConsistencyError(
                f"P{philosopher.philosopher_id} puts down C{chopstick_id} held by {holder}"
            )
        self.release(chopstick_id)
        philosopher.set_holding(side, False)

    def held_count(self) -> int:
        """Number of chopsticks currently held."""
        return sum(1 for c in self.chopsticks if not c.available)

    def holder_count(self) -> int:
        """Number of philosophers holding at least one chopstick."""
        return sum(1 for p in self.philosophers if p.holds_any())

    def all_chopsticks_held(self) -> bool:
        return all(not c.available for c in self.chopsticks)

    @property
    def holding_matrix(self) -> np.ndarray:
        """
        Holding matrix [P][C] built from the philosophers' flags.
        Entry (p, c) is 1 when philosopher p believes it holds chopstick c.
        """
        matrix = np.zeros((self.num_philosophers, self.num_chopsticks), dtype=int)
        for i, philosopher in enumerate(self.philosophers):
            if philosopher.has_left:
                matrix[i][philosopher.left_chopstick] += 1
            if philosopher.has_right:
                matrix[i][philosopher.right_chopstick] += 1
        return matrix

    @property
    def availability_vector(self) -> np.ndarray:
        """Vector [C] with 1 for each free chopstick."""
        return np.array([1 if c.available else 0 for c in self.chopsticks], dtype=int)

    def assert_resource_conservation(self, context: str = "") -> None:
        """
        Verify exclusivity and conservation between philosophers and chopsticks.

        For every chopstick c: sum(holding[:, c]) + available[c] == 1, and the
        recorded holder matches the philosopher flag.

        Raises:
            InternalConsistencyError: If any invariant is violated
        """
        holding = self.holding_matrix
        available = self.availability_vector

        for c_idx, chopstick in enumerate(self.chopsticks):
            holders = holding[:, c_idx].sum()
            if holders + available[c_idx] != 1:
                raise InternalConsistencyError(
                    f"Conservation violated for C{c_idx} {context}\n"
                    f"  Holders: {holders}, Available: {available[c_idx]}"
                )
            if not chopstick.is_consistent():
                raise InternalConsistencyError(
                    f"C{c_idx} available={chopstick.available} but held_by={chopstick.held_by} {context}"
                )
            if holders == 1:
                holder_idx = int(np.argmax(holding[:, c_idx]))
                if chopstick.held_by != self.philosophers[holder_idx].philosopher_id:
                    raise InternalConsistencyError(
                        f"C{c_idx} recorded holder P{chopstick.held_by} but "
                        f"P{self.philosophers[holder_idx].philosopher_id} holds it {context}"
                    )

    def display(self) -> str:
        """
        Generate readable string representation of the table.

        Returns:
            Formatted string showing philosophers and chopsticks
        """
        output = []
        output.append("\n" + "="*60)
        output.append("TABLE STATE")
        output.append("="*60)

        output.append("\nPhilosophers:")
        for p in self.philosophers:
            left = "L" if p.has_left else "-"
            right = "R" if p.has_right else "-"
            output.append(
                f"  P{p.philosopher_id}: {p.state.value:9} [{left}{right}] "
                f"(C{p.left_chopstick}, C{p.right_chopstick})"
            )

        output.append("\nChopsticks:")
        for c in self.chopsticks:
            holder = "free" if c.available else f"held by P{c.held_by}"
            output.append(f"  C{c.chopstick_id}: {holder}")

        output.append("\nHolding Matrix:")
        output.append("     " + " ".join([f"C{i:2}" for i in range(self.num_chopsticks)]))
        holding = self.holding_matrix
        for i, p in enumerate(self.philosophers):
            row = f"  P{p.philosopher_id}: "
            row += " ".join([f"{holding[i][j]:3}" for j in range(self.num_chopsticks)])
            output.append(row)

        output.append("\n" + "="*60)
        return "\n".join(output)
