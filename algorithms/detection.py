"""
Deadlock Detection for the Dining Philosophers Simulator.

Recognises the classic circular wait at the table: every philosopher holds
its left chopstick and waits for its right one.
"""

from typing import List, Tuple

from models.philosopher import PhilosopherState
from models.table_state import InternalConsistencyError, TableState


def detect_deadlock(table: TableState) -> Tuple[bool, List[int]]:
    """
    Check whether the table is in the circular-wait deadlock.

    Deadlock iff every philosopher:
    - holds its left chopstick,
    - does not hold its right chopstick,
    - is WAITING,
    and every chopstick is held.

    The chopstick clause follows from the first one (N philosophers each
    holding a distinct left chopstick hold all N); if it does not hold, the
    table is corrupt.

    NOTE: this only recognises the left-hold pattern. A philosopher stuck
    while holding only its right chopstick is not reported.

    Args:
        table: Current table state

    Returns:
        Tuple of (deadlock_exists, list of deadlocked philosopher ids)

    Raises:
        InternalConsistencyError: If the redundant chopstick check fails
    """
    if not all(p.is_deadlock_pattern() for p in table.philosophers):
        return False, []

    if not table.all_chopsticks_held():
        free = [c.chopstick_id for c in table.chopsticks if c.available]
        raise InternalConsistencyError(
            f"Every philosopher waits holding its left chopstick but C{free} are free"
        )

    return True, [p.philosopher_id for p in table.philosophers]


def mark_deadlocked(table: TableState) -> List[int]:
    """
    Move every WAITING philosopher to DEADLOCK.

    Returns:
        Ids of the philosophers marked
    """
    marked = []
    for philosopher in table.philosophers:
        if philosopher.state == PhilosopherState.WAITING:
            philosopher.state = PhilosopherState.DEADLOCK
            marked.append(philosopher.philosopher_id)
    return marked
