"""
Strategy Policies for the Dining Philosophers Simulator.

Each strategy supplies two rules:
- an acquisition gate, checked before a chopstick is granted (on top of
  the chopstick being free), together with the side a hungry philosopher
  reaches for first
- a conflict tie-break, used when several philosophers reach for the
  same chopstick in the same batch

Strategies:
- basic: left then right, no gate; the higher philosopher id wins ties.
  Deadlock is reachable.
- random: same as basic but ties are broken uniformly at random.
- waiter: at most `waiter_permissions` philosophers may hold a chopstick
  at once (classic N-1 solution).
- resource-hierarchy: chopsticks are acquired in ascending id order, which
  rules out circular wait.
"""

from enum import Enum
from typing import List, Tuple

from models.event_queue import Event
from models.philosopher import Philosopher, Side
from models.table_state import TableState


class StrategyName(Enum):
    """Known strategies."""
    BASIC = "basic"
    RANDOM = "random"
    WAITER = "waiter"
    RESOURCE_HIERARCHY = "resource-hierarchy"

    @classmethod
    def from_name(cls, name) -> "StrategyName":
        """
        Look up a strategy by its name.

        Raises:
            ValueError: If the name is unknown
        """
        for strategy in cls:
            if strategy.value == name:
                return strategy
        valid = ", ".join(s.value for s in cls)
        raise ValueError(f"Unknown strategy {name!r} (expected one of: {valid})")


class StrategyPolicy:
    """Base policy: left chopstick first, no extra gate."""

    name: StrategyName = None

    def first_side(self, philosopher: Philosopher) -> Side:
        """Side a philosopher reaches for when it gets hungry."""
        return Side.LEFT

    def can_acquire(self, philosopher: Philosopher, side: Side, table: TableState) -> bool:
        """
        Strategy gate for a pickup. Availability is checked separately.

        Args:
            philosopher: Requesting philosopher
            side: Side being requested
            table: Current table state

        Returns:
            True if the strategy allows the request
        """
        return True

    def choose_winner(self, requests: List[Event], random_source) -> Tuple[Event, bool]:
        """
        Pick the request that gets a contested chopstick.

        Args:
            requests: Pickup events for one chopstick, in batch order (>= 2)
            random_source: Injected RandomSource

        Returns:
            Tuple of (winning event, True if the first-requester fallback was used)
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class BasicStrategy(StrategyPolicy):
    """Rightmost philosopher (highest id) wins a contested chopstick."""

    name = StrategyName.BASIC

    def choose_winner(self, requests, random_source):
        winner = requests[0]
        for request in requests[1:]:
            if request.philosopher_id > winner.philosopher_id:
                winner = request
        return winner, False


class RandomStrategy(StrategyPolicy):
    """Uniformly random contender wins a contested chopstick."""

    name = StrategyName.RANDOM

    def choose_winner(self, requests, random_source):
        return random_source.choice(requests), False


class WaiterStrategy(StrategyPolicy):
    """
    A waiter admits at most `waiter_permissions` philosophers to the table.

    A philosopher is admitted when it picks up its first chopstick and stays
    admitted until it puts both down, so requests from a philosopher that
    already holds a chopstick are never gated.
    """

    name = StrategyName.WAITER

    def __init__(self, waiter_permissions: int):
        self.waiter_permissions = waiter_permissions

    def can_acquire(self, philosopher, side, table):
        if philosopher.holds_any():
            return True
        return table.holder_count() < self.waiter_permissions

    def choose_winner(self, requests, random_source):
        return requests[0], True

    def __repr__(self) -> str:
        return f"WaiterStrategy(waiter_permissions={self.waiter_permissions})"


class ResourceHierarchyStrategy(StrategyPolicy):
    """
    Chopsticks are taken in ascending id order.

    For every seat but the last, the left chopstick is the lower one. The
    last seat (left = N-1, right = 0) reaches for its right chopstick first.
    """

    name = StrategyName.RESOURCE_HIERARCHY

    def first_side(self, philosopher):
        return philosopher.lower_side

    def can_acquire(self, philosopher, side, table):
        lower = philosopher.lower_side
        return side is lower or philosopher.holds(lower)

    def choose_winner(self, requests, random_source):
        return requests[0], True


def create_policy(strategy: StrategyName, waiter_permissions: int) -> StrategyPolicy:
    """
    Build the policy object for a strategy.

    Args:
        strategy: Strategy to build
        waiter_permissions: Admission limit (used by the waiter strategy only)

    Returns:
        StrategyPolicy instance
    """
    if strategy is StrategyName.BASIC:
        return BasicStrategy()
    elif strategy is StrategyName.RANDOM:
        return RandomStrategy()
    elif strategy is StrategyName.WAITER:
        return WaiterStrategy(waiter_permissions)
    elif strategy is StrategyName.RESOURCE_HIERARCHY:
        return ResourceHierarchyStrategy()
    raise ValueError(f"Unsupported strategy: {strategy!r}")
