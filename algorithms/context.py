"""
Shared engine context for the Dining Philosophers Simulator.

Bundles the state owned by one simulation instance so the state machine,
conflict resolver and deadlock detector can be called with a single
argument.
"""

from dataclasses import dataclass, field
from typing import Optional

from algorithms.strategies import StrategyPolicy
from analysis.events import EventLog
from models.event_queue import EventQueue
from models.snapshot import SimulationStats
from models.table_state import TableState
from utils.logger import SimulatorLogger
from utils.random_source import RandomSource

# Delay before a denied or losing pickup is retried
RETRY_DELAY = 1


@dataclass
class EngineContext:
    """
    Everything one engine step reads or mutates.

    Attributes:
        table: Chopsticks and philosophers
        queue: Pending events and logical clock
        policy: Active strategy policy
        random_source: Injected durations and tie-break choices
        stats: Process-wide counters
        logger: Simulation logger
        event_log: Trace of granted/denied/released/contested actions
    """
    table: TableState
    queue: EventQueue
    policy: StrategyPolicy
    random_source: RandomSource
    stats: SimulationStats = field(default_factory=SimulationStats)
    logger: Optional[SimulatorLogger] = None
    event_log: EventLog = field(default_factory=EventLog)

    @property
    def now(self) -> int:
        return self.queue.current_time

    def log(self, message: str, level: str = "info") -> None:
        if self.logger:
            self.logger.log_time(self.now, message, level)
