#!/usr/bin/env python3
"""
Dining Philosophers Simulator
Main entry point for the simulation system.

Discrete-event simulation of the dining philosophers problem with pluggable
conflict-resolution and deadlock-avoidance strategies. Educational tool for
demonstrating resource contention, circular-wait deadlock and starvation.
"""

import argparse
import sys
from enum import Enum
from typing import Optional, Tuple

from algorithms.context import EngineContext
from algorithms.conflict import resolve_conflicts
from algorithms.detection import detect_deadlock, mark_deadlocked
from algorithms.state_machine import apply_event, apply_order
from algorithms.strategies import StrategyName, create_policy
from analysis.events import EventLog, TraceEvent, TraceEventType
from analysis.metrics import SimulationMetrics, format_metrics_report
from models.event_queue import EventQueue, EventType
from models.snapshot import SimulationSnapshot, SimulationStats, StepOutcome, StepResult
from models.table_state import InternalConsistencyError, TableState
from utils.config_loader import (
    ConfigurationError,
    DEFAULT_NUM_PHILOSOPHERS,
    config_from_dict,
    load_config,
    validate_num_philosophers,
    validate_strategy,
    validate_waiter_permissions,
)
from utils.logger import SimulatorLogger
from utils.random_source import RandomSource, UniformRandomSource


class ControllerState(Enum):
    """Lifecycle of the simulation controller."""
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    STOPPED = "STOPPED"


class DiningSimulation:
    """
    One dining philosophers engine instance.

    Owns the event queue, the table and the statistics. External code drives
    it one batch at a time with step() and only ever reads snapshots.

    Step Ordering (for deterministic execution):
    1. Pop every event sharing the earliest fire time
    2. Resolve simultaneous requests for the same chopstick
    3. Apply the surviving events: releases, then hunger, then pickups
    4. Check resource conservation
    5. Run deadlock detection
    6. Capture a snapshot
    """

    def __init__(
        self,
        num_philosophers: int = DEFAULT_NUM_PHILOSOPHERS,
        strategy: str = StrategyName.BASIC.value,
        waiter_permissions: Optional[int] = None,
        random_source: Optional[RandomSource] = None,
        logger: Optional[SimulatorLogger] = None,
        max_trace_events: Optional[int] = None
    ):
        self.logger = logger if logger is not None else SimulatorLogger(quiet=True)
        if max_trace_events is not None and max_trace_events < 0:
            raise ConfigurationError(f"max_trace_events must be >= 0, got {max_trace_events}")
        # None keeps the whole trace, 0 disables tracing
        self.max_trace_events = max_trace_events
        self.state = ControllerState.IDLE
        self._ctx: Optional[EngineContext] = None
        self._snapshot: Optional[SimulationSnapshot] = None
        self._fault: Optional[InternalConsistencyError] = None
        self.initialize(num_philosophers, strategy, waiter_permissions, random_source)

    def initialize(
        self,
        num_philosophers: int = DEFAULT_NUM_PHILOSOPHERS,
        strategy: str = StrategyName.BASIC.value,
        waiter_permissions: Optional[int] = None,
        random_source: Optional[RandomSource] = None
    ) -> None:
        """
        (Re)seed the whole simulation.

        Every philosopher starts THINKING with an END_THINKING event drawn
        from the random source (philosopher 0 first).

        Args:
            num_philosophers: Seats at the table (>= 2)
            strategy: Strategy name
            waiter_permissions: Waiter admission limit (defaults to N - 1)
            random_source: Duration/choice source (defaults to an unseeded uniform source)

        Raises:
            ConfigurationError: If any value is invalid; state is left unchanged
        """
        num_philosophers = validate_num_philosophers(num_philosophers)
        strategy_name = validate_strategy(strategy)
        if waiter_permissions is None:
            waiter_permissions = num_philosophers - 1
        else:
            validate_waiter_permissions(waiter_permissions, num_philosophers)
        if random_source is None:
            random_source = UniformRandomSource()

        queue = EventQueue()
        table = TableState.create(num_philosophers)
        ctx = EngineContext(
            table=table,
            queue=queue,
            policy=create_policy(strategy_name, waiter_permissions),
            random_source=random_source,
            stats=SimulationStats(),
            logger=self.logger,
            event_log=EventLog(max_events=self.max_trace_events)
        )
        for philosopher in table.philosophers:
            queue.schedule(random_source.duration(), EventType.END_THINKING, philosopher.philosopher_id)

        self.num_philosophers = num_philosophers
        self.strategy = strategy_name
        self.waiter_permissions = waiter_permissions
        self.random_source = random_source
        self._ctx = ctx
        self._fault = None
        self.state = ControllerState.IDLE
        self._snapshot = self._capture()

        self.logger.log(
            f"Initialized {num_philosophers} philosophers with {strategy_name.value} strategy"
            + (f" (waiter permissions: {waiter_permissions})"
               if strategy_name is StrategyName.WAITER else ""),
            "debug"
        )

    def reset(self) -> None:
        """Reinitialize with the current parameters and random source."""
        self.initialize(
            self.num_philosophers,
            self.strategy.value,
            self.waiter_permissions,
            self.random_source
        )

    def set_strategy(self, strategy: str) -> None:
        """
        Switch strategy; implies a full reinitialization.

        Raises:
            ConfigurationError: If the strategy name is unknown
        """
        strategy_name = validate_strategy(strategy)
        self.initialize(
            self.num_philosophers,
            strategy_name.value,
            self.waiter_permissions,
            self.random_source
        )

    def set_waiter_permissions(self, waiter_permissions: int) -> None:
        """
        Change the waiter admission limit; applies from the next pickup.

        Raises:
            ConfigurationError: If not in [1, num_philosophers - 1]
        """
        validate_waiter_permissions(waiter_permissions, self.num_philosophers)
        self.waiter_permissions = waiter_permissions
        self._ctx.policy = create_policy(self.strategy, waiter_permissions)

    def start(self) -> None:
        """Enter RUNNING; a deadlocked simulation is reinitialized first."""
        if self._ctx.stats.deadlock_detected:
            self.reset()
        self.state = ControllerState.RUNNING

    def pause(self) -> None:
        if self.state == ControllerState.RUNNING:
            self.state = ControllerState.PAUSED

    def resume(self) -> None:
        if self.state == ControllerState.PAUSED:
            self.state = ControllerState.RUNNING

    def step(self) -> StepResult:
        """
        Process exactly one batch of simultaneous events.

        Returns:
            StepResult with outcome ADVANCED, or a terminal outcome
            (DEADLOCK, QUEUE_EXHAUSTED). Once terminal, further calls return
            the same outcome without touching any state.

        Raises:
            InternalConsistencyError: If an invariant breaks; the simulation
            refuses to continue until reinitialized
        """
        if self._fault is not None:
            raise InternalConsistencyError(
                f"Simulation halted after internal error: {self._fault}"
            ) from self._fault

        ctx = self._ctx
        if ctx.stats.deadlock_detected:
            return StepResult(StepOutcome.DEADLOCK, self._snapshot)

        batch = ctx.queue.pop_next_batch()
        if not batch:
            self.state = ControllerState.STOPPED
            self.logger.log("Event queue exhausted", "debug")
            return StepResult(StepOutcome.QUEUE_EXHAUSTED, self._snapshot)

        ctx.stats.current_time = ctx.queue.current_time
        self.logger.log_batch(ctx.now, [str(e) for e in batch])

        try:
            survivors, conflicts = resolve_conflicts(batch, ctx)
            for event in apply_order(survivors):
                apply_event(event, ctx)
            ctx.table.assert_resource_conservation(f"after batch at t={ctx.now}")
            deadlock_exists, deadlocked_ids = detect_deadlock(ctx.table)
        except InternalConsistencyError as e:
            self._fault = e
            self.state = ControllerState.STOPPED
            self.logger.log(f"t={ctx.now}: {e}", "error")
            raise

        if deadlock_exists:
            ctx.stats.deadlock_detected = True
            mark_deadlocked(ctx.table)
            self.logger.log_deadlock(ctx.now, deadlocked_ids)
            ctx.event_log.add(TraceEvent(
                time=ctx.now,
                event_type=TraceEventType.DEADLOCK,
                philosopher_id=-1,
                message=f"Deadlock detected - philosophers: {deadlocked_ids}"
            ))
            self.state = ControllerState.STOPPED
            self._snapshot = self._capture()
            return StepResult(StepOutcome.DEADLOCK, self._snapshot, conflicts, len(survivors))

        ctx.stats.event_count += 1
        self._snapshot = self._capture()
        return StepResult(StepOutcome.ADVANCED, self._snapshot, conflicts, len(survivors))

    def run(self, max_batches: int) -> StepResult:
        """
        Headless playback: start and step until terminal, paused or max_batches.

        Returns:
            The last StepResult
        """
        self.start()
        result = StepResult(StepOutcome.ADVANCED, self._snapshot)
        for _ in range(max_batches):
            if self.state != ControllerState.RUNNING:
                break
            result = self.step()
            if result.is_terminal:
                break
        return result

    def _capture(self) -> SimulationSnapshot:
        return SimulationSnapshot.capture(
            self._ctx.table,
            self._ctx.stats,
            self.strategy.value,
            len(self._ctx.queue)
        )

    @property
    def snapshot(self) -> SimulationSnapshot:
        """Snapshot taken after the latest step (or initialization)."""
        return self._snapshot

    latest_snapshot = snapshot

    @property
    def stats(self) -> SimulationStats:
        return self._ctx.stats

    @property
    def table(self) -> TableState:
        return self._ctx.table

    @property
    def queue(self) -> EventQueue:
        return self._ctx.queue

    @property
    def event_log(self) -> EventLog:
        return self._ctx.event_log

    @property
    def current_time(self) -> int:
        return self._ctx.queue.current_time

    @property
    def deadlocked(self) -> bool:
        return self._ctx.stats.deadlock_detected


def run_simulation(
    strategy: str = StrategyName.BASIC.value,
    num_philosophers: int = DEFAULT_NUM_PHILOSOPHERS,
    waiter_permissions: Optional[int] = None,
    max_batches: int = 1000,
    random_source: Optional[RandomSource] = None,
    verbose: bool = False,
    log_file: Optional[str] = None,
    quiet: bool = False,
    max_trace_events: Optional[int] = None
) -> Tuple[EventLog, SimulationMetrics, str]:
    """
    Run the simulation headless until a terminal outcome or the batch limit.

    Args:
        strategy: Strategy name
        num_philosophers: Seats at the table
        waiter_permissions: Waiter admission limit (defaults to N - 1)
        max_batches: Maximum batches to process
        random_source: Duration/choice source
        verbose: Enable verbose logging
        log_file: Optional log file path
        quiet: Suppress info output on the console
        max_trace_events: Trace size limit (None = unbounded, 0 = no tracing)

    Returns:
        Tuple of (event log, metrics, stop reason)

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    logger = SimulatorLogger(verbose=verbose, log_file=log_file, quiet=quiet)
    try:
        simulation = DiningSimulation(
            num_philosophers, strategy, waiter_permissions, random_source, logger,
            max_trace_events
        )

        logger.log(f"\n{'='*60}")
        logger.log(f"SIMULATION START: {simulation.strategy.value.upper()}")
        logger.log(f"Philosophers: {simulation.num_philosophers}")
        logger.log(f"{'='*60}\n")

        metrics = SimulationMetrics()
        simulation.start()
        stop_reason = f"Maximum batches reached ({max_batches})"
        for _ in range(max_batches):
            result = simulation.step()
            if result.outcome == StepOutcome.DEADLOCK:
                stop_reason = f"Deadlock detected at t={result.snapshot.current_time}"
                break
            if result.outcome == StepOutcome.QUEUE_EXHAUSTED:
                stop_reason = "Event queue exhausted"
                break
            metrics.record_step(result.snapshot)
            if verbose:
                logger.log_table_state(simulation.current_time, simulation.table.display())

        metrics.record_final(simulation.snapshot)

        logger.log(f"\n{'='*60}")
        logger.log("SIMULATION COMPLETE")
        logger.log(f"{'='*60}")
        logger.log(format_metrics_report(metrics, verbose, simulation.strategy.value, stop_reason))

        return simulation.event_log, metrics, stop_reason
    finally:
        logger.close()


def main():
    """Main entry point for the simulator."""
    parser = argparse.ArgumentParser(
        description='Dining Philosophers Simulator'
    )
    parser.add_argument(
        '--strategy',
        choices=[s.value for s in StrategyName],
        default=StrategyName.BASIC.value,
        help='Conflict-resolution / deadlock-avoidance strategy (default: basic)'
    )
    parser.add_argument(
        '--philosophers',
        type=int,
        default=DEFAULT_NUM_PHILOSOPHERS,
        help='Number of philosophers (default: 5)'
    )
    parser.add_argument(
        '--waiter-permissions',
        type=int,
        default=None,
        help='Waiter admission limit (default: philosophers - 1)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Seed for the random source'
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to a JSON config file (overrides the options above)'
    )
    parser.add_argument(
        '--max-batches',
        type=int,
        default=1000,
        help='Maximum batches to process (default: 1000)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write the log to this file'
    )
    parser.add_argument(
        '--analyze',
        action='store_true',
        help='Run performance analysis mode'
    )
    parser.add_argument(
        '--compare-strategies',
        action='store_true',
        help='Compare all strategies (requires --analyze)'
    )
    parser.add_argument(
        '--runs',
        type=int,
        default=10,
        help='Number of simulation runs per strategy for analysis (default: 10)'
    )

    args = parser.parse_args()

    # Validate arguments
    if args.compare_strategies and not args.analyze:
        parser.error('--compare-strategies requires --analyze')
    if args.max_batches <= 0:
        parser.error('--max-batches must be positive')
    if args.runs <= 0:
        parser.error('--runs must be positive')

    console = SimulatorLogger()
    try:
        if args.config:
            config = load_config(args.config)
        else:
            config = config_from_dict({
                'num_philosophers': args.philosophers,
                'strategy': args.strategy,
                'waiter_permissions': args.waiter_permissions,
                'seed': args.seed,
                'max_batches': args.max_batches,
            })
    except ConfigurationError as e:
        console.log(f"Invalid configuration: {e}", "error")
        return 2

    if config.description:
        console.log(f"Scenario: {config.description}")

    if args.analyze:
        from analysis.analyzer import compare_strategies, generate_comparison_report

        strategies = [s.value for s in StrategyName] if args.compare_strategies else [config.strategy]
        results, _ = compare_strategies(
            strategies,
            num_runs=args.runs,
            max_batches=config.max_batches,
            num_philosophers=config.num_philosophers,
            waiter_permissions=config.waiter_permissions,
            base_seed=config.seed if config.seed is not None else 0,
            run_simulation_func=run_simulation
        )
        print(generate_comparison_report(results, config.num_philosophers, args.runs))
        return 0

    run_simulation(
        strategy=config.strategy,
        num_philosophers=config.num_philosophers,
        waiter_permissions=config.waiter_permissions,
        max_batches=config.max_batches,
        random_source=config.build_random_source(),
        verbose=args.verbose,
        log_file=args.log_file
    )
    return 0


if __name__ == '__main__':
    sys.exit(main())
