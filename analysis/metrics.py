"""
Metrics Tracking for the Dining Philosophers Simulator.

Tracks performance metrics throughout simulation execution.
"""

from dataclasses import dataclass, field
from typing import List, Dict
import statistics

from models.snapshot import SimulationSnapshot


@dataclass
class SimulationMetrics:
    """
    Accumulated metrics for a single simulation run.

    Tracks four key performance metrics:
    1. Deadlock Occurrence: Whether the run ended in deadlock
    2. Chopstick Utilization %: Average (held / total) x 100 per batch
    3. Philosopher Waiting Time: Average hungry-to-eating time per philosopher
    4. Throughput: Meals finished / final logical time
    """
    deadlock_count: int = 0
    total_batches: int = 0
    final_time: int = 0
    total_meals: int = 0
    conflict_count: int = 0
    num_philosophers: int = 0

    # Per-batch samples
    utilization_samples: List[float] = field(default_factory=list)

    # Per-chopstick utilization tracking
    chopstick_utilization_samples: Dict[int, List[float]] = field(default_factory=dict)

    # Per-philosopher tracking
    philosopher_meals: Dict[int, int] = field(default_factory=dict)
    philosopher_waiting_times: Dict[int, float] = field(default_factory=dict)
    philosopher_final_states: Dict[int, str] = field(default_factory=dict)

    def record_step(self, snapshot: SimulationSnapshot) -> None:
        """
        Record metrics for a single processed batch.

        Args:
            snapshot: Snapshot taken after the batch
        """
        self.total_batches = snapshot.event_count
        self.final_time = snapshot.current_time
        self.num_philosophers = len(snapshot.philosophers)

        total = len(snapshot.chopsticks)
        if total > 0:
            self.utilization_samples.append(snapshot.held_chopsticks() / total * 100)

        for chopstick in snapshot.chopsticks:
            samples = self.chopstick_utilization_samples.setdefault(chopstick.chopstick_id, [])
            samples.append(0.0 if chopstick.available else 100.0)

    def record_final(self, snapshot: SimulationSnapshot) -> None:
        """
        Record the final state of a run.

        Args:
            snapshot: Last snapshot of the run
        """
        self.total_batches = snapshot.event_count
        self.final_time = snapshot.current_time
        self.conflict_count = snapshot.conflict_count
        self.total_meals = snapshot.total_meals()
        self.num_philosophers = len(snapshot.philosophers)
        if snapshot.deadlock_detected:
            self.deadlock_count = 1

        for p in snapshot.philosophers:
            self.philosopher_meals[p.philosopher_id] = p.eating_count
            self.philosopher_waiting_times[p.philosopher_id] = p.avg_waiting_time
            self.philosopher_final_states[p.philosopher_id] = p.state.value

    def get_avg_utilization(self) -> float:
        """Calculate average chopstick utilization."""
        if not self.utilization_samples:
            return 0.0
        return statistics.mean(self.utilization_samples)

    def get_chopstick_utilization(self, chopstick_id: int) -> float:
        """
        Calculate average utilization for a specific chopstick.

        Args:
            chopstick_id: Chopstick identifier

        Returns:
            Percentage of batches after which the chopstick was held
        """
        samples = self.chopstick_utilization_samples.get(chopstick_id)
        if not samples:
            return 0.0
        return statistics.mean(samples)

    def get_avg_waiting_time(self) -> float:
        """Average of the philosophers' average waiting times."""
        if not self.philosopher_waiting_times:
            return 0.0
        return statistics.mean(self.philosopher_waiting_times.values())

    def get_throughput(self) -> float:
        """
        Calculate throughput (meals / final logical time).
        """
        if self.final_time == 0:
            return 0.0
        return self.total_meals / self.final_time

    def get_min_meals(self) -> int:
        """Meals of the least-fed philosopher (0 flags starvation)."""
        if not self.philosopher_meals:
            return 0
        return min(self.philosopher_meals.values())


@dataclass
class MetricAccumulator:
    """Accumulates metrics across multiple simulation runs."""
    runs: List[SimulationMetrics] = field(default_factory=list)

    def add_run(self, metrics: SimulationMetrics) -> None:
        """Add metrics from a simulation run."""
        self.runs.append(metrics)

    def get_deadlock_frequency(self) -> float:
        """Fraction of runs that ended in deadlock."""
        if not self.runs:
            return 0.0
        return sum(run.deadlock_count for run in self.runs) / len(self.runs)

    def get_aggregate_utilization(self) -> float:
        """Average chopstick utilization across all runs."""
        if not self.runs:
            return 0.0
        return statistics.mean(run.get_avg_utilization() for run in self.runs)

    def get_aggregate_waiting_time(self) -> float:
        """Average waiting time across all runs."""
        if not self.runs:
            return 0.0
        return statistics.mean(run.get_avg_waiting_time() for run in self.runs)

    def get_aggregate_throughput(self) -> float:
        """Average throughput across all runs."""
        if not self.runs:
            return 0.0
        return statistics.mean(run.get_throughput() for run in self.runs)


def format_metrics_report(
    metrics: SimulationMetrics,
    verbose: bool = False,
    strategy: str = None,
    stop_reason: str = None
) -> str:
    """
    Format metrics for display at end of simulation.

    Args:
        metrics: SimulationMetrics instance with collected data
        verbose: If True, include metric formulas
        strategy: Strategy used in simulation
        stop_reason: Reason simulation stopped

    Returns:
        Formatted metrics report string
    """
    lines = []
    lines.append("\n" + "="*60)
    lines.append("SIMULATION METRICS")
    lines.append("="*60)

    if strategy:
        lines.append(f"Strategy: {strategy.upper()}")
    if stop_reason:
        lines.append(f"Stop Reason: {stop_reason}")
    if strategy or stop_reason:
        lines.append("")

    lines.append(f"Batches Processed: {metrics.total_batches}")
    lines.append(f"Final Time: {metrics.final_time}")
    lines.append(f"Philosophers: {metrics.num_philosophers}")
    lines.append(f"Conflicts: {metrics.conflict_count}")
    lines.append("")

    lines.append("KEY PERFORMANCE METRICS:")
    lines.append("-" * 60)
    lines.append(f"1. Deadlock: {'YES' if metrics.deadlock_count else 'No'}")
    lines.append(f"2. Average Chopstick Utilization: {metrics.get_avg_utilization():.2f}%")
    lines.append(f"3. Average Waiting Time: {metrics.get_avg_waiting_time():.2f} time units")
    lines.append(f"4. Throughput: {metrics.get_throughput():.4f} meals/time unit")

    if metrics.chopstick_utilization_samples:
        lines.append("")
        lines.append("PER-CHOPSTICK UTILIZATION:")
        lines.append("-" * 60)
        for chopstick_id in sorted(metrics.chopstick_utilization_samples.keys()):
            util = metrics.get_chopstick_utilization(chopstick_id)
            lines.append(f"  C{chopstick_id}: {util:.2f}% average")

    if metrics.philosopher_final_states:
        lines.append("")
        lines.append("PER-PHILOSOPHER SUMMARY:")
        lines.append("-" * 60)
        for pid in sorted(metrics.philosopher_final_states.keys()):
            state = metrics.philosopher_final_states[pid]
            meals = metrics.philosopher_meals.get(pid, 0)
            waiting = metrics.philosopher_waiting_times.get(pid, 0.0)
            lines.append(f"  P{pid}: {state:9} | meals={meals:3} | avg wait={waiting:6.2f}")

    if verbose:
        lines.append("")
        lines.append("METRIC FORMULAS:")
        lines.append("-" * 60)
        lines.append("1. Deadlock: Circular wait detected (every philosopher holds its left chopstick)")
        lines.append("2. Utilization: Average of (held chopsticks / chopsticks) x 100 per batch")
        lines.append("3. Waiting Time: Mean over philosophers of (hungry time / waiting phases)")
        lines.append("4. Throughput: (meals finished) / (final logical time)")

    lines.append("="*60)
    return "\n".join(lines)
