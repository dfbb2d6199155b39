"""
Performance Analysis Library for the Dining Philosophers Simulator.

Called by simulator.py --analyze to compare strategies.
This is a library module, not a standalone CLI tool.
"""

from typing import List, Dict, Optional, Tuple
from dataclasses import dataclass
import statistics

from utils.random_source import UniformRandomSource


@dataclass
class RunResult:
    """Results from a single simulation run."""
    strategy: str
    run_number: int
    seed: int
    stop_reason: str
    total_batches: int
    final_time: int
    total_meals: int
    min_meals: int
    conflict_count: int
    deadlock_count: int
    avg_utilization: float
    avg_waiting_time: float
    throughput: float

    def had_deadlock(self) -> bool:
        """Check if run ended in deadlock."""
        return self.deadlock_count > 0

    def had_starvation(self) -> bool:
        """Check if some philosopher never ate."""
        return self.min_meals == 0


@dataclass
class StrategyComparisonResult:
    """Results from comparing multiple strategies."""
    strategy_name: str
    deadlock_frequency: float  # Runs ending in deadlock / total runs
    avg_utilization: float  # Average % of chopsticks held
    avg_waiting_time: float  # Average hungry time per waiting phase
    throughput: float  # Meals / logical time
    avg_conflicts: float  # Conflicts per run
    total_runs: int
    completed_runs: int  # Runs that produced results
    deadlock_count: int = 0
    starvation_count: int = 0  # Runs where some philosopher never ate
    timeout_count: int = 0  # Runs that hit the batch limit

    def display(self) -> str:
        """Format results for display."""
        result = f"\nStrategy: {self.strategy_name.upper()}\n"
        result += f"  Runs: {self.total_runs} total\n"
        result += (
            f"    Deadlocks: {self.deadlock_count}/{self.total_runs} runs "
            f"({self.deadlock_frequency:.2%})\n"
        )
        result += (
            f"    Final outcomes: BatchLimit={self.timeout_count}, "
            f"Deadlock={self.deadlock_count}, Starved={self.starvation_count}\n"
        )
        result += f"  Chopstick Utilization: {self.avg_utilization:.2f}%\n"
        result += f"  Avg Waiting Time: {self.avg_waiting_time:.2f} time units\n"
        result += f"  Avg Conflicts: {self.avg_conflicts:.2f} per run\n"
        result += f"  Throughput: {self.throughput:.4f} meals/time unit"
        return result


def analyze_strategy(
    strategy_name: str,
    num_runs: int = 10,
    max_batches: int = 1000,
    num_philosophers: int = 5,
    waiter_permissions: Optional[int] = None,
    base_seed: int = 0,
    run_simulation_func=None
) -> Tuple[StrategyComparisonResult, List[RunResult]]:
    """
    Run multiple seeded simulations and collect metrics for a strategy.

    Run i uses seed base_seed + i, so every strategy sees the same seeds.

    Args:
        strategy_name: Strategy to test
        num_runs: Number of simulation runs
        max_batches: Batch limit per run
        num_philosophers: Seats at the table
        waiter_permissions: Waiter admission limit (None = N - 1)
        base_seed: Seed of the first run
        run_simulation_func: Function to run simulation (injected from simulator.py)

    Returns:
        Tuple of (StrategyComparisonResult, List[RunResult])
    """
    if run_simulation_func is None:
        raise ValueError("run_simulation_func must be provided")

    run_results: List[RunResult] = []

    print(f"\nRunning {num_runs} simulations for strategy: {strategy_name.upper()}")

    for run_idx in range(num_runs):
        seed = base_seed + run_idx
        _, metrics, stop_reason = run_simulation_func(
            strategy=strategy_name,
            num_philosophers=num_philosophers,
            waiter_permissions=waiter_permissions,
            max_batches=max_batches,
            random_source=UniformRandomSource(seed),
            quiet=True,
            max_trace_events=0
        )

        result = RunResult(
            strategy=strategy_name,
            run_number=run_idx + 1,
            seed=seed,
            stop_reason=stop_reason,
            total_batches=metrics.total_batches,
            final_time=metrics.final_time,
            total_meals=metrics.total_meals,
            min_meals=metrics.get_min_meals(),
            conflict_count=metrics.conflict_count,
            deadlock_count=metrics.deadlock_count,
            avg_utilization=metrics.get_avg_utilization(),
            avg_waiting_time=metrics.get_avg_waiting_time(),
            throughput=metrics.get_throughput()
        )
        run_results.append(result)

        deadlock_marker = " [DEADLOCK]" if result.had_deadlock() else ""
        print(f"    Run {run_idx + 1} (seed {seed}): {result.stop_reason}{deadlock_marker}")

    if not run_results:
        return StrategyComparisonResult(
            strategy_name=strategy_name,
            deadlock_frequency=0.0,
            avg_utilization=0.0,
            avg_waiting_time=0.0,
            throughput=0.0,
            avg_conflicts=0.0,
            total_runs=num_runs,
            completed_runs=0
        ), run_results

    deadlock_count = sum(1 for r in run_results if r.had_deadlock())
    starvation_count = sum(1 for r in run_results if r.had_starvation())
    timeout_count = sum(1 for r in run_results if "Maximum batches" in r.stop_reason)

    return StrategyComparisonResult(
        strategy_name=strategy_name,
        deadlock_frequency=deadlock_count / len(run_results),
        avg_utilization=statistics.mean(r.avg_utilization for r in run_results),
        avg_waiting_time=statistics.mean(r.avg_waiting_time for r in run_results),
        throughput=statistics.mean(r.throughput for r in run_results),
        avg_conflicts=statistics.mean(r.conflict_count for r in run_results),
        total_runs=num_runs,
        completed_runs=len(run_results),
        deadlock_count=deadlock_count,
        starvation_count=starvation_count,
        timeout_count=timeout_count
    ), run_results


def compare_strategies(
    strategies: List[str],
    num_runs: int = 10,
    max_batches: int = 1000,
    num_philosophers: int = 5,
    waiter_permissions: Optional[int] = None,
    base_seed: int = 0,
    run_simulation_func=None
) -> Tuple[List[StrategyComparisonResult], Dict[str, List[RunResult]]]:
    """
    Compare multiple strategies over the same seeds.

    Returns:
        Tuple of (List[StrategyComparisonResult], Dict[strategy_name -> List[RunResult]])
    """
    results = []
    all_run_results = {}

    for strategy in strategies:
        result, run_results = analyze_strategy(
            strategy,
            num_runs,
            max_batches,
            num_philosophers,
            waiter_permissions,
            base_seed,
            run_simulation_func
        )
        results.append(result)
        all_run_results[strategy] = run_results

    return results, all_run_results


def generate_comparison_report(
    results: List[StrategyComparisonResult],
    num_philosophers: int,
    num_runs: int
) -> str:
    """
    Generate formatted comparison report.

    Args:
        results: List of strategy comparison results
        num_philosophers: Seats at the table
        num_runs: Number of runs per strategy

    Returns:
        Formatted string report
    """
    report = "\n" + "="*70 + "\n"
    report += "STRATEGY COMPARISON REPORT\n"
    report += "="*70 + "\n"
    report += f"Philosophers: {num_philosophers}\n"
    report += f"Runs per strategy: {num_runs}\n"
    report += "="*70 + "\n"

    for result in results:
        report += result.display()
        report += "\n" + "-"*70

    report += "\n\nEXPECTED PATTERNS:\n"
    report += "-"*70 + "\n"
    report += "  BASIC / RANDOM:\n"
    report += "    - Deadlock reachable (everyone holds the left chopstick)\n"
    report += "  WAITER:\n"
    report += "    - Deadlock Frequency: Always 0% (at most N-1 philosophers hold chopsticks)\n"
    report += "  RESOURCE-HIERARCHY:\n"
    report += "    - Deadlock Frequency: Always 0% (chopsticks taken in ascending order)\n"
    report += "\n" + "="*70 + "\n"

    report += "\nKEY INSIGHTS:\n"
    report += "-"*70 + "\n"

    def format_best(metric_name: str, results_list: List[StrategyComparisonResult],
                    key_func, format_func, higher_is_better: bool = True):
        """Format best metric, handling ties. Returns empty string if all strategies tied."""
        if higher_is_better:
            target_value = max(key_func(r) for r in results_list)
        else:
            target_value = min(key_func(r) for r in results_list)

        winners = [r for r in results_list if key_func(r) == target_value]

        if len(winners) == len(results_list):
            return ""

        if len(winners) == 1:
            return f"  {metric_name}: {winners[0].strategy_name.upper()} ({format_func(target_value)})\n"
        names = ", ".join(w.strategy_name.upper() for w in winners)
        return f"  {metric_name}: {names} (tie at {format_func(target_value)})\n"

    if len(results) > 1:
        insights = [
            format_best("Best Chopstick Utilization", results,
                        lambda r: r.avg_utilization, lambda v: f"{v:.2f}%"),
            format_best("Lowest Deadlock Frequency", results,
                        lambda r: r.deadlock_frequency, lambda v: f"{v:.2%}",
                        higher_is_better=False),
            format_best("Best Throughput", results,
                        lambda r: r.throughput, lambda v: f"{v:.4f} meals/time unit"),
            format_best("Lowest Waiting Time", results,
                        lambda r: r.avg_waiting_time, lambda v: f"{v:.2f} time units",
                        higher_is_better=False),
        ]
        insights = [i for i in insights if i]

        if insights:
            for insight in insights:
                report += insight
        else:
            report += "  All strategies showed identical performance.\n"

    report += "\n" + "="*70 + "\n"

    return report
