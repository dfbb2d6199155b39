"""
Strategy Comparison Tests

Runs the same scenarios under all four strategies to validate the expected
metric patterns:
- BASIC / RANDOM: deadlock reachable when everyone gets hungry together
- WAITER: never deadlocks (at most N-1 philosophers hold chopsticks)
- RESOURCE-HIERARCHY: never deadlocks (ascending acquisition order)
"""

import sys
import tempfile
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from simulator import DiningSimulation, run_simulation
from analysis.analyzer import analyze_strategy, compare_strategies, generate_comparison_report
from analysis.events import EventLog, TraceEvent, TraceEventType
from analysis.metrics import format_metrics_report
from models.table_state import TableState
from utils.config_loader import ConfigurationError
from utils.random_source import ScriptedRandomSource, UniformRandomSource


STRATEGIES = ["basic", "random", "waiter", "resource-hierarchy"]


def run_forced(strategy, max_batches=500):
    """Everyone thinks for exactly one time unit, every time."""
    return run_simulation(
        strategy=strategy,
        num_philosophers=5,
        max_batches=max_batches,
        random_source=ScriptedRandomSource([1]),
        quiet=True
    )


def test_forced_hunger_strategy_comparison():
    """
    Compare all strategies when all philosophers get hungry in the same tick.

    Expected:
    - BASIC, RANDOM: deadlock detected and halted
    - WAITER, RESOURCE-HIERARCHY: no deadlock, meals served
    """
    print("\n" + "="*60)
    print("STRATEGY COMPARISON TEST: Forced Hunger Scenario")
    print("="*60)

    results = {}
    for strategy in STRATEGIES:
        print(f"\nRunning with {strategy.upper()}...")
        event_log, metrics, stop_reason = run_forced(strategy)
        results[strategy] = {
            'event_log': event_log,
            'metrics': metrics,
            'stop_reason': stop_reason
        }
        print(f"  Stop reason: {stop_reason}")

    for strategy in ["basic", "random"]:
        deadlocks = results[strategy]['event_log'].get_events_by_type(TraceEventType.DEADLOCK)
        assert len(deadlocks) == 1, f"{strategy} should deadlock"
        assert results[strategy]['stop_reason'] == "Deadlock detected at t=1"
        assert results[strategy]['metrics'].total_meals == 0
        print(f"  ✓ {strategy.upper()}: deadlock detected and halted (as expected)")

    for strategy in ["waiter", "resource-hierarchy"]:
        metrics = results[strategy]['metrics']
        assert metrics.deadlock_count == 0, f"{strategy} should never deadlock"
        assert results[strategy]['stop_reason'] == "Maximum batches reached (500)"
        assert metrics.total_batches == 500
        assert metrics.total_meals > 0, f"{strategy} should serve meals"
        print(f"  ✓ {strategy.upper()}: {metrics.total_meals} meals, no deadlock")

    print("\n" + "="*60)
    print("✓ STRATEGY COMPARISON TEST PASSED")
    print("="*60 + "\n")


def test_hierarchy_contention_uses_fallback():
    """P0 and P4 both start with C0; the tie is broken by batch order."""
    event_log, metrics, _ = run_forced("resource-hierarchy", max_batches=3)

    conflicts = event_log.get_events_by_type(TraceEventType.CONFLICT)
    assert conflicts, "P0 and P4 contend for C0"
    first = conflicts[0]
    assert first.chopstick_id == 0
    assert first.philosopher_id == 0
    assert first.reason == "fallback"
    assert metrics.conflict_count >= 1


def test_metrics_patterns():
    """Deadlocked runs report it, progressing runs report utilization."""
    print("\n" + "="*60)
    print("METRICS PATTERNS TEST")
    print("="*60)

    _, basic, basic_reason = run_forced("basic")
    _, waiter, waiter_reason = run_forced("waiter")

    for name, metrics in (("basic", basic), ("waiter", waiter)):
        print(f"\n{name.upper()}:")
        print(f"  Average Utilization: {metrics.get_avg_utilization():.2f}%")
        print(f"  Average Waiting Time: {metrics.get_avg_waiting_time():.2f}")
        print(f"  Throughput: {metrics.get_throughput():.4f}")

    assert basic.deadlock_count == 1
    assert basic.get_throughput() == 0.0
    assert basic.get_min_meals() == 0
    assert set(basic.philosopher_final_states.values()) == {"DEADLOCK"}

    assert waiter.deadlock_count == 0
    assert 0.0 < waiter.get_avg_utilization() <= 100.0
    assert waiter.get_throughput() > 0.0
    for chopstick_id in range(5):
        assert 0.0 <= waiter.get_chopstick_utilization(chopstick_id) <= 100.0

    report = format_metrics_report(basic, verbose=True, strategy="basic", stop_reason=basic_reason)
    assert "Deadlock: YES" in report
    assert "METRIC FORMULAS" in report
    assert "Stop Reason: Deadlock detected at t=1" in report

    report = format_metrics_report(waiter, strategy="waiter", stop_reason=waiter_reason)
    assert "Deadlock: No" in report
    assert "P4:" in report
    print("\n✓ METRICS PATTERNS TEST PASSED")


def test_compare_strategies_report():
    results, run_results = compare_strategies(
        STRATEGIES,
        num_runs=3,
        max_batches=300,
        base_seed=100,
        run_simulation_func=run_simulation
    )

    assert [r.strategy_name for r in results] == STRATEGIES
    for strategy in STRATEGIES:
        runs = run_results[strategy]
        assert [r.seed for r in runs] == [100, 101, 102], "Same seeds for every strategy"

    by_name = {r.strategy_name: r for r in results}
    assert by_name["waiter"].deadlock_count == 0
    assert by_name["resource-hierarchy"].deadlock_count == 0
    for result in results:
        assert result.completed_runs == 3
        assert 0.0 <= result.deadlock_frequency <= 1.0
        assert result.deadlock_count + result.timeout_count == 3

    report = generate_comparison_report(results, num_philosophers=5, num_runs=3)
    assert "STRATEGY COMPARISON REPORT" in report
    for strategy in STRATEGIES:
        assert f"Strategy: {strategy.upper()}" in report


def test_analyze_strategy_requires_runner():
    try:
        analyze_strategy("basic", num_runs=1)
        assert False, "Missing run_simulation_func should raise"
    except ValueError:
        pass


def test_log_file_written():
    with tempfile.TemporaryDirectory() as tmp:
        log_path = Path(tmp) / "simulation.log"
        run_simulation(
            strategy="basic",
            max_batches=10,
            random_source=ScriptedRandomSource([1]),
            verbose=True,
            log_file=str(log_path),
            quiet=True
        )
        text = log_path.read_text(encoding="utf-8")

    assert text.startswith("Simulation Log - ")
    assert "SIMULATION COMPLETE" in text
    assert "DEADLOCK DETECTED" in text
    assert "[DEBUG]" in text


def test_trace_cap_keeps_latest_events():
    log = EventLog(max_events=3)
    for t in range(5):
        log.add(TraceEvent(time=t, event_type=TraceEventType.RELEASE, philosopher_id=0, chopstick_id=0))
    assert [e.time for e in log.events] == [2, 3, 4]
    assert log.dropped == 2

    log.clear()
    assert len(log.events) == 0 and log.dropped == 0
    log.add(TraceEvent(time=9, event_type=TraceEventType.RELEASE, philosopher_id=0, chopstick_id=0))
    assert [e.time for e in log.events] == [9], "Cap survives clear()"


def test_trace_disabled_and_bounded_runs():
    """Long playback stays bounded; max_trace_events=0 records nothing."""
    event_log, metrics, _ = run_simulation(
        strategy="waiter", max_batches=300,
        random_source=UniformRandomSource(4), quiet=True, max_trace_events=0
    )
    assert not event_log.enabled
    assert len(event_log.events) == 0
    assert event_log.dropped > 0
    assert metrics.total_meals > 0, "Metrics do not depend on the trace"

    sim = DiningSimulation(5, "waiter", random_source=UniformRandomSource(4), max_trace_events=50)
    for _ in range(1000):
        sim.step()
    assert len(sim.event_log.events) == 50
    assert sim.event_log.dropped > 0

    try:
        DiningSimulation(5, "basic", max_trace_events=-1)
        assert False, "Negative trace limit should be rejected"
    except ConfigurationError:
        pass


def test_table_dump_only_built_when_verbose():
    calls = []
    original = TableState.display

    def counting_display(self):
        calls.append(1)
        return original(self)

    TableState.display = counting_display
    try:
        run_simulation(strategy="waiter", max_batches=20,
                       random_source=UniformRandomSource(2), quiet=True)
        assert calls == [], "Quiet, non-verbose runs should not render the table"

        with tempfile.TemporaryDirectory() as tmp:
            run_simulation(strategy="waiter", max_batches=20,
                           random_source=UniformRandomSource(2), verbose=True,
                           log_file=str(Path(tmp) / "sim.log"), quiet=True)
        assert len(calls) == 20
    finally:
        TableState.display = original


def main():
    """Run all strategy comparison tests."""
    print("\n" + "="*70)
    print(" "*15 + "STRATEGY COMPARISON TEST SUITE")
    print("="*70)

    tests = [
        test_forced_hunger_strategy_comparison,
        test_hierarchy_contention_uses_fallback,
        test_metrics_patterns,
        test_compare_strategies_report,
        test_analyze_strategy_requires_runner,
        test_log_file_written,
        test_trace_cap_keeps_latest_events,
        test_trace_disabled_and_bounded_runs,
        test_table_dump_only_built_when_verbose,
    ]
    try:
        for test in tests:
            test()
        print("\n🎉 ALL STRATEGY COMPARISON TESTS PASSED")
        return 0
    except AssertionError as e:
        print(f"\n❌ TEST FAILED: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
