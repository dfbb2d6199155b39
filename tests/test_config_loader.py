"""
Configuration Loader Tests

Validates JSON config loading, field validation, the bundled scenario files
and the CLI's handling of bad configs.
"""

import json
import sys
import tempfile
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import simulator
from utils.config_loader import (
    ConfigurationError,
    SimulationConfig,
    config_from_dict,
    load_config,
    validate_strategy,
    validate_waiter_permissions,
)
from utils.random_source import ScriptedRandomSource, UniformRandomSource


SCENARIOS_DIR = project_root / "scenarios"


def write_config(directory, data, name="config.json"):
    path = Path(directory) / name
    path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return str(path)


def expect_error(func, *args):
    try:
        func(*args)
    except ConfigurationError as e:
        return str(e)
    assert False, f"{func.__name__}{args} should raise ConfigurationError"


def test_defaults():
    config = config_from_dict({})
    assert config == SimulationConfig()
    assert config.num_philosophers == 5
    assert config.strategy == "basic"
    assert config.effective_waiter_permissions() == 4
    assert isinstance(config.build_random_source(), UniformRandomSource)


def test_scripted_source_from_durations():
    config = config_from_dict({"durations": [2, 3], "choices": [1]})
    source = config.build_random_source()
    assert isinstance(source, ScriptedRandomSource)
    assert [source.duration() for _ in range(3)] == [2, 3, 2]
    assert source.choice(["a", "b"]) == "b"


def test_rejects_invalid_fields():
    print("\n" + "="*60)
    print("TEST: Invalid configuration values")
    print("="*60)

    bad_configs = [
        {"num_philosophers": 1},
        {"num_philosophers": True},
        {"strategy": "chandy-misra"},
        {"num_philosophers": 5, "waiter_permissions": 5},
        {"waiter_permissions": 0},
        {"seed": -1},
        {"max_batches": 0},
        {"durations": [0]},
        {"durations": [11]},
        {"durations": "1,2"},
        {"choices": [0]},
        {"policy": "avoidance"},
    ]
    for data in bad_configs:
        message = expect_error(config_from_dict, data)
        print(f"  ✓ {data} -> {message}")


def test_validators():
    assert validate_strategy("waiter").value == "waiter"
    assert validate_waiter_permissions(1, 2) == 1
    expect_error(validate_waiter_permissions, 2, 2)
    expect_error(validate_waiter_permissions, "3", 5)


def test_load_config_file():
    with tempfile.TemporaryDirectory() as tmp:
        path = write_config(tmp, {
            "description": "three seats",
            "num_philosophers": 3,
            "strategy": "waiter",
            "waiter_permissions": 1,
            "seed": 9,
        })
        config = load_config(path)

    assert config.num_philosophers == 3
    assert config.strategy == "waiter"
    assert config.waiter_permissions == 1
    assert config.seed == 9
    assert config.description == "three seats"


def test_load_config_errors():
    with tempfile.TemporaryDirectory() as tmp:
        expect_error(load_config, str(Path(tmp) / "missing.json"))
        expect_error(load_config, write_config(tmp, "{not json", "broken.json"))
        expect_error(load_config, write_config(tmp, [1, 2, 3], "list.json"))


def test_bundled_scenarios_load():
    paths = sorted(SCENARIOS_DIR.glob("*.json"))
    assert paths, "Scenario directory should not be empty"
    for path in paths:
        config = load_config(str(path))
        assert config.description, f"{path.name} should describe itself"


def test_forced_deadlock_scenario():
    config = load_config(str(SCENARIOS_DIR / "forced_deadlock.json"))
    _, metrics, stop_reason = simulator.run_simulation(
        strategy=config.strategy,
        num_philosophers=config.num_philosophers,
        max_batches=config.max_batches,
        random_source=config.build_random_source(),
        quiet=True
    )
    assert stop_reason == "Deadlock detected at t=1"
    assert metrics.deadlock_count == 1


def test_cli_bad_config_exits_with_2():
    with tempfile.TemporaryDirectory() as tmp:
        path = write_config(tmp, {"num_philosophers": 1})
        argv = sys.argv
        sys.argv = ["simulator.py", "--config", path]
        try:
            assert simulator.main() == 2
        finally:
            sys.argv = argv


def test_cli_runs_scenario():
    argv = sys.argv
    sys.argv = ["simulator.py", "--config", str(SCENARIOS_DIR / "waiter_classic.json")]
    try:
        assert simulator.main() == 0
    finally:
        sys.argv = argv


def main():
    """Run all configuration tests."""
    print("\n" + "="*70)
    print(" "*15 + "CONFIGURATION TESTS")
    print("="*70)

    tests = [
        test_defaults,
        test_scripted_source_from_durations,
        test_rejects_invalid_fields,
        test_validators,
        test_load_config_file,
        test_load_config_errors,
        test_bundled_scenarios_load,
        test_forced_deadlock_scenario,
        test_cli_bad_config_exits_with_2,
        test_cli_runs_scenario,
    ]
    try:
        for test in tests:
            test()
        print("\n🎉 ALL CONFIGURATION TESTS PASSED")
        return 0
    except AssertionError as e:
        print(f"\n❌ TEST FAILED: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
