"""
Configuration Loader for the Dining Philosophers Simulator.

Loads and validates JSON simulation configs and owns the validators used
by the simulation controller's setters.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from algorithms.strategies import StrategyName
from utils.random_source import (
    MAX_DURATION,
    MIN_DURATION,
    RandomSource,
    ScriptedRandomSource,
    UniformRandomSource,
)


class ConfigurationError(Exception):
    """Exception raised when a configuration value or config file is invalid."""
    pass


DEFAULT_NUM_PHILOSOPHERS = 5
DEFAULT_STRATEGY = StrategyName.BASIC.value
DEFAULT_MAX_BATCHES = 1000


@dataclass
class SimulationConfig:
    """
    Caller-supplied simulation configuration.

    Attributes:
        num_philosophers: Seats at the table (>= 2)
        strategy: Strategy name (basic, random, waiter, resource-hierarchy)
        waiter_permissions: Admission limit for the waiter strategy (None = N - 1)
        seed: Seed for the uniform random source
        max_batches: Batch limit for headless runs
        durations: Optional scripted durations (replaces the uniform source)
        choices: Optional scripted tie-break indices (with durations)
        description: Free-text description
    """
    num_philosophers: int = DEFAULT_NUM_PHILOSOPHERS
    strategy: str = DEFAULT_STRATEGY
    waiter_permissions: Optional[int] = None
    seed: Optional[int] = None
    max_batches: int = DEFAULT_MAX_BATCHES
    durations: List[int] = field(default_factory=list)
    choices: List[int] = field(default_factory=list)
    description: str = ""

    def effective_waiter_permissions(self) -> int:
        if self.waiter_permissions is None:
            return self.num_philosophers - 1
        return self.waiter_permissions

    def build_random_source(self) -> RandomSource:
        """Scripted source when durations are given, uniform otherwise."""
        if self.durations:
            return ScriptedRandomSource(self.durations, self.choices or None)
        return UniformRandomSource(self.seed)


def validate_num_philosophers(num_philosophers: Any) -> int:
    """
    Validate a philosopher count.

    Raises:
        ConfigurationError: If the value is not an integer >= 2
    """
    if isinstance(num_philosophers, bool) or not isinstance(num_philosophers, int):
        raise ConfigurationError(f"Philosopher count must be an integer, got {num_philosophers!r}")
    if num_philosophers < 2:
        raise ConfigurationError(f"At least 2 philosophers are required, got {num_philosophers}")
    return num_philosophers


def validate_strategy(strategy: Any) -> StrategyName:
    """
    Resolve a strategy name.

    Raises:
        ConfigurationError: If the name is not a known strategy
    """
    if isinstance(strategy, StrategyName):
        return strategy
    try:
        return StrategyName.from_name(strategy)
    except ValueError as e:
        raise ConfigurationError(str(e))


def validate_waiter_permissions(waiter_permissions: Any, num_philosophers: int) -> int:
    """
    Validate a waiter admission limit: 1 <= n < num_philosophers.

    Raises:
        ConfigurationError: If out of range or not an integer
    """
    if isinstance(waiter_permissions, bool) or not isinstance(waiter_permissions, int):
        raise ConfigurationError(
            f"Waiter permissions must be an integer, got {waiter_permissions!r}"
        )
    if waiter_permissions < 1 or waiter_permissions >= num_philosophers:
        raise ConfigurationError(
            f"Waiter permissions must be in [1, {num_philosophers - 1}] "
            f"for {num_philosophers} philosophers, got {waiter_permissions}"
        )
    return waiter_permissions


def load_config(file_path: str) -> SimulationConfig:
    """
    Load a simulation config from a JSON file.

    Args:
        file_path: Path to config JSON file

    Returns:
        Validated SimulationConfig

    Raises:
        ConfigurationError: If file cannot be loaded or is invalid
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError("Config file must contain a JSON object")

    return config_from_dict(data)


def config_from_dict(data: Dict[str, Any]) -> SimulationConfig:
    """
    Build and validate a SimulationConfig from a plain dictionary.

    Raises:
        ConfigurationError: If a field is unknown or invalid
    """
    known_fields = {
        'num_philosophers', 'strategy', 'waiter_permissions', 'seed',
        'max_batches', 'durations', 'choices', 'description'
    }
    unknown = sorted(set(data) - known_fields)
    if unknown:
        raise ConfigurationError(f"Unknown config field(s): {', '.join(unknown)}")

    num_philosophers = validate_num_philosophers(
        data.get('num_philosophers', DEFAULT_NUM_PHILOSOPHERS)
    )
    strategy = validate_strategy(data.get('strategy', DEFAULT_STRATEGY))

    waiter_permissions = data.get('waiter_permissions')
    if waiter_permissions is not None:
        validate_waiter_permissions(waiter_permissions, num_philosophers)

    seed = data.get('seed')
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int) or seed < 0):
        raise ConfigurationError(f"Seed must be a non-negative integer, got {seed!r}")

    max_batches = data.get('max_batches', DEFAULT_MAX_BATCHES)
    if isinstance(max_batches, bool) or not isinstance(max_batches, int) or max_batches <= 0:
        raise ConfigurationError(f"max_batches must be a positive integer, got {max_batches!r}")

    durations = _load_int_list(data, 'durations')
    for d in durations:
        if d < MIN_DURATION or d > MAX_DURATION:
            raise ConfigurationError(
                f"Duration {d} outside [{MIN_DURATION}, {MAX_DURATION}]"
            )

    choices = _load_int_list(data, 'choices')
    if choices and not durations:
        raise ConfigurationError("'choices' requires 'durations' (scripted random source)")
    if any(c < 0 for c in choices):
        raise ConfigurationError("Choice indices must be non-negative")

    return SimulationConfig(
        num_philosophers=num_philosophers,
        strategy=strategy.value,
        waiter_permissions=waiter_permissions,
        seed=seed,
        max_batches=max_batches,
        durations=durations,
        choices=choices,
        description=str(data.get('description', '')),
    )


def _load_int_list(data: Dict[str, Any], key: str) -> List[int]:
    """Read an optional list of integers."""
    values = data.get(key, [])
    if not isinstance(values, list):
        raise ConfigurationError(f"'{key}' must be a list of integers")
    for v in values:
        if isinstance(v, bool) or not isinstance(v, int):
            raise ConfigurationError(f"'{key}' must be a list of integers, got {v!r}")
    return list(values)
