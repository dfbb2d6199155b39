"""
Random sources for the Dining Philosophers Simulator.

The engine never calls an ambient random function. Every thinking/eating
duration and every random tie-break is drawn from an injected source so
runs can be reproduced and tests can script exact sequences.
"""

import itertools
from typing import Iterable, Optional, Sequence, TypeVar

import numpy as np

T = TypeVar("T")

MIN_DURATION = 1
MAX_DURATION = 10


class RandomSource:
    """Interface for duration sampling and random choices."""

    def duration(self) -> int:
        """Draw one thinking/eating duration in [MIN_DURATION, MAX_DURATION]."""
        raise NotImplementedError

    def choice(self, items: Sequence[T]) -> T:
        """Pick one element of a non-empty sequence."""
        raise NotImplementedError


class UniformRandomSource(RandomSource):
    """
    Discrete uniform durations over [1, 10] backed by a numpy Generator.

    Args:
        seed: Optional seed for reproducible runs
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def duration(self) -> int:
        # integers() upper bound is exclusive
        return int(self._rng.integers(MIN_DURATION, MAX_DURATION + 1))

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot choose from an empty sequence")
        return items[int(self._rng.integers(len(items)))]


class ScriptedRandomSource(RandomSource):
    """
    Deterministic source that cycles through fixed sequences.

    Args:
        durations: Durations returned in order, repeating when exhausted
        choices: Indices used for choice(), repeating; defaults to [0]
    """

    def __init__(self, durations: Iterable[int], choices: Optional[Iterable[int]] = None):
        self.durations = list(durations)
        self.choices = list(choices) if choices is not None else [0]
        if not self.durations:
            raise ValueError("ScriptedRandomSource needs at least one duration")
        if not self.choices:
            raise ValueError("ScriptedRandomSource needs at least one choice index")
        for d in self.durations:
            if d < MIN_DURATION or d > MAX_DURATION:
                raise ValueError(
                    f"Scripted duration {d} outside [{MIN_DURATION}, {MAX_DURATION}]"
                )
        self._durations = itertools.cycle(self.durations)
        self._choices = itertools.cycle(self.choices)

    def duration(self) -> int:
        return next(self._durations)

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot choose from an empty sequence")
        return items[next(self._choices) % len(items)]
