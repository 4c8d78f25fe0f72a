"""Random sampling helpers shared by the question strategies.

Every function takes an optional ``random.Random`` so callers (and tests)
can pin the output with a seed.
"""
from __future__ import annotations

import random
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def _rng(rng: random.Random | None) -> random.Random:
    return rng if rng is not None else random.Random()


def sample_indexes(
    population_size: int,
    sample_size: int,
    rng: random.Random | None = None,
) -> list[int]:
    """Draw ``min(sample_size, population_size)`` distinct indexes.

    Indexes are returned in draw order.
    """
    k = min(sample_size, population_size)
    if k <= 0:
        return []
    return _rng(rng).sample(range(population_size), k)


def shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly permuted copy of *items* (Fisher-Yates)."""
    shuffled = list(items)
    r = _rng(rng)
    for i in range(len(shuffled) - 1, 0, -1):
        j = r.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
