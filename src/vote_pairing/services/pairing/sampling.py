"""Exponentially decaying weighted sampling."""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def rank_weights(count: int, decay: float) -> list[float]:
    """Weights for `count` items in priority order: decay**i."""
    return [decay**i for i in range(count)]


def weighted_sample(items: Sequence[T], decay: float, rng: random.Random) -> T | None:
    """Draw one item, favouring earlier positions.

    Item i gets weight decay**i. A point x is drawn uniformly in
    [0, total) and the first item whose cumulative weight reaches x wins.
    With decay == 1 this is a uniform draw.

    Args:
        items: Candidates already sorted by priority.
        decay: Weight ratio between neighbours, 0 < decay <= 1.
        rng: Random source, injectable for reproducible tests.

    Returns:
        The chosen item, or None when items is empty.
    """
    if not items:
        return None
    if len(items) == 1:
        return items[0]

    weights = rank_weights(len(items), decay)
    x = rng.random() * sum(weights)

    cumulative = 0.0
    for item, weight in zip(items, weights, strict=True):
        cumulative += weight
        if x <= cumulative:
            return item

    # Float rounding can leave x a hair above the final cumulative sum.
    return items[-1]
