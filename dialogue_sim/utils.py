"""Small shared helpers."""

import random
from typing import Any, Mapping, Optional, Sequence, TypeVar

from .errors import RandomnessExhaustedError

T = TypeVar("T")


def contains(items: Sequence[Any], needle: Any) -> bool:
    """Return True if ``needle`` is one of the elements of ``items``."""
    return any(item == needle for item in items)


def has_key(mapping: Mapping[Any, Any], key: Any) -> bool:
    """Return True if ``key`` is a key of ``mapping``."""
    return key in mapping


def choose(
    rng: random.Random,
    options: Sequence[T],
    weights: Optional[Sequence[float]] = None,
) -> T:
    """
    Pick one option, optionally weighted.

    Raises RandomnessExhaustedError when there is nothing to pick from or
    when every weight is zero.
    """
    if not options:
        raise RandomnessExhaustedError("cannot choose from an empty option set")
    if weights is None:
        return rng.choice(list(options))
    if len(weights) != len(options):
        raise ValueError("weights and options differ in length")
    if sum(weights) <= 0:
        raise RandomnessExhaustedError("every option has zero weight")
    return rng.choices(list(options), weights=list(weights), k=1)[0]
