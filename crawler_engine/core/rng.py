"""
Seeded randomness helpers.

All randomness in the simulation flows through explicit random.Random
instances passed as arguments. Nothing here touches the global
random module state.
"""

from __future__ import annotations

import hashlib
import random
from typing import Sequence, TypeVar

T = TypeVar('T')


def derive_seed(run_seed: int, *keys: int | str) -> int:
    """
    Derive a sub-seed from a run seed and any number of keys.

    Uses a SHA-256 hash so that (run_seed, depth) pairs are
    independent: depth N can be generated without replaying 0..N-1.
    """
    material = ":".join(str(part) for part in (run_seed, *keys))
    digest = hashlib.sha256(material.encode('utf-8')).digest()
    return int.from_bytes(digest[:8], 'big')


def make_rng(run_seed: int, *keys: int | str) -> random.Random:
    """Create a random.Random seeded from derive_seed()."""
    return random.Random(derive_seed(run_seed, *keys))


def weighted_choice(
    rng: random.Random,
    items: Sequence[T],
    weights: Sequence[float],
) -> T | None:
    """
    Pick one item by weight.

    Returns None when there is nothing with positive weight.
    """
    pairs = [(item, w) for item, w in zip(items, weights) if w > 0]
    if not pairs:
        return None

    total = sum(w for _, w in pairs)
    roll = rng.random() * total
    upto = 0.0
    for item, w in pairs:
        upto += w
        if roll < upto:
            return item
    return pairs[-1][0]
