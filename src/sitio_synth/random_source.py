"""
Sitio Synthetic Data - Deterministic Random Source
==================================================
Seeded linear congruential generator and the distributions derived from it.

Every draw mutates the generator's seed, so a generator must be owned by a
single generation loop. Callers that need independent streams derive a
sub-seed with ``derive_seed`` and construct a fresh ``SeededRandom``.
"""

import math
from typing import List, Sequence, TypeVar

T = TypeVar("T")

# LCG parameters (modulus 2^31)
LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MODULUS = 2 ** 31
LCG_MASK = LCG_MODULUS - 1

# Sub-seed strides: unique (entity, year) streams for fewer than 100 years
ENTITY_SEED_STRIDE = 10_000
YEAR_SEED_STRIDE = 100


def derive_seed(seed: int, entity_index: int, year_offset: int = 0) -> int:
    """Sub-seed for one entity-year, a pure function of its arguments"""
    return seed + entity_index * ENTITY_SEED_STRIDE + year_offset * YEAR_SEED_STRIDE


class SeededRandom:
    """
    Deterministic pseudo-random source.

    ``next()`` advances ``seed = (seed * A + C) mod 2^31`` and returns
    ``seed / 2^31`` in [0, 1). All other draws are built from ``next()``.
    """

    def __init__(self, seed: int = 42):
        self.seed = int(seed) & LCG_MASK

    def next(self) -> float:
        self.seed = (self.seed * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK
        return self.seed / LCG_MODULUS

    def next_int(self, low: int, high: int) -> int:
        """Integer in [low, high], both inclusive"""
        return int(math.floor(self.next() * (high - low + 1))) + low

    def next_float(self, low: float, high: float) -> float:
        return low + self.next() * (high - low)

    def pick(self, items: Sequence[T]) -> T:
        if len(items) == 0:
            raise ValueError("pick() called on an empty sequence")
        return items[self.next_int(0, len(items) - 1)]

    def pick_weighted(self, items: Sequence[T], weights: Sequence[float]) -> T:
        """
        Weighted categorical draw.

        Raises ValueError for an empty item list, a weight vector of a
        different length, negative weights, or a non-positive total.
        Zero-weight items are never returned.
        """
        if len(items) == 0:
            raise ValueError("pick_weighted() called on an empty sequence")
        if len(items) != len(weights):
            raise ValueError(
                f"pick_weighted() got {len(items)} items but {len(weights)} weights"
            )
        if any(w < 0 for w in weights):
            raise ValueError(f"pick_weighted() got negative weights: {list(weights)}")
        total = sum(weights)
        if total <= 0:
            raise ValueError("pick_weighted() needs at least one positive weight")

        remaining = self.next() * total
        fallback = None
        for item, weight in zip(items, weights):
            if weight <= 0:
                continue
            if remaining < weight:
                return item
            remaining -= weight
            fallback = item
        # Floating point rounding
        return fallback

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Fisher-Yates shuffle into a new list"""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.next_int(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    def boolean(self, probability: float = 0.5) -> bool:
        return self.next() < probability

    def gaussian(self, mean: float = 0.0, std_dev: float = 1.0) -> float:
        """Box-Muller transform over two uniform draws"""
        u1 = 1.0 - self.next()  # (0, 1]
        u2 = self.next()
        z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return z0 * std_dev + mean

    def gaussian_clamped(
        self, mean: float, std_dev: float, low: float, high: float
    ) -> float:
        return max(low, min(high, self.gaussian(mean, std_dev)))
