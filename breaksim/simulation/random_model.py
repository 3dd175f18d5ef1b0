"""
Seeded random source shared by every simulator.

All randomness in a BreakSim run flows through one RandomModel so that a
fixed seed reproduces every output byte-for-byte. The seed is resolved once
at the orchestration boundary (see resolve_seed) and threaded explicitly into
each component; nothing in the package touches the module-level ``random``
state.

Author: BreakSim Development Team
License: MIT
"""

from __future__ import annotations
import random
import time
import logging
from typing import List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

BASES = ('A', 'C', 'G', 'T')


def resolve_seed(seed: Optional[int]) -> int:
    """
    Pick the run seed.

    A seed of None or 0 means "unset": the wall-clock time is used instead.
    The chosen seed is always logged so any run can be reproduced.

    Args:
        seed: Requested seed (None or 0 for time-based)

    Returns:
        Seed actually used
    """
    if not seed:
        seed = int(time.time())
        logger.info(f"No seed given, using wall-clock seed {seed}")
    else:
        logger.info(f"Using seed {seed}")
    return seed


class RandomModel:
    """
    Thin wrapper around a private ``random.Random`` stream.

    Attributes:
        seed: Seed the stream was created with
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._rng = random.Random(seed)

    def substream(self, index: int) -> 'RandomModel':
        """Independent stream for per-region work (seed XOR index)."""
        return RandomModel(self.seed ^ index)

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        return self._rng.random()

    def randint(self, low: int, high: int) -> int:
        """Uniform integer in [low, high], both ends inclusive."""
        return self._rng.randint(low, high)

    def randrange(self, stop: int) -> int:
        """Uniform integer in [0, stop)."""
        return self._rng.randrange(stop)

    def choice(self, items: Sequence[T]) -> T:
        return self._rng.choice(items)

    def gauss(self, mean: float, sd: float) -> float:
        return self._rng.gauss(mean, sd)

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self._rng.random() < probability

    def random_bases(self, length: int) -> str:
        """Random ACGT string of the given length."""
        return ''.join(self._rng.choice(BASES) for _ in range(length))

    def alternate_base(self, base: str) -> str:
        """
        One of the three other ACGT bases, chosen uniformly.

        Raises:
            ValueError: ``base`` is not A, C, G or T (either case)
        """
        if base.upper() not in BASES:
            raise ValueError(f"No alternate for non-ACGT base {base!r}")
        options: List[str] = [b for b in BASES if b != base.upper()]
        return self._rng.choice(options)

    def __repr__(self) -> str:
        return f"RandomModel(seed={self.seed})"


__all__ = ['BASES', 'RandomModel', 'resolve_seed']
