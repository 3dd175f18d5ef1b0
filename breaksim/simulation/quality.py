"""
Quality string pool for simulated FASTQ output.

Qualities are borrowed from a real dataset: a pool of quality strings is
sampled once from a BAM and each simulated read draws one uniformly. Without
a BAM the pool is empty and qualities are generated instead.

Author: BreakSim Development Team
License: MIT
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..io.read_collection import sample_qualities
from ..io.regions import Region
from .random_model import RandomModel

logger = logging.getLogger(__name__)


def default_training_windows(contig: str, count: int = 8, width: int = 1000) -> List[Region]:
    """1 kb windows at 1, 2, ... ``count`` Mb on one contig."""
    return [Region(contig, n * 1_000_000, n * 1_000_000 + width) for n in range(1, count + 1)]


def generate_quality_string(rng: RandomModel, length: int, mean_qual: int = 30) -> str:
    """Generate random quality scores (Phred+33)."""
    qualities = []
    for _ in range(length):
        qual = max(2, int(rng.gauss(mean_qual, 5)))
        qual = min(qual, 40)
        qualities.append(chr(qual + 33))
    return ''.join(qualities)


class QualityPool:
    """
    Pool of observed quality strings.

    Attributes:
        qualities: Quality strings (Phred+33)
    """

    def __init__(self, qualities: Optional[Sequence[str]] = None):
        self.qualities = [q for q in (qualities or []) if q]

    @classmethod
    def from_bam(
        cls,
        path: Union[str, Path],
        windows: Sequence[Region],
        max_reads: Optional[int] = None
    ) -> 'QualityPool':
        """Learn a pool from reads in the given BAM windows."""
        logger.info("...sampling reads to learn quality scores")
        return cls(sample_qualities(path, windows, max_reads))

    def draw(self, rng: RandomModel, length: int) -> str:
        """
        Draw a quality string fitted to ``length``.

        Borrowed strings are truncated, or padded with their last character.
        """
        if not self.qualities:
            return generate_quality_string(rng, length)

        quality = self.qualities[rng.randrange(len(self.qualities))]
        if len(quality) >= length:
            return quality[:length]
        return quality + quality[-1] * (length - len(quality))

    def __len__(self) -> int:
        return len(self.qualities)


__all__ = ['QualityPool', 'default_training_windows', 'generate_quality_string']
