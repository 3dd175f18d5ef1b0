"""
Per-region weight tables for weighted fractionation.

A table is loaded from a BED file whose 4th column is the keep probability
for pairs positioned in that region. Lookups return the first entry (in file
order) overlapping the query; positions matching no entry have weight 0.

Author: BreakSim Development Team
License: MIT
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from ..errors import EmptyFractionSpec, ParameterError
from ..io.regions import Region, read_bed_weights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegionWeight:
    """One table row: a region, its keep probability and its output label."""
    region: Region
    weight: float

    @property
    def label(self) -> str:
        return str(self.region)


class RegionWeightTable:
    """
    Ordered Region -> weight table.

    Args:
        entries: (region, weight) pairs; weights must lie in [0, 1]
    """

    def __init__(self, entries: Iterable[Tuple[Region, float]] = ()):
        self.entries: List[RegionWeight] = []
        for region, weight in entries:
            if not 0.0 <= weight <= 1.0:
                raise ParameterError(
                    f"Fraction weight for {region} must be between 0 and 1, got {weight}"
                )
            self.entries.append(RegionWeight(region, float(weight)))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'RegionWeightTable':
        """Load a table from a BED file with a 4th weight column."""
        table = cls(read_bed_weights(path))
        logger.info(f"Loaded {len(table)} fraction regions from {path}")
        return table

    def require_entries(self) -> None:
        """Raise EmptyFractionSpec when the table has no rows."""
        if not self.entries:
            raise EmptyFractionSpec("Weighted partitioning requires at least one region weight")

    def lookup(self, region: Optional[Region]) -> Optional[RegionWeight]:
        """First entry overlapping ``region``, or None."""
        if region is None:
            return None
        for entry in self.entries:
            if entry.region.overlaps(region):
                return entry
        return None

    def regions(self) -> List[Region]:
        return [e.region for e in self.entries]

    def __iter__(self) -> Iterator[RegionWeight]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


__all__ = ['RegionWeight', 'RegionWeightTable']
