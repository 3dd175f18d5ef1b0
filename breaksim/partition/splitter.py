#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

Dataset partitioner: deterministic, pair-preserving sub-sampling of an
existing read collection.

Two modes:
- Exact: K disjoint buckets holding given fractions of the pairs
- Weighted: one output stream, each pair kept with the probability of the
  region it sits in and tagged with that region's label

Every decision is made once per query name and applied to both mates, so a
pair is never split. Decisions depend only on (seed, query name), so reruns
with the same seed select the same pairs regardless of file order.

Author: BreakSim Development Team
License: MIT
"""

import hashlib
import logging
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..errors import ParameterError
from ..io.read_collection import BamReadCollection, BamWriter, ReadRecord
from ..io.regions import Region
from .weights import RegionWeightTable

logger = logging.getLogger(__name__)

DEFAULT_FRACTION_TAG = 'FR'
DROPPED = None


# =============================================================================
# SECTION 1: ASSIGNMENTS AND RESULTS
# =============================================================================

class PartitionAssignment:
    """
    Query name -> output bucket, decided once per mate pair.

    A bucket is an int (exact mode) or a region label (weighted mode);
    ``None`` means the pair is dropped.
    """

    def __init__(self):
        self._buckets: Dict[str, Optional[Union[int, str]]] = {}

    def assign(self, query_name: str, bucket: Optional[Union[int, str]]) -> None:
        if query_name in self._buckets:
            raise ValueError(f"Pair {query_name} already assigned")
        self._buckets[query_name] = bucket

    def bucket_of(self, query_name: str) -> Optional[Union[int, str]]:
        """Bucket for a query name; unknown names are dropped."""
        return self._buckets.get(query_name, DROPPED)

    @property
    def dropped(self) -> List[str]:
        return [name for name, b in self._buckets.items() if b is DROPPED]

    def counts(self) -> Dict[Optional[Union[int, str]], int]:
        counts: Dict[Optional[Union[int, str]], int] = {}
        for bucket in self._buckets.values():
            counts[bucket] = counts.get(bucket, 0) + 1
        return counts

    def __contains__(self, query_name: str) -> bool:
        return query_name in self._buckets

    def __len__(self) -> int:
        return len(self._buckets)


@dataclass
class ExactPartition:
    """
    In-memory result of exact partitioning.

    Attributes:
        fractions: Requested fractions, in bucket order
        buckets: Reads per bucket (both mates of each pair)
        dropped: Reads of pairs beyond the last boundary
        assignment: Per-pair decisions
    """
    fractions: Tuple[float, ...]
    buckets: List[List[ReadRecord]]
    dropped: List[ReadRecord] = field(default_factory=list)
    assignment: PartitionAssignment = field(default_factory=PartitionAssignment)


@dataclass
class WeightedPartition:
    """
    In-memory result of weighted fractionation.

    Attributes:
        kept: (read, region label) for every read of a kept pair
        dropped: Reads of pairs that were not kept
        assignment: Per-pair decisions
    """
    kept: List[Tuple[ReadRecord, str]] = field(default_factory=list)
    dropped: List[ReadRecord] = field(default_factory=list)
    assignment: PartitionAssignment = field(default_factory=PartitionAssignment)


# =============================================================================
# SECTION 2: HELPERS
# =============================================================================

def validate_fractions(fractions: Sequence[float]) -> Tuple[float, ...]:
    """
    Check an exact fraction list.

    Raises:
        ParameterError: Empty list, a value outside (0, 1], or a sum above 1
    """
    values = tuple(float(f) for f in fractions)
    if not values:
        raise ParameterError(
            "Must specify fractions to split into with -f (e.g. -f 0.1,0.8), or as BED file"
        )
    for value in values:
        if not 0.0 < value <= 1.0:
            raise ParameterError(f"Fraction must be in (0, 1], got {value}")
    total = float(np.sum(values))
    if total > 1.0 + 1e-9:
        raise ParameterError(f"Fractions must sum to <= 1, got {total:g}")
    return values


def cut_boundaries(fractions: Sequence[float], n_pairs: int) -> np.ndarray:
    """Rank boundaries ``round(cum_i * N)`` for each bucket, capped at N."""
    cumulative = np.cumsum(np.asarray(fractions, dtype=float))
    bounds = np.rint(cumulative * n_pairs).astype(int)
    return np.minimum(bounds, n_pairs)


def subsample_output_name(string_id: str, index: int, fraction: float) -> str:
    """Output name for bucket ``index``; the index keeps equal fractions apart."""
    return f"{string_id}_{index}_{fraction:g}_subsampled.bam"


def fractionated_output_name(string_id: str) -> str:
    return f"{string_id}.fractioned.bam"


def _overlaps_any(region: Optional[Region], regions: Sequence[Region]) -> bool:
    return region is not None and any(region.overlaps(r) for r in regions)


# =============================================================================
# SECTION 3: PARTITIONER
# =============================================================================

class DatasetPartitioner:
    """
    Pair-preserving partitioner.

    Args:
        seed: Run seed; the same seed always selects the same pairs
        tag: Aux tag holding the region label in weighted output
    """

    def __init__(self, seed: int, tag: str = DEFAULT_FRACTION_TAG):
        if len(tag) != 2:
            raise ParameterError(f"Output tag must be two characters, got '{tag}'")
        self.seed = seed
        self.tag = tag

    def hash_uniform(self, query_name: str) -> float:
        """Reproducible uniform in [0, 1) for a query name."""
        h = hashlib.md5(f"{self.seed}:{query_name}".encode()).hexdigest()
        return int(h[:16], 16) / float(1 << 64)

    # ------------------------------------------------------------------
    #  Assignment
    # ------------------------------------------------------------------

    def assign_exact(self, query_names: Sequence[str], fractions: Sequence[float]) -> PartitionAssignment:
        """
        Rank pairs by hash and cut the ranking at cumulative boundaries.

        Bucket k receives ranks [round(cum_{k-1} * N), round(cum_k * N)).
        Pairs ranked past the last boundary are dropped.
        """
        fractions = validate_fractions(fractions)
        ranked = sorted(query_names, key=lambda name: (self.hash_uniform(name), name))
        bounds = cut_boundaries(fractions, len(ranked))

        assignment = PartitionAssignment()
        lower = 0
        for bucket, upper in enumerate(bounds):
            for name in ranked[lower:int(upper)]:
                assignment.assign(name, bucket)
            lower = max(lower, int(upper))
        for name in ranked[lower:]:
            assignment.assign(name, DROPPED)
        return assignment

    def assign_weighted(
        self,
        first_seen: Dict[str, Optional[Region]],
        table: RegionWeightTable
    ) -> PartitionAssignment:
        """
        Keep each pair with its region's weight, deciding on the first-seen mate's position.

        Args:
            first_seen: Query name -> position region of the first mate seen
            table: Region weights (must be non-empty)
        """
        table.require_entries()
        assignment = PartitionAssignment()
        for name, position in first_seen.items():
            entry = table.lookup(position)
            if entry is not None and self.hash_uniform(name) < entry.weight:
                assignment.assign(name, entry.label)
            else:
                assignment.assign(name, DROPPED)
        return assignment

    # ------------------------------------------------------------------
    #  In-memory partitioning
    # ------------------------------------------------------------------

    @staticmethod
    def _considered(reads: List[ReadRecord], regions: Optional[Sequence[Region]]) -> List[ReadRecord]:
        if not regions:
            return reads
        names = {r.query_name for r in reads if _overlaps_any(r.position_region, regions)}
        return [r for r in reads if r.query_name in names]

    def partition_exact(
        self,
        reads: Iterable[ReadRecord],
        fractions: Sequence[float],
        regions: Optional[Sequence[Region]] = None
    ) -> ExactPartition:
        """
        Split reads into disjoint buckets of the given pair fractions.

        Args:
            reads: Read records (both mates of each pair)
            fractions: One fraction per bucket, each in (0, 1], summing to <= 1
            regions: When given, only pairs with a mate overlapping a region

        Returns:
            ExactPartition with one read list per fraction
        """
        fractions = validate_fractions(fractions)
        reads = self._considered(list(reads), regions)

        names = list(dict.fromkeys(r.query_name for r in reads))
        assignment = self.assign_exact(names, fractions)

        result = ExactPartition(
            fractions=fractions,
            buckets=[[] for _ in fractions],
            assignment=assignment,
        )
        for read in reads:
            bucket = assignment.bucket_of(read.query_name)
            if bucket is DROPPED:
                result.dropped.append(read)
            else:
                result.buckets[bucket].append(read)

        self._log_exact(assignment, fractions)
        return result

    def partition_weighted(
        self,
        reads: Iterable[ReadRecord],
        table: RegionWeightTable,
        regions: Optional[Sequence[Region]] = None
    ) -> WeightedPartition:
        """
        Keep pairs by region weight and label them with their region.

        Raises:
            EmptyFractionSpec: If the table has no entries
        """
        table.require_entries()
        reads = self._considered(list(reads), regions)

        first_seen: Dict[str, Optional[Region]] = {}
        for read in reads:
            first_seen.setdefault(read.query_name, read.position_region)
        assignment = self.assign_weighted(first_seen, table)

        result = WeightedPartition(assignment=assignment)
        for read in reads:
            label = assignment.bucket_of(read.query_name)
            if label is DROPPED:
                result.dropped.append(read)
            else:
                result.kept.append((read, label))

        self._log_weighted(assignment)
        return result

    # ------------------------------------------------------------------
    #  BAM streaming (two passes)
    # ------------------------------------------------------------------

    @staticmethod
    def _restricted_names(bam: BamReadCollection, regions: Optional[Sequence[Region]]):
        if not regions:
            return None
        names = bam.names_overlapping(regions)
        logger.info(f"{len(names):,} read pairs overlap {len(regions)} region(s)")
        return names

    def split_bam(
        self,
        in_path: Union[str, Path],
        out_paths: Sequence[Union[str, Path]],
        fractions: Sequence[float],
        regions: Optional[Sequence[Region]] = None
    ) -> PartitionAssignment:
        """
        Write one BAM per fraction.

        Pass 1 collects query names, pass 2 routes each record to its bucket.
        The input is never modified.
        """
        fractions = validate_fractions(fractions)
        if len(out_paths) != len(fractions):
            raise ParameterError(
                f"Need one output path per fraction ({len(fractions)}), got {len(out_paths)}"
            )
        if len({Path(p).resolve() for p in out_paths}) != len(out_paths):
            raise ParameterError(f"Output paths must be distinct, got {[str(p) for p in out_paths]}")

        with BamReadCollection(in_path) as bam:
            allowed = self._restricted_names(bam, regions)
            names = list(dict.fromkeys(
                r.query_name for r in bam.records()
                if allowed is None or r.query_name in allowed
            ))
            assignment = self.assign_exact(names, fractions)
            self._log_exact(assignment, fractions)

            with ExitStack() as stack:
                writers = [stack.enter_context(BamWriter(path, bam.header)) for path in out_paths]
                for record in bam.records():
                    bucket = assignment.bucket_of(record.query_name)
                    if bucket is not DROPPED:
                        writers[bucket].write(record)

        return assignment

    def fractionate_bam(
        self,
        in_path: Union[str, Path],
        out_path: Union[str, Path],
        table: RegionWeightTable,
        regions: Optional[Sequence[Region]] = None
    ) -> PartitionAssignment:
        """Write one BAM of region-weighted pairs, each read tagged with its region label."""
        table.require_entries()

        with BamReadCollection(in_path) as bam:
            allowed = self._restricted_names(bam, regions)
            first_seen: Dict[str, Optional[Region]] = {}
            for record in bam.records():
                if allowed is None or record.query_name in allowed:
                    first_seen.setdefault(record.query_name, record.position_region)
            assignment = self.assign_weighted(first_seen, table)
            self._log_weighted(assignment)

            with BamWriter(out_path, bam.header) as writer:
                for record in bam.records():
                    label = assignment.bucket_of(record.query_name)
                    if label is not DROPPED:
                        writer.write(record, tag=self.tag, tag_value=label)

        return assignment

    # ------------------------------------------------------------------
    #  Logging
    # ------------------------------------------------------------------

    @staticmethod
    def _log_exact(assignment: PartitionAssignment, fractions: Sequence[float]) -> None:
        counts = assignment.counts()
        logger.info(f"Partitioned {len(assignment):,} read pairs into {len(fractions)} bucket(s)")
        for bucket, fraction in enumerate(fractions):
            logger.info(f"  Fraction {fraction:g}: {counts.get(bucket, 0):,} pairs")
        logger.info(f"  Dropped: {counts.get(DROPPED, 0):,} pairs")

    @staticmethod
    def _log_weighted(assignment: PartitionAssignment) -> None:
        dropped = len(assignment.dropped)
        logger.info(f"Fractionated {len(assignment):,} read pairs: "
                    f"{len(assignment) - dropped:,} kept, {dropped:,} dropped")


__all__ = [
    'DEFAULT_FRACTION_TAG',
    'PartitionAssignment',
    'ExactPartition',
    'WeightedPartition',
    'DatasetPartitioner',
    'validate_fractions',
    'cut_boundaries',
    'subsample_output_name',
    'fractionated_output_name',
]

# BreakSim v0.1.0
# Any usage is subject to this software's license.
