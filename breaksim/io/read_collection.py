#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

Read collection I/O backed by pysam.

Consolidated module containing:
- ReadRecord, the lightweight view of an aligned read used by the partitioner
- BamReadCollection for scoped, re-iterable access to a BAM file
- BamWriter for emitting partitioned output collections

Author: BreakSim Development Team
License: MIT
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Union

import pysam

from ..errors import ResourceError
from .regions import Region, contig_lengths_from_header

logger = logging.getLogger(__name__)


# =============================================================================
# SECTION 1: READ RECORDS
# =============================================================================

@dataclass
class ReadRecord:
    """
    Aligned read as seen by the partitioner.

    Attributes:
        query_name: Template name shared by both mates
        is_read1: True for the first mate (or an unpaired read)
        sequence: Read bases
        quality: Phred+33 quality string (may be empty)
        region: Mapped reference span, None if unmapped
        mate_region: 1-bp region at the mate's mapped start, None if unknown
        segment: Originating pysam record, when read from a BAM
    """
    query_name: str
    is_read1: bool
    sequence: str = ''
    quality: str = ''
    region: Optional[Region] = None
    mate_region: Optional[Region] = None
    segment: Any = None

    @property
    def position_region(self) -> Optional[Region]:
        """Region used to place the pair: own mapping first, then the mate's."""
        return self.region if self.region is not None else self.mate_region

    @classmethod
    def from_segment(cls, segment: pysam.AlignedSegment) -> 'ReadRecord':
        """Wrap a pysam AlignedSegment."""
        region = None
        if not segment.is_unmapped and segment.reference_end is not None \
                and segment.reference_end > segment.reference_start:
            region = Region(segment.reference_name, segment.reference_start, segment.reference_end)

        mate_region = None
        if segment.is_paired and not segment.mate_is_unmapped and segment.next_reference_id >= 0:
            mate_region = Region(
                segment.next_reference_name,
                segment.next_reference_start,
                segment.next_reference_start + 1,
            )

        qualities = segment.query_qualities
        quality = pysam.qualities_to_qualitystring(qualities) if qualities is not None else ''

        return cls(
            query_name=segment.query_name,
            is_read1=not segment.is_read2,
            sequence=segment.query_sequence or '',
            quality=quality,
            region=region,
            mate_region=mate_region,
            segment=segment,
        )


# =============================================================================
# SECTION 2: BAM INPUT
# =============================================================================

class BamReadCollection:
    """
    Scoped access to a BAM file.

    Each call to ``records()`` or ``fetch()`` streams the file again, so the
    collection can be traversed more than once (the partitioner needs two
    passes). Use as a context manager:

        >>> with BamReadCollection("sample.bam") as bam:
        ...     for record in bam.records():
        ...         print(record.query_name)
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._bam: Optional[pysam.AlignmentFile] = None

    def open(self) -> 'BamReadCollection':
        if not self.path.exists():
            raise ResourceError(f"BAM file not found: {self.path}", self.path)
        try:
            self._bam = pysam.AlignmentFile(str(self.path), 'rb')
        except (OSError, ValueError) as e:
            raise ResourceError(f"Could not open BAM {self.path}: {e}", self.path)
        return self

    def close(self) -> None:
        if self._bam is not None:
            self._bam.close()
            self._bam = None

    def __enter__(self) -> 'BamReadCollection':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _handle(self) -> pysam.AlignmentFile:
        if self._bam is None:
            raise ResourceError(f"BAM {self.path} is not open", self.path)
        return self._bam

    @property
    def header(self) -> pysam.AlignmentHeader:
        return self._handle().header

    def contig_lengths(self) -> Dict[str, int]:
        return contig_lengths_from_header(self.header)

    def records(self) -> Iterator[ReadRecord]:
        """Stream every record in file order, skipping secondary and supplementary alignments."""
        bam = self._handle()
        bam.reset()
        for segment in bam.fetch(until_eof=True):
            if segment.is_secondary or segment.is_supplementary:
                continue
            yield ReadRecord.from_segment(segment)

    def fetch(self, regions: Sequence[Region]) -> Iterator[ReadRecord]:
        """
        Stream records overlapping the given regions (requires a BAM index).

        A record overlapping several regions is yielded once per region.
        """
        bam = self._handle()
        for region in regions:
            try:
                iterator = bam.fetch(region.chrom, region.start, region.end)
            except ValueError as e:
                raise ResourceError(f"Cannot fetch {region} from {self.path}: {e}", self.path)
            for segment in iterator:
                if segment.is_secondary or segment.is_supplementary:
                    continue
                yield ReadRecord.from_segment(segment)

    def names_overlapping(self, regions: Sequence[Region]) -> Set[str]:
        """Query names with at least one mate overlapping any region."""
        return {record.query_name for record in self.fetch(regions)}


def sample_qualities(
    path: Union[str, Path],
    windows: Sequence[Region],
    max_reads: Optional[int] = None
) -> List[str]:
    """
    Collect quality strings from reads in a set of windows.

    Windows on contigs missing from the BAM are skipped.

    Args:
        path: Indexed BAM file
        windows: Regions to sample from
        max_reads: Stop after this many quality strings (None = no cap)

    Returns:
        Quality strings in file order
    """
    qualities: List[str] = []
    with BamReadCollection(path) as bam:
        lengths = bam.contig_lengths()
        usable = [w for w in windows if w.chrom in lengths and w.end <= lengths[w.chrom]]
        for record in bam.fetch(usable):
            if record.quality:
                qualities.append(record.quality)
                if max_reads is not None and len(qualities) >= max_reads:
                    break

    logger.info(f"Sampled {len(qualities):,} quality strings from {path}")
    return qualities


# =============================================================================
# SECTION 3: BAM OUTPUT
# =============================================================================

class BamWriter:
    """
    Scoped BAM writer that copies an input header.

    Args:
        path: Output BAM path (parent directories are created)
        header: pysam header (or header dict) for the output
    """

    def __init__(self, path: Union[str, Path], header):
        self.path = Path(path)
        self.header = header
        self.count = 0
        self._bam: Optional[pysam.AlignmentFile] = None

    def __enter__(self) -> 'BamWriter':
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._bam = pysam.AlignmentFile(str(self.path), 'wb', header=self.header)
        except (OSError, ValueError) as e:
            raise ResourceError(f"Could not create BAM {self.path}: {e}", self.path)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._bam is not None:
            self._bam.close()
            self._bam = None
        logger.info(f"Wrote {self.count:,} reads to {self.path}")

    def write(self, record: ReadRecord, tag: Optional[str] = None, tag_value: Optional[str] = None) -> None:
        """Write the pysam record behind a ReadRecord, optionally tagged."""
        segment = record.segment
        if segment is None:
            raise ValueError(f"Read {record.query_name} has no alignment record to write")
        if tag is not None:
            segment.set_tag(tag, tag_value, value_type='Z')
        self._bam.write(segment)
        self.count += 1


__all__ = [
    'ReadRecord',
    'BamReadCollection',
    'BamWriter',
    'sample_qualities',
]

# BreakSim v0.1.0
# Any usage is subject to this software's license.
