#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

Genomic regions: the Region value type plus BED and samtools-style parsing.

Regions are 0-based and half-open internally. Samtools strings
("chr1:1,000-2,000") are 1-based and inclusive on input and output.

Author: BreakSim Development Team
License: MIT
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from ..errors import ParameterError, RegionParseError


_SAMTOOLS_PATTERN = re.compile(r'^(?P<chrom>[^:\s]+)(?::(?P<start>[\d,]+)-(?P<end>[\d,]+))?$')


@dataclass(frozen=True, order=True)
class Region:
    """
    Half-open, 0-based genomic interval.

    Attributes:
        chrom: Sequence identifier
        start: First base (0-based, inclusive)
        end: One past the last base
    """
    chrom: str
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.start >= self.end:
            raise RegionParseError(
                f"Invalid region {self.chrom}:{self.start}-{self.end}: start must be >= 0 and < end"
            )

    @property
    def width(self) -> int:
        return self.end - self.start

    def overlaps(self, other: 'Region') -> bool:
        return self.chrom == other.chrom and self.start < other.end and other.start < self.end

    def to_samtools(self) -> str:
        """1-based inclusive string, e.g. ``chr1:1001-2000``."""
        return f"{self.chrom}:{self.start + 1}-{self.end}"

    def __str__(self) -> str:
        return self.to_samtools()


def parse_region_string(text: str, contig_lengths: Optional[Mapping[str, int]]) -> Region:
    """
    Parse a samtools-style region string.

    Args:
        text: "chr1:1,001-2,000" or a bare contig name "chr1"
        contig_lengths: Contig name -> length, taken from a BAM header

    Returns:
        Parsed region (0-based, half-open)

    Raises:
        RegionParseError: Malformed coordinates, unknown contig, or no header
    """
    if not contig_lengths:
        raise RegionParseError(
            f"Cannot resolve region '{text}': a BAM header is required for samtools-style regions"
        )

    match = _SAMTOOLS_PATTERN.match(text.strip())
    if match is None:
        raise RegionParseError(f"Malformed region string: '{text}'")

    chrom = match.group('chrom')
    if chrom not in contig_lengths:
        raise RegionParseError(f"Contig '{chrom}' not found in header")
    length = contig_lengths[chrom]

    if match.group('start') is None:
        return Region(chrom, 0, length)

    start = int(match.group('start').replace(',', ''))
    end = int(match.group('end').replace(',', ''))
    if start < 1 or end > length or start > end:
        raise RegionParseError(
            f"Region '{text}' is outside contig {chrom} (length {length})"
        )
    return Region(chrom, start - 1, end)


def _parse_bed_line(line: str, line_number: int, path: Path) -> Tuple[Region, List[str]]:
    fields = line.rstrip('\n').split('\t')
    if len(fields) < 3:
        fields = line.split()
    if len(fields) < 3:
        raise RegionParseError(f"{path}:{line_number}: expected at least 3 BED columns")
    try:
        start = int(fields[1])
        end = int(fields[2])
    except ValueError:
        raise RegionParseError(f"{path}:{line_number}: non-numeric coordinates")
    return Region(fields[0], start, end), fields[3:]


def _iter_bed(path: Path):
    with open(path, 'r') as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip() or line.startswith(('#', 'track', 'browser')):
                continue
            yield line_number, line


def read_bed_regions(
    path: Union[str, Path],
    contig_lengths: Optional[Mapping[str, int]] = None
) -> List[Region]:
    """
    Read regions from a BED file.

    Args:
        path: BED file (tab-separated, 0-based half-open)
        contig_lengths: When given, contigs missing from it are rejected

    Returns:
        Regions in file order
    """
    path = Path(path)
    regions = []
    for line_number, line in _iter_bed(path):
        region, _ = _parse_bed_line(line, line_number, path)
        if contig_lengths is not None and region.chrom not in contig_lengths:
            raise RegionParseError(f"{path}:{line_number}: contig '{region.chrom}' not in header")
        regions.append(region)
    return regions


def read_bed_weights(path: Union[str, Path]) -> List[Tuple[Region, float]]:
    """Read (region, weight) pairs from a BED file with a 4th numeric column."""
    path = Path(path)
    entries = []
    for line_number, line in _iter_bed(path):
        region, extra = _parse_bed_line(line, line_number, path)
        if not extra:
            raise RegionParseError(f"{path}:{line_number}: missing weight column")
        try:
            weight = float(extra[0])
        except ValueError:
            raise RegionParseError(f"{path}:{line_number}: weight '{extra[0]}' is not a number")
        entries.append((region, weight))
    return entries


def load_regions(
    spec: str,
    contig_lengths: Optional[Mapping[str, int]] = None
) -> List[Region]:
    """
    Resolve a region argument.

    An existing file is read as BED; anything else must be a samtools-style
    string, which needs header information to validate.

    Raises:
        RegionParseError: If the argument can be resolved neither way
        ParameterError: If no regions result
    """
    if Path(spec).is_file():
        regions = read_bed_regions(spec, contig_lengths)
    elif ':' in spec and '-' in spec:
        regions = [parse_region_string(spec, contig_lengths)]
    else:
        raise RegionParseError(
            "Can't parse the regions. Input as BED file or samtools style string "
            "(requires a BAM for header info)"
        )

    if not regions:
        raise ParameterError("Must input a region to run on")
    return regions


def contig_lengths_from_header(header) -> Dict[str, int]:
    """Contig name -> length from a pysam header (or None)."""
    if header is None:
        return {}
    return dict(zip(header.references, header.lengths))


__all__ = [
    'Region',
    'parse_region_string',
    'read_bed_regions',
    'read_bed_weights',
    'load_regions',
    'contig_lengths_from_header',
]

# BreakSim v0.1.0
# Any usage is subject to this software's license.
