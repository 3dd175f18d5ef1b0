"""
Reference genome access.

FastaReference wraps an indexed FASTA (pysam.FastaFile) as a scoped
resource; InMemoryReference serves small sequences held in a dict (tests and
locally generated references).

Author: BreakSim Development Team
License: MIT
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, Union

import pysam

from ..errors import RegionParseError, ResourceError
from .regions import Region

logger = logging.getLogger(__name__)


class ReferenceAccessor(Protocol):
    """Anything that can return the sequence of a region."""

    def fetch(self, region: Region) -> str:
        ...

    def contig_lengths(self) -> Dict[str, int]:
        ...


def _check_bounds(region: Region, lengths: Mapping[str, int]) -> None:
    if region.chrom not in lengths:
        raise RegionParseError(f"Contig '{region.chrom}' not in reference")
    if region.end > lengths[region.chrom]:
        raise RegionParseError(
            f"Region {region} extends past the end of {region.chrom} "
            f"(length {lengths[region.chrom]})"
        )


class FastaReference:
    """
    Indexed FASTA reader.

    Use as a context manager so the handle is released on every exit path:

        >>> with FastaReference("hg19.fa") as ref:
        ...     seq = ref.fetch(Region("chr1", 1_000_000, 1_001_000))
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._fasta: Optional[pysam.FastaFile] = None

    def open(self) -> 'FastaReference':
        if not self.path.exists():
            raise ResourceError(f"Reference genome not found: {self.path}", self.path)
        try:
            self._fasta = pysam.FastaFile(str(self.path))
        except (OSError, ValueError) as e:
            raise ResourceError(f"Could not open reference {self.path}: {e}", self.path)
        logger.info(f"Loaded reference genome {self.path} ({self._fasta.nreferences} contigs)")
        return self

    def close(self) -> None:
        if self._fasta is not None:
            self._fasta.close()
            self._fasta = None

    def __enter__(self) -> 'FastaReference':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _handle(self) -> pysam.FastaFile:
        if self._fasta is None:
            raise ResourceError(f"Reference {self.path} is not open", self.path)
        return self._fasta

    def contig_lengths(self) -> Dict[str, int]:
        fasta = self._handle()
        return dict(zip(fasta.references, fasta.lengths))

    def fetch(self, region: Region) -> str:
        _check_bounds(region, self.contig_lengths())
        return self._handle().fetch(region.chrom, region.start, region.end).upper()


class InMemoryReference:
    """Reference backed by a {name: sequence} mapping."""

    def __init__(self, sequences: Mapping[str, str]):
        self._sequences = {name: seq.upper() for name, seq in sequences.items()}

    def contig_lengths(self) -> Dict[str, int]:
        return {name: len(seq) for name, seq in self._sequences.items()}

    def fetch(self, region: Region) -> str:
        _check_bounds(region, self.contig_lengths())
        return self._sequences[region.chrom][region.start:region.end]


__all__ = ['ReferenceAccessor', 'FastaReference', 'InMemoryReference']
