#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
BreakSim v0.1.0

FASTQ/FASTA files for simulated reads and genomes.

Reads leave the simulator as plain strings; this module wraps them in
Biopython records on the way out and unwraps them on the way back in.
Paths ending in ``.gz`` are compressed transparently.

Author: BreakSim Development Team
License: MIT
"""

import gzip
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, Union

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqIO.FastaIO import FastaWriter
from Bio.SeqRecord import SeqRecord

logger = logging.getLogger(__name__)

PHRED_OFFSET = 33

PathLike = Union[str, Path]


@dataclass
class SeqRead:
    """
    One simulated read or sequence.

    Attributes:
        id: Record name, written after '@' or '>'
        sequence: Bases
        quality: Phred+33 string; left empty for FASTA output
    """
    id: str
    sequence: str
    quality: str = ''

    @property
    def length(self) -> int:
        return len(self.sequence)

    def __len__(self) -> int:
        return self.length


def _open_text(path: Path, mode: str):
    if path.suffix in ('.gz', '.gzip'):
        return gzip.open(path, mode + 't')
    return open(path, mode)


def _prepare_output(path: PathLike) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _to_record(read: SeqRead, with_quality: bool) -> SeqRecord:
    record = SeqRecord(Seq(read.sequence), id=read.id, description="")
    if with_quality:
        if len(read.quality) != len(read.sequence):
            raise ValueError(
                f"Read {read.id}: {len(read.quality)} quality values "
                f"for {len(read.sequence)} bases"
            )
        record.letter_annotations["phred_quality"] = [
            ord(symbol) - PHRED_OFFSET for symbol in read.quality
        ]
    return record


def write_fastq(reads: Iterable[SeqRead], filepath: PathLike) -> int:
    """
    Write reads as four-line FASTQ records.

    Raises:
        ValueError: A read's quality string is not as long as its sequence

    Returns:
        Number of records written
    """
    path = _prepare_output(filepath)
    with _open_text(path, 'w') as handle:
        count = SeqIO.write((_to_record(read, True) for read in reads), handle, "fastq")
    logger.debug(f"Wrote {count} FASTQ records to {path}")
    return count


def write_fasta(reads: Iterable[SeqRead], filepath: PathLike, line_width: int = 80) -> int:
    """
    Write reads as FASTA, wrapping sequence lines at ``line_width`` bases.

    A ``line_width`` of 0 puts each sequence on a single line.
    """
    path = _prepare_output(filepath)
    with _open_text(path, 'w') as handle:
        writer = FastaWriter(handle, wrap=line_width or None)
        count = writer.write_file(_to_record(read, False) for read in reads)
    logger.debug(f"Wrote {count} FASTA records to {path}")
    return count


def read_fasta(filepath: PathLike) -> Dict[str, str]:
    """Load every record of a (small) FASTA file as ``{id: sequence}``."""
    with _open_text(Path(filepath), 'r') as handle:
        return {record.id: str(record.seq) for record in SeqIO.parse(handle, "fasta")}


def iter_fastq(filepath: PathLike) -> Iterator[SeqRead]:
    with _open_text(Path(filepath), 'r') as handle:
        for record in SeqIO.parse(handle, "fastq"):
            scores = record.letter_annotations["phred_quality"]
            yield SeqRead(
                id=record.id,
                sequence=str(record.seq),
                quality=''.join(chr(score + PHRED_OFFSET) for score in scores),
            )

# BreakSim v0.1.0
# Any usage is subject to this software's license.
